"""
Reference corpus of known glyph fingerprints.

The corpus maps a binary fingerprint string to the character it depicts.
It is loaded once from a bundled binary resource and never mutated
afterwards, so a single store can be shared by any number of recognizers.

Resource layout (little-endian, compatible with a bincode encoded
``HashMap<String, char>``):

    u64 entry_count
    entry_count times:
        u64 key_length
        key_length bytes   UTF-8 fingerprint made of '0' and '1'
        1-4 bytes          UTF-8 encoded character
"""

import logging
import struct
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_RESOURCE = Path(__file__).resolve().parent / "data" / "dataset.bin"

# Emitted by the similarity fallback when there is nothing to compare against
BLANK = ' '

_U64 = struct.Struct('<Q')


class LoadError(Exception):
    """Raised when the reference corpus cannot be loaded."""


def _is_fingerprint(key: str) -> bool:
    return bool(key) and set(key) <= {'0', '1'}


def _utf8_width(lead: int) -> int:
    if lead < 0x80:
        return 1
    if lead >> 5 == 0b110:
        return 2
    if lead >> 4 == 0b1110:
        return 3
    if lead >> 3 == 0b11110:
        return 4
    raise LoadError(f"Invalid UTF-8 lead byte 0x{lead:02x}")


def similarity(fingerprint: str, key: str) -> float:
    """
    Positional match ratio between a fingerprint and a reference key.

    Positions are compared over the zipped prefix of both strings and the
    match count is divided by the length of ``fingerprint``, so keys
    shorter than the fingerprint can never reach a perfect score.

    Args:
        fingerprint: Fingerprint being classified
        key: Reference fingerprint

    Returns:
        Score in [0.0, 1.0]
    """
    if not fingerprint:
        return 0.0
    matches = sum(1 for a, b in zip(fingerprint, key) if a == b)
    return matches / len(fingerprint)


class ReferenceStore:
    """
    Immutable fingerprint -> character mapping.

    Supports O(1) exact lookup and a full scan for the most similar entry.
    """

    def __init__(self, entries: Mapping[str, str]):
        """
        Build a store from an in-memory mapping.

        Args:
            entries: Mapping of fingerprint strings to single characters

        Raises:
            ValueError: If a key is not a binary string or a value is not a
                single character
        """
        data: Dict[str, str] = {}
        for key, char in entries.items():
            if not _is_fingerprint(key):
                raise ValueError(f"Invalid fingerprint key: {key[:32]!r}")
            if not isinstance(char, str) or len(char) != 1:
                raise ValueError(f"Reference value must be a single character, got {char!r}")
            data[key] = char
        self._data = data

    @classmethod
    def from_bytes(cls, data: bytes) -> 'ReferenceStore':
        """
        Deserialize a store from the binary resource format.

        Args:
            data: Raw resource bytes

        Returns:
            Loaded ReferenceStore

        Raises:
            LoadError: If the data is truncated, malformed or empty
        """
        view = memoryview(data)
        offset = 0

        def take(size: int) -> memoryview:
            nonlocal offset
            if offset + size > len(view):
                raise LoadError(
                    f"Reference data truncated at byte {offset} (needed {size} more bytes)"
                )
            chunk = view[offset:offset + size]
            offset += size
            return chunk

        try:
            (count,) = _U64.unpack(take(_U64.size))
            entries: Dict[str, str] = {}
            for _ in range(count):
                (key_len,) = _U64.unpack(take(_U64.size))
                key = bytes(take(key_len)).decode('utf-8')
                lead = take(1)[0]
                rest = take(_utf8_width(lead) - 1)
                char = (bytes([lead]) + bytes(rest)).decode('utf-8')
                # Later duplicates overwrite earlier ones
                entries[key] = char
        except UnicodeDecodeError as e:
            raise LoadError(f"Reference data is not valid UTF-8: {e}") from e

        if offset != len(view):
            raise LoadError(f"Unexpected trailing data after {count} entries")
        if not entries:
            raise LoadError("Reference corpus is empty")

        try:
            return cls(entries)
        except ValueError as e:
            raise LoadError(str(e)) from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'ReferenceStore':
        """
        Load a store from a resource file.

        Args:
            path: Path to the binary resource

        Returns:
            Loaded ReferenceStore

        Raises:
            LoadError: If the file is missing, unreadable or malformed
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise LoadError(f"Could not read reference data at {path}: {e}") from e

        store = cls.from_bytes(data)
        logger.info(f"Loaded {len(store)} reference glyphs from {path}")
        return store

    @classmethod
    def default(cls) -> 'ReferenceStore':
        """Load the corpus bundled with the package."""
        return cls.from_file(DEFAULT_RESOURCE)

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._data

    def items(self):
        return self._data.items()

    def lookup_exact(self, fingerprint: str) -> Optional[str]:
        """Return the character stored under ``fingerprint``, if any."""
        return self._data.get(fingerprint)

    def most_similar_with_score(self, fingerprint: str) -> Tuple[str, float]:
        """
        Find the reference character closest to a fingerprint.

        Every entry is scored with :func:`similarity`. An entry only
        replaces the current best when its score is strictly greater, so on
        ties the entry loaded first wins.

        Args:
            fingerprint: Fingerprint to classify

        Returns:
            Tuple of (character, score); (BLANK, 0.0) for an empty store
        """
        best_char = BLANK
        best_score = -1.0

        for key, char in self._data.items():
            score = similarity(fingerprint, key)
            if score > best_score:
                best_score = score
                best_char = char

        return best_char, max(best_score, 0.0)

    def most_similar(self, fingerprint: str) -> str:
        """Return the character of the most similar reference entry."""
        return self.most_similar_with_score(fingerprint)[0]


def encode_reference_data(entries: Union[Mapping[str, str], Iterator[Tuple[str, str]]]) -> bytes:
    """
    Serialize fingerprint/character pairs into the resource format.

    Args:
        entries: Mapping or iterable of (fingerprint, character) pairs.
            Pairs are written in the given order, duplicates included.

    Returns:
        Encoded resource bytes
    """
    pairs = list(entries.items()) if isinstance(entries, Mapping) else list(entries)

    chunks = [_U64.pack(len(pairs))]
    for key, char in pairs:
        key_bytes = key.encode('utf-8')
        chunks.append(_U64.pack(len(key_bytes)))
        chunks.append(key_bytes)
        chunks.append(char.encode('utf-8'))

    return b''.join(chunks)
