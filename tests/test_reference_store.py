"""
Tests for loading and querying the reference corpus
"""

import struct

import pytest

from core.reference_store import (
    BLANK,
    LoadError,
    ReferenceStore,
    encode_reference_data,
    similarity,
)


class TestLoading:
    """Resource deserialization"""

    def test_from_bytes_reads_encoded_entries(self):
        data = encode_reference_data({'0110': 'a', '1001': 'B'})
        store = ReferenceStore.from_bytes(data)
        assert len(store) == 2
        assert store.lookup_exact('0110') == 'a'
        assert store.lookup_exact('1001') == 'B'

    def test_layout_matches_bincode_map(self):
        data = encode_reference_data({'01': 'x'})
        assert data == struct.pack('<Q', 1) + struct.pack('<Q', 2) + b'01' + b'x'

    def test_multibyte_character(self):
        store = ReferenceStore.from_bytes(encode_reference_data({'1': 'é', '0': '€'}))
        assert store.lookup_exact('1') == 'é'
        assert store.lookup_exact('0') == '€'

    def test_duplicate_keys_last_write_wins(self):
        data = encode_reference_data([('0101', 'a'), ('0101', 'b')])
        store = ReferenceStore.from_bytes(data)
        assert len(store) == 1
        assert store.lookup_exact('0101') == 'b'

    def test_zero_length_resource_fails(self):
        with pytest.raises(LoadError):
            ReferenceStore.from_bytes(b'')

    def test_every_truncation_fails(self):
        data = encode_reference_data({'0110': 'a', '1001': 'b', '1111': 'c'})
        for cut in range(len(data)):
            with pytest.raises(LoadError):
                ReferenceStore.from_bytes(data[:cut])

    def test_trailing_bytes_fail(self):
        data = encode_reference_data({'0110': 'a'}) + b'\x00'
        with pytest.raises(LoadError):
            ReferenceStore.from_bytes(data)

    def test_empty_corpus_fails(self):
        with pytest.raises(LoadError):
            ReferenceStore.from_bytes(struct.pack('<Q', 0))

    def test_non_binary_key_fails(self):
        with pytest.raises(LoadError):
            ReferenceStore.from_bytes(encode_reference_data({'01x1': 'a'}))

    def test_invalid_utf8_fails(self):
        data = struct.pack('<Q', 1) + struct.pack('<Q', 1) + b'\xff' + b'a'
        with pytest.raises(LoadError):
            ReferenceStore.from_bytes(data)

    def test_invalid_character_lead_byte_fails(self):
        data = struct.pack('<Q', 1) + struct.pack('<Q', 1) + b'1' + b'\x80'
        with pytest.raises(LoadError):
            ReferenceStore.from_bytes(data)

    def test_missing_file_fails(self, tmp_path):
        with pytest.raises(LoadError):
            ReferenceStore.from_file(tmp_path / "missing.bin")

    def test_from_file(self, tmp_path):
        path = tmp_path / "dataset.bin"
        path.write_bytes(encode_reference_data({'10': 'z'}))
        assert ReferenceStore.from_file(path).lookup_exact('10') == 'z'

    def test_constructor_rejects_bad_values(self):
        with pytest.raises(ValueError):
            ReferenceStore({'01': 'ab'})
        with pytest.raises(ValueError):
            ReferenceStore({'': 'a'})


class TestLookup:
    """Exact lookup and similarity search"""

    def test_lookup_exact_miss(self):
        store = ReferenceStore({'0110': 'a'})
        assert store.lookup_exact('011') is None
        assert store.lookup_exact('01100') is None

    def test_most_similar_picks_highest_score(self):
        store = ReferenceStore({'0000': 'a', '1110': 'b', '0011': 'c'})
        char, score = store.most_similar_with_score('1111')
        assert char == 'b'
        assert score == 0.75

    def test_tie_goes_to_first_loaded_entry(self):
        forward = ReferenceStore.from_bytes(encode_reference_data([('1100', 'x'), ('0011', 'y')]))
        backward = ReferenceStore.from_bytes(encode_reference_data([('0011', 'y'), ('1100', 'x')]))
        assert forward.most_similar('1111') == 'x'
        assert backward.most_similar('1111') == 'y'

    def test_zero_score_still_yields_a_character(self):
        store = ReferenceStore({'1': 'q'})
        assert store.most_similar_with_score('0') == ('q', 0.0)

    def test_empty_store_yields_blank(self):
        assert ReferenceStore({}).most_similar_with_score('0101') == (BLANK, 0.0)


class TestSimilarity:
    """Positional match ratio"""

    def test_identical_is_one(self):
        assert similarity('101100', '101100') == 1.0

    def test_complement_is_zero(self):
        assert similarity('1010', '0101') == 0.0

    def test_partial_match(self):
        assert similarity('1111', '1100') == 0.5

    def test_bounds_over_equal_length_pairs(self):
        values = ['000', '001', '010', '011', '100', '101', '110', '111']
        for a in values:
            for b in values:
                score = similarity(a, b)
                assert 0.0 <= score <= 1.0
                assert (score == 1.0) == (a == b)
                assert (score == 0.0) == all(x != y for x, y in zip(a, b))

    def test_shorter_key_is_penalized(self):
        assert similarity('1010', '10') == 0.5

    def test_longer_key_compared_on_prefix(self):
        assert similarity('10', '1011') == 1.0

    def test_empty_fingerprint(self):
        assert similarity('', '1010') == 0.0
