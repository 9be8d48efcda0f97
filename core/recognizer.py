"""
Main recognition engine for glyph CAPTCHAs.

This module combines segmentation, fingerprinting and reference lookup to
turn a CAPTCHA image into its lowercase text.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple, Union
from pathlib import Path

import numpy as np
from PIL import Image

from .fingerprint import fingerprint
from .preprocessing import INK_THRESHOLD, to_grayscale
from .reference_store import ReferenceStore
from .segmentation import (
    SPLIT_REGION_COUNT,
    GlyphRegion,
    crop_region,
    find_regions,
    merge_split_glyph,
)

# Set up logging
logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, np.ndarray, Image.Image]


class CaptchaRecognizer:
    """
    Engine resolving CAPTCHA images against a reference corpus.

    The recognizer keeps no per-image state, so one instance can serve
    many images, from several threads if needed.
    """

    def __init__(self, store: ReferenceStore, threshold: int = INK_THRESHOLD):
        """
        Initialize the recognizer.

        Args:
            store: Reference corpus used for classification
            threshold: Darkness cutoff for ink
        """
        self.store = store
        self.threshold = threshold

    @classmethod
    def from_resource(
        cls,
        path: Optional[Union[str, Path]] = None,
        threshold: int = INK_THRESHOLD
    ) -> 'CaptchaRecognizer':
        """
        Create a recognizer from a corpus resource file.

        Args:
            path: Resource path, the bundled corpus if None
            threshold: Darkness cutoff for ink

        Returns:
            Ready recognizer

        Raises:
            LoadError: If the corpus cannot be loaded
        """
        store = ReferenceStore.from_file(path) if path else ReferenceStore.default()
        return cls(store, threshold=threshold)

    def classify(self, binary: str) -> Tuple[str, float]:
        """
        Resolve a fingerprint to a character.

        Args:
            binary: Glyph fingerprint

        Returns:
            Tuple of (character, similarity score); exact matches score 1.0
        """
        char = self.store.lookup_exact(binary)
        if char is not None:
            return char, 1.0

        char, score = self.store.most_similar_with_score(binary)
        logger.debug(f"No exact match, closest glyph {char!r} with score {score:.3f}")
        return char, score

    def _glyphs(self, image: ImageSource) -> Tuple[List[GlyphRegion], List[np.ndarray], bool]:
        gray = to_grayscale(image)
        regions = find_regions(gray, self.threshold)
        letters = merge_split_glyph([crop_region(gray, region) for region in regions])
        return regions, letters, len(regions) == SPLIT_REGION_COUNT

    def resolve_image(self, image: ImageSource) -> str:
        """
        Resolve the text of a CAPTCHA image.

        Args:
            image: Decoded image (numpy array or PIL image) or image path

        Returns:
            Lowercase text, one character per glyph; empty if no ink was found
        """
        _, letters, _ = self._glyphs(image)
        resolved = ''.join(self.classify(fingerprint(glyph, self.threshold))[0] for glyph in letters)
        return resolved.lower()

    def recognize(self, image: ImageSource) -> Dict[str, Any]:
        """
        Resolve a CAPTCHA image and report per-glyph details.

        Args:
            image: Decoded image (numpy array or PIL image) or image path

        Returns:
            Dictionary with recognition results
        """
        start_time = time.time()

        regions, letters, merged = self._glyphs(image)

        characters = []
        for glyph in letters:
            binary = fingerprint(glyph, self.threshold)
            char, score = self.classify(binary)
            characters.append({
                'char': char.lower(),
                'score': score,
                'exact': binary in self.store,
                'width': glyph.shape[1]
            })

        return {
            'text': ''.join(c['char'] for c in characters),
            'characters': characters,
            'regions': [(r.start, r.end) for r in regions],
            'merged': merged,
            'processing_time': time.time() - start_time
        }
