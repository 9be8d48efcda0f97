"""
Column-wise glyph segmentation.

Glyphs in the CAPTCHA never share a column, so each contiguous run of
columns containing ink is one character.
"""

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from .preprocessing import INK_THRESHOLD, ink_mask, normalize_image

# Setup logging
logger = logging.getLogger(__name__)

# A seventh region is the wrapped remainder of the last glyph
SPLIT_REGION_COUNT = 7

BACKGROUND = 255


@dataclass(frozen=True)
class GlyphRegion:
    """Column span [start, end) of a glyph, at full image height"""
    start: int
    end: int

    @property
    def width(self) -> int:
        return self.end - self.start


def find_regions(gray: np.ndarray, threshold: int = INK_THRESHOLD) -> List[GlyphRegion]:
    """
    Find the column spans that contain ink.

    Args:
        gray: Grayscale image
        threshold: Darkness cutoff for ink

    Returns:
        Regions in left-to-right order, empty if there is no ink
    """
    width = gray.shape[1]
    columns = ink_mask(gray, threshold).any(axis=0)

    regions = []
    start = None

    for x in range(width):
        if columns[x]:
            if start is None:
                start = x
        elif start is not None:
            regions.append(GlyphRegion(start, x))
            start = None

    if start is not None:
        regions.append(GlyphRegion(start, width))

    return regions


def crop_region(gray: np.ndarray, region: GlyphRegion) -> np.ndarray:
    """Crop a region at full height."""
    return gray[:, region.start:region.end].copy()


def extract_letters(image: np.ndarray, threshold: int = INK_THRESHOLD) -> List[np.ndarray]:
    """
    Split an image into per-glyph grayscale crops.

    Args:
        image: Input image (grayscale or color)
        threshold: Darkness cutoff for ink

    Returns:
        Glyph images in left-to-right order
    """
    gray = normalize_image(image)
    return [crop_region(gray, region) for region in find_regions(gray, threshold)]


def merge_images(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    """
    Place two grayscale images side by side.

    Args:
        left: Image placed at x = 0
        right: Image placed right after ``left``

    Returns:
        Image of width ``left + right`` and the taller of the two heights.
        Uncovered pixels are background.
    """
    h1, w1 = left.shape[:2]
    h2, w2 = right.shape[:2]

    merged = np.full((max(h1, h2), w1 + w2), BACKGROUND, dtype=np.uint8)
    merged[:h1, :w1] = left
    merged[:h2, w1:] = right

    return merged


def merge_split_glyph(letters: List[np.ndarray]) -> List[np.ndarray]:
    """
    Repair the seven-region split artifact.

    When exactly seven glyphs are found, the last one is merged in front
    of the first one, the merged glyph takes the last slot and the leading
    glyph is dropped. Any other count is returned unchanged.

    Args:
        letters: Glyph images in left-to-right order

    Returns:
        Glyph images after the repair
    """
    if len(letters) != SPLIT_REGION_COUNT:
        return letters

    logger.debug("Seven regions detected, merging last region with the first")
    merged = merge_images(letters[-1], letters[0])
    return letters[1:-1] + [merged]
