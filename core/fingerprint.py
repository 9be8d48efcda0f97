"""
Binary fingerprints of glyph images.
"""

import numpy as np

from .preprocessing import INK_THRESHOLD, ink_mask


def fingerprint(glyph: np.ndarray, threshold: int = INK_THRESHOLD) -> str:
    """
    Encode a grayscale glyph as a string of '0' and '1'.

    Pixels are visited row by row, top to bottom and left to right. Ink
    pixels become '1', everything else '0'.

    Args:
        glyph: Grayscale glyph image
        threshold: Darkness cutoff for ink

    Returns:
        Fingerprint of length width * height
    """
    mask = ink_mask(glyph, threshold)
    return ''.join('1' if ink else '0' for ink in mask.ravel(order='C'))
