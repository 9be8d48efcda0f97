"""
Image preparation for glyph segmentation.

CAPTCHA glyphs are drawn in near-black ink, so the only preprocessing the
engine needs is a grayscale conversion followed by a fixed darkness cutoff.
"""

import cv2
import numpy as np
import logging
from typing import Union
from pathlib import Path
from PIL import Image

# Setup logging
logger = logging.getLogger(__name__)

# Intensities at or below this value count as ink
INK_THRESHOLD = 1


def check_image(image: Union[str, Path, np.ndarray, Image.Image]) -> np.ndarray:
    """
    Check and load image from various input types.

    Args:
        image: Input image as path string, Path object, PIL image or numpy array

    Returns:
        Loaded image as numpy array

    Raises:
        ValueError: If image cannot be loaded or is invalid
    """
    if isinstance(image, (str, Path)):
        img = cv2.imread(str(image), cv2.IMREAD_UNCHANGED)
        if img is None:
            raise ValueError(f"Could not read image at {image}")
        return img
    elif isinstance(image, Image.Image):
        return np.array(image.convert('L'))
    elif isinstance(image, np.ndarray):
        if len(image.shape) < 2:
            raise ValueError("Invalid image array: must have at least 2 dimensions")
        return image
    else:
        raise ValueError(f"Unsupported image type: {type(image)}")


def normalize_image(image: np.ndarray) -> np.ndarray:
    """
    Convert image to single-channel 8-bit grayscale.

    Args:
        image: Input image (grayscale, BGR or BGRA)

    Returns:
        Grayscale image
    """
    if np.issubdtype(image.dtype, np.floating):
        # Float images hold intensities in [0, 1]
        image = np.clip(np.rint(image * 255), 0, 255).astype(np.uint8)
    elif not np.issubdtype(image.dtype, np.integer):
        raise ValueError(f"Unsupported image dtype: {image.dtype}")
    elif image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    if len(image.shape) == 3:
        channels = image.shape[2]
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        if channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image[:, :, 0]
    return image


def to_grayscale(image: Union[str, Path, np.ndarray, Image.Image]) -> np.ndarray:
    """Load an image from any supported source as grayscale."""
    return normalize_image(check_image(image))


def ink_mask(gray: np.ndarray, threshold: int = INK_THRESHOLD) -> np.ndarray:
    """
    Boolean mask of ink pixels.

    Args:
        gray: Grayscale image
        threshold: Darkness cutoff, pixels at or below it are ink

    Returns:
        Boolean array shaped like ``gray``
    """
    return gray <= threshold
