"""
Image handling utilities for the CAPTCHA solver.

This module provides functions for:
- Loading images from files, URLs, raw bytes and in-memory objects
- Downloading challenge images for dataset collection
- Saving images to disk
"""

import os
import io
import logging
import tempfile
import requests
from typing import Union, Optional
from pathlib import Path
import numpy as np
import cv2
from PIL import Image, UnidentifiedImageError
from urllib.parse import urlparse

# Set up logging
logger = logging.getLogger(__name__)

ImageInput = Union[str, Path, np.ndarray, bytes, Image.Image]


def is_url(path: str) -> bool:
    """
    Check if a string is an HTTP(S) URL.

    Args:
        path: String to check

    Returns:
        Boolean indicating if the string is a URL
    """
    result = urlparse(path)
    return result.scheme in ('http', 'https') and bool(result.netloc)


def fetch_bytes(url: str, timeout: float = 10) -> bytes:
    """
    Fetch the raw content behind a URL.

    Raises:
        ValueError: If the request fails
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ValueError(f"Failed to fetch {url}: {e}") from e
    return response.content


def load_image(
    source: ImageInput,
    return_format: str = 'np',
    grayscale: bool = False,
    timeout: float = 10
) -> Union[np.ndarray, Image.Image]:
    """
    Load an image from various sources.

    Args:
        source: Image source (file path, URL, numpy array, bytes, PIL Image)
        return_format: Return format ('np' for numpy array, 'pil' for PIL Image)
        grayscale: Whether to convert to grayscale
        timeout: Timeout in seconds for URL sources

    Returns:
        Loaded image in the specified format (numpy arrays are BGR or gray)

    Raises:
        ValueError: If the image cannot be loaded or is invalid
    """
    if isinstance(source, (str, Path)):
        source_str = str(source)

        if is_url(source_str):
            img = _open_bytes(fetch_bytes(source_str, timeout=timeout))
        else:
            if not os.path.exists(source_str):
                raise ValueError(f"Image file not found: {source_str}")
            try:
                img = Image.open(source_str)
                img.load()
            except (OSError, UnidentifiedImageError) as e:
                raise ValueError(f"Failed to load image from file: {e}") from e

    elif isinstance(source, np.ndarray):
        if len(source.shape) < 2:
            raise ValueError("Invalid image array: must have at least 2 dimensions")

        # OpenCV arrays are BGR
        if len(source.shape) == 3 and source.shape[2] == 3:
            img_array = cv2.cvtColor(source, cv2.COLOR_BGR2RGB)
        else:
            img_array = source

        img = Image.fromarray(img_array.astype('uint8'))

    elif isinstance(source, bytes):
        img = _open_bytes(source)

    elif isinstance(source, Image.Image):
        img = source

    else:
        raise ValueError(f"Unsupported image source type: {type(source)}")

    # Palette ('P') and bilevel ('1') pixels are not intensities
    if grayscale or img.mode not in ('L', 'RGB', 'RGBA'):
        img = img.convert('L')

    if return_format.lower() == 'np':
        img_array = np.array(img)

        # Convert RGB to BGR for OpenCV compatibility
        if len(img_array.shape) == 3 and img_array.shape[2] == 3:
            return cv2.cvtColor(img_array, cv2.COLOR_RGB2BGR)
        return img_array

    elif return_format.lower() == 'pil':
        return img

    else:
        raise ValueError(f"Unsupported return format: {return_format}")


def _open_bytes(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (OSError, UnidentifiedImageError) as e:
        raise ValueError(f"Failed to load image from bytes: {e}") from e
    return img


def save_image(
    image: Union[np.ndarray, Image.Image],
    path: Union[str, Path],
    quality: int = 95
) -> str:
    """
    Save an image to a file.

    Args:
        image: Image to save (numpy array or PIL Image)
        path: Path where to save the image
        quality: JPEG quality (1-100) if saving as JPEG

    Returns:
        Path where the image was saved

    Raises:
        ValueError: If the image cannot be saved
    """
    path = str(path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    if isinstance(image, np.ndarray):
        if len(image.shape) == 3 and image.shape[2] == 3:
            pil_image = Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
        else:
            pil_image = Image.fromarray(image)
    else:
        pil_image = image

    ext = os.path.splitext(path)[1].lower()

    try:
        if ext in ['.jpg', '.jpeg']:
            pil_image.save(path, quality=quality, optimize=True)
        else:
            pil_image.save(path)
    except (OSError, ValueError) as e:
        raise ValueError(f"Failed to save image: {e}") from e

    return path


def download_image(
    url: str,
    output_path: Optional[Union[str, Path]] = None,
    timeout: float = 10
) -> str:
    """
    Download an image from a URL.

    Args:
        url: URL of the image
        output_path: Path where to save the image (if None, a temp file is created)
        timeout: Connection timeout in seconds

    Returns:
        Path to the downloaded image

    Raises:
        ValueError: If the image cannot be downloaded
    """
    content = fetch_bytes(url, timeout=timeout)

    if output_path is None:
        fd, output_path = tempfile.mkstemp(suffix='.jpg')
        os.close(fd)
    else:
        directory = os.path.dirname(str(output_path))
        if directory:
            os.makedirs(directory, exist_ok=True)

    with open(output_path, 'wb') as f:
        f.write(content)

    logger.info(f"Downloaded {url} to {output_path}")
    return str(output_path)
