"""
Utility functions for the glyph CAPTCHA solver.

This package contains utilities for:
- Image loading, downloading and saving
- Visualization of segmentation results
"""

from .image_utils import *
from .visualization import *

__version__ = '0.1.0'
