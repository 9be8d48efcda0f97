"""
Core module for the glyph CAPTCHA solver.

This module contains the recognition engine together with the reference
store, segmentation and fingerprinting utilities it is built from.
"""

from .reference_store import ReferenceStore, LoadError, encode_reference_data
from .recognizer import CaptchaRecognizer

__version__ = '0.1.0'

__all__ = ['ReferenceStore', 'LoadError', 'encode_reference_data', 'CaptchaRecognizer']
