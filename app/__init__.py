"""
Command-line application for the glyph CAPTCHA solver.
"""
