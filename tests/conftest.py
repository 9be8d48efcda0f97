"""
Shared fixtures: tiny synthetic glyphs drawn with '#' for ink.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.reference_store import ReferenceStore

DATA_DIR = Path(__file__).resolve().parent / "data"

INK = 0
PAPER = 255

GLYPH_ROWS = {
    'A': [".#.",
          "#.#",
          "###",
          "#.#",
          "#.#"],
    'T': ["###",
          ".#.",
          ".#.",
          ".#.",
          ".#."],
    'M': ["#...#",
          "##.##",
          "#.#.#",
          "#...#",
          "#...#"],
    'G': [".###",
          "#...",
          "#.##",
          "#..#",
          ".###"],
}


def glyph(rows):
    """Build a grayscale glyph from rows of '#' and '.'"""
    return np.array([[INK if c == '#' else PAPER for c in row] for row in rows], dtype=np.uint8)


def fp(rows):
    """Expected row-major fingerprint of a glyph"""
    return ''.join(row.replace('#', '1').replace('.', '0') for row in rows)


def compose(glyphs, gap=2, margin=3):
    """Lay glyph images out left to right on white paper"""
    height = max(g.shape[0] for g in glyphs) if glyphs else 5
    parts = [np.full((height, margin), PAPER, dtype=np.uint8)]
    for i, g in enumerate(glyphs):
        if i:
            parts.append(np.full((height, gap), PAPER, dtype=np.uint8))
        parts.append(g)
    parts.append(np.full((height, margin), PAPER, dtype=np.uint8))
    return np.hstack(parts)


def word(text):
    return compose([glyph(GLYPH_ROWS[c]) for c in text.upper()])


@pytest.fixture
def store():
    return ReferenceStore({fp(rows): char for char, rows in GLYPH_ROWS.items()})


@pytest.fixture
def aatmag_image():
    return word("aatmag")
