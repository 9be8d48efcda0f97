"""
Visualization utilities for the CAPTCHA solver.

Draws the detected glyph regions on top of the source image, which is the
quickest way to see why a CAPTCHA was misread.
"""

import logging
from typing import List, Optional, Sequence, Tuple
import numpy as np
import cv2
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

# Set up logging
logger = logging.getLogger(__name__)


def annotate_regions(
    image: np.ndarray,
    regions: Sequence[Tuple[int, int]],
    labels: Optional[Sequence[str]] = None,
    color: Tuple[int, int, int] = (0, 200, 0),
    thickness: int = 1
) -> np.ndarray:
    """
    Draw glyph regions on a copy of an image.

    Args:
        image: Grayscale or BGR image
        regions: Column spans (start, end) with exclusive end
        labels: Optional character drawn above each region
        color: BGR color of the boxes
        thickness: Line thickness

    Returns:
        Annotated BGR image
    """
    if len(image.shape) == 2:
        annotated = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    else:
        annotated = image[:, :, :3].copy()

    height = annotated.shape[0]

    for i, (start, end) in enumerate(regions):
        cv2.rectangle(annotated, (start, 0), (end - 1, height - 1), color, thickness)
        if labels and i < len(labels):
            cv2.putText(annotated, labels[i], (start, 12),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.4, color, 1, cv2.LINE_AA)

    return annotated


def visualize_segmentation(
    image: np.ndarray,
    regions: Sequence[Tuple[int, int]],
    glyphs: List[np.ndarray],
    labels: Optional[Sequence[str]] = None,
    output_path: Optional[str] = None,
    title: str = "Segmentation",
    figsize: Tuple[int, int] = (10, 4)
) -> Optional[str]:
    """
    Plot the annotated image above the individual glyph crops.

    Args:
        image: Source image
        regions: Detected column spans
        glyphs: Glyph images that were classified
        labels: Resolved character per glyph
        output_path: Path to save visualization (if None, displayed inline)
        title: Title for the visualization
        figsize: Figure size (width, height) in inches

    Returns:
        Path to saved visualization if output_path is provided, None otherwise
    """
    n_cols = max(len(glyphs), 1)
    fig = plt.figure(figsize=figsize)
    fig.suptitle(title, fontsize=14)

    top = fig.add_subplot(2, 1, 1)
    annotated = annotate_regions(image, regions)
    top.imshow(cv2.cvtColor(annotated, cv2.COLOR_BGR2RGB))
    top.axis('off')

    for i, glyph in enumerate(glyphs):
        ax = fig.add_subplot(2, n_cols, n_cols + i + 1)
        ax.imshow(glyph, cmap='gray', vmin=0, vmax=255)
        if labels and i < len(labels):
            ax.set_title(labels[i])
        ax.axis('off')

    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        logger.info(f"Saved segmentation visualization to {output_path}")
        return output_path
    else:
        plt.show()
        plt.close(fig)
        return None
