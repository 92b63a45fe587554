from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from .config import ALPHA_THRESHOLD, CLOSING_RADIUS
from .morphology import close_mask
from .raster import BoundingBox, Raster

logger = logging.getLogger(__name__)


def _pick_largest_label(labels: np.ndarray, stats: np.ndarray, num_labels: int) -> int:
    """
    Label with the largest area; ties go to the component whose first pixel
    comes first in raster scan order (top-to-bottom, left-to-right).
    """
    if num_labels <= 2:
        return 1
    # First flat offset of every label present; label 0 (background) may be absent.
    present, first = np.unique(labels.ravel(), return_index=True)
    first_seen = np.full(num_labels, labels.size, dtype=np.int64)
    first_seen[present] = first
    areas = stats[1:num_labels, cv2.CC_STAT_AREA].astype(np.int64)
    order = np.lexsort((first_seen[1:], -areas))
    return int(order[0]) + 1


def remove_stray_pixels(
    raster: Raster,
    alpha_threshold: int = ALPHA_THRESHOLD,
) -> Tuple[Raster, Optional[BoundingBox]]:
    """
    Keep the dominant 8-connected component and clear dust around it.

    A pixel survives if it belongs to the largest component or lies inside
    that component's bounding box (detail enclosed by the subject is kept even
    when alpha-disconnected). Everything else becomes RGBA (0,0,0,0).

    Returns the input unchanged and None when nothing is visible.
    """
    visible = (raster.alpha > int(alpha_threshold)).astype(np.uint8)
    if not visible.any():
        return raster, None

    num_labels, labels, stats, _centroids = cv2.connectedComponentsWithStats(visible, connectivity=8)
    keep_label = _pick_largest_label(labels, stats, num_labels)

    left = int(stats[keep_label, cv2.CC_STAT_LEFT])
    top = int(stats[keep_label, cv2.CC_STAT_TOP])
    bbox = BoundingBox(
        min_x=left,
        max_x=left + int(stats[keep_label, cv2.CC_STAT_WIDTH]) - 1,
        min_y=top,
        max_y=top + int(stats[keep_label, cv2.CC_STAT_HEIGHT]) - 1,
    )

    keep = labels == keep_label
    keep[bbox.as_slices()] = True

    out = raster.pixels.copy()
    out[~keep] = 0
    logger.debug(
        "Found %d components, kept largest (%d pixels) bbox=%s",
        num_labels - 1,
        int(stats[keep_label, cv2.CC_STAT_AREA]),
        bbox,
    )
    return Raster(out), bbox


def create_silhouette_mask(
    canvas: Raster,
    canvas_size: int,
    alpha_threshold: int = ALPHA_THRESHOLD,
) -> np.ndarray:
    """
    Binary silhouette (0/255) of the centered canvas, smoothed by a closing
    of radius CLOSING_RADIUS to fill antialiasing/resizing pinholes.
    """
    if canvas.size != (canvas_size, canvas_size):
        raise ValueError(f"Expected {canvas_size}x{canvas_size} canvas, got {canvas.width}x{canvas.height}")
    mask = np.where(canvas.alpha > int(alpha_threshold), 255, 0).astype(np.uint8)
    return close_mask(mask, CLOSING_RADIUS)
