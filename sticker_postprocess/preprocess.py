from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from .config import ALPHA_THRESHOLD
from .contracts import ProcessingOptions
from .raster import BoundingBox, Raster

logger = logging.getLogger(__name__)


def visible_bounding_box(raster: Raster, threshold: int = ALPHA_THRESHOLD) -> Optional[BoundingBox]:
    """
    Tight bounding box around alpha > threshold, or None if nothing is visible.
    """
    visible = raster.alpha > int(threshold)
    rows = np.flatnonzero(visible.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(visible.any(axis=0))
    return BoundingBox(
        min_x=int(cols[0]),
        max_x=int(cols[-1]),
        min_y=int(rows[0]),
        max_y=int(rows[-1]),
    )


def fit_size(crop_w: int, crop_h: int, max_dimension: int) -> Tuple[int, int]:
    """
    Cap the longer edge at max_dimension, keeping the aspect ratio.

    Never upscales: an edge already <= max_dimension keeps its native size.
    Square crops are treated as "tall" (height drives the scale).
    """
    if crop_w < 1 or crop_h < 1:
        raise ValueError(f"Invalid crop size: {(crop_w, crop_h)}")
    if crop_w > crop_h:
        new_w = min(int(max_dimension), crop_w)
        new_h = max(1, int(round(crop_h * new_w / crop_w)))
    else:
        new_h = min(int(max_dimension), crop_h)
        new_w = max(1, int(round(crop_w * new_h / crop_h)))
    return new_w, new_h


def paste_offset(canvas_size: int, width: int, height: int) -> Tuple[int, int]:
    return (canvas_size - width) // 2, (canvas_size - height) // 2


def _resize_rgba(rgba: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """
    Area-resample an RGBA uint8 array in premultiplied space, so fully
    transparent neighbours do not bleed dark fringes into the edge colour.
    """
    w, h = size
    if rgba.shape[1] == w and rgba.shape[0] == h:
        return rgba.copy()

    f = rgba.astype(np.float32)
    alpha = f[..., 3:4] / 255.0
    f[..., :3] *= alpha
    resized = cv2.resize(f, (w, h), interpolation=cv2.INTER_AREA)

    a = resized[..., 3:4]
    rgb = np.divide(
        resized[..., :3] * 255.0,
        a,
        out=np.zeros_like(resized[..., :3]),
        where=a > 0,
    )
    out = np.concatenate([rgb, a], axis=2)
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)


def resize_and_center(raster: Raster, options: Optional[ProcessingOptions] = None) -> Raster:
    """
    Crop to the visible region, scale (down only) and paste centered on a
    transparent canvas_size x canvas_size canvas.

    The bounding box is re-scanned here so the stage also works standalone.
    Fully transparent input yields a blank canvas.
    """
    opts = options or ProcessingOptions()
    size = opts.canvas_size

    bbox = visible_bounding_box(raster, opts.alpha_threshold)
    if bbox is None:
        logger.debug("No visible pixels; returning blank %dx%d canvas", size, size)
        return Raster.blank(size)

    cropped = raster.pixels[bbox.as_slices()]
    new_w, new_h = fit_size(bbox.width, bbox.height, opts.max_dimension)
    resized = _resize_rgba(cropped, (new_w, new_h))

    x0, y0 = paste_offset(size, new_w, new_h)
    canvas = np.zeros((size, size, 4), dtype=np.uint8)
    canvas[y0 : y0 + new_h, x0 : x0 + new_w] = resized
    logger.debug(
        "Cropped %dx%d -> resized %dx%d, pasted at (%d, %d)",
        bbox.width,
        bbox.height,
        new_w,
        new_h,
        x0,
        y0,
    )
    return Raster(canvas)


def fit_inside(raster: Raster, max_size: int) -> Raster:
    """
    Shrink so both edges are <= max_size, keeping the aspect ratio.
    Smaller images are returned as-is (no enlargement).
    """
    w, h = raster.size
    if w <= max_size and h <= max_size:
        return raster
    scale = float(max_size) / float(max(w, h))
    new_w = max(1, min(max_size, int(round(w * scale))))
    new_h = max(1, min(max_size, int(round(h * scale))))
    return Raster(_resize_rgba(raster.pixels, (new_w, new_h)))
