from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from PIL import Image

from .config import BORDER_COLOR
from .contracts import ProcessingOptions
from .morphology import dilate
from .raster import Raster


def build_border_layer(halo: np.ndarray, color: Tuple[int, int, int] = BORDER_COLOR) -> Raster:
    """
    Solid-colour RGBA layer whose alpha is the halo mask, pixel for pixel.
    Pixels outside the halo are (0,0,0,0).
    """
    if halo.ndim != 2:
        raise ValueError(f"Expected 2D halo mask, got shape={halo.shape}")
    h, w = halo.shape
    layer = np.empty((h, w, 4), dtype=np.uint8)
    layer[..., :3] = np.asarray(color, dtype=np.uint8)
    layer[..., 3] = halo.astype(np.uint8, copy=False)
    # keep fully transparent pixels as (0,0,0,0)
    layer[halo == 0] = 0
    return Raster(layer)


def alpha_over(top: Raster, bottom: Raster) -> Raster:
    """Porter-Duff "over": top composited onto bottom (same size)."""
    if top.size != bottom.size:
        raise ValueError(f"Size mismatch: {top.size} over {bottom.size}")
    composed = Image.alpha_composite(Image.fromarray(bottom.pixels), Image.fromarray(top.pixels))
    return Raster(np.array(composed, dtype=np.uint8))


def add_border(
    canvas: Raster,
    silhouette_mask: np.ndarray,
    options: Optional[ProcessingOptions] = None,
) -> Raster:
    """
    Grow the silhouette by border_px into a halo, paint it BORDER_COLOR and
    put the centered subject on top. Where the subject is transparent but the
    halo is not, the border shows through.
    """
    opts = options or ProcessingOptions()
    if silhouette_mask.shape != (canvas.height, canvas.width):
        raise ValueError(
            f"Mask shape {silhouette_mask.shape} does not match canvas {(canvas.height, canvas.width)}"
        )
    halo = dilate(silhouette_mask, opts.border_px)
    border = build_border_layer(halo)
    return alpha_over(canvas, border)
