from __future__ import annotations

import math

import cv2
import numpy as np


def disc_kernel(radius: int) -> np.ndarray:
    """
    Disc structuring element of shape (2r+1, 2r+1).

    Row dy spans |dx| <= floor(sqrt(r^2 - dy^2)). cv2's MORPH_ELLIPSE rounds
    differently, so the rows are built explicitly.
    """
    r = int(radius)
    if r < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")
    kernel = np.zeros((2 * r + 1, 2 * r + 1), dtype=np.uint8)
    for dy in range(-r, r + 1):
        dx_max = math.isqrt(r * r - dy * dy)
        kernel[dy + r, r - dx_max : r + dx_max + 1] = 1
    return kernel


def _as_binary(mask: np.ndarray) -> np.ndarray:
    if mask.ndim != 2:
        raise ValueError(f"Expected 2D mask, got shape={mask.shape}")
    return np.where(mask > 0, 255, 0).astype(np.uint8)


def dilate(mask: np.ndarray, radius: int) -> np.ndarray:
    """
    A pixel turns on if any source pixel within the disc is on.

    Pixels beyond the raster edge count as off.
    """
    m8 = _as_binary(mask)
    kernel = disc_kernel(radius)
    if radius == 0:
        return m8
    return cv2.dilate(m8, kernel, iterations=1, borderType=cv2.BORDER_CONSTANT, borderValue=0)


def erode(mask: np.ndarray, radius: int) -> np.ndarray:
    """
    A pixel stays on only if every in-bounds pixel within the disc is on.

    Positions beyond the raster edge are left out of the test (padded as on).
    """
    m8 = _as_binary(mask)
    kernel = disc_kernel(radius)
    if radius == 0:
        return m8
    return cv2.erode(m8, kernel, iterations=1, borderType=cv2.BORDER_CONSTANT, borderValue=255)


def close_mask(mask: np.ndarray, radius: int) -> np.ndarray:
    """Morphological closing: fills gaps narrower than the disc without net growth."""
    return erode(dilate(mask, radius), radius)
