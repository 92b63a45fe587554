from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive pixel bounds of a visible region."""

    min_x: int
    max_x: int
    min_y: int
    max_y: int

    def __post_init__(self) -> None:
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(f"Degenerate bounding box: {self}")

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def as_slices(self) -> tuple[slice, slice]:
        """(rows, cols) slices for numpy indexing."""
        return slice(self.min_y, self.max_y + 1), slice(self.min_x, self.max_x + 1)


@dataclass(frozen=True, eq=False)
class Raster:
    """
    RGBA image owning a contiguous uint8 buffer of shape (height, width, 4).

    Stages never mutate a Raster they receive; they allocate a new one.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        px = self.pixels
        if px.ndim != 3 or px.shape[2] != 4:
            raise ValueError(f"Expected RGBA array (H,W,4), got shape={px.shape}")
        if px.shape[0] < 1 or px.shape[1] < 1:
            raise ValueError(f"Invalid raster size: {px.shape[:2]}")
        if px.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {px.dtype}")
        if not px.flags.c_contiguous:
            object.__setattr__(self, "pixels", np.ascontiguousarray(px))

    @classmethod
    def from_bytes(cls, data: bytes, width: int, height: int) -> "Raster":
        expected = width * height * 4
        if width < 1 or height < 1 or len(data) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height} RGBA, got {len(data)}")
        arr = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4).copy()
        return cls(arr)

    @classmethod
    def blank(cls, width: int, height: int | None = None) -> "Raster":
        """Fully transparent raster; square when height is omitted."""
        h = width if height is None else height
        return cls(np.zeros((h, width, 4), dtype=np.uint8))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "Raster":
        return Raster(self.pixels.copy())
