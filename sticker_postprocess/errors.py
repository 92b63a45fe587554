from __future__ import annotations

from typing import Optional


class PostProcessError(Exception):
    """Base class for failures the caller is expected to handle (usually by falling back)."""


class DownloadError(PostProcessError):
    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        detail = f"({status_code})" if status_code is not None else f"({reason or 'network error'})"
        super().__init__(f"Failed to download image {detail}: {url}")


class DecodeError(PostProcessError):
    """Input bytes could not be interpreted as a raster image."""
