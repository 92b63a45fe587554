"""Sticker post-processing: stray-pixel cleanup, centering and silhouette border."""

from .contracts import PostProcessResult, ProcessingOptions
from .errors import DecodeError, DownloadError, PostProcessError
from .pipeline import post_process_image, post_process_raster, process_image_buffer
from .raster import BoundingBox, Raster

__all__ = [
    "BoundingBox",
    "DecodeError",
    "DownloadError",
    "PostProcessError",
    "PostProcessResult",
    "ProcessingOptions",
    "Raster",
    "post_process_image",
    "post_process_raster",
    "process_image_buffer",
]
