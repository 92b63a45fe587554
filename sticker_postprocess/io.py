from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Optional, Union

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from .config import DEFAULT_FETCH_TIMEOUT_S, FETCH_TIMEOUT_ENV
from .errors import DecodeError, DownloadError
from .raster import Raster

ImageSource = Union[bytes, bytearray, str, Path, Raster]


def _get_timeout_s() -> float:
    try:
        return float(os.getenv(FETCH_TIMEOUT_ENV, str(DEFAULT_FETCH_TIMEOUT_S)))
    except ValueError:
        return DEFAULT_FETCH_TIMEOUT_S


def is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def fetch_image(url: str, timeout_s: Optional[float] = None) -> bytes:
    """
    Download raw image bytes. Any transport failure or non-2xx status raises
    DownloadError; retrying is the caller's business.
    """
    try:
        resp = requests.get(url, timeout=timeout_s if timeout_s is not None else _get_timeout_s())
    except requests.RequestException as e:
        raise DownloadError(url, reason=type(e).__name__) from e
    if not resp.ok:
        raise DownloadError(url, status_code=resp.status_code)
    return resp.content


def decode_image(data: bytes) -> Raster:
    """
    Decode any Pillow-readable image into RGBA (alpha added when missing).
    """
    if not data:
        raise DecodeError("Empty image payload")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        rgba = img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Could not decode image ({len(data)} bytes): {e}") from e
    return Raster(np.array(rgba, dtype=np.uint8))


def encode_png(raster: Raster) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(raster.pixels).save(buf, format="PNG")
    return buf.getvalue()


def read_source_bytes(source: ImageSource) -> bytes:
    """Raw encoded bytes for bytes / URL / filesystem path sources."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, str) and is_url(source):
        return fetch_image(source)
    if isinstance(source, (str, Path)):
        return Path(source).read_bytes()
    raise TypeError(f"Unsupported image source: {type(source).__name__}")


def load_source(source: ImageSource) -> Raster:
    if isinstance(source, Raster):
        return source
    return decode_image(read_source_bytes(source))


def save_png(image: Union[Raster, bytes], path: Union[str, Path]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = encode_png(image) if isinstance(image, Raster) else image
    p.write_bytes(data)
