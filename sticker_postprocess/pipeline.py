from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from .composite import add_border
from .config import PROCESSING_STEPS, SIMPLE_MAX_SIZE
from .contracts import PostProcessResult, ProcessingOptions
from .io import ImageSource, decode_image, encode_png, load_source
from .postprocess import create_silhouette_mask, remove_stray_pixels
from .preprocess import fit_inside, resize_and_center
from .raster import Raster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageTimings:
    filter_s: float
    center_s: float
    mask_s: float
    border_s: float
    total_s: float


def post_process_raster(
    raster: Raster,
    options: Optional[ProcessingOptions] = None,
) -> Tuple[Raster, StageTimings]:
    """
    Deterministic, linear pipeline:
      1) Remove stray pixels (largest component + its bbox)
      2) Crop, scale down, center on the square canvas
      3) Silhouette mask (threshold + closing)
      4) Border halo under the subject
    """
    opts = options or ProcessingOptions()
    t0 = time.perf_counter()
    logger.debug("Post-processing %dx%d raster with %s", raster.width, raster.height, opts)

    t_f0 = time.perf_counter()
    cleaned, _bbox = remove_stray_pixels(raster, opts.alpha_threshold)
    t_f1 = time.perf_counter()

    t_c0 = time.perf_counter()
    canvas = resize_and_center(cleaned, opts)
    t_c1 = time.perf_counter()

    t_m0 = time.perf_counter()
    mask = create_silhouette_mask(canvas, opts.canvas_size, opts.alpha_threshold)
    t_m1 = time.perf_counter()

    t_b0 = time.perf_counter()
    final = add_border(canvas, mask, opts)
    t_b1 = time.perf_counter()

    t1 = time.perf_counter()
    return final, StageTimings(
        filter_s=t_f1 - t_f0,
        center_s=t_c1 - t_c0,
        mask_s=t_m1 - t_m0,
        border_s=t_b1 - t_b0,
        total_s=t1 - t0,
    )


def post_process_image(source: ImageSource, options: Optional[ProcessingOptions] = None) -> bytes:
    """
    Single entry point: bytes, URL or Raster in, PNG bytes of the bordered
    canvas_size x canvas_size sticker out.

    DownloadError / DecodeError propagate; fully transparent input is not an
    error and produces a blank canvas.
    """
    raster = load_source(source)
    final, timings = post_process_raster(raster, options)
    logger.debug("Sticker pipeline finished in %.3fs", timings.total_s)
    return encode_png(final)


def process_image_buffer(
    data: bytes,
    *,
    advanced: bool = True,
    options: Optional[ProcessingOptions] = None,
) -> PostProcessResult:
    """
    Process an encoded image and report size metadata.

    advanced=True runs the sticker pipeline; otherwise the image is only
    fitted inside SIMPLE_MAX_SIZE (never enlarged) and re-encoded as PNG.
    """
    raster = decode_image(data)
    if advanced:
        final, _timings = post_process_raster(raster, options)
        steps = list(PROCESSING_STEPS)
    else:
        final = fit_inside(raster, SIMPLE_MAX_SIZE)
        steps = []
    processed = encode_png(final)

    logger.debug("Original size: %d bytes, processed size: %d bytes", len(data), len(processed))
    return PostProcessResult(
        image=processed,
        original_size=len(data),
        processed_size=len(processed),
        compression_ratio=round(1.0 - len(processed) / len(data), 2),
        advanced_processing=advanced,
        processing_steps=steps,
    )
