from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional, Set
from urllib.parse import urlparse

from dotenv import load_dotenv
from tqdm import tqdm

from sticker_postprocess.config import SIMPLE_MAX_SIZE
from sticker_postprocess.contracts import ProcessingOptions
from sticker_postprocess.errors import PostProcessError
from sticker_postprocess.io import decode_image, read_source_bytes, save_png
from sticker_postprocess.pipeline import post_process_raster
from sticker_postprocess.preprocess import fit_inside

logger = logging.getLogger("sticker_postprocess.run")


def _iter_images(input_dir: Path):
    exts = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}
    for p in sorted(input_dir.rglob("*")):
        if p.is_file() and p.suffix.lower() in exts:
            yield p


def _url_output_name(url: str, index: int, taken: Set[str]) -> str:
    stem = Path(urlparse(url).path).stem
    stem = "".join(ch if ch.isalnum() or ch in ("_", "-", ".") else "_" for ch in stem)
    name = f"{stem or f'url_{index:03d}'}.png"
    if name in taken:
        name = f"{stem or 'url'}_{index:03d}.png"
    taken.add(name)
    return name


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sticker post-processing: clean, center and border RGBA images.")
    parser.add_argument("--input", type=str, help="Input directory containing images (searched recursively).")
    parser.add_argument("--url", action="append", default=[], help="Remote image URL. May be repeated.")
    parser.add_argument("--output", required=True, type=str, help="Output directory for PNG stickers.")
    parser.add_argument("--alpha-threshold", type=int, default=None)
    parser.add_argument("--max-dimension", type=int, default=None)
    parser.add_argument("--canvas-size", type=int, default=None)
    parser.add_argument("--border-px", type=int, default=None)
    parser.add_argument(
        "--simple",
        action="store_true",
        help=f"Only fit inside {SIMPLE_MAX_SIZE}px and re-encode (no sticker processing).",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Abort on the first failure instead of falling back to the original image.",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args(argv)
    if not args.input and not args.url:
        parser.error("one of --input or --url is required")
    return args


def build_options(args: argparse.Namespace) -> ProcessingOptions:
    overrides = {
        "alpha_threshold": args.alpha_threshold,
        "max_dimension": args.max_dimension,
        "canvas_size": args.canvas_size,
        "border_px": args.border_px,
    }
    return ProcessingOptions(**{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    options = build_options(args)
    output_dir = Path(args.output)

    jobs = []
    if args.input:
        input_dir = Path(args.input)
        if not input_dir.exists():
            raise FileNotFoundError(f"Input dir not found: {input_dir}")
        for img_path in _iter_images(input_dir):
            rel = img_path.relative_to(input_dir)
            jobs.append((str(img_path), (output_dir / rel).with_suffix(".png")))
    taken: Set[str] = set()
    for i, url in enumerate(args.url):
        jobs.append((url, output_dir / _url_output_name(url, i, taken)))

    if not jobs:
        print(f"No images found under {args.input}")
        return 0

    stats = {"total": 0, "processed": 0, "fallback": 0}
    total0 = time.perf_counter()
    for source, out_path in tqdm(jobs, desc="Post-processing", unit="img"):
        stats["total"] += 1
        try:
            raw = read_source_bytes(source)
        except PostProcessError:
            if args.fail_fast:
                raise
            logger.warning("Skipping %s: could not fetch source", source, exc_info=True)
            continue

        try:
            raster = decode_image(raw)
            if args.simple:
                save_png(fit_inside(raster, SIMPLE_MAX_SIZE), out_path)
                stats["processed"] += 1
                continue
            final, timings = post_process_raster(raster, options)
        except Exception:
            if args.fail_fast:
                raise
            # Same policy as the dashboard: keep the original image on failure.
            logger.warning("Post-processing failed for %s; keeping original", source, exc_info=True)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_bytes(raw)
            stats["fallback"] += 1
            continue

        save_png(final, out_path)
        stats["processed"] += 1
        print(
            f"{Path(out_path).name}: total={timings.total_s:.3f}s "
            f"(filter={timings.filter_s:.3f}s center={timings.center_s:.3f}s "
            f"mask={timings.mask_s:.3f}s border={timings.border_s:.3f}s)"
        )

    total1 = time.perf_counter()
    print(
        f"Done. {stats['processed']}/{stats['total']} images in {total1 - total0:.2f}s "
        f"(fallback={stats['fallback']}) -> {output_dir.resolve()}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
