from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

import run as run_mod
from sticker_postprocess.errors import DecodeError


def _write_sticker(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    px = np.zeros((40, 30, 4), dtype=np.uint8)
    px[5:35, 5:25] = (200, 100, 50, 255)
    Image.fromarray(px).save(str(path), format="PNG")


def _small_args(input_dir: Path, output_dir: Path, *extra: str) -> list[str]:
    return [
        "--input",
        str(input_dir),
        "--output",
        str(output_dir),
        "--canvas-size",
        "64",
        "--max-dimension",
        "60",
        "--border-px",
        "3",
        *extra,
    ]


def test_batch_writes_square_pngs(tmp_path: Path, capsys):
    _write_sticker(tmp_path / "in" / "a.png")
    _write_sticker(tmp_path / "in" / "nested" / "b.webp")

    assert run_mod.main(_small_args(tmp_path / "in", tmp_path / "out")) == 0

    for rel in ("a.png", "nested/b.png"):
        with Image.open(tmp_path / "out" / rel) as img:
            assert img.size == (64, 64)
            assert img.mode == "RGBA"
    assert "Done. 2/2 images" in capsys.readouterr().out


def test_failure_falls_back_to_original_bytes(tmp_path: Path, capsys):
    bad = tmp_path / "in" / "broken.png"
    bad.parent.mkdir(parents=True)
    bad.write_bytes(b"not really a png")

    assert run_mod.main(_small_args(tmp_path / "in", tmp_path / "out")) == 0
    assert (tmp_path / "out" / "broken.png").read_bytes() == b"not really a png"
    assert "fallback=1" in capsys.readouterr().out


def test_fail_fast_propagates(tmp_path: Path):
    bad = tmp_path / "in" / "broken.png"
    bad.parent.mkdir(parents=True)
    bad.write_bytes(b"not really a png")
    with pytest.raises(DecodeError):
        run_mod.main(_small_args(tmp_path / "in", tmp_path / "out", "--fail-fast"))


def test_url_jobs_use_fetch(monkeypatch, tmp_path: Path):
    src = tmp_path / "remote.png"
    _write_sticker(src)
    monkeypatch.setattr(run_mod, "read_source_bytes", lambda source: src.read_bytes())

    args = ["--url", "https://blob.example.com/files/cat sticker.png", "--output", str(tmp_path / "out"), "--simple"]
    assert run_mod.main(args) == 0
    with Image.open(tmp_path / "out" / "cat_sticker.png") as img:
        assert img.size == (30, 40)


def test_requires_a_source(tmp_path: Path):
    with pytest.raises(SystemExit):
        run_mod.main(["--output", str(tmp_path)])


def test_build_options_only_overrides_given_values():
    args = run_mod.parse_args(["--url", "https://x/y.png", "--output", "o", "--border-px", "20"])
    opts = run_mod.build_options(args)
    assert (opts.alpha_threshold, opts.max_dimension, opts.canvas_size, opts.border_px) == (10, 940, 1024, 20)


def test_unexpected_error_falls_back_and_batch_continues(monkeypatch, tmp_path: Path, capsys):
    _write_sticker(tmp_path / "in" / "a_first.png")
    _write_sticker(tmp_path / "in" / "b_second.png")
    original = (tmp_path / "in" / "a_first.png").read_bytes()
    real = run_mod.post_process_raster
    calls = {"n": 0}

    def _flaky(raster, options=None):
        calls["n"] += 1
        if calls["n"] == 1:
            raise ValueError("labeling blew up")
        return real(raster, options)

    monkeypatch.setattr(run_mod, "post_process_raster", _flaky)
    assert run_mod.main(_small_args(tmp_path / "in", tmp_path / "out")) == 0

    assert (tmp_path / "out" / "a_first.png").read_bytes() == original
    with Image.open(tmp_path / "out" / "b_second.png") as img:
        assert img.size == (64, 64)
    assert "fallback=1" in capsys.readouterr().out


def test_unexpected_error_with_fail_fast_propagates(monkeypatch, tmp_path: Path):
    _write_sticker(tmp_path / "in" / "a.png")

    def _boom(raster, options=None):
        raise ValueError("labeling blew up")

    monkeypatch.setattr(run_mod, "post_process_raster", _boom)
    with pytest.raises(ValueError):
        run_mod.main(_small_args(tmp_path / "in", tmp_path / "out", "--fail-fast"))


def test_url_names_do_not_collide(monkeypatch, tmp_path: Path):
    src = tmp_path / "remote.png"
    _write_sticker(src)
    monkeypatch.setattr(run_mod, "read_source_bytes", lambda source: src.read_bytes())

    args = [
        "--url",
        "https://a.example.com/sticker.png",
        "--url",
        "https://b.example.com/other/sticker.png",
        "--output",
        str(tmp_path / "out"),
        "--simple",
    ]
    assert run_mod.main(args) == 0
    assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["sticker.png", "sticker_001.png"]
