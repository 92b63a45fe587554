import math
import unittest

import numpy as np

from sticker_postprocess.morphology import close_mask, dilate, disc_kernel, erode


def _reference_morph(mask: np.ndarray, radius: int, mode: str) -> np.ndarray:
    """Direct scanline implementation of disc dilation / erosion, clipped to the raster."""
    h, w = mask.shape
    on = mask > 0
    out = np.zeros((h, w), dtype=np.uint8)
    for y in range(h):
        for x in range(w):
            hit = False
            all_on = True
            for yy in range(max(0, y - radius), min(h - 1, y + radius) + 1):
                dx_max = math.isqrt(radius * radius - (yy - y) ** 2)
                for xx in range(max(0, x - dx_max), min(w - 1, x + dx_max) + 1):
                    if on[yy, xx]:
                        hit = True
                    else:
                        all_on = False
            keep = hit if mode == "dilate" else all_on
            out[y, x] = 255 if keep else 0
    return out


class TestDiscKernel(unittest.TestCase):
    def test_rows_follow_quarter_circle_bound(self):
        k = disc_kernel(3)
        self.assertEqual(k.shape, (7, 7))
        self.assertEqual(k.sum(axis=1).tolist(), [1, 5, 5, 7, 5, 5, 1])
        self.assertEqual(int(k.sum()), 29)

    def test_radius_zero_is_single_pixel(self):
        self.assertEqual(disc_kernel(0).tolist(), [[1]])

    def test_negative_radius_rejected(self):
        with self.assertRaises(ValueError):
            disc_kernel(-1)


class TestDilateErode(unittest.TestCase):
    def test_dilate_single_pixel_grows_disc(self):
        m = np.zeros((21, 21), dtype=np.uint8)
        m[10, 10] = 255
        out = dilate(m, 3)
        self.assertEqual(int((out == 255).sum()), 29)
        self.assertTrue(set(np.unique(out).tolist()) <= {0, 255})

    def test_dilate_clips_at_raster_corner(self):
        m = np.zeros((10, 10), dtype=np.uint8)
        m[0, 0] = 255
        out = dilate(m, 3)
        # quarter disc: rows dy=0..3 contribute 4 + 3 + 3 + 1 pixels
        self.assertEqual(int((out == 255).sum()), 11)

    def test_erode_ignores_outside_pixels(self):
        m = np.full((10, 10), 255, dtype=np.uint8)
        out = erode(m, 3)
        self.assertTrue((out == 255).all())

    def test_erode_single_hole_spreads_as_disc(self):
        m = np.full((21, 21), 255, dtype=np.uint8)
        m[10, 10] = 0
        out = erode(m, 3)
        self.assertEqual(int((out == 0).sum()), 29)

    def test_radius_zero_is_identity(self):
        rng = np.random.default_rng(0)
        m = (rng.random((12, 9)) > 0.5).astype(np.uint8) * 255
        np.testing.assert_array_equal(dilate(m, 0), m)
        np.testing.assert_array_equal(erode(m, 0), m)

    def test_matches_scanline_reference(self):
        rng = np.random.default_rng(42)
        for radius in (1, 2, 3, 4):
            m = (rng.random((15, 17)) > 0.7).astype(np.uint8) * 255
            np.testing.assert_array_equal(dilate(m, radius), _reference_morph(m, radius, "dilate"))
            np.testing.assert_array_equal(erode(m, radius), _reference_morph(m, radius, "erode"))

    def test_rejects_non_2d(self):
        with self.assertRaises(ValueError):
            dilate(np.zeros((4, 4, 1), dtype=np.uint8), 1)


class TestClosing(unittest.TestCase):
    def test_closing_fills_small_holes(self):
        m = np.zeros((80, 80), dtype=np.uint8)
        m[20:60, 20:60] = 255
        m[38:40, 38:40] = 0
        m[25, 50] = 0
        out = close_mask(m, 3)
        self.assertTrue((out[20:60, 20:60] == 255).all())

    def test_closing_does_not_grow_silhouette(self):
        m = np.zeros((80, 80), dtype=np.uint8)
        m[20:60, 25:50] = 255
        np.testing.assert_array_equal(close_mask(m, 3), m)

    def test_closing_bridges_narrow_gap(self):
        m = np.zeros((60, 60), dtype=np.uint8)
        m[20:40, 10:29] = 255
        m[20:40, 31:50] = 255
        out = close_mask(m, 3)
        self.assertTrue((out[22:38, 29:31] == 255).all())
        self.assertEqual(int(out[:20].sum()), 0)
        self.assertEqual(int(out[40:].sum()), 0)


if __name__ == "__main__":
    unittest.main()
