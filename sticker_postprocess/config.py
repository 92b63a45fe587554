"""
Centralized configuration constants for the sticker post-processing pipeline.

Ground rules:
- RGBA uint8 rasters end to end
- One image per call, no state kept between calls
"""

# Defaults for ProcessingOptions. Callers override a subset per call.
ALPHA_THRESHOLD = 10
MAX_DIMENSION = 940
CANVAS_SIZE = 1024
BORDER_PX = 14

# Fixed radius of the dilate+erode closing applied to the silhouette.
# Independent of BORDER_PX; re-check border rounding visually if either changes.
CLOSING_RADIUS = 3

# Border layer RGB (alpha comes from the halo mask).
BORDER_COLOR = (255, 255, 255)

# "Simple" mode only fits the image inside this box, never enlarging it.
SIMPLE_MAX_SIZE = 2048

DEFAULT_FETCH_TIMEOUT_S = 15.0
FETCH_TIMEOUT_ENV = "STICKER_FETCH_TIMEOUT_S"

PROCESSING_STEPS = (
    "remove_stray_pixels",
    "resize_and_center",
    "create_silhouette_mask",
    "add_border",
)
