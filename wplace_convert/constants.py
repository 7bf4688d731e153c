"""
Global tunables used across the project.

- Transparency / white-pixel thresholds
- Colour matching defaults and cache bounds
- Pipeline defaults and stage names
"""
from __future__ import annotations

from typing import Tuple

# =========================
# Transparency / white skip
# =========================
# Alpha below this counts as transparent.
TRANSPARENCY_THRESHOLD: int = 128
# All three channels at or above this count as white.
WHITE_THRESHOLD: int = 230
# Alpha at or above this is opaque for filters (kuwahara, mode, simplify, outline).
OPAQUE_ALPHA: int = 128

# ==============
# Colour matching
# ==============
DEFAULT_DISTANCE_SPACE: str = "lab"
DISTANCE_SPACES: Tuple[str, ...] = ("rgb", "hsv", "oklab", "lab")
DISTANCE_SPACE_ALIASES = {"legacy": "rgb", "rgb-legacy": "rgb"}
CHROMA_PENALTY_WEIGHT: float = 0.15
# Target chroma (Lab) above which the penalty kicks in.
CHROMA_PENALTY_MIN: float = 20.0

# Cache guards: cleared wholesale when exceeded, not LRU.
MATCH_CACHE_LIMIT: int = 20_000
LAB_CACHE_LIMIT: int = 15_000

# =========
# Resampling
# =========
RESAMPLE_METHODS: Tuple[str, ...] = ("nearest", "bilinear", "box", "median", "dominant")
INTEGER_FACTOR_EPS: float = 1e-6

# =========
# Dithering
# =========
DEFAULT_DITHER_METHOD: str = "floyd"
DEFAULT_DITHER_STRENGTH: float = 0.5
# Ordered dither perturbation span in 0..255 units at strength 1.
ORDERED_NOISE_SPAN: float = 64.0

# =======
# Filters
# =======
BLUR_MODES: Tuple[str, ...] = ("none", "box", "gaussian", "kuwahara")
GAUSSIAN_BOX_PASSES: int = 3
EDGE_ALGORITHMS: Tuple[str, ...] = ("sobel", "prewitt", "roberts", "laplacian")
DEFAULT_EDGE_THRESHOLD: int = 60
EDGE_MAX_THICKNESS: int = 6
# Posterize at this many levels or more is treated as off.
POSTERIZE_OFF_LEVELS: int = 32
BRIGHTNESS_SCALE: float = 2.55

# ========
# Pipeline
# ========
DEFAULT_STAGE_ORDER: Tuple[str, ...] = (
    "adjust",
    "blur",
    "sharpen",
    "resample",
    "edges",
    "posterize",
    "mode",
    "simplify",
    "erode",
    "quantize",
    "outline",
)
STAGES = frozenset(DEFAULT_STAGE_ORDER)
