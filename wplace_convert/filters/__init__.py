# wplace_convert/filters/__init__.py
"""
Spatial and tonal filters. Every function takes a Raster and returns a new one.
"""

from .adjust import colour_correct, posterize
from .blur import apply_blur, box_blur, gaussian_blur, kuwahara, sharpen
from .edges import detect_edges, edge_overlay
from .morphology import dilate_mask, erode, mode_filter, outline, simplify_regions

__all__ = [
    "colour_correct",
    "posterize",
    "apply_blur",
    "box_blur",
    "gaussian_blur",
    "kuwahara",
    "sharpen",
    "detect_edges",
    "edge_overlay",
    "dilate_mask",
    "erode",
    "mode_filter",
    "outline",
    "simplify_regions",
]
