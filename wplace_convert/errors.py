"""wplace_convert error hierarchy.

All custom exceptions inherit from WplaceConvertError, so callers can catch
the base class. Each one also derives from the matching builtin so plain
``except ValueError`` handlers keep working.
"""


class WplaceConvertError(Exception):
    """Base exception for all wplace_convert errors."""


class RasterError(WplaceConvertError, ValueError):
    """Raised when a raster has invalid dimensions or a mis-sized buffer."""


class EmptyPaletteError(WplaceConvertError, ValueError):
    """Raised when a quantising stage is given a palette with no entries."""


class NoImageLoadedError(WplaceConvertError, RuntimeError):
    """Raised when a processor operation runs before any raster was loaded."""


class ConfigError(WplaceConvertError, ValueError):
    """Raised when a configuration value or palette record is invalid."""


__all__ = [
    "WplaceConvertError",
    "RasterError",
    "EmptyPaletteError",
    "NoImageLoadedError",
    "ConfigError",
]
