"""
Exceptions raised by the panorama stitching pipeline.
"""


class StitchingError(Exception):
    """Base class for all stitching failures."""


class SceneLoadError(StitchingError):
    """The SfM scene file is unreadable or malformed."""


class NoValidCamerasError(StitchingError):
    """No view has both a pose and an intrinsic resolved."""


class InvalidConfigurationError(StitchingError, ValueError):
    """Stitching parameters are out of range."""


class ImageReadError(StitchingError, IOError):
    """A source image could not be decoded."""
