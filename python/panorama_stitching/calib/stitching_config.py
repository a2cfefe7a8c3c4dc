"""
Stitching parameter structures for panorama compositing.
"""

from dataclasses import dataclass
import json
from typing import Tuple

from ..errors import InvalidConfigurationError


@dataclass(frozen=True)
class StitchingParameters:
    """Immutable blend configuration for one compositing run."""
    scale_factor: float = 0.2  # Output resolution multiplier
    fisheye_masking: bool = False  # Skip invalid pixels on fisheye borders
    fisheye_masking_margin: float = 0.05  # Fraction of the minor image dimension
    transition_size: float = 10.0  # Width of the sigmoid falloff band in pixels
    panorama_size: Tuple[int, int] = (0, 0)  # Forced (width, height), 0 = automatic
    keep_contribution_alpha: bool = False  # Keep accumulated weight as alpha

    def validate(self):
        """Raise InvalidConfigurationError for out-of-range values."""
        if not self.scale_factor > 0:
            raise InvalidConfigurationError(
                f"scaleFactor must be > 0, got {self.scale_factor}")
        if not self.transition_size > 0:
            raise InvalidConfigurationError(
                f"transitionSize must be > 0, got {self.transition_size}")
        if not 0.0 <= self.fisheye_masking_margin < 1.0:
            raise InvalidConfigurationError(
                f"fisheyeMaskingMargin must be in [0, 1), got {self.fisheye_masking_margin}")
        if len(self.panorama_size) != 2 or min(self.panorama_size) < 0:
            raise InvalidConfigurationError(
                f"panoramaSize must be two non-negative integers, got {self.panorama_size}")
        return self

    def to_dict(self):
        """Convert to dictionary for JSON serialization."""
        return {
            'scaleFactor': self.scale_factor,
            'fisheyeMasking': self.fisheye_masking,
            'fisheyeMaskingMargin': self.fisheye_masking_margin,
            'transitionSize': self.transition_size,
            'panoramaSize': list(self.panorama_size),
            'keepContributionAlpha': self.keep_contribution_alpha,
        }

    @classmethod
    def from_dict(cls, d):
        """Create from dictionary (JSON format)."""
        defaults = cls()
        size = d.get('panoramaSize', defaults.panorama_size)
        return cls(
            scale_factor=float(d.get('scaleFactor', defaults.scale_factor)),
            fisheye_masking=bool(d.get('fisheyeMasking', defaults.fisheye_masking)),
            fisheye_masking_margin=float(d.get('fisheyeMaskingMargin', defaults.fisheye_masking_margin)),
            transition_size=float(d.get('transitionSize', defaults.transition_size)),
            panorama_size=tuple(int(s) for s in size),
            keep_contribution_alpha=bool(d.get('keepContributionAlpha', defaults.keep_contribution_alpha)),
        )

    @classmethod
    def load_json(cls, filepath):
        """Load parameters from JSON file."""
        try:
            with open(filepath) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise InvalidConfigurationError(f"Cannot read parameters from {filepath}: {e}") from e
        params = data.get('parameters', data)
        return cls.from_dict(params)

    def save_json(self, filepath):
        """Save parameters to JSON file."""
        with open(filepath, 'w') as f:
            json.dump({'parameters': self.to_dict()}, f, indent=2)
