"""Particle filter localization against a known landmark map."""

__version__ = "1.0.0"

from .config import ConfigurationError, FilterConfig
from .data.landmarks import Landmark, LandmarkMap
from .localization.PF import ParticleFilter, ParticleFilterLocalization
from .localization.particles import Particle, ParticleSet

__all__ = [
    "ConfigurationError",
    "FilterConfig",
    "Landmark",
    "LandmarkMap",
    "Particle",
    "ParticleFilter",
    "ParticleFilterLocalization",
    "ParticleSet",
]
