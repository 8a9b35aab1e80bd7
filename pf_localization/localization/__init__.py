"""Localization: particle set, motion model, weighting, resampling and the filter."""

from .particles import Particle, ParticleSet
from .PF import ParticleFilter, ParticleFilterLocalization

__all__ = ["Particle", "ParticleSet", "ParticleFilter", "ParticleFilterLocalization"]
