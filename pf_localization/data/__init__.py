"""Landmark maps, dataset reading and synthetic dataset generation."""

from .landmarks import Landmark, LandmarkMap
from .reader import Frame, Reader

__all__ = ["Frame", "Landmark", "LandmarkMap", "Reader"]
