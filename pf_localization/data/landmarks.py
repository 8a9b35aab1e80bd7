"""
Known landmark map consumed by the localization filter.

The map is supplied once per run and is never modified by the filter. Its
order matters: nearest-neighbour association resolves ties in favour of the
landmark that appears first.
"""

from dataclasses import dataclass

import numpy as np

from pf_localization.config import ConfigurationError


@dataclass(frozen=True)
class Landmark:
    """A single identified landmark in the map frame."""

    id: int
    x: float
    y: float


class LandmarkMap:
    """
    Read-only, ordered collection of landmarks.

    Stores landmark ids and positions as parallel numpy arrays so the
    weighting step can cull and associate with vectorized operations.

    Parameters
    ----------
    landmarks : iterable of Landmark or (id, x, y) tuples
        Landmark records in map order.

    Attributes
    ----------
    ids : ndarray, shape (K,)
        Integer landmark identifiers.
    positions : ndarray, shape (K, 2)
        Map-frame [x, y] coordinates.

    Raises
    ------
    ConfigurationError
        If ids are duplicated or coordinates are not finite.

    Examples
    --------
    >>> landmark_map = LandmarkMap([(1, 0.0, 0.0), (2, 10.0, 0.0)])
    >>> len(landmark_map)
    2
    >>> landmark_map[1]
    Landmark(id=2, x=10.0, y=0.0)
    """

    def __init__(self, landmarks=()):
        records = [
            (lm.id, lm.x, lm.y) if isinstance(lm, Landmark) else tuple(lm)
            for lm in landmarks
        ]
        if any(len(record) != 3 for record in records):
            raise ConfigurationError("Landmark records must be (id, x, y) triples")

        ids = np.array([int(record[0]) for record in records], dtype=int)
        positions = np.array(
            [[float(record[1]), float(record[2])] for record in records], dtype=float
        ).reshape(-1, 2)

        if len(np.unique(ids)) != len(ids):
            raise ConfigurationError("Landmark ids must be unique within the map")
        if not np.all(np.isfinite(positions)):
            raise ConfigurationError("Landmark positions must be finite")

        ids.setflags(write=False)
        positions.setflags(write=False)
        self.ids = ids
        self.positions = positions

    @classmethod
    def from_array(cls, data):
        """Build a map from an array of rows ``[id, x, y]``."""
        data = np.asarray(data, dtype=float).reshape(-1, 3)
        return cls((int(row[0]), row[1], row[2]) for row in data)

    def __len__(self):
        return len(self.ids)

    def __getitem__(self, index):
        return Landmark(
            int(self.ids[index]),
            float(self.positions[index, 0]),
            float(self.positions[index, 1]),
        )

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __repr__(self):
        return f"LandmarkMap({len(self)} landmarks)"

