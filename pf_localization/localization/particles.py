"""
Weighted-sample representation of the pose posterior.

A ParticleSet stores N pose hypotheses as an ``(N, 3)`` array of
[x, y, theta], a weight vector and, per particle, the landmark associations
produced by the most recent weighting pass. Sets are treated as values:
the motion model, weighting engine and resampler each build a new set
instead of mutating the previous one.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class Particle:
    """
    A single pose hypothesis.

    Attributes
    ----------
    id : int
        Position of the particle within its set. Only stable within a cycle.
    x, y : float
        Map-frame position (m).
    theta : float
        Heading (rad). Not normalized to [-pi, pi].
    weight : float
        Unnormalized importance weight.
    associations : list of int
        Landmark ids matched to each observation in the last weighting pass.
    sense_x, sense_y : list of float
        Map-frame coordinates of the matched landmarks.
    """

    id: int
    x: float
    y: float
    theta: float
    weight: float = 1.0
    associations: list = field(default_factory=list)
    sense_x: list = field(default_factory=list)
    sense_y: list = field(default_factory=list)

    @property
    def pose(self):
        return np.array([self.x, self.y, self.theta])


class ParticleSet:
    """
    Fixed-cardinality collection of weighted pose hypotheses.

    Parameters
    ----------
    poses : array_like, shape (N, 3)
        Particle poses [x, y, theta].
    weights : array_like, shape (N,), optional
        Importance weights. Defaults to 1.0 for every particle.
    associations : list of tuple, optional
        Per particle ``(ids, sense_x, sense_y)``. Defaults to empty
        associations.

    Examples
    --------
    >>> rng = np.random.default_rng(0)
    >>> particles = ParticleSet.from_gaussian([0, 0, 0], [0.3, 0.3, 0.01], 100, rng)
    >>> len(particles)
    100
    >>> float(particles.weights[0])
    1.0
    """

    def __init__(self, poses, weights=None, associations=None):
        self.poses = np.asarray(poses, dtype=float).reshape(-1, 3)
        n = len(self.poses)
        if weights is None:
            weights = np.ones(n)
        self.weights = np.asarray(weights, dtype=float).reshape(-1)
        if len(self.weights) != n:
            raise ValueError(
                f"Expected {n} weights, got {len(self.weights)}"
            )
        if associations is None:
            associations = [((), (), ()) for _ in range(n)]
        if len(associations) != n:
            raise ValueError(
                f"Expected {n} association records, got {len(associations)}"
            )
        self.associations = [
            (tuple(int(i) for i in ids), tuple(map(float, xs)), tuple(map(float, ys)))
            for ids, xs, ys in associations
        ]

    @classmethod
    def empty(cls):
        return cls(np.zeros((0, 3)))

    @classmethod
    def from_gaussian(cls, mean, std, num_particles, rng):
        """
        Sample particles around an initial pose estimate.

        Each pose component is drawn from an independent Gaussian:

            x^[m] ~ N(x_0, σ_x²),  y^[m] ~ N(y_0, σ_y²),  θ^[m] ~ N(θ_0, σ_θ²)

        Parameters
        ----------
        mean : array_like, shape (3,)
            Initial pose estimate [x, y, theta].
        std : array_like, shape (3,)
            Per-axis standard deviations.
        num_particles : int
            Number of particles to draw; 0 yields an empty set.
        rng : numpy.random.Generator
            Source of randomness.
        """
        mean = np.asarray(mean, dtype=float)
        std = np.asarray(std, dtype=float)
        poses = np.zeros((num_particles, 3))
        poses[:, 0] = rng.normal(mean[0], std[0], num_particles)
        poses[:, 1] = rng.normal(mean[1], std[1], num_particles)
        poses[:, 2] = rng.normal(mean[2], std[2], num_particles)
        return cls(poses)

    def __len__(self):
        return len(self.poses)

    def __getitem__(self, index):
        if index < 0:
            index += len(self)
        ids, sense_x, sense_y = self.associations[index]
        x, y, theta = self.poses[index]
        return Particle(
            id=int(index),
            x=float(x),
            y=float(y),
            theta=float(theta),
            weight=float(self.weights[index]),
            associations=list(ids),
            sense_x=list(sense_x),
            sense_y=list(sense_y),
        )

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __repr__(self):
        return f"ParticleSet(N={len(self)})"

    def with_poses(self, poses):
        """Return a new set with ``poses`` and this set's weights and associations."""
        return ParticleSet(poses, self.weights.copy(), list(self.associations))

    def with_weights(self, weights, associations=None):
        """Return a new set with the same poses and new weights/associations."""
        if associations is None:
            associations = list(self.associations)
        return ParticleSet(self.poses.copy(), weights, associations)

    def take(self, indices):
        """
        Return a new set built from the particles at ``indices``.

        Pose, weight and association values are copied; ids of the new set
        are its own sequence positions.
        """
        indices = np.asarray(indices, dtype=int)
        return ParticleSet(
            self.poses[indices],
            self.weights[indices],
            [self.associations[i] for i in indices],
        )

    def with_associations(self, index, association):
        """
        Return a new set where only the associations at ``index`` change.

        ``association`` is an ``(ids, sense_x, sense_y)`` record. Poses and
        weights are copied unchanged.
        """
        associations = list(self.associations)
        associations[index] = association
        return ParticleSet(self.poses.copy(), self.weights.copy(), associations)

    def best_index(self):
        """Index of the highest-weight particle (first one on ties), or None if empty."""
        if len(self) == 0:
            return None
        return int(np.argmax(self.weights))
