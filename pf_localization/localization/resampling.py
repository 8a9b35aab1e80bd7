"""
Resampling for the particle filter.

Implements the resampling wheel: starting from a random particle, walk
around the circle of weights in steps drawn uniformly from [0, 2·w_max),
keeping the particle under the pointer after each step. High-weight
particles occupy more of the wheel and are drawn proportionally more often.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def scale_weights(weights):
    """
    Rescale weights so the largest one is 1.0.

    Products of many sharp densities can overflow to ``inf``. When any
    weight is infinite those particles share the mass equally (1.0) and every
    other particle gets 0.0. NaN weights count as 0.0. All-zero weights are
    returned unchanged.

    Examples
    --------
    >>> scale_weights([2.0, 4.0, 0.0]).tolist()
    [0.5, 1.0, 0.0]
    >>> scale_weights([np.inf, 3.0]).tolist()
    [1.0, 0.0]
    """
    weights = np.asarray(weights, dtype=float)
    if len(weights) == 0:
        return weights.copy()
    if np.any(np.isposinf(weights)):
        return np.where(np.isposinf(weights), 1.0, 0.0)
    weights = np.where(np.isnan(weights), 0.0, weights)
    max_weight = np.max(weights)
    if not max_weight > 0:
        return weights
    return weights / max_weight


def resampling_wheel(weights, rng):
    """
    Draw ``len(weights)`` indices with replacement, proportional to weight.

    Algorithm
    ---------
    1. M = max(w); index ~ U{0, ..., N-1}; β = 0
    2. For each of the N output slots:
           β += 2 · U[0, M)
           while β > w[index]:
               β -= w[index]; index = (index + 1) mod N
           emit index

    When every weight is zero the wheel has no extent. In that case every
    particle is equally likely and the indices cycle through the set from
    a random starting point.

    Parameters
    ----------
    weights : array_like, shape (N,)
        Non-negative, unnormalized weights. They are rescaled with
        :func:`scale_weights` first, so overflowed weights are handled.
    rng : numpy.random.Generator
        Source of randomness.

    Returns
    -------
    ndarray of int, shape (N,)
        Selected particle indices.
    """
    weights = scale_weights(weights)
    n = len(weights)
    if n == 0:
        return np.zeros(0, dtype=int)

    max_weight = float(np.max(weights))
    index = int(rng.integers(0, n))

    if not max_weight > 0:
        logger.warning(
            f"All {n} particle weights are zero, falling back to uniform resampling"
        )
        return (index + np.arange(n)) % n

    indices = np.empty(n, dtype=int)
    beta = 0.0
    for i in range(n):
        beta += 2.0 * rng.uniform(0.0, max_weight)
        while beta > weights[index]:
            beta -= weights[index]
            index = (index + 1) % n
        indices[i] = index

    return indices


def resample(particles, rng):
    """
    Build a new particle set by resampling ``particles``.

    Parameters
    ----------
    particles : ParticleSet
        Weighted particle set.
    rng : numpy.random.Generator
        Source of randomness.

    Returns
    -------
    ParticleSet
        New set of the same cardinality. Particle ids are the positions in
        the new set; pose, weight and association values are copied.
    """
    indices = resampling_wheel(particles.weights, rng)
    return particles.take(indices)


def effective_sample_size(weights):
    """
    Effective sample size N_eff = (Σw)² / Σw².

    Ranges from 1 (all weight on one particle) to N (uniform weights).
    Returns 0.0 for an empty set or all-zero weights.

    Examples
    --------
    >>> effective_sample_size([1.0, 1.0, 1.0, 1.0])
    4.0
    >>> effective_sample_size([1.0, 0.0, 0.0, 0.0])
    1.0
    """
    weights = scale_weights(weights)
    total = np.sum(weights)
    if len(weights) == 0 or not total > 0:
        return 0.0
    normalized = weights / total
    return float(1.0 / np.sum(normalized**2))
