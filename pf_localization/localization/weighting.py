"""
Data association and importance weighting.

For every particle the observations, which arrive in the vehicle frame, are
transformed into the map frame under that particle's pose hypothesis, matched
to the nearest landmark within sensor range, and scored with an
axis-independent bivariate Gaussian. The product of those densities is the
particle's importance weight:

    w^[m] = Π_k N(x_k | μ_x, σ_x²) · N(y_k | μ_y, σ_y²)

See Probabilistic Robotics, Table 6.4 for the landmark measurement model.
"""

import logging

import numpy as np
from scipy import stats

logger = logging.getLogger(__name__)

# Association id used when no landmark lies within sensor range
NO_LANDMARK = -1


def landmarks_in_range(position, landmark_positions, sensor_range):
    """
    Indices of the landmarks within ``sensor_range`` of ``position``.

    Parameters
    ----------
    position : array_like, shape (2,)
        Particle position [x, y].
    landmark_positions : ndarray, shape (K, 2)
        Map landmark positions in map order.
    sensor_range : float
        Maximum detection distance (inclusive).

    Returns
    -------
    ndarray of int
        Indices into ``landmark_positions``, preserving map order.
    """
    if len(landmark_positions) == 0:
        return np.zeros(0, dtype=int)
    distances = np.hypot(
        landmark_positions[:, 0] - position[0], landmark_positions[:, 1] - position[1]
    )
    return np.flatnonzero(distances <= sensor_range)


def transform_observations(pose, observations):
    """
    Transform vehicle-frame observations into the map frame.

    Rotation by θ followed by translation by (x, y):

        x_m = x_p + cos θ · x_o - sin θ · y_o
        y_m = y_p + sin θ · x_o + cos θ · y_o

    Parameters
    ----------
    pose : array_like, shape (3,)
        Particle pose [x, y, theta].
    observations : ndarray, shape (K, 2)
        Observations in the vehicle frame.

    Returns
    -------
    ndarray, shape (K, 2)
        Observations in the map frame.
    """
    x_p, y_p, theta = pose
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    x_o = observations[:, 0]
    y_o = observations[:, 1]
    transformed = np.empty((len(observations), 2))
    transformed[:, 0] = x_p + cos_t * x_o - sin_t * y_o
    transformed[:, 1] = y_p + sin_t * x_o + cos_t * y_o
    return transformed


def associate(transformed, candidate_ids, candidate_positions):
    """
    Nearest-neighbour data association.

    Each transformed observation is assigned the candidate landmark with the
    smallest squared Euclidean distance; ties go to the candidate listed
    first. With no candidates every observation gets id ``NO_LANDMARK`` and
    the origin as its matched position.

    Parameters
    ----------
    transformed : ndarray, shape (K, 2)
        Map-frame observations.
    candidate_ids : ndarray, shape (L,)
        Ids of landmarks eligible for association.
    candidate_positions : ndarray, shape (L, 2)
        Positions of those landmarks.

    Returns
    -------
    ids : ndarray of int, shape (K,)
    positions : ndarray, shape (K, 2)
    """
    k = len(transformed)
    if len(candidate_ids) == 0:
        return np.full(k, NO_LANDMARK, dtype=int), np.zeros((k, 2))

    deltas = transformed[:, np.newaxis, :] - candidate_positions[np.newaxis, :, :]
    squared = np.sum(deltas**2, axis=2)
    nearest = np.argmin(squared, axis=1)
    return candidate_ids[nearest].astype(int), candidate_positions[nearest]


def gaussian_density(points, means, std_landmark):
    """
    Axis-independent bivariate Gaussian density, evaluated row-wise.

        p = 1/(2π σ_x σ_y) · exp(-[(x-μ_x)²/(2σ_x²) + (y-μ_y)²/(2σ_y²)])

    Computed as the product of the two univariate normal densities.
    """
    sigma_x, sigma_y = std_landmark
    prob_x = stats.norm(means[:, 0], sigma_x).pdf(points[:, 0])
    prob_y = stats.norm(means[:, 1], sigma_y).pdf(points[:, 1])
    return prob_x * prob_y


def weigh_particle(pose, observations, landmark_map, sensor_range, std_landmark):
    """
    Associate and weigh a single particle.

    Returns
    -------
    weight : float
        Product of the observation densities, 1.0 with no observations.
    association : tuple
        ``(ids, sense_x, sense_y)`` for the diagnostic output.
    """
    if len(observations) == 0:
        return 1.0, ((), (), ())

    in_range = landmarks_in_range(pose[:2], landmark_map.positions, sensor_range)
    if len(in_range) == 0:
        logger.debug(f"No landmark within {sensor_range} m of particle at {pose[:2]}")

    transformed = transform_observations(pose, observations)
    ids, matched = associate(
        transformed, landmark_map.ids[in_range], landmark_map.positions[in_range]
    )
    densities = gaussian_density(transformed, matched, std_landmark)

    # Many sharp densities can overflow the product; the resampler rescales
    if np.any(densities == 0):
        weight = 0.0
    else:
        with np.errstate(over="ignore", under="ignore"):
            weight = np.prod(densities)

    return float(weight), (tuple(ids), tuple(matched[:, 0]), tuple(matched[:, 1]))


def update_weights(particles, sensor_range, std_landmark, observations, landmark_map):
    """
    Compute importance weights for every particle (update step).

    Weights are reset to 1.0 at the start of each pass and reflect only the
    current observation batch; they are not normalized.

    Parameters
    ----------
    particles : ParticleSet
        Current particle set.
    sensor_range : float
        Maximum landmark detection distance (m).
    std_landmark : array_like, shape (2,)
        Observation noise standard deviations [σ_x, σ_y].
    observations : ndarray, shape (K, 2)
        Vehicle-frame observations.
    landmark_map : LandmarkMap
        Known landmarks.

    Returns
    -------
    ParticleSet
        New set with updated weights and associations.
    """
    weights = np.ones(len(particles))
    associations = []
    for i, pose in enumerate(particles.poses):
        weights[i], association = weigh_particle(
            pose, observations, landmark_map, sensor_range, std_landmark
        )
        associations.append(association)

    if len(particles) > 0 and len(observations) > 0 and not np.any(weights > 0):
        logger.warning(
            f"All {len(particles)} particle weights vanished for "
            f"{len(observations)} observations"
        )

    return particles.with_weights(weights, associations)
