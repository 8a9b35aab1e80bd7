"""
Synthetic localization datasets.

Generates a vehicle trajectory through a random landmark field together with
the noisy control log and range-limited, noisy vehicle-frame observations a
real run would produce. The result has the same attributes as
:class:`~pf_localization.data.reader.Reader` and can be written to disk in
the same layout.
"""

import logging
import os
from dataclasses import dataclass

import numpy as np

from pf_localization.config import (
    ConfigurationError,
    validate_non_negative,
    validate_positive,
    validate_std,
)
from pf_localization.data.landmarks import LandmarkMap
from pf_localization.data.reader import (
    CONTROL_FILE,
    GROUNDTRUTH_FILE,
    MAP_FILE,
    OBSERVATION_DIR,
    OBSERVATION_PATTERN,
    iter_frames,
)
from pf_localization.localization.motion import move

logger = logging.getLogger(__name__)


@dataclass
class SyntheticDataset:
    """
    In-memory dataset produced by :func:`simulate_dataset`.

    Attributes
    ----------
    landmark_map : LandmarkMap
        Landmarks of the simulated field.
    control_data : ndarray, shape (T, 2)
        Noisy [velocity, yaw_rate] commands as logged by the vehicle.
    groundtruth_data : ndarray, shape (T, 3)
        True poses [x, y, theta].
    observations : list of ndarray
        Noisy vehicle-frame observations per step.
    delta_t : float
        Step duration (s).
    """

    landmark_map: LandmarkMap
    control_data: np.ndarray
    groundtruth_data: np.ndarray
    observations: list
    delta_t: float

    def __len__(self):
        return len(self.groundtruth_data)

    def frames(self):
        return iter_frames(self.control_data, self.groundtruth_data, self.observations)


def random_landmark_map(num_landmarks, extent, rng):
    """Landmarks with ids 1..K placed uniformly in [-extent, extent]²."""
    positions = rng.uniform(-extent, extent, size=(num_landmarks, 2))
    return LandmarkMap(
        (i + 1, x, y) for i, (x, y) in enumerate(positions)
    )


def observe(pose, landmark_map, sensor_range, sigma_landmark, rng):
    """
    Simulate the vehicle-frame observations taken from ``pose``.

    Landmarks within ``sensor_range`` are rotated into the vehicle frame,

        x_o =  cos θ · Δx + sin θ · Δy
        y_o = -sin θ · Δx + cos θ · Δy

    and perturbed with Gaussian noise. Observations are listed in map order.
    """
    deltas = landmark_map.positions - np.asarray(pose[:2])
    in_range = np.hypot(deltas[:, 0], deltas[:, 1]) <= sensor_range
    deltas = deltas[in_range]

    cos_t, sin_t = np.cos(pose[2]), np.sin(pose[2])
    observations = np.empty((len(deltas), 2))
    observations[:, 0] = cos_t * deltas[:, 0] + sin_t * deltas[:, 1]
    observations[:, 1] = -sin_t * deltas[:, 0] + cos_t * deltas[:, 1]
    observations[:, 0] += rng.normal(0.0, sigma_landmark[0], len(deltas))
    observations[:, 1] += rng.normal(0.0, sigma_landmark[1], len(deltas))
    return observations


def simulate_dataset(
    num_steps=200,
    delta_t=0.1,
    velocity=5.0,
    yaw_rate=0.1,
    initial_pose=(0.0, 0.0, 0.0),
    num_landmarks=40,
    extent=60.0,
    sensor_range=50.0,
    sigma_control=(0.1, 0.01),
    sigma_landmark=(0.3, 0.3),
    landmark_map=None,
    seed=None,
):
    """
    Simulate a localization run.

    Parameters
    ----------
    num_steps : int
        Number of filter steps T.
    delta_t : float
        Step duration (s).
    velocity : float or array_like, shape (T,)
        True linear velocity per step (m/s).
    yaw_rate : float or array_like, shape (T,)
        True yaw rate per step (rad/s).
    initial_pose : array_like, shape (3,)
        True pose [x, y, theta] at step 0.
    num_landmarks : int
        Number of random landmarks when ``landmark_map`` is not given.
    extent : float
        Half-width of the square landmark field (m).
    sensor_range : float
        Maximum observation distance (m).
    sigma_control : array_like, shape (2,)
        Noise added to the logged [velocity, yaw_rate] commands.
    sigma_landmark : array_like, shape (2,)
        Observation noise [σ_x, σ_y] (m).
    landmark_map : LandmarkMap, optional
        Use this map instead of generating one.
    seed : int, optional
        Seed for reproducible datasets.

    Returns
    -------
    SyntheticDataset

    Examples
    --------
    >>> dataset = simulate_dataset(num_steps=50, seed=3)
    >>> dataset.groundtruth_data.shape
    (50, 3)
    """
    if num_steps < 0:
        raise ConfigurationError(f"num_steps must be non-negative, got {num_steps}")
    delta_t = validate_positive("delta_t", delta_t)
    sensor_range = validate_non_negative("sensor_range", sensor_range)
    sigma_control = validate_std("sigma_control", sigma_control, 2)
    sigma_landmark = validate_std("sigma_landmark", sigma_landmark, 2)

    rng = np.random.default_rng(seed)
    if landmark_map is None:
        landmark_map = random_landmark_map(num_landmarks, extent, rng)

    velocities = np.broadcast_to(np.asarray(velocity, dtype=float), (num_steps,))
    yaw_rates = np.broadcast_to(np.asarray(yaw_rate, dtype=float), (num_steps,))

    groundtruth = np.zeros((num_steps, 3))
    pose = np.asarray(initial_pose, dtype=float).reshape(1, 3)
    for step in range(num_steps):
        groundtruth[step] = pose[0]
        pose = move(pose, delta_t, velocities[step], yaw_rates[step])

    control = np.column_stack(
        (
            velocities + rng.normal(0.0, sigma_control[0], num_steps),
            yaw_rates + rng.normal(0.0, sigma_control[1], num_steps),
        )
    )

    observations = [
        observe(groundtruth[step], landmark_map, sensor_range, sigma_landmark, rng)
        for step in range(num_steps)
    ]

    logger.debug(
        f"Simulated {num_steps} steps through {len(landmark_map)} landmarks, "
        f"{sum(len(obs) for obs in observations)} observations"
    )
    return SyntheticDataset(
        landmark_map=landmark_map,
        control_data=control,
        groundtruth_data=groundtruth,
        observations=observations,
        delta_t=delta_t,
    )


def write_dataset(dataset, directory):
    """
    Write ``dataset`` to ``directory`` in the layout read by ``Reader``.

    Returns
    -------
    str
        The dataset directory.
    """
    observation_dir = os.path.join(directory, OBSERVATION_DIR)
    os.makedirs(observation_dir, exist_ok=True)

    landmark_rows = np.column_stack(
        (dataset.landmark_map.positions, dataset.landmark_map.ids)
    ).reshape(-1, 3)
    np.savetxt(os.path.join(directory, MAP_FILE), landmark_rows, fmt="%.6f %.6f %d")
    np.savetxt(os.path.join(directory, CONTROL_FILE), dataset.control_data, fmt="%.6f")
    np.savetxt(
        os.path.join(directory, GROUNDTRUTH_FILE), dataset.groundtruth_data, fmt="%.6f"
    )
    for step, observations in enumerate(dataset.observations):
        np.savetxt(
            os.path.join(observation_dir, OBSERVATION_PATTERN.format(step + 1)),
            observations.reshape(-1, 2),
            fmt="%.6f",
        )

    logger.info(f"Wrote {len(dataset)} steps to {directory}")
    return directory
