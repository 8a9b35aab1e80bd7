#!/usr/bin/env python3
"""
Localization Dataset Reader Module

Loads the landmark map and the per-step control, ground truth and
observation logs of a vehicle localization run, and replays them as a
stream of filter frames.

Dataset layout
--------------
A dataset directory contains::

    map_data.txt                       [x[m], y[m], landmark_id]
    control_data.txt                   [velocity[m/s], yaw_rate[rad/s]]
    gt_data.txt                        [x[m], y[m], theta[rad]]
    observation/observations_000001.txt
    observation/observations_000002.txt
    ...                                [x[m], y[m]] in the vehicle frame

Row ``t`` of the control and ground truth files and observation file
``t + 1`` all describe filter step ``t``. Observation files may be empty
when nothing was detected.
"""

import logging
import os
import warnings
from dataclasses import dataclass

import numpy as np

from pf_localization.config import ConfigurationError
from pf_localization.data.landmarks import LandmarkMap

logger = logging.getLogger(__name__)

MAP_FILE = "map_data.txt"
CONTROL_FILE = "control_data.txt"
GROUNDTRUTH_FILE = "gt_data.txt"
OBSERVATION_DIR = "observation"
OBSERVATION_PATTERN = "observations_{:06d}.txt"


@dataclass
class Frame:
    """
    Inputs of one filter cycle.

    Attributes
    ----------
    step : int
        Zero-based filter step.
    velocity : float
        Linear velocity command driving the vehicle into this step (m/s).
        Zero for step 0, which is used for initialization.
    yaw_rate : float
        Yaw rate command driving the vehicle into this step (rad/s).
    observations : ndarray, shape (K, 2)
        Vehicle-frame landmark observations.
    ground_truth : ndarray, shape (3,)
        True pose [x, y, theta] at this step.
    """

    step: int
    velocity: float
    yaw_rate: float
    observations: np.ndarray
    ground_truth: np.ndarray


def load_rows(path, columns):
    """
    Load a whitespace-separated numeric file as a 2D array.

    Single-row files are reshaped to ``(1, columns)`` and empty files to
    ``(0, columns)``.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ConfigurationError
        If rows do not have ``columns`` entries.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Dataset file not found: {path}")

    with warnings.catch_warnings():
        # Empty observation files are legitimate
        warnings.simplefilter("ignore", UserWarning)
        data = np.loadtxt(path, ndmin=2)

    if data.size == 0:
        return np.zeros((0, columns))
    if data.shape[1] != columns:
        raise ConfigurationError(
            f"{path}: expected {columns} columns per row, got {data.shape[1]}"
        )
    return data


class Reader:
    """
    Vehicle localization dataset reader.

    Parameters
    ----------
    dataset : str
        Path to the dataset directory (see module docstring for layout).
    end_frame : int, optional
        Maximum number of steps to load. Default: all steps.

    Attributes
    ----------
    landmark_data : ndarray, shape (K, 3)
        Raw map rows [x, y, id].
    landmark_map : LandmarkMap
        Landmarks in file order.
    control_data : ndarray, shape (T, 2)
        Control commands [velocity, yaw_rate] per step.
    groundtruth_data : ndarray, shape (T, 3)
        True poses [x, y, theta] per step.
    observations : list of ndarray
        Vehicle-frame observations per step, each of shape (K_t, 2).

    Raises
    ------
    FileNotFoundError
        If the dataset directory or a required file is missing.
    ConfigurationError
        If files are malformed or streams disagree in length.

    Examples
    --------
    >>> reader = Reader("data/sample", end_frame=500)
    >>> for frame in reader.frames():
    ...     print(frame.step, len(frame.observations))
    """

    def __init__(self, dataset, end_frame=None):
        self.dataset = dataset
        self.load_data(dataset, end_frame)

    def load_data(self, dataset, end_frame):
        if not os.path.isdir(dataset):
            raise FileNotFoundError(f"Dataset directory not found: {dataset}")

        # Map: [x[m], y[m], id]
        self.landmark_data = load_rows(os.path.join(dataset, MAP_FILE), 3)
        # Control: [velocity[m/s], yaw_rate[rad/s]]
        self.control_data = load_rows(os.path.join(dataset, CONTROL_FILE), 2)
        # Ground truth: [x[m], y[m], theta[rad]]
        self.groundtruth_data = load_rows(os.path.join(dataset, GROUNDTRUTH_FILE), 3)

        if len(self.control_data) != len(self.groundtruth_data):
            raise ConfigurationError(
                f"{dataset}: {len(self.control_data)} control rows but "
                f"{len(self.groundtruth_data)} ground truth rows"
            )

        # Remove all data after the specified number of frames
        if end_frame is not None:
            if end_frame < 0:
                raise ConfigurationError(f"end_frame must be non-negative, got {end_frame}")
            self.control_data = self.control_data[:end_frame]
            self.groundtruth_data = self.groundtruth_data[:end_frame]

        # File rows are [x, y, id]; the map is built from [id, x, y]
        self.landmark_map = LandmarkMap.from_array(self.landmark_data[:, [2, 0, 1]])

        observation_dir = os.path.join(dataset, OBSERVATION_DIR)
        self.observations = [
            load_rows(
                os.path.join(observation_dir, OBSERVATION_PATTERN.format(step + 1)), 2
            )
            for step in range(len(self.groundtruth_data))
        ]

        logger.info(
            f"Loaded {dataset}: {len(self.landmark_map)} landmarks, "
            f"{len(self.groundtruth_data)} steps, "
            f"{sum(len(obs) for obs in self.observations)} observations"
        )

    def __len__(self):
        return len(self.groundtruth_data)

    def frames(self):
        """
        Yield one :class:`Frame` per step.

        The control of step ``t`` is the command recorded at ``t - 1``, i.e.
        the motion that brought the vehicle to the pose observed at ``t``.
        """
        return iter_frames(self.control_data, self.groundtruth_data, self.observations)


def iter_frames(control_data, groundtruth_data, observations):
    """Pair each step's observations with the previous step's control."""
    for step in range(len(groundtruth_data)):
        if step == 0:
            velocity, yaw_rate = 0.0, 0.0
        else:
            velocity, yaw_rate = control_data[step - 1]
        yield Frame(
            step=step,
            velocity=float(velocity),
            yaw_rate=float(yaw_rate),
            observations=observations[step],
            ground_truth=np.array(groundtruth_data[step], dtype=float),
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    r = Reader("data/sample", end_frame=500)
