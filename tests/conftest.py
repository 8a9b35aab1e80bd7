import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from pf_localization.data.landmarks import LandmarkMap
from pf_localization.data.simulation import simulate_dataset, write_dataset


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def triangle_map():
    """Landmarks at (0,0), (10,0) and (0,10)."""
    return LandmarkMap([(1, 0.0, 0.0), (2, 10.0, 0.0), (3, 0.0, 10.0)])


@pytest.fixture
def grid_map():
    """Twenty-five landmarks on a 10 m grid, ids 1..25."""
    records = []
    landmark_id = 1
    for x in range(0, 50, 10):
        for y in range(0, 50, 10):
            records.append((landmark_id, float(x), float(y)))
            landmark_id += 1
    return LandmarkMap(records)


@pytest.fixture
def small_dataset():
    return simulate_dataset(
        num_steps=60,
        delta_t=0.1,
        velocity=4.0,
        yaw_rate=0.2,
        initial_pose=(5.0, 5.0, 0.3),
        num_landmarks=30,
        extent=40.0,
        sensor_range=50.0,
        seed=7,
    )


@pytest.fixture
def dataset_dir(tmp_path, small_dataset):
    return write_dataset(small_dataset, str(tmp_path / "dataset"))


@pytest.fixture
def dense_grid_map():
    """One hundred landmarks on a 10 m grid, ids 1..100."""
    records = [
        (i * 10 + j + 1, float(i * 10), float(j * 10))
        for i in range(10)
        for j in range(10)
    ]
    return LandmarkMap(records)
