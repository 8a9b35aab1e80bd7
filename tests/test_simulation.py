import numpy as np
import pytest

from pf_localization.config import ConfigurationError
from pf_localization.data.landmarks import LandmarkMap
from pf_localization.data.simulation import (
    observe,
    random_landmark_map,
    simulate_dataset,
)
from pf_localization.localization.motion import move


def test_dataset_shapes(small_dataset):
    assert len(small_dataset) == 60
    assert small_dataset.control_data.shape == (60, 2)
    assert small_dataset.groundtruth_data.shape == (60, 3)
    assert len(small_dataset.observations) == 60
    assert len(small_dataset.landmark_map) == 30
    np.testing.assert_array_equal(small_dataset.groundtruth_data[0], [5.0, 5.0, 0.3])


def test_ground_truth_follows_the_motion_model(small_dataset):
    gt = small_dataset.groundtruth_data
    expected = move(gt[10:11], 0.1, 4.0, 0.2)
    np.testing.assert_allclose(gt[11], expected[0])


def test_logged_controls_are_noisy_but_close(small_dataset):
    control = small_dataset.control_data
    assert np.abs(control[:, 0] - 4.0).max() < 1.0
    assert np.abs(control[:, 1] - 0.2).max() < 0.1
    assert not np.allclose(control[:, 0], 4.0)


def test_simulation_is_reproducible():
    a = simulate_dataset(num_steps=20, seed=11)
    b = simulate_dataset(num_steps=20, seed=11)
    np.testing.assert_array_equal(a.control_data, b.control_data)
    np.testing.assert_array_equal(a.landmark_map.positions, b.landmark_map.positions)
    for obs_a, obs_b in zip(a.observations, b.observations):
        np.testing.assert_array_equal(obs_a, obs_b)


def test_observations_respect_sensor_range(grid_map):
    dataset = simulate_dataset(num_steps=10, sensor_range=12.0, landmark_map=grid_map,
                               initial_pose=(20.0, 20.0, 0.0), velocity=0.0,
                               sigma_landmark=(0.0, 0.0), seed=4)
    # Landmarks within 12 m of (20, 20): the centre and its four neighbours
    assert all(len(obs) == 5 for obs in dataset.observations)
    distances = np.hypot(dataset.observations[0][:, 0], dataset.observations[0][:, 1])
    assert distances.max() <= 12.0


def test_observe_rotates_into_vehicle_frame(rng):
    landmark_map = LandmarkMap([(1, 10.0, 0.0)])
    observations = observe(np.array([0.0, 0.0, np.pi / 2]), landmark_map, 50.0,
                           [0.0, 0.0], rng)
    np.testing.assert_allclose(observations, [[0.0, -10.0]], atol=1e-12)


def test_random_landmark_map(rng):
    landmark_map = random_landmark_map(12, 30.0, rng)
    assert landmark_map.ids.tolist() == list(range(1, 13))
    assert np.all(np.abs(landmark_map.positions) <= 30.0)


def test_supplied_landmark_map_is_used(triangle_map):
    dataset = simulate_dataset(num_steps=3, landmark_map=triangle_map, seed=0)
    assert dataset.landmark_map is triangle_map


def test_frames_match_reader_convention(small_dataset):
    frames = list(small_dataset.frames())
    assert frames[0].velocity == 0.0
    assert frames[2].velocity == small_dataset.control_data[1, 0]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"num_steps": -1},
        {"delta_t": 0.0},
        {"sensor_range": -5.0},
        {"sigma_landmark": (0.3,)},
    ],
)
def test_invalid_parameters(kwargs):
    with pytest.raises(ConfigurationError):
        simulate_dataset(**kwargs)
