import numpy as np
import pytest

from pf_localization.localization.motion import YAW_RATE_EPSILON, move, predict


def test_straight_motion():
    poses = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, np.pi / 2]])
    moved = move(poses, 0.1, 10.0, 0.0)
    np.testing.assert_allclose(moved, [[1.0, 0.0, 0.0], [1.0, 2.0, np.pi / 2]], atol=1e-12)


def test_curved_motion_quarter_circle():
    # v/ω = 1 m radius, ωΔt = π/2
    moved = move(np.array([[0.0, 0.0, 0.0]]), 1.0, np.pi / 2, np.pi / 2)
    np.testing.assert_allclose(moved, [[1.0, 1.0, np.pi / 2]], atol=1e-12)


def test_move_does_not_modify_input():
    poses = np.array([[0.0, 0.0, 0.0]])
    move(poses, 0.1, 5.0, 0.3)
    np.testing.assert_array_equal(poses, [[0.0, 0.0, 0.0]])


def arc(pose, delta_t, velocity, yaw_rate):
    x, y, theta = pose
    theta_new = theta + yaw_rate * delta_t
    return np.array([
        x + velocity / yaw_rate * (np.sin(theta_new) - np.sin(theta)),
        y + velocity / yaw_rate * (np.cos(theta) - np.cos(theta_new)),
        theta_new,
    ])


def test_motion_is_continuous_across_the_yaw_rate_threshold():
    poses = np.array([[2.0, -1.0, 0.7]])
    straight = move(poses, 0.1, 10.0, 0.0)
    # Below the threshold move() goes straight; the arc it replaces agrees
    below = YAW_RATE_EPSILON * 0.1
    np.testing.assert_array_equal(move(poses, 0.1, 10.0, below), straight)
    np.testing.assert_allclose(arc(poses[0], 0.1, 10.0, below), straight[0], atol=1e-6)
    just_curved = move(poses, 0.1, 10.0, YAW_RATE_EPSILON * 10)
    np.testing.assert_allclose(just_curved[0], arc(poses[0], 0.1, 10.0, YAW_RATE_EPSILON * 10))
    np.testing.assert_allclose(just_curved, straight, atol=1e-4)


def test_predict_without_noise_equals_move(rng):
    poses = np.array([[0.0, 0.0, 0.3], [5.0, 5.0, -1.0]])
    predicted = predict(poses, 0.1, [0.0, 0.0, 0.0], 5.0, 0.2, rng)
    np.testing.assert_allclose(predicted, move(poses, 0.1, 5.0, 0.2))


def test_predict_noise_statistics(rng):
    poses = np.zeros((5000, 3))
    predicted = predict(poses, 0.1, [0.3, 0.2, 0.01], 0.0, 0.0, rng)
    np.testing.assert_allclose(predicted.mean(axis=0), [0.0, 0.0, 0.0], atol=0.02)
    np.testing.assert_allclose(predicted.std(axis=0), [0.3, 0.2, 0.01], rtol=0.05)


def test_predict_empty_set(rng):
    predicted = predict(np.zeros((0, 3)), 0.1, [0.3, 0.3, 0.01], 5.0, 0.1, rng)
    assert predicted.shape == (0, 3)


@pytest.mark.parametrize("yaw_rate", [0.0, 0.5, -0.5])
def test_heading_is_not_normalized(yaw_rate):
    moved = move(np.array([[0.0, 0.0, 3.1]]), 1.0, 1.0, yaw_rate)
    assert moved[0, 2] == pytest.approx(3.1 + yaw_rate)
