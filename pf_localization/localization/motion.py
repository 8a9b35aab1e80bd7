"""
Motion model for the prediction step.

Propagates every particle through the constant turn-rate and velocity
kinematics of a vehicle, then adds Gaussian actuation noise.
See Probabilistic Robotics, Table 5.3 for the velocity motion model.
"""

import numpy as np

# Below this yaw rate the arc update is replaced by straight-line motion
YAW_RATE_EPSILON = 1e-5


def move(poses, delta_t, velocity, yaw_rate):
    """
    Apply the deterministic part of the motion model.

    Curved motion (|ω| > ε):

        x_t = x_{t-1} + (v/ω) * (sin(θ + ωΔt) - sin θ)
        y_t = y_{t-1} + (v/ω) * (cos θ - cos(θ + ωΔt))
        θ_t = θ_{t-1} + ωΔt

    Straight motion (|ω| <= ε):

        x_t = x_{t-1} + v * Δt * cos θ
        y_t = y_{t-1} + v * Δt * sin θ
        θ_t = θ_{t-1}

    Parameters
    ----------
    poses : ndarray, shape (N, 3)
        Particle poses [x, y, theta].
    delta_t : float
        Elapsed time (s).
    velocity : float
        Commanded linear velocity v (m/s).
    yaw_rate : float
        Commanded yaw rate ω (rad/s).

    Returns
    -------
    ndarray, shape (N, 3)
        New poses. The input array is not modified.
    """
    poses = np.asarray(poses, dtype=float)
    moved = poses.copy()
    theta = poses[:, 2]

    if abs(yaw_rate) > YAW_RATE_EPSILON:
        theta_new = theta + yaw_rate * delta_t
        moved[:, 0] += (velocity / yaw_rate) * (np.sin(theta_new) - np.sin(theta))
        moved[:, 1] += (velocity / yaw_rate) * (np.cos(theta) - np.cos(theta_new))
        moved[:, 2] = theta_new
    else:
        moved[:, 0] += velocity * delta_t * np.cos(theta)
        moved[:, 1] += velocity * delta_t * np.sin(theta)

    return moved


def predict(poses, delta_t, std_pos, velocity, yaw_rate, rng):
    """
    Sample new poses from the motion model (prediction step).

    Runs :func:`move` and adds independent zero-mean Gaussian noise with
    standard deviations ``std_pos`` to x, y and theta of every particle.

    Parameters
    ----------
    poses : ndarray, shape (N, 3)
        Particle poses [x, y, theta].
    delta_t : float
        Elapsed time (s).
    std_pos : array_like, shape (3,)
        Noise standard deviations [σ_x, σ_y, σ_θ].
    velocity : float
        Commanded linear velocity (m/s).
    yaw_rate : float
        Commanded yaw rate (rad/s).
    rng : numpy.random.Generator
        Noise source.

    Returns
    -------
    ndarray, shape (N, 3)
        Propagated, noisy poses. An empty input yields an empty output.
    """
    moved = move(poses, delta_t, velocity, yaw_rate)
    n = len(moved)
    if n == 0:
        return moved

    std_pos = np.asarray(std_pos, dtype=float)
    moved[:, 0] += rng.normal(0.0, std_pos[0], n)
    moved[:, 1] += rng.normal(0.0, std_pos[1], n)
    moved[:, 2] += rng.normal(0.0, std_pos[2], n)
    return moved
