"""
Angle helpers.

The filter keeps headings unconstrained; these are used when headings are
compared or averaged.
"""

import numpy as np


def normalize_angle(angle):
    """
    Normalize angle(s) to [-pi, pi].

    Parameters
    ----------
    angle : float or ndarray
        Angle(s) in radians.

    Returns
    -------
    float or ndarray
        Normalized angle(s).
    """
    return np.arctan2(np.sin(angle), np.cos(angle))


def angle_diff(angle1, angle2):
    """
    Smallest signed difference ``angle1 - angle2``, in [-pi, pi].

    Handles the discontinuity at ±pi, e.g. ``angle_diff(pi - 0.1, -pi + 0.1)``
    is -0.2 rather than 2pi - 0.2.
    """
    return normalize_angle(np.asarray(angle1) - np.asarray(angle2))


def circular_mean(angles, weights=None):
    """
    Weighted circular mean, atan2(Σ w sin θ, Σ w cos θ).

    Averages correctly across the ±pi discontinuity, which a plain mean of
    unconstrained headings does not.
    """
    angles = np.asarray(angles, dtype=float)
    if weights is None:
        weights = np.ones(len(angles))
    else:
        weights = np.asarray(weights, dtype=float)

    sin_sum = np.dot(np.sin(angles), weights)
    cos_sum = np.dot(np.cos(angles), weights)
    return float(np.arctan2(sin_sum, cos_sum))
