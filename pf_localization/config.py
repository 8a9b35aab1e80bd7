"""
Run configuration and boundary validation for the particle filter.

The estimator core never raises for algorithmic edge cases (empty particle
sets, missing observations, degenerate weights). Malformed inputs are a
different matter: they are rejected here, at the boundary, with a
ConfigurationError that says what was wrong.
"""

import logging
from dataclasses import dataclass, fields

import numpy as np

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when filter parameters or inputs are malformed."""


def validate_particle_count(num_particles):
    """Return ``num_particles`` as an int, rejecting negatives and non-integers."""
    if isinstance(num_particles, bool) or not isinstance(
        num_particles, (int, np.integer)
    ):
        raise ConfigurationError(
            f"num_particles must be an integer, got {type(num_particles).__name__}"
        )
    if num_particles < 0:
        raise ConfigurationError(
            f"num_particles must be non-negative, got {num_particles}"
        )
    return int(num_particles)


def validate_positive(name, value):
    """Return ``value`` as a float, requiring it to be finite and > 0."""
    value = validate_finite(name, value)
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def validate_non_negative(name, value):
    """Return ``value`` as a float, requiring it to be finite and >= 0."""
    value = validate_finite(name, value)
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative, got {value}")
    return value


def validate_finite(name, value):
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a real number, got {value!r}") from exc
    if not np.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")
    return value


def validate_std(name, std, size, positive=False):
    """
    Validate a vector of standard deviations.

    Parameters
    ----------
    name : str
        Parameter name used in error messages.
    std : array_like
        Standard deviations, one per axis.
    size : int
        Expected number of axes.
    positive : bool, optional
        Require every entry to be strictly positive (densities are undefined
        for a zero standard deviation). Default: False.

    Returns
    -------
    ndarray, shape (size,)
        Standard deviations as floats.

    Raises
    ------
    ConfigurationError
        If the length is wrong or any entry is negative, NaN or Inf.
    """
    try:
        std = np.asarray(std, dtype=float).reshape(-1)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be numeric, got {std!r}") from exc
    if std.shape != (size,):
        raise ConfigurationError(
            f"{name} must have {size} entries, got {std.shape[0]}"
        )
    if not np.all(np.isfinite(std)):
        raise ConfigurationError(f"{name} must be finite, got {std.tolist()}")
    if np.any(std < 0):
        raise ConfigurationError(f"{name} must be non-negative, got {std.tolist()}")
    if positive and np.any(std == 0):
        raise ConfigurationError(f"{name} must be strictly positive, got {std.tolist()}")
    return std


def validate_observations(observations):
    """
    Validate a batch of vehicle-frame observations.

    Accepts anything convertible to a float array of shape ``(K, 2)``; an
    empty sequence becomes an empty ``(0, 2)`` array.
    """
    try:
        observations = np.asarray(observations, dtype=float)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"observations must be numeric (x, y) pairs, got {observations!r}"
        ) from exc
    if observations.size == 0:
        return np.zeros((0, 2))
    if observations.ndim != 2 or observations.shape[1] != 2:
        raise ConfigurationError(
            f"observations must have shape (K, 2), got {observations.shape}"
        )
    if not np.all(np.isfinite(observations)):
        raise ConfigurationError("observations contain NaN or Inf values")
    return observations


@dataclass(frozen=True)
class FilterConfig:
    """
    Parameters of a localization run.

    Defaults reproduce the reference scenario: 100 particles, a 0.1 s
    control period, a 50 m sensor range, GPS-grade initialization noise
    and 0.3 m landmark observation noise.

    Attributes
    ----------
    num_particles : int
        Particle count N, fixed for the whole run.
    delta_t : float
        Elapsed time between filter cycles (s).
    sensor_range : float
        Maximum landmark detection distance (m).
    sigma_pos : tuple of float
        Standard deviations [x (m), y (m), theta (rad)] used for
        initialization and for motion noise.
    sigma_landmark : tuple of float
        Observation noise standard deviations [x (m), y (m)].
    seed : int or None
        Seed for the filter's random generator; None draws fresh entropy.
    """

    num_particles: int = 100
    delta_t: float = 0.1
    sensor_range: float = 50.0
    sigma_pos: tuple = (0.3, 0.3, 0.01)
    sigma_landmark: tuple = (0.3, 0.3)
    seed: int = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        validate_particle_count(self.num_particles)
        validate_positive("delta_t", self.delta_t)
        validate_non_negative("sensor_range", self.sensor_range)
        # Frozen dataclass: normalize sequences through object.__setattr__
        object.__setattr__(
            self, "sigma_pos", tuple(validate_std("sigma_pos", self.sigma_pos, 3))
        )
        object.__setattr__(
            self,
            "sigma_landmark",
            tuple(validate_std("sigma_landmark", self.sigma_landmark, 2, positive=True)),
        )
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, (int, np.integer))
        ):
            raise ConfigurationError(f"seed must be an integer or None, got {self.seed!r}")

    @classmethod
    def from_dict(cls, values):
        """
        Build a config from a mapping, rejecting unknown keys.

        Examples
        --------
        >>> cfg = FilterConfig.from_dict({"num_particles": 50, "seed": 7})
        >>> cfg.num_particles
        50
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {unknown}. Valid keys: {sorted(known)}"
            )
        cfg = cls(**values)
        logger.debug(f"Loaded filter configuration: {cfg}")
        return cfg
