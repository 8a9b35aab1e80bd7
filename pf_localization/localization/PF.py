#!/usr/bin/env python3
"""
Implementation of Particle Filter Localization against a known landmark map
with unknown correspondences.
See Probabilistic Robotics:
    1. Page 252, Table 8.2 for main algorithm.
    2. Page 124, Table 5.3 for motion model.
    3. Page 179, Table 6.4 for measurement model.

"""

import logging

import matplotlib.pyplot as plt
import numpy as np

from pf_localization.config import (
    ConfigurationError,
    FilterConfig,
    validate_finite,
    validate_non_negative,
    validate_observations,
    validate_particle_count,
    validate_positive,
    validate_std,
)
from pf_localization.data.landmarks import LandmarkMap
from pf_localization.localization import motion, resampling, weighting
from pf_localization.localization.particles import ParticleSet
from pf_localization.utils.angles import circular_mean
from pf_localization.utils.data_utils import build_timeseries, format_sequence
from pf_localization.utils.metrics import compute_ate, compute_pose_error
from pf_localization.visualization.plotting import plot_trajectories

logger = logging.getLogger(__name__)

DEFAULT_NUM_PARTICLES = 100


class ParticleFilter:
    """
    Monte Carlo Localization using a particle filter against a landmark map.

    The particle filter represents the posterior belief bel(x_t) by a set of
    weighted particles, each one a hypothesis of the vehicle pose:

        p(x_t | z_{1:t}, u_{1:t}) ≈ {x_t^[1], x_t^[2], ..., x_t^[M]}

    Algorithm Steps:
        1. **Prediction**: sample new poses from p(x_t | u_t, x_{t-1}^[m])
        2. **Update**: associate observations to landmarks under each
           hypothesis and compute w_t^[m] = p(z_t | x_t^[m])
        3. **Resampling**: draw M particles with replacement proportional to
           their weights

    Observations arrive in the vehicle frame without landmark identity; the
    correspondence is recovered per particle by nearest-neighbour matching
    after transforming the observation into the map frame.

    The random generator is owned by the filter and is never reseeded
    between cycles. Pass ``seed`` (or a ``numpy.random.Generator``) for
    reproducible runs.

    Parameters
    ----------
    seed : int, optional
        Seed for a new ``numpy.random.Generator``.
    rng : numpy.random.Generator, optional
        Generator to use instead of seeding a new one.

    Attributes
    ----------
    particles : ParticleSet
        Current particle set (empty until :meth:`init`).
    is_initialized : bool
        Whether :meth:`init` has succeeded.
    rng : numpy.random.Generator
        Source of all randomness in the filter.

    Examples
    --------
    >>> pf = ParticleFilter(seed=42)
    >>> pf.init(6.0, 2.0, 0.0, [0.3, 0.3, 0.01], num_particles=100)
    >>> pf.step(0.1, [0.3, 0.3, 0.01], 5.0, 0.1,
    ...         50.0, [0.3, 0.3], observations, landmark_map)
    >>> best = pf.best_particle()
    >>> pf.get_associations(best)
    '3 7 12'
    """

    def __init__(self, seed=None, rng=None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.is_initialized = False
        self.particles = ParticleSet.empty()

    @property
    def num_particles(self):
        return len(self.particles)

    def init(self, x, y, theta, std, num_particles=DEFAULT_NUM_PARTICLES):
        """
        Initialize the particle set around a first pose estimate.

        Particles are sampled from independent Gaussians centred on
        (x, y, theta) with standard deviations ``std``; all weights start at
        1.0. Calling ``init`` again after it succeeded does nothing.

        Parameters
        ----------
        x, y : float
            Initial position estimate (m), e.g. from GPS.
        theta : float
            Initial heading estimate (rad).
        std : array_like, shape (3,)
            Standard deviations [σ_x, σ_y, σ_θ].
        num_particles : int, optional
            Number of particles N. Zero yields an empty set on which every
            later operation is a no-op. Default: 100.

        Raises
        ------
        ConfigurationError
            For a negative particle count or non-finite inputs.
        """
        if self.is_initialized:
            logger.debug("Particle filter already initialized, ignoring init()")
            return

        num_particles = validate_particle_count(num_particles)
        mean = [validate_finite(name, value) for name, value in
                (("x", x), ("y", y), ("theta", theta))]
        std = validate_std("std", std, 3)

        self.particles = ParticleSet.from_gaussian(mean, std, num_particles, self.rng)
        self.is_initialized = True

        if num_particles == 0:
            logger.warning("Particle filter initialized with 0 particles")
        logger.debug(f"Initialized {num_particles} particles around {mean}")

    def prediction(self, delta_t, std_pos, velocity, yaw_rate):
        """
        Propagate every particle through the motion model (prediction step).

        Parameters
        ----------
        delta_t : float
            Elapsed time since the previous cycle (s), > 0.
        std_pos : array_like, shape (3,)
            Motion noise standard deviations [σ_x, σ_y, σ_θ].
        velocity : float
            Commanded linear velocity (m/s).
        yaw_rate : float
            Commanded yaw rate (rad/s).
        """
        delta_t = validate_positive("delta_t", delta_t)
        std_pos = validate_std("std_pos", std_pos, 3)
        velocity = validate_finite("velocity", velocity)
        yaw_rate = validate_finite("yaw_rate", yaw_rate)

        poses = motion.predict(
            self.particles.poses, delta_t, std_pos, velocity, yaw_rate, self.rng
        )
        self.particles = self.particles.with_poses(poses)

    def update_weights(self, sensor_range, std_landmark, observations, landmark_map):
        """
        Weigh every particle by the likelihood of the observations (update step).

        Parameters
        ----------
        sensor_range : float
            Maximum landmark detection distance (m).
        std_landmark : array_like, shape (2,)
            Observation noise standard deviations [σ_x, σ_y] (m), > 0.
        observations : array_like, shape (K, 2)
            Vehicle-frame observations; may be empty.
        landmark_map : LandmarkMap or array_like of (id, x, y)
            Known landmarks.
        """
        sensor_range = validate_non_negative("sensor_range", sensor_range)
        std_landmark = validate_std("std_landmark", std_landmark, 2, positive=True)
        observations = validate_observations(observations)
        if not isinstance(landmark_map, LandmarkMap):
            landmark_map = LandmarkMap(landmark_map)

        self.particles = weighting.update_weights(
            self.particles, sensor_range, std_landmark, observations, landmark_map
        )

    def resample(self):
        """Replace the particle set by a weight-proportional draw of itself."""
        if logger.isEnabledFor(logging.DEBUG) and len(self.particles) > 0:
            logger.debug(
                f"Resampling {len(self.particles)} particles, "
                f"N_eff={self.effective_sample_size():.1f}, "
                f"max weight={np.max(self.particles.weights):.3e}"
            )
        self.particles = resampling.resample(self.particles, self.rng)

    def step(self, delta_t, std_pos, velocity, yaw_rate,
             sensor_range, std_landmark, observations, landmark_map):
        """
        Run one filter cycle: prediction, weighting, resampling.

        Returns
        -------
        ParticleSet
            The particle set after resampling.
        """
        self.prediction(delta_t, std_pos, velocity, yaw_rate)
        self.update_weights(sensor_range, std_landmark, observations, landmark_map)
        self.resample()
        return self.particles

    def best_particle(self):
        """Highest-weight particle, or None if the set is empty."""
        index = self.particles.best_index()
        if index is None:
            return None
        return self.particles[index]

    def estimate(self):
        """
        Weighted mean pose of the particle set.

        Position is the weight-averaged position; heading is the weighted
        circular mean in [-pi, pi]. Weights are rescaled as for resampling,
        so overflowed weights are handled; falls back to uniform weights when
        every weight is zero. Returns None for an empty set.
        """
        if len(self.particles) == 0:
            return None
        weights = resampling.scale_weights(self.particles.weights)
        if not np.sum(weights) > 0:
            weights = np.ones(len(weights))
        poses = self.particles.poses
        x, y = np.average(poses[:, :2], weights=weights, axis=0)
        return np.array([x, y, circular_mean(poses[:, 2], weights)])

    def effective_sample_size(self):
        return resampling.effective_sample_size(self.particles.weights)

    def spawn_generators(self, n):
        """
        Independent child generators, e.g. one per worker.

        Children are derived from the filter's generator, so a seeded filter
        yields reproducible child streams.
        """
        return self.rng.spawn(n)

    def set_associations(self, particle, associations, sense_x, sense_y):
        """
        Attach diagnostic associations to ``particle``.

        Parameters
        ----------
        particle : Particle
            Particle to update. When its id is a position in the current set,
            the associations stored at that position are replaced as well;
            the stored pose and weight are never touched.
        associations : sequence of int
            Landmark id matched to each observation.
        sense_x, sense_y : sequence of float
            Map-frame coordinates of the matches.

        Returns
        -------
        Particle
        """
        if not len(associations) == len(sense_x) == len(sense_y):
            raise ConfigurationError(
                "associations, sense_x and sense_y must have equal lengths, got "
                f"{len(associations)}, {len(sense_x)}, {len(sense_y)}"
            )
        particle.associations = [int(i) for i in associations]
        particle.sense_x = [float(v) for v in sense_x]
        particle.sense_y = [float(v) for v in sense_y]
        if 0 <= particle.id < len(self.particles):
            self.particles = self.particles.with_associations(
                particle.id,
                (particle.associations, particle.sense_x, particle.sense_y),
            )
        return particle

    def get_associations(self, particle):
        """Landmark ids associated with ``particle``, space separated."""
        return format_sequence(particle.associations)

    def get_sense_coord(self, particle, coord):
        """
        Associated map-frame coordinates of ``particle``, space separated.

        Parameters
        ----------
        particle : Particle
        coord : {"X", "Y"}
        """
        if coord == "X":
            return format_sequence(particle.sense_x)
        if coord == "Y":
            return format_sequence(particle.sense_y)
        raise ValueError(f"coord must be 'X' or 'Y', got {coord!r}")


class ParticleFilterLocalization:
    """
    Replay a localization dataset through a :class:`ParticleFilter`.

    The filter is initialized around the first ground-truth pose with
    ``config.sigma_pos`` noise. For every frame it then runs prediction
    (skipped for the initialization frame), weighting and resampling, and
    records the best particle, the weighted mean and their errors.

    Parameters
    ----------
    source : Reader or SyntheticDataset
        Provides ``landmark_map``, ``groundtruth_data`` and ``frames()``.
    config : FilterConfig, optional
        Run parameters. Default: ``FilterConfig()``.
    plot : bool, optional
        Whether to plot the trajectories after :meth:`run`. Default: False.

    Attributes
    ----------
    filter : ParticleFilter
        The underlying estimator.
    states : ndarray, shape (T, 4)
        Best-particle trajectory [step, x, y, theta].
    mean_states : ndarray, shape (T, 4)
        Weighted-mean trajectory [step, x, y, theta].
    errors : ndarray, shape (T, 4)
        Best-particle errors [step, |Δx|, |Δy|, |Δθ|].
    particles_log : ndarray, shape (T*N, 3)
        Every resampled particle pose, for visualization.

    Examples
    --------
    >>> dataset = simulate_dataset(num_steps=200, seed=1)
    >>> run = ParticleFilterLocalization(dataset, FilterConfig(seed=1))
    >>> run.run()
    >>> run.summary()["ate"]
    """

    def __init__(self, source, config=None, plot=False):
        self.source = source
        self.config = config if config is not None else FilterConfig()
        self.plot = plot
        self.landmark_map = source.landmark_map
        self.groundtruth_data = np.asarray(source.groundtruth_data)
        self.filter = ParticleFilter(seed=self.config.seed)
        self.states = np.zeros((0, 4))
        self.mean_states = np.zeros((0, 4))
        self.errors = np.zeros((0, 4))
        self.particles_log = np.zeros((0, 3))

    def run(self):
        cfg = self.config
        states, mean_states, errors = [], [], []
        particles_log = []

        for frame in self.source.frames():
            if not self.filter.is_initialized:
                self.filter.init(*frame.ground_truth, cfg.sigma_pos, cfg.num_particles)
            else:
                self.filter.prediction(
                    cfg.delta_t, cfg.sigma_pos, frame.velocity, frame.yaw_rate
                )
            self.filter.update_weights(
                cfg.sensor_range, cfg.sigma_landmark, frame.observations, self.landmark_map
            )
            self.filter.resample()

            best = self.filter.best_particle()
            if best is None:
                continue
            mean = self.filter.estimate()
            states.append([frame.step, best.x, best.y, best.theta])
            mean_states.append([frame.step, *mean])
            errors.append([frame.step, *compute_pose_error(best.pose, frame.ground_truth)])
            particles_log.append(self.filter.particles.poses)

        self.states = np.array(states).reshape(-1, 4)
        self.mean_states = np.array(mean_states).reshape(-1, 4)
        self.errors = np.array(errors).reshape(-1, 4)
        self.particles_log = (
            np.vstack(particles_log) if particles_log else np.zeros((0, 3))
        )

        if len(self.errors) > 0:
            mean_error = np.mean(self.errors[:, 1:], axis=0)
            logger.info(
                f"Processed {len(self.states)} steps with {cfg.num_particles} particles, "
                f"mean error x={mean_error[0]:.3f} m, y={mean_error[1]:.3f} m, "
                f"yaw={mean_error[2]:.4f} rad"
            )
        else:
            logger.warning("No filter steps were processed")

        if self.plot:
            self.plot_data()
            plt.show()

    def plot_data(self, ax=None):
        return plot_trajectories(
            self.groundtruth_data,
            self.states,
            self.landmark_map,
            mean_states=self.mean_states,
            particles=self.filter.particles,
            particles_log=self.particles_log,
            ax=ax,
            title="Particle Filter Localization with Unknown Correspondences",
        )

    def build_dataframes(self):
        cols = ["step", "x", "y", "theta"]
        steps = np.arange(len(self.groundtruth_data))
        self.gt = build_timeseries(
            np.column_stack((steps, self.groundtruth_data)), cols, self.config.delta_t
        )
        self.states_df = build_timeseries(self.states, cols, self.config.delta_t)
        self.mean_states_df = build_timeseries(self.mean_states, cols, self.config.delta_t)
        self.errors_df = build_timeseries(
            self.errors, ["step", "x_error", "y_error", "yaw_error"], self.config.delta_t
        )

    def summary(self):
        """
        Cumulative error summary of the run.

        Returns
        -------
        dict
            'steps', 'mean_x_error', 'mean_y_error', 'mean_yaw_error' and
            'ate' (best particle) plus 'ate_mean' (weighted mean).
        """
        if len(self.states) == 0:
            raise RuntimeError("No filter steps recorded; call run() first")
        self.build_dataframes()
        mean_error = np.mean(self.errors[:, 1:], axis=0)
        return {
            "steps": len(self.states),
            "mean_x_error": float(mean_error[0]),
            "mean_y_error": float(mean_error[1]),
            "mean_yaw_error": float(mean_error[2]),
            "ate": compute_ate(self.states_df, self.gt, verbose=False),
            "ate_mean": compute_ate(self.mean_states_df, self.gt, verbose=False),
        }


if __name__ == "__main__":
    from pf_localization.data.simulation import simulate_dataset

    logging.basicConfig(level=logging.INFO)

    # Reference scenario: 100 particles, 0.1 s steps, 50 m sensor range
    # [sigma_x (m), sigma_y (m), sigma_theta (rad)]
    sigma_pos = (0.3, 0.3, 0.01)
    # [sigma_x (m), sigma_y (m)]
    sigma_landmark = (0.3, 0.3)

    config = FilterConfig(
        num_particles=100,
        delta_t=0.1,
        sensor_range=50.0,
        sigma_pos=sigma_pos,
        sigma_landmark=sigma_landmark,
        seed=0,
    )
    dataset = simulate_dataset(
        num_steps=500, delta_t=config.delta_t, sigma_landmark=sigma_landmark, seed=0
    )

    pf = ParticleFilterLocalization(dataset, config, plot=True)
    pf.run()
    print(pf.summary())
