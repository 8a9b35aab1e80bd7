"""
Matplotlib views of the particle filter state.
"""

import matplotlib.pyplot as plt
import numpy as np

from pf_localization.localization.weighting import NO_LANDMARK


def plot_landmarks(landmark_map, ax=None, label_ids=True):
    """Draw landmarks as stars, optionally annotated with their ids."""
    if ax is None:
        ax = plt.gca()

    # Landmark ground truth locations and ids
    ax.scatter(
        landmark_map.positions[:, 0],
        landmark_map.positions[:, 1],
        s=200,
        c="k",
        alpha=0.2,
        marker="*",
        label="Landmark Locations",
    )
    if label_ids:
        for landmark in landmark_map:
            ax.text(landmark.x, landmark.y, str(landmark.id), alpha=0.5, fontsize=10)
    return ax


def plot_particles(particles, landmark_map, estimate=None, ground_truth=None,
                   particle=None, ax=None):
    """
    Plot the particle cloud on top of the landmark map.

    Parameters
    ----------
    particles : ParticleSet
        Current particles. Marker size scales with relative weight.
    landmark_map : LandmarkMap
        Known landmarks.
    estimate : array_like, shape (3,), optional
        Pose estimate to highlight.
    ground_truth : array_like, shape (3,), optional
        True pose to highlight.
    particle : Particle, optional
        Particle whose observation associations are drawn as lines from its
        position to the matched landmarks.
    ax : matplotlib.axes.Axes, optional
        Target axes. Defaults to the current axes.

    Returns
    -------
    matplotlib.axes.Axes
    """
    if ax is None:
        ax = plt.gca()

    plot_landmarks(landmark_map, ax=ax)

    if len(particles) > 0:
        weights = particles.weights
        peak = np.max(weights)
        sizes = 10 + 60 * (weights / peak if peak > 0 else np.ones_like(weights))
        ax.scatter(
            particles.poses[:, 0],
            particles.poses[:, 1],
            s=sizes,
            c="orange",
            alpha=0.6,
            label="Particles",
        )

    if particle is not None:
        for landmark_id, sense_x, sense_y in zip(
            particle.associations, particle.sense_x, particle.sense_y
        ):
            if landmark_id == NO_LANDMARK:
                continue
            ax.plot([particle.x, sense_x], [particle.y, sense_y], "g-", alpha=0.4)

    if ground_truth is not None:
        ax.plot(ground_truth[0], ground_truth[1], "bo", label="Ground truth")
    if estimate is not None:
        ax.plot(estimate[0], estimate[1], "ro", label="Estimate")
        ax.arrow(
            estimate[0],
            estimate[1],
            np.cos(estimate[2]),
            np.sin(estimate[2]),
            color="r",
            width=0.05,
        )

    ax.set_aspect("equal", adjustable="datalim")
    ax.legend(loc="center left", bbox_to_anchor=(1, 0.5))
    return ax


def plot_trajectories(groundtruth_data, states, landmark_map, mean_states=None,
                      particles=None, particles_log=None, ax=None, title=None):
    """
    Compare the estimated trajectory with ground truth.

    Parameters
    ----------
    groundtruth_data : ndarray, shape (T, 3)
        True poses [x, y, theta].
    states : ndarray, shape (T, 4)
        Estimated poses [step, x, y, theta].
    landmark_map : LandmarkMap
        Known landmarks.
    mean_states : ndarray, shape (T, 4), optional
        Weighted-mean estimates [step, x, y, theta].
    particles : ParticleSet, optional
        Final particle cloud.
    particles_log : ndarray, shape (M, 3), optional
        Every particle pose recorded during the run, drawn as small dots to
        show how the cloud evolved.
    ax : matplotlib.axes.Axes, optional
    title : str, optional
    """
    if ax is None:
        ax = plt.gca()

    # Ground truth data
    ax.plot(
        groundtruth_data[:, 0],
        groundtruth_data[:, 1],
        "b",
        label="Robot State Ground truth",
    )

    # States
    ax.plot(states[:, 1], states[:, 2], "r", label="Best Particle Estimate")
    if mean_states is not None:
        ax.plot(
            mean_states[:, 1], mean_states[:, 2], "m--", label="Weighted Mean Estimate"
        )

    # Start and end points
    if len(groundtruth_data) > 0:
        ax.plot(groundtruth_data[0, 0], groundtruth_data[0, 1], "go", label="Start point")
        ax.plot(groundtruth_data[-1, 0], groundtruth_data[-1, 1], "yo", label="End point")

    if particles is not None and len(particles) > 0:
        ax.scatter(
            particles.poses[:, 0],
            particles.poses[:, 1],
            s=40,
            c="orange",
            alpha=0.8,
            label="Particles",
        )
    if particles_log is not None and len(particles_log) > 0:
        ax.scatter(
            particles_log[:, 0],
            particles_log[:, 1],
            s=0.5,
            c="k",
            alpha=0.5,
            label="Particles log",
        )

    plot_landmarks(landmark_map, ax=ax)

    ax.set_title(title or "Particle Filter Localization")
    ax.legend(loc="center left", bbox_to_anchor=(1, 0.5))
    return ax
