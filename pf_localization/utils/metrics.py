"""
Trajectory evaluation metrics for landmark-based localization.

This module provides the per-step pose error used to monitor a running
filter, Absolute Trajectory Error (ATE) over a whole run, and related
statistics. Trajectory metrics operate on pandas DataFrames sharing the
time index produced by ``build_timeseries``.
"""

import logging
from typing import Tuple

import numpy as np
import pandas as pd

from pf_localization.utils.angles import angle_diff

# Configure module logger
logger = logging.getLogger(__name__)


def compute_pose_error(estimate, ground_truth) -> np.ndarray:
    """
    Absolute per-axis error between an estimated and a true pose.

    Parameters
    ----------
    estimate : array_like, shape (3,)
        Estimated pose [x, y, theta].
    ground_truth : array_like, shape (3,)
        True pose [x, y, theta].

    Returns
    -------
    ndarray, shape (3,)
        [|Δx|, |Δy|, |Δθ|] with the heading difference wrapped to [0, pi].

    Examples
    --------
    >>> compute_pose_error([1.0, 2.0, 0.0], [1.5, 2.0, 0.0]).tolist()
    [0.5, 0.0, 0.0]
    """
    estimate = np.asarray(estimate, dtype=float)
    ground_truth = np.asarray(ground_truth, dtype=float)
    return np.array(
        [
            abs(estimate[0] - ground_truth[0]),
            abs(estimate[1] - ground_truth[1]),
            abs(float(angle_diff(estimate[2], ground_truth[2]))),
        ]
    )


def _check_trajectory(df: pd.DataFrame, name: str) -> None:
    if not isinstance(df, pd.DataFrame):
        raise ValueError(
            f"{name} must be a DataFrame, got {type(df).__name__}. "
            f"Did you call build_dataframes() and use the *_df attributes?"
        )
    for col in ['x', 'y']:
        if col not in df.columns:
            raise ValueError(
                f"{name} missing required column '{col}'. "
                f"Available columns: {list(df.columns)}"
            )


def _align(estimated_states: pd.DataFrame, groundtruth_data: pd.DataFrame) -> pd.DataFrame:
    return estimated_states[['x', 'y']].join(
        groundtruth_data[['x', 'y']],
        how='inner',
        rsuffix='_gt'
    )


def _position_errors(aligned: pd.DataFrame) -> pd.Series:
    return np.sqrt(
        (aligned['x'] - aligned['x_gt']) ** 2 +
        (aligned['y'] - aligned['y_gt']) ** 2
    )


def compute_ate(
    estimated_states: pd.DataFrame,
    groundtruth_data: pd.DataFrame,
    verbose: bool = True
) -> float:
    """
    Compute Absolute Trajectory Error (ATE) as the RMSE of position errors.

    Parameters
    ----------
    estimated_states : pd.DataFrame
        Estimated trajectory indexed by time, with columns ['x', 'y'].
        Typically ``ParticleFilterLocalization.states_df``.
    groundtruth_data : pd.DataFrame
        Ground truth trajectory with the same index, columns ['x', 'y'].
        Typically ``ParticleFilterLocalization.gt``.
    verbose : bool, optional
        If True, log alignment and error statistics. Default: True.

    Returns
    -------
    float
        Root Mean Squared Error of position errors in meters.

    Raises
    ------
    ValueError
        If inputs are not DataFrames or miss required columns.
    RuntimeError
        If index alignment produces no matching frames.

    Examples
    --------
    >>> run = ParticleFilterLocalization(simulate_dataset(seed=1), FilterConfig(seed=1))
    >>> run.run()
    >>> run.build_dataframes()
    >>> ate = compute_ate(run.states_df, run.gt)
    """
    _check_trajectory(estimated_states, "estimated_states")
    _check_trajectory(groundtruth_data, "groundtruth_data")

    if verbose:
        logger.info("=" * 60)
        logger.info("ATE Computation: Input Validation")
        logger.info(f"✓ Estimated states: {len(estimated_states)} frames")
        logger.info(f"✓ Ground truth: {len(groundtruth_data)} frames")

    aligned = _align(estimated_states, groundtruth_data)

    if len(aligned) == 0:
        raise RuntimeError(
            "Index alignment produced 0 matching frames! "
            f"Estimated range: [{estimated_states.index.min()}, {estimated_states.index.max()}], "
            f"Ground truth range: [{groundtruth_data.index.min()}, {groundtruth_data.index.max()}]"
        )

    if verbose:
        alignment_pct = len(aligned) / len(estimated_states) * 100
        logger.info(f"✓ Aligned frames: {len(aligned)} ({alignment_pct:.1f}% of estimates)")
        if alignment_pct < 90:
            logger.warning(
                f"⚠ Only {alignment_pct:.1f}% of frames aligned! "
                "Check that both trajectories use the same delta_t."
            )

    errors = _position_errors(aligned)
    ate = float(np.sqrt(np.mean(errors ** 2)))

    if verbose:
        logger.info("=" * 60)
        logger.info("ATE Computation: Error Statistics")
        logger.info(f"✓ Mean error: {np.mean(errors):.4f} m")
        logger.info(f"✓ Max error: {np.max(errors):.4f} m")
        logger.info(f"✓ ATE (RMSE): {ate:.4f} m")
        logger.info("=" * 60)

    return ate


def compute_trajectory_stats(
    estimated_states: pd.DataFrame,
    groundtruth_data: pd.DataFrame
) -> dict:
    """
    Compute detailed trajectory error statistics.

    Returns
    -------
    dict
        'ate', 'mean_error', 'std_error', 'median_error', 'max_error',
        'min_error', 'aligned_frames', 'alignment_ratio'. When both frames
        carry a 'theta' column, 'heading_rmse' is included as well.
    """
    _check_trajectory(estimated_states, "estimated_states")
    _check_trajectory(groundtruth_data, "groundtruth_data")

    aligned = _align(estimated_states, groundtruth_data)
    if len(aligned) == 0:
        raise RuntimeError("No matching timestamps between trajectories")

    errors = _position_errors(aligned)
    stats = {
        'ate': float(np.sqrt(np.mean(errors ** 2))),
        'mean_error': float(np.mean(errors)),
        'std_error': float(np.std(errors)),
        'median_error': float(np.median(errors)),
        'max_error': float(np.max(errors)),
        'min_error': float(np.min(errors)),
        'aligned_frames': len(aligned),
        'alignment_ratio': len(aligned) / len(estimated_states)
    }

    if 'theta' in estimated_states.columns and 'theta' in groundtruth_data.columns:
        headings = estimated_states[['theta']].join(
            groundtruth_data[['theta']], how='inner', rsuffix='_gt'
        )
        heading_errors = angle_diff(headings['theta'].to_numpy(), headings['theta_gt'].to_numpy())
        stats['heading_rmse'] = float(np.sqrt(np.mean(heading_errors ** 2)))

    return stats


def compare_runs(
    runs: dict[str, Tuple[pd.DataFrame, pd.DataFrame]]
) -> pd.DataFrame:
    """
    Compare several localization runs using ATE and other metrics.

    Parameters
    ----------
    runs : dict
        Mapping of run names to (states_df, gt_df) tuples, e.g.
        ``{'N=50': (run50.states_df, run50.gt), 'N=500': (run500.states_df, run500.gt)}``.

    Returns
    -------
    pd.DataFrame
        Columns ['Run', 'ATE', 'Mean Error', 'Std Error', 'Max Error',
        'Aligned Frames'], sorted by ATE (best first).
    """
    results = []

    for name, (states_df, gt_df) in runs.items():
        stats = compute_trajectory_stats(states_df, gt_df)
        results.append({
            'Run': name,
            'ATE': stats['ate'],
            'Mean Error': stats['mean_error'],
            'Std Error': stats['std_error'],
            'Max Error': stats['max_error'],
            'Aligned Frames': stats['aligned_frames']
        })

    df = pd.DataFrame(results)
    return df.sort_values('ATE').reset_index(drop=True)


def compute_dataset_metrics(source, delta_t: float) -> dict:
    """
    Summarize a dataset (``Reader`` or ``SyntheticDataset``).

    Returns
    -------
    dict
        'path_length' (m), 'duration' (s), 'n_landmarks', 'distance'
        (start-to-end, m) and 'm_density' (observations per meter).
    """
    gt = np.asarray(source.groundtruth_data)
    if len(gt) == 0:
        return {
            "path_length": 0.0,
            "duration": 0.0,
            "n_landmarks": len(source.landmark_map),
            "distance": 0.0,
            "m_density": 0,
        }

    dx = np.diff(gt[:, 0])
    dy = np.diff(gt[:, 1])
    path_length = float(np.sum(np.sqrt(dx**2 + dy**2)))
    distance = float(np.linalg.norm(gt[-1, :2] - gt[0, :2]))
    n_observations = sum(len(obs) for obs in source.observations)

    return {
        "path_length": path_length,
        "duration": (len(gt) - 1) * delta_t,
        "n_landmarks": len(source.landmark_map),
        "distance": distance,
        "m_density": n_observations / path_length if path_length > 0 else 0,
    }
