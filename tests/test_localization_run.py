import numpy as np
import pytest

from pf_localization.config import FilterConfig
from pf_localization.data.reader import Reader
from pf_localization.localization.PF import ParticleFilterLocalization


@pytest.fixture
def config():
    return FilterConfig(num_particles=50, seed=3)


def test_run_tracks_the_vehicle(small_dataset, config):
    run = ParticleFilterLocalization(small_dataset, config)
    run.run()
    assert run.states.shape == (60, 4)
    assert run.mean_states.shape == (60, 4)
    assert run.errors.shape == (60, 4)
    assert run.particles_log.shape == (60 * 50, 3)

    summary = run.summary()
    assert summary["steps"] == 60
    assert summary["ate"] < 1.0
    assert summary["ate_mean"] < 1.0
    assert summary["mean_yaw_error"] < 0.1


def test_run_from_disk_matches_the_format(dataset_dir, config):
    run = ParticleFilterLocalization(Reader(dataset_dir), config)
    run.run()
    assert run.summary()["ate"] < 1.0


def test_seeded_runs_are_reproducible(small_dataset, config):
    first = ParticleFilterLocalization(small_dataset, config)
    first.run()
    second = ParticleFilterLocalization(small_dataset, config)
    second.run()
    np.testing.assert_array_equal(first.states, second.states)


def test_build_dataframes(small_dataset, config):
    run = ParticleFilterLocalization(small_dataset, config)
    run.run()
    run.build_dataframes()
    assert len(run.gt) == 60
    assert list(run.states_df.columns) == ["step", "x", "y", "theta"]
    assert list(run.errors_df.columns) == ["step", "x_error", "y_error", "yaw_error"]


def test_summary_before_run_fails(small_dataset, config):
    run = ParticleFilterLocalization(small_dataset, config)
    with pytest.raises(RuntimeError):
        run.summary()


def test_run_with_zero_particles(small_dataset):
    run = ParticleFilterLocalization(small_dataset, FilterConfig(num_particles=0, seed=0))
    run.run()
    assert run.states.shape == (0, 4)
    with pytest.raises(RuntimeError):
        run.summary()
