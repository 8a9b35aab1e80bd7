import numpy as np
import pytest

from pf_localization.config import ConfigurationError
from pf_localization.localization.PF import ParticleFilter
from pf_localization.localization.particles import ParticleSet

STD_POS = [0.3, 0.3, 0.01]
STD_LANDMARK = [0.3, 0.3]


def exact_observations(pose, landmark_map):
    deltas = landmark_map.positions - np.asarray(pose[:2])
    cos_t, sin_t = np.cos(pose[2]), np.sin(pose[2])
    return np.column_stack(
        (cos_t * deltas[:, 0] + sin_t * deltas[:, 1],
         -sin_t * deltas[:, 0] + cos_t * deltas[:, 1])
    )


@pytest.fixture
def pf():
    pf = ParticleFilter(seed=42)
    pf.init(2.0, 3.0, 0.1, STD_POS, num_particles=50)
    return pf


def test_init(pf):
    assert pf.is_initialized
    assert pf.num_particles == 50
    assert np.all(pf.particles.weights == 1.0)


def test_init_is_idempotent(pf):
    poses = pf.particles.poses.copy()
    pf.init(100.0, 100.0, 1.0, STD_POS, num_particles=10)
    assert pf.num_particles == 50
    np.testing.assert_array_equal(pf.particles.poses, poses)


@pytest.mark.parametrize(
    "args, kwargs",
    [
        ((0.0, 0.0, 0.0, STD_POS), {"num_particles": -1}),
        ((float("nan"), 0.0, 0.0, STD_POS), {}),
        ((0.0, 0.0, 0.0, [0.3, 0.3]), {}),
        ((0.0, 0.0, 0.0, [0.3, -0.3, 0.01]), {}),
    ],
)
def test_init_rejects_malformed_input(args, kwargs):
    pf = ParticleFilter(seed=0)
    with pytest.raises(ConfigurationError):
        pf.init(*args, **kwargs)
    assert not pf.is_initialized


def test_step_keeps_cardinality_and_non_negative_weights(pf, triangle_map):
    for _ in range(5):
        particles = pf.step(0.1, STD_POS, 1.0, 0.1, 50.0, STD_LANDMARK,
                            [[8.0, -3.0], [-2.0, 7.0]], triangle_map)
        assert len(particles) == 50
        assert np.all(particles.weights >= 0.0)


def test_step_reports_associations(triangle_map):
    pose = np.array([2.0, 3.0, 0.0])
    pf = ParticleFilter(seed=1)
    pf.init(*pose, [0.05, 0.05, 0.001], num_particles=20)
    pf.step(0.1, [0.0, 0.0, 0.0], 0.0, 0.0, 50.0, STD_LANDMARK,
            exact_observations(pose, triangle_map), triangle_map)
    best = pf.best_particle()
    assert pf.get_associations(best) == "1 2 3"
    assert len(pf.get_sense_coord(best, "X").split()) == 3
    assert pf.get_sense_coord(best, "Y").split() == ["0.0", "0.0", "10.0"]


def test_zero_observations_leave_weights_at_one(pf, triangle_map):
    pf.prediction(0.1, STD_POS, 1.0, 0.0)
    pf.update_weights(50.0, STD_LANDMARK, [], triangle_map)
    np.testing.assert_array_equal(pf.particles.weights, np.ones(50))
    assert pf.get_associations(pf.best_particle()) == ""


def test_update_weights_accepts_raw_landmark_records(pf):
    pf.update_weights(50.0, STD_LANDMARK, [[1.0, 1.0]], [(1, 3.0, 4.0), (2, 20.0, 20.0)])
    assert pf.best_particle().associations == [1]


def test_operations_validate_their_inputs(pf, triangle_map):
    with pytest.raises(ConfigurationError):
        pf.prediction(0.0, STD_POS, 1.0, 0.1)
    with pytest.raises(ConfigurationError):
        pf.prediction(0.1, [0.3, 0.3, -1.0], 1.0, 0.1)
    with pytest.raises(ConfigurationError):
        pf.prediction(0.1, STD_POS, float("inf"), 0.1)
    with pytest.raises(ConfigurationError):
        pf.update_weights(50.0, [0.0, 0.3], [[1.0, 1.0]], triangle_map)
    with pytest.raises(ConfigurationError):
        pf.update_weights(-1.0, STD_LANDMARK, [[1.0, 1.0]], triangle_map)
    with pytest.raises(ConfigurationError):
        pf.update_weights(50.0, STD_LANDMARK, [[1.0, 1.0, 1.0]], triangle_map)


def test_empty_filter_is_a_no_op(triangle_map):
    pf = ParticleFilter(seed=0)
    pf.init(0.0, 0.0, 0.0, STD_POS, num_particles=0)
    particles = pf.step(0.1, STD_POS, 1.0, 0.1, 50.0, STD_LANDMARK,
                        [[1.0, 1.0]], triangle_map)
    assert len(particles) == 0
    assert pf.best_particle() is None
    assert pf.estimate() is None
    assert pf.effective_sample_size() == 0.0


def test_seeded_filters_are_reproducible(triangle_map):
    runs = []
    for _ in range(2):
        pf = ParticleFilter(seed=123)
        pf.init(1.0, 1.0, 0.0, STD_POS, num_particles=30)
        for _ in range(3):
            pf.step(0.1, STD_POS, 2.0, 0.2, 50.0, STD_LANDMARK,
                    [[-1.0, -1.0], [9.0, -1.0]], triangle_map)
        runs.append(pf.particles.poses.copy())
    np.testing.assert_array_equal(runs[0], runs[1])


def test_filter_accepts_an_external_generator():
    rng = np.random.default_rng(5)
    pf = ParticleFilter(rng=rng)
    assert pf.rng is rng


def test_spawned_generators_are_reproducible():
    children_a = ParticleFilter(seed=9).spawn_generators(2)
    children_b = ParticleFilter(seed=9).spawn_generators(2)
    assert len(children_a) == 2
    assert children_a[0].random() == children_b[0].random()
    assert children_a[0].random() != children_a[1].random()


def test_estimate_uses_circular_mean_heading():
    pf = ParticleFilter(seed=0)
    pf.particles = ParticleSet([[0.0, 0.0, np.pi - 0.1], [2.0, 4.0, -np.pi + 0.1]])
    x, y, theta = pf.estimate()
    assert x == pytest.approx(1.0)
    assert y == pytest.approx(2.0)
    assert abs(theta) == pytest.approx(np.pi)


def test_estimate_is_weighted():
    pf = ParticleFilter(seed=0)
    pf.particles = ParticleSet([[0.0, 0.0, 0.0], [4.0, 0.0, 0.0]], weights=[3.0, 1.0])
    assert pf.estimate()[0] == pytest.approx(1.0)
    pf.particles = pf.particles.with_weights([0.0, 0.0])
    assert pf.estimate()[0] == pytest.approx(2.0)


def test_effective_sample_size_after_init(pf):
    assert pf.effective_sample_size() == pytest.approx(50.0)


def test_set_associations_updates_the_stored_particle(pf):
    particle = pf.particles[4]
    pf.set_associations(particle, [1, 2], [10.0, 0.5], [0.0, 2.25])
    assert pf.get_associations(particle) == "1 2"
    assert pf.get_sense_coord(particle, "X") == "10.0 0.5"
    assert pf.get_sense_coord(particle, "Y") == "0.0 2.25"
    assert pf.particles[4].associations == [1, 2]


def test_set_associations_requires_equal_lengths(pf):
    with pytest.raises(ConfigurationError):
        pf.set_associations(pf.particles[0], [1, 2], [0.0], [0.0, 1.0])


def test_get_sense_coord_rejects_unknown_axis(pf):
    with pytest.raises(ValueError):
        pf.get_sense_coord(pf.particles[0], "Z")


def test_step_survives_overflowing_weights(dense_grid_map):
    pose = np.array([45.0, 45.0, 0.0])
    pf = ParticleFilter(seed=2)
    pf.init(*pose, [0.0, 0.0, 0.0], num_particles=20)
    particles = pf.step(0.1, [0.0, 0.0, 0.0], 0.0, 0.0, 100.0, [1e-3, 1e-3],
                        exact_observations(pose, dense_grid_map), dense_grid_map)
    assert len(particles) == 20
    assert np.all(particles.weights >= 0.0)
    np.testing.assert_allclose(pf.estimate(), pose)
    assert pf.effective_sample_size() == pytest.approx(20.0)


def test_step_with_sharp_noise_keeps_particles_near_the_truth(dense_grid_map):
    pose = np.array([45.0, 45.0, 0.0])
    pf = ParticleFilter(seed=3)
    pf.init(*pose, [0.01, 0.01, 0.0001], num_particles=50)
    pf.step(0.1, [0.001, 0.001, 0.00001], 0.0, 0.0, 100.0, [1e-3, 1e-3],
            exact_observations(pose, dense_grid_map), dense_grid_map)
    assert pf.num_particles == 50
    np.testing.assert_allclose(pf.estimate()[:2], pose[:2], atol=0.1)


def test_set_associations_on_a_particle_from_an_earlier_cycle(pf, triangle_map):
    earlier = pf.particles[0]
    pf.step(0.1, STD_POS, 5.0, 0.3, 50.0, STD_LANDMARK, [[8.0, -3.0]], triangle_map)
    poses = pf.particles.poses.copy()
    weights = pf.particles.weights.copy()

    pf.set_associations(earlier, [1], [0.0], [0.0])

    np.testing.assert_array_equal(pf.particles.poses, poses)
    np.testing.assert_array_equal(pf.particles.weights, weights)
    assert pf.particles[0].associations == [1]
    assert earlier.associations == [1]


def test_estimate_with_overflowed_weights():
    pf = ParticleFilter(seed=0)
    pf.particles = ParticleSet(
        [[0.0, 0.0, 0.0], [2.0, 2.0, 0.0], [100.0, 100.0, 1.0]],
        weights=[np.inf, np.inf, 1e300],
    )
    np.testing.assert_allclose(pf.estimate(), [1.0, 1.0, 0.0])
