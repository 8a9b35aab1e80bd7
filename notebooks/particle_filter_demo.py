import marimo

__generated_with = "0.16.5"
app = marimo.App(width="full")


@app.cell(hide_code=True)
def _(mo):
    mo.md(
        r"""
    # Particle Filter Localization with a Known Landmark Map

    **Learning Objectives**:
    - Understand how a particle set represents the pose posterior
    - See how noisy motion commands spread the particles (prediction)
    - See how observations of unlabelled landmarks concentrate them (weighting)
    - Observe resampling fighting degeneracy

    **Session Structure**:
    1. **Dataset**: Simulate a vehicle driving through a landmark field
    2. **Filter Run**: Replay the dataset through the particle filter
    3. **Evaluation**: Compare best-particle and weighted-mean estimates
    4. **Inspection**: Scrub through the run and look at associations
    """
    )
    return


@app.cell(hide_code=True)
def _():
    import logging

    import matplotlib.pyplot as plt

    from pf_localization.config import FilterConfig
    from pf_localization.data.simulation import simulate_dataset
    from pf_localization.localization.PF import ParticleFilterLocalization
    from pf_localization.utils.metrics import compare_runs, compute_dataset_metrics
    from pf_localization.visualization import marimo_helpers as mh
    from pf_localization.visualization.plotting import plot_particles

    logging.basicConfig(level=logging.INFO)
    return (
        FilterConfig,
        ParticleFilterLocalization,
        compare_runs,
        compute_dataset_metrics,
        mh,
        plot_particles,
        plt,
        simulate_dataset,
    )


@app.cell
def _():
    import marimo as mo
    return (mo,)


@app.cell
def _(mh, mo):
    # Interactive controls: particle count, noise levels, sensor range and seed
    pf_controls = mh.create_particle_filter_controls()
    num_steps_slider = mh.create_num_steps_slider()

    mh.build_control_panel(
        {
            "## Dataset": None,
            "Steps": num_steps_slider,
            "## Filter": None,
            **{key: widget for key, widget in pf_controls.items()},
        }
    )
    return num_steps_slider, pf_controls


@app.cell
def _(compute_dataset_metrics, mh, num_steps_slider, pf_controls, simulate_dataset):
    config = mh.controls_to_config(pf_controls)
    dataset = simulate_dataset(
        num_steps=num_steps_slider.value,
        delta_t=config.delta_t,
        sensor_range=config.sensor_range,
        sigma_landmark=config.sigma_landmark,
        seed=config.seed,
    )
    compute_dataset_metrics(dataset, config.delta_t)
    return config, dataset


@app.cell
def _(ParticleFilterLocalization, config, dataset, plt):
    run = ParticleFilterLocalization(dataset, config)
    run.run()

    plt.figure(figsize=(10, 8))
    run.plot_data()
    plt.gca()
    return (run,)


@app.cell
def _(run):
    run.summary()
    return


@app.cell(hide_code=True)
def _(mo):
    mo.md(
        r"""
    ## Effect of the particle count

    More particles cover the posterior better at a linear cost per cycle.
    The table below reruns the same dataset with different particle counts.
    """
    )
    return


@app.cell
def _(FilterConfig, ParticleFilterLocalization, compare_runs, config, dataset):
    _runs = {}
    for _n in (10, 50, 100, 300):
        _cfg = FilterConfig(
            num_particles=_n,
            delta_t=config.delta_t,
            sensor_range=config.sensor_range,
            sigma_pos=config.sigma_pos,
            sigma_landmark=config.sigma_landmark,
            seed=config.seed,
        )
        _run = ParticleFilterLocalization(dataset, _cfg)
        _run.run()
        _run.build_dataframes()
        _runs[f"N={_n}"] = (_run.states_df, _run.gt)

    compare_runs(_runs)
    return


@app.cell
def _(mh, run):
    time_slider = mh.create_time_scrubber(len(run.states))
    time_slider
    return (time_slider,)


@app.cell
def _(ParticleFilterLocalization, config, dataset, plot_particles, plt, time_slider):
    # Replay up to the selected step and show the particle cloud with the
    # associations of the best particle
    from pf_localization.data.simulation import SyntheticDataset

    _partial = SyntheticDataset(
        landmark_map=dataset.landmark_map,
        control_data=dataset.control_data[: time_slider.value + 1],
        groundtruth_data=dataset.groundtruth_data[: time_slider.value + 1],
        observations=dataset.observations[: time_slider.value + 1],
        delta_t=dataset.delta_t,
    )
    _replay = ParticleFilterLocalization(_partial, config)
    _replay.run()
    _best = _replay.filter.best_particle()

    plt.figure(figsize=(10, 8))
    plot_particles(
        _replay.filter.particles,
        dataset.landmark_map,
        estimate=_replay.filter.estimate(),
        ground_truth=_partial.groundtruth_data[-1],
        particle=_best,
    )
    plt.gca()
    return


if __name__ == "__main__":
    app.run()
