"""
Marimo UI widget helpers for particle filter parameter controls.

Provides standardized widget creation functions for the parameters of a
localization run: particle count, motion and observation noise, sensor
range, trajectory length and seed. All widgets are designed to work with
Marimo's reactive execution model.

Example:
    import marimo as mo
    from pf_localization.visualization.marimo_helpers import (
        create_particle_filter_controls,
        controls_to_config,
    )

    # Create reactive controls
    pf_controls = create_particle_filter_controls()

    # Use in dependent cell
    config = controls_to_config(pf_controls)
"""

import marimo as mo

from pf_localization.config import FilterConfig


def create_parameter_slider(
    name: str,
    min_val: float,
    max_val: float,
    default: float,
    step: float | None = None,
) -> mo.ui.slider:
    """
    Create a standardized parameter slider with consistent styling.

    Args:
        name: Slider label (e.g., "σ_x (m)")
        min_val: Minimum slider value
        max_val: Maximum slider value
        default: Default/initial value
        step: Step size (default: (max-min)/100)

    Returns:
        Marimo slider widget with show_value=True
    """
    if step is None:
        step = (max_val - min_val) / 100

    return mo.ui.slider(
        min_val,
        max_val,
        value=default,
        step=step,
        label=name,
        show_value=True,
    )


def create_num_steps_slider(
    max_steps: int = 2000, default: int = 500, step: int = 50
) -> mo.ui.slider:
    """
    Create slider for the number of simulated filter steps.

    Example:
        num_steps = create_num_steps_slider()
        dataset = simulate_dataset(num_steps=num_steps.value)
    """
    return mo.ui.slider(
        step,
        max_steps,
        value=default,
        step=step,
        label="Steps",
        show_value=True,
    )


def create_particle_filter_controls(
    num_particles_default: int = 100,
    max_particles: int = 1000,
) -> dict[str, mo.ui.slider]:
    """
    Create sliders for Particle Filter parameters.

    Args:
        num_particles_default: Default number of particles
        max_particles: Maximum particles allowed

    Returns:
        Dictionary with particle count, noise, sensor range and seed widgets.
        Keys: 'num_particles', 'sigma_x', 'sigma_y', 'sigma_theta',
        'sigma_landmark_x', 'sigma_landmark_y', 'sensor_range', 'seed'.

    Example:
        pf_controls = create_particle_filter_controls()
        config = controls_to_config(pf_controls)
    """
    return {
        "num_particles": mo.ui.slider(
            10,
            max_particles,
            value=num_particles_default,
            step=10,
            label="Number of Particles",
            show_value=True,
        ),
        "sigma_x": create_parameter_slider("Position Noise σ_x (m)", 0.01, 2.0, 0.3, 0.01),
        "sigma_y": create_parameter_slider("Position Noise σ_y (m)", 0.01, 2.0, 0.3, 0.01),
        "sigma_theta": create_parameter_slider(
            "Heading Noise σ_θ (rad)", 0.001, 0.5, 0.01, 0.001
        ),
        "sigma_landmark_x": create_parameter_slider(
            "Landmark Noise σ_x (m)", 0.05, 2.0, 0.3, 0.05
        ),
        "sigma_landmark_y": create_parameter_slider(
            "Landmark Noise σ_y (m)", 0.05, 2.0, 0.3, 0.05
        ),
        "sensor_range": create_parameter_slider("Sensor Range (m)", 5.0, 100.0, 50.0, 1.0),
        "seed": mo.ui.number(start=0, stop=2**31 - 1, value=0, step=1, label="Seed"),
    }


def controls_to_config(controls: dict, delta_t: float = 0.1) -> FilterConfig:
    """
    Build a FilterConfig from the widgets of create_particle_filter_controls.

    Args:
        controls: Widget dictionary
        delta_t: Step duration (s)

    Returns:
        Validated FilterConfig
    """
    return FilterConfig(
        num_particles=int(controls["num_particles"].value),
        delta_t=delta_t,
        sensor_range=float(controls["sensor_range"].value),
        sigma_pos=(
            controls["sigma_x"].value,
            controls["sigma_y"].value,
            controls["sigma_theta"].value,
        ),
        sigma_landmark=(
            controls["sigma_landmark_x"].value,
            controls["sigma_landmark_y"].value,
        ),
        seed=int(controls["seed"].value),
    )


def create_time_scrubber(max_timesteps: int, default: int = 0) -> mo.ui.slider:
    """
    Create a time scrubber slider for trajectory playback.

    Args:
        max_timesteps: Maximum number of timesteps
        default: Starting timestep (default: 0)

    Returns:
        Marimo slider for time scrubbing

    Example:
        time_slider = create_time_scrubber(len(run.states))
        # In dependent cell:
        trajectory_up_to_now = run.states[:time_slider.value+1]
    """
    return mo.ui.slider(
        0,
        max(max_timesteps - 1, 1),
        value=default,
        step=1,
        label="Trajectory Progress",
        show_value=True,
    )


def build_control_panel(widgets: dict):
    """
    Build a standardized vertical control panel from widgets.

    Args:
        widgets: Dictionary of {label: widget}; labels starting with "##"
            are rendered as section headers.

    Returns:
        Marimo vstack containing labeled widgets

    Example:
        controls = build_control_panel({
            "## Filter": None,
            "Particles": pf_controls["num_particles"],
            "Sensor range": pf_controls["sensor_range"],
        })
    """
    elements = []
    for label, widget in widgets.items():
        if label.startswith("##"):  # Section header
            elements.append(mo.md(label))
        else:
            elements.append(widget)

    return mo.vstack(elements)
