from __future__ import annotations

from pathlib import Path

import pytest

from birbs.sim.core.config import BoundsConfig, FlockConfig, SimulationConfig, load_config
from birbs.sim.core.errors import BirbsError, ConfigurationError
from birbs.sim.core.world import World

ROOT = Path(__file__).resolve().parents[2]


def test_defaults_match_reference_flock():
    config = SimulationConfig()
    flock = config.flock
    assert flock.alignment_weight == 1.0
    assert flock.cohesion_weight == 1.0
    assert flock.separation_weight == 1.5
    assert flock.speed == 100.0
    assert flock.max_steer == 2.0
    assert flock.agent_radius == 32.0
    assert flock.neighbor_radius == 90.0
    assert flock.separation_radius == 50.0
    assert flock.population_size == 500
    assert config.time_step == pytest.approx(1.0 / 60.0)
    assert (config.bounds.half_width, config.bounds.half_height) == (800.0, 450.0)
    config.validate()


def test_shipped_yaml_matches_defaults():
    config = SimulationConfig.from_yaml(ROOT / "configs" / "default.yaml")
    assert config == SimulationConfig()


def test_yaml_overrides_nested_sections(tmp_path):
    path = tmp_path / "flock.yaml"
    path.write_text(
        "seed: 7\n"
        "initial_velocity: legacy\n"
        "flock:\n"
        "  population_size: 12\n"
        "  separation_radius: 20.0\n"
        "bounds:\n"
        "  half_width: 320\n"
    )
    config = SimulationConfig.from_yaml(path)
    assert config.seed == 7
    assert config.initial_velocity == "legacy"
    assert config.flock.population_size == 12
    assert config.flock.separation_radius == 20.0
    assert config.flock.neighbor_radius == 90.0
    assert config.bounds.half_width == 320
    assert config.bounds.half_height == 450.0


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert SimulationConfig.from_yaml(path) == SimulationConfig()


@pytest.mark.parametrize(
    "raw",
    [
        {"flock": {"neighbour_radius": 10.0}},
        {"bounds": {"width": 10.0}},
        {"physics_step": 0.1},
    ],
)
def test_unknown_keys_are_rejected(raw):
    with pytest.raises(ConfigurationError):
        load_config(raw)


@pytest.mark.parametrize(
    "flock, param",
    [
        (FlockConfig(neighbor_radius=0.0), "flock.neighbor_radius"),
        (FlockConfig(separation_radius=-1.0), "flock.separation_radius"),
        (FlockConfig(speed=0.0), "flock.speed"),
        (FlockConfig(max_steer=-2.0), "flock.max_steer"),
        (FlockConfig(agent_radius=0.0), "flock.agent_radius"),
        (FlockConfig(cohesion_weight=-0.1), "flock.cohesion_weight"),
        (FlockConfig(separation_radius=float("nan")), "flock.separation_radius"),
        (FlockConfig(population_size=-1), "flock.population_size"),
        (FlockConfig(population_size=2.5), "flock.population_size"),
    ],
)
def test_invalid_flock_parameters_rejected_at_world_creation(flock, param):
    config = SimulationConfig(flock=flock)
    with pytest.raises(ConfigurationError) as excinfo:
        World(config)
    assert excinfo.value.param_name == param
    assert param in str(excinfo.value)


def test_invalid_simulation_parameters_rejected():
    with pytest.raises(ConfigurationError):
        SimulationConfig(time_step=0.0).validate()
    with pytest.raises(ConfigurationError):
        SimulationConfig(initial_velocity="random").validate()
    with pytest.raises(ConfigurationError):
        SimulationConfig(workers=0).validate()
    with pytest.raises(ConfigurationError):
        SimulationConfig(bounds=BoundsConfig(half_width=0.0)).validate()


def test_configuration_error_is_a_value_error():
    error = ConfigurationError("speed", "must be > 0")
    assert isinstance(error, BirbsError)
    assert isinstance(error, ValueError)
    assert str(error) == "Invalid configuration for 'speed': must be > 0"

    generic = ConfigurationError("bad settings")
    assert generic.param_name is None
    assert str(generic) == "bad settings"


def test_zero_weights_are_valid():
    SimulationConfig(flock=FlockConfig(alignment_weight=0.0, cohesion_weight=0.0, separation_weight=0.0)).validate()


@pytest.mark.parametrize(
    "raw, param",
    [
        ({"flock": {"neighbor_radius": "90"}}, "flock.neighbor_radius"),
        ({"flock": {"separation_weight": "1.5"}}, "flock.separation_weight"),
        ({"flock": {"population_size": "500"}}, "flock.population_size"),
        ({"flock": {"speed": True}}, "flock.speed"),
        ({"workers": "2"}, "workers"),
        ({"workers": True}, "workers"),
        ({"time_step": None}, "time_step"),
        ({"bounds": {"half_height": "450"}}, "bounds.half_height"),
    ],
)
def test_wrongly_typed_values_are_configuration_errors(raw, param):
    config = load_config(raw)
    with pytest.raises(ConfigurationError) as excinfo:
        config.validate()
    assert excinfo.value.param_name == param
