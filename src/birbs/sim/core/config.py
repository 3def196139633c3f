from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ConfigurationError

INITIAL_VELOCITY_MODES = ("speed", "legacy")


@dataclass
class FlockConfig:
    alignment_weight: float = 1.0
    cohesion_weight: float = 1.0
    separation_weight: float = 1.5
    speed: float = 100.0
    max_steer: float = 2.0
    agent_radius: float = 32.0
    neighbor_radius: float = 90.0
    separation_radius: float = 50.0
    population_size: int = 500


@dataclass
class BoundsConfig:
    # Half-extents of a 1600x900 viewport centred at the origin.
    half_width: float = 800.0
    half_height: float = 450.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    seed: int = 42
    initial_velocity: str = "speed"
    workers: int = 1
    config_version: str = "v1"
    flock: FlockConfig = field(default_factory=FlockConfig)
    bounds: BoundsConfig = field(default_factory=BoundsConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def validate(self) -> None:
        flock = self.flock
        _require_positive("flock.neighbor_radius", flock.neighbor_radius)
        _require_positive("flock.separation_radius", flock.separation_radius)
        _require_positive("flock.speed", flock.speed)
        _require_positive("flock.max_steer", flock.max_steer)
        _require_positive("flock.agent_radius", flock.agent_radius)
        for name in ("alignment_weight", "cohesion_weight", "separation_weight"):
            value = getattr(flock, name)
            if not _is_real(value) or not math.isfinite(value) or value < 0.0:
                raise ConfigurationError(f"flock.{name}", f"must be a finite value >= 0, got {value!r}")
        _require_int("flock.population_size", flock.population_size, minimum=0)
        validate_bounds(self.bounds.half_width, self.bounds.half_height)
        _require_positive("time_step", self.time_step)
        if self.initial_velocity not in INITIAL_VELOCITY_MODES:
            raise ConfigurationError(
                "initial_velocity", f"must be one of {', '.join(INITIAL_VELOCITY_MODES)}, got {self.initial_velocity!r}"
            )
        _require_int("workers", self.workers, minimum=1)


def validate_bounds(half_width: float, half_height: float) -> None:
    _require_positive("bounds.half_width", half_width)
    _require_positive("bounds.half_height", half_height)


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_positive(name: str, value: float) -> None:
    if not _is_real(value) or not math.isfinite(value) or value <= 0.0:
        raise ConfigurationError(name, f"must be a finite value > 0, got {value!r}")


def _require_int(name: str, value: int, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(name, f"must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(name, f"must be >= {minimum}, got {value}")


def _section(cls: type, raw: Dict[str, Any] | None, name: str) -> Any:
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(name, f"expected a mapping, got {type(raw).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(name, f"unknown keys: {', '.join(unknown)}")
    return cls(**raw)


def load_config(raw: dict) -> SimulationConfig:
    flock = _section(FlockConfig, raw.get("flock"), "flock")
    bounds = _section(BoundsConfig, raw.get("bounds"), "bounds")
    sim_values = {k: v for k, v in raw.items() if k not in {"flock", "bounds"}}
    known = {f.name for f in fields(SimulationConfig)} - {"flock", "bounds"}
    unknown = sorted(set(sim_values) - known)
    if unknown:
        raise ConfigurationError("simulation", f"unknown keys: {', '.join(unknown)}")
    return SimulationConfig(flock=flock, bounds=bounds, **sim_values)
