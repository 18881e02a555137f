from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigurationError


@dataclass
class TerrainProfile:
    """A selectable look for the cave; only its tile size matters to generation."""

    name: str
    tile_width: float = 1.0
    tile_height: float = 1.0
    enabled: bool = True


@dataclass
class CaveConfig:
    width: int = 50
    height: int = 30
    wall_probability: float = 0.40
    smoothing_steps: int = 4
    floors_to_wall: int = 4
    walls_to_floor: int = 3
    wall_traversal_cost: float = 1.0
    connect_clusters: bool = True
    fill_disconnected: bool = False
    entrance_clearance: int = 4
    min_distance_fraction: float = 0.3
    min_distance_attempts: int = 3
    min_distance_shrink: float = 0.8
    max_distance_cap: float = 40.0
    max_distance_growth: float = 0.1
    max_distance_samples: int = 2000
    enable_metrics: bool = True
    profiles: List[TerrainProfile] = field(default_factory=lambda: [TerrainProfile("default")])
    seed: Optional[int] = None

    def enabled_profiles(self) -> List[TerrainProfile]:
        return [p for p in self.profiles if p.enabled]

    def validate(self) -> "CaveConfig":
        if self.width <= 0:
            raise ConfigurationError("width", "grid width must be positive", "range")
        if self.height <= 0:
            raise ConfigurationError("height", "grid height must be positive", "range")
        if not 0.0 <= self.wall_probability <= 1.0:
            raise ConfigurationError("wall_probability", "must be within [0, 1]", "range")
        if self.smoothing_steps < 0:
            raise ConfigurationError("smoothing_steps", "must not be negative", "range")
        for name in ("floors_to_wall", "walls_to_floor"):
            if not 0 <= getattr(self, name) <= 8:
                raise ConfigurationError(name, "must be within 0..8", "range")
        if self.wall_traversal_cost < 0:
            raise ConfigurationError("wall_traversal_cost", "must not be negative", "range")
        if self.entrance_clearance < 0:
            raise ConfigurationError("entrance_clearance", "must not be negative", "range")
        if self.min_distance_fraction < 0:
            raise ConfigurationError("min_distance_fraction", "must not be negative", "range")
        if not 0.0 < self.min_distance_shrink < 1.0:
            raise ConfigurationError("min_distance_shrink", "must be within (0, 1)", "range")
        if self.min_distance_attempts < 0 or self.max_distance_samples <= 0:
            raise ConfigurationError("attempts", "search bounds must be positive", "range")
        if not self.enabled_profiles():
            raise ConfigurationError("profiles", "no enabled terrain profile", "no_profile")
        for p in self.enabled_profiles():
            if p.tile_width <= 0 or p.tile_height <= 0:
                raise ConfigurationError("profiles", f"profile {p.name!r} has a non-positive tile size", "range")
        return self

    # Environment keys -> attribute. Mirrors the DUNGEON_* override style used by the web layer.
    ENV_MAP = {
        "CAVE_WIDTH": "width",
        "CAVE_HEIGHT": "height",
        "CAVE_WALL_PROBABILITY": "wall_probability",
        "CAVE_SMOOTHING_STEPS": "smoothing_steps",
        "CAVE_FLOORS_TO_WALL": "floors_to_wall",
        "CAVE_WALLS_TO_FLOOR": "walls_to_floor",
        "CAVE_WALL_TRAVERSAL_COST": "wall_traversal_cost",
        "CAVE_CONNECT_CLUSTERS": "connect_clusters",
        "CAVE_FILL_DISCONNECTED": "fill_disconnected",
        "CAVE_ENABLE_GENERATION_METRICS": "enable_metrics",
    }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, Any]] = None, **overrides) -> "CaveConfig":
        """Build a config from ``CAVE_*`` keys (``os.environ`` by default), then apply overrides.

        ``environ`` may also be a Flask ``app.config`` mapping.
        """
        if environ is None:
            environ = os.environ
        types = {f.name: f.type for f in fields(cls)}
        values: Dict[str, Any] = {}
        for env_key, attr in cls.ENV_MAP.items():
            if env_key not in environ or environ.get(env_key) is None:
                continue
            values[attr] = _coerce(attr, types[attr], environ.get(env_key))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def cache_key(self) -> tuple:
        data = self.to_dict()
        data.pop("seed", None)
        profiles = tuple(tuple(p.values()) for p in data.pop("profiles"))
        return tuple(sorted(data.items())) + (("profiles", profiles),)


def _coerce(attr: str, type_name, raw: Any):
    if isinstance(raw, bool) or not isinstance(raw, str):
        return raw
    type_name = str(type_name)
    if type_name == "bool":
        return raw.strip().lower() not in {"0", "false", "no", ""}
    try:
        if type_name == "int":
            return int(raw)
        if type_name == "float":
            return float(raw)
    except ValueError:
        raise ConfigurationError(attr, f"cannot parse {raw!r} as {type_name}", "type") from None
    return raw


__all__ = ["CaveConfig", "TerrainProfile"]
