from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from terrain.params import DEFAULT_EXTENT, Extent, MapParams
from workbench.errors import ConfigurationError


@dataclass(frozen=True)
class WorkbenchConfig:
    """Tunables for one workbench session.

    Defaults reproduce the classic demo page. `seed=None` draws a fresh
    entropy seed when the session starts.
    """

    mesh_points: int = 256
    map_points: int = 4096
    final_points: int = 16384
    erosion_amount: float = 0.1
    river_threshold: float = 0.01
    sea_level_quantile: float = 0.5
    mountain_count: int = 5
    ncities: int = 15
    nterrs: int = 5
    hachure_seed: int = 0
    seed: int | None = None
    extent: Extent = DEFAULT_EXTENT

    def __post_init__(self) -> None:
        for name in ("mesh_points", "map_points", "final_points"):
            if int(getattr(self, name)) <= 0:
                raise ConfigurationError(f"{name} must be >= 1")
        if int(self.mountain_count) < 0:
            raise ConfigurationError("mountain_count must be >= 0")
        if int(self.ncities) < 0 or int(self.nterrs) < 0:
            raise ConfigurationError("ncities and nterrs must be >= 0")
        if not 0.0 <= float(self.erosion_amount) < math.inf:
            raise ConfigurationError("erosion_amount must be a finite number >= 0")
        if not 0.0 <= float(self.river_threshold) < math.inf:
            raise ConfigurationError("river_threshold must be a finite number >= 0")
        if not (0.0 <= float(self.sea_level_quantile) <= 1.0):
            raise ConfigurationError("sea_level_quantile must be in [0, 1]")
        if not (float(self.extent.width) > 0.0 and float(self.extent.height) > 0.0):
            raise ConfigurationError("extent must have a positive size")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> WorkbenchConfig:
        """Build a config from loosely typed values (query params, dicts)."""

        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(raw) - set(known))
        if unknown:
            raise ConfigurationError(f"unknown config keys: {', '.join(unknown)}")

        values: dict[str, Any] = {}
        for name, value in raw.items():
            default = getattr(cls, name)
            try:
                if name == "seed":
                    values[name] = None if value in (None, "") else int(value)
                elif name == "extent":
                    values[name] = value if isinstance(value, Extent) else Extent(*value)
                elif isinstance(default, int):
                    values[name] = int(float(value))
                else:
                    values[name] = float(value)
            except (TypeError, ValueError, OverflowError) as exc:
                raise ConfigurationError(f"invalid value for {name}: {value!r}") from exc
        return cls(**values)

    def with_overrides(self, **changes: Any) -> WorkbenchConfig:
        return replace(self, **changes)

    def map_params(self, npts: int | None = None) -> MapParams:
        return MapParams(
            extent=self.extent,
            npts=int(self.map_points if npts is None else npts),
            ncities=int(self.ncities),
            nterrs=int(self.nterrs),
        )
