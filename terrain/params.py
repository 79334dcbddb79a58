from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Extent:
    """Map bounds centred on the origin: x in [-w/2, w/2], y in [-h/2, h/2]."""

    width: float = 1.0
    height: float = 1.0


DEFAULT_EXTENT = Extent()


@dataclass(frozen=True)
class MapParams:
    extent: Extent = field(default_factory=Extent)
    npts: int = 16384
    ncities: int = 15
    nterrs: int = 5


DEFAULT_PARAMS = MapParams()
