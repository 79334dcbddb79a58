from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from terrain.cities import CityRenderContext, get_borders, get_territories
from terrain.contours import contour, get_rivers
from terrain.heightmap import HeightField, trislopes
from terrain.mesh import is_near_edge
from terrain.sampling import runif

# Bottom to top.
LAYER_ORDER = ("field", "points", "slope", "river", "coast", "border", "city")


@dataclass(frozen=True, eq=False)
class Layer:
    """Content of one named drawing layer.

    kind is one of "markers" (items[0] is (n, 2), values are radii), "field"
    (items[0] is (n, 2), values are colours in 0..1), "paths" (one (k, 2)
    array per polyline) or "segments" (items[0] is (n, 2, 2)).
    """

    name: str
    kind: str
    items: tuple[np.ndarray, ...] = ()
    values: np.ndarray | None = None

    @classmethod
    def empty(cls, name: str, kind: str = "paths") -> Layer:
        return cls(name=name, kind=kind)

    @property
    def count(self) -> int:
        if self.kind == "paths":
            return len(self.items)
        return int(self.items[0].shape[0]) if self.items else 0

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def fingerprint(self) -> tuple:
        if self.is_empty:
            return (self.name, 0)
        items = tuple((a.shape, a.tobytes()) for a in self.items)
        vals = None if self.values is None else self.values.tobytes()
        return (self.name, self.kind, items, vals)


class LayerCanvas:
    """Draw surface made of named layers.

    `apply` swaps in a whole frame at once: every layer named in the frame is
    replaced, every layer the frame leaves out is cleared.
    """

    def __init__(self) -> None:
        self._layers: dict[str, Layer] = {}

    def apply(self, frame: Mapping[str, Layer]) -> None:
        layers = {name: Layer.empty(name, old.kind) for name, old in self._layers.items()}
        for name, layer in frame.items():
            if layer.name != name:
                raise ValueError(f"layer {layer.name!r} filed under {name!r}")
            layers[name] = layer
        self._layers = layers

    def layer(self, name: str) -> Layer:
        return self._layers.get(name, Layer.empty(name))

    def drawn(self) -> list[str]:
        """Names of the non-empty layers, bottom to top."""
        return [layer.name for layer in self if not layer.is_empty]

    def fingerprint(self) -> tuple:
        return tuple(layer.fingerprint() for layer in self if not layer.is_empty)

    def __iter__(self) -> Iterator[Layer]:
        known = [n for n in LAYER_ORDER if n in self._layers]
        extra = sorted(n for n in self._layers if n not in LAYER_ORDER)
        for name in known + extra:
            yield self._layers[name]


def points_layer(points: np.ndarray) -> Layer:
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n = pts.shape[0]
    r = 0.1 / math.sqrt(n) if n else 0.0
    return Layer("points", "markers", (pts.copy(),), np.full(n, r, dtype=np.float64))


def field_layer(
    field: HeightField,
    lo: float | None = None,
    hi: float | None = None,
) -> Layer:
    """Colour each mesh vertex by its value mapped into [lo, hi] (clamped).

    Missing bounds default to the data range, padded so constant fields map
    to the middle instead of dividing by zero. A defaulted bound that lands
    on the wrong side of a given one is pulled just past it, so a field lying
    wholly below `lo` draws at the bottom of the range.
    """

    v = field.values
    if v.size == 0:
        return Layer.empty("field", "field")
    if lo is not None and hi is not None:
        lo, hi = float(lo), float(hi)
        if hi <= lo:
            raise ValueError("hi must be greater than lo")
    elif lo is not None:
        lo = float(lo)
        hi = max(float(np.max(v)) + 1e-9, lo + 1e-9)
    elif hi is not None:
        hi = float(hi)
        lo = min(float(np.min(v)) - 1e-9, hi - 1e-9)
    else:
        hi = float(np.max(v)) + 1e-9
        lo = float(np.min(v)) - 1e-9
    mapped = np.clip((v - lo) / (hi - lo), 0.0, 1.0)
    return Layer("field", "field", (np.array(field.mesh.vxs),), mapped)


def paths_layer(name: str, paths: Sequence[np.ndarray]) -> Layer:
    return Layer(name, "paths", tuple(np.asarray(p, dtype=np.float64) for p in paths))


def slopes_layer(h: HeightField, *, rng: np.random.Generator) -> Layer:
    """Hachure strokes across steep land; stroke length follows the slope."""

    mesh = h.mesh
    n = len(h)
    if n == 0:
        return Layer.empty("slope", "segments")
    r = 0.25 / math.sqrt(n)
    ts = trislopes(h)
    near = is_near_edge(mesh)

    strokes: list[tuple[tuple[float, float], tuple[float, float]]] = []
    for i in np.flatnonzero((h.values > 0.0) & ~near).tolist():
        nbs = list(mesh.adj[i]) + [i]
        s = float(np.mean(ts[nbs, 0] / 10.0))
        s2 = float(np.mean(ts[nbs, 1]))
        if abs(s) < runif(0.1, 0.4, rng=rng):
            continue
        length = r * runif(1.0, 2.0, rng=rng) * (1.0 - 0.2 * math.atan(s) ** 2) * math.exp(s2 / 100.0)
        x, y = (float(c) for c in mesh.vxs[i])
        if abs(length * s) > 2.0 * r:
            k = int(math.floor(abs(length * s / r)))
            length /= k
            for _ in range(min(k, 4)):
                u = float(rng.standard_normal()) * r
                v = float(rng.standard_normal()) * r
                strokes.append(
                    ((x + u - length, y + v + length * s), (x + u + length, y + v - length * s))
                )
        else:
            strokes.append(((x - length, y + length * s), (x + length, y - length * s)))

    segs = np.asarray(strokes, dtype=np.float64).reshape(-1, 2, 2)
    return Layer("slope", "segments", (segs,))


def cities_layer(ctx: CityRenderContext) -> Layer:
    """City markers; capitals (the first `nterrs` cities) are drawn larger."""

    if not ctx.cities:
        return Layer.empty("city", "markers")
    pos = np.asarray([c.position for c in ctx.cities], dtype=np.float64)
    radii = np.where(np.arange(len(ctx.cities)) < int(ctx.params.nterrs), 0.010, 0.004)
    return Layer("city", "markers", (pos,), radii.astype(np.float64))


def map_frame(
    ctx: CityRenderContext,
    *,
    river_threshold: float,
    rng: np.random.Generator,
) -> dict[str, Layer]:
    """Full composite map: rivers, coast, borders, hachures and cities."""

    terr = get_territories(ctx)
    return {
        "field": Layer.empty("field", "field"),
        "points": Layer.empty("points", "markers"),
        "river": paths_layer("river", get_rivers(ctx.h, river_threshold)),
        "coast": paths_layer("coast", contour(ctx.h, 0.0)),
        "border": paths_layer("border", get_borders(ctx, terr)),
        "slope": slopes_layer(ctx.h, rng=rng),
        "city": cities_layer(ctx),
    }
