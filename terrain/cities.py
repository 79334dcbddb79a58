from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, replace

import numpy as np

from terrain.contours import merge_segments, relax_path
from terrain.heightmap import HeightField
from terrain.hydrology import flux
from terrain.mesh import Mesh, distance, is_near_edge
from terrain.params import DEFAULT_PARAMS, MapParams

UNCLAIMED = -1


@dataclass(frozen=True)
class City:
    vertex: int
    position: tuple[float, float]
    score: float


@dataclass(frozen=True, eq=False)
class CityRenderContext:
    """Height field plus the cities placed on it, in placement order.

    The first `params.nterrs` cities are capitals that own territories.
    """

    params: MapParams
    h: HeightField
    cities: tuple[City, ...] = ()

    @property
    def mesh(self) -> Mesh:
        return self.h.mesh


def new_city_render(h: HeightField, params: MapParams = DEFAULT_PARAMS) -> CityRenderContext:
    return CityRenderContext(params=params, h=h)


def city_score(h: HeightField, cities: tuple[City, ...] = ()) -> HeightField:
    """Site desirability: sqrt(flux), a pull away from the map edges and a
    penalty near existing cities. Sea and border vertices score -999999."""

    mesh = h.mesh
    score = np.sqrt(flux(h))
    x = mesh.vxs[:, 0]
    y = mesh.vxs[:, 1]
    w2 = 0.5 * float(mesh.extent.width)
    h2 = 0.5 * float(mesh.extent.height)
    score = score + 0.01 / (1e-9 + np.abs(x) - w2) + 0.01 / (1e-9 + np.abs(y) - h2)
    everywhere = np.arange(len(mesh))
    for c in cities:
        score = score - 0.02 / (distance(mesh, c.vertex, everywhere) + 1e-9)

    invalid = (h.values <= 0.0) | is_near_edge(mesh)
    score = np.where(invalid, -999999.0, score)
    return HeightField(mesh, score)


def place_city(ctx: CityRenderContext) -> CityRenderContext:
    """Return a context with one more city on the best scoring vertex."""

    score = city_score(ctx.h, ctx.cities).values
    v = int(np.argmax(score))
    pos = ctx.mesh.vxs[v]
    city = City(vertex=v, position=(float(pos[0]), float(pos[1])), score=float(score[v]))
    return replace(ctx, cities=ctx.cities + (city,))


def place_cities(ctx: CityRenderContext) -> CityRenderContext:
    out = ctx
    for _ in range(int(ctx.params.ncities) - len(ctx.cities)):
        out = place_city(out)
    return out


def get_territories(ctx: CityRenderContext) -> np.ndarray:
    """Assign every reachable vertex to the nearest capital by travel cost.

    Travel cost grows with climbing, river crossings and sea travel; crossing
    the coastline is very expensive. Returns the owning city's vertex per mesh
    vertex, UNCLAIMED where no capital reaches (everywhere with no cities).
    """

    h = ctx.h
    mesh = ctx.mesh
    vals = h.values
    n = min(int(ctx.params.nterrs), len(ctx.cities))
    terr = np.full(len(mesh), UNCLAIMED, dtype=np.int64)
    if n == 0:
        return terr

    fl = flux(h)

    def weight(u: int, v: int) -> float:
        horiz = float(distance(mesh, u, v))
        vert = float(vals[v] - vals[u])
        if vert > 0.0:
            vert /= 10.0
        diff = 1.0 + 0.25 * (vert / horiz) ** 2 if horiz > 0.0 else 1.0
        diff += 100.0 * float(np.sqrt(fl[u]))
        if vals[u] <= 0.0:
            diff = 100.0
        if (vals[u] > 0.0) != (vals[v] > 0.0):
            return 1000.0
        return horiz * diff

    tie = itertools.count()
    heap: list[tuple[float, int, int, int]] = []
    for c in ctx.cities[:n]:
        terr[c.vertex] = c.vertex
        for nb in mesh.adj[c.vertex]:
            heapq.heappush(heap, (weight(c.vertex, nb), next(tie), c.vertex, nb))

    while heap:
        cost, _, city, u = heapq.heappop(heap)
        if terr[u] != UNCLAIMED:
            continue
        terr[u] = city
        for v in mesh.adj[u]:
            if terr[v] != UNCLAIMED:
                continue
            heapq.heappush(heap, (cost + weight(u, v), next(tie), city, v))
    return terr


def get_borders(ctx: CityRenderContext, territories: np.ndarray | None = None) -> list[np.ndarray]:
    """Border polylines between land vertices owned by different cities."""

    terr = get_territories(ctx) if territories is None else territories
    mesh = ctx.mesh
    e = mesh.edges
    if e.shape[0] == 0:
        return []
    vals = ctx.h.values
    near = is_near_edge(mesh)
    keep = (
        (e[:, 3] >= 0)
        & ~near[e[:, 0]]
        & ~near[e[:, 1]]
        & (vals[e[:, 0]] >= 0.0)
        & (vals[e[:, 1]] >= 0.0)
        & (terr[e[:, 0]] != terr[e[:, 1]])
    )
    pts = mesh.pts
    segs = [
        (tuple(pts[s0]), tuple(pts[s1]))
        for s0, s1 in zip(e[keep, 2].tolist(), e[keep, 3].tolist())
    ]
    return [relax_path(p) for p in merge_segments(segs)]
