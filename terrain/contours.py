from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from terrain.heightmap import HeightField
from terrain.hydrology import downhill, flux
from terrain.mesh import is_near_edge

Point = tuple[float, float]


def merge_segments(segments: Sequence[tuple[Point, Point]]) -> list[np.ndarray]:
    """Chain segments that share endpoints into polylines.

    A path only grows through points where exactly two segments meet, so
    junctions and dead ends terminate it. Output paths are (k, 2) arrays.
    """

    segs = [(tuple(map(float, a)), tuple(map(float, b))) for a, b in segments]
    touching: dict[Point, list[int]] = {}
    for i, (a, b) in enumerate(segs):
        touching.setdefault(a, []).append(i)
        touching.setdefault(b, []).append(i)

    done = [False] * len(segs)

    def extend(path: list[Point]) -> None:
        end = path[-1]
        while len(touching[end]) == 2:
            nxt = next((i for i in touching[end] if not done[i]), None)
            if nxt is None:
                return
            done[nxt] = True
            a, b = segs[nxt]
            end = b if a == end else a
            path.append(end)

    paths: list[np.ndarray] = []
    for i, (a, b) in enumerate(segs):
        if done[i]:
            continue
        done[i] = True
        path = [a, b]
        extend(path)
        path.reverse()
        extend(path)
        paths.append(np.asarray(path, dtype=np.float64))
    return paths


def relax_path(path: np.ndarray) -> np.ndarray:
    p = np.asarray(path, dtype=np.float64)
    if p.shape[0] < 3:
        return p.copy()
    out = p.copy()
    out[1:-1] = 0.25 * p[:-2] + 0.5 * p[1:-1] + 0.25 * p[2:]
    return out


def contour(h: HeightField, level: float = 0.0) -> list[np.ndarray]:
    """Iso-line at `level`, drawn between the sites on either side of each
    crossing Voronoi edge."""

    mesh = h.mesh
    e = mesh.edges
    if e.shape[0] == 0:
        return []
    level = float(level)
    near = is_near_edge(mesh)
    a = h.values[e[:, 0]]
    b = h.values[e[:, 1]]
    cross = ((a > level) & (b <= level)) | ((b > level) & (a <= level))
    keep = (e[:, 3] >= 0) & ~near[e[:, 0]] & ~near[e[:, 1]] & cross

    pts = mesh.pts
    segs = [
        (tuple(pts[s0]), tuple(pts[s1]))
        for s0, s1 in zip(e[keep, 2].tolist(), e[keep, 3].tolist())
    ]
    return merge_segments(segs)


def get_rivers(h: HeightField, limit: float) -> list[np.ndarray]:
    """River polylines where flux exceeds `limit` (scaled by the land fraction).

    A river entering the sea stops halfway along its last edge.
    """

    mesh = h.mesh
    n = len(h)
    if n == 0:
        return []
    ds = downhill(h)
    fl = flux(h, ds)
    above = int(np.sum(h.values > 0.0))
    limit = float(limit) * above / n

    near = is_near_edge(mesh)
    src = np.flatnonzero(
        ~near & (fl > limit) & (h.values > 0.0) & (ds >= 0)
    )

    links: list[tuple[Point, Point]] = []
    for i in src.tolist():
        j = int(ds[i])
        up = mesh.vxs[i]
        down = mesh.vxs[j]
        if h.values[j] > 0.0:
            links.append((tuple(up), tuple(down)))
        else:
            links.append((tuple(up), tuple(0.5 * (up + down))))
    return [relax_path(p) for p in merge_segments(links)]
