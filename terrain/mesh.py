from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.spatial import QhullError, Voronoi

from terrain.params import DEFAULT_EXTENT, Extent
from terrain.sampling import generate_points


def _frozen(a: np.ndarray) -> np.ndarray:
    out = np.array(a)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class PointSet:
    """Raw sample points, the artifact held by the mesh panel."""

    points: np.ndarray
    extent: Extent = DEFAULT_EXTENT

    def __len__(self) -> int:
        return int(self.points.shape[0])


@dataclass(frozen=True, eq=False)
class Mesh:
    """Voronoi diagram of `pts`, clipped to `extent`.

    Mesh vertices are the Voronoi corners (`vxs`); height fields store one
    value per vertex. `edges` rows are (v0, v1, left_site, right_site), with
    right_site = -1 on the extent boundary. `nbrs` is `adj` padded with -1.
    """

    pts: np.ndarray
    vxs: np.ndarray
    adj: tuple[tuple[int, ...], ...]
    nbrs: np.ndarray
    degree: np.ndarray
    edges: np.ndarray
    tris: tuple[tuple[int, ...], ...]
    extent: Extent = DEFAULT_EXTENT

    def __len__(self) -> int:
        return int(self.vxs.shape[0])


def _check_points(points: np.ndarray, extent: Extent) -> np.ndarray:
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError("points must have shape (n, 2)")
    if pts.shape[0] == 0:
        raise ValueError("points must not be empty")
    w2 = 0.5 * float(extent.width)
    h2 = 0.5 * float(extent.height)
    tol = 1e-9
    if bool(np.any(np.abs(pts[:, 0]) > w2 + tol)) or bool(
        np.any(np.abs(pts[:, 1]) > h2 + tol)
    ):
        raise ValueError("points must lie inside the extent")
    return pts


def _bounded_voronoi(pts: np.ndarray, extent: Extent) -> Voronoi:
    """Voronoi of the points plus their mirror images across the four edges.

    The mirrored sites close every original cell exactly on the extent
    boundary, which clips the diagram without any polygon clipping.
    """

    w2 = 0.5 * float(extent.width)
    h2 = 0.5 * float(extent.height)
    x = pts[:, 0]
    y = pts[:, 1]
    mirrored = np.vstack(
        [
            pts,
            np.column_stack([-2.0 * w2 - x, y]),
            np.column_stack([2.0 * w2 - x, y]),
            np.column_stack([x, -2.0 * h2 - y]),
            np.column_stack([x, 2.0 * h2 - y]),
        ]
    )
    try:
        return Voronoi(mirrored)
    except QhullError as exc:
        raise ValueError("degenerate point set") from exc


def _sort_ccw(center: np.ndarray, coords: np.ndarray) -> np.ndarray:
    ang = np.arctan2(coords[:, 1] - center[1], coords[:, 0] - center[0])
    return np.argsort(ang, kind="mergesort")


def voronoi_cells(
    points: np.ndarray, extent: Extent = DEFAULT_EXTENT
) -> list[np.ndarray]:
    """Clipped Voronoi polygon (counter-clockwise vertex array) per point."""

    pts = _check_points(points, extent)
    vor = _bounded_voronoi(pts, extent)
    cells: list[np.ndarray] = []
    for i in range(pts.shape[0]):
        region = [v for v in vor.regions[int(vor.point_region[i])] if v >= 0]
        poly = vor.vertices[np.asarray(region, dtype=np.int64)]
        cells.append(poly[_sort_ccw(poly.mean(axis=0), poly)])
    return cells


def _polygon_centroid(poly: np.ndarray) -> np.ndarray:
    x = poly[:, 0]
    y = poly[:, 1]
    xn = np.roll(x, -1)
    yn = np.roll(y, -1)
    cross = x * yn - xn * y
    area = 0.5 * float(np.sum(cross))
    if abs(area) < 1e-15:
        return poly.mean(axis=0)
    cx = float(np.sum((x + xn) * cross)) / (6.0 * area)
    cy = float(np.sum((y + yn) * cross)) / (6.0 * area)
    return np.array([cx, cy], dtype=np.float64)


def improve_points(
    points: np.ndarray,
    n: int = 1,
    extent: Extent = DEFAULT_EXTENT,
) -> np.ndarray:
    """Lloyd relaxation: move each point to the centroid of its cell.

    Returns a new array with the same number of points.
    """

    n = int(n)
    if n < 0:
        raise ValueError("n must be >= 0")

    out = _check_points(points, extent).copy()
    for _ in range(n):
        cells = voronoi_cells(out, extent)
        out = np.array([_polygon_centroid(c) for c in cells], dtype=np.float64)
    return out


def generate_good_points(
    n: int,
    extent: Extent = DEFAULT_EXTENT,
    *,
    rng: np.random.Generator,
) -> np.ndarray:
    pts = generate_points(n, extent, rng=rng)
    pts = pts[np.argsort(pts[:, 0], kind="mergesort")]
    return improve_points(pts, 1, extent)


def make_mesh(points: np.ndarray, extent: Extent = DEFAULT_EXTENT) -> Mesh:
    pts = _check_points(points, extent)
    n = int(pts.shape[0])
    vor = _bounded_voronoi(pts, extent)

    rp = np.asarray(vor.ridge_points, dtype=np.int64)
    rv = np.asarray(vor.ridge_vertices, dtype=np.int64)

    # Ridges touching at least one original site; they are all finite.
    keep = (rp[:, 0] < n) | (rp[:, 1] < n)
    rp = rp[keep]
    rv = rv[keep]
    keep = (rv[:, 0] >= 0) & (rv[:, 1] >= 0) & (rv[:, 0] != rv[:, 1])
    rp = rp[keep]
    rv = rv[keep]

    swap = rp[:, 0] >= n
    rp[swap] = rp[swap][:, ::-1]
    left = rp[:, 0]
    right = np.where(rp[:, 1] < n, rp[:, 1], -1)

    used = np.unique(rv.reshape(-1))
    remap = np.full(int(vor.vertices.shape[0]), -1, dtype=np.int64)
    remap[used] = np.arange(used.size, dtype=np.int64)
    v0 = remap[rv[:, 0]]
    v1 = remap[rv[:, 1]]
    vxs = np.asarray(vor.vertices[used], dtype=np.float64)
    m = int(vxs.shape[0])

    adj: list[list[int]] = [[] for _ in range(m)]
    tris: list[list[int]] = [[] for _ in range(m)]
    for a, b, s0, s1 in zip(v0.tolist(), v1.tolist(), left.tolist(), right.tolist()):
        adj[a].append(b)
        adj[b].append(a)
        for v in (a, b):
            for s in (s0, s1):
                if s >= 0 and s not in tris[v]:
                    tris[v].append(s)

    sorted_tris: list[tuple[int, ...]] = []
    for v in range(m):
        sites = np.asarray(tris[v], dtype=np.int64)
        if sites.size:
            sites = sites[_sort_ccw(vxs[v], pts[sites])]
        sorted_tris.append(tuple(int(s) for s in sites))

    degree = np.array([len(a) for a in adj], dtype=np.int64)
    width = int(degree.max()) if m else 0
    nbrs = np.full((m, width), -1, dtype=np.int64)
    for v, a in enumerate(adj):
        nbrs[v, : len(a)] = a

    edges = np.column_stack([v0, v1, left, right]).astype(np.int64)

    return Mesh(
        pts=_frozen(pts),
        vxs=_frozen(vxs),
        adj=tuple(tuple(a) for a in adj),
        nbrs=_frozen(nbrs),
        degree=_frozen(degree),
        edges=_frozen(edges),
        tris=tuple(sorted_tris),
        extent=extent,
    )


def generate_good_mesh(
    n: int,
    extent: Extent = DEFAULT_EXTENT,
    *,
    rng: np.random.Generator,
) -> Mesh:
    return make_mesh(generate_good_points(n, extent, rng=rng), extent)


def is_edge(mesh: Mesh) -> np.ndarray:
    """Vertices with fewer than three neighbours (the extent corners)."""
    return np.asarray(mesh.degree) < 3


def is_near_edge(mesh: Mesh) -> np.ndarray:
    x = mesh.vxs[:, 0]
    y = mesh.vxs[:, 1]
    w = float(mesh.extent.width)
    h = float(mesh.extent.height)
    return (x < -0.45 * w) | (x > 0.45 * w) | (y < -0.45 * h) | (y > 0.45 * h)


def distance(mesh: Mesh, i: int, j: np.ndarray | int) -> np.ndarray | float:
    d = mesh.vxs[np.asarray(j)] - mesh.vxs[int(i)]
    return np.sqrt(np.sum(d * d, axis=-1))
