from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from terrain.mesh import Mesh


@dataclass(frozen=True, eq=False)
class HeightField:
    """One scalar per vertex of `mesh`.

    The values array is copied and made read-only on construction; every
    operation in this module returns a new field.
    """

    mesh: Mesh
    values: np.ndarray

    def __post_init__(self) -> None:
        v = np.array(self.values, dtype=np.float64)
        if v.shape != (len(self.mesh),):
            raise ValueError("values must have one entry per mesh vertex")
        v.setflags(write=False)
        object.__setattr__(self, "values", v)

    def __len__(self) -> int:
        return int(self.values.shape[0])


def _neighbour_values(h: HeightField, fill: float) -> tuple[np.ndarray, np.ndarray]:
    nb = h.mesh.nbrs
    valid = nb >= 0
    vals = np.where(valid, h.values[np.where(valid, nb, 0)], float(fill))
    return vals, valid


def zero(mesh: Mesh) -> HeightField:
    return HeightField(mesh, np.zeros(len(mesh), dtype=np.float64))


def add(*fields: HeightField) -> HeightField:
    if not fields:
        raise ValueError("add needs at least one height field")
    mesh = fields[0].mesh
    total = np.zeros(len(mesh), dtype=np.float64)
    for f in fields:
        if f.mesh is not mesh:
            raise ValueError("height fields belong to different meshes")
        total += f.values
    return HeightField(mesh, total)


def slope(mesh: Mesh, direction: np.ndarray) -> HeightField:
    d = np.asarray(direction, dtype=np.float64)
    if d.shape != (2,):
        raise ValueError("direction must be a 2-vector")
    return HeightField(mesh, mesh.vxs @ d)


def cone(mesh: Mesh, slope: float) -> HeightField:
    r = np.sqrt(np.sum(mesh.vxs * mesh.vxs, axis=1))
    return HeightField(mesh, r * float(slope))


def mountains(
    mesh: Mesh,
    n: int,
    r: float = 0.05,
    *,
    rng: np.random.Generator,
) -> HeightField:
    """Sum of `n` squared gaussian bumps at random positions."""

    n = int(n)
    if n < 0:
        raise ValueError("n must be >= 0")
    r = float(r)

    w = float(mesh.extent.width)
    hgt = float(mesh.extent.height)
    mounts = rng.random((n, 2), dtype=np.float64) - 0.5
    mounts[:, 0] *= w
    mounts[:, 1] *= hgt

    out = np.zeros(len(mesh), dtype=np.float64)
    for m in mounts:
        d = mesh.vxs - m
        out += np.power(np.exp(-np.sum(d * d, axis=1) / (2.0 * r * r)), 2.0)
    return HeightField(mesh, out)


def normalize(h: HeightField) -> HeightField:
    lo = float(np.min(h.values))
    hi = float(np.max(h.values))
    if hi == lo:
        return zero(h.mesh)
    return HeightField(h.mesh, (h.values - lo) / (hi - lo))


def peaky(h: HeightField) -> HeightField:
    return HeightField(h.mesh, np.sqrt(normalize(h).values))


def relax(h: HeightField) -> HeightField:
    """Replace each vertex by the mean of its neighbours (0 on the corners)."""

    vals, valid = _neighbour_values(h, 0.0)
    count = np.sum(valid, axis=1)
    mean = np.sum(vals, axis=1) / np.maximum(count, 1)
    return HeightField(h.mesh, np.where(h.mesh.degree >= 3, mean, 0.0))


def quantile(h: HeightField, q: float) -> float:
    return float(np.quantile(h.values, float(q)))


def set_sea_level(h: HeightField, q: float) -> HeightField:
    """Shift heights so that a fraction `q` of the vertices sits at or below 0."""

    q = float(q)
    if not (0.0 <= q <= 1.0):
        raise ValueError("q must be in [0, 1]")
    return HeightField(h.mesh, h.values - quantile(h, q))


def clean_coast(h: HeightField, iterations: int) -> HeightField:
    """Remove single-vertex peninsulas and inlets.

    A land vertex with at most one land neighbour sinks to half the height of
    its highest sea neighbour; the same pass then runs in reverse for sea
    vertices. Only vertices with exactly three neighbours take part.
    """

    iterations = int(iterations)
    if iterations < 0:
        raise ValueError("iterations must be >= 0")

    out = h
    deg3 = h.mesh.degree == 3
    for _ in range(iterations):
        vals, _ = _neighbour_values(out, 0.0)
        nv = vals[:, :3]
        land = nv > 0.0
        count = np.sum(land, axis=1)
        best = np.max(np.where(land, -np.inf, nv), axis=1)
        fix = (out.values > 0.0) & deg3 & (count <= 1)
        out = HeightField(out.mesh, np.where(fix, best / 2.0, out.values))

        vals, _ = _neighbour_values(out, 0.0)
        nv = vals[:, :3]
        sea = nv <= 0.0
        count = np.sum(sea, axis=1)
        best = np.min(np.where(sea, np.inf, nv), axis=1)
        fix = (out.values <= 0.0) & deg3 & (count <= 1)
        out = HeightField(out.mesh, np.where(fix, best / 2.0, out.values))
    return out


def trislopes(h: HeightField) -> np.ndarray:
    """Gradient (dh/dx, dh/dy) of the plane through each vertex's neighbours.

    Shape (n, 2); zero for vertices that do not have exactly three neighbours.
    """

    mesh = h.mesh
    out = np.zeros((len(mesh), 2), dtype=np.float64)
    deg3 = np.flatnonzero(mesh.degree == 3)
    if deg3.size == 0:
        return out

    nb = mesh.nbrs[deg3, :3]
    p0 = mesh.vxs[nb[:, 0]]
    p1 = mesh.vxs[nb[:, 1]]
    p2 = mesh.vxs[nb[:, 2]]
    x1 = p1[:, 0] - p0[:, 0]
    x2 = p2[:, 0] - p0[:, 0]
    y1 = p1[:, 1] - p0[:, 1]
    y2 = p2[:, 1] - p0[:, 1]
    det = x1 * y2 - x2 * y1
    h1 = h.values[nb[:, 1]] - h.values[nb[:, 0]]
    h2 = h.values[nb[:, 2]] - h.values[nb[:, 0]]

    ok = det != 0.0
    safe = np.where(ok, det, 1.0)
    out[deg3, 0] = np.where(ok, (y2 * h1 - y1 * h2) / safe, 0.0)
    out[deg3, 1] = np.where(ok, (-x2 * h1 + x1 * h2) / safe, 0.0)
    return out


def slope_magnitude(h: HeightField) -> np.ndarray:
    s = trislopes(h)
    return np.sqrt(s[:, 0] * s[:, 0] + s[:, 1] * s[:, 1])
