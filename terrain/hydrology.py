from __future__ import annotations

import heapq

import numpy as np

from terrain.heightmap import HeightField
from terrain.mesh import is_edge


def downhill(h: HeightField) -> np.ndarray:
    """Return the downstream vertex of each vertex.

    Each vertex drains to its lowest *strictly lower* neighbour. Vertices
    without a lower neighbour are sinks (-1); mesh corners drain off the map
    (-2).
    """

    nb = h.mesh.nbrs
    valid = nb >= 0
    nv = np.where(valid, h.values[np.where(valid, nb, 0)], np.inf)
    rows = np.arange(nb.shape[0])
    j = np.argmin(nv, axis=1)
    best = nv[rows, j]
    out = np.where(best < h.values, nb[rows, j], -1).astype(np.int64)
    out[is_edge(h.mesh)] = -2
    return out


def flux(h: HeightField, downstream: np.ndarray | None = None) -> np.ndarray:
    """Water flux per vertex: uniform rain routed along `downhill`."""

    ds = downhill(h) if downstream is None else np.asarray(downstream, dtype=np.int64)
    n = len(h)
    if ds.shape != (n,):
        raise ValueError("downstream must have one entry per vertex")

    order = np.argsort(h.values, kind="mergesort")[::-1]
    acc = np.full(n, 1.0 / max(n, 1), dtype=np.float64)
    for i in order:
        j = int(ds[int(i)])
        if j >= 0:
            acc[j] += acc[int(i)]
    return acc


def fill_sinks(h: HeightField, epsilon: float = 1e-5) -> HeightField:
    """Fill depressions using a priority-flood from the mesh corners.

    Every vertex ends up at least `epsilon` above the vertex it spills into,
    so `downhill` on the result reaches a corner from anywhere.
    """

    epsilon = float(epsilon)
    vals = h.values
    adj = h.mesh.adj
    n = len(h)

    filled = vals.copy()
    visited = np.zeros(n, dtype=bool)
    heap: list[tuple[float, int]] = []

    for i in np.flatnonzero(is_edge(h.mesh)).tolist():
        visited[i] = True
        heapq.heappush(heap, (float(vals[i]), int(i)))

    while heap:
        v, i = heapq.heappop(heap)
        for j in adj[i]:
            if visited[j]:
                continue
            visited[j] = True
            hv = float(vals[j])
            fv = hv if hv >= v + epsilon else v + epsilon
            filled[j] = fv
            heapq.heappush(heap, (fv, j))

    return HeightField(h.mesh, filled)
