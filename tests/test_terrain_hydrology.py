from __future__ import annotations

import numpy as np

from terrain.erosion import do_erosion, erode, erosion_rate
from terrain.heightmap import HeightField, add, cone, mountains, slope
from terrain.hydrology import downhill, fill_sinks, flux
from terrain.mesh import generate_good_mesh, is_edge


def _terrain(seed: int = 0) -> HeightField:
    rng = np.random.default_rng(seed)
    mesh = generate_good_mesh(256, rng=rng)
    return add(
        slope(mesh, np.array([1.0, 0.5])),
        cone(mesh, -0.5),
        mountains(mesh, 8, rng=rng),
    )


def test_downhill_marks_corners_and_points_lower() -> None:
    h = _terrain()
    ds = downhill(h)
    edge = is_edge(h.mesh)
    assert np.all(ds[edge] == -2)

    flowing = np.flatnonzero(ds >= 0)
    assert np.all(h.values[ds[flowing]] < h.values[flowing])


def test_fill_sinks_leaves_no_sinks() -> None:
    h = _terrain(1)
    filled = fill_sinks(h)
    assert np.all(filled.values >= h.values - 1e-12)

    ds = downhill(filled)
    interior = ~is_edge(h.mesh)
    assert not bool(np.any(ds[interior] == -1))


def test_flux_is_at_least_rainfall() -> None:
    h = fill_sinks(_terrain(2))
    fl = flux(h)
    n = len(h)
    assert fl.shape == (n,)
    assert float(np.min(fl)) >= 1.0 / n - 1e-15
    # All water ends up at the corners.
    assert abs(float(np.sum(fl[is_edge(h.mesh)])) - 1.0) < 1e-9


def test_erosion_rate_is_capped() -> None:
    h = fill_sinks(_terrain(3))
    er = erosion_rate(h)
    assert er.mesh is h.mesh
    assert float(np.min(er.values)) >= 0.0
    assert float(np.max(er.values)) <= 200.0


def test_erode_lowers_terrain() -> None:
    h = fill_sinks(_terrain(4))
    e = erode(h, 0.1)
    assert np.all(e.values <= h.values + 1e-12)
    assert float(np.mean(e.values)) < float(np.mean(h.values))


def test_do_erosion_fills_and_composes() -> None:
    h = _terrain(5)
    assert np.allclose(do_erosion(h, 0.0).values, fill_sinks(h).values)

    twice = do_erosion(do_erosion(h, 0.1), 0.1)
    assert np.allclose(twice.values, do_erosion(h, 0.1, n=2).values)
