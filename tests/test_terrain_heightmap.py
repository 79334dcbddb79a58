from __future__ import annotations

import numpy as np
import pytest

from terrain.heightmap import (
    HeightField,
    add,
    clean_coast,
    cone,
    mountains,
    normalize,
    peaky,
    relax,
    set_sea_level,
    slope,
    trislopes,
    zero,
)
from terrain.mesh import generate_good_mesh, is_edge


def _mesh(seed: int = 0, n: int = 256):
    return generate_good_mesh(n, rng=np.random.default_rng(seed))


def test_height_field_is_read_only_copy() -> None:
    mesh = _mesh()
    raw = np.zeros(len(mesh))
    h = HeightField(mesh, raw)
    raw[0] = 5.0
    assert float(h.values[0]) == 0.0
    assert not h.values.flags.writeable

    with pytest.raises(ValueError):
        HeightField(mesh, np.zeros(len(mesh) + 1))


def test_add_refuses_fields_from_different_meshes() -> None:
    a = zero(_mesh(0, 64))
    b = zero(_mesh(1, 64))
    with pytest.raises(ValueError):
        add(a, b)


def test_primitives_shapes() -> None:
    mesh = _mesh()
    rng = np.random.default_rng(1)
    h = add(
        slope(mesh, np.array([1.0, 0.5])),
        cone(mesh, -0.5),
        mountains(mesh, 5, rng=rng),
    )
    assert h.mesh is mesh
    assert h.values.shape == (len(mesh),)

    r = np.sqrt(np.sum(mesh.vxs**2, axis=1))
    assert np.allclose(cone(mesh, 2.0).values, 2.0 * r)
    assert float(np.min(mountains(mesh, 3, rng=rng).values)) >= 0.0


def test_normalize_and_peaky_range() -> None:
    mesh = _mesh()
    h = slope(mesh, np.array([3.0, -1.0]))
    n = normalize(h)
    assert abs(float(np.min(n.values))) < 1e-12
    assert abs(float(np.max(n.values)) - 1.0) < 1e-12

    p = peaky(h)
    assert float(np.min(p.values)) >= 0.0
    assert float(np.max(p.values)) <= 1.0

    flat = normalize(zero(mesh))
    assert np.all(flat.values == 0.0)


def test_relax_zeroes_corners_and_smooths() -> None:
    mesh = _mesh()
    h = mountains(mesh, 10, rng=np.random.default_rng(2))
    r = relax(h)
    assert np.all(r.values[is_edge(mesh)] == 0.0)
    assert float(np.std(r.values)) <= float(np.std(h.values))


def test_set_sea_level_median_splits_land_and_sea() -> None:
    mesh = _mesh(3, 512)
    h = add(slope(mesh, np.array([1.0, 0.3])), mountains(mesh, 5, rng=np.random.default_rng(3)))
    s = set_sea_level(h, 0.5)
    land = float(np.mean(s.values > 0.0))
    assert abs(land - 0.5) <= 2.0 / len(mesh)

    with pytest.raises(ValueError):
        set_sea_level(h, 1.5)


def test_trislopes_recovers_plane_gradient() -> None:
    mesh = _mesh()
    h = slope(mesh, np.array([1.0, 2.0]))
    ts = trislopes(h)
    deg3 = mesh.degree == 3
    assert np.allclose(ts[deg3], [1.0, 2.0], atol=1e-6)


def test_clean_coast_keeps_mesh() -> None:
    mesh = _mesh()
    h = set_sea_level(mountains(mesh, 20, rng=np.random.default_rng(4)), 0.5)
    c = clean_coast(h, 2)
    assert c.mesh is mesh
    assert np.allclose(clean_coast(h, 0).values, h.values)
