from __future__ import annotations

import numpy as np

from terrain.cities import (
    UNCLAIMED,
    city_score,
    get_borders,
    get_territories,
    new_city_render,
    place_cities,
    place_city,
)
from terrain.coast import generate_coast, generate_map, generate_uneroded
from terrain.params import MapParams

SMALL = MapParams(npts=256, ncities=4, nterrs=2)


def test_generate_uneroded_half_sea() -> None:
    h = generate_uneroded(256, rng=np.random.default_rng(0))
    land = float(np.mean(h.values > 0.0))
    assert abs(land - 0.5) <= 2.0 / len(h)


def test_city_score_excludes_sea() -> None:
    h = generate_coast(SMALL, rng=np.random.default_rng(1))
    score = city_score(h).values
    assert np.all(score[h.values <= 0.0] == -999999.0)


def test_place_city_returns_new_context() -> None:
    h = generate_coast(SMALL, rng=np.random.default_rng(2))
    ctx = new_city_render(h, SMALL)
    one = place_city(ctx)
    assert ctx.cities == ()
    assert len(one.cities) == 1
    city = one.cities[0]
    assert float(h.values[city.vertex]) > 0.0
    assert np.allclose(city.position, h.mesh.vxs[city.vertex])

    two = place_city(one)
    assert two.cities[1].vertex != city.vertex


def test_territories_without_cities_are_unclaimed() -> None:
    h = generate_coast(SMALL, rng=np.random.default_rng(3))
    ctx = new_city_render(h, SMALL)
    terr = get_territories(ctx)
    assert terr.shape == (len(h),)
    assert np.all(terr == UNCLAIMED)
    assert get_borders(ctx, terr) == []


def test_territories_belong_to_capitals() -> None:
    ctx = place_cities(new_city_render(generate_coast(SMALL, rng=np.random.default_rng(4)), SMALL))
    assert len(ctx.cities) == SMALL.ncities

    terr = get_territories(ctx)
    capitals = {c.vertex for c in ctx.cities[: SMALL.nterrs]}
    assert set(np.unique(terr).tolist()) <= capitals | {UNCLAIMED}
    for v in capitals:
        assert int(terr[v]) == v

    # Same input, same answer.
    assert np.array_equal(terr, get_territories(ctx))
    for border in get_borders(ctx, terr):
        assert border.shape[1] == 2


def test_generate_map_places_all_cities() -> None:
    ctx = generate_map(SMALL, rng=np.random.default_rng(5))
    assert len(ctx.cities) == SMALL.ncities
    assert ctx.params is SMALL
