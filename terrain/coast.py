from __future__ import annotations

import numpy as np

from terrain.cities import CityRenderContext, new_city_render, place_cities
from terrain.erosion import do_erosion
from terrain.heightmap import (
    HeightField,
    add,
    clean_coast,
    cone,
    mountains,
    peaky,
    relax,
    set_sea_level,
    slope,
)
from terrain.hydrology import fill_sinks
from terrain.mesh import generate_good_mesh
from terrain.params import DEFAULT_EXTENT, DEFAULT_PARAMS, Extent, MapParams
from terrain.sampling import random_vector, runif


def generate_uneroded(
    n: int,
    extent: Extent = DEFAULT_EXTENT,
    *,
    rng: np.random.Generator,
) -> HeightField:
    """Random slope + cone + 50 mountains, rounded, sink-free, half sea."""

    mesh = generate_good_mesh(n, extent, rng=rng)
    h = add(
        slope(mesh, random_vector(4.0, rng=rng)),
        cone(mesh, runif(-1.0, 1.0, rng=rng)),
        mountains(mesh, 50, rng=rng),
    )
    h = peaky(h)
    h = fill_sinks(h)
    return set_sea_level(h, 0.5)


def generate_coast(
    params: MapParams = DEFAULT_PARAMS,
    *,
    rng: np.random.Generator,
) -> HeightField:
    """A single island-ish landmass: shaped, relaxed, eroded, coast cleaned."""

    mesh = generate_good_mesh(params.npts, params.extent, rng=rng)
    h = add(
        slope(mesh, random_vector(4.0, rng=rng)),
        cone(mesh, -1.0),
        mountains(mesh, 50, rng=rng),
    )
    for _ in range(10):
        h = relax(h)
    h = peaky(h)
    h = do_erosion(h, runif(0.0, 0.1, rng=rng), 5)
    h = set_sea_level(h, runif(0.2, 0.6, rng=rng))
    h = fill_sinks(h)
    return clean_coast(h, 3)


def generate_map(
    params: MapParams = DEFAULT_PARAMS,
    *,
    rng: np.random.Generator,
) -> CityRenderContext:
    """Coast at `params.npts` resolution with `params.ncities` cities placed."""

    return place_cities(new_city_render(generate_coast(params, rng=rng), params))
