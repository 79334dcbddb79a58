from __future__ import annotations

from terrain.cities import (
    City,
    CityRenderContext,
    city_score,
    get_borders,
    get_territories,
    new_city_render,
    place_cities,
    place_city,
)
from terrain.coast import generate_coast, generate_map, generate_uneroded
from terrain.contours import contour, get_rivers, merge_segments, relax_path
from terrain.erosion import do_erosion, erode, erosion_rate
from terrain.heightmap import (
    HeightField,
    add,
    clean_coast,
    cone,
    mountains,
    normalize,
    peaky,
    quantile,
    relax,
    set_sea_level,
    slope,
    slope_magnitude,
    trislopes,
    zero,
)
from terrain.hydrology import downhill, fill_sinks, flux
from terrain.mesh import (
    Mesh,
    PointSet,
    generate_good_mesh,
    generate_good_points,
    improve_points,
    is_edge,
    is_near_edge,
    make_mesh,
    voronoi_cells,
)
from terrain.params import DEFAULT_EXTENT, DEFAULT_PARAMS, Extent, MapParams
from terrain.sampling import generate_points, random_vector, runif

__all__ = [
    "City",
    "CityRenderContext",
    "DEFAULT_EXTENT",
    "DEFAULT_PARAMS",
    "Extent",
    "HeightField",
    "MapParams",
    "Mesh",
    "PointSet",
    "add",
    "city_score",
    "clean_coast",
    "cone",
    "contour",
    "do_erosion",
    "downhill",
    "erode",
    "erosion_rate",
    "fill_sinks",
    "flux",
    "generate_coast",
    "generate_good_mesh",
    "generate_good_points",
    "generate_map",
    "generate_points",
    "generate_uneroded",
    "get_borders",
    "get_rivers",
    "get_territories",
    "improve_points",
    "is_edge",
    "is_near_edge",
    "make_mesh",
    "merge_segments",
    "mountains",
    "new_city_render",
    "normalize",
    "peaky",
    "place_cities",
    "place_city",
    "quantile",
    "random_vector",
    "relax",
    "relax_path",
    "runif",
    "set_sea_level",
    "slope",
    "slope_magnitude",
    "trislopes",
    "voronoi_cells",
    "zero",
]
