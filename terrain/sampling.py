from __future__ import annotations

import numpy as np

from terrain.params import DEFAULT_EXTENT, Extent


def runif(lo: float, hi: float, *, rng: np.random.Generator) -> float:
    return float(lo) + float(rng.random()) * (float(hi) - float(lo))


def random_vector(scale: float, *, rng: np.random.Generator) -> np.ndarray:
    """Two normally distributed components scaled by `scale`."""
    return float(scale) * rng.standard_normal(2)


def generate_points(
    n: int,
    extent: Extent = DEFAULT_EXTENT,
    *,
    rng: np.random.Generator,
) -> np.ndarray:
    """Uniform random points inside the extent, shape (n, 2)."""

    n = int(n)
    if n <= 0:
        raise ValueError("n must be >= 1")

    pts = rng.random((n, 2), dtype=np.float64) - 0.5
    pts[:, 0] *= float(extent.width)
    pts[:, 1] *= float(extent.height)
    return pts
