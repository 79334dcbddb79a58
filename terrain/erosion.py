from __future__ import annotations

import numpy as np

from terrain.heightmap import HeightField, slope_magnitude
from terrain.hydrology import fill_sinks, flux


def erosion_rate(h: HeightField) -> HeightField:
    """Per-vertex erosion rate: river incision plus soil creep, capped at 200.

    River incision grows with sqrt(flux) * slope, creep with slope**2.
    """

    fl = flux(h)
    s = slope_magnitude(h)
    river = np.sqrt(fl) * s
    creep = s * s
    total = np.minimum(1000.0 * river + creep, 200.0)
    return HeightField(h.mesh, total)


def erode(h: HeightField, amount: float) -> HeightField:
    """Lower every vertex by `amount` scaled by its relative erosion rate."""

    er = erosion_rate(h).values
    maxr = float(np.max(er)) if er.size else 0.0
    if maxr <= 0.0:
        return HeightField(h.mesh, h.values)
    return HeightField(h.mesh, h.values - float(amount) * (er / maxr))


def do_erosion(h: HeightField, amount: float, n: int = 1) -> HeightField:
    """Run `n` erosion passes, filling sinks before and after each one."""

    n = int(n)
    if n < 0:
        raise ValueError("n must be >= 0")
    amount = float(amount)
    if amount < 0.0:
        raise ValueError("amount must be >= 0")

    out = fill_sinks(h)
    for _ in range(n):
        out = erode(out, amount)
        out = fill_sinks(out)
    return out
