from __future__ import annotations

import numpy as np
import plotly.graph_objects as go

from terrain.params import DEFAULT_EXTENT, Extent
from viz.layers import Layer, LayerCanvas

PATH_STYLE = {
    "coast": dict(color="rgba(20,20,20,0.95)", width=2),
    "river": dict(color="rgba(40,110,200,0.9)", width=1.5),
    "border": dict(color="rgba(200,40,40,0.9)", width=2, dash="dash"),
    "slope": dict(color="rgba(20,20,20,0.7)", width=1),
}

MARKER_COLOR = {
    "points": "rgba(20,20,20,0.85)",
    "city": "rgba(255,255,255,0.95)",
}


def _polyline_xy(lines: list[np.ndarray]) -> tuple[list[float | None], list[float | None]]:
    """Join polylines into one trace, separated by None gaps."""
    xs: list[float | None] = []
    ys: list[float | None] = []
    for p in lines:
        xs.extend(p[:, 0].tolist())
        ys.extend(p[:, 1].tolist())
        xs.append(None)
        ys.append(None)
    return xs, ys


def _layer_traces(layer: Layer, *, height: int) -> list[go.Scatter]:
    if layer.is_empty:
        return []

    if layer.kind == "field":
        xy = layer.items[0]
        return [
            go.Scatter(
                x=xy[:, 0],
                y=xy[:, 1],
                mode="markers",
                marker=dict(
                    size=max(2.0, 0.9 * height / np.sqrt(max(xy.shape[0], 1))),
                    color=layer.values,
                    colorscale="Viridis",
                    cmin=0.0,
                    cmax=1.0,
                    line=dict(width=0),
                ),
                hoverinfo="skip",
                showlegend=False,
            )
        ]

    if layer.kind == "markers":
        xy = layer.items[0]
        sizes = np.asarray(layer.values, dtype=np.float64) * 2.0 * height
        return [
            go.Scatter(
                x=xy[:, 0],
                y=xy[:, 1],
                mode="markers",
                marker=dict(
                    size=np.maximum(sizes, 2.0),
                    color=MARKER_COLOR.get(layer.name, "rgba(20,20,20,0.85)"),
                    line=dict(width=1, color="rgba(0,0,0,0.75)"),
                ),
                name=layer.name,
                showlegend=False,
            )
        ]

    if layer.kind == "segments":
        lines = list(layer.items[0])
    else:
        lines = list(layer.items)
    xs, ys = _polyline_xy(lines)
    return [
        go.Scatter(
            x=xs,
            y=ys,
            mode="lines",
            line=PATH_STYLE.get(layer.name, dict(color="rgba(20,20,20,0.9)", width=1)),
            hoverinfo="skip",
            name=layer.name,
            showlegend=False,
        )
    ]


def canvas_figure(
    canvas: LayerCanvas,
    *,
    height: int = 420,
    extent: Extent = DEFAULT_EXTENT,
) -> go.Figure:
    """Render every non-empty layer of a canvas, bottom to top."""

    hw = 0.5 * float(extent.width)
    hh = 0.5 * float(extent.height)

    fig = go.Figure()
    for layer in canvas:
        for trace in _layer_traces(layer, height=int(height)):
            fig.add_trace(trace)

    fig.update_layout(
        margin=dict(l=0, r=0, t=0, b=0),
        height=int(height),
        width=int(height),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(245,242,232,1)",
    )
    fig.update_xaxes(
        range=[-hw, hw],
        showticklabels=False,
        showgrid=False,
        zeroline=False,
    )
    fig.update_yaxes(
        range=[hh, -hh],
        scaleanchor="x",
        showticklabels=False,
        showgrid=False,
        zeroline=False,
    )
    return fig
