"""Plotly 3D interactive globe renderer.

Consumes a GlobeSnapshot: the sphere and markers are placed with the
snapshot's globe transform and the camera eye comes from its CameraPlacement.
"""

import math

import numpy as np
import plotly.graph_objects as go

from flightglobe import geo
from flightglobe.models import Beam, Dot, Marker, Pulsing
from flightglobe.session import GlobeSnapshot

_BG = "#050a1a"
_OCEAN_COLOR = "#0b2545"
_GRID_COLOR = "#7ec8e3"
_SEGMENTS = 30
_GRATICULE_STEP_DEG = 30


def _transform_points(matrix: np.ndarray, xyz: np.ndarray) -> np.ndarray:
    """Apply a 4x4 matrix to an (N, 3) array of points."""
    homogeneous = np.hstack([xyz, np.ones((xyz.shape[0], 1))])
    return (homogeneous @ matrix.T)[:, :3]


def _sphere_trace(matrix: np.ndarray) -> go.Surface:
    lat = np.radians(np.linspace(-90, 90, _SEGMENTS))
    lon = np.radians(np.linspace(-180, 180, _SEGMENTS * 2))
    lon_grid, lat_grid = np.meshgrid(lon, lat)
    r = geo.GLOBE_RADIUS
    xyz = np.column_stack(
        [
            (r * np.cos(lat_grid) * np.sin(lon_grid)).ravel(),
            (r * np.sin(lat_grid)).ravel(),
            (r * np.cos(lat_grid) * np.cos(lon_grid)).ravel(),
        ]
    )
    world = _transform_points(matrix, xyz)
    shape = lat_grid.shape
    return go.Surface(
        x=world[:, 0].reshape(shape),
        y=world[:, 1].reshape(shape),
        z=world[:, 2].reshape(shape),
        colorscale=[[0, _OCEAN_COLOR], [1, _OCEAN_COLOR]],
        showscale=False,
        hoverinfo="skip",
        opacity=1.0,
        name="globe",
    )


def _graticule_trace(matrix: np.ndarray) -> go.Scatter3d:
    """Parallels and meridians as one trace using None separators."""
    r = geo.GLOBE_RADIUS * 1.002
    lines: list[list[tuple[float, float, float]]] = []
    for lat in range(-60, 61, _GRATICULE_STEP_DEG):
        lines.append([geo.lat_lon_to_position(lat, lon, r) for lon in range(-180, 181, 5)])
    for lon in range(-180, 180, _GRATICULE_STEP_DEG):
        lines.append([geo.lat_lon_to_position(lat, lon, r) for lat in range(-90, 91, 5)])

    xs: list[float | None] = []
    ys: list[float | None] = []
    zs: list[float | None] = []
    for line in lines:
        world = _transform_points(matrix, np.array(line))
        xs += list(world[:, 0]) + [None]
        ys += list(world[:, 1]) + [None]
        zs += list(world[:, 2]) + [None]
    return go.Scatter3d(
        x=xs,
        y=ys,
        z=zs,
        mode="lines",
        line=dict(color=_GRID_COLOR, width=1),
        opacity=0.3,
        hoverinfo="skip",
        name="graticule",
    )


def _marker_style(marker: Marker) -> tuple[str, int, str]:
    """(color, size, symbol) for a marker style."""
    style = marker.style
    if isinstance(style, Pulsing):
        return style.color, 9, "circle"
    if isinstance(style, Beam):
        color = "#fff59d" if style.color == "clear" else style.color
        return color, 6, "diamond"
    if isinstance(style, Dot):
        return style.color, 6, "circle"
    raise TypeError(f"unknown marker style: {style!r}")


def _marker_trace(matrix: np.ndarray, markers: tuple[Marker, ...]) -> go.Scatter3d:
    if markers:
        points = np.array([m.position(geo.GLOBE_RADIUS * 1.01) for m in markers])
        world = _transform_points(matrix, points)
    else:
        world = np.zeros((0, 3))
    styles = [_marker_style(m) for m in markers]
    return go.Scatter3d(
        x=list(world[:, 0]),
        y=list(world[:, 1]),
        z=list(world[:, 2]),
        mode="markers",
        marker=dict(
            size=[s[1] for s in styles],
            color=[s[0] for s in styles],
            symbol=[s[2] for s in styles],
            line=dict(width=0),
        ),
        text=[m.name for m in markers],
        hoverinfo="text",
        name="markers",
    )


def camera_eye(snapshot: GlobeSnapshot) -> dict[str, float]:
    """Plotly eye position. Plotly has no fov, so zoom scales the eye distance."""
    zoom = math.tan(math.radians(snapshot.fov) / 2) / math.tan(
        math.radians(geo.DEFAULT_FOV) / 2
    )
    # Eye is in normalized scene units; the default framing sits at distance 2.
    scale = zoom / (geo.GLOBE_RADIUS + geo.CAMERA_ALTITUDE) * 2.0
    x, y, z = snapshot.camera.position
    return dict(x=x * scale, y=y * scale, z=z * scale)


def render_globe(snapshot: GlobeSnapshot) -> go.Figure:
    """Render a GlobeSnapshot as a Plotly 3D figure.

    Args:
        snapshot: Session state after the latest change.

    Returns:
        Plotly Figure object.
    """
    matrix = snapshot.globe_transform
    fig = go.Figure(
        data=[
            _sphere_trace(matrix),
            _graticule_trace(matrix),
            _marker_trace(matrix, snapshot.markers),
        ]
    )
    axis = dict(visible=False, range=[-0.6, 0.6], autorange=False)
    up_x, up_y, up_z = snapshot.camera.up
    fig.update_layout(
        paper_bgcolor=_BG,
        plot_bgcolor=_BG,
        showlegend=False,
        margin=dict(l=0, r=0, t=0, b=0),
        scene=dict(
            xaxis=axis,
            yaxis=axis,
            zaxis=axis,
            aspectmode="cube",
            bgcolor=_BG,
            camera=dict(
                eye=camera_eye(snapshot),
                center=dict(x=0, y=0, z=0),
                up=dict(x=up_x, y=up_y, z=up_z),
            ),
        ),
    )
    return fig
