# tourviz/render.py
"""Renderers consuming a FrameTable, plus the play/view convenience wrappers.

The numeric core never imports this module; it only hands FrameTables over.
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import plotly.graph_objects as go

from .basis import data_matrix, pca_basis, scale_01, validate_basis
from .config import DEFAULT_RENDER_CONFIG, DEFAULT_TOUR_CONFIG, RenderConfig, TourConfig
from .errors import InvalidDimension
from .frames import FrameTable, assemble_frames
from .geodesic import interpolate
from .manip import _finite_angle, create_manip_space, resolve_manip_var, rotate_manip_space
from .manual_tour import manual_tour

logger = logging.getLogger(__name__)


@dataclass
class ManipSpaceView:
    """Flattened 2-D geometry of a manipulation space seen at an angle."""
    axes: np.ndarray            # (p, 2) basis contributions in the tilted plane
    plane_circle: np.ndarray    # (m, 2) unit circle of the projection plane
    manip_circle: np.ndarray    # (m, 2) circle spanned by x and the out-of-plane axis
    manip_end: np.ndarray       # (2,) manipulated variable along x and out-of-plane
    labels: List[str]
    manip_var: int
    tilt: float


def manip_space_view(manip_space, manip_var: int, tilt: float, labels: Sequence[str],
                     circle_points: int = 360) -> ManipSpaceView:
    """
    Squash a (p, 3) manipulation space onto the screen.

    x and the out-of-plane column are scaled by cos(tilt), y by sin(tilt), so
    the projection plane reads as an ellipse and the out-of-plane direction
    points up the screen.
    """
    m = np.asarray(manip_space, dtype=float)
    if m.ndim != 2 or m.shape[1] != 3:
        raise InvalidDimension(f"manip_space must be (p, 3), got {m.shape}.")
    c, s = math.cos(tilt), math.sin(tilt)
    ang = np.linspace(0.0, 2.0 * math.pi, circle_points)
    return ManipSpaceView(
        axes=np.column_stack([m[:, 0] * c, m[:, 1] * s]),
        plane_circle=np.column_stack([np.cos(ang) * c, np.sin(ang) * s]),
        manip_circle=np.column_stack([np.cos(ang) * c, np.sin(ang) * c]),
        manip_end=np.array([m[manip_var, 0] * c, m[manip_var, 2] * c]),
        labels=[str(x) for x in labels],
        manip_var=int(manip_var),
        tilt=float(tilt),
    )


class Renderer(ABC):
    """Turns a FrameTable (or a ManipSpaceView) into a figure or animation object."""

    def __init__(self, config: Optional[RenderConfig] = None):
        self.cfg = config or DEFAULT_RENDER_CONFIG

    @abstractmethod
    def render(self, table: FrameTable) -> Any:
        ...

    @abstractmethod
    def render_manip_space(self, view: ManipSpaceView) -> Any:
        ...

    # ---------------- helpers ----------------
    @staticmethod
    def frame_arrays(table: FrameTable, f: int) -> Tuple[np.ndarray, np.ndarray]:
        """(n, 2) point coordinates and (p, 2) axis coordinates of frame f."""
        rows = table.frame(f)
        pts = np.array([(r.x, r.y) for r in rows if r.kind == "point"], dtype=float).reshape(-1, 2)
        axs = np.array([(r.x, r.y) for r in rows if r.kind == "axis"], dtype=float).reshape(-1, 2)
        return pts, axs

    def axes_layout(self, table: FrameTable) -> Tuple[float, np.ndarray]:
        """Radius and centre of the axes circle in data coordinates."""
        pts = np.array([(r.x, r.y) for r in table.points()], dtype=float).reshape(-1, 2)
        if len(pts) == 0:
            return self.cfg.axes_scale, np.zeros(2)
        lo, hi = pts.min(axis=0), pts.max(axis=0)
        half = float((hi - lo).max()) / 2.0 or 1.0
        centre = (lo + hi) / 2.0
        if self.cfg.axes == "center":
            return self.cfg.axes_scale * half, centre
        r = 0.5 * self.cfg.axes_scale * half
        if self.cfg.axes == "left":
            return r, np.array([lo[0] - 1.2 * r, centre[1]])
        if self.cfg.axes == "bottomleft":
            return r, np.array([lo[0] - 1.2 * r, lo[1] + r])
        return 0.0, centre  # "off"

    def axis_colors(self, table: FrameTable) -> List[str]:
        colors = [self.cfg.colors['axes']] * table.p
        if table.manip_var is not None:
            colors[table.manip_var] = self.cfg.colors['manip_var']
        return colors


class InteractiveRenderer(Renderer):
    """plotly figure with one go.Frame per tour frame, a slider and play/pause."""

    def _frame_traces(self, table: FrameTable, f: int, radius: float, centre: np.ndarray) -> List:
        pts, axs = self.frame_arrays(table, f)
        ends = centre + radius * axs
        seg_x: List[Optional[float]] = []
        seg_y: List[Optional[float]] = []
        for x, y in ends:
            seg_x += [float(centre[0]), float(x), None]
            seg_y += [float(centre[1]), float(y), None]
        show_axes = self.cfg.axes != "off"
        return [
            go.Scatter(x=seg_x, y=seg_y, mode="lines", visible=show_axes,
                       line=dict(color=self.cfg.colors['axes'], width=1), name="axes",
                       hoverinfo="skip"),
            go.Scatter(x=ends[:, 0], y=ends[:, 1], mode="text" if self.cfg.show_labels else "markers",
                       text=table.labels, visible=show_axes, name="labels",
                       textfont=dict(color=self.axis_colors(table)),
                       marker=dict(size=1, color=self.axis_colors(table))),
            go.Scatter(x=pts[:, 0], y=pts[:, 1], mode="markers", name="data",
                       marker=dict(size=self.cfg.marker_size, color=self.cfg.colors['points'])),
        ]

    def render(self, table: FrameTable) -> go.Figure:
        radius, centre = self.axes_layout(table)
        ang = np.linspace(0.0, 2.0 * math.pi, self.cfg.circle_points)
        circle = go.Scatter(x=centre[0] + radius * np.cos(ang), y=centre[1] + radius * np.sin(ang),
                            mode="lines", line=dict(color=self.cfg.colors['circle'], width=1),
                            visible=self.cfg.axes != "off", name="circle", hoverinfo="skip")

        fig = go.Figure(data=[circle] + self._frame_traces(table, 0, radius, centre))
        fig.frames = [
            go.Frame(name=str(f), data=self._frame_traces(table, f, radius, centre), traces=[1, 2, 3])
            for f in range(table.n_frames)
        ]

        duration = int(1000 / self.cfg.fps)
        steps = [dict(method="animate", label=str(f),
                      args=[[str(f)], {"mode": "immediate", "frame": {"duration": 0, "redraw": False},
                                       "transition": {"duration": 0}}])
                 for f in range(table.n_frames)]
        fig.update_layout(
            showlegend=False,
            xaxis=dict(visible=False, scaleanchor="y", scaleratio=1),
            yaxis=dict(visible=False),
            sliders=[dict(active=0, currentvalue={"prefix": "frame "}, pad={"t": 30}, steps=steps)],
            updatemenus=[dict(type="buttons", showactive=False, buttons=[
                dict(label="Play", method="animate",
                     args=[None, {"frame": {"duration": duration, "redraw": False},
                                  "fromcurrent": True, "transition": {"duration": 0}}]),
                dict(label="Pause", method="animate",
                     args=[[None], {"frame": {"duration": 0, "redraw": False}, "mode": "immediate"}]),
            ])],
        )
        logger.debug("Built plotly figure with %d frames.", table.n_frames)
        return fig

    def render_manip_space(self, view: ManipSpaceView) -> go.Figure:
        colors = self.cfg.colors
        k = view.manip_var
        others = [j for j in range(len(view.axes)) if j != k]
        seg_x: List[Optional[float]] = []
        seg_y: List[Optional[float]] = []
        for x, y in view.axes[others]:
            seg_x += [0.0, float(x), None]
            seg_y += [0.0, float(y), None]
        mx, my = view.axes[k]
        ex, ez = view.manip_end
        label_colors = [colors['manip_var'] if j == k else colors['axes'] for j in range(len(view.axes))]

        fig = go.Figure(data=[
            go.Scatter(x=view.plane_circle[:, 0], y=view.plane_circle[:, 1], mode="lines",
                       line=dict(color=colors['manip_var'], width=1), name="plane"),
            go.Scatter(x=seg_x, y=seg_y, mode="lines", line=dict(color=colors['axes'], width=1),
                       name="axes"),
            go.Scatter(x=[0.0, mx], y=[0.0, my], mode="lines",
                       line=dict(color=colors['manip_var'], width=2), name="manip axis"),
            go.Scatter(x=view.axes[:, 0], y=view.axes[:, 1], mode="text", text=view.labels,
                       textfont=dict(color=label_colors), name="labels"),
            go.Scatter(x=view.manip_circle[:, 0], y=view.manip_circle[:, 1], mode="lines",
                       line=dict(color=colors['manip_space'], width=1), name="manip space"),
            go.Scatter(x=[0.0, ex], y=[0.0, ez], mode="lines",
                       line=dict(color=colors['manip_space'], width=2), name="out of plane"),
            go.Scatter(x=[ex, mx], y=[ez, my], mode="lines",
                       line=dict(color=colors['axes'], width=1, dash="dash"), name="drop"),
            go.Scatter(x=[ex], y=[ez], mode="text", text=[view.labels[k]],
                       textfont=dict(color=colors['manip_space']), name="manip label"),
        ])
        fig.update_layout(showlegend=False,
                          xaxis=dict(visible=False, scaleanchor="y", scaleratio=1),
                          yaxis=dict(visible=False))
        return fig


class AnimationRenderer(Renderer):
    """matplotlib FuncAnimation stepping through the frames."""

    def render(self, table: FrameTable):
        import matplotlib.pyplot as plt
        from matplotlib.animation import FuncAnimation

        radius, centre = self.axes_layout(table)
        fig, ax = plt.subplots()
        ax.set_aspect("equal")
        ax.set_axis_off()

        if self.cfg.axes != "off":
            ang = np.linspace(0.0, 2.0 * math.pi, self.cfg.circle_points)
            ax.plot(centre[0] + radius * np.cos(ang), centre[1] + radius * np.sin(ang),
                    color=self.cfg.colors['circle'], lw=0.8)
        colors = self.axis_colors(table)
        lines = [ax.plot([], [], color=c, lw=1)[0] for c in colors]
        texts = [ax.text(0, 0, lab if self.cfg.show_labels else "", color=c)
                 for lab, c in zip(table.labels, colors)]
        scat = ax.scatter([], [], s=self.cfg.marker_size ** 2, color=self.cfg.colors['points'])

        pts_all = np.array([(r.x, r.y) for r in table.points()], dtype=float).reshape(-1, 2)
        lo = np.minimum(pts_all.min(axis=0), centre - radius) if len(pts_all) else centre - radius
        hi = np.maximum(pts_all.max(axis=0), centre + radius) if len(pts_all) else centre + radius
        pad = 0.1 * float((hi - lo).max() or 1.0)
        ax.set_xlim(lo[0] - pad, hi[0] + pad)
        ax.set_ylim(lo[1] - pad, hi[1] + pad)

        def update(f):
            pts, axs = self.frame_arrays(table, f)
            ends = centre + radius * axs
            for line, text, (x, y) in zip(lines, texts, ends):
                line.set_data([centre[0], x], [centre[1], y])
                text.set_position((x, y))
                line.set_visible(self.cfg.axes != "off")
                text.set_visible(self.cfg.axes != "off")
            scat.set_offsets(pts)
            return lines + texts + [scat]

        anim = FuncAnimation(fig, update, frames=table.n_frames,
                             interval=1000 / self.cfg.fps, blit=False)
        logger.debug("Built matplotlib animation with %d frames.", table.n_frames)
        return anim

    def render_manip_space(self, view: ManipSpaceView):
        import matplotlib.pyplot as plt

        colors = self.cfg.colors
        k = view.manip_var
        fig, ax = plt.subplots()
        ax.set_aspect("equal")
        ax.set_axis_off()
        ax.plot(view.plane_circle[:, 0], view.plane_circle[:, 1], color=colors['manip_var'], lw=0.8)
        for j, (x, y) in enumerate(view.axes):
            c = colors['manip_var'] if j == k else colors['axes']
            ax.plot([0.0, x], [0.0, y], color=c, lw=2 if j == k else 1)
            ax.text(x, y, view.labels[j], color=c)
        ex, ez = view.manip_end
        mx, my = view.axes[k]
        ax.plot(view.manip_circle[:, 0], view.manip_circle[:, 1], color=colors['manip_space'], lw=0.8)
        ax.plot([0.0, ex], [0.0, ez], color=colors['manip_space'], lw=2)
        ax.plot([ex, mx], [ez, my], color=colors['axes'], lw=1, ls="--")
        ax.text(ex, ez, view.labels[k], color=colors['manip_space'])
        return fig


# ---------------- wrappers ----------------

def _names_of(data, labels: Optional[Sequence[str]]) -> Optional[List[str]]:
    if labels is not None:
        return [str(s) for s in labels]
    if data is not None:
        return data_matrix(data)[1]
    return None


def view_frame(basis=None, data=None, manip_var: Optional[Union[int, str]] = None,
               theta: float = 0.0, phi: float = 0.0, labels: Optional[Sequence[str]] = None,
               rescale_data: bool = False, renderer: Optional[Renderer] = None):
    """
    Render a single (optionally manipulated) projection.

    With `manip_var` (0-based index, or a name from `labels` / the data
    columns) the variable is highlighted, and a non-zero theta or phi first
    rotates the basis in that variable's manipulation space. A missing basis
    becomes the PCA basis of `data`.
    """
    if data is not None and rescale_data:
        data = scale_01(data)
    if basis is None:
        if data is None:
            raise InvalidDimension("view_frame needs a basis or data to derive one from.")
        basis = pca_basis(data)
        logger.info("No basis passed; using the PCA basis of the data.")
    basis = validate_basis(basis)

    k = None
    if manip_var is not None:
        k = resolve_manip_var(manip_var, basis.shape[0], _names_of(data, labels))
        if theta != 0 or phi != 0:
            m_sp = create_manip_space(basis, k, allow_degenerate=True)
            basis = rotate_manip_space(m_sp, theta, phi)[:, :2]

    table = assemble_frames(basis[None, :, :], data=data, labels=labels)
    table.manip_var = k
    return (renderer or InteractiveRenderer()).render(table)


def view_manip_space(basis, manip_var: Union[int, str], tilt: float = 0.1 * math.pi,
                     labels: Optional[Sequence[str]] = None,
                     renderer: Optional[Renderer] = None):
    """
    Draw the manipulation space of `manip_var` seen from an oblique angle.

    The projection plane is tilted by `tilt` radians so the out-of-plane
    direction of the manipulation space becomes visible: the axes of the
    basis lie in the flattened plane circle, and the manipulated variable's
    component along the out-of-plane direction is drawn against a second
    circle. `manip_var` is a 0-based index or a name from `labels`.
    """
    b = validate_basis(basis)
    tilt = _finite_angle("tilt", tilt)
    k = resolve_manip_var(manip_var, b.shape[0], labels)
    m_sp = create_manip_space(b, k, allow_degenerate=True)
    if labels is None:
        labels = [f"x{j + 1}" for j in range(b.shape[0])]
    if len(labels) != b.shape[0]:
        raise InvalidDimension(f"expected {b.shape[0]} labels, got {len(labels)}.")
    renderer = renderer or InteractiveRenderer()
    view = manip_space_view(m_sp, k, tilt, labels, renderer.cfg.circle_points)
    return renderer.render_manip_space(view)


def play_tour_path(path, data=None, angle_step: Optional[float] = None,
                   renderer: Optional[Renderer] = None, config: Optional[TourConfig] = None):
    """Interpolate an arbitrary basis path, assemble and render it."""
    cfg = config or DEFAULT_TOUR_CONFIG
    tour = interpolate(path, angle_step=angle_step, data=data, config=cfg)
    table = assemble_frames(tour, label_length=cfg.label_length)
    return (renderer or InteractiveRenderer()).render(table)


def play_manual_tour(data, manip_var: Union[int, str], basis=None, theta: Optional[float] = None,
                     phi_min: Optional[float] = None, phi_max: Optional[float] = None,
                     angle_step: Optional[float] = None, renderer: Optional[Renderer] = None,
                     config: Optional[TourConfig] = None):
    """Manual tour of `manip_var` over `data`, rendered frame by frame."""
    cfg = config or DEFAULT_TOUR_CONFIG
    if basis is None:
        basis = pca_basis(data)
        logger.info("No basis passed; using the PCA basis of the data.")
    tour = manual_tour(basis, manip_var, theta=theta, phi_min=phi_min, phi_max=phi_max,
                       angle_step=angle_step, data=data, config=cfg)
    table = assemble_frames(tour, label_length=cfg.label_length)
    return (renderer or InteractiveRenderer()).render(table)
