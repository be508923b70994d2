"""Renderers and the play/view wrappers."""
import math
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import plotly.graph_objects as go
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from tourviz.basis import identity_basis, random_basis
from tourviz.config import RenderConfig, TourConfig
from tourviz.errors import InvalidDimension
from tourviz.frames import assemble_frames
from tourviz.manual_tour import manual_tour
from tourviz.render import (AnimationRenderer, InteractiveRenderer, ManipSpaceView, manip_space_view,
                            play_manual_tour, play_tour_path, view_frame, view_manip_space)


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


@pytest.fixture
def data():
    return np.random.default_rng(0).normal(size=(20, 4))


@pytest.fixture
def table(data):
    tour = manual_tour(random_basis(4, 2, seed=1), 3, angle_step=0.3, data=data)
    return assemble_frames(tour)


def test_interactive_figure(table):
    fig = InteractiveRenderer().render(table)
    assert isinstance(fig, go.Figure)
    assert len(fig.frames) == table.n_frames
    assert len(fig.data) == 4  # circle, axes, labels, data
    assert len(fig.layout.sliders[0].steps) == table.n_frames
    assert [b.label for b in fig.layout.updatemenus[0].buttons] == ["Play", "Pause"]
    assert len(fig.data[3].x) == 20


def test_interactive_highlights_manip_var(table):
    fig = InteractiveRenderer().render(table)
    colors = list(fig.data[2].textfont.color)
    assert colors[3] == "blue"
    assert colors.count("grey") == 3


def test_axes_off_hides_guides(table):
    fig = InteractiveRenderer(RenderConfig(axes="off")).render(table)
    assert fig.data[0].visible is False
    assert fig.data[1].visible is False


def test_animation_renderer(table):
    from matplotlib.animation import FuncAnimation

    anim = AnimationRenderer(RenderConfig(axes="left", show_labels=False)).render(table)
    assert isinstance(anim, FuncAnimation)
    # drawing a frame exercises the update callback
    anim._func(table.n_frames - 1)


def test_axes_layout_positions(table):
    centre_r, centre_c = InteractiveRenderer(RenderConfig(axes="center")).axes_layout(table)
    left_r, left_c = InteractiveRenderer(RenderConfig(axes="left")).axes_layout(table)
    assert left_r == pytest.approx(centre_r / 2)
    assert left_c[0] < centre_c[0]


def test_view_frame(data):
    fig = view_frame(identity_basis(4, 2), data, manip_var=2, phi=0.4)
    assert isinstance(fig, go.Figure)
    assert len(fig.frames) == 1
    # x3 starts out of the projection plane; after the tilt its axis has length
    xs, ys = fig.data[1].x, fig.data[1].y
    assert np.hypot(xs[7] - xs[6], ys[7] - ys[6]) > 0.1
    still = view_frame(identity_basis(4, 2), data)
    xs, ys = still.data[1].x, still.data[1].y
    assert np.hypot(xs[7] - xs[6], ys[7] - ys[6]) == pytest.approx(0.0)


def test_view_frame_needs_basis_or_data():
    with pytest.raises(InvalidDimension):
        view_frame()
    fig = view_frame(data=np.random.default_rng(2).normal(size=(10, 3)), rescale_data=True)
    assert len(fig.data[3].x) == 10


def test_play_wrappers(data):
    fig = play_manual_tour(data, 0, angle_step=0.4)
    assert len(fig.frames) > 2
    bases = [identity_basis(4, 2), random_basis(4, 2, seed=7)]
    fig = play_tour_path(bases, data=data, angle_step=0.2)
    assert len(fig.frames) >= 2
    anim = play_tour_path(bases, angle_step=0.2, renderer=AnimationRenderer())
    assert anim is not None


@pytest.mark.parametrize("bad", [-1, 4, 7, 1.5, "nope"])
def test_view_frame_rejects_bad_manip_var(data, bad):
    with pytest.raises(InvalidDimension):
        view_frame(identity_basis(4, 2), data, manip_var=bad)


def test_view_frame_highlight_and_names():
    rng = np.random.default_rng(3)
    df = pd.DataFrame(rng.normal(size=(8, 4)), columns=["Alcohol", "Malic", "Ash", "Color"])
    fig = view_frame(identity_basis(4, 2), df, manip_var="Ash")
    colors = list(fig.data[2].textfont.color)
    assert colors == ["grey", "grey", "blue", "grey"]
    fig = view_frame(identity_basis(4, 2), manip_var="b", labels=["a", "b", "c", "d"])
    assert list(fig.data[2].textfont.color).index("blue") == 1


def test_manip_space_view_geometry():
    m_sp = np.eye(4, 3)
    view = manip_space_view(m_sp, 2, tilt=0.25 * math.pi, labels=list("abcd"), circle_points=9)
    c = math.cos(0.25 * math.pi)
    assert isinstance(view, ManipSpaceView)
    assert view.axes.shape == (4, 2)
    assert np.allclose(view.axes[0], [c, 0.0])
    assert np.allclose(view.manip_end, [0.0, c]), "third column drawn up the screen"
    assert view.plane_circle.shape == (9, 2)
    assert np.allclose(np.hypot(view.manip_circle[:, 0], view.manip_circle[:, 1]), c)


def test_view_manip_space_interactive():
    fig = view_manip_space(random_basis(5, 2, seed=4), 1, labels=list("abcde"))
    assert isinstance(fig, go.Figure)
    names = [t.name for t in fig.data]
    assert names == ["plane", "axes", "manip axis", "labels", "manip space", "out of plane",
                     "drop", "manip label"]
    assert fig.data[7].text == ("b",)
    # out-of-plane segment ends on the manipulation circle's ellipse
    ex, ez = fig.data[5].x[1], fig.data[5].y[1]
    assert np.hypot(ex, ez) <= math.cos(0.1 * math.pi) + 1e-12


def test_view_manip_space_animation_renderer_and_errors():
    from matplotlib.figure import Figure

    fig = view_manip_space(identity_basis(4, 2), "x1", labels=["x1", "x2", "x3", "x4"],
                           renderer=AnimationRenderer())
    assert isinstance(fig, Figure)
    with pytest.raises(InvalidDimension):
        view_manip_space(identity_basis(4, 2), 9)
    with pytest.raises(InvalidDimension):
        view_manip_space(identity_basis(4, 2), "x1")


def test_play_wrappers_follow_tour_config(data):
    cfg = TourConfig(angle_step=math.pi / 4, label_length=2)
    df = pd.DataFrame(data, columns=["Alcohol", "Malic", "Ash", "Color"])
    fig = play_manual_tour(df, 0, basis=identity_basis(4, 2), config=cfg)
    assert len(fig.frames) == 5
    assert list(fig.data[2].text) == ["Al", "Ml", "As", "Cl"]
    bases = [identity_basis(4, 2), random_basis(4, 2, seed=7)]
    coarse = play_tour_path(bases, config=TourConfig(angle_step=0.5))
    fine = play_tour_path(bases, angle_step=0.1)
    assert len(coarse.frames) < len(fine.frames)
