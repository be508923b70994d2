# tourviz/config.py
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from .errors import TourError

logger = logging.getLogger(__name__)


@dataclass
class TourConfig:
    angle_step: float = 0.05            # radians between consecutive frames
    phi_min: float = 0.0
    phi_max: float = 0.5 * math.pi
    tolerance: float = 1e-6             # orthonormality check, ||B^T B - I||
    label_length: int = 3               # abbreviation length for axis labels


_DEFAULT_COLORS = {
    'points': 'black',
    'axes': 'grey',
    'circle': '#bbbbbb',
    'manip_var': 'blue',
    'manip_space': 'red',
}


@dataclass
class RenderConfig:
    axes: str = "center"                # "center", "left", "bottomleft", "off"
    axes_scale: float = 1.0
    marker_size: float = 5.0
    fps: int = 8
    circle_points: int = 360
    show_labels: bool = True

    # colors (can be overridden; missing keys keep their default)
    colors: Dict[str, str] = field(default_factory=lambda: dict(_DEFAULT_COLORS))

    def __post_init__(self):
        unknown = set(self.colors) - set(_DEFAULT_COLORS)
        if unknown:
            raise TourError(f"Unknown color keys {sorted(unknown)}.")
        self.colors = {**_DEFAULT_COLORS, **self.colors}
        if self.axes not in ("center", "left", "bottomleft", "off"):
            raise TourError(f"Unknown axes position {self.axes!r}.")
        if self.fps <= 0:
            raise TourError(f"fps must be positive, got {self.fps}.")


DEFAULT_TOUR_CONFIG = TourConfig()
DEFAULT_RENDER_CONFIG = RenderConfig()


def _from_dict(cls, raw: Dict[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise TourError(f"{cls.__name__}: unknown keys {sorted(unknown)}")
    return cls(**raw)


def load_config(path: Union[str, Path]) -> Tuple[TourConfig, RenderConfig]:
    """
    Read a JSON config with optional "tour" and "render" objects.

    Missing sections fall back to defaults; unknown keys raise TourError.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, dict):
        raise TourError(f"{path}: top-level JSON value must be an object.")

    extra = set(raw) - {"tour", "render"}
    if extra:
        raise TourError(f"{path}: unknown sections {sorted(extra)}")

    tour_cfg = _from_dict(TourConfig, raw.get("tour") or {})
    render_cfg = _from_dict(RenderConfig, raw.get("render") or {})
    logger.debug("Loaded config from %s: %s, %s", path, tour_cfg, render_cfg)
    return tour_cfg, render_cfg
