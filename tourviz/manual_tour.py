# tourviz/manual_tour.py
from __future__ import annotations

import logging
import math
from typing import List, Optional, Union

import numpy as np

from .basis import data_matrix, validate_basis
from .config import DEFAULT_TOUR_CONFIG, TourConfig
from .errors import InvalidAngle, InvalidRange
from .manip import create_manip_space, resolve_manip_var, rotate_manip_space
from .path import ManualTourPath

logger = logging.getLogger(__name__)


def _finite(name: str, value) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise InvalidAngle(f"{name} must be a real number, got {value!r}.") from None
    if not math.isfinite(v):
        raise InvalidAngle(f"{name} must be finite, got {v}.")
    return v


def _walk(start: float, end: float, step: float) -> List[float]:
    """
    Angles from `start` (excluded) to `end` (included) in increments of
    `step`; the last increment is clipped to land on `end`.
    """
    dist = abs(end - start)
    if dist == 0.0:
        return []
    # tolerance so e.g. (pi/2) / (pi/4) counts as 2 steps, not 3
    n = max(1, int(math.ceil(dist / step - 1e-9)))
    sign = 1.0 if end > start else -1.0
    return [start + sign * step * i for i in range(1, n)] + [end]


def phi_path(phi_start: float, phi_min: float, phi_max: float, angle_step: float) -> np.ndarray:
    """
    There-and-back sweep: phi_start -> phi_min -> phi_max -> phi_start.

    Junction angles appear once, so the first and last entries are both
    phi_start and consecutive entries differ by at most `angle_step`.
    """
    phis = [phi_start]
    phis += _walk(phi_start, phi_min, angle_step)
    phis += _walk(phi_min, phi_max, angle_step)
    phis += _walk(phi_max, phi_start, angle_step)
    return np.asarray(phis, dtype=float)


def manual_tour(basis, manip_var: Union[int, str], theta: Optional[float] = None,
                phi_min: Optional[float] = None, phi_max: Optional[float] = None,
                angle_step: Optional[float] = None, data=None,
                config: Optional[TourConfig] = None) -> ManualTourPath:
    """
    Manual (radial) tour of one variable.

    Builds the manipulation space of `manip_var` and sweeps its out-of-plane
    angle phi from the current value to `phi_min`, up to `phi_max` and back,
    one (p, 2) basis per step of `angle_step` radians.

    Args:
        basis: (p, 2) orthonormal starting basis.
        manip_var: 0-based row index of the variable to manipulate (the third
            variable is 2), or its column name when `data` is a DataFrame.
        theta: in-plane direction of the rotation. Defaults to the variable's
            current angle in the basis, so the tour is radial.
        phi_min, phi_max: bounds of the sweep, radians. Values outside
            [0, pi/2] are allowed but logged as a warning.
        angle_step: target angular distance between frames.
        data: optional (n, p) data to pair with the path.
        config: TourConfig supplying any of phi_min, phi_max and angle_step
            left as None; defaults to DEFAULT_TOUR_CONFIG.

    Returns a ManualTourPath whose first and last basis equal `basis`.
    """
    cfg = config or DEFAULT_TOUR_CONFIG
    b = validate_basis(basis, cfg.tolerance)
    phi_min = _finite("phi_min", cfg.phi_min if phi_min is None else phi_min)
    phi_max = _finite("phi_max", cfg.phi_max if phi_max is None else phi_max)
    angle_step = _finite("angle_step", cfg.angle_step if angle_step is None else angle_step)

    if angle_step <= 0.0:
        raise InvalidRange(f"angle_step must be positive, got {angle_step}.")
    if phi_min > phi_max:
        raise InvalidRange(f"phi_min ({phi_min}) is greater than phi_max ({phi_max}).")
    if phi_min < 0.0 or phi_max > 0.5 * math.pi:
        logger.warning("phi range [%.3f, %.3f] extends outside [0, pi/2]; at pi/2 the "
                       "variable is already fully out of the projection plane.", phi_min, phi_max)

    names = data_matrix(data)[1] if data is not None else None
    k = resolve_manip_var(manip_var, b.shape[0], names)
    manip_space = create_manip_space(b, k, allow_degenerate=True, tol=cfg.tolerance)
    x, y = b[k, 0], b[k, 1]
    if theta is None:
        theta = math.atan2(y, x)
        logger.debug("theta not supplied; using the variable's angle %.4f (radial tour).", theta)
    else:
        theta = _finite("theta", theta)

    phi_start = math.acos(min(1.0, math.hypot(x, y)))
    phis = phi_path(phi_start, phi_min, phi_max, angle_step)

    # rotating by (phi_start - phi) leaves the variable at out-of-plane angle phi
    bases = np.stack([
        rotate_manip_space(manip_space, theta, phi_start - phi)[:, :2] for phi in phis
    ])
    logger.debug("Manual tour of variable %s: %d frames, phi_start=%.4f.",
                 k, len(bases), phi_start)
    return ManualTourPath(bases, data=data, manip_var=k, theta=theta, phi=phis)
