# tourviz/manip.py
from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

import numpy as np

from .basis import as_matrix, validate_basis
from .errors import DegenerateManipulation, InvalidAngle, InvalidDimension

logger = logging.getLogger(__name__)

# Residual norm below which a variable counts as lying in the basis span.
_DEGENERATE_EPS = 1e-8


# ---------- small numeric helpers (module-level) ----------

def _rodrigues(axis: np.ndarray, angle: float) -> np.ndarray:
    """
    3x3 rotation matrix rotating column vectors around 'axis' (shape (3,)) by
    'angle' (radians). 'axis' does not need to be unit (we normalize internally).
    """
    ax = np.asarray(axis, float)
    ax = ax / np.linalg.norm(ax)
    K = np.array([[0, -ax[2], ax[1]],
                  [ax[2], 0, -ax[0]],
                  [-ax[1], ax[0], 0]], dtype=float)
    I = np.eye(3, dtype=float)
    return I + math.sin(angle) * K + (1.0 - math.cos(angle)) * (K @ K)


def _finite_angle(name: str, value) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise InvalidAngle(f"{name} must be a real number, got {value!r}.") from None
    if not math.isfinite(v):
        raise InvalidAngle(f"{name} must be finite, got {v}.")
    return v


def _residual(basis: np.ndarray, k: int) -> np.ndarray:
    """Standard direction e_k with its projection onto the basis columns removed."""
    e = np.zeros(basis.shape[0])
    e[k] = 1.0
    r = e - basis @ (basis.T @ e)
    # second Gram-Schmidt pass; one pass loses orthogonality when r is short
    return r - basis @ (basis.T @ r)


def manip_rotation(theta: float, phi: float) -> np.ndarray:
    """
    3x3 right-multiplier of a manipulation space.

    Rotates by phi about the in-plane axis perpendicular to the direction theta,
    i.e. rotate by -theta, tilt by phi out of the display plane, rotate back.
    Row vectors along theta move towards the third (out-of-plane) column.
    """
    theta = _finite_angle("theta", theta)
    phi = _finite_angle("phi", phi)
    axis = np.array([-math.sin(theta), math.cos(theta), 0.0])
    return _rodrigues(axis, phi).T


# ---------- manipulation space ----------

def resolve_manip_var(manip_var, p: int, names: Optional[Sequence[str]] = None) -> int:
    """
    Row index of the manipulated variable.

    Accepts a 0-based integer index in [0, p) or, when `names` is given, the
    exact name of a variable. Anything else raises InvalidDimension.
    """
    if isinstance(manip_var, str):
        if names is None:
            raise InvalidDimension(f"manip_var {manip_var!r} is a name but no variable names "
                                   "are known; pass a DataFrame or labels.")
        names = [str(n) for n in names]
        if manip_var not in names:
            raise InvalidDimension(f"manip_var {manip_var!r} is not one of {names}.")
        return names.index(manip_var)
    if isinstance(manip_var, bool) or not isinstance(manip_var, (int, np.integer)):
        raise InvalidDimension(f"manip_var must be an integer row index, got {manip_var!r}.")
    k = int(manip_var)
    if not 0 <= k < p:
        raise InvalidDimension(f"manip_var {k} outside [0, {p - 1}].")
    return k


def create_manip_space(basis, manip_var: int, *, allow_degenerate: bool = False,
                       tol: Optional[float] = None) -> np.ndarray:
    """
    Extend a (p, 2) basis to a (p, 3) orthonormal manipulation space.

    The third column is the unit residual of the standard direction of
    `manip_var` after removing its projection onto the basis. Indices are
    0-based: the third variable, "manip_var = 3" in 1-based notation, is
    `manip_var=2` here.

    Raises DegenerateManipulation when that direction already lies in the basis
    span. With `allow_degenerate=True` the third column instead comes from the
    standard direction with the largest residual (first in cyclic order after
    `manip_var` on ties); a variable lying fully in the plane can then still be
    rotated out of it.
    """
    b = validate_basis(basis, tol)
    p, d = b.shape
    if d != 2:
        raise InvalidDimension(f"manipulation space needs a (p, 2) basis, got d={d}.")
    k = resolve_manip_var(manip_var, p)

    r = _residual(b, k)
    norm = float(np.linalg.norm(r))
    if norm < _DEGENERATE_EPS:
        if not allow_degenerate or p <= d:
            raise DegenerateManipulation(
                f"variable {k} lies in the span of the basis (residual {norm:.1e}); "
                "no out-of-plane direction to rotate into."
            )
        order = [(k + j) % p for j in range(1, p)]
        norms = [float(np.linalg.norm(_residual(b, j))) for j in order]
        best = order[int(np.argmax(norms))]
        r = _residual(b, best)
        norm = float(np.linalg.norm(r))
        logger.debug("Variable %d lies in the basis plane; using direction %d for the "
                     "out-of-plane axis.", k, best)

    return np.column_stack([b, r / norm])


def rotate_manip_space(manip_space, theta: float, phi: float) -> np.ndarray:
    """
    Rotate a (p, 3) manipulation space by in-plane angle theta and
    out-of-plane angle phi; returns the rotated (p, 3) frame.

    Every row is multiplied by the same 3x3 orthogonal matrix, so the result
    stays orthonormal. theta=0, phi=0 returns the input unchanged. The first
    two columns are the new 2-D basis.
    """
    m = as_matrix(manip_space, name="manip_space")
    if m.shape[1] != 3:
        raise InvalidDimension(f"manip_space must be (p, 3), got {m.shape}.")
    validate_basis(m)
    return m @ manip_rotation(theta, phi)
