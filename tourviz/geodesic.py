# tourviz/geodesic.py
"""
Geodesic interpolation between projection bases.

A pair of (p, d) bases Fa, Fz is bridged in two coupled motions:

  * the projection plane moves along the Grassmann geodesic, rotating each
    pair of principal directions (Ga_i, Gz_i) by its principal angle tau_i;
  * the in-plane orientation is carried from U^T to V^T by the matrix
    exponential of log(U V^T), so the path ends exactly on Fz rather than on
    a rotated copy of it.

The plane distance between two bases is the Euclidean norm of their
principal angles; consecutive interpolated frames are at most `angle_step`
apart in that metric.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy import linalg

from .basis import validate_basis
from .config import DEFAULT_TOUR_CONFIG, TourConfig
from .errors import InvalidAngle, InvalidBasis, InvalidDimension, InvalidRange
from .path import TourPath

logger = logging.getLogger(__name__)

_EPS = 1e-10
# Plane distance and twist below which two consecutive targets count as equal.
_SAME_EPS = 1e-6


def _pair(a, b) -> Tuple[np.ndarray, np.ndarray]:
    A = validate_basis(a)
    B = validate_basis(b)
    if A.shape != B.shape:
        raise InvalidDimension(f"bases have different shapes: {A.shape} vs {B.shape}.")
    return A, B


def principal_angles(a, b) -> np.ndarray:
    """Principal angles (ascending) between the column spans of two bases."""
    A, B = _pair(a, b)
    s = np.linalg.svd(A.T @ B, compute_uv=False)
    return np.sort(np.arccos(np.clip(s, -1.0, 1.0)))


def basis_distance(a, b) -> float:
    """Plane distance: Euclidean norm of the principal angles."""
    return float(np.linalg.norm(principal_angles(a, b)))


def _complement(cols: np.ndarray) -> np.ndarray:
    """A unit vector orthogonal to every column of `cols` (p, m)."""
    p = cols.shape[0]
    u, s, _ = np.linalg.svd(cols, full_matrices=True)
    rank = int(np.sum(s > _EPS))
    if rank >= p:
        raise InvalidBasis("bases differ by an in-plane reflection and p == d; "
                           "no rotation path connects them.")
    return u[:, rank]


def _rotation_log(Q: np.ndarray) -> np.ndarray:
    """
    Real skew-symmetric logarithm of a proper rotation matrix.

    Read off the real Schur form, which for an orthogonal matrix is
    block-diagonal: 2x2 rotation blocks and +-1 entries. The -1 entries come
    in pairs (det = +1) and become rotations by pi.
    """
    T, Z = linalg.schur(Q, output="real")
    d = T.shape[0]
    L = np.zeros_like(T)
    flips = []
    i = 0
    while i < d:
        if i + 1 < d and abs(T[i + 1, i]) > _EPS:
            a = math.atan2(T[i + 1, i], T[i, i])
            L[i, i + 1], L[i + 1, i] = -a, a
            i += 2
        else:
            if T[i, i] < 0:
                flips.append(i)
            i += 1
    for i, j in zip(flips[::2], flips[1::2]):
        L[i, j], L[j, i] = -math.pi, math.pi
    return Z @ L @ Z.T


def _segment(Fa: np.ndarray, Fz: np.ndarray) -> Tuple[Callable[[float], np.ndarray], float, float]:
    """
    Return (path, plane_distance, twist) for the geodesic from Fa to Fz.

    path(t) is the (p, d) basis at t in [0, 1]; twist is the in-plane
    rotation angle picked up along the way.
    """
    U, s, Vt = np.linalg.svd(Fa.T @ Fz)
    V = Vt.T
    if np.linalg.det(U @ V.T) < 0:
        # flip the weakest pair so the in-plane part is a proper rotation
        V[:, -1] *= -1.0
        s[-1] *= -1.0
    Ga = Fa @ U
    Gz = Fz @ V
    tau = np.arccos(np.clip(s, -1.0, 1.0))

    H = np.zeros_like(Ga)
    for i, ti in enumerate(tau):
        st = math.sin(ti)
        if st > _EPS:
            H[:, i] = (Gz[:, i] - Ga[:, i] * math.cos(ti)) / st
    for i, ti in enumerate(tau):
        if math.sin(ti) <= _EPS and ti > 0.5 * math.pi:
            # antipodal pair: leave the plane through any free direction
            H[:, i] = _complement(np.column_stack([Ga, H]))

    twist_log = _rotation_log(U @ V.T)
    twist = float(np.linalg.norm(twist_log) / math.sqrt(2.0))

    def path(t: float) -> np.ndarray:
        G = Ga * np.cos(t * tau) + H * np.sin(t * tau)
        return G @ (U.T @ linalg.expm(t * twist_log))

    return path, float(np.linalg.norm(tau)), twist


def _as_bases(path) -> Tuple[List[np.ndarray], Optional[np.ndarray], Optional[List[str]]]:
    if isinstance(path, TourPath):
        return list(path.bases), path.data, path.labels
    if isinstance(path, np.ndarray):
        arr = path[None, :, :] if path.ndim == 2 else path
        return list(arr), None, None
    return list(path), None, None


def interpolate(path: Union[TourPath, Sequence, np.ndarray], angle_step: Optional[float] = None,
                data=None, config: Optional[TourConfig] = None) -> TourPath:
    """
    Insert intermediate bases between consecutive target bases.

    Each target is validated against `config.tolerance`. The output starts on
    the first target, passes through every target and ends on the last one;
    consecutive frames are at most `angle_step` apart in plane distance, and
    the in-plane twist between them is bounded by the same step. A target
    equal to its predecessor adds no frame.

    `angle_step` defaults to `config.angle_step` (DEFAULT_TOUR_CONFIG when no
    config is given). `anchor[i]` of the result is the index of the last target
    basis at or before frame i. Data comes from `data`, else from a TourPath
    input.
    """
    cfg = config or DEFAULT_TOUR_CONFIG
    if angle_step is None:
        angle_step = cfg.angle_step

    try:
        angle_step = float(angle_step)
    except (TypeError, ValueError):
        raise InvalidAngle(f"angle_step must be a real number, got {angle_step!r}.") from None
    if not math.isfinite(angle_step):
        raise InvalidAngle(f"angle_step must be finite, got {angle_step}.")
    if angle_step <= 0.0:
        raise InvalidRange(f"angle_step must be positive, got {angle_step}.")

    targets, path_data, labels = _as_bases(path)
    if not targets:
        raise InvalidDimension("cannot interpolate an empty path.")
    targets = [validate_basis(t, cfg.tolerance) for t in targets]
    if data is None:
        data = path_data

    frames = [targets[0]]
    anchor = [0]
    for i in range(len(targets) - 1):
        Fa, Fz = _pair(targets[i], targets[i + 1])
        seg, dist, twist = _segment(Fa, Fz)
        if max(dist, twist) < _SAME_EPS:
            anchor[-1] = i + 1
            logger.debug("Segment %d: target repeats the previous one; no frames added.", i)
            continue
        n = max(1, int(math.ceil(max(dist, twist) / angle_step - 1e-9)))
        for j in range(1, n):
            frames.append(seg(j / n))
            anchor.append(i)
        frames.append(Fz)
        anchor.append(i + 1)
        logger.debug("Segment %d: distance %.4f, twist %.4f -> %d steps.", i, dist, twist, n)

    logger.debug("Interpolated %d target bases into %d frames.", len(targets), len(frames))
    return TourPath(np.stack(frames), data=data, labels=labels,
                    anchor=np.asarray(anchor))
