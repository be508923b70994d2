# tourviz/basis.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .config import DEFAULT_TOUR_CONFIG
from .errors import InvalidBasis, InvalidData, InvalidDimension, InvalidRank

logger = logging.getLogger(__name__)

ArrayLike = Union[np.ndarray, pd.DataFrame, Sequence[Sequence[float]]]


# ---------- small numeric helpers (module-level) ----------

def _check_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidDimension(f"{name} must be an integer, got {value!r}.")
    return int(value)


def as_matrix(a, name: str = "basis") -> np.ndarray:
    """Coerce to a 2-D float array; 1-D input becomes a single column."""
    if isinstance(a, pd.DataFrame):
        a = a.to_numpy()
    m = np.asarray(a, dtype=float)
    if m.ndim == 1:
        m = m[:, None]
    if m.ndim != 2:
        raise InvalidDimension(f"{name} must be 2-D, got shape {m.shape}.")
    return m


def data_matrix(data: ArrayLike) -> Tuple[np.ndarray, Optional[List[str]]]:
    """
    Return (X, column_names) for an (n, p) data input.

    Column names are only known for DataFrames. Rejects NaN/Inf with InvalidData.
    """
    names = None
    if isinstance(data, pd.DataFrame):
        names = [str(c) for c in data.columns]
    X = as_matrix(data, name="data")
    if X.size and not np.all(np.isfinite(X)):
        raise InvalidData("data contains NaN or infinite values.")
    return X, names


def orthonormalise(matrix: ArrayLike) -> np.ndarray:
    """
    Orthonormalise the columns of `matrix` (Gram-Schmidt order, via QR).

    Column signs follow the input, so an already orthonormal matrix comes back
    unchanged. Linearly dependent columns raise InvalidBasis.
    """
    m = as_matrix(matrix)
    p, d = m.shape
    if p < d:
        raise InvalidDimension(f"cannot orthonormalise {d} columns in {p} dimensions.")
    q, r = np.linalg.qr(m)
    diag = np.diag(r)
    if np.any(np.abs(diag) < 1e-12):
        raise InvalidBasis("columns are linearly dependent; cannot orthonormalise.")
    return q * np.sign(diag)


def orthonormality_error(basis: ArrayLike) -> float:
    """Frobenius norm of B^T B - I."""
    b = as_matrix(basis)
    return float(np.linalg.norm(b.T @ b - np.eye(b.shape[1])))


def is_orthonormal(basis: ArrayLike, tol: Optional[float] = None) -> bool:
    tol = DEFAULT_TOUR_CONFIG.tolerance if tol is None else tol
    b = as_matrix(basis)
    return bool(np.all(np.isfinite(b))) and orthonormality_error(b) < tol


def validate_basis(basis: ArrayLike, tol: Optional[float] = None) -> np.ndarray:
    """
    Return `basis` as a float (p, d) array, raising if it is not a valid basis.

    Raises InvalidDimension when p < d and InvalidBasis when the columns are not
    orthonormal within `tol` (default 1e-6).
    """
    tol = DEFAULT_TOUR_CONFIG.tolerance if tol is None else tol
    b = as_matrix(basis)
    p, d = b.shape
    if d < 1 or p < d:
        raise InvalidDimension(f"basis must be (p, d) with p >= d >= 1, got {b.shape}.")
    if not np.all(np.isfinite(b)):
        raise InvalidBasis("basis contains NaN or infinite values.")
    err = orthonormality_error(b)
    if err >= tol:
        raise InvalidBasis(f"basis is not orthonormal: ||B^T B - I|| = {err:.3e} >= {tol:g}.")
    return b


# ---------- basis generators ----------

def identity_basis(p: int, d: int = 2) -> np.ndarray:
    """
    (p, d) identity basis: the d x d identity on top, rows of zeros below.

    >>> identity_basis(4)
    array([[1., 0.],
           [0., 1.],
           [0., 0.],
           [0., 0.]])
    """
    p = _check_int("p", p)
    d = _check_int("d", d)
    if d < 1 or p < d:
        raise InvalidDimension(f"identity basis requires p >= d >= 1, got p={p}, d={d}.")
    return np.eye(p, d, dtype=float)


def random_basis(p: int, d: int = 2, seed=None) -> np.ndarray:
    """
    Uniformly random orthonormal (p, d) basis.

    Orthonormalises a standard Gaussian matrix; the QR sign fix makes the result
    Haar distributed. `seed` may be an int, None or a numpy Generator.
    """
    p = _check_int("p", p)
    d = _check_int("d", d)
    if d < 1 or p < d:
        raise InvalidDimension(f"random basis requires p >= d >= 1, got p={p}, d={d}.")
    rng = np.random.default_rng(seed)
    return orthonormalise(rng.standard_normal((p, d)))


def pca_basis(data: ArrayLike, d: int = 2) -> np.ndarray:
    """
    Top-d principal component loadings of `data` as basis columns.

    Data are centred (not scaled). Each column is sign-normalised so its
    largest-magnitude loading is positive, making repeated calls identical.
    """
    d = _check_int("d", d)
    X, _ = data_matrix(data)
    n, p = X.shape
    if d < 1 or d > min(n, p):
        raise InvalidDimension(f"cannot take {d} components from data of shape {X.shape}.")
    Xc = X - X.mean(axis=0)
    _, _, vt = np.linalg.svd(Xc, full_matrices=False)
    basis = vt[:d].T.copy()
    idx = np.argmax(np.abs(basis), axis=0)
    signs = np.sign(basis[idx, np.arange(d)])
    signs[signs == 0] = 1.0
    return basis * signs


def manip_var_of(basis: ArrayLike, rank: int = 1) -> int:
    """
    Row index (0-based) of the variable with the `rank`-th largest |contribution|
    to the first basis column. Ties keep the original row order.
    """
    b = as_matrix(basis)
    p = b.shape[0]
    if isinstance(rank, bool) or not isinstance(rank, (int, np.integer)):
        raise InvalidRank(f"rank must be an integer, got {rank!r}.")
    if rank < 1 or rank > p:
        raise InvalidRank(f"rank {rank} outside [1, {p}].")
    order = np.argsort(-np.abs(b[:, 0]), kind="stable")
    return int(order[rank - 1])


def basis_table(basis: ArrayLike, labels: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Per-variable table of the basis: x, y, in-plane norm and angle."""
    b = as_matrix(basis)
    p = b.shape[0]
    x = b[:, 0]
    y = b[:, 1] if b.shape[1] > 1 else np.zeros(p)
    if labels is None:
        labels = [f"x{i + 1}" for i in range(p)]
    if len(labels) != p:
        raise InvalidDimension(f"expected {p} labels, got {len(labels)}.")
    return pd.DataFrame(
        {"x": x, "y": y, "norm_xy": np.hypot(x, y), "theta": np.arctan2(y, x)},
        index=pd.Index(list(labels), name="variable"),
    )


# ---------- data scaling ----------

def _rewrap(original, values: np.ndarray):
    if isinstance(original, pd.DataFrame):
        return pd.DataFrame(values, index=original.index, columns=original.columns)
    return values


def scale_sd(data: ArrayLike):
    """Centre each column and divide by its sample standard deviation."""
    X, _ = data_matrix(data)
    if X.shape[0] < 2:
        raise InvalidData("need at least 2 observations to scale by standard deviation.")
    sd = X.std(axis=0, ddof=1)
    if np.any(sd == 0):
        raise InvalidData(f"constant columns cannot be scaled: {np.flatnonzero(sd == 0).tolist()}")
    return _rewrap(data, (X - X.mean(axis=0)) / sd)


def scale_01(data: ArrayLike):
    """Rescale each column linearly onto [0, 1]."""
    X, _ = data_matrix(data)
    lo = X.min(axis=0)
    span = X.max(axis=0) - lo
    if np.any(span == 0):
        raise InvalidData(f"constant columns cannot be scaled: {np.flatnonzero(span == 0).tolist()}")
    return _rewrap(data, (X - lo) / span)
