# tourviz/path.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional, Sequence

import numpy as np

from .basis import data_matrix, validate_basis
from .errors import DimensionMismatch, InvalidDimension

logger = logging.getLogger(__name__)


def _readonly(a: Optional[np.ndarray]) -> Optional[np.ndarray]:
    if a is None:
        return None
    a = np.array(a, copy=True)
    a.setflags(write=False)
    return a


@dataclass(frozen=True, eq=False)
class TourPath:
    """
    Ordered, immutable sequence of (p, d) bases stored as a (k, p, d) array.

    The source data, when known, travels with the path as `data` rather than
    as hidden metadata. `anchor[i]` is the index of the target-basis segment
    frame i belongs to (interpolated paths only).
    """
    bases: np.ndarray
    data: Optional[np.ndarray] = None
    labels: Optional[List[str]] = None
    anchor: Optional[np.ndarray] = None

    def __post_init__(self):
        b = np.asarray(self.bases, dtype=float)
        if b.ndim == 2:
            b = b[None, :, :]
        if b.ndim != 3 or b.shape[0] == 0:
            raise InvalidDimension(f"bases must be a non-empty (k, p, d) array, got shape {b.shape}.")
        object.__setattr__(self, "bases", _readonly(b))
        if self.data is not None:
            X, names = data_matrix(self.data)
            if X.shape[1] != b.shape[1]:
                raise DimensionMismatch(f"data has {X.shape[1]} columns, bases have p={b.shape[1]} rows.")
            object.__setattr__(self, "data", _readonly(X))
            if self.labels is None and names is not None:
                object.__setattr__(self, "labels", names)
        if self.labels is not None:
            labels = [str(s) for s in self.labels]
            if len(labels) != b.shape[1]:
                raise InvalidDimension(f"expected {b.shape[1]} labels, got {len(labels)}.")
            object.__setattr__(self, "labels", labels)
        if self.anchor is not None:
            a = np.asarray(self.anchor, dtype=int)
            if a.shape != (b.shape[0],):
                raise InvalidDimension(f"anchor must have one entry per frame, got shape {a.shape}.")
            object.__setattr__(self, "anchor", _readonly(a))

    @classmethod
    def from_bases(cls, bases: Sequence, data=None, tol: Optional[float] = None, **kwargs) -> "TourPath":
        """Build a path from a sequence of bases, validating each frame's orthonormality."""
        frames = [validate_basis(b, tol) for b in bases]
        if not frames:
            raise InvalidDimension("a tour path needs at least one basis.")
        shape = frames[0].shape
        for i, f in enumerate(frames):
            if f.shape != shape:
                raise InvalidDimension(f"basis {i} has shape {f.shape}, expected {shape}.")
        return cls(np.stack(frames), data=data, **kwargs)

    # ----- basic introspection -----

    @property
    def p(self) -> int:
        return self.bases.shape[1]

    @property
    def d(self) -> int:
        return self.bases.shape[2]

    def __len__(self) -> int:
        return self.bases.shape[0]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.bases)

    def __getitem__(self, i) -> np.ndarray:
        return self.bases[i]

    def __repr__(self) -> str:
        has_data = "yes" if self.data is not None else "no"
        return f"{type(self).__name__}(frames={len(self)}, p={self.p}, d={self.d}, data={has_data})"

    def with_data(self, data) -> "TourPath":
        """New path paired with `data` (labels re-derived from a DataFrame)."""
        return replace(self, data=data, labels=None)


@dataclass(frozen=True, eq=False)
class ManualTourPath(TourPath):
    """A manual tour: one variable swept out of and back into the plane."""
    manip_var: Optional[int] = None
    theta: Optional[float] = None
    phi: Optional[np.ndarray] = field(default=None)

    def __post_init__(self):
        super().__post_init__()
        if self.phi is not None:
            phi = np.asarray(self.phi, dtype=float)
            if phi.shape != (len(self),):
                raise InvalidDimension(f"phi must have one entry per frame, got shape {phi.shape}.")
            object.__setattr__(self, "phi", _readonly(phi))

    @property
    def n_steps(self) -> int:
        """Number of increments between consecutive frames."""
        return len(self) - 1
