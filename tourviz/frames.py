# tourviz/frames.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd

from .basis import data_matrix, validate_basis
from .config import DEFAULT_TOUR_CONFIG
from .errors import DimensionMismatch, InvalidDimension
from .path import ManualTourPath, TourPath

logger = logging.getLogger(__name__)

_VOWELS = set("aeiou")


def abbreviate(name: str, minlength: int = 3) -> str:
    """
    Shorten `name` to `minlength` characters the way R's abbreviate() does.

    Working from the right and never touching the first character, drop
    spaces, then lower-case vowels, then lower-case letters, then anything.
    """
    chars = list(str(name).strip())
    stages = (
        str.isspace,
        lambda c: c in _VOWELS,
        str.islower,
        lambda c: True,
    )
    for drop in stages:
        i = len(chars) - 1
        while len(chars) > minlength and i > 0:
            if drop(chars[i]):
                del chars[i]
            i -= 1
    return "".join(chars)


def abbreviate_unique(names: Sequence[str], minlength: int = 3) -> List[str]:
    """Abbreviate all names, lengthening until the abbreviations are distinct."""
    names = [str(n) for n in names]
    longest = max((len(n) for n in names), default=minlength)
    for length in range(minlength, longest + 1):
        out = [abbreviate(n, length) for n in names]
        if len(set(out)) == len(out):
            return out
    return names


@dataclass(frozen=True)
class FrameRecord:
    frame: int
    kind: str                   # "point" or "axis"
    id: str
    x: float
    y: float
    label: Optional[str] = None


@dataclass
class FrameTable:
    """
    Flat, frame-ordered table of projected points and basis axes.

    Within a frame, point rows come first (one per observation), then axis rows
    (one per variable). This is what a Renderer consumes.
    """
    records: List[FrameRecord]
    n_frames: int
    n_points: int
    labels: List[str]
    manip_var: Optional[int] = None

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[FrameRecord]:
        return iter(self.records)

    @property
    def p(self) -> int:
        return len(self.labels)

    def points(self) -> List[FrameRecord]:
        return [r for r in self.records if r.kind == "point"]

    def axes(self) -> List[FrameRecord]:
        return [r for r in self.records if r.kind == "axis"]

    def frame(self, i: int) -> List[FrameRecord]:
        if not 0 <= i < self.n_frames:
            raise IndexError(f"frame {i} outside [0, {self.n_frames - 1}]")
        per = self.n_points + self.p
        return self.records[i * per:(i + 1) * per]

    def to_dataframe(self) -> pd.DataFrame:
        cols = ["frame", "kind", "id", "x", "y", "label"]
        return pd.DataFrame([(r.frame, r.kind, r.id, r.x, r.y, r.label) for r in self.records],
                            columns=cols)


def assemble_frames(path, data=None, labels: Optional[Sequence[str]] = None,
                    label_length: Optional[int] = None) -> FrameTable:
    """
    Project `data` through every basis of `path` and flatten to a FrameTable.

    Args:
        path: TourPath, (k, p, d) array or sequence of (p, d) bases. The frame
            index is the position in the sequence.
        data: optional (n, p) matrix or DataFrame; falls back to `path.data`.
            Without data only axis rows are emitted.
        labels: axis labels, one per variable. Defaults to abbreviated data
            column names, else x1..xp.
        label_length: abbreviation length (default 3).

    Raises DimensionMismatch when the data column count differs from p,
    InvalidData for NaN/Inf data and InvalidBasis for a non-orthonormal frame.
    """
    label_length = DEFAULT_TOUR_CONFIG.label_length if label_length is None else label_length
    manip_var = None
    path_names = None
    if isinstance(path, TourPath):
        if data is None:
            data = path.data
        path_names = path.labels
        if isinstance(path, ManualTourPath):
            manip_var = path.manip_var
        bases = path.bases
    else:
        bases = np.asarray(path, dtype=float)
        if bases.ndim == 2:
            bases = bases[None, :, :]
    if bases.ndim != 3 or bases.shape[0] == 0:
        raise InvalidDimension(f"expected a non-empty (k, p, d) basis array, got shape {bases.shape}.")
    for b in bases:
        validate_basis(b)
    k, p, d = bases.shape

    names = [f"x{j + 1}" for j in range(p)]
    named = False
    if path_names is not None:
        names, named = list(path_names), True
    X = None
    obs_ids: List[str] = []
    if data is not None:
        X, colnames = data_matrix(data)
        if X.shape[1] != p:
            raise DimensionMismatch(f"data has {X.shape[1]} columns but bases have p={p} rows.")
        if colnames is not None:
            names, named = colnames, True
        if isinstance(data, pd.DataFrame):
            obs_ids = [str(v) for v in data.index]
        else:
            obs_ids = [str(i) for i in range(X.shape[0])]

    if labels is None:
        labels = abbreviate_unique(names, label_length) if named else names
    labels = [str(s) for s in labels]
    if len(labels) != p:
        raise InvalidDimension(f"expected {p} labels, got {len(labels)}.")

    # (k, p, d) -> x/y per variable; data projected in one shot as (k, n, d)
    axis_xy = bases[:, :, :2] if d >= 2 else np.concatenate([bases, np.zeros((k, p, 1))], axis=2)
    if X is not None:
        proj = np.einsum("np,kpd->knd", X, bases)
        if d < 2:
            proj = np.concatenate([proj, np.zeros(proj.shape[:2] + (1,))], axis=2)
    else:
        proj = np.zeros((k, 0, 2))

    records: List[FrameRecord] = []
    for f in range(k):
        for i, oid in enumerate(obs_ids):
            records.append(FrameRecord(f, "point", oid, float(proj[f, i, 0]), float(proj[f, i, 1])))
        for j in range(p):
            records.append(FrameRecord(f, "axis", names[j], float(axis_xy[f, j, 0]),
                                       float(axis_xy[f, j, 1]), labels[j]))

    logger.debug("Assembled %d frames: %d points and %d axes per frame.", k, len(obs_ids), p)
    return FrameTable(records, n_frames=k, n_points=len(obs_ids), labels=labels,
                      manip_var=manip_var)
