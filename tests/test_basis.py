"""Basis generators, validation helpers and data scaling."""
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from tourviz.basis import (
    basis_table, identity_basis, is_orthonormal, manip_var_of, orthonormalise,
    pca_basis, random_basis, scale_01, scale_sd, validate_basis,
)
from tourviz.errors import InvalidBasis, InvalidData, InvalidDimension, InvalidRank, TourError


def test_identity_basis_6_2():
    b = identity_basis(6, 2)
    assert b.shape == (6, 2)
    assert np.array_equal(b[:2], np.eye(2)), "rows 1-2 should be I(2)"
    assert np.array_equal(b[2:], np.zeros((4, 2))), "rows 3-6 should be zero"


@pytest.mark.parametrize("p,d", [(1, 1), (3, 1), (3, 3), (10, 2), (7, 4)])
def test_identity_basis_shapes(p, d):
    b = identity_basis(p, d)
    assert b.shape == (p, d)
    assert np.allclose(b.T @ b, np.eye(d))
    for i in range(p):
        for j in range(d):
            assert b[i, j] == (1.0 if i == j else 0.0)


@pytest.mark.parametrize("p,d", [(1, 2), (3, 0), (2, 5)])
def test_identity_basis_rejects_bad_dims(p, d):
    with pytest.raises(InvalidDimension):
        identity_basis(p, d)


def test_identity_basis_rejects_non_integers():
    with pytest.raises(InvalidDimension):
        identity_basis(4.5, 2)
    with pytest.raises(InvalidDimension):
        identity_basis(True, 1)


def test_random_basis_seeded_and_orthonormal():
    a = random_basis(8, 3, seed=42)
    b = random_basis(8, 3, seed=42)
    c = random_basis(8, 3, seed=43)
    assert np.allclose(a, b), "same seed should reproduce the basis"
    assert not np.allclose(a, c)
    assert is_orthonormal(a)
    gen = np.random.default_rng(5)
    assert is_orthonormal(random_basis(4, 2, seed=gen))


def test_pca_basis_deterministic_and_sign_normalised():
    rng = np.random.default_rng(1)
    data = rng.normal(size=(100, 4)) * np.array([5.0, 2.0, 1.0, 0.5])
    a = pca_basis(data)
    b = pca_basis(data.copy())
    assert np.array_equal(a, b)
    assert is_orthonormal(a)
    for j in range(2):
        col = a[:, j]
        assert col[np.argmax(np.abs(col))] > 0, f"column {j} largest loading not positive"
    # first component follows the dominant variance
    assert np.argmax(np.abs(a[:, 0])) == 0


def test_pca_basis_accepts_dataframe():
    rng = np.random.default_rng(2)
    df = pd.DataFrame(rng.normal(size=(30, 3)), columns=["a", "b", "c"])
    assert np.allclose(pca_basis(df), pca_basis(df.to_numpy()))


def test_pca_basis_rejects_bad_input():
    with pytest.raises(InvalidData):
        pca_basis(np.array([[1.0, np.nan], [2.0, 3.0], [0.0, 1.0]]))
    with pytest.raises(InvalidDimension):
        pca_basis(np.ones((5, 2)), d=3)


def test_manip_var_of_ranks_first_column():
    basis = np.array([[0.1, 0.0], [-0.7, 0.0], [0.5, 0.0], [0.5, 0.0]])
    assert manip_var_of(basis) == 1
    assert manip_var_of(basis, rank=2) == 2, "ties keep original row order"
    assert manip_var_of(basis, rank=3) == 3
    assert manip_var_of(basis, rank=4) == 0


@pytest.mark.parametrize("rank", [0, 5, -1])
def test_manip_var_of_invalid_rank(rank):
    with pytest.raises(InvalidRank):
        manip_var_of(identity_basis(4), rank=rank)


def test_validate_basis():
    validate_basis(identity_basis(3))
    with pytest.raises(InvalidBasis):
        validate_basis(np.array([[1.0, 1.0], [0.0, 0.0], [0.0, 0.0]]))
    with pytest.raises(InvalidBasis):
        validate_basis(np.array([[1.0, 0.0], [0.0, np.inf], [0.0, 0.0]]))
    with pytest.raises(InvalidDimension):
        validate_basis(np.eye(3)[:2])  # p < d
    # errors share one base class
    with pytest.raises(TourError):
        validate_basis(2 * identity_basis(3))


def test_orthonormalise_keeps_orthonormal_input():
    b = random_basis(5, 2, seed=9)
    assert np.allclose(orthonormalise(b), b)
    with pytest.raises(InvalidBasis):
        orthonormalise(np.array([[1.0, 2.0], [1.0, 2.0], [0.0, 0.0]]))


def test_basis_table():
    b = identity_basis(3)
    tbl = basis_table(b, labels=["a", "b", "c"])
    assert list(tbl.columns) == ["x", "y", "norm_xy", "theta"]
    assert list(tbl.index) == ["a", "b", "c"]
    assert tbl.loc["b", "theta"] == pytest.approx(np.pi / 2)
    assert tbl.loc["c", "norm_xy"] == 0.0
    assert list(basis_table(b).index) == ["x1", "x2", "x3"]


def test_scale_sd_and_scale_01():
    rng = np.random.default_rng(7)
    X = rng.normal(loc=3.0, scale=2.0, size=(50, 3))
    s = scale_sd(X)
    assert np.allclose(s.mean(axis=0), 0.0)
    assert np.allclose(s.std(axis=0, ddof=1), 1.0)
    u = scale_01(X)
    assert np.allclose(u.min(axis=0), 0.0) and np.allclose(u.max(axis=0), 1.0)

    df = pd.DataFrame(X, columns=["a", "b", "c"])
    out = scale_01(df)
    assert isinstance(out, pd.DataFrame) and list(out.columns) == ["a", "b", "c"]


def test_scaling_rejects_constant_columns():
    X = np.column_stack([np.arange(5.0), np.ones(5)])
    with pytest.raises(InvalidData):
        scale_sd(X)
    with pytest.raises(InvalidData):
        scale_01(X)
