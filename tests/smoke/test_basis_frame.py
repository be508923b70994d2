#!/usr/bin/env python3
"""
Smoke test for basis generators and the manipulation space.
Tests the invariants everything downstream relies on:
- Generated bases have orthonormal columns
- Manipulation spaces are orthonormal and keep the basis span
- No NaN values in output
"""

import sys
import os
import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from tourviz.basis import identity_basis, random_basis, pca_basis
from tourviz.manip import create_manip_space, rotate_manip_space


@pytest.mark.smoke
def test_generated_bases_orthonormal():
    """Test identity, random and PCA bases for orthonormality."""
    rng = np.random.default_rng(3)
    data = rng.normal(size=(40, 6))

    for name, basis in [
        ("identity", identity_basis(6, 2)),
        ("random", random_basis(6, 2, seed=11)),
        ("pca", pca_basis(data, 2)),
    ]:
        assert basis.shape == (6, 2), f"{name} basis shape {basis.shape} != (6, 2)"
        assert not np.any(np.isnan(basis)), f"NaN found in {name} basis"
        err = np.linalg.norm(basis.T @ basis - np.eye(2))
        assert err < 1e-6, f"{name} basis not orthonormal: {err:.2e}"


@pytest.mark.smoke
def test_manip_space_invariants():
    """Test that rotated manipulation spaces stay orthonormal."""
    basis = random_basis(5, 2, seed=4)

    for mv in range(5):
        m_sp = create_manip_space(basis, mv)
        assert m_sp.shape == (5, 3), f"manip space shape {m_sp.shape} != (5, 3)"
        assert np.allclose(m_sp[:, :2], basis), "first two columns must reproduce the basis"
        assert np.allclose(m_sp.T @ m_sp, np.eye(3), atol=1e-10), "manip space not orthonormal"

        for theta, phi in [(0.3, 0.2), (-2.0, 1.4), (3.1, -0.7)]:
            rot = rotate_manip_space(m_sp, theta, phi)
            assert np.all(np.isfinite(rot)), "non-finite values after rotation"
            assert np.allclose(rot.T @ rot, np.eye(3), atol=1e-10), \
                f"rotation broke orthonormality (theta={theta}, phi={phi})"


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
