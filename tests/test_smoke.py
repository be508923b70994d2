"""Smoke tests for tourviz imports and the lazy public API."""
import pytest
import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.mark.smoke
def test_basic_imports():
    """Test that the core modules import"""
    try:
        from tourviz import basis, manip, manual_tour, geodesic, frames, path, config, errors
    except ImportError as e:
        pytest.fail(f"Basic imports failed: {e}")


@pytest.mark.smoke
def test_lazy_exports():
    """Every name in __all__ resolves through the lazy loader"""
    import tourviz
    for name in tourviz.__all__:
        assert getattr(tourviz, name) is not None, f"{name} did not resolve"


def test_unknown_attribute():
    import tourviz
    with pytest.raises(AttributeError):
        tourviz.does_not_exist
