# tourviz/__init__.py
"""
Public API for the tourviz package.

External code can import:
    from tourviz import identity_basis, random_basis, pca_basis, manip_var_of
    from tourviz import create_manip_space, rotate_manip_space, manual_tour
    from tourviz import interpolate, assemble_frames, TourPath, FrameTable

Inside package modules, prefer relative imports to avoid cycles:
    from .basis import identity_basis
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import importlib

__all__ = [
    # Basis generation + helpers
    "identity_basis", "random_basis", "pca_basis", "manip_var_of",
    "orthonormalise", "is_orthonormal", "validate_basis", "basis_table",
    "scale_sd", "scale_01",
    # Manipulation + manual tour
    "create_manip_space", "rotate_manip_space", "resolve_manip_var", "manual_tour",
    "TourPath", "ManualTourPath",
    # Geodesic interpolation
    "interpolate", "principal_angles", "basis_distance",
    # Frame assembly
    "assemble_frames", "FrameTable", "FrameRecord", "abbreviate",
    # Rendering (presentation glue)
    "Renderer", "InteractiveRenderer", "AnimationRenderer",
    "view_frame", "view_manip_space", "play_tour_path", "play_manual_tour",
    # Config
    "TourConfig", "RenderConfig", "load_config",
    # Errors
    "TourError", "InvalidDimension", "InvalidBasis", "DegenerateManipulation",
    "InvalidAngle", "InvalidRange", "InvalidRank", "DimensionMismatch", "InvalidData",
]

# Map exported names -> submodule that defines them
_EXPORT_MAP = {
    "identity_basis": "tourviz.basis",
    "random_basis": "tourviz.basis",
    "pca_basis": "tourviz.basis",
    "manip_var_of": "tourviz.basis",
    "orthonormalise": "tourviz.basis",
    "is_orthonormal": "tourviz.basis",
    "validate_basis": "tourviz.basis",
    "basis_table": "tourviz.basis",
    "scale_sd": "tourviz.basis",
    "scale_01": "tourviz.basis",

    "create_manip_space": "tourviz.manip",
    "rotate_manip_space": "tourviz.manip",
    "resolve_manip_var": "tourviz.manip",
    "manual_tour": "tourviz.manual_tour",
    "TourPath": "tourviz.path",
    "ManualTourPath": "tourviz.path",

    "interpolate": "tourviz.geodesic",
    "principal_angles": "tourviz.geodesic",
    "basis_distance": "tourviz.geodesic",

    "assemble_frames": "tourviz.frames",
    "FrameTable": "tourviz.frames",
    "FrameRecord": "tourviz.frames",
    "abbreviate": "tourviz.frames",

    # Renderers pull in plotly/matplotlib, keep them lazy
    "Renderer": "tourviz.render",
    "InteractiveRenderer": "tourviz.render",
    "AnimationRenderer": "tourviz.render",
    "view_frame": "tourviz.render",
    "view_manip_space": "tourviz.render",
    "play_tour_path": "tourviz.render",
    "play_manual_tour": "tourviz.render",

    "TourConfig": "tourviz.config",
    "RenderConfig": "tourviz.config",
    "load_config": "tourviz.config",

    "TourError": "tourviz.errors",
    "InvalidDimension": "tourviz.errors",
    "InvalidBasis": "tourviz.errors",
    "DegenerateManipulation": "tourviz.errors",
    "InvalidAngle": "tourviz.errors",
    "InvalidRange": "tourviz.errors",
    "InvalidRank": "tourviz.errors",
    "DimensionMismatch": "tourviz.errors",
    "InvalidData": "tourviz.errors",
}


def __getattr__(name: str):
    """Lazy attribute loader to avoid import-time cycles."""
    mod_name = _EXPORT_MAP.get(name)
    if not mod_name:
        raise AttributeError(f"module 'tourviz' has no attribute {name!r}")
    mod = importlib.import_module(mod_name)
    return getattr(mod, name)


if TYPE_CHECKING:
    # Eager imports for static type checkers / IDEs only.
    from .basis import (identity_basis, random_basis, pca_basis, manip_var_of,
                        orthonormalise, is_orthonormal, validate_basis, basis_table,
                        scale_sd, scale_01)
    from .manip import create_manip_space, resolve_manip_var, rotate_manip_space
    from .manual_tour import manual_tour
    from .path import TourPath, ManualTourPath
    from .geodesic import interpolate, principal_angles, basis_distance
    from .frames import assemble_frames, FrameTable, FrameRecord, abbreviate
    from .render import (Renderer, InteractiveRenderer, AnimationRenderer,
                         view_frame, view_manip_space, play_tour_path, play_manual_tour)
    from .config import TourConfig, RenderConfig, load_config
    from .errors import (TourError, InvalidDimension, InvalidBasis, DegenerateManipulation,
                         InvalidAngle, InvalidRange, InvalidRank, DimensionMismatch, InvalidData)
