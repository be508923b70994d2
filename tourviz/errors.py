# tourviz/errors.py
"""Exception taxonomy for the tour engine.

Every rejected operation raises a subclass of ``TourError``. It derives from
``ValueError`` so code that already guards numeric input with ``except
ValueError`` keeps working.
"""


class TourError(ValueError):
    """Base class for all errors raised by tourviz."""


class InvalidDimension(TourError):
    """Shape problems: p < d, wrong ndim, p mismatch between inputs."""


class DimensionMismatch(InvalidDimension):
    """Data column count differs from the basis row count during assembly."""


class InvalidBasis(TourError):
    """Basis columns are not orthonormal within tolerance."""


class DegenerateManipulation(TourError):
    """The manipulation variable lies in the basis span; no out-of-plane direction."""


class InvalidAngle(TourError):
    """A rotation angle (theta, phi) or angular step is not finite."""


class InvalidRange(TourError):
    """phi_min > phi_max, or a non-positive angular step."""


class InvalidRank(TourError):
    """Requested contribution rank is outside [1, p]."""


class InvalidData(TourError):
    """Data matrix contains NaN/Inf or cannot be scaled."""
