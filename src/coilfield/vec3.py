"""Three-dimensional vector helpers.

Vectors are plain float64 NumPy arrays of shape (3,).  All functions are
pure and return new arrays.  ``field`` evaluates the analytic
finite-segment Biot-Savart contribution through the compiled kernel in
:mod:`coilfield.kernels`, so single-point and grid evaluations agree
bit for bit.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from coilfield.errors import InvalidGeometry, InvalidParameter
from coilfield.kernels import MU_0, MU_0_4PI, segment_field

# Default absolute tolerance for vector comparison
VCMP_TOL: float = 1e-9

__all__ = [
    "MU_0",
    "MU_0_4PI",
    "VCMP_TOL",
    "vector",
    "as_vector",
    "vcmp",
    "length",
    "dot",
    "cross",
    "unit",
    "scale",
    "proj",
    "add",
    "sub",
    "vinterp",
    "field",
]


def vector(x: float, y: float, z: float) -> NDArray[np.float64]:
    """Build a 3-vector from its components."""
    return np.array([x, y, z], dtype=np.float64)


def as_vector(v: ArrayLike) -> NDArray[np.float64]:
    """Coerce *v* to a finite float64 array of shape (3,).

    Raises:
        InvalidParameter: If *v* is not three finite numbers.
    """
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (3,):
        raise InvalidParameter(f"expected a 3-vector, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidParameter(f"vector components must be finite; got {arr}")
    return arr


def vcmp(a: ArrayLike, b: ArrayLike, tol: float = VCMP_TOL) -> bool:
    """Return True when *a* and *b* agree component-wise within *tol*."""
    return bool(np.all(np.abs(np.asarray(a) - np.asarray(b)) <= tol))


def length(v: ArrayLike) -> float:
    """Euclidean norm of *v*."""
    return float(np.linalg.norm(v))


def dot(a: ArrayLike, b: ArrayLike) -> float:
    return float(np.dot(a, b))


def cross(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    return np.cross(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64))


def unit(v: ArrayLike) -> NDArray[np.float64]:
    """Normalise *v*.

    Raises:
        InvalidGeometry: If *v* has zero length.
    """
    arr = np.asarray(v, dtype=np.float64)
    norm = np.linalg.norm(arr)
    if norm == 0.0:
        raise InvalidGeometry("cannot normalise a zero-length vector")
    return arr / norm


def scale(alpha: float, v: ArrayLike) -> NDArray[np.float64]:
    return alpha * np.asarray(v, dtype=np.float64)


def proj(v: ArrayLike, u: ArrayLike) -> NDArray[np.float64]:
    """Vector projection of *v* onto *u*.

    Raises:
        InvalidGeometry: If *u* has zero length.
    """
    u_arr = np.asarray(u, dtype=np.float64)
    uu = float(np.dot(u_arr, u_arr))
    if uu == 0.0:
        raise InvalidGeometry("cannot project onto a zero-length vector")
    return (float(np.dot(v, u_arr)) / uu) * u_arr


def add(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    return np.asarray(a, dtype=np.float64) + np.asarray(b, dtype=np.float64)


def sub(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    return np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)


def vinterp(a: ArrayLike, b: ArrayLike, t: float) -> NDArray[np.float64]:
    """Linear interpolation a + t (b - a); *t* is not clamped."""
    a_arr = np.asarray(a, dtype=np.float64)
    return a_arr + t * (np.asarray(b, dtype=np.float64) - a_arr)


def field(
    A: ArrayLike,
    B: ArrayLike,
    M: ArrayLike,
    current: float,
) -> NDArray[np.float64]:
    """Magnetic field at *M* from the straight segment A->B.

    Args:
        A: Segment start point in metres.
        B: Segment end point in metres.
        M: Observation point in metres.
        current: Signed current in amperes flowing from A to B.

    Returns:
        Shape (3,) field vector in tesla.  Zero when *M* lies on the
        segment's line.
    """
    a = as_vector(A)
    b = as_vector(B)
    m = as_vector(M)
    bx, by, bz = segment_field(
        a[0], a[1], a[2], b[0], b[1], b[2], m[0], m[1], m[2], float(current)
    )
    return np.array([bx, by, bz], dtype=np.float64)
