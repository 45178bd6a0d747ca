"""Coil shape generators.

Each generator discretises an idealised current path into straight
segments and appends them to a caller-supplied
:class:`~coilfield.wires.WireList`.  The curve parameter is sampled at
n + 1 points, consecutive samples are joined, and every segment gets the
same signed current.

Winding convention:
    ``dir`` names the coil axis and sense: ``"x"``, ``"y"``, ``"z"``
    optionally prefixed with ``+`` or ``-``.  For axis e3 the in-plane
    basis is cyclic (z: x,y / x: y,z / y: z,x), so e1 x e2 = e3.  Curves
    run counter-clockwise about e3, angles are measured from e1 toward
    e2 in radians, and a positive current with a ``+`` axis makes the
    field inside a loop point along +e3.  A ``-`` axis negates the
    current.

Generators validate all parameters before emitting anything and build
into a scratch list, so a failed call leaves the target list untouched.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

from coilfield.errors import InvalidParameter
from coilfield.vec3 import as_vector
from coilfield.wires import WireList

log = logging.getLogger(__name__)

_AXES = {"x": 0, "y": 1, "z": 2}

# Maxwell coil geometry (outer coil radius and offset in units of R) and
# the outer:centre ampere-turn ratio that cancels the fourth-order term
MAXWELL_OUTER_RADIUS: float = math.sqrt(4.0 / 7.0)
MAXWELL_OUTER_OFFSET: float = math.sqrt(3.0 / 7.0)
MAXWELL_CURRENT_RATIO: float = 49.0 / 64.0


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def parse_dir(direction: str) -> tuple[int, float]:
    """Split a winding direction string into (axis index, current sign).

    Raises:
        InvalidParameter: If *direction* is not one of x, y, z with an
            optional sign.
    """
    text = str(direction).strip().lower()
    sign = 1.0
    if text[:1] in ("+", "-"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text not in _AXES:
        raise InvalidParameter(
            f"dir must be x, y or z with optional sign; got {direction!r}"
        )
    return _AXES[text], sign


def frame(axis: int) -> tuple[NDArray, NDArray, NDArray]:
    """Right-handed basis (e1, e2, e3) with e3 along *axis*."""
    eye = np.eye(3)
    return eye[(axis + 1) % 3], eye[(axis + 2) % 3], eye[axis]


def _positive(name: str, value: float) -> float:
    value = float(value)
    if not (math.isfinite(value) and value > 0.0):
        raise InvalidParameter(f"{name} must be positive; got {value}")
    return value


def _non_negative(name: str, value: float) -> float:
    value = float(value)
    if not (math.isfinite(value) and value >= 0.0):
        raise InvalidParameter(f"{name} must be non-negative; got {value}")
    return value


def _count(name: str, value: int) -> int:
    if isinstance(value, bool) or int(value) != value or value < 1:
        raise InvalidParameter(f"{name} must be a positive integer; got {value}")
    return int(value)


def _finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise InvalidParameter(f"{name} must be finite; got {value}")
    return value


def _ring(
    origin: NDArray,
    radius: float,
    angles: NDArray,
    heights: NDArray | float,
    axis: int,
) -> NDArray:
    """Points at the given angles/axial heights on a cylinder about e3."""
    e1, e2, e3 = frame(axis)
    heights = np.broadcast_to(np.asarray(heights, dtype=np.float64), angles.shape)
    return (
        origin
        + radius * np.cos(angles)[:, None] * e1
        + radius * np.sin(angles)[:, None] * e2
        + heights[:, None] * e3
    )


def _polyline(wires: WireList, points: NDArray, current: float) -> int:
    for a, b in zip(points[:-1], points[1:]):
        wires.append(a, b, current)
    return points.shape[0] - 1


def _commit(wires: WireList, scratch: WireList, shape: str) -> int:
    wires.extend(scratch)
    log.debug("%s: appended %d segments", shape, len(scratch))
    return len(scratch)


# ------------------------------------------------------------------
# Generators
# ------------------------------------------------------------------


def arc(
    wires: WireList,
    origin: ArrayLike,
    radius: float,
    t1: float,
    t2: float,
    n: int,
    dir: str,
    I: float,
) -> int:
    """Circular arc of *radius* from angle *t1* to *t2* about *origin*.

    Args:
        wires: List to append to.
        origin: Arc centre.
        radius: Arc radius in metres.
        t1: Start angle in radians.
        t2: End angle in radians.
        n: Number of segments.
        dir: Winding direction string (see module docstring).
        I: Current magnitude in amperes.

    Returns:
        Number of segments appended.
    """
    o = as_vector(origin)
    radius = _positive("radius", radius)
    n = _count("n", n)
    t1 = _finite("t1", t1)
    t2 = _finite("t2", t2)
    if t1 == t2:
        raise InvalidParameter("arc must sweep a non-zero angle")
    axis, sign = parse_dir(dir)

    pts = _ring(o, radius, np.linspace(t1, t2, n + 1), 0.0, axis)
    scratch = WireList()
    _polyline(scratch, pts, sign * float(I))
    return _commit(wires, scratch, "arc")


def circle(
    wires: WireList,
    origin: ArrayLike,
    radius: float,
    n: int,
    dir: str,
    I: float,
) -> int:
    """Closed circular loop of *n* segments about *origin*."""
    o = as_vector(origin)
    radius = _positive("radius", radius)
    n = _count("n", n)
    axis, sign = parse_dir(dir)

    if n < 3:
        raise InvalidParameter(f"a closed circle needs n >= 3; got {n}")

    pts = _ring(o, radius, np.linspace(0.0, 2.0 * math.pi, n + 1), 0.0, axis)
    pts[-1] = pts[0]
    scratch = WireList()
    _polyline(scratch, pts, sign * float(I))
    return _commit(wires, scratch, "circle")


def helix(
    wires: WireList,
    origin: ArrayLike,
    radius: float,
    pitch: float,
    turns: float,
    n: int,
    dir: str,
    I: float,
) -> int:
    """Helical winding centred axially on *origin*.

    Each step advances the angle by 2 pi / n and the axial position by
    pitch / n, for round(turns * n) steps.

    Args:
        wires: List to append to.
        origin: Centre of the winding.
        radius: Winding radius in metres.
        pitch: Axial advance per turn in metres (zero stacks the turns).
        turns: Number of turns, may be fractional.
        n: Segments per turn.
        dir: Winding direction string.
        I: Current magnitude in amperes.

    Returns:
        Number of segments appended.
    """
    o = as_vector(origin)
    radius = _positive("radius", radius)
    pitch = _non_negative("pitch", pitch)
    turns = _positive("turns", turns)
    n = _count("n", n)
    axis, sign = parse_dir(dir)

    steps = int(round(turns * n))
    if steps < 1:
        raise InvalidParameter("turns * n must round to at least one segment")

    k = np.arange(steps + 1, dtype=np.float64)
    height = pitch * steps / n
    pts = _ring(o, radius, 2.0 * math.pi * k / n, pitch * k / n - height / 2.0, axis)
    if pitch == 0.0 and steps % n == 0:
        pts[-1] = pts[0]

    scratch = WireList()
    _polyline(scratch, pts, sign * float(I))
    return _commit(wires, scratch, "helix")


def _coil(
    wires: WireList,
    center: NDArray,
    radius: float,
    pitch: float,
    turns: float,
    n: int,
    dir: str,
    I: float,
) -> int:
    if pitch == 0.0 and turns == 1:
        return circle(wires, center, radius, n, dir, I)
    return helix(wires, center, radius, pitch, turns, n, dir, I)


def helmholtz(
    wires: WireList,
    origin: ArrayLike,
    radius: float,
    pitch: float,
    turns: float,
    n: int,
    dir: str,
    I: float,
) -> int:
    """Helmholtz pair: two identical coils at +/- radius/2 along the axis.

    Each coil is a circle when ``turns == 1`` and ``pitch == 0`` and a
    helix otherwise.  Both carry the same current direction.
    """
    o = as_vector(origin)
    radius = _positive("radius", radius)
    axis, _ = parse_dir(dir)
    e3 = frame(axis)[2]

    scratch = WireList()
    for side in (-1.0, 1.0):
        _coil(scratch, o + side * 0.5 * radius * e3, radius, pitch, turns, n, dir, I)
    return _commit(wires, scratch, "helmholtz")


def maxwell(
    wires: WireList,
    origin: ArrayLike,
    radius: float,
    pitch: float,
    turns: float,
    n: int,
    dir: str,
    I: float,
) -> int:
    """Maxwell coil: three coaxial coils on a sphere of radius *radius*.

    The centre coil has radius R and sits at *origin*.  The outer coils
    have radius R*sqrt(4/7) at +/- R*sqrt(3/7) and carry 49/64 of the
    current with the same turn count, giving the 49:64 ampere-turn ratio
    that cancels the fourth-order axial field term.
    """
    o = as_vector(origin)
    radius = _positive("radius", radius)
    axis, _ = parse_dir(dir)
    e3 = frame(axis)[2]

    outer_r = MAXWELL_OUTER_RADIUS * radius
    outer_z = MAXWELL_OUTER_OFFSET * radius
    outer_i = MAXWELL_CURRENT_RATIO * float(I)

    scratch = WireList()
    _coil(scratch, o - outer_z * e3, outer_r, pitch, turns, n, dir, outer_i)
    _coil(scratch, o, radius, pitch, turns, n, dir, I)
    _coil(scratch, o + outer_z * e3, outer_r, pitch, turns, n, dir, outer_i)
    return _commit(wires, scratch, "maxwell")


def golay(
    wires: WireList,
    origin: ArrayLike,
    a: float,
    b: float,
    c: float,
    theta: float,
    radius: float,
    pitch: float,
    turns: int,
    n: int,
    dir: str,
    I: float,
) -> int:
    """Golay transverse-gradient coil: four saddles on a cylinder.

    Every saddle is a closed loop made of an inner arc at axial offset
    +/-a, an outer arc at +/-b, both spanning angular width *c* about
    azimuth *theta* (or *theta* + pi), and two straight axial
    connectors.  Turn k of each saddle is nested inside the previous one
    with arcs at a + k*pitch and b - k*pitch.  Saddles centred on
    *theta* + pi carry the negated current, making the axial field odd
    under a rotation by pi about the axis.

    Args:
        wires: List to append to.
        origin: Centre of the coil set.
        a: Axial offset of the inner arcs (metres, >= 0).
        b: Axial offset of the outer arcs (metres, > a).
        c: Angular width of each saddle in radians, 0 < c < pi.
        theta: Azimuthal rotation of the coil set in radians.
        radius: Cylinder radius in metres.
        pitch: Axial nesting step between turns in metres.
        turns: Turns per saddle.
        n: Segments per arc.
        dir: Winding direction string.
        I: Current magnitude in amperes.

    Returns:
        Number of segments appended.
    """
    o = as_vector(origin)
    a = _non_negative("a", a)
    b = _positive("b", b)
    c = _positive("c", c)
    theta = _finite("theta", theta)
    radius = _positive("radius", radius)
    pitch = _non_negative("pitch", pitch)
    turns = _count("turns", turns)
    n = _count("n", n)
    axis, sign = parse_dir(dir)

    if c >= math.pi:
        raise InvalidParameter(f"saddle width c must be below pi; got {c}")
    inset = (turns - 1) * pitch
    if not a + inset < b - inset:
        raise InvalidParameter(
            "nested turns overlap: need a + (turns-1)*pitch < b - (turns-1)*pitch"
        )

    current = sign * float(I)
    scratch = WireList()
    for k in range(turns):
        z_in = a + k * pitch
        z_out = b - k * pitch
        for side in (1.0, -1.0):
            for phi0, polarity in ((theta, 1.0), (theta + math.pi, -1.0)):
                inner = _ring(
                    o, radius,
                    np.linspace(phi0 - c / 2.0, phi0 + c / 2.0, n + 1),
                    side * z_in, axis,
                )
                outer = _ring(
                    o, radius,
                    np.linspace(phi0 + c / 2.0, phi0 - c / 2.0, n + 1),
                    side * z_out, axis,
                )
                loop = np.vstack([inner, outer, inner[:1]])
                _polyline(scratch, loop, polarity * current)
    return _commit(wires, scratch, "golay")


def square_spiral(
    wires: WireList,
    origin: ArrayLike,
    width: float,
    pitch: float,
    turns: int,
    I: float,
    dir: str = "+z",
) -> int:
    """Planar square spiral winding inward from the outer corner.

    Turn k is a square of side ``width - k*pitch`` centred on *origin*,
    emitted as four segments; the fourth side runs to the first corner
    of the next turn so the spiral is a single connected path.

    Args:
        wires: List to append to.
        origin: Spiral centre.
        width: Side length of the outermost turn in metres.
        pitch: Side-length reduction per turn in metres.
        turns: Number of turns.
        I: Current magnitude in amperes.
        dir: Winding direction string; the spiral lies in the plane
            normal to its axis.

    Returns:
        Number of segments appended (4 per turn).
    """
    o = as_vector(origin)
    width = _positive("width", width)
    pitch = _non_negative("pitch", pitch)
    turns = _count("turns", turns)
    axis, sign = parse_dir(dir)

    if width - (turns - 1) * pitch <= 0.0:
        raise InvalidParameter(
            f"innermost turn vanishes: width={width}, pitch={pitch}, turns={turns}"
        )

    e1, e2, _ = frame(axis)
    h = width / 2.0
    corners: list[tuple[float, float]] = []
    for k in range(turns):
        d = k * pitch / 2.0
        corners += [(-h + d, -h + d), (h - d, -h + d), (h - d, h - d), (-h + d, h - d)]
    d = turns * pitch / 2.0
    corners.append((-h + d, -h + d))

    uv = np.array(corners)
    pts = o + uv[:, 0:1] * e1 + uv[:, 1:2] * e2

    scratch = WireList()
    _polyline(scratch, pts, sign * float(I))
    return _commit(wires, scratch, "square_spiral")
