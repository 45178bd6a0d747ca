"""Gridded sampling of Biot-Savart fields.

A :class:`Grid` is an m x n lattice of points paired index-for-index
with the field computed there.  Grids are born populated: the two
constructors build the lattice and run the parallel field kernel before
returning, so a Grid never exists half-computed.

Lattice layouts:
    - segment grid (m = 1): n evenly spaced points from A to B,
      endpoints included.
    - surface grid: m x n points on a rectangle centred on an origin,
      normal to one principal axis.  Flat index is ``k = i*n + j`` with
      i running along the first in-plane axis.

Grid files are plain text::

    # coilfield grid
    # m = 1
    # n = 3
    x y z fx fy fz      (m*n rows, flat index order)
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
from numpy.typing import ArrayLike, NDArray

from coilfield.errors import InvalidParameter, ResourceError
from coilfield.kernels import field_at_points
from coilfield.shapes import frame
from coilfield.vec3 import as_vector
from coilfield.wires import WireList

log = logging.getLogger(__name__)

GRID_HEADER = "# coilfield grid"

_DIMS = {"x": 0, "y": 1, "z": 2}

# Suffixes written through pyvista instead of the text format
VTK_SUFFIXES = (".vtk", ".vts")


def _dimension(name: str, value: int) -> int:
    if isinstance(value, bool) or int(value) != value or value < 1:
        raise InvalidParameter(f"grid dimension {name} must be >= 1; got {value}")
    return int(value)


def _extent(name: str, value: float) -> float:
    value = float(value)
    if not (np.isfinite(value) and value >= 0.0):
        raise InvalidParameter(f"grid extent {name} must be >= 0; got {value}")
    return value


def _axis_samples(count: int, span: float) -> NDArray[np.float64]:
    """*count* offsets spanning [-span/2, span/2]; a single sample sits at 0."""
    if count == 1:
        return np.zeros(1)
    return np.linspace(-span / 2.0, span / 2.0, count)


def compute_field(points: NDArray[np.float64], wires: WireList) -> NDArray[np.float64]:
    """Superposed field of *wires* at each row of *points*.

    The wire arrays are copied into a private snapshot before the
    parallel kernel runs.

    Raises:
        ResourceError: If the snapshot or output cannot be allocated.
    """
    try:
        pts = np.ascontiguousarray(points, dtype=np.float64)
        A = np.array(wires.A, dtype=np.float64, order="C")
        B = np.array(wires.B, dtype=np.float64, order="C")
        I = np.array(wires.current, dtype=np.float64)
        t0 = time.perf_counter()
        f = field_at_points(pts, A, B, I)
    except MemoryError as exc:
        raise ResourceError(
            f"cannot allocate field for {len(points)} points x {len(wires)} segments"
        ) from exc
    log.debug(
        "field: %d points x %d segments in %.3fs",
        pts.shape[0], A.shape[0], time.perf_counter() - t0,
    )
    return f


class Grid:
    """A populated lattice of sample points and field vectors.

    Attributes:
        m: Number of first-dimension points.
        n: Number of second-dimension points.
        xyz: (m*n, 3) sample coordinates.
        f: (m*n, 3) field vectors in tesla, ``f[k]`` taken at ``xyz[k]``.
    """

    def __init__(
        self,
        m: int,
        n: int,
        xyz: NDArray[np.float64],
        f: NDArray[np.float64],
    ) -> None:
        m = _dimension("m", m)
        n = _dimension("n", n)
        xyz = np.asarray(xyz, dtype=np.float64)
        f = np.asarray(f, dtype=np.float64)
        if xyz.shape != (m * n, 3) or f.shape != (m * n, 3):
            raise InvalidParameter(
                f"grid arrays must have shape ({m * n}, 3); "
                f"got {xyz.shape} and {f.shape}"
            )
        self.m = m
        self.n = n
        self.xyz = xyz
        self.f = f

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_segment(
        cls,
        n: int,
        A: ArrayLike,
        B: ArrayLike,
        wires: WireList,
    ) -> "Grid":
        """Sample the field at *n* evenly spaced points from A to B.

        Both endpoints are included; ``n == 1`` samples A alone.

        Raises:
            InvalidParameter: If ``n < 1`` or an endpoint is not finite.
            ResourceError: If the lattice cannot be allocated.
        """
        n = _dimension("n", n)
        a = as_vector(A)
        b = as_vector(B)
        try:
            t = np.linspace(0.0, 1.0, n) if n > 1 else np.zeros(1)
            xyz = a + t[:, None] * (b - a)
        except MemoryError as exc:
            raise ResourceError(f"cannot allocate {n}-point segment grid") from exc
        if n > 1:
            xyz[-1] = b
        return cls(1, n, xyz, compute_field(xyz, wires))

    @classmethod
    def from_surface(
        cls,
        m: int,
        n: int,
        origin: ArrayLike,
        u: float,
        v: float,
        dim: str,
        wires: WireList,
    ) -> "Grid":
        """Sample the field on an m x n rectangle centred on *origin*.

        The rectangle is normal to axis *dim* and spans +/-u/2 along the
        first in-plane axis and +/-v/2 along the second, using the
        cyclic frame (z: x,y / x: y,z / y: z,x).

        Args:
            m: Points along the first in-plane axis.
            n: Points along the second in-plane axis.
            origin: Rectangle centre.
            u: Extent along the first in-plane axis in metres.
            v: Extent along the second in-plane axis in metres.
            dim: Normal axis, ``"x"``, ``"y"`` or ``"z"``.
            wires: Segments producing the field.

        Raises:
            InvalidParameter: On a zero dimension, negative extent or
                unknown *dim*.
            ResourceError: If the lattice cannot be allocated.
        """
        m = _dimension("m", m)
        n = _dimension("n", n)
        o = as_vector(origin)
        u = _extent("u", u)
        v = _extent("v", v)
        key = str(dim).strip().lower()
        if key not in _DIMS:
            raise InvalidParameter(f"dim must be x, y or z; got {dim!r}")
        e1, e2, _ = frame(_DIMS[key])

        try:
            su = _axis_samples(m, u)
            sv = _axis_samples(n, v)
            xyz = (
                o
                + np.repeat(su, n)[:, None] * e1
                + np.tile(sv, m)[:, None] * e2
            )
        except MemoryError as exc:
            raise ResourceError(f"cannot allocate {m}x{n} surface grid") from exc
        return cls(m, n, xyz, compute_field(xyz, wires))

    # ------------------------------------------------------------------
    # Properties / accessors
    # ------------------------------------------------------------------
    @property
    def shape(self) -> tuple[int, int]:
        return self.m, self.n

    def __len__(self) -> int:
        return self.m * self.n

    def __repr__(self) -> str:
        return f"Grid(m={self.m}, n={self.n})"

    def points(self) -> NDArray[np.float64]:
        """Sample coordinates reshaped to (m, n, 3)."""
        return self.xyz.reshape(self.m, self.n, 3)

    def field(self) -> NDArray[np.float64]:
        """Field vectors reshaped to (m, n, 3)."""
        return self.f.reshape(self.m, self.n, 3)

    def magnitude(self) -> NDArray[np.float64]:
        """|B| reshaped to (m, n)."""
        return np.linalg.norm(self.f, axis=1).reshape(self.m, self.n)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def write(self, path: str | Path) -> Path:
        """Write the grid to *path*.

        ``.vts``/``.vtk`` paths are exported as a PyVista structured
        grid; anything else uses the text grid format.

        Raises:
            ResourceError: If the file cannot be written.
        """
        path = Path(path)
        if path.suffix.lower() in VTK_SUFFIXES:
            # Lazy import so the core does not pull in VTK
            from coilfield.export import save_grid

            return save_grid(self, path)

        lines = [GRID_HEADER, f"# m = {self.m}", f"# n = {self.n}"]
        for p, b in zip(self.xyz, self.f):
            lines.append(" ".join(f"{x:.17g}" for x in (*p, *b)))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("\n".join(lines) + "\n")
        except OSError as exc:
            raise ResourceError(f"cannot write grid file {path}: {exc}") from exc

        log.debug("wrote %dx%d grid to %s", self.m, self.n, path)
        return path

    @classmethod
    def read(cls, path: str | Path) -> "Grid":
        """Read a text grid file written by :meth:`write`.

        Raises:
            ResourceError: If the file cannot be read or is malformed.
        """
        path = Path(path)
        try:
            text = path.read_text()
        except OSError as exc:
            raise ResourceError(f"cannot read grid file {path}: {exc}") from exc

        dims: dict[str, int] = {}
        rows: list[list[float]] = []
        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue
            if line.startswith("#"):
                body = line[1:].strip()
                if "=" in body:
                    key, _, val = body.partition("=")
                    key = key.strip()
                    if key in ("m", "n"):
                        try:
                            dims[key] = int(val.strip())
                        except ValueError as exc:
                            raise ResourceError(
                                f"{path}:{lineno}: bad dimension {body!r}"
                            ) from exc
                continue
            fields = line.split()
            if len(fields) != 6:
                raise ResourceError(
                    f"{path}:{lineno}: expected 6 values, found {len(fields)}"
                )
            try:
                rows.append([float(x) for x in fields])
            except ValueError as exc:
                raise ResourceError(f"{path}:{lineno}: {exc}") from exc

        if "m" not in dims or "n" not in dims:
            raise ResourceError(f"{path}: missing grid dimensions header")
        m, n = dims["m"], dims["n"]
        if m < 1 or n < 1:
            raise ResourceError(f"{path}: bad grid dimensions {m}x{n}")
        if len(rows) != m * n:
            raise ResourceError(
                f"{path}: header declares {m}x{n} points, found {len(rows)}"
            )
        data = np.array(rows, dtype=np.float64).reshape(m * n, 6)
        return cls(m, n, data[:, :3].copy(), data[:, 3:].copy())
