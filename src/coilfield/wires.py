"""Append-only lists of straight current-carrying wire segments.

A :class:`WireList` stores its segments in three parallel NumPy arrays
(start points, end points, currents) so the field kernels can consume
them without conversion.  Segments can only be appended; an edited
geometry is a new list.

Wire files are plain text::

    # coilfield wires
    # n = 2
    0 0 0 1 0 0 1.5
    1 0 0 1 1 0 1.5

one ``ax ay az bx by bz i`` row per segment, written with 17 significant
digits so that a save/load round trip is exact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import numpy as np
from numpy.typing import ArrayLike, NDArray

from coilfield.errors import InvalidGeometry, InvalidParameter, ResourceError
from coilfield.vec3 import VCMP_TOL, as_vector, vcmp

log = logging.getLogger(__name__)

WIRE_HEADER = "# coilfield wires"

# Initial capacity of the backing arrays
_MIN_CAPACITY = 16

# Suffixes written through pyvista instead of the text format
VTK_SUFFIXES = (".vtk", ".vtp")


@dataclass(frozen=True)
class WireSegment:
    """A single straight conductor.

    Attributes:
        A: Start point, shape (3,).
        B: End point, shape (3,).
        current: Signed current in amperes, flowing from A to B when
            positive.
    """

    A: NDArray[np.float64]
    B: NDArray[np.float64]
    current: float


class WireList:
    """Ordered, append-only collection of wire segments.

    The backing arrays grow geometrically; the public ``A``, ``B`` and
    ``current`` properties are read-only views trimmed to the segment
    count, so they always have matching lengths.
    """

    def __init__(self) -> None:
        self._n = 0
        self._A = np.empty((0, 3), dtype=np.float64)
        self._B = np.empty((0, 3), dtype=np.float64)
        self._I = np.empty(0, dtype=np.float64)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def _reserve(self, extra: int) -> None:
        needed = self._n + extra
        capacity = self._I.shape[0]
        if needed <= capacity:
            return
        new_capacity = max(_MIN_CAPACITY, capacity)
        while new_capacity < needed:
            new_capacity *= 2
        try:
            A = np.empty((new_capacity, 3), dtype=np.float64)
            B = np.empty((new_capacity, 3), dtype=np.float64)
            I = np.empty(new_capacity, dtype=np.float64)
        except MemoryError as exc:
            raise ResourceError(
                f"cannot grow wire list to {new_capacity} segments"
            ) from exc
        A[: self._n] = self._A[: self._n]
        B[: self._n] = self._B[: self._n]
        I[: self._n] = self._I[: self._n]
        # Swap in new buffers; views handed out earlier keep the old ones
        self._A, self._B, self._I = A, B, I

    def append(self, A: ArrayLike, B: ArrayLike, current: float) -> None:
        """Append the segment A->B carrying *current*.

        Raises:
            InvalidParameter: If a point or the current is not finite.
            InvalidGeometry: If A and B coincide.
            ResourceError: If the backing storage cannot grow.
        """
        a = as_vector(A)
        b = as_vector(B)
        current = float(current)
        if not np.isfinite(current):
            raise InvalidParameter(f"current must be finite; got {current}")
        if vcmp(a, b, VCMP_TOL):
            raise InvalidGeometry(f"zero-length segment at {a.tolist()}")

        self._reserve(1)
        self._A[self._n] = a
        self._B[self._n] = b
        self._I[self._n] = current
        self._n += 1

    def extend(self, other: "WireList") -> None:
        """Append copies of every segment in *other*."""
        count = len(other)
        if count == 0:
            return
        A, B, I = other.A.copy(), other.B.copy(), other.current.copy()
        self._reserve(count)
        self._A[self._n : self._n + count] = A
        self._B[self._n : self._n + count] = B
        self._I[self._n : self._n + count] = I
        self._n += count

    # ------------------------------------------------------------------
    # Properties / accessors
    # ------------------------------------------------------------------
    @staticmethod
    def _readonly(arr: NDArray) -> NDArray:
        view = arr.view()
        view.flags.writeable = False
        return view

    @property
    def A(self) -> NDArray[np.float64]:
        """(N, 3) read-only view of segment start points."""
        return self._readonly(self._A[: self._n])

    @property
    def B(self) -> NDArray[np.float64]:
        """(N, 3) read-only view of segment end points."""
        return self._readonly(self._B[: self._n])

    @property
    def current(self) -> NDArray[np.float64]:
        """(N,) read-only view of segment currents."""
        return self._readonly(self._I[: self._n])

    def __len__(self) -> int:
        return self._n

    def __getitem__(self, index: int) -> WireSegment:
        if index < 0:
            index += self._n
        if not 0 <= index < self._n:
            raise IndexError(f"segment index {index} out of range")
        return WireSegment(
            A=self._A[index].copy(),
            B=self._B[index].copy(),
            current=float(self._I[index]),
        )

    def __iter__(self) -> Iterator[WireSegment]:
        for i in range(self._n):
            yield self[i]

    def __repr__(self) -> str:
        return f"WireList(n={self._n})"

    def vectors(self) -> NDArray[np.float64]:
        """(N, 3) segment vectors B - A."""
        return self.B - self.A

    def midpoints(self) -> NDArray[np.float64]:
        """(N, 3) segment midpoints."""
        return 0.5 * (self.A + self.B)

    def lengths(self) -> NDArray[np.float64]:
        """(N,) segment lengths."""
        return np.linalg.norm(self.vectors(), axis=1)

    def total_length(self) -> float:
        """Total conductor length in metres."""
        return float(self.lengths().sum())

    def allclose(self, other: "WireList", atol: float = 1e-12) -> bool:
        """True when *other* holds the same ordered segments within *atol*."""
        if len(self) != len(other):
            return False
        return bool(
            np.allclose(self.A, other.A, rtol=0.0, atol=atol)
            and np.allclose(self.B, other.B, rtol=0.0, atol=atol)
            and np.allclose(self.current, other.current, rtol=0.0, atol=atol)
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save(self, path: str | Path) -> Path:
        """Write the list to *path*.

        ``.vtp``/``.vtk`` paths are exported as PyVista line meshes;
        anything else uses the text wire format.

        Returns:
            The path written.

        Raises:
            ResourceError: If the file cannot be written.
        """
        path = Path(path)
        if path.suffix.lower() in VTK_SUFFIXES:
            # Lazy import so the core does not pull in VTK
            from coilfield.export import save_wires

            return save_wires(self, path)

        rows = np.column_stack([self.A, self.B, self.current])
        lines = [WIRE_HEADER, f"# n = {self._n}"]
        lines.extend(" ".join(f"{x:.17g}" for x in row) for row in rows)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("\n".join(lines) + "\n")
        except OSError as exc:
            raise ResourceError(f"cannot write wire file {path}: {exc}") from exc

        log.debug("wrote %d segments to %s", self._n, path)
        return path

    @classmethod
    def load(cls, path: str | Path) -> "WireList":
        """Read a text wire file written by :meth:`save`.

        Raises:
            ResourceError: If the file cannot be read or is malformed.
            InvalidGeometry: If the file holds a zero-length segment.
        """
        path = Path(path)
        try:
            text = path.read_text()
        except OSError as exc:
            raise ResourceError(f"cannot read wire file {path}: {exc}") from exc

        wires = cls()
        expected: int | None = None
        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue
            if line.startswith("#"):
                body = line[1:].strip()
                if body.startswith("n") and "=" in body:
                    try:
                        expected = int(body.split("=")[1].strip())
                    except ValueError as exc:
                        raise ResourceError(
                            f"{path}:{lineno}: bad segment count {body!r}"
                        ) from exc
                continue

            fields = line.split()
            if len(fields) != 7:
                raise ResourceError(
                    f"{path}:{lineno}: expected 7 values, found {len(fields)}"
                )
            try:
                vals = [float(x) for x in fields]
            except ValueError as exc:
                raise ResourceError(f"{path}:{lineno}: {exc}") from exc
            if not np.all(np.isfinite(vals)):
                raise ResourceError(f"{path}:{lineno}: non-finite value in {line!r}")
            try:
                wires.append(vals[0:3], vals[3:6], vals[6])
            except InvalidGeometry as exc:
                raise InvalidGeometry(f"{path}:{lineno}: {exc}") from exc

        if expected is not None and expected != len(wires):
            raise ResourceError(
                f"{path}: header declares {expected} segments, found {len(wires)}"
            )

        log.debug("read %d segments from %s", len(wires), path)
        return wires
