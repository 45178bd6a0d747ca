"""Interpreter session state and command execution.

A :class:`Session` holds everything the command language remembers
between lines: the active wire list, the pen position used by
``moveto``/``lineto``, the current applied to new segments, and the
output wire file.  :func:`execute` dispatches a parsed command to its
handler; handlers raise :class:`~coilfield.errors.CoilFieldError`
subclasses and leave reporting to the caller.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import numpy as np

from coilfield import shapes
from coilfield.errors import InvalidParameter
from coilfield.grid import Grid
from coilfield.interpreter import commands as cmd
from coilfield.network import open_ends
from coilfield.wires import WireList

log = logging.getLogger(__name__)

# Logger whose level the verbose/quiet commands control
PACKAGE_LOGGER = "coilfield"


@dataclass
class Session:
    """Mutable state of one interpreter run.

    Attributes:
        wires: Active wire list receiving new segments.
        current: Current in amperes for new segments.
        pen: Pen position for ``lineto``.
        wire_file: Output wire file, written on ``nofile``/``end``.
        running: Cleared by ``end``.
    """

    wires: WireList = field(default_factory=WireList)
    current: float = 1.0
    pen: np.ndarray = field(default_factory=lambda: np.zeros(3))
    wire_file: Path | None = None
    running: bool = True

    def flush(self) -> None:
        """Write the active wires to the output file, if one is open."""
        if self.wire_file is None:
            return
        self.wires.save(self.wire_file)
        log.info("wrote %d segments to %s", len(self.wires), self.wire_file)

    def close(self) -> None:
        """Flush and forget the output file."""
        try:
            self.flush()
        finally:
            self.wire_file = None


# ------------------------------------------------------------------
# Handlers
# ------------------------------------------------------------------


def _set_current(s: Session, c: cmd.SetCurrent) -> None:
    if not math.isfinite(c.value):
        raise InvalidParameter(f"current must be finite; got {c.value}")
    s.current = c.value
    log.debug("current = %g A", s.current)


def _open_file(s: Session, c: cmd.OpenFile) -> None:
    s.close()
    s.wire_file = Path(c.path)
    log.debug("output wire file %s", s.wire_file)


def _close_file(s: Session, c: cmd.CloseFile) -> None:
    s.close()


def _move_to(s: Session, c: cmd.MoveTo) -> None:
    s.pen = np.array(c.point, dtype=np.float64)


def _line_to(s: Session, c: cmd.LineTo) -> None:
    target = np.array(c.point, dtype=np.float64)
    s.wires.append(s.pen, target, s.current)
    s.pen = target


def _circle(s: Session, c: cmd.Circle) -> None:
    shapes.circle(s.wires, c.origin, c.radius, c.n, c.dir, s.current)


def _arc(s: Session, c: cmd.Arc) -> None:
    shapes.arc(
        s.wires, c.origin, c.radius,
        math.radians(c.t1), math.radians(c.t2), c.n, c.dir, s.current,
    )


def _solenoid(s: Session, c: cmd.Solenoid) -> None:
    shapes.helix(s.wires, c.origin, c.radius, c.pitch, c.turns, c.n, c.dir, s.current)


def _helmholtz(s: Session, c: cmd.Helmholtz) -> None:
    shapes.helmholtz(
        s.wires, c.origin, c.radius, c.pitch, c.turns, c.n, c.dir, s.current
    )


def _maxwell(s: Session, c: cmd.Maxwell) -> None:
    shapes.maxwell(s.wires, c.origin, c.radius, c.pitch, c.turns, c.n, c.dir, s.current)


def _golay(s: Session, c: cmd.Golay) -> None:
    shapes.golay(
        s.wires, c.origin, c.a, c.b, math.radians(c.c), math.radians(c.theta),
        c.radius, c.pitch, c.turns, c.n, c.dir, s.current,
    )


def _square_spiral(s: Session, c: cmd.SquareSpiral) -> None:
    shapes.square_spiral(
        s.wires, c.origin, c.width, c.pitch, c.turns, s.current, c.dir
    )


def _warn_open(s: Session) -> None:
    ends = open_ends(s.wires)
    if ends:
        log.warning(
            "wire network has %d open ends; the sampled field is not physical",
            len(ends),
        )


def _trajectory(s: Session, c: cmd.Trajectory) -> None:
    _warn_open(s)
    grid = Grid.from_segment(c.n, c.start, c.end, s.wires)
    grid.write(c.path)
    log.info("traj: %d points -> %s", len(grid), c.path)


def _surface_grid(s: Session, c: cmd.SurfaceGrid) -> None:
    _warn_open(s)
    grid = Grid.from_surface(c.m, c.n, c.origin, c.u, c.v, c.dim, s.wires)
    grid.write(c.path)
    log.info("grid: %dx%d points -> %s", grid.m, grid.n, c.path)


def _load_wires(s: Session, c: cmd.LoadWires) -> None:
    loaded = WireList.load(c.path)
    s.wires.extend(loaded)
    log.info("wires: loaded %d segments from %s", len(loaded), c.path)


def _clear(s: Session, c: cmd.Clear) -> None:
    s.wires = WireList()


def _verbose(s: Session, c: cmd.Verbose) -> None:
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)


def _quiet(s: Session, c: cmd.Quiet) -> None:
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.WARNING)


def _end(s: Session, c: cmd.End) -> None:
    s.running = False
    s.close()


_HANDLERS: dict[type, Callable[[Session, object], None]] = {
    cmd.SetCurrent: _set_current,
    cmd.OpenFile: _open_file,
    cmd.CloseFile: _close_file,
    cmd.MoveTo: _move_to,
    cmd.LineTo: _line_to,
    cmd.Circle: _circle,
    cmd.Arc: _arc,
    cmd.Solenoid: _solenoid,
    cmd.Helmholtz: _helmholtz,
    cmd.Maxwell: _maxwell,
    cmd.Golay: _golay,
    cmd.SquareSpiral: _square_spiral,
    cmd.Trajectory: _trajectory,
    cmd.SurfaceGrid: _surface_grid,
    cmd.LoadWires: _load_wires,
    cmd.Clear: _clear,
    cmd.Verbose: _verbose,
    cmd.Quiet: _quiet,
    cmd.End: _end,
}


def execute(session: Session, command: cmd.Command) -> None:
    """Apply *command* to *session*.

    Raises:
        CoilFieldError: Whatever the underlying operation raises.  A
            failing shape or line command appends nothing.
    """
    handler = _HANDLERS[type(command)]
    handler(session, command)
