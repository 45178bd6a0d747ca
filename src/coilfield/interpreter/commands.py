"""Typed commands of the coilfield command language.

Every command is a frozen dataclass; :data:`Command` is the closed
union of them.  A command's argument syntax is its field list: ``Vec``
fields consume three numbers, ``int``/``float``/``str`` fields one
token each, and fields with defaults may be omitted.  Angles are given
in degrees on the command line.
"""

from __future__ import annotations

import dataclasses
import shlex
from dataclasses import dataclass
from typing import Union

from coilfield.errors import InvalidParameter

Vec = tuple[float, float, float]


@dataclass(frozen=True)
class SetCurrent:
    """``current I``: set the current used by subsequent commands."""

    value: float


@dataclass(frozen=True)
class OpenFile:
    """``file PATH``: select the output wire file."""

    path: str


@dataclass(frozen=True)
class CloseFile:
    """``nofile``: write the active wires to the output file and close it."""


@dataclass(frozen=True)
class MoveTo:
    point: Vec


@dataclass(frozen=True)
class LineTo:
    point: Vec


@dataclass(frozen=True)
class Circle:
    origin: Vec
    radius: float
    n: int
    dir: str


@dataclass(frozen=True)
class Arc:
    origin: Vec
    radius: float
    t1: float
    t2: float
    n: int
    dir: str


@dataclass(frozen=True)
class Solenoid:
    origin: Vec
    radius: float
    pitch: float
    turns: float
    n: int
    dir: str


@dataclass(frozen=True)
class Helmholtz:
    origin: Vec
    radius: float
    pitch: float
    turns: float
    n: int
    dir: str


@dataclass(frozen=True)
class Maxwell:
    origin: Vec
    radius: float
    pitch: float
    turns: float
    n: int
    dir: str


@dataclass(frozen=True)
class Golay:
    origin: Vec
    a: float
    b: float
    c: float
    theta: float
    radius: float
    pitch: float
    turns: int
    n: int
    dir: str


@dataclass(frozen=True)
class SquareSpiral:
    origin: Vec
    width: float
    pitch: float
    turns: int
    dir: str = "+z"


@dataclass(frozen=True)
class Trajectory:
    """``traj N X1 Y1 Z1 X2 Y2 Z2 PATH``: sample along a line, write it."""

    n: int
    start: Vec
    end: Vec
    path: str


@dataclass(frozen=True)
class SurfaceGrid:
    """``grid M N X Y Z U V DIM PATH``: sample a rectangle, write it."""

    m: int
    n: int
    origin: Vec
    u: float
    v: float
    dim: str
    path: str


@dataclass(frozen=True)
class LoadWires:
    """``wires PATH``: append the segments of a wire file."""

    path: str


@dataclass(frozen=True)
class Clear:
    """``clear``: start a new, empty wire list."""


@dataclass(frozen=True)
class Verbose:
    """``verbose``: log debug messages."""


@dataclass(frozen=True)
class Quiet:
    """``quiet``: log warnings and errors only."""


@dataclass(frozen=True)
class End:
    """``end``: flush output and stop."""


Command = Union[
    SetCurrent, OpenFile, CloseFile, MoveTo, LineTo,
    Circle, Arc, Solenoid, Helmholtz, Maxwell, Golay, SquareSpiral,
    Trajectory, SurfaceGrid, LoadWires, Clear, Verbose, Quiet, End,
]

COMMANDS: dict[str, type] = {
    "current": SetCurrent,
    "file": OpenFile,
    "nofile": CloseFile,
    "moveto": MoveTo,
    "lineto": LineTo,
    "circle": Circle,
    "arc": Arc,
    "solenoid": Solenoid,
    "helmholtz": Helmholtz,
    "maxwell": Maxwell,
    "golay": Golay,
    "squarespiral": SquareSpiral,
    "traj": Trajectory,
    "grid": SurfaceGrid,
    "wires": LoadWires,
    "clear": Clear,
    "verbose": Verbose,
    "quiet": Quiet,
    "end": End,
}


def usage(name: str) -> str:
    """One-line argument summary for command *name*."""
    parts = [name]
    for f in dataclasses.fields(COMMANDS[name]):
        label = f.name.upper()
        if f.type == "Vec":
            label = f"{label}(X Y Z)"
        if f.default is not dataclasses.MISSING:
            label = f"[{label}]"
        parts.append(label)
    return " ".join(parts)


def _convert(kind: str, token: str, name: str, field: str) -> object:
    try:
        if kind == "int":
            return int(token)
        if kind == "float":
            return float(token)
    except ValueError:
        raise InvalidParameter(
            f"{name}: {field} expects {kind}, got {token!r}; usage: {usage(name)}"
        ) from None
    return token


def parse_command(line: str) -> Command | None:
    """Parse one line of the command language.

    Returns:
        The typed command, or ``None`` for blank and comment-only lines.

    Raises:
        InvalidParameter: On an unknown command or malformed arguments.
    """
    try:
        tokens = shlex.split(line, comments=True)
    except ValueError as exc:
        raise InvalidParameter(f"cannot tokenise {line.strip()!r}: {exc}") from exc
    if not tokens:
        return None

    name = tokens[0].lower()
    cls = COMMANDS.get(name)
    if cls is None:
        raise InvalidParameter(f"unknown command {tokens[0]!r}")

    args = tokens[1:]
    values: list[object] = []
    pos = 0
    for f in dataclasses.fields(cls):
        if f.type == "Vec":
            if pos + 3 > len(args):
                raise InvalidParameter(f"{name}: missing {f.name}; usage: {usage(name)}")
            values.append(tuple(
                _convert("float", tok, name, f.name) for tok in args[pos : pos + 3]
            ))
            pos += 3
        elif pos < len(args):
            values.append(_convert(str(f.type), args[pos], name, f.name))
            pos += 1
        elif f.default is dataclasses.MISSING:
            raise InvalidParameter(f"{name}: missing {f.name}; usage: {usage(name)}")

    if pos != len(args):
        raise InvalidParameter(f"{name}: too many arguments; usage: {usage(name)}")
    return cls(*values)
