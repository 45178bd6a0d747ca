"""VTK export of wire networks and field grids using PyVista.

Wire lists become line meshes with a ``current`` cell array; grids
become structured grids carrying the field as ``B`` and its magnitude
as ``|B|``.  Files are written for external viewers (ParaView and the
like); nothing here opens a window.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pyvista as pv

from coilfield.errors import ResourceError

if TYPE_CHECKING:
    from coilfield.grid import Grid
    from coilfield.wires import WireList

log = logging.getLogger(__name__)


def wires_to_polydata(wires: "WireList") -> pv.PolyData:
    """Convert a wire list to a PyVista line mesh.

    Point ``2k`` and ``2k + 1`` are the endpoints of segment k, and
    line cell k joins them.

    Args:
        wires: Segments to convert.

    Returns:
        :class:`pyvista.PolyData` with one line cell per segment and
        the signed segment currents in ``cell_data["current"]``.
    """
    count = len(wires)
    if count == 0:
        return pv.PolyData()

    points = np.empty((2 * count, 3), dtype=np.float64)
    points[0::2] = wires.A
    points[1::2] = wires.B

    idx = np.arange(count)
    lines = np.column_stack(
        [np.full(count, 2), 2 * idx, 2 * idx + 1]
    ).ravel()

    mesh = pv.PolyData(points, lines=lines)
    mesh.cell_data["current"] = np.array(wires.current)
    return mesh


def grid_to_structured(grid: "Grid") -> pv.StructuredGrid:
    """Convert a field grid to a PyVista structured grid.

    The mesh has dimensions (m, n, 1).  VTK orders structured points
    with the first index fastest, so point data is laid out in Fortran
    order of the (m, n) lattice.

    Args:
        grid: A populated :class:`~coilfield.grid.Grid`.

    Returns:
        :class:`pyvista.StructuredGrid` with ``B`` and ``|B|`` point data.
    """
    pts = grid.points()
    x = pts[:, :, 0:1]
    y = pts[:, :, 1:2]
    z = pts[:, :, 2:3]
    mesh = pv.StructuredGrid(x, y, z)

    f = grid.field()
    mesh.point_data["B"] = np.column_stack(
        [f[:, :, c].ravel(order="F") for c in range(3)]
    )
    mesh.point_data["|B|"] = grid.magnitude().ravel(order="F")
    return mesh


def _save(mesh: pv.DataSet, path: Path) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        mesh.save(str(path))
    except (OSError, ValueError) as exc:
        raise ResourceError(f"cannot write VTK file {path}: {exc}") from exc
    log.debug("wrote %s (%d points)", path, mesh.n_points)
    return path


def save_wires(wires: "WireList", path: str | Path) -> Path:
    """Write *wires* as a VTK line mesh (``.vtp`` or legacy ``.vtk``)."""
    return _save(wires_to_polydata(wires), Path(path))


def save_grid(grid: "Grid", path: str | Path) -> Path:
    """Write *grid* as a VTK structured grid (``.vts`` or legacy ``.vtk``)."""
    return _save(grid_to_structured(grid), Path(path))
