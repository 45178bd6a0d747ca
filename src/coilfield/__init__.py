"""coilfield - Biot-Savart magnetostatics for straight-wire coil networks.

Provides tools for designing coils and mapping their fields:

- Analytic finite-segment Biot-Savart field and 3-D vector helpers
- Append-only wire lists with text persistence
- Shape generators (arcs, circles, helices, Helmholtz and Maxwell
  coils, Golay saddles, square spirals)
- Parallel field sampling on line and surface grids (numba)
- Mutual inductance by a discrete Neumann sum
- Current-continuity checks and VTK export
- A small command language and CLI driving all of the above
"""

__version__ = "0.1.0"

from coilfield.errors import (
    CoilFieldError,
    InvalidGeometry,
    InvalidParameter,
    ResourceError,
)
from coilfield.grid import Grid
from coilfield.inductance import mutual_inductance
from coilfield.wires import WireList, WireSegment

__all__ = [
    "__version__",
    "CoilFieldError",
    "InvalidGeometry",
    "InvalidParameter",
    "ResourceError",
    "Grid",
    "mutual_inductance",
    "WireList",
    "WireSegment",
]
