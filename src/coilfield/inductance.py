"""Mutual inductance of two wire networks by a discrete Neumann sum.

Neumann's formula for two filamentary circuits,

    M = mu_0 / (4 pi) * oint oint (dl_a . dl_b) / |r_a - r_b|,

is discretised with one term per segment pair, taking the segment
vectors as dl and the midpoints as r.  Segments whose current is
negative run against their A->B direction, so each term is weighted by
the product of the two current signs; segments with zero current do not
take part.  The result depends on geometry only, not on current
magnitudes.

The midpoint rule is accurate when the two networks are separated by
more than a few segment lengths.  Pairs with (nearly) coincident
midpoints are the self-inductance case, which this discretisation cannot
represent, and are reported as :class:`InvalidGeometry`.
"""

from __future__ import annotations

import logging
import time

import numpy as np

from coilfield.errors import InvalidGeometry, ResourceError
from coilfield.kernels import MU_0_4PI, neumann_rows
from coilfield.wires import WireList

log = logging.getLogger(__name__)

# Midpoint distance, relative to the longer segment of a pair, below
# which the pair counts as overlapping
OVERLAP_TOL: float = 1e-6


def mutual_inductance(
    wa: WireList,
    wb: WireList,
    overlap_tol: float = OVERLAP_TOL,
) -> float:
    """Estimate the mutual inductance between *wa* and *wb* in henries.

    Args:
        wa: First wire network.
        wb: Second wire network.
        overlap_tol: Relative midpoint distance that flags a pair as
            overlapping.

    Returns:
        Mutual inductance in henries; 0.0 if either list is empty.

    Raises:
        InvalidGeometry: If any segment pair overlaps.
        ResourceError: If the work arrays cannot be allocated.
    """
    if len(wa) == 0 or len(wb) == 0:
        return 0.0

    try:
        La = np.ascontiguousarray(wa.vectors())
        Lb = np.ascontiguousarray(wb.vectors())
        ma = np.ascontiguousarray(wa.midpoints())
        mb = np.ascontiguousarray(wb.midpoints())
        sa = np.sign(wa.current).astype(np.float64)
        sb = np.sign(wb.current).astype(np.float64)
        t0 = time.perf_counter()
        rows, closest = neumann_rows(La, ma, sa, Lb, mb, sb)
    except MemoryError as exc:
        raise ResourceError(
            f"cannot allocate inductance sum for {len(wa)} x {len(wb)} segments"
        ) from exc

    nearest = float(closest.min())
    if nearest < overlap_tol:
        row = int(np.argmin(closest))
        raise InvalidGeometry(
            f"segment {row} of the first network overlaps the second network "
            f"(relative midpoint distance {nearest:.3g}); "
            "self-inductance is not supported"
        )

    M = MU_0_4PI * float(rows.sum())
    log.debug(
        "mutual inductance: %d x %d pairs in %.3fs -> %.6g H",
        len(wa), len(wb), time.perf_counter() - t0, M,
    )
    return M
