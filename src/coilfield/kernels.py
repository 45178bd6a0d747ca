"""Numba kernels for Biot-Savart field sums and Neumann double sums.

Everything numerically hot lives here so that the vector helpers, the
grid sampler and the inductance estimator share one compiled formula.
The parallel kernels follow a map/fold layout: one ``prange`` iteration
per output slot, each folding over the full segment arrays, with no
writes outside its own slot.
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit, prange

# Permeability of free space (T*m/A)
MU_0: float = 4.0 * math.pi * 1e-7

# mu_0 / 4 pi, the Biot-Savart prefactor
MU_0_4PI: float = MU_0 / (4.0 * math.pi)

# Relative perpendicular distance below which a point is treated as lying
# on the segment's line
FIELD_EPS: float = 1e-10


@njit(cache=True)
def segment_field(ax, ay, az, bx, by, bz, mx, my, mz, current):
    """Field of the straight segment A->B carrying ``current`` at M.

    Closed form for a finite wire:

        B = mu_0 I / (4 pi d) * (cos t1 - cos t2) * (u x r1) / d

    where u is the unit direction A->B, r1 = M - A, r2 = M - B,
    d = |u x r1| and cos t_k = u . r_k / |r_k|.  Points on the wire's
    line (d ~ 0) and zero-length segments contribute nothing.

    Returns:
        Tuple (Bx, By, Bz) in tesla.
    """
    lx = bx - ax
    ly = by - ay
    lz = bz - az
    seg_len = math.sqrt(lx * lx + ly * ly + lz * lz)
    if seg_len == 0.0:
        return 0.0, 0.0, 0.0

    ux = lx / seg_len
    uy = ly / seg_len
    uz = lz / seg_len

    r1x = mx - ax
    r1y = my - ay
    r1z = mz - az
    r2x = mx - bx
    r2y = my - by
    r2z = mz - bz

    # circulation direction u x r1, |u x r1| = d
    cx = uy * r1z - uz * r1y
    cy = uz * r1x - ux * r1z
    cz = ux * r1y - uy * r1x
    d2 = cx * cx + cy * cy + cz * cz
    eps = FIELD_EPS * seg_len
    if d2 <= eps * eps:
        return 0.0, 0.0, 0.0

    n1 = math.sqrt(r1x * r1x + r1y * r1y + r1z * r1z)
    n2 = math.sqrt(r2x * r2x + r2y * r2y + r2z * r2z)
    cos1 = (ux * r1x + uy * r1y + uz * r1z) / n1
    cos2 = (ux * r2x + uy * r2y + uz * r2z) / n2

    k = MU_0_4PI * current * (cos1 - cos2) / d2
    return k * cx, k * cy, k * cz


@njit(cache=True, parallel=True)
def field_at_points(points, A, B, current):
    """Superposed field of every segment at every point.

    Args:
        points: (P, 3) observation points.
        A: (N, 3) segment start points.
        B: (N, 3) segment end points.
        current: (N,) signed segment currents.

    Returns:
        (P, 3) field vectors, row k belonging to ``points[k]``.
    """
    n_pts = points.shape[0]
    n_seg = A.shape[0]
    out = np.zeros((n_pts, 3))
    for k in prange(n_pts):
        mx = points[k, 0]
        my = points[k, 1]
        mz = points[k, 2]
        fx = 0.0
        fy = 0.0
        fz = 0.0
        for s in range(n_seg):
            dx, dy, dz = segment_field(
                A[s, 0], A[s, 1], A[s, 2],
                B[s, 0], B[s, 1], B[s, 2],
                mx, my, mz, current[s],
            )
            fx += dx
            fy += dy
            fz += dz
        out[k, 0] = fx
        out[k, 1] = fy
        out[k, 2] = fz
    return out


@njit(cache=True, parallel=True)
def neumann_rows(La, ma, sa, Lb, mb, sb):
    """Row-wise partial sums of the discrete Neumann double sum.

    Row i holds sum_j sa[i] sb[j] (La[i] . Lb[j]) / |ma[i] - mb[j]|,
    skipping coincident midpoints and pairs with a zero-current segment.
    Alongside, the smallest midpoint distance among the pairs row i
    sums is returned relative to the longer of the two segments so the
    caller can flag overlapping pairs (inf when row i sums nothing).

    Args:
        La, Lb: (Na, 3) and (Nb, 3) segment vectors B - A.
        ma, mb: (Na, 3) and (Nb, 3) segment midpoints.
        sa, sb: (Na,) and (Nb,) current signs (-1, 0 or +1).

    Returns:
        Tuple ``(rows, closest)`` of shape (Na,) arrays.
    """
    na = La.shape[0]
    nb = Lb.shape[0]
    rows = np.zeros(na)
    closest = np.full(na, np.inf)
    for i in prange(na):
        la = math.sqrt(La[i, 0] ** 2 + La[i, 1] ** 2 + La[i, 2] ** 2)
        acc = 0.0
        near = np.inf
        for j in range(nb):
            s = sa[i] * sb[j]
            if s == 0.0:
                continue
            lb = math.sqrt(Lb[j, 0] ** 2 + Lb[j, 1] ** 2 + Lb[j, 2] ** 2)
            dx = ma[i, 0] - mb[j, 0]
            dy = ma[i, 1] - mb[j, 1]
            dz = ma[i, 2] - mb[j, 2]
            r = math.sqrt(dx * dx + dy * dy + dz * dz)
            ratio = r / max(la, lb)
            if ratio < near:
                near = ratio
            if r == 0.0:
                continue
            dot = La[i, 0] * Lb[j, 0] + La[i, 1] * Lb[j, 1] + La[i, 2] * Lb[j, 2]
            acc += s * dot / r
        rows[i] = acc
        closest[i] = near
    return rows, closest
