"""Tests for the Neumann-sum mutual inductance estimator."""

from __future__ import annotations

import math

import numpy as np
import pytest

from coilfield import shapes
from coilfield.errors import InvalidGeometry
from coilfield.inductance import mutual_inductance
from coilfield.vec3 import MU_0, MU_0_4PI
from coilfield.wires import WireList


def _loop(radius: float, z: float, n: int = 256, dir: str = "z", I: float = 1.0) -> WireList:
    w = WireList()
    shapes.circle(w, [0.0, 0.0, z], radius, n, dir, I)
    return w


def coaxial_loops_reference(a: float, b: float, d: float, samples: int = 20000) -> float:
    """Neumann's formula for two coaxial circles, integrated numerically.

    M = mu_0 a b / 2 * int_0^{2 pi} cos(phi) / sqrt(a^2 + b^2 + d^2 - 2 a b cos(phi)) dphi
    """
    phi = np.linspace(0.0, 2.0 * math.pi, samples, endpoint=False)
    integrand = np.cos(phi) / np.sqrt(a * a + b * b + d * d - 2.0 * a * b * np.cos(phi))
    return MU_0 * a * b / 2.0 * float(integrand.sum() * (2.0 * math.pi / samples))


class TestMutualInductance:
    def test_coaxial_loops_match_neumann_integral(self) -> None:
        a, b, d = 0.1, 0.15, 0.05
        M = mutual_inductance(_loop(a, 0.0), _loop(b, d))
        assert M > 0.0
        assert M == pytest.approx(coaxial_loops_reference(a, b, d), rel=2e-3)

    def test_symmetric(self) -> None:
        wa = _loop(0.1, 0.0, n=64)
        wb = WireList()
        shapes.square_spiral(wb, [0.02, 0.0, 0.08], 0.2, 0.02, 3, 1.0)
        assert mutual_inductance(wa, wb) == pytest.approx(
            mutual_inductance(wb, wa), rel=1e-12
        )

    def test_opposite_winding_is_negative(self) -> None:
        wa = _loop(0.1, 0.0)
        M_same = mutual_inductance(wa, _loop(0.1, 0.1, dir="+z"))
        M_opp = mutual_inductance(wa, _loop(0.1, 0.1, dir="-z"))
        assert M_opp == pytest.approx(-M_same, rel=1e-12)

    def test_independent_of_current_magnitude(self) -> None:
        wa = _loop(0.1, 0.0)
        M1 = mutual_inductance(wa, _loop(0.1, 0.1, I=1.0))
        M5 = mutual_inductance(wa, _loop(0.1, 0.1, I=5.0))
        assert M5 == pytest.approx(M1, rel=1e-12)

    def test_decreases_with_distance(self) -> None:
        wa = _loop(0.1, 0.0, n=64)
        near = mutual_inductance(wa, _loop(0.1, 0.05, n=64))
        far = mutual_inductance(wa, _loop(0.1, 0.5, n=64))
        assert near > far > 0.0

    def test_empty_list_gives_zero(self) -> None:
        assert mutual_inductance(WireList(), _loop(0.1, 0.0)) == 0.0
        assert mutual_inductance(_loop(0.1, 0.0), WireList()) == 0.0

    def test_overlap_rejected(self) -> None:
        w = _loop(0.1, 0.0, n=32)
        with pytest.raises(InvalidGeometry, match="self-inductance"):
            mutual_inductance(w, w)

    def test_zero_current_segment_ignored_even_when_overlapping(self) -> None:
        wa = WireList()
        wa.append([0.0, 0.0, 0.0], [1.0, 0.0, 0.0], 0.0)
        wa.append([0.0, 5.0, 0.0], [1.0, 5.0, 0.0], 1.0)
        wb = WireList()
        wb.append([0.0, 0.0, 0.0], [1.0, 0.0, 0.0], 1.0)
        # only the live pair counts: L_a . L_b = 1, midpoint distance 5
        assert mutual_inductance(wa, wb) == pytest.approx(MU_0_4PI / 5.0, rel=1e-12)
        assert mutual_inductance(wb, wa) == pytest.approx(MU_0_4PI / 5.0, rel=1e-12)

    def test_all_zero_currents_give_zero(self) -> None:
        wa = WireList()
        wa.append([0.0, 0.0, 0.0], [1.0, 0.0, 0.0], 0.0)
        assert mutual_inductance(wa, _loop(0.1, 0.0, n=16)) == 0.0

    def test_perpendicular_loops_decouple(self) -> None:
        wa = _loop(0.1, 0.0, n=64)
        wb = WireList()
        shapes.circle(wb, [0.0, 0.0, 0.3], 0.1, 64, "x", 1.0)
        assert abs(mutual_inductance(wa, wb)) < 1e-6 * mutual_inductance(
            wa, _loop(0.1, 0.3, n=64)
        )
