"""Tests for the command language: parsing, session effects and the CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import numpy as np
import pytest

from coilfield.errors import InvalidGeometry, InvalidParameter
from coilfield.grid import Grid
from coilfield.interpreter import Session, execute, parse_command
from coilfield.interpreter import commands as cmd
from coilfield.interpreter.cli import LOG_FORMAT, PROMPT, _interactive, main, run_lines
from coilfield.wires import WireList


def run(session: Session, *lines: str) -> None:
    for line in lines:
        command = parse_command(line)
        if command is not None:
            execute(session, command)


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logging.getLogger("coilfield").setLevel(logging.NOTSET)


@pytest.fixture
def session() -> Session:
    return Session()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    @pytest.mark.parametrize("line", ["", "   ", "# just a comment"])
    def test_blank_lines(self, line: str) -> None:
        assert parse_command(line) is None

    def test_circle(self) -> None:
        assert parse_command("circle 0 0 1 0.5 32 +z") == cmd.Circle(
            origin=(0.0, 0.0, 1.0), radius=0.5, n=32, dir="+z"
        )

    def test_case_insensitive_and_trailing_comment(self) -> None:
        assert parse_command("CURRENT -2.5  # amps") == cmd.SetCurrent(-2.5)

    def test_golay(self) -> None:
        c = parse_command("golay 0 0 0 0.4 2.5 120 0 1 0.01 2 16 z")
        assert isinstance(c, cmd.Golay)
        assert c.turns == 2
        assert c.c == 120.0

    def test_optional_argument(self) -> None:
        assert parse_command("squarespiral 0 0 0 1 0.1 3").dir == "+z"
        assert parse_command("squarespiral 0 0 0 1 0.1 3 -x").dir == "-x"

    def test_quoted_path(self) -> None:
        c = parse_command('file "my wires.txt"')
        assert c == cmd.OpenFile("my wires.txt")

    def test_grid(self) -> None:
        assert parse_command("grid 10 20 0 0 0 1 2 z out.grid") == cmd.SurfaceGrid(
            10, 20, (0.0, 0.0, 0.0), 1.0, 2.0, "z", "out.grid"
        )

    def test_no_argument_commands(self) -> None:
        assert parse_command("nofile") == cmd.CloseFile()
        assert parse_command("end") == cmd.End()

    def test_unknown_command(self) -> None:
        with pytest.raises(InvalidParameter, match="unknown command"):
            parse_command("sphere 0 0 0 1")

    def test_missing_argument(self) -> None:
        with pytest.raises(InvalidParameter, match="usage: circle ORIGIN"):
            parse_command("circle 0 0 0 1 32")

    def test_too_many_arguments(self) -> None:
        with pytest.raises(InvalidParameter, match="too many"):
            parse_command("current 1 2")

    def test_bad_number(self) -> None:
        with pytest.raises(InvalidParameter, match="n expects int"):
            parse_command("circle 0 0 0 1 3.5 z")

    def test_unbalanced_quote(self) -> None:
        with pytest.raises(InvalidParameter):
            parse_command('file "open')

    def test_usage_marks_optional(self) -> None:
        assert cmd.usage("squarespiral").endswith("[DIR]")


# ---------------------------------------------------------------------------
# Session effects
# ---------------------------------------------------------------------------


class TestSession:
    def test_lineto_uses_pen_and_current(self, session: Session) -> None:
        run(session, "current 3", "moveto 0 0 0", "lineto 1 0 0", "lineto 1 1 0")
        assert len(session.wires) == 2
        np.testing.assert_array_equal(session.wires.A[1], [1.0, 0.0, 0.0])
        np.testing.assert_array_equal(session.wires.current, [3.0, 3.0])
        np.testing.assert_array_equal(session.pen, [1.0, 1.0, 0.0])

    def test_failed_lineto_keeps_pen(self, session: Session) -> None:
        run(session, "moveto 1 1 1")
        with pytest.raises(InvalidGeometry):
            run(session, "lineto 1 1 1")
        assert len(session.wires) == 0
        np.testing.assert_array_equal(session.pen, [1.0, 1.0, 1.0])

    def test_shapes_use_session_current(self, session: Session) -> None:
        run(session, "current 2", "circle 0 0 0 1 8 z", "solenoid 0 0 0 1 0.1 2 8 z")
        assert len(session.wires) == 8 + 16
        np.testing.assert_array_equal(session.wires.current, 2.0)

    def test_arc_angles_in_degrees(self, session: Session) -> None:
        run(session, "arc 0 0 0 1 0 90 4 z")
        np.testing.assert_allclose(session.wires.B[-1], [0.0, 1.0, 0.0], atol=1e-12)

    def test_coil_commands(self, session: Session) -> None:
        run(
            session,
            "helmholtz 0 0 0 1 0 1 16 z",
            "maxwell 0 0 0 1 0 1 16 z",
            "golay 0 0 0 0.4 2.5 120 0 1 0 1 8 z",
            "squarespiral 0 0 3 1 0.1 2",
        )
        assert len(session.wires) == 32 + 48 + 4 * 18 + 8

    def test_invalid_current(self, session: Session) -> None:
        with pytest.raises(InvalidParameter):
            run(session, "current nan")
        assert session.current == 1.0

    def test_file_written_on_nofile(self, session: Session, tmp_path: Path) -> None:
        out = tmp_path / "coil.wires"
        run(session, f"file {out}", "circle 0 0 0 1 8 z")
        assert not out.exists()
        run(session, "nofile")
        assert WireList.load(out).allclose(session.wires)
        assert session.wire_file is None

    def test_file_written_on_end(self, session: Session, tmp_path: Path) -> None:
        out = tmp_path / "coil.wires"
        run(session, f"file {out}", "circle 0 0 0 1 8 z", "end")
        assert not session.running
        assert len(WireList.load(out)) == 8

    def test_wires_command_appends(self, session: Session, tmp_path: Path) -> None:
        src = WireList()
        src.append([0, 0, 0], [0, 0, 1], 4.0)
        src.save(tmp_path / "in.wires")
        run(session, "circle 0 0 0 1 8 z", f"wires {tmp_path / 'in.wires'}")
        assert len(session.wires) == 9
        assert session.wires.current[-1] == 4.0

    def test_clear(self, session: Session) -> None:
        run(session, "circle 0 0 0 1 8 z", "clear")
        assert len(session.wires) == 0

    def test_traj_writes_grid(self, session: Session, tmp_path: Path) -> None:
        out = tmp_path / "axis.grid"
        run(session, "circle 0 0 0 0.5 64 z", f"traj 11 0 0 -1 0 0 1 {out}")
        g = Grid.read(out)
        assert g.shape == (1, 11)
        assert g.f[5, 2] > 0.0

    def test_grid_writes_surface(self, session: Session, tmp_path: Path) -> None:
        out = tmp_path / "plane.grid"
        run(session, "circle 0 0 0 0.5 64 z", f"grid 4 3 0 0 0 0.2 0.2 z {out}")
        assert Grid.read(out).shape == (4, 3)

    def test_open_network_warns(
        self, session: Session, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="coilfield"):
            run(session, "lineto 1 0 0", f"traj 2 0 1 0 1 1 0 {tmp_path / 'x.grid'}")
        assert "open ends" in caplog.text

    def test_verbose_and_quiet(self, session: Session) -> None:
        run(session, "verbose")
        assert logging.getLogger("coilfield").level == logging.DEBUG
        run(session, "quiet")
        assert logging.getLogger("coilfield").level == logging.WARNING


# ---------------------------------------------------------------------------
# Script runner and CLI
# ---------------------------------------------------------------------------


class TestRunner:
    def test_stops_at_first_error(self, session: Session) -> None:
        failures = run_lines(session, ["circle 0 0 0 1 8 z", "bogus", "clear"])
        assert failures == 1
        assert len(session.wires) == 8

    def test_keep_going(self, session: Session) -> None:
        failures = run_lines(
            session, ["bogus", "circle 0 0 0 1 2 z", "circle 0 0 0 1 8 z"], keep_going=True
        )
        assert failures == 2
        assert len(session.wires) == 8

    def test_end_stops_script(self, session: Session) -> None:
        assert run_lines(session, ["end", "circle 0 0 0 1 8 z"]) == 0
        assert len(session.wires) == 0

    def test_error_reports_location(
        self, session: Session, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR):
            run_lines(session, ["", "bogus"], source="coils.cmd")
        assert "coils.cmd:2:" in caplog.text

    def test_formatted_error_has_single_location(
        self, session: Session, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR):
            run_lines(session, ["bogus"], source="coils.cmd")
        text = logging.Formatter(LOG_FORMAT).format(caplog.records[-1])
        assert text == "ERROR: coils.cmd:1: unknown command 'bogus'"


class TestInteractive:
    @staticmethod
    def _feed(monkeypatch: pytest.MonkeyPatch, lines: list[str]) -> None:
        pending = iter(lines)

        def fake_input(prompt: str = "") -> str:
            assert prompt == PROMPT
            try:
                return next(pending)
            except StopIteration:
                raise EOFError from None

        monkeypatch.setattr("builtins.input", fake_input)

    def test_continues_after_error(
        self, session: Session, monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        self._feed(monkeypatch, ["circle 0 0 0 1 8 z", "bogus", "clear", "circle 0 0 0 1 4 z"])
        with caplog.at_level(logging.ERROR):
            _interactive(session)
        assert "unknown command" in caplog.text
        assert len(session.wires) == 4
        assert session.running

    def test_end_stops_prompt(
        self, session: Session, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        self._feed(monkeypatch, ["end", "circle 0 0 0 1 8 z"])
        _interactive(session)
        assert not session.running
        assert len(session.wires) == 0


class TestMain:
    def test_runs_script(self, tmp_path: Path) -> None:
        wires = tmp_path / "pair.wires"
        grid = tmp_path / "axis.grid"
        script = tmp_path / "pair.cmd"
        script.write_text(
            "\n".join(
                [
                    "# Helmholtz pair sampled along its axis",
                    f"file {wires}",
                    "current 2",
                    "helmholtz 0 0 0 0.5 0 1 32 z",
                    f"traj 5 0 0 -0.25 0 0 0.25 {grid}",
                    "end",
                ]
            )
        )
        main([str(script)])
        assert len(WireList.load(wires)) == 64
        assert Grid.read(grid).shape == (1, 5)

    def test_failing_script_exits_nonzero(self, tmp_path: Path) -> None:
        script = tmp_path / "bad.cmd"
        script.write_text("circle 0 0 0 -1 8 z\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["-q", str(script)])
        assert exc_info.value.code == 1

    def test_missing_script(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit):
            main([str(tmp_path / "nope.cmd")])

    def test_verbose_and_quiet_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            main(["-v", "-q"])
