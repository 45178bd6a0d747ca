"""Command-line driver for the coilfield command language.

Usage:
    coilfield coils.cmd                 # run a script
    coilfield -v a.cmd b.cmd            # several scripts, debug logging
    coilfield < coils.cmd               # read commands from stdin
    coilfield                           # interactive prompt on a TTY
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable

import numba

from coilfield.errors import CoilFieldError
from coilfield.interpreter.commands import parse_command
from coilfield.interpreter.session import PACKAGE_LOGGER, Session, execute

log = logging.getLogger(__name__)

PROMPT = "coilfield> "
LOG_FORMAT = "%(levelname)s: %(message)s"


def run_lines(
    session: Session,
    lines: Iterable[str],
    source: str = "<stdin>",
    keep_going: bool = False,
) -> int:
    """Parse and execute *lines* against *session*.

    Args:
        session: Session to mutate.
        lines: Command lines.
        source: Name used in error messages.
        keep_going: Continue after a failing command instead of
            stopping at the first one.

    Returns:
        Number of commands that failed.
    """
    failures = 0
    for lineno, line in enumerate(lines, start=1):
        try:
            command = parse_command(line)
            if command is None:
                continue
            execute(session, command)
        except CoilFieldError as exc:
            log.error("%s:%d: %s", source, lineno, exc)
            failures += 1
            if not keep_going:
                break
        if not session.running:
            break
    return failures


def _interactive(session: Session) -> None:
    """Prompt for commands until ``end`` or EOF, reporting every error."""
    try:
        # Line editing and history for input(); absent on some platforms
        import readline  # noqa: F401
    except ImportError:
        pass

    while session.running:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            break
        try:
            command = parse_command(line)
            if command is not None:
                execute(session, command)
        except CoilFieldError as exc:
            log.error("%s", exc)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coilfield",
        description="Biot-Savart field maps of straight-wire coil networks",
    )
    parser.add_argument("scripts", nargs="*", type=Path,
                        help="Command scripts to run in order (default: stdin)")
    level = parser.add_mutually_exclusive_group()
    level.add_argument("-v", "--verbose", action="store_true",
                       help="Log debug messages")
    level.add_argument("-q", "--quiet", action="store_true",
                       help="Log warnings and errors only")
    parser.add_argument("--threads", type=int, default=None,
                        help="Worker threads for field kernels "
                             "(default: numba's NUMBA_NUM_THREADS)")
    parser.add_argument("--keep-going", action="store_true",
                        help="Continue a script after a failing command")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(format=LOG_FORMAT)
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)

    if args.threads is not None:
        if not 1 <= args.threads <= numba.config.NUMBA_NUM_THREADS:
            parser.error(
                f"--threads must be between 1 and {numba.config.NUMBA_NUM_THREADS}"
            )
        numba.set_num_threads(args.threads)

    session = Session()
    failures = 0
    try:
        if args.scripts:
            for script in args.scripts:
                try:
                    text = script.read_text()
                except OSError as exc:
                    log.error("cannot read %s: %s", script, exc)
                    failures += 1
                    break
                failures += run_lines(
                    session, text.splitlines(), str(script), args.keep_going
                )
                if not session.running or (failures and not args.keep_going):
                    break
        elif sys.stdin.isatty():
            _interactive(session)
        else:
            failures += run_lines(session, sys.stdin, "<stdin>", args.keep_going)
    finally:
        try:
            session.close()
        except CoilFieldError as exc:
            log.error("%s", exc)
            failures += 1

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
