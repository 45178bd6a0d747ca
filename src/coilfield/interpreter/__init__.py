"""Command language, session state and CLI for coilfield.

Exports:
    Command: Union of all typed command dataclasses.
    parse_command: Turn one text line into a Command.
    Session: Interpreter state (wires, pen, current, output file).
    execute: Apply a Command to a Session.
"""

from coilfield.interpreter.commands import Command, parse_command
from coilfield.interpreter.session import Session, execute

__all__ = ["Command", "parse_command", "Session", "execute"]
