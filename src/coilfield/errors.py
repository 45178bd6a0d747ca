"""Error taxonomy shared by every coilfield module.

Library functions raise these; the interpreter decides whether a failure
ends the session.
"""

from __future__ import annotations


class CoilFieldError(Exception):
    """Base class for all coilfield failures."""


class InvalidParameter(CoilFieldError, ValueError):
    """A count, radius, extent or argument is out of its valid range."""


class InvalidGeometry(CoilFieldError, ValueError):
    """Coincident endpoints, zero vectors, or overlapping inductance pairs."""


class ResourceError(CoilFieldError, RuntimeError):
    """Allocation, file I/O or file-format failure."""
