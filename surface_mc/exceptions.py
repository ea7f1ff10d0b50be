"""
Error kinds raised by the geometry kernel and the off-lattice space.

Caller errors (InvalidArgument, NotSupported, OutOfBounds, IllegalState,
NotFound) are recoverable and never leave a space half-updated.
LogicError marks a broken internal invariant and should not be caught
by simulation code.
"""


class SurfaceMCError(Exception):
    """Base class for all surface_mc errors."""


class InvalidArgument(SurfaceMCError, ValueError):
    """A geometric query or declaration was called with invalid input."""


class NotSupported(SurfaceMCError):
    """The requested placement or move is not allowed (e.g. wrong substrate)."""


class OutOfBounds(NotSupported, IndexError):
    """A coordinate outside [0, size) was accessed."""


class IllegalState(SurfaceMCError, RuntimeError):
    """The space or registry is in a state that forbids the operation."""


class NotFound(SurfaceMCError, KeyError):
    """A species or particle that was looked up does not exist."""


class LogicError(SurfaceMCError, AssertionError):
    """Internal invariant violation ("never reach here")."""
