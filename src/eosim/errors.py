"""
eosim.errors — Error Kinds
===========================

Every error raised by the core carries a ``kind`` tag so a host can report
it without inspecting the class hierarchy.  The classes also derive from
the closest builtin exception, so ordinary ``except ValueError`` style
handling keeps working.

A missing IAU 2006 XYS sample is not an error: ``compute_xys_radians``
returns ``None`` and schedules the load.
"""


class EosimError(Exception):
    """Base class of every error raised by eosim."""
    kind = "Error"


class InvalidInputError(EosimError, ValueError):
    """Argument absent, of the wrong shape, or outside its domain."""
    kind = "InvalidInput"


class MissingHandlerError(EosimError, LookupError):
    """A due event has no per-event handler and no registered handler."""
    kind = "MissingHandler"

    def __init__(self, event_type):
        super().__init__(f"no handler for event type '{event_type}'")
        self.event_type = event_type


class PropagatorError(EosimError, RuntimeError):
    """TLE parse failure or SGP4 numerical failure."""
    kind = "PropagatorFailure"


class XysLoadError(EosimError, OSError):
    """An IAU 2006 XYS chunk could not be read or decoded."""
    kind = "IOFailure"

    def __init__(self, chunk_index: int, reason: str):
        super().__init__(f"XYS chunk {chunk_index}: {reason}")
        self.chunk_index = chunk_index
