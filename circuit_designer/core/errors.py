"""Exception types raised by the circuit designer."""

from __future__ import annotations


class CircuitDesignerError(Exception):
    """Base class for all circuit designer errors."""


class PayloadError(CircuitDesignerError):
    """An external circuit payload could not be parsed into a structure at all.

    Partially malformed circuits never raise this; the validator repairs
    them.  It is reserved for input that is not a JSON object (or a mapping)
    in the first place.
    """


class OracleError(CircuitDesignerError):
    """The generative oracle failed (transport, HTTP status or response shape)."""
