"""Status codes and host-side exceptions for traversal operations.

Kernels never raise: every rejected write or session event is reported as
one of the integer codes below so it can flow through ``jax.jit``. Host entry
points turn a code into an exception with :func:`raise_for_status`.
"""

from __future__ import annotations

STATUS_OK = 0
STATUS_CAPACITY_EXCEEDED = 1
STATUS_SESSION_BUSY = 2
STATUS_UNKNOWN_VALUE = 3
STATUS_FRONTIER_EXHAUSTED = 4
STATUS_VALUE_OUT_OF_RANGE = 5
STATUS_NO_OPEN_NODE = 6

STATUS_NAMES = {
    STATUS_OK: "ok",
    STATUS_CAPACITY_EXCEEDED: "capacity_exceeded",
    STATUS_SESSION_BUSY: "session_busy",
    STATUS_UNKNOWN_VALUE: "unknown_value",
    STATUS_FRONTIER_EXHAUSTED: "frontier_exhausted",
    STATUS_VALUE_OUT_OF_RANGE: "value_out_of_range",
    STATUS_NO_OPEN_NODE: "no_open_node",
}


class RatatoskrError(Exception):
    """Base class for errors reported by the traversal core."""

    status: int = STATUS_OK


class CapacityExceededError(RatatoskrError, RuntimeError):
    """A node, adjacency, frontier or visit buffer ran out of slots."""

    status = STATUS_CAPACITY_EXCEEDED


class SessionBusyError(RatatoskrError, RuntimeError):
    """A driver operation arrived while a traversal session was running."""

    status = STATUS_SESSION_BUSY


class UnknownValueError(RatatoskrError, ValueError):
    """A requested source or target value was never ingested."""

    status = STATUS_UNKNOWN_VALUE


class FrontierExhaustedError(RatatoskrError, RuntimeError):
    """The frontier emptied before the target was reached."""

    status = STATUS_FRONTIER_EXHAUSTED


class ValueOutOfRangeError(RatatoskrError, ValueError):
    """A node value outside ``[1, max_nodes]`` was written."""

    status = STATUS_VALUE_OUT_OF_RANGE


class NoOpenNodeError(RatatoskrError, RuntimeError):
    """An adjacency was written before any node was begun."""

    status = STATUS_NO_OPEN_NODE


_STATUS_ERRORS: dict[int, type[RatatoskrError]] = {
    cls.status: cls
    for cls in (
        CapacityExceededError,
        SessionBusyError,
        UnknownValueError,
        FrontierExhaustedError,
        ValueOutOfRangeError,
        NoOpenNodeError,
    )
}


def status_name(status) -> str:
    """Return a readable name for a status code."""

    code = int(status)
    return STATUS_NAMES.get(code, f"status_{code}")


def raise_for_status(status, context: str = "") -> None:
    """Raise the exception matching ``status``; do nothing for ``STATUS_OK``."""

    code = int(status)
    if code == STATUS_OK:
        return
    error_cls = _STATUS_ERRORS.get(code)
    if error_cls is None:
        raise RuntimeError(f"unrecognised status code {code}")
    message = status_name(code)
    if context:
        message = f"{context}: {message}"
    raise error_cls(message)


__all__ = [
    "CapacityExceededError",
    "FrontierExhaustedError",
    "NoOpenNodeError",
    "RatatoskrError",
    "STATUS_CAPACITY_EXCEEDED",
    "STATUS_FRONTIER_EXHAUSTED",
    "STATUS_NAMES",
    "STATUS_NO_OPEN_NODE",
    "STATUS_OK",
    "STATUS_SESSION_BUSY",
    "STATUS_UNKNOWN_VALUE",
    "STATUS_VALUE_OUT_OF_RANGE",
    "SessionBusyError",
    "UnknownValueError",
    "ValueOutOfRangeError",
    "raise_for_status",
    "status_name",
]
