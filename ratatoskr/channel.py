"""Driver-facing tick records and the shared data channel encoding."""

from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp
from jaxtyping import Array

from .dtypes import SENTINEL, as_index, value_mask
from .status import ValueOutOfRangeError


class DriverInput(NamedTuple):
    """Control strobes and data word presented to the core for one tick."""

    reset: jnp.ndarray
    node_ready: jnp.ndarray
    adjacency_ready: jnp.ndarray
    traverse_request: jnp.ndarray
    data: jnp.ndarray


def _make_input(
    *,
    reset: bool = False,
    node_ready: bool = False,
    adjacency_ready: bool = False,
    traverse_request: bool = False,
    data: int = 0,
) -> DriverInput:
    return DriverInput(
        reset=jnp.bool_(reset),
        node_ready=jnp.bool_(node_ready),
        adjacency_ready=jnp.bool_(adjacency_ready),
        traverse_request=jnp.bool_(traverse_request),
        data=as_index(data),
    )


def idle_input() -> DriverInput:
    """No strobe asserted; a running session simply advances."""

    return _make_input()


def reset_input() -> DriverInput:
    return _make_input(reset=True)


def _check_width(name: str, value: int, value_width: int) -> int:
    if not 0 <= int(value) <= value_mask(value_width):
        raise ValueOutOfRangeError(
            f"{name}={value} does not fit in value_width={value_width}"
        )
    return int(value)


def node_input(value: int, *, value_width: int) -> DriverInput:
    return _make_input(
        node_ready=True, data=_check_width("value", value, value_width)
    )


def adjacency_input(value: int, *, value_width: int) -> DriverInput:
    return _make_input(
        adjacency_ready=True, data=_check_width("value", value, value_width)
    )


def encode_request(source: int, target: int, *, value_width: int) -> int:
    """Pack ``source`` (low bits) and ``target`` (high bits) into one word."""

    for name, value in (("source", source), ("target", target)):
        _check_width(name, value, value_width)
    return (int(target) << int(value_width)) | int(source)


def traverse_input(source: int, target: int, *, value_width: int) -> DriverInput:
    return _make_input(
        traverse_request=True,
        data=encode_request(source, target, value_width=value_width),
    )


def channel_value(data: Array, value_width: int) -> Array:
    """Select the single value carried by an ingestion word.

    A word wider than one value maps to the sentinel, which every ingestion
    write rejects as out of range.
    """

    fits = (data >= as_index(0)) & (data <= as_index(value_mask(value_width)))
    return jnp.where(fits, data, as_index(SENTINEL))


def decode_request(data: Array, value_width: int) -> tuple[Array, Array]:
    """Split a request word into ``(source, target)``."""

    mask = as_index(value_mask(value_width))
    source = data & mask
    target = (data >> as_index(value_width)) & mask
    return source, target


__all__ = [
    "DriverInput",
    "adjacency_input",
    "channel_value",
    "decode_request",
    "encode_request",
    "idle_input",
    "node_input",
    "reset_input",
    "traverse_input",
]
