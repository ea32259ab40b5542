"""Bounded frontier stack with bulk push-at-front and pop-from-front."""

from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp
import numpy as np
from beartype import beartype
from jaxtyping import Array, ArrayLike, jaxtyped

from .dtypes import INDEX_DTYPE, SENTINEL, as_index


class ExplicitStack(NamedTuple):
    """Frontier of pending node values, front at slot 0.

    Slots past ``size`` always hold the sentinel ``0``. ``overflow`` is sticky
    once a push drops entries past capacity.
    """

    slots: jnp.ndarray
    size: jnp.ndarray
    overflow: jnp.ndarray

    @property
    def capacity(self) -> int:
        return int(self.slots.shape[0])


def empty_stack(capacity: int) -> ExplicitStack:
    """Return an empty stack with ``capacity`` slots."""

    if capacity < 1:
        raise ValueError(f"capacity must be >= 1, received {capacity}")
    return ExplicitStack(
        slots=jnp.full((capacity,), SENTINEL, dtype=INDEX_DTYPE),
        size=as_index(0),
        overflow=jnp.bool_(False),
    )


def _insert_front(slots: Array, children: Array, count: Array) -> Array:
    capacity = slots.shape[0]
    positions = jnp.arange(capacity, dtype=INDEX_DTYPE)
    # Pad so every front position has a candidate even for short rows.
    incoming = jnp.concatenate(
        [
            jnp.asarray(children, dtype=INDEX_DTYPE),
            jnp.full((capacity,), SENTINEL, dtype=INDEX_DTYPE),
        ]
    )[:capacity]
    shifted = slots[jnp.clip(positions - count, 0, capacity - 1)]
    return jnp.where(positions < count, incoming, shifted)


@jaxtyped(typechecker=beartype)
def push_front(
    stack: ExplicitStack,
    children: Array,
    count: ArrayLike,
) -> ExplicitStack:
    """Insert ``children[:count]`` in order ahead of the current entries."""

    count = jnp.clip(as_index(count), 0, children.shape[0])
    slots = _insert_front(stack.slots, children, count)
    total = stack.size + count
    capacity = as_index(stack.capacity)
    return ExplicitStack(
        slots=slots,
        size=jnp.minimum(total, capacity),
        overflow=stack.overflow | (total > capacity),
    )


@jaxtyped(typechecker=beartype)
def load_all(
    stack: ExplicitStack,
    children: Array,
    count: ArrayLike,
) -> ExplicitStack:
    """Replace the whole frontier with ``children[:count]``."""

    cleared = ExplicitStack(
        slots=jnp.full_like(stack.slots, SENTINEL),
        size=as_index(0),
        overflow=jnp.bool_(False),
    )
    return push_front(cleared, children, count)


@jaxtyped(typechecker=beartype)
def pop_front(stack: ExplicitStack) -> tuple[ExplicitStack, Array]:
    """Remove and return the front value; an empty stack yields the sentinel."""

    has_item = stack.size > as_index(0)
    value = jnp.where(has_item, stack.slots[0], as_index(SENTINEL))
    shifted = jnp.concatenate(
        [stack.slots[1:], jnp.full((1,), SENTINEL, dtype=INDEX_DTYPE)]
    )
    popped = ExplicitStack(
        slots=jnp.where(has_item, shifted, stack.slots),
        size=jnp.maximum(stack.size - as_index(1), as_index(0)),
        overflow=stack.overflow,
    )
    return popped, value


def peek_front(stack: ExplicitStack) -> Array:
    """Return the front value without popping it."""

    return stack.slots[0]


def is_empty(stack: ExplicitStack) -> Array:
    """Return whether the frontier holds no pending values."""

    return stack.size == as_index(0)


def stack_values(stack: ExplicitStack) -> list[int]:
    """Host view of the pending values, front first."""

    size = int(stack.size)
    return [int(v) for v in np.asarray(stack.slots)[:size]]


__all__ = [
    "ExplicitStack",
    "empty_stack",
    "is_empty",
    "load_all",
    "peek_front",
    "pop_front",
    "push_front",
    "stack_values",
]
