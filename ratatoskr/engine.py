"""Iterative depth-first traversal step over a :class:`GraphStore`.

The engine emits DFS pre-order one node per step: descend into the first
child and defer its siblings to the front of the frontier, or backtrack by
popping the frontier when the current node has nothing left to descend into.
There is no visited set, so a node reachable through several parents is
emitted once per path.
"""

from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp
from beartype import beartype
from jax import lax
from jaxtyping import Array, ArrayLike, jaxtyped

from .dtypes import SENTINEL, UNSET_INDEX, as_index
from .graph import GraphStore, children_of, lookup_index
from .stack import ExplicitStack, empty_stack, load_all, pop_front, push_front


class TraversalState(NamedTuple):
    """Engine registers carried between steps.

    Attributes:
        current_index: Index of the node emitted last step (``-1`` if unknown)
        current_value: Value emitted last step (``0`` once exhausted)
        adjacency_count: Children of the current node still to descend into
        stack: Pending frontier values
    """

    current_index: jnp.ndarray
    current_value: jnp.ndarray
    adjacency_count: jnp.ndarray
    stack: ExplicitStack


def initial_traversal_state(stack_capacity: int) -> TraversalState:
    """Return engine registers with an empty frontier."""

    return TraversalState(
        current_index=as_index(UNSET_INDEX),
        current_value=as_index(SENTINEL),
        adjacency_count=as_index(0),
        stack=empty_stack(stack_capacity),
    )


@jaxtyped(typechecker=beartype)
def start_traversal(
    graph: GraphStore,
    stack: ExplicitStack,
    source: ArrayLike,
) -> tuple[TraversalState, Array]:
    """Emit ``source`` and stage all of its children on the frontier.

    The children are already on the frontier, so the next :func:`advance`
    pops child #0 rather than descending a second time.
    """

    source = as_index(source)
    index = lookup_index(graph, source)
    row, count = children_of(graph, index)
    state = TraversalState(
        current_index=index,
        current_value=source,
        adjacency_count=as_index(0),
        stack=load_all(stack, row, count),
    )
    return state, source


@jaxtyped(typechecker=beartype)
def advance(graph: GraphStore, state: TraversalState) -> tuple[TraversalState, Array]:
    """Emit the next pre-order node; the sentinel means the frontier is empty."""

    def descend(st):
        row, count = children_of(graph, st.current_index)
        frontier = push_front(st.stack, row[1:], count - as_index(1))
        return frontier, row[0]

    def backtrack(st):
        return pop_front(st.stack)

    frontier, visited = lax.cond(
        state.adjacency_count >= as_index(1),
        descend,
        backtrack,
        state,
    )
    index = lookup_index(graph, visited)
    _, count = children_of(graph, index)
    next_state = TraversalState(
        current_index=index,
        current_value=visited,
        adjacency_count=count,
        stack=frontier,
    )
    return next_state, visited


__all__ = [
    "TraversalState",
    "advance",
    "initial_traversal_state",
    "start_traversal",
]
