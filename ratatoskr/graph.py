"""Fixed-capacity DAG storage filled through the sequential ingestion protocol.

Node values live in ``[1, max_nodes]``; each ``begin_node`` call assigns the
next dense index in insertion order and opens that index for adjacency
writes. All operations are pure and jit-safe: rejected writes leave the
store untouched and are reported through a status code instead of raising.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import NamedTuple, Optional

import jax
import jax.numpy as jnp
import numpy as np
from beartype import beartype
from jax import lax
from jaxtyping import Array, ArrayLike, jaxtyped

from .config import EngineConfig, resolve_engine_config
from .dtypes import INDEX_DTYPE, UNSET_INDEX, as_index
from .status import (
    STATUS_CAPACITY_EXCEEDED,
    STATUS_NO_OPEN_NODE,
    STATUS_OK,
    STATUS_VALUE_OUT_OF_RANGE,
    raise_for_status,
)


class GraphStore(NamedTuple):
    """
    Ingested DAG as parallel fixed-shape tables.

    Attributes:
        value_to_index: Index per node value (``-1`` when never begun); slot 0
            belongs to the sentinel and is always ``-1``
        adjacency: Child values per index in ingestion order, ``0`` padded
        adjacency_count: Populated entries of each ``adjacency`` row
        num_nodes: Number of accepted ``begin_node`` calls since reset
        open_index: Index receiving ``add_adjacency`` writes (``-1`` if none)
    """

    value_to_index: jnp.ndarray
    adjacency: jnp.ndarray
    adjacency_count: jnp.ndarray
    num_nodes: jnp.ndarray
    open_index: jnp.ndarray

    @property
    def max_nodes(self) -> int:
        return int(self.adjacency.shape[0])

    @property
    def max_adjacency(self) -> int:
        return int(self.adjacency.shape[1])


def empty_graph_store(max_nodes: int) -> GraphStore:
    """Return zeroed tables sized for ``max_nodes`` node values."""

    if max_nodes < 2:
        raise ValueError(f"max_nodes must be >= 2, received {max_nodes}")
    return GraphStore(
        value_to_index=jnp.full((max_nodes + 1,), UNSET_INDEX, dtype=INDEX_DTYPE),
        adjacency=jnp.zeros((max_nodes, max_nodes - 1), dtype=INDEX_DTYPE),
        adjacency_count=jnp.zeros((max_nodes,), dtype=INDEX_DTYPE),
        num_nodes=as_index(0),
        open_index=as_index(UNSET_INDEX),
    )


def reset_graph_store(store: GraphStore) -> GraphStore:
    """Clear every table, keeping capacities; safe at any point of ingestion."""

    return empty_graph_store(store.max_nodes)


def _value_in_range(value: Array, max_nodes: int) -> Array:
    return (value >= as_index(1)) & (value <= as_index(max_nodes))


@jaxtyped(typechecker=beartype)
def begin_node(store: GraphStore, value: ArrayLike) -> tuple[GraphStore, Array]:
    """Assign the next index to ``value`` and open it for adjacency writes.

    Re-beginning a value overwrites its mapping (last write wins); the old
    index stays allocated.
    """

    value = as_index(value)
    in_range = _value_in_range(value, store.max_nodes)
    has_room = store.num_nodes < as_index(store.max_nodes)
    status = jnp.where(
        ~in_range,
        STATUS_VALUE_OUT_OF_RANGE,
        jnp.where(~has_room, STATUS_CAPACITY_EXCEEDED, STATUS_OK),
    )

    def write(args):
        st, val = args
        index = st.num_nodes
        return GraphStore(
            value_to_index=st.value_to_index.at[val].set(index),
            adjacency=st.adjacency.at[index].set(as_index(0)),
            adjacency_count=st.adjacency_count.at[index].set(as_index(0)),
            num_nodes=index + as_index(1),
            open_index=index,
        )

    def keep(args):
        st, _val = args
        return st

    new_store = lax.cond(status == STATUS_OK, write, keep, (store, value))
    return new_store, as_index(status)


@jaxtyped(typechecker=beartype)
def add_adjacency(store: GraphStore, value: ArrayLike) -> tuple[GraphStore, Array]:
    """Append child ``value`` to the most recently begun node."""

    value = as_index(value)
    has_open = store.open_index >= as_index(0)
    in_range = _value_in_range(value, store.max_nodes)
    index = jnp.maximum(store.open_index, as_index(0))
    count = store.adjacency_count[index]
    has_room = count < as_index(store.max_adjacency)
    status = jnp.where(
        ~has_open,
        STATUS_NO_OPEN_NODE,
        jnp.where(
            ~in_range,
            STATUS_VALUE_OUT_OF_RANGE,
            jnp.where(~has_room, STATUS_CAPACITY_EXCEEDED, STATUS_OK),
        ),
    )

    def write(args):
        st, val = args
        return st._replace(
            adjacency=st.adjacency.at[index, count].set(val),
            adjacency_count=st.adjacency_count.at[index].add(as_index(1)),
        )

    def keep(args):
        st, _val = args
        return st

    new_store = lax.cond(status == STATUS_OK, write, keep, (store, value))
    return new_store, as_index(status)


@jaxtyped(typechecker=beartype)
def lookup_index(store: GraphStore, value: ArrayLike) -> Array:
    """Return the index assigned to ``value`` or ``-1``."""

    value = as_index(value)
    slot = jnp.clip(value, 0, store.max_nodes)
    index = store.value_to_index[slot]
    return jnp.where(
        _value_in_range(value, store.max_nodes), index, as_index(UNSET_INDEX)
    )


@jaxtyped(typechecker=beartype)
def children_of(store: GraphStore, index: ArrayLike) -> tuple[Array, Array]:
    """Return ``(row, count)`` for ``index``; unknown indices have no children."""

    index = as_index(index)
    known = index >= as_index(0)
    safe = jnp.clip(index, 0, store.max_nodes - 1)
    row = jnp.where(known, store.adjacency[safe], as_index(0))
    count = jnp.where(known, store.adjacency_count[safe], as_index(0))
    return row, count


_begin_node_jit = jax.jit(begin_node)
_add_adjacency_jit = jax.jit(add_adjacency)


def graph_store_from_adjacency(
    adjacency: Mapping[int, Sequence[int]],
    *,
    config: Optional[EngineConfig] = None,
) -> GraphStore:
    """Drive the ingestion protocol from a ``{value: [children, ...]}`` mapping.

    Nodes are begun in mapping order and children appended in sequence
    order. The first rejected write raises the matching status exception.
    """

    cfg = resolve_engine_config(config)
    store = empty_graph_store(cfg.max_nodes)
    for value, children in adjacency.items():
        store, status = _begin_node_jit(store, as_index(int(value)))
        raise_for_status(status, f"begin_node({value})")
        for child in children:
            store, status = _add_adjacency_jit(store, as_index(int(child)))
            raise_for_status(status, f"add_adjacency({value} -> {child})")
    return store


def graph_store_to_adjacency(store: GraphStore) -> dict[int, list[int]]:
    """Read a store back into a host mapping keyed by value (index order)."""

    value_to_index = np.asarray(store.value_to_index)
    adjacency = np.asarray(store.adjacency)
    counts = np.asarray(store.adjacency_count)
    pairs = [
        (int(index), value)
        for value, index in enumerate(value_to_index)
        if value > 0 and index >= 0
    ]
    return {
        value: [int(child) for child in adjacency[index, : counts[index]]]
        for index, value in sorted(pairs)
    }


__all__ = [
    "GraphStore",
    "add_adjacency",
    "begin_node",
    "children_of",
    "empty_graph_store",
    "graph_store_from_adjacency",
    "graph_store_to_adjacency",
    "lookup_index",
    "reset_graph_store",
]
