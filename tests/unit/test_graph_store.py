"""Tests for graph ingestion tables."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from ratatoskr import (
    STATUS_CAPACITY_EXCEEDED,
    STATUS_NO_OPEN_NODE,
    STATUS_OK,
    STATUS_VALUE_OUT_OF_RANGE,
    CapacityExceededError,
    EngineConfig,
    ValueOutOfRangeError,
    add_adjacency,
    begin_node,
    children_of,
    empty_graph_store,
    graph_store_from_adjacency,
    graph_store_to_adjacency,
    lookup_index,
    reset_graph_store,
)
from tests.unit.graph_fixtures import PREORDER_DAG


def _assert_same_tables(left, right):
    for name in left._fields:
        np.testing.assert_array_equal(
            np.asarray(getattr(left, name)), np.asarray(getattr(right, name))
        )


def test_indices_follow_insertion_order():
    store = empty_graph_store(8)
    values = [5, 2, 8, 1]
    for value in values:
        store, status = begin_node(store, value)
        assert int(status) == STATUS_OK

    assert [int(lookup_index(store, v)) for v in values] == [0, 1, 2, 3]
    assert int(store.num_nodes) == 4
    assert int(store.open_index) == 3


def test_unset_values_map_to_minus_one():
    store, _ = begin_node(empty_graph_store(4), 2)

    assert int(lookup_index(store, 2)) == 0
    assert int(lookup_index(store, 1)) == -1
    assert int(lookup_index(store, 0)) == -1
    assert int(lookup_index(store, 99)) == -1


def test_adjacency_round_trip_preserves_order_and_count():
    store = empty_graph_store(6)
    store, _ = begin_node(store, 3)
    for child in [6, 1, 4]:
        store, status = add_adjacency(store, child)
        assert int(status) == STATUS_OK

    row, count = children_of(store, lookup_index(store, 3))
    assert int(count) == 3
    assert np.asarray(row)[:3].tolist() == [6, 1, 4]
    assert np.all(np.asarray(row)[3:] == 0)


def test_adjacency_applies_to_most_recent_node():
    store = graph_store_from_adjacency(PREORDER_DAG, config=EngineConfig(max_nodes=4))

    assert graph_store_to_adjacency(store) == PREORDER_DAG


def test_adjacency_capacity_boundary():
    max_nodes = 5
    store, _ = begin_node(empty_graph_store(max_nodes), 1)
    for child in [2, 3, 4, 5]:
        store, status = add_adjacency(store, child)
        assert int(status) == STATUS_OK
    assert int(store.adjacency_count[0]) == max_nodes - 1

    rejected, status = add_adjacency(store, 2)
    assert int(status) == STATUS_CAPACITY_EXCEEDED
    _assert_same_tables(rejected, store)


def test_node_capacity_rejects_extra_begin():
    store = empty_graph_store(3)
    for value in [1, 2, 3]:
        store, status = begin_node(store, value)
        assert int(status) == STATUS_OK

    rejected, status = begin_node(store, 1)
    assert int(status) == STATUS_CAPACITY_EXCEEDED
    _assert_same_tables(rejected, store)


def test_repeated_begin_overwrites_mapping():
    store = empty_graph_store(4)
    store, _ = begin_node(store, 2)
    store, _ = add_adjacency(store, 3)
    store, _ = begin_node(store, 2)

    assert int(lookup_index(store, 2)) == 1
    assert int(store.num_nodes) == 2
    _, count = children_of(store, lookup_index(store, 2))
    assert int(count) == 0


@pytest.mark.parametrize("value", [0, 5, -3])
def test_out_of_range_values_are_rejected(value):
    store = empty_graph_store(4)
    _, status = begin_node(store, value)
    assert int(status) == STATUS_VALUE_OUT_OF_RANGE

    store, _ = begin_node(store, 1)
    _, status = add_adjacency(store, value)
    assert int(status) == STATUS_VALUE_OUT_OF_RANGE


def test_adjacency_before_any_node_is_rejected():
    store = empty_graph_store(4)
    rejected, status = add_adjacency(store, 2)

    assert int(status) == STATUS_NO_OPEN_NODE
    _assert_same_tables(rejected, store)


def test_reset_is_idempotent_and_restores_cold_tables():
    store = graph_store_from_adjacency(PREORDER_DAG, config=EngineConfig(max_nodes=6))
    cleared = reset_graph_store(store)
    cleared_twice = reset_graph_store(cleared)

    _assert_same_tables(cleared, empty_graph_store(6))
    _assert_same_tables(cleared_twice, cleared)


def test_children_of_unknown_index_is_empty():
    store = graph_store_from_adjacency(PREORDER_DAG, config=EngineConfig(max_nodes=4))
    row, count = children_of(store, -1)

    assert int(count) == 0
    assert np.all(np.asarray(row) == 0)


def test_ingestion_ops_support_jit():
    begin = jax.jit(begin_node)
    add = jax.jit(add_adjacency)
    store, _ = begin(empty_graph_store(4), jnp.int64(1))
    store, status = add(store, jnp.int64(4))

    assert int(status) == STATUS_OK
    assert graph_store_to_adjacency(store) == {1: [4]}


def test_loader_raises_on_rejected_write():
    with pytest.raises(CapacityExceededError):
        graph_store_from_adjacency(
            {1: [2, 3, 3]}, config=EngineConfig(max_nodes=3)
        )
    with pytest.raises(ValueOutOfRangeError):
        graph_store_from_adjacency({1: [7]}, config=EngineConfig(max_nodes=3))
