"""Tests for the depth-first engine step."""

import jax
import pytest

from ratatoskr import (
    EngineConfig,
    advance,
    empty_stack,
    graph_store_from_adjacency,
    lookup_index,
    stack_values,
    start_traversal,
)
from tests.unit.graph_fixtures import (
    PREORDER_DAG,
    SHARED_DESCENDANT_DAG,
    layered_dag,
    reference_preorder,
)


def _emit_all(adjacency, source, *, max_nodes=8, limit=256):
    graph = graph_store_from_adjacency(adjacency, config=EngineConfig(max_nodes=max_nodes))
    step = jax.jit(advance)
    state, visited = start_traversal(graph, empty_stack(max_nodes - 1), source)
    order = [int(visited)]
    for _ in range(limit):
        state, visited = step(graph, state)
        if int(visited) == 0:
            return order
        order.append(int(visited))
    raise AssertionError("frontier never emptied")


def test_start_emits_source_and_stages_children():
    graph = graph_store_from_adjacency(PREORDER_DAG, config=EngineConfig(max_nodes=4))
    state, visited = start_traversal(graph, empty_stack(3), 1)

    assert int(visited) == 1
    assert int(state.current_index) == int(lookup_index(graph, 1))
    assert int(state.adjacency_count) == 0
    assert stack_values(state.stack) == [2, 3]


def test_advance_descends_into_first_child_and_defers_siblings():
    graph = graph_store_from_adjacency(
        {1: [2], 2: [5, 6, 7], 5: [], 6: [], 7: []},
        config=EngineConfig(max_nodes=8),
    )
    state, _ = start_traversal(graph, empty_stack(7), 1)
    state, visited = advance(graph, state)
    assert int(visited) == 2
    assert int(state.adjacency_count) == 3

    state, visited = advance(graph, state)
    assert int(visited) == 5
    assert stack_values(state.stack) == [6, 7]


def test_preorder_sequence():
    assert _emit_all(PREORDER_DAG, 1) == [1, 2, 4, 3]


def test_shared_descendant_is_emitted_once_per_path():
    order = _emit_all(SHARED_DESCENDANT_DAG, 1)

    assert order == [1, 2, 4, 3, 4]
    assert order.count(4) == 2


def test_uningested_child_is_visited_as_leaf():
    assert _emit_all({1: [3, 2], 2: [4]}, 1) == [1, 3, 2, 4]


def test_leaf_source_exhausts_immediately():
    assert _emit_all({1: [], 2: [1]}, 1) == [1]


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_engine_matches_reference_preorder(seed):
    adjacency = layered_dag(num_layers=4, width=4, fan_out=2, seed=seed)

    assert _emit_all(adjacency, 1, max_nodes=16) == reference_preorder(adjacency, 1)
