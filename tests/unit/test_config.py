"""Tests for EngineConfig validation and the module-level default."""

import pytest

from ratatoskr import (
    EngineConfig,
    TraversalCore,
    initial_core_state,
    resolve_engine_config,
    set_default_engine_config,
    validate_engine_config,
)


@pytest.fixture
def restore_default_config():
    yield
    set_default_engine_config(None)


def test_defaults_derive_adjacency_and_stack_capacity():
    config = EngineConfig(max_nodes=10)

    assert config.max_adjacency == 9
    assert config.resolved_stack_capacity == 9
    assert EngineConfig(max_nodes=10, stack_capacity=32).resolved_stack_capacity == 32


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"max_nodes": 1}, "max_nodes"),
        ({"value_width": 0}, "value_width"),
        ({"value_width": 32}, "value_width"),
        ({"max_nodes": 16, "value_width": 4}, "cannot represent"),
        ({"stack_capacity": 0}, "stack_capacity"),
        ({"max_visits": 0}, "max_visits"),
    ],
)
def test_invalid_configs_raise(kwargs, match):
    with pytest.raises(ValueError, match=match):
        validate_engine_config(EngineConfig(**kwargs))


def test_largest_value_must_fit_channel_width():
    assert validate_engine_config(EngineConfig(max_nodes=15, value_width=4)).max_nodes == 15


def test_resolve_prefers_explicit_config(restore_default_config):
    set_default_engine_config(EngineConfig(max_nodes=8))
    explicit = EngineConfig(max_nodes=5)

    assert resolve_engine_config(explicit) is explicit
    assert resolve_engine_config().max_nodes == 8


def test_default_config_sizes_new_cores(restore_default_config):
    set_default_engine_config(EngineConfig(max_nodes=6, stack_capacity=3))

    state = initial_core_state()
    assert state.graph.max_nodes == 6
    assert state.session.traversal.stack.capacity == 3
    assert TraversalCore().config.max_nodes == 6


def test_set_default_rejects_invalid_config(restore_default_config):
    with pytest.raises(ValueError):
        set_default_engine_config(EngineConfig(max_nodes=0))
    assert resolve_engine_config() == EngineConfig()


def test_clearing_default_restores_builtins(restore_default_config):
    set_default_engine_config(EngineConfig(max_nodes=8))
    set_default_engine_config(None)

    assert resolve_engine_config() == EngineConfig()
