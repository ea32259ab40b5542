"""Fixed construction parameters for the traversal core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

_DEFAULT_MAX_NODES = 64
_DEFAULT_VALUE_WIDTH = 16
# Request words carry two values in one int64 channel word.
_MAX_VALUE_WIDTH = 31


@dataclass(frozen=True)
class EngineConfig:
    """Capacities for graph storage, frontier and batch visit buffers.

    Attributes:
        max_nodes: Bound on node values (``1..max_nodes``), on ingested node
            count, and on adjacencies per node (``max_nodes - 1``).
        value_width: Bits used for one value on the shared data channel.
        stack_capacity: Frontier slots; ``None`` means ``max_nodes - 1``.
        max_visits: Initial batch walk output slots; ``None`` lets
            :func:`ratatoskr.walk.traverse` pick and grow it automatically.
    """

    max_nodes: int = _DEFAULT_MAX_NODES
    value_width: int = _DEFAULT_VALUE_WIDTH
    stack_capacity: Optional[int] = None
    max_visits: Optional[int] = None

    @property
    def max_adjacency(self) -> int:
        return self.max_nodes - 1

    @property
    def resolved_stack_capacity(self) -> int:
        if self.stack_capacity is None:
            return self.max_adjacency
        return int(self.stack_capacity)


def validate_engine_config(config: EngineConfig) -> EngineConfig:
    """Return ``config`` unchanged or raise ``ValueError`` describing the issue."""

    if config.max_nodes < 2:
        raise ValueError(f"max_nodes must be >= 2, received {config.max_nodes}")
    if not 1 <= config.value_width <= _MAX_VALUE_WIDTH:
        raise ValueError(
            f"value_width must be in [1, {_MAX_VALUE_WIDTH}], "
            f"received {config.value_width}"
        )
    if config.max_nodes > (1 << config.value_width) - 1:
        raise ValueError(
            f"value_width={config.value_width} cannot represent "
            f"max_nodes={config.max_nodes}"
        )
    if config.stack_capacity is not None and config.stack_capacity < 1:
        raise ValueError("stack_capacity must be >= 1")
    if config.max_visits is not None and config.max_visits < 1:
        raise ValueError("max_visits must be >= 1")
    return config


_GLOBAL_ENGINE_CONFIG: Optional[EngineConfig] = None


def set_default_engine_config(config: Optional[EngineConfig]) -> None:
    """Set the module-level fallback configuration; ``None`` restores defaults."""

    if config is not None:
        validate_engine_config(config)

    global _GLOBAL_ENGINE_CONFIG
    _GLOBAL_ENGINE_CONFIG = config


def resolve_engine_config(config: Optional[EngineConfig] = None) -> EngineConfig:
    """Pick the explicit config, else the installed default, else built-ins."""

    if config is not None:
        return validate_engine_config(config)
    if _GLOBAL_ENGINE_CONFIG is not None:
        return _GLOBAL_ENGINE_CONFIG
    return EngineConfig()


__all__ = [
    "EngineConfig",
    "resolve_engine_config",
    "set_default_engine_config",
    "validate_engine_config",
]
