"""Whole-traversal kernel and host entry point with capacity retries.

:func:`depth_first_walk` runs the same engine step as the tick-level
controller inside a single ``lax.while_loop`` and writes emitted nodes into a
fixed-size visit buffer. Because the engine does not deduplicate, the number
of visits can grow far beyond ``max_nodes`` on DAGs with many shared
descendants, and the frontier can outgrow ``max_nodes - 1`` slots. Both
buffers carry an overflow flag; :func:`traverse` reacts by doubling the
offending capacity and running again, reporting each retry through
``retry_logger``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import NamedTuple, Optional

import jax
import jax.numpy as jnp
import numpy as np
from beartype import beartype
from beartype.typing import Callable
from jax import lax
from jaxtyping import Array, ArrayLike, jaxtyped

from .config import EngineConfig, resolve_engine_config
from .dtypes import INDEX_DTYPE, SENTINEL, as_index
from .engine import advance, start_traversal
from .graph import GraphStore, lookup_index
from .stack import empty_stack
from .status import (
    CapacityExceededError,
    FrontierExhaustedError,
    UnknownValueError,
)

# Visits per node value used for the first automatic attempt.
_DEFAULT_VISIT_MULTIPLIER = 4
_MAX_AUTO_VISITS = 1 << 22

logger = logging.getLogger(__name__)


class WalkResult(NamedTuple):
    """Raw buffers and flags returned by :func:`depth_first_walk`."""

    visited: Array
    num_visited: Array
    found: Array
    exhausted: Array
    stack_overflow: Array
    visit_overflow: Array


class TraversalRetryEvent(NamedTuple):
    """Metadata describing a single traversal retry attempt."""

    attempt: int
    stack_capacity: int
    visit_capacity: int
    status: str
    num_visited: int


@dataclass(frozen=True)
class TraversalResult:
    """Completed traversal: pre-order visits up to and including the target."""

    visited: Array
    found: bool
    exhausted: bool
    attempts: int
    stack_capacity: int
    visit_capacity: int

    @property
    def values(self) -> list[int]:
        return [int(v) for v in np.asarray(self.visited)]

    def __len__(self) -> int:
        return int(self.visited.shape[0])


def log_retry_event(
    event: TraversalRetryEvent,
    *,
    level: int = logging.INFO,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log a retry event using the provided (or module) logger."""

    target_logger = logger or logging.getLogger(__name__)
    target_logger.log(
        level,
        "Traversal %s (attempt %d): stack=%d, visits=%d, emitted=%d",
        event.status,
        event.attempt,
        event.stack_capacity,
        event.visit_capacity,
        event.num_visited,
    )


def _record_visit(
    buffer: Array,
    count: Array,
    overflow: Array,
    value: Array,
    *,
    capacity: int,
) -> tuple[Array, Array, Array]:
    capacity_val = as_index(capacity)

    def do_record(args):
        buf, cnt, of, val = args
        return buf.at[cnt].set(val), cnt + as_index(1), of

    def set_overflow(args):
        buf, cnt, _of, _val = args
        return buf, cnt, jnp.bool_(True)

    can_record = (count < capacity_val) & (~overflow)
    return lax.cond(
        can_record,
        do_record,
        set_overflow,
        (buffer, count, overflow, value),
    )


@partial(jax.jit, static_argnames=("max_visits", "stack_capacity"))
@jaxtyped(typechecker=beartype)
def depth_first_walk(
    graph: GraphStore,
    source: ArrayLike,
    target: ArrayLike,
    *,
    max_visits: int,
    stack_capacity: int,
) -> WalkResult:
    """Walk from ``source`` until ``target`` is emitted or the frontier empties."""

    source = as_index(source)
    target = as_index(target)
    state, visited = start_traversal(graph, empty_stack(stack_capacity), source)
    buffer = jnp.full((max_visits,), SENTINEL, dtype=INDEX_DTYPE)
    buffer, count, visit_overflow = _record_visit(
        buffer, as_index(0), jnp.bool_(False), visited, capacity=max_visits
    )
    found = visited == target

    def cond_fun(carry):
        st, _buf, _cnt, fnd, exh, v_over = carry
        return (~fnd) & (~exh) & (~v_over) & (~st.stack.overflow)

    def body_fun(carry):
        st, buf, cnt, _fnd, _exh, v_over = carry
        st, node = advance(graph, st)
        exh = node == as_index(SENTINEL)

        def record(args):
            b, c, o = args
            return _record_visit(b, c, o, node, capacity=max_visits)

        buf, cnt, v_over = lax.cond(
            exh, lambda args: args, record, (buf, cnt, v_over)
        )
        fnd = (~exh) & (~v_over) & (node == target)
        return st, buf, cnt, fnd, exh, v_over

    state, buffer, count, found, exhausted, visit_overflow = lax.while_loop(
        cond_fun,
        body_fun,
        (state, buffer, count, found, jnp.bool_(False), visit_overflow),
    )
    return WalkResult(
        visited=buffer,
        num_visited=count,
        found=found,
        exhausted=exhausted,
        stack_overflow=state.stack.overflow & (~found),
        visit_overflow=visit_overflow,
    )


def _grow(capacity: int, ceiling: int) -> Optional[int]:
    if capacity >= ceiling:
        return None
    return int(min(ceiling, max(capacity * 2, capacity + 1)))


def traverse(
    graph: GraphStore,
    source: int,
    target: int,
    *,
    config: Optional[EngineConfig] = None,
    max_visits: Optional[int] = None,
    stack_capacity: Optional[int] = None,
    retry_logger: Optional[Callable[[TraversalRetryEvent], None]] = None,
    raise_on_exhausted: bool = False,
) -> TraversalResult:
    """Run a complete traversal on the host, growing buffers on overflow.

    Explicit ``max_visits``/``stack_capacity`` values are used as-is and an
    overflow raises :class:`CapacityExceededError`. Otherwise the visit buffer
    starts from ``config.max_visits`` (or a multiple of ``max_nodes``) and
    the frontier from ``config.stack_capacity`` (or ``max_nodes - 1``), each
    doubling on overflow up to a fixed ceiling.
    """

    cfg = resolve_engine_config(config)
    for name, value in (("source", source), ("target", target)):
        if int(lookup_index(graph, as_index(int(value)))) < 0:
            raise UnknownValueError(f"{name} value {value} was never ingested")

    max_nodes = graph.max_nodes
    grow_visits = max_visits is None
    grow_stack = stack_capacity is None
    visit_capacity = int(
        max_visits
        if max_visits is not None
        else cfg.max_visits or _DEFAULT_VISIT_MULTIPLIER * max_nodes
    )
    stack_cap = int(
        stack_capacity
        if stack_capacity is not None
        else cfg.stack_capacity or graph.max_adjacency
    )
    if visit_capacity < 1 or stack_cap < 1:
        raise ValueError("max_visits and stack_capacity must be >= 1")
    # A path holds at most max_nodes values, each deferring < max_nodes children.
    stack_ceiling = max(stack_cap, max_nodes * max_nodes)
    visit_ceiling = max(visit_capacity, _MAX_AUTO_VISITS)

    def _emit_retry_event(status: str, *, attempt: int, walk: WalkResult) -> None:
        if retry_logger is None:
            return
        event = TraversalRetryEvent(
            attempt=int(attempt),
            stack_capacity=int(stack_cap),
            visit_capacity=int(visit_capacity),
            status=status,
            num_visited=int(walk.num_visited),
        )
        try:
            retry_logger(event)
        except Exception:
            logger.exception("retry_logger raised", exc_info=True)

    attempt = 0
    while True:
        attempt += 1
        walk = depth_first_walk(
            graph,
            as_index(int(source)),
            as_index(int(target)),
            max_visits=visit_capacity,
            stack_capacity=stack_cap,
        )
        if bool(walk.stack_overflow):
            _emit_retry_event("stack_overflow", attempt=attempt, walk=walk)
            grown = _grow(stack_cap, stack_ceiling) if grow_stack else None
            if grown is None:
                raise CapacityExceededError(
                    "Frontier capacity exceeded; pass a larger stack_capacity."
                )
            stack_cap = grown
            continue
        if bool(walk.visit_overflow):
            _emit_retry_event("visit_overflow", attempt=attempt, walk=walk)
            grown = _grow(visit_capacity, visit_ceiling) if grow_visits else None
            if grown is None:
                raise CapacityExceededError(
                    "Visit buffer capacity exceeded; pass a larger max_visits."
                )
            visit_capacity = grown
            continue
        break

    found = bool(walk.found)
    exhausted = bool(walk.exhausted)
    logger.debug(
        "Traversal %d -> %d finished after %d attempt(s): found=%s, emitted=%d",
        int(source),
        int(target),
        attempt,
        found,
        int(walk.num_visited),
    )
    if exhausted and raise_on_exhausted:
        raise FrontierExhaustedError(
            f"target {target} is unreachable from source {source}"
        )
    count = int(walk.num_visited)
    return TraversalResult(
        visited=walk.visited[:count],
        found=found,
        exhausted=exhausted,
        attempts=attempt,
        stack_capacity=stack_cap,
        visit_capacity=visit_capacity,
    )


__all__ = [
    "TraversalResult",
    "TraversalRetryEvent",
    "WalkResult",
    "depth_first_walk",
    "log_retry_event",
    "traverse",
]
