"""Request/response state machine driving the traversal engine tick by tick.

:func:`core_step` is a pure ``(CoreState, DriverInput) -> (CoreState,
StepOutput)`` transition. Every branch reads only the incoming snapshot and
the new state is committed as a whole, so no value written during a tick is
observed until the next one.

One tick carries at most one driver operation, resolved in the priority
order reset > node ready > adjacency ready > traverse request. While a session
runs, any operation other than reset is rejected with
``STATUS_SESSION_BUSY`` and the session still advances on that tick.
"""

from __future__ import annotations

from functools import partial
from typing import NamedTuple, Optional

import jax
import jax.numpy as jnp
from beartype import beartype
from jax import lax
from jaxtyping import Array, jaxtyped

from .channel import DriverInput, channel_value, decode_request
from .config import EngineConfig, resolve_engine_config
from .dtypes import SENTINEL, as_index
from .engine import TraversalState, advance, initial_traversal_state, start_traversal
from .graph import (
    GraphStore,
    add_adjacency,
    begin_node,
    empty_graph_store,
    lookup_index,
    reset_graph_store,
)
from .status import (
    STATUS_CAPACITY_EXCEEDED,
    STATUS_FRONTIER_EXHAUSTED,
    STATUS_OK,
    STATUS_SESSION_BUSY,
    STATUS_UNKNOWN_VALUE,
)

PHASE_IDLE = 0
PHASE_RUNNING = 1

_OP_NONE = 0
_OP_RESET = 1
_OP_NODE = 2
_OP_ADJACENCY = 3
_OP_TRAVERSE = 4


class SessionState(NamedTuple):
    """Active traversal request and its engine registers."""

    phase: jnp.ndarray
    source: jnp.ndarray
    target: jnp.ndarray
    steps: jnp.ndarray
    traversal: TraversalState


class CoreState(NamedTuple):
    """Everything the core holds; ``tick`` versions each committed step."""

    graph: GraphStore
    session: SessionState
    tick: jnp.ndarray


class StepOutput(NamedTuple):
    """Signals produced by one tick.

    Attributes:
        visited: Node emitted this tick (``0`` when nothing was emitted)
        valid: Whether ``visited`` carries a node
        complete: The target was emitted this tick; the core is idle again
        exhausted: The frontier emptied before the target was reached
        status: Session event status (capacity overflow, exhaustion)
        request_status: Status of the driver operation presented this tick
    """

    visited: jnp.ndarray
    valid: jnp.ndarray
    complete: jnp.ndarray
    exhausted: jnp.ndarray
    status: jnp.ndarray
    request_status: jnp.ndarray


def idle_session(stack_capacity: int) -> SessionState:
    return SessionState(
        phase=as_index(PHASE_IDLE),
        source=as_index(SENTINEL),
        target=as_index(SENTINEL),
        steps=as_index(0),
        traversal=initial_traversal_state(stack_capacity),
    )


def initial_core_state(config: Optional[EngineConfig] = None) -> CoreState:
    """Cold-start state sized from ``config`` (or the installed default)."""

    cfg = resolve_engine_config(config)
    return CoreState(
        graph=empty_graph_store(cfg.max_nodes),
        session=idle_session(cfg.resolved_stack_capacity),
        tick=as_index(0),
    )


def _quiet_output(request_status=STATUS_OK) -> StepOutput:
    return StepOutput(
        visited=as_index(SENTINEL),
        valid=jnp.bool_(False),
        complete=jnp.bool_(False),
        exhausted=jnp.bool_(False),
        status=as_index(STATUS_OK),
        request_status=as_index(request_status),
    )


def _run_session(
    graph: GraphStore,
    session: SessionState,
) -> tuple[SessionState, StepOutput]:
    traversal, visited = advance(graph, session.traversal)
    exhausted = visited == as_index(SENTINEL)
    complete = (~exhausted) & (visited == session.target)
    overflow = traversal.stack.overflow & (~complete)
    status = jnp.where(
        exhausted,
        STATUS_FRONTIER_EXHAUSTED,
        jnp.where(overflow, STATUS_CAPACITY_EXCEEDED, STATUS_OK),
    )
    done = complete | exhausted | overflow
    next_session = session._replace(
        phase=jnp.where(done, as_index(PHASE_IDLE), as_index(PHASE_RUNNING)),
        steps=session.steps + as_index(1),
        traversal=traversal,
    )
    output = StepOutput(
        visited=visited,
        valid=~exhausted,
        complete=complete,
        exhausted=exhausted,
        status=as_index(status),
        request_status=as_index(STATUS_OK),
    )
    return next_session, output


def _start_session(
    graph: GraphStore,
    session: SessionState,
    source: Array,
    target: Array,
) -> tuple[SessionState, StepOutput]:
    known = (lookup_index(graph, source) >= as_index(0)) & (
        lookup_index(graph, target) >= as_index(0)
    )

    def start(_):
        traversal, visited = start_traversal(graph, session.traversal.stack, source)
        complete = visited == target
        overflow = traversal.stack.overflow & (~complete)
        done = complete | overflow
        next_session = SessionState(
            phase=jnp.where(done, as_index(PHASE_IDLE), as_index(PHASE_RUNNING)),
            source=source,
            target=target,
            steps=as_index(1),
            traversal=traversal,
        )
        output = StepOutput(
            visited=visited,
            valid=jnp.bool_(True),
            complete=complete,
            exhausted=jnp.bool_(False),
            status=as_index(
                jnp.where(overflow, STATUS_CAPACITY_EXCEEDED, STATUS_OK)
            ),
            request_status=as_index(STATUS_OK),
        )
        return next_session, output

    def reject(_):
        return session, _quiet_output(STATUS_UNKNOWN_VALUE)

    return lax.cond(known, start, reject, operand=None)


@partial(jax.jit, static_argnames=("value_width",))
@jaxtyped(typechecker=beartype)
def core_step(
    state: CoreState,
    inputs: DriverInput,
    *,
    value_width: int,
) -> tuple[CoreState, StepOutput]:
    """Advance the core by one tick."""

    graph = state.graph
    session = state.session
    running = session.phase == as_index(PHASE_RUNNING)

    def busy(_):
        next_session, output = _run_session(graph, session)
        return graph, next_session, output._replace(
            request_status=as_index(STATUS_SESSION_BUSY)
        )

    def on_none(_):
        def run(_):
            next_session, output = _run_session(graph, session)
            return graph, next_session, output

        def wait(_):
            return graph, session, _quiet_output()

        return lax.cond(running, run, wait, operand=None)

    def on_reset(_):
        return (
            reset_graph_store(graph),
            idle_session(session.traversal.stack.capacity),
            _quiet_output(),
        )

    def ingest(write_fn):
        def apply(_):
            next_graph, status = write_fn(graph, channel_value(inputs.data, value_width))
            return next_graph, session, _quiet_output(status)

        def branch(_):
            return lax.cond(running, busy, apply, operand=None)

        return branch

    def on_traverse(_):
        def request(_):
            source, target = decode_request(inputs.data, value_width)
            next_session, output = _start_session(graph, session, source, target)
            return graph, next_session, output

        return lax.cond(running, busy, request, operand=None)

    operation = jnp.where(
        inputs.reset,
        _OP_RESET,
        jnp.where(
            inputs.node_ready,
            _OP_NODE,
            jnp.where(
                inputs.adjacency_ready,
                _OP_ADJACENCY,
                jnp.where(inputs.traverse_request, _OP_TRAVERSE, _OP_NONE),
            ),
        ),
    )
    next_graph, next_session, output = lax.switch(
        operation.astype(jnp.int32),
        [
            on_none,
            on_reset,
            ingest(begin_node),
            ingest(add_adjacency),
            on_traverse,
        ],
        None,
    )
    next_state = CoreState(
        graph=next_graph,
        session=next_session,
        tick=state.tick + as_index(1),
    )
    return next_state, output


__all__ = [
    "CoreState",
    "PHASE_IDLE",
    "PHASE_RUNNING",
    "SessionState",
    "StepOutput",
    "core_step",
    "idle_session",
    "initial_core_state",
]
