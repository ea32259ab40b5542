"""Ratatoskr: fixed-capacity, step-driven depth-first DAG traversal."""

from jax import config as _jax_config

# Request words pack source and target into one 64-bit channel word.
_jax_config.update("jax_enable_x64", True)

from .channel import (
    DriverInput,
    adjacency_input,
    decode_request,
    encode_request,
    idle_input,
    node_input,
    reset_input,
    traverse_input,
)
from .config import (
    EngineConfig,
    resolve_engine_config,
    set_default_engine_config,
    validate_engine_config,
)
from .core import SessionRecord, TraversalCore
from .dtypes import INDEX_DTYPE, SENTINEL, as_index
from .engine import TraversalState, advance, initial_traversal_state, start_traversal
from .graph import (
    GraphStore,
    add_adjacency,
    begin_node,
    children_of,
    empty_graph_store,
    graph_store_from_adjacency,
    graph_store_to_adjacency,
    lookup_index,
    reset_graph_store,
)
from .session import (
    PHASE_IDLE,
    PHASE_RUNNING,
    CoreState,
    SessionState,
    StepOutput,
    core_step,
    initial_core_state,
)
from .stack import (
    ExplicitStack,
    empty_stack,
    is_empty,
    load_all,
    peek_front,
    pop_front,
    push_front,
    stack_values,
)
from .status import (
    STATUS_CAPACITY_EXCEEDED,
    STATUS_FRONTIER_EXHAUSTED,
    STATUS_NO_OPEN_NODE,
    STATUS_OK,
    STATUS_SESSION_BUSY,
    STATUS_UNKNOWN_VALUE,
    STATUS_VALUE_OUT_OF_RANGE,
    CapacityExceededError,
    FrontierExhaustedError,
    NoOpenNodeError,
    RatatoskrError,
    SessionBusyError,
    UnknownValueError,
    ValueOutOfRangeError,
    raise_for_status,
    status_name,
)
from .walk import (
    TraversalResult,
    TraversalRetryEvent,
    WalkResult,
    depth_first_walk,
    log_retry_event,
    traverse,
)

__all__ = [
    "CapacityExceededError",
    "CoreState",
    "DriverInput",
    "EngineConfig",
    "ExplicitStack",
    "FrontierExhaustedError",
    "GraphStore",
    "INDEX_DTYPE",
    "NoOpenNodeError",
    "PHASE_IDLE",
    "PHASE_RUNNING",
    "RatatoskrError",
    "SENTINEL",
    "STATUS_CAPACITY_EXCEEDED",
    "STATUS_FRONTIER_EXHAUSTED",
    "STATUS_NO_OPEN_NODE",
    "STATUS_OK",
    "STATUS_SESSION_BUSY",
    "STATUS_UNKNOWN_VALUE",
    "STATUS_VALUE_OUT_OF_RANGE",
    "SessionBusyError",
    "SessionRecord",
    "SessionState",
    "StepOutput",
    "TraversalCore",
    "TraversalResult",
    "TraversalRetryEvent",
    "TraversalState",
    "UnknownValueError",
    "ValueOutOfRangeError",
    "WalkResult",
    "add_adjacency",
    "adjacency_input",
    "advance",
    "as_index",
    "begin_node",
    "children_of",
    "core_step",
    "decode_request",
    "depth_first_walk",
    "empty_graph_store",
    "empty_stack",
    "encode_request",
    "graph_store_from_adjacency",
    "graph_store_to_adjacency",
    "idle_input",
    "initial_core_state",
    "initial_traversal_state",
    "is_empty",
    "load_all",
    "log_retry_event",
    "lookup_index",
    "node_input",
    "peek_front",
    "pop_front",
    "push_front",
    "raise_for_status",
    "reset_graph_store",
    "reset_input",
    "resolve_engine_config",
    "set_default_engine_config",
    "stack_values",
    "start_traversal",
    "status_name",
    "traverse",
    "traverse_input",
    "validate_engine_config",
]
