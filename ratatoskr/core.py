"""Host-side driver wrapper around the pure tick function."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Optional

from .channel import (
    DriverInput,
    adjacency_input,
    idle_input,
    node_input,
    reset_input,
    traverse_input,
)
from .config import EngineConfig, resolve_engine_config
from .graph import GraphStore
from .session import PHASE_RUNNING, CoreState, StepOutput, core_step, initial_core_state
from .status import STATUS_OK, raise_for_status, status_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRecord:
    """Host summary of one traversal session driven to its end."""

    source: int
    target: int
    visited: tuple[int, ...]
    found: bool
    exhausted: bool
    status: int
    ticks: int


class TraversalCore:
    """Holds the current :class:`CoreState` and applies driver ticks.

    With ``strict=True`` a rejected driver operation raises the matching
    :mod:`ratatoskr.status` exception after the tick has been committed; a
    running session still advanced on that tick, and its output is kept in
    :attr:`last_output`.
    """

    def __init__(self, config: Optional[EngineConfig] = None, *, strict: bool = True):
        self.config = resolve_engine_config(config)
        self.strict = strict
        self.state: CoreState = initial_core_state(self.config)
        self.last_output: Optional[StepOutput] = None

    @property
    def graph(self) -> GraphStore:
        return self.state.graph

    @property
    def running(self) -> bool:
        return int(self.state.session.phase) == PHASE_RUNNING

    @property
    def tick_count(self) -> int:
        return int(self.state.tick)

    def step(self, inputs: DriverInput) -> StepOutput:
        """Commit one tick and return its outputs."""

        self.state, output = core_step(
            self.state, inputs, value_width=self.config.value_width
        )
        self.last_output = output
        request_status = int(output.request_status)
        if request_status != STATUS_OK:
            logger.debug(
                "tick %d: driver operation rejected (%s)",
                self.tick_count,
                status_name(request_status),
            )
            if self.strict:
                raise_for_status(request_status, f"tick {self.tick_count}")
        return output

    def idle(self) -> StepOutput:
        return self.step(idle_input())

    def reset(self) -> StepOutput:
        return self.step(reset_input())

    def begin_node(self, value: int) -> StepOutput:
        return self.step(node_input(value, value_width=self.config.value_width))

    def add_adjacency(self, value: int) -> StepOutput:
        return self.step(
            adjacency_input(value, value_width=self.config.value_width)
        )

    def request(self, source: int, target: int) -> StepOutput:
        return self.step(
            traverse_input(source, target, value_width=self.config.value_width)
        )

    def load(self, adjacency: Mapping[int, Sequence[int]]) -> None:
        """Feed ``{value: [children, ...]}`` through the ingestion protocol."""

        for value, children in adjacency.items():
            self.begin_node(int(value))
            for child in children:
                self.add_adjacency(int(child))

    def run(
        self,
        source: int,
        target: int,
        *,
        max_ticks: Optional[int] = None,
    ) -> SessionRecord:
        """Request a traversal and tick until the session ends.

        A rejected request (unknown value, or another session still running)
        returns at once with the rejection code in ``status``; a session that
        belongs to an earlier request is never drained here.
        """

        start_tick = self.tick_count
        output = self.request(source, target)
        request_status = int(output.request_status)
        if request_status != STATUS_OK:
            return SessionRecord(
                source=int(source),
                target=int(target),
                visited=(),
                found=False,
                exhausted=False,
                status=request_status,
                ticks=self.tick_count - start_tick,
            )
        visited: list[int] = []
        while True:
            if bool(output.valid):
                visited.append(int(output.visited))
            if not self.running:
                break
            if max_ticks is not None and self.tick_count - start_tick >= max_ticks:
                raise RuntimeError(
                    f"session {source} -> {target} still running after {max_ticks} ticks"
                )
            output = self.idle()

        record = SessionRecord(
            source=int(source),
            target=int(target),
            visited=tuple(visited),
            found=bool(output.complete),
            exhausted=bool(output.exhausted),
            status=int(output.status),
            ticks=self.tick_count - start_tick,
        )
        logger.debug(
            "session %d -> %d ended after %d ticks: found=%s, status=%s",
            record.source,
            record.target,
            record.ticks,
            record.found,
            status_name(record.status),
        )
        # Exhaustion is reported through ``record.exhausted``.
        if self.strict and not record.exhausted:
            raise_for_status(record.status, f"session {source} -> {target}")
        return record


__all__ = ["SessionRecord", "TraversalCore"]
