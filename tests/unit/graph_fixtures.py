"""Shared DAG fixtures and a reference pre-order walker for traversal tests."""

from __future__ import annotations

import numpy as np

# 1 -> {2, 3}, 2 -> {4}: pre-order 1, 2, 4, 3.
PREORDER_DAG: dict[int, list[int]] = {1: [2, 3], 2: [4], 3: [], 4: []}

# 4 is reachable through both 2 and 3.
SHARED_DESCENDANT_DAG: dict[int, list[int]] = {1: [2, 3], 2: [4], 3: [4], 4: []}


def complete_dag(n: int) -> dict[int, list[int]]:
    """Every value points at every larger value; the frontier grows fast."""

    return {i: list(range(i + 1, n + 1)) for i in range(1, n + 1)}


def layered_dag(
    num_layers: int,
    width: int,
    fan_out: int,
    seed: int,
) -> dict[int, list[int]]:
    """Random layered DAG on values ``1..num_layers * width``.

    Edges only point from one layer to the next, so the graph is acyclic and
    the number of root-to-leaf paths stays bounded by ``fan_out ** layers``.
    """

    rng = np.random.default_rng(seed)
    adjacency: dict[int, list[int]] = {}
    for layer in range(num_layers):
        base = layer * width
        for offset in range(width):
            value = base + offset + 1
            if layer == num_layers - 1:
                adjacency[value] = []
                continue
            next_layer = np.arange(base + width + 1, base + 2 * width + 1)
            picks = rng.choice(next_layer, size=min(fan_out, width), replace=False)
            adjacency[value] = [int(v) for v in picks]
    return adjacency


def reference_preorder(
    adjacency: dict[int, list[int]],
    source: int,
    target: int | None = None,
) -> list[int]:
    """Pre-order DFS without a visited set, stopping once ``target`` is emitted."""

    order: list[int] = []
    pending = [source]
    while pending:
        node = pending.pop()
        order.append(node)
        if node == target:
            break
        pending.extend(reversed(adjacency.get(node, [])))
    return order


__all__ = [
    "PREORDER_DAG",
    "SHARED_DESCENDANT_DAG",
    "complete_dag",
    "layered_dag",
    "reference_preorder",
]
