"""Compare the tick-level driver with the batch walk on a random DAG.

    python examples/random_dag_walk.py --num-nodes 48 --edge-prob 0.1
"""

from __future__ import annotations

import argparse
import logging
import time

import jax
import jax.numpy as jnp

from ratatoskr import (
    EngineConfig,
    TraversalCore,
    graph_store_from_adjacency,
    log_retry_event,
    traverse,
)


def _make_dag(num_nodes: int, edge_prob: float, seed: int) -> dict[int, list[int]]:
    key = jax.random.PRNGKey(seed)
    edges = jnp.triu(jax.random.bernoulli(key, edge_prob, (num_nodes, num_nodes)), k=1)
    return {
        value + 1: [int(child) + 1 for child in jnp.nonzero(edges[value])[0]]
        for value in range(num_nodes)
    }


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--num-nodes", type=int, default=32)
    parser.add_argument("--edge-prob", type=float, default=0.15)
    parser.add_argument("--source", type=int, default=1)
    parser.add_argument("--target", type=int, default=None)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--stack-capacity", type=int, default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    print("jax:", jax.__version__)
    print("device:", jax.devices()[0])
    print("config:", vars(args))

    target = args.num_nodes if args.target is None else args.target
    adjacency = _make_dag(args.num_nodes, args.edge_prob, args.seed)
    config = EngineConfig(
        max_nodes=args.num_nodes,
        value_width=max(1, args.num_nodes.bit_length()),
        stack_capacity=args.stack_capacity,
    )
    graph = graph_store_from_adjacency(adjacency, config=config)

    start = time.perf_counter()
    result = traverse(
        graph,
        args.source,
        target,
        config=config,
        retry_logger=log_retry_event,
    )
    batch_seconds = time.perf_counter() - start
    print(
        "[batch]",
        {
            "found": result.found,
            "exhausted": result.exhausted,
            "visits": len(result),
            "attempts": result.attempts,
            "stack_capacity": result.stack_capacity,
            "seconds": round(batch_seconds, 4),
        },
    )

    core = TraversalCore(config, strict=False)
    core.load(adjacency)
    start = time.perf_counter()
    record = core.run(args.source, target)
    tick_seconds = time.perf_counter() - start
    print(
        "[ticks]",
        {
            "found": record.found,
            "exhausted": record.exhausted,
            "visits": len(record.visited),
            "ticks": record.ticks,
            "status": record.status,
            "seconds": round(tick_seconds, 4),
        },
    )

    if tuple(result.values) != record.visited:
        # Expected only when the tick driver's frontier overflowed.
        print("[compare] sequences differ; tick driver status:", record.status)
    else:
        print("[compare] sequences match:", result.values[:16])


if __name__ == "__main__":
    main()
