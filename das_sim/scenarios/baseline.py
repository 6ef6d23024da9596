"""Baseline scenario: one builder, honest validators, fixed rounds."""

from __future__ import annotations

from das_sim.config import SimulationConfig
from das_sim.core.simulator import Simulator


def run_baseline_scenario(config: SimulationConfig | None = None) -> Simulator:
    """Build a simulator, run every configured round, and drain the queue."""
    if config is None:
        config = SimulationConfig()

    if config.rounds is None:
        raise ValueError("Baseline scenario needs a bounded number of rounds")

    sim = Simulator.build(config)
    sim.round_driver.start()
    sim.run_until_empty()

    return sim


def main() -> None:
    """Run baseline scenario and print the coverage report."""
    import json
    import logging
    import time

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    config = SimulationConfig(node_count=100, block_dim_size=4, sample_copies_per_peer=2)
    print(
        f"Building simulation with {config.node_count} validators + 1 builder, "
        f"block {config.block_dim_size}x{config.block_dim_size}, "
        f"replication target {config.sample_copies_per_peer}..."
    )

    start = time.time()
    sim = run_baseline_scenario(config)
    run_time = time.time() - start
    print(f"Simulation completed in {run_time:.2f}s (wall clock)")

    print("\n=== Rounds ===")
    for report in sim.round_driver.reports:
        print(f"Block {report.sequence_number}: radius={report.radius:#x}")
        print(
            f"{report.samples_covered} samples out of {report.total_samples} samples "
            f"are within a node's region"
        )
        print(f"{report.assignments_dispatched} total samples distributed")
        if report.deficit > 0:
            print(
                f"Error: there are {report.deficit} samples that are not within "
                f"a region of a peer"
            )

    print("\n=== Simulation Statistics ===")
    print(f"Simulated time: {sim.current_time:.1f}s")
    print(f"Events processed: {sim.events_processed}")
    print(f"Messages delivered: {sim.network.messages_delivered}")
    store = sim.builder.store
    print(f"Builder store size: {len(store) if store is not None else 0}")

    print("\n=== Exporting to JSON ===")
    print(json.dumps(sim.finalize_metrics().to_dict(), indent=2))


if __name__ == "__main__":
    main()
