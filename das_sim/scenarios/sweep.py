"""Replication-target sweep: how coverage responds to the copies-per-sample setting."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from random import Random
from typing import TYPE_CHECKING

import coolname.impl

from das_sim.config import SimulationConfig
from das_sim.scenarios.baseline import run_baseline_scenario

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from das_sim.metrics.results import SimulationResults


@dataclass
class SweepRun:
    run_id: str
    replication_target: int
    results: SimulationResults | None
    error: Exception | None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "error"
        if self.results is not None and self.results.missing_samples > 0:
            return "ATTENTION(coverage_gap)"
        return "success"

    def summary(self) -> dict[str, object]:
        return {
            "run_id": self.run_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "replication_target": self.replication_target,
            "status": self.status,
            "error": repr(self.error) if self.error is not None else None,
            "metrics": self.results.to_dict() if self.results is not None else None,
        }


def generate_run_id(rng: Random) -> str:
    coolname.impl.replace_random(rng)
    words = coolname.impl.generate(3)
    return "-".join(words)


def execute_run(config: SimulationConfig) -> tuple[SimulationResults | None, Exception | None]:
    try:
        sim = run_baseline_scenario(config)
        return (sim.finalize_metrics(), None)
    except Exception as e:
        return (None, e)


def append_summary(path: Path, summary: dict[str, object]) -> None:
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(summary) + "\n")


def run_sweep(
    base_config: SimulationConfig,
    targets: Iterable[int],
    output: Path | None = None,
) -> list[SweepRun]:
    """Run one simulation per replication target, optionally logging NDJSON summaries."""
    rng = Random(base_config.seed)
    runs: list[SweepRun] = []

    for target in targets:
        config = replace(base_config, sample_copies_per_peer=target)
        results, error = execute_run(config)
        run = SweepRun(
            run_id=generate_run_id(rng),
            replication_target=target,
            results=results,
            error=error,
        )
        runs.append(run)

        if output is not None:
            append_summary(output, run.summary())

    return runs


def main() -> None:
    """Sweep replication targets 0..8 and print coverage per target."""
    import sys
    from pathlib import Path

    output = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    base = SimulationConfig(node_count=100, block_dim_size=8)

    print(f"{'target':>6}  {'covered':>8}  {'total':>6}  {'coverage':>8}  status")
    for run in run_sweep(base, range(9), output):
        if run.results is None:
            print(f"{run.replication_target:>6}  {'-':>8}  {'-':>6}  {'-':>8}  {run.status}")
            continue
        results = run.results
        print(
            f"{run.replication_target:>6}  {results.samples_covered:>8}  "
            f"{results.total_samples:>6}  {results.coverage_ratio:>8.1%}  {run.status}"
        )


if __name__ == "__main__":
    main()
