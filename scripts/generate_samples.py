"""
Synthetic latency sample generator for SoulBench.

Writes a raw-samples JSON file (the shape `soulbench analyze` reads) with
deterministic pseudo-random latencies, so reports can be produced and checked
without provisioning either database. Latencies are log-normal around a
per-backend median with an occasional slow outlier.
"""

from __future__ import annotations

import json
import math
import random
import sys
from pathlib import Path
from typing import Dict, List

import typer

app = typer.Typer(help="Generate synthetic latency samples for `soulbench analyze`.")

# (scenario, description, expected winner, {backend: median ms})
_PROFILES = [
    (
        "user_profile",
        "Load one soul contract with its events and ledger",
        "dynamodb",
        {"dynamodb": 9.0, "dsql": 21.0},
    ),
    (
        "hot_partition",
        "Repeated point lookup of one popular contract",
        "dynamodb",
        {"dynamodb": 6.5, "dsql": 11.0},
    ),
    (
        "adhoc_analytics",
        "Souls and power per location, grouped by status",
        "dsql",
        {"dynamodb": 140.0, "dsql": 38.0},
    ),
]


def _latencies(
    rng: random.Random, median_ms: float, count: int, sigma: float, outlier_rate: float
) -> List[float]:
    mu = math.log(median_ms)
    values: List[float] = []
    for _ in range(count):
        value = rng.lognormvariate(mu, sigma)
        if rng.random() < outlier_rate:
            value *= rng.uniform(3.0, 8.0)
        values.append(round(value, 3))
    return values


def _generate_samples(
    iterations: int, seed: int, sigma: float = 0.25, outlier_rate: float = 0.02
) -> Dict[str, Dict]:
    rng = random.Random(seed)
    scenarios: Dict[str, Dict] = {}
    for name, description, expected, medians in _PROFILES:
        scenarios[name] = {
            "description": description,
            "expected_winner": expected,
            "samples": {
                backend: _latencies(rng, median, iterations, sigma, outlier_rate)
                for backend, median in medians.items()
            },
        }
    return {"scenarios": scenarios}


@app.command()
def main(
    iterations: int = typer.Option(
        100,
        "--iterations",
        "-n",
        min=1,
        help="Samples per backend per scenario.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("results/synthetic-samples.json"),
        "--output",
        "-o",
        help="Where to write the samples JSON.",
    ),
) -> None:
    """
    Generate synthetic samples and write them as JSON.
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    payload = _generate_samples(iterations=iterations, seed=seed)
    with output.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    typer.echo(
        f"Wrote {len(payload['scenarios'])} scenarios x {iterations} samples -> {output} "
        f"(seed={seed}). Analyze with: soulbench analyze {output}"
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
