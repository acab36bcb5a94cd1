from __future__ import annotations
import statistics
from dataclasses import dataclass
from typing import Literal, Optional, Sequence


SummaryKind = Literal["no_runs", "no_successes", "single", "multiple"]


@dataclass(frozen=True)
class LatencySummary:
    kind: SummaryKind
    n_runs: int = 0
    n_samples: int = 0
    has_missing: bool = False
    latency_ms: Optional[float] = None
    mean_ms: Optional[float] = None
    stddev_ms: Optional[float] = None
    median_ms: Optional[float] = None
    min_ms: Optional[float] = None
    max_ms: Optional[float] = None


def summarize(outcomes: Sequence[Optional[float]]) -> LatencySummary:
    """Summarize change points (ms) of repeated runs; ``None`` marks a run without a change."""
    if not outcomes:
        return LatencySummary(kind="no_runs")

    millis = [v for v in outcomes if v is not None]
    n_runs = len(outcomes)
    if not millis:
        return LatencySummary(kind="no_successes", n_runs=n_runs, has_missing=True)

    has_missing = len(millis) != n_runs
    if len(millis) == 1:
        return LatencySummary(
            kind="single",
            n_runs=n_runs,
            n_samples=1,
            has_missing=has_missing,
            latency_ms=millis[0],
        )

    mean = statistics.mean(millis)
    return LatencySummary(
        kind="multiple",
        n_runs=n_runs,
        n_samples=len(millis),
        has_missing=has_missing,
        mean_ms=mean,
        stddev_ms=statistics.stdev(millis, xbar=mean),
        median_ms=statistics.median(millis),
        min_ms=min(millis),
        max_ms=max(millis),
    )
