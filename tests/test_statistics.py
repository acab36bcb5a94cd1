from __future__ import annotations

import pytest

from latency_console.domain.statistics import summarize


def test_no_runs() -> None:
    assert summarize([]).kind == "no_runs"


def test_no_successes() -> None:
    s = summarize([None, None])

    assert s.kind == "no_successes"
    assert s.n_runs == 2
    assert s.has_missing is True


def test_single() -> None:
    s = summarize([None, 42.0])

    assert s.kind == "single"
    assert s.latency_ms == 42.0
    assert s.has_missing is True


def test_multiple() -> None:
    s = summarize([10.0, 20.0, 30.0, 40.0])

    assert s.kind == "multiple"
    assert s.n_samples == 4
    assert s.has_missing is False
    assert s.mean_ms == pytest.approx(25.0)
    assert s.median_ms == pytest.approx(25.0)
    assert s.stddev_ms == pytest.approx(12.909944, rel=1e-6)
    assert (s.min_ms, s.max_ms) == (10.0, 40.0)
