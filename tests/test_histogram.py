import threading

import pytest

from benchlog.errors import ResourceInitFailed
from benchlog.histogram import LatencyHistogram


def _hist() -> LatencyHistogram:
    hist = LatencyHistogram()
    hist.init(1024, 1e-3, 1e5)
    return hist


def test_latency_histogram_percentiles_bucketed() -> None:
    hist = _hist()
    for _ in range(90):
        hist.observe_ms(1.0)
    for _ in range(9):
        hist.observe_ms(50.0)
    hist.observe_ms(900.0)

    assert hist.total == 100
    assert hist.percentile_ms(50) == pytest.approx(1.0, rel=0.01)
    assert hist.percentile_ms(90) == pytest.approx(1.0, rel=0.01)
    assert hist.percentile_ms(95) == pytest.approx(50.0, rel=0.01)
    assert hist.percentile_ms(100) == pytest.approx(900.0, rel=0.01)


def test_empty_histogram_percentile_is_zero() -> None:
    assert _hist().percentile_ms(95) == 0.0


def test_out_of_range_values_clamp_to_edge_buckets() -> None:
    hist = _hist()
    hist.observe_ms(0.0)
    hist.observe_ms(1e9)
    assert hist.percentile_ms(50) == pytest.approx(1e-3)
    assert hist.percentile_ms(100) == pytest.approx(1e5)


def test_summary_tracks_min_avg_max() -> None:
    hist = _hist()
    for value in (2.0, 4.0, 9.0):
        hist.observe_ms(value)
    summary = hist.summary()
    assert summary.count == 3
    assert summary.min_ms == 2.0
    assert summary.max_ms == 9.0
    assert summary.avg_ms == pytest.approx(5.0)


@pytest.mark.parametrize("size,lo,hi", [(1, 1e-3, 1e5), (1024, 0.0, 1e5), (1024, 10.0, 1.0)])
def test_bad_geometry_fails(size, lo, hi) -> None:
    with pytest.raises(ResourceInitFailed):
        LatencyHistogram().init(size, lo, hi)


def test_observe_requires_init() -> None:
    with pytest.raises(RuntimeError):
        LatencyHistogram().observe_ms(1.0)


def test_concurrent_observe_counts_everything() -> None:
    hist = _hist()

    def worker() -> None:
        for _ in range(1000):
            hist.observe_ms(3.0)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert hist.total == 4000


def test_render_lists_non_empty_buckets() -> None:
    hist = _hist()
    hist.observe_ms(1.0)
    hist.observe_ms(1.0)
    hist.observe_ms(10.0)
    lines = hist.render().splitlines()
    assert lines[0] == "Latency histogram (values are in milliseconds)"
    assert len(lines) == 4
    assert lines[2].rstrip().endswith("2")
    assert "*" * 40 in lines[2]
    assert lines[3].rstrip().endswith(" 1")


def test_non_finite_values_are_clamped() -> None:
    hist = _hist()
    hist.observe_ms(float("nan"))
    hist.observe_ms(float("inf"))
    hist.observe_ms(float("-inf"))
    assert hist.total == 3
    assert hist.percentile_ms(100) == pytest.approx(1e5)
    summary = hist.summary()
    assert summary.min_ms == 0.0
    assert summary.max_ms == 1e5
