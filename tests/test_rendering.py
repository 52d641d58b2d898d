from downpour.models import AggregateStats, MemoryDelta, RunResult
from downpour.metrics import compute_stats
from downpour.rendering import render_latency_histogram, render_report


def _result(agg: AggregateStats, memory: MemoryDelta | None = None, duration_s: float = 2.0):
    return RunResult(
        requested=agg.requested,
        skipped=agg.skipped,
        duration_s=duration_s,
        stats=compute_stats(agg),
        memory=memory or MemoryDelta(),
        latencies=agg.latencies,
    )


def test_histogram_empty():
    assert "No latency data" in render_latency_histogram([])


def test_histogram_single_value():
    assert "single value" in render_latency_histogram([0.5, 0.5])


def test_histogram_counts_every_sample():
    out = render_latency_histogram([0.1, 0.2, 0.3, 0.4], bins=2)
    assert out.startswith("Latency Histogram")
    assert "(2)" in out


def test_report_without_successes_shows_na():
    agg = AggregateStats(requested=100, failure_count=100, status_counts={500: 100})
    out = render_report(_result(agg))
    assert "Successful:           0" in out
    assert "Failed:               100" in out
    assert "Mean request time:    n/a" in out
    assert "500=100" in out


def test_report_memory_section():
    agg = AggregateStats(
        requested=2,
        success_count=2,
        total_success_duration=0.3,
        latencies=[0.1, 0.2],
        status_counts={200: 2},
    )
    mem = MemoryDelta(before=100 * 1024 * 1024, after=150 * 1024 * 1024)
    out = render_report(_result(agg, mem))
    assert "Before:               100.00 MB" in out
    assert "After:                150.00 MB" in out
    assert "Difference:           +50.00 MB" in out
    assert "Mean request time:    150.0ms" in out
    assert "Requests per second:  1.00" in out


def test_report_memory_after_unavailable():
    agg = AggregateStats(requested=1, success_count=1, total_success_duration=0.1, latencies=[0.1])
    out = render_report(_result(agg, MemoryDelta(before=1024 * 1024)))
    assert "After:                unavailable" in out
    assert "Difference:           unavailable" in out


def test_report_skips_memory_when_not_sampled():
    agg = AggregateStats(requested=1, failure_count=1)
    out = render_report(_result(agg), sampled_memory=False)
    assert "Memory usage" not in out


def test_report_lists_skipped_units():
    agg = AggregateStats(requested=10, success_count=3, total_success_duration=0.3, latencies=[0.1] * 3)
    out = render_report(_result(agg))
    assert "Skipped (shutdown):   7" in out
