from .memory import BYTES_PER_MB
from .models import RunResult


def _fmt_latency(value: float | None) -> str:
    return "n/a" if value is None else f"{value * 1000:.1f}ms"


def _fmt_mb(value: int | None) -> str:
    return "unavailable" if value is None else f"{value / BYTES_PER_MB:.2f} MB"


def render_latency_histogram(latencies: list[float], bins: int = 20) -> str:
    if not latencies:
        return "No latency data."
    lo, hi = min(latencies), max(latencies)
    if hi <= lo:
        return f"Histogram: single value {lo:.4f}s"

    width = 40
    counts = [0] * bins
    for x in latencies:
        j = int((x - lo) / (hi - lo) * bins)
        if j == bins:
            j -= 1
        counts[j] += 1

    peak = max(counts)
    lines = []
    for i, c in enumerate(counts):
        left = lo + (hi - lo) * (i / bins)
        right = lo + (hi - lo) * ((i + 1) / bins)
        bar = "#" * max(1, int((c / peak) * width)) if c else ""
        lines.append(f"{left:.3f}s - {right:.3f}s | {bar} ({c})")
    return "Latency Histogram\n" + "\n".join(lines)


def render_report(result: RunResult, sampled_memory: bool = True) -> str:
    s = result.stats
    lines = [
        "=== Load test results ===",
        f"Requested:            {result.requested}",
        f"Completed:            {s.total}",
        f"Successful:           {s.success}",
        f"Failed:               {s.errors}",
    ]
    if result.skipped:
        lines.append(f"Skipped (shutdown):   {result.skipped}")
    lines += [
        f"Total duration:       {result.duration_s:.3f}s",
        f"Mean request time:    {_fmt_latency(s.mean)}",
        f"p50 / p95 / p99:      {_fmt_latency(s.p50)} / {_fmt_latency(s.p95)} / {_fmt_latency(s.p99)}",
        f"Requests per second:  {result.requests_per_second:.2f}",
        f"Error rate:           {s.error_rate * 100:.1f}%",
    ]
    if s.status_counts:
        codes = ", ".join(f"{code}={n}" for code, n in sorted(s.status_counts.items()))
        lines.append(f"Status codes:         {codes}")

    if sampled_memory:
        mem = result.memory
        delta = mem.delta
        lines += [
            "",
            "=== Memory usage ===",
            f"Before:               {_fmt_mb(mem.before)}",
            f"After:                {_fmt_mb(mem.after)}",
            f"Difference:           {'unavailable' if delta is None else f'{delta / BYTES_PER_MB:+.2f} MB'}",
        ]
    return "\n".join(lines)
