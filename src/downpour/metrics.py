import math
import logging
from .models import AggregateStats, MetricsCallback, Stats

logger = logging.getLogger(__name__)


def _empty_stats_dict(agg: AggregateStats, error_rate: float) -> dict:
    return {
        "total": agg.completed,
        "success": agg.success_count,
        "errors": agg.failure_count,
        "mean": None,
        "std": None,
        "p50": None,
        "p90": None,
        "p95": None,
        "p99": None,
        "min": None,
        "max": None,
        "error_rate": error_rate,
        "status_counts": dict(agg.status_counts),
    }


def compute_stats(
    agg: AggregateStats,
    metrics_callback: MetricsCallback | None = None,
) -> Stats:
    total = agg.completed
    logger.debug(
        f"Computing stats: total={total}, success={agg.success_count}, errors={agg.failure_count}"
    )

    if not total:
        stats_dict = _empty_stats_dict(agg, 0.0)
        if metrics_callback:
            metrics_callback(stats_dict)
        logger.info("No requests recorded. Returning empty stats.")
        return Stats(**stats_dict)

    n = agg.success_count
    if n == 0:
        stats_dict = _empty_stats_dict(agg, agg.failure_count / total)
        if metrics_callback:
            metrics_callback(stats_dict)
        logger.warning("No successful latencies recorded.")
        return Stats(**stats_dict)

    mean = agg.total_success_duration / n
    sl = sorted(agg.latencies)
    sum_sq = sum(x * x for x in sl)
    std = math.sqrt(max(0.0, (sum_sq / len(sl)) - (mean * mean)))

    def pct(p):
        return sl[max(0, min(len(sl) - 1, int(p * (len(sl) - 1))))]

    stats_dict = {
        "total": total,
        "success": agg.success_count,
        "errors": agg.failure_count,
        "mean": mean,
        "std": std,
        "p50": pct(0.50),
        "p90": pct(0.90),
        "p95": pct(0.95),
        "p99": pct(0.99),
        "min": sl[0],
        "max": sl[-1],
        "error_rate": agg.failure_count / total,
        "status_counts": dict(agg.status_counts),
    }

    if metrics_callback:
        metrics_callback(stats_dict)

    logger.info(
        f"Stats computed: success={agg.success_count}, errors={agg.failure_count}, "
        f"mean={mean:.3f}s, error_rate={stats_dict['error_rate'] * 100:.1f}%"
    )

    return Stats(**stats_dict)
