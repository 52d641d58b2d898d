import logging
import json
from dataclasses import asdict
from typing import Any

from .models import RunResult

logger = logging.getLogger(__name__)


class ResultsWriter:
    def __init__(self, results_file: str = "downpour_results.json"):
        self.results_file = results_file

    @staticmethod
    def to_dict(result: RunResult) -> dict[str, Any]:
        stats = asdict(result.stats)
        stats["status_counts"] = {str(k): v for k, v in stats["status_counts"].items()}
        return {
            "requested": result.requested,
            "skipped": result.skipped,
            "duration_s": result.duration_s,
            "requests_per_second": result.requests_per_second,
            "stats": stats,
            "memory": {
                "before_bytes": result.memory.before,
                "after_bytes": result.memory.after,
                "delta_bytes": result.memory.delta,
            },
        }

    def save(self, result: RunResult) -> None:
        try:
            with open(self.results_file, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(result), f, indent=2)
            logger.info(f"Results saved to {self.results_file}")
        except OSError as e:
            logger.error(f"Failed to save results: {e}")
