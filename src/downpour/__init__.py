__all__ = [
    "LoadRunner",
    "LoadTestConfig",
    "Dispatcher",
    "RequestExecutor",
    "StatsAggregator",
    "ConcurrencyGate",
    "DockerMemorySampler",
    "load_corpus",
    "render_report",
    "render_latency_histogram",
]


from .config import LoadTestConfig
from .core import LoadRunner
from .corpus import load_corpus
from .dispatcher import Dispatcher
from .executor import RequestExecutor
from .memory import DockerMemorySampler
from .rendering import render_latency_histogram, render_report
from .stats import StatsAggregator
from .throttling import ConcurrencyGate
