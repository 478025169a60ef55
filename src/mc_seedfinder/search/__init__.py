from .aggregator import ResultAggregator
from .engine import (
    SearchConfig,
    SearchEngine,
    SearchStage,
    SearchState,
    partition_candidates,
    partition_interval,
)
from .sieve import SlimeSieve
from .worker import RangeScanner

__all__ = [
    "RangeScanner",
    "ResultAggregator",
    "SearchConfig",
    "SearchEngine",
    "SearchStage",
    "SearchState",
    "SlimeSieve",
    "partition_candidates",
    "partition_interval",
]
