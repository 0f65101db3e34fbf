"""
Aggregated test results.

TestResult is owned by the coordinator loop alone, so it carries no locking.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from uploadperf.messages import Success

NANOS_PER_SECOND = 1_000_000_000


def round_to_second(time_ns: int) -> int:
    """Round a nanosecond epoch timestamp to the nearest second, half up"""
    return (time_ns + NANOS_PER_SECOND // 2) // NANOS_PER_SECOND


@dataclass
class TestResult:
    """
    Outcome of one test run.

    Fields
    ------
    uploads : list of (start_time_ns, duration_ns)
        One entry per successful upload, in the order the coordinator
        received them. This is not start order: concurrent workers finish
        out of the order they began.
    second_count : dict
        Epoch second -> number of uploads completing in that second. Entries
        are never evicted; runs are bounded in duration.
    error : exception or None
        The first failure reported by any worker.
    """

    __test__ = False  # not a pytest test class

    uploads: List[Tuple[int, int]] = field(default_factory=list)
    second_count: Dict[int, int] = field(default_factory=dict)
    error: Optional[BaseException] = None

    def record(self, msg: Success) -> int:
        """Add a successful upload; returns the second it was counted under"""
        self.uploads.append((msg.start_time_ns, msg.duration_ns))
        second = round_to_second(msg.end_time_ns)
        self.second_count[second] = self.second_count.get(second, 0) + 1
        return second

    def count_at(self, second: int) -> int:
        return self.second_count.get(second, 0)

    def summary(self, object_size: int) -> "ResultSummary":
        return ResultSummary.from_uploads(self.uploads, object_size)


def percentile(sorted_values: List[int], pct: float) -> int:
    """Nearest-rank percentile of an already sorted, non-empty list"""
    rank = max(1, math.ceil(pct / 100 * len(sorted_values)))
    return sorted_values[rank - 1]


@dataclass(frozen=True)
class ResultSummary:
    """Throughput and latency statistics over a result log"""

    uploads: int
    span_seconds: float
    objects_per_second: float
    bytes_per_second: float
    latency_mean_ms: float
    latency_min_ms: float
    latency_p50_ms: float
    latency_p95_ms: float
    latency_p99_ms: float
    latency_max_ms: float

    @classmethod
    def from_uploads(cls, uploads: List[Tuple[int, int]], object_size: int) -> "ResultSummary":
        if not uploads:
            return cls(0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

        first_start = min(start for start, _ in uploads)
        last_end = max(start + duration for start, duration in uploads)
        span = (last_end - first_start) / NANOS_PER_SECOND
        durations = sorted(duration for _, duration in uploads)
        n = len(durations)

        def ms(value: float) -> float:
            return value / 1_000_000

        return cls(
            uploads=n,
            span_seconds=span,
            objects_per_second=n / span if span > 0 else 0.0,
            bytes_per_second=n * object_size / span if span > 0 else 0.0,
            latency_mean_ms=ms(sum(durations) / n),
            latency_min_ms=ms(durations[0]),
            latency_p50_ms=ms(percentile(durations, 50)),
            latency_p95_ms=ms(percentile(durations, 95)),
            latency_p99_ms=ms(percentile(durations, 99)),
            latency_max_ms=ms(durations[-1]),
        )

    def lines(self) -> List[str]:
        return [
            f"  Uploads: {self.uploads} in {self.span_seconds:.2f}s",
            f"  Throughput: {self.objects_per_second:.2f} objects/s, "
            f"{self.bytes_per_second / (1024 * 1024):.2f} MiB/s",
            f"  Latency (avg): {self.latency_mean_ms:.2f}ms "
            f"(min {self.latency_min_ms:.2f}ms, max {self.latency_max_ms:.2f}ms)",
            f"  Latency (p50/p95/p99): {self.latency_p50_ms:.2f}/"
            f"{self.latency_p95_ms:.2f}/{self.latency_p99_ms:.2f}ms",
        ]
