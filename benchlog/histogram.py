from __future__ import annotations

from dataclasses import dataclass, field
import math
import threading

from .errors import ResourceInitFailed

_BAR_WIDTH = 40


@dataclass(slots=True)
class LatencySummary:
    count: int
    min_ms: float
    max_ms: float
    sum_ms: float

    @property
    def avg_ms(self) -> float:
        if self.count <= 0:
            return 0.0
        return self.sum_ms / self.count

    def to_dict(self) -> dict[str, float]:
        return {
            "count": int(self.count),
            "min_ms": float(self.min_ms),
            "avg_ms": float(self.avg_ms),
            "max_ms": float(self.max_ms),
            "sum_ms": float(self.sum_ms),
        }


@dataclass(slots=True)
class LatencyHistogram:
    """Log-scaled bucket histogram of latencies in milliseconds.

    Unusable until ``init`` sets the bucket geometry; ``done`` releases the
    buckets again. ``observe_ms`` may be called from many threads.
    """

    size: int = 0
    range_min: float = 0.0
    range_max: float = 0.0
    _range_deduct: float = 0.0
    _range_mult: float = 0.0
    _counts: list[int] = field(default_factory=list)
    _total: int = 0
    _min_ms: float = 0.0
    _max_ms: float = 0.0
    _sum_ms: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def init(self, size: int, range_min: float, range_max: float) -> None:
        if size < 2:
            raise ResourceInitFailed(f"histogram size must be >= 2, got {size}")
        if not 0 < range_min < range_max:
            raise ResourceInitFailed(
                f"invalid histogram range: [{range_min}, {range_max}]"
            )
        self.size = int(size)
        self.range_min = float(range_min)
        self.range_max = float(range_max)
        self._range_deduct = math.log(self.range_min)
        self._range_mult = (self.size - 1) / (
            math.log(self.range_max) - self._range_deduct
        )
        self._counts = [0] * self.size
        self._total = 0
        self._min_ms = 0.0
        self._max_ms = 0.0
        self._sum_ms = 0.0

    def done(self) -> None:
        with self._lock:
            self._counts = []
            self._total = 0
            self.size = 0

    @property
    def initialized(self) -> bool:
        return self.size > 0

    @property
    def total(self) -> int:
        return self._total

    def _clamp(self, value_ms: float) -> float:
        if math.isnan(value_ms) or value_ms == -math.inf:
            return 0.0
        if value_ms == math.inf:
            return self.range_max
        return value_ms

    def _bucket(self, value_ms: float) -> int:
        if value_ms <= self.range_min:
            return 0
        if value_ms >= self.range_max:
            return self.size - 1
        idx = int(math.floor((math.log(value_ms) - self._range_deduct) * self._range_mult + 0.5))
        return min(max(idx, 0), self.size - 1)

    def bucket_value(self, idx: int) -> float:
        return math.exp(idx / self._range_mult + self._range_deduct)

    def observe_ms(self, value_ms: float) -> None:
        if not self.initialized:
            raise RuntimeError("histogram is not initialized")
        value_ms = self._clamp(value_ms)
        idx = self._bucket(value_ms)
        with self._lock:
            self._counts[idx] += 1
            if self._total == 0 or value_ms < self._min_ms:
                self._min_ms = value_ms
            if value_ms > self._max_ms:
                self._max_ms = value_ms
            self._total += 1
            self._sum_ms += value_ms

    def percentile_ms(self, pct: float) -> float:
        with self._lock:
            if self._total <= 0:
                return 0.0
            target = max(1, int(math.ceil(self._total * float(pct) / 100.0)))
            cumulative = 0
            for idx, count in enumerate(self._counts):
                cumulative += count
                if cumulative >= target:
                    return self.bucket_value(idx)
            return self.bucket_value(self.size - 1)

    def summary(self) -> LatencySummary:
        with self._lock:
            return LatencySummary(
                count=self._total,
                min_ms=self._min_ms,
                max_ms=self._max_ms,
                sum_ms=self._sum_ms,
            )

    def render(self) -> str:
        lines = [
            "Latency histogram (values are in milliseconds)",
            "       value  ------------- distribution ------------- count",
        ]
        with self._lock:
            counts = list(self._counts)
        peak = max(counts, default=0)
        for idx, count in enumerate(counts):
            if count <= 0:
                continue
            bar = "*" * max(1, int(round(count * _BAR_WIDTH / peak)))
            lines.append("%12.3f |%-40.40s %d" % (self.bucket_value(idx), bar, count))
        return "\n".join(lines) + "\n"
