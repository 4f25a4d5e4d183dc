"""In-process checkout metrics exported in Prometheus text format.

Counters, gauges and histograms are kept in a module-level registry and
rendered with :func:`generate_metrics_text`.  Only the standard library is
used; values live for the lifetime of the process.
"""

from __future__ import annotations

from collections import defaultdict
from threading import Lock
from typing import Dict, Iterable, List, Tuple

LabelValues = Tuple[str, ...]


class Metric:
    """Base class: a named metric with a fixed list of label names."""

    kind = "untyped"

    def __init__(self, name: str, description: str, label_names: Iterable[str]):
        self.name = name
        self.description = description
        self.label_names = list(label_names)
        self._lock = Lock()
        _METRIC_REGISTRY.append(self)

    def _key(self, labels: Dict[str, str]) -> LabelValues:
        return tuple(str(labels.get(k, "")) for k in self.label_names)

    def _format_labels(self, label_values: LabelValues, extra: str = "") -> str:
        pairs = [f'{name}="{value}"' for name, value in zip(self.label_names, label_values)]
        if extra:
            pairs.append(extra)
        return "{" + ",".join(pairs) + "}" if pairs else ""

    def _header(self) -> List[str]:
        return [f"# HELP {self.name} {self.description}", f"# TYPE {self.name} {self.kind}"]

    def reset(self) -> None:
        raise NotImplementedError

    def to_prometheus(self) -> List[str]:
        raise NotImplementedError


class Counter(Metric):
    """Monotonic counter, e.g. ``CHECKOUT_TOTAL.inc(outcome="completed")``."""

    kind = "counter"

    def __init__(self, name: str, description: str, label_names: Iterable[str]):
        super().__init__(name, description, label_names)
        self._values: Dict[LabelValues, int] = defaultdict(int)

    def inc(self, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] += 1

    def value(self, **labels: str) -> int:
        with self._lock:
            return self._values.get(self._key(labels), 0)

    def reset(self) -> None:
        with self._lock:
            self._values.clear()

    def to_prometheus(self) -> List[str]:
        lines = self._header()
        with self._lock:
            for key, value in self._values.items():
                lines.append(f"{self.name}{self._format_labels(key)} {value}")
        return lines


class Gauge(Metric):
    """Point-in-time value that may go up or down."""

    kind = "gauge"

    def __init__(self, name: str, description: str, label_names: Iterable[str]):
        super().__init__(name, description, label_names)
        self._values: Dict[LabelValues, float] = {}

    def set(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = float(value)

    def value(self, **labels: str) -> float | None:
        with self._lock:
            return self._values.get(self._key(labels))

    def reset(self) -> None:
        with self._lock:
            self._values.clear()

    def to_prometheus(self) -> List[str]:
        lines = self._header()
        with self._lock:
            for key, value in self._values.items():
                lines.append(f"{self.name}{self._format_labels(key)} {value}")
        return lines


class Histogram(Metric):
    """Histogram with ascending bucket upper bounds plus an implicit +Inf."""

    kind = "histogram"

    def __init__(self, name: str, description: str, label_names: Iterable[str], buckets: Iterable[float]):
        super().__init__(name, description, label_names)
        self.buckets = sorted(float(b) for b in buckets)
        # Per-bucket (non-cumulative) counts; cumulated on export
        self._counts: Dict[LabelValues, List[int]] = defaultdict(lambda: [0] * len(self.buckets))
        self._sums: Dict[LabelValues, float] = defaultdict(float)
        self._totals: Dict[LabelValues, int] = defaultdict(int)

    def observe(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            for idx, upper in enumerate(self.buckets):
                if value <= upper:
                    self._counts[key][idx] += 1
                    break
            self._totals[key] += 1
            self._sums[key] += float(value)

    def count(self, **labels: str) -> int:
        with self._lock:
            return self._totals.get(self._key(labels), 0)

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._sums.clear()
            self._totals.clear()

    def to_prometheus(self) -> List[str]:
        lines = self._header()
        with self._lock:
            for key, total in self._totals.items():
                cumulative = 0
                for idx, upper in enumerate(self.buckets):
                    cumulative += self._counts[key][idx]
                    bucket_labels = self._format_labels(key, 'le="' + str(upper) + '"')
                    lines.append(f"{self.name}_bucket{bucket_labels} {cumulative}")
                inf_labels = self._format_labels(key, 'le="+Inf"')
                lines.append(f"{self.name}_bucket{inf_labels} {total}")
                label_str = self._format_labels(key)
                lines.append(f"{self.name}_sum{label_str} {self._sums[key]}")
                lines.append(f"{self.name}_count{label_str} {total}")
        return lines


_METRIC_REGISTRY: List[Metric] = []


def generate_metrics_text() -> bytes:
    """Render every registered metric in Prometheus exposition format."""
    lines: List[str] = []
    for metric in _METRIC_REGISTRY:
        lines.extend(metric.to_prometheus())
    return "\n".join(lines).encode("utf-8")


def reset_metrics() -> None:
    """Clear all recorded values (used between tests)."""
    for metric in _METRIC_REGISTRY:
        metric.reset()


# -----------------------------------------------------------------------------
# Metrics recorded by checkout
# -----------------------------------------------------------------------------

CHECKOUT_DURATION_SECONDS = Histogram(
    name="checkout_duration_seconds",
    description="Duration of checkout operations in seconds",
    label_names=[],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Labelled by outcome: completed or failed
CHECKOUT_TOTAL = Counter(
    name="checkout_total",
    description="Total number of checkout attempts, labelled by outcome",
    label_names=["outcome"],
)

CHECKOUT_ERROR_TOTAL = Counter(
    name="checkout_error_total",
    description="Total number of checkout errors, labelled by type",
    label_names=["type"],
)

PRODUCT_STOCK_UNITS = Gauge(
    name="product_stock_units",
    description="Units in stock after the last settled checkout, labelled by product",
    label_names=["product"],
)
