"""Buffered metrics whose label values are only known at scrape time.

A registry wants every metric's label names up front, but slave attribute
values only show up once /state is decoded. These metrics register one fixed
descriptor, buffer samples as translators call ``set`` during a scrape, and
hand the buffer over exactly once on ``collect``. The buffer is cleared on
every drain, so a scrape that sets nothing exposes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

NAMESPACE = "mesos"

GAUGE = "gauge"
COUNTER = "counter"

_FAMILIES = {
    GAUGE: GaugeMetricFamily,
    COUNTER: CounterMetricFamily,
}


def fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty parts of a metric name with underscores."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class MetricDescriptor:
    """Stable identity of a metric series."""

    name: str
    help: str
    label_names: tuple[str, ...] = ()
    kind: str = GAUGE

    def family(self) -> Metric:
        """Build an empty metric family for this descriptor."""
        return _FAMILIES[self.kind](self.name, self.help, labels=list(self.label_names))


class Sample(NamedTuple):
    label_values: tuple[str, ...]
    value: float


class SettableMetricVec:
    """Metric with fixed label names and per-scrape label values."""

    def __init__(self, descriptor: MetricDescriptor):
        self.descriptor = descriptor
        self._samples: list[Sample] = []

    def set(self, value: float, *label_values: str) -> None:
        """Buffer one sample for the current scrape.

        Raises:
            ValueError: If the number of label values does not match the
                descriptor's label names.
        """
        if len(label_values) != len(self.descriptor.label_names):
            raise ValueError(
                f"{self.descriptor.name}: expected {len(self.descriptor.label_names)} "
                f"label values, got {len(label_values)}"
            )
        self._samples.append(Sample(tuple(label_values), float(value)))

    def describe(self) -> list[Metric]:
        return [self.descriptor.family()]

    def collect(self) -> list[Metric]:
        """Drain the buffer into a metric family."""
        samples, self._samples = self._samples, []
        if not samples:
            return []

        family = self.descriptor.family()
        for sample in samples:
            family.add_metric(list(sample.label_values), sample.value)
        return [family]


class SettableMetric:
    """Unlabelled metric holding at most one value per scrape."""

    def __init__(self, descriptor: MetricDescriptor):
        if descriptor.label_names:
            raise ValueError(f"{descriptor.name}: unlabelled metric cannot take label names")
        self.descriptor = descriptor
        self._value: float | None = None

    def set(self, value: float) -> None:
        self._value = float(value)

    def describe(self) -> list[Metric]:
        return [self.descriptor.family()]

    def collect(self) -> list[Metric]:
        """Drain the held value into a metric family."""
        value, self._value = self._value, None
        if value is None:
            return []

        family = self.descriptor.family()
        family.add_metric([], value)
        return [family]


def gauge(subsystem: str, name: str, help: str, *labels: str) -> SettableMetricVec:
    """Create a labelled gauge under the ``mesos`` namespace.

    Args:
        subsystem: Middle part of the name, e.g. ``slave``.
        name: Final part of the name, e.g. ``cpus``.
        help: Help text for the exposition.
        *labels: Label names, in exposition order.

    Returns:
        An empty gauge buffer named ``mesos_<subsystem>_<name>``.
    """
    return SettableMetricVec(MetricDescriptor(fq_name(NAMESPACE, subsystem, name), help, labels, GAUGE))


def counter(subsystem: str, name: str, help: str, *labels: str) -> SettableMetricVec:
    """Create a labelled counter; arguments as for :func:`gauge`."""
    return SettableMetricVec(MetricDescriptor(fq_name(NAMESPACE, subsystem, name), help, labels, COUNTER))


def scalar_gauge(subsystem: str, name: str, help: str) -> SettableMetric:
    """Create an unlabelled gauge named ``mesos_<subsystem>_<name>``."""
    return SettableMetric(MetricDescriptor(fq_name(NAMESPACE, subsystem, name), help, (), GAUGE))
