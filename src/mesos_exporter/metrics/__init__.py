"""Collectors translating Mesos payloads into Prometheus metrics."""

from mesos_exporter.metrics.aggregator import GroupedCollector
from mesos_exporter.metrics.base import Collector
from mesos_exporter.metrics.master_state import MasterStateCollector
from mesos_exporter.metrics.settable import (
    MetricDescriptor,
    SettableMetric,
    SettableMetricVec,
    counter,
    gauge,
    scalar_gauge,
)
from mesos_exporter.metrics.snapshot import SnapshotCollector, master_snapshot_metrics
from mesos_exporter.metrics.version import VersionCollector

__all__ = [
    "Collector",
    "GroupedCollector",
    "MasterStateCollector",
    "MetricDescriptor",
    "SettableMetric",
    "SettableMetricVec",
    "SnapshotCollector",
    "VersionCollector",
    "counter",
    "gauge",
    "master_snapshot_metrics",
    "scalar_gauge",
]
