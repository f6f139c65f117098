"""Metrics extracted from the flat /metrics/snapshot map."""

from __future__ import annotations

import logging

from prometheus_client.core import Metric

from mesos_exporter.client import HttpClient
from mesos_exporter.errors import ErrorReporter
from mesos_exporter.metrics.base import Collector, MetricTable, describe_table
from mesos_exporter.metrics.settable import SettableMetric, SettableMetricVec, gauge, scalar_gauge
from mesos_exporter.state import decode_snapshot

logger = logging.getLogger(__name__)

Snapshot = dict[str, float]


class SnapshotCollector(Collector):
    """Run an ordered table of fill functions over one snapshot.

    A fill function reads the keys it needs straight from the snapshot; a
    missing key raises KeyError, which is logged and counted for that metric
    alone.
    """

    endpoint = "/metrics/snapshot"

    def __init__(self, client: HttpClient, reporter: ErrorReporter, metrics: MetricTable):
        self.client = client
        self.reporter = reporter
        self.metrics = metrics

    def describe(self) -> list[Metric]:
        return describe_table(self.metrics)

    async def scrape(self) -> list[Metric]:
        snapshot = await self.client.fetch_and_decode(self.endpoint, decode_snapshot)
        if snapshot is None:
            return []

        families: list[Metric] = []
        for metric, fill in self.metrics:
            try:
                fill(snapshot, metric)
            except KeyError as e:
                logger.error(f"Error extracting metric {metric.descriptor.name}: key {e} not in snapshot")
                self.reporter.report(e)
                # Drop anything the fill buffered before failing
                metric.collect()
                continue
            families.extend(metric.collect())
        return families


def _by_label(keys: dict[str, str], scale: float = 1):
    """Fill a labelled gauge with one snapshot key per label value."""

    def fill(m: Snapshot, metric: SettableMetricVec) -> None:
        values = {label: m[key] * scale for label, key in keys.items()}
        for label, value in values.items():
            metric.set(value, label)

    return fill


def _resource(prefix: str, scale: float = 1):
    """Fill total/used/free for a master resource."""

    def fill(m: Snapshot, metric: SettableMetricVec) -> None:
        total = m[f"master/{prefix}_total"] * scale
        used = m[f"master/{prefix}_used"] * scale
        metric.set(total, "total")
        metric.set(used, "used")
        metric.set(total - used, "free")

    return fill


def _value(key: str):
    def fill(m: Snapshot, metric: SettableMetric) -> None:
        metric.set(m[key])

    return fill


def master_snapshot_metrics() -> MetricTable:
    """Default table of master-level metrics."""
    return [
        (
            gauge("master", "cpus", "Current CPU resources in cluster.", "type"),
            _resource("cpus"),
        ),
        (
            gauge("master", "gpus", "Current GPU resources in cluster.", "type"),
            _resource("gpus"),
        ),
        (
            gauge("master", "mem", "Current memory resources in cluster in bytes.", "type"),
            _resource("mem", 1024),
        ),
        (
            gauge("master", "disk", "Current disk resources in cluster in bytes.", "type"),
            _resource("disk", 1024),
        ),
        (
            scalar_gauge("master", "uptime_seconds", "Number of seconds the master process is running."),
            _value("master/uptime_secs"),
        ),
        (
            scalar_gauge("master", "elected", "1 if master is elected leader, 0 if not."),
            _value("master/elected"),
        ),
        (
            gauge("master", "slaves_state", "Current number of slaves known to the master per connection and registration state.", "state"),
            _by_label({
                "connected": "master/slaves_connected",
                "disconnected": "master/slaves_disconnected",
                "active": "master/slaves_active",
                "inactive": "master/slaves_inactive",
            }),
        ),
        (
            gauge("master", "frameworks_state", "Current number of frameworks known to the master per connection and registration state.", "state"),
            _by_label({
                "connected": "master/frameworks_connected",
                "disconnected": "master/frameworks_disconnected",
                "active": "master/frameworks_active",
                "inactive": "master/frameworks_inactive",
            }),
        ),
        (
            gauge("master", "task_states_current", "Current number of tasks by state.", "state"),
            _by_label({
                "staging": "master/tasks_staging",
                "starting": "master/tasks_starting",
                "running": "master/tasks_running",
                "killing": "master/tasks_killing",
            }),
        ),
        (
            gauge("master", "task_states_exit", "Total number of tasks by terminal state.", "state"),
            _by_label({
                "finished": "master/tasks_finished",
                "failed": "master/tasks_failed",
                "killed": "master/tasks_killed",
                "lost": "master/tasks_lost",
                "error": "master/tasks_error",
            }),
        ),
        (
            gauge("master", "event_queue_length", "Current number of elements in event queue by type.", "type"),
            _by_label({
                "message": "master/event_queue_messages",
                "event": "master/event_queue_dispatches",
                "http_request": "master/event_queue_http_requests",
            }),
        ),
    ]
