"""Per-slave resource and attribute metrics from the master /state endpoint."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from prometheus_client.core import Metric

from mesos_exporter.client import HttpClient
from mesos_exporter.errors import AttributeRejected
from mesos_exporter.labels import attribute_string, label_values, normalise_label, normalise_label_list
from mesos_exporter.metrics.base import Collector, MetricTable, describe_table
from mesos_exporter.metrics.settable import SettableMetricVec, counter, gauge
from mesos_exporter.state import MasterState, ResourceVector, SlaveNode

logger = logging.getLogger(__name__)

SLAVE_LABELS = ("slave", "hostname", "port", "id")
ATTRIBUTE_IDENTITY_LABELS = ("slave",)

# Mesos reports mem and disk in megabytes
MEGABYTES = 1024

ResourceSelector = Callable[[SlaveNode], ResourceVector]

_KINDS: list[tuple[str, str, ResourceSelector]] = [
    ("total", "Total", lambda s: s.total),
    ("used", "Used", lambda s: s.used),
    ("unreserved", "Unreserved", lambda s: s.unreserved),
]


def _slave_label_values(slave: SlaveNode) -> tuple[str, str, str, str]:
    return (slave.pid, slave.hostname, str(slave.port), slave.id)


def _suffixed(name: str, kind: str, unit: str = "") -> str:
    parts = [name] if kind == "total" else [name, kind]
    if unit:
        parts.append(unit)
    return "_".join(parts)


def _scalar_fill(select: ResourceSelector, attr: str, scale: float = 1):
    def fill(state: MasterState, metric: SettableMetricVec) -> None:
        for slave in state.slaves:
            metric.set(getattr(select(slave), attr) * scale, *_slave_label_values(slave))

    return fill


def _ports_fill(select: ResourceSelector, kind: str):
    def fill(state: MasterState, metric: SettableMetricVec) -> None:
        for slave in state.slaves:
            ports = select(slave).ports
            if ports is None:
                logger.debug(f"Skipping {kind} ports for slave {slave.id}: invalid range")
                continue
            metric.set(ports.size(), *_slave_label_values(slave))

    return fill


def slave_resource_metrics() -> MetricTable:
    """Build the 12 per-slave resource gauges and their fill functions."""
    metrics: MetricTable = []

    for kind, title, select in _KINDS:
        metrics.append((
            gauge("slave", _suffixed("cpus", kind), f"{title} slave CPUs (fractional)", *SLAVE_LABELS),
            _scalar_fill(select, "cpus"),
        ))
    for kind, title, select in _KINDS:
        metrics.append((
            gauge("slave", _suffixed("mem", kind, "bytes"), f"{title} slave memory in bytes", *SLAVE_LABELS),
            _scalar_fill(select, "mem", MEGABYTES),
        ))
    for kind, title, select in _KINDS:
        metrics.append((
            gauge("slave", _suffixed("disk", kind, "bytes"), f"{title} slave disk space in bytes", *SLAVE_LABELS),
            _scalar_fill(select, "disk", MEGABYTES),
        ))
    for kind, title, select in _KINDS:
        metrics.append((
            gauge("slave", _suffixed("ports", kind), f"{title} slave ports", *SLAVE_LABELS),
            _ports_fill(select, kind),
        ))

    return metrics


def slave_attribute_labels(slave: SlaveNode, attribute_labels: Sequence[str]) -> dict[str, str]:
    """Map a slave onto identity plus configured attribute labels.

    Args:
        slave: Decoded slave.
        attribute_labels: Normalised allowlist of attribute label names.

    Returns:
        Label mapping with one entry per identity and allowlisted label.
    """
    labels = {"slave": slave.pid}
    for label in attribute_labels:
        labels[label] = ""

    for key, value in slave.attributes.items():
        label = normalise_label(key)
        if label not in attribute_labels:
            continue
        try:
            labels[label] = attribute_string(value)
        except AttributeRejected as e:
            logger.debug(f"Dropping attribute {key} of slave {slave.id}: {e}")

    return labels


def slave_attribute_metric(attribute_labels: Sequence[str]) -> MetricTable:
    """Build the slave attribute counter for a configured allowlist."""
    normalised = [
        label
        for label in dict.fromkeys(normalise_label_list(attribute_labels))
        if label not in ATTRIBUTE_IDENTITY_LABELS
    ]
    label_names = [*ATTRIBUTE_IDENTITY_LABELS, *normalised]

    def fill(state: MasterState, metric: SettableMetricVec) -> None:
        for slave in state.slaves:
            labels = slave_attribute_labels(slave, normalised)
            metric.set(1, *label_values(labels, label_names))

    return [(counter("slave", "attributes", "Attributes assigned to slaves", *label_names), fill)]


class MasterStateCollector(Collector):
    """Collect slave resources, and optionally attributes, from /state."""

    endpoint = "/state"

    def __init__(self, client: HttpClient, slave_attribute_labels: Sequence[str] = ()):
        """Initialize the collector.

        Args:
            client: HTTP client for the master.
            slave_attribute_labels: Attribute names to export as labels on
                ``mesos_slave_attributes``. Empty disables that metric.
        """
        self.client = client
        self.metrics = slave_resource_metrics()
        if slave_attribute_labels:
            self.metrics.extend(slave_attribute_metric(slave_attribute_labels))

    def describe(self) -> list[Metric]:
        return describe_table(self.metrics)

    async def scrape(self) -> list[Metric]:
        state = await self.client.fetch_and_decode(self.endpoint, MasterState.from_dict)
        if state is None:
            return []

        families: list[Metric] = []
        for metric, fill in self.metrics:
            fill(state, metric)
            families.extend(metric.collect())
        return families
