"""Composition root: wire configuration into a registrable collector.

Usage:
    from prometheus_client import CollectorRegistry

    registry = CollectorRegistry()
    collector = build_master_collector(load_config(), registry)
    registry.register(collector)
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry

from mesos_exporter.auth import AuthManager
from mesos_exporter.client import HttpClient
from mesos_exporter.config import ExporterConfig
from mesos_exporter.errors import ErrorReporter
from mesos_exporter.metrics.aggregator import GroupedCollector
from mesos_exporter.metrics.base import Collector, MetricTable
from mesos_exporter.metrics.master_state import MasterStateCollector
from mesos_exporter.metrics.snapshot import SnapshotCollector, master_snapshot_metrics
from mesos_exporter.metrics.version import VersionCollector


def build_client(config: ExporterConfig, reporter: ErrorReporter) -> HttpClient:
    """Create the HTTP client, with a token manager in strict mode."""
    auth_manager = None
    if config.auth.strict_mode:
        auth_manager = AuthManager(
            uid=config.auth.uid,
            login_url=config.auth.login_url,
            private_key=config.auth.private_key,
            reporter=reporter,
        )
    return HttpClient.from_config(config, reporter, auth_manager=auth_manager)


def build_standard_collector(client: HttpClient, reporter: ErrorReporter, metrics: MetricTable) -> GroupedCollector:
    """Snapshot metrics plus build version, as every Mesos process exposes."""
    return GroupedCollector(
        SnapshotCollector(client, reporter, metrics),
        VersionCollector(client),
        reporter=reporter,
    )


def build_master_collector(
    config: ExporterConfig,
    registry: CollectorRegistry | None = None,
    reporter: ErrorReporter | None = None,
) -> Collector:
    """Build the full master collector.

    Args:
        config: Exporter configuration.
        registry: Registry for the error counter. Ignored if a reporter is
            passed in.
        reporter: Existing error reporter to share.

    Returns:
        A collector ready for ``registry.register``.
    """
    if reporter is None:
        reporter = ErrorReporter(registry)

    client = build_client(config, reporter)
    return GroupedCollector(
        MasterStateCollector(client, config.slave_attribute_labels),
        build_standard_collector(client, reporter, master_snapshot_metrics()),
        reporter=reporter,
    )
