"""Compose independent collectors behind one registry entry."""

from __future__ import annotations

import logging

from prometheus_client.core import Metric

from mesos_exporter.errors import ErrorReporter
from mesos_exporter.metrics.base import Collector

logger = logging.getLogger(__name__)


class GroupedCollector(Collector):
    """Fan describe and scrape out to member collectors in order.

    Members are scraped one after another on a single event loop. A member
    that blows up contributes no metrics; its siblings are unaffected.
    """

    def __init__(self, *collectors: Collector, reporter: ErrorReporter | None = None):
        self.collectors = list(collectors)
        self.reporter = reporter

    def describe(self) -> list[Metric]:
        families: list[Metric] = []
        for collector in self.collectors:
            families.extend(collector.describe())
        return families

    async def scrape(self) -> list[Metric]:
        families: list[Metric] = []
        for collector in self.collectors:
            try:
                families.extend(await collector.scrape())
            except Exception as e:
                logger.exception(f"Collector {type(collector).__name__} failed: {e}")
                if self.reporter is not None:
                    self.reporter.report(e)
        return families
