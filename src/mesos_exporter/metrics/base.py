"""Collector capability shared by every exporter collector.

``prometheus_client`` calls ``describe()`` once at registration and
``collect()`` on every scrape. Collectors do their HTTP work in the async
``scrape()``; ``collect()`` drives it to completion on a fresh event loop, so
a scrape blocks its caller until all fetches resolve.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Union

from prometheus_client.core import Metric

from mesos_exporter.metrics.settable import SettableMetric, SettableMetricVec

SettableAny = Union[SettableMetric, SettableMetricVec]

# (metric, fill) pairs. Fill functions take the decoded payload and the metric
# to set; their order is the exposition order.
MetricTable = list[tuple[SettableAny, Callable[[Any, Any], None]]]


class Collector(ABC):
    """Base class for collectors registered with a CollectorRegistry."""

    @abstractmethod
    def describe(self) -> list[Metric]:
        """Return empty families naming every metric this collector may emit."""
        ...

    @abstractmethod
    async def scrape(self) -> list[Metric]:
        """Fetch from the master and return the families for one scrape.

        Returns:
            Drained metric families. Failures are counted, not raised.
        """
        ...

    def collect(self) -> list[Metric]:
        return asyncio.run(self.scrape())


def describe_table(metrics: MetricTable) -> list[Metric]:
    families: list[Metric] = []
    for metric, _fill in metrics:
        families.extend(metric.describe())
    return families
