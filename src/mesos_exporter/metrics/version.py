"""Build information of the polled master."""

from __future__ import annotations

from prometheus_client.core import Metric

from mesos_exporter.client import HttpClient
from mesos_exporter.metrics.base import Collector
from mesos_exporter.metrics.settable import gauge
from mesos_exporter.state import VersionInfo

VERSION_LABELS = ("build_date", "build_time", "git_sha", "git_tag", "version")


class VersionCollector(Collector):
    """Expose ``mesos_version`` (always 1) labelled with build metadata."""

    endpoint = "/version"

    def __init__(self, client: HttpClient):
        self.client = client
        self.metric = gauge(
            "",
            "version",
            "Version information for the mesos slave/master stored in labeling",
            *VERSION_LABELS,
        )

    def describe(self) -> list[Metric]:
        return self.metric.describe()

    async def scrape(self) -> list[Metric]:
        info = await self.client.fetch_and_decode(self.endpoint, VersionInfo.from_dict)
        if info is None:
            return []

        self.metric.set(1, info.build_date, f"{info.build_time:f}", info.git_sha, info.git_tag, info.version)
        return self.metric.collect()
