"""Typed model of the Mesos master /state and /version payloads.

The ``from_dict`` constructors are the decode callables handed to
``HttpClient.fetch_and_decode``. Missing fields fall back to their zero
values; fields of the wrong shape raise DecodeError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from mesos_exporter.errors import DecodeError
from mesos_exporter.ranges import RangeSet, parse_ranges

logger = logging.getLogger(__name__)


def _mapping(data: Any, what: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodeError(f"{what}: expected object, got {type(data).__name__}")
    return data


def _list(data: Any, what: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError(f"{what}: expected array, got {type(data).__name__}")
    return data


def _number(data: Any, what: str) -> float:
    if data is None:
        return 0.0
    if isinstance(data, bool) or not isinstance(data, (int, float)):
        raise DecodeError(f"{what}: expected number, got {data!r}")
    return float(data)


@dataclass
class ResourceVector:
    """Scalar and range resources of one kind (total, used or unreserved).

    ``ports`` is None when the reported port ranges could not be parsed.
    """

    cpus: float = 0.0
    mem: float = 0.0
    disk: float = 0.0
    ports: RangeSet | None = field(default_factory=RangeSet)

    @classmethod
    def from_dict(cls, data: Any, context: str = "resources") -> ResourceVector:
        data = _mapping(data, context)

        result = parse_ranges(data.get("ports"))
        if not result.ok:
            logger.warning(f"Dropping unparsable ports for {context}: {result.error}")
        elif result.ranges:
            logger.debug(f"Decoded {context} ports {result.ranges} ({result.ranges.size()} ports)")

        return cls(
            cpus=_number(data.get("cpus"), f"{context}.cpus"),
            mem=_number(data.get("mem"), f"{context}.mem"),
            disk=_number(data.get("disk"), f"{context}.disk"),
            ports=result.ranges,
        )


@dataclass
class SlaveNode:
    """An agent registered with the master."""

    pid: str
    hostname: str
    id: str
    port: int
    total: ResourceVector
    used: ResourceVector
    unreserved: ResourceVector
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> SlaveNode:
        data = _mapping(data, "slave")
        slave_id = str(data.get("id", ""))
        context = f"slave {slave_id or data.get('hostname', '?')}"

        port = data.get("port", 0)
        if isinstance(port, bool) or not isinstance(port, int):
            raise DecodeError(f"{context}: bad port {port!r}")

        return cls(
            pid=str(data.get("pid", "")),
            hostname=str(data.get("hostname", "")),
            id=slave_id,
            port=port,
            total=ResourceVector.from_dict(data.get("resources"), f"{context} resources"),
            used=ResourceVector.from_dict(data.get("used_resources"), f"{context} used_resources"),
            unreserved=ResourceVector.from_dict(
                data.get("unreserved_resources"), f"{context} unreserved_resources"
            ),
            attributes=dict(_mapping(data.get("attributes"), f"{context} attributes")),
        )


@dataclass
class TaskLabel:
    key: str
    value: str


@dataclass
class TaskStatus:
    state: str
    timestamp: float


@dataclass
class Task:
    """A task launched by a framework."""

    name: str = ""
    id: str = ""
    executor_id: str = ""
    framework_id: str = ""
    role: str = ""
    slave_id: str = ""
    state: str = ""
    labels: list[TaskLabel] = field(default_factory=list)
    resources: ResourceVector = field(default_factory=ResourceVector)
    statuses: list[TaskStatus] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Task:
        data = _mapping(data, "task")
        task_id = str(data.get("id", ""))
        return cls(
            name=str(data.get("name", "")),
            id=task_id,
            executor_id=str(data.get("executor_id", "")),
            framework_id=str(data.get("framework_id", "")),
            role=str(data.get("role", "")),
            slave_id=str(data.get("slave_id", "")),
            state=str(data.get("state", "")),
            labels=[
                TaskLabel(key=str(item.get("key", "")), value=str(item.get("value", "")))
                for item in (_mapping(x, "task label") for x in _list(data.get("labels"), "task labels"))
            ],
            resources=ResourceVector.from_dict(data.get("resources"), f"task {task_id} resources"),
            statuses=[
                TaskStatus(
                    state=str(item.get("state", "")),
                    timestamp=_number(item.get("timestamp"), "task status timestamp"),
                )
                for item in (_mapping(x, "task status") for x in _list(data.get("statuses"), "task statuses"))
            ],
        )


@dataclass
class Framework:
    active: bool = False
    tasks: list[Task] = field(default_factory=list)
    completed_tasks: list[Task] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Framework:
        data = _mapping(data, "framework")
        return cls(
            active=bool(data.get("active", False)),
            tasks=[Task.from_dict(t) for t in _list(data.get("tasks"), "framework tasks")],
            completed_tasks=[
                Task.from_dict(t) for t in _list(data.get("completed_tasks"), "framework completed_tasks")
            ],
        )


@dataclass
class MasterState:
    """Decoded master /state payload."""

    slaves: list[SlaveNode] = field(default_factory=list)
    frameworks: list[Framework] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> MasterState:
        data = _mapping(data, "state")
        return cls(
            slaves=[SlaveNode.from_dict(s) for s in _list(data.get("slaves"), "slaves")],
            frameworks=[Framework.from_dict(f) for f in _list(data.get("frameworks"), "frameworks")],
        )


@dataclass
class VersionInfo:
    """Decoded /version payload.

    Example::

        {"build_date": "2019-05-02 18:38:30", "build_time": 1556822310,
         "build_user": "foon", "git_sha": "58cc918e...", "git_tag": "1.7.2",
         "version": "1.7.2"}
    """

    build_date: str = ""
    build_time: float = 0.0
    build_user: str = ""
    git_sha: str = ""
    git_tag: str = ""
    version: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> VersionInfo:
        data = _mapping(data, "version")
        return cls(
            build_date=str(data.get("build_date", "")),
            build_time=_number(data.get("build_time"), "build_time"),
            build_user=str(data.get("build_user", "")),
            git_sha=str(data.get("git_sha", "")),
            git_tag=str(data.get("git_tag", "")),
            version=str(data.get("version", "")),
        )


def decode_snapshot(data: Any) -> dict[str, float]:
    """Decode a /metrics/snapshot payload into a flat name -> value map."""
    data = _mapping(data, "snapshot")
    return {str(name): _number(value, name) for name, value in data.items()}
