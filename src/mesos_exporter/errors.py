"""Exporter exceptions and the shared error-reporting capability.

Failures never escape a scrape. They are logged where they happen and counted
through an ErrorReporter, which the composition root creates once and hands to
every collaborator that can fail.
"""

from __future__ import annotations

import logging

from prometheus_client import CollectorRegistry, Counter

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ExporterError(Exception):
    """Base class for exporter failures."""


class TransportError(ExporterError):
    """Raised when an upstream request fails or returns a non-2xx status."""

    def __init__(self, url: str, message: str, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class DecodeError(ExporterError):
    """Raised when a response body cannot be decoded into its model."""


class AuthError(ExporterError):
    """Raised when a login token cannot be minted or exchanged."""


class FormatError(ExporterError):
    """Raised when range text is malformed."""


class AttributeRejected(ExporterError):
    """Raised when an attribute value is dropped by the label text policy.

    This is a policy decision, not a failure, and is never counted.
    """


# =============================================================================
# Error Reporting
# =============================================================================


class ErrorReporter:
    """Count collection errors on a ``mesos_collector_errors_total`` counter."""

    def __init__(self, registry: CollectorRegistry | None = None):
        """Initialize the reporter.

        Args:
            registry: Registry to register the counter with. If None, the
                counter is left unregistered and the caller may register
                ``reporter.counter`` itself.
        """
        self.counter = Counter(
            "errors",
            "Total number of errors encountered while collecting metrics",
            namespace="mesos",
            subsystem="collector",
            registry=registry,
        )

    def report(self, error: BaseException | None = None) -> None:
        """Record one collection error.

        Args:
            error: The error being counted, used for debug logging only.
        """
        if error is not None:
            logger.debug(f"Counting collection error: {error!r}")
        self.counter.inc()
