"""Metrics collection for the change-aware fetch layer."""

from dataclasses import dataclass, field
from typing import ClassVar

from watchfetch.features.fetch.models import FetchErrorClass


@dataclass
class FetchMetrics:
    """Metrics for change-aware fetch operations.

    Singleton class that tracks network requests, revalidation outcomes
    and failures across all watched sources.
    """

    http_requests_total: dict[str, int] = field(default_factory=dict)
    http_status_total: dict[int, int] = field(default_factory=dict)
    head_probes_total: int = 0
    outcomes_total: dict[str, int] = field(default_factory=dict)
    not_modified_total: dict[str, int] = field(default_factory=dict)
    failures_total: dict[str, int] = field(default_factory=dict)
    bytes_total: int = 0
    network_duration_ms_total: float = 0.0

    _instance: ClassVar["FetchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_request(self, method: str, duration_ms: float) -> None:
        """Record an attempted network request.

        Args:
            method: HTTP method.
            duration_ms: Network duration in milliseconds.
        """
        self.http_requests_total[method] = self.http_requests_total.get(method, 0) + 1
        self.network_duration_ms_total += duration_ms

    def record_response(self, status_code: int, bytes_received: int) -> None:
        """Record a received response.

        Args:
            status_code: HTTP status code.
            bytes_received: Body size in bytes.
        """
        self.http_status_total[status_code] = (
            self.http_status_total.get(status_code, 0) + 1
        )
        self.bytes_total += bytes_received

    def record_head_probe(self) -> None:
        """Record a HEAD revalidation probe."""
        self.head_probes_total += 1

    def record_outcome(self, kind: str) -> None:
        """Record a fetch outcome by kind."""
        self.outcomes_total[kind] = self.outcomes_total.get(kind, 0) + 1

    def record_not_modified(self, reason: str) -> None:
        """Record why a fetch was judged not modified.

        Args:
            reason: One of head_304, validator, content, local.
        """
        self.not_modified_total[reason] = self.not_modified_total.get(reason, 0) + 1

    def record_failure(self, error_class: FetchErrorClass) -> None:
        """Record a not-ok outcome.

        Args:
            error_class: Classification of the failure.
        """
        key = error_class.value
        self.failures_total[key] = self.failures_total.get(key, 0) + 1

    @property
    def request_count(self) -> int:
        """Total network requests attempted."""
        return sum(self.http_requests_total.values())

    @property
    def avg_duration_ms(self) -> float:
        """Average network duration per request in milliseconds."""
        if self.request_count == 0:
            return 0.0
        return self.network_duration_ms_total / self.request_count

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "http_requests_total": dict(self.http_requests_total),
            "http_status_total": dict(self.http_status_total),
            "head_probes_total": self.head_probes_total,
            "outcomes_total": dict(self.outcomes_total),
            "not_modified_total": dict(self.not_modified_total),
            "failures_total": dict(self.failures_total),
            "bytes_total": self.bytes_total,
            "network_duration_ms_total": self.network_duration_ms_total,
            "request_count": self.request_count,
            "avg_duration_ms": self.avg_duration_ms,
        }
