"""In-memory outcome counters for build runs."""

from __future__ import annotations

from typing import Protocol

from megaverse.orchestrator.models import MetricsSnapshot


class MetricsSink(Protocol):
    """Counters updated by cell processing and read by the orchestrator."""

    def inc_created(self) -> None: ...

    def inc_skipped(self) -> None: ...

    def inc_failed(self) -> None: ...

    def snapshot(self) -> MetricsSnapshot: ...

    def reset(self) -> None: ...


class BuildMetrics:
    """Created/skipped/failed counters for one build.

    Only updated from the event loop thread.
    """

    def __init__(self) -> None:
        self.created = 0
        self.skipped = 0
        self.failed = 0

    def inc_created(self) -> None:
        self.created += 1

    def inc_skipped(self) -> None:
        self.skipped += 1

    def inc_failed(self) -> None:
        self.failed += 1

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(created=self.created, skipped=self.skipped, failed=self.failed)

    def reset(self) -> None:
        self.created = 0
        self.skipped = 0
        self.failed = 0
