"""Domain models for megaverse builds."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class EntityKind(str, Enum):
    """Placeable astral object kinds."""

    POLYANET = "POLYANET"
    SOLOON = "SOLOON"
    COMETH = "COMETH"


@dataclass(frozen=True, slots=True)
class Polyanet:
    """Intent to place a polyanet."""

    kind: ClassVar[EntityKind] = EntityKind.POLYANET

    row: int
    column: int

    def describe(self) -> str:
        return self.kind.value


@dataclass(frozen=True, slots=True)
class Soloon:
    """Intent to place a soloon of the given color."""

    kind: ClassVar[EntityKind] = EntityKind.SOLOON

    row: int
    column: int
    color: str

    def describe(self) -> str:
        return f"{self.kind.value}({self.color})"


@dataclass(frozen=True, slots=True)
class Cometh:
    """Intent to place a cometh facing the given direction."""

    kind: ClassVar[EntityKind] = EntityKind.COMETH

    row: int
    column: int
    direction: str

    def describe(self) -> str:
        return f"{self.kind.value}({self.direction})"


PlacementIntent = Polyanet | Soloon | Cometh


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """Point-in-time copy of build counters."""

    created: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.created + self.skipped + self.failed

    def render(self) -> str:
        return f"created={self.created} skipped={self.skipped} failed={self.failed}"


@dataclass(slots=True)
class BuildOptions:
    """Per-call knobs shared by every build entrypoint."""

    concurrency: int | None = None
    dry_run: bool = False


@dataclass(slots=True)
class BuildSummary:
    """Result of one goal-driven build."""

    rows: int
    cells_scheduled: int
    metrics: MetricsSnapshot


@dataclass(slots=True)
class CleanupSummary:
    """Result of one extras-removal pass."""

    found: int = 0
    removed: int = 0
    skipped: int = 0
    failed: int = 0

    def render(self) -> str:
        return (
            f"found={self.found} removed={self.removed} "
            f"skipped={self.skipped} failed={self.failed}"
        )
