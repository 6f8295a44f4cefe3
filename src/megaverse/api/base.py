"""Remote megaverse API contracts and error types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

GoalGrid = list[list[str | None]]
MapContent = list[list[dict[str, Any] | None]]

HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429
BENIGN_CONFLICT_STATUS_CODES = frozenset({400, HTTP_NOT_FOUND, 409})
IGNORED_CREATE_STATUS_CODES = frozenset({400, 409})
IGNORED_REMOVE_STATUS_CODES = frozenset({HTTP_NOT_FOUND})


@dataclass(slots=True)
class RemoteError(Exception):
    """Failure of one remote call, with the HTTP status when one was received."""

    message: str
    status_code: int | None = None
    body: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class RetriesExhaustedError(RemoteError):
    """Raised once every retry of a transient failure has also failed."""

    attempts: int = 0


@dataclass(slots=True)
class ValidationResult:
    """Outcome of asking the server to validate the current map."""

    solved: bool
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the server response, with ``solved`` normalised to a bool."""

        return {**self.payload, "solved": self.solved}


def status_code_of(error: BaseException) -> int | None:
    """Return the HTTP status carried by ``error``, if any."""

    if isinstance(error, RemoteError):
        return error.status_code
    return None


def is_benign_conflict(error: BaseException) -> bool:
    """True when a placement failure means the goal state is already satisfied."""

    return status_code_of(error) in BENIGN_CONFLICT_STATUS_CODES


class MegaverseApi(Protocol):
    """Remote operations the orchestrator needs from the megaverse service."""

    async def create_polyanet_at(self, row: int, column: int) -> bool:
        """Place a polyanet; False when the server says it is already there."""

    async def remove_polyanet_at(self, row: int, column: int) -> bool:
        """Remove a polyanet; False when there was nothing to remove."""

    async def create_soloon_at(self, row: int, column: int, color: str) -> bool:
        """Place a soloon of ``color``."""

    async def remove_soloon_at(self, row: int, column: int, color: str) -> bool:
        """Remove a soloon."""

    async def create_cometh_at(self, row: int, column: int, direction: str) -> bool:
        """Place a cometh facing ``direction``."""

    async def remove_cometh_at(self, row: int, column: int, direction: str) -> bool:
        """Remove a cometh."""

    async def fetch_goal_map(self) -> GoalGrid:
        """Return the goal grid of tags."""

    async def fetch_current_map(self) -> MapContent:
        """Return the current map content as stored by the server."""

    async def validate_solution(self) -> ValidationResult:
        """Ask the server whether the current map matches the goal."""
