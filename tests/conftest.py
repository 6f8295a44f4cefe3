"""Shared test fixtures."""

from __future__ import annotations

import asyncio

import pytest

from megaverse.api.base import (
    IGNORED_CREATE_STATUS_CODES,
    IGNORED_REMOVE_STATUS_CODES,
    GoalGrid,
    MapContent,
    ValidationResult,
    status_code_of,
)

_MEGAVERSE_ENV_VARS = (
    "MEGAVERSE_BASE_URL",
    "MEGAVERSE_CANDIDATE_ID",
    "MEGAVERSE_CONCURRENCY",
    "MEGAVERSE_RETRY_MAX_ATTEMPTS",
    "MEGAVERSE_RETRY_BASE_DELAY_SECONDS",
    "MEGAVERSE_REQUEST_TIMEOUT_SECONDS",
    "MEGAVERSE_MAP_SIZE",
)


class FakeMegaverseClient:
    """In-memory client recording every call, with scripted failures and delays.

    Like ``MegaverseClient``, a scripted 400/409 on create or 404 on remove is
    reported as ``False`` instead of being raised.
    """

    def __init__(
        self,
        *,
        goal_map: GoalGrid | None = None,
        current_map: MapContent | None = None,
        delay_seconds: float = 0.0,
    ) -> None:
        self.goal_map = goal_map or []
        self.current_map = current_map or []
        self.delay_seconds = delay_seconds
        self.failures: dict[tuple[str, int, int], Exception] = {}
        self.calls: list[tuple[object, ...]] = []
        self.events: list[tuple[str, int, int]] = []
        self.active = 0
        self.max_active = 0
        self.solved = True
        self.validation_payload: dict[str, object] = {}

    def fail(self, operation: str, row: int, column: int, error: Exception) -> None:
        self.failures[(operation, row, column)] = error

    async def _call(self, operation: str, row: int, column: int, *extra: object) -> bool:
        self.calls.append((operation, row, column, *extra))
        self.events.append(("start", row, column))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay_seconds)
            error = self.failures.get((operation, row, column))
            if error is None:
                return True
            ignored = (
                IGNORED_CREATE_STATUS_CODES
                if operation.startswith("create")
                else IGNORED_REMOVE_STATUS_CODES
            )
            if status_code_of(error) in ignored:
                return False
            raise error
        finally:
            self.active -= 1
            self.events.append(("end", row, column))

    async def create_polyanet_at(self, row: int, column: int) -> bool:
        return await self._call("create_polyanet", row, column)

    async def remove_polyanet_at(self, row: int, column: int) -> bool:
        return await self._call("remove_polyanet", row, column)

    async def create_soloon_at(self, row: int, column: int, color: str) -> bool:
        return await self._call("create_soloon", row, column, color)

    async def remove_soloon_at(self, row: int, column: int, color: str) -> bool:
        return await self._call("remove_soloon", row, column, color)

    async def create_cometh_at(self, row: int, column: int, direction: str) -> bool:
        return await self._call("create_cometh", row, column, direction)

    async def remove_cometh_at(self, row: int, column: int, direction: str) -> bool:
        return await self._call("remove_cometh", row, column, direction)

    async def fetch_goal_map(self) -> GoalGrid:
        return self.goal_map

    async def fetch_current_map(self) -> MapContent:
        return self.current_map

    async def validate_solution(self) -> ValidationResult:
        return ValidationResult(solved=self.solved, payload=dict(self.validation_payload))


@pytest.fixture()
def fake_client() -> FakeMegaverseClient:
    return FakeMegaverseClient()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep tests independent from the developer's environment and .env.local."""
    for name in _MEGAVERSE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
