"""Megaverse challenge API client."""

from __future__ import annotations

import logging
from typing import Any

from megaverse.api.base import (
    IGNORED_CREATE_STATUS_CODES,
    IGNORED_REMOVE_STATUS_CODES,
    GoalGrid,
    MapContent,
    RemoteError,
    ValidationResult,
)
from megaverse.http.transport import ApiTransport

POLYANETS_PATH = "/api/polyanets"
SOLOONS_PATH = "/api/soloons"
COMETHS_PATH = "/api/comeths"
logger = logging.getLogger(__name__)


class MegaverseClient:
    """Domain operations on one candidate's map.

    Every entity payload carries the candidate id. Creates and removes are
    idempotent: a create answered with 400/409 and a remove answered with 404
    return ``False`` instead of raising. Every other failure surfaces as
    ``RemoteError``.
    """

    def __init__(self, transport: ApiTransport, candidate_id: str) -> None:
        self.transport = transport
        self.candidate_id = candidate_id

    async def create_polyanet_at(self, row: int, column: int) -> bool:
        return await self._create(POLYANETS_PATH, self._payload(row=row, column=column))

    async def remove_polyanet_at(self, row: int, column: int) -> bool:
        return await self._remove(POLYANETS_PATH, self._payload(row=row, column=column))

    async def create_soloon_at(self, row: int, column: int, color: str) -> bool:
        return await self._create(
            SOLOONS_PATH,
            self._payload(row=row, column=column, color=color),
        )

    async def remove_soloon_at(self, row: int, column: int, color: str) -> bool:
        return await self._remove(
            SOLOONS_PATH,
            self._payload(row=row, column=column, color=color),
        )

    async def create_cometh_at(self, row: int, column: int, direction: str) -> bool:
        return await self._create(
            COMETHS_PATH,
            self._payload(row=row, column=column, direction=direction),
        )

    async def remove_cometh_at(self, row: int, column: int, direction: str) -> bool:
        return await self._remove(
            COMETHS_PATH,
            self._payload(row=row, column=column, direction=direction),
        )

    async def fetch_goal_map(self) -> GoalGrid:
        """Return the goal grid; accepts both ``{"goal": [...]}`` and a bare grid."""

        body = await self.transport.get(f"/api/map/{self.candidate_id}/goal")
        if isinstance(body, dict):
            body = body.get("goal")
        if not isinstance(body, list):
            raise ValueError(f"Unexpected goal map payload: {body!r}")
        return body

    async def fetch_current_map(self) -> MapContent:
        body = await self.transport.get(f"/api/map/{self.candidate_id}")
        if not isinstance(body, dict):
            return []
        return (body.get("map") or {}).get("content") or []

    async def validate_solution(self) -> ValidationResult:
        body = await self.transport.post(
            f"/api/map/{self.candidate_id}/validate",
            {"candidateId": self.candidate_id},
        )
        if not isinstance(body, dict):
            return ValidationResult(solved=False)
        return ValidationResult(solved=bool(body.get("solved", False)), payload=body)

    async def _create(self, path: str, payload: dict[str, Any]) -> bool:
        try:
            await self.transport.post(path, payload)
        except RemoteError as error:
            if error.status_code not in IGNORED_CREATE_STATUS_CODES:
                raise
            logger.debug("POST %s already satisfied (HTTP %s)", path, error.status_code)
            return False
        return True

    async def _remove(self, path: str, payload: dict[str, Any]) -> bool:
        try:
            await self.transport.delete(path, payload)
        except RemoteError as error:
            if error.status_code not in IGNORED_REMOVE_STATUS_CODES:
                raise
            logger.debug("DELETE %s found nothing (HTTP %s)", path, error.status_code)
            return False
        return True

    def _payload(self, **fields: Any) -> dict[str, Any]:
        return {**fields, "candidateId": self.candidate_id}
