"""Controllers for megaverse CLI commands."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass

from megaverse.api.base import MegaverseApi, ValidationResult
from megaverse.api.client import MegaverseClient
from megaverse.config import Settings
from megaverse.http.transport import ApiTransport
from megaverse.orchestrator.builder import Orchestrator
from megaverse.orchestrator.models import BuildOptions, BuildSummary, CleanupSummary
from megaverse.orchestrator.retry import RetryExecutor

ClientFactory = Callable[[Settings], AbstractAsyncContextManager[MegaverseApi]]


@dataclass(slots=True)
class DrawXCommand:
    """CLI input for the X pattern build."""

    size: int | None
    concurrency: int | None
    dry_run: bool


@dataclass(slots=True)
class GoalBuildCommand:
    """CLI input for the goal-driven build."""

    concurrency: int | None
    dry_run: bool


@dataclass(slots=True)
class CleanupCommand:
    """CLI input for removing polyanets the goal does not want."""

    concurrency: int | None
    dry_run: bool


@asynccontextmanager
async def open_client(settings: Settings) -> AsyncIterator[MegaverseApi]:
    """Build the HTTP-backed client from settings and close it afterwards."""

    retry = RetryExecutor(
        max_retries=settings.build.retry_max_attempts,
        base_delay_seconds=settings.build.retry_base_delay_seconds,
    )
    async with ApiTransport(
        settings.api.base_url,
        retry=retry,
        timeout_seconds=settings.api.request_timeout_seconds,
    ) as transport:
        yield MegaverseClient(transport, settings.api.candidate_id)


class MegaverseCliController:
    """Wires settings, client, and orchestrator for each CLI command."""

    def __init__(self, client_factory: ClientFactory | None = None) -> None:
        self._client_factory = client_factory or open_client

    def draw_x(self, command: DrawXCommand) -> list[str]:
        settings = _settings()
        size = command.size if command.size is not None else settings.build.map_size

        async def run() -> int:
            async with self._client_factory(settings) as client:
                orchestrator = _orchestrator(client, settings)
                return await orchestrator.draw_x_pattern(
                    size,
                    BuildOptions(concurrency=command.concurrency, dry_run=command.dry_run),
                )

        placements = asyncio.run(run())
        return [
            f"X pattern: size={size} placements={placements} dry_run={_yes_no(command.dry_run)}",
            "Phase1 complete",
        ]

    def build_goal(self, command: GoalBuildCommand) -> list[str]:
        settings = _settings()

        async def run() -> BuildSummary:
            async with self._client_factory(settings) as client:
                orchestrator = _orchestrator(client, settings)
                return await orchestrator.build_from_goal_map(
                    BuildOptions(concurrency=command.concurrency, dry_run=command.dry_run),
                )

        summary = asyncio.run(run())
        return [
            "Build summary: "
            f"rows={summary.rows} cells={summary.cells_scheduled} {summary.metrics.render()} "
            f"dry_run={_yes_no(command.dry_run)}",
            "Phase2 complete",
        ]

    def validate(self) -> list[str]:
        settings = _settings()

        async def run() -> ValidationResult:
            async with self._client_factory(settings) as client:
                return await client.validate_solution()

        result = asyncio.run(run())
        return [f"Validate result: {json.dumps(result.to_dict())}"]

    def cleanup(self, command: CleanupCommand) -> list[str]:
        settings = _settings()

        async def run() -> CleanupSummary:
            async with self._client_factory(settings) as client:
                orchestrator = _orchestrator(client, settings)
                return await orchestrator.remove_extra_polyanets(
                    BuildOptions(concurrency=command.concurrency, dry_run=command.dry_run),
                )

        summary = asyncio.run(run())
        return [
            f"Cleanup summary: {summary.render()} dry_run={_yes_no(command.dry_run)}",
            "Cleanup complete",
        ]


def _settings() -> Settings:
    settings = Settings.from_env()
    settings.validate()
    return settings


def _orchestrator(client: MegaverseApi, settings: Settings) -> Orchestrator:
    return Orchestrator(client=client, default_concurrency=settings.build.concurrency)


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"
