"""Bounded, barrier-synchronised megaverse builds."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterator
from functools import partial
from typing import Any

from megaverse.api.base import HTTP_NOT_FOUND, GoalGrid, MapContent, MegaverseApi, status_code_of
from megaverse.orchestrator.classifier import POLYANET_TAG
from megaverse.orchestrator.limiter import ConcurrencyLimiter
from megaverse.orchestrator.metrics import BuildMetrics, MetricsSink
from megaverse.orchestrator.models import BuildOptions, BuildSummary, CleanupSummary
from megaverse.orchestrator.processor import CellProcessor

DEFAULT_CONCURRENCY = 5
DEFAULT_MAP_SIZE = 15
PROGRESS_LOG_EVERY_ROWS = 5
MIN_BATCH_SIZE = 10
BATCH_SIZE_PER_SLOT = 10
POLYANET_CELL_TYPE = 0
logger = logging.getLogger(__name__)


class Orchestrator:
    """Turns a goal grid (or a generated pattern) into bounded remote placements.

    Every remote call goes through a ``ConcurrencyLimiter`` sized from the call
    options. Goal builds wait for each row to settle before scheduling the
    next one; the X pattern drains its buffer in fixed-size batches. Both keep
    the number of outstanding tasks bounded regardless of map size.
    """

    def __init__(
        self,
        *,
        client: MegaverseApi,
        default_concurrency: int = DEFAULT_CONCURRENCY,
        metrics: MetricsSink | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        if default_concurrency < 1:
            raise ValueError(f"default_concurrency must be >= 1, got {default_concurrency}")
        self.client = client
        self.default_concurrency = default_concurrency
        self.metrics = metrics or BuildMetrics()
        self.log = log or logger

    def effective_concurrency(self, options: BuildOptions) -> int:
        if options.concurrency is None:
            return self.default_concurrency
        return options.concurrency

    async def build_from_goal_map(self, options: BuildOptions | None = None) -> BuildSummary:
        """Create every entity of the goal map, one row at a time."""

        options = options or BuildOptions()
        limiter = ConcurrencyLimiter(self.effective_concurrency(options))
        self.metrics.reset()
        goal_map = await self.client.fetch_goal_map()
        processor = CellProcessor(client=self.client, metrics=self.metrics, log=self.log)

        total_rows = len(goal_map)
        cells_scheduled = 0
        for row_index, row in enumerate(goal_map):
            row_tasks = [
                limiter.schedule(
                    partial(processor.process, row_index, column_index, tag, options.dry_run),
                )
                for column_index, tag in enumerate(row or [])
                if tag
            ]
            cells_scheduled += len(row_tasks)
            await asyncio.gather(*row_tasks)
            if (row_index + 1) % PROGRESS_LOG_EVERY_ROWS == 0:
                self.log.info(
                    "Progress: processed %d/%d rows %s",
                    row_index + 1,
                    total_rows,
                    self.metrics.snapshot().render(),
                )

        final = self.metrics.snapshot()
        self.log.info("Build complete %s", final.render())
        return BuildSummary(rows=total_rows, cells_scheduled=cells_scheduled, metrics=final)

    async def draw_x_pattern(
        self,
        map_size: int = DEFAULT_MAP_SIZE,
        options: BuildOptions | None = None,
    ) -> int:
        """Place polyanets on both diagonals of a square map; return the placement count."""

        if map_size < 1:
            raise ValueError(f"map_size must be >= 1, got {map_size}")
        options = options or BuildOptions()
        concurrency = self.effective_concurrency(options)
        limiter = ConcurrencyLimiter(concurrency)
        batch_size = max(concurrency * BATCH_SIZE_PER_SLOT, MIN_BATCH_SIZE)

        pending: list[Awaitable[Any]] = []
        placements = 0
        for row, column in x_pattern_cells(map_size):
            placements += 1
            if options.dry_run:
                self.log.info("[dry-run] would create POLYANET at %d,%d", row, column)
                continue
            pending.append(limiter.schedule(partial(self.client.create_polyanet_at, row, column)))
            if len(pending) >= batch_size:
                await _drain(pending)

        if pending:
            await _drain(pending)
        self.log.info("X pattern complete: size=%d placements=%d", map_size, placements)
        return placements

    async def remove_extra_polyanets(self, options: BuildOptions | None = None) -> CleanupSummary:
        """Delete polyanets present on the current map but absent from the goal."""

        options = options or BuildOptions()
        goal_map = await self.client.fetch_goal_map()
        content = await self.client.fetch_current_map()
        extras = list(extra_polyanet_cells(goal_map=goal_map, content=content))
        summary = CleanupSummary(found=len(extras))
        self.log.info("Found extras to delete: %d", summary.found)
        if options.dry_run:
            for row, column in extras:
                self.log.info("[dry-run] would delete POLYANET at %d,%d", row, column)
            return summary

        limiter = ConcurrencyLimiter(self.effective_concurrency(options))
        await asyncio.gather(
            *(
                limiter.schedule(partial(self._remove_polyanet, row, column, summary))
                for row, column in extras
            ),
        )
        self.log.info("Cleanup complete %s", summary.render())
        return summary

    async def _remove_polyanet(self, row: int, column: int, summary: CleanupSummary) -> None:
        try:
            removed = await self.client.remove_polyanet_at(row, column)
        except Exception as error:  # noqa: BLE001
            if status_code_of(error) != HTTP_NOT_FOUND:
                summary.failed += 1
                self.log.error("Failed to delete POLYANET at %d,%d: %s", row, column, error)
                return
            removed = False
        if not removed:
            summary.skipped += 1
            return
        summary.removed += 1
        self.log.info("Deleted POLYANET at %d,%d", row, column)


def x_pattern_cells(map_size: int) -> Iterator[tuple[int, int]]:
    """Yield the cells on both diagonals of a square map, the center only once."""

    for row in range(map_size):
        left_column = row
        right_column = map_size - 1 - row
        yield row, left_column
        if right_column != left_column:
            yield row, right_column


def extra_polyanet_cells(*, goal_map: GoalGrid, content: MapContent) -> Iterator[tuple[int, int]]:
    """Yield coordinates holding a polyanet where the goal wants something else."""

    for row_index, row in enumerate(content):
        for column_index, cell in enumerate(row or []):
            if not isinstance(cell, dict) or cell.get("type") != POLYANET_CELL_TYPE:
                continue
            if _goal_tag(goal_map, row_index, column_index) != POLYANET_TAG:
                yield row_index, column_index


def _goal_tag(goal_map: GoalGrid, row: int, column: int) -> str | None:
    if row >= len(goal_map):
        return None
    goal_row = goal_map[row] or []
    if column >= len(goal_row):
        return None
    return goal_row[column]


async def _drain(pending: list[Awaitable[Any]]) -> None:
    results = await asyncio.gather(*pending, return_exceptions=True)
    pending.clear()
    for result in results:
        if isinstance(result, BaseException):
            raise result
