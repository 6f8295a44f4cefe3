"""Single-cell placement with outcome accounting."""

from __future__ import annotations

import logging

from megaverse.api.base import MegaverseApi, is_benign_conflict
from megaverse.orchestrator.classifier import classify
from megaverse.orchestrator.metrics import MetricsSink
from megaverse.orchestrator.models import Cometh, PlacementIntent, Polyanet, Soloon

logger = logging.getLogger(__name__)


class CellProcessor:
    """Places one goal cell and folds the outcome into metrics.

    ``process`` never raises. A placement counts as created, or as skipped when
    the client reports the cell already satisfied (a 400/404/409 answer).
    Any other failure counts as failed and is logged.
    """

    def __init__(
        self,
        *,
        client: MegaverseApi,
        metrics: MetricsSink,
        log: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.metrics = metrics
        self.log = log or logger

    async def process(self, row: int, column: int, tag: str | None, dry_run: bool) -> None:
        intent = classify(tag, row, column)
        if intent is None:
            return
        if dry_run:
            self.log.info("[dry-run] would create %s at %d,%d", intent.describe(), row, column)
            self.metrics.inc_created()
            return

        try:
            placed = await self._place(intent)
        except Exception as error:  # noqa: BLE001
            if is_benign_conflict(error):
                self.metrics.inc_skipped()
                return
            self.metrics.inc_failed()
            self.log.error(
                "Failed to create %s at %d,%d: %s",
                intent.describe(),
                row,
                column,
                error,
            )
            return
        if placed:
            self.metrics.inc_created()
        else:
            self.metrics.inc_skipped()

    async def _place(self, intent: PlacementIntent) -> bool:
        if isinstance(intent, Polyanet):
            return await self.client.create_polyanet_at(intent.row, intent.column)
        if isinstance(intent, Soloon):
            return await self.client.create_soloon_at(intent.row, intent.column, intent.color)
        if isinstance(intent, Cometh):
            return await self.client.create_cometh_at(
                intent.row,
                intent.column,
                intent.direction,
            )
        raise TypeError(f"Unsupported placement intent: {intent!r}")
