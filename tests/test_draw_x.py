from __future__ import annotations

import logging

import allure
import pytest
from conftest import FakeMegaverseClient

from megaverse.api.base import RemoteError
from megaverse.orchestrator.builder import Orchestrator, x_pattern_cells
from megaverse.orchestrator.models import BuildOptions

pytestmark = [
    allure.epic("Build Engine"),
    allure.feature("X Pattern"),
]


def test_x_pattern_cells_for_odd_size_visits_center_once() -> None:
    assert sorted(x_pattern_cells(3)) == [(0, 0), (0, 2), (1, 1), (2, 0), (2, 2)]


def test_x_pattern_cells_for_even_size() -> None:
    cells = list(x_pattern_cells(4))
    assert len(cells) == 8
    assert len(set(cells)) == 8
    assert all(row == column or row + column == 3 for row, column in cells)


def test_x_pattern_cells_for_single_cell() -> None:
    assert list(x_pattern_cells(1)) == [(0, 0)]


@pytest.mark.asyncio
async def test_draw_x_places_polyanets_on_both_diagonals(fake_client) -> None:
    orchestrator = Orchestrator(client=fake_client, default_concurrency=2)

    placements = await orchestrator.draw_x_pattern(3)

    assert placements == 5
    assert sorted(fake_client.calls) == [
        ("create_polyanet", 0, 0),
        ("create_polyanet", 0, 2),
        ("create_polyanet", 1, 1),
        ("create_polyanet", 2, 0),
        ("create_polyanet", 2, 2),
    ]


@pytest.mark.asyncio
async def test_draw_x_default_size_covers_fifteen_by_fifteen(fake_client) -> None:
    orchestrator = Orchestrator(client=fake_client)

    placements = await orchestrator.draw_x_pattern()

    assert placements == 29
    assert len(fake_client.calls) == 29


@pytest.mark.asyncio
async def test_draw_x_respects_concurrency_limit() -> None:
    client = FakeMegaverseClient(delay_seconds=0.005)
    orchestrator = Orchestrator(client=client)

    await orchestrator.draw_x_pattern(11, BuildOptions(concurrency=3))

    assert client.max_active == 3
    assert len(client.calls) == 21


@pytest.mark.asyncio
async def test_draw_x_drains_in_batches() -> None:
    client = FakeMegaverseClient(delay_seconds=0.002)
    orchestrator = Orchestrator(client=client)

    # concurrency 2 gives a batch of 20 placements
    await orchestrator.draw_x_pattern(15, BuildOptions(concurrency=2))

    starts = [index for index, event in enumerate(client.events) if event[0] == "start"]
    ends = [index for index, event in enumerate(client.events) if event[0] == "end"]
    assert len(starts) == 29
    assert ends[19] < starts[20]


@pytest.mark.asyncio
async def test_draw_x_dry_run_logs_without_calling_client(fake_client, caplog) -> None:
    orchestrator = Orchestrator(client=fake_client)

    with caplog.at_level(logging.INFO):
        placements = await orchestrator.draw_x_pattern(5, BuildOptions(dry_run=True))

    assert placements == 9
    assert fake_client.calls == []
    assert caplog.text.count("[dry-run] would create POLYANET") == 9
    assert "X pattern complete: size=5 placements=9" in caplog.text


@pytest.mark.asyncio
async def test_draw_x_propagates_placement_failure_after_batch_settles() -> None:
    client = FakeMegaverseClient()
    client.fail("create_polyanet", 1, 1, RemoteError("HTTP 500", status_code=500))
    orchestrator = Orchestrator(client=client)

    with pytest.raises(RemoteError, match="HTTP 500"):
        await orchestrator.draw_x_pattern(3)

    assert len(client.calls) == 5
    assert client.active == 0


@pytest.mark.asyncio
async def test_draw_x_rejects_empty_map(fake_client) -> None:
    orchestrator = Orchestrator(client=fake_client)

    with pytest.raises(ValueError, match="map_size"):
        await orchestrator.draw_x_pattern(0)

    assert fake_client.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [400, 409])
async def test_draw_x_completes_when_a_polyanet_is_already_in_place(status_code: int) -> None:
    client = FakeMegaverseClient()
    client.fail(
        "create_polyanet",
        1,
        1,
        RemoteError(f"HTTP {status_code}", status_code=status_code),
    )
    orchestrator = Orchestrator(client=client)

    placements = await orchestrator.draw_x_pattern(3)

    assert placements == 5
    assert len(client.calls) == 5
