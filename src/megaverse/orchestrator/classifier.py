"""Goal-cell tag parsing into placement intents."""

from __future__ import annotations

from megaverse.orchestrator.models import Cometh, PlacementIntent, Polyanet, Soloon

POLYANET_TAG = "POLYANET"
SOLOON_SUFFIX = "_SOLOON"
COMETH_SUFFIX = "_COMETH"


def classify(tag: str | None, row: int, column: int) -> PlacementIntent | None:
    """Turn one goal-map tag into a placement intent.

    Empty cells and unrecognised tags (``SPACE`` included) yield ``None``.
    Soloon colors and cometh directions are passed through lowercased without
    checking them against the allowed values; the server is the authority.
    """

    if not tag:
        return None
    if tag == POLYANET_TAG:
        return Polyanet(row=row, column=column)
    if tag.endswith(SOLOON_SUFFIX):
        return Soloon(row=row, column=column, color=_prefix(tag))
    if tag.endswith(COMETH_SUFFIX):
        return Cometh(row=row, column=column, direction=_prefix(tag))
    return None


def _prefix(tag: str) -> str:
    return tag.split("_", 1)[0].lower()
