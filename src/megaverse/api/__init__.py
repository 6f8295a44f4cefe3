"""Remote megaverse API surface."""

from megaverse.api.base import (
    MegaverseApi,
    RemoteError,
    RetriesExhaustedError,
    ValidationResult,
)

__all__ = [
    "MegaverseApi",
    "RemoteError",
    "RetriesExhaustedError",
    "ValidationResult",
]
