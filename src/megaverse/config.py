"""Runtime configuration for megaverse builds."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://challenge.crossmint.com"
DEFAULT_CANDIDATE_ID = "0f8c74ac-53a1-4b9b-87c1-c43acad78a3d"
DEFAULT_ENV_FILE = Path(".env.local")


@dataclass(slots=True)
class ApiSettings:
    """Remote service settings."""

    base_url: str = DEFAULT_BASE_URL
    candidate_id: str = DEFAULT_CANDIDATE_ID
    request_timeout_seconds: float = 30.0


@dataclass(slots=True)
class BuildSettings:
    """Scheduling and retry settings."""

    concurrency: int = 5
    retry_max_attempts: int = 5
    retry_base_delay_seconds: float = 0.2
    map_size: int = 15


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    api: ApiSettings = field(default_factory=ApiSettings)
    build: BuildSettings = field(default_factory=BuildSettings)

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> Settings:
        """Load settings from the environment, seeded from ``.env.local`` when present."""

        load_dotenv(env_file or DEFAULT_ENV_FILE, override=False)
        return cls(
            api=ApiSettings(
                base_url=os.getenv("MEGAVERSE_BASE_URL", DEFAULT_BASE_URL),
                candidate_id=os.getenv("MEGAVERSE_CANDIDATE_ID", DEFAULT_CANDIDATE_ID),
                request_timeout_seconds=_env_float("MEGAVERSE_REQUEST_TIMEOUT_SECONDS", 30.0),
            ),
            build=BuildSettings(
                concurrency=_env_int("MEGAVERSE_CONCURRENCY", 5),
                retry_max_attempts=_env_int("MEGAVERSE_RETRY_MAX_ATTEMPTS", 5),
                retry_base_delay_seconds=_env_float("MEGAVERSE_RETRY_BASE_DELAY_SECONDS", 0.2),
                map_size=_env_int("MEGAVERSE_MAP_SIZE", 15),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the build cannot run with."""

        parsed = urlparse(self.api.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "Invalid MEGAVERSE_BASE_URL: "
                f"{self.api.base_url!r}. Expected an absolute http:// or https:// URL.",
            )
        if not self.api.candidate_id.strip():
            raise ValueError("MEGAVERSE_CANDIDATE_ID must not be empty.")
        if self.api.request_timeout_seconds <= 0:
            raise ValueError("MEGAVERSE_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.build.concurrency < 1:
            raise ValueError("MEGAVERSE_CONCURRENCY must be >= 1.")
        if self.build.retry_max_attempts < 0:
            raise ValueError("MEGAVERSE_RETRY_MAX_ATTEMPTS must be >= 0.")
        if self.build.retry_base_delay_seconds < 0:
            raise ValueError("MEGAVERSE_RETRY_BASE_DELAY_SECONDS must be >= 0.")
        if self.build.map_size < 1:
            raise ValueError("MEGAVERSE_MAP_SIZE must be >= 1.")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid number for {name}: {value!r}") from error
