"""Environment-driven settings for the vulnerability store."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_DATABASE_URL = "postgresql+asyncpg://localhost/vulnmatch"
DEFAULT_MATCHERS = "distribution_did,distribution_version_id"
DEFAULT_BATCH_TIMEOUT = 30.0

_ENV_DATABASE_URL = "VULNMATCH_DATABASE_URL"
_ENV_MATCHERS = "VULNMATCH_MATCHERS"
_ENV_BATCH_TIMEOUT = "VULNMATCH_BATCH_TIMEOUT_SECONDS"


class ConfigError(ValueError):
    """Raised when an environment setting cannot be parsed."""


def database_url() -> str:
    return os.environ.get(_ENV_DATABASE_URL, DEFAULT_DATABASE_URL)


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class StoreSettings:
    """Settings consumed when wiring a :class:`~vulnmatch.vulnstore.store.VulnStore`.

    ``matchers`` holds the raw configured spellings; validation against the
    matcher vocabulary happens when the match service is constructed.
    """

    database_url: str = DEFAULT_DATABASE_URL
    matchers: tuple[str, ...] = _split_csv(DEFAULT_MATCHERS)
    batch_timeout: float = DEFAULT_BATCH_TIMEOUT

    @classmethod
    def from_env(cls) -> StoreSettings:
        raw_timeout = os.environ.get(_ENV_BATCH_TIMEOUT, str(DEFAULT_BATCH_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ConfigError(f"{_ENV_BATCH_TIMEOUT} must be a number, got {raw_timeout!r}") from exc
        if timeout <= 0:
            raise ConfigError(f"{_ENV_BATCH_TIMEOUT} must be positive, got {timeout}")

        return cls(
            database_url=database_url(),
            matchers=_split_csv(os.environ.get(_ENV_MATCHERS, DEFAULT_MATCHERS)),
            batch_timeout=timeout,
        )
