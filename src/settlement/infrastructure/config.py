"""Process configuration read from the environment (and a ``.env`` file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from settlement.domain.exceptions import ConfigurationError

DEV_QUOTE_TOKEN_SECRET = "dev-quote-token-secret"


@dataclass(frozen=True)
class Settings:
    """Immutable application settings.

    Attributes:
        env: Deployment environment; ``production`` makes the quote
            secret mandatory.
        quote_token_secret: HMAC key for quote tokens.
        data_dir: Directory holding the JSON data files.
        log_level: Root log level name.
    """

    env: str
    quote_token_secret: str
    data_dir: Path
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> Settings:
        """Build settings from ``SETTLEMENT_*`` and ``QUOTE_TOKEN_SECRET``.

        Raises:
            ConfigurationError: production without a quote secret, or an
                unknown log level.
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        env = os.getenv("SETTLEMENT_ENV", "development").strip().lower()
        secret = os.getenv("QUOTE_TOKEN_SECRET", "").strip()
        if not secret:
            if env == "production":
                raise ConfigurationError(
                    "QUOTE_TOKEN_SECRET must be set when SETTLEMENT_ENV=production"
                )
            secret = DEV_QUOTE_TOKEN_SECRET

        log_level = os.getenv("SETTLEMENT_LOG_LEVEL", "WARNING").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(f"Unknown log level: {log_level}")

        return cls(
            env=env,
            quote_token_secret=secret,
            data_dir=Path(os.getenv("SETTLEMENT_DATA_DIR", "data")),
            log_level=log_level,
        )
