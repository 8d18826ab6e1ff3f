"""Configuration for Terminal Paradox."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class Config:
    """Application configuration."""

    database_url: str = "sqlite:///./paradox.db"
    save_slot: str = "default"
    max_inventory: int = 5
    seed: int | None = None
    log_level: str = "WARNING"
    log_file: Path | None = None
    json_logs: bool = False
    truncate_input: int = 80

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        log_file = os.getenv("PARADOX_LOG_FILE")
        seed = os.getenv("PARADOX_SEED")

        return cls(
            database_url=os.getenv("PARADOX_DATABASE_URL", cls.database_url),
            save_slot=os.getenv("PARADOX_SAVE_SLOT", cls.save_slot),
            max_inventory=int(os.getenv("PARADOX_MAX_INVENTORY", str(cls.max_inventory))),
            seed=int(seed) if seed else None,
            log_level=os.getenv("PARADOX_LOG_LEVEL", cls.log_level),
            log_file=Path(log_file) if log_file else None,
            json_logs=os.getenv("PARADOX_JSON_LOGS", "").lower()
            in ("true", "1", "yes"),
            truncate_input=int(
                os.getenv("PARADOX_TRUNCATE_INPUT", str(cls.truncate_input))
            ),
        )
