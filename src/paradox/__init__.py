"""Terminal Paradox: a corrupted-terminal text adventure."""

from .app import create_session, run
from .config import Config
from .logging import configure_logging, get_logger

__all__ = ["main", "create_session", "run", "Config"]


def main() -> None:
    """Entry point for the terminal game."""
    config = Config.from_env()

    configure_logging(
        log_level=config.log_level,
        log_file=config.log_file,
        json_logs=config.json_logs,
        truncate_input=config.truncate_input,
    )

    logger = get_logger(__name__)
    logger.info(
        "application_starting",
        database_url=config.database_url,
        log_level=config.log_level,
        seed=config.seed,
    )

    run(create_session(config))
