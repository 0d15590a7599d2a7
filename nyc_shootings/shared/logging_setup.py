"""
NYC Shootings - Logging Setup

Only entry points call configure_logging(); library modules just create a
module-level logger.
"""

from __future__ import annotations

import logging
from pathlib import Path

from nyc_shootings.shared.config import Settings, get_config


def configure_logging(config: Settings | None = None, log_name: str = "pipeline") -> None:
    """
    Configure root logging from the logging section of the config.

    Args:
        config: Configuration object (uses default if not provided)
        log_name: File name stem used when storage.log_dir is set
    """
    config = config or get_config()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.storage.log_dir:
        log_dir = Path(config.storage.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / f"{log_name}.log"))

    logging.basicConfig(
        level=config.logging.level.upper(),
        format=config.logging.format,
        handlers=handlers,
        force=True,
    )

    # matplotlib is chatty at DEBUG
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
