from __future__ import annotations

import logging
import os


def get_log_level() -> str:
    return os.environ.get("BINGO_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
