from __future__ import annotations

import os
import random
from pathlib import Path

import fakeredis
import pytest


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (REDIS_URL, BINGO_LOG_LEVEL, ...).

    In CI we don't auto-load `.env`, so the live Redis test stays skipped unless
    explicitly opted-in with BINGO_LOAD_DOTENV_FOR_TESTS=1.
    """

    if os.environ.get("CI") and os.environ.get("BINGO_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(scope="session", autouse=True)
def _configure_logging() -> None:
    from bingo_board.infra.log import configure_logging

    configure_logging()


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)
