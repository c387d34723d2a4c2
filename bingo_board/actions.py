"""Persisting wrappers around the engine.

Each call takes the caller's current snapshot, applies one rule, and writes the
result (which also notifies other watchers). Rejected calls write nothing and
return the snapshot unchanged.
"""

from __future__ import annotations

import random
from collections.abc import Sequence

import redis

from bingo_board import engine
from bingo_board.game_store import save_session
from bingo_board.models import CanvasElement, GameSession


def _commit(*, r: redis.Redis, before: GameSession, after: GameSession, origin: str | None) -> GameSession:
    if after is not before:
        save_session(r=r, session=after, origin=origin)
    return after


def create_session(
    *,
    r: redis.Redis,
    name: str,
    total_users: int,
    creator_name: str,
    origin: str | None = None,
    rng: random.Random | None = None,
) -> GameSession:
    check = engine.validate_config(total_users)
    if not check.valid:
        raise ValueError(check.message or "Invalid setup")

    session = engine.create_session(name=name, total_users=total_users, creator_name=creator_name, rng=rng)
    save_session(r=r, session=session, origin=origin)
    return session


def join_session(
    *,
    r: redis.Redis,
    session: GameSession,
    user_name: str,
    origin: str | None = None,
    rng: random.Random | None = None,
) -> GameSession:
    return _commit(r=r, before=session, after=engine.join_session(session, user_name, rng=rng), origin=origin)


def add_resolution(
    *,
    r: redis.Redis,
    session: GameSession,
    text: str,
    author_id: str,
    note: str | None = None,
    origin: str | None = None,
    rng: random.Random | None = None,
) -> GameSession:
    after = engine.add_resolution(session, text, author_id, note, rng=rng)
    return _commit(r=r, before=session, after=after, origin=origin)


def update_resolution_note(
    *,
    r: redis.Redis,
    session: GameSession,
    resolution_id: str,
    new_note: str,
    origin: str | None = None,
) -> GameSession:
    after = engine.update_resolution_note(session, resolution_id, new_note)
    return _commit(r=r, before=session, after=after, origin=origin)


def toggle_check(
    *,
    r: redis.Redis,
    session: GameSession,
    user_id: str,
    resolution_id: str,
    origin: str | None = None,
) -> GameSession:
    after = engine.toggle_check(session, user_id, resolution_id)
    return _commit(r=r, before=session, after=after, origin=origin)


def update_background(
    *,
    r: redis.Redis,
    session: GameSession,
    elements: Sequence[CanvasElement],
    origin: str | None = None,
) -> GameSession:
    return _commit(r=r, before=session, after=engine.update_background(session, elements), origin=origin)


def add_background_element(
    *,
    r: redis.Redis,
    session: GameSession,
    element: CanvasElement,
    origin: str | None = None,
) -> GameSession:
    return _commit(r=r, before=session, after=engine.add_background_element(session, element), origin=origin)


def clear_background(*, r: redis.Redis, session: GameSession, origin: str | None = None) -> GameSession:
    return _commit(r=r, before=session, after=engine.clear_background(session), origin=origin)


def finalize_board(
    *,
    r: redis.Redis,
    session: GameSession,
    origin: str | None = None,
    rng: random.Random | None = None,
) -> GameSession:
    return _commit(r=r, before=session, after=engine.finalize_board(session, rng=rng), origin=origin)


def revert_to_edit(*, r: redis.Redis, session: GameSession, origin: str | None = None) -> GameSession:
    return _commit(r=r, before=session, after=engine.revert_to_edit(session), origin=origin)
