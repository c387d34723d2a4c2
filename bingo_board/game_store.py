from __future__ import annotations

import logging

import redis
from pydantic import ValidationError

from bingo_board.models import GameSession
from bingo_board.notifications import SessionChannel, SessionUpdate, SessionWatcher, publish_session_update


logger = logging.getLogger(__name__)

SESSIONS_SET_KEY = "bingo_sessions"
SESSION_KEY_PREFIX = "bingo_session_"  # + {session id}


def session_key(session_id: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def session_channel(session_id: str) -> SessionChannel:
    return SessionChannel(session_id=session_id, key_prefix=SESSION_KEY_PREFIX)


def serialize_session(session: GameSession) -> str:
    return session.model_dump_json(by_alias=True, exclude_none=True)


def parse_session(raw: str | bytes) -> GameSession:
    """Parse a persisted blob. Raises ValueError on anything not written by us."""

    try:
        return GameSession.model_validate_json(raw)
    except ValidationError as e:
        raise ValueError(f"Malformed session blob: {e.error_count()} error(s)") from e


def save_session(*, r: redis.Redis, session: GameSession, origin: str | None = None) -> None:
    """Write the whole session and notify every other watcher of it."""

    key = session_key(session.id)
    blob = serialize_session(session)
    r.set(key, blob)
    r.sadd(SESSIONS_SET_KEY, session.id)

    reached = publish_session_update(
        r=r,
        channel=session_channel(session.id),
        update=SessionUpdate(key=key, value=blob, origin=origin),
    )
    logger.debug("Saved session %s (phase=%s, notified=%d)", session.id, session.phase, reached)


def get_session(*, r: redis.Redis, session_id: str) -> GameSession | None:
    raw = r.get(session_key(session_id))
    if not raw:
        return None
    try:
        return parse_session(raw)
    except ValueError as e:
        logger.warning("Ignoring unreadable session %s: %s", session_id, e)
        return None


def require_session(*, r: redis.Redis, session_id: str) -> GameSession:
    session = get_session(r=r, session_id=session_id)
    if session is None:
        raise ValueError("Session not found")
    return session


def list_sessions(*, r: redis.Redis) -> list[GameSession]:
    out: list[GameSession] = []
    for member in sorted(r.smembers(SESSIONS_SET_KEY)):
        sid = member.decode("utf-8") if isinstance(member, bytes) else member
        session = get_session(r=r, session_id=sid)
        if session is not None:
            out.append(session)
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out


def watch_session(*, r: redis.Redis, session_id: str, origin: str | None = None) -> SessionWatcher:
    return SessionWatcher(r=r, channel=session_channel(session_id), origin=origin)
