from __future__ import annotations

import logging
import random
from urllib.parse import urldefrag

import redis

from bingo_board import actions, engine
from bingo_board.game_store import get_session, watch_session
from bingo_board.identity import generate_id
from bingo_board.models import CanvasElement, GameSession, User
from bingo_board.notifications import SessionListener, SessionWatcher


logger = logging.getLogger(__name__)


def share_link(base_url: str, session_id: str) -> str:
    """Link that drops a visitor straight into the join flow."""

    base, _ = urldefrag(base_url)
    return f"{base}#{session_id}"


def session_id_from_link(link: str) -> str | None:
    _, fragment = urldefrag(link.strip())
    fragment = fragment.strip()
    return fragment or None


class SessionClient:
    """One viewer of a session (think: a browser tab).

    Holds its own snapshot, writes through `actions`, and catches up on other
    viewers' writes with `refresh()`. Writes replace the whole session, so the
    last write wins.
    """

    def __init__(self, *, r: redis.Redis, rng: random.Random | None = None) -> None:
        self.r = r
        self.rng = rng
        self.origin = generate_id(rng=rng)
        self.session: GameSession | None = None
        self.user: User | None = None
        self._watcher: SessionWatcher | None = None
        self._listeners: list[SessionListener] = []

    # --- entry points ---

    def create(self, *, name: str, total_users: int, creator_name: str) -> GameSession:
        session = actions.create_session(
            r=self.r,
            name=name,
            total_users=total_users,
            creator_name=creator_name,
            origin=self.origin,
            rng=self.rng,
        )
        self._attach(session)
        self.user = session.users[0]
        return session

    def open(self, session_id: str) -> GameSession | None:
        session = get_session(r=self.r, session_id=session_id)
        if session is None:
            logger.info("Session %s not found", session_id)
            return None
        self._attach(session)
        return session

    def open_link(self, link: str) -> GameSession | None:
        session_id = session_id_from_link(link)
        if session_id is None:
            return None
        return self.open(session_id)

    def join(self, name: str) -> User:
        session = self._require()
        existing = engine.find_user_by_name(session, name)
        if existing is None:
            session = self._apply(
                actions.join_session(r=self.r, session=session, user_name=name, origin=self.origin, rng=self.rng)
            )
            existing = session.users[-1]
        self.user = existing
        return existing

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)
        if self._watcher is not None:
            self._watcher.add_listener(listener)

    def refresh(self, *, timeout: float = 0.0) -> GameSession | None:
        """Adopt the newest snapshot another viewer has written, if any."""

        if self._watcher is None:
            return self.session
        latest = self._watcher.poll(timeout=timeout)
        if latest is not None:
            self.session = latest
        return self.session

    def close(self) -> None:
        if self._watcher is not None:
            self._watcher.close()
            self._watcher = None

    # --- intents ---

    def add_resolution(self, text: str, note: str | None = None) -> GameSession:
        return self._apply(
            actions.add_resolution(
                r=self.r,
                session=self._require(),
                text=text,
                author_id=self._require_user().id,
                note=note,
                origin=self.origin,
                rng=self.rng,
            )
        )

    def update_note(self, resolution_id: str, note: str) -> GameSession:
        return self._apply(
            actions.update_resolution_note(
                r=self.r, session=self._require(), resolution_id=resolution_id, new_note=note, origin=self.origin
            )
        )

    def toggle_check(self, resolution_id: str) -> GameSession:
        return self._apply(
            actions.toggle_check(
                r=self.r,
                session=self._require(),
                user_id=self._require_user().id,
                resolution_id=resolution_id,
                origin=self.origin,
            )
        )

    def add_background_element(self, element: CanvasElement) -> GameSession:
        return self._apply(
            actions.add_background_element(r=self.r, session=self._require(), element=element, origin=self.origin)
        )

    def update_background(self, elements: list[CanvasElement]) -> GameSession:
        return self._apply(
            actions.update_background(r=self.r, session=self._require(), elements=elements, origin=self.origin)
        )

    def clear_background(self) -> GameSession:
        return self._apply(actions.clear_background(r=self.r, session=self._require(), origin=self.origin))

    def finalize(self) -> GameSession:
        return self._apply(
            actions.finalize_board(r=self.r, session=self._require(), origin=self.origin, rng=self.rng)
        )

    def revert(self) -> GameSession:
        return self._apply(actions.revert_to_edit(r=self.r, session=self._require(), origin=self.origin))

    # --- internals ---

    def _attach(self, session: GameSession) -> None:
        if self._watcher is None or self._watcher.channel.session_id != session.id:
            self.close()
            self._watcher = watch_session(r=self.r, session_id=session.id, origin=self.origin)
            for listener in self._listeners:
                self._watcher.add_listener(listener)
            self.user = None
        self.session = session

    def _apply(self, session: GameSession) -> GameSession:
        # Writers never hear their own notification; update locally.
        self.session = session
        return session

    def _require(self) -> GameSession:
        if self.session is None:
            raise ValueError("No session open")
        return self.session

    def _require_user(self) -> User:
        if self.user is None:
            raise ValueError("Join the session first")
        return self.user
