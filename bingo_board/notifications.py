from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass

import redis
from pydantic import ValidationError

from bingo_board.models import GameSession


logger = logging.getLogger(__name__)

SessionListener = Callable[[GameSession], None]


@dataclass(frozen=True, slots=True)
class SessionChannel:
    session_id: str
    key_prefix: str

    @property
    def key(self) -> str:
        return f"{self.key_prefix}{self.session_id}:updates"


@dataclass(frozen=True, slots=True)
class SessionUpdate:
    """One change notification: the storage key, the new blob and who wrote it."""

    key: str
    value: str
    origin: str | None

    def to_json(self) -> str:
        return json.dumps({"key": self.key, "value": self.value, "origin": self.origin})

    @staticmethod
    def from_json(raw: str) -> "SessionUpdate":
        data = json.loads(raw)
        return SessionUpdate(key=str(data["key"]), value=str(data["value"]), origin=data.get("origin"))


def publish_session_update(*, r: redis.Redis, channel: SessionChannel, update: SessionUpdate) -> int:
    """Fire-and-forget broadcast. Returns the number of subscribers reached."""

    return int(r.publish(channel.key, update.to_json()))


class SessionWatcher:
    """Subscribes to one session's change notifications.

    Contract:
      - `poll()` drains everything pending and returns the newest snapshot
        written by someone else since our own last write, or None.
      - updates carrying our own `origin` are not delivered (the writer already
        holds its result) but they do supersede anything queued before them.
      - listeners registered with `add_listener` get the snapshot `poll()` returns,
        once per call, and only when it is not None.
    """

    def __init__(self, *, r: redis.Redis, channel: SessionChannel, origin: str | None = None) -> None:
        self.channel = channel
        self.origin = origin
        self._listeners: list[SessionListener] = []
        self._pubsub = r.pubsub()
        self._pubsub.subscribe(channel.key)

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def poll(self, *, timeout: float = 0.0) -> GameSession | None:
        latest: GameSession | None = None
        while True:
            message = self._pubsub.get_message(timeout=timeout)
            if message is None:
                break
            if message.get("type") != "message":
                continue
            update = self._parse(message.get("data"))
            if update is None:
                continue
            if self.origin is not None and update.origin == self.origin:
                latest = None
                continue
            snapshot = self._load(update)
            if snapshot is None:
                continue
            latest = snapshot
        if latest is not None:
            for listener in self._listeners:
                listener(latest)
        return latest

    def _parse(self, data: object) -> SessionUpdate | None:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        if not isinstance(data, str):
            return None
        try:
            return SessionUpdate.from_json(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Dropping malformed update on %s: %s", self.channel.key, e)
            return None

    def _load(self, update: SessionUpdate) -> GameSession | None:
        try:
            return GameSession.model_validate_json(update.value)
        except ValidationError as e:
            logger.warning("Dropping unreadable snapshot for %s: %s", update.key, e)
            return None

    def close(self) -> None:
        try:
            self._pubsub.unsubscribe(self.channel.key)
        finally:
            self._pubsub.close()
