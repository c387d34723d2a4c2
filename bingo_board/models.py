from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


FREE_SPACE_ID = "FREE"
FREE_SPACE_TEXT = "FREE"
SYSTEM_AUTHOR_ID = "SYSTEM"


class _Model(BaseModel):
    # Persisted blobs use camelCase keys; attributes stay snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SessionPhase(StrEnum):
    EDIT = "EDIT"
    PLAY = "PLAY"


class ElementType(StrEnum):
    path = "path"
    text = "text"
    image = "image"


class User(_Model):
    id: str
    name: str
    color: str


class Resolution(_Model):
    id: str
    text: str
    author_id: str
    note: str | None = None

    # Only ever set on the synthetic center cell.
    is_free: bool | None = None
    grid_index: int | None = None


class Point(_Model):
    x: float
    y: float


class CanvasElement(_Model):
    id: str
    type: ElementType
    x: float
    y: float
    author_id: str

    color: str | None = None
    brush_size: float | None = None

    # Text body or image URL / data URL.
    content: str | None = None

    # Freehand strokes only.
    points: list[Point] | None = None

    width: float | None = None
    height: float | None = None


class GameSession(_Model):
    id: str
    name: str
    total_users: int
    grid_size: int
    users: list[User] = Field(default_factory=list)
    resolutions: list[Resolution] = Field(default_factory=list)

    # user id -> checked resolution ids, in check order.
    checks: dict[str, list[str]] = Field(default_factory=dict)

    phase: SessionPhase = SessionPhase.EDIT

    # Milliseconds since the Unix epoch.
    created_at: int

    background_elements: list[CanvasElement] = Field(default_factory=list)

    def user(self, user_id: str) -> User | None:
        return next((u for u in self.users if u.id == user_id), None)

    def resolution(self, resolution_id: str) -> Resolution | None:
        return next((r for r in self.resolutions if r.id == resolution_id), None)


class ValidationResult(_Model):
    valid: bool
    message: str | None = None


class LeaderboardEntry(_Model):
    user: User
    score: int
