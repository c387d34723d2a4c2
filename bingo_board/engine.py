"""Pure game rules for a bingo session.

Every function takes a session value and returns the next one. Nothing here
touches Redis; `bingo_board.actions` layers persistence on top.

When a call is rejected (board full, unknown id, wrong phase, ...) the input
session object itself is returned, so `new is old` means "nothing happened".
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from bingo_board.fsm import next_phase
from bingo_board.identity import generate_id, string_to_color
from bingo_board.models import (
    FREE_SPACE_ID,
    FREE_SPACE_TEXT,
    SYSTEM_AUTHOR_ID,
    CanvasElement,
    GameSession,
    LeaderboardEntry,
    Resolution,
    SessionPhase,
    User,
    ValidationResult,
)


logger = logging.getLogger(__name__)

MIN_GRID_SIZE = 5

_default_rng = random.Random()


def _now_ms() -> int:
    return int(datetime.now(tz=UTC).timestamp() * 1000)


def grid_size_for(total_users: int) -> int:
    """5x5 up to five players, otherwise the smallest odd size above the head count."""

    if total_users <= MIN_GRID_SIZE:
        return MIN_GRID_SIZE
    return total_users + 1 if total_users % 2 == 0 else total_users + 2


def center_index(grid_size: int) -> int:
    return (grid_size * grid_size) // 2


def max_resolutions(grid_size: int) -> int:
    return grid_size * grid_size - 1


def _user_resolutions(session: GameSession) -> list[Resolution]:
    return [r for r in session.resolutions if not r.is_free]


def validate_config(total_users: int | None) -> ValidationResult:
    if not total_users or total_users < 1:
        return ValidationResult(valid=False, message="Need at least 1 user.")
    return ValidationResult(valid=True)


def create_session(
    *,
    name: str,
    total_users: int,
    creator_name: str,
    rng: random.Random | None = None,
    clock: Callable[[], int] = _now_ms,
) -> GameSession:
    rng = rng or _default_rng
    creator = User(id=generate_id(rng=rng), name=creator_name, color=string_to_color(creator_name))
    return GameSession(
        id=generate_id(rng=rng),
        name=name,
        total_users=total_users,
        grid_size=grid_size_for(total_users),
        users=[creator],
        resolutions=[],
        checks={creator.id: []},
        phase=SessionPhase.EDIT,
        created_at=clock(),
        background_elements=[],
    )


def find_user_by_name(session: GameSession, name: str) -> User | None:
    wanted = name.lower()
    return next((u for u in session.users if u.name.lower() == wanted), None)


def join_session(session: GameSession, user_name: str, *, rng: random.Random | None = None) -> GameSession:
    if find_user_by_name(session, user_name) is not None:
        return session

    user = User(id=generate_id(rng=rng or _default_rng), name=user_name, color=string_to_color(user_name))
    return session.model_copy(
        update={
            "users": [*session.users, user],
            "checks": {**session.checks, user.id: []},
        }
    )


def open_indices(session: GameSession) -> list[int]:
    total = session.grid_size * session.grid_size
    center = center_index(session.grid_size)
    occupied = {r.grid_index for r in session.resolutions}
    return [i for i in range(total) if i != center and i not in occupied]


def add_resolution(
    session: GameSession,
    text: str,
    author_id: str,
    note: str | None = None,
    *,
    rng: random.Random | None = None,
) -> GameSession:
    if session.phase != SessionPhase.EDIT:
        logger.debug("add_resolution ignored: session %s is in %s", session.id, session.phase)
        return session
    if not text.strip():
        return session
    if len(_user_resolutions(session)) >= max_resolutions(session.grid_size):
        logger.debug("add_resolution ignored: board full for session %s", session.id)
        return session

    available = open_indices(session)
    if not available:
        return session

    rng = rng or _default_rng
    resolution = Resolution(
        id=generate_id(rng=rng),
        text=text,
        note=note,
        author_id=author_id,
        grid_index=rng.choice(available),
    )
    return session.model_copy(update={"resolutions": [*session.resolutions, resolution]})


def update_resolution_note(session: GameSession, resolution_id: str, new_note: str) -> GameSession:
    target = session.resolution(resolution_id)
    if target is None or target.is_free:
        return session

    resolutions = [
        r.model_copy(update={"note": new_note}) if r.id == resolution_id else r for r in session.resolutions
    ]
    return session.model_copy(update={"resolutions": resolutions})


def toggle_check(session: GameSession, user_id: str, resolution_id: str) -> GameSession:
    if session.user(user_id) is None:
        logger.debug("toggle_check ignored: unknown user %s", user_id)
        return session
    target = session.resolution(resolution_id)
    if target is None or target.is_free:
        return session

    current = session.checks.get(user_id, [])
    if resolution_id in current:
        updated = [rid for rid in current if rid != resolution_id]
    else:
        updated = [*current, resolution_id]
    return session.model_copy(update={"checks": {**session.checks, user_id: updated}})


def is_checked(session: GameSession, user_id: str, resolution: Resolution) -> bool:
    if resolution.is_free:
        return True
    return resolution.id in session.checks.get(user_id, [])


def update_background(session: GameSession, elements: Sequence[CanvasElement]) -> GameSession:
    return session.model_copy(update={"background_elements": list(elements)})


def add_background_element(session: GameSession, element: CanvasElement) -> GameSession:
    return update_background(session, [*session.background_elements, element])


def clear_background(session: GameSession) -> GameSession:
    return update_background(session, [])


def _free_space(index: int) -> Resolution:
    return Resolution(
        id=FREE_SPACE_ID,
        text=FREE_SPACE_TEXT,
        author_id=SYSTEM_AUTHOR_ID,
        is_free=True,
        grid_index=index,
    )


def finalize_board(session: GameSession, *, rng: random.Random | None = None) -> GameSession:
    """Lock the board: shuffle the goals into grid order around the free center.

    With fewer goals than cells the trailing cells stay empty.
    """

    phase = next_phase(session.phase, "finalize")
    if phase is None:
        logger.debug("finalize_board ignored: session %s is in %s", session.id, session.phase)
        return session

    shuffled = _user_resolutions(session)
    (rng or _default_rng).shuffle(shuffled)

    total = session.grid_size * session.grid_size
    center = center_index(session.grid_size)
    pending = iter(shuffled)

    laid_out: list[Resolution] = []
    for i in range(total):
        if i == center:
            laid_out.append(_free_space(i))
            continue
        res = next(pending, None)
        if res is not None:
            laid_out.append(res.model_copy(update={"grid_index": i}))

    return session.model_copy(update={"resolutions": laid_out, "phase": phase})


def revert_to_edit(session: GameSession) -> GameSession:
    """Reopen editing. Goals keep their grid slots and checks are kept."""

    phase = next_phase(session.phase, "revert")
    if phase is None:
        logger.debug("revert_to_edit ignored: session %s is in %s", session.id, session.phase)
        return session

    return session.model_copy(update={"resolutions": _user_resolutions(session), "phase": phase})


def grid_cells(session: GameSession) -> list[Resolution | None]:
    cells: list[Resolution | None] = [None] * (session.grid_size * session.grid_size)
    for r in session.resolutions:
        if r.grid_index is not None and 0 <= r.grid_index < len(cells):
            cells[r.grid_index] = r
    return cells


def remaining_slots(session: GameSession) -> int:
    return max(0, max_resolutions(session.grid_size) - len(_user_resolutions(session)))


def is_board_full(session: GameSession) -> bool:
    return remaining_slots(session) == 0


def leaderboard(session: GameSession) -> list[LeaderboardEntry]:
    entries = [LeaderboardEntry(user=u, score=len(session.checks.get(u.id, []))) for u in session.users]
    # sorted() is stable: ties keep join order.
    return sorted(entries, key=lambda e: e.score, reverse=True)
