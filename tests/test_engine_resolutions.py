from __future__ import annotations

import random

from bingo_board import engine
from bingo_board.models import FREE_SPACE_ID, GameSession


def _fresh(rng: random.Random, total_users: int = 4) -> GameSession:
    return engine.create_session(name="Trip 2025", total_users=total_users, creator_name="Ava", rng=rng)


def _fill(session: GameSession, rng: random.Random, count: int) -> GameSession:
    author = session.users[0].id
    for i in range(count):
        session = engine.add_resolution(session, f"goal {i}", author, rng=rng)
    return session


def test_add_resolution_fills_every_non_center_cell_once(rng: random.Random) -> None:
    session = _fill(_fresh(rng), rng, 24)

    indices = [r.grid_index for r in session.resolutions]
    assert len(indices) == 24
    assert sorted(indices) == [i for i in range(25) if i != 12]
    assert engine.is_board_full(session)
    assert engine.remaining_slots(session) == 0


def test_add_resolution_never_uses_center(rng: random.Random) -> None:
    session = _fresh(rng, total_users=7)
    center = engine.center_index(session.grid_size)
    assert center == 40

    session = _fill(session, rng, 30)
    assert center not in {r.grid_index for r in session.resolutions}


def test_add_resolution_is_noop_when_full(rng: random.Random) -> None:
    full = _fill(_fresh(rng), rng, 24)
    again = engine.add_resolution(full, "one too many", full.users[0].id, rng=rng)
    assert again is full
    assert len(again.resolutions) == 24


def test_add_resolution_keeps_note_and_author(rng: random.Random) -> None:
    session = _fresh(rng)
    author = session.users[0].id
    session = engine.add_resolution(session, "Run a 10k", author, "spring race", rng=rng)

    (res,) = session.resolutions
    assert res.text == "Run a 10k"
    assert res.note == "spring race"
    assert res.author_id == author
    assert not res.is_free


def test_add_resolution_rejects_blank_text(rng: random.Random) -> None:
    session = _fresh(rng)
    assert engine.add_resolution(session, "   ", session.users[0].id, rng=rng) is session


def test_add_resolution_only_in_edit_phase(rng: random.Random) -> None:
    session = engine.finalize_board(_fill(_fresh(rng), rng, 5), rng=rng)
    assert engine.add_resolution(session, "late idea", session.users[0].id, rng=rng) is session


def test_placement_is_reproducible_with_seeded_rng() -> None:
    def placements(seed: int) -> list[int | None]:
        rng = random.Random(seed)
        session = _fill(_fresh(rng), rng, 10)
        return [r.grid_index for r in session.resolutions]

    assert placements(42) == placements(42)


def test_update_resolution_note(rng: random.Random) -> None:
    session = _fill(_fresh(rng), rng, 2)
    target = session.resolutions[1]

    updated = engine.update_resolution_note(session, target.id, "with friends")
    assert updated.resolution(target.id).note == "with friends"
    assert updated.resolutions[0] == session.resolutions[0]
    assert session.resolution(target.id).note is None

    assert engine.update_resolution_note(session, "missing", "x") is session


def test_update_resolution_note_ignores_free_space(rng: random.Random) -> None:
    session = engine.finalize_board(_fill(_fresh(rng), rng, 24), rng=rng)
    assert engine.update_resolution_note(session, FREE_SPACE_ID, "bonus") is session
