import datetime
import itertools

import pytest
from sqlalchemy.exc import SQLAlchemyError

from santa_draw.core.roster import build_roster
from santa_draw.db import DrawStatus, create_schema, get_session, init_engine
from santa_draw.db import repo
from santa_draw.services.assignment import Infeasible, validate_assignments
from santa_draw.services.draw_state import (
    AlreadyRevealed,
    DrawManager,
    InvalidGiver,
    MissingAssignment,
    PersistenceError,
    UnknownParticipant,
)

FAMILY = ["Alice", "Bob", "Charlie", "Danielle"]


class FixedShuffle:
    def __init__(self, order):
        self.order = list(order)

    def shuffle(self, items):
        items[:] = self.order


@pytest.fixture
def database(tmp_path):
    engine = init_engine(f"sqlite+pysqlite:///{tmp_path / 'santa.db'}")
    create_schema(engine)
    yield engine
    engine.dispose()


def create_manager(participants=FAMILY, exclusions=None, **kwargs):
    return DrawManager(build_roster(participants, exclusions), **kwargs)


def stored_mapping():
    with get_session() as session:
        draw = repo.get_active_draw(session)
        return {row.giver: row.recipient for row in repo.list_assignments(session, draw.id)}


def count_draws(status=None):
    with get_session() as session:
        return repo.count_draws(session, status)


def test_load_creates_first_draw(database):
    summary = create_manager().load()

    assert summary.participants == FAMILY
    assert summary.total == 4
    assert summary.remaining == 4
    assert summary.revealed == {name: False for name in FAMILY}
    assert summary.taken_recipients == []
    assert summary.created_at is not None
    assert validate_assignments(stored_mapping(), FAMILY)


def test_load_respects_roster_exclusions(database):
    manager = create_manager(exclusions={"Alice": ["Bob"]})
    manager.load()
    mapping = stored_mapping()
    assert mapping["Alice"] != "Bob"
    assert mapping["Bob"] != "Alice"


def test_load_reuses_existing_draw(database):
    first = create_manager().load()
    mapping = stored_mapping()

    second = create_manager().load()

    assert second.draw_id == first.draw_id
    assert stored_mapping() == mapping
    assert count_draws() == 1


def test_reveal_state_survives_restart(database):
    create_manager().load()
    create_manager().reveal("Alice")

    summary = create_manager().load()

    assert summary.revealed["Alice"] is True
    assert summary.remaining == 3


def test_roster_change_starts_new_epoch(database):
    first = create_manager().load()

    summary = create_manager(FAMILY + ["Erin"]).load()

    assert summary.draw_id != first.draw_id
    assert summary.total == 5
    assert count_draws(DrawStatus.ARCHIVED) == 1
    assert count_draws(DrawStatus.ACTIVE) == 1


def test_stored_mapping_breaking_new_exclusions_is_rebuilt(database):
    forced = create_manager(rng=FixedShuffle(["Bob", "Alice", "Danielle", "Charlie"]))
    first = forced.load()
    assert stored_mapping()["Alice"] == "Bob"

    summary = create_manager(exclusions={"Alice": ["Bob"]}).load()

    assert summary.draw_id != first.draw_id
    assert stored_mapping()["Alice"] != "Bob"


def test_reveal_discloses_only_own_recipient(database):
    manager = create_manager()
    manager.load()
    mapping = stored_mapping()

    result = manager.reveal("Charlie")

    assert result.giver == "Charlie"
    assert result.recipient == mapping["Charlie"]
    assert result.remaining == 3
    assert result.total == 4
    assert result.taken_recipients == [mapping["Charlie"]]
    assert stored_mapping() == mapping


def test_reveal_strips_whitespace(database):
    manager = create_manager()
    manager.load()
    assert manager.reveal("  Bob ").giver == "Bob"


def test_reveal_twice_is_rejected(database):
    manager = create_manager()
    manager.load()
    manager.reveal("Alice")

    with pytest.raises(AlreadyRevealed):
        manager.reveal("Alice")


def test_concurrent_reveal_only_one_wins(database):
    draw_id = create_manager().load().draw_id
    first_at = datetime.datetime(2026, 12, 1, 12, 0, tzinfo=datetime.timezone.utc)
    second_at = first_at + datetime.timedelta(minutes=5)

    with get_session() as slow:
        stale = repo.get_assignment(slow, draw_id, "Alice")
        with get_session() as fast:
            fresh = repo.get_assignment(fast, draw_id, "Alice")
            assert repo.mark_revealed(fast, fresh, revealed_at=first_at) is True
        assert stale.revealed is False
        assert repo.mark_revealed(slow, stale, revealed_at=second_at) is False

    with get_session() as session:
        stored = repo.get_assignment(session, draw_id, "Alice")
        assert stored.revealed is True
        assert stored.revealed_at.replace(tzinfo=None) == first_at.replace(tzinfo=None)


def test_reveal_rejects_unknown_and_invalid_givers(database):
    manager = create_manager()
    manager.load()

    with pytest.raises(UnknownParticipant):
        manager.reveal("Mallory")
    with pytest.raises(InvalidGiver):
        manager.reveal("")
    with pytest.raises(InvalidGiver):
        manager.reveal(None)
    with pytest.raises(InvalidGiver):
        manager.reveal(42)


def test_reveal_without_assignment_row(database):
    create_manager(["Alice", "Bob", "Charlie"]).load()
    manager = create_manager(["Alice", "Bob", "Charlie", "Danielle"])

    with pytest.raises(MissingAssignment):
        manager.reveal("Danielle")


def test_failed_save_keeps_giver_unrevealed(database, monkeypatch):
    manager = create_manager()
    manager.load()

    def broken(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(repo, "mark_revealed", broken)
    with pytest.raises(PersistenceError):
        manager.reveal("Alice")
    monkeypatch.undo()

    assert manager.summary().revealed["Alice"] is False
    assert manager.reveal("Alice").giver == "Alice"


def test_taken_recipients_follow_reveal_order(database, monkeypatch):
    start = datetime.datetime(2026, 12, 1, 12, 0, tzinfo=datetime.timezone.utc)
    ticks = itertools.count()
    monkeypatch.setattr(repo, "utcnow", lambda: start + datetime.timedelta(minutes=next(ticks)))

    manager = create_manager()
    manager.load()
    mapping = stored_mapping()

    manager.reveal("Danielle")
    manager.reveal("Alice")

    summary = manager.summary()
    assert summary.taken_recipients == [mapping["Danielle"], mapping["Alice"]]
    assert summary.remaining == 2


def test_reset_starts_fresh_epoch(database):
    manager = create_manager()
    first = manager.load()
    manager.reveal("Alice")

    summary = manager.reset()

    assert summary.draw_id != first.draw_id
    assert summary.remaining == summary.total == 4
    assert summary.taken_recipients == []
    assert count_draws(DrawStatus.ARCHIVED) == 1
    assert validate_assignments(stored_mapping(), FAMILY)


def test_failed_reset_keeps_previous_draw(database):
    first = create_manager(["Alice", "Bob", "Charlie"]).load()
    mapping = stored_mapping()

    strict = create_manager(
        ["Alice", "Bob", "Charlie"], exclusions={"Alice": ["Bob"]}, max_attempts=20
    )
    with pytest.raises(Infeasible):
        strict.reset()

    with get_session() as session:
        assert repo.get_active_draw(session).id == first.draw_id
    assert stored_mapping() == mapping
    assert count_draws() == 1


def test_summary_loads_when_nothing_is_stored(database):
    summary = create_manager().summary()
    assert summary.total == 4
    assert count_draws() == 1
