from __future__ import annotations

import datetime
import random
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from santa_draw.core.roster import Roster
from santa_draw.db import Assignment, Draw, get_session
from santa_draw.db import repo
from santa_draw.services.assignment import ShuffleSource, generate_assignments, validate_assignments


class DrawError(RuntimeError):
    message = "Something went wrong with the draw."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class InvalidGiver(DrawError):
    message = 'Missing or invalid "giver" name.'


class UnknownParticipant(DrawError):
    message = "That name is not in the participant list."


class AlreadyRevealed(DrawError):
    message = "That person already drew a name."


class MissingAssignment(DrawError):
    message = "No assignment found. Try resetting the draw."


class PersistenceError(DrawError):
    message = "Could not save the draw. Please try again."


@dataclass(frozen=True)
class DrawSummary:
    draw_id: int
    participants: List[str]
    revealed: Dict[str, bool]
    remaining: int
    total: int
    taken_recipients: List[str]
    created_at: Optional[datetime.datetime]


@dataclass(frozen=True)
class RevealResult:
    giver: str
    recipient: str
    remaining: int
    total: int
    taken_recipients: List[str]


def _sort_timestamp(value: Optional[datetime.datetime]) -> datetime.datetime:
    if value is None:
        return datetime.datetime.max
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


class DrawManager:
    """Owns the persisted draw for one roster.

    The mapping for an epoch is generated once and then only read; a reveal
    flips the giver's flag and never regenerates anything.
    """

    def __init__(
        self,
        roster: Roster,
        session_scope=get_session,
        rng: Optional[ShuffleSource] = None,
        max_attempts: int = 1000,
    ) -> None:
        self.roster = roster
        self._session_scope = session_scope
        self._rng = rng
        self._max_attempts = max_attempts
        self._lock = threading.Lock()

    def load(self) -> DrawSummary:
        with self._lock, self._session_scope() as session:
            draw = repo.get_active_draw(session)
            if draw is not None and self._is_usable(session, draw):
                logger.bind(draw_id=draw.id).info("Loaded existing draw")
                return self._summarize(session, draw)

            if draw is None:
                logger.info("No active draw found. Generating a new one.")
            else:
                logger.bind(draw_id=draw.id).warning("Existing draw invalid or outdated. Rebuilding.")
            draw = self._regenerate(session, draw)
            return self._summarize(session, draw)

    def reset(self) -> DrawSummary:
        with self._lock, self._session_scope() as session:
            draw = self._regenerate(session, repo.get_active_draw(session))
            return self._summarize(session, draw)

    def summary(self) -> DrawSummary:
        with self._lock, self._session_scope() as session:
            draw = repo.get_active_draw(session)
            if draw is not None:
                return self._summarize(session, draw)
        return self.load()

    def reveal(self, giver) -> RevealResult:
        if not isinstance(giver, str) or not giver.strip():
            raise InvalidGiver()
        giver = giver.strip()
        if giver not in self.roster.participants:
            raise UnknownParticipant()

        try:
            with self._lock, self._session_scope() as session:
                draw = repo.get_active_draw(session)
                if draw is None:
                    raise MissingAssignment()

                assignment = repo.get_assignment(session, draw.id, giver)
                if assignment is None:
                    raise MissingAssignment()
                if assignment.revealed or not repo.mark_revealed(session, assignment):
                    raise AlreadyRevealed()

                recipient = assignment.recipient
                summary = self._summarize(session, draw)
                logger.bind(draw_id=draw.id, giver=giver).info("Recipient revealed")
        except SQLAlchemyError as exc:
            logger.bind(giver=giver).exception("Failed to persist draw: {error}", error=str(exc))
            raise PersistenceError() from exc

        return RevealResult(
            giver=giver,
            recipient=recipient,
            remaining=summary.remaining,
            total=summary.total,
            taken_recipients=summary.taken_recipients,
        )

    def _regenerate(self, session, previous: Optional[Draw]) -> Draw:
        seed = None
        if self._rng is None:
            seed = random.randint(1, 2**31 - 1)

        assignments = generate_assignments(
            self.roster.participants,
            exclusions=self.roster.exclusions,
            rng=self._rng,
            seed=seed,
            max_attempts=self._max_attempts,
        )

        if previous is not None:
            repo.archive_draw(session, previous)
            logger.bind(draw_id=previous.id).info("Draw archived")
        draw = repo.create_draw(session, self.roster.participants, assignments, seed=seed)
        logger.bind(draw_id=draw.id, seed=seed).info("Assignments generated")
        return draw

    def _is_usable(self, session, draw: Draw) -> bool:
        rows = repo.list_assignments(session, draw.id)
        if not self.roster.matches(row.giver for row in rows):
            return False
        mapping = {row.giver: row.recipient for row in rows}
        return validate_assignments(mapping, self.roster.participants, self.roster.exclusions)

    def _summarize(self, session, draw: Draw) -> DrawSummary:
        rows: List[Assignment] = repo.list_assignments(session, draw.id)
        revealed_rows = sorted(
            (row for row in rows if row.revealed),
            key=lambda row: (_sort_timestamp(row.revealed_at), row.position),
        )
        remaining = sum(1 for row in rows if not row.revealed)
        return DrawSummary(
            draw_id=draw.id,
            participants=[row.giver for row in rows],
            revealed={row.giver: bool(row.revealed) for row in rows},
            remaining=remaining,
            total=len(rows),
            taken_recipients=[row.recipient for row in revealed_rows],
            created_at=draw.created_at,
        )
