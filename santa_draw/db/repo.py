from __future__ import annotations

import datetime
from typing import List, Mapping, Optional, Sequence

from sqlalchemy import and_, func, select, update
from sqlalchemy.orm.attributes import set_committed_value

from santa_draw.db.models import Assignment, Draw, DrawStatus


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def get_active_draw(session) -> Optional[Draw]:
    return session.scalar(
        select(Draw).where(Draw.status == DrawStatus.ACTIVE).order_by(Draw.id.desc()).limit(1)
    )


def create_draw(
    session,
    participants: Sequence[str],
    assignments: Mapping[str, str],
    seed: Optional[int] = None,
) -> Draw:
    draw = Draw(status=DrawStatus.ACTIVE, seed=seed, created_at=utcnow())
    session.add(draw)
    session.flush()

    rows = [
        Assignment(
            draw_id=draw.id,
            position=position,
            giver=giver,
            recipient=assignments[giver],
            revealed=False,
        )
        for position, giver in enumerate(participants)
    ]
    session.add_all(rows)
    session.flush()
    return draw


def archive_draw(session, draw: Draw) -> None:
    draw.status = DrawStatus.ARCHIVED
    draw.archived_at = utcnow()
    session.flush()


def list_assignments(session, draw_id: int) -> List[Assignment]:
    return list(
        session.scalars(
            select(Assignment).where(Assignment.draw_id == draw_id).order_by(Assignment.position)
        ).all()
    )


def get_assignment(session, draw_id: int, giver: str) -> Optional[Assignment]:
    return session.scalar(
        select(Assignment).where(and_(Assignment.draw_id == draw_id, Assignment.giver == giver))
    )


def mark_revealed(session, assignment: Assignment, revealed_at: Optional[datetime.datetime] = None) -> bool:
    revealed_at = revealed_at or utcnow()
    result = session.execute(
        update(Assignment)
        .where(and_(Assignment.id == assignment.id, Assignment.revealed.is_(False)))
        .values(revealed=True, revealed_at=revealed_at)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        return False
    set_committed_value(assignment, "revealed", True)
    set_committed_value(assignment, "revealed_at", revealed_at)
    return True


def count_draws(session, status: Optional[DrawStatus] = None) -> int:
    query = select(func.count()).select_from(Draw)
    if status is not None:
        query = query.where(Draw.status == status)
    return session.scalar(query)
