from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import expression, func

Base = declarative_base()


class DrawStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class Draw(Base):
    __tablename__ = "draws"

    id = Column(Integer, primary_key=True)
    status = Column(
        Enum(DrawStatus, name="draw_status", values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=DrawStatus.ACTIVE,
        server_default=DrawStatus.ACTIVE.value,
        index=True,
    )
    seed = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    archived_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Draw(id={self.id}, status={self.status}, created_at={self.created_at})>"


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True)
    draw_id = Column(Integer, ForeignKey("draws.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    giver = Column(String, nullable=False)
    recipient = Column(String, nullable=False)
    revealed = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    revealed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("draw_id", "giver", name="uq_assignments_draw_giver"),
        UniqueConstraint("draw_id", "recipient", name="uq_assignments_draw_recipient"),
    )

    def __repr__(self) -> str:
        return (
            "<Assignment(id={0}, draw_id={1}, giver={2}, revealed={3})>"
        ).format(self.id, self.draw_id, self.giver, self.revealed)
