"""Competition database models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from src.core.database import Base


class Competition(Base):
    """Competition configuration.

    Scores are never stored here; they are recomputed from workouts on
    every read.
    """

    __tablename__ = "competitions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    competition_name = Column(String, nullable=False)
    type = Column(String, nullable=False)  # streaks, apex, clash, targets, race

    # Dates - start_date is None until the owner starts the competition
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    workouts = Column(JSON, nullable=False)  # qualifying activity kinds
    options = Column(JSON, nullable=False)

    owner = Column(String, nullable=False, index=True)

    users = relationship(
        "CompetitionUser",
        back_populates="competition",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CompetitionUser.id",
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<Competition(id={self.id}, name='{self.competition_name}', type='{self.type}')>"


class CompetitionUser(Base):
    __tablename__ = "competition_users"
    __table_args__ = (UniqueConstraint("competition_id", "user_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    competition_id = Column(
        String(36),
        ForeignKey("competitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String, nullable=False, index=True)
    invite_status = Column(String, nullable=False)  # pending, accepted, declined

    competition = relationship("Competition", back_populates="users")

    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
