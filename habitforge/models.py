from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
from datetime import datetime
from .db import Base


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False)
    name = Column(String(120), nullable=False)
    target_days = Column(JSON, nullable=False, default=list)   # ["monday", ...] or ["daily"]
    start_date = Column(String(10), nullable=False)            # YYYY-MM-DD
    history = Column(JSON, nullable=False, default=dict)       # {"2025-04-29": "completed", ...}
    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)
    badges = Column(JSON, nullable=False, default=list)        # earned badge keys
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_habits_owner_name", "owner_id", "name"),
    )


class BadgeDefinition(Base):
    __tablename__ = "badge_definitions"

    id = Column(Integer, primary_key=True)
    key = Column(String(64), unique=True, nullable=False)  # e.g. "weekly-warrior"
    name = Column(String(120), nullable=False)
    icon = Column(String(64), nullable=False, default="")
    description = Column(String(240), nullable=False, default="")
    required_streak = Column(Integer, nullable=False)
    category = Column(String(32), nullable=False, default="beginner")
    color = Column(String(16), nullable=False, default="#4F46E5")

    __table_args__ = (
        Index("ix_badge_required_streak", "required_streak"),
    )
