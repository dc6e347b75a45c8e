import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from . import models, schemas
from .badges import BadgeSpec, DEFAULT_BADGES, eligible_badges, evaluate_new_badges
from .config import settings
from .streaks import (
    COMPLETED,
    DAILY,
    MISSED,
    WEEKDAYS,
    completion_rate,
    compute_streaks,
    format_day,
    is_target_day,
    normalize_target_days,
    parse_day,
)

logger = logging.getLogger(__name__)

VALID_STATUSES = (COMPLETED, MISSED, None)


class InvalidStatus(ValueError):
    def __init__(self, value):
        super().__init__(f"Status must be 'completed', 'missed' or null, got {value!r}")
        self.value = value


class HabitNotFound(LookupError):
    pass


class HabitAccessDenied(PermissionError):
    pass


class BadgeNotFound(LookupError):
    pass


class BadgeConflict(ValueError):
    pass


def ensure_badge_definitions(db: Session, defaults=DEFAULT_BADGES) -> int:
    existing = {k for (k,) in db.query(models.BadgeDefinition.key).all()}
    added = 0
    for spec in defaults:
        if spec.key in existing:
            continue
        db.add(models.BadgeDefinition(
            key=spec.key,
            name=spec.name,
            icon=spec.icon,
            description=spec.description,
            required_streak=spec.required_streak,
            category=spec.category,
            color=spec.color,
        ))
        added += 1
    db.commit()
    if added:
        logger.info("Seeded %d badge definition(s)", added)
    return added


def _to_spec(row: models.BadgeDefinition) -> BadgeSpec:
    return BadgeSpec(
        key=row.key,
        name=row.name,
        required_streak=row.required_streak,
        icon=row.icon,
        description=row.description,
        category=row.category,
        color=row.color,
    )


def list_badge_definitions(db: Session) -> List[models.BadgeDefinition]:
    return db.query(models.BadgeDefinition).order_by(
        models.BadgeDefinition.required_streak, models.BadgeDefinition.id
    ).all()


def load_badge_catalog(db: Session) -> List[BadgeSpec]:
    return [_to_spec(row) for row in list_badge_definitions(db)]


def get_badge_definition(db: Session, key: str) -> models.BadgeDefinition:
    row = db.query(models.BadgeDefinition).filter(models.BadgeDefinition.key == key).first()
    if not row:
        raise BadgeNotFound(key)
    return row


def create_badge_definition(db: Session, payload: schemas.BadgeCreate) -> models.BadgeDefinition:
    exists = db.query(models.BadgeDefinition).filter(models.BadgeDefinition.key == payload.key).first()
    if exists:
        raise BadgeConflict(payload.key)
    row = models.BadgeDefinition(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Created badge %s (streak %d)", row.key, row.required_streak)
    return row


def update_badge_definition(db: Session, key: str, payload: schemas.BadgeUpdate) -> models.BadgeDefinition:
    row = get_badge_definition(db, key)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def delete_badge_definition(db: Session, key: str) -> None:
    row = get_badge_definition(db, key)
    db.delete(row)
    db.commit()
    logger.info("Deleted badge %s", key)


def badges_for_streak(db: Session, streak: int) -> List[BadgeSpec]:
    return eligible_badges(streak, load_badge_catalog(db))


def _canonical_target_days(target_days) -> List[str]:
    days = normalize_target_days(target_days)
    return [d for d in WEEKDAYS + (DAILY,) if d in days]


def get_habit(db: Session, owner_id: str, habit_id: int) -> models.Habit:
    habit = db.query(models.Habit).filter(models.Habit.id == habit_id).first()
    if not habit:
        raise HabitNotFound(habit_id)
    if habit.owner_id != owner_id:
        raise HabitAccessDenied(habit_id)
    return habit


def list_habits(db: Session, owner_id: str) -> List[models.Habit]:
    return db.query(models.Habit).filter(models.Habit.owner_id == owner_id).order_by(models.Habit.id).all()


def list_habits_for_day(db: Session, owner_id: str, day=None) -> List[models.Habit]:
    day = parse_day(day) if day is not None else date.today()
    return [h for h in list_habits(db, owner_id) if is_target_day(day, h.target_days)]


def create_habit(db: Session, owner_id: str, payload: schemas.HabitCreate) -> models.Habit:
    habit = models.Habit(
        owner_id=owner_id,
        name=payload.name.strip(),
        target_days=_canonical_target_days(payload.target_days),
        start_date=format_day(parse_day(payload.start_date)),
        history={},
        current_streak=0,
        longest_streak=0,
        badges=[],
    )
    db.add(habit)
    db.commit()
    db.refresh(habit)
    logger.info("Created habit %s for owner %s", habit.id, owner_id)
    return habit


def _recompute(db: Session, habit: models.Habit, history: dict, today=None) -> List[str]:
    result = compute_streaks(
        history,
        habit.target_days,
        today=today,
        previous_longest_streak=habit.longest_streak,
        cap=settings.streak_lookback_cap,
    )
    earned = list(habit.badges or [])
    new_badges = evaluate_new_badges(result.current_streak, earned, load_badge_catalog(db))

    # assign fresh objects so the JSON columns are flagged dirty
    habit.history = history
    habit.current_streak = result.current_streak
    habit.longest_streak = result.longest_streak
    habit.badges = earned + new_badges
    logger.debug(
        "Habit %s streaks: current=%d longest=%d",
        habit.id, result.current_streak, result.longest_streak,
    )
    if new_badges:
        logger.info("Habit %s earned badges: %s", habit.id, ", ".join(new_badges))
    return new_badges


def update_habit_status(
    db: Session,
    owner_id: str,
    habit_id: int,
    day: str,
    status: Optional[str],
    today=None,
) -> Tuple[models.Habit, List[str]]:
    """Mark one day and recompute the habit's streaks and badges.

    ``status=None`` clears the day instead of storing a null. History, both
    counters and the badge list are committed together; the returned habit is
    the authoritative state clients should replace their local copy with.
    """
    if status not in VALID_STATUSES:
        raise InvalidStatus(status)
    key = format_day(parse_day(day))
    if today is not None:
        today = parse_day(today)

    habit = get_habit(db, owner_id, habit_id)
    history = dict(habit.history or {})
    if status is None:
        history.pop(key, None)
    else:
        history[key] = status
    logger.info("Habit %s: %s -> %s", habit_id, key, status or "cleared")

    new_badges = _recompute(db, habit, history, today=today)
    db.commit()
    db.refresh(habit)
    return habit, new_badges


def refresh_streaks(db: Session, owner_id: str, habit_id: int, today=None) -> Tuple[models.Habit, List[str]]:
    if today is not None:
        today = parse_day(today)
    habit = get_habit(db, owner_id, habit_id)
    new_badges = _recompute(db, habit, dict(habit.history or {}), today=today)
    db.commit()
    db.refresh(habit)
    return habit, new_badges


def update_habit(db: Session, owner_id: str, habit_id: int, payload: schemas.HabitUpdate) -> models.Habit:
    habit = get_habit(db, owner_id, habit_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in changes:
        habit.name = changes["name"].strip()
    if "start_date" in changes:
        habit.start_date = format_day(parse_day(changes["start_date"]))
    if "target_days" in changes:
        habit.target_days = _canonical_target_days(changes["target_days"])
        _recompute(db, habit, dict(habit.history or {}))
    db.commit()
    db.refresh(habit)
    return habit


def delete_habit(db: Session, owner_id: str, habit_id: int) -> None:
    habit = get_habit(db, owner_id, habit_id)
    db.delete(habit)
    db.commit()
    logger.info("Deleted habit %s for owner %s", habit_id, owner_id)


def compute_habit_stats(habit: models.Habit):
    history = habit.history or {}
    return dict(
        habit_id=habit.id,
        current_streak=habit.current_streak,
        longest_streak=habit.longest_streak,
        completed_days=sum(1 for v in history.values() if v == COMPLETED),
        missed_days=sum(1 for v in history.values() if v == MISSED),
        completion_rate=completion_rate(history),
        badges_earned=len(habit.badges or []),
    )
