from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

CATEGORIES = ("beginner", "intermediate", "advanced", "master")
DEFAULT_COLOR = "#4F46E5"


@dataclass(frozen=True)
class BadgeSpec:
    key: str
    name: str
    required_streak: int
    icon: str = ""
    description: str = ""
    category: str = "beginner"
    color: str = DEFAULT_COLOR


DEFAULT_BADGES: tuple[BadgeSpec, ...] = (
    BadgeSpec("getting-started", "Getting Started", 3, "🥉", "First successful streak!", "beginner", "#6EE7B7"),
    BadgeSpec("weekly-warrior", "Weekly Warrior", 7, "🥈", "A full week of consistency!", "beginner", "#93C5FD"),
    BadgeSpec("fortnight-focus", "Fortnight Focus", 14, "🥇", "Two strong weeks!", "intermediate", "#FCD34D"),
    BadgeSpec("monthly-master", "Monthly Master", 30, "🏆", "A habit formed for real!", "advanced", "#F472B6"),
)


def ordered(catalog: Iterable[BadgeSpec]) -> List[BadgeSpec]:
    # sorted() is stable: equal thresholds keep catalog order
    return sorted(catalog, key=lambda b: b.required_streak)


def evaluate_new_badges(
    current_streak: int,
    already_earned: Iterable[str],
    catalog: Sequence[BadgeSpec] = DEFAULT_BADGES,
) -> List[str]:
    """Badge keys the streak has just unlocked, lowest threshold first."""
    earned = set(already_earned or ())
    out = []
    for badge in ordered(catalog):
        if badge.required_streak <= current_streak and badge.key not in earned:
            out.append(badge.key)
            earned.add(badge.key)
    return out


def eligible_badges(streak: int, catalog: Sequence[BadgeSpec] = DEFAULT_BADGES) -> List[BadgeSpec]:
    ranked = sorted(catalog, key=lambda b: b.required_streak, reverse=True)
    return [b for b in ranked if b.required_streak <= streak]
