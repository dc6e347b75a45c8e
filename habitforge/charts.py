from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from io import BytesIO
from typing import List, Mapping, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.colors import ListedColormap  # noqa: E402

from .streaks import COMPLETED, MISSED, format_day  # noqa: E402

# missed, absent, completed
HEATMAP_COLORS = ListedColormap(["#F87171", "#E5E7EB", "#34D399"])
ROW_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


@dataclass(frozen=True)
class StreakCard:
    habit_name: str
    current_streak: int
    longest_streak: int
    completion_rate: float
    completed_days: int
    missed_days: int
    badges: List[str] = field(default_factory=list)


def render_streak_card_png(card: StreakCard) -> bytes:
    fig = plt.figure(figsize=(9, 5), dpi=160)
    ax = fig.add_subplot(111)
    ax.axis("off")

    lines = [
        f"Current streak: {card.current_streak}",
        f"Longest streak: {card.longest_streak}",
        f"Completion: {card.completion_rate:.2f}%",
        f"Completed days: {card.completed_days}",
        f"Missed days: {card.missed_days}",
        f"Badges: {', '.join(card.badges) if card.badges else '-'}",
    ]

    ax.text(0.03, 0.92, card.habit_name, fontsize=18, fontweight="bold", va="top")
    y = 0.80
    for ln in lines:
        ax.text(0.05, y, ln, fontsize=14, va="top")
        y -= 0.10

    buf = BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight", pad_inches=0.3)
    plt.close(fig)
    return buf.getvalue()


def heatmap_grid(history: Mapping[str, Optional[str]], today: date, weeks: int) -> List[List[int]]:
    """7 x weeks grid of -1 (missed), 0 (absent), 1 (completed).

    Columns are Monday-aligned weeks, the last column holding ``today``.
    Days after ``today`` stay absent.
    """
    first = today - timedelta(days=today.weekday()) - timedelta(weeks=weeks - 1)
    grid = [[0] * weeks for _ in range(7)]
    for col in range(weeks):
        for row in range(7):
            d = first + timedelta(weeks=col, days=row)
            if d > today:
                continue
            status = history.get(format_day(d))
            if status == COMPLETED:
                grid[row][col] = 1
            elif status == MISSED:
                grid[row][col] = -1
    return grid


def render_history_heatmap_png(
    history: Mapping[str, Optional[str]],
    today: date,
    weeks: int = 12,
    title: str = "History",
) -> bytes:
    grid = heatmap_grid(history, today, weeks)

    fig = plt.figure(figsize=(max(4, weeks * 0.45), 3.2), dpi=160)
    ax = fig.add_subplot(111)
    ax.imshow(grid, cmap=HEATMAP_COLORS, vmin=-1, vmax=1, aspect="equal")
    ax.set_title(title)
    ax.set_yticks(range(7))
    ax.set_yticklabels(ROW_LABELS)
    ax.set_xticks([])
    for spine in ax.spines.values():
        spine.set_visible(False)

    buf = BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight", pad_inches=0.2)
    plt.close(fig)
    return buf.getvalue()
