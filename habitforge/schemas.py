from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    target_days: List[str] = Field(min_length=1)
    start_date: str


class HabitUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    target_days: Optional[List[str]] = Field(default=None, min_length=1)
    start_date: Optional[str] = None


class HabitOut(BaseModel):
    id: int
    owner_id: str
    name: str
    target_days: List[str]
    start_date: str
    history: Dict[str, str]
    current_streak: int
    longest_streak: int
    badges: List[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StatusUpdate(BaseModel):
    date: str
    status: Optional[str]             # "completed" | "missed" | null (clears the day), must be sent
    today: Optional[str] = None       # overrides the server's clock


class StatusUpdateOut(BaseModel):
    habit: HabitOut
    new_badges: List[str]


class HabitStatsOut(BaseModel):
    habit_id: int
    current_streak: int
    longest_streak: int
    completed_days: int
    missed_days: int
    completion_rate: float
    badges_earned: int


class BadgeCreate(BaseModel):
    key: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=120)
    required_streak: int = Field(ge=1)
    icon: str = Field(default="", max_length=64)
    description: str = Field(default="", max_length=240)
    category: str = Field(default="beginner", pattern="^(beginner|intermediate|advanced|master)$")
    color: str = Field(default="#4F46E5", max_length=16)


class BadgeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    required_streak: Optional[int] = Field(default=None, ge=1)
    icon: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = Field(default=None, max_length=240)
    category: Optional[str] = Field(default=None, pattern="^(beginner|intermediate|advanced|master)$")
    color: Optional[str] = Field(default=None, max_length=16)


class BadgeOut(BaseModel):
    key: str
    name: str
    required_streak: int
    icon: str
    description: str
    category: str
    color: str

    class Config:
        from_attributes = True
