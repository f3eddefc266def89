import datetime as dt
from datetime import date, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


# ============ Auth Schemas ============

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)


class UserResponse(BaseModel):
    id: int
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    user_id: int | None = None


# ============ Entry Schemas ============

NOTE_MAX_LENGTH = 140


class ScreenTime(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def new_entry_id() -> str:
    return uuid4().hex[:12]


class DailyEntry(BaseModel):
    """A day's check-in. Serialized with camelCase keys, e.g. ``sleepHours``."""

    id: str = Field(default_factory=new_entry_id)
    date: date
    mood: int = Field(..., ge=1, le=5)
    sleep_hours: float = Field(..., ge=0)
    exercise_minutes: int = Field(..., ge=0)
    screen_time: ScreenTime
    note: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CheckIn(BaseModel):
    """What the daily check-in form submits."""

    id: str | None = None
    date: dt.date = Field(default_factory=dt.date.today)
    mood: int = Field(..., ge=1, le=5, description="1 (rough) to 5 (great)")
    sleep_hours: float = Field(7, ge=0)
    exercise_minutes: int = Field(0, ge=0)
    screen_time: ScreenTime
    note: str | None = Field(None, max_length=NOTE_MAX_LENGTH)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("note")
    @classmethod
    def strip_note(cls, v: str | None) -> str | None:
        return v.strip() if v else v

    def to_entry(self, existing: DailyEntry | None = None) -> DailyEntry:
        """Build the full entry, keeping the id and note of the day's existing entry."""
        if existing is not None and existing.date != self.date:
            existing = None
        entry_id = self.id or (existing.id if existing else None) or new_entry_id()
        note = self.note
        if note is None:
            note = existing.note if existing else ""
        return DailyEntry(
            id=entry_id,
            date=self.date,
            mood=self.mood,
            sleep_hours=self.sleep_hours,
            exercise_minutes=self.exercise_minutes,
            screen_time=self.screen_time,
            note=note,
        )


class DailyEntryListResponse(BaseModel):
    entries: list[DailyEntry]
    total: int


# ============ Insight Schemas ============

class TrendSummary(BaseModel):
    avg: float = 0
    trend: int = 0


class Finding(BaseModel):
    id: str
    title: str
    text: str
    metric: str | None = None
    tone: str = "neutral"


class ChartPoint(BaseModel):
    date: date
    day: int
    label: str
    mood: int


class InsightsResponse(BaseModel):
    summary: TrendSummary
    chart: list[ChartPoint]
    patterns: list[Finding]


class OnboardingStatus(BaseModel):
    scope: str
    onboarded: bool
