"""Activity Schemas — Pydantic models for the action envelope and per-action payloads.

Invariants:
    - Wire fields are camelCase (alias_generator=to_camel); snake_case accepted too
    - All datetimes normalized to UTC; naive inputs are taken as UTC
    - ScheduleSpec: endTime > startTime; a missing endTime is startTime + duration
    - CapacitySpec: 1 <= minCount <= maxCount
    - Page size bounded by settings.max_page_size, page >= 1

Design Decisions:
    - Future-start check lives in the registry (needs the clock), not here
    - AliasChoices let create accept both the stored shape (dateTime / participants)
      and the descriptive shape (schedule / capacity)
    - Location is an opaque object: only city is interpreted (listing filter)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Literal
from uuid import UUID

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator,
)
from pydantic.alias_generators import to_camel

from app.config import get_settings
from app.core.domain_types import USER_ID_PATTERN, TimeRange


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Envelope -----------------------------------------------------------------

class ActionRequest(WireModel):
    """Single action envelope: {action, actor, data}."""
    action: str | None = None
    actor: str | None = Field(None, max_length=64, pattern=USER_ID_PATTERN)
    data: dict[str, Any] = Field(default_factory=dict)


class ActionResponse(BaseModel):
    """Result envelope returned for every action, success or failure."""
    code: int
    message: str
    data: Any = None
    timestamp: int


# --- Create -------------------------------------------------------------------

class LocationSpec(WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow",
    )
    name: str = ""
    address: str = ""
    city: str = Field("", max_length=64)
    district: str = ""
    latitude: float | None = None
    longitude: float | None = None


class ScheduleSpec(WireModel):
    start_time: datetime
    end_time: datetime | None = None
    duration: int = Field(120, ge=1, le=24 * 60)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        return _utc(v) if v is not None else None

    @model_validator(mode="after")
    def resolve_end(self) -> "ScheduleSpec":
        if self.end_time is None:
            self.end_time = self.start_time + timedelta(minutes=self.duration)
        elif self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class CapacitySpec(WireModel):
    max_count: int = Field(ge=1, le=1000)
    min_count: int = Field(2, ge=1)
    gender_limit: Literal["all", "male", "female"] = "all"
    age_range: tuple[int, int] = (18, 60)
    level_requirement: str = Field("all", max_length=32)

    @model_validator(mode="after")
    def check_bounds(self) -> "CapacitySpec":
        if self.min_count > self.max_count:
            raise ValueError("minCount cannot exceed maxCount")
        low, high = self.age_range
        if low > high:
            raise ValueError("ageRange must be [min, max]")
        return self


class FeeSpec(WireModel):
    amount: float = Field(0, ge=0)
    pay_type: str = "free"
    include_equipment: bool = False


class ActivityCreate(WireModel):
    """Create payload: everything an organizer supplies for a new activity."""
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=5_000)
    sport: str = Field(min_length=1, max_length=50)
    category: str = Field("", max_length=50)
    cover_image: str = ""
    images: list[str] = Field(default_factory=list, max_length=9)
    location: LocationSpec
    date_time: ScheduleSpec = Field(
        validation_alias=AliasChoices("dateTime", "date_time", "schedule"),
    )
    participants: CapacitySpec = Field(
        validation_alias=AliasChoices("participants", "capacity"),
    )
    fee: FeeSpec = Field(default_factory=FeeSpec)
    tags: list[str] = Field(default_factory=list, max_length=10)
    contact_info: dict[str, str] = Field(default_factory=dict)

    @field_validator("title", "description", "sport")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


# --- References ---------------------------------------------------------------

class ActivityRef(WireModel):
    activity_id: UUID


class MemberDecision(ActivityRef):
    """Organizer decision on one pending requester."""
    user_id: str = Field(min_length=1, max_length=64, pattern=USER_ID_PATTERN)


# --- Listing ------------------------------------------------------------------

StatusFilter = Literal["all", "recruiting", "ongoing", "cancelled", "completed"]


class PageParams(WireModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(default_factory=lambda: get_settings().default_page_size, ge=1)

    @field_validator("page_size")
    @classmethod
    def cap_page_size(cls, v: int) -> int:
        limit = get_settings().max_page_size
        if v > limit:
            raise ValueError(f"pageSize cannot exceed {limit}")
        return v


class ListFilters(PageParams):
    """Public list: status defaults to recruiting, "all" means recruiting + ongoing."""
    status: StatusFilter = "recruiting"
    sport: str = "all"
    time_range: TimeRange = TimeRange.ALL
    city: str | None = None
    location: LocationSpec | None = None

    @property
    def city_filter(self) -> str | None:
        if self.city:
            return self.city
        if self.location and self.location.city:
            return self.location.city
        return None


class MyListFilters(PageParams):
    """Personal lists: "all" means no status filter."""
    status: StatusFilter = "all"
