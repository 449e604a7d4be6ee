import json
import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator
from pydantic.alias_generators import to_camel

from event.constants import EventMode

TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p")
REQUIRED_LIST_MESSAGES = {
    "tags": "At least one tag is required",
    "agenda": "At least one agenda item is required",
}


def slugify(title: str) -> str:
    slug = title.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def sanitize_slug(slug: str) -> str:
    return slug.strip().lower()


def normalize_date(value: str) -> str:
    """Return the calendar date of ``value`` as YYYY-MM-DD."""
    raw = str(value).strip()
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date().isoformat()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        raise ValueError("Invalid date format. Use YYYY-MM-DD")


def normalize_time(value: str) -> str:
    """Return ``value`` as a 24-hour HH:MM string."""
    raw = " ".join(str(value).strip().upper().split())
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt).strftime("%H:%M")
        except ValueError:
            continue
    raise ValueError("Invalid time format. Use HH:MM or HH:MM AM/PM")


def parse_json_list(raw: str, field: str) -> list[str]:
    """Decode a JSON-stringified array of strings sent as a form field."""
    try:
        value = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        raise ValueError(f"{field} must be a JSON-encoded array")
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{field} must be a JSON array of strings")
    return value


def clean_items(items: list[str]) -> list[str]:
    cleaned = []
    for item in items:
        item = item.strip()
        if item and item not in cleaned:
            cleaned.append(item)
    return cleaned


class EventFieldValidators(BaseModel):
    """Validators shared by the create and update payloads."""

    @field_validator("title", check_fields=False)
    @classmethod
    def title_must_produce_slug(cls, value):
        if value is not None and not slugify(value):
            raise ValueError("Title must contain at least one letter or digit")
        return value

    @field_validator("mode", mode="before", check_fields=False)
    @classmethod
    def validate_mode(cls, value):
        if value is None:
            return value
        mode = str(value).strip().lower()
        if mode not in EventMode.values():
            raise ValueError(
                f"Invalid mode. Must be one of: {', '.join(EventMode.values())}"
            )
        return mode

    @field_validator("time", check_fields=False)
    @classmethod
    def validate_time(cls, value):
        return None if value is None else normalize_time(value)

    @field_validator("tags", "agenda", check_fields=False)
    @classmethod
    def clean_list(cls, value):
        return None if value is None else clean_items(value)


class EventCreate(EventFieldValidators):
    title: constr(strip_whitespace=True, min_length=1, max_length=100)
    description: constr(strip_whitespace=True, min_length=1, max_length=1000)
    overview: constr(strip_whitespace=True, min_length=1, max_length=500)
    venue: constr(strip_whitespace=True, min_length=1)
    location: constr(strip_whitespace=True, min_length=1)
    date: str
    time: str
    mode: str
    audience: constr(strip_whitespace=True, min_length=1)
    organizer: constr(strip_whitespace=True, min_length=1)
    tags: list[str]
    agenda: list[str]

    @field_validator("date")
    @classmethod
    def date_not_in_past(cls, value):
        normalized = normalize_date(value)
        if normalized < datetime.now().date().isoformat():
            raise ValueError("Event date cannot be in the past")
        return normalized

    @field_validator("tags", "agenda")
    @classmethod
    def require_items(cls, value, info):
        if not clean_items(value):
            raise ValueError(REQUIRED_LIST_MESSAGES[info.field_name])
        return value

    @property
    def slug(self) -> str:
        return slugify(self.title)


class EventUpdate(EventFieldValidators):
    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=100)] = None
    description: Optional[constr(strip_whitespace=True, min_length=1, max_length=1000)] = None
    overview: Optional[constr(strip_whitespace=True, min_length=1, max_length=500)] = None
    venue: Optional[constr(strip_whitespace=True, min_length=1)] = None
    location: Optional[constr(strip_whitespace=True, min_length=1)] = None
    date: Optional[str] = None
    time: Optional[str] = None
    mode: Optional[str] = None
    audience: Optional[constr(strip_whitespace=True, min_length=1)] = None
    organizer: Optional[constr(strip_whitespace=True, min_length=1)] = None
    tags: Optional[list[str]] = None
    agenda: Optional[list[str]] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, value):
        return None if value is None else normalize_date(value)


class EventOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(alias="_id")
    slug: str
    title: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    organizer: str
    tags: list[str]
    agenda: list[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_object_id(cls, value):
        return str(value)


class EventWithBookingsOut(EventOut):
    booked_spots: int = 0


class EventResponse(BaseModel):
    success: bool = True
    event: EventOut


class EventMutationResponse(BaseModel):
    message: str
    event: EventOut


class EventListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    events: list[EventOut]
    page: Optional[int] = None
    total_pages: Optional[int] = None
    total: Optional[int] = None


class EventBookingsListResponse(EventListResponse):
    events: list[EventWithBookingsOut]


class EventDeleteResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    deleted_bookings_count: int


class SimilarEventsResponse(BaseModel):
    events: list[EventOut]
