"""Pydantic models for the records the site persists.

Python code uses snake_case attributes. The JSON files and the browser keep
the camelCase keys the site has always used (startISO, serviceType, ...),
so every record validates from either spelling and dumps by alias.

Input is coerced leniently: a missing or null text field becomes "", and
numbers sent where text is expected are stringified.
"""
import math
import uuid
from datetime import datetime, UTC
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dunesea import config


def make_id() -> str:
    return str(uuid.uuid4())


def now_stamp() -> str:
    """Current UTC time as an ISO string with millisecond precision and a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def default_image_path() -> str:
    return f"/uploads/{config.DEFAULT_IMAGE_FILE}"


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def _as_price(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(price) or math.isinf(price):
        return None
    return price


def _as_hour(value: Any) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ValueError(f"Invalid hour: {value!r}")
    try:
        hour = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid hour: {value!r}")
    if math.isnan(hour) or math.isinf(hour):
        raise ValueError(f"Invalid hour: {value!r}")
    return int(hour)


class Record(BaseModel):
    """Base for persisted records."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        """Dump with the camelCase keys used on disk and over HTTP."""
        return self.model_dump(by_alias=True)


class Appointment(Record):
    """A pending request or a booked (accepted) job."""
    id: str = Field(default_factory=make_id)
    start_iso: str = Field("", alias="startISO")
    slots: int = Field(default_factory=lambda: config.SCHEDULE_SETTINGS["appointment_duration_slots"])
    name: str = ""
    phone: str = ""
    email: str = ""
    service_type: str = Field("", alias="serviceType")
    appliance: str = ""
    notes: str = ""
    status: Literal["pending", "accepted"] = "pending"
    created_iso: str = Field(default_factory=now_stamp, alias="createdISO")

    @field_validator("start_iso", "name", "phone", "email", "service_type", "appliance", "notes",
                     mode="before")
    @classmethod
    def _text(cls, v):
        return _as_text(v)

    @field_validator("id", mode="before")
    @classmethod
    def _id_or_new(cls, v):
        return _as_text(v) or make_id()

    @field_validator("created_iso", mode="before")
    @classmethod
    def _created_or_now(cls, v):
        return _as_text(v) or now_stamp()

    @field_validator("slots", mode="before")
    @classmethod
    def _slot_count(cls, v):
        try:
            count = int(float(v))
        except (TypeError, ValueError, OverflowError):
            return config.SCHEDULE_SETTINGS["appointment_duration_slots"]
        return min(max(count, 1), 8)


class DayHours(BaseModel):
    """Working hours for one weekday in the weekly template."""
    enabled: bool = False
    start: int = Field(8, ge=0, le=23)
    end: int = Field(18, ge=1, le=24)

    @field_validator("enabled", mode="before")
    @classmethod
    def _truthy(cls, v):
        return bool(v)

    @model_validator(mode="before")
    @classmethod
    def _clamp_hours(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "start" in data:
            data["start"] = min(max(_as_hour(data["start"]), 0), 23)
        if "end" in data:
            data["end"] = min(max(_as_hour(data["end"]), 1), 24)
        return data

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end < self.start + 1:
            self.end = self.start + 1
        return self


class Availability(BaseModel):
    """Weekly template plus specific blocked slots.

    weekly: {"0".."6": DayHours}, 0 = Sunday
    blocks: {"YYYY-MM-DD": ["08:00", "10:00", ...]}
    """
    weekly: Dict[str, DayHours]
    blocks: Dict[str, List[str]] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump()


class InventoryItem(Record):
    """An appliance listed for sale or rent."""
    id: str = Field(default_factory=make_id)
    title: str = ""
    model: str = ""
    buy_price: Optional[float] = Field(None, alias="buyPrice")
    rent_price: Optional[float] = Field(None, alias="rentPrice")
    status: Literal["available", "unavailable"] = "unavailable"
    note: str = ""
    image_path: str = Field(default_factory=default_image_path, alias="imagePath")

    @field_validator("title", "model", "note", mode="before")
    @classmethod
    def _text(cls, v):
        return _as_text(v)

    @field_validator("id", mode="before")
    @classmethod
    def _id_or_new(cls, v):
        return _as_text(v) or make_id()

    @field_validator("buy_price", "rent_price", mode="before")
    @classmethod
    def _price(cls, v):
        return _as_price(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return "available" if _as_text(v) == "available" else "unavailable"

    @field_validator("image_path", mode="before")
    @classmethod
    def _only_uploads(cls, v):
        # Only paths under /uploads are ever served back
        path = _as_text(v)
        if not path.startswith("/uploads/"):
            return default_image_path()
        return path


class GalleryPhoto(Record):
    id: str = Field(default_factory=make_id)
    image_path: str = Field(default_factory=default_image_path, alias="imagePath")
    caption: str = ""
    created_iso: str = Field(default_factory=now_stamp, alias="createdISO")

    @field_validator("caption", mode="before")
    @classmethod
    def _text(cls, v):
        return _as_text(v)


class ContactMessage(Record):
    """A message submitted through the contact form."""
    id: str = Field(default_factory=make_id)
    name: str = ""
    email: str = ""
    message_type: str = Field("", alias="type")
    description: str = ""
    created_iso: str = Field(default_factory=now_stamp, alias="createdISO")

    @field_validator("name", "email", "message_type", "description", mode="before")
    @classmethod
    def _text(cls, v):
        return _as_text(v)
