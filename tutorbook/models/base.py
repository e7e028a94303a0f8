"""
Value types shared by search queries and stored records.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

TRUE_STRINGS = ("true", "1", "yes")
FALSE_STRINGS = ("false", "0", "no")


def datetime_to_millis(value: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds without float rounding."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(milliseconds=1)


def millis_to_datetime(value: int) -> datetime:
    """Convert integer epoch milliseconds to an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=int(value))


class Aspect(str, Enum):
    """Selects which subject sub-field of a user record is searched."""

    MENTORING = "mentoring"
    TUTORING = "tutoring"


class Option(BaseModel):
    """A labeled option value (e.g. a subject or a language)."""

    model_config = ConfigDict(frozen=True)

    label: str = ""
    value: str

    @model_validator(mode="before")
    @classmethod
    def coerce_plain_values(cls, data: Any) -> Any:
        """Accept bare strings as options whose label is their value."""
        if isinstance(data, str):
            return {"label": data, "value": data}
        if isinstance(data, dict) and not data.get("label") and "value" in data:
            return {**data, "label": data["value"]}
        return data


class Timeslot(BaseModel):
    """An open/close window; ``from`` and ``to`` are reserved words, hence the aliases."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start: datetime = Field(..., alias="from")
    end: datetime = Field(..., alias="to")

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_millis(cls, v: Any) -> Any:
        # Integers are always epoch milliseconds, never seconds.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return millis_to_datetime(int(v))
        return v

    @field_validator("start", "end")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_millis(cls, start: int, end: int) -> "Timeslot":
        return cls(start=millis_to_datetime(start), end=millis_to_datetime(end))

    def from_millis_value(self) -> int:
        return datetime_to_millis(self.start)

    def to_millis_value(self) -> int:
        return datetime_to_millis(self.end)

    def to_json(self) -> Dict[str, str]:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}

    def to_index(self) -> Dict[str, int]:
        """Epoch-millisecond form stored in the search index."""
        return {"from": self.from_millis_value(), "to": self.to_millis_value()}
