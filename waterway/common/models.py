"""
models.py – Shared Pydantic data-models owned by the five aggregates.

Design decisions
----------------
* All models are **frozen** (immutable after creation).  Aggregates never
  mutate an entity in place; they swap in ``model_copy(update=...)`` results,
  so a snapshot handed to the persistence layer can't change under it.
* Field validators enforce business rules at the point of data entry
  (non-blank names, clamped pollution levels, unique attendees).
* Events reference participants by id only; attendees are never embedded
  copies of ``Participant``.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from waterway.common.config import settings
from waterway.common.ids import new_id


def _require_text(value: str, field: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field} cannot be empty or whitespace")
    return stripped


def clamp_level(level: int) -> int:
    """Clamp a pollution level into the configured [min, max] range."""
    return max(settings.hotspot_level_min, min(settings.hotspot_level_max, int(level)))


# Hotspots
# =======================================================================

class Hotspot(BaseModel):
    """
    A tracked pollution observation point along the waterway.

    Fields
    ------
    id              : Opaque generated identifier, stable for the hotspot's life.
    name            : Human-readable location name. Must be non-blank.
    pollution_level : Severity score, clamped into [0, 100].
    note            : Optional free-text observation.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    pollution_level: int = Field(default=30)
    note: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, "name")

    @field_validator("pollution_level")
    @classmethod
    def clamp_pollution_level(cls, value: int) -> int:
        """Out-of-range levels are clamped rather than rejected."""
        return clamp_level(value)


# Events
# =======================================================================

class Event(BaseModel):
    """
    A scheduled cleanup activity with a point reward and an attendee roster.

    ``attendees`` holds participant ids in check-in order.  Duplicates are
    collapsed on construction so the roster behaves as a set.
    ``awarded`` records whether points have been handed out at least once.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    date: dt.date
    description: str = ""
    points_per_attendance: int = Field(default=20, ge=0)
    attendees: tuple[str, ...] = ()
    awarded: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, "name")

    @field_validator("attendees")
    @classmethod
    def dedupe_attendees(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(value))


# Participants and rewards
# =======================================================================

class Participant(BaseModel):
    """
    A volunteer accumulating points.

    The id is chosen by the caller (e.g. a student number like ``sv01``).
    ``points`` is not forced non-negative: ``credit`` accepts any integer.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    points: int = 0

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        return _require_text(value, "id")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, "name")


class Reward(BaseModel):
    """A catalog item redeemable for ``cost`` points. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    cost: int = Field(gt=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, "name")


# Trends and weather alerts
# =======================================================================

class TrendPoint(BaseModel):
    """
    One day of collection metrics.

    Fields
    ------
    label    : Calendar day label in ``MM-DD`` form.
    bags     : Number of trash bags collected.
    rainfall : Rainfall amount; 0 means no rain.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    bags: int = Field(ge=0)
    rainfall: int = Field(default=0, ge=0)


class WeatherAlertState(BaseModel):
    """Manually edited bad-weather flag and note. Not derived from trends."""

    model_config = ConfigDict(frozen=True)

    bad_weather_risk: bool = False
    weather_note: str = ""


class AlertSnapshot(WeatherAlertState):
    """Persisted payload of the trend log: alert state plus the trend window."""

    trash_history: list[TrendPoint] = Field(default_factory=list)
