# app/schemas/event_schema.py

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from app.utils.report_generator import parse_details

FEEDING = "feeding"
SLEEPING = "sleeping"
DIAPER = "diaper"
GROWTH = "growth"
MEDICATION = "medication"
TEMPERATURE = "temperature"

# Spellings used by older clients
EVENT_TYPE_ALIASES = {
    "sleep": SLEEPING,
    "diaperchange": DIAPER,
    "diaper_change": DIAPER,
    "medications": MEDICATION,
}


# --- Details payloads, one per known event type ---

class FeedingDetails(BaseModel):
    type: Literal["breast", "breast_milk", "bottle", "formula", "solid", "cow_milk"]
    amount: Optional[float] = Field(None, ge=0)
    food_description: Optional[str] = Field(None, max_length=255)
    portion_consumed: Optional[Literal["none", "some", "half", "most", "all"]] = None


class SleepDetails(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    quality: Optional[Literal["poor", "fair", "good", "excellent"]] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def store_as_utc(cls, v):
        return to_naive_utc(v) if v is not None else v

    @model_validator(mode="after")
    def check_range(self):
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class DiaperDetails(BaseModel):
    type: Literal["wet", "dirty", "mixed", "both"]
    consistency: Optional[Literal["normal", "loose", "hard"]] = None
    color: Optional[str] = Field(None, max_length=50)


class GrowthDetails(BaseModel):
    weight: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    head_circumference: Optional[float] = Field(None, gt=0)
    weight_unit: Literal["kg", "lb"] = "kg"
    height_unit: Literal["cm", "in"] = "cm"

    @model_validator(mode="after")
    def check_measurement(self):
        if self.weight is None and self.height is None:
            raise ValueError("growth needs a weight or a height")
        return self


class MedicationDetails(BaseModel):
    medication: str = Field(..., min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, max_length=100)
    reason: Optional[str] = Field(None, max_length=255)


class TemperatureDetails(BaseModel):
    method: Optional[Literal["oral", "rectal", "armpit", "ear", "forehead"]] = None


DETAILS_MODELS = {
    FEEDING: FeedingDetails,
    SLEEPING: SleepDetails,
    DIAPER: DiaperDetails,
    GROWTH: GrowthDetails,
    MEDICATION: MedicationDetails,
    TEMPERATURE: TemperatureDetails,
}


def normalize_event_type(event_type: str) -> str:
    key = event_type.strip().lower()
    return EVENT_TYPE_ALIASES.get(key, key)


def to_naive_utc(value: datetime) -> datetime:
    """Events are stored as naive UTC datetimes."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def validate_details(event_type: str, details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Validates the payload for a known event type and returns its canonical form.
    Unknown event types keep whatever they were given.
    """
    model = DETAILS_MODELS.get(event_type)
    if model is None:
        return dict(details or {})

    try:
        parsed = model.model_validate(details or {})
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'details'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValueError(f"invalid {event_type} details: {problems}") from None

    return parsed.model_dump(mode="json", exclude_none=True)


def derive_value(event_type: str, value: Optional[float], details: Dict[str, Any]) -> Optional[float]:
    """Fills in the numeric value from the details when the client left it out."""
    if value is not None:
        return value

    if event_type == SLEEPING and details.get("start_time") and details.get("end_time"):
        start = to_naive_utc(datetime.fromisoformat(details["start_time"]))
        end = to_naive_utc(datetime.fromisoformat(details["end_time"]))
        return round((end - start).total_seconds() / 60, 2)
    if event_type == FEEDING:
        return details.get("amount")
    if event_type == GROWTH:
        return details.get("weight")
    if event_type == TEMPERATURE:
        raise ValueError("temperature events need a value")
    return None


class EventCreate(BaseModel):
    event_type: str = Field(..., min_length=1, max_length=50)
    timestamp: datetime
    value: Optional[float] = None
    unit: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_payload(self):
        self.event_type = normalize_event_type(self.event_type)
        self.timestamp = to_naive_utc(self.timestamp)
        self.details = validate_details(self.event_type, self.details)
        self.value = derive_value(self.event_type, self.value, self.details)
        return self


class EventUpdate(BaseModel):
    event_type: Optional[str] = Field(None, min_length=1, max_length=50)
    timestamp: Optional[datetime] = None
    value: Optional[float] = None
    unit: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class EventRead(BaseModel):
    id: int
    child_id: int
    event_type: str
    timestamp: datetime
    value: Optional[float] = None
    unit: Optional[str] = None
    notes: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("details", mode="before")
    @classmethod
    def load_details(cls, v):
        return parse_details(v)

    class Config:
        from_attributes = True
