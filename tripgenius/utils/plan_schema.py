from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

INTERESTS = [
    "Beaches", "Food", "Shopping", "History", "Culture", "Adventure",
    "Nature", "Nightlife", "Religious", "Photography",
]


class Budget(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    LUXURY = "Luxury"


class Pace(str, Enum):
    RELAXED = "Relaxed"
    BALANCED = "Balanced"
    INTENSE = "Intense"


BUDGETS = [b.value for b in Budget]
PACES = [p.value for p in Pace]

# Blank form state, also what "Clear" resets to
DEFAULT_PREFERENCES: Dict[str, Any] = {
    "destination": "",
    "days": 3,
    "budget": Budget.MEDIUM.value,
    "travelers": 2,
    "interests": "",
    "pace": Pace.BALANCED.value,
    "mustInclude": "",
    "avoid": "",
    "notes": "",
}


class TripPreferences(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    destination: str = Field(description="The desired travel destination.")
    startDate: date = Field(description="The start date of the trip (YYYY-MM-DD).")
    days: int = Field(default=3, ge=1, le=21, description="The number of travel days.")
    budget: Budget = Field(default=Budget.MEDIUM, description="The budget level for the trip.")
    travelers: int = Field(default=2, ge=1, description="The number of travelers.")
    interests: str = Field(description="A comma-separated list of interests (e.g., Beaches, Food, History).")
    pace: Pace = Field(default=Pace.BALANCED, description="The preferred travel pace.")
    mustInclude: Optional[str] = Field(default=None, description="Places or activities that must be included.")
    avoid: Optional[str] = Field(default=None, description="Things to avoid.")
    notes: Optional[str] = Field(default=None, description="Any additional notes or constraints.")

    @field_validator("destination")
    @classmethod
    def _destination_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Destination is required.")
        return v

    @field_validator("interests")
    @classmethod
    def _interests_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Please select at least one interest.")
        return v

    @field_validator("startDate", mode="before")
    @classmethod
    def _parse_start_date(cls, v: Any) -> Any:
        # Browsers serialise Date objects as full ISO timestamps. Without the
        # client's timezone only the UTC date part is available here.
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        if v in (None, ""):
            raise ValueError("A start date is required.")
        return v

    @field_serializer("startDate")
    def _serialize_start_date(self, v: date) -> str:
        return v.isoformat()

    def interest_list(self) -> List[str]:
        return [i.strip() for i in self.interests.split(",") if i.strip()]


class ItineraryDay(BaseModel):
    day: int = Field(description="The day number in the itinerary.")
    date: str = Field(description="The date for this day in YYYY-MM-DD format.")
    morning: str = Field(description="A suggested morning activity.")
    afternoon: str = Field(description="A suggested afternoon activity.")
    evening: str = Field(description="A suggested evening activity.")


class Itinerary(BaseModel):
    summary: str = Field(description="A summary of the trip itinerary.")
    itinerary: List[ItineraryDay] = Field(description="The generated travel itinerary.")
    estimatedBudget: str = Field(description="The estimated budget for the trip.")
    tips: str = Field(description="Helpful tips for the trip.")
