"""
Pydantic schemas for the activity search request.

These models define the strict request contract for POST /search. Everything
that reaches the cache or the agent has already passed this validation.
"""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


AttendeeRole = Literal["child", "adult", "infant"]


class Attendee(BaseModel):
    """One member of the party the activities are for."""
    age: int = Field(
        ...,
        description="Age in full years",
        ge=0,
        le=120,
        examples=[5, 34]
    )
    role: AttendeeRole = Field(
        ...,
        description="Attendee role (case-insensitive on input, stored lower-cased)",
        examples=["child", "adult"]
    )

    @field_validator("role", mode="before")
    @classmethod
    def _lowercase_role(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class RecommendationRequest(BaseModel):
    """
    Request for weekend activity recommendations.

    Semantically identical requests (attendee order, casing, incidental
    whitespace) map to the same cache fingerprint, see
    weekend_backend/services/fingerprint.py.
    """
    city: str = Field(
        ...,
        description="City to search activities in",
        min_length=1,
        max_length=100,
        examples=["Kraków", "Wrocław"]
    )
    date_range_start: date = Field(
        ...,
        description="First day of the trip (ISO date)",
        examples=["2025-11-01"]
    )
    date_range_end: date = Field(
        ...,
        description="Last day of the trip (ISO date), not before date_range_start",
        examples=["2025-11-02"]
    )
    attendees: List[Attendee] = Field(
        ...,
        description="Party composition",
        min_length=1,
        max_length=20
    )
    preferences: Optional[str] = Field(
        None,
        description="Free-text preferences, e.g. 'indoor, museums'",
        max_length=500,
        examples=["indoor", "outdoor activities, museums"]
    )

    @field_validator("city")
    @classmethod
    def _city_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("city must not be blank")
        return value

    @model_validator(mode="after")
    def _check_date_range(self) -> "RecommendationRequest":
        if self.date_range_end < self.date_range_start:
            raise ValueError("date_range_end must not be before date_range_start")
        return self
