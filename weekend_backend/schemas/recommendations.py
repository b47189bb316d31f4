"""
Pydantic schemas for the structured recommendations the agent must return.

The agent's final text block is parsed into RecommendationsPayload. Validation
is deliberately shallow: list presence and required string fields. The 3-7
recommendation count is requested in the system prompt, not enforced here.
"""

import re
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _optional_text(value: Any) -> Optional[str]:
    """Numbers become text; empty strings and other shapes become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


class ActivityLocation(BaseModel):
    """Where the activity takes place."""
    address: str = Field(..., description="Full street address")
    city: str = Field(..., description="City name")
    map_link: Optional[str] = Field(None, description="Google Maps link if available")

    _map_link = field_validator("map_link", mode="before")(_optional_text)


class ActivityPricing(BaseModel):
    """Price information for an activity."""
    type: Literal["free", "paid", "donation"] = Field(
        ...,
        description="Pricing model",
        examples=["free", "paid"]
    )
    amount: Optional[str] = Field(
        None,
        description="Human-readable price",
        examples=["25 PLN per child"]
    )
    details: Optional[str] = Field(None, description="Additional pricing details")

    # Models often send "amount": 25
    _optional_strings = field_validator("amount", "details", mode="before")(_optional_text)


class ActivityRecommendation(BaseModel):
    """A single recommended activity, ready for UI display."""
    name: str = Field(..., description="Activity or venue name")
    description: str = Field(..., description="What the activity is about")
    category: str = Field(
        ...,
        description="Category tag",
        examples=["Indoor Play", "Museum", "Outdoor"]
    )
    age_range: str = Field(..., description="Target ages", examples=["3-10 years"])
    location: ActivityLocation
    pricing: ActivityPricing
    why_recommended: str = Field(
        ...,
        description="One-sentence personalized justification for this party"
    )
    opening_hours: Optional[str] = None
    website: Optional[str] = None
    phone_number: Optional[str] = None
    rating: Optional[float] = None
    tips: List[str] = Field(default_factory=list)

    _optional_strings = field_validator(
        "opening_hours", "website", "phone_number", mode="before"
    )(_optional_text)

    @field_validator("rating", mode="before")
    @classmethod
    def _lenient_rating(cls, value: Any) -> Optional[float]:
        """Accept 4.7, "4.7" and "4.7/5"; anything else is dropped."""
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            match = re.match(r"^\s*(\d+(?:[.,]\d+)?)", value)
            if match:
                return float(match.group(1).replace(",", "."))
        return None

    @field_validator("tips", mode="before")
    @classmethod
    def _lenient_tips(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, list):
            return [str(tip) for tip in value if tip is not None and str(tip).strip()]
        return []


class RecommendationsPayload(BaseModel):
    """Complete structured output of one agent run."""
    search_summary: str = Field(
        ...,
        description="Brief summary of what was searched for and found"
    )
    recommendations: List[ActivityRecommendation] = Field(
        ...,
        description="Recommended activities (3-7 requested)"
    )
    additional_notes: Optional[str] = Field(
        None,
        description="Important notes or warnings"
    )
    search_date: str = Field(
        default_factory=_utc_now_iso,
        description="ISO timestamp of generation"
    )

    _additional_notes = field_validator("additional_notes", mode="before")(_optional_text)

    @field_validator("search_date", mode="before")
    @classmethod
    def _default_search_date(cls, value: Any) -> Any:
        return value if value else _utc_now_iso()
