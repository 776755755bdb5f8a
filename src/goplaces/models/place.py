"""Place domain record handed to the persistence layer."""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field

from goplaces.models.dates import ISODateTime

PLACEHOLDER_NAME = "Unnamed Place"
UNKNOWN_ADDRESS = "Unknown Address"


class Place(BaseModel):
    """A place extracted from a shared link."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(..., description="Place name")
    address: str = Field("", description="Street address, empty when unknown")
    source_url: str = Field(..., description="Cleaned URL the place was extracted from")
    rating: float | None = Field(None, ge=0.0, description="Rating, None when unknown")
    photo_url: str | None = Field(None, description="Photo reference")
    confidence_score: float | None = Field(None, ge=0.0, le=1.0, description="Extraction confidence")
    phone_number: str | None = Field(None, description="Phone number")
    website: str | None = Field(None, description="Website URL")
    added_at: ISODateTime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def display_name(self) -> str:
        """Name for display, with a placeholder for empty names."""
        return self.name or PLACEHOLDER_NAME

    @property
    def display_address(self) -> str:
        """Address for display, with a placeholder for empty addresses."""
        return self.address or UNKNOWN_ADDRESS

    @property
    def formatted_rating(self) -> str | None:
        """Rating with one decimal, or None when unrated."""
        if not self.rating:
            return None
        return f"{self.rating:.1f}"
