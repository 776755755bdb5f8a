"""Wire models for the place extraction API."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from goplaces.models.dates import ISODateTime
from goplaces.models.place import Place
from goplaces.urls import clean_url


class JobPhase(str, Enum):
    """Server-reported lifecycle phase of a job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class WireModel(BaseModel):
    """Base for API bodies: immutable, tolerant of unknown keys."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------


class ProcessURLRequest(WireModel):
    url: str


# ------------------------------------------------------------------
# Responses
# ------------------------------------------------------------------


class QuickMetadata(WireModel):
    """Cheap metadata the server gathers before the job starts."""

    status_code: int | None = None
    accessible: bool = True
    content_length: int | None = None
    page_title: str = ""
    video_title: str = ""
    thumbnail_url: str = ""
    redirect_url: str | None = None
    quick_description: str = ""


class TaskAccepted(WireModel):
    """Body of a successful ``POST /process-url``."""

    task_id: str = Field(..., min_length=1)
    status: str = JobPhase.QUEUED.value
    quick_metadata: QuickMetadata = Field(default_factory=QuickMetadata)
    estimated_completion_seconds: int = Field(0, ge=0)


class JobStatus(WireModel):
    """Snapshot returned by ``GET /task/{id}/status``."""

    task_id: str
    status: str
    progress_percentage: int | None = None
    current_stage: str = ""
    stage_message: str = ""
    estimated_completion_seconds: int | None = None
    created_at: ISODateTime | None = None
    updated_at: ISODateTime | None = None

    @field_validator("progress_percentage")
    @classmethod
    def _clamp_progress(cls, value: int | None) -> int | None:
        if value is None:
            return None
        return max(0, min(100, value))

    @property
    def phase(self) -> JobPhase | None:
        """Parsed phase, or None for phases this client does not know."""
        try:
            return JobPhase(self.status.lower())
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        return self.phase in (JobPhase.COMPLETE, JobPhase.FAILED)


class ExtractedPlace(WireModel):
    """One place found by the server."""

    id: str | None = None
    name: str
    location: str | None = None
    place_type: str | None = None
    rating: float | None = Field(None, ge=0.0)
    photo_url: str | None = None
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    google_place_id: str | None = None

    @property
    def is_valid(self) -> bool:
        """Whether the place carries enough signal to be useful."""
        return bool(self.name) and self.confidence_score > 0.5

    @property
    def display_address(self) -> str:
        return self.location or "Location unknown"


class JobResult(WireModel):
    """Terminal payload returned by ``GET /task/{id}/result``."""

    url: str
    platform: str = ""
    timestamp: ISODateTime | None = None
    processing_time_seconds: float = 0.0
    success: bool = True
    metadata: QuickMetadata = Field(default_factory=QuickMetadata)
    caption: str | None = None
    places: list[ExtractedPlace] = Field(default_factory=list)
    error: str | None = None

    def to_places(self, source_url: str) -> list[Place]:
        """Convert extracted places into domain records.

        Args:
            source_url: URL the caller submitted; stored cleaned as the
                deduplication key.

        Returns:
            One Place per extracted place, in server order.
        """
        cleaned = clean_url(source_url)
        thumbnail = self.metadata.thumbnail_url or None
        return [
            Place(
                name=extracted.name,
                address=extracted.location or "",
                source_url=cleaned,
                rating=extracted.rating,
                photo_url=extracted.photo_url or thumbnail,
                confidence_score=extracted.confidence_score,
            )
            for extracted in self.places
        ]


class ServerErrorPayload(WireModel):
    """Error body a server may attach to a non-200 response."""

    code: str | None = None
    message: str | None = None
    detail: Any = None
    details: dict[str, Any] | None = None

    @property
    def text(self) -> str | None:
        if self.message:
            return self.message
        if isinstance(self.detail, str):
            return self.detail
        return None


# ------------------------------------------------------------------
# Loading messages
# ------------------------------------------------------------------


class LoadingCategory(str, Enum):
    """Category of a loading message shown while a job runs."""

    PROCESSING = "processing"
    EXTRACTION = "extraction"
    ANALYSIS = "analysis"
    RANDOM = "random"

    @property
    def fallback_message(self) -> str:
        return _FALLBACK_MESSAGES[self]


_FALLBACK_MESSAGES: dict[LoadingCategory, str] = {
    LoadingCategory.PROCESSING: "Processing your content...",
    LoadingCategory.EXTRACTION: "Extracting content details...",
    LoadingCategory.ANALYSIS: "Analyzing with AI...",
    LoadingCategory.RANDOM: "Working on it...",
}


class LoadingMessage(WireModel):
    message: str
    category: str = LoadingCategory.RANDOM.value
    timestamp: str = ""

    @property
    def category_enum(self) -> LoadingCategory:
        try:
            return LoadingCategory(self.category)
        except ValueError:
            return LoadingCategory.RANDOM
