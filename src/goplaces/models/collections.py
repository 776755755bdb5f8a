"""Wire models for collections and saved places."""

from __future__ import annotations

from pydantic import Field

from goplaces.models.api import WireModel
from goplaces.models.dates import ISODateTime
from goplaces.models.place import Place

DEFAULT_THEME_COLOR = "coral"


class PlaceCollection(WireModel):
    """A named, user-curated group of places."""

    id: str
    name: str
    description: str | None = None
    cover_image_url: str | None = None
    place_count: int = Field(0, ge=0)
    created_at: ISODateTime
    updated_at: ISODateTime
    color_theme: str | None = None
    is_favorite: bool = False
    tags: list[str] = Field(default_factory=list)

    @property
    def theme_color(self) -> str:
        return self.color_theme or DEFAULT_THEME_COLOR

    @property
    def place_count_text(self) -> str:
        return f"{self.place_count} place{'' if self.place_count == 1 else 's'}"


class PlaceWithSelection(WireModel):
    """A place from a completed job, offered for saving into collections."""

    id: str
    name: str
    location: str | None = None
    place_type: str | None = None
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    google_place_id: str | None = None
    category_color: str = ""
    icon_name: str = ""

    @property
    def display_address(self) -> str:
        return self.location or "Location unknown"

    @property
    def display_name(self) -> str:
        """Name, with a trailing ``?`` when confidence is low."""
        if self.confidence_score > 0.7:
            return self.name
        return f"{self.name}?"

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence_score > 0.8


class CollectionPlace(WireModel):
    """A place stored in a collection.

    This body uses camelCase keys for its link and photo fields.
    """

    id: str
    name: str
    address: str = ""
    social_url: str | None = Field(None, alias="socialURL")
    rating: float | None = Field(None, ge=0.0)
    photo_url: str | None = Field(None, alias="photoURL")
    added_date: str | None = Field(None, alias="addedDate")

    def to_place(self) -> Place:
        return Place(
            name=self.name,
            address=self.address,
            source_url=self.social_url or "",
            rating=self.rating,
            photo_url=self.photo_url,
        )


class CollectionPlacesResponse(WireModel):
    """Body of ``GET /collections/{id}/places``."""

    collection: PlaceCollection
    places: list[CollectionPlace] = Field(default_factory=list)
    share_link: str = Field("", alias="shareLink")


class CollectionOperationResponse(WireModel):
    success: bool
    message: str = ""
    affected_collections: list[str] = Field(default_factory=list)
    affected_places: list[str] = Field(default_factory=list)


class Coordinates(WireModel):
    lat: float
    lng: float


class PlaceDetail(WireModel):
    """Full record returned by ``GET /places/{id}``."""

    id: str
    name: str
    address: str = ""
    rating: float | None = None
    review_count: int | None = None
    price_level: int | None = None
    average_cost: str | None = None
    description: str = ""
    opening_hours: dict[str, str] | None = None
    website: str | None = None
    phone_number: str | None = None
    photo_urls: list[str] = Field(default_factory=list)
    thumbnails: list[str] = Field(default_factory=list)
    status: str | None = None
    closing_time: str | None = None
    social_url: str | None = None
    google_place_id: str | None = None
    google_maps_url: str | None = None
    google_maps_app_url: str | None = None
    coordinates: Coordinates | None = None


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------


class CreateCollectionRequest(WireModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    cover_image_url: str | None = None
    color_theme: str | None = None
    tags: list[str] = Field(default_factory=list)


class UpdateCollectionRequest(WireModel):
    """Partial update; fields left as None are not sent."""

    name: str | None = None
    description: str | None = None
    cover_image_url: str | None = None
    color_theme: str | None = None
    is_favorite: bool | None = None
    tags: list[str] | None = None


class AddPlacesToCollectionsRequest(WireModel):
    place_ids: list[str]
    collection_ids: list[str]


class CreatePlaceRequest(WireModel):
    name: str = Field(..., min_length=1)
    address: str = ""
    social_url: str | None = Field(None, alias="socialURL")
    rating: float | None = Field(None, ge=0.0)
