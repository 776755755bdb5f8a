"""Data models for GoPlaces."""

from goplaces.models.api import (
    ExtractedPlace,
    JobPhase,
    JobResult,
    JobStatus,
    LoadingCategory,
    LoadingMessage,
    ProcessURLRequest,
    QuickMetadata,
    ServerErrorPayload,
    TaskAccepted,
)
from goplaces.models.collections import (
    AddPlacesToCollectionsRequest,
    CollectionOperationResponse,
    CollectionPlace,
    CollectionPlacesResponse,
    Coordinates,
    CreateCollectionRequest,
    CreatePlaceRequest,
    PlaceCollection,
    PlaceDetail,
    PlaceWithSelection,
    UpdateCollectionRequest,
)
from goplaces.models.dates import ISODateTime, format_iso8601, parse_iso8601
from goplaces.models.place import Place

__all__ = [
    # Wire
    "ExtractedPlace",
    "JobPhase",
    "JobResult",
    "JobStatus",
    "ProcessURLRequest",
    "QuickMetadata",
    "ServerErrorPayload",
    "TaskAccepted",
    # Collections
    "AddPlacesToCollectionsRequest",
    "CollectionOperationResponse",
    "CollectionPlace",
    "CollectionPlacesResponse",
    "Coordinates",
    "CreateCollectionRequest",
    "CreatePlaceRequest",
    "PlaceCollection",
    "PlaceDetail",
    "PlaceWithSelection",
    "UpdateCollectionRequest",
    # Loading messages
    "LoadingCategory",
    "LoadingMessage",
    # Domain
    "Place",
    # Dates
    "ISODateTime",
    "format_iso8601",
    "parse_iso8601",
]
