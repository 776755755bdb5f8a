"""Services around the job orchestrator."""

from goplaces.services.collections import CollectionService
from goplaces.services.interfaces import IPlaceStore, SaveSummary
from goplaces.services.messages import HealthService, LoadingMessageService
from goplaces.services.place_store import InMemoryPlaceStore
from goplaces.services.uploads import UploadService

__all__ = [
    "CollectionService",
    "HealthService",
    "IPlaceStore",
    "InMemoryPlaceStore",
    "LoadingMessageService",
    "SaveSummary",
    "UploadService",
]
