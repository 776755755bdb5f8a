"""In-memory place store."""

import logging
import threading

from goplaces.models.place import Place
from goplaces.services.interfaces import SaveSummary
from goplaces.urls import clean_url

logger = logging.getLogger(__name__)


class InMemoryPlaceStore:
    """Process-local store deduplicating by cleaned source URL.

    Places from one batch that share a source URL are all kept; a later
    batch from a URL that is already stored is skipped as duplicates.
    """

    def __init__(self) -> None:
        self._places: list[Place] = []
        self._source_urls: set[str] = set()
        self._lock = threading.Lock()

    def save_places(self, places: list[Place]) -> SaveSummary:
        logger.info("Attempting to save %d places", len(places))
        saved = 0
        duplicates = 0

        with self._lock:
            batch_urls: set[str] = set()
            for place in places:
                key = clean_url(place.source_url)
                if key in self._source_urls:
                    duplicates += 1
                    logger.debug("Duplicate found for place: %s with URL: %s", place.name, key)
                    continue
                self._places.append(place)
                batch_urls.add(key)
                saved += 1
            self._source_urls |= batch_urls

        logger.info("Saved %d places, skipped %d duplicates", saved, duplicates)
        return SaveSummary(submitted=len(places), saved=saved, duplicates=duplicates)

    def fetch_all(self) -> list[Place]:
        with self._lock:
            return sorted(self._places, key=lambda p: p.added_at, reverse=True)

    def exists(self, source_url: str) -> bool:
        with self._lock:
            return clean_url(source_url) in self._source_urls

    def __len__(self) -> int:
        return len(self._places)
