"""Service interfaces (Protocols) for GoPlaces.

These protocols define the contracts that collaborators outside the client
core must follow, so that storage engines can be swapped freely.
"""

from dataclasses import dataclass
from typing import Protocol

from goplaces.models.place import Place


@dataclass(frozen=True)
class SaveSummary:
    """Outcome of storing a batch of places."""

    submitted: int
    saved: int
    duplicates: int


class IPlaceStore(Protocol):
    """Interface for the persistence layer that receives extracted places."""

    def save_places(self, places: list[Place]) -> SaveSummary:
        """Store places, skipping any whose source URL is already stored.

        Args:
            places: Places converted from a job result

        Returns:
            SaveSummary with saved and duplicate counts
        """
        ...

    def fetch_all(self) -> list[Place]:
        """Return stored places, most recently added first."""
        ...

    def exists(self, source_url: str) -> bool:
        """Check whether a place from this source URL is already stored."""
        ...
