"""Collection management: list, create, edit and fill collections."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from urllib.parse import quote

import httpx

from goplaces.errors import ClientError
from goplaces.models.collections import (
    AddPlacesToCollectionsRequest,
    CollectionOperationResponse,
    CollectionPlace,
    CollectionPlacesResponse,
    CreateCollectionRequest,
    CreatePlaceRequest,
    PlaceCollection,
    PlaceDetail,
    UpdateCollectionRequest,
)
from goplaces.network.reachability import ReachabilityMonitor
from goplaces.network.requests import RequestBuilder
from goplaces.network.responses import decode_list, decode_response, error_from_response
from goplaces.network.transport import Transport, TransportResponse

logger = logging.getLogger(__name__)

_CREATED = (200, 201)


def _not_found(server_code: str, message: str, **details: object) -> ClientError:
    return ClientError.server_error(message, status_code=404, server_code=server_code, **details)


class CollectionService:
    """Collections and the places saved in them.

    Every call is gated on reachability. A 404 becomes a ``server_error``
    naming what was missing; other unsuccessful responses map through the
    server's error code.
    """

    def __init__(
        self,
        transport: Transport,
        requests: RequestBuilder,
        reachability: ReachabilityMonitor,
    ) -> None:
        self._transport = transport
        self._requests = requests
        self._reachability = reachability

    async def list_collections(self) -> list[PlaceCollection]:
        response = await self._send(self._requests.get("/collections"))
        if not response.ok:
            raise error_from_response(response)
        return decode_list(PlaceCollection, response)

    async def create_collection(
        self,
        name: str,
        description: str | None = None,
        cover_image_url: str | None = None,
        color_theme: str | None = None,
        tags: Sequence[str] = (),
    ) -> PlaceCollection:
        """Create a collection.

        Raises:
            ValueError: If ``name`` is empty.
            ClientError: ``network_unavailable`` when offline, the
                server's error otherwise.
        """
        body = CreateCollectionRequest(
            name=name,
            description=description,
            cover_image_url=cover_image_url,
            color_theme=color_theme,
            tags=list(tags),
        )
        logger.info("Creating collection: %s", name)
        response = await self._send(self._requests.json_request("POST", "/collections", body))
        if response.status_code not in _CREATED:
            raise error_from_response(response)
        return decode_response(PlaceCollection, response)

    async def get_collection_places(self, collection_id: str) -> CollectionPlacesResponse:
        response = await self._send(self._requests.get(f"/collections/{quote(collection_id, safe='')}/places"))
        if response.status_code == 404:
            raise _not_found("COLLECTION_NOT_FOUND", "Collection not found", collection_id=collection_id)
        if not response.ok:
            raise error_from_response(response).with_details(collection_id=collection_id)
        return decode_response(CollectionPlacesResponse, response)

    async def add_places_to_collections(
        self,
        place_ids: Sequence[str],
        collection_ids: Sequence[str],
    ) -> CollectionOperationResponse:
        """Add every place to every collection in one request."""
        body = AddPlacesToCollectionsRequest(place_ids=list(place_ids), collection_ids=list(collection_ids))
        logger.info("Adding %d place(s) to %d collection(s)", len(place_ids), len(collection_ids))
        response = await self._send(self._requests.json_request("POST", "/collections/add-places", body))
        if response.status_code == 404:
            raise _not_found("COLLECTIONS_NOT_FOUND", "One or more collections not found")
        if not response.ok:
            raise error_from_response(response)
        return decode_response(CollectionOperationResponse, response)

    async def update_collection(
        self,
        collection_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        cover_image_url: str | None = None,
        color_theme: str | None = None,
        is_favorite: bool | None = None,
        tags: Sequence[str] | None = None,
    ) -> PlaceCollection:
        """Change the given fields of a collection; omitted fields are kept."""
        body = UpdateCollectionRequest(
            name=name,
            description=description,
            cover_image_url=cover_image_url,
            color_theme=color_theme,
            is_favorite=is_favorite,
            tags=list(tags) if tags is not None else None,
        )
        path = f"/collections/{quote(collection_id, safe='')}"
        response = await self._send(self._requests.json_request("PUT", path, body))
        if response.status_code == 404:
            raise _not_found("COLLECTION_NOT_FOUND", "Collection not found", collection_id=collection_id)
        if not response.ok:
            raise error_from_response(response).with_details(collection_id=collection_id)
        return decode_response(PlaceCollection, response)

    async def delete_collection(self, collection_id: str) -> None:
        logger.info("Deleting collection: %s", collection_id)
        response = await self._send(self._requests.delete(f"/collections/{quote(collection_id, safe='')}"))
        if response.status_code == 404:
            raise _not_found("COLLECTION_NOT_FOUND", "Collection not found", collection_id=collection_id)
        if response.status_code not in (200, 204):
            raise error_from_response(response).with_details(collection_id=collection_id)

    async def get_place_detail(self, place_id: str) -> PlaceDetail:
        response = await self._send(self._requests.get(f"/places/{quote(place_id, safe='')}"))
        if response.status_code == 404:
            raise _not_found("PLACE_NOT_FOUND", "Place not found", place_id=place_id)
        if not response.ok:
            raise error_from_response(response).with_details(place_id=place_id)
        return decode_response(PlaceDetail, response)

    async def create_place(
        self,
        collection_id: str,
        name: str,
        address: str = "",
        social_url: str | None = None,
        rating: float | None = None,
    ) -> CollectionPlace:
        """Save a place directly into a collection."""
        body = CreatePlaceRequest(name=name, address=address, social_url=social_url, rating=rating)
        path = f"/collections/{quote(collection_id, safe='')}/places"
        logger.info("Creating place %s in collection %s", name, collection_id)
        response = await self._send(self._requests.json_request("POST", path, body))
        if response.status_code == 404:
            raise _not_found("COLLECTION_NOT_FOUND", "Collection not found", collection_id=collection_id)
        if response.status_code not in _CREATED:
            raise error_from_response(response).with_details(collection_id=collection_id)
        return decode_response(CollectionPlace, response)

    async def _send(self, request: httpx.Request) -> TransportResponse:
        if not self._reachability.is_available():
            raise ClientError.network_unavailable()
        return await self._transport.send(request)
