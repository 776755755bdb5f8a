"""Binary uploads for place photos and collection covers."""

import logging
from urllib.parse import quote

from goplaces.errors import ClientError
from goplaces.network.reachability import ReachabilityMonitor
from goplaces.network.requests import RequestBuilder
from goplaces.network.transport import Transport

logger = logging.getLogger(__name__)


class UploadService:
    """Uploads images as multipart/form-data with a single ``file`` part."""

    def __init__(
        self,
        transport: Transport,
        requests: RequestBuilder,
        reachability: ReachabilityMonitor,
    ) -> None:
        self._transport = transport
        self._requests = requests
        self._reachability = reachability

    async def upload_place_photo(
        self,
        collection_id: str,
        place_id: str,
        data: bytes,
        filename: str = "photo.jpg",
        content_type: str = "image/jpeg",
    ) -> str:
        """Upload a photo for a place.

        Returns:
            URL of the stored photo.

        Raises:
            ClientError: ``network_unavailable`` when offline,
                ``server_error`` on non-200, ``decoding_error`` when the
                response lacks the photo URL.
        """
        logger.info("Uploading photo for place: %s", place_id)
        path = f"/collections/{quote(collection_id, safe='')}/places/{quote(place_id, safe='')}/photo"
        return await self._upload(path, data, filename, content_type, ("photoURL", "photoUrl", "photo_url"))

    async def upload_collection_cover(
        self,
        collection_id: str,
        data: bytes,
        filename: str = "cover.jpg",
        content_type: str = "image/jpeg",
    ) -> str:
        """Upload or replace a collection cover image.

        Returns:
            URL of the stored cover image.
        """
        logger.info("Uploading cover for collection: %s", collection_id)
        path = f"/collections/{quote(collection_id, safe='')}/cover"
        return await self._upload(path, data, filename, content_type, ("coverImageUrl", "cover_image_url"))

    async def _upload(
        self,
        path: str,
        data: bytes,
        filename: str,
        content_type: str,
        url_fields: tuple[str, ...],
    ) -> str:
        if not self._reachability.is_available():
            raise ClientError.network_unavailable()

        request = self._requests.multipart_request(path, filename, data, content_type)
        response = await self._transport.send(request)
        if not response.ok:
            raise ClientError.server_error(f"Upload failed ({response.status_code})", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise ClientError.decoding_error(path=path) from e

        if isinstance(payload, dict):
            for field_name in url_fields:
                value = payload.get(field_name)
                if isinstance(value, str) and value:
                    return value
        raise ClientError.decoding_error(f"Upload response is missing {url_fields[0]}", path=path)
