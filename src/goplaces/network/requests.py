"""Builds outbound HTTP requests for the place extraction API."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httpx
from pydantic import BaseModel

from goplaces.models.dates import format_iso8601


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_iso8601(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_json_body(body: BaseModel | Mapping[str, Any]) -> bytes:
    """Render a JSON request body.

    Models are written with their wire aliases and without unset optional
    fields. Datetimes use whole-second ISO-8601.
    """
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    return json.dumps(dict(body), default=_json_default).encode("utf-8")


class RequestBuilder:
    """Renders requests with the shared auth and content-negotiation headers.

    Requests are built against an ``httpx.AsyncClient`` so that they carry
    its base URL, but nothing is sent here.
    """

    def __init__(self, client: httpx.AsyncClient, api_token: str, user_agent: str) -> None:
        self._client = client
        self._api_token = api_token
        self._user_agent = user_agent

    @property
    def default_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": self._user_agent,
        }
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
            headers["X-API-Token"] = self._api_token
        return headers

    def get(self, path: str, params: Mapping[str, str] | None = None) -> httpx.Request:
        """Build a bodiless GET request."""
        return self._client.build_request(
            "GET",
            path,
            params=dict(params) if params else None,
            headers=self.default_headers,
        )

    def delete(self, path: str) -> httpx.Request:
        return self._client.build_request("DELETE", path, headers=self.default_headers)

    def json_request(
        self,
        method: str,
        path: str,
        body: BaseModel | Mapping[str, Any],
    ) -> httpx.Request:
        """Build a request with a JSON body."""
        headers = self.default_headers
        headers["Content-Type"] = "application/json"
        return self._client.build_request(
            method,
            path,
            content=encode_json_body(body),
            headers=headers,
        )

    def multipart_request(
        self,
        path: str,
        filename: str,
        data: bytes,
        content_type: str = "image/jpeg",
        field_name: str = "file",
    ) -> httpx.Request:
        """Build a multipart/form-data upload with a single file part.

        httpx picks a random boundary, writes ``Content-Disposition`` and
        ``Content-Type`` for the part, and terminates the body with the
        closing boundary.
        """
        return self._client.build_request(
            "POST",
            path,
            files={field_name: (filename, data, content_type)},
            headers=self.default_headers,
        )
