"""Decoding of API responses into wire models and typed errors."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from goplaces.errors import ClientError, ErrorCode, error_code_from_server
from goplaces.models.api import ServerErrorPayload
from goplaces.network.transport import TransportResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_response(model: type[ModelT], response: TransportResponse) -> ModelT:
    """Validate a JSON body against ``model``.

    Raises:
        ClientError: ``decoding_error`` when the body does not fit.
    """
    try:
        return model.model_validate_json(response.body)
    except ValidationError as e:
        logger.warning("Could not decode %s: %d error(s)", model.__name__, e.error_count())
        raise ClientError.decoding_error(model=model.__name__, errors=e.error_count()) from e


def decode_list(model: type[ModelT], response: TransportResponse) -> list[ModelT]:
    """Validate a JSON array body whose items are ``model``."""
    try:
        return TypeAdapter(list[model]).validate_json(response.body)
    except ValidationError as e:
        logger.warning("Could not decode list of %s: %d error(s)", model.__name__, e.error_count())
        raise ClientError.decoding_error(model=model.__name__, errors=e.error_count()) from e


def error_from_response(response: TransportResponse) -> ClientError:
    """Build the error for an unsuccessful response, preferring the server's code."""
    details: dict[str, Any] = {"status_code": response.status_code}
    try:
        payload = ServerErrorPayload.model_validate_json(response.body)
    except ValidationError:
        return ClientError.server_error(f"Server error ({response.status_code})", **details)

    if payload.details:
        details.update(payload.details)
    if payload.code:
        details["server_code"] = payload.code
    code = error_code_from_server(payload.code) or ErrorCode.SERVER_ERROR
    message = payload.text or (f"Server error ({response.status_code})" if code is ErrorCode.SERVER_ERROR else None)
    return ClientError(code, message, details)
