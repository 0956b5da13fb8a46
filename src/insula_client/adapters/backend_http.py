"""Shared request handling for the insula backend REST API."""

import logging
from typing import TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from insula_client.app_logging import redact_token
from insula_client.domain.errors import (
    AuthError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)

_logger = logging.getLogger(__name__)

_VALIDATION_STATUSES = {400, 422}

INVALID_RESPONSE_MESSAGE = "Respuesta inválida del servidor"

ModelT = TypeVar("ModelT", bound=BaseModel)


async def send_request(  # noqa: PLR0913
    http_client: httpx.AsyncClient,
    method: str,
    url: str,
    token: str,
    *,
    fallback_message: str,
    timeout: float,
    params: dict[str, str] | None = None,
    json: dict[str, object] | None = None,
) -> object:
    """Send an authenticated request and return the decoded JSON body.

    Raises the matching ``InsulaError`` subclass for transport failures and
    non-2xx responses. The backend's ``message`` field is used verbatim when
    present.
    """
    headers = {"Authorization": f"Bearer {token}"}
    _logger.debug("%s %s (token=%s)", method, url, redact_token(token))
    try:
        response = await http_client.request(
            method,
            url,
            headers=headers,
            params=params,
            json=json,
            timeout=timeout,
        )
    except httpx.TransportError as exc:
        _logger.warning("%s %s failed: %s", method, url, exc)
        raise NetworkError(f"{fallback_message}: {exc}") from exc

    data = _decode(response)
    _logger.info("%s %s -> %s", method, url, response.status_code)
    if response.is_success:
        return data

    message = _error_message(data, fallback_message)
    status_code = response.status_code
    if status_code == httpx.codes.UNAUTHORIZED:
        raise AuthError(message)
    if status_code == httpx.codes.NOT_FOUND:
        raise NotFoundError(message, status_code)
    if status_code in _VALIDATION_STATUSES:
        raise ValidationError(message)
    raise ServerError(message, status_code)


def _decode(response: httpx.Response) -> object:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(data: object, fallback: str) -> str:
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message:
            return message
    return fallback


def unwrap_list(data: object) -> list[object]:
    """Return a list payload, accepting a ``{"data": [...]}`` envelope."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return data["data"]
    return []


def parse_model(model: type[ModelT], data: object) -> ModelT:
    """Validate a response body, raising ``ServerError`` when it does not fit."""
    try:
        return model.model_validate(data)
    except SchemaError as exc:
        _logger.error("Unexpected %s payload: %s", model.__name__, exc)
        raise ServerError(INVALID_RESPONSE_MESSAGE) from exc


def parse_models(model: type[ModelT], data: object) -> list[ModelT]:
    """Validate every item of a list payload."""
    return [parse_model(model, item) for item in unwrap_list(data)]
