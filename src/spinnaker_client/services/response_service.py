"""
Response handling: status validation, error envelope decoding and body decoding.
"""
import dataclasses
import json
import logging
from typing import Any, Type

import requests
from pydantic import BaseModel, TypeAdapter

from ..models.errors import DecodeError, InvalidArgumentError, ServiceError, TransportError
from ..models.stages import Stage
from ..parsers import decode_model, decode_stage


logger = logging.getLogger(__name__)


def _body_text(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


def validate_response(response: requests.Response) -> None:
    """
    Check the status of a response.

    Args:
        response: Response received from the API

    Raises:
        ServiceError: If the status is outside 200-299 and the body is an
            error envelope
        TransportError: If the status is outside 200-299 and the body cannot
            be decoded as an error envelope
    """
    if 200 <= response.status_code <= 299:
        return

    body = response.content or b""
    logger.info(f"Error response body {_body_text(body)}", extra={"http_status": response.status_code})

    try:
        envelope = json.loads(body)
    except ValueError as e:
        raise TransportError(
            f"Unable to decode error response (HTTP {response.status_code}): {e}"
        ) from e

    if not isinstance(envelope, dict):
        raise TransportError(
            f"Unable to decode error response (HTTP {response.status_code}): "
            f"expected an object, got {type(envelope).__name__}"
        )

    raise ServiceError.from_envelope(envelope, response.status_code)


def _decode_stage(data: Any, target: Type[Stage]) -> Stage:
    """Decode a stage document through the registry and check its variant."""
    stage = decode_stage(data)
    if not isinstance(stage, target):
        raise TransportError(
            f"Unable to decode response body: expected a {target.__name__}, "
            f"got a {type(stage).__name__} stage"
        )
    return stage


def decode_response(response: requests.Response, target: Any) -> Any:
    """
    Decode the body of a successful response.

    Args:
        response: Response received from the API
        target: What to decode into: a stage class (decoded through the stage
            registry), any other pydantic model or dataclass type, ``dict`` or
            ``list`` (checked), or any callable taking the decoded JSON

    Returns:
        The decoded value

    Raises:
        InvalidArgumentError: If target is None
        TransportError: If the body cannot be decoded into the target
    """
    if target is None:
        response.close()
        raise InvalidArgumentError("None target provided to decode_response")

    try:
        body = response.content or b""
    finally:
        response.close()

    logger.debug(f"Got response body {_body_text(body)}", extra={"http_status": response.status_code})

    try:
        data = json.loads(body)
    except ValueError as e:
        raise TransportError(f"Unable to decode response body: {e}") from e

    try:
        if isinstance(target, type) and issubclass(target, Stage):
            return _decode_stage(data, target)
        if isinstance(target, type) and issubclass(target, BaseModel):
            return decode_model(target, data)
        if isinstance(target, type) and dataclasses.is_dataclass(target):
            return TypeAdapter(target).validate_python(data)
        if target in (dict, list):
            if not isinstance(data, target):
                raise TransportError(
                    f"Unable to decode response body: expected {target.__name__}, "
                    f"got {type(data).__name__}"
                )
            return data
        return target(data)
    except DecodeError as e:
        raise TransportError(f"Unable to decode response body: {e}") from e
    except (TypeError, ValueError) as e:
        raise TransportError(f"Unable to decode response body: {e}") from e


class ResponseService:
    """Executes prepared requests and classifies the outcome."""

    def __init__(self, transport):
        """
        Initialize the response service.

        Args:
            transport: TransportClient used to send requests
        """
        self.transport = transport
        self.logger = logging.getLogger(__name__)

    def execute(self, request: requests.PreparedRequest) -> requests.Response:
        """
        Send a request and validate the response status.

        Args:
            request: Prepared request

        Returns:
            The successful response; its body has been read and the
            connection released

        Raises:
            TransportError: On network or TLS failure, or an undecodable error body
            ServiceError: If the API rejected the request
        """
        try:
            response = self.transport.send(request)
        except requests.exceptions.RequestException as e:
            self.logger.warning(
                f"Transport failure for {request.method} {request.url}: {e}",
                extra={"http_method": request.method, "http_url": request.url}
            )
            raise TransportError(f"{request.method} {request.url} failed: {e}") from e

        try:
            validate_response(response)
        finally:
            response.close()

        return response
