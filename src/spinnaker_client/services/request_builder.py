"""
Request builder for JSON requests against the Spinnaker API.
"""
import dataclasses
import json
import logging
import re
from enum import Enum
from typing import Any
from urllib.parse import urlparse

import requests
from pydantic import BaseModel
from requests.utils import requote_uri

from ..models.errors import BuildError
from ..models.stages import Stage
from ..parsers.stage_parser import encode_stage


JSON_CONTENT_TYPE = "application/json;charset=UTF-8"

_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")


class RequestBuilder:
    """Builds requests with JSON bodies against a base address."""

    def __init__(self, address: str, transport=None):
        """
        Initialize the request builder.

        Args:
            address: Base address every path is appended to
            transport: Optional TransportClient used to merge session defaults
                into the prepared request
        """
        self.address = address
        self.transport = transport
        self.logger = logging.getLogger(__name__)

    def build(self, method: str, path: str, payload: Any = None) -> requests.PreparedRequest:
        """
        Build a prepared request.

        Args:
            method: HTTP method
            path: Path appended to the base address
            payload: Data serialized as the JSON body; None is sent as ``null``

        Returns:
            Prepared request with a JSON body

        Raises:
            BuildError: If the URL is malformed or the payload cannot be serialized
        """
        url = self.resolve_url(path)
        body = self.serialize(payload)

        self.logger.info(
            f"Sending {method.upper()} {url} with body {body}",
            extra={"http_method": method.upper(), "http_url": url}
        )

        request = requests.Request(
            method=method.upper(),
            url=url,
            data=body.encode("utf-8"),
            headers={"Content-Type": JSON_CONTENT_TYPE}
        )
        try:
            if self.transport is not None:
                return self.transport.prepare(request)
            return request.prepare()
        except requests.exceptions.RequestException as e:
            raise BuildError(f"Invalid request URL {url}: {e}") from e

    def resolve_url(self, path: str) -> str:
        """
        Append a path to the base address and check the result.

        Characters a URL cannot carry as they are, such as spaces, are
        percent-escaped. Existing escapes are kept.

        Raises:
            BuildError: If the combined URL contains control characters or is
                not an http(s) URL with a host
        """
        url = f"{self.address}{path or ''}"

        if _CONTROL_CHARACTERS.search(url):
            raise BuildError(f"Invalid request URL {url!r}: contains control characters")

        url = requote_uri(url)

        try:
            parsed = urlparse(url)
            # Accessing the port validates it
            parsed.port
        except ValueError as e:
            raise BuildError(f"Invalid request URL {url!r}: {e}") from e

        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise BuildError(f"Invalid request URL {url!r}: expected an http(s) address with a host")

        return url

    def serialize(self, payload: Any) -> str:
        """
        Serialize a payload to compact JSON.

        Raises:
            BuildError: If the payload contains values JSON cannot represent
        """
        try:
            return json.dumps(payload, default=self._json_default, separators=(",", ":"),
                              ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise BuildError(f"Unable to serialize request body: {e}") from e

    def _json_default(self, value: Any) -> Any:
        if isinstance(value, Stage):
            return encode_stage(value)
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True, exclude_none=True)
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return dataclasses.asdict(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (set, frozenset)):
            return sorted(value, key=str)
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
