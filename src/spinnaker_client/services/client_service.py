"""
Spinnaker API client: the entry point used by the resource layer.
"""
import logging
import time
from typing import Any, Callable, List, Mapping, Optional

import requests

from ..models.config import ClientConfig
from ..models.errors import InvalidArgumentError
from ..security.transport_service import TransportService
from .config_service import ConfigService
from .request_builder import RequestBuilder
from .response_service import ResponseService, decode_response
from .retry_service import AttemptRecord, RetryOrchestrator, RetryPolicy


class SpinnakerClient:
    """Issues authenticated JSON requests against one Spinnaker API."""

    def __init__(self,
                 config: ClientConfig,
                 retry_policy: Optional[RetryPolicy] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the client.

        Args:
            config: Client configuration
            retry_policy: Policy for do_with_retry, defaults to 5 attempts on HTTP 400
            sleep: Function used to wait between retries

        Raises:
            ConfigError: If the client certificate cannot be loaded
        """
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.logger.info(f"Initializing Spinnaker client for {config.address}")
        self.transport = TransportService(config).configure()
        self.request_builder = RequestBuilder(config.address, self.transport)
        self.response_service = ResponseService(self.transport)
        self.retry_orchestrator = RetryOrchestrator(retry_policy, sleep)

    @classmethod
    def from_config_file(cls, config_path: str,
                         environ: Optional[Mapping[str, str]] = None,
                         **kwargs) -> 'SpinnakerClient':
        """Create a client from a properties file plus environment overrides."""
        config = ConfigService(environ=environ).load_config(config_path)
        return cls(config, **kwargs)

    def new_request(self, method: str, path: str) -> requests.PreparedRequest:
        """Create a request without a payload (the body is JSON ``null``)."""
        return self.new_request_with_body(method, path, None)

    def new_request_with_body(self, method: str, path: str, data: Any) -> requests.PreparedRequest:
        """
        Create a request with ``data`` serialized as its JSON body.

        Raises:
            BuildError: If the URL is malformed or the payload cannot be serialized
        """
        return self.request_builder.build(method, path, data)

    def do(self, request: requests.PreparedRequest) -> requests.Response:
        """
        Send a request.

        Raises:
            ServiceError: If the API rejected the request
            TransportError: On network failure or an undecodable error body
        """
        return self.response_service.execute(request)

    def do_with_response(self, request: requests.PreparedRequest, target: Any) -> Any:
        """
        Send a request and decode the response body into ``target``.

        Raises:
            InvalidArgumentError: If target is None
            ServiceError: If the API rejected the request
            TransportError: On network failure or an undecodable body
        """
        if target is None:
            raise InvalidArgumentError("None target provided to decode_response")

        response = self.do(request)
        return decode_response(response, target)

    def do_with_retry(self,
                      create_request: Callable[[], requests.PreparedRequest],
                      attempt_log: Optional[List[AttemptRecord]] = None) -> requests.Response:
        """
        Send a request, replaying it while the API answers with HTTP 400.

        Args:
            create_request: Builds a fresh request for every attempt
            attempt_log: Optional list that receives one AttemptRecord per attempt

        Returns:
            The first successful response
        """
        return self.retry_orchestrator.execute_with_retry(create_request, self.do, attempt_log)

    def close(self):
        """Release the connection pool and any materialized credentials."""
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.close()
        return False
