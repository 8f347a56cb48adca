"""
Services package for the Spinnaker API client.
"""

from .config_service import ConfigService, CREDENTIAL_PRECEDENCE
from .request_builder import RequestBuilder
from .response_service import ResponseService, validate_response, decode_response
from .retry_service import RetryOrchestrator, RetryPolicy, AttemptRecord
from .client_service import SpinnakerClient
from .logging_service import LoggingService, JSONFormatter

__all__ = [
    'ConfigService',
    'CREDENTIAL_PRECEDENCE',
    'RequestBuilder',
    'ResponseService',
    'validate_response',
    'decode_response',
    'RetryOrchestrator',
    'RetryPolicy',
    'AttemptRecord',
    'SpinnakerClient',
    'LoggingService',
    'JSONFormatter'
]
