"""
Client for the Spinnaker API: mutual TLS transport, retrying requests and
typed pipeline stages.
"""

from .models import (
    AuthConfig, ClientConfig,
    SpinnakerClientError, ConfigError, BuildError, TransportError,
    ServiceError, DecodeError, InvalidArgumentError,
    Stage, StageCommon, Notification
)
from .parsers import decode_stage, decode_stages, encode_stage, register_stage_parser
from .services import SpinnakerClient, ConfigService, RetryPolicy, AttemptRecord

__version__ = "0.1.0"

__all__ = [
    'AuthConfig',
    'ClientConfig',
    'SpinnakerClientError',
    'ConfigError',
    'BuildError',
    'TransportError',
    'ServiceError',
    'DecodeError',
    'InvalidArgumentError',
    'Stage',
    'StageCommon',
    'Notification',
    'decode_stage',
    'decode_stages',
    'encode_stage',
    'register_stage_parser',
    'SpinnakerClient',
    'ConfigService',
    'RetryPolicy',
    'AttemptRecord'
]
