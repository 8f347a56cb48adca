"""
Models package for the Spinnaker API client.
"""

from .config import AuthConfig, ClientConfig, ConfigIssue, ConfigValidationResult, Severity
from .errors import (
    SpinnakerClientError, ConfigError, BuildError, TransportError,
    ServiceError, DecodeError, InvalidArgumentError
)
from .stages import (
    Stage, StageCommon, StageEnabled, Notification, Moniker, Capacity, JudgmentInput,
    ServerGroupTarget, ResizeAction, ResizeType, TargetServerGroupStage,
    DestroyServerGroupStage, DisableServerGroupStage, ResizeServerGroupStage,
    ManualJudgmentStage, JenkinsStage, PipelineStage
)

__all__ = [
    'AuthConfig',
    'ClientConfig',
    'ConfigIssue',
    'ConfigValidationResult',
    'Severity',
    'SpinnakerClientError',
    'ConfigError',
    'BuildError',
    'TransportError',
    'ServiceError',
    'DecodeError',
    'InvalidArgumentError',
    'Stage',
    'StageCommon',
    'StageEnabled',
    'Notification',
    'Moniker',
    'Capacity',
    'JudgmentInput',
    'ServerGroupTarget',
    'ResizeAction',
    'ResizeType',
    'TargetServerGroupStage',
    'DestroyServerGroupStage',
    'DisableServerGroupStage',
    'ResizeServerGroupStage',
    'ManualJudgmentStage',
    'JenkinsStage',
    'PipelineStage'
]
