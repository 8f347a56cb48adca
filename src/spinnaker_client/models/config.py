"""
Configuration data models for the Spinnaker API client.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass(frozen=True)
class AuthConfig:
    """Client certificate settings for mutual TLS."""

    enabled: bool = False
    cert_path: str = ""
    key_path: str = ""

    # Base64 encoded PEM, takes precedence over the paths above
    cert_content: str = ""
    key_content: str = ""

    # Metadata only, never sent on the wire by the transport
    user_email: str = ""

    # The internal deployments use self-signed or private CA server
    # certificates, so verification is off unless turned back on.
    insecure_skip_verify: bool = True

    def has_inline_credentials(self) -> bool:
        """Check if inline base64 certificate content was supplied."""
        return bool(self.cert_content)

    def has_path_credentials(self) -> bool:
        """Check if a certificate file path was supplied."""
        return bool(self.cert_path)


@dataclass(frozen=True)
class ClientConfig:
    """Main configuration class for a Spinnaker API client."""

    # API settings
    address: str = ""
    auth: AuthConfig = field(default_factory=AuthConfig)

    # Transport settings
    request_timeout_seconds: int = 30
    pool_connections: int = 10
    pool_maxsize: int = 10
    user_agent: str = "spinnaker-client/0.1"

    # Application settings
    log_level: str = "INFO"
    log_file_path: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_types()

    def _validate_types(self):
        """Ensure all configuration values have correct types."""
        if not isinstance(self.address, str):
            raise ValueError("address must be a string")

        if not isinstance(self.auth, AuthConfig):
            raise ValueError("auth must be an AuthConfig")

        if not isinstance(self.request_timeout_seconds, int) or self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be a positive integer")

        if not isinstance(self.pool_connections, int) or self.pool_connections <= 0:
            raise ValueError("pool_connections must be a positive integer")

        if not isinstance(self.pool_maxsize, int) or self.pool_maxsize <= 0:
            raise ValueError("pool_maxsize must be a positive integer")

        if self.log_level not in LOG_LEVELS:
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ConfigIssue:
    """A problem found in a ClientConfig, tied to the setting that caused it."""
    field: str
    message: str
    severity: Severity = Severity.ERROR

    def __str__(self):
        return f"{self.field}: {self.message}"


@dataclass(frozen=True)
class ConfigValidationResult:
    """
    Issues found while validating a ClientConfig.

    Errors make the configuration unusable. Warnings are logged when the
    configuration is loaded but do not stop the client.
    """
    issues: Tuple[ConfigIssue, ...] = ()

    def _with_severity(self, severity: Severity) -> Tuple[ConfigIssue, ...]:
        return tuple(issue for issue in self.issues if issue.severity == severity)

    @property
    def errors(self) -> Tuple[ConfigIssue, ...]:
        return self._with_severity(Severity.ERROR)

    @property
    def warnings(self) -> Tuple[ConfigIssue, ...]:
        return self._with_severity(Severity.WARNING)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def has_errors(self) -> bool:
        return bool(self.errors)

    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def summary(self, severity: Severity) -> str:
        """One ``field: message`` line per issue of the given severity."""
        return "\n".join(f"  - {issue}" for issue in self._with_severity(severity))
