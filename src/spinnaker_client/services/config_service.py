"""
Configuration service for loading and validating client settings.
"""
import os
import configparser
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from ..models.config import AuthConfig, ClientConfig, ConfigIssue, ConfigValidationResult, Severity


ENV_ADDRESS = "SPINNAKER_ADDRESS"
ENV_CERT = "SPINNAKER_CERT"
ENV_KEY = "SPINNAKER_KEY"
ENV_CERT_CONTENT = "SPINNAKER_CERT_CONTENT"
ENV_KEY_CONTENT = "SPINNAKER_KEY_CONTENT"
ENV_EMAIL = "SPINNAKER_EMAIL"

# Where the client certificate comes from when several sources supply one.
# The first row with a certificate wins; the key is always taken from the
# same row as the certificate.
CREDENTIAL_PRECEDENCE: Tuple[Tuple[str, str], ...] = (
    ("environment", "content"),
    ("environment", "path"),
    ("explicit", "content"),
    ("explicit", "path"),
)


class ConfigService:
    """Service for loading and validating client configuration."""

    def __init__(self, config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize the configuration service.

        Args:
            config_path: Optional properties file loaded right away
            environ: Environment used for overrides, defaults to os.environ
        """
        self.logger = logging.getLogger(__name__)
        self.environ = os.environ if environ is None else environ
        self._config = None
        if config_path:
            self._config = self.load_config(config_path)

    def get_config(self) -> ClientConfig:
        """
        Get the loaded configuration.

        Raises:
            ValueError: If no configuration has been loaded
        """
        if self._config is None:
            raise ValueError("No configuration loaded. Call load_config() first.")
        return self._config

    def load_config(self, config_path: str) -> ClientConfig:
        """
        Load configuration from a property file and apply environment overrides.

        Args:
            config_path: Path to the configuration file

        Returns:
            ClientConfig with loaded settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid or has validation errors
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        config_data = self._load_config_file(config_path)
        config = self.build_config(config_data)

        validation_result = self.validate_config(config)
        if validation_result.has_errors():
            error_summary = validation_result.summary(Severity.ERROR)
            raise ValueError(f"Configuration validation failed:\n{error_summary}")

        if validation_result.has_warnings():
            warning_summary = validation_result.summary(Severity.WARNING)
            self.logger.warning(f"Configuration warnings:\n{warning_summary}")

        self._config = config
        return config

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Load configuration data from file as ``section.key`` entries."""
        config_parser = configparser.ConfigParser(interpolation=None)

        try:
            config_parser.read(config_path)
        except configparser.Error as e:
            raise ValueError(f"Failed to parse configuration file: {e}")

        config_data = {}
        for section in config_parser.sections():
            for key, value in config_parser.items(section):
                config_data[f"{section}.{key}"] = value

        return config_data

    def build_config(self, config_data: Mapping[str, Any]) -> ClientConfig:
        """
        Create a ClientConfig from explicit settings and the environment.

        Args:
            config_data: Explicit settings keyed ``section.key``

        Returns:
            ClientConfig

        Raises:
            ValueError: If a value has the wrong type
        """
        config_mapping = {
            # API settings
            "spinnaker.address": ("address", str),
            "spinnaker.request_timeout_seconds": ("request_timeout_seconds", int),
            "spinnaker.pool_connections": ("pool_connections", int),
            "spinnaker.pool_maxsize": ("pool_maxsize", int),
            "spinnaker.user_agent": ("user_agent", str),

            # Authentication settings
            "auth.enabled": ("enabled", bool),
            "auth.cert_path": ("cert_path", str),
            "auth.key_path": ("key_path", str),
            "auth.cert_content": ("cert_content", str),
            "auth.key_content": ("key_content", str),
            "auth.user_email": ("user_email", str),
            "auth.insecure_skip_verify": ("insecure_skip_verify", bool),

            # Application settings
            "app.log_level": ("log_level", str),
            "app.log_file_path": ("log_file_path", str),
        }

        values = {}
        for config_key, raw_value in config_data.items():
            if config_key not in config_mapping:
                continue
            field_name, field_type = config_mapping[config_key]
            try:
                if field_type == bool:
                    value = self._parse_bool(raw_value)
                elif field_type == int:
                    value = int(raw_value)
                else:
                    value = str(raw_value).strip() if raw_value is not None else ""
                    if not value:
                        continue
                values[field_name] = value
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid value for {config_key}: {raw_value} ({e})")

        auth = self.resolve_auth(AuthConfig(
            enabled=values.pop("enabled", False),
            cert_path=values.pop("cert_path", ""),
            key_path=values.pop("key_path", ""),
            cert_content=values.pop("cert_content", ""),
            key_content=values.pop("key_content", ""),
            user_email=values.pop("user_email", ""),
            insecure_skip_verify=values.pop("insecure_skip_verify", True)
        ))

        # Explicit settings win; the environment only supplies defaults here
        if not values.get("address"):
            values["address"] = self.environ.get(ENV_ADDRESS, "")
        if "log_level" in values:
            values["log_level"] = values["log_level"].upper()

        return ClientConfig(auth=auth, **values)

    def resolve_auth(self, explicit: AuthConfig) -> AuthConfig:
        """
        Combine explicit authentication settings with the environment.

        The certificate source is picked by walking CREDENTIAL_PRECEDENCE.
        A certificate supplied by the environment turns authentication on.

        Args:
            explicit: Settings from the configuration file or the caller

        Returns:
            AuthConfig carrying exactly one certificate source
        """
        sources = {
            ("environment", "content"): (self.environ.get(ENV_CERT_CONTENT, ""),
                                         self.environ.get(ENV_KEY_CONTENT, "")),
            ("environment", "path"): (self.environ.get(ENV_CERT, ""),
                                      self.environ.get(ENV_KEY, "")),
            ("explicit", "content"): (explicit.cert_content, explicit.key_content),
            ("explicit", "path"): (explicit.cert_path, explicit.key_path),
        }

        user_email = explicit.user_email or self.environ.get(ENV_EMAIL, "")

        for origin, kind in CREDENTIAL_PRECEDENCE:
            cert, key = sources[(origin, kind)]
            if not cert:
                continue

            self.logger.info(f"Using client certificate {kind} from {origin} settings")
            enabled = explicit.enabled or origin == "environment"
            if kind == "content":
                return AuthConfig(enabled=enabled, cert_content=cert, key_content=key,
                                  user_email=user_email,
                                  insecure_skip_verify=explicit.insecure_skip_verify)
            return AuthConfig(enabled=enabled, cert_path=cert, key_path=key,
                              user_email=user_email,
                              insecure_skip_verify=explicit.insecure_skip_verify)

        return AuthConfig(enabled=explicit.enabled, user_email=user_email,
                          insecure_skip_verify=explicit.insecure_skip_verify)

    def _parse_bool(self, value: Any) -> bool:
        """Parse boolean value from string."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("true", "yes", "1", "on", "enabled")
        return bool(value)

    def validate_config(self, config: ClientConfig) -> ConfigValidationResult:
        """
        Validate configuration settings.

        Args:
            config: Configuration object to validate

        Returns:
            ConfigValidationResult holding every issue found
        """
        issues = []

        def error(field_name: str, message: str):
            issues.append(ConfigIssue(field_name, message, Severity.ERROR))

        def warning(field_name: str, message: str):
            issues.append(ConfigIssue(field_name, message, Severity.WARNING))

        if not config.address:
            error("address", f"Spinnaker API address is required (or set {ENV_ADDRESS})")
        elif not config.address.startswith(("http://", "https://")):
            error("address", "Spinnaker API address must start with http:// or https://")

        auth = config.auth
        if auth.enabled:
            if auth.has_inline_credentials():
                if not auth.key_content:
                    error("key_content", "key_content is required when cert_content is set")
            elif auth.has_path_credentials():
                for field_name, cert_path in (("cert_path", auth.cert_path), ("key_path", auth.key_path)):
                    if not cert_path:
                        error(field_name, f"{field_name} is required when authentication is enabled")
                    elif not os.path.exists(cert_path):
                        error(field_name, f"Certificate file not found: {cert_path}")
            else:
                error("cert_path", "A client certificate is required when authentication is enabled")

            if auth.insecure_skip_verify:
                warning("insecure_skip_verify", "Server certificate verification is disabled")

            if config.address.startswith("http://"):
                warning("address", "Client certificates are only presented over https")

        if config.log_file_path:
            log_dir = os.path.dirname(config.log_file_path)
            if log_dir and not os.path.exists(log_dir):
                warning("log_file_path", f"Log directory does not exist: {log_dir}")

        if config.request_timeout_seconds > 300:
            warning("request_timeout_seconds", "Request timeout over 5 minutes may cause performance issues")

        return ConfigValidationResult(tuple(issues))

    def create_default_config_file(self, config_path: str) -> None:
        """
        Create a default configuration file with example settings.

        Args:
            config_path: Path where to create the config file
        """
        config_content = """# Spinnaker client configuration file

[spinnaker]
address = https://api.spinnaker.example.com
request_timeout_seconds = 30

[auth]
enabled = false
cert_path =
key_path =
cert_content =
key_content =
user_email =
insecure_skip_verify = true

[app]
log_level = INFO
log_file_path =
"""

        config_dir = os.path.dirname(config_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_path, 'w') as f:
            f.write(config_content)

        self.logger.info(f"Created default configuration file: {config_path}")
