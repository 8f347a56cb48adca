"""
Credential service for loading the client certificate used for mutual TLS.
"""
import base64
import binascii
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization

from ..models.config import AuthConfig
from ..models.errors import ConfigError
from .models import CertificateBundle, CertificateInfo


class CredentialService:
    """Loads and checks the client certificate/key pair described by an AuthConfig."""

    def __init__(self, auth: AuthConfig):
        """Initialize the credential service with authentication settings."""
        self.auth = auth
        self.logger = logging.getLogger(__name__)

    def load_bundle(self) -> Optional[CertificateBundle]:
        """
        Load the certificate bundle.

        Inline base64 content wins over file paths. A credential that cannot
        be decoded or read is an error; there is no fallback to the other
        source.

        Returns:
            CertificateBundle, or None when authentication is disabled

        Raises:
            ConfigError: If the credential material is missing, malformed,
                unreadable, or the key does not belong to the certificate
        """
        if not self.auth.enabled:
            self.logger.info("Client certificate authentication disabled")
            return None

        if self.auth.has_inline_credentials():
            cert_pem = self._decode_base64(self.auth.cert_content, "certificate")
            key_pem = self._decode_base64(self.auth.key_content, "key")
            source = "content"
            cert_path = key_path = None
        elif self.auth.has_path_credentials():
            cert_pem = self._read_file(self.auth.cert_path, "certificate")
            key_pem = self._read_file(self.auth.key_path, "key")
            source = "path"
            cert_path, key_path = self.auth.cert_path, self.auth.key_path
        else:
            raise ConfigError(
                "Authentication is enabled but no client certificate was configured "
                "(set cert_content/key_content or cert_path/key_path)"
            )

        info = self._verify_key_pair(cert_pem, key_pem)
        if not info.is_valid:
            self.logger.warning(
                f"Client certificate {info.subject} is outside its validity period "
                f"({info.not_before.isoformat()} - {info.not_after.isoformat()})"
            )

        self.logger.info(f"Loaded client certificate {info.subject} from {source}")
        return CertificateBundle(
            cert_pem=cert_pem,
            key_pem=key_pem,
            source=source,
            info=info,
            cert_path=cert_path,
            key_path=key_path
        )

    def _decode_base64(self, content: str, what: str) -> bytes:
        """Decode base64 credential content, ignoring line breaks."""
        compact = "".join((content or "").split())
        if not compact:
            raise ConfigError(f"Client {what} content is empty")
        try:
            return base64.b64decode(compact, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConfigError(f"Client {what} content is not valid base64: {e}") from e

    def _read_file(self, file_path: str, what: str) -> bytes:
        """Read credential material from a file."""
        if not file_path:
            raise ConfigError(f"Client {what} path is not configured")
        if not os.path.exists(file_path):
            raise ConfigError(f"Client {what} file not found: {file_path}")

        try:
            with open(file_path, 'rb') as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"Unable to read client {what} file {file_path}: {e}") from e

        if not content.strip():
            raise ConfigError(f"Client {what} file is empty: {file_path}")

        return content

    def _verify_key_pair(self, cert_pem: bytes, key_pem: bytes) -> CertificateInfo:
        """Parse the certificate and key and check that they belong together."""
        try:
            cert = x509.load_pem_x509_certificate(cert_pem)
        except ValueError as e:
            raise ConfigError(f"Client certificate is not a valid PEM certificate: {e}") from e

        try:
            key = serialization.load_pem_private_key(key_pem, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise ConfigError(f"Client key is not a valid unencrypted PEM private key: {e}") from e

        cert_public = cert.public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo
        )
        key_public = key.public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo
        )
        if cert_public != key_public:
            raise ConfigError("Client key does not match the client certificate")

        return self.get_certificate_info(cert)

    @staticmethod
    def get_certificate_info(cert: x509.Certificate) -> CertificateInfo:
        """Extract information from a certificate."""
        now = datetime.now(timezone.utc)
        not_before = cert.not_valid_before_utc
        not_after = cert.not_valid_after_utc

        return CertificateInfo(
            subject=cert.subject.rfc4514_string(),
            issuer=cert.issuer.rfc4514_string(),
            serial_number=str(cert.serial_number),
            not_before=not_before,
            not_after=not_after,
            is_valid=not_before <= now <= not_after,
            fingerprint=cert.fingerprint(hashes.SHA256()).hex()
        )
