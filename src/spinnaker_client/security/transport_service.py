"""
Transport service: builds the HTTP session used to talk to the Spinnaker API.
"""
import logging
import os
import shutil
import tempfile
import weakref
from typing import Optional, Tuple

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.retry import Retry

from ..models.config import ClientConfig
from ..models.errors import ConfigError
from .credential_service import CredentialService
from .models import CertificateBundle


class TransportClient:
    """
    Owns the configured ``requests.Session``.

    Created once per client and never reconfigured. The session's
    connection pool is the only state shared between callers. A credential
    directory handed to the client is removed by ``close()``, or when the
    client is garbage collected without being closed.
    """

    def __init__(self,
                 session: requests.Session,
                 timeout: int,
                 bundle: Optional[CertificateBundle] = None,
                 credentials_dir: Optional[str] = None):
        self.session = session
        self.timeout = timeout
        self.bundle = bundle
        self._credentials_dir = credentials_dir
        self._cleanup = (
            weakref.finalize(self, shutil.rmtree, credentials_dir, True)
            if credentials_dir else None
        )
        self.logger = logging.getLogger(__name__)

    @property
    def verifies_server_certificate(self) -> bool:
        return self.session.verify is not False

    def prepare(self, request: requests.Request) -> requests.PreparedRequest:
        """Prepare a request with the session's default headers."""
        return self.session.prepare_request(request)

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        """Send a prepared request. Network failures raise requests exceptions."""
        return self.session.send(request, timeout=self.timeout, allow_redirects=True)

    def close(self):
        """Close the connection pool and remove materialized credentials."""
        self.session.close()
        if self._cleanup is not None and self._cleanup.alive:
            self._cleanup()
            self.logger.debug(f"Removed client credential directory {self._credentials_dir}")
        self._credentials_dir = None


class TransportService:
    """Configures HTTP transport, including the client certificate for mutual TLS."""

    def __init__(self, config: ClientConfig):
        """
        Initialize the transport service.

        Args:
            config: Client configuration
        """
        self.config = config
        self.logger = logging.getLogger(__name__)

    def configure(self) -> TransportClient:
        """
        Build the transport client.

        Returns:
            TransportClient wrapping a configured session

        Raises:
            ConfigError: If the client credentials cannot be loaded
        """
        bundle = CredentialService(self.config.auth).load_bundle()
        session = self._create_session()

        credentials_dir = None
        if bundle is not None:
            cert_file, key_file, credentials_dir = self._materialize(bundle)
            session.cert = (cert_file, key_file)
            session.verify = not self.config.auth.insecure_skip_verify

            if self.config.auth.insecure_skip_verify:
                # Internal deployments serve self-signed certificates
                urllib3.disable_warnings(InsecureRequestWarning)
                self.logger.warning(
                    f"Server certificate verification is disabled for {self.config.address}; "
                    f"set insecure_skip_verify = false to enable it"
                )

        self.logger.info(
            f"Configured transport for {self.config.address} "
            f"(client certificate: {'yes' if bundle else 'no'})"
        )
        return TransportClient(
            session=session,
            timeout=self.config.request_timeout_seconds,
            bundle=bundle,
            credentials_dir=credentials_dir
        )

    def _create_session(self) -> requests.Session:
        """Create a requests session with pool settings and no transport level retries."""
        session = requests.Session()

        # Retries are decided above this layer
        retry_strategy = Retry(total=0, raise_on_status=False)

        adapter = HTTPAdapter(
            pool_connections=self.config.pool_connections,
            pool_maxsize=self.config.pool_maxsize,
            max_retries=retry_strategy
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'User-Agent': self.config.user_agent,
            'Accept': 'application/json',
        })

        return session

    def _materialize(self, bundle: CertificateBundle) -> Tuple[str, str, Optional[str]]:
        """
        Return file paths for the certificate and key.

        Path credentials are used in place. Inline credentials are written to a
        private temporary directory, since the TLS stack loads them from files.

        Raises:
            ConfigError: If the credentials cannot be written; the directory
                is removed again
        """
        if bundle.source == "path":
            return bundle.cert_path, bundle.key_path, None

        credentials_dir = tempfile.mkdtemp(prefix="spinnaker-client-")
        cert_file = os.path.join(credentials_dir, "client.crt")
        key_file = os.path.join(credentials_dir, "client.key")
        try:
            for file_path, content in ((cert_file, bundle.cert_pem), (key_file, bundle.key_pem)):
                fd = os.open(file_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
                with os.fdopen(fd, 'wb') as f:
                    f.write(content)
        except OSError as e:
            shutil.rmtree(credentials_dir, ignore_errors=True)
            raise ConfigError(f"Unable to write client credentials to {credentials_dir}: {e}") from e

        self.logger.debug(f"Wrote inline client credentials to {credentials_dir}")
        return cert_file, key_file, credentials_dir
