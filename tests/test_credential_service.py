"""
Tests for client certificate loading.
"""
import os
import shutil
import tempfile
import unittest

from spinnaker_client.models.config import AuthConfig
from spinnaker_client.models.errors import ConfigError
from spinnaker_client.security.credential_service import CredentialService
from spinnaker_client.security.models import CertificateBundle

from cert_factory import (
    create_test_ca, create_test_cert, cert_to_pem, key_to_pem, to_base64, create_private_key
)


class TestCredentialService(unittest.TestCase):
    """Test cases for CredentialService."""

    @classmethod
    def setUpClass(cls):
        """Create test certificates once, key generation is slow."""
        cls.ca_cert, cls.ca_key = create_test_ca()
        cls.client_cert, cls.client_key = create_test_cert(cls.ca_cert, cls.ca_key, "client")
        cls.cert_pem = cert_to_pem(cls.client_cert)
        cls.key_pem = key_to_pem(cls.client_key)
        cls.other_key_pem = key_to_pem(create_private_key())

    def setUp(self):
        """Write the certificate files."""
        self.temp_dir = tempfile.mkdtemp()
        self.cert_path = os.path.join(self.temp_dir, 'client.crt')
        self.key_path = os.path.join(self.temp_dir, 'client.key')

        with open(self.cert_path, 'wb') as f:
            f.write(self.cert_pem)
        with open(self.key_path, 'wb') as f:
            f.write(self.key_pem)

    def tearDown(self):
        """Clean up temporary files."""
        shutil.rmtree(self.temp_dir)

    def test_disabled_auth_loads_nothing(self):
        """Test that no bundle is loaded when authentication is disabled."""
        auth = AuthConfig(enabled=False, cert_path=self.cert_path, key_path=self.key_path)
        self.assertIsNone(CredentialService(auth).load_bundle())

    def test_load_from_paths(self):
        """Test loading the certificate and key from files."""
        auth = AuthConfig(enabled=True, cert_path=self.cert_path, key_path=self.key_path)

        bundle = CredentialService(auth).load_bundle()

        self.assertIsInstance(bundle, CertificateBundle)
        self.assertEqual(bundle.source, "path")
        self.assertEqual(bundle.cert_path, self.cert_path)
        self.assertEqual(bundle.key_path, self.key_path)
        self.assertEqual(bundle.cert_pem, self.cert_pem)
        self.assertEqual(bundle.info.subject, "CN=client")
        self.assertTrue(bundle.info.is_valid)

    def test_load_from_inline_content(self):
        """Test loading base64 encoded certificate content."""
        auth = AuthConfig(
            enabled=True,
            cert_content=to_base64(self.cert_pem),
            key_content=to_base64(self.key_pem)
        )

        bundle = CredentialService(auth).load_bundle()

        self.assertEqual(bundle.source, "content")
        self.assertIsNone(bundle.cert_path)
        self.assertEqual(bundle.key_pem, self.key_pem)

    def test_inline_content_with_line_breaks(self):
        """Test that wrapped base64 content is accepted."""
        encoded = to_base64(self.cert_pem)
        wrapped = "\n".join(encoded[i:i + 64] for i in range(0, len(encoded), 64))
        auth = AuthConfig(enabled=True, cert_content=wrapped, key_content=to_base64(self.key_pem))

        bundle = CredentialService(auth).load_bundle()

        self.assertEqual(bundle.cert_pem, self.cert_pem)

    def test_inline_content_wins_over_paths(self):
        """Test that inline content is used even when paths are set."""
        auth = AuthConfig(
            enabled=True,
            cert_path="/does/not/exist.crt",
            key_path="/does/not/exist.key",
            cert_content=to_base64(self.cert_pem),
            key_content=to_base64(self.key_pem)
        )

        bundle = CredentialService(auth).load_bundle()

        self.assertEqual(bundle.source, "content")

    def test_invalid_base64_does_not_fall_back_to_paths(self):
        """Test that malformed inline content is fatal even with valid paths."""
        auth = AuthConfig(
            enabled=True,
            cert_path=self.cert_path,
            key_path=self.key_path,
            cert_content="not base64!!",
            key_content=to_base64(self.key_pem)
        )

        with self.assertRaises(ConfigError) as cm:
            CredentialService(auth).load_bundle()
        self.assertIn("not valid base64", str(cm.exception))

    def test_missing_key_content(self):
        """Test that certificate content without key content is rejected."""
        auth = AuthConfig(enabled=True, cert_content=to_base64(self.cert_pem))

        with self.assertRaises(ConfigError):
            CredentialService(auth).load_bundle()

    def test_missing_certificate_file(self):
        """Test that a missing certificate file is a configuration error."""
        auth = AuthConfig(
            enabled=True,
            cert_path=os.path.join(self.temp_dir, 'missing.crt'),
            key_path=self.key_path
        )

        with self.assertRaises(ConfigError) as cm:
            CredentialService(auth).load_bundle()
        self.assertIn("not found", str(cm.exception))

    def test_empty_key_file(self):
        """Test that an empty key file is a configuration error."""
        with open(self.key_path, 'wb') as f:
            f.write(b"")
        auth = AuthConfig(enabled=True, cert_path=self.cert_path, key_path=self.key_path)

        with self.assertRaises(ConfigError) as cm:
            CredentialService(auth).load_bundle()
        self.assertIn("empty", str(cm.exception))

    def test_enabled_without_credentials(self):
        """Test that enabling authentication without a certificate fails."""
        with self.assertRaises(ConfigError):
            CredentialService(AuthConfig(enabled=True)).load_bundle()

    def test_invalid_certificate_pem(self):
        """Test that garbage certificate content is rejected."""
        auth = AuthConfig(
            enabled=True,
            cert_content=to_base64(b"-----BEGIN CERTIFICATE-----\nnope\n-----END CERTIFICATE-----\n"),
            key_content=to_base64(self.key_pem)
        )

        with self.assertRaises(ConfigError) as cm:
            CredentialService(auth).load_bundle()
        self.assertIn("certificate", str(cm.exception))

    def test_mismatched_key(self):
        """Test that a key belonging to another certificate is rejected."""
        auth = AuthConfig(
            enabled=True,
            cert_content=to_base64(self.cert_pem),
            key_content=to_base64(self.other_key_pem)
        )

        with self.assertRaises(ConfigError) as cm:
            CredentialService(auth).load_bundle()
        self.assertIn("does not match", str(cm.exception))

    def test_expired_certificate_still_loads(self):
        """Test that an expired certificate is loaded and flagged."""
        expired_cert, expired_key = create_test_cert(self.ca_cert, self.ca_key, "expired", days_valid=-1)
        auth = AuthConfig(
            enabled=True,
            cert_content=to_base64(cert_to_pem(expired_cert)),
            key_content=to_base64(key_to_pem(expired_key))
        )

        with self.assertLogs('spinnaker_client.security.credential_service', level='WARNING'):
            bundle = CredentialService(auth).load_bundle()

        self.assertFalse(bundle.info.is_valid)

    def test_bundle_repr_hides_key(self):
        """Test that the bundle representation does not contain key material."""
        auth = AuthConfig(enabled=True, cert_path=self.cert_path, key_path=self.key_path)
        bundle = CredentialService(auth).load_bundle()

        self.assertNotIn("PRIVATE KEY", repr(bundle))


if __name__ == '__main__':
    unittest.main()
