"""
Tests for the Spinnaker client facade.
"""
import io
import json
import os
import shutil
import tempfile
import unittest
from dataclasses import dataclass
from unittest.mock import Mock, call, patch

import requests

from spinnaker_client import SpinnakerClient
from spinnaker_client.models.config import AuthConfig, ClientConfig
from spinnaker_client.models.errors import (
    BuildError, ConfigError, InvalidArgumentError, ServiceError, TransportError
)
from spinnaker_client.services.retry_service import RetryPolicy

from cert_factory import create_test_ca, create_test_cert, cert_to_pem, key_to_pem, to_base64


ADDRESS = "https://api.spinnaker.example.com"


def make_response(status_code, body):
    if not isinstance(body, bytes):
        body = json.dumps(body).encode("utf-8")
    response = requests.Response()
    response.status_code = status_code
    response.raw = io.BytesIO(body)
    response._content = body
    response._content_consumed = True
    return response


@dataclass(frozen=True)
class PipelineConfig:
    name: str = ""
    application: str = ""
    id: str = ""


class TestSpinnakerClient(unittest.TestCase):
    """Test cases for SpinnakerClient."""

    def setUp(self):
        self.sleep = Mock()
        self.client = SpinnakerClient(ClientConfig(address=ADDRESS), sleep=self.sleep)
        self.addCleanup(self.client.close)

        patcher = patch.object(requests.Session, "send")
        self.send = patcher.start()
        self.addCleanup(patcher.stop)

    def test_new_request(self):
        """Test building a request without a payload."""
        request = self.client.new_request("get", "/applications")

        self.assertEqual(request.method, "GET")
        self.assertEqual(request.url, ADDRESS + "/applications")
        self.assertEqual(request.body, b"null")
        self.assertEqual(request.headers["User-Agent"], "spinnaker-client/0.1")

    def test_new_request_with_body(self):
        """Test building a request with a JSON payload."""
        request = self.client.new_request_with_body("post", "/pipelines", {"name": "deploy"})
        self.assertEqual(json.loads(request.body), {"name": "deploy"})

    def test_new_request_with_bad_payload(self):
        with self.assertRaises(BuildError):
            self.client.new_request_with_body("post", "/pipelines", {"bad": object()})

    def test_do_success(self):
        """Test that a 2xx response is returned."""
        self.send.return_value = make_response(200, {"name": "app"})

        response = self.client.do(self.client.new_request("get", "/applications/app"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"name": "app"})
        args, kwargs = self.send.call_args
        self.assertEqual(kwargs["timeout"], 30)

    def test_do_not_found(self):
        """Test that a 404 envelope becomes a ServiceError."""
        self.send.return_value = make_response(404, {"status": 404, "message": "not found"})

        with self.assertRaises(ServiceError) as cm:
            self.client.do(self.client.new_request("get", "/applications/missing"))

        self.assertEqual(cm.exception.status, 404)
        self.assertEqual(cm.exception.message, "not found")

    def test_do_connection_refused(self):
        """Test that a refused connection is a transport error."""
        self.send.side_effect = requests.exceptions.ConnectionError("connection refused")

        with self.assertRaises(TransportError):
            self.client.do(self.client.new_request("get", "/applications"))

    def test_do_with_response(self):
        """Test decoding a response into a dataclass."""
        self.send.return_value = make_response(200, {"name": "deploy", "application": "app", "id": "abc"})

        result = self.client.do_with_response(
            self.client.new_request("get", "/applications/app/pipelineConfigs/deploy"),
            PipelineConfig
        )

        self.assertEqual(result, PipelineConfig(name="deploy", application="app", id="abc"))

    def test_do_with_response_none_target(self):
        """Test that a None target is rejected before any network activity."""
        with self.assertRaises(InvalidArgumentError):
            self.client.do_with_response(self.client.new_request("get", "/applications"), None)

        self.send.assert_not_called()

    def test_do_with_response_error_status(self):
        """Test that an error status wins over decoding."""
        self.send.return_value = make_response(500, {"status": 500, "error": "Internal Server Error"})

        with self.assertRaises(ServiceError) as cm:
            self.client.do_with_response(self.client.new_request("get", "/applications"), dict)

        self.assertEqual(cm.exception.status, 500)

    def test_do_with_retry(self):
        """Test that 400 responses are replayed with fresh requests."""
        self.send.side_effect = [
            make_response(400, {"status": 400, "message": "pipeline not found"}),
            make_response(400, {"status": 400, "message": "pipeline not found"}),
            make_response(200, {"id": "abc"}),
        ]
        factory = Mock(side_effect=lambda: self.client.new_request_with_body(
            "post", "/pipelines/app/deploy", {"type": "manual"}
        ))
        attempt_log = []

        response = self.client.do_with_retry(factory, attempt_log)

        self.assertEqual(response.json(), {"id": "abc"})
        self.assertEqual(factory.call_count, 3)
        self.assertEqual(self.sleep.call_args_list, [call(1), call(4)])
        self.assertEqual([record.succeeded for record in attempt_log], [False, False, True])

    def test_do_with_retry_does_not_retry_server_errors(self):
        self.send.return_value = make_response(503, {"status": 503, "message": "unavailable"})
        factory = Mock(side_effect=lambda: self.client.new_request("get", "/applications"))

        with self.assertRaises(ServiceError):
            self.client.do_with_retry(factory)

        self.assertEqual(self.send.call_count, 1)
        self.sleep.assert_not_called()

    def test_do_with_retry_custom_policy(self):
        """Test that the retry policy given at construction is used."""
        client = SpinnakerClient(ClientConfig(address=ADDRESS),
                                 retry_policy=RetryPolicy(max_attempts=2), sleep=self.sleep)
        self.addCleanup(client.close)
        self.send.return_value = make_response(400, {"status": 400, "message": "not yet"})

        with self.assertRaises(ServiceError):
            client.do_with_retry(lambda: client.new_request("get", "/applications"))

        self.assertEqual(self.send.call_count, 2)

    def test_context_manager_closes_transport(self):
        with SpinnakerClient(ClientConfig(address=ADDRESS)) as client:
            client.transport = Mock(wraps=client.transport)
        client.transport.close.assert_called_once()


class TestSpinnakerClientConstruction(unittest.TestCase):
    """Test cases for building a client from settings."""

    @classmethod
    def setUpClass(cls):
        ca_cert, ca_key = create_test_ca()
        client_cert, client_key = create_test_cert(ca_cert, ca_key, "client")
        cls.cert_pem = cert_to_pem(client_cert)
        cls.key_pem = key_to_pem(client_key)

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_bad_credentials_fail_construction(self):
        """Test that credential errors surface when the client is created."""
        config = ClientConfig(address=ADDRESS, auth=AuthConfig(enabled=True, cert_content="%%%",
                                                               key_content="%%%"))
        with self.assertRaises(ConfigError):
            SpinnakerClient(config)

    def test_from_config_file_with_environment_credentials(self):
        """Test that environment credentials enable mutual TLS."""
        config_path = os.path.join(self.temp_dir, "client.properties")
        with open(config_path, "w") as f:
            f.write(f"[spinnaker]\naddress = {ADDRESS}\n")
        environ = {
            "SPINNAKER_CERT_CONTENT": to_base64(self.cert_pem),
            "SPINNAKER_KEY_CONTENT": to_base64(self.key_pem),
        }

        with SpinnakerClient.from_config_file(config_path, environ=environ) as client:
            self.assertIsNotNone(client.transport.session.cert)
            self.assertEqual(client.transport.bundle.source, "content")
            self.assertFalse(client.transport.verifies_server_certificate)


if __name__ == '__main__':
    unittest.main()
