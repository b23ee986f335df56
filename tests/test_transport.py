"""
Unit tests for the requests-based transport
"""

from unittest.mock import Mock

import pytest
import requests
from requests.adapters import HTTPAdapter

from apicore_sdk.exceptions import TransportError
from apicore_sdk.http_clients import (
    HttpClient,
    HttpConfiguration,
    HttpMethod,
    HttpRequest,
    Transport,
    create_http_client,
)


class TestHttpClient:
    """Test HTTP client behavior"""
    
    def setup_method(self):
        self.config = HttpConfiguration(timeout=5.0, default_headers={"X-Client": "tests"}, user_agent="ua/1")
        self.request = HttpRequest(HttpMethod.POST, "https://api.example.com/items",
                                   headers={"content-type": "text/plain"}, body=b"hi")
    
    def test_session_defaults(self):
        """Test default headers, user agent and SSL verification"""
        client = HttpClient(self.config)
        assert client.session.headers["user-agent"] == "ua/1"
        assert client.session.headers["x-client"] == "tests"
        assert client.session.verify is True
        assert isinstance(client, Transport)
    
    def test_adapter_mounted(self):
        """Test a custom adapter replaces the default one"""
        adapter = HTTPAdapter(max_retries=0)
        client = create_http_client(timeout=3.0, transport_adapter=adapter)
        assert client.session.get_adapter("https://api.example.com") is adapter
        assert client.config.timeout == 3.0
    
    def test_execute(self):
        """Test requests are forwarded with the configured timeout"""
        session = Mock()
        session.request.return_value = "response"
        client = HttpClient(self.config, session=session)
        
        assert client.execute(self.request) == "response"
        session.request.assert_called_once_with(
            method="POST",
            url="https://api.example.com/items",
            headers={"content-type": "text/plain"},
            data=b"hi",
            timeout=5.0,
            allow_redirects=True,
        )
    
    @pytest.mark.parametrize("raised, code, is_timeout", [
        (requests.exceptions.ReadTimeout("slow"), "REQUEST_TIMEOUT", True),
        (requests.exceptions.ConnectionError("refused"), "CONNECTION_ERROR", False),
        (requests.exceptions.InvalidURL("bad"), "TRANSPORT_ERROR", False),
    ])
    def test_error_translation(self, raised, code, is_timeout):
        """Test requests exceptions become TransportError"""
        session = Mock()
        session.request.side_effect = raised
        client = HttpClient(self.config, session=session)
        
        with pytest.raises(TransportError) as exc_info:
            client.execute(self.request)
        assert exc_info.value.error_code == code
        assert exc_info.value.is_timeout is is_timeout
    
    def test_context_manager_closes_session(self):
        """Test the session is closed on exit"""
        session = Mock()
        with HttpClient(self.config, session=session):
            pass
        session.close.assert_called_once()
