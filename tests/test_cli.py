"""
Unit tests for the command-line interface
"""

import json
from unittest.mock import patch

from requests.models import Response
from requests.structures import CaseInsensitiveDict

from apicore_sdk.cli import create_parser, main, parse_pairs
from apicore_sdk.exceptions import TransportError


def make_response(status_code=200, body=b""):
    response = Response()
    response.status_code = status_code
    response.headers = CaseInsensitiveDict({})
    response._content = body
    response.encoding = "utf-8"
    return response


class TestParser:
    """Test argument parsing"""
    
    def test_request_arguments(self):
        """Test request options"""
        args = create_parser().parse_args([
            "request", "get", "https://api.example.com",
            "--query", "a=1", "--query", "b=2", "--header", "X-Id=7", "--retries", "2",
        ])
        assert args.command == "request"
        assert args.method == "get"
        assert args.query == ["a=1", "b=2"]
        assert args.retries == 2
        assert args.retry == "default"
    
    def test_parse_pairs(self):
        """Test KEY=VALUE parsing keeps '=' in values"""
        assert parse_pairs(["a=1", "b=x=y"]) == {"a": "1", "b": "x=y"}


class TestRequestCommand:
    """Test the request command"""
    
    @patch('apicore_sdk.cli.HttpClient.execute')
    def test_success(self, mock_execute, capsys):
        """Test a successful request prints status and body"""
        mock_execute.return_value = make_response(200, b'{"ok": true}')
        
        code = main(["request", "POST", "https://api.example.com/items",
                     "--query", "q=a b", "--json", '{"name": "x"}'])
        
        assert code == 0
        sent = mock_execute.call_args.args[0]
        assert sent.url == "https://api.example.com/items?q=a%20b"
        assert json.loads(sent.body) == {"name": "x"}
        output = capsys.readouterr().out
        assert "HTTP 200" in output
        assert '{"ok": true}' in output
    
    @patch('apicore_sdk.cli.HttpClient.execute')
    def test_api_error(self, mock_execute, capsys):
        """Test error responses exit non-zero"""
        mock_execute.return_value = make_response(404, b"nope")
        assert main(["request", "GET", "https://api.example.com/x"]) == 1
        captured = capsys.readouterr()
        assert "HTTP 404" in captured.err
        assert "nope" in captured.out
    
    @patch('apicore_sdk.cli.HttpClient.execute')
    def test_transport_error(self, mock_execute, capsys):
        """Test transport failures exit non-zero"""
        mock_execute.side_effect = TransportError("Connection error: refused")
        assert main(["request", "GET", "https://api.example.com/x"]) == 1
        assert "Connection error" in capsys.readouterr().err
    
    @patch('apicore_sdk.cli.HttpClient.execute')
    def test_with_config(self, mock_execute, tmp_path):
        """Test paths are resolved against the configured server"""
        config = tmp_path / "client.json"
        config.write_text(json.dumps({
            "servers": {"default": "https://api.example.com/v1"},
            "default_headers": {"X-Client": "cli"},
            "auth": {"key": {"type": "api_key_query", "param_name": "key", "api_key": "k"}},
        }))
        mock_execute.return_value = make_response(200)
        
        assert main(["request", "GET", "/items", "--config", str(config)]) == 0
        sent = mock_execute.call_args.args[0]
        assert sent.url == "https://api.example.com/v1/items"
        assert sent.header("x-client") == "cli"
    
    @patch('apicore_sdk.cli.HttpClient.execute', autospec=True)
    def test_command_line_overrides_config(self, mock_execute, tmp_path):
        """Test --timeout and --retries take precedence over the configuration file"""
        config = tmp_path / "client.json"
        config.write_text(json.dumps({
            "servers": {"default": "https://api.example.com"},
            "timeout": 30,
            "retry": {"max_retry_attempts": 1, "retry_interval": 0},
        }))
        mock_execute.return_value = make_response(503)
        
        code = main(["request", "GET", "/items", "--config", str(config), "--timeout", "5", "--retries", "3"])
        
        assert code == 1
        assert mock_execute.call_count == 4
        client = mock_execute.call_args.args[0]
        assert client.config.timeout == 5.0
        assert client.config.retry_configuration.retry_interval == 0
    
    @patch('apicore_sdk.cli.HttpClient.execute', autospec=True)
    def test_configured_values_kept_without_overrides(self, mock_execute, tmp_path):
        """Test the configuration file applies when no override is given"""
        config = tmp_path / "client.json"
        config.write_text(json.dumps({"servers": {"default": "https://api.example.com"}, "timeout": 30}))
        mock_execute.return_value = make_response(200)
        
        assert main(["request", "GET", "/items", "--config", str(config)]) == 0
        assert mock_execute.call_args.args[0].config.timeout == 30
    
    def test_invalid_method(self, capsys):
        """Test invalid methods are reported"""
        assert main(["request", "FETCH", "https://api.example.com"]) == 1
        assert "invalid HTTP method" in capsys.readouterr().err
    
    def test_invalid_pair(self, capsys):
        """Test malformed KEY=VALUE arguments are reported"""
        assert main(["request", "GET", "https://api.example.com", "--query", "novalue"]) == 1
        assert "Expected KEY=VALUE" in capsys.readouterr().err


class TestCheckConfigCommand:
    """Test the check-config command"""
    
    def test_valid(self, tmp_path, capsys):
        """Test a valid configuration is summarised"""
        config = tmp_path / "client.json"
        config.write_text(json.dumps({"servers": {"default": "https://api.example.com"},
                                      "retry": {"max_retry_attempts": 2}}))
        assert main(["check-config", str(config)]) == 0
        output = capsys.readouterr().out
        assert "Configuration is valid" in output
        assert "default=https://api.example.com" in output
        assert "Retry attempts: 2" in output
    
    def test_invalid(self, tmp_path, capsys):
        """Test invalid configuration exits non-zero"""
        config = tmp_path / "client.json"
        config.write_text("{broken")
        assert main(["check-config", str(config)]) == 1
        assert "Failed to parse configuration JSON" in capsys.readouterr().err
    
    def test_no_command(self):
        """Test help is shown without a command"""
        assert main([]) == 1
