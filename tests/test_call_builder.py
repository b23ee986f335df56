"""
Unit tests for the fluent call builder
"""

import json
import threading
from dataclasses import dataclass
from unittest.mock import Mock

import pytest
from requests.models import Response
from requests.structures import CaseInsensitiveDict

from apicore_sdk.auth import ApiKeyHeaderCredentials, ApiKeyQueryCredentials, AuthGroup
from apicore_sdk.encoding import ArraySerializationOption, FileWrapper, FormParam, format_any
from apicore_sdk.exceptions import (
    ApiError,
    AuthenticationError,
    EncodingError,
    InvalidMethodError,
    ResponseError,
    TransportError,
)
from apicore_sdk.http_clients import (
    CallBuilder,
    ErrorBuilder,
    HttpMethod,
    RequestRetryOption,
    RetryConfiguration,
    create_call_builder_factory,
    merge_path,
    sanitize_path,
)

BASE_URL = "https://api.example.com"


def make_response(status_code=200, headers=None, body=b""):
    response = Response()
    response.status_code = status_code
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = body
    response.encoding = "utf-8"
    return response


class FakeTransport:
    """Transport returning queued responses or raising queued errors"""
    
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [make_response()]
        self.requests = []
    
    def execute(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@dataclass
class Pet:
    name: str
    weight: float


def make_factory(transport=None, auth_providers=None, retry_configuration=None, **kwargs):
    return create_call_builder_factory(
        lambda server: {"default": BASE_URL, "files": "https://files.example.com/v2"}[server],
        auth_providers or {},
        transport or FakeTransport(),
        retry_configuration,
        **kwargs
    )


class TestPaths:
    """Test path merging and template substitution"""
    
    def test_merge_path(self):
        """Test exactly one separator between fragments"""
        assert merge_path("a/", "/b") == "a/b"
        assert merge_path("a", "b") == "a/b"
        assert merge_path("a/", "b") == "a/b"
        assert merge_path("a", "/b") == "a/b"
        assert merge_path("a", "") == "a"
    
    def test_sanitize_path(self):
        """Test doubled separators collapse"""
        assert sanitize_path("/a//b//c") == "/a/b/c"
        assert sanitize_path("a///b") == "a/b"
    
    def test_separator_runs_never_reach_the_wire(self):
        """Test runs of separators collapse in initial and appended paths"""
        assert make_factory()("GET", "a///b").finalize().url == "https://api.example.com/a/b"
        request = make_factory()("GET", "x//").append_path("//y").finalize()
        assert request.url == "https://api.example.com/x/y"
    
    def test_append_path_keeps_leading_separator(self):
        """Test the leading separator survives once"""
        request = make_factory()("GET", "//users/").append_path("/active").finalize()
        assert request.url == "https://api.example.com/users/active"
    
    def test_template_placeholder(self):
        """Test placeholders are replaced positionally with escaped values"""
        request = (
            make_factory()("GET", "/users/%s/posts/%s")
            .append_template_param("a b/c")
            .append_template_param(42)
            .finalize()
        )
        assert request.url == "https://api.example.com/users/a+b%2Fc/posts/42"
    
    def test_template_without_placeholder_appends_segment(self):
        """Test values are appended as segments when no placeholder is left"""
        request = make_factory()("GET", "/users").append_template_params(["x", "y"], 3).finalize()
        assert request.url == "https://api.example.com/users/x/y/3"
    
    def test_base_url_selection(self):
        """Test the server name is resolved by the provider"""
        request = make_factory()("GET", "/upload").base_url("files").finalize()
        assert request.url == "https://files.example.com/v2/upload"


class TestMethods:
    """Test method validation"""
    
    def test_case_insensitive(self):
        """Test lower-case method names are accepted"""
        assert make_factory()("delete", "/x").finalize().method is HttpMethod.DELETE
    
    def test_invalid_method(self):
        """Test unsupported methods fail at finalize"""
        builder = make_factory()("FETCH", "/x")
        with pytest.raises(InvalidMethodError):
            builder.finalize()


class TestHeaders:
    """Test header handling"""
    
    def test_header_formats_values(self):
        """Test non-string values render as JSON without quotes"""
        request = make_factory()("GET", "/").header("X-Count", 5).header("X-Flag", True).header("X-Name", "bob").finalize()
        assert request.headers["x-count"] == "5"
        assert request.headers["x-flag"] == "true"
        assert request.headers["x-name"] == "bob"
    
    def test_content_type_and_accept_only_when_absent(self):
        """Test defaults never replace explicit values"""
        request = (
            make_factory()("GET", "/")
            .header("Accept", "text/csv")
            .accept("application/json")
            .content_type("text/plain")
            .content_type("application/xml")
            .finalize()
        )
        assert request.headers["accept"] == "text/csv"
        assert request.headers["content-type"] == "text/plain"
    
    def test_combine_headers_never_overwrites(self):
        """Test combined headers only fill gaps"""
        request = make_factory()("GET", "/").header("a", "1").combine_headers({"A": "2", "B": "3"}).finalize()
        assert request.headers == {"a": "1", "b": "3"}
    
    def test_default_headers_under_explicit(self):
        """Test client default headers yield to explicit ones"""
        factory = make_factory(default_headers={"X-Client": "sdk", "X-Env": "prod"})
        request = factory("GET", "/").header("x-env", "test").finalize()
        assert request.headers["x-client"] == "sdk"
        assert request.headers["x-env"] == "test"


class TestQueryParams:
    """Test query parameter serialization"""
    
    def test_space_encoding(self):
        """Test spaces are sent as %20"""
        request = make_factory()("GET", "/search").query_param("q", "hello world").finalize()
        assert request.url == "https://api.example.com/search?q=hello%20world"
    
    def test_array_options(self):
        """Test per-parameter and builder-wide serialization options"""
        request = (
            make_factory()("GET", "/")
            .query_param("a", [1, 2])
            .query_param("b", [1, 2], ArraySerializationOption.CSV)
            .array_serialization_option(ArraySerializationOption.UNINDEXED)
            .query_param("c", [1])
            .finalize()
        )
        assert request.query_params() == {"a": ["1", "2"], "b": ["1,2"], "c[]": ["1"]}
    
    def test_query_params_map_and_none(self):
        """Test maps are expanded and None values skipped"""
        request = make_factory()("GET", "/").query_params({"x": 1, "y": None}).finalize()
        assert request.url == "https://api.example.com/?x=1"
    
    def test_unencodable_structured_value(self):
        """Test infinite floats inside structures raise EncodingError"""
        builder = make_factory()("GET", "/").query_param("pet", Pet("rex", float("inf")))
        with pytest.raises(EncodingError):
            builder.finalize()


class TestBodies:
    """Test body serialization"""
    
    def test_json_object(self):
        """Test objects and arrays are sent as JSON"""
        request = make_factory()("POST", "/pets").json(Pet("rex", 4.5)).finalize()
        assert json.loads(request.body) == {"name": "rex", "weight": 4.5}
        assert request.headers["content-type"] == "application/json"
    
    def test_json_scalar_sent_as_text(self):
        """Test scalars are sent as text without quotes"""
        request = make_factory()("POST", "/").json("plain").finalize()
        assert request.body == b"plain"
        assert request.headers["content-type"] == "text/plain; charset=utf-8"
    
    def test_json_infinity(self):
        """Test non-finite floats cannot be sent as JSON"""
        builder = make_factory()("POST", "/").json({"value": float("inf")})
        with pytest.raises(EncodingError, match="Unable to marshal"):
            builder.finalize()
    
    def test_text(self):
        """Test plain text bodies"""
        request = make_factory()("POST", "/").text("hi there").finalize()
        assert request.body == b"hi there"
        assert request.headers["content-type"] == "text/plain; charset=utf-8"
    
    def test_form(self):
        """Test URL-encoded form bodies"""
        request = make_factory()("POST", "/").form_params({"name": "a b", "tags": ["x", "y"]}).finalize()
        assert request.body == b"name=a%20b&tags=x&tags=y"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    
    def test_multipart(self):
        """Test multipart bodies carry the boundary in the content type"""
        request = (
            make_factory()("POST", "/upload")
            .form_data([FormParam("file", FileWrapper(b"data", "a.txt")), FormParam("note", "n")])
            .finalize()
        )
        assert request.headers["content-type"].startswith("multipart/form-data; boundary=")
        assert b'filename="a.txt"' in request.body
    
    def test_file_stream(self):
        """Test raw file bodies"""
        request = make_factory()("PUT", "/blob").file_stream(FileWrapper(b"\x01\x02")).finalize()
        assert request.body == b"\x01\x02"
        assert request.headers["content-type"] == "application/octet-stream"
    
    def test_last_body_wins(self):
        """Test the last body-setting call decides the body"""
        request = make_factory()("POST", "/").form_param("a", "1").json({"b": 2}).finalize()
        assert request.body == b'{"b":2}'
        request = make_factory()("POST", "/").json({"b": 2}).text("t").finalize()
        assert request.body == b"t"
    
    def test_explicit_content_type_kept(self):
        """Test an explicit content type is not replaced by the body default"""
        request = make_factory()("POST", "/").header("content-type", "application/vnd.api+json").json({"a": 1}).finalize()
        assert request.headers["content-type"] == "application/vnd.api+json"
    
    def test_no_body(self):
        """Test requests without a body"""
        assert make_factory()("GET", "/").finalize().body is None


class TestAuthentication:
    """Test authentication through the builder"""
    
    def test_or_header_query_only_query_valid(self):
        """Test only the satisfied alternative is applied"""
        transport = FakeTransport()
        providers = {
            "header": ApiKeyHeaderCredentials("x-api-key", ""),
            "query": ApiKeyQueryCredentials("api-token", "tok"),
        }
        builder = make_factory(transport, providers)("GET", "/secure")
        builder.authenticate(AuthGroup.or_(AuthGroup.single("header"), AuthGroup.single("query"))).call()
        
        sent = transport.requests[0]
        assert builder.requires_auth
        assert sent.header("x-api-key") is None
        assert sent.query_params() == {"api-token": ["tok"]}
    
    def test_failure_raises_before_network(self):
        """Test authentication errors are raised before anything is sent"""
        transport = FakeTransport()
        builder = make_factory(transport)("GET", "/secure")
        with pytest.raises(AuthenticationError, match="apiKey is undefined!"):
            builder.authenticate(AuthGroup.single("apiKey"))
        assert transport.requests == []


class TestExecution:
    """Test calling through the pipeline"""
    
    def test_call_returns_context(self):
        """Test successful calls"""
        transport = FakeTransport(make_response(200, body=b"ok"))
        context = make_factory(transport)("GET", "/").call()
        assert context.response.status_code == 200
        assert context.error is None
    
    def test_call_as_json(self):
        """Test JSON decoding and the Accept header"""
        transport = FakeTransport(make_response(200, {"Content-Type": "application/json"}, b'{"a": [1]}'))
        data, response = make_factory(transport)("GET", "/").call_as_json()
        assert data == {"a": [1]}
        assert transport.requests[0].header("accept") == "application/json"
    
    def test_call_as_json_reuse_keeps_interceptors(self):
        """Test repeated JSON calls do not register extra interceptors"""
        transport = FakeTransport(make_response(200, body=b"[]"))
        builder = make_factory(transport)("GET", "/")
        builder.call_as_json()
        builder.call_as_json()
        assert builder._interceptors == []
        assert [r.header("accept") for r in transport.requests] == ["application/json"] * 2
    
    def test_call_as_text_and_stream(self):
        """Test text and raw body access"""
        text, _ = make_factory(FakeTransport(make_response(200, body=b"hello")))("GET", "/").call_as_text()
        raw, _ = make_factory(FakeTransport(make_response(200, body=b"\x00")))("GET", "/").call_as_stream()
        assert text == "hello"
        assert raw == b"\x00"
    
    def test_empty_body(self):
        """Test empty bodies raise ResponseError"""
        with pytest.raises(ResponseError, match="response body empty"):
            make_factory(FakeTransport(make_response(204)))("GET", "/").call_as_json()
    
    def test_invalid_json(self):
        """Test undecodable bodies raise ResponseError"""
        with pytest.raises(ResponseError, match="Unable to decode"):
            make_factory(FakeTransport(make_response(200, body=b"<html>")))("GET", "/").call_as_json()
    
    def test_default_api_error(self):
        """Test non-2xx responses without builders raise a generic ApiError"""
        transport = FakeTransport(make_response(404, body=b"missing"))
        with pytest.raises(ApiError) as exc_info:
            make_factory(transport)("GET", "/").call()
        assert exc_info.value.status_code == 404
        assert exc_info.value.body == b"missing"
        assert str(exc_info.value) == "ApiError occurred: HTTP Response Not OK"
    
    def test_error_builder_selection(self):
        """Test exact codes win over ranges and ranges over the default"""
        errors = {
            "404": ErrorBuilder(message="Not found"),
            "5XX": ErrorBuilder(templated_message="Server error {$statusCode}"),
            "0": ErrorBuilder(message="Other"),
        }
        
        def fail(status):
            with pytest.raises(ApiError) as exc_info:
                make_factory(FakeTransport(make_response(status)))("GET", "/").append_errors(errors).call()
            return exc_info.value.message
        
        assert fail(404) == "Not found"
        assert fail(502) == "Server error 502"
        assert fail(400) == "Other"
    
    def test_transport_error_raised(self):
        """Test transport failures surface unchanged"""
        error = TransportError("refused", "CONNECTION_ERROR")
        with pytest.raises(TransportError) as exc_info:
            make_factory(FakeTransport(error))("GET", "/").call()
        assert exc_info.value is error
    
    def test_retries_then_succeeds(self):
        """Test retryable responses are retried through the transport"""
        transport = FakeTransport(make_response(503), make_response(200, body=b"ok"))
        config = RetryConfiguration(max_retry_attempts=2, retry_interval=0)
        context = make_factory(transport, retry_configuration=config)("GET", "/").call()
        assert context.response.status_code == 200
        assert len(transport.requests) == 2
    
    def test_retry_disabled_per_call(self):
        """Test DISABLE raises the first failure"""
        transport = FakeTransport(make_response(503), make_response(200))
        config = RetryConfiguration(max_retry_attempts=2, retry_interval=0)
        builder = make_factory(transport, retry_configuration=config)("GET", "/")
        with pytest.raises(ApiError):
            builder.request_retry_option(RequestRetryOption.DISABLE).call()
        assert len(transport.requests) == 1
    
    def test_post_not_retried_by_default(self):
        """Test methods outside the retry list make one attempt"""
        transport = FakeTransport(make_response(503), make_response(200))
        config = RetryConfiguration(max_retry_attempts=2, retry_interval=0)
        with pytest.raises(ApiError):
            make_factory(transport, retry_configuration=config)("POST", "/").call()
        assert len(transport.requests) == 1
    
    def test_cancelled(self):
        """Test a set cancel event stops the call"""
        event = threading.Event()
        event.set()
        transport = FakeTransport()
        with pytest.raises(TransportError, match="request cancelled"):
            make_factory(transport)("GET", "/", cancel_event=event).call()
        assert transport.requests == []
    
    def test_user_interceptors_run_in_order(self):
        """Test interceptors see the request in registration order"""
        transport = FakeTransport()
        events = []
        
        def make(name):
            def interceptor(request, next_call):
                events.append(name)
                return next_call(request.with_header("x-last", name))
            return interceptor
        
        make_factory(transport)("GET", "/").intercept(make("a")).intercept(make("b")).call()
        assert events == ["a", "b"]
        assert transport.requests[0].header("x-last") == "b"
    
    def test_sdk_logger_sees_each_attempt(self):
        """Test the SDK logger logs every attempt"""
        sdk_logger = Mock()
        transport = FakeTransport(make_response(503), make_response(200))
        config = RetryConfiguration(max_retry_attempts=1, retry_interval=0)
        make_factory(transport, retry_configuration=config, sdk_logger=sdk_logger)("GET", "/").call()
        assert sdk_logger.log_request.call_count == 2
        assert sdk_logger.log_response.call_count == 2
    
    def test_builder_without_transport(self):
        """Test calling without a transport fails clearly"""
        builder = CallBuilder(lambda server: BASE_URL).method("GET")
        with pytest.raises(TransportError, match="No HTTP client configured"):
            builder.call()
    
    def test_logger_and_request_rewrite_per_call(self):
        """Test a per-call logger and request rewriting"""
        transport = FakeTransport()
        sdk_logger = Mock()
        (
            make_factory(transport)("GET", "/")
            .logger(sdk_logger)
            .intercept_request(lambda request: request.with_query_param("page", "2"))
            .call()
        )
        assert transport.requests[0].url == f"{BASE_URL}/?page=2"
        sdk_logger.log_request.assert_called_once()
        assert sdk_logger.log_request.call_args.args[0].url == f"{BASE_URL}/?page=2"


class TestFormatAny:
    """Test value formatting for headers and templates"""
    
    def test_values(self):
        """Test strings, scalars and structures"""
        assert format_any("plain") == "plain"
        assert format_any(2.5) == "2.5"
        assert format_any(None) == "null"
        assert format_any({"a": [1]}) == '{"a":[1]}'
        assert format_any(float("inf")) == ""
