# test_monday_api.py
import asyncio
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import call

import httpx
import pytest

from monday_client import monday_api as monday_api_module
from monday_client.monday_api import MondayAPI, get_monday_api, set_monday_api
from monday_client.monday_exceptions import (
    InvalidDateError,
    MissingTemplateVariablesError,
    MondayConfigurationError,
    MondayGraphQLError,
    MondayHTTPError,
    MondayTimeoutError,
    MondayTransportError,
)
from monday_client.monday_models import RequestOptions

ME_QUERY = "query { me { id name } }"
ME_DATA = {"me": {"id": "1", "name": "Jane"}}


class TestMondayAPIConfiguration:

    def test_missing_token_fails_at_construction(self, monkeypatch):
        monkeypatch.delenv("MONDAY_API_TOKEN", raising=False)
        with pytest.raises(MondayConfigurationError) as exc_info:
            MondayAPI()
        assert "MONDAY_API_TOKEN" in str(exc_info.value)

    def test_reads_environment(self):
        api = MondayAPI()
        assert api.api_token == "test-token"
        assert api.api_url == "https://monday.test/v2"
        assert api.api_version == "2024-01"
        assert api.default_options == RequestOptions(timeout=30000, retries=3, retry_delay=1000)

    def test_arguments_override_environment(self, monkeypatch):
        monkeypatch.delenv("MONDAY_API_URL", raising=False)
        api = MondayAPI(api_token="other", api_version="2025-04")
        assert api.api_token == "other"
        assert api.api_url == "https://api.monday.com/v2"
        assert api.headers == {
            "Authorization": "other",
            "Content-Type": "application/json",
            "API-Version": "2025-04",
        }

    def test_request_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("MONDAY_TIMEOUT_MS", "5000")
        monkeypatch.setenv("MONDAY_RETRIES", "5")
        monkeypatch.setenv("MONDAY_RETRY_DELAY_MS", "250")
        assert MondayAPI().default_options == RequestOptions(timeout=5000, retries=5, retry_delay=250)

    def test_shared_client_is_created_once(self):
        api = get_monday_api()
        assert get_monday_api() is api
        set_monday_api(None)
        assert get_monday_api() is not api

    @pytest.mark.asyncio
    async def test_owned_http_client_closed_on_exit(self):
        async with MondayAPI() as api:
            client = api._get_client()
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_injected_http_client_left_open(self):
        client = httpx.AsyncClient()
        async with MondayAPI(http_client=client):
            pass
        assert not client.is_closed
        await client.aclose()


class TestExecuteQuery:

    @pytest.mark.asyncio
    async def test_returns_data_and_sends_expected_request(self, make_api, handler):
        recorder = handler({"data": ME_DATA})
        api = make_api(recorder)

        result = await api.execute_query(ME_QUERY, {"x": 1})

        assert result == ME_DATA
        assert recorder.calls == 1
        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://monday.test/v2"
        assert request.headers["Authorization"] == "test-token"
        assert request.headers["API-Version"] == "2024-01"
        assert request.headers["Content-Type"] == "application/json"
        assert recorder.payload(0) == {"query": ME_QUERY, "variables": {"x": 1}}

    @pytest.mark.asyncio
    async def test_empty_errors_list_is_success(self, make_api, handler):
        api = make_api(handler({"data": ME_DATA, "errors": []}))
        assert await api.execute_query(ME_QUERY) == ME_DATA

    @pytest.mark.asyncio
    async def test_timeouts_retried_with_linear_backoff(self, make_api, handler, mock_sleep):
        recorder = handler(httpx.ReadTimeout, httpx.ReadTimeout, {"data": ME_DATA})
        api = make_api(recorder)

        result = await api.execute_query(ME_QUERY, options=RequestOptions(timeout=1000, retries=3, retry_delay=1000))

        assert result == ME_DATA
        assert recorder.calls == 3
        assert mock_sleep.await_args_list == [call(1.0), call(2.0)]

    @pytest.mark.asyncio
    async def test_gives_up_after_retries_attempts(self, make_api, handler, mock_sleep):
        recorder = handler(httpx.ConnectTimeout)
        api = make_api(recorder)

        with pytest.raises(MondayTimeoutError) as exc_info:
            await api.execute_query(ME_QUERY, options=RequestOptions(timeout=1000, retries=3, retry_delay=500))

        assert recorder.calls == 3
        assert exc_info.value.attempts == 3
        assert mock_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_deadline_cancels_slow_request(self, make_api):
        started = []

        async def slow_handler(request):
            started.append(request)
            await asyncio.sleep(5)
            return httpx.Response(200, json={"data": ME_DATA})

        api = make_api(slow_handler)
        with pytest.raises(MondayTimeoutError):
            await api.execute_query(ME_QUERY, options=RequestOptions(timeout=20, retries=2, retry_delay=0))
        assert len(started) == 2

    @pytest.mark.asyncio
    async def test_http_error_not_retried(self, make_api, handler, mock_sleep):
        recorder = handler(httpx.Response(500))
        api = make_api(recorder)

        with pytest.raises(MondayHTTPError) as exc_info:
            await api.execute_query(ME_QUERY)

        assert str(exc_info.value) == "HTTP 500: Internal Server Error"
        assert exc_info.value.status_code == 500
        assert recorder.calls == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_graphql_errors_not_retried(self, make_api, handler, mock_sleep):
        recorder = handler({
            "data": {"me": None},
            "errors": [
                {"message": "Field 'foo' doesn't exist", "locations": [{"line": 1, "column": 9}], "path": ["me"]},
                {"message": "Permission denied"},
            ],
        })
        api = make_api(recorder)

        with pytest.raises(MondayGraphQLError) as exc_info:
            await api.execute_query(ME_QUERY)

        assert str(exc_info.value) == "GraphQL errors: Field 'foo' doesn't exist, Permission denied"
        assert exc_info.value.errors[0].locations == [{"line": 1, "column": 9}]
        assert exc_info.value.errors[0].path == ["me"]
        assert recorder.calls == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_error_object_is_one_error(self, make_api, handler):
        api = make_api(handler({"data": None, "errors": {"message": "Complexity budget exhausted", "path": ["boards"]}}))

        with pytest.raises(MondayGraphQLError) as exc_info:
            await api.execute_query(ME_QUERY)

        assert str(exc_info.value) == "GraphQL errors: Complexity budget exhausted"
        assert exc_info.value.errors[0].path == ["boards"]

    @pytest.mark.asyncio
    async def test_network_error_not_retried(self, make_api, handler, mock_sleep):
        recorder = handler(httpx.ConnectError)
        api = make_api(recorder)

        with pytest.raises(MondayTransportError):
            await api.execute_query(ME_QUERY)

        assert recorder.calls == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_json_body(self, make_api, handler):
        api = make_api(handler(httpx.Response(200, content=b"<html>oops</html>")))
        with pytest.raises(MondayTransportError):
            await api.execute_query(ME_QUERY)


class TestExecuteQueryWithTemplate:

    @pytest.mark.asyncio
    async def test_renders_dates_before_sending(self, make_api, handler):
        recorder = handler({"data": {"boards": []}})
        api = make_api(recorder)

        await api.execute_query_with_template('query { boards(ids: 1) { updated_at: "{{date_minus_7}}" } }', "2024-01-15")

        assert recorder.payload(0)["query"] == 'query { boards(ids: 1) { updated_at: "2024-01-08" } }'

    @pytest.mark.asyncio
    async def test_unknown_variable_fails_before_network(self, make_api, handler):
        recorder = handler({"data": {}})
        api = make_api(recorder)

        with pytest.raises(MissingTemplateVariablesError) as exc_info:
            await api.execute_query_with_template("{{date}} {{board_id}} {{owner}}", "2024-01-15")

        assert str(exc_info.value) == "Missing template variables: board_id, owner"
        assert exc_info.value.missing == ["board_id", "owner"]
        assert recorder.calls == 0

    @pytest.mark.asyncio
    async def test_invalid_base_date_fails_before_network(self, make_api, handler):
        recorder = handler({"data": {}})
        api = make_api(recorder)

        with pytest.raises(InvalidDateError):
            await api.execute_query_with_template("{{date}}", "not-a-date")
        assert recorder.calls == 0

    @pytest.mark.asyncio
    async def test_extra_context(self, make_api, handler):
        recorder = handler({"data": {}})
        api = make_api(recorder)

        await api.execute_query_with_template(
            "query { boards(ids: {{board_id}}) { id } }", "2024-01-15", extra_context={"board_id": "99"}
        )

        assert recorder.payload(0)["query"] == "query { boards(ids: 99) { id } }"


class TestModuleFunctions:

    @pytest.mark.asyncio
    async def test_delegate_to_shared_client(self, make_api, handler):
        recorder = handler({"data": ME_DATA})
        set_monday_api(make_api(recorder))

        assert await monday_api_module.execute_query(ME_QUERY) == ME_DATA
        assert await monday_api_module.execute_query_with_template("query { me { id name } } # {{date}}", "2024-01-15") == ME_DATA
        assert recorder.payload(1)["query"] == "query { me { id name } } # 2024-01-15"


class _MeHandler(BaseHTTPRequestHandler):
    # keep-alive so the client pools the connection between calls
    protocol_version = "HTTP/1.1"

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        body = json.dumps({"data": ME_DATA}).encode()
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def local_monday_url(monkeypatch):
    """Serves canned GraphQL replies on 127.0.0.1 and points MONDAY_API_URL at it."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _MeHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    url = f"http://127.0.0.1:{server.server_address[1]}/v2"
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MONDAY_API_URL", url)
    yield url
    server.shutdown()
    server.server_close()


class TestSharedClientAcrossEventLoops:

    def test_module_functions_survive_separate_asyncio_runs(self, local_monday_url):
        assert asyncio.run(monday_api_module.execute_query(ME_QUERY)) == ME_DATA
        assert asyncio.run(monday_api_module.execute_query(ME_QUERY)) == ME_DATA

    def test_http_client_rebuilt_for_new_loop(self, local_monday_url):
        api = MondayAPI()

        async def current_client():
            await api.execute_query(ME_QUERY)
            return api._get_client()

        first = asyncio.run(current_client())
        second = asyncio.run(current_client())
        assert first is not second

    def test_injected_client_is_never_replaced(self):
        client = httpx.AsyncClient()
        api = MondayAPI(http_client=client)

        async def current_client():
            return api._get_client()

        assert asyncio.run(current_client()) is client
        assert asyncio.run(current_client()) is client
