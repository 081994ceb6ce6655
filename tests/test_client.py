"""
Unit tests for the DataLens transport client.
"""

import httpx
import pytest

from datalens_mcp.base import ConfigurationError, ErrorKind, HttpVerb
from datalens_mcp.client import (
    DataLensClient,
    RpcFailure,
    RpcSuccess,
    classify_status,
    legacy_auth_value,
    parse_response_data,
    truncate_text,
)
from datalens_mcp.config import Settings, StaticCredentials

from .conftest import BASE_URL, ORG_ID, TOKEN, RecordingHandler, make_client


class TestStatusClassification:
    @pytest.mark.parametrize(
        "status, kind",
        [
            (200, None),
            (204, None),
            (400, ErrorKind.BAD_REQUEST),
            (401, ErrorKind.UNAUTHORIZED),
            (403, ErrorKind.UNAUTHORIZED),
            (404, ErrorKind.NOT_FOUND),
            (409, ErrorKind.BAD_REQUEST),
            (422, ErrorKind.BAD_REQUEST),
            (429, ErrorKind.RATE_LIMITED),
            (500, ErrorKind.REMOTE_ERROR),
            (503, ErrorKind.REMOTE_ERROR),
            (302, ErrorKind.REMOTE_ERROR),
        ],
    )
    def test_classify_status(self, status, kind):
        assert classify_status(status) == kind


class TestHelpers:
    def test_truncate_text(self):
        assert truncate_text("short") == "short"
        long_text = "x" * 2500
        truncated = truncate_text(long_text)
        assert truncated.startswith("x" * 2000)
        assert truncated.endswith("...(truncated)")

    def test_parse_response_data(self):
        assert parse_response_data('{"a": 1}') == {"a": 1}
        assert parse_response_data("<html>") == "<html>"

    def test_legacy_auth_value_has_single_prefix(self):
        assert legacy_auth_value("abc") == "OAuth abc"
        assert legacy_auth_value("OAuth abc") == "OAuth abc"


class TestCall:
    @pytest.mark.asyncio
    async def test_sends_auth_headers_and_json_body(self):
        handler = RecordingHandler()
        client = make_client(handler)

        outcome = await client.call(HttpVerb.POST, "/rpc/getDataset", body={"datasetId": "ds-1"})

        assert isinstance(outcome, RpcSuccess)
        assert outcome.ok
        assert outcome.body == {"ok": True}

        request = handler.last
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/rpc/getDataset"
        assert request.headers["x-dl-org-id"] == ORG_ID
        assert request.headers["x-dl-api-version"] == "0"
        assert request.headers["x-yacloud-subjecttoken"] == TOKEN
        assert request.headers["x-dl-auth-token"] == f"OAuth {TOKEN}"
        assert request.headers["content-type"] == "application/json"
        assert handler.last_json() == {"datasetId": "ds-1"}

    @pytest.mark.asyncio
    async def test_empty_body_is_sent_as_object(self):
        handler = RecordingHandler()
        client = make_client(handler)
        await client.call(HttpVerb.POST, "/rpc/listDirectory")
        assert handler.last_json() == {}

    @pytest.mark.asyncio
    async def test_api_version_from_settings(self):
        handler = RecordingHandler()
        client = make_client(handler, settings=Settings(base_url=BASE_URL, api_version="1"))
        await client.call(HttpVerb.POST, "/rpc/getEntries")
        assert handler.last.headers["x-dl-api-version"] == "1"

    @pytest.mark.asyncio
    async def test_get_sends_query_params(self):
        handler = RecordingHandler()
        client = make_client(handler)
        await client.call(HttpVerb.GET, "/v1/things", query={"limit": 5})
        assert handler.last.method == "GET"
        assert handler.last.url.params["limit"] == "5"
        assert handler.last.content == b""

    @pytest.mark.asyncio
    async def test_missing_org_id_fails_before_network(self):
        handler = RecordingHandler()
        client = make_client(handler, org_id=None)
        with pytest.raises(ConfigurationError, match="DATALENS_ORG_ID"):
            await client.call(HttpVerb.POST, "/rpc/listDirectory")
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_missing_token_fails_before_network(self):
        handler = RecordingHandler()
        client = make_client(handler, token=None)
        with pytest.raises(ConfigurationError, match="YC_IAM_TOKEN"):
            await client.call(HttpVerb.POST, "/rpc/listDirectory")
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(401, json={"message": "Token expired"})
        )
        client = make_client(handler)

        outcome = await client.call(HttpVerb.POST, "/rpc/getDataset", body={})

        assert isinstance(outcome, RpcFailure)
        assert not outcome.ok
        assert outcome.kind is ErrorKind.UNAUTHORIZED
        assert outcome.status_code == 401
        assert "Token expired" in outcome.message
        assert outcome.detail == {
            "method": "getDataset",
            "status": 401,
            "response": {"message": "Token expired"},
        }

    @pytest.mark.asyncio
    async def test_non_json_error_body_is_truncated(self):
        handler = RecordingHandler(lambda request: httpx.Response(502, text="<" * 3000))
        client = make_client(handler)

        outcome = await client.call(HttpVerb.POST, "/rpc/getDataset")

        assert outcome.kind is ErrorKind.REMOTE_ERROR
        assert outcome.detail["response"].endswith("...(truncated)")

    @pytest.mark.asyncio
    async def test_invalid_json_success_is_protocol_error(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, text="not json"))
        client = make_client(handler)

        outcome = await client.call(HttpVerb.POST, "/rpc/getDataset")

        assert outcome.kind is ErrorKind.PROTOCOL
        assert outcome.status_code == 200

    @pytest.mark.asyncio
    async def test_empty_success_body(self):
        handler = RecordingHandler(lambda request: httpx.Response(200))
        client = make_client(handler)

        outcome = await client.call(HttpVerb.POST, "/rpc/deleteDataset")

        assert isinstance(outcome, RpcSuccess)
        assert outcome.body is None

    @pytest.mark.asyncio
    async def test_connect_error_is_transport(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(RecordingHandler(refuse))
        outcome = await client.call(HttpVerb.POST, "/rpc/getDataset")

        assert outcome.kind is ErrorKind.TRANSPORT
        assert outcome.status_code is None

    @pytest.mark.asyncio
    async def test_timeout_is_transport(self):
        def stall(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(RecordingHandler(stall))
        outcome = await client.call(HttpVerb.POST, "/rpc/getDataset")

        assert outcome.kind is ErrorKind.TRANSPORT
        assert "timed out" in outcome.message

    @pytest.mark.asyncio
    async def test_failure_converts_to_rpc_error(self):
        handler = RecordingHandler(lambda request: httpx.Response(429, json={}))
        client = make_client(handler)

        outcome = await client.call(HttpVerb.POST, "/rpc/getEntries")
        error = outcome.to_error("datalens_get_entries")

        assert error.kind is ErrorKind.RATE_LIMITED
        assert error.to_dict()["status_code"] == 429
        assert error.tool_id == "datalens_get_entries"

    @pytest.mark.asyncio
    async def test_owned_http_client_is_closed(self, settings):
        async with DataLensClient(settings, credentials=StaticCredentials(ORG_ID, TOKEN)) as client:
            assert not client._http.is_closed
        assert client._http.is_closed
