# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for the API and webhook handlers

HTTP is stubbed with httpx.MockTransport; nothing leaves the process.
"""

import base64
import json

import httpx
import pytest

from mcp_hub.core.errors import ConnectorTimeoutError, DispatchError
from mcp_hub.handlers import ApiHandler, WebhookHandler
from mcp_hub.models import InvocationContext


class Recorder:
    """Transport handler that records requests and replies with a fixed response"""

    def __init__(self, status_code=200, json_body=None, text=None):
        self.requests = []
        self.status_code = status_code
        self.json_body = json_body
        self.text = text

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body if self.json_body is not None else {})


def client_for(recorder) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(recorder))


@pytest.fixture
def context(tmp_path):
    return InvocationContext(workspace_root=str(tmp_path), user_request="check issues")


class TestApiHandler:
    """Test REST dispatch"""

    @pytest.mark.asyncio
    async def test_get_with_path_and_query(self, hub_config, connector_factory, context):
        recorder = Recorder(json_body={"login": "octocat"})
        handler = ApiHandler(hub_config, client=client_for(recorder))
        connector = connector_factory("gh", config={"endpoint": "https://api.example.com"})

        response = await handler.handle(connector, "get", {"path": "/user", "query": {"page": 2}}, context)

        assert response.success
        assert response.data == {"login": "octocat"}
        assert response.metadata["status"] == 200
        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/user"
        assert request.url.params["page"] == "2"

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self, hub_config, connector_factory, context):
        recorder = Recorder(status_code=201, json_body={"id": 7})
        handler = ApiHandler(hub_config, client=client_for(recorder))
        connector = connector_factory("gh", config={"endpoint": "https://api.example.com"})

        response = await handler.handle(connector, "post", {"path": "/issues", "data": {"title": "Bug"}}, context)

        assert response.success
        assert json.loads(recorder.requests[0].content) == {"title": "Bug"}

    @pytest.mark.asyncio
    async def test_non_json_body_returned_as_text(self, hub_config, connector_factory, context):
        handler = ApiHandler(hub_config, client=client_for(Recorder(text="pong")))
        connector = connector_factory("svc", config={"endpoint": "https://svc.local"})

        response = await handler.handle(connector, "get", {}, context)

        assert response.data == "pong"

    @pytest.mark.asyncio
    async def test_http_error_status(self, hub_config, connector_factory, context):
        recorder = Recorder(status_code=404, json_body={"message": "Not Found"})
        handler = ApiHandler(hub_config, client=client_for(recorder))
        connector = connector_factory("gh", config={"endpoint": "https://api.example.com"})

        with pytest.raises(DispatchError) as exc_info:
            await handler.handle(connector, "get", {"path": "/missing"}, context)

        assert exc_info.value.message == "HTTP 404: Not Found"
        assert exc_info.value.data == {"message": "Not Found"}
        assert exc_info.value.details["status"] == 404

    @pytest.mark.asyncio
    async def test_unknown_action(self, hub_config, connector_factory, context):
        handler = ApiHandler(hub_config, client=client_for(Recorder()))
        connector = connector_factory("gh", config={"endpoint": "https://api.example.com"})

        with pytest.raises(DispatchError, match="Unsupported API action"):
            await handler.handle(connector, "patch", {}, context)

    @pytest.mark.asyncio
    async def test_missing_endpoint(self, hub_config, connector_factory, context):
        handler = ApiHandler(hub_config, client=client_for(Recorder()))

        with pytest.raises(DispatchError, match="no endpoint"):
            await handler.handle(connector_factory("jira"), "get", {}, context)

    @pytest.mark.asyncio
    async def test_transport_timeout(self, hub_config, connector_factory, context):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        handler = ApiHandler(hub_config, client=client_for(slow))
        connector = connector_factory("gh", config={"endpoint": "https://api.example.com", "timeout": 50})

        with pytest.raises(ConnectorTimeoutError) as exc_info:
            await handler.handle(connector, "get", {}, context)

        assert exc_info.value.message == "Request timeout"
        assert exc_info.value.details == {"timeout": 50}

    @pytest.mark.asyncio
    async def test_connection_error(self, hub_config, connector_factory, context):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        handler = ApiHandler(hub_config, client=client_for(refuse))
        connector = connector_factory("gh", config={"endpoint": "https://api.example.com"})

        with pytest.raises(DispatchError, match="API request failed"):
            await handler.handle(connector, "get", {}, context)


class TestAuthentication:
    """Test header construction per auth strategy"""

    def build(self, hub_config, connector_factory, config):
        handler = ApiHandler(hub_config, client=client_for(Recorder()))
        connector = connector_factory("svc", config={"endpoint": "https://svc.local", **config})
        return connector, handler.build_headers(connector)

    def test_bearer(self, hub_config, connector_factory):
        _, headers = self.build(hub_config, connector_factory, {
            "authentication": {"type": "bearer", "credentials": {"token": "abc"}}
        })
        assert headers["Authorization"] == "Bearer abc"

    def test_basic(self, hub_config, connector_factory):
        _, headers = self.build(hub_config, connector_factory, {
            "authentication": {"type": "basic", "credentials": {"username": "u", "password": "p"}}
        })
        assert headers["Authorization"] == "Basic " + base64.b64encode(b"u:p").decode()

    def test_apikey_custom_header(self, hub_config, connector_factory):
        _, headers = self.build(hub_config, connector_factory, {
            "authentication": {"type": "apikey", "credentials": {"header": "X-Token", "key": "k"}}
        })
        assert headers["X-Token"] == "k"

    def test_oauth(self, hub_config, connector_factory):
        _, headers = self.build(hub_config, connector_factory, {
            "authentication": {"type": "oauth", "credentials": {"accessToken": "t"}}
        })
        assert headers["Authorization"] == "Bearer t"

    def test_api_key_field(self, hub_config, connector_factory):
        _, headers = self.build(hub_config, connector_factory, {"apiKey": "k"})
        assert headers["X-API-Key"] == "k"

    def test_configured_headers_not_mutated(self, hub_config, connector_factory):
        connector, headers = self.build(hub_config, connector_factory, {
            "headers": {"Accept": "application/json"},
            "authentication": {"type": "bearer", "credentials": {"token": "abc"}},
        })

        assert headers["Accept"] == "application/json"
        assert "Authorization" not in connector.config.headers


class TestWebhookHandler:
    """Test webhook delivery"""

    @pytest.mark.asyncio
    async def test_posts_payload(self, hub_config, connector_factory, context):
        recorder = Recorder(text="ok")
        handler = WebhookHandler(hub_config, client=client_for(recorder))
        connector = connector_factory("hook", "webhook", config={"webhookUrl": "https://hooks.local/x"})

        response = await handler.handle(connector, "notify", {"text": "hi"}, context)

        assert response.success
        assert response.data == "ok"
        assert response.metadata == {"status": 200}
        payload = json.loads(recorder.requests[0].content)
        assert payload["action"] == "notify"
        assert payload["params"] == {"text": "hi"}
        assert payload["context"]["userRequest"] == "check issues"
        assert isinstance(payload["timestamp"], int)
        assert recorder.requests[0].method == "POST"

    @pytest.mark.asyncio
    async def test_failure_status(self, hub_config, connector_factory, context):
        handler = WebhookHandler(hub_config, client=client_for(Recorder(status_code=500, text="down")))
        connector = connector_factory("hook", "webhook", config={"webhookUrl": "https://hooks.local/x"})

        with pytest.raises(DispatchError) as exc_info:
            await handler.handle(connector, "notify", {}, context)

        assert exc_info.value.message == "Webhook failed: Internal Server Error"
        assert exc_info.value.data == "down"

    @pytest.mark.asyncio
    async def test_redirect_not_followed(self, hub_config, connector_factory, context):
        def redirect(request):
            if request.url.path == "/x":
                return httpx.Response(302, headers={"Location": "https://hooks.local/y"})
            return httpx.Response(200, text="followed")

        handler = WebhookHandler(hub_config, client=client_for(redirect))
        connector = connector_factory("hook", "webhook", config={"webhookUrl": "https://hooks.local/x"})

        response = await handler.handle(connector, "notify", {}, context)

        assert response.metadata == {"status": 302}

    @pytest.mark.asyncio
    async def test_missing_url(self, hub_config, connector_factory, context):
        handler = WebhookHandler(hub_config, client=client_for(Recorder()))

        with pytest.raises(DispatchError, match="no webhook URL"):
            await handler.handle(connector_factory("slack", "webhook"), "notify", {}, context)

    @pytest.mark.asyncio
    async def test_timeout(self, hub_config, connector_factory, context):
        def slow(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        handler = WebhookHandler(hub_config, client=client_for(slow))
        connector = connector_factory("hook", "webhook", config={"webhookUrl": "https://hooks.local/x"})

        with pytest.raises(ConnectorTimeoutError, match="Webhook timeout"):
            await handler.handle(connector, "notify", {}, context)
