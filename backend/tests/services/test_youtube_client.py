"""Tests for the YouTube Data API publisher."""
import json

import httpx
import pytest

from core.config import get_settings
from services.youtube_client import DEFAULT_CATEGORY_ID, PlatformPushError, YouTubeClient

SNIPPET = {
    "title": "My Video",
    "description": "old",
    "tags": ["a", "b"],
    "categoryId": "27",
    "channelId": "UC-main-channel",
    "thumbnails": {},
}


def _client(handler) -> YouTubeClient:  # noqa: ANN001
    return YouTubeClient(
        access_token="token-123",
        base_url="https://youtube.test/v3/",
        transport=httpx.MockTransport(handler),
    )


class TestUpdateDescription:
    """Tests for YouTubeClient.update_description."""

    async def test__update__reads_snippet_then_writes_it_back(self) -> None:
        """Test that only the description changes in the written snippet."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.method == "GET":
                return httpx.Response(200, json={"items": [{"id": "vid1", "snippet": SNIPPET}]})
            return httpx.Response(200, json={"id": "vid1"})

        await _client(handler).update_description("vid1", "new description")

        get, put = requests
        assert get.url.path == "/v3/videos"
        assert get.url.params["part"] == "snippet"
        assert get.url.params["id"] == "vid1"
        assert get.headers["Authorization"] == "Bearer token-123"

        assert put.method == "PUT"
        assert put.url.params["part"] == "snippet"
        body = json.loads(put.content)
        assert body == {
            "id": "vid1",
            "snippet": {
                "title": "My Video",
                "description": "new description",
                "tags": ["a", "b"],
                "categoryId": "27",
            },
        }

    async def test__update__defaults_category(self) -> None:
        """Test that a snippet without a category gets the default one."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"items": [{"snippet": {"title": "T"}}]})
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        await _client(handler).update_description("vid1", "x")

        assert bodies[0]["snippet"]["categoryId"] == DEFAULT_CATEGORY_ID

    async def test__update__unknown_video_is_not_retryable(self) -> None:
        """Test a video id YouTube does not know."""
        def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
            return httpx.Response(200, json={"items": []})

        with pytest.raises(PlatformPushError) as exc_info:
            await _client(handler).update_description("missing", "x")

        assert exc_info.value.status_code == 404
        assert exc_info.value.retryable is False

    @pytest.mark.parametrize(
        ("status_code", "retryable"),
        [(400, False), (403, False), (429, True), (500, True), (503, True)],
    )
    async def test__update__error_status_classification(
        self, status_code: int, retryable: bool,
    ) -> None:
        """Test which HTTP errors are worth retrying."""
        def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
            return httpx.Response(
                status_code, json={"error": {"code": status_code, "message": "nope"}},
            )

        with pytest.raises(PlatformPushError, match="nope") as exc_info:
            await _client(handler).update_description("vid1", "x")

        assert exc_info.value.status_code == status_code
        assert exc_info.value.retryable is retryable

    async def test__update__timeout_is_retryable(self) -> None:
        """Test that timeouts are reported as transient."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PlatformPushError, match="Timed out") as exc_info:
            await _client(handler).update_description("vid1", "x")

        assert exc_info.value.retryable is True
        assert exc_info.value.status_code is None

    async def test__update__network_error_is_retryable(self) -> None:
        """Test that connection failures are reported as transient."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PlatformPushError, match="Could not reach") as exc_info:
            await _client(handler).update_description("vid1", "x")

        assert exc_info.value.retryable is True


def test__from_settings__uses_configuration() -> None:
    """Test building the client from settings."""
    settings = get_settings().model_copy(
        update={
            "youtube_access_token": "abc",
            "youtube_api_base_url": "https://example.test/yt/",
            "push_timeout_seconds": 5.0,
        },
    )
    client = YouTubeClient.from_settings(settings)
    assert client.access_token == "abc"
    assert client.base_url == "https://example.test/yt"
    assert client.timeout == 5.0
