"""
Publisher that writes video descriptions through the YouTube Data API v3.

Only ``snippet.description`` is changed: the current snippet is read first and
written back whole, because ``videos.update`` replaces every snippet field it
is given and clears the ones it is not.
"""
import logging
from typing import Any, Protocol

import httpx

from core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# People & Blogs; the API requires a category when the snippet is written
DEFAULT_CATEGORY_ID = "22"

# Snippet fields accepted by videos.update
_WRITABLE_SNIPPET_FIELDS = (
    "title",
    "description",
    "tags",
    "categoryId",
    "defaultLanguage",
)


class PlatformPushError(Exception):
    """
    Raised when the platform did not accept a description.

    ``retryable`` is True for timeouts, network errors, rate limiting and
    server errors.
    """

    def __init__(
        self, message: str, status_code: int | None = None, retryable: bool = True,
    ) -> None:
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)


class DescriptionPublisher(Protocol):
    """Pushes a final description string to the platform."""

    async def update_description(self, platform_video_id: str, description: str) -> None:
        """
        Replace a video's description on the platform.

        Raises:
            PlatformPushError: If the platform did not accept the update.
        """
        ...


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.reason_phrase


class YouTubeClient:
    """Description publisher backed by the YouTube Data API."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://www.googleapis.com/youtube/v3",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "YouTubeClient":
        """Build a client from application settings."""
        settings = settings or get_settings()
        return cls(
            access_token=settings.youtube_access_token,
            base_url=settings.youtube_api_base_url,
            timeout=settings.push_timeout_seconds,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.access_token}"},
            transport=self.transport,
        )

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        params: dict[str, str],
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            response = await client.request(method, "/videos", params=params, json=json)
        except httpx.TimeoutException as e:
            raise PlatformPushError(f"Timed out talking to YouTube: {e}") from e
        except httpx.RequestError as e:
            raise PlatformPushError(f"Could not reach YouTube: {e}") from e

        if response.is_error:
            raise PlatformPushError(
                f"YouTube returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
                retryable=_is_retryable_status(response.status_code),
            )
        return response

    async def get_snippet(self, client: httpx.AsyncClient, platform_video_id: str) -> dict[str, Any]:
        """
        Fetch a video's current snippet.

        Raises:
            PlatformPushError: If the request fails or the video does not exist.
        """
        response = await self._request(
            client, "GET", {"part": "snippet", "id": platform_video_id},
        )
        items = response.json().get("items") or []
        if not items:
            raise PlatformPushError(
                f"Video {platform_video_id} not found on YouTube",
                status_code=404,
                retryable=False,
            )
        return items[0].get("snippet") or {}

    async def update_description(self, platform_video_id: str, description: str) -> None:
        """Replace the video's description, keeping the rest of its snippet."""
        async with self._client() as client:
            current = await self.get_snippet(client, platform_video_id)
            snippet = {
                key: current[key] for key in _WRITABLE_SNIPPET_FIELDS if key in current
            }
            snippet["description"] = description
            snippet.setdefault("categoryId", DEFAULT_CATEGORY_ID)
            await self._request(
                client,
                "PUT",
                {"part": "snippet"},
                json={"id": platform_video_id, "snippet": snippet},
            )
        logger.info("Updated description of YouTube video %s", platform_video_id)
