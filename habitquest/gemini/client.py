"""Gemini REST API client."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Requested entity was not found"


class GeminiAPIError(Exception):
    """Error response from the Gemini API (or a request that never got one)."""

    def __init__(self, message: str, code: Optional[int] = None, status: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    @property
    def is_not_found(self) -> bool:
        """
        True for the "entity not found" failure (invalid or expired key).

        A bare HTTP 404 (e.g. an expired file URI on download) is not enough;
        the API has to report NOT_FOUND or the not-found message.
        """
        return self.status == "NOT_FOUND" or NOT_FOUND_MESSAGE in self.message

    @classmethod
    def from_payload(cls, payload: Any, http_status: Optional[int] = None) -> "GeminiAPIError":
        """Build from a ``{"error": {"code", "message", "status"}}`` body."""
        error = payload.get("error", {}) if isinstance(payload, dict) else {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        return cls(
            error.get("message") or f"HTTP {http_status}",
            code=error.get("code", http_status),
            status=error.get("status"),
        )


@dataclass
class Operation:
    """Long-running video generation job as reported by the API."""
    name: str
    done: bool = False
    video_uri: Optional[str] = None
    error: Optional[GeminiAPIError] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "Operation":
        if not isinstance(payload, dict):
            raise GeminiAPIError(f"Malformed operation payload: {payload!r}")

        error = None
        if payload.get("error"):
            error = GeminiAPIError.from_payload(payload)

        return cls(
            name=payload.get("name", ""),
            done=bool(payload.get("done", False)),
            video_uri=_extract_video_uri(payload.get("response") or {}),
            error=error,
        )


def _extract_video_uri(response: dict) -> Optional[str]:
    """
    Pull the first generated video URI out of an operation response.

    Accepts both the REST shape (``generateVideoResponse.generatedSamples``)
    and the SDK shape (``generatedVideos``).
    """
    if not isinstance(response, dict):
        return None
    body = response.get("generateVideoResponse", response)
    if not isinstance(body, dict):
        return None

    samples = body.get("generatedSamples") or body.get("generatedVideos") or []
    if not isinstance(samples, list) or not samples or not isinstance(samples[0], dict):
        return None

    video = samples[0].get("video")
    uri = video.get("uri") if isinstance(video, dict) else None
    return uri if isinstance(uri, str) and uri else None


def _extract_text(payload: dict) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


class GeminiClient:
    """HTTP client for the Gemini text and Veo video endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key
            base_url: API root including the version segment
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def connect(self):
        """Open the HTTP session."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )

    async def disconnect(self):
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "GeminiClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info):
        await self.disconnect()

    async def _request(self, method: str, path: str, json_body: Optional[dict] = None) -> dict:
        """
        Call an API method and return the decoded JSON body.

        Raises:
            GeminiAPIError: on transport failure or any non-2xx response
        """
        if not self.session:
            raise GeminiAPIError("Gemini client is not connected")

        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"x-goog-api-key": self.api_key}

        logger.debug(f"{method} {url}")
        try:
            async with self.session.request(method, url, json=json_body, headers=headers) as response:
                payload = await response.json(content_type=None)
                if response.status >= 400 or (isinstance(payload, dict) and "error" in payload):
                    error = GeminiAPIError.from_payload(payload, response.status)
                    logger.error(f"Gemini request failed: {error.code} {error.message}")
                    raise error
                return payload or {}
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise GeminiAPIError(f"Request to {path} failed: {e}") from e

    async def generate_content(self, model: str, prompt: str) -> str:
        """
        Single-turn text generation.

        Returns:
            Response text (empty string if the model returned nothing)
        """
        payload = await self._request(
            "POST",
            f"models/{model}:generateContent",
            {"contents": [{"role": "user", "parts": [{"text": prompt}]}]},
        )
        return _extract_text(payload)

    async def start_video_generation(
        self,
        model: str,
        prompt: str,
        image_b64: str,
        mime_type: str = "image/png",
        aspect_ratio: str = "16:9",
        resolution: str = "720p",
        number_of_videos: int = 1,
    ) -> Operation:
        """Submit an image-to-video job and return its operation handle."""
        payload = await self._request(
            "POST",
            f"models/{model}:predictLongRunning",
            {
                "instances": [
                    {
                        "prompt": prompt,
                        "image": {"bytesBase64Encoded": image_b64, "mimeType": mime_type},
                    }
                ],
                "parameters": {
                    "sampleCount": number_of_videos,
                    "resolution": resolution,
                    "aspectRatio": aspect_ratio,
                },
            },
        )
        return Operation.from_payload(payload)

    async def get_operation(self, operation: Operation) -> Operation:
        """Fetch the latest status of a job."""
        payload = await self._request("GET", operation.name)
        return Operation.from_payload(payload)

    async def download(self, uri: str) -> bytes:
        """Download generated bytes; the key is appended as a query parameter."""
        if not self.session:
            raise GeminiAPIError("Gemini client is not connected")

        separator = "&" if "?" in uri else "?"
        try:
            async with self.session.get(f"{uri}{separator}key={self.api_key}") as response:
                if response.status >= 400:
                    raise GeminiAPIError(
                        f"Download failed with HTTP {response.status}", code=response.status
                    )
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GeminiAPIError(f"Download failed: {e}") from e
