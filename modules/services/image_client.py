"""HTTP client for the image-generation endpoint."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

import requests

from config.settings import AppConfig, ConfigurationError

logger = logging.getLogger(__name__)

IMAGE_MODEL = "gpt-image-1"
IMAGE_SIZE = "1024x1024"
IMAGE_QUALITY = "high"


@dataclass(slots=True)
class ImageRequest:
    """Request body sent to the image endpoint."""

    prompt: str
    model: str = IMAGE_MODEL
    size: str = IMAGE_SIZE
    n: int = 1
    quality: str = IMAGE_QUALITY

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ApiResponse:
    """Raw outcome of one POST.

    ``content`` holds the bytes exactly as received and is what gets
    persisted; ``body`` is the decoded text used for JSON parsing.
    ``status_code`` is None when the request never produced an HTTP
    response; both fields then carry a synthetic error document.
    """

    content: bytes
    body: str
    status_code: Optional[int] = None


class ImageApiClient:
    """Thin wrapper around a single POST to the configured endpoint."""

    def __init__(self, config: AppConfig, session: Optional[requests.Session] = None) -> None:
        if not config.endpoint or not config.api_key:
            raise ConfigurationError("Image API endpoint and key must be configured")
        self.endpoint = config.endpoint
        self.timeout = config.request_timeout
        self._api_key = config.api_key
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {"api-key": self._api_key, "Content-Type": "application/json"}

    def send(self, request: ImageRequest) -> ApiResponse:
        """POST the request and return the raw body.

        Transport failures are folded into an ``ApiResponse`` so the caller
        can persist and retry them like any other error.
        """
        try:
            response = self._session.post(
                self.endpoint,
                headers=self._headers(),
                data=json.dumps(request.to_payload()),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Request to %s failed: %s", self.endpoint, exc)
            body = json.dumps({"error": {"code": "transport_error", "message": str(exc)}})
            return ApiResponse(content=body.encode("utf-8"), body=body)

        if not response.ok:
            logger.debug("Endpoint answered HTTP %s", response.status_code)
        return ApiResponse(
            content=response.content, body=response.text, status_code=response.status_code
        )
