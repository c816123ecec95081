"""ImageApiClient tests."""

from __future__ import annotations

import json
import os
from types import SimpleNamespace

import pytest
import requests

from config.settings import AppConfig, ConfigurationError
from modules.services.image_client import ImageApiClient, ImageRequest
from modules.services.storage_service import StorageService


class DummySession:
    """Capture the POST call instead of touching the network."""

    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def make_config(**overrides) -> AppConfig:
    return AppConfig(endpoint="https://example.invalid/images", api_key="secret", **overrides)


def test_send_posts_exact_contract():
    response = SimpleNamespace(content=b'{"data": []}', text='{"data": []}', status_code=200, ok=True)
    session = DummySession(response)
    client = ImageApiClient(make_config(), session=session)

    result = client.send(ImageRequest(prompt='say "hi"\nplease'))

    call = session.calls[0]
    assert call["url"] == "https://example.invalid/images"
    assert call["headers"] == {"api-key": "secret", "Content-Type": "application/json"}
    assert json.loads(call["data"]) == {
        "prompt": 'say "hi"\nplease',
        "model": "gpt-image-1",
        "size": "1024x1024",
        "n": 1,
        "quality": "high",
    }
    assert call["timeout"] is None
    assert result.body == '{"data": []}'
    assert result.status_code == 200


def test_send_passes_configured_timeout():
    response = SimpleNamespace(content=b"{}", text="{}", status_code=200, ok=True)
    session = DummySession(response)

    ImageApiClient(make_config(request_timeout=30.0), session=session).send(ImageRequest(prompt="x"))

    assert session.calls[0]["timeout"] == 30.0


def test_non_2xx_body_is_returned():
    body = '{"error": {"code": "429", "message": "rate limit"}}'
    session = DummySession(SimpleNamespace(content=body.encode("utf-8"), text=body, status_code=429, ok=False))

    result = ImageApiClient(make_config(), session=session).send(ImageRequest(prompt="x"))

    assert result.body == body
    assert result.status_code == 429


def test_non_utf8_body_is_saved_byte_for_byte(tmp_path):
    raw = b"Erreur 503: service temporairement indisponible \xe9chec, r\xe9essayez"
    response = requests.Response()
    response.status_code = 503
    response._content = raw
    response.headers["Content-Type"] = "text/plain"
    session = DummySession(response)

    result = ImageApiClient(make_config(), session=session).send(ImageRequest(prompt="x"))
    saved = StorageService(tmp_path).save_response(0, "20240501_120000", result.content)

    assert result.content == raw
    assert saved.read_bytes() == raw


def test_transport_error_becomes_error_document():
    session = DummySession(error=requests.ConnectionError("connection refused"))

    result = ImageApiClient(make_config(), session=session).send(ImageRequest(prompt="x"))

    assert result.status_code is None
    assert result.content == result.body.encode("utf-8")
    document = json.loads(result.body)
    assert document["error"]["code"] == "transport_error"
    assert "connection refused" in document["error"]["message"]


def test_missing_credentials_rejected():
    with pytest.raises(ConfigurationError):
        ImageApiClient(AppConfig(endpoint="https://example.invalid/images"))


@pytest.mark.integration
def test_real_endpoint_returns_json():
    """Send one real request when credentials are available."""
    endpoint = os.getenv("IMAGE_API_ENDPOINT")
    api_key = os.getenv("IMAGE_API_KEY")
    if not endpoint or not api_key:
        pytest.skip("IMAGE_API_ENDPOINT/IMAGE_API_KEY not set; skipping real call.")

    client = ImageApiClient(AppConfig(endpoint=endpoint, api_key=api_key, request_timeout=300))
    result = client.send(ImageRequest(prompt="A red apple on a white background"))

    assert result.status_code is not None
    document = json.loads(result.body)
    assert "data" in document or "error" in document
