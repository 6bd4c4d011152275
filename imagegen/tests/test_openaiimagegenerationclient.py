"""Tests for :mod:`imagegen.aiservices.openaiimagegenerationclient`."""

from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace

import httpx
import openai
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from imagegen.aiservices.errors import (
    ImageGenerationError,
    MalformedResponse,
    MissingCredentialError,
    TransportError,
    UpstreamRejected,
)
from imagegen.aiservices.openaiimagegenerationclient import OpenAIImageGenerationClient
from imagegen.config import Settings
from imagegen.normalizer import DATA_NOT_FOUND_MESSAGE, GenerationFailure
from imagegen.schemas import ImageGenerationParams
from imagegen.service import ImageGenerationService

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/images/generations")


class _FakeImages:
    def __init__(self, response=None, exception: Exception | None = None) -> None:
        self.response = response
        self.exception = exception
        self.kwargs: dict | None = None

    def generate(self, **kwargs):
        self.kwargs = kwargs
        if self.exception is not None:
            raise self.exception
        return self.response


def _client(images: _FakeImages) -> OpenAIImageGenerationClient:
    return OpenAIImageGenerationClient(
        Settings(openai_api_key=""),
        sdk_client=SimpleNamespace(images=images),
    )


def _params(**overrides) -> ImageGenerationParams:
    values = {"prompt": "a red fox", "model": "dall-e-2", "size": "512x512", "response_format": "url"}
    values.update(overrides)
    return ImageGenerationParams(**values)


def _status_error(cls, status_code: int, body):
    response = httpx.Response(status_code, request=_REQUEST)
    return cls(f"Error code: {status_code} - {body}", response=response, body=body)


def test_constructor_requires_api_key() -> None:
    with pytest.raises(MissingCredentialError):
        OpenAIImageGenerationClient(Settings(openai_api_key="   "))


def test_constructor_builds_sdk_client_without_retries() -> None:
    client = OpenAIImageGenerationClient(Settings(openai_api_key="sk-test", request_timeout=12.5))

    assert isinstance(client._client, openai.OpenAI)
    assert client._client.max_retries == 0
    assert client._client.timeout == 12.5


def test_generate_sends_payload_and_returns_descriptors() -> None:
    images = _FakeImages(response=SimpleNamespace(data=[SimpleNamespace(url="https://x/y.png", b64_json=None)]))

    descriptors = _client(images).generate(_params(quality="standard"))

    assert images.kwargs == {
        "prompt": "a red fox",
        "model": "dall-e-2",
        "n": 1,
        "size": "512x512",
        "response_format": "url",
        "quality": "standard",
    }
    assert descriptors[0].url == "https://x/y.png"
    assert descriptors[0].b64_json is None


def test_generate_omits_response_format_for_gpt_image_models() -> None:
    images = _FakeImages(response=SimpleNamespace(data=[{"b64_json": "aGVsbG8="}]))

    descriptors = _client(images).generate(_params(model="gpt-image-1", response_format="b64_json"))

    assert "response_format" not in images.kwargs
    assert descriptors[0].b64_json == "aGVsbG8="


@pytest.mark.parametrize("response", [SimpleNamespace(data=[]), SimpleNamespace(data=None), SimpleNamespace()])
def test_generate_without_descriptors_is_malformed(response) -> None:
    with pytest.raises(MalformedResponse):
        _client(_FakeImages(response=response)).generate(_params())


def test_rate_limit_error_is_rejected_with_nested_message() -> None:
    body = {"message": "Rate limit exceeded", "type": "requests", "code": "rate_limit_exceeded"}
    images = _FakeImages(exception=_status_error(openai.RateLimitError, 429, body))

    with pytest.raises(UpstreamRejected) as excinfo:
        _client(images).generate(_params())

    assert excinfo.value.status_code == 429
    assert excinfo.value.message == "Rate limit exceeded"
    assert excinfo.value.code == "rate_limit_exceeded"


def test_error_envelope_is_unwrapped() -> None:
    body = {"error": {"message": "Your request was rejected", "code": "content_policy_violation"}}
    images = _FakeImages(exception=_status_error(openai.BadRequestError, 400, body))

    with pytest.raises(UpstreamRejected) as excinfo:
        _client(images).generate(_params())

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Your request was rejected"
    assert excinfo.value.code == "content_policy_violation"


def test_status_error_without_body_keeps_sdk_message() -> None:
    images = _FakeImages(exception=_status_error(openai.InternalServerError, 503, None))

    with pytest.raises(UpstreamRejected) as excinfo:
        _client(images).generate(_params())

    assert excinfo.value.status_code == 503
    assert excinfo.value.message.startswith("Error code: 503")
    assert excinfo.value.code is None


@pytest.mark.parametrize(
    "exception",
    [
        openai.APIConnectionError(request=_REQUEST),
        openai.APITimeoutError(request=_REQUEST),
    ],
)
def test_network_failures_are_transport_errors(exception) -> None:
    with pytest.raises(TransportError):
        _client(_FakeImages(exception=exception)).generate(_params())


def test_other_sdk_errors_are_generation_errors() -> None:
    images = _FakeImages(exception=openai.OpenAIError("client misconfigured"))

    with pytest.raises(ImageGenerationError) as excinfo:
        _client(images).generate(_params())

    assert type(excinfo.value) is ImageGenerationError
    assert excinfo.value.message == "client misconfigured"


@pytest.mark.parametrize(
    "item",
    [SimpleNamespace(url=123, b64_json=None), {"url": ["https://x/y.png"]}, {"b64_json": {"data": "aGVsbG8="}}],
)
def test_unreadable_descriptor_is_malformed(item) -> None:
    images = _FakeImages(response=SimpleNamespace(data=[item]))

    with pytest.raises(MalformedResponse):
        _client(images).generate(_params())


def test_unreadable_descriptor_answers_data_not_found() -> None:
    images = _FakeImages(response=SimpleNamespace(data=[{"url": 42}]))
    service = ImageGenerationService(Settings(openai_api_key="sk-test"), client=_client(images))

    assert service.generate_image("a red fox") == GenerationFailure(DATA_NOT_FOUND_MESSAGE, 500)
