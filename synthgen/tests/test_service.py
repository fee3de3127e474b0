"""Tests for the batch loop in :mod:`synthgen.service`."""

from __future__ import annotations

import random
import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from synthgen.aiservices.geminiimagegenerationclient import GeminiImageGenerationClient
from synthgen.aiservices.imagegenerationclient import ImageGenerationClient
from synthgen.aiservices.mockimagegenerationclient import MockImageGenerationClient
from synthgen.aiservices.openaiimagegenerationclient import OpenAIImageGenerationClient
from synthgen.config import Settings
from synthgen.errors import (
    ConfigurationError,
    GenerationError,
    ProviderError,
    ProviderQuotaError,
    ProviderRateLimitError,
)
from synthgen.service import SyntheticImageService, create_image_client


class FakeImageClient(ImageGenerationClient):
    name = "fake"

    def __init__(self, outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def generate_variations(self, prompt, image):
        self.calls.append((prompt, image))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


def _service(fake: FakeImageClient, clock=lambda: 1700000000.123) -> SyntheticImageService:
    settings = Settings(_env_file=None, image_provider="mock")
    return SyntheticImageService(settings, client_factory=lambda s: fake, rng=random.Random(0), clock=clock)


def test_each_input_image_is_sent_once_in_order() -> None:
    fake = FakeImageClient([["data:image/png;base64,A"], ["data:image/png;base64,B"]])

    result = _service(fake).generate(["img-0", "img-1"], description="cats", parameters={"decoder_type": "gan"})

    assert [image for _, image in fake.calls] == ["img-0", "img-1"]
    prompt = fake.calls[0][0]
    assert "which shows: cats" in prompt
    assert "GAN-style" in prompt
    assert [img.url for img in result.images] == ["data:image/png;base64,A", "data:image/png;base64,B"]


def test_generated_images_get_ids_labels_and_scores() -> None:
    fake = FakeImageClient([["u0a", "u0b"], ["u1"]])

    result = _service(fake).generate(["a", "b"])

    assert [img.id for img in result.images] == [
        "gen-0-1700000000123-0",
        "gen-0-1700000000123-1",
        "gen-1-1700000000123-2",
    ]
    assert [img.class_label for img in result.images] == ["Synthetic 0", "Synthetic 0", "Synthetic 1"]
    for image in result.images:
        assert image.id
        assert 0.7 <= image.quality_score <= 0.95


def test_success_always_carries_metrics() -> None:
    fake = FakeImageClient([["u0"]])

    result = _service(fake).generate(["a"])

    metrics = result.metrics
    assert 15 <= metrics.fid_score <= 35
    assert 0.05 <= metrics.lpips <= 0.20
    assert 0.80 <= metrics.ssim <= 0.95
    assert 0.75 <= metrics.diversity <= 0.95


def test_non_fatal_provider_error_does_not_stop_next_image() -> None:
    fake = FakeImageClient([ProviderError("upstream 500", 500), ["u1"]])

    result = _service(fake).generate(["a", "b"])

    assert len(fake.calls) == 2
    assert [img.class_label for img in result.images] == ["Synthetic 1"]


@pytest.mark.parametrize(
    "error",
    [
        ProviderRateLimitError("Rate limit exceeded", 429),
        ProviderQuotaError("Quota exhausted", 402),
    ],
)
def test_fatal_provider_error_aborts_remaining_images(error) -> None:
    fake = FakeImageClient([["u0"], error, ["u2"], ["u3"]])

    with pytest.raises(type(error)) as excinfo:
        _service(fake).generate(["a", "b", "c", "d"])

    assert excinfo.value is error
    assert len(fake.calls) == 2
    assert fake.closed


def test_zero_generated_images_fails_regardless_of_input_count() -> None:
    fake = FakeImageClient([[], ProviderError("nope"), []])

    with pytest.raises(GenerationError) as excinfo:
        _service(fake).generate(["a", "b", "c"])

    assert "No images were generated" in excinfo.value.message
    assert fake.closed


def test_empty_input_is_rejected_without_provider_calls() -> None:
    fake = FakeImageClient([])

    with pytest.raises(GenerationError, match="No images provided"):
        _service(fake).generate([])

    assert fake.calls == []


def test_missing_credential_is_checked_before_inputs(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("SYNTHGEN_GEMINI_API_KEY", raising=False)
    service = SyntheticImageService(Settings(_env_file=None, image_provider="gemini"))

    with pytest.raises(ConfigurationError, match="GEMINI_API_KEY is not configured"):
        service.generate([])


def test_create_image_client_selects_configured_provider() -> None:
    gemini = create_image_client(Settings(_env_file=None, image_provider="gemini", gemini_api_key="g-key"))
    gateway = create_image_client(Settings(_env_file=None, image_provider="openai", gateway_api_key="o-key"))
    mock = create_image_client(Settings(_env_file=None, image_provider="mock"))
    try:
        assert isinstance(gemini, GeminiImageGenerationClient)
        assert isinstance(gateway, OpenAIImageGenerationClient)
        assert isinstance(mock, MockImageGenerationClient)
    finally:
        gemini.close()


def _gemini_factory(replies):
    replies = list(replies)
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return replies.pop(0)

    def factory(settings: Settings) -> GeminiImageGenerationClient:
        return GeminiImageGenerationClient(settings, http_client=httpx.Client(transport=httpx.MockTransport(handler)))

    return factory, calls


def test_malformed_provider_reply_does_not_abort_batch() -> None:
    factory, calls = _gemini_factory(
        [
            httpx.Response(200, json={"candidates": [{"content": {"parts": [None]}}]}),
            httpx.Response(200, json={"candidates": [{"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "OK"}}]}}]}),
        ]
    )
    settings = Settings(_env_file=None, image_provider="gemini", gemini_api_key="k")
    service = SyntheticImageService(settings, client_factory=factory, rng=random.Random(0))

    result = service.generate(["a", "b"])

    assert len(calls) == 2
    assert [img.url for img in result.images] == ["data:image/png;base64,OK"]
    assert [img.class_label for img in result.images] == ["Synthetic 1"]


def test_gemini_quota_403_stops_the_batch() -> None:
    factory, calls = _gemini_factory(
        [
            httpx.Response(403, json={"error": {"status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}}),
            httpx.Response(200, json={"candidates": []}),
        ]
    )
    settings = Settings(_env_file=None, image_provider="gemini", gemini_api_key="k")
    service = SyntheticImageService(settings, client_factory=factory)

    with pytest.raises(ProviderQuotaError):
        service.generate(["a", "b"])

    assert len(calls) == 1


def test_mock_provider_runs_end_to_end_without_credentials() -> None:
    service = SyntheticImageService(Settings(_env_file=None, image_provider="mock"), rng=random.Random(3))

    result = service.generate(["data:image/webp;base64,UklGRg==", "QUJD"])

    assert [img.url for img in result.images] == [
        "data:image/webp;base64,UklGRg==",
        "data:image/jpeg;base64,QUJD",
    ]
