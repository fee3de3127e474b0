"""Domain logic turning an upload batch into provider calls and a gallery payload."""

from __future__ import annotations

import logging
import random
import time
from functools import lru_cache
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .config import Settings, get_settings
from .errors import ConfigurationError, GenerationError, ProviderError
from .metrics import fabricate_metrics, fabricate_quality_score
from .prompts import get_synthetic_variation_prompt
from .aiservices.imagegenerationclient import ImageGenerationClient
from .aiservices.geminiimagegenerationclient import GeminiImageGenerationClient
from .aiservices.mockimagegenerationclient import MockImageGenerationClient
from .aiservices.openaiimagegenerationclient import OpenAIImageGenerationClient
from .schemas import GenerateResponse, GeneratedImage

logger = logging.getLogger(__name__)

NO_IMAGES_GENERATED_MESSAGE = (
    "No images were generated. The API may not support image generation with your current key."
)


def create_image_client(settings: Settings) -> ImageGenerationClient:
    """Build the configured provider client, failing fast on a missing credential."""
    if settings.image_provider == "gemini":
        return GeminiImageGenerationClient(settings)
    if settings.image_provider == "openai":
        return OpenAIImageGenerationClient(settings)
    if settings.image_provider == "mock":
        return MockImageGenerationClient(settings)
    raise ConfigurationError(f"Unknown image provider '{settings.image_provider}'")


class SyntheticImageService:
    """High-level orchestrator for one generation request."""

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: Callable[[Settings], ImageGenerationClient] = create_image_client,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or get_settings()
        self._client_factory = client_factory
        self._rng = rng or random.Random()
        self._clock = clock

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def generate(
        self,
        images: Sequence[str],
        description: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> GenerateResponse:
        # The credential is resolved per call so a misconfigured server reports it to the caller
        client = self._client_factory(self.settings)
        try:
            if not images:
                raise GenerationError("No images provided")

            prompt = get_synthetic_variation_prompt(description, parameters)
            generated: List[GeneratedImage] = []

            for index, image in enumerate(images):
                try:
                    urls = client.generate_variations(prompt, image)
                except ProviderError as exc:
                    if exc.fatal:
                        logger.error(
                            "Provider %s aborted the batch at image %s (status %s): %s",
                            client.name, index, exc.status_code, exc.message,
                        )
                        raise
                    logger.warning(
                        "Provider %s failed for image %s (status %s), continuing: %s",
                        client.name, index, exc.status_code, exc.message,
                    )
                    continue

                for url in urls:
                    generated.append(self._to_generated_image(index, url, len(generated)))

            if not generated:
                raise GenerationError(NO_IMAGES_GENERATED_MESSAGE)

            logger.info("Generated %s synthetic images from %s uploads", len(generated), len(images))
            return GenerateResponse(images=generated, metrics=fabricate_metrics(self._rng))
        finally:
            client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _to_generated_image(self, index: int, url: str, running_count: int) -> GeneratedImage:
        timestamp_ms = int(self._clock() * 1000)
        return GeneratedImage(
            id=f"gen-{index}-{timestamp_ms}-{running_count}",
            url=url,
            class_label=f"Synthetic {index}",
            quality_score=fabricate_quality_score(self._rng),
        )


@lru_cache
def get_synthetic_image_service() -> SyntheticImageService:
    return SyntheticImageService(get_settings())
