# aiservices/openaiimagegenerationclient.py
from __future__ import annotations
from typing import Any, List, Optional
import logging

from openai import APIConnectionError, APIStatusError, OpenAI, RateLimitError

from ..config import Settings, get_settings
from ..errors import ConfigurationError, ProviderError, ProviderQuotaError, ProviderRateLimitError
from ..utils import split_data_uri, to_data_url
from .imagegenerationclient import ImageGenerationClient

logger = logging.getLogger(__name__)


class OpenAIImageGenerationClient(ImageGenerationClient):
    """
    Image variations through an OpenAI-compatible chat-completions gateway.

    Works with any gateway that accepts ``modalities=["image", "text"]`` and
    returns generated images on ``choices[].message.images``.
    """

    name = "openai"

    def __init__(self, settings: Optional[Settings] = None, client: Any = None) -> None:
        self.settings = settings or get_settings()

        api_key = self.settings.gateway_api_key.get_secret_value() if self.settings.gateway_api_key else ""
        if not api_key:
            raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")

        # max_retries=0: a 429 must reach the batch loop instead of being retried here
        self._client = client or OpenAI(
            api_key=api_key,
            base_url=self.settings.gateway_base_url,
            timeout=self.settings.request_timeout_seconds,
            max_retries=0,
        )
        self._model = self.settings.gateway_model_id

    # --- Image generation -----------------------------------------------------

    def generate_variations(self, prompt: str, image: str) -> List[str]:
        mime_type, payload = split_data_uri(image)
        params = {
            "model": self._model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": to_data_url(payload, mime_type)}},
                    ],
                }
            ],
            "extra_body": {"modalities": ["image", "text"]},
        }

        try:
            resp = self._client.chat.completions.create(**params)
        except RateLimitError as exc:
            raise ProviderRateLimitError(
                "Rate limits exceeded, please try again later.", exc.status_code
            ) from exc
        except APIStatusError as exc:
            if exc.status_code == 402:
                raise ProviderQuotaError(
                    "Payment required, please add credits to your AI gateway workspace.", exc.status_code
                ) from exc
            raise ProviderError(f"AI gateway error ({exc.status_code}): {exc.message}", exc.status_code) from exc
        except APIConnectionError as exc:
            raise ProviderError(f"AI gateway request failed: {exc}") from exc

        return self._extract_images(resp)

    # --- Internals ------------------------------------------------------------

    @staticmethod
    def _extract_images(resp: Any) -> List[str]:
        """Collect image URLs from every choice.

        ``images`` is a gateway extension, so the SDK keeps it as raw dicts.
        """
        urls: List[str] = []
        choices = getattr(resp, "choices", None)
        if not isinstance(choices, list):
            return urls

        for choice in choices:
            message = getattr(choice, "message", None)
            images = getattr(message, "images", None)
            if not isinstance(images, list):
                continue
            for item in images:
                image_url = item.get("image_url") if isinstance(item, dict) else getattr(item, "image_url", None)
                url = image_url.get("url") if isinstance(image_url, dict) else getattr(image_url, "url", None)
                if isinstance(url, str) and url:
                    urls.append(url)
        return urls
