from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx

from .imagegenerationclient import ImageGenerationClient
from ..config import Settings, get_settings
from ..errors import ConfigurationError, ProviderError, ProviderQuotaError, ProviderRateLimitError
from ..utils import split_data_uri, to_data_url

logger = logging.getLogger(__name__)


class GeminiImageGenerationClient(ImageGenerationClient):
    """Calls the Generative Language ``generateContent`` REST endpoint."""

    name = "gemini"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings or get_settings()

        api_key = self.settings.gemini_api_key.get_secret_value() if self.settings.gemini_api_key else ""
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        self._api_key = api_key

        self._model = self.settings.gemini_model_id
        self._url = f"{self.settings.gemini_api_base_url.rstrip('/')}/models/{self._model}:generateContent"
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=self.settings.request_timeout_seconds)

    def generate_variations(self, prompt: str, image: str) -> List[str]:
        mime_type, payload = split_data_uri(image)
        body = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {"inlineData": {"mimeType": mime_type, "data": payload}},
                    ]
                }
            ],
            "generationConfig": {
                "responseModalities": ["IMAGE", "TEXT"],
            },
        }

        try:
            response = self._http.post(
                self._url,
                headers={"Content-Type": "application/json", "x-goog-api-key": self._api_key},
                json=body,
            )
        except httpx.HTTPError as exc:
            raise ProviderError(f"Gemini request failed: {exc}") from exc

        if response.status_code >= 400:
            raise self._provider_error(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Gemini returned a response that is not JSON", response.status_code) from exc

        return self._extract_images(data)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    # --- Internals ------------------------------------------------------------

    @staticmethod
    def _extract_images(data: Any) -> List[str]:
        images: List[str] = []
        if not isinstance(data, dict):
            return images

        candidates = data.get("candidates")
        if not isinstance(candidates, list):
            return images

        # Anything that is not the documented dict shape is skipped
        for candidate in candidates:
            if not isinstance(candidate, dict) or not isinstance(candidate.get("content"), dict):
                continue
            parts = candidate["content"].get("parts")
            if not isinstance(parts, list):
                continue
            for part in parts:
                if not isinstance(part, dict):
                    continue
                inline_data = part.get("inlineData") or part.get("inline_data")
                if not isinstance(inline_data, dict) or not isinstance(inline_data.get("data"), str):
                    continue
                if not inline_data["data"]:
                    continue
                mime = inline_data.get("mimeType") or inline_data.get("mime_type")
                images.append(to_data_url(inline_data["data"], mime if isinstance(mime, str) and mime else "image/png"))
        return images

    @staticmethod
    def _provider_error(response: httpx.Response) -> ProviderError:
        message = ""
        error_status = ""
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            message = str(payload["error"].get("message") or "")
            error_status = str(payload["error"].get("status") or "")

        logger.debug("Gemini error body (%s): %s", response.status_code, response.text)

        if response.status_code == 429:
            return ProviderRateLimitError(
                "Rate limit exceeded by the image provider. Please try again later.",
                response.status_code,
            )
        quota_signal = error_status == "RESOURCE_EXHAUSTED" or "quota" in message.lower()
        if response.status_code == 402 or (response.status_code == 403 and quota_signal):
            return ProviderQuotaError(
                "Image provider quota exhausted. Please add credits to your account.",
                response.status_code,
            )
        return ProviderError(
            f"Gemini error ({response.status_code}): {message or 'unexpected response'}",
            response.status_code,
        )
