from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


class ImageGenerationClient(ABC):
    """Abstract interface for an image-to-image generation provider.

    Implementations take text instructions plus one source image and return
    zero or more generated images. Failures are reported as
    :class:`~synthgen.errors.ProviderError` (or one of its fatal subclasses).
    """

    name: str = "abstract"

    @abstractmethod
    def generate_variations(self, prompt: str, image: str) -> List[str]:
        """Return data URIs or URLs of images generated from ``prompt`` and ``image``.

        ``image`` is the uploaded string exactly as received: a data URI or a bare
        base64 payload.
        """

    def close(self) -> None:  # pragma: no cover - interface default
        """Release any network resources held by the client."""
