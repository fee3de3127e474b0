from __future__ import annotations

from typing import List, Optional

from .imagegenerationclient import ImageGenerationClient
from ..config import Settings, get_settings
from ..utils import split_data_uri, to_data_url


class MockImageGenerationClient(ImageGenerationClient):
    """Offline provider that hands the source image straight back.

    Needs no credential; useful for local demos and for exercising the endpoint
    without spending provider quota.
    """

    name = "mock"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.prompts: List[str] = []

    def generate_variations(self, prompt: str, image: str) -> List[str]:
        self.prompts.append(prompt)
        mime_type, payload = split_data_uri(image)
        return [to_data_url(payload, mime_type)]
