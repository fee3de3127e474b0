"""Exception hierarchy for the generation endpoint and its provider clients."""

from __future__ import annotations

from typing import Optional


class SynthGenError(Exception):
    """Base class for errors reported to the caller as ``{"error": message}``."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(SynthGenError):
    """The server is missing configuration it needs, usually a provider credential."""


class GenerationError(SynthGenError):
    """The request cannot produce any images (empty input or empty result)."""


class ProviderError(SynthGenError):
    """A single outbound provider call failed.

    Plain provider errors are recoverable: the batch moves on to the next image.
    The :attr:`fatal` subclasses abort the whole batch.
    """

    fatal = False

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderRateLimitError(ProviderError):
    fatal = True


class ProviderQuotaError(ProviderError):
    fatal = True
