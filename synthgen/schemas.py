"""Pydantic models shared by the FastAPI endpoint and the submission client."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class GenerationParameters(BaseModel):
    """Options selected in the parameter form.

    The server never validates these; they only flavour the prompt text.
    """

    k_neighbors: int = Field(default=5, description="Neighbour count shown on the SMOTE slider (1-15)")
    sampling_strategy: str = Field(default="minority", description="minority, not_majority, all or auto")
    clustering_enabled: bool = Field(default=True, description="Semantic clustering toggle")
    outlier_detection: bool = Field(default=True, description="Outlier detection toggle")
    decoder_type: str = Field(default="vae", description="autoencoder, vae, gan or diffusion")


class GenerateRequest(BaseModel):
    images: List[str] = Field(..., description="Data URIs or bare base64 payloads of the uploaded images")
    description: Optional[str] = Field(default=None, description="Free-text description of the images")
    parameters: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Parameter record passed through to the prompt without validation",
    )


class GeneratedImage(BaseModel):
    id: str = Field(..., description="Request-local identifier, not globally unique")
    url: str = Field(..., description="Data URI or remote URL of the generated image")
    class_label: str
    quality_score: float = Field(
        ...,
        description="Placeholder score drawn at random; it is not measured from the pixels",
    )


class QualityMetrics(BaseModel):
    """Placeholder metrics. None of these values are computed from the images."""

    fid_score: float
    lpips: float
    ssim: float
    diversity: float


class GenerateResponse(BaseModel):
    images: List[GeneratedImage]
    metrics: QualityMetrics


class ErrorResponse(BaseModel):
    error: str
