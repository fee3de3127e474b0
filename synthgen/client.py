"""Python client for the generation endpoint.

Plays the part of the browser form: encodes uploads, posts them with the
description and parameters, and keeps the gallery state that is shown to the user.
"""

from __future__ import annotations

import argparse
import base64
import logging
import mimetypes
import random
import re
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from .metrics import MOCK_QUALITY_SCORE_RANGE, fabricate_metrics, fabricate_quality_score
from .schemas import GenerateResponse, GeneratedImage, GenerationParameters, QualityMetrics
from .utils import split_data_uri

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_BASE_URL = "http://localhost:8000"
GENERATE_PATH = "/generate-images"
NO_FILES_MESSAGE = "Please upload at least one image to generate synthetic samples."
DEFAULT_FAILURE_MESSAGE = "Failed to generate images"


class NoImagesSelectedError(ValueError):
    """Raised before any network traffic when the upload set is empty."""

    def __init__(self, message: str = NO_FILES_MESSAGE) -> None:
        super().__init__(message)


class GenerationRequestError(RuntimeError):
    """The endpoint answered with an error or could not be reached."""


class SubmissionInProgressError(RuntimeError):
    """A second submission was attempted while one is still outstanding."""


def encode_image_file(path: PathLike) -> str:
    """Read an image from disk and return it as a data URI."""
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)
    if not mime_type or not mime_type.startswith("image/"):
        raise ValueError(f"{path.name} is not an image file")
    encoded = base64.b64encode(path.read_bytes()).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def mock_generate(
    images: Sequence[str],
    rng: Optional[random.Random] = None,
    clock=time.time,
) -> GenerateResponse:
    """Local placeholder results that echo the uploads, no network involved."""
    if not images:
        raise NoImagesSelectedError()
    rng = rng or random.Random()
    results = [
        GeneratedImage(
            id=f"mock-{index}-{int(clock() * 1000)}",
            url=image,
            class_label=f"Synthetic {index}",
            quality_score=fabricate_quality_score(rng, MOCK_QUALITY_SCORE_RANGE),
        )
        for index, image in enumerate(images)
    ]
    return GenerateResponse(images=results, metrics=fabricate_metrics(rng))


class SyntheticImageClient:
    """Thin HTTP client for ``POST /generate-images``."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = 300.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SyntheticImageClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def generate(
        self,
        files: Sequence[PathLike],
        description: str = "",
        parameters: Optional[GenerationParameters] = None,
    ) -> GenerateResponse:
        if not files:
            raise NoImagesSelectedError()
        images = [encode_image_file(path) for path in files]
        return self.generate_from_data(images, description, parameters)

    def generate_from_data(
        self,
        images: Sequence[str],
        description: str = "",
        parameters: Optional[GenerationParameters] = None,
    ) -> GenerateResponse:
        if not images:
            raise NoImagesSelectedError()

        body = {
            "images": list(images),
            "description": description,
            "parameters": (parameters or GenerationParameters()).model_dump(),
        }
        try:
            response = self._http.post(GENERATE_PATH, json=body)
        except httpx.HTTPError as exc:
            raise GenerationRequestError(f"Could not reach the generation endpoint: {exc}") from exc

        if response.is_error:
            raise GenerationRequestError(self._error_message(response))

        try:
            return GenerateResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise GenerationRequestError(f"Unexpected response from the generation endpoint: {exc}") from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return DEFAULT_FAILURE_MESSAGE
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return DEFAULT_FAILURE_MESSAGE


@dataclass
class ResultsGallery:
    """What the results panel shows, plus the dismissible error notification."""

    images: List[GeneratedImage] = field(default_factory=list)
    metrics: Optional[QualityMetrics] = None
    is_generating: bool = False
    last_error: Optional[str] = None

    def submit(
        self,
        client: SyntheticImageClient,
        files: Sequence[PathLike],
        description: str = "",
        parameters: Optional[GenerationParameters] = None,
    ) -> bool:
        """Run one submission; return True when the gallery was replaced."""
        if self.is_generating:
            raise SubmissionInProgressError("A generation request is already running")

        if not files:
            self.last_error = NO_FILES_MESSAGE
            return False

        self.is_generating = True
        try:
            result = client.generate(files, description, parameters)
        except (GenerationRequestError, ValueError, OSError) as exc:
            logger.warning("Generation failed: %s", exc)
            self.last_error = str(exc) or "An error occurred during generation."
            return False
        finally:
            self.is_generating = False

        self.show(result)
        return True

    def show(self, result: GenerateResponse) -> None:
        self.images = list(result.images)
        self.metrics = result.metrics
        self.last_error = None

    def dismiss_error(self) -> None:
        self.last_error = None


# ----------------------------------------------------------------------
# Command line
# ----------------------------------------------------------------------
def _build_parser() -> argparse.ArgumentParser:
    defaults = GenerationParameters()
    parser = argparse.ArgumentParser(description="Generate synthetic image variations for class oversampling")
    parser.add_argument("files", nargs="*", help="Image files to upload")
    parser.add_argument("--description", default="", help="What the images show")
    parser.add_argument("--k-neighbors", type=int, default=defaults.k_neighbors, choices=range(1, 16), metavar="1-15")
    parser.add_argument(
        "--sampling-strategy",
        default=defaults.sampling_strategy,
        choices=["minority", "not_majority", "all", "auto"],
    )
    parser.add_argument(
        "--decoder-type",
        default=defaults.decoder_type,
        choices=["autoencoder", "vae", "gan", "diffusion"],
    )
    parser.add_argument("--no-clustering", action="store_true", help="Disable semantic clustering")
    parser.add_argument("--no-outlier-detection", action="store_true", help="Disable outlier detection")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Backend base URL")
    parser.add_argument("--token", default=None, help="Bearer token sent with the request")
    parser.add_argument("--output-dir", type=Path, default=Path("generated"), help="Where to write the images")
    parser.add_argument("--mock", action="store_true", help="Skip the backend and produce local placeholders")
    return parser


def _safe_file_stem(image_id: str) -> str:
    # ids come from the server; keep them inside the output directory
    stem = re.sub(r"[^A-Za-z0-9._-]", "_", Path(image_id).name).lstrip(".")
    return stem or "image"


def save_generated_images(images: Sequence[GeneratedImage], output_dir: Path) -> List[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for image in images:
        if not image.url.startswith("data:"):
            logger.info("Remote image %s left at %s", image.id, image.url)
            continue
        mime_type, payload = split_data_uri(image.url)
        extension = mimetypes.guess_extension(mime_type) or ".png"
        target = output_dir / f"{_safe_file_stem(image.id)}{extension}"
        target.write_bytes(base64.b64decode(payload))
        written.append(target)
    return written


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = _build_parser().parse_args(argv)

    parameters = GenerationParameters(
        k_neighbors=args.k_neighbors,
        sampling_strategy=args.sampling_strategy,
        decoder_type=args.decoder_type,
        clustering_enabled=not args.no_clustering,
        outlier_detection=not args.no_outlier_detection,
    )

    gallery = ResultsGallery()
    if args.mock:
        if not args.files:
            gallery.last_error = NO_FILES_MESSAGE
        else:
            gallery.show(mock_generate([encode_image_file(path) for path in args.files]))
    else:
        with SyntheticImageClient(args.base_url, token=args.token) as client:
            gallery.submit(client, args.files, args.description, parameters)

    if gallery.last_error:
        print(f"Generation failed: {gallery.last_error}", file=sys.stderr)
        return 1

    written = save_generated_images(gallery.images, args.output_dir)
    print(f"Generated {len(gallery.images)} synthetic images ({len(written)} written to {args.output_dir})")
    if gallery.metrics is not None:
        metrics = gallery.metrics
        print(
            f"Placeholder metrics - FID {metrics.fid_score:.2f}, LPIPS {metrics.lpips:.2f}, "
            f"SSIM {metrics.ssim:.2f}, diversity {metrics.diversity:.2f}"
        )
    return 0


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    sys.exit(main())
