"""FastAPI entry point exposing the synthetic image generation endpoint."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .config import get_settings
from .errors import GenerationError, SynthGenError
from .schemas import ErrorResponse, GenerateRequest, GenerateResponse
from .service import SyntheticImageService, get_synthetic_image_service

logger = logging.getLogger(__name__)


def _error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=message).model_dump(),
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location or 'body'}: {err.get('msg', 'invalid value')}")
    return "Invalid request: " + "; ".join(problems)


app = FastAPI(title="SynthGen Backend", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SynthGenError)
async def synthgen_error_handler(request: Request, exc: SynthGenError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _describe_validation_error(exc)
    logger.warning("Rejected request to %s: %s", request.url.path, message)
    return _error_response(message)


@app.get("/health", summary="Health Check Endpoint")
async def healthcheck():
    settings = get_settings()
    model_ids = {
        "gemini": settings.gemini_model_id,
        "openai": settings.gateway_model_id,
        "mock": None,
    }
    return {
        "status": "ok",
        "provider": settings.image_provider,
        "imageModel": model_ids.get(settings.image_provider),
    }


@app.post(
    "/generate-images",
    response_model=GenerateResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Generate synthetic variations of the uploaded images",
)
async def generate_images(
    payload: GenerateRequest,
    service: SyntheticImageService = Depends(get_synthetic_image_service),
):
    try:
        return await run_in_threadpool(
            service.generate,
            payload.images,
            payload.description,
            payload.parameters,
        )
    except SynthGenError:
        raise
    except Exception as exc:
        logger.exception("Image generation failed")
        raise GenerationError(str(exc) or "Unknown error") from exc


__all__ = ["app"]


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    import uvicorn

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    uvicorn.run("synthgen.main:app", host="0.0.0.0", port=8000, reload=True)
