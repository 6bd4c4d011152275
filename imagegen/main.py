"""FastAPI entry point exposing the image generation proxy."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .normalizer import CONFIGURATION_ERROR_MESSAGE, GenerationFailure
from .schemas import (
    ErrorResponse,
    HealthResponse,
    ImageB64Response,
    ImageRequest,
    ImageUrlResponse,
)
from .service import ImageGenerationService, get_image_service

logger = logging.getLogger(__name__)

GENERATE_ROUTE = "/api/generate"
PROMPT_REQUIRED_MESSAGE = "A non-empty prompt is required."


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose preflight answer is always an empty 200."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in {"content-length", "content-type"}
        }
        return Response(status_code=status.HTTP_200_OK, headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Resolve the credential once per process; the outcome stays cached
    service = get_image_service()
    if not service.configured:
        logger.error("Serving %s without an API key; requests will fail with 500", GENERATE_ROUTE)
    yield


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


async def _read_prompt(request: Request) -> Optional[str]:
    try:
        body = await request.json()
    except ValueError:
        return None
    try:
        return ImageRequest.model_validate(body).prompt
    except ValidationError:
        return None


app = FastAPI(title="Image Generation Proxy", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    EmptyPreflightCORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.get("/health", response_model=HealthResponse, summary="Health Check Endpoint")
async def healthcheck(service: ImageGenerationService = Depends(get_image_service)):
    return HealthResponse(
        status="ok",
        imageModel=service.settings.image_model,
        responseFormat=service.settings.response_format,
        configured=service.configured,
    )


@app.options(GENERATE_ROUTE, include_in_schema=False)
async def generate_preflight():
    return Response(status_code=status.HTTP_200_OK)


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED and request.url.path == GENERATE_ROUTE:
        return _error(
            status.HTTP_405_METHOD_NOT_ALLOWED,
            f"Method {request.method} Not Allowed",
            headers={"Allow": "POST"},
        )
    return await http_exception_handler(request, exc)


@app.post(
    GENERATE_ROUTE,
    summary="Generate one image from a text prompt",
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_image(
    request: Request,
    service: ImageGenerationService = Depends(get_image_service),
):
    if not service.configured:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, CONFIGURATION_ERROR_MESSAGE)

    prompt = await _read_prompt(request)
    if prompt is None:
        return _error(status.HTTP_400_BAD_REQUEST, PROMPT_REQUIRED_MESSAGE)

    result = await run_in_threadpool(service.generate_image, prompt)
    if isinstance(result, GenerationFailure):
        return _error(result.status_code, result.message)

    if result.response_format == "b64_json":
        return ImageB64Response(b64Json=result.image)
    return ImageUrlResponse(imageUrl=result.image)


__all__ = ["app"]


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    import uvicorn

    uvicorn.run("imagegen.main:app", host="0.0.0.0", port=8000, reload=True)
