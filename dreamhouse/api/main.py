"""FastAPI entrypoint and HTTP routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from dreamhouse.config.settings import get_settings
from dreamhouse.imggen.errors import GenerationError
from dreamhouse.imggen.generator_client import ImageGeneratorClient
from dreamhouse.imgproc.exceptions import (
    FileTooLargeError,
    NormalizationError,
    TranscodeError,
    UnsupportedFormatError,
)
from dreamhouse.imgproc.models import UploadedImage
from dreamhouse.imgproc.normalize import Decision, ImageNormalizer
from dreamhouse.monitoring.logging import configure_logging
from dreamhouse.services.studio import StudioService
from dreamhouse.validation import GenerationForm

logger = logging.getLogger(__name__)


def _error(message: str, status_code: int, **extra: str) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def _validation_message(error: dict) -> str:
    cause = error.get("ctx", {}).get("error")
    return str(cause) if cause is not None else str(error["msg"])


def _proceed_with_original(exc: TranscodeError) -> Decision:
    # no user to ask on the server; forward the HEIC bytes as they are
    return Decision.PROCEED


def get_studio(request: Request) -> StudioService:
    """Return the process-wide studio, creating it on first use."""

    studio = getattr(request.app.state, "studio", None)
    if studio is None:
        generator = ImageGeneratorClient(get_settings())
        studio = StudioService(ImageNormalizer(), generator)
        request.app.state.generator = generator
        request.app.state.studio = studio
    return studio


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    generator = getattr(app.state, "generator", None)
    if generator is not None:
        await generator.close()


def create_app() -> FastAPI:
    """Initialise the FastAPI application."""

    settings = get_settings()
    configure_logging(settings)
    app = FastAPI(
        title="Dream House Studio API",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
        lifespan=lifespan,
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _error("Internal server error", 500)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness probes."""

        return {"status": "ok"}

    @app.post("/api/generate", tags=["generation"])
    async def generate(
        house_theme: str = Form("", alias="houseTheme"),
        vibe: str = Form(""),
        pose: str = Form(""),
        face_image: UploadFile | None = File(None, alias="faceImage"),
        studio: StudioService = Depends(get_studio),
    ) -> JSONResponse:
        """Generate an illustration from the uploaded face photo."""

        if not house_theme.strip():
            return _error("House theme is required", 400)
        if not vibe:
            return _error("Vibe is required", 400)
        if not pose:
            return _error("Pose is required", 400)

        data = await face_image.read() if face_image is not None else b""
        if not data:
            return _error("Face image is required", 400)

        try:
            form = GenerationForm(theme=house_theme, vibe=vibe, pose=pose)
        except ValidationError as exc:
            message = "; ".join(_validation_message(error) for error in exc.errors())
            return _error(message, 400)

        upload = UploadedImage(
            filename=face_image.filename or "upload",
            content_type=face_image.content_type or "",
            data=data,
        )
        try:
            outcome = await studio.generate(upload, form, decide=_proceed_with_original)
        except FileTooLargeError:
            return _error("File size too large. Maximum 6MB allowed.", 400)
        except UnsupportedFormatError:
            return _error("Invalid file type. Please upload an image file.", 400)
        except NormalizationError as exc:
            return _error(str(exc), 400)
        except GenerationError as exc:
            return _error(exc.user_message, exc.status_code, kind=exc.kind.value)

        logger.info("Image generated successfully")
        return JSONResponse({"url": outcome.url}, status_code=200)

    return app


app = create_app()
