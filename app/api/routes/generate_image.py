"""
Generate-image API: one multipart POST that proxies to the image provider.
Form fields: mode, prompt, aspectRatio, image1/image2 (files), image1Url/image2Url.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from app.core.config import settings
from app.schemas.generation import ErrorOut, GenerateImageOut
from app.services.image_generation import (
    GenerationMode,
    GenerationRequest,
    ImageGenerationService,
    ImageInput,
    ImageProviderFactory,
    InputError,
    classify_failure,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate-image"])

INVALID_FORM_MESSAGE = "Invalid form data"


def build_generation_service() -> ImageGenerationService:
    """Called once from the app lifespan; an unknown IMAGE_PROVIDER fails startup."""
    provider = ImageProviderFactory.create_from_settings(settings)
    return ImageGenerationService(settings, provider)


def get_generation_service(request: Request) -> ImageGenerationService:
    return request.app.state.generation_service


def _text_field(form, name: str) -> str | None:
    value = form.get(name)
    if isinstance(value, str):
        return value
    return None


async def _image_field(form, file_name: str, url_name: str, read_uploads: bool) -> ImageInput:
    """
    Uploaded file wins over URL; an empty upload counts as no upload.
    At most max_upload_size_bytes + 1 bytes are read, so oversize files are
    rejected by the service without being loaded whole.
    """
    image = ImageInput(url=_text_field(form, url_name) or None)
    upload = form.get(file_name)
    if not read_uploads or not isinstance(upload, UploadFile):
        return image

    limit = settings.max_upload_size_bytes
    if upload.size is not None and upload.size > limit:
        image.size = upload.size
        image.mime_type = upload.content_type
        return image

    content = await upload.read(limit + 1)
    if content:
        image.content = content
        image.mime_type = upload.content_type
        image.size = upload.size if upload.size is not None else len(content)
    return image


def _error_response(exc: Exception) -> JSONResponse:
    failure = classify_failure(exc)
    return JSONResponse(content=failure.to_dict(), status_code=failure.status_code)


@router.post(
    "/generate-image",
    response_model=GenerateImageOut,
    responses={400: {"model": ErrorOut}, 413: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
async def generate_image(
    request: Request,
    service: ImageGenerationService = Depends(get_generation_service),
) -> JSONResponse:
    try:
        form = await request.form(max_part_size=settings.max_upload_size_bytes)
    except (MultiPartException, HTTPException) as e:
        detail = getattr(e, "detail", None) or getattr(e, "message", None) or str(e)
        logger.warning("generate_image_form_rejected", extra={"error": detail})
        return _error_response(InputError(INVALID_FORM_MESSAGE, str(detail)))

    try:
        mode = _text_field(form, "mode")
        # Text-to-image ignores images, so uploads are never read for it.
        read_uploads = mode == GenerationMode.IMAGE_EDITING.value
        generation_request = GenerationRequest(
            mode=mode,
            prompt=_text_field(form, "prompt"),
            aspect_ratio=_text_field(form, "aspectRatio"),
            image1=await _image_field(form, "image1", "image1Url", read_uploads),
            image2=await _image_field(form, "image2", "image2Url", read_uploads),
        )
    except OSError as e:
        logger.warning("generate_image_upload_unreadable", extra={"error": str(e)})
        return _error_response(InputError(INVALID_FORM_MESSAGE, f"Could not read uploaded file: {e}"))
    finally:
        await form.close()

    body, status_code = await run_in_threadpool(service.handle, generation_request)
    return JSONResponse(content=body, status_code=status_code)
