"""
Image reference encoding for the edit endpoint.
Uploaded bytes become inline data URIs; URL inputs pass through untouched.
"""
import base64
import logging

from app.services.image_generation.base import ImageInput, InputError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def to_data_uri(content: bytes, mime_type: str | None) -> str:
    b64 = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{b64}"


def check_upload_size(slot: str, image: ImageInput, max_bytes: int) -> None:
    """Reject uploads above max_bytes with a 413."""
    size = image.upload_size
    if size <= max_bytes:
        return
    raise InputError(
        "Image too large",
        f"{slot} is {size} bytes; the limit is {max_bytes} bytes.",
        status_code=413,
    )


def build_image_references(
    images: list[tuple[str, ImageInput]],
    *,
    warn_bytes: int = 1_500_000,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> list[str]:
    """
    Build the ordered image_urls list for the provider.

    Each (slot, image) pair contributes at most one entry: a data URI when bytes
    were uploaded, else the URL, else nothing. Input order is preserved.
    """
    log = log or logger
    references: list[str] = []
    for slot, image in images:
        if image.has_content:
            data_uri = to_data_uri(image.content, image.mime_type)
            if len(data_uri) > warn_bytes:
                log.warning(
                    "inline_image_very_large",
                    extra={"image_slot": slot, "image_bytes": len(data_uri)},
                )
            log.info("inline_image_encoded", extra={"image_slot": slot, "image_bytes": len(data_uri)})
            references.append(data_uri)
        elif image.url:
            log.info("image_url_passthrough", extra={"image_slot": slot})
            references.append(image.url)
    return references
