"""Survey cover images stored on the local file system.

Images arrive as base64 data URIs (`data:image/png;base64,...`), are
validated and decoded, then written under `PUBLIC_DIR/IMAGE_DIR` with a
random file name. Surveys keep only the returned relative path.
"""
# app/services/images.py
import base64
import binascii
import os
import re
import uuid

from surveyhub.app.core.config import settings
from surveyhub.app.core.errors import InvalidImageEncoding, InvalidImageFormat
from surveyhub.app.core.logging import get_logs_writer_logger

logger = get_logs_writer_logger()

ALLOWED_SUBTYPES = {"jpg", "jpeg", "gif", "png"}

_DATA_URI_RE = re.compile(r"^data:image/(\w+);base64,")


def decode(data_uri: str) -> tuple[str, bytes]:
    """Validate a data URI and decode its payload without touching the disk.

    Args:
        data_uri: A string of the form `data:image/<subtype>;base64,<payload>`.

    Returns:
        tuple[str, bytes]: The lower-cased subtype and the decoded image bytes.

    Raises:
        InvalidImageFormat: Not an image data URI, or an unsupported subtype.
        InvalidImageEncoding: The payload is not valid base64.
    """
    match = _DATA_URI_RE.match(data_uri or "")
    if not match:
        raise InvalidImageFormat("Image did not match a base64 image data URI")

    subtype = match.group(1).lower()
    if subtype not in ALLOWED_SUBTYPES:
        raise InvalidImageFormat(f"Invalid image type: {subtype}")

    # form encoding turns "+" into a space
    payload = data_uri[match.end():].replace(" ", "+")
    try:
        content = base64.b64decode(payload, validate=True)
    except binascii.Error:
        raise InvalidImageEncoding("Image base64 decode failed")
    if not content:
        raise InvalidImageEncoding("Image payload is empty")
    return subtype, content


def absolute_path(relative_path: str) -> str:
    return os.path.join(settings.PUBLIC_DIR, relative_path)


def save(subtype: str, content: bytes) -> str:
    """Write already decoded image bytes and return the relative path."""
    directory = os.path.join(settings.PUBLIC_DIR, settings.IMAGE_DIR)
    os.makedirs(directory, exist_ok=True)

    filename = f"{uuid.uuid4().hex}.{subtype}"
    with open(os.path.join(directory, filename), "wb") as f:
        f.write(content)

    relative_path = f"{settings.IMAGE_DIR}/{filename}"
    logger.info("Stored image %s (%d bytes)", relative_path, len(content))
    return relative_path


def store(data_uri: str) -> str:
    subtype, content = decode(data_uri)
    return save(subtype, content)


def delete(relative_path: str | None) -> None:
    """Best-effort removal: a missing file or an OS error is logged, never raised."""
    if not relative_path:
        return
    try:
        os.remove(absolute_path(relative_path))
    except FileNotFoundError:
        return
    except OSError as e:
        logger.error("Failed to delete image %s: %s", relative_path, e)


def replace(old_path: str | None, data_uri: str) -> str:
    """Store the new image first; drop the old file only once that succeeded."""
    new_path = store(data_uri)
    delete(old_path)
    return new_path
