from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional, Protocol

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def strip_data_url(base64_image: str) -> str:
    """Drop a ``data:image/...;base64,`` prefix if the client sent one."""
    if base64_image.startswith("data:") and "," in base64_image:
        return base64_image.split(",", 1)[1]
    return base64_image


def decode_base64_image(base64_image: str) -> bytes:
    try:
        raw = base64.b64decode(strip_data_url(base64_image.strip()), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image is not valid base64")
    if not raw:
        raise ValidationError("Image is empty")
    return raw


class ImageStore(Protocol):
    """Stores a captured photo and returns a URL for it."""

    def upload(self, base64_image: str, *, file_name: str) -> Optional[str]:
        raise NotImplementedError


class DisabledImageStore:
    """Used when no image CDN is configured: photos are not kept."""

    def upload(self, base64_image: str, *, file_name: str) -> Optional[str]:
        decode_base64_image(base64_image)
        logger.warning("Image store not configured, dropping %s", file_name)
        return None
