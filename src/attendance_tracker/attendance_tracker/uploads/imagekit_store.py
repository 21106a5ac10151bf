from __future__ import annotations

import logging
from typing import Optional

import requests

from ..core.constants import DEFAULT_IMAGE_FOLDER, DEFAULT_UPLOAD_TIMEOUT_SECONDS
from ..core.exceptions import UploadError
from .image_store import decode_base64_image, strip_data_url

logger = logging.getLogger(__name__)

IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"


class ImageKitStore:
    """Upload photos to ImageKit with the private-key basic auth scheme.

    Uploads are not retried; a failed upload fails the capture.
    """

    def __init__(
        self,
        private_key: str,
        *,
        upload_url: str = IMAGEKIT_UPLOAD_URL,
        folder: str = DEFAULT_IMAGE_FOLDER,
        timeout: float = DEFAULT_UPLOAD_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._private_key = private_key
        self._upload_url = upload_url
        self._folder = folder
        self._timeout = timeout
        self._session = session or requests.Session()

    def upload(self, base64_image: str, *, file_name: str) -> Optional[str]:
        decode_base64_image(base64_image)
        try:
            response = self._session.post(
                self._upload_url,
                auth=(self._private_key, ""),
                data={
                    "file": strip_data_url(base64_image.strip()),
                    "fileName": file_name,
                    "folder": self._folder,
                },
                timeout=self._timeout,
            )
            response.raise_for_status()
            url = response.json().get("url")
        except (requests.RequestException, ValueError) as e:
            logger.error("Image upload failed for %s: %s", file_name, e)
            raise UploadError("Image upload failed") from e

        if not url:
            raise UploadError("Image upload returned no URL")
        logger.info("Uploaded %s", file_name)
        return url
