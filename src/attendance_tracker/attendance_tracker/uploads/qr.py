from __future__ import annotations

import io
from typing import Optional

import qrcode
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import ValidationError
from .image_store import decode_base64_image


def decode_qr_from_base64(base64_image: str) -> Optional[str]:
    """Return the text of the first QR code found in the image, if any."""
    # pyzbar loads the native zbar library on import.
    from pyzbar.pyzbar import decode as pyzbar_decode

    raw = decode_base64_image(base64_image)
    try:
        img = Image.open(io.BytesIO(raw)).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Image could not be read")

    decoded = pyzbar_decode(img)
    if not decoded:
        return None
    return decoded[0].data.decode("utf-8").strip() or None


def render_qr_png(payload: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf
