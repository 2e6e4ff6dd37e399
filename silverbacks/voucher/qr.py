"""
Silverbacks QR Rendering

The voucher secret is printed as a QR code: error correction level H,
one-module quiet zone, square image of fixed pixel width.
"""

from __future__ import annotations
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from PIL import Image

from silverbacks.constants import QR_WIDTH_PX, QR_MARGIN


def render_qr_png(data: str, width: int = QR_WIDTH_PX, margin: int = QR_MARGIN) -> bytes:
    """
    Render `data` as a black-on-white QR code PNG.

    Args:
        data: Payload (the voucher secret)
        width: Output width and height in pixels
        margin: Quiet zone in modules

    Returns:
        PNG bytes
    """
    if width <= 0:
        raise ValueError(f"QR width must be positive, got {width}")

    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_H,
        box_size=1,
        border=margin,
    )
    qr.add_data(data)
    qr.make(fit=True)

    image = qr.make_image(fill_color="black", back_color="white").get_image()
    image = image.convert("RGB").resize((width, width), Image.NEAREST)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
