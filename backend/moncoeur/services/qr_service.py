# Overview: QR code images pointing at a bag's stock page.

from __future__ import annotations

from io import BytesIO

import qrcode
from flask import current_app

from ..models import Bag


def bag_stock_url(bag: Bag, base_url: str | None = None) -> str:
    base = (base_url or current_app.config["PUBLIC_BASE_URL"]).rstrip("/")
    return f"{base}/stock/{bag.id}"


def render_qr_png(data: str, *, box_size: int = 10, border: int = 4) -> bytes:
    """PNG bytes of a QR code for `data` (high error correction for printed labels)."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def bag_qr_png(bag: Bag, base_url: str | None = None) -> bytes:
    return render_qr_png(bag_stock_url(bag, base_url))
