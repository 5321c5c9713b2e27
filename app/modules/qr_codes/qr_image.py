"""
PNG rendering for business QR codes.
The encoded payload is a deep link into the web app's scan page.
"""
import io
import logging

import qrcode

from app.config import settings

logger = logging.getLogger(__name__)


def scan_url(qr_code_id: str, site_url: str = None) -> str:
    base = (site_url or settings.site_url).rstrip("/")
    return f"{base}/scan/{qr_code_id}"


def generate_qr_png(qr_code_id: str, site_url: str = None, box_size: int = 10) -> bytes:
    """Render the scan deep link as a PNG and return the raw bytes."""
    link = scan_url(qr_code_id, site_url)
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=2,
    )
    qr.add_data(link)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    logger.debug(f"Rendered QR image for {link}")
    return buffer.getvalue()
