"""
QR codes for order and garment labels.
Values are short text payloads scanned at the counter; images are PNG data URLs.
"""
import base64
import io
import json
import logging
import secrets
from typing import Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_M

logger = logging.getLogger(__name__)

ORDER_PREFIX = 'ORD-'
GARMENT_PREFIX = 'GARM-'
LABEL_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
LABEL_CODE_LENGTH = 8


class QRCodeError(Exception):
    """A QR image could not be rendered"""


def order_qr_value(order_number) -> str:
    return f"{ORDER_PREFIX}{order_number}"


def garment_qr_value(label_code: str) -> str:
    return f"{GARMENT_PREFIX}{label_code[:LABEL_CODE_LENGTH]}"


def status_qr_value(order_number, status: str, timestamp: Optional[str] = None) -> str:
    """JSON payload for a status check-point scan"""
    payload = {'type': 'order_status', 'order_number': order_number, 'status': status}
    if timestamp:
        payload['timestamp'] = timestamp
    return json.dumps(payload, separators=(',', ':'))


def new_label_code() -> str:
    """Random garment label code without look-alike characters (0/O, 1/I)"""
    return ''.join(secrets.choice(LABEL_CODE_ALPHABET) for _ in range(LABEL_CODE_LENGTH))


def parse_qr_value(value: str):
    """
    Identify a scanned value

    Returns ('order', order_number), ('garment', label_code) or (None, value).
    """
    value = (value or '').strip()
    if value.upper().startswith(ORDER_PREFIX):
        number = value[len(ORDER_PREFIX):]
        if number.isdigit():
            return 'order', int(number)
    if value.upper().startswith(GARMENT_PREFIX):
        return 'garment', value[len(GARMENT_PREFIX):].upper()
    return None, value


def generate_qr_png(text: str, box_size: int = 8, border: int = 2) -> str:
    """Render text as a QR PNG and return it as a base64 data URL"""
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(text)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")
        buf = io.BytesIO()
        img.save(buf, format="PNG")
    except Exception as e:
        logger.error(f"Failed to generate QR code for {text!r}: {str(e)}")
        raise QRCodeError(f"Failed to generate QR code: {str(e)}") from e
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def order_label_codes(order, include_images=True):
    """QR entries for an order header and each of its garments"""
    entries = []
    value = order_qr_value(order.order_number)
    entries.append({
        'type': 'order',
        'value': value,
        'position': 'header',
        'image': generate_qr_png(value) if include_images else None,
    })
    for index, garment in enumerate(order.garments.all(), start=1):
        value = garment_qr_value(garment.label_code)
        entries.append({
            'type': 'garment',
            'garment_id': garment.id,
            'garment_type': garment.type,
            'value': value,
            'position': f"garment-{index}",
            'image': generate_qr_png(value) if include_images else None,
        })
    return entries
