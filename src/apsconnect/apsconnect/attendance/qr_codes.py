"""QR helpers for attendance sessions.

The payload printed on a session's code is ``"<session_id>:<token>"``.
"""
from __future__ import annotations

import io
from typing import BinaryIO

import qrcode
from PIL import Image

from ..core.exceptions import ValidationError
from .model import AttendanceSession


def session_payload(session: AttendanceSession) -> str:
    if not session.qr_token:
        raise ValidationError("session has no qr code")
    return f"{session.session_id}:{session.qr_token}"


def parse_payload(payload: str) -> tuple[int, str]:
    session_part, sep, token = (payload or "").strip().partition(":")
    if not sep or not token:
        raise ValidationError("unrecognised qr code")
    try:
        return int(session_part), token
    except ValueError:
        raise ValidationError("unrecognised qr code")


def render_png(payload: str) -> io.BytesIO:
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


def decode_image(stream: BinaryIO) -> str:
    """Read the first QR code found in an uploaded photo.

    pyzbar needs the zbar shared library, so it is loaded on first use.
    """
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        img = Image.open(stream).convert("RGB")
    except (OSError, ValueError):
        raise ValidationError("uploaded file is not an image")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("no qr code found in image")
    return decoded[0].data.decode("utf-8").strip()
