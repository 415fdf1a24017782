"""Decoding of issuer logos stored as base64 or data: URLs.

Uses Pillow to verify the payload is a real image and re-encodes it as
PNG so the painter always receives the same, well-formed input.
"""

import base64
import binascii
import io
from dataclasses import dataclass

from PIL import Image


class LogoDecodeError(ValueError):
    """Raised when stored logo data cannot be turned into an image."""


@dataclass(frozen=True)
class LogoImage:
    """Decoded logo ready for layout.

    Attributes:
        data: PNG-encoded image bytes
        width: Pixel width
        height: Pixel height
    """

    data: bytes
    width: int
    height: int


def _strip_data_url(raw: str) -> str:
    # "data:image/png;base64,iVBOR..." -> "iVBOR..."
    if raw.startswith("data:"):
        _, _, payload = raw.partition(",")
        return payload
    return raw


def logo_payload(raw: str) -> bytes:
    """Binary image data of a stored logo.

    Raises:
        LogoDecodeError: If the data is not valid base64
    """
    try:
        return base64.b64decode(_strip_data_url(raw.strip()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise LogoDecodeError(f"Invalid logo encoding: {e}") from e


def decode_logo(raw: str | None) -> LogoImage | None:
    """Decode a stored logo.

    Args:
        raw: Base64 string, data: URL, or None/empty for "no logo"

    Returns:
        LogoImage, or None when no logo is configured

    Raises:
        LogoDecodeError: If the data is not valid base64 or not an image
    """
    if not raw or not raw.strip():
        return None

    binary = logo_payload(raw)
    try:
        with Image.open(io.BytesIO(binary)) as image:
            image.load()
            converted = image.convert("RGBA")
    except (ValueError, OSError, Image.DecompressionBombError) as e:
        raise LogoDecodeError(f"Invalid logo image: {e}") from e

    output = io.BytesIO()
    converted.save(output, format="PNG")
    return LogoImage(data=output.getvalue(), width=converted.width, height=converted.height)


def encode_logo(data: bytes, content_type: str) -> str:
    """Encode uploaded image bytes as a data: URL for storage."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
