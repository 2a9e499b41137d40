import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidInput, StepResult

MSG_IMAGE_MISSING = "image not provided"
MSG_INVALID_BASE64 = "invalid base64"

_B64_RE = re.compile(r"[A-Za-z0-9+/]*={0,2}")

logger = logging.getLogger("manga_tl")


@dataclass
class DecodedImage:
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def size_kb(self) -> float:
        return self.size / 1024.0


def strip_data_uri(raw: str) -> str:
    # "data:image/png;base64,AAAA" -> "AAAA"
    if "," in raw:
        return raw.split(",", 1)[1]
    return raw


def decode_image_base64(raw: Optional[str]) -> StepResult[DecodedImage]:
    """Validate and decode a browser-submitted base64 image.

    Padding is optional; anything outside the standard alphabet is rejected.
    """
    if raw is None or not raw.strip():
        logger.warning("image.decode.missing")
        return StepResult.fail(InvalidInput(MSG_IMAGE_MISSING))

    payload = strip_data_uri(raw)
    if not payload or not _B64_RE.fullmatch(payload):
        logger.error("image.decode.invalid reason=alphabet len=%d", len(payload))
        return StepResult.fail(InvalidInput(MSG_INVALID_BASE64))

    padded = payload + "=" * (-len(payload) % 4)
    try:
        data = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.error("image.decode.invalid err=%s", e)
        return StepResult.fail(InvalidInput(MSG_INVALID_BASE64))
    if not data:
        logger.error("image.decode.invalid reason=empty")
        return StepResult.fail(InvalidInput(MSG_INVALID_BASE64))

    image = DecodedImage(data=data)
    logger.info("image.decode.ok size_kb=%.2f", image.size_kb)
    return StepResult.ok(image)
