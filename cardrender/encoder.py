from __future__ import annotations

import io
import logging

from PIL import Image

from .errors import EncodeFailure

logger = logging.getLogger(__name__)

PNG_MIMETYPE = "image/png"


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodeFailure("Failed to encode card image", str(exc)) from exc
    data = buffer.getvalue()
    logger.debug("Encoded %sx%s card into %d PNG bytes", image.width, image.height, len(data))
    return data
