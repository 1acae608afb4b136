from __future__ import annotations

from typing import Optional


class CardRenderError(Exception):
    """Base class for failures surfaced by the card rendering core."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        payload = {"message": self.message}
        if self.detail:
            payload["error"] = self.detail
        return payload


class ValidationError(CardRenderError):
    status_code = 400


class PayloadTooLarge(CardRenderError):
    status_code = 413


class AssetDecodeFailure(CardRenderError):
    """Artwork or icon bytes could not be decoded. Recovered by the compositor."""


class EncodeFailure(CardRenderError):
    status_code = 500
