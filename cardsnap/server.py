from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from cardrender.encoder import PNG_MIMETYPE
from cardrender.errors import CardRenderError
from cardrender.fonts import register_fonts
from cardrender.renderer import CardRenderer, RenderOptions

from .payload import normalize_payload

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3001
MAX_BODY_BYTES = 15 * 1024 * 1024
DEFAULT_CONFIG = {
    "MAX_CONTENT_LENGTH": MAX_BODY_BYTES,
    "ICON_DIR": None,
    "FONT_PATH": None,
    "FONT_DOWNLOAD": True,
    "CURSOR_ADVANCE": "measured",
    "TITLE_CENTERING": "measured",
}


def _optional_path(value: Any) -> Optional[Path]:
    return Path(value) if value else None


def build_render_options(config: Mapping[str, Any]) -> RenderOptions:
    return RenderOptions(
        icon_dir=_optional_path(config.get("ICON_DIR")),
        cursor_advance=config.get("CURSOR_ADVANCE") or "measured",
        title_centering=config.get("TITLE_CENTERING") or "measured",
    )


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(DEFAULT_CONFIG)
    app.config.from_prefixed_env("CARDSNAP")
    if config:
        app.config.update(config)

    register_fonts(
        _optional_path(app.config["FONT_PATH"]),
        allow_download=bool(app.config["FONT_DOWNLOAD"]),
    )
    renderer = CardRenderer(build_render_options(app.config))
    CORS(app)

    @app.errorhandler(CardRenderError)
    def handle_render_error(exc: CardRenderError):
        if exc.status_code >= 500:
            logger.error("Card render failed: %s (%s)", exc.message, exc.detail)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(_exc: RequestEntityTooLarge):
        return jsonify({"message": "Request payload is too large"}), 413

    @app.route("/render", methods=["POST"])
    def render():
        card = normalize_payload(request.get_json(silent=True))
        try:
            png = renderer.render(card).to_png()
        except CardRenderError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure rendering card %r", card.name)
            return jsonify({"message": "Render failed", "error": str(exc)}), 500
        return send_file(io.BytesIO(png), mimetype=PNG_MIMETYPE, download_name="card.png")

    @app.route("/health")
    def health():
        return jsonify({"ok": True})

    return app


def serve(
    host: str = "127.0.0.1",
    port: int = DEFAULT_PORT,
    config: Optional[Mapping[str, Any]] = None,
) -> None:
    app = create_app(config)
    logger.info("Render server listening on http://%s:%s", host, port)
    app.run(host=host, port=port)
