from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from cardrender.errors import CardRenderError
from cardrender.fonts import register_fonts
from cardrender.renderer import LAYOUT_MODES, MEASURED, CardRenderer, RenderOptions

from . import pdf_export, server
from .payload import normalize_payload


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cardsnap",
        description="Render a collectible card description into an 885x1290 image.",
    )
    parser.add_argument(
        "--mode",
        choices=("render", "serve"),
        default="render",
        help="render: draw one card from a JSON payload (default); serve: run the HTTP render service.",
    )
    parser.add_argument(
        "--input",
        type=Path,
        help="Path to the card payload JSON ('-' reads standard input). Required in render mode.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("card.png"),
        help="Where to write the rendered card (default: card.png).",
    )
    parser.add_argument(
        "--format",
        choices=("png", "pdf"),
        default="png",
        help="Output format (default: png).",
    )
    parser.add_argument(
        "--page-size",
        type=str,
        default=pdf_export.DEFAULT_PAGE_SIZE,
        help=(
            "PDF page size: 'card' for a page sized to the card, a name (e.g. a4, letter) "
            "or WIDTHxHEIGHT in points (default: card)."
        ),
    )
    parser.add_argument(
        "--dpi",
        type=int,
        default=pdf_export.DEFAULT_DPI,
        help=f"Print resolution used when sizing the PDF (default: {pdf_export.DEFAULT_DPI}).",
    )
    parser.add_argument(
        "--icon-dir",
        type=Path,
        help="Directory holding <key>.png icons for tags and ability modes.",
    )
    parser.add_argument(
        "--font",
        type=Path,
        help="Path to a TrueType/OpenType font file to use when rendering text.",
    )
    parser.add_argument(
        "--no-font-download",
        action="store_true",
        help="Do not download the default font when it is missing.",
    )
    parser.add_argument(
        "--cursor-advance",
        choices=LAYOUT_MODES,
        default=MEASURED,
        help=(
            "How ability blocks move down: measured wrapped lines (default) "
            "or the legacy width-based estimate."
        ),
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Interface for serve mode (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=server.DEFAULT_PORT,
        help=f"Port for serve mode (default: {server.DEFAULT_PORT}).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )
    return parser.parse_args(argv)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def load_payload(source: Path) -> dict:
    if str(source) == "-":
        return json.load(sys.stdin)
    if not source.exists():
        raise FileNotFoundError(f"Payload file not found: {source}")
    return json.loads(source.read_text(encoding="utf-8"))


def render_to_file(args: argparse.Namespace) -> Path:
    register_fonts(args.font, allow_download=not args.no_font_download)
    card = normalize_payload(load_payload(args.input))
    options = RenderOptions(icon_dir=args.icon_dir, cursor_advance=args.cursor_advance)
    result = CardRenderer(options).render(card)

    if args.format == "pdf":
        return pdf_export.export_card_file(
            result.image,
            args.output,
            page_size_spec=args.page_size,
            dpi=args.dpi,
        )

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(result.to_png())
    return args.output


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.debug)

    if args.mode == "serve":
        config = {
            "ICON_DIR": args.icon_dir,
            "FONT_PATH": args.font,
            "FONT_DOWNLOAD": not args.no_font_download,
            "CURSOR_ADVANCE": args.cursor_advance,
        }
        config = {key: value for key, value in config.items() if value is not None}
        server.serve(host=args.host, port=args.port, config=config)
        return 0

    if not args.input:
        raise SystemExit("--input is required when --mode=render.")

    try:
        output = render_to_file(args)
    except CardRenderError as exc:
        print(f"Render failed: {exc.message}", file=sys.stderr)
        return 1
    print(f"Generated card in {output.resolve()}")
    return 0
