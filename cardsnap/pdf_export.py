from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from PIL import Image
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

try:
    from reportlab.lib.pagesizes import A4, A5, legal, letter, tabloid
except ImportError:  # pragma: no cover - legacy reportlab fallback
    from reportlab.lib.pagesizes import A4, A5, legal, letter

    tabloid = (11 * inch, 17 * inch)

from cardrender.compositor import fit_within
from cardrender.encoder import encode_png

logger = logging.getLogger(__name__)

PAGE_SIZE_ALIASES: Dict[str, Tuple[float, float]] = {
    "letter": letter,
    "a4": A4,
    "a5": A5,
    "legal": legal,
    "tabloid": tabloid,
}

CARD_PAGE_SIZE = "card"
DEFAULT_PAGE_SIZE = CARD_PAGE_SIZE
DEFAULT_DPI = 300


@dataclass
class PdfExportOptions:
    output_path: Path
    page_size: Optional[Tuple[float, float]] = None
    dpi: int = DEFAULT_DPI
    margin: float = 0.0


def resolve_page_size(spec: Optional[str]) -> Optional[Tuple[float, float]]:
    """Return page dimensions in points, or ``None`` for a page sized to the card."""
    if not spec:
        spec = DEFAULT_PAGE_SIZE
    normalized = spec.strip().lower()
    if normalized == CARD_PAGE_SIZE:
        return None
    if normalized in PAGE_SIZE_ALIASES:
        return PAGE_SIZE_ALIASES[normalized]
    match = re.match(r"^\s*(\d+(?:\.\d+)?)\s*[x×]\s*(\d+(?:\.\d+)?)\s*$", normalized)
    if match:
        width = float(match.group(1))
        height = float(match.group(2))
        return (width, height)
    raise ValueError(
        f"Unrecognized page size '{spec}'. "
        f"Use '{CARD_PAGE_SIZE}', one of {', '.join(sorted(PAGE_SIZE_ALIASES))} "
        "or provide custom dimensions like '612x792'."
    )


def export_card_to_pdf(image: Image.Image, options: PdfExportOptions) -> Path:
    points_per_pixel = 72.0 / options.dpi
    card_w = image.width * points_per_pixel
    card_h = image.height * points_per_pixel
    page_w, page_h = options.page_size or (
        card_w + options.margin * 2,
        card_h + options.margin * 2,
    )

    # Fit in whole points; reportlab's origin is the bottom-left corner.
    usable = (
        int(options.margin),
        int(options.margin),
        int(page_w - options.margin * 2),
        int(page_h - options.margin * 2),
    )
    placement = fit_within((image.width, image.height), usable)
    y_pt = page_h - placement.y - placement.height

    options.output_path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(
        "Writing %sx%s card to PDF %s (page %.1fx%.1fpt)",
        image.width,
        image.height,
        options.output_path,
        page_w,
        page_h,
    )
    c = pdf_canvas.Canvas(str(options.output_path), pagesize=(page_w, page_h))
    reader = ImageReader(io.BytesIO(encode_png(image)))
    c.drawImage(
        reader,
        placement.x,
        y_pt,
        width=placement.width,
        height=placement.height,
        mask="auto",
    )
    c.showPage()
    c.save()
    return options.output_path


def export_card_file(
    image: Image.Image,
    output_path: Path,
    page_size_spec: Optional[str] = None,
    dpi: int = DEFAULT_DPI,
) -> Path:
    page_size = resolve_page_size(page_size_spec)
    margin = 0.0 if page_size is None else inch / 2
    options = PdfExportOptions(
        output_path=output_path,
        page_size=page_size,
        dpi=dpi,
        margin=margin,
    )
    return export_card_to_pdf(image, options)
