"""
Process-wide font registration.

Fonts are resolved once: an explicit path, then the bundled default font
(downloaded on first use), then CJK fonts installed on the system. When
nothing loads, Pillow's built-in font is used so rendering never stops
for lack of a font file.
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import requests
from PIL import ImageFont

logger = logging.getLogger(__name__)

DEFAULT_FONT_FILENAME = "LXGWWenKaiLite-Bold.ttf"
DEFAULT_FONT_URL = (
    "https://github.com/lxgw/LxgwWenKai-Lite/releases/download/v1.330/"
    f"{DEFAULT_FONT_FILENAME}"
)
DEFAULT_FONT_SHA256 = (
    "25a4d0e009f330481a299f0c09cd63ef1a3ab284e142236f6d3f4cd7ff7a37d3"
)
SYSTEM_FONT_PATTERNS = (
    "NotoSansSC*.otf",
    "NotoSansSC*.ttf",
    "NotoSansCJK*.otf",
    "NotoSansCJK*.ttc",
    "SourceHanSansSC-*.otf",
    "SourceHanSansSC-*.ttc",
    "SourceHanSans*.otf",
    "SourceHanSans*.ttc",
    "思源黑体*.otf",
    "思源黑体*.ttc",
)


def resources_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "resources"


def _download_default_font(target: Path) -> None:
    logger.debug("Downloading default font to %s", target)
    target.parent.mkdir(parents=True, exist_ok=True)
    response = requests.get(DEFAULT_FONT_URL, timeout=60)
    response.raise_for_status()
    data = response.content
    digest = hashlib.sha256(data).hexdigest()
    if digest != DEFAULT_FONT_SHA256:
        raise RuntimeError(
            "Default font checksum mismatch; the download may be incomplete."
        )
    target.write_bytes(data)


def ensure_default_font(allow_download: bool = True) -> Optional[Path]:
    target = resources_dir() / "fonts" / DEFAULT_FONT_FILENAME
    if target.exists():
        return target
    if not allow_download:
        return None
    try:
        _download_default_font(target)
    except (requests.RequestException, RuntimeError, OSError) as exc:
        logger.warning("Failed to download default font: %s", exc)
        return None
    return target


def _system_font_dirs() -> List[Path]:
    dirs: List[Path] = []
    windir = os.environ.get("WINDIR")
    if windir:
        dirs.append(Path(windir) / "Fonts")
    dirs.extend(
        [
            Path("/System/Library/Fonts"),
            Path("/Library/Fonts"),
            Path("/usr/share/fonts"),
            Path("/usr/local/share/fonts"),
        ]
    )
    return dirs


def candidate_font_paths(
    explicit: Optional[Path] = None,
    allow_download: bool = True,
) -> Iterator[Path]:
    if explicit:
        yield Path(explicit).resolve()

    default_font = ensure_default_font(allow_download=allow_download)
    if default_font:
        yield default_font

    seen: set[Path] = set()
    for directory in _system_font_dirs():
        if not directory.exists():
            continue
        for pattern in SYSTEM_FONT_PATTERNS:
            for path in directory.rglob(pattern):
                if path not in seen:
                    seen.add(path)
                    yield path


def _truetype(path: Path, size: int) -> ImageFont.FreeTypeFont:
    layout_engine = getattr(ImageFont, "LAYOUT_BASIC", None)
    font_kwargs = {}
    if layout_engine is not None:
        font_kwargs["layout_engine"] = layout_engine
    return ImageFont.truetype(str(path), size, **font_kwargs)


class FontRegistry:
    """Write-once font selection shared by every render in the process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._registered = False
        self._font_path: Optional[Path] = None
        self._cache: Dict[int, ImageFont.ImageFont] = {}

    @property
    def registered(self) -> bool:
        return self._registered

    @property
    def font_path(self) -> Optional[Path]:
        return self._font_path

    def register(
        self,
        font_path: Optional[Path] = None,
        allow_download: bool = True,
    ) -> Optional[Path]:
        with self._lock:
            if self._registered:
                return self._font_path
            for candidate in candidate_font_paths(font_path, allow_download):
                try:
                    _truetype(candidate, 16)
                except OSError:
                    logger.debug("Skipping unusable font %s", candidate)
                    continue
                self._font_path = candidate
                break
            if self._font_path is None:
                logger.warning(
                    "No TrueType font found; falling back to the default font. "
                    "Pass --font or install Noto Sans SC for CJK text."
                )
            else:
                logger.info("Registered font %s", self._font_path)
            self._registered = True
            return self._font_path

    def get(self, size: int) -> ImageFont.ImageFont:
        if not self._registered:
            self.register()
        font = self._cache.get(size)
        if font is not None:
            return font
        with self._lock:
            font = self._cache.get(size)
            if font is None:
                font = self._load(size)
                self._cache[size] = font
            return font

    def _load(self, size: int) -> ImageFont.ImageFont:
        if self._font_path is not None:
            try:
                return _truetype(self._font_path, size)
            except OSError as exc:
                logger.warning("Failed to load font %s: %s", self._font_path, exc)
        return ImageFont.load_default(size=size)

    def reset(self) -> None:
        with self._lock:
            self._registered = False
            self._font_path = None
            self._cache.clear()


font_registry = FontRegistry()


def register_fonts(
    font_path: Optional[Path] = None,
    allow_download: bool = True,
) -> Optional[Path]:
    """Select the process font once; later calls return the first result."""
    return font_registry.register(font_path, allow_download=allow_download)


def get_font(size: int) -> ImageFont.ImageFont:
    return font_registry.get(size)
