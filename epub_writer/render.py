from __future__ import annotations

import importlib
import io
from dataclasses import dataclass
from enum import Enum
from html import escape as html_escape
from typing import Callable, Optional, Protocol, Sequence

FALLBACK_FONT_FAMILY = "sans-serif"
BASE_WIDTH = 1600
TITLE_BASE_SIZE = 90
MIN_FONT_SIZE = 5
FONT_SIZE_STEP = 5
TEXT_WIDTH_RATIO = 0.8
MARGIN_RATIO = 0.05
BORDER_BASE_WIDTH = 30
# Average advance of a bold sans glyph, as a fraction of the font size.
SVG_GLYPH_WIDTH_RATIO = 0.6

BACKGROUND_RGB = (242, 242, 242)
BORDER_RGB = (140, 26, 26)
TEXT_RGB = (51, 64, 140)
OUTLINE_RGB = (0, 0, 0)


class RenderUnavailable(RuntimeError):
    """Raised when no backend can produce the requested cover format."""


class CoverFormat(str, Enum):
    SVG = "svg"
    PNG = "png"


@dataclass(frozen=True)
class RenderedCover:
    content: bytes
    mime_type: str
    extension: str


class CoverRenderer(Protocol):
    def render(
        self,
        title: str,
        author: str,
        generator: Optional[str],
        fonts: Sequence[str],
        width: int,
        height: int,
        format: CoverFormat,
    ) -> RenderedCover:
        ...


def _rgb(color: tuple[int, int, int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)


def _scaled(value: float, width: int) -> float:
    return value * width / BASE_WIDTH


def _fit_font_size(
    measure: Callable[[str, float], float], text: str, start: float, max_width: float
) -> float:
    size = start
    while size > MIN_FONT_SIZE:
        if measure(text, size) <= max_width:
            return size
        size -= FONT_SIZE_STEP
    return size


def _cover_lines(
    title: str, author: str, generator: Optional[str], height: int
) -> list[tuple[str, float, float]]:
    """Return (text, baseline, size relative to the title) for each cover line."""
    lines = [(title, height * 0.25, 1.0), (author, height * 0.5, 0.8)]
    if generator:
        lines.append((f"Generated by {generator}", height * 0.9, 0.5))
    return lines


class SvgCoverRenderer:
    """Vector cover renderer that needs no graphics libraries.

    Only SVG is supported; raster requests raise RenderUnavailable.
    """

    def render(
        self,
        title: str,
        author: str,
        generator: Optional[str],
        fonts: Sequence[str],
        width: int,
        height: int,
        format: CoverFormat,
    ) -> RenderedCover:
        if CoverFormat(format) is not CoverFormat.SVG:
            raise RenderUnavailable(
                f"{type(self).__name__} cannot render {CoverFormat(format).value} covers."
            )
        markup = self.build_svg(title, author, generator, fonts, width, height)
        return RenderedCover(markup.encode("utf-8"), "image/svg+xml", "svg")

    def build_svg(
        self,
        title: str,
        author: str,
        generator: Optional[str],
        fonts: Sequence[str],
        width: int,
        height: int,
    ) -> str:
        families = [f"'{font}'" for font in fonts if font.strip()]
        families.append(FALLBACK_FONT_FAMILY)
        font_family = html_escape(", ".join(families), quote=True)
        margin = width * MARGIN_RATIO
        border = max(1.0, _scaled(BORDER_BASE_WIDTH, width))
        max_width = width * TEXT_WIDTH_RATIO

        def measure(text: str, size: float) -> float:
            return len(text) * size * SVG_GLYPH_WIDTH_RATIO

        parts = [
            '<?xml version="1.0" encoding="UTF-8" standalone="no"?>',
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
            f'viewBox="0 0 {width} {height}">',
            f'  <rect x="0" y="0" width="{width}" height="{height}" '
            f'fill="{_rgb(BACKGROUND_RGB)}"/>',
            f'  <rect x="{margin:.1f}" y="{margin:.1f}" '
            f'width="{width - 2 * margin:.1f}" height="{height - 2 * margin:.1f}" '
            f'fill="none" stroke="{_rgb(BORDER_RGB)}" stroke-width="{border:.1f}"/>',
        ]
        title_size = _fit_font_size(
            measure, title, _scaled(TITLE_BASE_SIZE, width), max_width
        )
        for text, baseline, ratio in _cover_lines(title, author, generator, height):
            if not text:
                continue
            size = title_size if ratio == 1.0 else _fit_font_size(
                measure, text, title_size * ratio, max_width
            )
            parts.append(
                f'  <text x="{width / 2:.1f}" y="{baseline:.1f}" text-anchor="middle" '
                f'font-family="{font_family}" font-weight="bold" font-size="{size:.1f}" '
                f'fill="{_rgb(TEXT_RGB)}" stroke="{_rgb(OUTLINE_RGB)}" '
                f'stroke-width="{size * 0.025:.2f}">{html_escape(text)}</text>'
            )
        parts.append("</svg>")
        return "\n".join(parts) + "\n"


def _pillow():
    try:
        return (
            importlib.import_module("PIL.Image"),
            importlib.import_module("PIL.ImageDraw"),
            importlib.import_module("PIL.ImageFont"),
        )
    except ImportError as exc:
        raise RenderUnavailable(
            "PNG covers require Pillow. Install it or request an SVG cover."
        ) from exc


class PillowCoverRenderer:
    """Raster cover renderer backed by Pillow."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def render(
        self,
        title: str,
        author: str,
        generator: Optional[str],
        fonts: Sequence[str],
        width: int,
        height: int,
        format: CoverFormat,
    ) -> RenderedCover:
        if CoverFormat(format) is not CoverFormat.PNG:
            raise RenderUnavailable(
                f"{type(self).__name__} cannot render {CoverFormat(format).value} covers."
            )
        image_module, draw_module, font_module = _pillow()
        try:
            content = self._render_png(
                image_module,
                draw_module,
                font_module,
                title,
                author,
                generator,
                fonts,
                width,
                height,
            )
        except (OSError, ValueError) as exc:
            raise RenderUnavailable(f"Failed to render PNG cover: {exc}") from exc
        return RenderedCover(content, "image/png", "png")

    def select_font(self, font_module, fonts: Sequence[str]) -> Optional[str]:
        """Return the first loadable font; None means Pillow's default face."""
        for font in fonts:
            try:
                font_module.truetype(font, TITLE_BASE_SIZE)
            except OSError:
                if self.verbose:
                    print(f"[cover] Failed to load font {font}; falling back.")
                continue
            if self.verbose:
                print(f"[cover] Using font {font}.")
            return font
        return None

    def _render_png(
        self,
        image_module,
        draw_module,
        font_module,
        title: str,
        author: str,
        generator: Optional[str],
        fonts: Sequence[str],
        width: int,
        height: int,
    ) -> bytes:
        image = image_module.new("RGB", (width, height), BACKGROUND_RGB)
        draw = draw_module.Draw(image)
        margin = width * MARGIN_RATIO
        border = max(1, round(_scaled(BORDER_BASE_WIDTH, width)))
        draw.rectangle(
            [margin, margin, width - margin, height - margin],
            outline=BORDER_RGB,
            width=border,
        )
        font_name = self.select_font(font_module, fonts)

        def font_at(size: float):
            pixels = max(1, int(size))
            if font_name is None:
                return font_module.load_default(size=pixels)
            return font_module.truetype(font_name, pixels)

        def measure(text: str, size: float) -> float:
            return draw.textlength(text, font=font_at(size))

        max_width = width * TEXT_WIDTH_RATIO
        title_size = _fit_font_size(
            measure, title, _scaled(TITLE_BASE_SIZE, width), max_width
        )
        for text, baseline, ratio in _cover_lines(title, author, generator, height):
            if not text:
                continue
            size = title_size if ratio == 1.0 else _fit_font_size(
                measure, text, title_size * ratio, max_width
            )
            font = font_at(size)
            text_width = draw.textlength(text, font=font)
            draw.text(
                ((width - text_width) / 2, baseline - size),
                text,
                font=font,
                fill=TEXT_RGB,
                stroke_width=max(1, int(size * 0.025)),
                stroke_fill=OUTLINE_RGB,
            )
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()


class DefaultCoverRenderer:
    """Dispatches SVG requests to the vector renderer and PNG requests to Pillow."""

    def __init__(self, verbose: bool = False) -> None:
        self.svg = SvgCoverRenderer()
        self.png = PillowCoverRenderer(verbose=verbose)

    def render(
        self,
        title: str,
        author: str,
        generator: Optional[str],
        fonts: Sequence[str],
        width: int,
        height: int,
        format: CoverFormat,
    ) -> RenderedCover:
        backend = self.png if CoverFormat(format) is CoverFormat.PNG else self.svg
        return backend.render(title, author, generator, fonts, width, height, format)
