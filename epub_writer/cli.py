from __future__ import annotations

import argparse
import mimetypes
import re
from html import escape as html_escape
from html import unescape
from pathlib import Path
from typing import Optional, Sequence

from epub_writer.books import Attachment, Book, Chapter
from epub_writer.container import ContainerWriteError, EpubContainer
from epub_writer.cover import CoverRequest, parse_font_preferences
from epub_writer.documents import build_xhtml_page
from epub_writer.filenames import epub_filename, title_to_filename
from epub_writer.identity import IdentityError
from epub_writer.output import PackOptions, write_epub
from epub_writer.render import CoverFormat, DefaultCoverRenderer, RenderUnavailable

DEFAULT_MIME_TYPE = "application/octet-stream"
COVER_IMAGE_ID = "cover-image"
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_HEADING_RE = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_PLAIN_TEXT_SUFFIXES = {".txt", ".text"}


def _chapter_title_from_content(content: str, fallback: str) -> str:
    for pattern in (_TITLE_RE, _HEADING_RE):
        match = pattern.search(content)
        if match:
            candidate = " ".join(unescape(_TAG_RE.sub("", match.group(1))).split())
            if candidate:
                return candidate
    return fallback


def _plain_text_to_xhtml(title: str, text: str, language: str) -> str:
    paragraphs = [block.strip() for block in re.split(r"\n\s*\n", text) if block.strip()]
    body = "\n".join(
        f"    <p>{html_escape(' '.join(paragraph.split()))}</p>" for paragraph in paragraphs
    )
    return build_xhtml_page(title, body, language=language)


def load_chapter(path: Path, language: str = "en") -> Chapter:
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() in _PLAIN_TEXT_SUFFIXES:
        title = path.stem
        return Chapter(title=title, content=_plain_text_to_xhtml(title, content, language))
    return Chapter(title=_chapter_title_from_content(content, path.stem), content=content)


def load_attachment(path: Path, file_id: Optional[str] = None) -> Attachment:
    mime_type, _ = mimetypes.guess_type(path.name)
    return Attachment(
        filename=path.name,
        mime_type=mime_type or DEFAULT_MIME_TYPE,
        content=path.read_bytes(),
        file_id=file_id,
    )


def _add_cover_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--cover-font",
        action="append",
        default=[],
        help=(
            "Preferred cover font; repeat or comma-separate to list fallbacks "
            "in priority order."
        ),
    )
    parser.add_argument(
        "--cover-width",
        type=int,
        default=CoverRequest().width,
        help="Generated cover width in pixels (default: 1600).",
    )
    parser.add_argument(
        "--cover-height",
        type=int,
        default=CoverRequest().height,
        help="Generated cover height in pixels (default: 2560).",
    )
    parser.add_argument(
        "--generator",
        default=None,
        help="Program name for the 'Generated by' cover line and NCX metadata.",
    )


def _font_preferences(values: Sequence[str]) -> tuple[str, ...]:
    fonts: list[str] = []
    for value in values:
        fonts.extend(parse_font_preferences(value))
    return tuple(fonts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Assemble EPUB books from XHTML chapters.")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress messages.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Package chapters into an EPUB file.")
    build.add_argument(
        "chapters",
        nargs="+",
        type=Path,
        help="Chapter files in reading order (XHTML, or plain text to wrap).",
    )
    build.add_argument("--title", required=True, help="Book title.")
    build.add_argument("--author", default=None, help="Book author.")
    build.add_argument("--language", default="en", help="Book language (default: en).")
    build.add_argument(
        "--book-id",
        default=None,
        help="Book identifier; a random UUID is generated when omitted.",
    )
    build.add_argument(
        "--attachment",
        action="append",
        type=Path,
        default=[],
        help="Extra file to bundle (image, font, stylesheet). Repeatable.",
    )
    build.add_argument(
        "--cover-image",
        type=Path,
        default=None,
        help="Existing image to bundle and mark as the cover.",
    )
    build.add_argument(
        "--stylesheet",
        type=Path,
        default=None,
        help="CSS file to bundle as style.css.",
    )
    build.add_argument(
        "--generate-cover",
        choices=[cover_format.value for cover_format in CoverFormat],
        default=None,
        help="Generate a cover image and title page in the given format.",
    )
    build.add_argument(
        "--plain-title-page",
        action="store_true",
        help="Show title and author as text on the generated title page.",
    )
    build.add_argument(
        "--toc-visible-only",
        action="store_true",
        help="Leave chapters hidden from the table of contents out of toc.ncx.",
    )
    build.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output EPUB path (default: derived from the title).",
    )
    _add_cover_arguments(build)

    cover = subparsers.add_parser("cover", help="Render a standalone cover image.")
    cover.add_argument("--title", required=True, help="Book title.")
    cover.add_argument("--author", default="", help="Book author.")
    cover.add_argument(
        "--format",
        choices=[cover_format.value for cover_format in CoverFormat],
        default=CoverFormat.PNG.value,
        help="Cover image format (default: png).",
    )
    cover.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output image path (default: derived from the title).",
    )
    _add_cover_arguments(cover)
    return parser


def build_book_from_args(args: argparse.Namespace) -> Book:
    chapters = [load_chapter(path, args.language) for path in args.chapters]
    attachments = [load_attachment(path) for path in args.attachment]
    cover_id = None
    if args.cover_image is not None:
        attachments.append(load_attachment(args.cover_image, file_id=COVER_IMAGE_ID))
        cover_id = COVER_IMAGE_ID
    cover_request = None
    if args.generate_cover:
        cover_request = CoverRequest(
            format=CoverFormat(args.generate_cover),
            width=args.cover_width,
            height=args.cover_height,
            font_preferences=_font_preferences(args.cover_font),
            generator=args.generator,
            plain_page=args.plain_title_page,
        )
    stylesheet = None
    if args.stylesheet is not None:
        stylesheet = args.stylesheet.read_text(encoding="utf-8")
    return Book(
        title=args.title,
        author=args.author,
        chapters=chapters,
        attachments=attachments,
        id=args.book_id,
        cover_id=cover_id,
        cover=cover_request,
        language=args.language,
        generator=args.generator,
        stylesheet=stylesheet,
    )


def _run_build(args: argparse.Namespace) -> Path:
    book = build_book_from_args(args)
    output_path = args.output or Path(epub_filename(args.title))
    return write_epub(
        book,
        output_path,
        renderer=DefaultCoverRenderer(verbose=not args.quiet),
        options=PackOptions(include_hidden_in_toc=not args.toc_visible_only),
        verbose=not args.quiet,
    )


def _run_cover(args: argparse.Namespace) -> Path:
    cover_format = CoverFormat(args.format)
    rendered = DefaultCoverRenderer(verbose=not args.quiet).render(
        args.title,
        args.author,
        args.generator,
        list(_font_preferences(args.cover_font)),
        args.cover_width,
        args.cover_height,
        cover_format,
    )
    output_path = args.output or Path(
        f"{title_to_filename(args.title)}.{rendered.extension}"
    )
    EpubContainer.write_to_path(rendered.content, output_path)
    if not args.quiet:
        print(f"[cover] Wrote {output_path.name}.")
    return output_path


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "cover":
            _run_cover(args)
        else:
            _run_build(args)
    except (ContainerWriteError, IdentityError, RenderUnavailable, OSError) as exc:
        parser.error(str(exc))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
