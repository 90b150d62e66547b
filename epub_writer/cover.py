from __future__ import annotations

from dataclasses import dataclass, replace
from html import escape as html_escape
from typing import Optional

from epub_writer.books import Attachment, Book, Chapter
from epub_writer.documents import STYLESHEET_NAME, UNKNOWN_AUTHOR, build_xhtml_page
from epub_writer.identity import IdGenerator, fresh_id
from epub_writer.render import CoverFormat, CoverRenderer, RenderUnavailable

COVER_FILE_ID = "cover"
COVER_BASENAME = "cover"
TITLE_PAGE_TITLE = "Cover"


@dataclass(frozen=True)
class CoverRequest:
    """How to generate a cover and title page for a book.

    The default size follows Kindle Direct Publishing's recommendation.
    ``font_preferences`` is tried in order; the renderer falls back to a
    generic sans-serif face.
    """

    format: CoverFormat = CoverFormat.PNG
    width: int = 1600
    height: int = 2560
    font_preferences: tuple[str, ...] = ()
    generator: Optional[str] = None
    plain_page: bool = False


def parse_font_preferences(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(font.strip() for font in value.split(",") if font.strip())


def _title_page_body(title: str, author: str, image_filename: Optional[str]) -> str:
    if image_filename is None:
        return "\n".join(
            [
                '    <div class="title-page">',
                f"      <h1>{html_escape(title)}</h1>",
                f"      <h2>{html_escape(author)}</h2>",
                "    </div>",
            ]
        )
    return "\n".join(
        [
            '    <div class="cover-page">',
            f'      <img src="{html_escape(image_filename)}" '
            f'alt="{html_escape(title)}" class="cover-image"/>',
            "    </div>",
        ]
    )


def _cover_filename(book: Book, extension: str) -> str:
    taken = {attachment.filename for attachment in book.attachments}
    filename = f"{COVER_BASENAME}.{extension}"
    suffix = 1
    while filename in taken:
        filename = f"{COVER_BASENAME}-{suffix}.{extension}"
        suffix += 1
    return filename


def compose_cover(
    book: Book,
    request: CoverRequest,
    renderer: CoverRenderer,
    id_generator: IdGenerator,
) -> tuple[Chapter, Attachment]:
    """Render the cover image and the title-page chapter that shows it."""
    author = book.display_author or UNKNOWN_AUTHOR
    try:
        rendered = renderer.render(
            book.title,
            author,
            request.generator,
            list(request.font_preferences),
            request.width,
            request.height,
            request.format,
        )
    except RenderUnavailable:
        raise
    except Exception as exc:
        raise RenderUnavailable(f"Cover rendering failed: {exc}") from exc
    used_ids = {attachment.file_id for attachment in book.attachments if attachment.file_id}
    file_id = COVER_FILE_ID
    if file_id in used_ids:
        file_id = fresh_id(id_generator, used_ids)
    attachment = Attachment(
        filename=_cover_filename(book, rendered.extension),
        mime_type=rendered.mime_type,
        content=rendered.content,
        file_id=file_id,
    )
    body = _title_page_body(
        book.title, author, None if request.plain_page else attachment.filename
    )
    stylesheets = [STYLESHEET_NAME] if book.stylesheet is not None else []
    chapter = Chapter(
        title=TITLE_PAGE_TITLE,
        content=build_xhtml_page(book.title, body, stylesheets, book.language),
        show_in_toc=False,
    )
    return chapter, attachment


def apply_cover(
    book: Book, renderer: CoverRenderer, id_generator: IdGenerator
) -> Book:
    """Return a copy of ``book`` with its requested cover injected.

    The title page becomes the first chapter and the image the last
    attachment. Books without a cover request are returned unchanged.
    """
    if book.cover is None:
        return book
    chapter, attachment = compose_cover(book, book.cover, renderer, id_generator)
    return replace(
        book,
        chapters=[chapter, *book.chapters],
        attachments=[*book.attachments, attachment],
        cover_id=book.cover_id or attachment.file_id,
        cover=None,
    )
