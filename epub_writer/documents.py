"""Generators for the package documents written alongside the chapters.

Every function here is pure: it renders text from a resolved
:class:`~epub_writer.books.PackagedBook` and never touches the archive.
"""

from __future__ import annotations

from html import escape as html_escape
from typing import Iterable

from epub_writer.books import XHTML_MIME_TYPE, Attachment, PackagedBook

MIMETYPE = "application/epub+zip"
UNKNOWN_AUTHOR = "Unknown"
DEFAULT_GENERATOR = "epub-writer"
CONTENT_OPF_NAME = "content.opf"
TOC_NCX_NAME = "toc.ncx"
NCX_ID = "ncx"
NCX_MIME_TYPE = "application/x-dtbncx+xml"
STYLESHEET_NAME = "style.css"
STYLESHEET_ID = "stylesheet"
STYLESHEET_MIME_TYPE = "text/css"

CONTAINER_XML = "\n".join(
    [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">',
        "  <rootfiles>",
        f'    <rootfile full-path="{CONTENT_OPF_NAME}" '
        'media-type="application/oebps-package+xml"/>',
        "  </rootfiles>",
        "</container>",
    ]
) + "\n"


class InvalidReference(ValueError):
    """Raised when a cover id does not name any attachment of the book."""


def _escape(text: str) -> str:
    return html_escape(text or "", quote=True)


def require_cover_attachment(book: PackagedBook) -> Attachment:
    attachment = book.cover_attachment
    if attachment is None:
        raise InvalidReference(
            f"Cover id {book.cover_id!r} does not match any attachment."
        )
    return attachment


def build_content_opf(book: PackagedBook) -> str:
    author = book.author or UNKNOWN_AUTHOR
    cover = book.cover_attachment
    lines = [
        "<?xml version='1.0' encoding='utf-8'?>",
        '<package xmlns="http://www.idpf.org/2007/opf" '
        'unique-identifier="uuid_id" version="2.0">',
        '  <metadata xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns:opf="http://www.idpf.org/2007/opf" '
        'xmlns:dcterms="http://purl.org/dc/terms/" '
        'xmlns:dc="http://purl.org/dc/elements/1.1/">',
        f"    <dc:language>{_escape(book.language)}</dc:language>",
        f"    <dc:creator>{_escape(author)}</dc:creator>",
        f"    <dc:title>{_escape(book.title)}</dc:title>",
    ]
    if cover is not None:
        lines.append(f'    <meta name="cover" content="{_escape(cover.file_id)}"/>')
    lines.extend(
        [
            f'    <dc:identifier id="uuid_id" opf:scheme="uuid">{_escape(book.id)}</dc:identifier>',
            "  </metadata>",
            "  <manifest>",
        ]
    )
    for chapter in book.chapters:
        lines.append(
            f'    <item href="{chapter.filename}" id="{chapter.file_id}" '
            f'media-type="{XHTML_MIME_TYPE}"/>'
        )
    for attachment in book.attachments:
        lines.append(
            f'    <item href="{_escape(attachment.filename)}" '
            f'id="{_escape(attachment.file_id)}" '
            f'media-type="{_escape(attachment.mime_type)}"/>'
        )
    lines.append(
        f'    <item href="{TOC_NCX_NAME}" id="{NCX_ID}" media-type="{NCX_MIME_TYPE}"/>'
    )
    if book.stylesheet is not None:
        lines.append(
            f'    <item href="{STYLESHEET_NAME}" id="{STYLESHEET_ID}" '
            f'media-type="{STYLESHEET_MIME_TYPE}"/>'
        )
    lines.extend(["  </manifest>", f'  <spine toc="{NCX_ID}">'])
    for chapter in book.chapters:
        lines.append(f'    <itemref idref="{chapter.file_id}"/>')
    lines.extend(["  </spine>", "  <guide>"])
    if cover is not None:
        lines.append(
            f'    <reference href="{_escape(cover.filename)}" title="Cover" type="cover"/>'
        )
    lines.extend(["  </guide>", "</package>"])
    return "\n".join(lines) + "\n"


def build_toc_ncx(book: PackagedBook, include_hidden: bool = True) -> str:
    """Render the NCX navigation map.

    With ``include_hidden`` off, chapters marked ``show_in_toc=False`` are
    left out and play orders stay consecutive over the remaining entries.
    """
    generator = book.generator or DEFAULT_GENERATOR
    lines = [
        "<?xml version='1.0' encoding='utf-8'?>",
        '<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1" '
        f'xml:lang="{_escape(book.language)}">',
        "  <head>",
        f'    <meta content="{_escape(book.id)}" name="dtb:uid"/>',
        '    <meta content="1" name="dtb:depth"/>',
        f'    <meta content="{_escape(generator)}" name="dtb:generator"/>',
        '    <meta content="0" name="dtb:totalPageCount"/>',
        '    <meta content="0" name="dtb:maxPageNumber"/>',
        "  </head>",
        "  <docTitle>",
        f"    <text>{_escape(book.title)}</text>",
        "  </docTitle>",
        "  <navMap>",
    ]
    chapters = [
        chapter
        for chapter in book.chapters
        if include_hidden or chapter.show_in_toc
    ]
    for play_order, chapter in enumerate(chapters, start=1):
        lines.extend(
            [
                f'    <navPoint id="{chapter.nav_id}" playOrder="{play_order}">',
                "      <navLabel>",
                f"        <text>{_escape(chapter.title)}</text>",
                "      </navLabel>",
                f'      <content src="{chapter.filename}"/>',
                "    </navPoint>",
            ]
        )
    lines.extend(["  </navMap>", "</ncx>"])
    return "\n".join(lines) + "\n"


def build_xhtml_page(
    title: str, body: str, stylesheets: Iterable[str] = (), language: str = "en"
) -> str:
    """Wrap an XHTML body fragment in a complete document.

    ``body`` is inserted as markup; ``title`` and stylesheet hrefs are escaped.
    """
    lines = [
        "<?xml version='1.0' encoding='utf-8'?>",
        '<html xmlns="http://www.w3.org/1999/xhtml" '
        f'xml:lang="{_escape(language)}">',
        "  <head>",
        '    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8"/>',
    ]
    for href in stylesheets:
        lines.append(
            f'    <link rel="stylesheet" href="{_escape(href)}" type="text/css"/>'
        )
    lines.extend(
        [
            f"    <title>{_escape(title)}</title>",
            "  </head>",
            "  <body>",
            body,
            "  </body>",
            "</html>",
        ]
    )
    return "\n".join(lines) + "\n"
