from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from epub_writer.books import Book, PackagedBook, index_chapters
from epub_writer.container import EpubContainer
from epub_writer.cover import apply_cover
from epub_writer.documents import (
    CONTAINER_XML,
    CONTENT_OPF_NAME,
    MIMETYPE,
    STYLESHEET_NAME,
    TOC_NCX_NAME,
    build_content_opf,
    build_toc_ncx,
)
from epub_writer.identity import (
    IdGenerator,
    RandomIdGenerator,
    assign_identities,
    check_manifest_ids,
)
from epub_writer.render import CoverRenderer, DefaultCoverRenderer

MIMETYPE_NAME = "mimetype"
CONTAINER_XML_NAME = "META-INF/container.xml"


@dataclass(frozen=True)
class PackOptions:
    include_hidden_in_toc: bool = True


def resolve_book(
    book: Book,
    id_generator: Optional[IdGenerator] = None,
    renderer: Optional[CoverRenderer] = None,
) -> PackagedBook:
    """Derive the packaging view of ``book`` without modifying it.

    Identities are assigned first, then the requested cover is injected as
    the first chapter, and only then are chapters indexed.
    """
    generator = id_generator or RandomIdGenerator()
    resolved = assign_identities(book, generator)
    if resolved.cover is not None:
        resolved = apply_cover(resolved, renderer or DefaultCoverRenderer(), generator)
    # Safety net; a no-op when every id is already set.
    resolved = assign_identities(resolved, generator)
    packaged = PackagedBook(
        id=resolved.id or "",
        title=resolved.title,
        author=resolved.display_author,
        chapters=index_chapters(resolved.chapters),
        attachments=tuple(resolved.attachments),
        cover_id=resolved.cover_id or None,
        language=resolved.language,
        generator=resolved.generator,
        stylesheet=resolved.stylesheet,
    )
    check_manifest_ids(packaged)
    return packaged


def pack_resolved(
    book: PackagedBook, options: Optional[PackOptions] = None
) -> EpubContainer:
    options = options or PackOptions()
    content_opf = build_content_opf(book)
    toc_ncx = build_toc_ncx(book, include_hidden=options.include_hidden_in_toc)
    container = EpubContainer()
    container.add_member(MIMETYPE_NAME, MIMETYPE, stored=True)
    container.add_member(CONTAINER_XML_NAME, CONTAINER_XML)
    container.add_member(CONTENT_OPF_NAME, content_opf)
    container.add_member(TOC_NCX_NAME, toc_ncx)
    for chapter in book.chapters:
        container.add_member(chapter.filename, chapter.content)
    for attachment in book.attachments:
        container.add_member(attachment.filename, attachment.content)
    if book.stylesheet is not None:
        container.add_member(STYLESHEET_NAME, book.stylesheet)
    return container


def pack(
    book: Book,
    *,
    id_generator: Optional[IdGenerator] = None,
    renderer: Optional[CoverRenderer] = None,
    options: Optional[PackOptions] = None,
) -> EpubContainer:
    return pack_resolved(resolve_book(book, id_generator, renderer), options)


def epub_bytes(
    book: Book,
    *,
    id_generator: Optional[IdGenerator] = None,
    renderer: Optional[CoverRenderer] = None,
    options: Optional[PackOptions] = None,
) -> bytes:
    container = pack(
        book, id_generator=id_generator, renderer=renderer, options=options
    )
    return container.finalize()


def write_epub(
    book: Book,
    path: Path,
    *,
    id_generator: Optional[IdGenerator] = None,
    renderer: Optional[CoverRenderer] = None,
    options: Optional[PackOptions] = None,
    verbose: bool = False,
) -> Path:
    data = epub_bytes(
        book, id_generator=id_generator, renderer=renderer, options=options
    )
    output_path = EpubContainer.write_to_path(data, path)
    if verbose:
        print(f"[epub] Wrote {output_path.name}.")
    return output_path
