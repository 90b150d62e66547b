from epub_writer.books import Attachment, Book, Chapter, PackagedBook
from epub_writer.container import ContainerWriteError, EpubContainer
from epub_writer.cover import CoverRequest
from epub_writer.documents import InvalidReference
from epub_writer.identity import (
    IdentityError,
    IdGenerator,
    RandomIdGenerator,
    SequentialIdGenerator,
)
from epub_writer.output import PackOptions, epub_bytes, pack, resolve_book, write_epub
from epub_writer.render import (
    CoverFormat,
    CoverRenderer,
    DefaultCoverRenderer,
    PillowCoverRenderer,
    RenderedCover,
    RenderUnavailable,
    SvgCoverRenderer,
)

__all__ = [
    "Attachment",
    "Book",
    "Chapter",
    "ContainerWriteError",
    "CoverFormat",
    "CoverRenderer",
    "CoverRequest",
    "DefaultCoverRenderer",
    "EpubContainer",
    "IdGenerator",
    "IdentityError",
    "InvalidReference",
    "PackOptions",
    "PackagedBook",
    "PillowCoverRenderer",
    "RandomIdGenerator",
    "RenderUnavailable",
    "RenderedCover",
    "SequentialIdGenerator",
    "SvgCoverRenderer",
    "epub_bytes",
    "pack",
    "resolve_book",
    "write_epub",
]
