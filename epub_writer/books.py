from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from epub_writer.filenames import chapter_file_id, chapter_filename, navigation_id

if TYPE_CHECKING:
    from epub_writer.cover import CoverRequest

XHTML_MIME_TYPE = "application/xhtml+xml"


@dataclass(frozen=True)
class Chapter:
    """One reading-order document of a book.

    ``content`` must already be a valid XHTML document; it is written to the
    archive untouched.
    """

    title: str = ""
    content: str = ""
    show_in_toc: bool = True


@dataclass(frozen=True)
class Attachment:
    """A non-chapter file (image, stylesheet, font) bundled into the archive."""

    filename: str
    mime_type: str
    content: bytes = b""
    file_id: Optional[str] = None


@dataclass
class Book:
    title: str = ""
    author: Optional[str] = None
    chapters: list[Chapter] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    id: Optional[str] = None
    cover_id: Optional[str] = None
    cover: Optional["CoverRequest"] = None
    language: str = "en"
    generator: Optional[str] = None
    stylesheet: Optional[str] = None

    @property
    def display_author(self) -> Optional[str]:
        author = (self.author or "").strip()
        return author or None


@dataclass(frozen=True)
class IndexedChapter:
    chapter: Chapter
    index: int

    @property
    def title(self) -> str:
        return self.chapter.title

    @property
    def content(self) -> str:
        return self.chapter.content

    @property
    def show_in_toc(self) -> bool:
        return self.chapter.show_in_toc

    @property
    def file_id(self) -> str:
        return chapter_file_id(self.index)

    @property
    def filename(self) -> str:
        return chapter_filename(self.index)

    @property
    def nav_id(self) -> str:
        return navigation_id(self.chapter.title)


@dataclass(frozen=True)
class PackagedBook:
    """The fully resolved view of a book that the archive is written from.

    Every attachment carries a file id and every chapter its final 1-based
    index.
    """

    id: str
    title: str
    author: Optional[str]
    chapters: tuple[IndexedChapter, ...]
    attachments: tuple[Attachment, ...]
    cover_id: Optional[str] = None
    language: str = "en"
    generator: Optional[str] = None
    stylesheet: Optional[str] = None

    @property
    def cover_attachment(self) -> Optional[Attachment]:
        if not self.cover_id:
            return None
        for attachment in self.attachments:
            if attachment.file_id == self.cover_id:
                return attachment
        return None


def index_chapters(chapters: list[Chapter]) -> tuple[IndexedChapter, ...]:
    return tuple(
        IndexedChapter(chapter=chapter, index=position)
        for position, chapter in enumerate(chapters, start=1)
    )
