from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Iterable, Protocol

from epub_writer.books import Book, PackagedBook
from epub_writer.documents import NCX_ID, STYLESHEET_ID
from epub_writer.filenames import is_chapter_file_id

MAX_ID_ATTEMPTS = 8
RESERVED_FILE_IDS = frozenset({NCX_ID, STYLESHEET_ID})


class IdentityError(RuntimeError):
    """Raised when no unused identifier can be produced, or ids collide."""


class IdGenerator(Protocol):
    def new_id(self) -> str:
        ...


class RandomIdGenerator:
    def new_id(self) -> str:
        return str(uuid.uuid4())


class SequentialIdGenerator:
    """Hands out a fixed sequence of identifiers, for reproducible archives."""

    def __init__(self, ids: Iterable[str]) -> None:
        self._ids = list(ids)
        self._position = 0

    def new_id(self) -> str:
        if self._position >= len(self._ids):
            raise IdentityError(
                f"Identifier sequence exhausted after {len(self._ids)} id(s)."
            )
        value = self._ids[self._position]
        self._position += 1
        return value


def is_reserved_file_id(value: str) -> bool:
    """Manifest ids owned by the package itself: chapters, ncx, stylesheet."""
    return value in RESERVED_FILE_IDS or is_chapter_file_id(value)


def fresh_id(generator: IdGenerator, used: set[str]) -> str:
    """Draw an id that is neither in ``used`` nor reserved, and record it."""
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = generator.new_id()
        if candidate and candidate not in used and not is_reserved_file_id(candidate):
            used.add(candidate)
            return candidate
    raise IdentityError(
        f"Could not generate an unused identifier in {MAX_ID_ATTEMPTS} attempts."
    )


def assign_identities(book: Book, generator: IdGenerator) -> Book:
    """Return a copy of ``book`` with its id and attachment file ids filled in.

    Identifiers the caller supplied are kept as they are. The input book is
    not modified.
    """
    used = {attachment.file_id for attachment in book.attachments if attachment.file_id}
    if book.id:
        used.add(book.id)
    book_id = book.id or fresh_id(generator, used)
    attachments = [
        attachment
        if attachment.file_id
        else replace(attachment, file_id=fresh_id(generator, used))
        for attachment in book.attachments
    ]
    return replace(
        book, id=book_id, chapters=list(book.chapters), attachments=attachments
    )


def check_manifest_ids(book: PackagedBook) -> None:
    """Raise IdentityError unless every manifest id of ``book`` is unique."""
    seen = {chapter.file_id for chapter in book.chapters} | set(RESERVED_FILE_IDS)
    for attachment in book.attachments:
        file_id = attachment.file_id or ""
        if file_id in seen or is_reserved_file_id(file_id):
            raise IdentityError(
                f"Attachment {attachment.filename!r} uses file id {file_id!r}, "
                "which is already taken in the manifest."
            )
        seen.add(file_id)
