from __future__ import annotations

import re
import uuid

_TITLE_WORD_RE = re.compile(r"[A-Za-z0-9]+")
_NIL_NAMESPACE = uuid.UUID(int=0)
_CHAPTER_ID_RE = re.compile(r"chapter[0-9]+")


def title_to_filename(title: str, fallback: str = "Untitled") -> str:
    words = _TITLE_WORD_RE.findall(title or "")
    if not words:
        return fallback
    return "".join(word.capitalize() for word in words)


def epub_filename(title: str, fallback: str = "Untitled") -> str:
    return f"{title_to_filename(title, fallback)}.epub"


def chapter_file_id(index: int) -> str:
    return f"chapter{index}"


def chapter_filename(index: int) -> str:
    return f"{chapter_file_id(index)}.html"


def navigation_id(title: str) -> str:
    """Return a navPoint id derived only from the chapter title.

    Equal titles yield equal ids; the NCX tolerates the duplicates.
    """
    return "ch" + uuid.uuid5(_NIL_NAMESPACE, title or "").hex


def is_chapter_file_id(value: str) -> bool:
    return bool(_CHAPTER_ID_RE.fullmatch(value or ""))
