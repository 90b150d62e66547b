from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Union

# Fixed timestamp so identical books produce identical archives.
MEMBER_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class ContainerWriteError(RuntimeError):
    """Raised when the archive cannot be assembled or written."""


@dataclass(frozen=True)
class ContainerMember:
    name: str
    content: bytes
    stored: bool = False


def _validate_member_name(name: str) -> None:
    if not name or name.startswith("/") or "\\" in name:
        raise ContainerWriteError(f"Invalid archive member name {name!r}.")
    if any(part in ("", ".", "..") for part in name.split("/")):
        raise ContainerWriteError(f"Invalid archive member name {name!r}.")


class EpubContainer:
    """Collects named members and builds the zip archive on finalize."""

    def __init__(self) -> None:
        self._members: list[ContainerMember] = []

    @property
    def members(self) -> list[str]:
        return [member.name for member in self._members]

    def read(self, name: str) -> bytes:
        for member in self._members:
            if member.name == name:
                return member.content
        raise KeyError(name)

    def add_member(
        self, name: str, content: Union[str, bytes], stored: bool = False
    ) -> None:
        _validate_member_name(name)
        if name in self.members:
            raise ContainerWriteError(f"Duplicate archive member {name!r}.")
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        self._members.append(ContainerMember(name=name, content=data, stored=stored))

    def finalize(self) -> bytes:
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w") as archive:
                for member in self._members:
                    info = zipfile.ZipInfo(member.name, date_time=MEMBER_DATE_TIME)
                    info.compress_type = (
                        zipfile.ZIP_STORED if member.stored else zipfile.ZIP_DEFLATED
                    )
                    info.external_attr = 0o644 << 16
                    archive.writestr(info, member.content)
        except (OSError, ValueError, zipfile.LargeZipFile) as exc:
            raise ContainerWriteError(f"Failed to build archive: {exc}") from exc
        return buffer.getvalue()

    @staticmethod
    def write_to_path(data: bytes, path: Path) -> Path:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise ContainerWriteError(f"Failed to write {path}: {exc}") from exc
        return path
