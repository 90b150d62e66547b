import io
import unittest
import zipfile
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from epub_writer.container import ContainerWriteError, EpubContainer


class TestEpubContainer(unittest.TestCase):
    def test_finalize_keeps_member_order_and_compression(self) -> None:
        container = EpubContainer()
        container.add_member("mimetype", "application/epub+zip", stored=True)
        container.add_member("META-INF/container.xml", "<container/>")
        container.add_member("images/a.png", b"\x89PNG")

        data = container.finalize()

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            infos = archive.infolist()
            self.assertEqual(
                [info.filename for info in infos],
                ["mimetype", "META-INF/container.xml", "images/a.png"],
            )
            self.assertEqual(infos[0].compress_type, zipfile.ZIP_STORED)
            self.assertEqual(infos[1].compress_type, zipfile.ZIP_DEFLATED)
            self.assertEqual(archive.read("mimetype"), b"application/epub+zip")
            self.assertEqual(archive.read("images/a.png"), b"\x89PNG")

    def test_finalize_is_deterministic(self) -> None:
        def build() -> bytes:
            container = EpubContainer()
            container.add_member("a.txt", "same")
            return container.finalize()

        self.assertEqual(build(), build())

    def test_rejects_duplicate_members(self) -> None:
        container = EpubContainer()
        container.add_member("chapter1.html", "<p/>")

        with self.assertRaises(ContainerWriteError):
            container.add_member("chapter1.html", "<p/>")

    def test_rejects_unsafe_member_names(self) -> None:
        container = EpubContainer()
        for name in ("", "/etc/passwd", "../escape", "a\\b", "a//b"):
            with self.subTest(name=name):
                with self.assertRaises(ContainerWriteError):
                    container.add_member(name, b"")

    def test_read_returns_member_bytes(self) -> None:
        container = EpubContainer()
        container.add_member("toc.ncx", "<ncx/>")

        self.assertEqual(container.read("toc.ncx"), b"<ncx/>")
        with self.assertRaises(KeyError):
            container.read("missing")

    def test_write_to_path_creates_parent_directories(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "out" / "book.epub"

            result = EpubContainer.write_to_path(b"data", path)

            self.assertEqual(result, path)
            self.assertEqual(path.read_bytes(), b"data")

    def test_write_failures_raise_container_write_error(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "book.epub"
            with patch.object(Path, "write_bytes", side_effect=OSError("read-only")):
                with self.assertRaises(ContainerWriteError):
                    EpubContainer.write_to_path(b"data", path)


if __name__ == "__main__":
    unittest.main()
