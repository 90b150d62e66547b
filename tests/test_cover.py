import unittest
import xml.etree.ElementTree as ET
from unittest.mock import Mock

from epub_writer.books import Attachment, Book, Chapter
from epub_writer.cover import (
    CoverRequest,
    apply_cover,
    compose_cover,
    parse_font_preferences,
)
from epub_writer.documents import UNKNOWN_AUTHOR
from epub_writer.identity import MAX_ID_ATTEMPTS, IdentityError, SequentialIdGenerator
from epub_writer.render import (
    CoverFormat,
    RenderedCover,
    RenderUnavailable,
    SvgCoverRenderer,
)

XHTML = "{http://www.w3.org/1999/xhtml}"


def _renderer(extension: str = "png") -> Mock:
    renderer = Mock()
    renderer.render.return_value = RenderedCover(b"image", f"image/{extension}", extension)
    return renderer


class TestCover(unittest.TestCase):
    def test_parse_font_preferences_splits_commas(self) -> None:
        self.assertEqual(
            parse_font_preferences("Droid Sans Mono, Inconsolata,"),
            ("Droid Sans Mono", "Inconsolata"),
        )
        self.assertEqual(parse_font_preferences(None), ())

    def test_compose_cover_passes_request_to_renderer(self) -> None:
        renderer = _renderer()
        request = CoverRequest(
            format=CoverFormat.PNG,
            width=800,
            height=1280,
            font_preferences=("Droid Sans Mono", "Inconsolata"),
            generator="covertest",
        )
        book = Book(title="Must Go Faster", author="Neia Neutuladh")

        chapter, attachment = compose_cover(
            book, request, renderer, SequentialIdGenerator([])
        )

        renderer.render.assert_called_once_with(
            "Must Go Faster",
            "Neia Neutuladh",
            "covertest",
            ["Droid Sans Mono", "Inconsolata"],
            800,
            1280,
            CoverFormat.PNG,
        )
        self.assertEqual(attachment.file_id, "cover")
        self.assertEqual(attachment.filename, "cover.png")
        self.assertEqual(attachment.mime_type, "image/png")
        self.assertEqual(attachment.content, b"image")
        self.assertFalse(chapter.show_in_toc)

    def test_title_page_embeds_cover_image(self) -> None:
        chapter, _ = compose_cover(
            Book(title="T", author="A"),
            CoverRequest(),
            _renderer(),
            SequentialIdGenerator([]),
        )

        root = ET.fromstring(chapter.content.encode("utf-8"))
        image = root.find(f"{XHTML}body/{XHTML}div/{XHTML}img")
        self.assertEqual(image.get("src"), "cover.png")

    def test_plain_title_page_shows_escaped_text(self) -> None:
        chapter, _ = compose_cover(
            Book(title="Fish & Chips", author=""),
            CoverRequest(plain_page=True),
            _renderer(),
            SequentialIdGenerator([]),
        )

        root = ET.fromstring(chapter.content.encode("utf-8"))
        self.assertIsNone(root.find(f".//{XHTML}img"))
        self.assertEqual(root.find(f".//{XHTML}h1").text, "Fish & Chips")
        self.assertEqual(root.find(f".//{XHTML}h2").text, UNKNOWN_AUTHOR)

    def test_cover_id_falls_back_to_generated_id_when_taken(self) -> None:
        book = Book(
            title="T",
            attachments=[Attachment("other.png", "image/png", b"x", file_id="cover")],
        )

        _, attachment = compose_cover(
            book, CoverRequest(), _renderer(), SequentialIdGenerator(["generated"])
        )

        self.assertEqual(attachment.file_id, "generated")

    def test_cover_filename_avoids_existing_attachments(self) -> None:
        book = Book(
            title="T",
            attachments=[
                Attachment("cover.svg", "image/svg+xml", b"art", file_id="art"),
                Attachment("cover-1.svg", "image/svg+xml", b"art", file_id="art-1"),
            ],
        )

        chapter, attachment = compose_cover(
            book,
            CoverRequest(format=CoverFormat.SVG),
            SvgCoverRenderer(),
            SequentialIdGenerator([]),
        )

        self.assertEqual(attachment.filename, "cover-2.svg")
        self.assertIn('src="cover-2.svg"', chapter.content)

    def test_cover_id_generation_is_bounded(self) -> None:
        stuck = Mock()
        stuck.new_id.return_value = "cover"
        book = Book(
            title="T",
            attachments=[Attachment("other.png", "image/png", b"x", file_id="cover")],
        )

        with self.assertRaises(IdentityError):
            compose_cover(book, CoverRequest(), _renderer(), stuck)

        self.assertEqual(stuck.new_id.call_count, MAX_ID_ATTEMPTS)

    def test_unexpected_renderer_errors_become_render_unavailable(self) -> None:
        renderer = Mock()
        renderer.render.side_effect = RuntimeError("backend crashed")

        with self.assertRaises(RenderUnavailable) as context:
            compose_cover(
                Book(title="T"), CoverRequest(), renderer, SequentialIdGenerator([])
            )

        self.assertIsInstance(context.exception.__cause__, RuntimeError)

    def test_renderer_failures_become_render_unavailable(self) -> None:
        renderer = Mock()
        renderer.render.side_effect = OSError("disk full")

        with self.assertRaises(RenderUnavailable):
            compose_cover(
                Book(title="T"), CoverRequest(), renderer, SequentialIdGenerator([])
            )

    def test_svg_only_renderer_rejects_png_request(self) -> None:
        with self.assertRaises(RenderUnavailable):
            compose_cover(
                Book(title="T"),
                CoverRequest(format=CoverFormat.PNG),
                SvgCoverRenderer(),
                SequentialIdGenerator([]),
            )

    def test_apply_cover_prepends_chapter_and_appends_attachment(self) -> None:
        existing = Attachment("map.png", "image/png", b"map", file_id="map")
        book = Book(
            title="T",
            chapters=[Chapter("One"), Chapter("Two")],
            attachments=[existing],
            cover=CoverRequest(format=CoverFormat.SVG),
        )

        covered = apply_cover(book, SvgCoverRenderer(), SequentialIdGenerator([]))

        self.assertEqual(len(covered.chapters), 3)
        self.assertFalse(covered.chapters[0].show_in_toc)
        self.assertEqual(covered.chapters[1:], book.chapters)
        self.assertEqual(len(covered.attachments), 2)
        self.assertEqual(covered.attachments[-1].filename, "cover.svg")
        self.assertEqual(covered.cover_id, "cover")
        self.assertIsNone(covered.cover)
        self.assertEqual(len(book.chapters), 2)
        self.assertEqual(book.attachments, [existing])

    def test_apply_cover_keeps_callers_cover_id(self) -> None:
        book = Book(title="T", cover_id="art", cover=CoverRequest(format=CoverFormat.SVG))

        covered = apply_cover(book, SvgCoverRenderer(), SequentialIdGenerator([]))

        self.assertEqual(covered.cover_id, "art")

    def test_apply_cover_without_request_is_a_no_op(self) -> None:
        book = Book(title="T")
        renderer = Mock()

        self.assertIs(apply_cover(book, renderer, SequentialIdGenerator([])), book)
        renderer.render.assert_not_called()


if __name__ == "__main__":
    unittest.main()
