import unittest

from epub_writer.filenames import (
    chapter_file_id,
    chapter_filename,
    epub_filename,
    navigation_id,
    title_to_filename,
)


class TestFilenames(unittest.TestCase):
    def test_title_to_filename_joins_title_words(self) -> None:
        self.assertEqual(title_to_filename("must go faster"), "MustGoFaster")

    def test_title_to_filename_falls_back_when_empty(self) -> None:
        self.assertEqual(title_to_filename("?!"), "Untitled")

    def test_epub_filename_appends_extension(self) -> None:
        self.assertEqual(epub_filename("Must Go Faster"), "MustGoFaster.epub")

    def test_chapter_names_use_one_based_index(self) -> None:
        self.assertEqual(chapter_file_id(1), "chapter1")
        self.assertEqual(chapter_filename(12), "chapter12.html")

    def test_navigation_id_is_stable_for_a_title(self) -> None:
        first = navigation_id("Chapter One")

        self.assertEqual(first, navigation_id("Chapter One"))
        self.assertNotEqual(first, navigation_id("Chapter Two"))
        self.assertTrue(first.startswith("ch"))
        self.assertEqual(len(first), 34)
        self.assertNotIn("-", first)
