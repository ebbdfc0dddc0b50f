"""
Tests for book import from text and fitz-readable documents.

Run: python -m pytest tests/test_document_adapter.py -q
"""

import fitz
import pytest

from rsvp.book.iterator import BookIterator
from rsvp.utils.document_adapter import (
    DocumentAdapter,
    detect_chapters,
    is_chapter_marker,
    load_book,
    parse_text_to_book,
)

PAGES = ["The first chapter starts here.", "The second chapter follows."]


def _make_pdf(path, pages=PAGES, toc=None):
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=11)
    if toc:
        doc.set_toc(toc)
    doc.save(str(path))
    doc.close()
    return path


def _sentences(chapter):
    return [s for p in chapter.paragraphs for s in p]


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


class TestChapterMarkers:
    @pytest.mark.parametrize(
        "line", ["Chapter 12", "CHAPTER iv", "Chapter XI: The Storm", "Ch. 3", "Ch.7", "4.", "IV.", "Глава 5"]
    )
    def test_markers(self, line):
        assert is_chapter_marker(line)

    @pytest.mark.parametrize(
        "line", ["Chapters are fun.", "Chapter and verse.", "1.5 million people.", "It was IV. Maybe."]
    )
    def test_not_markers(self, line):
        assert not is_chapter_marker(line)

    def test_detect_chapters_without_markers(self):
        chapters = detect_chapters([["Just text."], ["More text."]])
        assert len(chapters) == 1
        assert chapters[0].title == "Chapter 1"
        assert chapters[0].paragraphs == [["Just text."], ["More text."]]

    def test_detect_chapters_with_no_paragraphs(self):
        chapters = detect_chapters([])
        assert len(chapters) == 1
        assert chapters[0].paragraphs == []


class TestParseTextToBook:
    def test_chapters_from_markers(self):
        text = (
            "Chapter 1\n\n"
            "It was a dark night. The end came.\n\n"
            "Chapter 2\n\n"
            "Morning broke."
        )
        book = parse_text_to_book(text, title="Story", author="Someone")

        assert book.title == "Story"
        assert book.author == "Someone"
        assert book.language == "en"
        assert len(book.volumes) == 1
        assert book.volumes[0].is_placeholder
        assert not book.has_real_volumes

        chapters = book.volumes[0].chapters
        assert [(c.id, c.title) for c in chapters] == [("ch-1", "Chapter 1"), ("ch-2", "Chapter 2")]
        assert chapters[0].paragraphs == [["It was a dark night.", "The end came."]]
        assert chapters[1].paragraphs == [["Morning broke."]]

    def test_text_before_first_marker(self):
        book = parse_text_to_book("Preface text.\n\nChapter I\n\nBody.")
        chapters = book.volumes[0].chapters
        assert [c.title for c in chapters] == ["Chapter 1", "Chapter I"]
        assert chapters[0].paragraphs == [["Preface text."]]

    def test_numbered_heading(self):
        book = parse_text_to_book("1. Intro\n\nFirst words.\n\n2. Next\n\nSecond words.")
        assert [c.title for c in book.volumes[0].chapters] == ["1. Intro", "2. Next"]

    def test_defaults(self):
        book = parse_text_to_book("Привет. Как дела?")
        assert book.title == "Untitled Book"
        assert book.language == "ru"
        assert book.id.startswith("book-")
        assert _sentences(book.volumes[0].chapters[0]) == ["Привет.", "Как дела?"]

    def test_book_is_playable(self):
        book = parse_text_to_book("Chapter 1\n\nOne two three.\n\nChapter 2\n\nFour five.")
        it = BookIterator(book)
        assert [c.word_count for c in it] == [3, 2]


class TestLoadBook:
    def test_text_file(self, tmp_path):
        path = tmp_path / "my_story.txt"
        path.write_text("Chapter 1\n\nHello there.\n", encoding="utf-8")
        book = load_book(str(path))
        assert book.title == "my_story"
        assert _sentences(book.volumes[0].chapters[0]) == ["Hello there."]

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "book.docx"
        path.write_text("x")
        with pytest.raises(ValueError):
            load_book(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_book(str(tmp_path / "absent.txt"))

    def test_broken_pdf(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")
        with pytest.raises(RuntimeError):
            load_book(str(path))


# ---------------------------------------------------------------------------
# fitz documents
# ---------------------------------------------------------------------------


class TestPdf:
    def test_without_toc_is_one_chapter(self, tmp_path):
        book = load_book(str(_make_pdf(tmp_path / "plain.pdf")))

        assert book.title == "plain"
        assert len(book.volumes) == 1
        assert book.volumes[0].is_placeholder
        chapters = book.volumes[0].chapters
        assert len(chapters) == 1
        assert _sentences(chapters[0]) == PAGES

    def test_one_level_toc(self, tmp_path):
        path = _make_pdf(tmp_path / "toc.pdf", toc=[[1, "Opening", 1], [1, "Follow Up", 2]])
        book = load_book(str(path))

        assert not book.has_real_volumes
        chapters = book.volumes[0].chapters
        assert [c.title for c in chapters] == ["Opening", "Follow Up"]
        assert _sentences(chapters[0]) == [PAGES[0]]
        assert _sentences(chapters[1]) == [PAGES[1]]

    def test_two_level_toc(self, tmp_path):
        path = _make_pdf(
            tmp_path / "parts.pdf",
            toc=[[1, "Part One", 1], [2, "Opening", 1], [2, "Follow Up", 2]],
        )
        book = load_book(str(path))

        assert book.has_real_volumes
        assert [v.title for v in book.volumes] == ["Part One"]
        assert [c.title for c in book.volumes[0].chapters] == ["Opening", "Follow Up"]
        assert [c.id for c in book.volumes[0].chapters] == ["ch-1", "ch-2"]

    def test_adapter_context_manager(self, tmp_path):
        path = _make_pdf(tmp_path / "ctx.pdf")
        with DocumentAdapter(str(path)) as adapter:
            assert adapter.page_count == 2
            assert adapter.page_paragraphs(1) == [[PAGES[1]]]
            assert adapter.toc() == []
            assert "pages=2" in repr(adapter)
        assert adapter.doc is None

    def test_title_override(self, tmp_path):
        path = _make_pdf(tmp_path / "named.pdf")
        book = load_book(str(path), title="Given", author="Writer")
        assert book.title == "Given"
        assert book.author == "Writer"
