"""
Tests for chapter flattening.

Run: python -m pytest tests/test_flattener.py -q
"""

from conftest import TWO_PARAGRAPHS, make_book

from rsvp.book.flattener import (
    FlatChapter,
    flatten_book_chapter,
    flatten_chapter,
    preview_chapter,
)
from rsvp.book.models import Chapter


class TestFlattenChapter:
    def test_positions_and_word_count(self):
        flat = flatten_chapter(Chapter(id="c", title="T", paragraphs=TWO_PARAGRAPHS))

        assert flat.sentence_count == 4
        assert flat.word_count == 8
        assert flat.paragraph_count == 2
        assert [(s.paragraph_index, s.sentence_index) for s in flat] == [
            (0, 0),
            (0, 1),
            (0, 2),
            (1, 0),
        ]
        assert flat[3].parsed.words[0].text == "Seven"
        assert flat.title == "T" and flat.chapter_id == "c"

    def test_paragraph_end_markers(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=TWO_PARAGRAPHS))
        assert [s.ends_paragraph for s in flat] == [False, False, True, True]

    def test_paragraph_end_skips_trailing_empty_sentence(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=[["Real words.", "..."]]))
        assert [s.ends_paragraph for s in flat] == [True, False]
        assert flat[1].word_count == 0

    def test_empty_paragraphs_are_skipped(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=[[], ["Only this."], []]))
        assert flat.sentence_count == 1
        assert flat[0].paragraph_index == 1

    def test_zero_paragraphs(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=[]))
        assert flat.is_empty
        assert flat.sentence_count == 0

    def test_content_fallback_is_one_sentence(self):
        flat = flatten_chapter(Chapter(id="c", content="First bit. Second bit."))
        assert flat.sentence_count == 1
        assert flat.word_count == 4
        assert flat[0].parsed.ending_punctuation == "."
        assert flat[0].ends_paragraph

    def test_none_chapter(self):
        flat = flatten_chapter(None, volume_id="v")
        assert isinstance(flat, FlatChapter)
        assert flat.is_empty and flat.volume_id == "v"

    def test_punctuation_only_chapter_is_empty(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=[["...", "!!"]]))
        assert flat.sentence_count == 2
        assert flat.is_empty
        assert flat.readable_sentence_count == 0

    def test_readable_ordinal(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=[["...", "One."], ["--", "Two three."]]))
        assert flat.readable_sentence_count == 2
        assert [flat.readable_ordinal(i) for i in range(4)] == [0, 1, 1, 2]


class TestFlattenBookChapter:
    def test_found(self):
        book = make_book(TWO_PARAGRAPHS, [["Other chapter."]])
        flat = flatten_book_chapter(book, "vol-1", "ch-2")
        assert flat.word_count == 2
        assert flat.volume_id == "vol-1"

    def test_missing_ids_give_empty_chapter(self):
        book = make_book(TWO_PARAGRAPHS)
        assert flatten_book_chapter(book, "vol-1", "nope").is_empty
        assert flatten_book_chapter(book, "vol-9", "ch-1").is_empty
        assert flatten_book_chapter(None, "vol-1", "ch-1").is_empty


class TestPreview:
    def test_lines(self):
        flat = flatten_chapter(
            Chapter(
                id="ch-1",
                title="Start",
                paragraphs=[['He said "hello" (quietly).', "Did he"], ["..."]],
            )
        )
        lines = preview_chapter(flat).splitlines()

        assert lines[0] == '[CHAPTER ch-1 "Start"] 3 sentences, 6 words'
        assert lines[1] == "[P1 S1 .] He said «hello» (quietly)"
        assert lines[2] == "[P1 S2 -¶] Did he"
        assert lines[3] == "[P2 S1 .] (empty)"

    def test_truncation(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=TWO_PARAGRAPHS))
        text = preview_chapter(flat, max_sentences=1)
        assert text.splitlines()[-1] == "... 3 more sentences"
