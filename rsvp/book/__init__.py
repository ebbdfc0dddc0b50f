"""Book structure, chapter flattening, and chapter iteration."""

from .flattener import (
    FlatChapter,
    FlatSentence,
    flatten_book_chapter,
    flatten_chapter,
    preview_chapter,
)
from .iterator import BookIterator, ChapterRef
from .models import Book, Chapter, Volume

__all__ = [
    "Book",
    "Volume",
    "Chapter",
    "FlatChapter",
    "FlatSentence",
    "flatten_chapter",
    "flatten_book_chapter",
    "preview_chapter",
    "BookIterator",
    "ChapterRef",
]
