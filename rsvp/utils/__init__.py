from .document_adapter import (
    SUPPORTED_SUFFIXES,
    DocumentAdapter,
    detect_chapters,
    is_chapter_marker,
    load_book,
    open_document,
    parse_text_to_book,
)

__all__ = [
    "DocumentAdapter",
    "SUPPORTED_SUFFIXES",
    "detect_chapters",
    "is_chapter_marker",
    "load_book",
    "open_document",
    "parse_text_to_book",
]
