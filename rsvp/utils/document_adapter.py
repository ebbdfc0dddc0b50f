"""
Book import: turns files on disk into :class:`Book` structures.

Plain text goes through the paragraph/sentence splitter with simple
chapter-marker detection.  PDF, EPUB and FB2 are read with fitz
(PyMuPDF): every text block becomes a paragraph and the document's table
of contents, when it has one, decides the volume/chapter structure.
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import fitz

from rsvp.book.models import Book, Chapter, Volume
from rsvp.text.text_preprocessor import (
    clean_text,
    detect_language,
    preprocess_block,
    split_paragraphs,
    split_sentences,
)

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = (".txt",)
FITZ_SUFFIXES = (".pdf", ".epub", ".fb2")
SUPPORTED_SUFFIXES = TEXT_SUFFIXES + FITZ_SUFFIXES

PLACEHOLDER_VOLUME_ID = "vol-1"

# A paragraph whose first sentence matches one of these starts a chapter
_CHAPTER_PATTERNS = [
    re.compile(r"^Chapter\s+(\d+|[IVXLC]+)\b", re.IGNORECASE),
    re.compile(r"^Ch\.\s*(\d+)", re.IGNORECASE),
    re.compile(r"^(\d+)\.(\s|$)"),
    re.compile(r"^[IVXLC]+\.(\s|$)"),
    re.compile(r"^Глава\s+(\d+|[IVXLC]+)\b", re.IGNORECASE),
]


def _new_book_id() -> str:
    return f"book-{uuid.uuid4().hex[:12]}"


def is_chapter_marker(sentence: str) -> bool:
    """True if *sentence* looks like a chapter heading."""
    s = sentence.strip()
    return any(p.match(s) for p in _CHAPTER_PATTERNS)


# -----------------------------------------------------------------
# Plain text
# -----------------------------------------------------------------


def detect_chapters(paragraphs: List[List[str]]) -> List[Chapter]:
    """
    Group paragraphs into chapters at chapter-marker paragraphs.

    The marker paragraph becomes the title of the chapter that follows
    it.  Text before the first marker forms a chapter titled
    ``"Chapter 1"``.  Without any marker, all paragraphs go into that one
    chapter.
    """
    chapters: List[Chapter] = []
    current: List[List[str]] = []
    title = "Chapter 1"

    def _close():
        chapters.append(
            Chapter(id=f"ch-{len(chapters) + 1}", title=title, paragraphs=current)
        )

    for paragraph in paragraphs:
        if not paragraph:
            continue
        if is_chapter_marker(paragraph[0]):
            if current:
                _close()
                current = []
            title = " ".join(paragraph).strip()
            continue
        current.append(paragraph)

    if current:
        _close()

    if not chapters:
        chapters.append(Chapter(id="ch-1", title="Chapter 1", paragraphs=list(paragraphs)))

    return chapters


def parse_text_to_book(
    text: str,
    title: Optional[str] = None,
    author: Optional[str] = None,
    language: Optional[str] = None,
) -> Book:
    """
    Build a single-volume Book from plain text.

    Args:
        text:     Raw text; paragraphs are separated by blank lines.
        title:    Book title (defaults to ``"Untitled Book"``).
        author:   Optional author name.
        language: ``"en"``/``"ru"``; detected from the text when omitted.

    Returns:
        Book with one placeholder volume.
    """
    cleaned = clean_text(text)
    paragraphs = [split_sentences(p) for p in split_paragraphs(cleaned)]
    chapters = detect_chapters(paragraphs)

    book = Book(
        id=_new_book_id(),
        title=title or "Untitled Book",
        author=author,
        language=language or detect_language(cleaned),
        volumes=[Volume(id=PLACEHOLDER_VOLUME_ID, title="", chapters=chapters)],
    )
    logger.info(
        "Parsed text into %d chapters, %d paragraphs",
        len(chapters),
        sum(len(c.paragraphs or []) for c in chapters),
    )
    return book


# -----------------------------------------------------------------
# fitz-backed documents
# -----------------------------------------------------------------


def open_document(path: str) -> fitz.Document:
    """
    Open a PDF/EPUB/FB2 document.

    Raises:
        RuntimeError: If fitz cannot open the file.
    """
    try:
        doc = fitz.open(path)
    except Exception as e:
        raise RuntimeError(f"Failed to open document '{path}': {e}") from e
    return doc


class DocumentAdapter:
    """
    Keeps a fitz document open while its text is turned into a Book.

    Usage::

        with DocumentAdapter("novel.epub") as adapter:
            book = adapter.to_book()
    """

    def __init__(self, path: str):
        self.path = path
        self.doc = open_document(path)
        self.page_count = self.doc.page_count

    # -- text extraction ----------------------------------------------------

    def page_paragraphs(self, page_index: int) -> List[List[str]]:
        """Sentence-split paragraphs of one page, one or more per text block."""
        page = self.doc.load_page(page_index)
        paragraphs: List[List[str]] = []
        for block in page.get_text("blocks"):
            # (x0, y0, x1, y1, text, block_no, block_type); type 1 is an image
            if block[6] != 0:
                continue
            paragraphs.extend(preprocess_block(block[4]))
        return paragraphs

    def all_paragraphs(self) -> Dict[int, List[List[str]]]:
        return {i: self.page_paragraphs(i) for i in range(self.page_count)}

    def toc(self) -> List[Tuple[int, str, int]]:
        """Table of contents entries ``(level, title, page_index)`` for levels 1-2."""
        entries = []
        for level, title, page in self.doc.get_toc(simple=True):
            if level > 2 or page < 1:
                continue
            entries.append((level, title.strip(), page - 1))
        return entries

    # -- book assembly ------------------------------------------------------

    def to_book(self, title: Optional[str] = None, author: Optional[str] = None) -> Book:
        """Assemble the whole document into a Book."""
        pages = self.all_paragraphs()
        volumes = _volumes_from_toc(self.toc(), pages, self.page_count)

        if not volumes:
            everything = [p for i in range(self.page_count) for p in pages[i]]
            volumes = [
                Volume(
                    id=PLACEHOLDER_VOLUME_ID,
                    title="",
                    chapters=[Chapter(id="ch-1", title="Chapter 1", paragraphs=everything)],
                )
            ]

        metadata = self.doc.metadata or {}
        sample = " ".join(
            s for v in volumes for c in v.chapters for p in (c.paragraphs or []) for s in p
        )
        book = Book(
            id=_new_book_id(),
            title=title or metadata.get("title") or Path(self.path).stem,
            author=author or metadata.get("author") or None,
            language=detect_language(sample),
            volumes=volumes,
        )
        logger.info("Loaded %s from %s", book, self.path)
        return book

    # -- lifecycle ----------------------------------------------------------

    def close(self):
        if self.doc:
            self.doc.close()
            self.doc = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def __repr__(self):
        return f"DocumentAdapter('{self.path}', pages={self.page_count})"


def _volumes_from_toc(
    toc: List[Tuple[int, str, int]],
    pages: Dict[int, List[List[str]]],
    page_count: int,
) -> List[Volume]:
    """
    Split pages into volumes/chapters along the table of contents.

    Each entry owns the pages from its start up to the next entry's
    start.  With two levels, level-1 entries are volumes and level-2
    entries their chapters; with one level every entry is a chapter of a
    placeholder volume.  Pages before the first entry join the first
    section.  Sections without text are dropped.
    """
    if not toc:
        return []

    def _section(i: int) -> List[List[str]]:
        start = 0 if i == 0 else toc[i][2]
        end = toc[i + 1][2] if i + 1 < len(toc) else page_count
        return [p for page in range(start, end) for p in pages.get(page, [])]

    two_levels = any(level == 2 for level, _, _ in toc)
    volumes: List[Volume] = []
    chapter_no = 0

    def _volume() -> Volume:
        if not volumes:
            volumes.append(Volume(id=PLACEHOLDER_VOLUME_ID, title=""))
        return volumes[-1]

    for i, (level, title, _) in enumerate(toc):
        paragraphs = _section(i)
        if two_levels and level == 1:
            volumes.append(Volume(id=f"vol-{len(volumes) + 1}", title=title))
            if not paragraphs:
                continue
        if not paragraphs:
            logger.debug("TOC entry %r has no text, skipped", title)
            continue
        chapter_no += 1
        _volume().chapters.append(
            Chapter(id=f"ch-{chapter_no}", title=title, paragraphs=paragraphs)
        )

    return [v for v in volumes if v.chapters]


# -----------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------


def load_book(path: str, title: Optional[str] = None, author: Optional[str] = None) -> Book:
    """
    Load a book from *path*, picking the reader by file suffix.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError:        If the suffix is not supported.
        RuntimeError:      If fitz cannot open the document.
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(
            f"Unsupported file format '{suffix}'. Supported: {', '.join(SUPPORTED_SUFFIXES)}"
        )
    if not p.exists():
        raise FileNotFoundError(f"No such file: '{path}'")

    if suffix in TEXT_SUFFIXES:
        text = p.read_text(encoding="utf-8", errors="replace")
        return parse_text_to_book(text, title=title or p.stem, author=author)

    with DocumentAdapter(str(p)) as adapter:
        return adapter.to_book(title=title, author=author)
