"""
Chapter-level access to a book for the playback controller.

:class:`BookIterator` presents a book as an indexable sequence of
:class:`FlatChapter` objects in reading order.  Chapters are flattened on
first access and kept in a small LRU cache, so opening a long book does
not parse every chapter up front.
"""

import logging
from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import List, Optional, Tuple

from tqdm import tqdm

from .flattener import FlatChapter, flatten_chapter
from .models import Book, Chapter, Volume

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 10


@dataclass(frozen=True)
class ChapterRef:
    """Position of a chapter in the book's reading order."""

    index: int
    volume_id: str
    chapter_id: str
    volume_title: str
    title: str


class BookIterator(Sequence):
    """
    Read-only, lazily flattened view of a :class:`Book`.

    ``iterator[i]`` returns the flattened chapter at reading-order index
    *i*.  Volumes are transparent: chapter indices run across all of
    them.
    """

    def __init__(self, book: Book, max_cache_size: int = DEFAULT_CACHE_SIZE):
        if max_cache_size < 1:
            raise ValueError(f"max_cache_size must be >= 1, got {max_cache_size}")

        self.book = book
        self.max_cache_size = max_cache_size
        self._order: List[Tuple[Volume, Chapter]] = list(book.iter_chapters())
        self._cache: "OrderedDict[int, FlatChapter]" = OrderedDict()
        self.cache_hits = 0
        self.cache_misses = 0

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._order)

    def __getitem__(self, index: int) -> FlatChapter:
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        if index < 0:
            index += len(self._order)
        if not 0 <= index < len(self._order):
            raise IndexError(f"Chapter index {index} out of range ({len(self)} chapters)")
        return self._get_flat(index)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def ref(self, index: int) -> ChapterRef:
        volume, chapter = self._order[index]
        return ChapterRef(
            index=index,
            volume_id=volume.id,
            chapter_id=chapter.id,
            volume_title=volume.title,
            title=chapter.title,
        )

    def chapter_refs(self) -> List[ChapterRef]:
        return [self.ref(i) for i in range(len(self))]

    def index_of(self, volume_id: str, chapter_id: str) -> Optional[int]:
        """Reading-order index of a chapter, or ``None`` if it does not exist."""
        for i, (volume, chapter) in enumerate(self._order):
            if volume.id == volume_id and chapter.id == chapter_id:
                return i
        return None

    def get_chapter(self, volume_id: str, chapter_id: str) -> FlatChapter:
        """Flattened chapter by ids; empty when the ids are unknown."""
        index = self.index_of(volume_id, chapter_id)
        if index is None:
            logger.warning(
                "Unknown chapter %r in volume %r, returning empty chapter",
                chapter_id,
                volume_id,
            )
            return FlatChapter(chapter_id=chapter_id, volume_id=volume_id)
        return self._get_flat(index)

    def next_chapter_index(self, index: int) -> Optional[int]:
        return index + 1 if index + 1 < len(self) else None

    def prev_chapter_index(self, index: int) -> Optional[int]:
        return index - 1 if index > 0 else None

    # ------------------------------------------------------------------
    # Whole-book helpers
    # ------------------------------------------------------------------

    def flatten_book(self, disable_tqdm: bool = False) -> List[FlatChapter]:
        """Flatten every chapter, showing a progress bar for long books."""
        chapters = []
        for i in tqdm(range(len(self)), desc="Parsing", unit="chapter", disable=disable_tqdm):
            chapters.append(self._flatten(i))
        return chapters

    def total_word_count(self, disable_tqdm: bool = True) -> int:
        return sum(c.word_count for c in self.flatten_book(disable_tqdm=disable_tqdm))

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _get_flat(self, index: int) -> FlatChapter:
        cached = self._cache.get(index)
        if cached is not None:
            self._cache.move_to_end(index)
            self.cache_hits += 1
            return cached

        self.cache_misses += 1
        flat = self._flatten(index)
        self._cache[index] = flat
        if len(self._cache) > self.max_cache_size:
            evicted, _ = self._cache.popitem(last=False)
            logger.debug("Evicted chapter %d from cache", evicted)
        return flat

    def _flatten(self, index: int) -> FlatChapter:
        volume, chapter = self._order[index]
        return flatten_chapter(chapter, volume_id=volume.id)

    def __repr__(self) -> str:
        return (
            f"BookIterator({self.book.title!r}, chapters={len(self)}, "
            f"cached={self.cache_size}/{self.max_cache_size})"
        )
