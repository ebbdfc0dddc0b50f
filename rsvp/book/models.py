"""
Book structure data models.

A book is supplied by a storage collaborator and is read-only to the
reader: volumes → chapters → paragraphs → sentences.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


@dataclass
class Chapter:
    """
    One chapter of a book.

    ``paragraphs`` is a list of paragraphs, each a list of sentence
    strings already split by the importer.  Older imports carry a single
    raw ``content`` string instead.
    """

    id: str
    title: str = ""
    paragraphs: Optional[List[List[str]]] = None
    content: Optional[str] = None

    @property
    def has_paragraphs(self) -> bool:
        return bool(self.paragraphs)

    @property
    def sentence_count(self) -> int:
        if self.paragraphs:
            return sum(len(p) for p in self.paragraphs)
        return 1 if self.content and self.content.strip() else 0


@dataclass
class Volume:
    """A group of chapters.  An empty title marks a placeholder volume."""

    id: str
    title: str = ""
    chapters: List[Chapter] = field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return self.title == ""


@dataclass
class Book:
    """A whole book as handed over by the storage collaborator."""

    id: str
    title: str
    volumes: List[Volume] = field(default_factory=list)
    author: Optional[str] = None
    language: str = "en"

    @property
    def has_real_volumes(self) -> bool:
        """True unless the book is a single placeholder volume."""
        return len(self.volumes) > 1 or (
            len(self.volumes) == 1 and not self.volumes[0].is_placeholder
        )

    def iter_chapters(self) -> Iterator[Tuple[Volume, Chapter]]:
        """Yield ``(volume, chapter)`` pairs in reading order."""
        for volume in self.volumes:
            for chapter in volume.chapters:
                yield volume, chapter

    def find_chapter(self, volume_id: str, chapter_id: str) -> Optional[Chapter]:
        for volume in self.volumes:
            if volume.id != volume_id:
                continue
            for chapter in volume.chapters:
                if chapter.id == chapter_id:
                    return chapter
        return None

    def __repr__(self) -> str:
        chapters = sum(len(v.chapters) for v in self.volumes)
        return (
            f"Book({self.title!r}, volumes={len(self.volumes)}, "
            f"chapters={chapters}, lang={self.language})"
        )
