"""
Flattens a chapter's paragraph/sentence hierarchy into an ordered,
randomly indexable list of parsed sentences.

The flat list is what the playback controller walks.  Each entry keeps
the paragraph and in-paragraph sentence indices it came from plus an
``ends_paragraph`` marker on the last sentence of each paragraph that
has any words.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from rsvp.text.models import ParsedSentence
from rsvp.text.sentence_parser import parse_sentence

from .models import Book, Chapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlatSentence:
    """One parsed sentence and where it sits in the chapter."""

    paragraph_index: int
    sentence_index: int
    parsed: ParsedSentence
    ends_paragraph: bool = False

    @property
    def word_count(self) -> int:
        return len(self.parsed.words)


@dataclass
class FlatChapter:
    """
    Parsed sentences of one chapter in reading order.

    An empty FlatChapter (no sentences, or no words at all) signals
    "nothing to play" to the controller.
    """

    sentences: List[FlatSentence] = field(default_factory=list)
    word_count: int = 0
    chapter_id: str = ""
    volume_id: str = ""
    title: str = ""

    @property
    def is_empty(self) -> bool:
        return self.word_count == 0

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)

    @property
    def readable_sentence_count(self) -> int:
        """Sentences with at least one word."""
        return sum(1 for s in self.sentences if s.word_count)

    def readable_ordinal(self, sentence_index: int) -> int:
        """1-based rank of *sentence_index* among the sentences that have words."""
        return sum(1 for s in self.sentences[: sentence_index + 1] if s.word_count)

    @property
    def paragraph_count(self) -> int:
        indices = {s.paragraph_index for s in self.sentences}
        return len(indices)

    def __len__(self) -> int:
        return len(self.sentences)

    def __getitem__(self, index: int) -> FlatSentence:
        return self.sentences[index]

    def __repr__(self) -> str:
        return (
            f"FlatChapter({self.chapter_id!r}, sentences={self.sentence_count}, "
            f"words={self.word_count})"
        )


# -----------------------------------------------------------------
# Flattening
# -----------------------------------------------------------------


def _flatten_paragraph(paragraph_index: int, sentences: List[str]) -> List[FlatSentence]:
    parsed = [parse_sentence(s) for s in sentences]

    # The paragraph boundary sits on its last sentence that has words
    last_spoken = -1
    for i, p in enumerate(parsed):
        if p.words:
            last_spoken = i

    return [
        FlatSentence(
            paragraph_index=paragraph_index,
            sentence_index=i,
            parsed=p,
            ends_paragraph=i == last_spoken,
        )
        for i, p in enumerate(parsed)
    ]


def flatten_chapter(chapter: Optional[Chapter], volume_id: str = "") -> FlatChapter:
    """
    Run every sentence of *chapter* through the sentence parser.

    Uses ``chapter.paragraphs`` when present, otherwise the raw
    ``chapter.content`` as one paragraph holding one sentence.
    Paragraphs without sentences contribute nothing.

    Args:
        chapter:   Chapter to flatten (``None`` yields an empty result).
        volume_id: Id of the owning volume, carried for lookups.

    Returns:
        :class:`FlatChapter`.
    """
    if chapter is None:
        return FlatChapter(volume_id=volume_id)

    flat = FlatChapter(chapter_id=chapter.id, volume_id=volume_id, title=chapter.title)

    if chapter.paragraphs:
        for p_idx, paragraph in enumerate(chapter.paragraphs):
            if not paragraph:
                continue
            flat.sentences.extend(_flatten_paragraph(p_idx, paragraph))
    elif chapter.content:
        flat.sentences.extend(_flatten_paragraph(0, [chapter.content]))

    flat.word_count = sum(s.word_count for s in flat.sentences)

    logger.debug(
        "Flattened chapter %r: %d sentences, %d words",
        chapter.id,
        flat.sentence_count,
        flat.word_count,
    )
    return flat


def flatten_book_chapter(book: Optional[Book], volume_id: str, chapter_id: str) -> FlatChapter:
    """
    Look up a chapter by ids and flatten it.

    A missing book, volume or chapter yields an empty FlatChapter rather
    than an error, so callers can report "nothing to play".
    """
    chapter = book.find_chapter(volume_id, chapter_id) if book else None
    if chapter is None:
        logger.warning(
            "Chapter %r in volume %r not found, nothing to play",
            chapter_id,
            volume_id,
        )
        return FlatChapter(chapter_id=chapter_id, volume_id=volume_id)
    return flatten_chapter(chapter, volume_id=volume_id)


# -----------------------------------------------------------------
# Debug preview
# -----------------------------------------------------------------


def preview_chapter(flat: FlatChapter, max_sentences: Optional[int] = None) -> str:
    """
    Format a flattened chapter as a human-readable string for review.

    Quoted words are wrapped in «», bracketed words in (), and every
    sentence is tagged with its paragraph/sentence position and ending
    punctuation.  ``¶`` marks a paragraph boundary.

    Example output::

        [CHAPTER ch-1 "The Start"] 3 sentences, 14 words
        [P1 S1 .] He said «hello» «there» (quietly)
        [P1 S2 ?¶] Did he
        [P2 S1 -] (empty)
    """
    lines = [
        f'[CHAPTER {flat.chapter_id} "{flat.title}"] '
        f"{flat.sentence_count} sentences, {flat.word_count} words"
    ]

    sentences = flat.sentences
    if max_sentences is not None:
        sentences = sentences[:max_sentences]

    for s in sentences:
        ending = s.parsed.ending_punctuation or "-"
        marker = "¶" if s.ends_paragraph else ""
        tag = f"[P{s.paragraph_index + 1} S{s.sentence_index + 1} {ending}{marker}]"

        if not s.parsed.words:
            lines.append(f"{tag} (empty)")
            continue

        rendered = []
        for w in s.parsed.words:
            text = w.text
            if w.in_quotes:
                text = f"«{text}»"
            if w.in_brackets:
                text = f"({text})"
            rendered.append(text)
        lines.append(f"{tag} {' '.join(rendered)}")

    hidden = flat.sentence_count - len(sentences)
    if hidden > 0:
        lines.append(f"... {hidden} more sentences")

    return "\n".join(lines)
