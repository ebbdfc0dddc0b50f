"""
Data models for parsed sentences and annotated words.
"""

from dataclasses import dataclass, field
from typing import List

# Characters that can end a sentence, in the order they are recognised
ENDING_PUNCTUATION = ".!?…"


@dataclass(frozen=True)
class Word:
    """
    A single displayable word with its reading context.

    ``text`` holds letters and digits only (punctuation stripped) and is
    never empty.  ``ending_punctuation`` is set on the final word of a
    sentence only.
    """

    text: str
    in_brackets: bool = False
    in_quotes: bool = False
    ending_punctuation: str = ""

    @property
    def is_sentence_final(self) -> bool:
        return bool(self.ending_punctuation)

    def __repr__(self) -> str:
        flags = ""
        if self.in_brackets:
            flags += "()"
        if self.in_quotes:
            flags += '""'
        tail = f" {self.ending_punctuation}" if self.ending_punctuation else ""
        return f"Word({self.text!r}{' ' + flags if flags else ''}{tail})"


@dataclass(frozen=True)
class ParsedSentence:
    """
    A sentence broken into annotated words.

    ``words`` is empty only for whitespace- or punctuation-only input.
    """

    words: List[Word] = field(default_factory=list)
    ending_punctuation: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.words

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)

    def __len__(self) -> int:
        return len(self.words)
