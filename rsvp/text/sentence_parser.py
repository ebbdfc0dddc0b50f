"""
Sentence parser: raw sentence text → annotated word stream.

Each call starts with a fresh bracket depth and quote state, so a quote
or bracket opened in one sentence is not seen by the next one.
"""

import re
from dataclasses import replace
from typing import List

from .models import ENDING_PUNCTUATION, ParsedSentence, Word

_RE_WHITESPACE = re.compile(r"\s+")

# Anything that is not a Unicode letter or digit
_RE_NON_WORD = re.compile(r"[\W_]+", re.UNICODE)

# First letter or digit of a token
_RE_WORD_CHAR = re.compile(r"[^\W_]", re.UNICODE)

_RE_ENDING = re.compile(f"[{re.escape(ENDING_PUNCTUATION)}]")

OPEN_BRACKETS = "([{"
CLOSE_BRACKETS = ")]}"
QUOTE_CHARS = "\"“”'«»"


def strip_to_word(token: str) -> str:
    """Remove every character that is not a letter or digit."""
    return _RE_NON_WORD.sub("", token)


def find_ending_punctuation(sentence: str) -> str:
    """Return the first ending punctuation mark in *sentence*, or ``""``."""
    match = _RE_ENDING.search(sentence.strip())
    return match.group(0) if match else ""


def _count(token: str, chars: str) -> int:
    return sum(token.count(c) for c in chars)


def parse_sentence(sentence: str) -> ParsedSentence:
    """
    Parse a sentence into words annotated with bracket/quote context.

    Tokens are whitespace-delimited.  Every token updates the running
    bracket depth and quote state, but only tokens containing letters or
    digits yield a word.  Bracket depth is clamped at zero so stray
    closers never go negative, and an odd number of quote characters in
    a token toggles the quoted state.

    A word's flags describe the context at its first letter: the state
    left by earlier tokens plus any marks leading the token, so both
    `"hello` and `there"` read as quoted and `(quietly).` as bracketed.

    The sentence's ending punctuation is carried by its final word.  When
    the text ends in a detached mark (``"Really ?"``), the last word that
    has any letters carries it.

    Args:
        sentence: Raw sentence text.

    Returns:
        :class:`ParsedSentence`; never raises.
    """
    if not sentence:
        return ParsedSentence()

    stripped = sentence.strip()
    ending = find_ending_punctuation(stripped)

    words: List[Word] = []
    bracket_depth = 0
    in_quotes = False

    for token in _RE_WHITESPACE.split(stripped):
        if not token:
            continue

        text = strip_to_word(token)
        if text:
            lead = token[: _RE_WORD_CHAR.search(token).start()]
            lead_delta = _count(lead, OPEN_BRACKETS) - _count(lead, CLOSE_BRACKETS)
            word = Word(
                text=text,
                in_brackets=max(0, bracket_depth + lead_delta) > 0,
                in_quotes=in_quotes != (_count(lead, QUOTE_CHARS) % 2 == 1),
            )

        delta = _count(token, OPEN_BRACKETS) - _count(token, CLOSE_BRACKETS)
        bracket_depth = max(0, bracket_depth + delta)

        if _count(token, QUOTE_CHARS) % 2 == 1:
            in_quotes = not in_quotes

        if text:
            words.append(word)

    if words and ending:
        words[-1] = replace(words[-1], ending_punctuation=ending)

    return ParsedSentence(words=words, ending_punctuation=ending)
