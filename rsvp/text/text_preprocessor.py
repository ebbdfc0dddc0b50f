"""
Text preprocessing for book import.

Cleans raw extracted text, splits it into paragraphs on blank lines, and
splits paragraphs into sentences with a simple ending-punctuation
heuristic.
"""

import html
import re
from typing import List

# -----------------------------------------------------------------
# Regex patterns
# -----------------------------------------------------------------

# Hyphenation at line break: "com-\nputer" → "computer"
_RE_HYPHEN_LINEBREAK = re.compile(r"(\w)-[ \t]*\n[ \t]*(\w)")

_RE_MULTI_WHITESPACE = re.compile(r"[ \t\f\v]+")
_RE_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")

# Sentence boundary: ending punctuation (optionally followed by closing
# quotes/brackets), then whitespace.
_RE_SENTENCE_BOUNDARY = re.compile(r"[.!?…]+[\"”»'’)\]]*(\s+)")

_RE_CYRILLIC = re.compile(r"[а-яёА-ЯЁ]")

# Words that end in a period without ending the sentence
ABBREVIATIONS = frozenset(
    "Dr Mr Mrs Ms Prof Sr Jr Inc Ltd Corp Co vs etc i.e e.g a.m p.m A.M P.M".split()
)

# A single capital before a period is an initial ("J. R. R. Tolkien")
_RE_INITIAL = re.compile(r"^[A-ZА-ЯЁ]$")


# -----------------------------------------------------------------
# Public API
# -----------------------------------------------------------------


def clean_text(text: str) -> str:
    """
    Normalise raw extracted text while keeping paragraph breaks.

    Steps:
    1. Unescape HTML entities and drop soft hyphens
    2. Rejoin words hyphenated across a line break
    3. Collapse runs of spaces/tabs
    4. Strip each line
    """
    if not text:
        return ""

    t = html.unescape(text)
    t = t.replace("\r\n", "\n").replace("\r", "\n").replace("\u00ad", "")
    t = _RE_HYPHEN_LINEBREAK.sub(r"\1\2", t)
    t = _RE_MULTI_WHITESPACE.sub(" ", t)
    t = "\n".join(line.strip() for line in t.split("\n"))
    return t.strip()


def split_paragraphs(text: str) -> List[str]:
    """
    Split text into paragraphs on blank lines.

    Single newlines inside a paragraph are joined with a space.
    """
    if not text:
        return []

    paragraphs = []
    for chunk in _RE_PARAGRAPH_BREAK.split(text):
        para = " ".join(line.strip() for line in chunk.split("\n") if line.strip())
        if para:
            paragraphs.append(para)
    return paragraphs


def split_sentences(text: str) -> List[str]:
    """
    Split a paragraph into sentences.

    A boundary is ending punctuation (``. ! ? …``) followed by whitespace,
    unless the word before a period is a known abbreviation or an initial.

    Returns a list of non-empty sentence strings.
    """
    if not text:
        return []

    sentences = []
    last = 0

    for m in _RE_SENTENCE_BOUNDARY.finditer(text):
        start = m.start()
        preceding = text[last:start].rstrip()
        word_before = preceding.split()[-1] if preceding.split() else ""
        word_before = word_before.lstrip("(\"'“«")
        if text[start] == "." and (
            word_before in ABBREVIATIONS or _RE_INITIAL.match(word_before)
        ):
            continue

        split_at = m.start(1)
        sentence = text[last:split_at].strip()
        if sentence:
            sentences.append(sentence)
        last = m.end()

    tail = text[last:].strip()
    if tail:
        sentences.append(tail)

    return sentences


def detect_language(text: str) -> str:
    """Return ``"ru"`` if *text* contains Cyrillic letters, else ``"en"``."""
    return "ru" if _RE_CYRILLIC.search(text or "") else "en"


def preprocess_block(text: str) -> List[List[str]]:
    """
    Full preprocessing: clean, split into paragraphs, then sentences.

    Returns:
        List of paragraphs, each a list of sentence strings.  Paragraphs
        that produce no sentences are dropped.
    """
    cleaned = clean_text(text)
    result = []
    for para in split_paragraphs(cleaned):
        sentences = split_sentences(para)
        if sentences:
            result.append(sentences)
    return result
