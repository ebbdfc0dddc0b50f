"""Sentence parsing and text preprocessing."""

from .models import ENDING_PUNCTUATION, ParsedSentence, Word
from .sentence_parser import parse_sentence, strip_to_word
from .text_preprocessor import (
    clean_text,
    detect_language,
    preprocess_block,
    split_paragraphs,
    split_sentences,
)

__all__ = [
    "Word",
    "ParsedSentence",
    "ENDING_PUNCTUATION",
    "parse_sentence",
    "strip_to_word",
    "clean_text",
    "detect_language",
    "split_paragraphs",
    "split_sentences",
    "preprocess_block",
]
