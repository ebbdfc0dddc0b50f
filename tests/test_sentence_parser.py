"""
Tests for the sentence parser.

Run: python -m pytest tests/test_sentence_parser.py -q
"""

import re

import pytest

from rsvp.text.models import ParsedSentence, Word
from rsvp.text.sentence_parser import (
    find_ending_punctuation,
    parse_sentence,
    strip_to_word,
)


def _texts(parsed: ParsedSentence):
    return [w.text for w in parsed.words]


def _by_text(parsed: ParsedSentence):
    return {w.text: w for w in parsed.words}


# ---------------------------------------------------------------------------
# Word extraction
# ---------------------------------------------------------------------------


class TestWords:
    @pytest.mark.parametrize(
        "sentence",
        [
            "Plain words only",
            "  leading and   trailing   whitespace  ",
            'Mixed -- punctuation ... "tokens" !!',
            "Числа 42 и буквы, вместе.",
            "tabs\tand\nnewlines",
            "a_b __ (x)",
        ],
    )
    def test_word_count_matches_alphanumeric_tokens(self, sentence):
        parsed = parse_sentence(sentence)
        tokens = [t for t in sentence.split() if re.search(r"[^\W_]", t)]
        assert len(parsed.words) == len(tokens)
        assert all(w.text for w in parsed.words)
        assert all(re.fullmatch(r"[^\W_]+", w.text) for w in parsed.words)

    def test_punctuation_is_stripped(self):
        parsed = parse_sentence("Well, it's (sort-of) done!")
        assert _texts(parsed) == ["Well", "its", "sortof", "done"]

    def test_pure_punctuation_tokens_are_dropped(self):
        parsed = parse_sentence("Wait -- what ?")
        assert _texts(parsed) == ["Wait", "what"]

    @pytest.mark.parametrize("sentence", ["", "   ", "...", "-- !! ?", "( ) « »"])
    def test_empty_or_punctuation_only_input(self, sentence):
        parsed = parse_sentence(sentence)
        assert parsed.words == []
        assert parsed.is_empty

    def test_strip_to_word(self):
        assert strip_to_word('"Hello,"') == "Hello"
        assert strip_to_word("…") == ""
        assert strip_to_word("l'été") == "lété"


# ---------------------------------------------------------------------------
# Ending punctuation
# ---------------------------------------------------------------------------


class TestEndingPunctuation:
    @pytest.mark.parametrize(
        "sentence, expected",
        [
            ("It ends here.", "."),
            ("Does it?", "?"),
            ("Stop!", "!"),
            ("And then…", "…"),
            ("No ending at all", ""),
        ],
    )
    def test_sentence_level_value(self, sentence, expected):
        parsed = parse_sentence(sentence)
        assert parsed.ending_punctuation == expected
        assert parsed.words[-1].ending_punctuation == expected

    def test_first_mark_wins(self):
        assert find_ending_punctuation("Really?! Yes.") == "?"

    def test_only_last_word_carries_it(self):
        parsed = parse_sentence("One two three.")
        assert [w.ending_punctuation for w in parsed.words] == ["", "", "."]
        assert parsed.words[-1].is_sentence_final

    def test_detached_mark_goes_to_last_word(self):
        parsed = parse_sentence("Really ?")
        assert parsed.words[-1] == Word("Really", ending_punctuation="?")

    def test_empty_words_keep_sentence_value(self):
        parsed = parse_sentence("...")
        assert parsed.ending_punctuation == "."
        assert parsed.words == []


# ---------------------------------------------------------------------------
# Bracket and quote context
# ---------------------------------------------------------------------------


class TestContext:
    def test_quotes_and_brackets_example(self):
        parsed = parse_sentence('He said "hello there" (quietly).')
        words = _by_text(parsed)

        assert parsed.words[-1].text == "quietly"
        assert parsed.words[-1].ending_punctuation == "."
        assert words["hello"].in_quotes and words["there"].in_quotes
        assert words["quietly"].in_brackets
        assert not words["quietly"].in_quotes
        for name in ("He", "said"):
            assert not words[name].in_quotes
            assert not words[name].in_brackets

    def test_multi_word_brackets(self):
        parsed = parse_sentence("Before (inside the aside) after")
        flags = [(w.text, w.in_brackets) for w in parsed.words]
        assert flags == [
            ("Before", False),
            ("inside", True),
            ("the", True),
            ("aside", True),
            ("after", False),
        ]

    def test_nested_brackets(self):
        parsed = parse_sentence("a ([b] c) d")
        assert [w.in_brackets for w in parsed.words] == [False, True, True, False]

    def test_guillemets(self):
        parsed = parse_sentence("Он сказал «привет всем» и ушёл")
        flags = {w.text: w.in_quotes for w in parsed.words}
        assert flags["привет"] and flags["всем"]
        assert not flags["сказал"] and not flags["ушёл"]

    def test_quote_opened_by_punctuation_token(self):
        parsed = parse_sentence('He said " wait here " twice')
        flags = {w.text: w.in_quotes for w in parsed.words}
        assert flags["wait"] and flags["here"]
        assert not flags["twice"]

    def test_unbalanced_closer_does_not_go_negative(self):
        parsed = parse_sentence("test) more")
        assert not any(w.in_brackets for w in parsed.words)

        # A following opener still works from zero
        parsed = parse_sentence("test) more (inner) outer")
        flags = {w.text: w.in_brackets for w in parsed.words}
        assert flags["inner"]
        assert not flags["more"] and not flags["outer"]

    def test_state_does_not_carry_between_calls(self):
        first = parse_sentence('She began "an open quote and (bracket')
        assert first.words[-1].in_quotes and first.words[-1].in_brackets

        second = parse_sentence("that never closed.")
        assert not any(w.in_quotes or w.in_brackets for w in second.words)

    def test_deterministic(self):
        s = 'A "b" (c) d.'
        assert parse_sentence(s) == parse_sentence(s)
