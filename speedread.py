#!/usr/bin/env python3
"""
RSVP Reader — CLI entry point.

Shows a book one word at a time in the terminal at a controllable rate,
optionally pausing at every sentence or paragraph end.

Usage::

    python speedread.py book.txt
    python speedread.py novel.epub --wpm 250 --max-wpm 450 --warmup 90
    python speedread.py paper.pdf --auto-stop paragraph --chapter 3
    python speedread.py novel.fb2 --list-chapters
    python speedread.py book.txt --preview --chapter 2 -v 2

Verbosity levels::

    -v 0   Quiet — warnings and errors only.
    -v 1   Normal — load summary and progress bars (default).
    -v 2   Debug — per-transition detail, cache activity.
"""

import argparse
import logging
import sys
from pathlib import Path

from rsvp.book.flattener import preview_chapter
from rsvp.playback.models import AutoStopMode, InvalidConfiguration, PlaybackCallbacks, PlaybackState
from rsvp.session import ReaderConfig, ReadingSession
from rsvp.text.models import Word
from rsvp.utils.document_adapter import SUPPORTED_SUFFIXES, load_book

logger = logging.getLogger("rsvp")

# Mapping from --verbose integer to logging level
_VERBOSITY_MAP = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


# ------------------------------------------------------------------
# Argument parsing
# ------------------------------------------------------------------


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'")
    if n <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {n}")
    return n


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser with all reader options."""
    p = argparse.ArgumentParser(
        description="Read a book word by word (RSVP) in the terminal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python speedread.py book.txt\n"
            "  python speedread.py novel.epub --wpm 250 --max-wpm 450\n"
            "  python speedread.py paper.pdf --auto-stop paragraph --chapter 3\n"
            "  python speedread.py book.txt --preview --chapter 2\n"
        ),
    )

    p.add_argument("input", help=f"Book file ({', '.join(SUPPORTED_SUFFIXES)})")

    # -- Rate --------------------------------------------------------------
    rate = p.add_argument_group("rate")
    rate.add_argument(
        "--wpm",
        type=_positive_int,
        default=300,
        metavar="N",
        help="Starting rate in words per minute (default: 300)",
    )
    rate.add_argument(
        "--max-wpm",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Rate reached after the warm-up (default: no warm-up)",
    )
    rate.add_argument(
        "--warmup",
        type=float,
        default=60.0,
        metavar="SECONDS",
        help="Warm-up length in seconds (default: 60)",
    )

    # -- Playback ----------------------------------------------------------
    playback = p.add_argument_group("playback")
    playback.add_argument(
        "--auto-stop",
        default=AutoStopMode.DISABLED.value,
        choices=[m.value for m in AutoStopMode],
        help="Pause at every sentence or paragraph end (default: disabled)",
    )
    playback.add_argument(
        "--chapter",
        type=_positive_int,
        default=1,
        metavar="N",
        help="Chapter to start at, 1-based across all volumes (default: 1)",
    )

    # -- Inspection --------------------------------------------------------
    inspect = p.add_argument_group("debug & output")
    inspect.add_argument(
        "--list-chapters",
        action="store_true",
        help="List the book's volumes and chapters, then exit",
    )
    inspect.add_argument(
        "--preview",
        action="store_true",
        help="Print the parsed sentences of --chapter instead of playing it",
    )
    inspect.add_argument(
        "-v",
        "--verbose",
        type=int,
        choices=[0, 1, 2],
        default=1,
        help="Verbosity: 0=quiet, 1=normal (default), 2=debug",
    )
    inspect.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable tqdm progress bars",
    )

    return p


# ------------------------------------------------------------------
# Logging setup
# ------------------------------------------------------------------


def _configure_logging(verbosity: int) -> None:
    """
    Set up the root ``rsvp`` logger.

    At verbosity 0 (WARNING), uses a minimal format. At 1+ (INFO /
    DEBUG), includes the module name for traceability.  Logs go to
    stderr so they never mix with the word line on stdout.
    """
    level = _VERBOSITY_MAP.get(verbosity, logging.INFO)

    if level <= logging.DEBUG:
        fmt = "%(asctime)s %(name)s %(levelname)s: %(message)s"
        datefmt = "%H:%M:%S"
    elif level <= logging.INFO:
        fmt = "%(message)s"
        datefmt = None
    else:
        fmt = "%(levelname)s: %(message)s"
        datefmt = None

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger("rsvp")
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in ("fitz", "pymupdf"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ------------------------------------------------------------------
# Terminal rendering
# ------------------------------------------------------------------


def format_word(word: Word) -> str:
    """Word with its context markers: «quoted», (bracketed), ending punctuation."""
    text = word.text + word.ending_punctuation
    if word.in_quotes:
        text = f"«{text}»"
    if word.in_brackets:
        text = f"({text})"
    return text


class TerminalView:
    """Redraws a single status line whenever the position changes."""

    def __init__(self, session: ReadingSession, stream=None):
        self.session = session
        self.stream = stream or sys.stdout
        self._last = None

    def on_state_change(self, state: PlaybackState) -> None:
        if state.position == self._last:
            return
        self._last = state.position
        word = self.session.navigator.current_word
        if word is None:
            return
        current, total = self.session.navigator.sentence_progress
        line = f"{format_word(word):^30}  [{current}/{total}  {state.wpm} wpm]"
        self.stream.write("\r\033[K" + line)
        self.stream.flush()

    def newline(self) -> None:
        self.stream.write("\n")
        self.stream.flush()


# ------------------------------------------------------------------
# Sub-commands
# ------------------------------------------------------------------


def _cmd_list_chapters(session: ReadingSession) -> None:
    """Print the reading order, 1-based, grouped by volume."""
    current_volume = None
    for ref in session.iterator.chapter_refs():
        if ref.volume_id != current_volume:
            current_volume = ref.volume_id
            if ref.volume_title:
                print(ref.volume_title)
        indent = "  " if ref.volume_title else ""
        print(f"{indent}{ref.index + 1:4d}. {ref.title or ref.chapter_id}")


def _cmd_preview(session: ReadingSession) -> None:
    print(preview_chapter(session.controller.chapter))


def _prompt(message: str) -> bool:
    """Ask on stdin; anything but ``q`` continues.  EOF stops."""
    try:
        answer = input(message)
    except EOFError:
        return False
    return answer.strip().lower() != "q"


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------


def main():
    """Parse arguments, configure logging, load the book and read it."""
    parser = _build_parser()
    args = parser.parse_args()

    _configure_logging(args.verbose)
    disable_tqdm = args.no_progress or args.verbose == 0

    input_path = Path(args.input)
    if not input_path.exists():
        parser.error(f"Input file not found: {input_path}")
    if input_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        parser.error(f"Unsupported input format: {input_path.suffix}")

    try:
        config = ReaderConfig(
            wpm=args.wpm,
            max_wpm=args.max_wpm,
            warmup_seconds=args.warmup,
            auto_stop_mode=AutoStopMode.parse(args.auto_stop),
            start_chapter=args.chapter - 1,
            disable_tqdm=disable_tqdm,
        ).validate()
    except InvalidConfiguration as e:
        parser.error(str(e))

    try:
        book = load_book(str(input_path))
    except (RuntimeError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)

    # Log run header
    logger.info("RSVP Reader")
    logger.info("  Book:   %s", book.title)
    if book.author:
        logger.info("  Author: %s", book.author)
    logger.info("  Rate:   %d wpm", config.wpm)
    if config.max_wpm and config.max_wpm != config.wpm:
        logger.info("  Warmup: -> %d wpm over %.0fs", config.max_wpm, config.warmup_seconds)
    if config.auto_stop_mode is not AutoStopMode.DISABLED:
        logger.info("  Stops:  every %s", config.auto_stop_mode.value)

    callbacks = PlaybackCallbacks()
    session = ReadingSession(book, config, callbacks=callbacks)
    view = TerminalView(session)
    callbacks.on_state_change = view.on_state_change

    if args.list_chapters:
        _cmd_list_chapters(session)
        return

    if args.preview:
        _cmd_preview(session)
        return

    if not config.disable_tqdm and args.verbose >= 1:
        words = session.iterator.total_word_count(disable_tqdm=False)
        logger.info("  Words:  %d in %d chapters", words, len(session.iterator))

    def at_boundary(state: PlaybackState) -> bool:
        view.newline()
        return _prompt(f"-- {state.stopped_at_boundary.value} end (Enter to go on, q to quit) ")

    def at_chapter_end(index: int) -> bool:
        view.newline()
        nxt = session.iterator.ref(index + 1)
        return _prompt(f"-- end of chapter {index + 1}; next: {nxt.title or nxt.chapter_id} (Enter/q) ")

    try:
        result = session.run(at_boundary=at_boundary, at_chapter_end=at_chapter_end)
    except KeyboardInterrupt:
        session.close()
        result = session.result()
    view.newline()

    if result.words_shown == 0:
        logger.warning("Nothing was read")
        sys.exit(1)
    logger.info(result.summary())


if __name__ == "__main__":
    main()
