"""
Action sequencer.

Consumes lexed directives in source order and emits the ordered list of
content actions the assembler turns into units. The accumulating page body
is driven by an explicit state machine:

    IDLE       buffer holds untitled text (front matter, chapter continuation)
    CHAPTER    buffer opens with a chapter heading not yet emitted
    AFTERWORD  buffer holds the afterword, waiting for #end-atogaki#

A flush emits the buffer as BodyWithChapterTitle in CHAPTER and as Body
otherwise, then returns to IDLE. Empty buffers are skipped.

Two directives bend that rule. A chapter directive titles text that
continues an earlier chapter after an image. An afterword directive
flushes plain Body even over a pending chapter heading.

A bibliography directive always emits a titled unit, empty or not.
"""

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

from rotelib import render
from rotelib.directives import Command, lex, needs_indent

logger = logging.getLogger(__name__)


class ActionKind(enum.Enum):
    TOC = "toc"
    PREFACE_IMAGE = "preface-image"
    TITLE_PAGE = "title-page"
    BODY = "body"
    BODY_WITH_CHAPTER_TITLE = "body-with-chapter-title"
    IMAGE = "image"
    AFTERWORD = "afterword"
    COLOPHON_IMAGE = "colophon-image"
    COLOPHON_TEXT = "colophon-text"
    COPYRIGHT = "copyright"
    BIBLIOGRAPHY = "bibliography"
    GLYPH_IMAGE = "glyph-image"


# Kinds whose content is an image file name rather than a page body
IMAGE_KINDS = {
    ActionKind.PREFACE_IMAGE,
    ActionKind.TITLE_PAGE,
    ActionKind.IMAGE,
    ActionKind.COLOPHON_IMAGE,
    ActionKind.GLYPH_IMAGE,
}

# Kinds written as xhtml/p-NNN.xhtml, sharing one paragraph-number sequence
# ColophonText is numbered too so its page never overwrites another unit
NUMBERED_KINDS = {
    ActionKind.BODY,
    ActionKind.BODY_WITH_CHAPTER_TITLE,
    ActionKind.IMAGE,
    ActionKind.AFTERWORD,
    ActionKind.COPYRIGHT,
    ActionKind.BIBLIOGRAPHY,
    ActionKind.COLOPHON_TEXT,
}

# Terminal markers and the action each one flushes into
END_MARKERS = {
    Command.END_BIBLIOGRAPHY: ActionKind.BIBLIOGRAPHY,
    Command.END_COPYRIGHT: ActionKind.COPYRIGHT,
    Command.END_COLOPHON_TEXT: ActionKind.COLOPHON_TEXT,
    Command.END_AFTERWORD: ActionKind.AFTERWORD,
}

# Directives that emit a standalone action without touching the buffer
STANDALONE = {
    Command.TOC: ActionKind.TOC,
    Command.TITLE_PAGE: ActionKind.TITLE_PAGE,
    Command.PREFACE_IMAGE: ActionKind.PREFACE_IMAGE,
    Command.COLOPHON: ActionKind.COLOPHON_IMAGE,
}


class State(enum.Enum):
    IDLE = "idle"
    CHAPTER = "chapter"
    AFTERWORD = "afterword"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    content: str = ""
    title: Optional[str] = None


@dataclass
class SequenceResult:
    actions: List[Action]
    chapter_titles: List[str]
    next_mokuji: int
    leftover: str = ""
    leftover_lineno: int = 0


class Sequencer:
    """
    Feed directives one at a time, then call finish().

    Usage:
        seq = Sequencer()
        for directive in lex(text):
            seq.feed(directive)
        result = seq.finish()
    """

    def __init__(self):
        self.state = State.IDLE
        self.mokuji = 1
        self.actions: List[Action] = []
        self.chapter_titles: List[str] = []
        self._buffer: List[str] = []
        self._title: Optional[str] = None
        self._buffer_lineno = 0

    # ── Buffer handling ────────────────────────────────────

    def _emit(self, kind, content="", title=None):
        self.actions.append(Action(kind, content, title))
        logger.debug("Added %s action", kind.value)

    def _append(self, fragment, lineno):
        if not self._buffer:
            self._buffer_lineno = lineno
        self._buffer.append(fragment)

    def _take(self):
        content = "".join(self._buffer)
        title = self._title
        self._buffer = []
        self._title = None
        self.state = State.IDLE
        return content, title

    def _flush(self, continue_chapter=False):
        """
        Emit a non-empty buffer and return to IDLE.

        A buffer opened by a chapter heading becomes BodyWithChapterTitle.
        With continue_chapter, text after a chapter's image is titled too,
        carrying the latest chapter title, once any chapter has been opened.
        """
        if not self._buffer:
            self.state = State.IDLE
            return
        in_chapter = self.state is State.CHAPTER
        content, title = self._take()
        if in_chapter:
            self._emit(ActionKind.BODY_WITH_CHAPTER_TITLE, content, title)
        elif continue_chapter and self.chapter_titles:
            self._emit(ActionKind.BODY_WITH_CHAPTER_TITLE, content, self.chapter_titles[-1])
        else:
            self._emit(ActionKind.BODY, content)

    def _flush_plain(self):
        """Afterword boundary: a non-empty buffer becomes Body whatever it holds."""
        if not self._buffer:
            self.state = State.IDLE
            return
        content, _title = self._take()
        self._emit(ActionKind.BODY, content)

    def _flush_titled(self, argument):
        """
        Bibliography boundary: always a titled unit, even when empty.

        The title is the pending chapter's, else the directive argument
        (recorded as a chapter title), else the latest chapter title.
        """
        pending = self._title if self.state is State.CHAPTER else None
        content, _title = self._take()
        title = pending
        if title is None and argument:
            title = argument
            self.chapter_titles.append(argument)
        if title is None and self.chapter_titles:
            title = self.chapter_titles[-1]
        self._emit(ActionKind.BODY_WITH_CHAPTER_TITLE, content, title)

    # ── Transitions ────────────────────────────────────────

    def feed(self, directive):
        command = directive.command
        arg = directive.argument
        lineno = directive.lineno
        logger.debug("Line %d: %s", lineno, command.value)

        if command in STANDALONE:
            self._emit(STANDALONE[command], arg)

        elif command is Command.GLYPH:
            for name in directive.glyphs:
                self._emit(ActionKind.GLYPH_IMAGE, name)
            self._append(render.paragraph(arg, needs_indent(arg)), lineno)

        elif command is Command.CHAPTER:
            self._flush(continue_chapter=True)
            self._append(render.chapter_heading(self.mokuji, arg), lineno)
            self.chapter_titles.append(arg)
            self._title = arg
            self.mokuji += 1
            self.state = State.CHAPTER

        elif command is Command.IMAGE:
            self._flush()
            self._emit(ActionKind.IMAGE, arg)

        elif command is Command.AFTERWORD:
            self._flush_plain()
            self._append(render.afterword_heading(self.mokuji, arg), lineno)
            self._title = arg
            self.mokuji += 1
            self.state = State.AFTERWORD

        elif command is Command.BIBLIOGRAPHY:
            self._flush_titled(arg)

        elif command in END_MARKERS:
            kind = END_MARKERS[command]
            in_afterword = self.state is State.AFTERWORD
            content, title = self._take()
            self._emit(kind, content, title if in_afterword and kind is ActionKind.AFTERWORD else None)

        elif command is Command.FILL:
            self._append(render.fill_block(arg), lineno)

        elif command is Command.NO_INDENT:
            self._append(render.paragraph(arg, indent=False), lineno)

        elif command is Command.BLANK:
            self._append(render.BLANK_PARAGRAPH, lineno)

        elif command is Command.TEXT:
            self._append(render.paragraph(arg, needs_indent(arg)), lineno)

        # TOC_CHAPTER is read by the TOC skeleton pass; PAGE_BREAK is dropped.

    def finish(self):
        leftover = "".join(self._buffer)
        if leftover:
            logger.warning(
                "Text from line %d onwards is not closed by any directive and was discarded",
                self._buffer_lineno,
            )
        return SequenceResult(
            actions=list(self.actions),
            chapter_titles=list(self.chapter_titles),
            next_mokuji=self.mokuji,
            leftover=leftover,
            leftover_lineno=self._buffer_lineno if leftover else 0,
        )


def sequence(text):
    """Lex and sequence normalized raw text in one go."""
    seq = Sequencer()
    for directive in lex(text):
        seq.feed(directive)
    return seq.finish()
