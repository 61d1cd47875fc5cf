"""
Directive lexer.

Classifies each line of (already normalized) raw markup into one Directive.
Priority per line: bare `#toc#`, inline `#gaiji,...#` glyphs, bracketed
`#name,argument#` commands, then plain text.
"""

import enum
import re
from dataclasses import dataclass

from rotelib import render
from rotelib.errors import UnknownDirectiveError


class Command(enum.Enum):
    # Bracketed commands (value = name as written in the markup)
    TOC = "toc"
    CHAPTER = "chapter"
    IMAGE = "img"
    TITLE_PAGE = "title-page"
    PREFACE_IMAGE = "preface-img"
    AFTERWORD = "atogaki"
    BIBLIOGRAPHY = "bibliography"
    FILL = "fill"
    COLOPHON = "colophon"
    TOC_CHAPTER = "toc-chapter"
    GLYPH = "gaiji"
    NO_INDENT = "no-indent"
    END_BIBLIOGRAPHY = "end-bibliography"
    END_COPYRIGHT = "end-copyright"
    END_COLOPHON_TEXT = "end-colophon-text"
    END_AFTERWORD = "end-atogaki"

    # Line classes (never written as #...#)
    PAGE_BREAK = "<page-break>"
    BLANK = "<blank>"
    TEXT = "<text>"


BRACKETED = {c.value: c for c in Command if not c.value.startswith("<")}

TOC_MARKER = "#toc#"
GLYPH_MARKER = "#gaiji,"
PAGE_BREAK_TOKEN = "----------"

DIRECTIVE_RE = re.compile(r"#(.*)#")
GLYPH_RE = re.compile(r"#gaiji,(.*?)#")

# Paragraphs opening with one of these are not indented.
NO_INDENT_RE = re.compile(r"^[　『「（＜〔｛｟〈《【〖〘〚─]")


@dataclass(frozen=True)
class Directive:
    command: Command
    argument: str = ""
    glyphs: tuple = ()
    lineno: int = 0


def needs_indent(text):
    """True when a paragraph gets a leading ideographic space."""
    return not NO_INDENT_RE.match(text)


def _lex_glyph_line(line, lineno):
    glyphs = []
    for name in GLYPH_RE.findall(line):
        if name not in glyphs:
            glyphs.append(name)
    rewritten = GLYPH_RE.sub(lambda m: render.glyph_tag(m.group(1)), line)
    return Directive(Command.GLYPH, rewritten, tuple(glyphs), lineno)


def lex_line(line, lineno=0):
    """Classify one line. Raises UnknownDirectiveError for unknown command names."""
    if TOC_MARKER in line:
        return Directive(Command.TOC, lineno=lineno)

    if GLYPH_MARKER in line:
        return _lex_glyph_line(line, lineno)

    match = DIRECTIVE_RE.search(line)
    if match:
        name, _sep, argument = match.group(1).partition(",")
        command = BRACKETED.get(name)
        if command is None:
            raise UnknownDirectiveError(name, lineno)
        return Directive(command, argument, lineno=lineno)

    if PAGE_BREAK_TOKEN in line:
        return Directive(Command.PAGE_BREAK, lineno=lineno)
    if not line:
        return Directive(Command.BLANK, lineno=lineno)
    return Directive(Command.TEXT, line, lineno=lineno)


def split_lines(text):
    """
    Lines of text, split on line feeds only.

    A trailing carriage return is dropped from each line, and a final line
    feed does not open an empty last line. Other Unicode line separators
    stay in the line.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def lex(text):
    """Yield one Directive per line of text, numbered from 1."""
    for lineno, line in enumerate(split_lines(text), 1):
        yield lex_line(line, lineno)
