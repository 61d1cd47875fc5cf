import pytest

from rotelib.directives import Command, lex, lex_line, needs_indent
from rotelib.errors import MarkupError, UnknownDirectiveError


def test_indent_rule_opening_punctuation():
    for opener in "　『「（＜〔｛｟〈《【〖〘〚─":
        assert not needs_indent(opener + "本文")
    assert needs_indent("本文")
    assert needs_indent("A sentence")


def test_indent_rule_only_checks_first_character():
    assert needs_indent("本文「引用」")


def test_bracketed_directive_with_argument():
    d = lex_line("#chapter,第一章#", 3)
    assert d.command is Command.CHAPTER
    assert d.argument == "第一章"
    assert d.lineno == 3


def test_argument_keeps_everything_after_first_comma():
    d = lex_line("#fill,東京, 二〇二四年#")
    assert d.command is Command.FILL
    assert d.argument == "東京, 二〇二四年"


def test_end_markers_take_no_argument():
    assert lex_line("#end-atogaki#").command is Command.END_AFTERWORD
    assert lex_line("#end-copyright#").command is Command.END_COPYRIGHT
    assert lex_line("#end-bibliography#").command is Command.END_BIBLIOGRAPHY
    assert lex_line("#end-colophon-text#").command is Command.END_COLOPHON_TEXT


def test_toc_marker():
    assert lex_line("#toc#").command is Command.TOC


def test_unknown_directive_is_an_error():
    with pytest.raises(UnknownDirectiveError) as excinfo:
        lex_line("#footnote,x#", 7)
    assert excinfo.value.name == "footnote"
    assert str(excinfo.value) == "line 7: `footnote` is an unimplemented directive"
    assert isinstance(excinfo.value, MarkupError)


def test_gaiji_line_is_rewritten_inline():
    d = lex_line("前#gaiji,face.png#中#gaiji,face.png#後#gaiji,hand.png#")
    assert d.command is Command.GLYPH
    assert d.glyphs == ("face.png", "hand.png")
    assert "#gaiji" not in d.argument
    assert d.argument.count('src="../image/face.png"') == 2
    assert d.argument.startswith("前<img class=\"gaiji\"")


def test_line_classes():
    assert lex_line("").command is Command.BLANK
    assert lex_line("-----------").command is Command.PAGE_BREAK
    d = lex_line("ふつうの行")
    assert d.command is Command.TEXT
    assert d.argument == "ふつうの行"


def test_lex_numbers_lines_from_one():
    directives = list(lex("a\n\n#toc#"))
    assert [d.lineno for d in directives] == [1, 2, 3]
    assert [d.command for d in directives] == [Command.TEXT, Command.BLANK, Command.TOC]


def test_lex_splits_on_line_feeds_only():
    directives = list(lex("a b\x0cc\nd\x1ce\n"))
    assert [d.argument for d in directives] == ["a b\x0cc", "d\x1ce"]


def test_lex_drops_carriage_returns():
    directives = list(lex("#chapter,一#\r\n本文\r\n\r\n"))
    assert [d.command for d in directives] == [Command.CHAPTER, Command.TEXT, Command.BLANK]
    assert directives[0].argument == "一"
    assert directives[1].argument == "本文"
