import re

import pytest

from rotelib import toc
from rotelib.builders.epub import layout_units
from rotelib.errors import TocMismatchError
from rotelib.sequencer import Action, ActionKind, sequence
from rotelib.typography import normalize

from conftest import SAMPLE_RAW


def test_skeleton_entries_and_placeholders(plan):
    raw = "#toc-chapter,一#\n#toc-chapter,phantom#\n#toc-chapter,二#\n#atogaki,あとがき#\n"
    skeleton = toc.build_skeleton(plan, raw)

    assert skeleton.entries == [
        toc.TocEntry(1, "一"),
        toc.TocEntry(None, ""),
        toc.TocEntry(2, "二"),
        toc.TocEntry(3, "あとがき", afterword=True),
    ]
    assert skeleton.placeholder_count == 3
    assert '<a href="p-REPLACE_ME.xhtml#mokuji-0001" class="mokuji-0001">一</a>' in skeleton.xhtml
    assert '<div class="h-indent-1em">\n<p>　<a href="p-REPLACE_ME.xhtml#mokuji-0003"' in skeleton.xhtml
    assert "目次" in skeleton.xhtml


def test_only_first_afterword_is_listed():
    entries = toc.scan_entries("#atogaki,一#\n#atogaki,二#\n")
    assert entries == [toc.TocEntry(1, "一", afterword=True)]


def test_link_targets_count_numbered_units_only():
    actions = [
        Action(ActionKind.TOC),
        Action(ActionKind.PREFACE_IMAGE, "p.jpg"),
        Action(ActionKind.BODY, "x"),
        Action(ActionKind.BODY_WITH_CHAPTER_TITLE, "x", "一"),
        Action(ActionKind.GLYPH_IMAGE, "g.png"),
        Action(ActionKind.IMAGE, "a.jpg"),
        Action(ActionKind.COLOPHON_TEXT, "x"),
        Action(ActionKind.COPYRIGHT, "x"),
        Action(ActionKind.AFTERWORD, "x", "あとがき"),
        Action(ActionKind.COLOPHON_IMAGE, "c.png"),
    ]
    assert toc.link_targets(actions) == [2, 5, 6]


def test_mismatch_two_placeholders_one_target(plan):
    skeleton = toc.build_skeleton(plan, "#toc-chapter,A#\n#toc-chapter,B#\n")
    actions = [Action(ActionKind.BODY_WITH_CHAPTER_TITLE, "x", "A")]

    with pytest.raises(TocMismatchError) as excinfo:
        toc.resolve(skeleton, actions)
    assert excinfo.value.placeholders == 2
    assert excinfo.value.targets == 1


def test_resolve_substitutes_in_order(plan):
    skeleton = toc.build_skeleton(plan, "#toc-chapter,A#\n#toc-chapter,B#\n")
    actions = [
        Action(ActionKind.BODY_WITH_CHAPTER_TITLE, "x", "A"),
        Action(ActionKind.IMAGE, "a.jpg"),
        Action(ActionKind.BODY_WITH_CHAPTER_TITLE, "x", "B"),
    ]
    xhtml = toc.resolve(skeleton, actions)

    assert toc.PLACEHOLDER not in xhtml
    assert 'href="p-001.xhtml#mokuji-0001"' in xhtml
    assert 'href="p-003.xhtml#mokuji-0002"' in xhtml


def test_targets_agree_with_unit_layout():
    result = sequence(normalize(SAMPLE_RAW))
    targets = toc.link_targets(result.actions)
    units = layout_units(result.actions)

    linked = [u.number for u in units if u.action.kind in toc.LINKED_KINDS]
    assert targets == linked
    assert targets == sorted(set(targets))


def test_resolved_sample_links(plan):
    text = normalize(SAMPLE_RAW)
    xhtml = toc.resolve(toc.build_skeleton(plan, text), sequence(text).actions)

    hrefs = re.findall(r'href="(p-[^"]+)"', xhtml)
    assert hrefs == [
        "p-001.xhtml#mokuji-0001",
        "p-002.xhtml#mokuji-0002",
        "p-004.xhtml#mokuji-0003",
    ]
