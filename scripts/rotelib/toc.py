"""
Table of contents: skeleton pass and numbering pass.

The TOC page is written before the units it links to have numbers, so it is
built in two independent passes:

    1. build_skeleton() scans the raw text for #toc-chapter,...# and the
       first #atogaki,...# and writes one link per entry, each pointing at
       p-REPLACE_ME.xhtml.
    2. link_targets() walks the finished action list and returns the unit
       number of every TOC-linked action, in order; resolve() substitutes
       the Nth placeholder with the Nth target.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from rotelib import render
from rotelib.errors import TocMismatchError
from rotelib.sequencer import NUMBERED_KINDS, ActionKind

logger = logging.getLogger(__name__)


PLACEHOLDER = "REPLACE_ME"
PHANTOM = "phantom"

TOC_CHAPTER_RE = re.compile(r"#toc-chapter,(.*)#")
AFTERWORD_RE = re.compile(r"#atogaki,(.*)#")

# Actions whose unit a TOC entry links to, in order
LINKED_KINDS = {
    ActionKind.BODY_WITH_CHAPTER_TITLE,
    ActionKind.COPYRIGHT,
    ActionKind.AFTERWORD,
}


@dataclass(frozen=True)
class TocEntry:
    number: Optional[int]  # mokuji number; None for a phantom (blank) line
    title: str
    afterword: bool = False


@dataclass
class TocSkeleton:
    entries: List[TocEntry]
    xhtml: str

    @property
    def placeholder_count(self):
        return self.xhtml.count(PLACEHOLDER)


def _link(number, title):
    return (
        f'<a href="p-{PLACEHOLDER}.xhtml#mokuji-{number:04d}" '
        f'class="mokuji-{number:04d}">{title}</a>'
    )


def scan_entries(raw):
    """TOC entries declared in normalized raw text, in order. The afterword, if any, is last."""
    entries: List[TocEntry] = []
    number = 1
    for match in TOC_CHAPTER_RE.finditer(raw):
        name = match.group(1)
        if name == PHANTOM:
            entries.append(TocEntry(None, ""))
            continue
        entries.append(TocEntry(number, name))
        number += 1

    match = AFTERWORD_RE.search(raw)
    if match:
        entries.append(TocEntry(number, match.group(1), afterword=True))
    return entries


def build_skeleton(plan, raw):
    """Build the TOC page with placeholder link targets from normalized raw text."""
    entries = scan_entries(raw)
    lines: List[str] = []

    for entry in entries:
        if entry.number is None:
            lines.append(render.BLANK_PARAGRAPH)
        elif not entry.afterword:
            lines.append(f"<p>{_link(entry.number, entry.title)}</p>\n")
        else:
            lines.append(
                render.BLANK_PARAGRAPH
                + '<div class="h-indent-1em">\n'
                + f"<p>　{_link(entry.number, entry.title)}</p>\n"
                + "</div>\n"
            )

    skeleton = TocSkeleton(entries, render.toc_page(plan, "".join(lines)))
    logger.debug("TOC skeleton has %d entries, %d links", len(entries), skeleton.placeholder_count)
    return skeleton


def link_targets(actions):
    """Unit numbers of the TOC-linked actions, in action order."""
    targets = []
    paragraph = 1
    for action in actions:
        if action.kind not in NUMBERED_KINDS:
            continue
        if action.kind in LINKED_KINDS:
            targets.append(paragraph)
        paragraph += 1
    return targets


def resolve(skeleton, actions):
    """
    Replace every placeholder with its target unit number.

    Raises TocMismatchError when the skeleton and the action list disagree
    on the number of linked entries.
    """
    targets = link_targets(actions)
    count = skeleton.placeholder_count
    if count != len(targets):
        raise TocMismatchError(count, len(targets))

    xhtml = skeleton.xhtml
    for target in targets:
        xhtml = xhtml.replace(PLACEHOLDER, f"{target:03d}", 1)
    return xhtml
