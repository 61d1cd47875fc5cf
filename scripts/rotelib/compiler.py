"""
Compile raw markup into actions and a resolved TOC page.

    raw text → normalize → lex/sequence → TOC skeleton → TOC numbering
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from rotelib import toc
from rotelib.sequencer import Action, ActionKind, sequence
from rotelib.typography import normalize

logger = logging.getLogger(__name__)


@dataclass
class CompiledBook:
    actions: List[Action]
    chapter_titles: List[str]
    skeleton: toc.TocSkeleton
    toc_xhtml: Optional[str]  # None when the text has no #toc#
    leftover: str = ""

    @property
    def has_toc(self):
        return self.toc_xhtml is not None


def compile_text(plan, raw):
    """Run the whole compile pass over raw markup text."""
    text = normalize(raw)
    result = sequence(text)
    skeleton = toc.build_skeleton(plan, text)

    toc_xhtml = None
    if any(a.kind is ActionKind.TOC for a in result.actions):
        toc_xhtml = toc.resolve(skeleton, result.actions)
    else:
        logger.debug("No #toc# marker; skipping TOC resolution")

    logger.info(
        "Compiled %d actions, %d chapters, %d TOC entries",
        len(result.actions),
        len(result.chapter_titles),
        len(skeleton.entries),
    )
    return CompiledBook(
        actions=result.actions,
        chapter_titles=result.chapter_titles,
        skeleton=skeleton,
        toc_xhtml=toc_xhtml,
        leftover=result.leftover,
    )


def compile_plan(plan):
    """Read the plan's raw text and compile it."""
    return compile_text(plan, plan.read_raw())
