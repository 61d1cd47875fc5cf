"""
Markup linter.

Scans a raw markup file for whitespace and encoding problems, punctuation
the normalizer will rewrite, unknown directives, missing or unsupported
images, and TOC/structure mismatches that would fail or degrade a build.

Can be invoked from the rote.py CLI or standalone.
"""

import os
import re

from rotelib import toc
from rotelib.directives import Command, lex_line, split_lines
from rotelib.errors import RoteError, UnknownDirectiveError
from rotelib.render import image_mime
from rotelib.sequencer import Sequencer
from rotelib.typography import NORMALIZATION_RULES, normalize


# ── Lint Patterns ──────────────────────────────────────────────────────
#
# Each: (description, compiled regex, replacement, severity)
#   replacement = None → report only (manual review)
#   replacement = str  → auto-fixable with --fix
#   severity: "error" | "warning" | "info"

WHITESPACE_PATTERNS = [
    ("Byte order mark",
     re.compile(r"\A\ufeff"), "", "error"),
    ("Carriage return (Windows line ending)",
     re.compile(r"\r"), "", "error"),
    ("Tab character",
     re.compile(r"\t"), "", "warning"),
    ("Trailing whitespace",
     re.compile(r" +(?=\r?$)", re.MULTILINE), "", "warning"),
    ("Zero-width space/joiner",
     re.compile(r"[\u200B-\u200D]"), "", "error"),
]

# ASCII punctuation the normalizer rewrites before parsing
NORMALIZATION_PATTERNS = [
    (f"{description} → {full_width}", re.compile(re.escape(ascii_form)), None, "info")
    for description, ascii_form, full_width in NORMALIZATION_RULES
]

ALL_PATTERNS = WHITESPACE_PATTERNS + NORMALIZATION_PATTERNS

# Directives whose argument names an image file
IMAGE_COMMANDS = {
    Command.IMAGE,
    Command.TITLE_PAGE,
    Command.PREFACE_IMAGE,
    Command.COLOPHON,
}


# ── Severity display ───────────────────────────────────────────────────

SEVERITY_COLOR = {
    "error":   "\033[31m✗\033[0m",
    "warning": "\033[33m!\033[0m",
    "info":    "\033[36m·\033[0m",
}

SEVERITY_PLAIN = {
    "error":   "[ERROR]",
    "warning": "[WARN]",
    "info":    "[INFO]",
}


# ── Linter class ───────────────────────────────────────────────────────


class Linter:
    """
    Markup linter.

    Usage:
        linter = Linter(plan.raw_path, image_dir, fix=False, color=True)
        success = linter.run()
    """

    def __init__(self, raw_path, image_dir=None, fix=False, verbose=False, color=True):
        self.raw_path = raw_path
        self.image_dir = image_dir
        self.fix = fix
        self.verbose = verbose
        self.symbols = SEVERITY_COLOR if color else SEVERITY_PLAIN
        self.counts = {"error": 0, "warning": 0, "info": 0}
        self.fixes = 0
        self.fixable = 0
        self.findings = []

    def run(self):
        """Lint the file. Returns True if no errors found."""
        try:
            with open(self.raw_path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except UnicodeDecodeError:
            self._add(0, "error", "Cannot read (encoding error)")
            return self._report()
        except OSError as e:
            raise RoteError(f"Could not read {self.raw_path}: {e}") from e

        content = self._check_patterns(content)
        self._check_markup(normalize(content))
        return self._report()

    def _add(self, line_num, severity, message):
        self.counts[severity] += 1
        ref = f":{line_num} " if line_num > 0 else ""
        self.findings.append(f"  {self.symbols[severity]} {ref}{message}")

    # ── Regex patterns ─────────────────────────────────────

    def _check_patterns(self, content):
        original = content

        for description, pattern, replacement, severity in ALL_PATTERNS:
            matches = list(pattern.finditer(content))
            if not matches:
                continue

            for match in matches:
                line_num = content[: match.start()].count("\n") + 1
                if replacement is not None and self.fix:
                    self._add(line_num, severity, f"Fixed: {description}")
                else:
                    label = "Found" if replacement is None else "Fixable"
                    if replacement is not None:
                        self.fixable += 1
                    self._add(line_num, severity, f"{label}: {description} ({match.group(0)!r})")

            if self.fix and replacement is not None:
                new = pattern.sub(replacement, content)
                if new != content:
                    self.fixes += len(matches)
                    content = new

        if self.fix and content != original:
            with open(self.raw_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)

        return content

    # ── Markup checks ──────────────────────────────────────

    def _check_markup(self, text):
        """Lex every line, then replay the sequencer when lexing succeeded."""
        lines = split_lines(text)
        directives = []
        for lineno, line in enumerate(lines, 1):
            try:
                directives.append(lex_line(line, lineno))
            except UnknownDirectiveError as e:
                self._add(lineno, "error", f"`{e.name}` is not a known directive")

        for directive in directives:
            self._check_images(directive)

        if len(directives) != len(lines):
            return

        seq = Sequencer()
        for directive in directives:
            seq.feed(directive)
        result = seq.finish()

        if result.leftover:
            self._add(
                result.leftover_lineno, "warning",
                "Text is not closed by any directive and will be dropped from the book",
            )

        entries = toc.scan_entries(text)
        linked = sum(1 for e in entries if e.number is not None)
        listed_chapters = sum(1 for e in entries if e.number is not None and not e.afterword)

        if any(d.command is Command.TOC for d in directives):
            targets = toc.link_targets(result.actions)
            if linked != len(targets):
                self._add(
                    0, "error",
                    f"TOC has {linked} linked entries but the text has "
                    f"{len(targets)} TOC-linked units",
                )

        if entries and listed_chapters != len(result.chapter_titles):
            self._add(
                0, "warning",
                f"{listed_chapters} toc-chapter entries but "
                f"{len(result.chapter_titles)} chapter directives",
            )

    def _check_images(self, directive):
        if directive.command in IMAGE_COMMANDS:
            names = [directive.argument]
        elif directive.command is Command.GLYPH:
            names = list(directive.glyphs)
        else:
            return

        for name in names:
            try:
                image_mime(name)
            except RoteError as e:
                self._add(directive.lineno, "error", str(e))
                continue
            if self.image_dir and not os.path.isfile(os.path.join(self.image_dir, name)):
                self._add(directive.lineno, "error", f"Image not found in {self.image_dir}: {name}")

    # ── Output ─────────────────────────────────────────────

    def _report(self):
        """Print findings and the summary line. Returns True if no errors."""
        name = os.path.basename(self.raw_path)

        if self.findings:
            print(f"  {name}")
            for finding in self.findings:
                print(finding)
            print()
        elif self.verbose:
            print(f"  {name}: clean")

        total = sum(self.counts.values())
        print(f"{'─' * 50}")

        if total == 0:
            print(f"  No issues found in {name}.")
            return True

        parts = []
        if self.counts["error"]:
            parts.append(f"{self.counts['error']} errors")
        if self.counts["warning"]:
            parts.append(f"{self.counts['warning']} warnings")
        if self.counts["info"]:
            parts.append(f"{self.counts['info']} info")

        print(f"  {', '.join(parts)} in {name}")

        if self.fix:
            print(f"  Applied {self.fixes} fixes")
            remaining = total - self.fixes
            if remaining > 0:
                print(f"  {remaining} issues require manual review")
        elif self.fixable:
            print("  Run with --fix to auto-correct fixable issues")

        return self.counts["error"] == 0
