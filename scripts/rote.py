#!/usr/bin/env python3
"""
Command-line entry point for rote.

Compiles a book plan and its raw markup into an EPUB, or lints the markup.

Usage:
    python rote.py epub books/neko images/ out/neko.epub     Build the EPUB
    python rote.py -vv epub books/neko images/ out/neko      Build with debug logging
    python rote.py lint books/neko images/                   Lint markup and images
    python rote.py lint books/neko --fix                     Lint and auto-fix whitespace

Requires: PyYAML, EbookLib
"""

import os
import sys
import argparse
import logging
import traceback

# Ensure rotelib is importable from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rotelib.config import BookPlan
from rotelib.errors import RoteError
from rotelib.resolve import find_plan
from rotelib.builders import BUILDERS
from rotelib.lint import Linter

logger = logging.getLogger("rotelib")

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

LEVEL_COLOR = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[31m",
}


class ColorFormatter(logging.Formatter):
    """Colours the level name when writing to a terminal."""

    def format(self, record):
        text = super().format(record)
        color = LEVEL_COLOR.get(record.levelno)
        if color and text.startswith(record.levelname):
            text = f"{color}{record.levelname}\033[0m{text[len(record.levelname):]}"
        return text


def setup_logging(verbosity, log_file=None):
    """Map -v count to a level; attach a console handler and an optional file handler."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger.setLevel(logging.DEBUG if log_file else level)
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    if sys.stderr.isatty():
        console.setFormatter(ColorFormatter(LOG_FORMAT))
    else:
        console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        logger.addHandler(file_handler)


# ── Resolve plan ───────────────────────────────────────────────────────


def resolve_plan(identifier):
    """Find and load the plan. Raises RoteError on failure."""
    plan_path = find_plan(identifier)
    if not plan_path:
        raise RoteError(
            f"Could not find a plan at '{identifier}' (expected a plan file "
            f"or a directory containing plan.yaml)"
        )
    return BookPlan.load(plan_path)


# ── EPUB command ───────────────────────────────────────────────────────


def cmd_epub(args):
    """Compile the plan into an EPUB."""
    plan = resolve_plan(args.plan)
    plan.summary()
    print(f"  Images: {args.image_dir}")

    builder = BUILDERS["epub"](
        plan=plan,
        image_dir=args.image_dir,
        output_path=args.output,
        verbose=args.verbose > 0,
    )
    builder.build()

    print(f"\n{'─' * 60}")
    print("  Done.")
    return 0


# ── Lint command ───────────────────────────────────────────────────────


def cmd_lint(args):
    """Lint the plan's raw markup."""
    plan = resolve_plan(args.plan)

    color = not args.no_color and sys.stdout.isatty()

    print(f"\n  Linting: {plan.title}")
    print(f"  Source:  {plan.raw_path}")
    print(f"  Mode:    {'FIX' if args.fix else 'CHECK'}")
    print()

    linter = Linter(
        plan.raw_path,
        image_dir=args.image_dir,
        fix=args.fix,
        verbose=args.verbose > 0,
        color=color,
    )
    return 0 if linter.run() else 1


# ── Argument Parser ────────────────────────────────────────────────────


def build_parser():
    parser = argparse.ArgumentParser(
        prog="rote",
        description="Compile rote markup into an EPUB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s epub books/neko images/ out/neko.epub   Build the EPUB
  %(prog)s -vv epub books/neko images/ out/neko    Build with debug logging
  %(prog)s lint books/neko images/                 Check markup and images
  %(prog)s lint books/neko --fix                   Auto-fix what's fixable
        """,
    )
    parser.add_argument(
        "--verbose", "-v", action="count", default=0,
        help="More logging (-v info, -vv debug)",
    )
    parser.add_argument("--log", metavar="FILE", help="Also write debug logs to FILE")

    sub = parser.add_subparsers(dest="command")

    # ── epub ───────────────────────────────────────────────
    epub_p = sub.add_parser("epub", help="Build an EPUB")
    _add_plan_arg(epub_p)
    epub_p.add_argument("image_dir", help="Directory holding the referenced images")
    epub_p.add_argument("output", help="Output path (.epub is appended if missing)")

    # ── lint ───────────────────────────────────────────────
    lint_p = sub.add_parser("lint", help="Lint the raw markup")
    _add_plan_arg(lint_p)
    lint_p.add_argument(
        "image_dir", nargs="?", default=None,
        help="Check referenced images against this directory",
    )
    lint_p.add_argument("--fix", action="store_true", help="Auto-fix fixable issues")
    lint_p.add_argument("--no-color", action="store_true", help="Plain output")

    return parser


def _add_plan_arg(parser):
    parser.add_argument("plan", help="Plan file, or a directory containing plan.yaml")


# ── Main ───────────────────────────────────────────────────────────────


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    dispatch = {
        "epub": cmd_epub,
        "lint": cmd_lint,
    }

    handler = dispatch.get(args.command)
    if not handler:
        parser.print_help()
        return 1

    setup_logging(args.verbose, args.log)

    try:
        return handler(args)
    except RoteError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        log_path = "rote_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}")
        print(f"Full traceback written to {log_path}")
        sys.exit(1)
