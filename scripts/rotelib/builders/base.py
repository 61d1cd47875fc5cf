"""
Base builder class for output containers.

Subclasses implement `build()` and set `format_name` / `extension`.
Shared logic (output path, console header, artifact and image lookup) lives
here.
"""

import logging
import os
from abc import ABC, abstractmethod

from rotelib.resolve import read_artifact, read_image

logger = logging.getLogger(__name__)


class BaseBuilder(ABC):
    """
    Abstract base for container builders.

    Subclasses must define:
        format_name:  str,   human-readable name ("EPUB")
        extension:    str,   output file extension (".epub")
        build():      method, the actual build logic
    """

    format_name = None  # Override in subclass
    extension = None    # Override in subclass

    def __init__(self, plan, image_dir, output_path, verbose=False):
        self.plan = plan
        self.image_dir = image_dir
        self.output_path = output_path
        self.verbose = verbose

    # ── Output path ────────────────────────────────────────

    @property
    def output_file(self):
        if self.output_path.endswith(self.extension):
            return self.output_path
        return f"{self.output_path}{self.extension}"

    # ── Logging ────────────────────────────────────────────

    def log(self, msg, *args):
        logger.info(msg, *args)

    def header(self):
        print(f"\n{'─' * 60}")
        print(f"  Building {self.format_name}: {self.plan.title}")
        print(f"{'─' * 60}")

    # ── Input resolution (delegates to shared module) ──────

    def artifact(self, filename):
        """Read a static artifact for this plan."""
        return read_artifact(self.plan.plan_dir, filename)

    def image(self, filename):
        """Read an image from the image directory."""
        return read_image(self.image_dir, filename)

    def ensure_output_dir(self):
        out_dir = os.path.dirname(os.path.abspath(self.output_file))
        os.makedirs(out_dir, exist_ok=True)
        return out_dir

    # ── Abstract interface ─────────────────────────────────

    @abstractmethod
    def build(self):
        """
        Execute the build. Returns the output path; raises RoteError on failure.
        """
        ...
