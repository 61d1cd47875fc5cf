"""
Book plan: load, validate, and provide defaults for plan.yaml.
"""

import os
import uuid
from dataclasses import dataclass

import yaml

from rotelib.errors import ConfigError


PLAN_FILENAME = "plan.yaml"

# Fields required in every plan.yaml
REQUIRED_FIELDS = ["title", "author", "lang", "generator", "toc_name", "cover_image", "raw"]

# Optional fields and their defaults (None = derived at load time)
DEFAULTS = {
    "identifier": None,
}


@dataclass(frozen=True)
class BookPlan:
    """
    Loaded, validated book plan.

    Usage:
        plan = BookPlan.load("book/plan.yaml")
        plan.title        # "吾輩は猫である"
        plan.raw_path     # absolute path of the raw markup file
    """

    title: str
    author: str
    lang: str
    generator: str
    toc_name: str
    cover_image: str
    raw: str
    identifier: str
    plan_dir: str = "."

    @classmethod
    def load(cls, plan_path):
        """Load and validate a plan file."""
        if not os.path.exists(plan_path):
            raise ConfigError(f"No plan file found at {plan_path}")

        try:
            with open(plan_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read plan {plan_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(
                f"{os.path.basename(plan_path)} must be a YAML mapping, got {type(data).__name__}"
            )

        return cls.from_mapping(data, os.path.dirname(os.path.abspath(plan_path)))

    @classmethod
    def from_mapping(cls, data, plan_dir="."):
        """Validate a plain mapping (already parsed) into a BookPlan."""
        missing = [key for key in REQUIRED_FIELDS if not data.get(key)]
        if missing:
            raise ConfigError(f"plan missing required fields: {', '.join(missing)}")

        values = {key: str(data[key]) for key in REQUIRED_FIELDS}
        for key, default in DEFAULTS.items():
            values[key] = data.get(key, default)

        if not values["identifier"]:
            seed = f"{values['title']}\n{values['author']}"
            values["identifier"] = f"urn:uuid:{uuid.uuid5(uuid.NAMESPACE_URL, seed)}"

        return cls(plan_dir=plan_dir, **values)

    # ── Convenience ────────────────────────────────────────

    @property
    def raw_path(self):
        """The raw markup file, resolved against the plan directory."""
        if os.path.isabs(self.raw):
            return self.raw
        return os.path.join(self.plan_dir, self.raw)

    def read_raw(self):
        """Read the raw markup text."""
        try:
            with open(self.raw_path, encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Could not read raw text {self.raw_path}: {e}") from e

    def summary(self):
        """Print a short plan summary."""
        print(f"\n  Book:   {self.title}")
        print(f"  Author: {self.author}")
        print(f"  Raw:    {self.raw_path}")
