"""
Plan, artifact, and image resolution.

Every module that needs to find a plan file, a shared stylesheet, or an image
referenced by the markup imports from here.
"""

import os

from rotelib.config import PLAN_FILENAME
from rotelib.errors import ConfigError


PACKAGE_ARTIFACTS = os.path.join(os.path.dirname(os.path.abspath(__file__)), "artifacts")


def find_plan(identifier):
    """
    Resolve a plan identifier to a plan file path.

    Accepts:
        - Plan file:   books/neko/plan.yaml
        - Directory:   books/neko   (must contain plan.yaml)

    Returns: absolute path to the plan file, or None.
    """
    if os.path.isfile(identifier):
        return os.path.abspath(identifier)

    candidate = os.path.join(identifier, PLAN_FILENAME)
    if os.path.isfile(candidate):
        return os.path.abspath(candidate)

    return None


def resolve_artifact(plan_dir, filename):
    """
    Resolve a static artifact filename to its full path.

    Search order (first match wins):
        1. <plan dir>/artifacts/   (per-book overrides)
        2. <plan dir>/
        3. bundled rotelib/artifacts/   (default stylesheets)

    Returns: absolute path or None.
    """
    if not filename:
        return None

    for root in [os.path.join(plan_dir, "artifacts"), plan_dir, PACKAGE_ARTIFACTS]:
        path = os.path.join(root, filename)
        if os.path.isfile(path):
            return os.path.abspath(path)

    return None


def read_artifact(plan_dir, filename):
    """Resolve and read an artifact as bytes. Missing artifacts are fatal."""
    path = resolve_artifact(plan_dir, filename)
    if not path:
        raise ConfigError(
            f"Could not find `{filename}` in {os.path.join(plan_dir, 'artifacts')}, "
            f"{plan_dir} or the bundled artifacts"
        )
    with open(path, "rb") as f:
        return f.read()


def read_image(image_dir, filename):
    """Read an image referenced by the plan or the markup."""
    path = os.path.join(image_dir, filename)
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise ConfigError(f"Could not read image {path}: {e}") from e
