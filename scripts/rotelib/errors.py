"""
Error taxonomy for the compiler.

Every failure the CLI reports as a one-line message derives from RoteError.
Anything else is a bug and gets a traceback.
"""


class RoteError(Exception):
    """Base class for predictable, user-facing build failures."""
    pass


class ConfigError(RoteError):
    """Raised when the plan, raw text, an artifact or an image is missing or invalid."""
    pass


class MarkupError(RoteError):
    """Raised when the raw markup is structurally unusable."""

    def __init__(self, message, lineno=None):
        self.lineno = lineno
        self.detail = message
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)


class UnknownDirectiveError(MarkupError):
    """A `#name,...#` directive whose name is not in the command set."""

    def __init__(self, name, lineno=None):
        self.name = name
        super().__init__(f"`{name}` is an unimplemented directive", lineno)


class UnsupportedImageTypeError(RoteError):
    """Image extension outside .png / .jpg."""

    def __init__(self, filename):
        self.filename = filename
        super().__init__(f"Unsupported image type: {filename} (expected .png or .jpg)")


class TocMismatchError(RoteError):
    """TOC placeholder count differs from the number of TOC-linked units."""

    def __init__(self, placeholders, targets):
        self.placeholders = placeholders
        self.targets = targets
        super().__init__(
            f"TOC has {placeholders} linked entries but the text has "
            f"{targets} TOC-linked units"
        )
