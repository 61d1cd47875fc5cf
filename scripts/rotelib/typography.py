"""
Typographic normalization.

Rewrites ASCII punctuation to the full-width forms used in Japanese
typesetting. Applied to the whole raw text before any parsing, directives
included.
"""


# Each: (description, ascii, full-width). Applied in order; "..." must run
# before anything else touches dots.
NORMALIZATION_RULES = [
    ("Three dots (becomes ellipsis)", "...", "…"),
    ("ASCII question mark", "?", "？"),
    ("ASCII left parenthesis", "(", "（"),
    ("ASCII right parenthesis", ")", "）"),
    ("ASCII exclamation mark", "!", "！"),
    ("ASCII tilde", "~", "〜"),
]


def normalize(text):
    """Apply every normalization rule to text. Idempotent."""
    for _description, ascii_form, full_width in NORMALIZATION_RULES:
        text = text.replace(ascii_form, full_width)
    return text
