"""
Unit rendering: one fixed XHTML template per content kind, plus the small
markup fragments the sequencer accumulates into page bodies.

Templates escape plan fields (title, language). Page bodies are inserted
verbatim; the raw markup may carry inline XHTML such as ruby.
"""

import os
import xml.sax.saxutils as xsu

from rotelib.errors import UnsupportedImageTypeError


IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
}

KEEP_SPACE_IMAGE = "keep-space.jpg"
BOOK_STYLE = "book-style.css"
FIT_STYLE = "fit-style.css"


def image_mime(filename):
    """MIME type from the file extension. Only .png and .jpg are accepted."""
    ext = os.path.splitext(filename)[1]
    try:
        return IMAGE_MIME_TYPES[ext]
    except KeyError:
        raise UnsupportedImageTypeError(filename) from None


# ── Fragments ──────────────────────────────────────────────────────────

BLANK_PARAGRAPH = "<p><br/></p>\n"


def paragraph(text, indent=True):
    """Wrap one line of text; indented paragraphs open with an ideographic space."""
    if indent:
        return f"<p>　{text}</p>\n"
    return f"<p>{text}</p>\n"


def chapter_heading(mokuji, title):
    return (
        f'<p class="mfont font-1em30" id="mokuji-{mokuji:04d}">{title}</p>\n'
        + BLANK_PARAGRAPH
    )


def afterword_heading(mokuji, title):
    return (
        f'<p class="mfont font-1em30" id="mokuji-{mokuji:04d}">　{title}</p>\n'
        + BLANK_PARAGRAPH
    )


def fill_block(text):
    """Right-aligned signature block."""
    return BLANK_PARAGRAPH + f'<div class="align-end">\n<p>{text}</p>\n</div>\n'


def glyph_tag(filename):
    return f'<img class="gaiji" src="../image/{filename}" alt="" />'


# ── Page templates ─────────────────────────────────────────────────────

_HTML_OPEN = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    "<!DOCTYPE html>\n"
    "<html\n"
    ' xmlns="http://www.w3.org/1999/xhtml"\n'
    ' xmlns:epub="http://www.idpf.org/2007/ops"\n'
    ' xml:lang="{lang}"\n'
    ' class="{html_class}"\n'
    ">\n"
    "<head>\n"
    '<meta charset="UTF-8"/>\n'
    "<title>{title}</title>\n"
)

_KEEP_SPACE = f'<p class="dummy"><img class="keep-space" src="../image/{KEEP_SPACE_IMAGE}"/></p>\n'

CONTENT_TEMPLATE = (
    _HTML_OPEN
    + f'<link rel="stylesheet" type="text/css" href="../style/{BOOK_STYLE}"/>\n'
    "</head>\n"
    '<body class="p-honmon top-left-on">\n'
    + _KEEP_SPACE
    + '<div class="main">\n'
    "{body}</div>\n"
    "</body>\n"
    "</html>"
)

IMAGE_TEMPLATE = (
    _HTML_OPEN
    + f'<link rel="stylesheet" type="text/css" href="../style/{BOOK_STYLE}"/>\n'
    "</head>\n"
    '<body class="p-image middle-center-on">\n'
    + _KEEP_SPACE
    + '<div class="main">\n'
    '<p><img class="fit" src="../image/{image}" alt=""/></p>\n'
    "</div>\n"
    "</body>\n"
    "</html>"
)

FULLBLEED_TEMPLATE = (
    _HTML_OPEN
    + f'<link rel="stylesheet" type="text/css" href="../style/{FIT_STYLE}"/>\n'
    '<meta name="viewport" content="width=2048, height=1444"/>\n'
    "</head>\n"
    '<body class="p-image">\n'
    '<div class="main align-center">\n'
    '<p><img class="fit" src="../image/{image}" alt=""/></p>\n'
    "</div>\n"
    "</body>\n"
    "</html>"
)

COVER_TEMPLATE = (
    _HTML_OPEN
    + f'<link rel="stylesheet" type="text/css" href="../style/{BOOK_STYLE}"/>\n'
    "</head>\n"
    '<body epub:type="cover" class="p-cover">\n'
    '<div class="main">\n'
    '<p><img class="fit" src="../image/{image}" alt=""/></p>\n'
    "</div>\n"
    "</body>\n"
    "</html>"
)

TOC_TEMPLATE = (
    _HTML_OPEN
    + f'<link rel="stylesheet" type="text/css" href="../style/{BOOK_STYLE}"/>\n'
    "</head>\n"
    '<body class="p-toc top-left-off">\n'
    + _KEEP_SPACE
    + '<div class="main">\n'
    '<div class="start-2em">\n'
    '<p>　<span class="mfont font-1em30">{toc_name}</span></p>\n'
    + BLANK_PARAGRAPH
    + '<div class="font-1em10">\n'
    "{entries}"
    "</div>\n"
    "</div>\n"
    "</div>\n"
    "</body>\n"
    "</html>"
)


def _head(plan, html_class):
    return {
        "lang": xsu.escape(plan.lang, {'"': "&quot;"}),
        "title": xsu.escape(plan.title),
        "html_class": html_class,
    }


def content_page(plan, body):
    """Body, titled body, afterword, copyright, bibliography and colophon text."""
    return CONTENT_TEMPLATE.format(body=body, **_head(plan, "vrtl"))


def image_page(plan, image):
    """Standalone image and colophon image."""
    return IMAGE_TEMPLATE.format(image=image, **_head(plan, "hltr"))


def fullbleed_page(plan, image):
    """Preface images and the title page."""
    return FULLBLEED_TEMPLATE.format(image=image, **_head(plan, "hltr"))


def cover_page(plan, image):
    return COVER_TEMPLATE.format(image=image, **_head(plan, "hltr"))


def toc_page(plan, entries):
    return TOC_TEMPLATE.format(
        toc_name=xsu.escape(plan.toc_name), entries=entries, **_head(plan, "vrtl")
    )
