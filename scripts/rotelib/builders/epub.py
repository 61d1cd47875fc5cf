"""
EPUB builder.

Pipeline: read inputs → compile markup → lay out units → package with
ebooklib → write to a temporary file → rename into place.

Container layout (under the EPUB/ folder ebooklib writes):

    style/book-style.css, style/fit-style.css
    image/keep-space.jpg, image/cover-image.<ext>, image/<every referenced image>
    xhtml/p-cover.xhtml          cover, always first in the spine
    xhtml/p-toc.xhtml            #toc#
    xhtml/p-titlepage.xhtml      #title-page,...#
    xhtml/p-fmatter-NNN.xhtml    #preface-img,...#, own sequence
    xhtml/p-NNN.xhtml            body text and standalone images, shared sequence
    xhtml/p-colophon.xhtml       #colophon,...#
"""

import os
import tempfile
from dataclasses import dataclass
from typing import List, Optional

from ebooklib import epub

from rotelib import render
from rotelib.builders.base import BaseBuilder
from rotelib.compiler import compile_plan
from rotelib.errors import MarkupError
from rotelib.sequencer import NUMBERED_KINDS, ActionKind


COVER_TITLE = "表紙"

# Options for ebooklib's writer. Page lists are derived from EpubHtml
# bodies, which the fixed-template pages are not.
WRITE_OPTIONS = {"epub3_pages": False}

FIXED_NAMES = {
    ActionKind.TOC: "xhtml/p-toc.xhtml",
    ActionKind.TITLE_PAGE: "xhtml/p-titlepage.xhtml",
    ActionKind.COLOPHON_IMAGE: "xhtml/p-colophon.xhtml",
}

# Roles every unit of the kind carries
FIXED_ROLES = {
    ActionKind.TOC: "toc",
    ActionKind.PREFACE_IMAGE: "preface",
    ActionKind.TITLE_PAGE: "title-page",
    ActionKind.COLOPHON_IMAGE: "colophon",
    ActionKind.AFTERWORD: "afterword",
}

# Role of the first main-text unit; later units of this family carry none
FIRST_TEXT_ROLES = {
    ActionKind.BODY: "text",
    ActionKind.BODY_WITH_CHAPTER_TITLE: "text",
    ActionKind.IMAGE: "text",
    ActionKind.COPYRIGHT: "copyright",
    ActionKind.BIBLIOGRAPHY: "bibliography",
    ActionKind.COLOPHON_TEXT: "colophon",
}

# Role → EPUB 2 guide reference type (ebooklib maps these to EPUB 3 landmarks)
GUIDE_TYPES = {
    "cover": "cover",
    "toc": "toc",
    "preface": "preface",
    "title-page": "title-page",
    "text": "text",
    "afterword": "afterword",
    "copyright": "copyright-page",
    "bibliography": "bibliography",
    "colophon": "colophon",
}


@dataclass(frozen=True)
class Unit:
    action: object
    file_name: Optional[str]  # None for glyph images, which are resources only
    number: Optional[int] = None
    role: Optional[str] = None


def layout_units(actions):
    """
    Assign a file name, sequence number, and role to every action.

    Body-numbered kinds share the paragraph sequence (p-NNN), preface images
    have their own (p-fmatter-NNN), and the TOC, title page, and colophon
    image have fixed names.
    """
    units: List[Unit] = []
    paragraph = 1
    preface = 1
    text_started = False
    used = set()

    for action in actions:
        kind = action.kind
        if kind is ActionKind.GLYPH_IMAGE:
            units.append(Unit(action, None))
            continue

        number = None
        role = FIXED_ROLES.get(kind)

        if kind in FIXED_NAMES:
            name = FIXED_NAMES[kind]
            if name in used:
                raise MarkupError(f"more than one {kind.value} unit in the text")
        elif kind is ActionKind.PREFACE_IMAGE:
            number = preface
            name = f"xhtml/p-fmatter-{preface:03d}.xhtml"
            preface += 1
        elif kind in NUMBERED_KINDS:
            number = paragraph
            name = f"xhtml/p-{paragraph:03d}.xhtml"
            paragraph += 1
            if kind in FIRST_TEXT_ROLES and not text_started:
                role = FIRST_TEXT_ROLES[kind]
                text_started = True
        else:
            raise MarkupError(f"no layout for {kind.value} units")

        used.add(name)
        units.append(Unit(action, name, number, role))

    return units


class EpubPackage:
    """
    Work-in-progress container around an ebooklib EpubBook.

    Pages go into the manifest and spine in the order they are added;
    images are packaged once each, however often they are referenced.
    """

    def __init__(self, plan):
        self.plan = plan
        self.book = epub.EpubBook()
        self.spine: List[str] = []
        self.nav: List[epub.Link] = []
        self._images = {}
        self._finalized = False

        self.book.set_identifier(plan.identifier)
        self.book.set_title(plan.title)
        self.book.set_language(plan.lang)
        self.book.add_author(plan.author)
        self.book.set_unique_metadata(
            "OPF", "generator", "", {"name": "generator", "content": plan.generator}
        )

    def add_resource(self, uid, file_name, media_type, content):
        self.book.add_item(
            epub.EpubItem(uid=uid, file_name=file_name, media_type=media_type, content=content)
        )

    def add_cover_image(self, filename, content):
        mime = render.image_mime(filename)
        cover_name = "cover-image" + os.path.splitext(filename)[1]
        cover = epub.EpubCover(uid="cover-image", file_name=f"image/{cover_name}")
        cover.media_type = mime
        cover.content = content
        self.book.add_item(cover)
        self.book.add_metadata(None, "meta", "", {"name": "cover", "content": "cover-image"})
        return cover_name

    def has_image(self, filename):
        return filename in self._images

    def add_image(self, filename, content):
        """Package an image under image/<filename>, once."""
        if filename in self._images:
            return self._images[filename]
        uid = f"img-{len(self._images) + 1:04d}"
        self.book.add_item(
            epub.EpubImage(
                uid=uid,
                file_name=f"image/{filename}",
                media_type=render.image_mime(filename),
                content=content,
            )
        )
        self._images[filename] = uid
        return uid

    def add_page(self, file_name, content, title=None, role=None, in_nav=False):
        """Add an XHTML page to manifest and spine, with optional guide role and nav entry."""
        uid = os.path.splitext(os.path.basename(file_name))[0]
        self.book.add_item(
            epub.EpubItem(
                uid=uid,
                file_name=file_name,
                media_type="application/xhtml+xml",
                content=content.encode("utf-8"),
            )
        )
        self.spine.append(uid)
        label = title or self.plan.title
        if role:
            self.book.guide.append({"href": file_name, "title": label, "type": GUIDE_TYPES[role]})
        if in_nav:
            self.nav.append(epub.Link(file_name, label, f"nav-{uid}"))

    def finalize(self):
        """Attach spine, navigation, and TOC documents. Only once."""
        if self._finalized:
            raise RuntimeError("EpubPackage already finalized")
        self.book.toc = list(self.nav)
        self.book.spine = list(self.spine)
        self.book.add_item(epub.EpubNcx())
        self.book.add_item(epub.EpubNav())
        self._finalized = True

    def write(self, out_path):
        """
        Write the container to out_path atomically.

        ebooklib's write_epub() swallows IOError, so the writer is driven
        directly and any failure propagates after the temporary file is removed.
        """
        out_dir = os.path.dirname(os.path.abspath(out_path))
        fd, tmp_path = tempfile.mkstemp(prefix=".rote-", suffix=".epub", dir=out_dir)
        os.close(fd)
        try:
            writer = epub.EpubWriter(tmp_path, self.book, WRITE_OPTIONS)
            writer.process()
            writer.write()
            os.replace(tmp_path, out_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class EpubBuilder(BaseBuilder):
    format_name = "EPUB"
    extension = ".epub"

    def build(self):
        self.header()
        plan = self.plan

        # ── Inputs: any failure here happens before output exists ─
        render.image_mime(plan.cover_image)
        cover_data = self.image(plan.cover_image)
        book_style = self.artifact(render.BOOK_STYLE)
        fit_style = self.artifact(render.FIT_STYLE)
        keep_space = self.artifact(render.KEEP_SPACE_IMAGE)

        compiled = compile_plan(plan)
        units = layout_units(compiled.actions)
        self.log("Laid out %d units", len(units))

        # ── Metadata and shared resources ──────────────────
        package = EpubPackage(plan)
        package.add_resource("book-style", f"style/{render.BOOK_STYLE}", "text/css", book_style)
        package.add_resource("fit-style", f"style/{render.FIT_STYLE}", "text/css", fit_style)
        package.add_resource(
            "keep-space", f"image/{render.KEEP_SPACE_IMAGE}", "image/jpeg", keep_space
        )

        # ── Cover ──────────────────────────────────────────
        cover_name = package.add_cover_image(plan.cover_image, cover_data)
        package.add_page(
            "xhtml/p-cover.xhtml",
            render.cover_page(plan, cover_name),
            title=COVER_TITLE,
            role="cover",
            in_nav=True,
        )
        self.log("Inserted cover `%s`", plan.cover_image)

        # ── Units in action order ──────────────────────────
        for unit in units:
            self._add_unit(package, unit, compiled)

        package.finalize()
        self.ensure_output_dir()
        package.write(self.output_file)

        print(f"  ✓ {self.output_file}")
        return self.output_file

    def _image(self, package, filename):
        if not package.has_image(filename):
            render.image_mime(filename)
            package.add_image(filename, self.image(filename))

    def _add_unit(self, package, unit, compiled):
        plan = self.plan
        action = unit.action
        kind = action.kind

        if kind is ActionKind.GLYPH_IMAGE:
            self._image(package, action.content)
            self.log("Inserted glyph image `%s`", action.content)

        elif kind is ActionKind.TOC:
            package.add_page(
                unit.file_name, compiled.toc_xhtml, title=plan.toc_name, role=unit.role, in_nav=True
            )
            self.log("Inserted TOC")

        elif kind in (ActionKind.PREFACE_IMAGE, ActionKind.TITLE_PAGE):
            self._image(package, action.content)
            package.add_page(unit.file_name, render.fullbleed_page(plan, action.content), role=unit.role)
            self.log("Inserted %s image `%s` as %s", kind.value, action.content, unit.file_name)

        elif kind in (ActionKind.IMAGE, ActionKind.COLOPHON_IMAGE):
            self._image(package, action.content)
            package.add_page(unit.file_name, render.image_page(plan, action.content), role=unit.role)
            self.log("Inserted %s `%s` as %s", kind.value, action.content, unit.file_name)

        else:
            titled = kind in (ActionKind.BODY_WITH_CHAPTER_TITLE, ActionKind.AFTERWORD)
            package.add_page(
                unit.file_name,
                render.content_page(plan, action.content),
                title=action.title,
                role=unit.role,
                in_nav=titled and bool(action.title),
            )
            self.log("Inserted %s content with paragraph number `%03d`", kind.value, unit.number)
