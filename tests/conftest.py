import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "scripts")))

from rotelib.config import BookPlan


PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 32
JPG = b"\xff\xd8\xff\xe0" + b"0" * 32

PLAN_YAML = """\
title: 吾輩は猫である
author: 夏目漱石
lang: ja
generator: rote
toc_name: 目次
cover_image: cover.jpg
raw: raw.txt
"""

SAMPLE_RAW = """\
#title-page,title.png#
#preface-img,preface1.jpg#
#preface-img,preface2.jpg#
#toc#
#toc-chapter,第一章#
#toc-chapter,phantom#
#toc-chapter,第二章#
#chapter,第一章#
吾輩は猫である。
「名前はまだない」
----------
#chapter,第二章#
どこで生れたか#gaiji,g1.png#とんと見当がつかぬ。
#img,scene.jpg#
#atogaki,あとがき#
ありがとう。
#fill,著者#
#end-atogaki#
#colophon,colophon.png#
"""

SAMPLE_IMAGES = ["cover.jpg", "title.png", "preface1.jpg", "preface2.jpg", "g1.png", "scene.jpg", "colophon.png"]


def write_image(image_dir, name):
    data = PNG if name.endswith(".png") else JPG
    with open(os.path.join(image_dir, name), "wb") as f:
        f.write(data)


@pytest.fixture
def make_book(tmp_path):
    """
    Returns a factory writing plan.yaml, raw.txt, artifacts/keep-space.jpg
    and the named images. The factory returns (plan_path, image_dir).
    """

    def factory(raw=SAMPLE_RAW, images=SAMPLE_IMAGES, plan_yaml=PLAN_YAML):
        book_dir = tmp_path / "book"
        image_dir = tmp_path / "images"
        (book_dir / "artifacts").mkdir(parents=True, exist_ok=True)
        image_dir.mkdir(exist_ok=True)

        (book_dir / "plan.yaml").write_text(plan_yaml, encoding="utf-8")
        (book_dir / "raw.txt").write_text(raw, encoding="utf-8")
        (book_dir / "artifacts" / "keep-space.jpg").write_bytes(JPG)
        for name in images:
            write_image(str(image_dir), name)

        return str(book_dir / "plan.yaml"), str(image_dir)

    return factory


@pytest.fixture
def plan(tmp_path):
    return BookPlan.from_mapping(
        {
            "title": "吾輩は猫である",
            "author": "夏目漱石",
            "lang": "ja",
            "generator": "rote",
            "toc_name": "目次",
            "cover_image": "cover.jpg",
            "raw": "raw.txt",
        },
        str(tmp_path),
    )
