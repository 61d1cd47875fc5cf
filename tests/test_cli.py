import logging
import os
import zipfile

import pytest

import rote


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("rotelib")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_epub_command(make_book, tmp_path, capsys):
    plan_path, image_dir = make_book()
    out = tmp_path / "dist" / "neko"

    code = rote.main(["epub", os.path.dirname(plan_path), image_dir, str(out)])

    assert code == 0
    assert zipfile.is_zipfile(str(out) + ".epub")
    printed = capsys.readouterr().out
    assert "Building EPUB: 吾輩は猫である" in printed
    assert f"✓ {out}.epub" in printed


def test_markup_error_exits_with_message(make_book, tmp_path, capsys):
    plan_path, image_dir = make_book(raw="本文\n#bogus#\n")
    target = tmp_path / "x.epub"

    code = rote.main(["epub", plan_path, image_dir, str(target)])

    assert code == 1
    err = capsys.readouterr().err
    assert "Error: line 2: `bogus` is an unimplemented directive" in err
    assert "Traceback" not in err
    assert not target.exists()


def test_missing_plan(tmp_path, capsys):
    code = rote.main(["epub", str(tmp_path / "nowhere"), str(tmp_path), str(tmp_path / "x")])

    assert code == 1
    assert "Could not find a plan" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert rote.main([]) == 1
    assert "usage:" in capsys.readouterr().out


def test_lint_command(make_book, capsys):
    plan_path, image_dir = make_book()

    assert rote.main(["lint", plan_path, image_dir, "--no-color"]) == 0
    assert "Mode:    CHECK" in capsys.readouterr().out


def test_lint_command_reports_errors(make_book):
    plan_path, image_dir = make_book(raw="#img,missing.png#\n")
    assert rote.main(["lint", plan_path, image_dir, "--no-color"]) == 1


def test_log_file_gets_debug_records(make_book, tmp_path):
    plan_path, image_dir = make_book()
    log_path = tmp_path / "rote.log"

    code = rote.main(["--log", str(log_path), "epub", plan_path, image_dir, str(tmp_path / "b.epub")])

    assert code == 0
    text = log_path.read_text(encoding="utf-8")
    assert "Inserted cover `cover.jpg`" in text
    assert "Added toc action" in text
    assert "paragraph number `004`" in text


def test_verbosity_levels():
    rote.setup_logging(0)
    assert logging.getLogger("rotelib").level == logging.WARNING
    rote.setup_logging(1)
    assert logging.getLogger("rotelib").level == logging.INFO
    rote.setup_logging(3)
    assert logging.getLogger("rotelib").level == logging.DEBUG
