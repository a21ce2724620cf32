# tests/test_zip_adapter.py
import io
import json
import zipfile

import pytest

from conftest import make_zip
from core.domain.errors import ValidationError
from core.domain.models import SourceFile
from infrastructure.adapters.archives.zip_adapter import (
    ZipArchiveAdapter,
    is_text_file,
    summary_archive_name,
)


def read_zip(data):
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return {name: archive.read(name).decode("utf-8") for name in archive.namelist()}


class TestExtract:
    def test_keeps_text_files_in_archive_order(self):
        data = make_zip([
            ("src/main.py", "print(1)"),
            ("logo.png", "\x89PNG"),
            ("docs/README.MD", "# hi"),
            ("Makefile", "all:"),
        ])
        files = ZipArchiveAdapter().extract(data)
        assert files == [SourceFile("src/main.py", "print(1)"), SourceFile("docs/README.MD", "# hi")]

    def test_skips_directories(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("src/", "")
            archive.writestr("src/a.js", "let a;")
        assert ZipArchiveAdapter().extract(buffer.getvalue()) == [SourceFile("src/a.js", "let a;")]

    def test_undecodable_entry_is_skipped(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("bad.txt", b"\xff\xfe\xfa")
            archive.writestr("good.txt", "ok")
        assert ZipArchiveAdapter().extract(buffer.getvalue()) == [SourceFile("good.txt", "ok")]

    def test_duplicate_entry_replaces_content_in_place(self):
        with pytest.warns(UserWarning):
            data = make_zip([("a.py", "old"), ("b.py", "b"), ("a.py", "new")])
        assert ZipArchiveAdapter().extract(data) == [SourceFile("a.py", "new"), SourceFile("b.py", "b")]

    def test_not_a_zip(self):
        with pytest.raises(ValidationError):
            ZipArchiveAdapter().extract(b"definitely not a zip")

    @pytest.mark.parametrize("name, expected", [
        ("a.PY", True), ("x.yaml", True), ("run.sh", True), ("img.jpeg", False), ("noext", False),
    ])
    def test_text_file_filter(self, name, expected):
        assert is_text_file(name) is expected


class TestCreate:
    def test_packs_given_files(self):
        data, name = ZipArchiveAdapter().create([SourceFile("src/a.py", "x = 2")], "fixed-proj.zip")
        assert name == "fixed-proj.zip"
        assert read_zip(data) == {"src/a.py": "x = 2"}

    def test_empty_file_list_gives_summary(self):
        data, name = ZipArchiveAdapter().create([], "fixed-proj.zip")
        assert name == "summary-proj.zip"
        contents = read_zip(data)
        assert list(contents) == ["summary.json"]
        summary = json.loads(contents["summary.json"])
        assert set(summary) == {"status", "message", "timestamp"}
        assert summary["status"] == "Completed"

    def test_summary_name_always_ends_in_zip(self):
        assert summary_archive_name("fixed-project") == "summary-project.zip"
        assert summary_archive_name("other.zip") == "other.zip"

    def test_created_archive_can_be_extracted_again(self):
        files = [SourceFile("a.md", "# title"), SourceFile("b/c.ts", "let x = 1;")]
        data, _ = ZipArchiveAdapter().create(files, "fixed-x.zip")
        assert ZipArchiveAdapter().extract(data) == files
