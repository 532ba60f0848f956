"""
Tests for loading and validating local files.
"""
import pytest

from upload_pipeline.models import UploadFile
from upload_pipeline.scanner import MAX_FILE_SIZE, FileScanner, validate_file


def test_load_reads_bytes_and_type(tmp_path):
    path = tmp_path / "front.png"
    path.write_bytes(b"\x89PNG")

    file = FileScanner().load(path)

    assert file.name == "front.png"
    assert file.data == b"\x89PNG"
    assert file.size == 4
    assert file.content_type == "image/png"
    assert file.extension == "png"


def test_load_unknown_type(tmp_path):
    path = tmp_path / "blob"
    path.write_bytes(b"x")

    assert FileScanner().load(path).content_type == "application/octet-stream"


def test_load_rejects_directory(tmp_path):
    with pytest.raises(ValueError):
        FileScanner().load(tmp_path)


def test_scan_folder(tmp_path):
    (tmp_path / "b.jpg").write_bytes(b"b")
    (tmp_path / "a.jpg").write_bytes(b"a")
    (tmp_path / "notes.txt").write_text("n")
    (tmp_path / "sub").mkdir()

    found = FileScanner().scan_folder(tmp_path, "*.jpg")

    assert [p.name for p in found] == ["a.jpg", "b.jpg"]


def test_scan_missing_folder(tmp_path):
    assert FileScanner().scan_folder(tmp_path / "missing") == []


def test_validate_accepts_image():
    validate_file(UploadFile(name="a.webp", data=b"x", content_type="image/webp"))


def test_validate_rejects_type():
    file = UploadFile(name="a.pdf", data=b"x", content_type="application/pdf")

    with pytest.raises(ValueError, match="Invalid file format"):
        validate_file(file)

    validate_file(file, allowed_types=None)


def test_validate_rejects_size():
    file = UploadFile(name="a.png", data=b"x" * 11, content_type="image/png")

    with pytest.raises(ValueError, match="too large"):
        validate_file(file, max_size=10)


def test_default_size_limit():
    assert MAX_FILE_SIZE == 100 * 1024 * 1024


def test_empty_name_rejected():
    with pytest.raises(ValueError):
        UploadFile(name="", data=b"x")
