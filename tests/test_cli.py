"""
Tests for the command-line interface.
"""
import json
from unittest.mock import patch

import pytest

from upload_pipeline import cli
from upload_pipeline.storage import InMemoryStorage


@pytest.fixture
def memory_storage():
    storage = InMemoryStorage()
    with patch('upload_pipeline.cli.create_storage', return_value=storage):
        yield storage


def test_upload_prints_urls(memory_storage, tmp_path, capsys):
    photo = tmp_path / "photo.jpg"
    photo.write_bytes(b"jpeg")

    with pytest.raises(SystemExit) as exc_info:
        cli.main(['upload', 'avatars', str(photo), '-f', 'users/7'])

    assert exc_info.value.code == 0
    out = capsys.readouterr().out.strip().splitlines()
    assert len(out) == 1
    assert out[0].startswith("memory://storage/avatars/users/7/")
    assert len(memory_storage.objects["avatars"]) == 1


def test_upload_folder(memory_storage, tmp_path, capsys):
    folder = tmp_path / "listing"
    folder.mkdir()
    for name in ("a.png", "b.png", "c.png"):
        (folder / name).write_bytes(name.encode())

    with pytest.raises(SystemExit) as exc_info:
        cli.main(['upload', 'properties', str(folder), '-p', '*.png', '--concurrency', '2'])

    assert exc_info.value.code == 0
    assert len(capsys.readouterr().out.strip().splitlines()) == 3


def test_upload_rejects_non_image(memory_storage, tmp_path):
    doc = tmp_path / "doc.pdf"
    doc.write_bytes(b"pdf")

    with pytest.raises(SystemExit) as exc_info:
        cli.main(['upload', 'avatars', str(doc)])

    assert exc_info.value.code == 1
    assert memory_storage.objects == {}


def test_upload_any_type(memory_storage, tmp_path):
    doc = tmp_path / "doc.pdf"
    doc.write_bytes(b"pdf")

    with pytest.raises(SystemExit) as exc_info:
        cli.main(['upload', 'docs', str(doc), '--allow-any-type'])

    assert exc_info.value.code == 0


def test_delete(memory_storage):
    memory_storage.objects["avatars"] = {"a.png": b"a", "b.png": b"b"}

    with pytest.raises(SystemExit) as exc_info:
        cli.main(['delete', 'avatars', 'a.png'])

    assert exc_info.value.code == 0
    assert list(memory_storage.objects["avatars"]) == ["b.png"]


def test_config_file_is_used(memory_storage, tmp_path):
    config_file = tmp_path / "config.json"
    log_dir = tmp_path / "logs"
    config_file.write_text(json.dumps({"log_dir": str(log_dir)}))
    photo = tmp_path / "photo.png"
    photo.write_bytes(b"png")

    with pytest.raises(SystemExit):
        cli.main(['-c', str(config_file), 'upload', 'avatars', str(photo)])

    assert len(list(log_dir.glob("batch_*.json"))) == 1


def test_invalid_config_exits_with_error(memory_storage, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"concurrency": 0}))

    with pytest.raises(SystemExit) as exc_info:
        cli.main(['-c', str(config_file), 'delete', 'avatars', 'a.png'])

    assert exc_info.value.code == 1


def test_non_object_config_uses_defaults(memory_storage, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps([1, 2]))
    memory_storage.objects["avatars"] = {"a.png": b"a"}

    with pytest.raises(SystemExit) as exc_info:
        cli.main(['-c', str(config_file), 'delete', 'avatars', 'a.png'])

    assert exc_info.value.code == 0
    assert memory_storage.objects["avatars"] == {}
