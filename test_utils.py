import os

import pytest

from bagsum import utils
from bagsum.utils import SafeFile, is_dir, must_not_exist, walk


def test_must_not_exist(tmp_path):
    assert must_not_exist(tmp_path / "nope")
    (tmp_path / "file").write_text("x")
    assert not must_not_exist(tmp_path / "file")
    os.symlink(tmp_path / "nope", tmp_path / "dangling")
    assert not must_not_exist(tmp_path / "dangling")


def test_is_dir(tmp_path):
    (tmp_path / "file").write_text("x")
    assert is_dir(tmp_path)
    assert not is_dir(tmp_path / "file")
    assert not is_dir(tmp_path / "nope")


def test_walk(bag_dir):
    os.symlink(bag_dir / "data" / "a.txt", bag_dir / "data" / "link.txt")
    found = {path.relative_to(bag_dir).as_posix(): regular for path, regular in walk(bag_dir / "data")}
    assert found == {
        "data/a.txt": True,
        "data/b.txt": True,
        "data/link.txt": False,
        "data/nested": False,
        "data/nested/c.txt": True,
    }


def test_walk_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(walk(tmp_path / "nope"))


def test_safe_file(tmp_path):
    path = tmp_path / "bagit.txt"
    with SafeFile(path) as fp:
        fp.write("BagIt-Version: 0.97\n")
        assert not path.exists()
    assert path.read_text() == "BagIt-Version: 0.97\n"
    assert path.stat().st_mode & 0o777 == 0o644
    assert os.listdir(tmp_path) == ["bagit.txt"]


def test_safe_file_cancelled_by_exception(tmp_path):
    path = tmp_path / "bagit.txt"
    with pytest.raises(RuntimeError):
        with SafeFile(path) as fp:
            fp.write("partial")
            raise RuntimeError("boom")
    assert os.listdir(tmp_path) == []


def test_safe_file_will_not_replace(tmp_path):
    path = tmp_path / "bagit.txt"
    safe_file = SafeFile(path)
    safe_file.write("new")
    path.write_text("old")

    with pytest.raises(FileExistsError):
        safe_file.close()
    assert path.read_text() == "old"
    assert os.listdir(tmp_path) == ["bagit.txt"]


def test_safe_file_cancel_after_close(tmp_path):
    path = tmp_path / "bagit.txt"
    safe_file = SafeFile(path)
    safe_file.write("written")
    safe_file.close()
    assert path.exists()

    safe_file.cancel()
    assert os.listdir(tmp_path) == []


def test_safe_file_destination_created_during_write(tmp_path, monkeypatch):
    path = tmp_path / "bagit.txt"
    real_fsync = os.fsync

    def fsync_then_race(fd):
        real_fsync(fd)
        path.write_text("someone else")

    monkeypatch.setattr(utils.os, "fsync", fsync_then_race)
    with pytest.raises(FileExistsError):
        with SafeFile(path) as fp:
            fp.write("ours")

    assert path.read_text() == "someone else"
    assert os.listdir(tmp_path) == ["bagit.txt"]


def test_safe_file_replace(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("old")
    with SafeFile(path, replace=True) as fp:
        fp.write("new")

    assert path.read_text() == "new"
    assert os.listdir(tmp_path) == ["cache.json"]
