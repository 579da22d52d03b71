from pathlib import Path

from mdsite.utils import copy_file, ensure_clean_dir, is_hidden, is_temporary, is_within


def test_ensure_clean_dir_removes_contents(tmp_path):
    target = tmp_path / "out"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "file.txt").write_text("x", encoding="utf-8")
    ensure_clean_dir(target)
    assert target.is_dir()
    assert list(target.iterdir()) == []


def test_ensure_clean_dir_creates_missing(tmp_path):
    target = tmp_path / "a" / "b"
    ensure_clean_dir(target)
    assert target.is_dir()


def test_ensure_clean_dir_replaces_file(tmp_path):
    target = tmp_path / "out"
    target.write_text("not a dir", encoding="utf-8")
    ensure_clean_dir(target)
    assert target.is_dir()


def test_copy_file_creates_parents(tmp_path):
    source = tmp_path / "src.bin"
    source.write_bytes(b"\x00\x01\x02")
    dest = tmp_path / "deep" / "dir" / "dest.bin"
    copy_file(source, dest)
    assert dest.read_bytes() == b"\x00\x01\x02"


def test_is_within(tmp_path):
    assert is_within(tmp_path / "a" / "b", tmp_path)
    assert is_within(tmp_path, tmp_path)
    assert not is_within(tmp_path, tmp_path / "a")
    assert is_within(Path("."), Path.cwd())


def test_name_predicates():
    assert is_hidden(".env")
    assert not is_hidden("env")
    assert is_temporary("draft.md.tmp")
    assert not is_temporary("draft.md")
