from pathlib import Path

import pytest

import records
from directory import UserDirectory
from errors import InvalidFieldError, MalformedRecordError, PersistenceError
from models import User


def test_load_missing_file_gives_empty_directory(tmp_path: Path) -> None:
    directory = UserDirectory(tmp_path / "users.txt")
    assert directory.load() == 0
    assert directory.all() == ()


def test_save_empty_directory_writes_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "users.txt"
    UserDirectory(path).save()
    assert path.read_text(encoding="utf-8") == ""


def test_register_appends_one_record_and_reloads(tmp_path: Path, alice, bob) -> None:
    path = tmp_path / "users.txt"
    directory = UserDirectory(path)
    directory.register(alice)
    before = len(path.read_text(encoding="utf-8").splitlines())
    directory.register(bob)
    after = path.read_text(encoding="utf-8").splitlines()
    assert len(after) == before + 1

    reloaded = UserDirectory(path)
    reloaded.load()
    assert reloaded.all() == (alice, bob)


def test_find_by_name_is_case_insensitive(tmp_path: Path, alice) -> None:
    directory = UserDirectory(tmp_path / "users.txt")
    directory.register(alice)
    assert directory.find_by_name("aLiCe") is alice
    assert directory.find_by_name("nobody") is None


def test_duplicate_names_are_kept_and_first_wins(tmp_path: Path, alice) -> None:
    directory = UserDirectory(tmp_path / "users.txt")
    directory.register(alice)
    again = User("Alice", ("BIO110",), "Evening", "Slow")
    directory.register(again)
    assert len(directory) == 2
    assert directory.find_by_name("Alice") is alice


def test_register_rolls_back_when_save_fails(tmp_path: Path, alice, monkeypatch) -> None:
    directory = UserDirectory(tmp_path / "users.txt")

    def broken_replace(src, dst):
        raise OSError("read-only")

    monkeypatch.setattr(records.os, "replace", broken_replace)
    with pytest.raises(PersistenceError):
        directory.register(alice)
    assert directory.all() == ()


def test_register_rejects_unencodable_user(tmp_path: Path) -> None:
    directory = UserDirectory(tmp_path / "users.txt")
    with pytest.raises(InvalidFieldError):
        directory.register(User("A;B", ("CS101",), "Morning", "Quick"))
    assert len(directory) == 0


def test_load_malformed_file_fails_fast(tmp_path: Path) -> None:
    path = tmp_path / "users.txt"
    path.write_text("Alice;CS101;Morning;Quick\nBroken;line\n", encoding="utf-8")
    with pytest.raises(MalformedRecordError):
        UserDirectory(path).load()


def test_register_rejects_empty_name_and_file_stays_loadable(tmp_path: Path, alice) -> None:
    path = tmp_path / "users.txt"
    directory = UserDirectory(path)
    directory.register(alice)
    with pytest.raises(InvalidFieldError):
        directory.register(User("", ("CS101",), "Morning", "Quick"))
    assert directory.all() == (alice,)

    reloaded = UserDirectory(path)
    assert reloaded.load() == 1


def test_empty_file_loads_as_zero_users(tmp_path: Path) -> None:
    path = tmp_path / "users.txt"
    UserDirectory(path).save()
    assert path.exists()
    reloaded = UserDirectory(path)
    assert reloaded.load() == 0
    assert reloaded.all() == ()
