from pathlib import Path

import pytest

import records
from errors import InvalidFieldError, MalformedRecordError, PersistenceError
from models import StudyGroup, User
from records import decode_group, decode_user, encode_group, encode_user, read_lines, write_lines


def test_encode_user_line_format(alice) -> None:
    assert encode_user(alice) == "Alice;CS101|MATH200;Morning;Quick"


def test_decode_user_restores_user(alice) -> None:
    assert decode_user(encode_user(alice)) == alice


def test_empty_course_list_decodes_as_one_empty_course() -> None:
    user = User("Dana", (), "Noon", "Slow")
    line = encode_user(user)
    assert line == "Dana;;Noon;Slow"
    decoded = decode_user(line)
    assert decoded.courses == ("",)
    assert decoded != user


@pytest.mark.parametrize("line", ["Alice", "Alice;CS101", "Alice;CS101;Morning", "A;B;C;D;E"])
def test_decode_user_rejects_wrong_field_count(line: str) -> None:
    with pytest.raises(MalformedRecordError, match="expected 4 fields"):
        decode_user(line)


def test_decode_user_rejects_empty_name() -> None:
    with pytest.raises(MalformedRecordError, match="name is empty"):
        decode_user(";CS101;Morning;Quick")


def test_encode_user_rejects_separator_in_fields() -> None:
    with pytest.raises(InvalidFieldError):
        encode_user(User("Al;ice", ("CS101",), "Morning", "Quick"))
    with pytest.raises(InvalidFieldError):
        encode_user(User("Alice", ("CS|101",), "Morning", "Quick"))


def test_encode_group_joins_member_names(alice, bob) -> None:
    group = StudyGroup("Algo Study")
    group.add_member(alice)
    group.add_member(bob)
    assert encode_group(group) == "Algo Study;Alice|Bob"
    assert encode_group(StudyGroup("Empty")) == "Empty;"


def test_decode_group_resolves_members_case_insensitively(alice, bob) -> None:
    group, unresolved = decode_group("Algo Study;alice| BOB ", [alice, bob])
    assert group.name == "Algo Study"
    assert group.member_names() == ["Alice", "Bob"]
    assert unresolved == []


def test_decode_group_reports_unresolved_members(alice) -> None:
    group, unresolved = decode_group("Algo Study;Alice|Zed|Yan", [alice])
    assert group.member_names() == ["Alice"]
    assert unresolved == ["Zed", "Yan"]


@pytest.mark.parametrize("line", ["Solo", "Solo;"])
def test_decode_group_without_members(line: str, alice) -> None:
    group, unresolved = decode_group(line, [alice])
    assert group.name == "Solo"
    assert group.members == {}
    assert unresolved == []


def test_decode_group_rejects_bad_lines() -> None:
    with pytest.raises(MalformedRecordError):
        decode_group(";Alice", [])
    with pytest.raises(MalformedRecordError):
        decode_group("A;B;C", [])


def test_read_lines_missing_file_is_empty(tmp_path: Path) -> None:
    assert read_lines(tmp_path / "nope.txt") == []


def test_read_lines_skips_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "users.txt"
    path.write_text("a;b;c;d\n\n   \ne;f;g;h\n", encoding="utf-8")
    assert read_lines(path) == ["a;b;c;d", "e;f;g;h"]


def test_write_lines_replaces_file(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "users.txt"
    write_lines(path, ["one", "two"])
    assert read_lines(path) == ["one", "two"]
    write_lines(path, [])
    assert path.read_text(encoding="utf-8") == ""
    assert [p.name for p in path.parent.iterdir()] == ["users.txt"]


def test_write_lines_failure_keeps_old_file(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "users.txt"
    write_lines(path, ["old"])

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(records.os, "replace", broken_replace)
    with pytest.raises(PersistenceError, match="disk full"):
        write_lines(path, ["new"])
    assert read_lines(path) == ["old"]
    assert [p.name for p in tmp_path.iterdir()] == ["users.txt"]


def test_encode_user_rejects_empty_name() -> None:
    with pytest.raises(InvalidFieldError, match="must not be empty"):
        encode_user(User("", ("CS101",), "Morning", "Quick"))


def test_decode_group_resolves_to_first_case_insensitive_name() -> None:
    lower = User("alice", ("CS101",), "Morning", "Quick")
    upper = User("Alice", ("CS101",), "Morning", "Quick")
    group, _ = decode_group("Algo;Alice", [lower, upper])
    assert list(group.members.values()) == [lower]
