# records.py
# Line-oriented text codec for users and study groups, plus the file helpers both repositories share.
#
#   users:  name;course1|course2|...;preferredTime;learningStyle
#   groups: groupName;member1|member2|...
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from config import FIELD_SEPARATOR, LIST_SEPARATOR
from errors import InvalidFieldError, MalformedRecordError, PersistenceError
from models import StudyGroup, User

logger = logging.getLogger(__name__)

USER_FIELD_COUNT = 4
_FORBIDDEN = (FIELD_SEPARATOR, LIST_SEPARATOR, "\n", "\r")


def validate_field(value: str, label: str = "value") -> str:
    """Return ``value`` unchanged, or raise if it would break the delimited format."""
    for char in _FORBIDDEN:
        if char in value:
            raise InvalidFieldError(f"{label} {value!r} must not contain {char!r}")
    return value


def encode_user(user: User) -> str:
    if not user.name:
        raise InvalidFieldError("user name must not be empty")
    validate_field(user.name, "name")
    for course in user.courses:
        validate_field(course, "course")
    validate_field(user.preferred_time, "preferred time")
    validate_field(user.learning_style, "learning style")
    return FIELD_SEPARATOR.join([
        user.name,
        LIST_SEPARATOR.join(user.courses),
        user.preferred_time,
        user.learning_style,
    ])


def decode_user(line: str) -> User:
    """
    Parse one users-file line.
    An empty course field decodes to a single empty-string course, not to an empty tuple.
    """
    parts = line.split(FIELD_SEPARATOR)
    if len(parts) != USER_FIELD_COUNT:
        raise MalformedRecordError(line, f"expected {USER_FIELD_COUNT} fields, got {len(parts)}")
    name, courses, preferred_time, learning_style = parts
    if not name:
        raise MalformedRecordError(line, "user name is empty")
    return User(
        name=name,
        courses=tuple(courses.split(LIST_SEPARATOR)),
        preferred_time=preferred_time,
        learning_style=learning_style,
    )


def encode_group(group: StudyGroup) -> str:
    validate_field(group.name, "group name")
    return group.name + FIELD_SEPARATOR + LIST_SEPARATOR.join(group.member_names())


def decode_group(line: str, user_pool: Sequence[User]) -> Tuple[StudyGroup, List[str]]:
    """
    Parse one groups-file line, resolving member names case-insensitively against ``user_pool``.
    Returns the group and the member names that matched no user, in file order.
    """
    parts = line.split(FIELD_SEPARATOR)
    if len(parts) > 2:
        raise MalformedRecordError(line, f"expected at most 2 fields, got {len(parts)}")
    group_name = parts[0]
    if not group_name:
        raise MalformedRecordError(line, "group name is empty")

    group = StudyGroup(group_name)
    unresolved: List[str] = []
    member_field = parts[1] if len(parts) > 1 else ""
    for raw_name in member_field.split(LIST_SEPARATOR):
        name = raw_name.strip()
        if not name:
            continue
        user = _lookup(user_pool, name)
        if user is None:
            unresolved.append(name)
        else:
            group.add_member(user)
    return group, unresolved


def _lookup(user_pool: Iterable[User], name: str) -> Optional[User]:
    wanted = name.lower()
    for user in user_pool:
        if user.name.lower() == wanted:
            return user
    return None


def read_lines(path: Path) -> List[str]:
    """Return the non-blank lines of ``path``; a missing file reads as empty."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("%s does not exist yet, starting empty", path)
        return []
    except OSError as e:
        raise PersistenceError(str(path), str(e)) from e

    lines = []
    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            logger.debug("Skipping blank line %d in %s", number, path)
            continue
        lines.append(line)
    return lines


def write_lines(path: Path, lines: Iterable[str]) -> None:
    """Replace ``path`` with ``lines``, one per line. The old file survives a failed write."""
    lines = list(lines)
    tmp_name = None
    try:
        directory = path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line)
                f.write("\n")
        os.replace(tmp_name, path)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        if tmp_name is not None and os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise PersistenceError(str(path), str(e)) from e
