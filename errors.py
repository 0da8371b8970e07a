"""Exception types shared by the codec, the repositories and the HTTP layer.

Lookup misses are not errors here: repositories return ``None`` for them.
"""


class StudyMatchError(Exception):
    """Base exception for all studymatch errors."""

    pass


class MalformedRecordError(StudyMatchError):
    """Raised when a persisted line does not decode into a record."""

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed record {line!r}: {reason}")


class InvalidFieldError(StudyMatchError):
    """Raised when a value cannot be written in the delimited format."""

    pass


class PersistenceError(StudyMatchError):
    """Raised when a users/groups file cannot be read or written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Could not access {path}: {reason}")


class DuplicateGroupError(StudyMatchError):
    """Raised when creating a group whose name is already taken."""

    def __init__(self, group_name: str):
        self.group_name = group_name
        super().__init__(f"Group '{group_name}' already exists")
