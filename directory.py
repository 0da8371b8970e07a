# directory.py
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from models import User
from records import decode_user, encode_user, read_lines, write_lines

logger = logging.getLogger(__name__)


class UserDirectory:
    """Registered users, in registration order, backed by one users file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._users: List[User] = []

    def load(self) -> int:
        """Replace the in-memory users with the file contents. Returns how many were loaded."""
        self._users = [decode_user(line) for line in read_lines(self.path)]
        logger.info("Loaded %d users from %s", len(self._users), self.path)
        return len(self._users)

    def save(self) -> None:
        lines = [encode_user(u) for u in self._users]
        write_lines(self.path, lines)

    def register(self, user: User) -> User:
        """
        Append ``user`` and flush the whole directory to disk.
        Duplicate names are stored as-is; lookups keep returning the first one.
        If the flush fails the user is dropped again and the error propagates.
        """
        encode_user(user)
        if self.find_by_name(user.name) is not None:
            logger.warning("User name %r registered more than once", user.name)
        self._users.append(user)
        try:
            self.save()
        except Exception:
            self._users.pop()
            raise
        logger.info("Registered user %r", user.name)
        return user

    def find_by_name(self, name: str) -> Optional[User]:
        wanted = name.lower()
        for user in self._users:
            if user.name.lower() == wanted:
                return user
        return None

    def all(self) -> Tuple[User, ...]:
        return tuple(self._users)

    def __len__(self) -> int:
        return len(self._users)
