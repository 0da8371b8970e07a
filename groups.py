# groups.py
# Study group lifecycle and membership. A user belongs to at most one group at a time.
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from errors import DuplicateGroupError
from models import StudyGroup, User
from records import decode_group, encode_group, read_lines, validate_field, write_lines

logger = logging.getLogger(__name__)

_Snapshot = Tuple[List[StudyGroup], List[Dict[str, User]]]


class GroupManager:
    """Owns every StudyGroup and flushes them to one groups file after each change."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._groups: List[StudyGroup] = []

    @property
    def groups(self) -> Tuple[StudyGroup, ...]:
        return tuple(self._groups)

    def load(self, user_pool: Sequence[User]) -> List[str]:
        """
        Replace the in-memory groups with the file contents.
        Returns member names that matched no user in ``user_pool``; those members are left out.
        """
        groups: List[StudyGroup] = []
        unresolved: List[str] = []
        for line in read_lines(self.path):
            group, missing = decode_group(line, user_pool)
            for name in missing:
                logger.warning("Group %r references unknown user %r, dropping it", group.name, name)
            if any(g.name.lower() == group.name.lower() for g in groups):
                logger.warning("Duplicate group name %r in %s, only the first is reachable by name",
                               group.name, self.path)
            groups.append(group)
            unresolved.extend(missing)
        self._groups = groups
        logger.info("Loaded %d groups from %s", len(groups), self.path)
        return unresolved

    def save(self) -> None:
        lines = [encode_group(g) for g in self._groups]
        write_lines(self.path, lines)

    def find_group_by_name(self, name: str) -> Optional[StudyGroup]:
        wanted = name.lower()
        for group in self._groups:
            if group.name.lower() == wanted:
                return group
        return None

    def find_group_by_user(self, user: User) -> Optional[StudyGroup]:
        for group in self._groups:
            if group.has_member(user):
                return group
        return None

    def create_group(self, name: str, leader: User) -> StudyGroup:
        """Create ``name`` with ``leader`` as its only member, moving the leader out of any current group."""
        validate_field(name, "group name")
        if not name:
            raise ValueError("group name must not be empty")
        if self.find_group_by_name(name) is not None:
            raise DuplicateGroupError(name)

        snapshot = self._snapshot()
        self._evict(leader)
        group = StudyGroup(name)
        group.add_member(leader)
        self._groups.append(group)
        self._commit(snapshot)
        logger.info("User %r created group %r", leader.name, name)
        return group

    def join_group(self, name: str, user: User) -> Optional[StudyGroup]:
        """
        Add ``user`` to the group called ``name``; returns None (and changes nothing) if there is none.
        The user is first removed from any other group they belong to.
        """
        group = self.find_group_by_name(name)
        if group is None:
            return None
        if group.has_member(user):
            return group

        snapshot = self._snapshot()
        self._evict(user)
        group.add_member(user)
        self._commit(snapshot)
        logger.info("User %r joined group %r", user.name, group.name)
        return group

    def switch_group(self, name: str, user: User) -> Tuple[Optional[StudyGroup], Optional[StudyGroup]]:
        """
        Leave the user's current group, then join ``name``.
        Returns ``(previous_group, joined_group)``. When ``name`` does not exist nothing changes
        and ``joined_group`` is None.
        """
        previous = self.find_group_by_user(user)
        target = self.find_group_by_name(name)
        if target is None:
            return previous, None
        if previous is target:
            return previous, target
        self.join_group(target.name, user)
        return previous, target

    def leave_group(self, name: str, user: User) -> Optional[StudyGroup]:
        """Remove ``user`` from ``name``. Returns the group, or None if there is no such group."""
        group = self.find_group_by_name(name)
        if group is None:
            return None
        if not group.has_member(user):
            return group

        snapshot = self._snapshot()
        group.remove_member(user)
        self._commit(snapshot)
        logger.info("User %r left group %r", user.name, group.name)
        return group

    def _evict(self, user: User) -> None:
        for group in self._groups:
            if group.remove_member(user):
                logger.info("User %r removed from group %r", user.name, group.name)

    def _snapshot(self) -> _Snapshot:
        return list(self._groups), [dict(g.members) for g in self._groups]

    def _commit(self, snapshot: _Snapshot) -> None:
        # Persist, or put memberships back exactly as they were before the change.
        try:
            self.save()
        except Exception:
            groups, members = snapshot
            for group, saved in zip(groups, members):
                group.members = saved
            self._groups = groups
            raise
