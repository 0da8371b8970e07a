"""Core domain models: registered users and the study groups they form."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class User:
    """A registered learner and their study preferences."""

    name: str
    courses: Tuple[str, ...]
    preferred_time: str
    learning_style: str

    @property
    def key(self) -> str:
        """Identity of the user: the exact (case-sensitive) name."""
        return self.name

    def __str__(self) -> str:
        return f"{self.name} - {', '.join(self.courses)}"


@dataclass
class StudyGroup:
    """Named group of users. Membership is unique and keyed by ``User.key``."""

    name: str
    members: Dict[str, User] = field(default_factory=dict)

    def add_member(self, user: Optional[User]) -> bool:
        if user is None or user.key in self.members:
            return False
        self.members[user.key] = user
        return True

    def remove_member(self, user: Optional[User]) -> bool:
        if user is None:
            return False
        return self.members.pop(user.key, None) is not None

    def has_member(self, user: User) -> bool:
        return user.key in self.members

    def member_names(self) -> List[str]:
        return list(self.members)

    def __str__(self) -> str:
        return f"{self.name} ({len(self.members)} members)"
