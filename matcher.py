# matcher.py
from typing import Iterable, List

from models import User


def _course_set(user: User) -> set:
    # an empty course field reloads as one "" token, which is not a course
    return {c for c in user.courses if c}


def shared_courses(a: User, b: User) -> List[str]:
    """Courses both users take, in ``a``'s order."""
    other = _course_set(b)
    seen = set()
    result = []
    for course in a.courses:
        if course in other and course not in seen:
            seen.add(course)
            result.append(course)
    return result


def is_match(target: User, candidate: User) -> bool:
    if candidate.name == target.name:
        return False
    if not _course_set(target) & _course_set(candidate):
        return False
    if candidate.preferred_time.lower() != target.preferred_time.lower():
        return False
    return candidate.learning_style.lower() == target.learning_style.lower()


def find_matches(target: User, candidates: Iterable[User]) -> List[User]:
    """
    Return the candidates compatible with ``target``, in candidate order.
    Compatible means: a different user, at least one shared course, and the same
    preferred time and learning style (both compared case-insensitively).
    """
    return [c for c in candidates if is_match(target, c)]
