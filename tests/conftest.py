from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from models import User  # noqa: E402


@pytest.fixture
def alice() -> User:
    return User("Alice", ("CS101", "MATH200"), "Morning", "Quick")


@pytest.fixture
def bob() -> User:
    return User("Bob", ("MATH200", "PHYS301"), "Morning", "Quick")


@pytest.fixture
def carol() -> User:
    return User("Carol", ("CS101",), "Evening", "Quick")
