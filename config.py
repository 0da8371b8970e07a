# config.py
# Simple centralized configuration values, overridable from the environment / .env file.

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Flat-file persistence
USERS_FILE = os.getenv("STUDYMATCH_USERS_FILE", "users.txt")
GROUPS_FILE = os.getenv("STUDYMATCH_GROUPS_FILE", "groups.txt")

# Record format. Names and courses must not contain either separator.
FIELD_SEPARATOR = ";"
LIST_SEPARATOR = "|"

# HTTP server
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Optional closed set of learning styles; empty means any free-text label is accepted.
LEARNING_STYLES: List[str] = [
    s.strip() for s in os.getenv("STUDYMATCH_LEARNING_STYLES", "").split(",") if s.strip()
]
