"""Identifier generation."""

from datetime import datetime
from uuid import uuid4


def new_id() -> str:
    """Generate a document identifier."""
    return uuid4().hex


def generate_session_id(now: datetime) -> str:
    """Generate a quiz session identifier.

    Format is ``quiz_<epoch-ms>_<9 random chars>``.
    """
    millis = int(now.timestamp() * 1000)
    return f"quiz_{millis}_{uuid4().hex[:9]}"
