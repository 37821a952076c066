"""HTTP API for QuizHub."""

from .app import create_app

__all__ = ["create_app"]
