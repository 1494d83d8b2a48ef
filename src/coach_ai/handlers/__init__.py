"""Handler layer for HTTP endpoints.

Handlers depend on the service facade, not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .coach_handler import CoachHandler

__all__ = [
    "CoachHandler",
]
