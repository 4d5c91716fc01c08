"""
Owner token generation.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import uuid
from typing import Protocol


class IdSource(Protocol):
    """Anything that hands out unique owner tokens."""

    def id(self) -> str: ...


class IdGenerator:
    """Random, unguessable owner tokens backed by uuid4."""

    def id(self) -> str:
        return uuid.uuid4().hex
