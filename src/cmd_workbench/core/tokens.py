"""Correlation tokens scoping a conversation to one invoker.

Tokens have the shape ``<owner_id>:<suffix>``. The random form accepts a
tiny collision probability; SequentialTokens trades that for a counter.
"""

from __future__ import annotations

import itertools
import uuid

_SUFFIX_LEN = 12


def new_token(owner_id: str) -> str:
    """Return a fresh token for owner_id with a random hex suffix."""
    return f"{owner_id}:{uuid.uuid4().hex[:_SUFFIX_LEN]}"


class SequentialTokens:
    """Monotonic token source: unique within one process, same external shape."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)

    def __call__(self, owner_id: str) -> str:
        return f"{owner_id}:{next(self._counter)}"
