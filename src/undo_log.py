"""
Per-invocation undo log.

Mutable venue collections record the prior value of each key the first time
an invocation writes it. Rolling back restores exactly those keys, so the cost
of a checkpoint is proportional to what the invocation touched, not to the
size of the venue's history.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, Set, Tuple

_MISSING = object()


class UndoLog:
    """Key-level journal with commit and rollback hooks"""

    def __init__(self):
        self._entries: List[Tuple[Dict[Any, Any], Any, Any]] = []
        self._seen: Set[Tuple[int, Any]] = set()
        self._on_commit: List[Callable[[], None]] = []
        self._on_rollback: List[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def touch(self, mapping: Dict[Any, Any], key: Any) -> None:
        """Remember ``mapping[key]`` as it was before this invocation's first write."""
        marker = (id(mapping), key)
        if marker in self._seen:
            return
        self._seen.add(marker)
        previous = mapping.get(key, _MISSING)
        if previous is not _MISSING:
            previous = copy.deepcopy(previous)
        self._entries.append((mapping, key, previous))

    def on_commit(self, action: Callable[[], None]) -> None:
        self._on_commit.append(action)

    def on_rollback(self, action: Callable[[], None]) -> None:
        self._on_rollback.append(action)

    def commit(self) -> None:
        for action in self._on_commit:
            action()
        self._clear()

    def rollback(self) -> None:
        for mapping, key, previous in reversed(self._entries):
            if previous is _MISSING:
                mapping.pop(key, None)
            else:
                mapping[key] = previous
        for action in self._on_rollback:
            action()
        self._clear()

    def _clear(self) -> None:
        self._entries.clear()
        self._seen.clear()
        self._on_commit.clear()
        self._on_rollback.clear()
