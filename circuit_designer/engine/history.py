"""Linear undo/redo history over whole-circuit snapshots."""

from __future__ import annotations

from .circuit import Circuit


class HistoryManager:
    """Undo stack of immutable ``Circuit`` snapshots.

    ``history[cursor]`` is the active snapshot.  Recording after an undo
    discards the redo lane; there is no redo tree.
    """

    def __init__(self, initial: Circuit | None = None):
        self._history: list[Circuit] = []
        self._cursor: int = -1
        if initial is not None:
            self.reset(initial)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def history(self) -> tuple[Circuit, ...]:
        return tuple(self._history)

    @property
    def current(self) -> Circuit | None:
        if self._cursor < 0:
            return None
        return self._history[self._cursor]

    def __len__(self) -> int:
        return len(self._history)

    def reset(self, circuit: Circuit) -> None:
        """Start over with ``circuit`` as the only snapshot."""
        self._history = [circuit]
        self._cursor = 0

    def record(self, circuit: Circuit) -> None:
        del self._history[self._cursor + 1:]
        self._history.append(circuit)
        self._cursor = len(self._history) - 1

    def undo(self) -> Circuit | None:
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self._history[self._cursor]

    def redo(self) -> Circuit | None:
        if not self.can_redo():
            return None
        self._cursor += 1
        return self._history[self._cursor]

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._history) - 1
