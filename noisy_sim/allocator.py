"""
Explicit qubit allocation for composing sub-circuits.

Templates that need ancillas take their qubit indices as arguments instead of
deriving them from the data qubit (`qubit + 1`, `qubit + 2`). A QubitAllocator
hands out fresh, consecutive indices under a label and records the table, so
two independently built blocks never alias the same qubit by accident:

    >>> alloc = QubitAllocator()
    >>> data = alloc.allocate('data')          # (0,)
    >>> anc = alloc.allocate('ancilla', 2)     # (1, 2)
    >>> c = alloc.circuit()                    # Circuit(n_qubits=3)
"""

from __future__ import annotations

from .circuit import Circuit
from .errors import ValidationError


class QubitAllocator:
    """Hands out fresh qubit indices and remembers which label owns which."""

    def __init__(self) -> None:
        self._table: dict[str, tuple[int, ...]] = {}
        self._next = 0

    def allocate(self, label: str, count: int = 1) -> tuple[int, ...]:
        """Reserve `count` fresh qubits under `label` and return their indices."""
        if label in self._table:
            raise ValidationError(f"Qubit label '{label}' is already allocated")
        if count < 1:
            raise ValidationError(f"count must be >= 1, got {count}")
        indices = tuple(range(self._next, self._next + count))
        self._table[label] = indices
        self._next += count
        return indices

    def __getitem__(self, label: str) -> tuple[int, ...]:
        return self._table[label]

    def __contains__(self, label: str) -> bool:
        return label in self._table

    @property
    def table(self) -> dict[str, tuple[int, ...]]:
        return dict(self._table)

    @property
    def n_qubits(self) -> int:
        return self._next

    def owner(self, qubit: int) -> str | None:
        """Label that owns `qubit`, or None if it was never allocated."""
        for label, indices in self._table.items():
            if qubit in indices:
                return label
        return None

    def circuit(self) -> Circuit:
        """A new empty Circuit sized to every qubit allocated so far."""
        if self._next == 0:
            raise ValidationError("No qubits have been allocated")
        return Circuit(self._next)

    def __repr__(self) -> str:
        body = ', '.join(f'{k}={v}' for k, v in self._table.items())
        return f'QubitAllocator({body})'


def check_disjoint(*groups: tuple[int, ...]) -> None:
    """Raise ValidationError if any qubit appears in more than one group (or twice in one)."""
    seen: set[int] = set()
    for group in groups:
        for q in group:
            if q in seen:
                raise ValidationError(f"Qubit {q} is used by more than one role")
            seen.add(q)
