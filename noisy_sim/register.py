"""
Classical register: sparse map from classical bit index to a 0/1 outcome.

Bits are allocated on first write (by a measurement) and never removed. A bit
that was never written is distinct from a bit holding 0: `read()` returns None
for the former, but both fail a classical condition.
"""

from __future__ import annotations

from typing import Iterable, Iterator

import numpy as np

from .errors import ValidationError


class ClassicalRegister:
    def __init__(self) -> None:
        self._bits: dict[int, int] = {}

    def write(self, bit: int, value: int | bool) -> None:
        if bit < 0:
            raise ValidationError(f"Classical bit index must be >= 0, got {bit}")
        self._bits[bit] = 1 if value else 0

    def read(self, bit: int) -> int | None:
        """Stored outcome, or None if the bit was never written."""
        return self._bits.get(bit)

    def is_set(self, bit: int) -> bool:
        """True only if `bit` was written and holds 1."""
        return self._bits.get(bit) == 1

    def __getitem__(self, bit: int) -> int:
        return self._bits[bit]

    def __contains__(self, bit: int) -> bool:
        return bit in self._bits

    def __len__(self) -> int:
        return len(self._bits)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._bits))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassicalRegister):
            return NotImplemented
        return self._bits == other._bits

    def copy(self) -> 'ClassicalRegister':
        new = ClassicalRegister()
        new._bits = dict(self._bits)
        return new

    def as_dict(self) -> dict[int, int]:
        return dict(sorted(self._bits.items()))

    def to_array(self, bits: Iterable[int]) -> np.ndarray:
        """int8 array of the given bits' outcomes; -1 marks a bit never written."""
        return np.array([self._bits.get(b, -1) for b in bits], dtype=np.int8)

    def bitstring(self, bits: Iterable[int]) -> str:
        """Outcomes of `bits` as a string, '-' for bits never written."""
        return ''.join('-' if b not in self._bits else str(self._bits[b]) for b in bits)

    def __repr__(self) -> str:
        return f'ClassicalRegister({self.as_dict()})'
