"""
Dense state-vector engine.

The state of n qubits is a complex128 buffer of 2^n amplitudes. Index bits are
big-endian over qubits: qubit 0 is the most significant bit, so for n = 3 the
amplitude of |q0 q1 q2⟩ = |1 0 1⟩ lives at index 0b101 = 5.

Gates are applied in place through reshaped views of the buffer:

    single qubit q:  view (2^q, 2, 2^(n-q-1)); the slices [:, 0, :] and
                     [:, 1, :] are the amplitude pairs differing only in bit q,
                     combined by the 2×2 matrix.
    two qubits a,b:  view (2,)*n; the four blocks at (bit_a, bit_b) ∈ {0,1}²
                     are combined by the 4×4 matrix (row = 2·bit_a + bit_b).

Both are O(2^n). Measurement follows the Born rule: the probability of outcome
0 on qubit q is the squared mass of the [:, 0, :] slice.
"""

from __future__ import annotations

import itertools

import numpy as np

from .circuit import GateFamily
from .errors import NumericalError, ValidationError
from .unitaries import matrix_for

# Σ|a|² must stay within this distance of 1.
NORM_TOLERANCE = 1e-6
# Outcome probabilities below this cannot be renormalized.
ZERO_PROBABILITY = 1e-12


class StateVector:
    """
    A pure state of `n_qubits` qubits, mutated in place by gates and measurements.

    Build with StateVector.ground(n) or StateVector.from_amplitudes(amps);
    read with `.amplitudes` (a copy) or `.probabilities()`.
    """

    def __init__(self, n_qubits: int, amplitudes: np.ndarray) -> None:
        self.n_qubits = n_qubits
        self._amps = amplitudes

    # ── Construction ──────────────────────────────────────────────────────────

    @classmethod
    def ground(cls, n_qubits: int) -> 'StateVector':
        """|0...0⟩ on n_qubits."""
        if n_qubits < 1:
            raise ValidationError("n_qubits must be >= 1")
        amps = np.zeros(1 << n_qubits, dtype=np.complex128)
        amps[0] = 1.0
        return cls(n_qubits, amps)

    @classmethod
    def from_amplitudes(
        cls, amplitudes, tolerance: float = NORM_TOLERANCE
    ) -> 'StateVector':
        """
        Wrap a user-supplied amplitude vector.

        Raises:
            ValidationError: If the length is not a power of two >= 2, or if
                             Σ|a|² differs from 1 by more than `tolerance`.
                             Unnormalized input is rejected, never rescaled.
        """
        amps = np.array(amplitudes, dtype=np.complex128).reshape(-1)
        size = amps.size
        if size < 2 or size & (size - 1):
            raise ValidationError(
                f"Amplitude vector length must be a power of two >= 2, got {size}"
            )
        total = float(np.sum(np.abs(amps) ** 2))
        if abs(total - 1.0) > tolerance:
            raise ValidationError(
                f"Amplitude vector is not normalized: sum |a|^2 = {total:.6g}"
            )
        return cls(size.bit_length() - 1, amps)

    def copy(self) -> 'StateVector':
        return StateVector(self.n_qubits, self._amps.copy())

    # ── Inspection ────────────────────────────────────────────────────────────

    @property
    def amplitudes(self) -> np.ndarray:
        return self._amps.copy()

    @property
    def dimension(self) -> int:
        return self._amps.size

    def probabilities(self) -> np.ndarray:
        """|a|² for every basis state, big-endian index order."""
        return np.abs(self._amps) ** 2

    def total_probability(self) -> float:
        """Σ|a|²; equals 1 within NORM_TOLERANCE for a valid state."""
        return float(np.sum(np.abs(self._amps) ** 2))

    def is_normalized(self, tolerance: float = NORM_TOLERANCE) -> bool:
        return abs(self.total_probability() - 1.0) <= tolerance

    def probability_of_zero(self, qubit: int) -> float:
        """Marginal probability of measuring 0 on `qubit`."""
        lo, _ = self._split(qubit)
        return float(np.sum(np.abs(lo) ** 2))

    def qubit_marginals(self) -> np.ndarray:
        """P(qubit = 1) for each qubit, shape (n_qubits,)."""
        return np.array(
            [1.0 - self.probability_of_zero(q) for q in range(self.n_qubits)]
        )

    # ── Gate application ──────────────────────────────────────────────────────

    def _split(self, qubit: int) -> tuple[np.ndarray, np.ndarray]:
        """Views of the amplitudes whose `qubit` bit is 0 and 1 respectively."""
        view = self._amps.reshape(1 << qubit, 2, -1)
        return view[:, 0, :], view[:, 1, :]

    def apply_single(self, matrix: np.ndarray, qubit: int) -> None:
        """Apply a 2×2 operator to `qubit` in place."""
        lo, hi = self._split(qubit)
        a = lo.copy()
        b = hi.copy()
        lo[...] = matrix[0, 0] * a + matrix[0, 1] * b
        hi[...] = matrix[1, 0] * a + matrix[1, 1] * b

    def apply_two(self, matrix: np.ndarray, q0: int, q1: int) -> None:
        """Apply a 4×4 operator to (q0, q1) in place; q0 is the high bit of the 4×4 basis."""
        psi = self._amps.reshape((2,) * self.n_qubits)
        blocks = []
        for b0, b1 in itertools.product((0, 1), repeat=2):
            index = [slice(None)] * self.n_qubits
            index[q0] = b0
            index[q1] = b1
            blocks.append(tuple(index))
        old = [np.array(psi[index]) for index in blocks]
        for row, index in enumerate(blocks):
            acc = np.zeros_like(old[0])
            for col in range(4):
                if matrix[row, col] != 0:
                    acc += matrix[row, col] * old[col]
            psi[index] = acc

    def apply_gate(
        self, family: GateFamily, qubits: tuple[int, ...], parameter: float | None = None
    ) -> None:
        """Apply the unitary of `family` to `qubits` (arity 1 or 2)."""
        matrix = matrix_for(family, parameter)
        if len(qubits) == 1:
            self.apply_single(matrix, qubits[0])
        else:
            self.apply_two(matrix, qubits[0], qubits[1])

    # ── Measurement ───────────────────────────────────────────────────────────

    def collapse(self, qubit: int, outcome: int) -> float:
        """
        Project `qubit` onto |outcome⟩ and renormalize.

        Returns:
            The probability the outcome had before projection.

        Raises:
            NumericalError: If that probability is below ZERO_PROBABILITY.
        """
        lo, hi = self._split(qubit)
        keep, drop = (lo, hi) if outcome == 0 else (hi, lo)
        p = float(np.sum(np.abs(keep) ** 2))
        if p < ZERO_PROBABILITY:
            raise NumericalError(
                f"Cannot renormalize: outcome {outcome} on qubit {qubit} "
                f"has probability {p:.3g}"
            )
        drop[...] = 0.0
        keep /= np.sqrt(p)
        return p

    def measure(self, qubit: int, rng: np.random.Generator) -> int:
        """
        Sample a Z-basis outcome on `qubit` with the Born rule and collapse.

        One uniform draw u ∈ [0, 1) is taken from `rng`; the outcome is 0 if
        u < p0 and 1 otherwise.
        """
        p0 = self.probability_of_zero(qubit)
        outcome = 0 if rng.random() < p0 else 1
        self.collapse(qubit, outcome)
        return outcome

    def __repr__(self) -> str:
        return (
            f'StateVector(n_qubits={self.n_qubits}, '
            f'total_probability={self.total_probability():.6f})'
        )
