"""
Post-processing of run results: outcome tallies, probability estimates with
standard errors, and state fidelities.

These read only raw data (outcome arrays, amplitude arrays, StateVectors) and
never run circuits themselves.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

import numpy as np

from .errors import ValidationError
from .statevector import StateVector


@dataclass
class Estimate:
    """
    Sample mean with its Monte Carlo standard error.

    Attributes:
        value:     Sample mean.
        std_error: std / sqrt(N) (ddof=1); 0.0 when N == 1.
        n_samples: Number of samples.
    """

    value: float
    std_error: float
    n_samples: int

    def z_score(self, exact: float) -> float:
        """Distance to `exact` in standard errors."""
        return abs(self.value - exact) / (self.std_error + 1e-15)

    def __repr__(self) -> str:
        return f"Estimate(value={self.value:.6f} ± {self.std_error:.6f}, n_samples={self.n_samples})"


def _estimate(samples: np.ndarray) -> Estimate:
    samples = np.asarray(samples, dtype=np.float64)
    n = samples.size
    if n == 0:
        raise ValidationError("Cannot estimate from zero samples")
    std_error = float(np.std(samples, ddof=1) / np.sqrt(n)) if n > 1 else 0.0
    return Estimate(value=float(np.mean(samples)), std_error=std_error, n_samples=n)


def outcome_counts(outcomes: np.ndarray) -> dict[str, int]:
    """
    Tally rows of an outcome array as bitstrings.

    Args:
        outcomes: (N, B) array of 0/1 values, -1 for unwritten bits.

    Returns:
        {'01': 480, '10': 520, …}; unwritten bits render as '-'.
    """
    outcomes = np.asarray(outcomes)
    if outcomes.ndim == 1:
        outcomes = outcomes[:, None]
    symbols = {0: '0', 1: '1', -1: '-'}
    tally = Counter(''.join(symbols[int(v)] for v in row) for row in outcomes)
    return dict(sorted(tally.items()))


def estimate_probability(column: np.ndarray) -> Estimate:
    """
    Estimate P(bit = 1) from one outcome column.

    Trials in which the bit was never written (-1) count as "not 1".
    """
    return _estimate(np.asarray(column) == 1)


def state_fidelity(a: StateVector | np.ndarray, b: StateVector | np.ndarray) -> float:
    """|⟨a|b⟩|² for two pure states of the same dimension."""
    va = a.amplitudes if isinstance(a, StateVector) else np.asarray(a, dtype=np.complex128)
    vb = b.amplitudes if isinstance(b, StateVector) else np.asarray(b, dtype=np.complex128)
    if va.shape != vb.shape:
        raise ValidationError(f"State dimensions differ: {va.shape} vs {vb.shape}")
    return float(np.abs(np.vdot(va, vb)) ** 2)


def reduced_qubit_state(state: StateVector | np.ndarray, qubit: int) -> np.ndarray:
    """2×2 reduced density matrix of one qubit (big-endian amplitude order)."""
    amps = state.amplitudes if isinstance(state, StateVector) else np.asarray(state)
    n = amps.size.bit_length() - 1
    psi = np.moveaxis(amps.reshape((2,) * n), qubit, 0).reshape(2, -1)
    return psi @ psi.conj().T


def single_qubit_fidelity(
    state: StateVector | np.ndarray, qubit: int, target: np.ndarray
) -> float:
    """⟨t|ρ_qubit|t⟩: fidelity of one qubit's reduced state with the pure 2-vector `target`."""
    rho = reduced_qubit_state(state, qubit)
    t = np.asarray(target, dtype=np.complex128)
    return float(np.real(t.conj() @ rho @ t))


def mean_fidelity(states: np.ndarray, target: StateVector | np.ndarray) -> Estimate:
    """Average of |⟨target|ψ_i⟩|² over rows of an (N, 2^n) amplitude array."""
    t = target.amplitudes if isinstance(target, StateVector) else np.asarray(target)
    overlaps = np.abs(np.asarray(states).conj() @ t) ** 2
    return _estimate(overlaps)
