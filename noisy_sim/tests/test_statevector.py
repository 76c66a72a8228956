"""
Tests for the dense state-vector engine: gate application against full numpy
matrices, probability conservation, measurement and collapse.
"""

from __future__ import annotations

import numpy as np
import pytest

from noisy_sim import GateFamily, NumericalError, StateVector, ValidationError
from noisy_sim.unitaries import matrix_for, rx

# ── Numpy reference ───────────────────────────────────────────────────────────

_ONE_QUBIT = [
    GateFamily.H, GateFamily.X, GateFamily.Y, GateFamily.Z,
    GateFamily.S, GateFamily.SDG, GateFamily.T, GateFamily.TDG,
]
_ROTATIONS = [GateFamily.RX, GateFamily.RY, GateFamily.RZ]
_TWO_QUBIT = [GateFamily.CNOT, GateFamily.CZ, GateFamily.SWAP]


def _reference_single(state: np.ndarray, matrix: np.ndarray, qubit: int, n: int) -> np.ndarray:
    """Full 2^n × 2^n operator, qubit 0 leftmost in the Kronecker product."""
    ops = [np.eye(2)] * n
    ops[qubit] = matrix
    full = ops[0]
    for op in ops[1:]:
        full = np.kron(full, op)
    return full @ state


def _reference_two(state: np.ndarray, matrix: np.ndarray, q0: int, q1: int, n: int) -> np.ndarray:
    psi = state.reshape((2,) * n)
    out = np.tensordot(matrix.reshape(2, 2, 2, 2), psi, axes=([2, 3], [q0, q1]))
    return np.moveaxis(out, [0, 1], [q0, q1]).reshape(-1)


def _random_state(n: int, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    v = rng.normal(size=1 << n) + 1j * rng.normal(size=1 << n)
    return v / np.linalg.norm(v)


# ── Construction ──────────────────────────────────────────────────────────────


def test_ground_state():
    sv = StateVector.ground(3)
    expected = np.zeros(8, dtype=complex)
    expected[0] = 1.0
    assert np.array_equal(sv.amplitudes, expected)
    assert sv.dimension == 8


def test_from_amplitudes_rejects_unnormalized():
    """[0.5, 0.5] has Σ|a|² = 0.5 and is rejected, never rescaled."""
    with pytest.raises(ValidationError, match="not normalized"):
        StateVector.from_amplitudes([0.5, 0.5])


@pytest.mark.parametrize("amps", [[1.0], [1.0, 0.0, 0.0], []])
def test_from_amplitudes_rejects_bad_length(amps):
    with pytest.raises(ValidationError, match="power of two"):
        StateVector.from_amplitudes(amps)


def test_from_amplitudes_copies_input():
    amps = np.array([0.6, 0.8], dtype=complex)
    sv = StateVector.from_amplitudes(amps)
    amps[0] = 0.0
    assert sv.amplitudes[0] == pytest.approx(0.6)
    assert sv.n_qubits == 1


# ── Gate application ──────────────────────────────────────────────────────────


@pytest.mark.parametrize("family", _ONE_QUBIT)
@pytest.mark.parametrize("qubit", [0, 1, 2])
def test_single_qubit_gates_match_reference(family, qubit):
    state = _random_state(3, seed=qubit)
    sv = StateVector.from_amplitudes(state)
    sv.apply_gate(family, (qubit,))
    expected = _reference_single(state, matrix_for(family), qubit, 3)
    assert np.allclose(sv.amplitudes, expected, atol=1e-12)


@pytest.mark.parametrize("family", _ROTATIONS)
@pytest.mark.parametrize("theta", [0.0, 0.3, np.pi / 2, 2.5])
def test_rotations_match_reference(family, theta):
    state = _random_state(2, seed=7)
    sv = StateVector.from_amplitudes(state)
    sv.apply_gate(family, (1,), theta)
    expected = _reference_single(state, matrix_for(family, theta), 1, 2)
    assert np.allclose(sv.amplitudes, expected, atol=1e-12)


@pytest.mark.parametrize("family", _TWO_QUBIT)
@pytest.mark.parametrize("pair", [(0, 1), (1, 0), (0, 2), (2, 0), (1, 2), (2, 1)])
def test_two_qubit_gates_match_reference(family, pair):
    state = _random_state(3, seed=11)
    sv = StateVector.from_amplitudes(state)
    sv.apply_gate(family, pair)
    expected = _reference_two(state, matrix_for(family), pair[0], pair[1], 3)
    assert np.allclose(sv.amplitudes, expected, atol=1e-12)


def test_cnot_big_endian_convention():
    """X on qubit 0 of two qubits sets the high bit: |10⟩ = index 2; CNOT(0, 1) → |11⟩."""
    sv = StateVector.ground(2)
    sv.apply_gate(GateFamily.X, (0,))
    assert abs(sv.amplitudes[2]) == pytest.approx(1.0)
    sv.apply_gate(GateFamily.CNOT, (0, 1))
    assert abs(sv.amplitudes[3]) == pytest.approx(1.0)


def test_rotation_exactness():
    """RX(2·acos(0.8))|0⟩ = [0.8, -0.6i]."""
    theta = 2 * np.arccos(0.8)
    sv = StateVector.ground(1)
    sv.apply_gate(GateFamily.RX, (0,), theta)
    amps = sv.amplitudes
    assert np.allclose(np.abs(amps), [0.8, 0.6], atol=1e-6)
    assert np.allclose(amps, [np.cos(theta / 2), -1j * np.sin(theta / 2)], atol=1e-12)
    assert np.allclose(rx(theta) @ [1, 0], amps)


def test_norm_preserved_by_every_unitary():
    sv = StateVector.from_amplitudes(_random_state(4, seed=3))
    families = _ONE_QUBIT + _ROTATIONS + _TWO_QUBIT
    rng = np.random.default_rng(5)
    for _ in range(200):
        family = families[int(rng.integers(len(families)))]
        if family.arity == 1:
            qubits = (int(rng.integers(4)),)
        else:
            qubits = tuple(int(q) for q in rng.choice(4, size=2, replace=False))
        parameter = float(rng.uniform(0, 2 * np.pi)) if family.needs_parameter else None
        sv.apply_gate(family, qubits, parameter)
        assert abs(sv.total_probability() - 1.0) < 1e-6


# ── Measurement ───────────────────────────────────────────────────────────────


class _FixedDraw:
    """Random source whose uniform draws are always `value`."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


def test_probability_of_zero_and_marginals():
    # |ψ⟩ = 0.6|00⟩ + 0.8|11⟩
    sv = StateVector.from_amplitudes([0.6, 0, 0, 0.8])
    assert sv.probability_of_zero(0) == pytest.approx(0.36)
    assert sv.probability_of_zero(1) == pytest.approx(0.36)
    assert np.allclose(sv.qubit_marginals(), [0.64, 0.64])


@pytest.mark.parametrize("draw, outcome", [(0.1, 0), (0.35, 0), (0.37, 1), (0.99, 1)])
def test_measure_threshold(draw, outcome):
    """Outcome 0 iff the draw is below p0 = 0.36."""
    sv = StateVector.from_amplitudes([0.6, 0, 0, 0.8])
    assert sv.measure(0, _FixedDraw(draw)) == outcome
    expected = np.zeros(4)
    expected[0 if outcome == 0 else 3] = 1.0
    assert np.allclose(np.abs(sv.amplitudes), expected)
    assert sv.total_probability() == pytest.approx(1.0)


def test_collapse_renormalizes_partial_superposition():
    # (|0⟩ + |1⟩)/√2 ⊗ (0.6|0⟩ + 0.8|1⟩); measuring qubit 0 leaves qubit 1 intact
    sv = StateVector.from_amplitudes(np.kron([1, 1], [0.6, 0.8]) / np.sqrt(2))
    p = sv.collapse(0, 1)
    assert p == pytest.approx(0.5)
    assert np.allclose(sv.amplitudes, [0, 0, 0.6, 0.8])


def test_collapse_zero_probability_is_numerical_error():
    sv = StateVector.ground(1)
    with pytest.raises(NumericalError, match="probability"):
        sv.collapse(0, 1)


def test_measure_near_zero_branch_is_numerical_error():
    """A draw landing in a branch of probability < 1e-12 cannot be renormalized."""
    eps = 1e-14
    sv = StateVector.from_amplitudes([np.sqrt(eps), np.sqrt(1 - eps)])
    with pytest.raises(NumericalError):
        sv.measure(0, _FixedDraw(0.0))


def test_measure_consumes_generator(rng):
    sv = StateVector.ground(1)
    sv.apply_gate(GateFamily.H, (0,))
    outcome = sv.measure(0, rng)
    assert outcome in (0, 1)
    assert sv.probabilities()[outcome] == pytest.approx(1.0)
