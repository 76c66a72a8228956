"""
Tests for the canned circuit fragments: state preparation, teleportation,
Toffoli and the three-qubit repetition codes.
"""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from noisy_sim import (
    Circuit,
    QubitAllocator,
    ValidationError,
    bell_pair,
    bit_flip_decode,
    bit_flip_encode,
    ghz,
    phase_flip_decode,
    phase_flip_encode,
    prepare_state,
    run,
    run_trials,
    single_qubit_fidelity,
    teleport,
    toffoli,
)

_TARGET = np.array([0.6, 0.8], dtype=complex)


# ── Purity ────────────────────────────────────────────────────────────────────


def test_templates_do_not_mutate_input():
    c = Circuit(n_qubits=3).h(0)
    bell_pair(c, 1, 2)
    ghz(c, (0, 1, 2))
    teleport(c, 0, 1, 2)
    toffoli(c, 0, 1, 2)
    bit_flip_encode(c, 0, (1, 2))
    assert len(c) == 1


@pytest.mark.parametrize("build", [
    lambda c: bell_pair(c, 1, 1),
    lambda c: teleport(c, 0, 0, 1),
    lambda c: teleport(c, 0, 1, 2, bits=(3, 3)),
    lambda c: toffoli(c, 0, 2, 2),
    lambda c: bit_flip_encode(c, 0, (0, 1)),
    lambda c: bit_flip_encode(c, 0, (1,)),
    lambda c: bell_pair(c, 0, 5),
    lambda c: ghz(c, (0,)),
])
def test_role_errors(build):
    c = Circuit(n_qubits=3)
    with pytest.raises(ValidationError):
        build(c)
    assert len(c) == 0


# ── Entanglement ──────────────────────────────────────────────────────────────


def test_bell_pair_state():
    state, _ = run(bell_pair(Circuit(n_qubits=2), 0, 1), seed=0)
    assert np.allclose(state.amplitudes, [1 / np.sqrt(2), 0, 0, 1 / np.sqrt(2)])


def test_ghz_outcomes_agree():
    c = ghz(Circuit(n_qubits=4), (0, 1, 2, 3)).measure_all()
    result = run_trials(c, n_trials=200, seed=1)
    assert set(result.counts()) == {'0000', '1111'}


# ── State preparation ─────────────────────────────────────────────────────────


@pytest.mark.parametrize("amps", [
    [1, 0],
    [0, 1],
    [0.6, 0.8],
    [1 / np.sqrt(2), 1j / np.sqrt(2)],
    [0.6j, -0.8],
])
def test_prepare_state(amps):
    target = np.array(amps, dtype=complex)
    state, _ = run(prepare_state(Circuit(n_qubits=2), 1, target), seed=0)
    assert single_qubit_fidelity(state, 1, target) == pytest.approx(1.0)
    assert single_qubit_fidelity(state, 0, [1, 0]) == pytest.approx(1.0)


def test_prepare_state_rejects_unnormalized():
    c = Circuit(n_qubits=1).h(0)
    with pytest.raises(ValidationError, match="not normalized"):
        prepare_state(c, 0, [0.5, 0.5])
    assert len(c) == 1


def test_prepare_state_rejects_wrong_length():
    with pytest.raises(ValidationError):
        prepare_state(Circuit(n_qubits=1), 0, [1, 0, 0, 0])


# ── Teleportation ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize("amps", [[0.6, 0.8], [1 / np.sqrt(2), 1j / np.sqrt(2)], [0, 1]])
def test_teleport_fidelity(amps):
    target = np.array(amps, dtype=complex)
    alloc = QubitAllocator()
    source, = alloc.allocate('source')
    alice, bob = alloc.allocate('pair', 2)
    c = prepare_state(alloc.circuit(), source, target)
    c = teleport(c, source, alice, bob, bits=(0, 1))
    for seed in range(16):
        state, _ = run(c, seed=seed)
        assert single_qubit_fidelity(state, bob, target) == pytest.approx(1.0, abs=1e-9)


def test_teleport_uses_all_four_corrections():
    c = prepare_state(Circuit(n_qubits=3), 0, _TARGET)
    c = teleport(c, 0, 1, 2, bits=(4, 7))
    result = run_trials(c, n_trials=400, seed=2)
    assert result.bits == [4, 7]
    assert set(result.counts()) == {'00', '01', '10', '11'}


# ── Toffoli ───────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("a, b, t", list(itertools.product((0, 1), repeat=3)))
def test_toffoli_truth_table(a, b, t):
    c = Circuit(n_qubits=3)
    for q, v in enumerate((a, b, t)):
        if v:
            c.x(q)
    state, _ = run(toffoli(c, 0, 1, 2), seed=0)
    index = (a << 2) | (b << 1) | (t ^ (a & b))
    assert abs(state.amplitudes[index]) == pytest.approx(1.0)


# ── Repetition codes ──────────────────────────────────────────────────────────


def _code_circuit(encode, decode, error: str | None, errored: int | None, syndrome_bits=None):
    c = prepare_state(Circuit(n_qubits=3), 0, _TARGET)
    c = encode(c, 0, (1, 2))
    if error == 'X':
        c.x(errored)
    elif error == 'Z':
        c.z(errored)
    return decode(c, 0, (1, 2), syndrome_bits)


@pytest.mark.parametrize("errored", [None, 0, 1, 2])
def test_bit_flip_code_corrects(errored):
    c = _code_circuit(bit_flip_encode, bit_flip_decode, 'X' if errored is not None else None, errored)
    state, _ = run(c, seed=0)
    assert single_qubit_fidelity(state, 0, _TARGET) == pytest.approx(1.0)


@pytest.mark.parametrize("errored, syndrome", [
    (None, {5: 0, 6: 0}),
    (0, {5: 1, 6: 1}),
    (1, {5: 1, 6: 0}),
    (2, {5: 0, 6: 1}),
])
def test_bit_flip_syndrome_bits(errored, syndrome):
    c = _code_circuit(
        bit_flip_encode, bit_flip_decode,
        'X' if errored is not None else None, errored, syndrome_bits=(5, 6),
    )
    state, register = run(c, seed=3)
    assert register.as_dict() == syndrome
    assert single_qubit_fidelity(state, 0, _TARGET) == pytest.approx(1.0)


@pytest.mark.parametrize("errored", [None, 0, 1, 2])
def test_phase_flip_code_corrects(errored):
    c = _code_circuit(phase_flip_encode, phase_flip_decode, 'Z' if errored is not None else None, errored)
    state, _ = run(c, seed=0)
    assert single_qubit_fidelity(state, 0, _TARGET) == pytest.approx(1.0)


def test_bit_flip_code_fails_on_two_errors():
    c = prepare_state(Circuit(n_qubits=3), 0, _TARGET)
    c = bit_flip_encode(c, 0, (1, 2)).x(1, 2)
    state, _ = run(bit_flip_decode(c, 0, (1, 2)), seed=0)
    flipped = np.array([0.8, 0.6], dtype=complex)
    assert single_qubit_fidelity(state, 0, flipped) == pytest.approx(1.0)
