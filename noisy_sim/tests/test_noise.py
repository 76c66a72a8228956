"""
Tests for Pauli noise sampling.
"""

from __future__ import annotations

import numpy as np
import pytest

from noisy_sim import (
    Circuit,
    ConfigurationError,
    Gate,
    GateFamily,
    NoiseModel,
    StateVector,
    pauli_channel,
    run,
)


class _FixedDraw:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


# ── Channel tables ────────────────────────────────────────────────────────────


def test_depolarize_channel():
    ch = pauli_channel(GateFamily.DEPOLARIZE, 0.3)
    assert ch.labels == ('I', 'X', 'Y', 'Z')
    assert np.allclose(ch.probabilities, [0.7, 0.1, 0.1, 0.1])
    assert ch.cdf[-1] == pytest.approx(1.0)


@pytest.mark.parametrize("family, label", [
    (GateFamily.X_ERROR, 'X'),
    (GateFamily.Z_ERROR, 'Z'),
])
def test_single_pauli_channels(family, label):
    ch = pauli_channel(family, 0.25)
    assert ch.labels == ('I', label)
    assert np.allclose(ch.probabilities, [0.75, 0.25])


def test_non_noise_family_rejected():
    with pytest.raises(ConfigurationError):
        pauli_channel(GateFamily.H, 0.1)
    with pytest.raises(ConfigurationError):
        NoiseModel().channel(Gate(GateFamily.H, (0,)))


def test_negative_scale_rejected():
    with pytest.raises(ConfigurationError):
        NoiseModel(scale=-0.5)


def test_scale_clips_to_one():
    gate = Gate(GateFamily.X_ERROR, (0,), 0.6)
    ch = NoiseModel(scale=3.0).channel(gate)
    assert ch.probabilities == (0.0, 1.0)


# ── Sampling ──────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("draw, label", [
    (0.0, 'I'), (0.65, 'I'), (0.75, 'X'), (0.85, 'Y'), (0.95, 'Z'), (0.999999, 'Z'),
])
def test_sample_against_cdf(draw, label):
    """Cumulative weights for DEPOLARIZE(0.3): I < 0.7 ≤ X < 0.8 ≤ Y < 0.9 ≤ Z."""
    gate = Gate(GateFamily.DEPOLARIZE, (0,), 0.3)
    assert NoiseModel().sample(gate, _FixedDraw(draw)) == label


def test_sample_frequencies(rng):
    gate = Gate(GateFamily.DEPOLARIZE, (0,), 0.6)
    model = NoiseModel()
    n = 20_000
    labels = [model.sample(gate, rng) for _ in range(n)]
    for label, p in zip('IXYZ', (0.4, 0.2, 0.2, 0.2)):
        freq = labels.count(label) / n
        assert abs(freq - p) < 4 * np.sqrt(p * (1 - p) / n)


def test_zero_probability_is_identity(rng):
    gate = Gate(GateFamily.DEPOLARIZE, (0,), 0.0)
    model = NoiseModel()
    assert all(model.sample(gate, rng) == 'I' for _ in range(1_000))


# ── Application ───────────────────────────────────────────────────────────────


def test_x_error_one_always_flips(rng):
    state = StateVector.ground(2)
    label = NoiseModel().apply(state, Gate(GateFamily.X_ERROR, (1,), 1.0), rng)
    assert label == 'X'
    assert abs(state.amplitudes[1]) == pytest.approx(1.0)


def test_z_error_changes_phase_only(rng):
    state = StateVector.from_amplitudes([0.6, 0.8])
    NoiseModel().apply(state, Gate(GateFamily.Z_ERROR, (0,), 1.0), rng)
    assert np.allclose(state.amplitudes, [0.6, -0.8])


def test_noise_never_writes_register():
    c = Circuit(n_qubits=2)
    c.depolarize((0, 1), 1.0).x_error(0, 0.5).z_error(1, 0.5)
    for seed in range(10):
        _, register = run(c, seed=seed)
        assert len(register) == 0


def test_shared_model_is_stateless():
    model = NoiseModel(scale=0.5)
    c = Circuit(n_qubits=1).depolarize(0, 0.4).measure(0, 0)
    first = [run(c, seed=s, noise_model=model).register[0] for s in range(20)]
    second = [run(c, seed=s, noise_model=model).register[0] for s in range(20)]
    assert first == second


# ── Readout flips ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize("draw, flipped", [(0.0, True), (0.24, True), (0.26, False), (0.9, False)])
def test_readout_flip_threshold(draw, flipped):
    gate = Gate(GateFamily.MEASURE, (0,), 0.25, target_bit=0)
    assert NoiseModel().readout_flip(gate, _FixedDraw(draw)) is flipped


def test_readout_flip_scaled_off():
    gate = Gate(GateFamily.MEASURE, (0,), 1.0, target_bit=0)
    assert NoiseModel(scale=0.0).readout_flip(gate, _FixedDraw(0.0)) is False


def test_readout_flip_needs_probability():
    with pytest.raises(ConfigurationError):
        NoiseModel().readout_flip(Gate(GateFamily.MEASURE, (0,), target_bit=0), _FixedDraw(0.0))


def test_readout_flip_leaves_qubit():
    """M(1) always records the inverted outcome, but the qubit stays where it collapsed."""
    c = Circuit(n_qubits=1).measure(0, 0, flip=1.0).measure(0, 1)
    for seed in range(10):
        state, register = run(c, seed=seed)
        assert register.as_dict() == {0: 1, 1: 0}
        assert np.allclose(state.amplitudes, [1, 0])
