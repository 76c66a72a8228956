"""
Pauli noise channels as randomized unitary selection.

Each single-qubit noise gate is a probability distribution over Paulis:

    DEPOLARIZE(p):  (1-p)·I + p/3·X + p/3·Y + p/3·Z
    X_ERROR(p):     (1-p)·I + p·X
    Z_ERROR(p):     (1-p)·I + p·Z

All coefficients are non-negative and sum to one, so one Pauli is drawn per
invocation and applied to the state vector exactly where the noise gate sits
in the circuit. The identity term is a no-op. Noise never reads or writes the
classical register.

A MEASURE may also carry a readout flip probability p: the state collapses as
usual and the recorded outcome is then inverted with probability p.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .circuit import Gate, GateFamily, GateKind
from .errors import ConfigurationError
from .statevector import StateVector
from .unitaries import PAULIS


@dataclass(frozen=True)
class PauliChannel:
    """
    A single-qubit Pauli channel: labels[i] is applied with probabilities[i].

    Attributes:
        labels:        Pauli labels, identity first ('I', 'X', 'Y', 'Z' subset).
        probabilities: Matching probabilities; non-negative, summing to 1.
    """
    labels: tuple[str, ...]
    probabilities: tuple[float, ...]

    @property
    def cdf(self) -> np.ndarray:
        return np.cumsum(self.probabilities)

    def sample(self, rng: np.random.Generator) -> str:
        """Draw one Pauli label with a single uniform draw against the CDF."""
        u = rng.random()
        idx = int(np.searchsorted(self.cdf, u, side='right'))
        # u < 1 but the CDF tail can round to just below 1
        return self.labels[min(idx, len(self.labels) - 1)]


def pauli_channel(family: GateFamily, p: float) -> PauliChannel:
    """
    Pauli distribution for a noise family with error probability p.

    Raises:
        ConfigurationError: If `family` is not a noise family.
    """
    match family:
        case GateFamily.DEPOLARIZE:
            return PauliChannel(('I', 'X', 'Y', 'Z'), (1.0 - p, p / 3, p / 3, p / 3))
        case GateFamily.X_ERROR:
            return PauliChannel(('I', 'X'), (1.0 - p, p))
        case GateFamily.Z_ERROR:
            return PauliChannel(('I', 'Z'), (1.0 - p, p))
        case _:
            raise ConfigurationError(f"{family.label} is not a noise channel")


class NoiseModel:
    """
    Stateless sampler that turns noise gates into Pauli applications.

    Holds no mutable state, so one instance can be shared by any number of
    concurrent runs; all randomness comes from the generator passed in.

    Args:
        scale: Multiplier applied to every noise gate's probability and every
               readout flip probability (clipped to [0, 1]). 1.0 runs the circuit's noise as written, 0.0 disables
               it. Useful for sweeping noise strength without rebuilding the
               circuit.
    """

    def __init__(self, scale: float = 1.0) -> None:
        if scale < 0:
            raise ConfigurationError(f"scale must be >= 0, got {scale}")
        self.scale = scale

    def channel(self, gate: Gate) -> PauliChannel:
        if gate.family.kind is not GateKind.NOISE:
            raise ConfigurationError(f"{gate.family.label} is not a noise channel")
        p = min(1.0, gate.parameter * self.scale)
        return pauli_channel(gate.family, p)

    def sample(self, gate: Gate, rng: np.random.Generator) -> str:
        """Pauli label to apply for one invocation of `gate`."""
        return self.channel(gate).sample(rng)

    def readout_flip(self, gate: Gate, rng: np.random.Generator) -> bool:
        """
        Whether a MEASURE with a readout flip probability inverts its recorded bit.

        One uniform draw, flipping when it falls below the scaled probability.
        """
        if gate.family is not GateFamily.MEASURE or gate.parameter is None:
            raise ConfigurationError(f"{gate} carries no readout flip probability")
        return rng.random() < min(1.0, gate.parameter * self.scale)

    def apply(self, state: StateVector, gate: Gate, rng: np.random.Generator) -> str:
        """Sample a Pauli for `gate`, apply it to `state` in place and return its label."""
        label = self.sample(gate, rng)
        if label != 'I':
            state.apply_single(PAULIS[label], gate.qubits[0])
        return label

    def __repr__(self) -> str:
        return f'NoiseModel(scale={self.scale})'
