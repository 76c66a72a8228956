"""
Circuit execution.

Runner.run(circuit, seed) executes one trajectory:

    1. Validate the whole circuit before touching any state: qubit count,
       every qubit index, every classical bit index, every gate's
       arity/parameter row. A rejected circuit leaves nothing behind.
    2. Start from |0...0⟩ (or a copy of a validated initial state) and an
       empty classical register; build the random source from the seed.
    3. Walk the gates strictly in order. A gate with a classical condition
       runs only if that bit holds 1. Otherwise dispatch on the gate kind:
           UNITARY → StateVector.apply_gate
           NOISE   → NoiseModel.apply   (one sampled Pauli)
           MEASURE → StateVector.measure, outcome written to the register
                     (inverted with the gate's readout flip probability, if any)
           RESET   → measure, then X if the outcome was 1
    4. Return RunResult(state, register); the Runner keeps no reference.

All randomness comes from one numpy Generator created per run, so a run is
fully determined by (circuit, seed, initial state).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .circuit import Circuit, Gate, GateKind
from .errors import NumericalError, ValidationError
from .noise import NoiseModel
from .register import ClassicalRegister
from .statevector import NORM_TOLERANCE, StateVector
from .unitaries import X

logger = logging.getLogger(__name__)

# Generator consumed by every measurement, readout flip and noise draw in a run.
RandomSource = np.random.Generator


@dataclass
class RunResult:
    """
    Output of Runner.run().

    Attributes:
        state:    Final state vector (owned by the caller).
        register: Final classical register (owned by the caller).
    """

    state: StateVector
    register: ClassicalRegister

    def __iter__(self):
        # Allows `state, register = runner.run(...)`
        return iter((self.state, self.register))

    def __repr__(self) -> str:
        return f"RunResult(state={self.state!r}, register={self.register!r})"


def validate(circuit: Circuit, initial_state: StateVector | None = None) -> None:
    """
    Check that `circuit` can run, without executing anything.

    Raises:
        ValidationError:    Zero qubits, an out-of-range qubit index, a negative
                            classical bit, or a mismatched initial state.
        ConfigurationError: A gate violating its family's arity/parameter row.
    """
    n = circuit.n_qubits
    if n < 1:
        raise ValidationError(f"Circuit must declare at least one qubit, got {n}")
    for pos, gate in enumerate(circuit.gates):
        gate.check()
        for q in gate.qubits:
            if q >= n:
                raise ValidationError(
                    f"Gate {pos} ({gate}) addresses qubit {q}, "
                    f"but the circuit has {n} qubits"
                )
    if initial_state is not None:
        if not isinstance(initial_state, StateVector):
            raise ValidationError(
                f"initial_state must be a StateVector, got {type(initial_state).__name__}"
            )
        if initial_state.n_qubits != n:
            raise ValidationError(
                f"initial_state has {initial_state.n_qubits} qubits, circuit has {n}"
            )
        if not initial_state.is_normalized():
            raise ValidationError("initial_state is not normalized")


class Runner:
    """
    Executes circuits on a dense state vector.

    Args:
        noise_model:    Sampler for noise gates. Default: NoiseModel() (noise as
                        written in the circuit). May be shared between runners.
        check_norm:     Verify Σ|a|² ≈ 1 after every executed gate; a drift
                        beyond `norm_tolerance` raises NumericalError.
        norm_tolerance: Allowed |Σ|a|² - 1|.

    Example::

        c = Circuit(n_qubits=2)
        c.h(0).cnot(0, 1).measure(0, 0).measure(1, 1)
        state, register = Runner().run(c, seed=7)
        assert register[0] == register[1]
    """

    def __init__(
        self,
        noise_model: NoiseModel | None = None,
        check_norm: bool = True,
        norm_tolerance: float = NORM_TOLERANCE,
    ) -> None:
        self.noise_model = noise_model if noise_model is not None else NoiseModel()
        self.check_norm = check_norm
        self.norm_tolerance = norm_tolerance

    def run(
        self,
        circuit: Circuit,
        seed: int | np.random.SeedSequence | RandomSource | None = None,
        initial_state: StateVector | None = None,
    ) -> RunResult:
        """
        Execute `circuit` once.

        Args:
            circuit:       Circuit to run. Its gate list is snapshotted first, so
                           appending to it afterwards does not affect this run.
            seed:          Anything numpy.random.default_rng accepts: an int, a
                           SeedSequence, an existing Generator (used as is), or
                           None for fresh entropy.
            initial_state: Optional starting state; copied, never mutated.

        Returns:
            RunResult with the final state vector and classical register.

        Raises:
            ValidationError, ConfigurationError: Before any execution.
            NumericalError: If a measurement hits a zero-probability branch;
                            the partial state is discarded.
        """
        gates = circuit.gates
        validate(circuit, initial_state)

        if initial_state is None:
            state = StateVector.ground(circuit.n_qubits)
        else:
            state = initial_state.copy()
        register = ClassicalRegister()
        rng = np.random.default_rng(seed)

        for pos, gate in enumerate(gates):
            if gate.condition is not None and not register.is_set(gate.condition):
                logger.debug("gate %d (%s) skipped: c[%d] not set", pos, gate, gate.condition)
                continue
            self._execute(gate, state, register, rng)
            if self.check_norm and abs(state.total_probability() - 1.0) > self.norm_tolerance:
                raise NumericalError(
                    f"Norm drifted to {state.total_probability():.9f} after gate {pos} ({gate})"
                )

        return RunResult(state=state, register=register)

    def _execute(
        self,
        gate: Gate,
        state: StateVector,
        register: ClassicalRegister,
        rng: np.random.Generator,
    ) -> None:
        match gate.family.kind:
            case GateKind.UNITARY:
                state.apply_gate(gate.family, gate.qubits, gate.parameter)
            case GateKind.NOISE:
                label = self.noise_model.apply(state, gate, rng)
                if label != 'I':
                    logger.debug("%s on qubit %d applied %s", gate.family.label, gate.qubits[0], label)
            case GateKind.MEASURE:
                outcome = state.measure(gate.qubits[0], rng)
                if gate.parameter is not None and self.noise_model.readout_flip(gate, rng):
                    outcome ^= 1
                register.write(gate.target_bit, outcome)
                logger.debug("measured qubit %d -> c[%d] = %d", gate.qubits[0], gate.target_bit, outcome)
            case GateKind.RESET:
                if state.measure(gate.qubits[0], rng):
                    state.apply_single(X, gate.qubits[0])
            case _:
                raise ValidationError(f"Unknown gate kind: {gate.family.kind}")


# ── Functional interface ──────────────────────────────────────────────────────


def run(
    circuit: Circuit,
    seed: int | np.random.SeedSequence | np.random.Generator | None = None,
    initial_state: StateVector | None = None,
    noise_model: NoiseModel | None = None,
) -> RunResult:
    """
    Convenience wrapper: Runner(noise_model).run(circuit, seed, initial_state).
    """
    return Runner(noise_model=noise_model).run(
        circuit, seed=seed, initial_state=initial_state
    )
