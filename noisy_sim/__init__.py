"""
noisy_sim: dense state-vector simulation of small noisy quantum circuits.

Executes unitary gates, Pauli noise channels, Z-basis measurements and
classically-conditioned corrections in program order:
    - Gates act in place on a complex128 amplitude buffer (2^n entries).
    - Measurements sample the Born rule, collapse the state and write a
      sparse classical register.
    - Noise gates draw one Pauli per invocation from an explicit random source.
    - A gate with a classical condition runs only if that bit holds 1.
    - Every run is seeded explicitly; repeated trials use SeedSequence.spawn.

Build from scratch:
    >>> from noisy_sim import Circuit, run
    >>> c = Circuit(n_qubits=2)
    >>> c.h(0).cnot(0, 1).measure(0, 0).measure(1, 1)
    >>> state, register = run(c, seed=0)

Repeated trials:
    >>> from noisy_sim import run_trials
    >>> result = run_trials(c, n_trials=10_000, seed=1)
    >>> result.counts()            # {'00': ~5000, '11': ~5000}

Import from Stim:
    >>> import stim
    >>> c = Circuit.from_stim(stim.Circuit("H 0\\nCX 0 1\\nDEPOLARIZE1(0.01) 0 1\\nM 0 1"))
"""

from .errors import (
    SimulationError,
    ValidationError,
    ConfigurationError,
    NumericalError,
)
from .circuit import Circuit, Gate, GateFamily, GateKind
from .allocator import QubitAllocator, check_disjoint
from .register import ClassicalRegister
from .statevector import StateVector, NORM_TOLERANCE, ZERO_PROBABILITY
from .noise import NoiseModel, PauliChannel, pauli_channel
from .runner import Runner, RunResult, RandomSource, run, validate
from .trials import TrialsResult, run_trials
from .statistics import (
    Estimate,
    outcome_counts,
    estimate_probability,
    state_fidelity,
    single_qubit_fidelity,
    reduced_qubit_state,
    mean_fidelity,
)
from .templates import (
    bell_pair,
    ghz,
    prepare_state,
    teleport,
    toffoli,
    bit_flip_encode,
    bit_flip_decode,
    phase_flip_encode,
    phase_flip_decode,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "SimulationError",
    "ValidationError",
    "ConfigurationError",
    "NumericalError",
    # Circuit
    "Circuit",
    "Gate",
    "GateFamily",
    "GateKind",
    "QubitAllocator",
    "check_disjoint",
    # Engine
    "ClassicalRegister",
    "StateVector",
    "NORM_TOLERANCE",
    "ZERO_PROBABILITY",
    "NoiseModel",
    "PauliChannel",
    "pauli_channel",
    "Runner",
    "RunResult",
    "RandomSource",
    "run",
    "validate",
    # Trials & statistics
    "TrialsResult",
    "run_trials",
    "Estimate",
    "outcome_counts",
    "estimate_probability",
    "state_fidelity",
    "single_qubit_fidelity",
    "reduced_qubit_state",
    "mean_fidelity",
    # Templates
    "bell_pair",
    "ghz",
    "prepare_state",
    "teleport",
    "toffoli",
    "bit_flip_encode",
    "bit_flip_decode",
    "phase_flip_encode",
    "phase_flip_decode",
]
