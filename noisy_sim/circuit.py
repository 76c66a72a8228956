"""
Circuit representation: unitary gates, Pauli noise channels, Z-basis
measurements and classically-conditioned operations.

- GateFamily:  closed set of gate families. Each member carries a fixed
               arity, whether it needs a numeric parameter, and its kind
               (unitary / measure / reset / noise). The table is checked once
               when a Gate is built; the Runner dispatches on the kind.
- Gate:        one immutable operation. `condition` names a classical bit that
               must hold 1 for the gate to run; `target_bit` is the classical
               bit a MEASURE writes.
- Circuit:     ordered gates plus a declared qubit count, built with fluent
               append-returning builders:

                   c = Circuit(n_qubits=2)
                   c.h(0).cnot(0, 1).measure(0, 0).measure(1, 1)

Use Circuit.from_stim() to import a stim.Circuit (Clifford + Pauli noise +
measurement + record-controlled Paulis) and Circuit.to_stim() to export the
Clifford subset back to Stim.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

import stim

from .errors import ConfigurationError, ValidationError


# ── Gate families ─────────────────────────────────────────────────────────────

class GateKind(Enum):
    UNITARY = "unitary"
    MEASURE = "measure"
    RESET = "reset"
    NOISE = "noise"


class GateFamily(Enum):
    """
    Gate family tag with its fixed (label, arity, needs_parameter, kind) row.

    RX / RY / RZ take an angle in radians. DEPOLARIZE / X_ERROR / Z_ERROR take
    an error probability in [0, 1].
    """

    H = ("H", 1, False, GateKind.UNITARY)
    X = ("X", 1, False, GateKind.UNITARY)
    Y = ("Y", 1, False, GateKind.UNITARY)
    Z = ("Z", 1, False, GateKind.UNITARY)
    S = ("S", 1, False, GateKind.UNITARY)
    SDG = ("S_DAG", 1, False, GateKind.UNITARY)
    T = ("T", 1, False, GateKind.UNITARY)
    TDG = ("T_DAG", 1, False, GateKind.UNITARY)
    RX = ("RX", 1, True, GateKind.UNITARY)
    RY = ("RY", 1, True, GateKind.UNITARY)
    RZ = ("RZ", 1, True, GateKind.UNITARY)
    CNOT = ("CNOT", 2, False, GateKind.UNITARY)
    CZ = ("CZ", 2, False, GateKind.UNITARY)
    SWAP = ("SWAP", 2, False, GateKind.UNITARY)
    MEASURE = ("MEASURE", 1, False, GateKind.MEASURE)
    RESET = ("RESET", 1, False, GateKind.RESET)
    DEPOLARIZE = ("DEPOLARIZE1", 1, True, GateKind.NOISE)
    X_ERROR = ("X_ERROR", 1, True, GateKind.NOISE)
    Z_ERROR = ("Z_ERROR", 1, True, GateKind.NOISE)

    def __init__(self, label: str, arity: int, needs_parameter: bool, kind: GateKind) -> None:
        self.label = label
        self.arity = arity
        self.needs_parameter = needs_parameter
        self.kind = kind


# ── Stim name → family ────────────────────────────────────────────────────────

_STIM_1Q: dict[str, GateFamily] = {
    'H': GateFamily.H,
    'X': GateFamily.X, 'Y': GateFamily.Y, 'Z': GateFamily.Z,
    'S': GateFamily.S, 'SQRT_Z': GateFamily.S,
    'S_DAG': GateFamily.SDG, 'SQRT_Z_DAG': GateFamily.SDG,
    'R': GateFamily.RESET, 'RZ': GateFamily.RESET,
}

_STIM_2Q: dict[str, GateFamily] = {
    'CX': GateFamily.CNOT, 'CNOT': GateFamily.CNOT, 'ZCX': GateFamily.CNOT,
    'CZ': GateFamily.CZ, 'ZCZ': GateFamily.CZ,
    'SWAP': GateFamily.SWAP,
}

_STIM_NOISE: dict[str, GateFamily] = {
    'DEPOLARIZE1': GateFamily.DEPOLARIZE,
    'X_ERROR': GateFamily.X_ERROR,
    'Z_ERROR': GateFamily.Z_ERROR,
}

# Record-controlled Paulis: CX rec[-k] q → X on q if bit, CZ → Z, CY → Y
_STIM_FEEDBACK: dict[str, GateFamily] = {
    'CX': GateFamily.X, 'CNOT': GateFamily.X, 'ZCX': GateFamily.X,
    'CY': GateFamily.Y, 'ZCY': GateFamily.Y,
    'CZ': GateFamily.Z, 'ZCZ': GateFamily.Z,
}

_STIM_SKIP: frozenset[str] = frozenset({
    'QUBIT_COORDS', 'DETECTOR', 'OBSERVABLE_INCLUDE', 'SHIFT_COORDS', 'I',
})

# Family → Stim instruction name for export (Clifford subset only)
_TO_STIM: dict[GateFamily, str] = {
    GateFamily.H: 'H', GateFamily.X: 'X', GateFamily.Y: 'Y', GateFamily.Z: 'Z',
    GateFamily.S: 'S', GateFamily.SDG: 'S_DAG',
    GateFamily.CNOT: 'CX', GateFamily.CZ: 'CZ', GateFamily.SWAP: 'SWAP',
    GateFamily.RESET: 'R', GateFamily.MEASURE: 'M',
    GateFamily.DEPOLARIZE: 'DEPOLARIZE1',
    GateFamily.X_ERROR: 'X_ERROR', GateFamily.Z_ERROR: 'Z_ERROR',
}

_FEEDBACK_TO_STIM: dict[GateFamily, str] = {
    GateFamily.X: 'CX', GateFamily.Y: 'CY', GateFamily.Z: 'CZ',
}


# ── Gate ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Gate:
    """
    A single circuit operation.

    Attributes:
        family:     Gate family tag.
        qubits:     Target qubits; length equals family.arity. For CNOT the
                    first qubit is the control.
        parameter:  Rotation angle (RX/RY/RZ), error probability (noise), or the
                    optional readout flip probability of a MEASURE.
        condition:  Classical bit that must hold 1 for the gate to run.
                    None → unconditional.
        target_bit: Classical bit written by a MEASURE.
    """
    family: GateFamily
    qubits: tuple[int, ...]
    parameter: float | None = None
    condition: int | None = None
    target_bit: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'qubits', tuple(int(q) for q in self.qubits))
        self.check()

    def check(self) -> None:
        """Check the arity / parameter table row for this gate's family."""
        family = self.family
        if len(self.qubits) != family.arity:
            raise ConfigurationError(
                f"{family.label} acts on {family.arity} qubit(s), got {self.qubits}"
            )
        if any(q < 0 for q in self.qubits):
            raise ValidationError(f"{family.label}: negative qubit index in {self.qubits}")
        if family.arity == 2 and self.qubits[0] == self.qubits[1]:
            raise ConfigurationError(
                f"{family.label}: qubit pair collides with itself ({self.qubits[0]})"
            )
        if family.needs_parameter and self.parameter is None:
            raise ConfigurationError(f"{family.label} requires a parameter")
        if (
            not family.needs_parameter
            and self.parameter is not None
            and family is not GateFamily.MEASURE
        ):
            raise ConfigurationError(f"{family.label} takes no parameter")
        if self.is_probabilistic and not 0.0 <= self.parameter <= 1.0:
            raise ConfigurationError(
                f"{family.label}: probability must be in [0, 1], got {self.parameter}"
            )
        if family is GateFamily.MEASURE and self.target_bit is None:
            raise ConfigurationError("MEASURE requires a target classical bit")
        if family is not GateFamily.MEASURE and self.target_bit is not None:
            raise ConfigurationError(f"{family.label} does not write a classical bit")
        for bit in (self.condition, self.target_bit):
            if bit is not None and bit < 0:
                raise ValidationError(f"{family.label}: negative classical bit index {bit}")

    @property
    def is_conditional(self) -> bool:
        return self.condition is not None

    @property
    def is_probabilistic(self) -> bool:
        """Noise gates, and measurements carrying a readout flip probability."""
        return self.family.kind is GateKind.NOISE or (
            self.family is GateFamily.MEASURE and self.parameter is not None
        )

    def __str__(self) -> str:
        name = self.family.label
        if self.parameter is not None:
            name = f'{name}({self.parameter:.6g})'
        text = f"{name} {' '.join(str(q) for q in self.qubits)}"
        if self.target_bit is not None:
            text += f' -> c[{self.target_bit}]'
        if self.condition is not None:
            text += f' if c[{self.condition}]'
        return text


# ── Helpers ───────────────────────────────────────────────────────────────────

def _to_qubits(q: int | tuple[int, ...]) -> tuple[int, ...]:
    """Normalise a single qubit int or qubit tuple to a tuple."""
    return (q,) if isinstance(q, int) else tuple(q)


def _pairs(qubits: tuple[int, ...], name: str) -> list[tuple[int, int]]:
    if len(qubits) % 2:
        raise ConfigurationError(f"{name} expects interleaved qubit pairs, got {qubits}")
    return [(qubits[i], qubits[i + 1]) for i in range(0, len(qubits), 2)]


# ── Circuit class ─────────────────────────────────────────────────────────────

class Circuit:
    """
    An ordered sequence of gates over `n_qubits` qubits, starting from |0...0>.

    Single-qubit builders accept several qubits at once (one Gate per qubit):

        c.h(0, 1, 2)                     # H on qubits 0, 1, 2
        c.cnot(0, 1, 2, 3)               # CNOT on (0→1) and (2→3)
        c.rx((0, 1), np.pi / 3)          # RX on qubits 0 and 1
        c.depolarize((0, 1), 0.01)       # independent noise on each qubit

    Every builder takes a keyword-only `condition`: the gate then runs only if
    that classical bit currently holds 1.

        c.measure(0, 0).x(1, condition=0)

    Builders return self; the gate order is the execution order.
    """

    def __init__(self, n_qubits: int) -> None:
        if n_qubits < 1:
            raise ValidationError("n_qubits must be >= 1")
        self.n_qubits = n_qubits
        self._gates: list[Gate] = []

    # ── Generic append ────────────────────────────────────────────────────────

    def append(self, gate: Gate) -> 'Circuit':
        if not isinstance(gate, Gate):
            raise TypeError(f"Expected Gate, got {type(gate).__name__}")
        self._gates.append(gate)
        return self

    def extend(self, gates: Iterable[Gate]) -> 'Circuit':
        for gate in gates:
            self.append(gate)
        return self

    def copy(self) -> 'Circuit':
        new = Circuit(self.n_qubits)
        new._gates = list(self._gates)
        return new

    def _single(
        self,
        family: GateFamily,
        qubits: tuple[int, ...],
        parameter: float | None = None,
        condition: int | None = None,
    ) -> 'Circuit':
        for q in qubits:
            self._gates.append(Gate(family, (q,), parameter, condition))
        return self

    def _double(
        self, family: GateFamily, qubits: tuple[int, ...], condition: int | None
    ) -> 'Circuit':
        for a, b in _pairs(qubits, family.label):
            self._gates.append(Gate(family, (a, b), condition=condition))
        return self

    # ── Fixed single-qubit gates ──────────────────────────────────────────────

    def h(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._single(GateFamily.H, qubits, condition=condition)

    def x(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._single(GateFamily.X, qubits, condition=condition)

    def y(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._single(GateFamily.Y, qubits, condition=condition)

    def z(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._single(GateFamily.Z, qubits, condition=condition)

    def s(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._single(GateFamily.S, qubits, condition=condition)

    def sdg(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._single(GateFamily.SDG, qubits, condition=condition)

    def t(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._single(GateFamily.T, qubits, condition=condition)

    def tdg(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._single(GateFamily.TDG, qubits, condition=condition)

    # ── Rotations ─────────────────────────────────────────────────────────────

    def rx(
        self, qubits: int | tuple[int, ...], theta: float, *, condition: int | None = None
    ) -> 'Circuit':
        """RX(theta) = exp(-i theta X / 2) on one or more qubits."""
        return self._single(GateFamily.RX, _to_qubits(qubits), float(theta), condition)

    def ry(
        self, qubits: int | tuple[int, ...], theta: float, *, condition: int | None = None
    ) -> 'Circuit':
        return self._single(GateFamily.RY, _to_qubits(qubits), float(theta), condition)

    def rz(
        self, qubits: int | tuple[int, ...], theta: float, *, condition: int | None = None
    ) -> 'Circuit':
        return self._single(GateFamily.RZ, _to_qubits(qubits), float(theta), condition)

    # ── Two-qubit gates (interleaved pairs) ───────────────────────────────────

    def cnot(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        """CNOT on interleaved pairs: cnot(c0, t0, c1, t1, …)."""
        return self._double(GateFamily.CNOT, qubits, condition)

    cx = cnot

    def cz(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._double(GateFamily.CZ, qubits, condition)

    def swap(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        return self._double(GateFamily.SWAP, qubits, condition)

    # ── Measurement and reset ─────────────────────────────────────────────────

    def measure(
        self,
        qubit: int,
        bit: int,
        *,
        flip: float | None = None,
        condition: int | None = None,
    ) -> 'Circuit':
        """
        Z-basis measurement of `qubit`, outcome written to classical `bit`.

        With `flip`, the recorded outcome is inverted with that probability
        (readout error); the collapsed qubit is unaffected.
        """
        self._gates.append(Gate(
            GateFamily.MEASURE, (qubit,),
            None if flip is None else float(flip),
            condition=condition, target_bit=bit,
        ))
        return self

    def measure_all(self, first_bit: int = 0) -> 'Circuit':
        """Measure qubit q into bit first_bit + q, for every qubit."""
        for q in range(self.n_qubits):
            self.measure(q, first_bit + q)
        return self

    def reset(self, *qubits: int, condition: int | None = None) -> 'Circuit':
        """Reset qubits to |0> (Z basis); no classical bit is written."""
        return self._single(GateFamily.RESET, qubits, condition=condition)

    # ── Noise builders ────────────────────────────────────────────────────────

    def depolarize(
        self, qubits: int | tuple[int, ...], p: float, *, condition: int | None = None
    ) -> 'Circuit':
        """Single-qubit depolarizing noise: X, Y or Z each with probability p/3."""
        return self._single(GateFamily.DEPOLARIZE, _to_qubits(qubits), float(p), condition)

    def x_error(
        self, qubits: int | tuple[int, ...], p: float, *, condition: int | None = None
    ) -> 'Circuit':
        """Bit-flip (X) error with probability p."""
        return self._single(GateFamily.X_ERROR, _to_qubits(qubits), float(p), condition)

    def z_error(
        self, qubits: int | tuple[int, ...], p: float, *, condition: int | None = None
    ) -> 'Circuit':
        """Phase-flip (Z) error with probability p."""
        return self._single(GateFamily.Z_ERROR, _to_qubits(qubits), float(p), condition)

    # ── Import from Stim ──────────────────────────────────────────────────────

    @classmethod
    def from_stim(cls, stim_circuit: stim.Circuit, n_qubits: int | None = None) -> 'Circuit':
        """
        Build a Circuit from an existing stim.Circuit.

        Measurement record k (in order of appearance) is written to classical
        bit k. Record-controlled Paulis (``CX rec[-1] 2``) become conditional
        X/Y/Z gates on the referenced bit.

        Supported instructions:
            Unitary:      H, X, Y, Z, S, S_DAG, CX, CZ, SWAP
            Reset:        R
            Noise:        DEPOLARIZE1, X_ERROR, Z_ERROR
            Measurement:  M, MZ; MR, MRZ (measure then reset).
                          M(p) becomes a MEASURE with readout flip p: the
                          recorded bit is inverted with probability p, the
                          qubit is not. An inverted target (M !q) measures
                          between two X gates, which records the inverted
                          outcome and leaves the qubit as a plain M would.
            REPEAT block: unrolled into a flat gate sequence.

        Annotations (DETECTOR, QUBIT_COORDS, …) are skipped silently; other
        unknown instructions raise a warning and are skipped.
        """
        if n_qubits is None:
            n_qubits = stim_circuit.num_qubits or 1
        circuit = cls(n_qubits)
        circuit._extend_from_stim(stim_circuit, [0])
        return circuit

    def _extend_from_stim(self, sc: stim.Circuit, record: list[int]) -> None:
        """Recursively parse a stim.Circuit; record[0] is the running measurement count."""
        for instr in sc:
            if isinstance(instr, stim.CircuitRepeatBlock):
                for _ in range(instr.repeat_count):
                    self._extend_from_stim(instr.body_copy(), record)
                continue

            name: str = instr.name
            targets = instr.targets_copy()
            args: list[float] = instr.gate_args_copy()

            if name in _STIM_1Q:
                self._single(_STIM_1Q[name], tuple(t.value for t in targets))

            elif name in _STIM_2Q or name in _STIM_FEEDBACK:
                for i in range(0, len(targets), 2):
                    a, b = targets[i], targets[i + 1]
                    if a.is_measurement_record_target or b.is_measurement_record_target:
                        rec, qubit = (a, b) if a.is_measurement_record_target else (b, a)
                        self._gates.append(Gate(
                            _STIM_FEEDBACK[name], (qubit.value,),
                            condition=record[0] + rec.value,
                        ))
                    elif name in _STIM_2Q:
                        self._gates.append(Gate(_STIM_2Q[name], (a.value, b.value)))
                    else:
                        warnings.warn(
                            f"Circuit.from_stim: unsupported instruction '{name}' skipped.",
                            stacklevel=3,
                        )

            elif name in _STIM_NOISE:
                self._single(_STIM_NOISE[name], tuple(t.value for t in targets), args[0])

            elif name in ('M', 'MZ', 'MR', 'MRZ'):
                flip = args[0] if args and args[0] > 0 else None
                for t in targets:
                    q = t.value
                    if t.is_inverted_result_target:
                        self.x(q)
                    self.measure(q, record[0], flip=flip)
                    if t.is_inverted_result_target:
                        self.x(q)
                    if name in ('MR', 'MRZ'):
                        self.reset(q)
                    record[0] += 1

            elif name == 'TICK' or name in _STIM_SKIP:
                pass

            else:
                warnings.warn(
                    f"Circuit.from_stim: unsupported instruction '{name}' skipped.",
                    stacklevel=3,
                )

    # ── Export to Stim ────────────────────────────────────────────────────────

    def to_stim(self) -> stim.Circuit:
        """
        Export to a stim.Circuit.

        Only the Clifford + Pauli-noise subset is expressible. Conditional X/Y/Z
        become record-controlled Paulis; a condition on a bit that was never
        measured means the gate can never run, so it is dropped.

        Raises:
            ConfigurationError: For non-Clifford gates (T, RX, RY, RZ) and for
                                conditional gates other than X/Y/Z.
        """
        lines: list[str] = []
        last_record: dict[int, int] = {}
        n_records = 0
        for gate in self._gates:
            family = gate.family
            if family not in _TO_STIM:
                raise ConfigurationError(f"{family.label} has no Stim equivalent")
            targets = ' '.join(str(q) for q in gate.qubits)

            if gate.condition is not None:
                if family not in _FEEDBACK_TO_STIM:
                    raise ConfigurationError(
                        f"Conditional {family.label} cannot be expressed in Stim"
                    )
                if gate.condition not in last_record:
                    continue
                offset = n_records - last_record[gate.condition]
                lines.append(f'{_FEEDBACK_TO_STIM[family]} rec[-{offset}] {targets}')
                continue

            name = _TO_STIM[family]
            if gate.parameter is not None:
                name = f'{name}({gate.parameter!r})'
            lines.append(f'{name} {targets}')
            if family is GateFamily.MEASURE:
                last_record[gate.target_bit] = n_records
                n_records += 1
        return stim.Circuit('\n'.join(lines))

    # ── Inspection ────────────────────────────────────────────────────────────

    @property
    def gates(self) -> tuple[Gate, ...]:
        return tuple(self._gates)

    @property
    def n_measurements(self) -> int:
        return sum(1 for g in self._gates if g.family is GateFamily.MEASURE)

    @property
    def n_noise_ops(self) -> int:
        return sum(1 for g in self._gates if g.family.kind is GateKind.NOISE)

    @property
    def n_conditional(self) -> int:
        return sum(1 for g in self._gates if g.condition is not None)

    @property
    def classical_bits(self) -> list[int]:
        """Sorted classical bits that are written by measurements or read by conditions."""
        bits = set()
        for g in self._gates:
            if g.target_bit is not None:
                bits.add(g.target_bit)
            if g.condition is not None:
                bits.add(g.condition)
        return sorted(bits)

    def __len__(self) -> int:
        return len(self._gates)

    def __iter__(self) -> Iterator[Gate]:
        return iter(tuple(self._gates))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Circuit):
            return NotImplemented
        return self.n_qubits == other.n_qubits and self._gates == other._gates

    def __str__(self) -> str:
        header = (
            f'Circuit(n_qubits={self.n_qubits}, '
            f'gates={len(self._gates)}, '
            f'noise={self.n_noise_ops}, '
            f'measurements={self.n_measurements})'
        )
        body = '\n'.join(str(g) for g in self._gates)
        return f'{header}\n{body}' if body else header

    def __repr__(self) -> str:
        return str(self)
