"""
Canned circuit fragments.

Every function here is pure: it returns a new Circuit (the input's gates
followed by the fragment) and never mutates its argument, even on failure.
Qubit roles are passed explicitly; pass indices from a QubitAllocator when
composing several fragments so that roles cannot alias.

    >>> alloc = QubitAllocator()
    >>> src, = alloc.allocate('source')
    >>> a, b = alloc.allocate('pair', 2)
    >>> c = prepare_state(alloc.circuit(), src, [0.6, 0.8])
    >>> c = teleport(c, src, a, b, bits=(0, 1))
"""

from __future__ import annotations

import numpy as np

from .allocator import check_disjoint
from .circuit import Circuit
from .errors import ValidationError
from .statevector import NORM_TOLERANCE


def _check_in_range(circuit: Circuit, *qubits: int) -> None:
    for q in qubits:
        if not 0 <= q < circuit.n_qubits:
            raise ValidationError(
                f"Qubit {q} is outside the circuit's {circuit.n_qubits} qubits"
            )


# ── Entanglement ──────────────────────────────────────────────────────────────

def bell_pair(circuit: Circuit, q0: int, q1: int) -> Circuit:
    """(|00⟩ + |11⟩)/√2 on (q0, q1), assuming both start in |0⟩."""
    check_disjoint((q0,), (q1,))
    _check_in_range(circuit, q0, q1)
    return circuit.copy().h(q0).cnot(q0, q1)


def ghz(circuit: Circuit, qubits: tuple[int, ...]) -> Circuit:
    """(|0…0⟩ + |1…1⟩)/√2 over `qubits`, assuming they start in |0⟩."""
    qubits = tuple(qubits)
    if len(qubits) < 2:
        raise ValidationError("GHZ state needs at least two qubits")
    check_disjoint(*((q,) for q in qubits))
    _check_in_range(circuit, *qubits)
    out = circuit.copy().h(qubits[0])
    for q in qubits[1:]:
        out.cnot(qubits[0], q)
    return out


# ── State preparation ─────────────────────────────────────────────────────────

def prepare_state(
    circuit: Circuit,
    qubit: int,
    amplitudes,
    tolerance: float = NORM_TOLERANCE,
) -> Circuit:
    """
    Append gates taking `qubit` from |0⟩ to α|0⟩ + β|1⟩ (up to global phase).

        RY(2·atan2(|β|, |α|))  then  RZ(arg β − arg α)

    Raises:
        ValidationError: If `amplitudes` is not a length-2 vector with
                         |α|² + |β|² = 1 within `tolerance`. The input circuit
                         is left unmodified; nothing is rescaled.
    """
    amps = np.asarray(amplitudes, dtype=np.complex128).reshape(-1)
    if amps.size != 2:
        raise ValidationError(f"Expected two amplitudes, got {amps.size}")
    total = float(np.sum(np.abs(amps) ** 2))
    if abs(total - 1.0) > tolerance:
        raise ValidationError(
            f"Amplitudes are not normalized: |a|^2 + |b|^2 = {total:.6g}"
        )
    _check_in_range(circuit, qubit)
    alpha, beta = amps
    theta = 2.0 * float(np.arctan2(abs(beta), abs(alpha)))
    phi = float(np.angle(beta) - np.angle(alpha))
    return circuit.copy().ry(qubit, theta).rz(qubit, phi)


# ── Teleportation ─────────────────────────────────────────────────────────────

def teleport(
    circuit: Circuit,
    source: int,
    alice: int,
    bob: int,
    bits: tuple[int, int] = (0, 1),
    share_pair: bool = True,
) -> Circuit:
    """
    Teleport the state of `source` onto `bob`, using `alice` as Alice's half.

        H(alice), CNOT(alice, bob)            shared Bell pair (share_pair=True)
        CNOT(source, alice), H(source)        Bell-basis rotation
        M source → bits[0], M alice → bits[1]
        X(bob) if bits[1], Z(bob) if bits[0]  corrections
    """
    check_disjoint((source,), (alice,), (bob,))
    m0, m1 = bits
    if m0 == m1:
        raise ValidationError("Teleportation needs two distinct classical bits")
    out = bell_pair(circuit, alice, bob) if share_pair else circuit.copy()
    _check_in_range(out, source, alice, bob)
    out.cnot(source, alice).h(source)
    out.measure(source, m0).measure(alice, m1)
    out.x(bob, condition=m1).z(bob, condition=m0)
    return out


# ── Toffoli ───────────────────────────────────────────────────────────────────

def toffoli(circuit: Circuit, a: int, b: int, target: int) -> Circuit:
    """Doubly-controlled X as 15 one- and two-qubit gates (H, CNOT, T, T†)."""
    check_disjoint((a,), (b,), (target,))
    _check_in_range(circuit, a, b, target)
    out = circuit.copy()
    out.h(target)
    out.cnot(b, target).tdg(target)
    out.cnot(a, target).t(target)
    out.cnot(b, target).tdg(target)
    out.cnot(a, target)
    out.t(b, target)
    out.h(target)
    out.cnot(a, b).t(a).tdg(b).cnot(a, b)
    return out


# ── Three-qubit repetition codes ──────────────────────────────────────────────

def _check_code_roles(circuit: Circuit, data: int, ancillas: tuple[int, ...]) -> tuple[int, int]:
    ancillas = tuple(ancillas)
    if len(ancillas) != 2:
        raise ValidationError(f"Repetition code needs two ancillas, got {ancillas}")
    check_disjoint((data,), ancillas)
    _check_in_range(circuit, data, *ancillas)
    return ancillas[0], ancillas[1]


def bit_flip_encode(circuit: Circuit, data: int, ancillas: tuple[int, int]) -> Circuit:
    """α|0⟩ + β|1⟩ on `data` → α|000⟩ + β|111⟩ over (data, *ancillas); ancillas start in |0⟩."""
    a1, a2 = _check_code_roles(circuit, data, ancillas)
    return circuit.copy().cnot(data, a1, data, a2)


def bit_flip_decode(
    circuit: Circuit,
    data: int,
    ancillas: tuple[int, int],
    syndrome_bits: tuple[int, int] | None = None,
) -> Circuit:
    """
    Undo bit_flip_encode and correct up to one X error back onto `data`.

    After the CNOT fan-out the ancillas hold the syndrome; a Toffoli flips
    `data` when both are 1 (the error was on `data`). With `syndrome_bits`
    the ancillas are measured into those bits first, which records the
    syndrome without changing the correction.
    """
    a1, a2 = _check_code_roles(circuit, data, ancillas)
    out = circuit.copy().cnot(data, a1, data, a2)
    if syndrome_bits is not None:
        s1, s2 = syndrome_bits
        out.measure(a1, s1).measure(a2, s2)
    return toffoli(out, a1, a2, data)


def phase_flip_encode(circuit: Circuit, data: int, ancillas: tuple[int, int]) -> Circuit:
    """α|0⟩ + β|1⟩ → α|+++⟩ + β|−−−⟩; protects against one Z error."""
    out = bit_flip_encode(circuit, data, ancillas)
    return out.h(data, *ancillas)


def phase_flip_decode(
    circuit: Circuit,
    data: int,
    ancillas: tuple[int, int],
    syndrome_bits: tuple[int, int] | None = None,
) -> Circuit:
    """Undo phase_flip_encode and correct up to one Z error back onto `data`."""
    _check_code_roles(circuit, data, ancillas)
    out = circuit.copy().h(data, *ancillas)
    return bit_flip_decode(out, data, ancillas, syndrome_bits)
