"""
Gate matrices used by the state-vector engine.

── Single-qubit operators (2×2) ─────────────────────────────────────────────────

    H  = 1/√2 [[1, 1], [1, -1]]
    X  = [[0, 1], [1, 0]]          Y = [[0, -i], [i, 0]]        Z = diag(1, -1)
    S  = diag(1, i)                T = diag(1, e^{iπ/4})         (and daggers)

    RX(θ) = [[cos θ/2,    -i sin θ/2],
             [-i sin θ/2,  cos θ/2  ]]
    RY(θ) = [[cos θ/2, -sin θ/2],
             [sin θ/2,  cos θ/2]]
    RZ(θ) = diag(e^{-iθ/2}, e^{iθ/2})

── Two-qubit operators (4×4) ────────────────────────────────────────────────────

    Basis order |q0 q1⟩ = |00⟩, |01⟩, |10⟩, |11⟩  (first listed qubit is the
    high bit, matching the big-endian amplitude index of StateVector).

    CNOT: control = first qubit, target = second.
    CZ:   symmetric.
    SWAP: exchanges the two factors.
"""

from __future__ import annotations

import numpy as np

from .circuit import GateFamily


# ── Fixed single-qubit matrices ───────────────────────────────────────────────

I2 = np.eye(2, dtype=np.complex128)
H = np.array([[1, 1], [1, -1]], dtype=np.complex128) / np.sqrt(2)
X = np.array([[0, 1], [1, 0]], dtype=np.complex128)
Y = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)
Z = np.diag([1.0, -1.0]).astype(np.complex128)
S = np.diag([1.0, 1j]).astype(np.complex128)
SDG = S.conj().T
T = np.diag([1.0, np.exp(1j * np.pi / 4)]).astype(np.complex128)
TDG = T.conj().T

# ── Fixed two-qubit matrices ──────────────────────────────────────────────────

CNOT = np.array(
    [[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 0, 1], [0, 0, 1, 0]], dtype=np.complex128
)
CZ = np.diag([1.0, 1.0, 1.0, -1.0]).astype(np.complex128)
SWAP = np.array(
    [[1, 0, 0, 0], [0, 0, 1, 0], [0, 1, 0, 0], [0, 0, 0, 1]], dtype=np.complex128
)

# Pauli label → matrix, used by the noise model.
PAULIS: dict[str, np.ndarray] = {"I": I2, "X": X, "Y": Y, "Z": Z}


# ── Parameterized rotations ───────────────────────────────────────────────────

def rx(theta: float) -> np.ndarray:
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -1j * s], [-1j * s, c]], dtype=np.complex128)


def ry(theta: float) -> np.ndarray:
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -s], [s, c]], dtype=np.complex128)


def rz(theta: float) -> np.ndarray:
    return np.diag([np.exp(-1j * theta / 2), np.exp(1j * theta / 2)]).astype(
        np.complex128
    )


_FIXED: dict[GateFamily, np.ndarray] = {
    GateFamily.H: H,
    GateFamily.X: X,
    GateFamily.Y: Y,
    GateFamily.Z: Z,
    GateFamily.S: S,
    GateFamily.SDG: SDG,
    GateFamily.T: T,
    GateFamily.TDG: TDG,
    GateFamily.CNOT: CNOT,
    GateFamily.CZ: CZ,
    GateFamily.SWAP: SWAP,
}


def matrix_for(family: GateFamily, parameter: float | None = None) -> np.ndarray:
    """
    Return the unitary matrix of a unitary gate family.

    Args:
        family:    A family whose kind is UNITARY.
        parameter: Rotation angle for RX / RY / RZ; ignored otherwise.

    Raises:
        KeyError: If `family` is not a unitary family (measurement, reset, noise).
    """
    match family:
        case GateFamily.RX:
            return rx(parameter)
        case GateFamily.RY:
            return ry(parameter)
        case GateFamily.RZ:
            return rz(parameter)
        case _:
            return _FIXED[family]
