"""
Demonstrations of the state-vector runner.

Each example compares an exact value with the Monte Carlo estimate from
repeated trials and prints PASS/FAIL at 4 standard errors.

Run with:
    python -m noisy_sim.example
"""

from __future__ import annotations

import numpy as np

from noisy_sim import (
    Circuit,
    Estimate,
    NoiseModel,
    QubitAllocator,
    bell_pair,
    bit_flip_decode,
    bit_flip_encode,
    estimate_probability,
    prepare_state,
    run_trials,
    single_qubit_fidelity,
    teleport,
)


# ── Formatting ────────────────────────────────────────────────────────────────

def print_result(name: str, exact: float, estimate: Estimate) -> None:
    z = estimate.z_score(exact)
    status = "PASS" if z < 4 else "FAIL"
    print(f"[{status}] {name}")
    print(f"       exact={exact:+.6f}  mc={estimate.value:+.6f} ± {estimate.std_error:.6f}"
          f"  z={z:.1f}")
    print()


# ── Examples ──────────────────────────────────────────────────────────────────

def example_born_rule(theta: float = np.pi / 3, n_trials: int = 10_000, seed: int = 0) -> Estimate:
    """
    Circuit: |0> -RX(theta)- M.

    P(1) = sin²(theta/2).
    """
    c = Circuit(n_qubits=1)
    c.rx(0, theta).measure(0, 0)
    result = run_trials(c, n_trials=n_trials, seed=seed)
    estimate = estimate_probability(result.column(0))
    print_result(f"RX({theta:.4f}) → P(1)", float(np.sin(theta / 2) ** 2), estimate)
    return estimate


def example_bell(n_trials: int = 10_000, seed: int = 1) -> Estimate:
    """Bell pair: both bits always agree, each is 1 half of the time."""
    c = Circuit(n_qubits=2)
    c.h(0).cnot(0, 1).measure(0, 0).measure(1, 1)
    result = run_trials(c, n_trials=n_trials, seed=seed)
    agree = np.mean(result.column(0) == result.column(1))
    print(f"Bell pair: agreement={agree:.4f}  counts={result.counts()}")
    estimate = estimate_probability(result.column(0))
    print_result("Bell pair → P(c0 = 1)", 0.5, estimate)
    return estimate


def example_teleportation_sweep(
    probabilities: tuple[float, ...] = (0.0, 0.05, 0.1, 0.2),
    n_trials: int = 2_000,
    seed: int = 2,
) -> dict[float, float]:
    """
    Teleport 0.6|0> + 0.8|1> with DEPOLARIZE(p) on Bob's half of the Bell pair;
    the mean fidelity of Bob's qubit is 1 - 2p/3.
    """
    target = np.array([0.6, 0.8], dtype=complex)
    alloc = QubitAllocator()
    source, = alloc.allocate('source')
    alice, bob = alloc.allocate('pair', 2)

    c = prepare_state(alloc.circuit(), source, target)
    c = bell_pair(c, alice, bob)
    c.depolarize(bob, 1.0)
    c = teleport(c, source, alice, bob, bits=(0, 1), share_pair=False)

    fidelities = {}
    for p in probabilities:
        result = run_trials(
            c, n_trials=n_trials, seed=seed, keep_states=True,
            noise_model=NoiseModel(scale=p),
        )
        per_trial = np.array(
            [single_qubit_fidelity(s, bob, target) for s in result.states]
        )
        fidelities[p] = float(per_trial.mean())
        print(f"teleport  p={p:.2f}  fidelity={fidelities[p]:.4f}  exact={1 - 2 * p / 3:.4f}")
    print()
    return fidelities


def example_bit_flip_code(p: float = 0.1, n_trials: int = 5_000, seed: int = 3) -> Estimate:
    """
    Encode |1>, apply X_ERROR(p) on all three qubits, decode and measure.
    The code fails when two or more qubits flip: 3p²(1-p) + p³.
    """
    alloc = QubitAllocator()
    data, = alloc.allocate('data')
    ancillas = alloc.allocate('ancilla', 2)

    c = alloc.circuit().x(data)
    c = bit_flip_encode(c, data, ancillas)
    c.x_error((data, *ancillas), p)
    c = bit_flip_decode(c, data, ancillas)
    c.measure(data, 0)

    result = run_trials(c, n_trials=n_trials, seed=seed)
    failure = estimate_probability(result.column(0) == 0)
    print_result(
        f"bit-flip code, X_ERROR({p}) → logical error rate",
        3 * p**2 * (1 - p) + p**3,
        failure,
    )
    return failure


def main() -> None:
    example_born_rule()
    example_bell()
    example_teleportation_sweep()
    example_bit_flip_code()


if __name__ == "__main__":
    main()
