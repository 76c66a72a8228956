"""
Repeated independent runs of one circuit.

Each trial owns its own state vector, classical register and random source.
Trial i is always seeded with child i of SeedSequence(seed).spawn(n_trials),
so the outcome of a trial depends only on (circuit, seed, i), never on how
the trials were split across worker processes.

Output shapes:
    outcomes : (N, B)    int8        0/1 per classical bit per trial, -1 where
                                     the bit was never written in that trial.
                                     Columns follow `bits` (sorted bit indices).
    states   : (N, 2^n)  complex128  final amplitudes per trial (keep_states=True).
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass

import numpy as np

from .circuit import Circuit
from .errors import ValidationError
from .noise import NoiseModel
from .runner import Runner, validate
from .statistics import outcome_counts

logger = logging.getLogger(__name__)


# ── Result dataclass ──────────────────────────────────────────────────────────


@dataclass
class TrialsResult:
    """
    Output of run_trials().

    Attributes:
        outcomes: int8 array of shape (n_trials, len(bits)); -1 = never written.
        bits:     Classical bit index of each outcome column.
        states:   complex128 array of shape (n_trials, 2**n_qubits), or None
                  when the run was made with keep_states=False.
        n_trials: Number of trials.
    """

    outcomes: np.ndarray
    bits: list[int]
    states: np.ndarray | None
    n_trials: int

    def column(self, bit: int) -> np.ndarray:
        try:
            return self.outcomes[:, self.bits.index(bit)]
        except ValueError:
            raise KeyError(f"Classical bit {bit} is not used by the circuit") from None

    def frequency(self, bit: int) -> float:
        """Fraction of trials in which `bit` holds 1."""
        return float(np.mean(self.column(bit) == 1))

    def counts(self, bits: list[int] | None = None) -> dict[str, int]:
        """Tally of bitstrings over `bits` (default: all bits), '-' for unwritten."""
        if bits is None:
            bits = self.bits
        cols = [self.bits.index(b) for b in bits]
        return outcome_counts(self.outcomes[:, cols])

    def __repr__(self) -> str:
        return (
            f"TrialsResult(n_trials={self.n_trials}, bits={self.bits}, "
            f"outcomes.shape={self.outcomes.shape}, "
            f"states={'kept' if self.states is not None else 'dropped'})"
        )


# ── Module-level worker (must be at module level for pickle) ──────────────────


def _run_chunk(
    runner: Runner,
    circuit: Circuit,
    seeds: list[np.random.SeedSequence],
    bits: list[int],
    keep_states: bool,
) -> tuple[np.ndarray, np.ndarray | None]:
    """Run one trial per seed; used directly (serial) and by worker processes."""
    outcomes = np.empty((len(seeds), len(bits)), dtype=np.int8)
    states = (
        np.empty((len(seeds), 1 << circuit.n_qubits), dtype=np.complex128)
        if keep_states else None
    )
    for i, child in enumerate(seeds):
        result = runner.run(circuit, seed=child)
        outcomes[i, :] = result.register.to_array(bits)
        if states is not None:
            states[i, :] = result.state.amplitudes
    return outcomes, states


def run_trials(
    circuit: Circuit,
    n_trials: int,
    seed: int | None = None,
    n_workers: int | None = None,
    keep_states: bool = False,
    noise_model: NoiseModel | None = None,
) -> TrialsResult:
    """
    Run `circuit` n_trials times with independent, reproducible random sources.

    Args:
        circuit:     Circuit to run.
        n_trials:    Number of independent trials.
        seed:        Root seed; trial i uses SeedSequence(seed).spawn(n_trials)[i].
        n_workers:   Number of parallel worker processes.
                     None or 1 → serial (default).
                     -1 → one process per logical CPU (os.cpu_count()).
                     N → N processes.
        keep_states: Also return every trial's final amplitudes.
        noise_model: Shared noise model (default: noise as written).

    Returns:
        TrialsResult with per-trial outcomes (and states if requested).
    """
    if n_trials < 1:
        raise ValidationError(f"n_trials must be >= 1, got {n_trials}")
    validate(circuit)

    runner = Runner(noise_model=noise_model)
    bits = circuit.classical_bits
    child_seeds = np.random.SeedSequence(seed).spawn(n_trials)

    if n_workers == -1:
        n_workers = os.cpu_count()
    if n_workers is not None:
        n_workers = min(n_workers, n_trials)

    if n_workers is None or n_workers <= 1:
        # ── Serial path ───────────────────────────────────────────────────────
        outcomes, states = _run_chunk(runner, circuit, child_seeds, bits, keep_states)
    else:
        # ── Parallel path (ProcessPoolExecutor) ───────────────────────────────
        base, rem = divmod(n_trials, n_workers)
        chunk_sizes = [base + (1 if i < rem else 0) for i in range(n_workers)]
        starts = np.cumsum([0] + chunk_sizes[:-1])
        logger.info("running %d trials on %d workers", n_trials, n_workers)

        chunks_o: list[np.ndarray] = []
        chunks_s: list[np.ndarray] = []
        with ProcessPoolExecutor(max_workers=n_workers) as pool:
            futures = [
                pool.submit(
                    _run_chunk, runner, circuit,
                    child_seeds[s:s + n], bits, keep_states,
                )
                for s, n in zip(starts, chunk_sizes)
            ]
            for f in futures:
                o, st = f.result()
                chunks_o.append(o)
                if st is not None:
                    chunks_s.append(st)
        outcomes = np.concatenate(chunks_o, axis=0)
        states = np.concatenate(chunks_s, axis=0) if keep_states else None

    return TrialsResult(outcomes=outcomes, bits=bits, states=states, n_trials=n_trials)
