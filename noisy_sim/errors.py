"""
Exception hierarchy for circuit construction and execution.

    SimulationError
    ├── ValidationError     bad indices, zero qubits, unnormalized amplitudes
    ├── ConfigurationError  malformed gate (missing parameter, colliding pair, …)
    └── NumericalError      undefined renormalization during measurement

ValidationError and ConfigurationError also derive from ValueError, and
NumericalError from ArithmeticError, so callers that already catch the
builtin exceptions keep working.
"""

from __future__ import annotations


class SimulationError(Exception):
    """Base class for every error raised by noisy_sim."""


class ValidationError(SimulationError, ValueError):
    """A circuit, index or amplitude vector is out of its declared bounds."""


class ConfigurationError(SimulationError, ValueError):
    """A gate is missing a required parameter or addresses its qubits inconsistently."""


class NumericalError(SimulationError, ArithmeticError):
    """A measurement or renormalization step hit a (near-)zero probability."""
