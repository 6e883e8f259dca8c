"""
Exception hierarchy for qxsim.

Every error raised by the simulation engine derives from QxSimError so callers
can catch engine failures without catching unrelated bugs.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class QxSimError(Exception):
    """Base exception for qxsim errors."""


class UnsupportedGateError(QxSimError, ValueError):
    """
    Raised when a gate name/arity combination is not recognized.

    Attributes:
        gate: The offending gate name (as given by the caller)
        qubits: Qubit indices the gate was applied to, if known
    """

    def __init__(
        self,
        gate: Any,
        qubits: Optional[Sequence[int]] = None,
        message: Optional[str] = None
    ):
        self.gate = gate
        self.qubits = tuple(qubits) if qubits is not None else None
        if message is None:
            if self.qubits is None:
                message = f"Unsupported gate: {gate!r}"
            else:
                message = (f"Unsupported gate: {gate!r} with {len(self.qubits)} "
                           f"qubit(s) {list(self.qubits)}")
        super().__init__(message)


class InvalidParameterError(QxSimError, ValueError):
    """
    Raised when a parameterized gate receives a missing or non-numeric angle.

    Attributes:
        gate: Gate name
        params: The parameters that were supplied
    """

    def __init__(self, gate: Any, params: Any, message: Optional[str] = None):
        self.gate = gate
        self.params = params
        if message is None:
            message = f"Invalid parameter for gate {gate}: {params!r}"
        super().__init__(message)


class PureStateQueryError(QxSimError):
    """Raised when the pure final state of a measured/conditional circuit is requested."""

    def __init__(self, message: Optional[str] = None):
        if message is None:
            message = ("Cannot get pure state from circuit with measurements "
                       "or conditionals. Use run() instead.")
        super().__init__(message)


class MalformedConditionalError(QxSimError):
    """
    Raised when a conditional body contains anything other than gates.

    Attributes:
        clbit: Classical bit the conditional reads
        offending: The disallowed instruction found in the body
    """

    def __init__(
        self,
        clbit: Optional[int] = None,
        offending: Any = None,
        message: Optional[str] = None
    ):
        self.clbit = clbit
        self.offending = offending
        if message is None:
            message = (f"Conditional on classical bit {clbit} may only contain "
                       f"gates, found {offending!r}")
        super().__init__(message)


class StateNormalizationError(QxSimError):
    """
    Raised when a state vector's total probability drifts from 1.

    Attributes:
        total_probability: The measured sum of squared magnitudes
        tolerance: Allowed deviation from 1.0
    """

    def __init__(self, total_probability: float, tolerance: float = 1e-6):
        self.total_probability = total_probability
        self.tolerance = tolerance
        super().__init__(
            f"State not normalized: total probability = {total_probability} "
            f"(expected 1.0 ± {tolerance})"
        )


class QubitCountError(QxSimError, ValueError):
    """Raised when a circuit declares an unsupported number of qubits."""

    def __init__(self, count: int, minimum: int, maximum: int):
        self.count = count
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Invalid qubit count: {count} (must be between {minimum} and {maximum})"
        )
