"""Core qxsim components: gates, instructions, state vectors and errors."""

from qxsim.core.exceptions import (
    QxSimError,
    UnsupportedGateError,
    InvalidParameterError,
    PureStateQueryError,
    MalformedConditionalError,
    StateNormalizationError,
    QubitCountError,
)
from qxsim.core.gates import GateKind, GateSpec, GateLibrary
from qxsim.core.instructions import (
    Gate,
    Measure,
    Barrier,
    Conditional,
    Circuit,
    Instruction,
    SimpleOperation,
    MAX_QUBITS,
)
from qxsim.core.statevector import zero_state, basis_state

__all__ = [
    # Errors
    "QxSimError",
    "UnsupportedGateError",
    "InvalidParameterError",
    "PureStateQueryError",
    "MalformedConditionalError",
    "StateNormalizationError",
    "QubitCountError",
    # Gates
    "GateKind",
    "GateSpec",
    "GateLibrary",
    # Circuit AST
    "Gate",
    "Measure",
    "Barrier",
    "Conditional",
    "Circuit",
    "Instruction",
    "SimpleOperation",
    "MAX_QUBITS",
    # States
    "zero_state",
    "basis_state",
]
