"""Circuit frontends and static analysis for qxsim."""

from qxsim.compiler.analysis import analyze_circuit, CircuitAnalysis
from qxsim.compiler.parser import (
    parse_instruction_list,
    parse_qiskit_circuit,
    circuit_to_instruction_list,
)

__all__ = [
    "analyze_circuit",
    "CircuitAnalysis",
    "parse_instruction_list",
    "parse_qiskit_circuit",
    "circuit_to_instruction_list",
]
