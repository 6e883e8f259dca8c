"""
qxsim - Quantum state-vector simulator

Simulates small quantum circuits (up to 20 qubits) with mid-circuit
measurement and classically conditioned gates.
"""

from qxsim.core.instructions import Circuit, Gate, Measure, Barrier, Conditional
from qxsim.runtime.engine import Simulator, SimulatorConfig, run, get_state, get_probabilities
from qxsim.runtime.result import SimulationResult

__version__ = "0.1.0"
__all__ = [
    "Circuit",
    "Gate",
    "Measure",
    "Barrier",
    "Conditional",
    "Simulator",
    "SimulatorConfig",
    "SimulationResult",
    "run",
    "get_state",
    "get_probabilities",
]
