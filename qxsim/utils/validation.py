"""
Validation utilities for qxsim.

Compares qxsim outputs against Qiskit's exact statevector simulation and
checks sampled counts against their exact distribution.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

import numpy as np
from scipy import stats

from qxsim.core.exceptions import PureStateQueryError
from qxsim.core.gates import GateKind, GateLibrary
from qxsim.core.instructions import Barrier, Circuit, Gate
from qxsim.observables.marginals import probabilities
from qxsim.observables.sampler import Register, extract_classical_bits
from qxsim.utils.logging_config import get_logger

if TYPE_CHECKING:
    from qxsim.runtime.engine import Simulator


logger = get_logger(__name__)

# QuantumCircuit method for each gate kind
QISKIT_METHODS = {
    GateKind.H: "h",
    GateKind.X: "x",
    GateKind.Y: "y",
    GateKind.Z: "z",
    GateKind.S: "s",
    GateKind.SDG: "sdg",
    GateKind.T: "t",
    GateKind.TDG: "tdg",
    GateKind.RX: "rx",
    GateKind.RY: "ry",
    GateKind.RZ: "rz",
    GateKind.PHASE: "p",
    GateKind.CX: "cx",
    GateKind.CZ: "cz",
    GateKind.CCX: "ccx",
}


@dataclass
class ValidationResult:
    """Result of validating qxsim against exact Qiskit simulation."""
    num_qubits: int
    qxsim_probabilities: np.ndarray
    exact_probabilities: np.ndarray
    max_amplitude_error: float
    max_probability_error: float
    passed: bool
    threshold: float
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GoodnessOfFit:
    """Chi-square comparison of observed counts with an exact distribution."""
    statistic: float
    pvalue: float
    dof: int
    impossible_outcomes: Dict[Register, int] = field(default_factory=dict)

    def passed(self, alpha: float = 0.001) -> bool:
        return not self.impossible_outcomes and self.pvalue >= alpha


def to_qiskit_circuit(circuit: Circuit):
    """
    Build the equivalent Qiskit QuantumCircuit for a unitary circuit.

    Qiskit orders qubits little-endian; indices are kept as-is and callers
    comparing states reverse the qubit order.

    Raises:
        PureStateQueryError: The circuit has measurements or conditionals
    """
    try:
        from qiskit import QuantumCircuit
    except ImportError:
        raise ImportError("Qiskit is required for validation. "
                          "Install with: pip install qiskit")

    if circuit.has_measurements or circuit.has_conditionals:
        raise PureStateQueryError(
            "Only circuits without measurements or conditionals can be exported"
        )

    qc = QuantumCircuit(circuit.num_qubits)
    for op in circuit.instructions:
        if isinstance(op, Barrier) or (isinstance(op, Gate) and op.label == "barrier"):
            if op.qubits:
                qc.barrier(*op.qubits)
            else:
                qc.barrier()
            continue
        spec = GateLibrary.get_gate(op.name, op.num_qubits)
        params = spec.validate_params(op.params)
        getattr(qc, QISKIT_METHODS[spec.kind])(*params, *op.qubits)
    return qc


def exact_statevector(circuit: Circuit) -> np.ndarray:
    """Final state computed by Qiskit, in qxsim's qubit order (qubit 0 = MSB)."""
    from qiskit.quantum_info import Statevector

    qc = to_qiskit_circuit(circuit)
    return np.asarray(Statevector(qc).reverse_qargs().data, dtype=np.complex128)


def validate_against_qiskit(
    circuit: Circuit,
    threshold: float = 1e-8,
    simulator: Optional[Simulator] = None
) -> ValidationResult:
    """
    Validate qxsim against exact Qiskit simulation.

    Args:
        circuit: Unitary qxsim Circuit
        threshold: Maximum allowed amplitude error
        simulator: Simulator to validate (default-configured if None)

    Returns:
        ValidationResult with comparison data
    """
    from qxsim.runtime.engine import Simulator

    simulator = simulator or Simulator()

    state = simulator.get_state(circuit)
    exact = exact_statevector(circuit)

    qxsim_probs = probabilities(state)
    exact_probs = probabilities(exact)

    max_amplitude_error = float(np.max(np.abs(state - exact)))
    max_probability_error = float(np.max(np.abs(qxsim_probs - exact_probs)))
    passed = max_amplitude_error <= threshold

    if not passed:
        logger.warning("Validation failed for %r: max amplitude error %.3e > %.3e",
                       circuit, max_amplitude_error, threshold)

    return ValidationResult(
        num_qubits=circuit.num_qubits,
        qxsim_probabilities=qxsim_probs,
        exact_probabilities=exact_probs,
        max_amplitude_error=max_amplitude_error,
        max_probability_error=max_probability_error,
        passed=passed,
        threshold=threshold,
        details={
            "num_instructions": circuit.num_instructions,
            "fidelity": float(np.abs(np.vdot(exact, state)) ** 2),
        },
    )


def register_distribution(
    circuit: Circuit,
    simulator: Optional[Simulator] = None
) -> Dict[Register, float]:
    """
    Exact distribution over classical registers for a circuit without conditionals.

    Measurements are read off the final state, as on the batched path.
    """
    if circuit.has_conditionals:
        raise PureStateQueryError(
            "Register distributions of circuits with conditionals depend on "
            "mid-circuit collapse; sample them with run() instead"
        )
    from qxsim.runtime.engine import Simulator

    simulator = simulator or Simulator()
    probs = probabilities(simulator.evolve(circuit))

    indices = np.flatnonzero(probs > 0)
    registers = extract_classical_bits(
        indices, circuit.measurements, circuit.num_qubits, circuit.num_clbits
    )
    distribution: Dict[Register, float] = defaultdict(float)
    for register, p in zip(registers, probs[indices]):
        distribution[register] += float(p)
    return dict(distribution)


def counts_goodness_of_fit(
    counts: Dict[Register, int],
    expected: Dict[Register, float],
    atol: float = 1e-12
) -> GoodnessOfFit:
    """
    Pearson chi-square test of observed counts against expected probabilities.

    Outcomes observed but with (near) zero expected probability are reported
    in impossible_outcomes instead of entering the statistic.

    Args:
        counts: Observed register -> count
        expected: Register -> exact probability
        atol: Probabilities at or below this are treated as impossible

    Returns:
        GoodnessOfFit
    """
    support = sorted(r for r, p in expected.items() if p > atol)
    supported = set(support)
    impossible = {r: c for r, c in counts.items() if r not in supported and c > 0}

    observed = np.array([counts.get(r, 0) for r in support], dtype=float)
    total = observed.sum()
    if len(support) < 2 or total == 0:
        return GoodnessOfFit(0.0, 1.0, 0, impossible)

    weights = np.array([expected[r] for r in support], dtype=float)
    f_exp = weights / weights.sum() * total

    statistic, pvalue = stats.chisquare(observed, f_exp)
    return GoodnessOfFit(float(statistic), float(pvalue), len(support) - 1, impossible)
