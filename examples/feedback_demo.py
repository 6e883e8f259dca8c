"""
Classical feedback demo using qxsim.

Loads circuits from the JSON-friendly instruction list format, runs them,
and checks the sampled counts against the exact distribution.
"""

import json
import logging

from qxsim import run
from qxsim.compiler.analysis import analyze_circuit
from qxsim.compiler.parser import circuit_from_dict, circuit_to_dict
from qxsim.utils.logging_config import setup_logging
from qxsim.utils.validation import counts_goodness_of_fit, register_distribution


RESET_TO_ONE = {
    "num_qubits": 2,
    "num_clbits": 2,
    "instructions": [
        {"name": "h", "qubits": [0]},
        {"name": "measure", "qubits": [0], "clbits": [0]},
        # Flip qubit 0 back to |1⟩ whenever it was measured as 0
        {"name": "c_if", "clbits": [0], "value": 0, "body": [{"name": "x", "qubits": [0]}]},
        {"name": "cx", "qubits": [0, 1]},
        {"name": "measure", "qubits": [1], "clbits": [1]},
    ],
}

GHZ = {
    "num_qubits": 3,
    "num_clbits": 3,
    "instructions": [
        {"name": "h", "qubits": [0]},
        {"name": "cx", "qubits": [0, 1]},
        {"name": "cx", "qubits": [1, 2]},
        {"name": "measure", "qubits": [0], "clbits": [0]},
        {"name": "measure", "qubits": [1], "clbits": [1]},
        {"name": "measure", "qubits": [2], "clbits": [2]},
    ],
}


def demo_feedback():
    print("=" * 60)
    print("Classical Feedback Demo with qxsim")
    print("=" * 60)

    circuit = circuit_from_dict(RESET_TO_ONE)
    analysis = analyze_circuit(circuit)
    print(f"{circuit}: depth={analysis.depth}, feedback edges={analysis.feedback_edges}")

    result = run(circuit, shots=1000, seed=3)
    print(f"Counts: {result.bitstring_counts()}")
    print(f"Path: {result.metadata['execution_path']}")
    print()


def demo_goodness_of_fit():
    circuit = circuit_from_dict(json.loads(json.dumps(GHZ)))
    result = run(circuit, shots=4000, seed=11)
    fit = counts_goodness_of_fit(result.counts, register_distribution(circuit))

    print(f"GHZ counts: {result.bitstring_counts()}")
    print(f"Chi-square statistic={fit.statistic:.3f}, p-value={fit.pvalue:.3f}, "
          f"passed={fit.passed()}")
    print(f"Serialized: {json.dumps(circuit_to_dict(circuit))[:70]}...")
    print("=" * 60)


if __name__ == "__main__":
    setup_logging(logging.DEBUG)
    demo_feedback()
    demo_goodness_of_fit()
