"""Hypothesis strategies for property-based testing of qxsim.

These strategies generate random gates and circuits over the supported gate
set for use with hypothesis-based property tests.
"""

from hypothesis import strategies as st

from qxsim.core.instructions import Circuit, Gate, Measure


FIXED_SINGLE = ["h", "x", "y", "z", "s", "sdg", "t", "tdg"]
ROTATIONS = ["rx", "ry", "rz", "p"]
CONTROLLED = {"cx": 2, "cz": 2, "ccx": 3}

angles = st.floats(min_value=-6.3, max_value=6.3, allow_nan=False, allow_infinity=False)


@st.composite
def gate_strategy(draw, num_qubits: int):
    """Generate one random gate acting on a register of num_qubits."""
    choices = FIXED_SINGLE + ROTATIONS
    choices += [name for name, arity in CONTROLLED.items() if arity <= num_qubits]
    name = draw(st.sampled_from(choices))

    arity = CONTROLLED.get(name, 1)
    qubits = draw(st.permutations(range(num_qubits)))[:arity]
    params = (draw(angles),) if name in ROTATIONS else ()
    return Gate(name, tuple(qubits), params)


@st.composite
def unitary_circuit_strategy(draw, max_qubits: int = 4, max_gates: int = 12):
    """Generate a random measurement-free circuit."""
    num_qubits = draw(st.integers(min_value=1, max_value=max_qubits))
    gates = draw(st.lists(gate_strategy(num_qubits), max_size=max_gates))
    return Circuit(num_qubits, 0, tuple(gates))


@st.composite
def measured_circuit_strategy(draw, max_qubits: int = 3, max_gates: int = 8):
    """Generate a random circuit that measures every qubit at the end."""
    circuit = draw(unitary_circuit_strategy(max_qubits, max_gates))
    n = circuit.num_qubits
    measures = tuple(Measure(q, q) for q in range(n))
    return Circuit(n, n, circuit.instructions + measures)
