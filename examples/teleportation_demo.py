"""
Quantum teleportation demo using qxsim.

Teleports a single-qubit state from qubit 0 to qubit 2 with two mid-circuit
measurements and classically conditioned X/Z corrections.
"""

import numpy as np

from qxsim import Circuit, Conditional, Gate, Measure, Simulator, SimulatorConfig
from qxsim.observables.marginals import qubit_probability
from qxsim.utils.logging_config import setup_logging


def create_teleportation_circuit(theta: float, measure_target: bool = True) -> Circuit:
    """
    Teleport Ry(theta)|0⟩ from qubit 0 to qubit 2.

    Args:
        theta: Preparation angle of the state to teleport
        measure_target: Measure qubit 2 into classical bit 2 at the end

    Returns:
        qxsim Circuit
    """
    instructions = [
        Gate("ry", (0,), (theta,)),
        # Bell pair between qubits 1 and 2
        Gate("h", (1,)),
        Gate("cx", (1, 2)),
        # Bell measurement of qubits 0 and 1
        Gate("cx", (0, 1)),
        Gate("h", (0,)),
        Measure(0, 0),
        Measure(1, 1),
        # Corrections on qubit 2
        Conditional(1, 1, (Gate("x", (2,)),)),
        Conditional(0, 1, (Gate("z", (2,)),)),
    ]
    if measure_target:
        instructions.append(Measure(2, 2))
    return Circuit(3, 3, tuple(instructions))


def demo_teleportation():
    """
    Compare the teleported P(1) with the prepared state's P(1).
    """
    simulator = Simulator(SimulatorConfig(shots=2000, max_workers=4, seed=7))

    print("=" * 60)
    print("Quantum Teleportation Demo with qxsim")
    print("=" * 60)

    for theta in np.linspace(0, np.pi, 5):
        expected = np.sin(theta / 2) ** 2
        result = simulator.run(create_teleportation_circuit(theta))
        observed = sum(count for register, count in result.counts.items() if register[2] == 1)
        print(f"theta={theta:.3f}: expected P(1)={expected:.3f}, "
              f"observed P(1)={observed / result.shots:.3f}")

    # Without the final measurement, every shot leaves qubit 2 in the prepared state
    theta = np.pi / 3
    result = simulator.run(create_teleportation_circuit(theta, measure_target=False), shots=1)
    print(f"\nSingle shot, theta={theta:.3f}: "
          f"P(q2 = 1) = {qubit_probability(result.state, 2, 1, 3):.3f} "
          f"(expected {np.sin(theta / 2) ** 2:.3f})")
    print(f"Execution path: {result.metadata['execution_path']}, "
          f"circuit depth: {result.metadata['depth']}")
    print("=" * 60)


if __name__ == "__main__":
    setup_logging()
    demo_teleportation()
