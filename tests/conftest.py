"""Pytest configuration for qxsim tests.

Registers hypothesis settings profiles and provides the circuits used across
the engine, parser and analysis suites.
"""

import os

import pytest
from hypothesis import settings, Verbosity

from qxsim.core.instructions import Circuit, Conditional, Gate, Measure


# ========== Hypothesis Settings ==========

settings.register_profile("build", print_blob=True, deadline=None)
settings.register_profile("fast", max_examples=10, deadline=None)
settings.register_profile("thorough", max_examples=500, deadline=None)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "fast"))


# ========== Circuits ==========

def make_bell_circuit() -> Circuit:
    return Circuit(2, 2, (
        Gate("h", (0,)),
        Gate("cx", (0, 1)),
        Measure(0, 0),
        Measure(1, 1),
    ))


def make_ghz_circuit(num_qubits: int = 3) -> Circuit:
    instructions = [Gate("h", (0,))]
    instructions += [Gate("cx", (q, q + 1)) for q in range(num_qubits - 1)]
    instructions += [Measure(q, q) for q in range(num_qubits)]
    return Circuit(num_qubits, num_qubits, tuple(instructions))


def make_teleportation_circuit() -> Circuit:
    """Teleport |1⟩ from qubit 0 to qubit 2."""
    return Circuit(3, 3, (
        Gate("x", (0,)),
        Gate("h", (1,)),
        Gate("cx", (1, 2)),
        Gate("cx", (0, 1)),
        Gate("h", (0,)),
        Measure(0, 0),
        Measure(1, 1),
        Conditional(1, 1, (Gate("x", (2,)),)),
        Conditional(0, 1, (Gate("z", (2,)),)),
        Measure(2, 2),
    ))


def make_coin_flip_feedback_circuit() -> Circuit:
    """Measure a |+⟩ qubit and copy the outcome onto qubit 1."""
    return Circuit(2, 2, (
        Gate("h", (0,)),
        Measure(0, 0),
        Conditional(0, 1, (Gate("x", (1,)),)),
        Measure(1, 1),
    ))


@pytest.fixture
def bell_circuit():
    return make_bell_circuit()


@pytest.fixture
def ghz_circuit():
    return make_ghz_circuit(3)


@pytest.fixture
def teleportation_circuit():
    return make_teleportation_circuit()


@pytest.fixture
def coin_flip_feedback_circuit():
    return make_coin_flip_feedback_circuit()
