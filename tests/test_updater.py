"""
Tests for amplitude updates.
"""

import tracemalloc

import pytest
import numpy as np

from qxsim.core.exceptions import (
    InvalidParameterError,
    StateNormalizationError,
    UnsupportedGateError,
)
from qxsim.core.gates import HADAMARD, PAULI_X, PAULI_Z, GateLibrary
from qxsim.core.instructions import Gate
from qxsim.core.statevector import basis_state, bell_state, random_state, zero_state
from qxsim.runtime.updater import (
    AmplitudeUpdater,
    apply_cnot,
    apply_controlled_gate,
    apply_cz,
    apply_single_qubit_gate,
    apply_toffoli,
    pair_slices,
)


def full_operator(matrix, target, num_qubits):
    """Dense reference operator I ⊗ ... ⊗ M ⊗ ... ⊗ I (qubit 0 leftmost)."""
    op = np.array([[1]], dtype=np.complex128)
    for q in range(num_qubits):
        op = np.kron(op, matrix if q == target else np.eye(2))
    return op


class TestPairSlices:
    """Tests for index pairing."""

    def test_target_msb(self):
        s0, s1 = pair_slices(0, 2)
        tensor = np.arange(4).reshape(2, 2)
        assert list(tensor[s0]) == [0, 1]
        assert list(tensor[s1]) == [2, 3]

    def test_controlled_pairs(self):
        s0, s1 = pair_slices(1, 2, (0,))
        tensor = np.arange(4).reshape(2, 2)
        assert tensor[s0] == 2
        assert tensor[s1] == 3

    def test_middle_target_with_control(self):
        s0, s1 = pair_slices(1, 3, (2,))
        tensor = np.arange(8).reshape(2, 2, 2)
        assert list(tensor[s0]) == [0b001, 0b101]
        assert list(tensor[s1]) == [0b011, 0b111]

    def test_no_index_arrays(self):
        s0, s1 = pair_slices(3, 18, (0, 7))
        assert all(isinstance(i, (int, slice)) for i in s0 + s1)

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            pair_slices(2, 2)
        with pytest.raises(ValueError):
            pair_slices(0, 2, (5,))

    def test_nothing_retained_between_gates(self):
        # Every (control, target) key at n=14 must not leave per-key buffers behind
        num_qubits = 14
        state = random_state(num_qubits, rng=29)
        tracemalloc.start()
        try:
            baseline, _ = tracemalloc.get_traced_memory()
            for control in range(num_qubits):
                for target in range(num_qubits):
                    if control != target:
                        apply_cnot(state, control, target, num_qubits)
            retained, _ = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        assert retained - baseline < state.nbytes


class TestSingleQubitGates:
    """Tests for single-qubit application."""

    def test_x_on_qubit_zero(self):
        state = apply_single_qubit_gate(zero_state(2), PAULI_X, 0, 2)
        # |10⟩ is index 2 with qubit 0 as the MSB
        assert np.allclose(state, basis_state(2, 4))

    def test_x_on_last_qubit(self):
        state = apply_single_qubit_gate(zero_state(3), PAULI_X, 2, 3)
        assert np.allclose(state, basis_state(1, 8))

    def test_hadamard(self):
        state = apply_single_qubit_gate(zero_state(1), HADAMARD, 0, 1)
        assert np.allclose(state, [1 / np.sqrt(2), 1 / np.sqrt(2)])

    def test_matches_dense_operator(self):
        state = random_state(3, rng=7)
        for target in range(3):
            expected = full_operator(HADAMARD, target, 3) @ state
            assert np.allclose(apply_single_qubit_gate(state, HADAMARD, target, 3), expected)

    def test_input_not_mutated(self):
        state = zero_state(2)
        before = state.copy()
        apply_single_qubit_gate(state, HADAMARD, 1, 2)
        assert np.array_equal(state, before)


class TestControlledGates:
    """Tests for controlled application."""

    @pytest.mark.parametrize("index,expected", [(0, 0), (1, 1), (2, 3), (3, 2)])
    def test_cnot_truth_table(self, index, expected):
        state = apply_cnot(basis_state(index, 4), 0, 1, 2)
        assert np.allclose(state, basis_state(expected, 4))

    def test_cnot_reversed_control(self):
        # control = qubit 1 (LSB), target = qubit 0
        state = apply_cnot(basis_state(1, 4), 1, 0, 2)
        assert np.allclose(state, basis_state(3, 4))

    def test_cz_phase(self):
        state = np.full(4, 0.5, dtype=np.complex128)
        result = apply_cz(state, 0, 1, 2)
        assert np.allclose(result, [0.5, 0.5, 0.5, -0.5])

    def test_cz_symmetric(self):
        state = random_state(2, rng=3)
        assert np.allclose(apply_cz(state, 0, 1, 2), apply_cz(state, 1, 0, 2))

    def test_toffoli(self):
        for index in range(8):
            expected = index ^ 1 if index >> 1 == 0b11 else index
            state = apply_toffoli(basis_state(index, 8), 0, 1, 2, 3)
            assert np.allclose(state, basis_state(expected, 8))

    def test_bell_preparation(self):
        state = apply_single_qubit_gate(zero_state(2), HADAMARD, 0, 2)
        state = apply_cnot(state, 0, 1, 2)
        assert np.allclose(state, bell_state())

    def test_distinct_qubits_required(self):
        with pytest.raises(ValueError):
            apply_controlled_gate(zero_state(2), PAULI_X, (1,), 1, 2)
        with pytest.raises(ValueError):
            apply_controlled_gate(zero_state(3), PAULI_X, (0, 0), 2, 3)

    def test_matches_dense_unitary(self):
        state = random_state(2, rng=11)
        expected = GateLibrary.CZ.unitary() @ state
        assert np.allclose(apply_controlled_gate(state, PAULI_Z, (0,), 1, 2), expected)


class TestAmplitudeUpdater:
    """Tests for gate dispatch."""

    def test_dispatch_by_name(self):
        updater = AmplitudeUpdater()
        state = updater.apply_gates(zero_state(2), [Gate("h", (0,)), Gate("cnot", (0, 1))], 2)
        assert np.allclose(state, bell_state())

    def test_parameterized(self):
        updater = AmplitudeUpdater()
        state = updater.apply_gate(zero_state(1), Gate("rx", (0,), (np.pi,)), 1)
        assert np.allclose(np.abs(state) ** 2, [0, 1])

    def test_barrier_gate_is_noop(self):
        updater = AmplitudeUpdater()
        state = random_state(2, rng=5)
        assert np.array_equal(updater.apply_gate(state, Gate("barrier", ()), 2), state)

    def test_zero_qubit_gate_unsupported(self):
        with pytest.raises(UnsupportedGateError):
            AmplitudeUpdater().apply_gate(zero_state(1), Gate("h", ()), 1)

    def test_unknown_gate_carries_qubits(self):
        with pytest.raises(UnsupportedGateError) as exc_info:
            AmplitudeUpdater().apply_gate(zero_state(2), Gate("swap", (0, 1)), 2)
        assert exc_info.value.qubits == (0, 1)

    def test_wrong_arity(self):
        with pytest.raises(UnsupportedGateError):
            AmplitudeUpdater().apply_gate(zero_state(3), Gate("cx", (0, 1, 2)), 3)

    def test_missing_param(self):
        with pytest.raises(InvalidParameterError):
            AmplitudeUpdater().apply_gate(zero_state(1), Gate("rz", (0,)), 1)

    def test_control_equals_target(self):
        with pytest.raises(ValueError):
            AmplitudeUpdater().apply_gate(zero_state(2), Gate("cx", (1, 1)), 2)

    def test_normalization_check(self):
        updater = AmplitudeUpdater(check_normalization=True)
        bad = np.array([1.0, 1.0], dtype=np.complex128)
        with pytest.raises(StateNormalizationError):
            updater.apply_gate(bad, Gate("x", (0,)), 1)

    @pytest.mark.parametrize("name", ["h", "x", "y", "z"])
    def test_involutions(self, name):
        updater = AmplitudeUpdater()
        state = random_state(2, rng=13)
        twice = updater.apply_gates(state, [Gate(name, (1,)), Gate(name, (1,))], 2)
        assert np.allclose(twice, state)

    def test_s_fourth_power_is_identity(self):
        updater = AmplitudeUpdater()
        state = random_state(2, rng=23)
        four = updater.apply_gates(state, [Gate("s", (0,))] * 4, 2)
        assert np.allclose(four, state)

    def test_cnot_involution(self):
        updater = AmplitudeUpdater()
        state = random_state(3, rng=17)
        twice = updater.apply_gates(state, [Gate("cx", (2, 0)), Gate("cx", (2, 0))], 3)
        assert np.allclose(twice, state)

    def test_s_squared_is_z(self):
        updater = AmplitudeUpdater()
        state = random_state(1, rng=19)
        ss = updater.apply_gates(state, [Gate("s", (0,)), Gate("s", (0,))], 1)
        assert np.allclose(ss, updater.apply_gate(state, Gate("z", (0,)), 1))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
