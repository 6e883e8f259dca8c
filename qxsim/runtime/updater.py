"""
Amplitude updates for qxsim runtime.

Applies gates to a 2^n state vector by bit-position addressing. For a target
qubit q in an n-qubit register (qubit 0 = most significant bit) the basis
indices pair up as (i0, i1 = i0 | mask) with mask = 1 << (n-1-q), and each
pair is mixed by the gate's 2x2 matrix. The pairs are addressed through a
[2] * n reshaped view of the state, where axis q is qubit q, so no index
arrays are built. Controlled gates fix every control axis to 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from qxsim.core.exceptions import UnsupportedGateError
from qxsim.core.gates import GateLibrary, GateSpec, PAULI_X, PAULI_Z
from qxsim.core.instructions import Gate
from qxsim.core.statevector import DEFAULT_TOLERANCE, bit_mask, validate_normalized


def pair_slices(
    target: int,
    num_qubits: int,
    controls: Tuple[int, ...] = ()
) -> Tuple[tuple, tuple]:
    """
    Index tuples selecting the two halves of every target pair.

    The tuples index the state reshaped to [2] * num_qubits. They hold only
    slices and ints, so the selections are views into the state.

    Args:
        target: Target qubit
        num_qubits: Register size
        controls: Control qubits that must all be 1

    Returns:
        (s0, s1): s0 selects the amplitudes with the target bit clear, s1
        the matching amplitudes with it set
    """
    for qubit in (target, *controls):
        bit_mask(qubit, num_qubits)

    s0 = [slice(None)] * num_qubits
    for c in controls:
        s0[c] = 1
    s1 = list(s0)
    s0[target] = 0
    s1[target] = 1
    return tuple(s0), tuple(s1)


def _mix_pairs(
    state: np.ndarray,
    matrix: np.ndarray,
    target: int,
    num_qubits: int,
    controls: Tuple[int, ...] = ()
) -> np.ndarray:
    s0, s1 = pair_slices(target, num_qubits, controls)
    new_state = np.array(state, dtype=np.complex128, copy=True)
    tensor = new_state.reshape([2] * num_qubits)

    a0 = tensor[s0].copy()
    a1 = tensor[s1]
    tensor[s0] = matrix[0, 0] * a0 + matrix[0, 1] * a1
    tensor[s1] = matrix[1, 0] * a0 + matrix[1, 1] * a1
    return new_state


def apply_single_qubit_gate(
    state: np.ndarray,
    matrix: np.ndarray,
    target: int,
    num_qubits: int
) -> np.ndarray:
    """
    Apply a 2x2 gate to one qubit.

    Args:
        state: State vector of length 2^num_qubits (not modified)
        matrix: 2x2 unitary
        target: Target qubit index
        num_qubits: Total number of qubits

    Returns:
        New state vector
    """
    return _mix_pairs(state, matrix, target, num_qubits)


def apply_controlled_gate(
    state: np.ndarray,
    matrix: np.ndarray,
    controls: Sequence[int],
    target: int,
    num_qubits: int
) -> np.ndarray:
    """
    Apply a 2x2 gate to the target wherever every control bit is 1.

    Args:
        state: State vector of length 2^num_qubits (not modified)
        matrix: 2x2 unitary applied to the target
        controls: Control qubit indices
        target: Target qubit index
        num_qubits: Total number of qubits

    Returns:
        New state vector
    """
    controls = tuple(controls)
    if target in controls or len(set(controls)) != len(controls):
        raise ValueError(
            f"Control and target qubits must be distinct, got controls={list(controls)} "
            f"target={target}"
        )
    return _mix_pairs(state, matrix, target, num_qubits, controls)


def apply_cnot(state: np.ndarray, control: int, target: int, num_qubits: int) -> np.ndarray:
    """Flip the target where the control is |1⟩."""
    return apply_controlled_gate(state, PAULI_X, (control,), target, num_qubits)


def apply_cz(state: np.ndarray, control: int, target: int, num_qubits: int) -> np.ndarray:
    """Negate the |11⟩ amplitudes of the (control, target) pair."""
    return apply_controlled_gate(state, PAULI_Z, (control,), target, num_qubits)


def apply_toffoli(
    state: np.ndarray,
    control1: int,
    control2: int,
    target: int,
    num_qubits: int
) -> np.ndarray:
    """Flip the target where both controls are |1⟩."""
    return apply_controlled_gate(state, PAULI_X, (control1, control2), target, num_qubits)


@dataclass
class AmplitudeUpdater:
    """
    Applies Gate instructions to a state vector.

    Gate names are resolved through the GateLibrary lookup table; the gate
    spec decides between plain and controlled application.

    Attributes:
        check_normalization: Validate total probability after every gate
        tolerance: Allowed deviation from 1.0 when checking
    """
    check_normalization: bool = False
    tolerance: float = DEFAULT_TOLERANCE

    def resolve(self, gate: Gate) -> Optional[GateSpec]:
        """
        Look up the spec for a gate and check its parameters.

        Returns None for a barrier-named gate, which has no effect.

        Raises:
            UnsupportedGateError: Unknown gate name or wrong number of qubits
            InvalidParameterError: Bad angle parameters
        """
        if gate.label == "barrier":
            return None
        if gate.num_qubits == 0:
            raise UnsupportedGateError(gate.name, gate.qubits)

        try:
            spec = GateLibrary.get_gate(gate.name, gate.num_qubits)
        except UnsupportedGateError:
            raise UnsupportedGateError(gate.name, gate.qubits) from None

        spec.validate_params(gate.params)
        return spec

    def apply_gate(self, state: np.ndarray, gate: Gate, num_qubits: int) -> np.ndarray:
        """
        Apply one gate.

        Args:
            state: Current state vector (not modified)
            gate: Gate instruction
            num_qubits: Total number of qubits

        Returns:
            New state vector

        Raises:
            UnsupportedGateError: Unknown gate name or wrong number of qubits
            InvalidParameterError: Bad angle parameters
        """
        spec = self.resolve(gate)
        if spec is None:
            return state

        matrix = spec.matrix(gate.params)

        if spec.num_controls == 0:
            new_state = apply_single_qubit_gate(state, matrix, gate.qubits[0], num_qubits)
        else:
            new_state = apply_controlled_gate(
                state, matrix, gate.qubits[:-1], gate.qubits[-1], num_qubits
            )

        if self.check_normalization:
            validate_normalized(new_state, self.tolerance)

        return new_state

    def apply_gates(
        self,
        state: np.ndarray,
        gates: Iterable[Gate],
        num_qubits: int
    ) -> np.ndarray:
        """Apply a sequence of gates in order."""
        for gate in gates:
            state = self.apply_gate(state, gate, num_qubits)
        return state
