"""
Gate library for qxsim.

This module defines the closed set of gates the simulator understands, the
2x2 matrices behind them, and a lookup table from gate names to gate specs.
Controlled gates are described by their target matrix and number of controls;
the amplitude updater applies them by bit masking, never by building the full
2^n x 2^n operator.
"""

from __future__ import annotations

import math
import numbers
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
from enum import Enum

from qxsim.core.exceptions import InvalidParameterError, UnsupportedGateError


# Common gate matrices
PAULI_I = np.array([[1, 0], [0, 1]], dtype=np.complex128)
PAULI_X = np.array([[0, 1], [1, 0]], dtype=np.complex128)
PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)
PAULI_Z = np.array([[1, 0], [0, -1]], dtype=np.complex128)
HADAMARD = np.array([[1, 1], [1, -1]], dtype=np.complex128) / np.sqrt(2)
S_GATE = np.array([[1, 0], [0, 1j]], dtype=np.complex128)
T_GATE = np.array([[1, 0], [0, np.exp(1j * np.pi / 4)]], dtype=np.complex128)
S_DAGGER = S_GATE.conj().T
T_DAGGER = T_GATE.conj().T

for _m in (PAULI_I, PAULI_X, PAULI_Y, PAULI_Z, HADAMARD, S_GATE, T_GATE, S_DAGGER, T_DAGGER):
    _m.setflags(write=False)


def hadamard() -> np.ndarray:
    """Hadamard: 1/√2·[[1, 1], [1, -1]]"""
    return HADAMARD.copy()


def pauli_x() -> np.ndarray:
    return PAULI_X.copy()


def pauli_y() -> np.ndarray:
    return PAULI_Y.copy()


def pauli_z() -> np.ndarray:
    return PAULI_Z.copy()


def s_gate() -> np.ndarray:
    """Phase gate S = diag(1, i)"""
    return S_GATE.copy()


def t_gate() -> np.ndarray:
    """π/8 gate T = diag(1, e^{iπ/4})"""
    return T_GATE.copy()


def rx_matrix(theta: float) -> np.ndarray:
    """Rotation around X-axis: Rx(θ) = exp(-iθX/2)"""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -1j * s], [-1j * s, c]], dtype=np.complex128)


def ry_matrix(theta: float) -> np.ndarray:
    """Rotation around Y-axis: Ry(θ) = exp(-iθY/2)"""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -s], [s, c]], dtype=np.complex128)


def rz_matrix(theta: float) -> np.ndarray:
    """Rotation around Z-axis: Rz(θ) = exp(-iθZ/2)"""
    return np.array([
        [np.exp(-1j * theta / 2), 0],
        [0, np.exp(1j * theta / 2)]
    ], dtype=np.complex128)


def phase_matrix(phi: float) -> np.ndarray:
    """Phase shift: P(φ) = diag(1, e^{iφ})"""
    return np.array([[1, 0], [0, np.exp(1j * phi)]], dtype=np.complex128)


def is_unitary(matrix: np.ndarray, atol: float = 1e-10) -> bool:
    """Check M·M† = I within an absolute tolerance."""
    matrix = np.asarray(matrix)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        return False
    identity = np.eye(matrix.shape[0], dtype=np.complex128)
    return bool(np.allclose(matrix @ matrix.conj().T, identity, atol=atol))


class GateKind(Enum):
    """The closed set of gates supported by the amplitude updater."""
    H = "h"
    X = "x"
    Y = "y"
    Z = "z"
    S = "s"
    SDG = "sdg"
    T = "t"
    TDG = "tdg"
    RX = "rx"
    RY = "ry"
    RZ = "rz"
    PHASE = "phase"
    CX = "cx"
    CZ = "cz"
    CCX = "ccx"


@dataclass
class GateSpec:
    """
    Static description of a gate kind.

    Attributes:
        kind: Which gate this is
        num_qubits: Total qubits the gate acts on (controls + 1 target)
        _matrix: Fixed 2x2 target matrix (None for parameterized gates)
        param_names: Names of the angle parameters, in order
        matrix_fn: Builds the 2x2 target matrix from the parameters
    """
    kind: GateKind
    num_qubits: int
    _matrix: Optional[np.ndarray] = field(default=None, repr=False)
    param_names: Tuple[str, ...] = field(default_factory=tuple)
    matrix_fn: Optional[Callable[..., np.ndarray]] = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def num_controls(self) -> int:
        return self.num_qubits - 1

    @property
    def is_parametric(self) -> bool:
        return bool(self.param_names)

    def validate_params(self, params: Optional[Sequence[Any]]) -> Tuple[float, ...]:
        """
        Check the parameters against this gate and convert them to floats.

        Raises:
            InvalidParameterError: Wrong count, non-numeric or non-finite values
        """
        params = tuple(params) if params is not None else ()

        if not self.param_names:
            if params:
                raise InvalidParameterError(
                    self.name, params,
                    f"Gate {self.name} takes no parameters, got {list(params)!r}"
                )
            return ()

        if len(params) != len(self.param_names):
            raise InvalidParameterError(
                self.name, params,
                f"Gate {self.name} expects {len(self.param_names)} parameter(s) "
                f"{list(self.param_names)}, got {list(params)!r}"
            )

        values = []
        for p in params:
            # bool is an int subclass but never a meaningful angle
            if isinstance(p, bool) or not isinstance(p, numbers.Real):
                raise InvalidParameterError(self.name, params)
            value = float(p)
            if not math.isfinite(value):
                raise InvalidParameterError(self.name, params)
            values.append(value)
        return tuple(values)

    def matrix(self, params: Optional[Sequence[Any]] = None) -> np.ndarray:
        """
        Return the 2x2 matrix applied to the target qubit.

        For controlled gates this is the matrix applied when every control
        bit is set (X for CX/CCX, Z for CZ).
        """
        values = self.validate_params(params)
        if self.matrix_fn is not None:
            return self.matrix_fn(*values)
        return self._matrix

    def unitary(self, params: Optional[Sequence[Any]] = None) -> np.ndarray:
        """
        Return the full 2^k x 2^k unitary in MSB-first qubit order.

        The controls come first, so the target matrix occupies the
        bottom-right 2x2 block.
        """
        target = self.matrix(params)
        dim = 2 ** self.num_qubits
        full = np.eye(dim, dtype=np.complex128)
        full[dim - 2:, dim - 2:] = target
        return full


class GateLibrary:
    """Lookup table from gate names to gate specs."""

    # Single-qubit gates
    H = GateSpec(GateKind.H, 1, _matrix=HADAMARD)
    X = GateSpec(GateKind.X, 1, _matrix=PAULI_X)
    Y = GateSpec(GateKind.Y, 1, _matrix=PAULI_Y)
    Z = GateSpec(GateKind.Z, 1, _matrix=PAULI_Z)
    S = GateSpec(GateKind.S, 1, _matrix=S_GATE)
    Sdg = GateSpec(GateKind.SDG, 1, _matrix=S_DAGGER)
    T = GateSpec(GateKind.T, 1, _matrix=T_GATE)
    Tdg = GateSpec(GateKind.TDG, 1, _matrix=T_DAGGER)

    # Parametric single-qubit gates
    Rx = GateSpec(GateKind.RX, 1, param_names=("theta",), matrix_fn=rx_matrix)
    Ry = GateSpec(GateKind.RY, 1, param_names=("theta",), matrix_fn=ry_matrix)
    Rz = GateSpec(GateKind.RZ, 1, param_names=("theta",), matrix_fn=rz_matrix)
    Phase = GateSpec(GateKind.PHASE, 1, param_names=("phi",), matrix_fn=phase_matrix)

    # Controlled gates (target matrix only)
    CX = GateSpec(GateKind.CX, 2, _matrix=PAULI_X)
    CZ = GateSpec(GateKind.CZ, 2, _matrix=PAULI_Z)
    CCX = GateSpec(GateKind.CCX, 3, _matrix=PAULI_X)

    ALIASES: Dict[str, GateKind] = {
        "h": GateKind.H, "hadamard": GateKind.H,
        "x": GateKind.X, "not": GateKind.X,
        "y": GateKind.Y,
        "z": GateKind.Z,
        "s": GateKind.S,
        "sdg": GateKind.SDG, "s_dagger": GateKind.SDG,
        "t": GateKind.T,
        "tdg": GateKind.TDG, "t_dagger": GateKind.TDG,
        "rx": GateKind.RX,
        "ry": GateKind.RY,
        "rz": GateKind.RZ,
        "phase": GateKind.PHASE, "p": GateKind.PHASE,
        "cx": GateKind.CX, "cnot": GateKind.CX,
        "cz": GateKind.CZ,
        "ccx": GateKind.CCX, "toffoli": GateKind.CCX,
    }

    @classmethod
    def resolve(cls, name: Union[str, GateKind]) -> GateKind:
        """Map a gate name or alias to its GateKind."""
        if isinstance(name, GateKind):
            return name
        if isinstance(name, str):
            kind = cls.ALIASES.get(name.lower())
            if kind is not None:
                return kind
        raise UnsupportedGateError(name)

    @classmethod
    def get_gate(
        cls,
        name: Union[str, GateKind],
        num_qubits: Optional[int] = None
    ) -> GateSpec:
        """
        Get a gate spec by name, optionally checking its arity.

        Raises:
            UnsupportedGateError: Unknown name, or arity mismatch
        """
        spec = GATE_TABLE[cls.resolve(name)]
        if num_qubits is not None and num_qubits != spec.num_qubits:
            raise UnsupportedGateError(
                name, message=(f"Unsupported gate: {name!r} with {num_qubits} "
                               f"qubit(s) (expects {spec.num_qubits})")
            )
        return spec

    @classmethod
    def all_gates(cls) -> List[GateSpec]:
        return list(GATE_TABLE.values())


GATE_TABLE: Dict[GateKind, GateSpec] = {
    spec.kind: spec
    for spec in (
        GateLibrary.H, GateLibrary.X, GateLibrary.Y, GateLibrary.Z,
        GateLibrary.S, GateLibrary.Sdg, GateLibrary.T, GateLibrary.Tdg,
        GateLibrary.Rx, GateLibrary.Ry, GateLibrary.Rz, GateLibrary.Phase,
        GateLibrary.CX, GateLibrary.CZ, GateLibrary.CCX,
    )
}
