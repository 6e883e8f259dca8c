"""State vector construction and normalization helpers."""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

from qxsim.core.exceptions import StateNormalizationError


DEFAULT_TOLERANCE = 1e-6


def bit_mask(qubit: int, num_qubits: int) -> int:
    """Mask selecting a qubit's bit in a basis index (qubit 0 is the MSB)."""
    if not 0 <= qubit < num_qubits:
        raise ValueError(f"Qubit index {qubit} out of range (0..{num_qubits - 1})")
    return 1 << (num_qubits - 1 - qubit)


def basis_state(index: int, dimension: int) -> np.ndarray:
    """
    Create the computational basis state |index⟩.

    Args:
        index: Basis index (0-based, qubit 0 is the most significant bit)
        dimension: Hilbert space dimension (2^num_qubits)
    """
    if not 0 <= index < dimension:
        raise ValueError(f"Basis index {index} out of range for dimension {dimension}")
    state = np.zeros(dimension, dtype=np.complex128)
    state[index] = 1.0
    return state


def zero_state(num_qubits: int) -> np.ndarray:
    """|00...0⟩ for n qubits."""
    if num_qubits < 1:
        raise ValueError(f"num_qubits must be >= 1, got {num_qubits}")
    return basis_state(0, 2 ** num_qubits)


def superposition_state(num_qubits: int) -> np.ndarray:
    """Uniform superposition H^⊗n|0⟩."""
    dimension = 2 ** num_qubits
    return np.full(dimension, 1.0 / np.sqrt(dimension), dtype=np.complex128)


def bell_state() -> np.ndarray:
    """|Φ+⟩ = (|00⟩ + |11⟩)/√2"""
    return ghz_state(2)


def ghz_state(num_qubits: int) -> np.ndarray:
    """(|00...0⟩ + |11...1⟩)/√2"""
    if num_qubits < 2:
        raise ValueError(f"GHZ state needs at least 2 qubits, got {num_qubits}")
    state = np.zeros(2 ** num_qubits, dtype=np.complex128)
    state[0] = state[-1] = 1.0 / np.sqrt(2)
    return state


def w_state(num_qubits: int) -> np.ndarray:
    """Equal superposition of all basis states with exactly one qubit set."""
    if num_qubits < 2:
        raise ValueError(f"W state needs at least 2 qubits, got {num_qubits}")
    state = np.zeros(2 ** num_qubits, dtype=np.complex128)
    for k in range(num_qubits):
        state[1 << k] = 1.0 / np.sqrt(num_qubits)
    return state


def random_state(
    num_qubits: int,
    rng: Optional[Union[int, np.random.Generator]] = None
) -> np.ndarray:
    """Random normalized state with uniformly drawn real/imaginary parts."""
    rng = np.random.default_rng(rng)
    dimension = 2 ** num_qubits
    state = rng.uniform(-1, 1, dimension) + 1j * rng.uniform(-1, 1, dimension)
    return normalize(state)


def total_probability(state: np.ndarray) -> float:
    """Σ|a_i|²"""
    return float(np.sum(np.abs(state) ** 2))


def is_normalized(state: np.ndarray, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    return abs(total_probability(state) - 1.0) <= tolerance


def validate_normalized(state: np.ndarray, tolerance: float = DEFAULT_TOLERANCE) -> None:
    """
    Raises:
        StateNormalizationError: If the total probability is not 1 within tolerance
    """
    total = total_probability(state)
    if abs(total - 1.0) > tolerance:
        raise StateNormalizationError(total, tolerance)


def normalize(state: np.ndarray) -> np.ndarray:
    state = np.asarray(state, dtype=np.complex128)
    norm = np.sqrt(total_probability(state))
    if norm == 0:
        raise StateNormalizationError(0.0)
    return state / norm


def format_basis_state(index: int, num_qubits: int) -> str:
    """Dirac label for a basis index, e.g. format_basis_state(5, 3) == '|101⟩'."""
    return f"|{index:0{num_qubits}b}⟩"
