"""
Probability extraction for qxsim.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from qxsim.core.statevector import bit_mask


def probabilities(state: np.ndarray) -> np.ndarray:
    """Elementwise |a_i|² of a state vector."""
    return np.abs(np.asarray(state)) ** 2


def qubit_probability(
    state: np.ndarray,
    qubit: int,
    value: int,
    num_qubits: int
) -> float:
    """
    Probability that measuring a qubit yields a value.

    Args:
        state: State vector
        qubit: Qubit index
        value: 0 or 1
        num_qubits: Total number of qubits

    Returns:
        Σ|a_i|² over indices whose qubit bit equals value
    """
    mask = bit_mask(qubit, num_qubits)
    indices = np.arange(len(state))
    selected = (indices & mask) != 0 if value else (indices & mask) == 0
    return float(np.sum(probabilities(state)[selected]))


def marginal_distribution(
    state: np.ndarray,
    qubits: Sequence[int],
    num_qubits: int
) -> np.ndarray:
    """
    Joint distribution over a subset of qubits.

    Args:
        state: State vector
        qubits: Qubit indices; the first one is the most significant bit of
                the returned index
        num_qubits: Total number of qubits

    Returns:
        Array of length 2^len(qubits)
    """
    probs = probabilities(state).reshape([2] * num_qubits)
    others = tuple(q for q in range(num_qubits) if q not in qubits)
    reduced = probs.sum(axis=others) if others else probs
    # Remaining axes are in ascending qubit order; reorder to the request
    kept = sorted(qubits)
    order = [kept.index(q) for q in qubits]
    return np.transpose(reduced, order).reshape(-1)
