"""
Measurement and bitstring sampling for qxsim.

All randomness comes from an explicit numpy Generator passed by the caller;
nothing here touches the global numpy random state.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np

from qxsim.core.statevector import bit_mask
from qxsim.observables.marginals import qubit_probability


Register = Tuple[int, ...]


def collapse_state(
    state: np.ndarray,
    qubit: int,
    outcome: int,
    num_qubits: int
) -> np.ndarray:
    """
    Project a state onto a measurement outcome and renormalize.

    Amplitudes inconsistent with the outcome are zeroed and the survivors are
    scaled by 1/sqrt(p). When p is exactly 0 the scale is 1.

    Args:
        state: State vector (not modified)
        qubit: Measured qubit
        outcome: Observed value (0 or 1)
        num_qubits: Total number of qubits

    Returns:
        Collapsed state vector
    """
    mask = bit_mask(qubit, num_qubits)
    indices = np.arange(len(state))
    keep = (indices & mask) != 0 if outcome else (indices & mask) == 0

    p = qubit_probability(state, qubit, outcome, num_qubits)
    norm_factor = 1.0 / np.sqrt(p) if p > 0 else 1.0

    collapsed = np.zeros(len(state), dtype=np.complex128)
    collapsed[keep] = np.asarray(state)[keep] * norm_factor
    return collapsed


def measure_qubit(
    state: np.ndarray,
    qubit: int,
    num_qubits: int,
    rng: np.random.Generator
) -> Tuple[np.ndarray, int]:
    """
    Projectively measure one qubit.

    Args:
        state: State vector (not modified)
        qubit: Qubit to measure
        num_qubits: Total number of qubits
        rng: Random source for the outcome draw

    Returns:
        (collapsed state, outcome)
    """
    p0 = qubit_probability(state, qubit, 0, num_qubits)
    outcome = 0 if rng.random() < p0 else 1
    return collapse_state(state, qubit, outcome, num_qubits), outcome


def sample_indices(
    probs: np.ndarray,
    shots: int,
    rng: np.random.Generator
) -> np.ndarray:
    """
    Draw basis indices from a probability vector.

    Each draw takes u in [0, 1) and selects the first bucket whose cumulative
    probability exceeds u. Draws past the last bucket (rounding) fall back to
    index 0.

    Args:
        probs: Probability per basis index
        shots: Number of draws
        rng: Random source

    Returns:
        Integer array of length shots
    """
    cumulative = np.cumsum(probs)
    draws = rng.random(shots)
    samples = np.searchsorted(cumulative, draws, side="right")
    samples[samples >= len(cumulative)] = 0
    return samples


def extract_classical_bits(
    samples: Sequence[int],
    measurements: Sequence[Tuple[int, int]],
    num_qubits: int,
    num_clbits: int
) -> List[Register]:
    """
    Turn sampled basis indices into classical registers.

    Args:
        samples: Sampled basis indices
        measurements: (qubit, clbit) pairs in circuit order; a later
                      measurement into the same clbit overwrites an earlier one
        num_qubits: Total number of qubits
        num_clbits: Register length

    Returns:
        One register tuple per sample
    """
    samples = np.asarray(samples, dtype=np.int64)
    registers = np.zeros((len(samples), num_clbits), dtype=np.int64)

    for qubit, clbit in measurements:
        shift = num_qubits - 1 - qubit
        registers[:, clbit] = (samples >> shift) & 1

    return [tuple(row) for row in registers.tolist()]


def count_outcomes(registers: Iterable[Register]) -> Counter:
    """Frequency map of classical registers."""
    return Counter(tuple(r) for r in registers)


def merge_counts(*partial_counts: Dict[Register, int]) -> Counter:
    """
    Merge partial frequency maps.

    Addition of counters is commutative and associative, so partial counts
    from parallel workers can be merged in any order.
    """
    merged = Counter()
    for counts in partial_counts:
        merged.update(counts)
    return merged


def bitstring(register: Register) -> str:
    """Register as a string, classical bit 0 first."""
    return "".join(str(b) for b in register)


def shots_to_expectations(
    counts: Dict[Register, int],
    observables: List[str]
) -> Dict[str, float]:
    """
    Estimate Z-parity expectation values from measurement counts.

    Args:
        counts: Register -> count dictionary
        observables: Z-basis observables like "Z0", "Z0Z1"; indices refer to
                     classical bits

    Returns:
        Dictionary of observable -> expectation value
    """
    total = sum(counts.values())
    expectations = {}

    for obs in observables:
        z_indices = [int(m) for m in re.findall(r'Z(\d+)', obs.upper())]

        if not z_indices or total == 0:
            expectations[obs] = 1.0 if not z_indices else 0.0
            continue

        exp_sum = 0
        for register, count in counts.items():
            parity = 1
            for idx in z_indices:
                if idx < len(register):
                    parity *= (1 - 2 * int(register[idx]))
            exp_sum += count * parity

        expectations[obs] = exp_sum / total

    return expectations
