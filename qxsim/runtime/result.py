"""
Simulation result container.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple, Union

import numpy as np

from qxsim.observables.sampler import Register, bitstring


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """
    Result of one Simulator.run() call.

    Attributes:
        probabilities: |amplitude|² of the final (representative) state
        classical_bits: Classical register of every shot, in shot order
        state: Final state vector; for circuits with conditionals this is the
               state of the last shot, not an ensemble description
        shots: Number of shots executed
        counts: Register -> number of shots that produced it
        metadata: Execution details (path, depth, workers, seed)
    """
    probabilities: np.ndarray
    classical_bits: Tuple[Register, ...]
    state: np.ndarray
    shots: int
    counts: Mapping[Register, int]
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Reporting layers get read-only snapshots; caller objects stay untouched
        probs = np.array(self.probabilities, dtype=np.float64, copy=True)
        state = np.array(self.state, dtype=np.complex128, copy=True)
        probs.setflags(write=False)
        state.setflags(write=False)
        object.__setattr__(self, "probabilities", probs)
        object.__setattr__(self, "state", state)
        object.__setattr__(self, "classical_bits",
                           tuple(tuple(r) for r in self.classical_bits))
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def num_qubits(self) -> int:
        return int(np.log2(len(self.state)))

    def most_frequent(self) -> Tuple[Register, int]:
        """Most common register and its count; ((), 0) when nothing was measured."""
        if not self.counts:
            return (), 0
        return max(self.counts.items(), key=lambda item: (item[1], item[0]))

    def filter_by_probability(self, threshold: float) -> Dict[Register, int]:
        """Outcomes observed in at least `threshold` of the shots."""
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        min_count = threshold * self.shots
        return {outcome: count for outcome, count in self.counts.items()
                if count >= min_count}

    def outcomes(self) -> List[Register]:
        """All observed registers, sorted."""
        return sorted(self.counts)

    def probability(self, outcome: Union[Register, str]) -> float:
        """Observed frequency of a register, given as a tuple or a bitstring."""
        if isinstance(outcome, str):
            outcome = tuple(int(b) for b in outcome)
        return self.counts.get(tuple(outcome), 0) / self.shots

    def bitstring_counts(self) -> Dict[str, int]:
        """Counts keyed by bitstring (classical bit 0 first)."""
        return {bitstring(outcome): count for outcome, count in self.counts.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "probabilities": self.probabilities.tolist(),
            "classical_bits": [list(r) for r in self.classical_bits],
            "state": [[float(a.real), float(a.imag)] for a in self.state],
            "shots": self.shots,
            "counts": self.bitstring_counts(),
            "metadata": dict(self.metadata),
        }

    def __repr__(self) -> str:
        return (f"SimulationResult(qubits={self.num_qubits}, shots={self.shots}, "
                f"outcomes={len(self.counts)})")
