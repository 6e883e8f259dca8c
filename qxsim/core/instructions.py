"""
Circuit instruction types for qxsim.

A circuit is an immutable, ordered tuple of instructions. Each instruction is
one of four variants: Gate, Measure, Conditional and Barrier. A Conditional's
body may only hold Gates, which is checked when the Conditional is built.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple, Union

from qxsim.core.exceptions import MalformedConditionalError, QubitCountError
from qxsim.core.gates import GateKind


MIN_QUBITS = 1
MAX_QUBITS = 20


@dataclass(frozen=True)
class Gate:
    """
    A unitary gate application.

    Attributes:
        name: Gate kind or a string alias such as "h" or "cnot"
        qubits: Qubit indices; for controlled gates the controls come first
        params: Angle parameters for parameterized gates
    """
    name: Union[str, GateKind]
    qubits: Tuple[int, ...]
    params: Tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "qubits", tuple(int(q) for q in self.qubits))
        params = self.params
        if params is None:
            params = ()
        elif isinstance(params, (numbers.Number, str)):
            params = (params,)
        object.__setattr__(self, "params", tuple(params))

    @property
    def num_qubits(self) -> int:
        return len(self.qubits)

    @property
    def label(self) -> str:
        if isinstance(self.name, GateKind):
            return self.name.value
        return str(self.name).lower()

    def __repr__(self) -> str:
        if self.params:
            param_str = ", ".join(repr(p) for p in self.params)
            return f"{self.label}({param_str}) @ {self.qubits}"
        return f"{self.label} @ {self.qubits}"


@dataclass(frozen=True)
class Measure:
    """Projective Z-basis measurement of one qubit into one classical bit."""
    qubit: int
    clbit: int

    def __repr__(self) -> str:
        return f"measure q{self.qubit} -> c{self.clbit}"


@dataclass(frozen=True)
class Barrier:
    """Ordering hint with no effect on the state."""
    qubits: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "qubits", tuple(int(q) for q in self.qubits))


# The only operation allowed inside a Conditional body
SimpleOperation = Gate


@dataclass(frozen=True)
class Conditional:
    """
    Gates that run only when a classical bit holds an expected value.

    Attributes:
        clbit: Classical bit index to read
        value: Expected value (0 or 1)
        body: Gates applied, in order, when the bit matches
    """
    clbit: int
    value: int
    body: Tuple[SimpleOperation, ...]

    def __post_init__(self):
        body = tuple(self.body)
        for op in body:
            if not isinstance(op, Gate):
                raise MalformedConditionalError(self.clbit, op)
        if self.value not in (0, 1):
            raise ValueError(
                f"Conditional on classical bit {self.clbit} must expect 0 or 1, "
                f"got {self.value!r}"
            )
        object.__setattr__(self, "body", body)

    @property
    def qubits(self) -> Tuple[int, ...]:
        """All qubits touched by the body."""
        touched = set()
        for gate in self.body:
            touched.update(gate.qubits)
        return tuple(sorted(touched))

    def __repr__(self) -> str:
        return f"if c{self.clbit} == {self.value}: {list(self.body)}"


Instruction = Union[Gate, Measure, Conditional, Barrier]


@dataclass(frozen=True)
class Circuit:
    """
    An immutable quantum circuit.

    Attributes:
        num_qubits: Number of qubits (1..MAX_QUBITS)
        num_clbits: Number of classical bits in the register
        instructions: Ordered instructions
    """
    num_qubits: int
    num_clbits: int = 0
    instructions: Tuple[Instruction, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not MIN_QUBITS <= self.num_qubits <= MAX_QUBITS:
            raise QubitCountError(self.num_qubits, MIN_QUBITS, MAX_QUBITS)
        if self.num_clbits < 0:
            raise ValueError(f"num_clbits must be >= 0, got {self.num_clbits}")
        object.__setattr__(self, "instructions", tuple(self.instructions))
        for op in self.instructions:
            self._check_indices(op)

    def _check_indices(self, op) -> None:
        """Reject qubit or classical bit indices outside the registers."""
        if isinstance(op, Measure):
            qubits, clbits = (op.qubit,), (op.clbit,)
        elif isinstance(op, Conditional):
            qubits = [q for body_op in op.body if isinstance(body_op, Gate)
                      for q in body_op.qubits]
            clbits = (op.clbit,)
        elif isinstance(op, (Gate, Barrier)):
            qubits, clbits = op.qubits, ()
        else:
            # Unknown instruction types are rejected when the circuit runs
            return

        for q in qubits:
            if not 0 <= q < self.num_qubits:
                raise ValueError(
                    f"{op!r} uses qubit {q} but the circuit has {self.num_qubits} qubits"
                )
        for c in clbits:
            if not 0 <= c < self.num_clbits:
                raise ValueError(
                    f"{op!r} uses classical bit {c} but the circuit has "
                    f"{self.num_clbits} classical bits"
                )

    def __len__(self) -> int:
        return len(self.instructions)

    @property
    def num_instructions(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    @property
    def dimension(self) -> int:
        return 2 ** self.num_qubits

    @property
    def measurements(self) -> List[Tuple[int, int]]:
        """(qubit, clbit) pairs of top-level measurements, in circuit order."""
        return [(op.qubit, op.clbit) for op in self.instructions if isinstance(op, Measure)]

    @property
    def gates(self) -> List[Gate]:
        """Top-level gates, in circuit order."""
        return [op for op in self.instructions if isinstance(op, Gate)]

    @property
    def has_measurements(self) -> bool:
        return any(isinstance(op, Measure) for op in self.instructions)

    @property
    def has_conditionals(self) -> bool:
        return any(isinstance(op, Conditional) for op in self.instructions)

    def __repr__(self) -> str:
        return (f"Circuit(qubits={self.num_qubits}, clbits={self.num_clbits}, "
                f"instructions={len(self.instructions)})")
