"""
qxsim Runtime Engine.

Executes circuits and aggregates measurement statistics. Circuits without
classical feedback take the batched path: the state is evolved once and all
shots are sampled from the final distribution. Circuits with conditionals
take the per-shot path: every shot walks the instruction list on a fresh
state, collapsing on each measurement and branching on classical bits.
"""

from __future__ import annotations

import numbers
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from qxsim.compiler.analysis import CircuitAnalysis, analyze_circuit
from qxsim.core.exceptions import MalformedConditionalError, PureStateQueryError
from qxsim.core.instructions import Barrier, Circuit, Conditional, Gate, Measure
from qxsim.core.statevector import DEFAULT_TOLERANCE, zero_state
from qxsim.observables.marginals import probabilities
from qxsim.observables.sampler import (
    Register,
    count_outcomes,
    extract_classical_bits,
    measure_qubit,
    merge_counts,
    sample_indices,
)
from qxsim.runtime.result import SimulationResult
from qxsim.runtime.updater import AmplitudeUpdater
from qxsim.utils.logging_config import get_logger


logger = get_logger(__name__)

SeedLike = Union[None, int, np.random.Generator]


def _validate_shots(shots: Any) -> int:
    if isinstance(shots, bool) or not isinstance(shots, numbers.Integral) or shots <= 0:
        raise ValueError(f"shots must be a positive integer, got {shots!r}")
    return int(shots)


@dataclass
class SimulatorConfig:
    """
    Configuration for the simulator.

    Attributes:
        shots: Default number of shots per run
        tolerance: Normalization tolerance
        max_workers: Threads used for the per-shot path
        check_normalization: Validate the state after every gate
        seed: Default seed when run() is not given one
    """
    shots: int = 1024
    tolerance: float = DEFAULT_TOLERANCE
    max_workers: int = 1
    check_normalization: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        self.shots = _validate_shots(self.shots)
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")


class ExecutionPath(Enum):
    """How a circuit is executed."""
    BATCHED = "batched"
    PER_SHOT = "per_shot"


def classify(circuit: Circuit) -> ExecutionPath:
    """Pick the execution path once for the whole circuit."""
    if circuit.has_conditionals:
        return ExecutionPath.PER_SHOT
    return ExecutionPath.BATCHED


@dataclass
class Simulator:
    """
    State-vector simulator.

    Usage:
        circuit = Circuit(2, 2, [Gate("h", (0,)), Gate("cx", (0, 1)),
                                 Measure(0, 0), Measure(1, 1)])
        result = Simulator().run(circuit, shots=1000, seed=7)
        print(result.counts)

    Attributes:
        config: Simulator configuration
        updater: Amplitude updater used for every gate
    """
    config: SimulatorConfig = field(default_factory=SimulatorConfig)
    updater: Optional[AmplitudeUpdater] = None

    def __post_init__(self):
        if self.updater is None:
            self.updater = AmplitudeUpdater(
                check_normalization=self.config.check_normalization,
                tolerance=self.config.tolerance,
            )

    def run(
        self,
        circuit: Circuit,
        shots: Optional[int] = None,
        seed: SeedLike = None
    ) -> SimulationResult:
        """
        Execute a circuit.

        Args:
            circuit: Circuit to execute
            shots: Number of shots (defaults to config.shots)
            seed: Integer seed or numpy Generator (defaults to config.seed)

        Returns:
            SimulationResult

        Raises:
            UnsupportedGateError: A gate name/arity is not supported
            InvalidParameterError: A gate has bad angle parameters
            MalformedConditionalError: A conditional body holds a non-gate
        """
        shots = _validate_shots(self.config.shots if shots is None else shots)
        if seed is None:
            seed = self.config.seed
        rng = np.random.default_rng(seed)

        self._validate_instructions(circuit)
        analysis = analyze_circuit(circuit)
        path = classify(circuit)

        logger.debug(
            "Running %r: path=%s shots=%d depth=%d",
            circuit, path.value, shots, analysis.depth
        )
        for index, clbit in analysis.unmeasured_condition_bits.items():
            logger.warning(
                "Conditional at instruction %d reads classical bit %d before any "
                "measurement writes it; it will always read 0", index, clbit
            )

        start = time.perf_counter()
        if path is ExecutionPath.BATCHED:
            if analysis.evolved_after_measurement:
                logger.warning(
                    "Qubits %s are acted on after being measured; the batched path "
                    "samples the final distribution and ignores mid-circuit collapse",
                    sorted(analysis.evolved_after_measurement)
                )
            state, classical_bits, counts = self._run_batched(circuit, shots, rng)
            workers = 1
        else:
            workers = min(self.config.max_workers, shots)
            state, classical_bits, counts = self._run_per_shot(circuit, shots, rng, workers)
        elapsed = time.perf_counter() - start

        logger.debug("Finished %d shots in %.4fs (%d distinct outcomes)",
                     shots, elapsed, len(counts))

        return SimulationResult(
            probabilities=probabilities(state),
            classical_bits=classical_bits,
            state=state,
            shots=shots,
            counts=counts,
            metadata=self._metadata(circuit, analysis, path, workers, seed, elapsed),
        )

    def get_state(self, circuit: Circuit) -> np.ndarray:
        """
        Final state of a purely unitary circuit.

        Raises:
            PureStateQueryError: The circuit has measurements or conditionals
        """
        if circuit.has_measurements or circuit.has_conditionals:
            raise PureStateQueryError()
        self._validate_instructions(circuit)
        return self.evolve(circuit)

    def get_probabilities(self, circuit: Circuit) -> np.ndarray:
        """
        Basis-state probabilities of a purely unitary circuit.

        Raises:
            PureStateQueryError: The circuit has measurements or conditionals
        """
        if circuit.has_measurements or circuit.has_conditionals:
            raise PureStateQueryError(
                "Cannot get probabilities from circuit with measurements or "
                "conditionals. Use run() instead."
            )
        return probabilities(self.get_state(circuit))

    def _validate_instructions(self, circuit: Circuit) -> None:
        """Resolve every gate up front so a bad gate aborts before any shot runs."""
        for op in circuit.instructions:
            if isinstance(op, Gate):
                self.updater.resolve(op)
            elif isinstance(op, Conditional):
                for body_op in op.body:
                    if not isinstance(body_op, Gate):
                        raise MalformedConditionalError(op.clbit, body_op)
                    self.updater.resolve(body_op)
            elif not isinstance(op, (Measure, Barrier)):
                raise TypeError(f"Unknown instruction type: {type(op).__name__}")

    def evolve(self, circuit: Circuit) -> np.ndarray:
        """Apply every top-level gate in order; measurements do not touch the state."""
        state = zero_state(circuit.num_qubits)
        for op in circuit.instructions:
            if isinstance(op, Gate):
                state = self.updater.apply_gate(state, op, circuit.num_qubits)
            elif isinstance(op, (Measure, Barrier)):
                continue
            else:
                raise TypeError(
                    f"{type(op).__name__} instructions require per-shot execution"
                )
        return state

    def _run_batched(
        self,
        circuit: Circuit,
        shots: int,
        rng: np.random.Generator
    ) -> Tuple[np.ndarray, List[Register], Dict[Register, int]]:
        state = self.evolve(circuit)
        measurements = circuit.measurements

        if not measurements:
            return state, [], {}

        samples = sample_indices(probabilities(state), shots, rng)
        classical_bits = extract_classical_bits(
            samples, measurements, circuit.num_qubits, circuit.num_clbits
        )
        return state, classical_bits, count_outcomes(classical_bits)

    def _run_per_shot(
        self,
        circuit: Circuit,
        shots: int,
        rng: np.random.Generator,
        workers: int
    ) -> Tuple[np.ndarray, List[Register], Dict[Register, int]]:
        # One child seed per shot keeps results independent of the worker count
        root = np.random.SeedSequence(int(rng.integers(0, 2 ** 63)))
        shot_seeds = root.spawn(shots)

        bounds = np.linspace(0, shots, workers + 1).astype(int)
        chunks = [shot_seeds[lo:hi] for lo, hi in zip(bounds[:-1], bounds[1:])]

        if workers == 1:
            partials = [self._execute_chunk(circuit, chunks[0])]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                partials = list(pool.map(lambda chunk: self._execute_chunk(circuit, chunk),
                                         chunks))

        classical_bits: List[Register] = []
        for registers, _, _ in partials:
            classical_bits.extend(registers)
        counts = merge_counts(*(partial_counts for _, partial_counts, _ in partials))
        final_state = partials[-1][2]

        return final_state, classical_bits, counts

    def _execute_chunk(
        self,
        circuit: Circuit,
        seeds: Sequence[np.random.SeedSequence]
    ) -> Tuple[List[Register], Dict[Register, int], Optional[np.ndarray]]:
        registers = []
        state = None
        for seed_seq in seeds:
            state, register = self.execute_shot(circuit, np.random.default_rng(seed_seq))
            registers.append(register)
        return registers, count_outcomes(registers), state

    def execute_shot(
        self,
        circuit: Circuit,
        rng: np.random.Generator
    ) -> Tuple[np.ndarray, Register]:
        """
        Run one shot of a circuit.

        Args:
            circuit: Circuit to execute
            rng: Random source for this shot's measurements

        Returns:
            (final state, classical register)
        """
        num_qubits = circuit.num_qubits
        state = zero_state(num_qubits)
        register = [0] * circuit.num_clbits

        for op in circuit.instructions:
            if isinstance(op, Gate):
                state = self.updater.apply_gate(state, op, num_qubits)
            elif isinstance(op, Measure):
                state, outcome = measure_qubit(state, op.qubit, num_qubits, rng)
                register[op.clbit] = outcome
            elif isinstance(op, Conditional):
                if register[op.clbit] == op.value:
                    for body_op in op.body:
                        if not isinstance(body_op, Gate):
                            raise MalformedConditionalError(op.clbit, body_op)
                        state = self.updater.apply_gate(state, body_op, num_qubits)
            elif isinstance(op, Barrier):
                continue
            else:
                raise TypeError(f"Unknown instruction type: {type(op).__name__}")

        return state, tuple(register)

    def _metadata(
        self,
        circuit: Circuit,
        analysis: CircuitAnalysis,
        path: ExecutionPath,
        workers: int,
        seed: SeedLike,
        elapsed: float
    ) -> Dict[str, Any]:
        return {
            "execution_path": path.value,
            "state_is_representative": path is ExecutionPath.PER_SHOT,
            "depth": analysis.depth,
            "num_instructions": len(circuit),
            "num_feedback_edges": len(analysis.feedback_edges),
            "max_workers": workers,
            "seed": seed if isinstance(seed, numbers.Integral) else None,
            "elapsed_seconds": elapsed,
        }


def run(
    circuit: Circuit,
    shots: int = 1024,
    seed: SeedLike = None,
    max_workers: int = 1
) -> SimulationResult:
    """Execute a circuit with a default-configured simulator."""
    simulator = Simulator(SimulatorConfig(shots=shots, max_workers=max_workers))
    return simulator.run(circuit, seed=seed)


def get_state(circuit: Circuit) -> np.ndarray:
    """Final state of a purely unitary circuit."""
    return Simulator().get_state(circuit)


def get_probabilities(circuit: Circuit) -> np.ndarray:
    """Basis-state probabilities of a purely unitary circuit."""
    return Simulator().get_probabilities(circuit)
