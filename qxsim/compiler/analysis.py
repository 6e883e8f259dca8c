"""
Dependency analysis for qxsim circuits.

Builds a DAG of instructions in which an edge i -> j means instruction j must
run after instruction i because they share a qubit or classical bit wire.
The analysis reports circuit depth, measurement-to-conditional feedback
edges, and patterns the batched execution path cannot represent exactly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Set, Tuple

import networkx as nx

from qxsim.core.instructions import Barrier, Circuit, Conditional, Gate, Instruction, Measure


Wire = Tuple[str, int]


def instruction_wires(op: Instruction) -> List[Wire]:
    """Qubit ("q", i) and classical bit ("c", j) wires an instruction touches."""
    if isinstance(op, Gate):
        return [("q", q) for q in op.qubits]
    if isinstance(op, Measure):
        return [("q", op.qubit), ("c", op.clbit)]
    if isinstance(op, Conditional):
        return [("q", q) for q in op.qubits] + [("c", op.clbit)]
    if isinstance(op, Barrier):
        return [("q", q) for q in op.qubits]
    raise TypeError(f"Unknown instruction type: {type(op).__name__}")


def build_dependency_graph(circuit: Circuit) -> nx.DiGraph:
    """
    Build the instruction dependency DAG.

    Nodes are instruction indices with the instruction stored under the
    "instruction" attribute. Edges carry the shared wires.
    """
    graph = nx.DiGraph()
    last_on_wire: Dict[Hashable, int] = {}

    for index, op in enumerate(circuit.instructions):
        graph.add_node(index, instruction=op)
        for wire in instruction_wires(op):
            if wire in last_on_wire:
                pred = last_on_wire[wire]
                if graph.has_edge(pred, index):
                    graph.edges[pred, index]["wires"].append(wire)
                else:
                    graph.add_edge(pred, index, wires=[wire])
            last_on_wire[wire] = index

    return graph


def _is_barrier(op: Instruction) -> bool:
    return isinstance(op, Barrier) or (isinstance(op, Gate) and op.label == "barrier")


def _weight(op: Instruction) -> int:
    return 0 if _is_barrier(op) else 1


def circuit_depth(graph: nx.DiGraph) -> int:
    """Longest chain of dependent instructions; barriers add no depth."""
    depth: Dict[int, int] = {}
    for node in nx.topological_sort(graph):
        op = graph.nodes[node]["instruction"]
        preceding = max((depth[p] for p in graph.predecessors(node)), default=0)
        depth[node] = preceding + _weight(op)
    return max(depth.values(), default=0)


@dataclass
class CircuitAnalysis:
    """
    Static facts about a circuit.

    Attributes:
        graph: Instruction dependency DAG
        depth: Circuit depth (barriers excluded)
        layers: Instruction indices grouped into dependency layers
        feedback_edges: (measure index, conditional index) pairs where the
                        conditional reads the bit that measurement wrote
        unmeasured_condition_bits: Conditional index -> clbit for
                                   conditionals reading a bit no earlier
                                   measurement wrote (it reads 0)
        evolved_after_measurement: Qubits acted on by a gate after being
                                   measured
    """
    graph: nx.DiGraph = field(repr=False)
    depth: int
    layers: List[List[int]] = field(repr=False)
    feedback_edges: List[Tuple[int, int]] = field(default_factory=list)
    unmeasured_condition_bits: Dict[int, int] = field(default_factory=dict)
    evolved_after_measurement: Set[int] = field(default_factory=set)

    @property
    def has_feedback(self) -> bool:
        return bool(self.feedback_edges) or bool(self.unmeasured_condition_bits)


def analyze_circuit(circuit: Circuit) -> CircuitAnalysis:
    """Run the dependency analysis for a circuit."""
    graph = build_dependency_graph(circuit)

    feedback_edges: List[Tuple[int, int]] = []
    unmeasured: Dict[int, int] = {}
    evolved: Set[int] = set()
    last_write: Dict[int, int] = {}
    measured_qubits: Set[int] = set()

    for index, op in enumerate(circuit.instructions):
        if isinstance(op, Measure):
            last_write[op.clbit] = index
            measured_qubits.add(op.qubit)
        elif isinstance(op, Conditional):
            if op.clbit in last_write:
                feedback_edges.append((last_write[op.clbit], index))
            else:
                unmeasured[index] = op.clbit
            evolved.update(q for q in op.qubits if q in measured_qubits)
        elif isinstance(op, Gate) and not _is_barrier(op):
            evolved.update(q for q in op.qubits if q in measured_qubits)

    return CircuitAnalysis(
        graph=graph,
        depth=circuit_depth(graph),
        layers=[sorted(layer) for layer in nx.topological_generations(graph)],
        feedback_edges=feedback_edges,
        unmeasured_condition_bits=unmeasured,
        evolved_after_measurement=evolved,
    )
