"""
Tests for circuit dependency analysis.
"""

import networkx as nx
import pytest

from qxsim.compiler.analysis import analyze_circuit, build_dependency_graph, instruction_wires
from qxsim.core.instructions import Barrier, Circuit, Conditional, Gate, Measure


class TestDependencyGraph:
    """Tests for the instruction DAG."""

    def test_wires(self):
        assert instruction_wires(Gate("cx", (0, 2))) == [("q", 0), ("q", 2)]
        assert instruction_wires(Measure(1, 0)) == [("q", 1), ("c", 0)]
        assert instruction_wires(Conditional(1, 1, (Gate("x", (2,)),))) == [("q", 2), ("c", 1)]

    def test_unknown_instruction(self):
        with pytest.raises(TypeError):
            instruction_wires("reset")

    def test_graph_is_dag(self, teleportation_circuit):
        graph = build_dependency_graph(teleportation_circuit)
        assert nx.is_directed_acyclic_graph(graph)
        assert graph.number_of_nodes() == len(teleportation_circuit)

    def test_edges_follow_shared_wires(self, bell_circuit):
        graph = build_dependency_graph(bell_circuit)
        assert graph.has_edge(0, 1)
        assert graph.has_edge(1, 2)
        assert graph.has_edge(1, 3)
        assert not graph.has_edge(0, 2)


class TestCircuitAnalysis:
    """Tests for analysis results."""

    def test_bell_depth(self, bell_circuit):
        analysis = analyze_circuit(bell_circuit)
        assert analysis.depth == 3
        assert analysis.layers == [[0], [1], [2, 3]]
        assert not analysis.has_feedback

    def test_parallel_gates(self):
        circuit = Circuit(3, 0, tuple(Gate("h", (q,)) for q in range(3)))
        analysis = analyze_circuit(circuit)
        assert analysis.depth == 1
        assert analysis.layers == [[0, 1, 2]]

    def test_barrier_adds_no_depth(self):
        circuit = Circuit(2, 0, (Gate("h", (0,)), Barrier((0, 1)), Gate("h", (1,))))
        assert analyze_circuit(circuit).depth == 2

    def test_empty_circuit(self):
        analysis = analyze_circuit(Circuit(1))
        assert analysis.depth == 0
        assert analysis.layers == []

    def test_feedback_edges(self, teleportation_circuit):
        analysis = analyze_circuit(teleportation_circuit)
        # measure(1 -> c1) at 6 feeds the X correction at 7;
        # measure(0 -> c0) at 5 feeds the Z correction at 8
        assert analysis.feedback_edges == [(6, 7), (5, 8)]
        assert analysis.unmeasured_condition_bits == {}
        assert analysis.has_feedback

    def test_unmeasured_condition_bit(self):
        circuit = Circuit(2, 2, (
            Conditional(1, 1, (Gate("x", (0,)),)),
            Measure(0, 1),
        ))
        analysis = analyze_circuit(circuit)
        assert analysis.unmeasured_condition_bits == {0: 1}
        assert analysis.feedback_edges == []

    def test_evolved_after_measurement(self):
        circuit = Circuit(2, 2, (
            Measure(0, 0),
            Gate("h", (1,)),
            Gate("x", (0,)),
            Measure(0, 1),
        ))
        assert analyze_circuit(circuit).evolved_after_measurement == {0}

    def test_teleportation_correction_evolves_nothing_measured(self, teleportation_circuit):
        # Corrections act on qubit 2, which is measured only at the end
        assert analyze_circuit(teleportation_circuit).evolved_after_measurement == set()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
