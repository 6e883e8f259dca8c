"""
Tests for cross-validation utilities.
"""

import logging

import pytest
import numpy as np
from hypothesis import given

from strategies import unitary_circuit_strategy

from qxsim import run
from qxsim.core.exceptions import PureStateQueryError
from qxsim.core.instructions import Circuit, Gate
from qxsim.utils.logging_config import get_logger, setup_logging
from qxsim.utils.validation import (
    counts_goodness_of_fit,
    register_distribution,
    validate_against_qiskit,
)


class TestQiskitAgreement:
    """Compare final states with qiskit.quantum_info.Statevector."""

    def test_bell(self):
        pytest.importorskip("qiskit")
        circuit = Circuit(2, 0, (Gate("h", (0,)), Gate("cx", (0, 1))))
        result = validate_against_qiskit(circuit)
        assert result.passed
        assert np.isclose(result.details["fidelity"], 1.0)

    def test_qubit_order(self):
        pytest.importorskip("qiskit")
        # X on qubit 0 must land on index 0b100 in both simulators
        circuit = Circuit(3, 0, (Gate("x", (0,)), Gate("ry", (2,), (0.4,))))
        result = validate_against_qiskit(circuit)
        assert result.passed
        assert np.argmax(result.exact_probabilities) == 0b100

    def test_all_gates(self):
        pytest.importorskip("qiskit")
        circuit = Circuit(3, 0, (
            Gate("h", (0,)), Gate("y", (1,)), Gate("s", (2,)), Gate("sdg", (0,)),
            Gate("t", (1,)), Gate("tdg", (2,)), Gate("rx", (0,), (0.3,)),
            Gate("rz", (1,), (1.1,)), Gate("p", (2,), (0.7,)), Gate("cz", (0, 2)),
            Gate("ccx", (2, 0, 1)), Gate("cx", (1, 0)), Gate("z", (2,)),
        ))
        assert validate_against_qiskit(circuit).max_amplitude_error < 1e-10

    @given(unitary_circuit_strategy())
    def test_random_circuits(self, circuit):
        pytest.importorskip("qiskit")
        assert validate_against_qiskit(circuit).passed

    def test_rejects_measured_circuit(self, bell_circuit):
        pytest.importorskip("qiskit")
        with pytest.raises(PureStateQueryError):
            validate_against_qiskit(bell_circuit)


class TestGoodnessOfFit:
    """Chi-square checks of sampled counts."""

    def test_register_distribution(self, bell_circuit):
        expected = register_distribution(bell_circuit)
        assert expected.keys() == {(0, 0), (1, 1)}
        assert np.isclose(expected[(0, 0)], 0.5)

    def test_register_distribution_rejects_feedback(self, coin_flip_feedback_circuit):
        with pytest.raises(PureStateQueryError):
            register_distribution(coin_flip_feedback_circuit)

    def test_sampled_counts_fit(self, ghz_circuit):
        result = run(ghz_circuit, shots=4000, seed=31)
        fit = counts_goodness_of_fit(result.counts, register_distribution(ghz_circuit))
        assert fit.dof == 1
        assert fit.passed()

    def test_biased_counts_fail(self):
        fit = counts_goodness_of_fit({(0,): 900, (1,): 100}, {(0,): 0.5, (1,): 0.5})
        assert fit.pvalue < 1e-6
        assert not fit.passed()

    def test_impossible_outcome(self):
        fit = counts_goodness_of_fit({(0, 0): 10, (0, 1): 1}, {(0, 0): 0.5, (1, 1): 0.5})
        assert fit.impossible_outcomes == {(0, 1): 1}
        assert not fit.passed()

    def test_deterministic_distribution(self):
        fit = counts_goodness_of_fit({(1,): 10}, {(1,): 1.0})
        assert fit.dof == 0
        assert fit.passed()


class TestLogging:
    """Tests for logger setup."""

    def test_get_logger_namespace(self):
        assert get_logger("qxsim.runtime.engine").name == "qxsim.runtime.engine"
        assert get_logger("demo").name == "qxsim.demo"

    def test_setup_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "qxsim.log"
        logger = setup_logging(logging.DEBUG, log_file=log_file)
        try:
            get_logger("test").debug("hello")
            for handler in logger.handlers:
                handler.flush()
            assert "hello" in log_file.read_text()
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
            logger.setLevel(logging.NOTSET)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
