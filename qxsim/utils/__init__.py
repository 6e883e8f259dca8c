"""Utility functions for qxsim."""

from qxsim.utils.logging_config import setup_logging, get_logger
from qxsim.utils.validation import validate_against_qiskit, counts_goodness_of_fit

__all__ = ["setup_logging", "get_logger", "validate_against_qiskit", "counts_goodness_of_fit"]
