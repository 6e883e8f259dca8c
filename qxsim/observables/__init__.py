"""Probability extraction, measurement and sampling."""

from qxsim.observables.marginals import probabilities, marginal_distribution
from qxsim.observables.sampler import measure_qubit, sample_indices, merge_counts

__all__ = ["probabilities", "marginal_distribution", "measure_qubit", "sample_indices", "merge_counts"]
