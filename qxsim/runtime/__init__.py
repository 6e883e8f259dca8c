"""Runtime components for qxsim execution."""

from qxsim.runtime.engine import Simulator, SimulatorConfig, ExecutionPath
from qxsim.runtime.result import SimulationResult
from qxsim.runtime.updater import AmplitudeUpdater

__all__ = ["Simulator", "SimulatorConfig", "ExecutionPath", "SimulationResult", "AmplitudeUpdater"]
