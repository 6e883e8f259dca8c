"""
Circuit parser for qxsim.

Builds Circuit objects from two frontends: a plain list-of-dicts format that
serializes cleanly to JSON, and Qiskit QuantumCircuit objects.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence, Tuple

from qxsim.core.exceptions import (
    InvalidParameterError,
    MalformedConditionalError,
    UnsupportedGateError,
)
from qxsim.core.gates import GateKind, GateLibrary
from qxsim.core.instructions import (
    Barrier,
    Circuit,
    Conditional,
    Gate,
    Instruction,
    Measure,
)


# Gate name mapping from Qiskit to qxsim
QISKIT_GATE_MAP = {
    "h": GateKind.H,
    "x": GateKind.X,
    "y": GateKind.Y,
    "z": GateKind.Z,
    "s": GateKind.S,
    "sdg": GateKind.SDG,
    "t": GateKind.T,
    "tdg": GateKind.TDG,
    "rx": GateKind.RX,
    "ry": GateKind.RY,
    "rz": GateKind.RZ,
    "p": GateKind.PHASE,
    "cx": GateKind.CX,
    "cz": GateKind.CZ,
    "ccx": GateKind.CCX,
}

MEASURE = "measure"
BARRIER = "barrier"
CONDITIONAL = "c_if"


def _gate_params(name: str, qubits: Tuple[int, ...], params: Any) -> Tuple[Any, ...]:
    """Resolve a gate and order its parameters; a dict is keyed by parameter name."""
    spec = GateLibrary.get_gate(name, len(qubits))
    if params is None:
        params = ()
    if isinstance(params, Mapping):
        missing = [p for p in spec.param_names if p not in params]
        extra = [p for p in params if p not in spec.param_names]
        if missing or extra:
            raise InvalidParameterError(
                name, dict(params),
                f"Gate {name} expects parameters {list(spec.param_names)}, "
                f"got {sorted(params)}"
            )
        params = [params[p] for p in spec.param_names]
    values = tuple(params) if isinstance(params, (list, tuple)) else (params,)
    spec.validate_params(values)
    return values


def parse_instruction(item: Mapping[str, Any]) -> Instruction:
    """
    Parse one instruction dictionary.

    Recognized shapes:
        {"name": "h", "qubits": [0]}
        {"name": "rx", "qubits": [0], "params": [0.5]}   (or {"theta": 0.5})
        {"name": "measure", "qubits": [0], "clbits": [0]}
        {"name": "barrier", "qubits": [0, 1]}
        {"name": "c_if", "clbits": [0], "value": 1, "body": [...]}

    Raises:
        UnsupportedGateError: Unknown gate name or arity
        InvalidParameterError: Bad gate parameters
        MalformedConditionalError: A conditional body holds a non-gate
        ValueError: Malformed dictionary
    """
    if "name" not in item:
        raise ValueError(f"Instruction is missing 'name': {item!r}")
    name = str(item["name"]).lower()
    qubits = tuple(item.get("qubits", ()))
    clbits = tuple(item.get("clbits", ()))

    if name == MEASURE:
        if len(qubits) != 1 or len(clbits) != 1:
            raise ValueError(f"measure needs one qubit and one clbit, got {item!r}")
        return Measure(int(qubits[0]), int(clbits[0]))

    if name == BARRIER:
        return Barrier(qubits)

    if name == CONDITIONAL:
        if len(clbits) != 1:
            raise MalformedConditionalError(
                message=f"c_if must read exactly one classical bit, got {list(clbits)}"
            )
        body = [parse_instruction(op) for op in item.get("body", ())]
        return Conditional(int(clbits[0]), int(item.get("value", 1)), tuple(body))

    return Gate(name, qubits, _gate_params(name, qubits, item.get("params")))


def parse_instruction_list(
    items: Sequence[Mapping[str, Any]],
    num_qubits: int,
    num_clbits: int = 0
) -> Circuit:
    """
    Parse a list of instruction dictionaries into a Circuit.

    Args:
        items: Instruction dictionaries (see parse_instruction)
        num_qubits: Number of qubits
        num_clbits: Number of classical bits

    Returns:
        Circuit
    """
    return Circuit(num_qubits, num_clbits, tuple(parse_instruction(item) for item in items))


def instruction_to_dict(op: Instruction) -> Dict[str, Any]:
    if isinstance(op, Gate):
        return {"name": op.label, "qubits": list(op.qubits), "params": list(op.params)}
    if isinstance(op, Measure):
        return {"name": MEASURE, "qubits": [op.qubit], "clbits": [op.clbit]}
    if isinstance(op, Barrier):
        return {"name": BARRIER, "qubits": list(op.qubits)}
    if isinstance(op, Conditional):
        return {
            "name": CONDITIONAL,
            "clbits": [op.clbit],
            "value": op.value,
            "body": [instruction_to_dict(g) for g in op.body],
        }
    raise TypeError(f"Unknown instruction type: {type(op).__name__}")


def circuit_to_instruction_list(circuit: Circuit) -> List[Dict[str, Any]]:
    """
    Convert a Circuit back to the list-of-dicts format.

    Useful for serialization.
    """
    return [instruction_to_dict(op) for op in circuit.instructions]


def circuit_to_dict(circuit: Circuit) -> Dict[str, Any]:
    return {
        "num_qubits": circuit.num_qubits,
        "num_clbits": circuit.num_clbits,
        "instructions": circuit_to_instruction_list(circuit),
    }


def circuit_from_dict(data: Mapping[str, Any]) -> Circuit:
    return parse_instruction_list(
        data.get("instructions", ()), data["num_qubits"], data.get("num_clbits", 0)
    )


def _qiskit_params(name: str, op) -> Tuple[float, ...]:
    values = []
    for param in op.params:
        try:
            values.append(float(param))
        except TypeError:
            # Unbound Parameter / ParameterExpression
            raise InvalidParameterError(
                name, list(op.params),
                f"Gate {name} has unbound parameter {param}; bind it before parsing"
            ) from None
    return tuple(values)


def _qiskit_gate(op, qubits: Tuple[int, ...]) -> Gate:
    name = op.name.lower()
    if name not in QISKIT_GATE_MAP:
        raise UnsupportedGateError(op.name, qubits)
    kind = QISKIT_GATE_MAP[name]
    params = _qiskit_params(kind.value, op)
    GateLibrary.get_gate(kind, len(qubits)).validate_params(params)
    return Gate(kind.value, qubits, params)


def _qiskit_condition(circuit, condition) -> Tuple[int, int]:
    """Turn a Qiskit (Clbit or ClassicalRegister, value) condition into (clbit, value)."""
    from qiskit.circuit import ClassicalRegister, Clbit

    if not isinstance(condition, tuple) or len(condition) != 2:
        raise MalformedConditionalError(
            message=f"Only single-bit conditions are supported, got {condition!r}"
        )
    target, value = condition
    value = int(value)

    if isinstance(target, ClassicalRegister):
        if target.size != 1:
            raise MalformedConditionalError(
                message=f"Condition on {target.size}-bit register {target.name!r}; "
                        f"only single-bit conditions are supported"
            )
        target = target[0]
    if not isinstance(target, Clbit):
        raise MalformedConditionalError(
            message=f"Unsupported condition target {target!r}"
        )

    clbit = circuit.find_bit(target).index
    if value not in (0, 1):
        raise MalformedConditionalError(
            clbit, value, f"Condition on classical bit {clbit} must test 0 or 1, got {value}"
        )
    return clbit, value


def _qiskit_if_else(circuit, op, qubits: Tuple[int, ...]) -> Conditional:
    clbit, value = _qiskit_condition(circuit, op.condition)

    true_body = op.blocks[0]
    if len(op.blocks) > 1 and op.blocks[1] is not None and len(op.blocks[1].data) > 0:
        raise MalformedConditionalError(
            clbit, "else", f"Conditional on classical bit {clbit} has an else branch"
        )

    body = []
    for inner in true_body.data:
        inner_op = inner.operation
        if inner_op.name == BARRIER:
            continue
        # Body qubits map positionally onto the if_else instruction's qubits
        inner_qubits = tuple(qubits[true_body.find_bit(q).index] for q in inner.qubits)
        if inner_op.name in (MEASURE, "if_else") or inner.clbits:
            raise MalformedConditionalError(clbit, inner_op.name)
        body.append(_qiskit_gate(inner_op, inner_qubits))

    return Conditional(clbit, value, tuple(body))


def parse_qiskit_circuit(circuit) -> Circuit:
    """
    Parse a Qiskit QuantumCircuit into a qxsim Circuit.

    Supports the gates in QISKIT_GATE_MAP, measure, barrier, if_test blocks
    without an else branch, and legacy c_if conditions, where the condition
    is a single classical bit or a one-bit register.

    Args:
        circuit: A qiskit.QuantumCircuit object

    Returns:
        Circuit

    Raises:
        UnsupportedGateError: Operation has no qxsim equivalent
        InvalidParameterError: Unbound or invalid gate parameters
        MalformedConditionalError: Multi-bit condition, else branch, or
                                   non-gate in a conditional body
    """
    try:
        import qiskit  # noqa: F401
    except ImportError:
        raise ImportError("Qiskit is required for circuit parsing. "
                          "Install with: pip install qiskit")

    instructions: List[Instruction] = []

    for instruction in circuit.data:
        op = instruction.operation
        qubits = tuple(circuit.find_bit(q).index for q in instruction.qubits)
        clbits = tuple(circuit.find_bit(c).index for c in instruction.clbits)
        name = op.name.lower()

        if name == MEASURE:
            instructions.append(Measure(qubits[0], clbits[0]))
            continue

        if name == BARRIER:
            instructions.append(Barrier(qubits))
            continue

        if name == "if_else":
            instructions.append(_qiskit_if_else(circuit, op, qubits))
            continue

        gate = _qiskit_gate(op, qubits)
        # Legacy Instruction.c_if (removed in Qiskit 2.0)
        legacy_condition = getattr(op, "condition", None)
        if legacy_condition is not None:
            clbit, value = _qiskit_condition(circuit, legacy_condition)
            instructions.append(Conditional(clbit, value, (gate,)))
        else:
            instructions.append(gate)

    return Circuit(circuit.num_qubits, circuit.num_clbits, tuple(instructions))
