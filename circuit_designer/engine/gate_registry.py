"""Gate registry using the Singleton pattern."""

from __future__ import annotations

from .gates import GateDefinition, GateKind, GateType


class GateRegistry:
    """Singleton registry mapping gate types to GateDefinition objects."""

    _instance: GateRegistry | None = None

    def __init__(self):
        self._gates: dict[GateType, GateDefinition] = {}

    @classmethod
    def instance(cls) -> GateRegistry:
        if cls._instance is None:
            cls._instance = cls()
            cls._instance._register_builtins()
        return cls._instance

    @classmethod
    def reset(cls):
        """Reset the singleton (for testing)."""
        cls._instance = None

    def _register_builtins(self):
        # Single-qubit fixed gates
        self.register(GateDefinition(
            gate_type=GateType.H, display_name="Hadamard", kind=GateKind.SINGLE,
            num_qubits=1, param_names=(),
            description="Hadamard gate creates superposition states"))

        self.register(GateDefinition(
            gate_type=GateType.X, display_name="Pauli-X", kind=GateKind.SINGLE,
            num_qubits=1, param_names=(),
            description="Pauli-X gate (quantum NOT) flips the qubit state"))

        self.register(GateDefinition(
            gate_type=GateType.Y, display_name="Pauli-Y", kind=GateKind.SINGLE,
            num_qubits=1, param_names=(),
            description="Pauli-Y gate performs Y-axis rotation"))

        self.register(GateDefinition(
            gate_type=GateType.Z, display_name="Pauli-Z", kind=GateKind.SINGLE,
            num_qubits=1, param_names=(),
            description="Pauli-Z gate performs Z-axis rotation"))

        # Single-qubit parameterized gates
        self.register(GateDefinition(
            gate_type=GateType.RX, display_name="Rotation-X", kind=GateKind.SINGLE,
            num_qubits=1, param_names=("angle",),
            description="Rotation around X-axis by specified angle"))

        self.register(GateDefinition(
            gate_type=GateType.RY, display_name="Rotation-Y", kind=GateKind.SINGLE,
            num_qubits=1, param_names=("angle",),
            description="Rotation around Y-axis by specified angle"))

        self.register(GateDefinition(
            gate_type=GateType.RZ, display_name="Rotation-Z", kind=GateKind.SINGLE,
            num_qubits=1, param_names=("angle",),
            description="Rotation around Z-axis by specified angle"))

        self.register(GateDefinition(
            gate_type=GateType.PHASE, display_name="Phase", kind=GateKind.SINGLE,
            num_qubits=1, param_names=("angle",),
            description="Phase shift gate"))

        # Multi-qubit gates
        self.register(GateDefinition(
            gate_type=GateType.CNOT, display_name="Controlled-NOT",
            kind=GateKind.CONTROLLED, num_qubits=2, param_names=(),
            description="Controlled NOT gate with control and target qubits",
            num_controls=1))

        self.register(GateDefinition(
            gate_type=GateType.SWAP, display_name="SWAP", kind=GateKind.MULTI,
            num_qubits=2, param_names=(),
            description="SWAP gate exchanges two qubit states"))

        # Measurement
        self.register(GateDefinition(
            gate_type=GateType.MEASURE, display_name="Measure",
            kind=GateKind.MEASUREMENT, num_qubits=1, param_names=(),
            description="Measurement gate collapses the quantum state"))

    def register(self, gate_def: GateDefinition):
        self._gates[gate_def.gate_type] = gate_def

    def get(self, gate_type: GateType | str) -> GateDefinition:
        parsed = GateType.parse(gate_type)
        if parsed is None or parsed not in self._gates:
            raise KeyError(f"Gate '{gate_type}' not found in registry")
        return self._gates[parsed]

    def all_gates(self) -> list[GateDefinition]:
        return list(self._gates.values())

    def single_qubit_gates(self) -> list[GateDefinition]:
        return [g for g in self._gates.values()
                if g.kind == GateKind.SINGLE]

    def multi_qubit_gates(self) -> list[GateDefinition]:
        return [g for g in self._gates.values()
                if g.kind in (GateKind.CONTROLLED, GateKind.MULTI)]

    def parameterized_gates(self) -> list[GateDefinition]:
        return [g for g in self._gates.values() if g.is_parameterized]

    def gate_names(self) -> list[str]:
        return [t.value for t in self._gates]
