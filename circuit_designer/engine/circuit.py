"""Quantum circuit data model.

Gates, measurements and circuits are immutable snapshots.  Every edit
produces a new ``Circuit`` via ``dataclasses.replace`` so that older
snapshots kept by the history stay untouched.
"""

from __future__ import annotations

import uuid
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from .gates import GateType

MAX_QUBITS = 10
DEFAULT_QUBITS = 2
MEASUREMENT_BASES = ("computational", "bell", "custom")


def new_id(prefix: str) -> str:
    """Generate an opaque identifier such as ``gate-3f9c0a1b2d4e``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Gate:
    """A gate placed on the grid at (qubit, time)."""
    id: str
    type: GateType
    qubit: int
    time: int
    parameters: Mapping[str, float] = field(default_factory=dict)
    control_qubit: int | None = None

    def __post_init__(self):
        # Read-only copy so snapshots never share a mutable dict
        object.__setattr__(
            self, "parameters", MappingProxyType(dict(self.parameters)))

    def __hash__(self) -> int:
        return hash((self.id, self.signature()))

    @property
    def cell(self) -> tuple[int, int]:
        return self.qubit, self.time

    def parameter(self, name: str) -> float:
        """Parameter value, absent parameters read as 0."""
        return self.parameters.get(name, 0.0)

    def wires(self) -> tuple[int, ...]:
        if self.control_qubit is None:
            return (self.qubit,)
        return (self.qubit, self.control_qubit)

    def signature(self) -> tuple:
        """Identity-free description used to compare gate multisets."""
        return (
            self.type.value,
            self.qubit,
            self.time,
            tuple(sorted(self.parameters.items())),
            self.control_qubit,
        )

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "type": self.type.value,
            "qubit": self.qubit,
            "time": self.time,
            "parameters": dict(self.parameters),
        }
        if self.control_qubit is not None:
            d["controlQubit"] = self.control_qubit
        return d


@dataclass(frozen=True)
class Measurement:
    """A measurement record; tracked but not interpreted by the editor."""
    id: str
    qubit: int
    time: int
    basis: str = "computational"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "qubit": self.qubit,
            "time": self.time,
            "basis": self.basis,
        }


@dataclass(frozen=True)
class Circuit:
    """A complete, immutable circuit snapshot."""
    id: str = field(default_factory=lambda: new_id("circuit"))
    name: str = "New Circuit"
    qubits: int = DEFAULT_QUBITS
    gates: tuple[Gate, ...] = ()
    measurements: tuple[Measurement, ...] = ()
    description: str = ""

    def __post_init__(self):
        # Accept lists from callers but store tuples
        object.__setattr__(self, "gates", tuple(self.gates))
        object.__setattr__(self, "measurements", tuple(self.measurements))

    # ---- Lookup ------------------------------------------------------------

    def get_gate(self, gate_id: str) -> Gate | None:
        for gate in self.gates:
            if gate.id == gate_id:
                return gate
        return None

    def gate_ids(self) -> set[str]:
        return {g.id for g in self.gates}

    # ---- Derived queries ---------------------------------------------------

    def depth(self) -> int:
        """Number of time columns in use: max(time) + 1, or 0 when empty."""
        if not self.gates:
            return 0
        return max(g.time for g in self.gates) + 1

    def gate_type_count(self) -> int:
        """Number of distinct gate types present."""
        return len({g.type for g in self.gates})

    def gate_count(self) -> int:
        return len(self.gates)

    def gate_counts(self) -> dict[GateType, int]:
        counts: dict[GateType, int] = {}
        for g in self.gates:
            counts[g.type] = counts.get(g.type, 0) + 1
        return counts

    def gate_multiset(self) -> Counter:
        return Counter(g.signature() for g in self.gates)

    def sorted_gates(self) -> list[Gate]:
        """Gates in canonical (time, qubit) order."""
        return sorted(self.gates, key=lambda g: (g.time, g.qubit))

    def violations(self) -> list[str]:
        """Describe every broken model invariant (empty when well-formed)."""
        problems: list[str] = []
        if not _is_int(self.qubits):
            return [f"qubits={self.qubits!r} is not an integer"]
        if not 1 <= self.qubits <= MAX_QUBITS:
            problems.append(f"qubits={self.qubits} outside [1, {MAX_QUBITS}]")
        seen: set[str] = set()
        for g in self.gates:
            if g.id in seen:
                problems.append(f"duplicate gate id {g.id}")
            seen.add(g.id)
            if not all(_is_int(v) for v in (*g.wires(), g.time)):
                problems.append(f"gate {g.id} has non-integer coordinates")
                continue
            for q in g.wires():
                if not 0 <= q < self.qubits:
                    problems.append(f"gate {g.id} wire {q} out of range")
            if g.time < 0:
                problems.append(f"gate {g.id} has negative time {g.time}")
        return problems

    # ---- Copy helpers ------------------------------------------------------

    def with_gates(self, gates) -> Circuit:
        return replace(self, gates=tuple(gates))

    def replace_gate(self, gate: Gate) -> Circuit:
        return self.with_gates(gate if g.id == gate.id else g for g in self.gates)

    # ---- Text summary ------------------------------------------------------

    def describe(self) -> str:
        """Plain-text summary of the circuit, used in oracle prompts."""
        summary = ", ".join(
            f"{count} {gate_type.value}"
            for gate_type, count in self.gate_counts().items()
        )
        lines = [
            f"Circuit: {self.name}",
            f"Qubits: {self.qubits}",
            f"Total Gates: {self.gate_count()}",
            f"Gate Types: {summary}",
            f"Circuit Depth: {self.depth()}",
            "",
            "Gate Sequence:",
        ]
        for g in self.sorted_gates():
            line = f"Time {g.time}: {g.type.value} on qubit {g.qubit}"
            if g.control_qubit is not None:
                line += f" (control: {g.control_qubit})"
            angle = g.parameter("angle")
            if angle:
                line += f" (angle: {angle})"
            lines.append(line)
        return "\n".join(lines)

    # ---- Serialization -----------------------------------------------------

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "qubits": self.qubits,
            "gates": [g.to_dict() for g in self.sorted_gates()],
            "measurements": [m.to_dict() for m in self.measurements],
        }
        if self.description:
            d["description"] = self.description
        return d
