"""Gate type enumeration and GateDefinition dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class GateType(str, Enum):
    """Closed set of gates the editor can place."""
    H = "H"
    X = "X"
    Y = "Y"
    Z = "Z"
    CNOT = "CNOT"
    SWAP = "SWAP"
    RX = "RX"
    RY = "RY"
    RZ = "RZ"
    PHASE = "PHASE"
    MEASURE = "MEASURE"

    @classmethod
    def parse(cls, value) -> GateType | None:
        """Return the matching GateType, or None for unknown values."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class GateKind(Enum):
    SINGLE = "single"
    CONTROLLED = "controlled"
    MULTI = "multi"
    MEASUREMENT = "measurement"


@dataclass(frozen=True)
class GateDefinition:
    """Immutable definition of a placeable gate."""
    gate_type: GateType
    display_name: str
    kind: GateKind
    num_qubits: int
    param_names: tuple[str, ...]
    description: str = ""
    num_controls: int = 0

    @property
    def name(self) -> str:
        return self.gate_type.value

    @property
    def is_parameterized(self) -> bool:
        return bool(self.param_names)

    def default_parameters(self) -> dict[str, float]:
        """Zero-valued parameters for a freshly placed gate."""
        return {p: 0.0 for p in self.param_names}
