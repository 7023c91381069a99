"""Built-in circuit templates.

``default_circuit`` is the circuit installed when a generated payload cannot
be parsed at all.  The remaining templates back the offline oracle.
"""

from __future__ import annotations

import math

from .circuit import Circuit, Gate, new_id
from .gates import GateType


def _gate(gate_type: GateType, qubit: int, time: int,
          control: int | None = None, **params: float) -> Gate:
    return Gate(
        id=new_id("gate"),
        type=gate_type,
        qubit=qubit,
        time=time,
        parameters=dict(params),
        control_qubit=control,
    )


class CircuitTemplate:
    """Factory for common circuits."""

    @staticmethod
    def default_circuit() -> Circuit:
        """Fallback: H on q0 then CNOT onto q1 controlled by q0."""
        return Circuit(
            name="Default Circuit",
            qubits=2,
            gates=[
                _gate(GateType.H, 0, 0),
                _gate(GateType.CNOT, 1, 1, control=0),
            ],
        )

    @staticmethod
    def bell_state() -> Circuit:
        """Bell state |Phi+> = (|00> + |11>) / sqrt(2)."""
        return Circuit(
            name="Bell State Circuit",
            qubits=2,
            gates=[
                _gate(GateType.H, 0, 0),
                _gate(GateType.CNOT, 1, 1, control=0),
            ],
        )

    @staticmethod
    def superposition() -> Circuit:
        return Circuit(
            name="Superposition Circuit",
            qubits=1,
            gates=[_gate(GateType.H, 0, 0)],
        )

    @staticmethod
    def quantum_fourier_transform() -> Circuit:
        """Three-qubit QFT sketch using phase shifts and CNOTs."""
        return Circuit(
            name="Quantum Fourier Transform",
            qubits=3,
            gates=[
                _gate(GateType.H, 0, 0),
                _gate(GateType.PHASE, 1, 1, angle=math.pi / 2),
                _gate(GateType.CNOT, 1, 2, control=0),
                _gate(GateType.H, 1, 3),
                _gate(GateType.PHASE, 2, 4, angle=math.pi / 4),
                _gate(GateType.CNOT, 2, 5, control=0),
                _gate(GateType.H, 2, 6),
            ],
        )

    @staticmethod
    def grover_search() -> Circuit:
        """Two-qubit Grover search marking |11>."""
        gates = [
            _gate(GateType.H, 0, 0),
            _gate(GateType.H, 1, 0),
            _gate(GateType.X, 0, 1),
            _gate(GateType.X, 1, 1),
            _gate(GateType.H, 1, 2),
            _gate(GateType.CNOT, 1, 3, control=0),
            _gate(GateType.H, 1, 4),
            _gate(GateType.X, 0, 5),
            _gate(GateType.X, 1, 5),
            _gate(GateType.H, 0, 6),
            _gate(GateType.H, 1, 6),
        ]
        return Circuit(name="Grover Search Algorithm", qubits=2, gates=gates)

    @staticmethod
    def generic() -> Circuit:
        return Circuit(
            name="Generated Circuit",
            qubits=2,
            gates=[
                _gate(GateType.H, 0, 0),
                _gate(GateType.X, 1, 0),
            ],
        )

    @staticmethod
    def for_prompt(prompt: str) -> Circuit:
        """Pick a template by keywords in a natural-language prompt."""
        text = prompt.lower()
        if "bell" in text or "entanglement" in text:
            return CircuitTemplate.bell_state()
        if "superposition" in text or "hadamard" in text:
            return CircuitTemplate.superposition()
        if "quantum fourier" in text or "qft" in text:
            return CircuitTemplate.quantum_fourier_transform()
        if "grover" in text or "search" in text:
            return CircuitTemplate.grover_search()
        return CircuitTemplate.generic()
