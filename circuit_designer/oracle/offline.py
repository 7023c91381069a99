"""Offline oracle backed by built-in templates.

Used when no API key is configured or the remote oracle fails.  It
recognizes a handful of keywords and otherwise returns a generic circuit.
"""

from __future__ import annotations

from circuit_designer.engine.circuit import Circuit
from circuit_designer.engine.gates import GateType
from circuit_designer.engine.templates import CircuitTemplate

from .protocol import CircuitAnalysis, CircuitOracle

# (keywords, gate type, qubit, control) appended in modify mode
_MODIFY_RULES = (
    (("add hadamard", "add h gate"), GateType.H, 0, None),
    (("add cnot", "add controlled"), GateType.CNOT, 1, 0),
    (("measure", "add measurement"), GateType.MEASURE, 0, None),
)


class TemplateOracle(CircuitOracle):
    """Keyword-driven oracle that never fails."""

    def request_generation(self, prompt: str,
                           current_circuit: Circuit | None = None) -> dict:
        if current_circuit is None:
            return CircuitTemplate.for_prompt(prompt).to_dict()

        data = current_circuit.to_dict()
        text = prompt.lower()
        for keywords, gate_type, qubit, control in _MODIFY_RULES:
            if any(k in text for k in keywords):
                gate = {
                    "type": gate_type.value,
                    "qubit": qubit,
                    "time": len(data["gates"]),
                    "parameters": {},
                }
                if control is not None:
                    gate["controlQubit"] = control
                data["gates"].append(gate)
                break
        return data

    def request_analysis(self, circuit: Circuit) -> CircuitAnalysis:
        count = circuit.gate_count()
        if count <= 5:
            complexity = "Simple"
        elif count <= 15:
            complexity = "Medium"
        else:
            complexity = "Complex"

        counts = circuit.gate_counts()
        entangling = counts.get(GateType.CNOT, 0) + counts.get(GateType.SWAP, 0)
        applications = ["Education"]
        if entangling:
            applications.insert(0, "Entanglement generation")
        if counts.get(GateType.H):
            applications.append("Random number generation")

        suggestions = []
        if not counts.get(GateType.MEASURE):
            suggestions.append("Add measurement gates to read out results")
        if circuit.depth() > circuit.gate_count():
            suggestions.append("Compact idle time steps to reduce depth")
        if not suggestions:
            suggestions.append("No suggestions")

        return CircuitAnalysis(
            description=(
                f"{circuit.name}: {count} gates on {circuit.qubits} qubits "
                f"with {entangling} entangling operations"
            ),
            complexity=complexity,
            estimated_execution_time=f"{circuit.depth()} time steps",
            potential_applications=applications,
            optimization_suggestions=suggestions,
        )

    def request_suggestions(self, circuit: Circuit) -> list[str]:
        return self.request_analysis(circuit).optimization_suggestions[:3]
