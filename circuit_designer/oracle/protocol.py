"""Oracle interface and analysis result type."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict

from circuit_designer.core.errors import OracleError
from circuit_designer.engine.circuit import Circuit

logger = logging.getLogger(__name__)


@dataclass
class CircuitAnalysis:
    """Structured analysis of a circuit.

    Attributes:
        description: What the circuit does.
        complexity: 'Simple', 'Medium', 'Complex' or 'Unknown'.
        estimated_execution_time: Free-form estimate.
        potential_applications: Short application names.
        optimization_suggestions: Short improvement hints.
    """
    description: str = "No description available"
    complexity: str = "Unknown"
    estimated_execution_time: str = "Unknown"
    potential_applications: list[str] = field(
        default_factory=lambda: ["Unknown"])
    optimization_suggestions: list[str] = field(
        default_factory=lambda: ["No suggestions"])

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_text(cls, text: str) -> CircuitAnalysis:
        """Parse 'Label: value' lines of an analysis response."""
        analysis = cls()
        for line in text.splitlines():
            label, sep, value = line.partition(":")
            if not sep:
                continue
            label = label.strip(" -*").lower()
            value = value.strip()
            if not value:
                continue
            if label == "description":
                analysis.description = value
            elif label == "complexity":
                analysis.complexity = value
            elif label == "estimated execution time":
                analysis.estimated_execution_time = value
            elif label == "potential applications":
                analysis.potential_applications = _split_list(value)
            elif label == "optimization suggestions":
                analysis.optimization_suggestions = _split_list(value)
        return analysis


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class CircuitOracle(ABC):
    """A generative service that proposes and analyses circuits.

    Implementations raise ``OracleError`` for any failure.
    """

    @abstractmethod
    def request_generation(self, prompt: str,
                           current_circuit: Circuit | None = None):
        """Return a raw circuit payload (text or mapping) for ``prompt``.

        With ``current_circuit`` the prompt asks for a modified version of
        that circuit.
        """

    @abstractmethod
    def request_analysis(self, circuit: Circuit) -> CircuitAnalysis:
        ...

    @abstractmethod
    def request_suggestions(self, circuit: Circuit) -> list[str]:
        ...


class FallbackOracle(CircuitOracle):
    """Use ``primary`` and fall back to ``secondary`` when it fails."""

    def __init__(self, primary: CircuitOracle, secondary: CircuitOracle):
        self._primary = primary
        self._secondary = secondary

    def request_generation(self, prompt: str,
                           current_circuit: Circuit | None = None):
        try:
            return self._primary.request_generation(prompt, current_circuit)
        except OracleError as exc:
            logger.warning("Primary oracle generation failed: %s", exc)
            return self._secondary.request_generation(prompt, current_circuit)

    def request_analysis(self, circuit: Circuit) -> CircuitAnalysis:
        try:
            return self._primary.request_analysis(circuit)
        except OracleError as exc:
            logger.warning("Primary oracle analysis failed: %s", exc)
            return self._secondary.request_analysis(circuit)

    def request_suggestions(self, circuit: Circuit) -> list[str]:
        try:
            return self._primary.request_suggestions(circuit)
        except OracleError as exc:
            logger.warning("Primary oracle suggestions failed: %s", exc)
            return self._secondary.request_suggestions(circuit)
