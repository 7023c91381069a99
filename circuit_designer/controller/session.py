"""Editing session: the single entry point for circuit edits.

Every edit computes a new snapshot, validates it when it comes from
outside (import or the oracle), installs it as the current circuit and
records it in the history exactly once.  No-op edits record nothing.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import replace

from PyQt6.QtCore import QObject, pyqtSignal

from circuit_designer.core.config import AppConfig
from circuit_designer.core.errors import PayloadError
from circuit_designer.engine.circuit import MAX_QUBITS, Circuit, new_id
from circuit_designer.engine.gates import GateType
from circuit_designer.engine.history import HistoryManager
from circuit_designer.engine.placement import GridGeometry, PlacementEngine
from circuit_designer.engine.templates import CircuitTemplate
from circuit_designer.engine.validation import CircuitValidator, as_number, clamp

logger = logging.getLogger(__name__)


class EditingSession(QObject):
    """Owns the current circuit and its undo history.

    Emits circuit_changed whenever the current circuit is replaced.
    """

    circuit_changed = pyqtSignal(object)     # Circuit
    history_changed = pyqtSignal(bool, bool)  # (can_undo, can_redo)
    generation_failed = pyqtSignal(str)

    def __init__(
        self,
        circuit: Circuit | None = None,
        config: AppConfig | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._config = config or AppConfig()
        self._max_qubits = min(self._config.max_qubits, MAX_QUBITS)
        self._placement = PlacementEngine(GridGeometry(
            self._config.cell_width, self._config.cell_height))
        self._circuit = circuit or self._empty_circuit()
        self._history = HistoryManager(self._circuit)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def circuit(self) -> Circuit:
        """The current circuit snapshot."""
        return self._circuit

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def placement(self) -> PlacementEngine:
        return self._placement

    def depth(self) -> int:
        return self._circuit.depth()

    def gate_type_count(self) -> int:
        return self._circuit.gate_type_count()

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _empty_circuit(self) -> Circuit:
        qubits = clamp(self._config.default_qubits, 1, self._max_qubits)
        return Circuit(name="New Circuit", qubits=qubits)

    def _commit(self, new_circuit: Circuit | None) -> Circuit | None:
        if new_circuit is None:
            return None
        self._history.record(new_circuit)
        self._install(new_circuit)
        return new_circuit

    def _install(self, circuit: Circuit) -> None:
        self._circuit = circuit
        self.circuit_changed.emit(circuit)
        self.history_changed.emit(self.can_undo(), self.can_redo())

    # ------------------------------------------------------------------
    # Gate edits
    # ------------------------------------------------------------------

    def add_gate(
        self,
        gate_type: GateType | str,
        qubit: int,
        time: int,
        control_qubit: int | None = None,
    ) -> Circuit | None:
        """Place a gate on a free cell; occupied cells are left alone.

        Args:
            gate_type: Gate to place (GateType or its name).
            qubit: Target wire.
            time: Time column.
            control_qubit: Optional control wire (CNOT).

        Returns:
            The new circuit, or None when nothing changed.
        """
        return self._commit(self._placement.add_gate(
            self._circuit, gate_type, qubit, time, control_qubit))

    def place_gate_at(self, gate_type: GateType | str, x: float,
                      y: float) -> Circuit | None:
        """Place a gate at a canvas pixel offset."""
        return self._commit(self._placement.place_at_pixel(
            self._circuit, gate_type, x, y))

    def remove_gate(self, gate_id: str) -> Circuit | None:
        return self._commit(self._placement.remove_gate(self._circuit, gate_id))

    def move_gate(self, gate_id: str, qubit: int, time: int) -> Circuit | None:
        return self._commit(
            self._placement.move_gate(self._circuit, gate_id, qubit, time))

    def update_gate_parameters(self, gate_id: str,
                               params: Mapping[str, float]) -> Circuit | None:
        return self._commit(self._placement.update_gate_parameters(
            self._circuit, gate_id, params))

    def set_control_qubit(self, gate_id: str,
                          control_qubit: int | None) -> Circuit | None:
        return self._commit(self._placement.set_control_qubit(
            self._circuit, gate_id, control_qubit))

    # ------------------------------------------------------------------
    # Circuit edits
    # ------------------------------------------------------------------

    def set_qubit_count(self, count: int) -> Circuit | None:
        """Set the number of qubits (clamped to 1..max).

        Gates and measurements touching removed wires are deleted.  A
        non-numeric or non-finite count leaves the circuit unchanged.
        """
        number = as_number(count)
        if number is None:
            logger.warning("Ignoring invalid qubit count %r", count)
            return None
        count = clamp(math.floor(number), 1, self._max_qubits)
        if count == self._circuit.qubits:
            return None
        gates = [g for g in self._circuit.gates
                 if all(q < count for q in g.wires())]
        measurements = [m for m in self._circuit.measurements
                        if m.qubit < count]
        return self._commit(replace(
            self._circuit,
            qubits=count,
            gates=tuple(gates),
            measurements=tuple(measurements),
        ))

    def rename(self, name: str) -> Circuit | None:
        name = name.strip()
        if not name or name == self._circuit.name:
            return None
        return self._commit(replace(self._circuit, name=name))

    def clear(self) -> Circuit:
        """Remove all gates and measurements, keeping name and qubit count."""
        return self._commit(replace(self._circuit, gates=(), measurements=()))

    def duplicate(self) -> Circuit:
        """Replace the current circuit with a renamed copy using fresh ids."""
        source = self._circuit
        copy = replace(
            source,
            id=new_id("circuit"),
            name=f"{source.name} (Copy)",
            gates=tuple(replace(g, id=new_id("gate")) for g in source.gates),
            measurements=tuple(replace(m, id=new_id("measurement"))
                               for m in source.measurements),
        )
        return self._commit(copy)

    def new_circuit(self) -> Circuit:
        return self._commit(self._empty_circuit())

    # ------------------------------------------------------------------
    # External payloads
    # ------------------------------------------------------------------

    def import_circuit(self, raw) -> Circuit:
        """Validate and install an imported payload.

        Raises:
            PayloadError: if the payload is not a circuit-shaped object.
        """
        validator = CircuitValidator(default_name="Imported Circuit",
                                     max_qubits=self._max_qubits)
        circuit, report = validator.validate_with_report(raw)
        if not report.is_clean:
            logger.info("Imported circuit repaired: %s", report)
        return self._commit(circuit)

    def install_generated_circuit(self, raw) -> Circuit:
        """Validate and install an oracle payload.

        Unparseable payloads install the default circuit instead and emit
        generation_failed.
        """
        validator = CircuitValidator(default_name="Generated Circuit",
                                     max_qubits=self._max_qubits)
        try:
            circuit, report = validator.validate_with_report(raw)
        except PayloadError as exc:
            return self.install_fallback_circuit(str(exc))
        if not report.is_clean:
            logger.info("Generated circuit repaired: %s", report)
        return self._commit(circuit)

    def install_fallback_circuit(self, reason: str) -> Circuit:
        """Install the default circuit after a failed generation."""
        logger.warning("Generation failed, using default circuit: %s", reason)
        self.generation_failed.emit(reason)
        return self._commit(CircuitTemplate.default_circuit())

    def export_circuit(self) -> dict:
        return self._circuit.to_dict()

    # ------------------------------------------------------------------
    # Undo / Redo
    # ------------------------------------------------------------------

    def undo(self) -> Circuit | None:
        """Step back one snapshot; None at the start of history."""
        circuit = self._history.undo()
        if circuit is not None:
            self._install(circuit)
        return circuit

    def redo(self) -> Circuit | None:
        """Step forward one snapshot; None at the end of history."""
        circuit = self._history.redo()
        if circuit is not None:
            self._install(circuit)
        return circuit
