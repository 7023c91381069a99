"""Grid placement: pixel-to-cell mapping, occupancy and gate edits.

All operations are pure.  Edits take a ``Circuit`` and return the edited
snapshot, or ``None`` when the request is a no-op (occupied cell, unknown
gate id, click outside the grid).
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, replace

from PyQt6.QtCore import QPointF

from .circuit import Circuit, Gate, new_id
from .gate_registry import GateRegistry
from .gates import GateType
from .validation import as_number, clamp

CELL_SIZE = 80


@dataclass(frozen=True)
class GridGeometry:
    """Pixel size of one (qubit, time) cell on the canvas."""
    cell_width: float = CELL_SIZE
    cell_height: float = CELL_SIZE

    def cell_at(self, x: float, y: float,
                num_qubits: int) -> tuple[int, int] | None:
        """Convert a canvas offset to ``(qubit, time)``.

        Returns None for offsets outside ``[0, num_qubits) x [0, inf)``.
        """
        time = math.floor(x / self.cell_width)
        qubit = math.floor(y / self.cell_height)
        if time < 0 or not 0 <= qubit < num_qubits:
            return None
        return qubit, time

    def cell_at_point(self, pos: QPointF,
                      num_qubits: int) -> tuple[int, int] | None:
        return self.cell_at(pos.x(), pos.y(), num_qubits)

    def cell_origin(self, qubit: int, time: int) -> QPointF:
        """Top-left canvas position of a cell."""
        return QPointF(time * self.cell_width, qubit * self.cell_height)


class PlacementEngine:
    """Translates grid interaction into circuit edits."""

    def __init__(self, geometry: GridGeometry | None = None):
        self.geometry = geometry or GridGeometry()

    # ---- Queries -----------------------------------------------------------

    @staticmethod
    def gate_at(circuit: Circuit, qubit: int, time: int) -> Gate | None:
        for gate in circuit.gates:
            if gate.qubit == qubit and gate.time == time:
                return gate
        return None

    @staticmethod
    def is_occupied(circuit: Circuit, qubit: int, time: int) -> bool:
        return PlacementEngine.gate_at(circuit, qubit, time) is not None

    # ---- Edits -------------------------------------------------------------

    def add_gate(
        self,
        circuit: Circuit,
        gate_type: GateType | str,
        qubit: int,
        time: int,
        control_qubit: int | None = None,
    ) -> Circuit | None:
        """Place a new gate on a free cell.

        Args:
            circuit: Snapshot to edit.
            gate_type: Gate to place (GateType or its name).
            qubit: Target wire.
            time: Time column.
            control_qubit: Control wire for controlled gates.

        Returns:
            The edited circuit, or None if the cell is occupied or lies
            outside the grid.

        Raises:
            KeyError: if ``gate_type`` is not a known gate.
        """
        gate_def = GateRegistry.instance().get(gate_type)
        qubit, time = math.floor(qubit), math.floor(time)
        if not 0 <= qubit < circuit.qubits or time < 0:
            return None
        if self.is_occupied(circuit, qubit, time):
            return None
        if control_qubit is not None:
            control_qubit = clamp(
                math.floor(control_qubit), 0, circuit.qubits - 1)

        existing = circuit.gate_ids()
        gate_id = new_id("gate")
        while gate_id in existing:
            gate_id = new_id("gate")

        gate = Gate(
            id=gate_id,
            type=gate_def.gate_type,
            qubit=qubit,
            time=time,
            parameters=gate_def.default_parameters(),
            control_qubit=control_qubit,
        )
        return circuit.with_gates((*circuit.gates, gate))

    def place_at_pixel(self, circuit: Circuit, gate_type: GateType | str,
                       x: float, y: float) -> Circuit | None:
        cell = self.geometry.cell_at(x, y, circuit.qubits)
        if cell is None:
            return None
        qubit, time = cell
        return self.add_gate(circuit, gate_type, qubit, time)

    @staticmethod
    def move_gate(circuit: Circuit, gate_id: str, qubit: int,
                  time: int) -> Circuit | None:
        """Move a gate, flooring and clamping the target into the grid.

        Moves do not check for collisions; overlapping gates are tolerated.
        """
        gate = circuit.get_gate(gate_id)
        if gate is None:
            return None
        moved = replace(
            gate,
            qubit=clamp(math.floor(qubit), 0, circuit.qubits - 1),
            time=max(0, math.floor(time)),
        )
        if moved.cell == gate.cell:
            return None
        return circuit.replace_gate(moved)

    @staticmethod
    def remove_gate(circuit: Circuit, gate_id: str) -> Circuit | None:
        if circuit.get_gate(gate_id) is None:
            return None
        return circuit.with_gates(g for g in circuit.gates if g.id != gate_id)

    @staticmethod
    def update_gate_parameters(circuit: Circuit, gate_id: str,
                               params: Mapping[str, float]) -> Circuit | None:
        """Merge numeric parameter values into a gate; others are ignored."""
        gate = circuit.get_gate(gate_id)
        if gate is None:
            return None
        merged = dict(gate.parameters)
        for name, value in params.items():
            number = as_number(value)
            if isinstance(name, str) and number is not None:
                merged[name] = float(number)
        if merged == dict(gate.parameters):
            return None
        return circuit.replace_gate(replace(gate, parameters=merged))

    @staticmethod
    def set_control_qubit(circuit: Circuit, gate_id: str,
                          control_qubit: int | None) -> Circuit | None:
        gate = circuit.get_gate(gate_id)
        if gate is None:
            return None
        if control_qubit is not None:
            control_qubit = clamp(
                math.floor(control_qubit), 0, circuit.qubits - 1)
        if control_qubit == gate.control_qubit:
            return None
        return circuit.replace_gate(replace(gate, control_qubit=control_qubit))
