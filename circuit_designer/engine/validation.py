"""Validation and normalization of untrusted circuit payloads.

Everything that enters the editor from outside (imported files, oracle
responses) passes through ``CircuitValidator`` before it becomes a
``Circuit``.  The validator prefers repairing to rejecting:

- ``qubits`` falls back to 2 when absent, non-numeric or below 1 and is
  capped at ``MAX_QUBITS``.
- Gate entries without a string ``type`` or without numeric
  ``qubit``/``time`` are dropped.
- Unknown gate types are coerced to ``H``.
- Out-of-range wires and negative times are clamped.
- Missing or duplicate ids are regenerated.

Only a payload that is not a mapping at all (or text with no JSON object in
it) is a hard failure, signalled with ``PayloadError``.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from circuit_designer.core.errors import PayloadError

from .circuit import (
    DEFAULT_QUBITS,
    MAX_QUBITS,
    MEASUREMENT_BASES,
    Circuit,
    Gate,
    Measurement,
    new_id,
)
from .gates import GateType

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass
class ValidationReport:
    """What the validator had to repair while normalizing a payload."""
    dropped_gates: int = 0
    coerced_types: list[str] = field(default_factory=list)
    clamped_fields: int = 0
    regenerated_ids: int = 0
    dropped_measurements: int = 0
    qubits_defaulted: bool = False

    @property
    def is_clean(self) -> bool:
        return (
            self.dropped_gates == 0
            and not self.coerced_types
            and self.clamped_fields == 0
            and self.regenerated_ids == 0
            and self.dropped_measurements == 0
            and not self.qubits_defaulted
        )


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def parse_payload(raw) -> dict:
    """Turn a mapping, JSON text or oracle prose into a plain dict.

    Raises:
        PayloadError: if no JSON object can be recovered.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        raise PayloadError(f"Unsupported payload type: {type(raw).__name__}")

    text = raw.strip()
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        # Oracle output often wraps the object in prose or code fences
        match = _JSON_OBJECT.search(text)
        if match is None:
            raise PayloadError("No JSON object found in payload") from None
        try:
            data = json.loads(match.group(0))
        except (ValueError, RecursionError) as exc:
            raise PayloadError(f"Invalid JSON in payload: {exc}") from exc

    if not isinstance(data, dict):
        raise PayloadError(
            f"Payload must be a JSON object, got {type(data).__name__}")
    return data


def as_number(value) -> float | int | None:
    """Return ``value`` if it is a finite real number (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(value, hi))


def normalize_qubit_count(value, max_qubits: int = MAX_QUBITS) -> int:
    """Apply the qubit-count policy: default 2 below 1, cap at max_qubits."""
    n = as_number(value)
    if n is None:
        return DEFAULT_QUBITS
    n = int(n)
    if n < 1:
        return DEFAULT_QUBITS
    return min(n, max_qubits)


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

class CircuitValidator:
    """Normalizes loosely-typed circuit payloads into ``Circuit`` snapshots."""

    def __init__(self, default_name: str = "Imported Circuit",
                 max_qubits: int = MAX_QUBITS):
        self._default_name = default_name
        self._max_qubits = max_qubits

    def validate(self, raw) -> Circuit:
        circuit, _report = self.validate_with_report(raw)
        return circuit

    def validate_with_report(self, raw) -> tuple[Circuit, ValidationReport]:
        data = parse_payload(raw)
        report = ValidationReport()

        raw_qubits = data.get("qubits")
        qubits = normalize_qubit_count(raw_qubits, self._max_qubits)
        if as_number(raw_qubits) is None or raw_qubits < 1:
            report.qubits_defaulted = True
        elif qubits != int(raw_qubits):
            report.clamped_fields += 1

        used_ids: set[str] = set()
        gates: list[Gate] = []
        raw_gates = data.get("gates")
        if not isinstance(raw_gates, list):
            raw_gates = []
        for entry in raw_gates:
            gate = self._normalize_gate(entry, qubits, used_ids, report)
            if gate is None:
                report.dropped_gates += 1
                continue
            used_ids.add(gate.id)
            gates.append(gate)
        gates.sort(key=lambda g: (g.time, g.qubit))

        measurements = self._normalize_measurements(
            data.get("measurements"), qubits, report)

        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            name = self._default_name
        circuit_id = data.get("id")
        if not isinstance(circuit_id, str) or not circuit_id:
            circuit_id = new_id("circuit")
        description = data.get("description")
        if not isinstance(description, str):
            description = ""

        if report.dropped_gates:
            logger.warning("Dropped %d malformed gate entries",
                           report.dropped_gates)

        circuit = Circuit(
            id=circuit_id,
            name=name,
            qubits=qubits,
            gates=gates,
            measurements=measurements,
            description=description,
        )
        return circuit, report

    # ---- Gates -------------------------------------------------------------

    def _normalize_gate(self, entry, qubits: int, used_ids: set[str],
                        report: ValidationReport) -> Gate | None:
        if not isinstance(entry, Mapping):
            return None
        raw_type = entry.get("type")
        raw_qubit = as_number(entry.get("qubit"))
        raw_time = as_number(entry.get("time"))
        if not isinstance(raw_type, str) or not raw_type.strip():
            return None
        if raw_qubit is None or raw_time is None:
            return None

        gate_type = GateType.parse(raw_type)
        if gate_type is None:
            logger.warning("Unknown gate type %r coerced to H", raw_type)
            report.coerced_types.append(raw_type)
            gate_type = GateType.H

        qubit = self._clamp_wire(raw_qubit, qubits, report)
        time = math.floor(raw_time)
        if time < 0:
            time = 0
            report.clamped_fields += 1

        control = None
        raw_control = as_number(entry.get("controlQubit"))
        if raw_control is not None:
            control = self._clamp_wire(raw_control, qubits, report)

        parameters: dict[str, float] = {}
        raw_params = entry.get("parameters")
        if isinstance(raw_params, Mapping):
            for key, value in raw_params.items():
                number = as_number(value)
                if isinstance(key, str) and number is not None:
                    parameters[key] = float(number)

        gate_id = entry.get("id")
        if not isinstance(gate_id, str) or not gate_id or gate_id in used_ids:
            gate_id = self._fresh_id("gate", used_ids)
            report.regenerated_ids += 1

        return Gate(
            id=gate_id,
            type=gate_type,
            qubit=qubit,
            time=time,
            parameters=parameters,
            control_qubit=control,
        )

    @staticmethod
    def _clamp_wire(value, qubits: int, report: ValidationReport) -> int:
        wire = math.floor(value)
        clamped = clamp(wire, 0, qubits - 1)
        if clamped != wire:
            report.clamped_fields += 1
        return clamped

    @staticmethod
    def _fresh_id(prefix: str, used_ids: set[str]) -> str:
        candidate = new_id(prefix)
        while candidate in used_ids:
            candidate = new_id(prefix)
        return candidate

    # ---- Measurements ------------------------------------------------------

    def _normalize_measurements(self, raw_measurements, qubits: int,
                                report: ValidationReport) -> list[Measurement]:
        if not isinstance(raw_measurements, list):
            return []
        used_ids: set[str] = set()
        result: list[Measurement] = []
        for entry in raw_measurements:
            if not isinstance(entry, Mapping):
                report.dropped_measurements += 1
                continue
            raw_qubit = as_number(entry.get("qubit"))
            raw_time = as_number(entry.get("time"))
            if raw_qubit is None or raw_time is None:
                report.dropped_measurements += 1
                continue
            basis = entry.get("basis")
            if basis not in MEASUREMENT_BASES:
                basis = "computational"
            m_id = entry.get("id")
            if not isinstance(m_id, str) or not m_id or m_id in used_ids:
                m_id = self._fresh_id("measurement", used_ids)
                report.regenerated_ids += 1
            used_ids.add(m_id)
            result.append(Measurement(
                id=m_id,
                qubit=self._clamp_wire(raw_qubit, qubits, report),
                time=max(0, math.floor(raw_time)),
                basis=basis,
            ))
        return result


def validate_circuit(raw, default_name: str = "Imported Circuit") -> Circuit:
    """Shortcut for ``CircuitValidator(default_name).validate(raw)``."""
    return CircuitValidator(default_name=default_name).validate(raw)
