"""JSON save/load for circuits."""

from __future__ import annotations

import json
from pathlib import Path

from circuit_designer.engine.circuit import Circuit
from circuit_designer.engine.validation import CircuitValidator


class CircuitSerializer:
    """JSON save/load for circuits.

    Loading always goes through ``CircuitValidator``: files on disk are
    untrusted input.
    """

    FILE_EXTENSION = ".qcircuit.json"

    @staticmethod
    def dumps(circuit: Circuit) -> str:
        return json.dumps(circuit.to_dict(), indent=2, ensure_ascii=False)

    @staticmethod
    def save(circuit: Circuit, filepath: Path | str):
        filepath = Path(filepath)
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(CircuitSerializer.dumps(circuit))

    @staticmethod
    def load(filepath: Path | str) -> Circuit:
        """Read and validate a circuit file.

        Raises:
            PayloadError: if the file does not hold a JSON object.
            OSError: if the file cannot be read.
        """
        filepath = Path(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()
        default_name = filepath.name.split(".", 1)[0] or "Imported Circuit"
        return CircuitValidator(default_name=default_name).validate(text)
