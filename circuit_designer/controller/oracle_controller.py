"""Oracle controller using the QThread worker pattern.

Oracle calls block on the network, so they run on a worker thread while
the rest of the editor stays usable.  Generated payloads are handed to the
editing session, which validates them before installing.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from circuit_designer.core.errors import OracleError
from circuit_designer.engine.circuit import Circuit
from circuit_designer.oracle.protocol import CircuitOracle

from .session import EditingSession

logger = logging.getLogger(__name__)

GENERATE = "generate"
ANALYZE = "analyze"
SUGGEST = "suggest"


class OracleWorker(QObject):
    """Worker object that performs one oracle request.

    Runs on a QThread and reports back to the main thread via signals.
    """

    finished = pyqtSignal(str, object)  # (action, result)
    error = pyqtSignal(str, str)       # (action, message)

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._oracle: CircuitOracle | None = None
        self._action: str = GENERATE
        self._prompt: str = ""
        self._circuit: Circuit | None = None

    def configure(
        self,
        oracle: CircuitOracle,
        action: str,
        prompt: str = "",
        circuit: Circuit | None = None,
    ) -> None:
        """Configure the worker before starting.

        Must be called before the thread starts.
        """
        self._oracle = oracle
        self._action = action
        self._prompt = prompt
        self._circuit = circuit

    @pyqtSlot()
    def run(self) -> None:
        """Execute the request. Called when the thread starts."""
        if self._oracle is None:
            self.error.emit(self._action, "No oracle configured")
            return
        try:
            if self._action == GENERATE:
                result = self._oracle.request_generation(
                    self._prompt, self._circuit)
            elif self._action == ANALYZE:
                result = self._oracle.request_analysis(self._circuit)
            elif self._action == SUGGEST:
                result = self._oracle.request_suggestions(self._circuit)
            else:
                self.error.emit(self._action,
                                f"Unknown oracle action: {self._action}")
                return
        except OracleError as exc:
            self.error.emit(self._action, f"Oracle error: {exc}")
            return
        except Exception as exc:
            logger.error("Oracle %s request crashed", self._action,
                         exc_info=True)
            self.error.emit(self._action, f"Oracle error: {exc}")
            return
        self.finished.emit(self._action, result)


class OracleController(QObject):
    """Runs oracle requests on a background thread.

    Only one request is in flight at a time; further submissions are
    refused with error_occurred until it completes.
    """

    # Public signals
    request_started = pyqtSignal(str)           # action
    generation_finished = pyqtSignal(object)    # installed Circuit
    analysis_finished = pyqtSignal(object)      # CircuitAnalysis
    suggestions_finished = pyqtSignal(object)   # list[str]
    error_occurred = pyqtSignal(str)

    def __init__(
        self,
        session: EditingSession,
        oracle: CircuitOracle,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._session = session
        self._oracle = oracle
        self._thread: QThread | None = None
        self._worker: OracleWorker | None = None
        self._busy: bool = False

    @property
    def is_busy(self) -> bool:
        """Whether an oracle request is outstanding."""
        return self._busy

    def request_generation(self, prompt: str, modify: bool = False) -> bool:
        """Ask the oracle for a new circuit (or a modified current one).

        Returns:
            False if the request was refused.
        """
        if not prompt.strip():
            self.error_occurred.emit("Please enter a prompt")
            return False
        circuit = self._session.circuit if modify else None
        return self._submit(GENERATE, prompt, circuit)

    def request_analysis(self) -> bool:
        if not self._session.circuit.gates:
            self.error_occurred.emit(
                "Please add some gates to the circuit before analyzing.")
            return False
        return self._submit(ANALYZE, circuit=self._session.circuit)

    def request_suggestions(self) -> bool:
        return self._submit(SUGGEST, circuit=self._session.circuit)

    def _submit(self, action: str, prompt: str = "",
                circuit: Circuit | None = None) -> bool:
        if self._busy:
            self.error_occurred.emit("An oracle request is already running")
            return False
        self._start_worker(action, prompt, circuit)
        return True

    def _start_worker(self, action: str, prompt: str,
                      circuit: Circuit | None) -> None:
        """Create and start the worker thread."""
        self._cleanup_thread()

        self._thread = QThread()
        self._worker = OracleWorker()
        self._worker.configure(self._oracle, action, prompt, circuit)

        # Move worker to thread
        self._worker.moveToThread(self._thread)

        # Connect signals
        self._thread.started.connect(self._worker.run)
        self._worker.finished.connect(self.handle_result)
        self._worker.error.connect(self.handle_error)

        # Cleanup connections
        self._worker.finished.connect(self._thread.quit)
        self._worker.error.connect(self._thread.quit)
        self._thread.finished.connect(self._on_thread_finished)

        self._busy = True
        self.request_started.emit(action)
        self._thread.start()

    def handle_result(self, action: str, result: object) -> None:
        """Route a finished request to the session or listeners."""
        self._busy = False
        if action == GENERATE:
            circuit = self._session.install_generated_circuit(result)
            self.generation_finished.emit(circuit)
        elif action == ANALYZE:
            self.analysis_finished.emit(result)
        elif action == SUGGEST:
            self.suggestions_finished.emit(result)

    def handle_error(self, action: str, message: str) -> None:
        """Report a failed request.

        A failed generation is treated like an unparseable payload: the
        session falls back to the default circuit.
        """
        self._busy = False
        logger.warning("%s", message)
        if action == GENERATE:
            circuit = self._session.install_fallback_circuit(message)
            self.generation_finished.emit(circuit)
        self.error_occurred.emit(message)

    def shutdown(self) -> None:
        """Wait for any running request thread and release it."""
        self._cleanup_thread()
        self._busy = False

    def _on_thread_finished(self) -> None:
        # Ignore a late signal from a thread that was already replaced
        if self.sender() is self._thread:
            self._busy = False

    def _cleanup_thread(self) -> None:
        """Clean up the previous thread and worker."""
        if self._thread is not None and self._thread.isRunning():
            self._thread.quit()
            self._thread.wait(3000)
        self._worker = None
        self._thread = None
