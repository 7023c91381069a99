"""Quantum Circuit Designer - command-line entry point.

Usage:
    python main.py --prompt "Create a Bell state circuit" --export bell.qcircuit.json
    python main.py --import bell.qcircuit.json --prompt "add measurement" --modify --analyze
"""

from __future__ import annotations

import argparse
import logging
import sys

from PyQt6.QtCore import QCoreApplication, QEventLoop

from circuit_designer.controller.oracle_controller import OracleController
from circuit_designer.controller.session import EditingSession
from circuit_designer.core.config import AppConfig
from circuit_designer.core.errors import PayloadError
from circuit_designer.core.log import configure_logging
from circuit_designer.core.serialization import CircuitSerializer
from circuit_designer.oracle.client import OpenAIOracle
from circuit_designer.oracle.offline import TemplateOracle
from circuit_designer.oracle.protocol import CircuitOracle, FallbackOracle

logger = logging.getLogger(__name__)


def build_oracle(config: AppConfig, offline: bool = False) -> CircuitOracle:
    """Remote oracle with template fallback, or templates only."""
    templates = TemplateOracle()
    if offline or not config.api_key():
        return templates
    return FallbackOracle(OpenAIOracle.from_config(config), templates)


def _run_request(controller: OracleController, submit) -> None:
    """Block in a local event loop until the submitted request settles."""
    loop = QEventLoop()
    signals = (
        controller.generation_finished,
        controller.analysis_finished,
        controller.suggestions_finished,
        controller.error_occurred,
    )
    for sig in signals:
        sig.connect(loop.quit)
    try:
        if submit():
            loop.exec()
    finally:
        for sig in signals:
            sig.disconnect(loop.quit)


def _print_analysis(analysis) -> None:
    print("\nAnalysis")
    print("-" * 40)
    print(f"Description:    {analysis.description}")
    print(f"Complexity:     {analysis.complexity}")
    print(f"Execution time: {analysis.estimated_execution_time}")
    print("Applications:   " + ", ".join(analysis.potential_applications))
    print("Suggestions:    " + ", ".join(analysis.optimization_suggestions))


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Quantum Circuit Designer")
    parser.add_argument("--import", dest="import_path", default=None,
                        help="Circuit file to start from")
    parser.add_argument("--prompt", default=None,
                        help="Natural-language instruction for the oracle")
    parser.add_argument("--modify", action="store_true",
                        help="Modify the current circuit instead of replacing it")
    parser.add_argument("--analyze", action="store_true",
                        help="Ask the oracle to analyze the final circuit")
    parser.add_argument("--export", dest="export_path", default=None,
                        help="Write the final circuit to this file")
    parser.add_argument("--offline", action="store_true",
                        help="Use built-in templates instead of the remote oracle")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default from config)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = AppConfig.load()
    configure_logging(args.log_level or config.log_level)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Quantum Circuit Designer")

    session = EditingSession(config=config)
    if args.import_path:
        try:
            circuit = CircuitSerializer.load(args.import_path)
        except (PayloadError, OSError) as exc:
            logger.error("Failed to open file: %s (%s)", args.import_path, exc)
            return 1
        session.import_circuit(circuit.to_dict())
        config.add_recent_file(args.import_path)

    oracle = build_oracle(config, offline=args.offline)
    controller = OracleController(session, oracle)
    errors: list[str] = []
    controller.error_occurred.connect(errors.append)

    if args.prompt:
        _run_request(controller, lambda: controller.request_generation(
            args.prompt, modify=args.modify))

    print(session.circuit.describe())

    if args.analyze:
        analyses = []
        controller.analysis_finished.connect(analyses.append)
        _run_request(controller, controller.request_analysis)
        if analyses:
            _print_analysis(analyses[-1])

    controller.shutdown()
    for message in errors:
        print(f"warning: {message}", file=sys.stderr)

    if args.export_path:
        CircuitSerializer.save(session.circuit, args.export_path)
        config.add_recent_file(args.export_path)
        logger.info("Saved circuit to %s", args.export_path)

    try:
        config.save()
    except OSError:
        logger.warning("Could not save config to %s", config.config_path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
