"""
HTTP entry point exposing the orchestrator as ``GET /result``.

Two deployments share this module: ``core`` fetches one sub-batch from the
portal, ``roster`` fetches the full regular + lateral-entry roster.
"""

import logging
from typing import Optional
from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from .config_manager import ConfigManager, ScraperSettings
from .exceptions import AggregateFailure, ValidationError
from .models import entries_to_json
from .orchestrator import ResultOrchestrator


CORE = "core"
ROSTER = "roster"

AGGREGATE_FAILURE_MESSAGE = "An error occurred while fetching student data."

logger = logging.getLogger(__name__)


def create_app(settings: Optional[ScraperSettings] = None,
               orchestrator: Optional[ResultOrchestrator] = None,
               mode: str = CORE) -> Flask:
    """Build the Flask application for the given deployment mode."""
    if mode not in (CORE, ROSTER):
        raise ValueError(f"Unknown mode: {mode}")

    settings = settings or ConfigManager().get_settings()
    orchestrator = orchestrator or ResultOrchestrator(settings)

    app = Flask(__name__)
    app.json.sort_keys = False
    app.config["RESULT_MODE"] = mode

    CORS(
        app,
        resources={r"/result": {"origins": "*"}},
        methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
        send_wildcard=True,
        max_age=86400 if mode == ROSTER else None,
    )

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        if mode == ROSTER:
            return Response(str(error), status=400, mimetype="text/plain")
        return jsonify({"error": str(error)}), 400

    @app.errorhandler(AggregateFailure)
    def handle_aggregate_failure(error: AggregateFailure):
        logger.error(f"An error occurred while fetching student data: {error}")
        return jsonify({"error": AGGREGATE_FAILURE_MESSAGE}), 500

    @app.route("/result", methods=["GET", "OPTIONS"], provide_automatic_options=False)
    def result():
        if request.method == "OPTIONS":
            return Response(status=204)

        if mode == ROSTER:
            return _roster(settings, orchestrator)
        return _core(settings, orchestrator)

    return app


def _core(settings: ScraperSettings, orchestrator: ResultOrchestrator):
    reg_no = request.args.get("reg_no")
    year = request.args.get("year")
    sem = request.args.get("sem") or settings.default_semester

    if not reg_no or not year:
        raise ValidationError("Missing 'reg_no' or 'year' query parameter")

    entries = orchestrator.run_batch(reg_no, year, sem)
    return jsonify(entries_to_json(entries))


def _roster(settings: ScraperSettings, orchestrator: ResultOrchestrator):
    sem = request.args.get("sem")
    year = request.args.get("year")
    reg_no = request.args.get("reg_no")

    if not sem or not year or not reg_no:
        raise ValidationError("Please provide all required parameters: sem, year, and reg_no")
    if len(reg_no) < settings.min_registration_length:
        raise ValidationError("Please provide a valid registration number.")

    entries = orchestrator.run_roster(reg_no, year, sem)
    return jsonify(entries_to_json(entries))
