"""
ezcalc web server: HTML calculator page plus a small JSON API.
"""
import logging
import sys
import time
import traceback
import uuid
from typing import Optional

from flask import (
    Blueprint,
    Flask,
    current_app,
    flash,
    g,
    has_request_context,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from ezcalc import engine
from ezcalc.common import format_number, json_float
from ezcalc.configure import Config, load_config
from ezcalc.db import create_history_store
from ezcalc.service import CalculatorService
from ezcalc.validation import CalculationRequest, ValidationError

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."
SERVICE_KEY = "EZCALC_SERVICE"

log = logging.getLogger("ezcalc.server")

bp = Blueprint("calculator", __name__)


# -----------------------------------------------------------------------------
# Logging setup
# -----------------------------------------------------------------------------
class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        if has_request_context():
            record.request_id = getattr(g, "request_id", record.request_id)
        return True


def setup_logging(level=logging.INFO):
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        fmt="ts=%(asctime)s level=%(levelname)s req_id=%(request_id)s event=%(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_service() -> CalculatorService:
    return current_app.config[SERVICE_KEY]


def wants_json() -> bool:
    return request.path.startswith("/api/")


# -----------------------------------------------------------------------------
# Request lifecycle logging
# -----------------------------------------------------------------------------
@bp.before_app_request
def seed_request_context():
    g.request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    g.t_start = time.perf_counter()
    log.info(
        "request_started method=%s path=%s remote_addr=%s",
        request.method,
        request.path,
        request.remote_addr,
    )


@bp.after_app_request
def after(resp):
    latency_ms = int(
        (time.perf_counter() - getattr(g, "t_start", time.perf_counter())) * 1000
    )
    log.info(
        "request_finished method=%s path=%s status=%s latency_ms=%s",
        request.method,
        request.path,
        resp.status_code,
        latency_ms,
    )
    resp.headers["X-Request-ID"] = getattr(g, "request_id", "-")
    return resp


def handle_unexpected_error(exc):
    if isinstance(exc, HTTPException):
        return exc
    log.error(
        "unexpected_error path=%s exc=%s trace=%s",
        request.path,
        exc,
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )
    if wants_json():
        return jsonify({"success": False, "result": None, "message": UNEXPECTED_ERROR_MESSAGE}), 500
    if request.method == "POST":
        flash(UNEXPECTED_ERROR_MESSAGE, "error")
        return redirect(url_for("calculator.home"))
    # rendering the page is what failed; don't redirect back into it
    return render_page(error=UNEXPECTED_ERROR_MESSAGE, history=[]), 500


# -----------------------------------------------------------------------------
# HTML pages
# -----------------------------------------------------------------------------
def render_page(history=None, **context):
    if history is None:
        history = get_service().recent_history()
    return render_template(
        "calculator.html",
        history=history,
        operators=engine.OPERATORS,
        symbols=engine.SYMBOLS,
        **context,
    )


@bp.route("/")
def home():
    log.info("home_render")
    return render_page()


@bp.route("/calculate", methods=["POST"])
def calculate():
    try:
        calc = CalculationRequest.parse(request.form)
    except ValidationError as exc:
        log.warning("calculate_invalid_input errors=%s", exc.errors)
        return render_page(errors=exc.errors, form=request.form), 400

    log.info("calculate_request %s %s %s", calc.operand1, calc.operator, calc.operand2)
    try:
        outcome = get_service().calculate(calc.operand1, calc.operand2, calc.operator)
    except engine.CalculationError as exc:
        return render_page(error=exc.message, form=request.form)

    return render_page(
        result=outcome.result,
        operand1=outcome.operand1,
        operand2=outcome.operand2,
        operator=outcome.operator,
        warning=outcome.history_error,
        form=request.form,
    )


@bp.route("/clear-history", methods=["POST"])
def clear_history():
    log.info("clear_history_request")
    get_service().clear_history()
    return redirect(url_for("calculator.home"))


# -----------------------------------------------------------------------------
# JSON API
# -----------------------------------------------------------------------------
@bp.route("/api/calculate", methods=["POST"])
def api_calculate():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        log.warning("api_calculate_bad_body")
        return jsonify({
            "success": False,
            "result": None,
            "message": "Request body must be a JSON object",
        }), 400

    try:
        calc = CalculationRequest.parse(data, strict=True)
    except ValidationError as exc:
        log.warning("api_calculate_invalid_input errors=%s", exc.errors)
        return jsonify({
            "success": False,
            "result": None,
            "message": str(exc),
            "errors": exc.errors,
        }), 400

    try:
        outcome = get_service().calculate(calc.operand1, calc.operand2, calc.operator)
    except engine.CalculationError as exc:
        return jsonify({"success": False, "result": None, "message": exc.message}), 400

    body = {
        "success": True,
        "result": json_float(outcome.result),
        "message": "Calculation successful",
        "history_saved": outcome.history_saved,
    }
    if outcome.record is not None:
        body["record"] = outcome.record.to_dict()
    if outcome.history_error:
        body["warning"] = outcome.history_error
    return jsonify(body)


@bp.route("/api/history", methods=["GET"])
def api_history():
    limit = request.args.get("limit", type=int)
    if limit is not None and limit < 0:
        return jsonify({"error": "limit must be >= 0"}), 400
    history = get_service().recent_history(limit)
    log.info("api_history count=%s", len(history))
    return jsonify({"history": [record.to_dict() for record in history]})


@bp.route("/api/history", methods=["DELETE"])
def api_clear_history():
    deleted = get_service().clear_history()
    return jsonify({"success": True, "deleted": deleted})


@bp.route("/health")
def health():
    records = get_service().store.count()
    log.info("health_check records=%s", records)
    return jsonify({"status": "healthy", "records": records})


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
def create_app(config: Optional[Config] = None, store=None) -> Flask:
    config = config or load_config()

    app = Flask(__name__)
    app.secret_key = config.secret_key
    app.config["EZCALC"] = config
    app.jinja_env.filters["number"] = format_number

    CORS(app,
         origins=config.origin,
         allow_headers=["Content-Type", "X-Request-ID"],
         methods=["GET", "POST", "DELETE", "OPTIONS"])

    if store is None:
        store = create_history_store(config, logger=logging.getLogger("ezcalc.db"))
    app.config[SERVICE_KEY] = CalculatorService(
        store,
        logger=logging.getLogger("ezcalc.service"),
        history_limit=config.history_limit,
    )

    app.register_blueprint(bp)
    app.register_error_handler(Exception, handle_unexpected_error)
    return app
