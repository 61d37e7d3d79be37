# Overview: Flask API routes for analytics; parses input and returns JSON responses.

"""
Analytics Routes

Dashboard tiles, the owner's monthly overview and the period sales report.
Query parameters are best-effort: an unknown range or offset falls back to a
default instead of failing the request.
"""

import uuid

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import ROLE_MANAGER, ROLE_OWNER, ROLE_STAFF, require_role
from ..services import analytics_service
from ..services.storage_reader import StorageError
from ..services.time_window_service import compute_range, parse_timezone_offset, to_date
from ..validation import (
    ValidationError,
    parse_dashboard_range,
    parse_report_range,
    parse_report_window,
)


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api")


def _offset_arg() -> int:
    raw = request.args.get("tz_offset")
    if raw is None:
        raw = request.args.get("tzOffsetMinutes")
    return parse_timezone_offset(raw)


def _server_error(message: str):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    current_app.logger.exception("%s (request_id=%s, %s %s)", message, request_id, request.method, request.path)
    response = jsonify({"success": False, "error": message, "request_id": request_id})
    response.headers["X-Request-Id"] = request_id
    return response, 500


@analytics_bp.get("/dashboard-analytics")
@require_role(ROLE_STAFF, ROLE_MANAGER, ROLE_OWNER)
def dashboard_analytics_route():
    range_kind = parse_dashboard_range(request.args.get("range"))
    offset_minutes = _offset_arg()

    try:
        data = analytics_service.dashboard_summary(
            reader=analytics_service.build_reader(),
            range_kind=range_kind,
            offset_minutes=offset_minutes,
            include_low_stock=g.role == ROLE_OWNER,
            low_stock_threshold=current_app.config["LOW_STOCK_THRESHOLD"],
            top_limit=current_app.config["DASHBOARD_TOP_ITEMS"],
            attribution=current_app.config["REVENUE_ATTRIBUTION"],
        )
        return jsonify({"success": True, "data": data})
    except StorageError:
        return _server_error("Failed to load dashboard analytics")


@analytics_bp.get("/owner-analytics")
@require_role(ROLE_OWNER)
def owner_analytics_route():
    try:
        data = analytics_service.owner_overview(
            reader=analytics_service.build_reader(),
            offset_minutes=_offset_arg(),
        )
        return jsonify({"success": True, "data": data})
    except StorageError:
        return _server_error("Failed to load owner analytics")


@analytics_bp.get("/reports")
@require_role(ROLE_OWNER)
def reports_route():
    range_kind = parse_report_range(request.args.get("range"))
    offset_minutes = _offset_arg()

    try:
        window = parse_report_window(
            request.args.get("start"),
            request.args.get("end"),
            default=to_date(compute_range(range_kind, offset_minutes)),
        )
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    try:
        data = analytics_service.sales_report(
            reader=analytics_service.build_reader(),
            window=window,
            top_limit=current_app.config["DASHBOARD_TOP_ITEMS"],
            attribution=current_app.config["REVENUE_ATTRIBUTION"],
        )
        data["range"] = range_kind
        return jsonify({"success": True, "data": data})
    except StorageError:
        return _server_error("Failed to build sales report")
