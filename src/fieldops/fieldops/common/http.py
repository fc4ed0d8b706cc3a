from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import g, jsonify, request

from ..core.exceptions import ValidationError
from ..core.result import OperationResult

logger = logging.getLogger(__name__)

# Authentication happens upstream; the gateway forwards the caller's id.
USER_ID_HEADER = "X-User-Id"

STATUS_BY_KIND = {
    "validation": 400,
    "authorization": 403,
    "not_found": 404,
    "conflict": 409,
    "downstream": 502,
}


def actor_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        raw = request.headers.get(USER_ID_HEADER, "").strip()
        if not raw.isdigit() or int(raw) <= 0:
            return jsonify({"success": False, "error": {"kind": "authorization", "message": "Missing caller identity"}}), 401
        g.actor_id = int(raw)
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _serialize(data: Any) -> Any:
    if data is None:
        return None
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, (list, tuple)):
        return [_serialize(d) for d in data]
    return data


def result_response(result: OperationResult, *, created: bool = False):
    if result.success:
        return jsonify({"success": True, "data": _serialize(result.data)}), 201 if created else 200
    status = STATUS_BY_KIND.get(result.error.kind, 400)
    return jsonify({"success": False, "error": result.error.to_dict()}), status


def data_response(data: Any):
    return jsonify({"success": True, "data": _serialize(data)}), 200


def server_error(what: str):
    logger.exception("Unexpected error while %s", what)
    return jsonify({"success": False, "error": {"kind": "internal", "message": f"System error while {what}"}}), 500


def missing_param(field: str):
    return result_response(OperationResult.fail(ValidationError(f"{field} is required", field=field)))
