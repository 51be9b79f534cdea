"""
Authentication interceptor for the Flask API.

Identity is resolved once per request, before the view runs, from either the
trusted upstream identity header or a session token, and attached to the
request as ``request.caller``.
"""

from functools import wraps
from typing import Optional

from flask import current_app, jsonify, request

from sleep_registry.config import NATIVE_IDENTITY_HEADER


def get_services():
    return current_app.extensions["sleep_registry"]


def extract_token() -> Optional[str]:
    """Session token from the Authorization header, JSON body or query string."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header:
        parts = auth_header.split(" ")
        if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1]:
            return parts[1]

    body = request.get_json(silent=True)
    if isinstance(body, dict) and body.get("token"):
        return str(body["token"])

    return request.args.get("token") or None


def native_identity() -> Optional[str]:
    """Email asserted by the upstream identity provider, if configured."""
    header = current_app.config.get("NATIVE_IDENTITY_HEADER", NATIVE_IDENTITY_HEADER)
    if not header:
        return None
    return request.headers.get(header) or None


def _resolve():
    request.token = extract_token()
    request.native_email = native_identity()
    request.caller = get_services().identity.resolve_caller(request.native_email, request.token)
    return request.caller


def caller_optional(f):
    """Resolve the caller for a query; an anonymous caller gets ``None``."""
    @wraps(f)
    def decorated(*args, **kwargs):
        _resolve()
        return f(*args, **kwargs)

    return decorated


def token_required(f):
    """Resolve the caller for a mutation; reject the request if there is none."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if _resolve() is None:
            return jsonify({"error": "Not authenticated"}), 401
        return f(*args, **kwargs)

    return decorated
