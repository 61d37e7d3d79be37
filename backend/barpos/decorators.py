# Overview: Role gate for API routes.

from functools import wraps
from flask import current_app, request, jsonify, g


ROLE_OWNER = "owner"
ROLE_MANAGER = "manager"
ROLE_STAFF = "staff"


def require_role(*allowed_roles: str):
    """
    Require the caller to hold one of ``allowed_roles``.

    Identity is established by the gateway in front of this service, which
    forwards the authenticated role in the ``ROLE_HEADER`` header. Sets:
    - g.role: the caller's role, lower-cased

    Returns 401 when no role was forwarded and 403 when the role is not
    allowed here.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            role = (request.headers.get(current_app.config["ROLE_HEADER"]) or "").strip().lower()

            if not role:
                return jsonify({"success": False, "error": "Authentication required"}), 401

            if role not in allowed_roles:
                current_app.logger.warning(
                    "Role %s denied on %s %s", role, request.method, request.path
                )
                return jsonify({
                    "success": False,
                    "error": "Permission denied",
                    "required_roles": list(allowed_roles),
                }), 403

            g.role = role
            return f(*args, **kwargs)

        return decorated_function

    return decorator
