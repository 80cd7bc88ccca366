# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def require_auth(f):
    """
    Require a bearer session and establish the owner context.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.user_id: Owner id every record adapter is scoped to

    Returns 401 if the header is missing, the token is unknown, expired,
    idle or revoked, or the account is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        user = session_service.validate_session(token)
        if not user:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.user_id = user.id
        g.auth_token = token

        return f(*args, **kwargs)

    return decorated_function
