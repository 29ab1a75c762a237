from functools import wraps

from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity

from library_api.errors import Forbidden
from library_api.models.user import Role
from library_api.services.policy import Caller


def current_caller() -> Caller:
    """Caller built from the verified JWT: (user_id, Role)."""
    role = Role.parse((get_jwt() or {}).get("role"))
    if role is None:
        raise Forbidden("Unknown role")
    return Caller(user_id=int(get_jwt_identity()), role=role)


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = Role.parse(get_jwt().get("role"))
            if role not in roles:
                return jsonify(Forbidden(
                    f"Access denied. {' or '.join(r.value for r in roles)} role required."
                ).to_dict()), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
