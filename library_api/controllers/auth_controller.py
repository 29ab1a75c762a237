from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity, get_jwt

from library_api.errors import LibraryError, UserNotFound, ValidationError
from library_api.models.user import Role
from library_api.services.auth_service import AuthService
from library_api.repositories.user_repo import UserRepo
from library_api.utils.validators import required_str, valid_email

auth_bp = Blueprint("auth", __name__)


def _user_json(user):
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role}


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    try:
        user = AuthService.register(
            name=required_str(data, "name", max_len=120),
            email=valid_email(data.get("email")),
            password=data.get("password") if isinstance(data.get("password"), str) else "",
            role=data.get("role") or Role.BORROWER.value,
        )
        return jsonify({
            "success": True,
            "access_token": AuthService.issue_token(user),
            "user": _user_json(user),
        }), 201
    except LibraryError as e:
        return jsonify(e.to_dict()), e.status_code


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    try:
        token, user = AuthService.login(
            str(data.get("email") or "").strip().lower(),
            data.get("password") if isinstance(data.get("password"), str) else "",
        )
        return jsonify({"success": True, "access_token": token, "user": _user_json(user)})
    except LibraryError as e:
        return jsonify(e.to_dict()), e.status_code


@auth_bp.get("/me")
@jwt_required()
def me():
    user = UserRepo.get_by_id(int(get_jwt_identity()))
    if user is None:
        e = UserNotFound()
        return jsonify(e.to_dict()), e.status_code

    data = _user_json(user)
    data["role"] = get_jwt().get("role", user.role)
    return jsonify({"success": True, "user": data})


@auth_bp.put("/profile")
@jwt_required()
def update_profile():
    data = request.get_json(silent=True) or {}
    try:
        name = required_str(data, "name", max_len=120) if data.get("name") is not None else None
        email = valid_email(data["email"]) if data.get("email") is not None else None
        if name is None and email is None:
            raise ValidationError("name or email is required")
        user = AuthService.update_profile(int(get_jwt_identity()), name=name, email=email)
        return jsonify({"success": True, "message": "Profile updated successfully", "user": _user_json(user)})
    except LibraryError as e:
        return jsonify(e.to_dict()), e.status_code
