"""User administration endpoints."""

from __future__ import annotations

from flask import Blueprint
from flask_jwt_extended import get_jwt_identity

from usermgmt.api.deps import (
    json_response,
    load_json,
    parse_pagination,
    require_auth,
    require_role,
    timing,
)
from usermgmt.schemas import RolesSchema, UpdateUserSchema, UserSchema, build_meta
from usermgmt.services.users.dto import UserUpdateIn
from usermgmt.services.users.service import UserService

bp = Blueprint("users", __name__)

user_schema = UserSchema()
user_list_schema = UserSchema(many=True)
update_user_schema = UpdateUserSchema()
roles_schema = RolesSchema()


def _current_user_id() -> str:
    return str(get_jwt_identity())


# ------------------------------ Self-service --------------------------------


@bp.get("/me")
@require_auth
@timing
def get_me():
    """Return the caller's own profile."""
    return json_response(user_schema.dump(UserService().get_user(_current_user_id())))


@bp.put("/me")
@require_auth
@timing
def update_me():
    dto = UserUpdateIn(**load_json(update_user_schema))
    user = UserService().update_user(_current_user_id(), dto)
    return json_response(user_schema.dump(user))


# ------------------------------ Lookups -------------------------------------


@bp.get("")
@require_role()
@timing
def list_users():
    """Return paginated users (admin only)."""
    pagination = parse_pagination()
    page = UserService().list_users(pagination)
    meta = build_meta(total=page.total, page=page.page, limit=page.limit)
    return json_response({"data": user_list_schema.dump(page.items), "meta": meta})


@bp.get("/<string:user_id>")
@require_auth
@timing
def get_user(user_id: str):
    return json_response(user_schema.dump(UserService().get_user(user_id)))


@bp.get("/email/<string:email>")
@require_auth
@timing
def get_user_by_email(email: str):
    return json_response(user_schema.dump(UserService().get_user_by_email(email)))


@bp.get("/<string:user_id>/roles")
@require_auth
@timing
def get_roles(user_id: str):
    roles = UserService().get_roles(user_id)
    return json_response(roles_schema.dump({"user_id": user_id, "roles": roles}))


# ------------------------------ Admin commands ------------------------------


@bp.put("/<string:user_id>")
@require_role()
@timing
def update_user(user_id: str):
    dto = UserUpdateIn(**load_json(update_user_schema))
    return json_response(user_schema.dump(UserService().update_user(user_id, dto)))


@bp.delete("/<string:user_id>")
@require_role()
@timing
def delete_user(user_id: str):
    UserService().delete_user(user_id)
    return json_response({"success": True, "message": "User deleted successfully"})


@bp.post("/<string:user_id>/deactivate")
@require_role()
@timing
def deactivate_user(user_id: str):
    UserService().set_active(user_id, False)
    return json_response({"success": True, "message": "User deactivated successfully"})


@bp.post("/<string:user_id>/activate")
@require_role()
@timing
def activate_user(user_id: str):
    UserService().set_active(user_id, True)
    return json_response({"success": True, "message": "User activated successfully"})


@bp.post("/<string:user_id>/roles/<string:role>")
@require_role()
@timing
def add_role(user_id: str, role: str):
    roles = UserService().add_role(user_id, role)
    return json_response(roles_schema.dump({"user_id": user_id, "roles": roles}))


@bp.delete("/<string:user_id>/roles/<string:role>")
@require_role()
@timing
def remove_role(user_id: str, role: str):
    roles = UserService().remove_role(user_id, role)
    return json_response(roles_schema.dump({"user_id": user_id, "roles": roles}))
