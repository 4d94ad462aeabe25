"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, g, request

from sessionauth.api.deps import (
    current_claims,
    get_auth_service,
    json_response,
    require_auth,
    require_role,
    timing,
)
from sessionauth.schemas import (
    AuthResultSchema,
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
    UserPublicSchema,
)
from sessionauth.services._shared.dto import UserRole
from sessionauth.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
auth_result_schema = AuthResultSchema()
token_pair_schema = TokenPairSchema()
user_schema = UserPublicSchema()


@bp.post("/register")
@timing
def register():
    """Create an account and return its first token pair."""

    data = register_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().register(RegisterIn(**data))
    return json_response({"data": auth_result_schema.dump(result)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().login(LoginIn(**data))
    return json_response({"data": auth_result_schema.dump(result)})


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new pair (the old one stops working)."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().refresh_token(RefreshIn(**data))
    return json_response({"data": token_pair_schema.dump(pair)})


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the presented access token and, if given, a refresh token."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    get_auth_service().logout(
        LogoutIn(
            subject_id=current_claims().subject_id,
            access_token=g.auth_token,
            refresh_token=data["refresh_token"],
        )
    )
    return json_response({"data": {"message": "Logged out successfully"}})


@bp.post("/logout-all")
@require_auth
@timing
def logout_all():
    """Revoke every refresh token of the caller and the presented access token."""

    service = get_auth_service()
    subject_id = current_claims().subject_id
    revoked = service.logout_all_devices(subject_id)
    service.logout(LogoutIn(subject_id=subject_id, access_token=g.auth_token))
    return json_response(
        {"data": {"message": "Logged out from all devices", "sessions_revoked": revoked}}
    )


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated user profile."""

    user = get_auth_service().get_user(current_claims().subject_id)
    return json_response({"data": user_schema.dump(user)})


@bp.post("/users/<int:user_id>/revoke-sessions")
@require_auth
@require_role(UserRole.MODERATOR)
@timing
def revoke_user_sessions(user_id: int):
    """Force-logout another user from every device (moderators and admins)."""

    service = get_auth_service()
    service.get_user(user_id)
    revoked = service.logout_all_devices(user_id)
    return json_response({"data": {"sessions_revoked": revoked}})
