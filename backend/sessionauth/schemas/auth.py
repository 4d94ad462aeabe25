"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from sessionauth.services._shared.dto import UserRole

PHONE_PATTERN = r"^[+]?[0-9]{10,15}$"
NON_BLANK_PATTERN = r"^\s*\S"


class RegisterSchema(Schema):
    """Input payload for account registration.

    Password strength is enforced by the service so every violated rule is
    reported together.
    """

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1))
    name = fields.String(
        required=True,
        validate=validate.And(
            validate.Length(min=2, max=100),
            validate.Regexp(NON_BLANK_PATTERN, error="Name must not be blank"),
        ),
    )
    phone = fields.String(
        load_default=None,
        validate=validate.Regexp(PHONE_PATTERN, error="Invalid phone number format"),
    )


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=72))


class RefreshSchema(Schema):
    """Input payload for exchanging a refresh token."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class LogoutSchema(Schema):
    """Optional body of a logout call."""

    refresh_token = fields.String(load_default=None)


class UserPublicSchema(Schema):
    """Public user representation (never includes the password hash)."""

    id = fields.String(required=True)
    email = fields.Email(required=True)
    name = fields.String(required=True)
    role = fields.Enum(UserRole, by_value=True, required=True)


class TokenPairSchema(Schema):
    """Response payload containing an access/refresh token pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.Constant("bearer")


class AuthResultSchema(TokenPairSchema):
    """Token pair plus the authenticated user."""

    user = fields.Nested(UserPublicSchema, required=True)
