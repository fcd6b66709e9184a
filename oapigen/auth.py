"""Bearer token authentication with permission claims checked against scopes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

BEARER_AUTH_SCHEME = "BearerAuth"
BEARER_PREFIX = "Bearer "
PERMISSIONS_CLAIM = "perms"


class AuthenticationError(Exception):
    """Raised when a request cannot be authenticated."""


class NoAuthHeaderError(AuthenticationError):
    """The Authorization header is absent."""

    def __init__(self, message: str = "Authorization header is missing") -> None:
        super().__init__(message)


class InvalidAuthHeaderError(AuthenticationError):
    """The Authorization header is not of the form ``Bearer <token>``."""

    def __init__(self, message: str = "Authorization header is malformed") -> None:
        super().__init__(message)


class ClaimsInvalidError(AuthenticationError):
    """The token's claims do not cover the required scopes."""

    def __init__(
        self, message: str = "Provided claims do not match expected scopes"
    ) -> None:
        super().__init__(message)


class JWSValidator(Protocol):
    """Checks a JWS string and returns the claims of the token it carries."""

    def validate_jws(self, jws: str) -> Mapping[str, Any]: ...


def get_jws_from_headers(headers: Mapping[str, str]) -> str:
    """Extract the JWS from an ``Authorization: Bearer <jws>`` header."""
    value = ""
    for name, header_value in headers.items():
        if name.lower() == "authorization":
            value = header_value
            break
    if not value:
        raise NoAuthHeaderError()
    if not value.startswith(BEARER_PREFIX):
        raise InvalidAuthHeaderError()
    return value[len(BEARER_PREFIX):]


def get_claims_from_token(token: Mapping[str, Any]) -> list[str]:
    """Return the permission claims held in the token; none means an empty list."""
    if PERMISSIONS_CLAIM not in token:
        return []
    raw = token[PERMISSIONS_CLAIM]
    if not isinstance(raw, list):
        raise AuthenticationError(f"'{PERMISSIONS_CLAIM}' claim is unexpected type'")
    claims: list[str] = []
    for index, claim in enumerate(raw):
        if not isinstance(claim, str):
            raise AuthenticationError(f"{PERMISSIONS_CLAIM}[{index}] is not a string")
        claims.append(claim)
    return claims


def check_token_claims(
    expected_claims: Iterable[str], token: Mapping[str, Any]
) -> list[str]:
    """Ensure every expected claim is in the token; return the token's claims."""
    try:
        claims = get_claims_from_token(token)
    except AuthenticationError as exc:
        raise AuthenticationError(f"getting claims from token: {exc}") from exc
    held = set(claims)
    if any(expected not in held for expected in expected_claims):
        raise ClaimsInvalidError()
    return claims


def authenticate(
    validator: JWSValidator,
    scheme_name: str,
    headers: Mapping[str, str],
    scopes: Iterable[str],
) -> list[str]:
    """Validate the request's bearer token and check it grants all scopes.

    Returns the token's permission claims.
    """
    if scheme_name != BEARER_AUTH_SCHEME:
        raise AuthenticationError(
            f"security scheme {scheme_name} != '{BEARER_AUTH_SCHEME}'"
        )
    try:
        jws = get_jws_from_headers(headers)
    except AuthenticationError as exc:
        raise type(exc)(f"getting jws: {exc}") from exc

    try:
        token = validator.validate_jws(jws)
    except Exception as exc:
        raise AuthenticationError(f"validating JWS: {exc}") from exc

    try:
        return check_token_claims(scopes, token)
    except AuthenticationError as exc:
        raise type(exc)(f"token claims don't match: {exc}") from exc