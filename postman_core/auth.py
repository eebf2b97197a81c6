"""Auth Applier - Turns an auth descriptor into Authorization headers.

Headers are only ever appended. Bearer and Basic are applied; every other
recognized type, and any unrecognized one, is a no-op.
"""

from __future__ import annotations

import base64

from postman_core.models import Auth, AuthType, Variable

_TOKEN_KEYS = frozenset({"token", "Token"})
_USERNAME_KEYS = frozenset({"username", "Username", "user", "User"})
_PASSWORD_KEYS = frozenset({"password", "Password", "pass", "Pass"})


def auth_type(auth: Auth | None) -> AuthType | None:
    """Resolve the auth type tag. Absent means NOAUTH, unknown means None."""
    if auth is None or auth.type is None:
        return AuthType.NOAUTH
    try:
        return AuthType(auth.type)
    except ValueError:
        return None


def apply_auth(auth: Auth | None, headers: list[tuple[str, str]]) -> None:
    """Append the Authorization header(s) for auth to headers in place."""
    kind = auth_type(auth)

    if kind is AuthType.BEARER:
        headers.extend(_bearer_headers(auth.bearer))
    elif kind is AuthType.BASIC:
        header = _basic_header(auth.basic)
        if header is not None:
            headers.append(header)
    # NOAUTH, APIKEY, DIGEST, AWSV4, HAWK, OAUTH1, OAUTH2, NTLM and
    # unrecognized types add nothing.


def _bearer_headers(variables: list[Variable] | None) -> list[tuple[str, str]]:
    # One header per matching entry; no deduplication here.
    return [
        ("Authorization", f"Bearer {var.value}")
        for var in variables or []
        if var.key in _TOKEN_KEYS
    ]


def _basic_header(variables: list[Variable] | None) -> tuple[str, str] | None:
    if variables is None:
        return None

    username = ""
    password = ""
    for var in variables:
        if var.key in _USERNAME_KEYS:
            username = var.value
        elif var.key in _PASSWORD_KEYS:
            password = var.value

    if not username and not password:
        return None

    credentials = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return ("Authorization", f"Basic {credentials}")
