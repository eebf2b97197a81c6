"""Variable resolution - Replaces {{name}} placeholders in a request.

Values come from active environment or collection variables. Placeholders
with no matching value are left untouched so the failure is visible in the
request that gets sent.
"""

from __future__ import annotations

import re
from typing import Iterable

from postman_core.models import Environment, Request, Variable

_PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")


def variable_map(variables: Iterable[Variable] | None) -> dict[str, str]:
    """Map active variables by key. Later entries win."""
    return {var.key: var.value for var in variables or [] if var.is_active}


def environment_values(environment: Environment | None) -> dict[str, str]:
    if environment is None:
        return {}
    return variable_map(environment.values)


def substitute(text: str | None, values: dict[str, str]) -> str | None:
    """Replace {{name}} (whitespace inside the braces allowed) with values[name]."""
    if not text or not values:
        return text

    def replacer(match: re.Match) -> str:
        name = match.group(1).strip()
        return values.get(name, match.group(0))

    return _PLACEHOLDER.sub(replacer, text)


def resolve_request(request: Request, values: dict[str, str] | None) -> Request:
    """Return a copy of request with placeholders substituted.

    Covers the URL (raw, host, path, query), headers, every body mode and
    auth variable values. The input request is not modified.
    """
    if not values:
        return request

    resolved = request.model_copy(deep=True)

    def sub(text: str | None) -> str | None:
        return substitute(text, values)

    url = resolved.url
    if url is not None:
        url.raw = sub(url.raw)
        if url.host is not None:
            url.host = [sub(label) for label in url.host]
        if url.path is not None:
            url.path = [sub(segment) for segment in url.path]
        for param in url.query or []:
            param.key = sub(param.key)
            param.value = sub(param.value)

    for header in resolved.header or []:
        header.key = sub(header.key)
        header.value = sub(header.value)

    body = resolved.body
    if body is not None:
        body.raw = sub(body.raw)
        for item in (body.urlencoded or []) + (body.formdata or []):
            item.key = sub(item.key)
            item.value = sub(item.value)
        if body.graphql is not None:
            body.graphql.query = sub(body.graphql.query)
            body.graphql.variables = sub(body.graphql.variables)
        if body.file is not None:
            body.file.src = sub(body.file.src)

    auth = resolved.auth
    if auth is not None:
        schemes = (
            auth.bearer, auth.basic, auth.apikey, auth.digest, auth.awsv4,
            auth.hawk, auth.oauth1, auth.oauth2, auth.ntlm,
        )
        for scheme in schemes:
            for var in scheme or []:
                var.value = sub(var.value)

    return resolved
