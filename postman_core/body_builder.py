"""Body Builder - Serializes the active body mode into a payload string.

Unsupported modes ("file" and any unknown tag) produce no body rather
than an error.
"""

from __future__ import annotations

import json
from typing import Any

from postman_core.errors import SerializationError
from postman_core.models import Body, BodyMode, FormData, GraphQLBody
from postman_core.url_builder import encode_pairs


def body_mode(body: Body) -> BodyMode | None:
    """Resolve the body's mode tag. Absent means raw, unknown means None."""
    try:
        return BodyMode(body.mode if body.mode is not None else BodyMode.RAW.value)
    except ValueError:
        return None


def build_body(body: Body | None) -> str | None:
    """Build the request payload for the body's mode, or None for no body."""
    if body is None:
        return None

    mode = body_mode(body)

    if mode is BodyMode.RAW:
        return body.raw
    if mode is BodyMode.URLENCODED:
        return _encode_form(body.urlencoded)
    if mode is BodyMode.FORMDATA:
        # URL-encoded approximation, not multipart/form-data
        return _encode_form(body.formdata)
    if mode is BodyMode.GRAPHQL:
        return _encode_graphql(body.graphql)

    # BodyMode.FILE and unrecognized modes
    return None


def _encode_form(items: list[FormData] | None) -> str | None:
    if items is None:
        return None
    pairs = [
        (item.key, item.value)
        for item in items
        if not item.disabled and item.value is not None
    ]
    return encode_pairs(pairs)


def _encode_graphql(graphql: GraphQLBody | None) -> str | None:
    """Build {"query": ..., "variables": ...} as compact JSON.

    variables is embedded as parsed JSON when it parses, else as a string.
    """
    if graphql is None:
        return None

    envelope: dict[str, Any] = {}
    if graphql.query is not None:
        envelope["query"] = graphql.query
    if graphql.variables is not None:
        try:
            envelope["variables"] = json.loads(graphql.variables)
        except json.JSONDecodeError:
            envelope["variables"] = graphql.variables

    try:
        return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize GraphQL body: {e}") from e
