"""URL Builder - Assembles the target URL of a request.

A non-empty raw URL is returned as-is. Otherwise the URL is built from
protocol, host labels, path segments and query parameters, with query keys
and values form-encoded by percent_encode().
"""

from __future__ import annotations

from postman_core.errors import MissingHostError, MissingUrlError
from postman_core.models import QueryParam, Url

DEFAULT_PROTOCOL = "http"

_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)


def percent_encode(text: str) -> str:
    """Form-style percent-encoding.

    Letters, digits and -_.~ pass through, space becomes '+', every other
    UTF-8 byte becomes %XX with uppercase hex. Not RFC 3986 component
    encoding: '+' in the output means space.
    """
    out: list[str] = []
    for byte in text.encode("utf-8"):
        if byte in _UNRESERVED:
            out.append(chr(byte))
        elif byte == 0x20:
            out.append("+")
        else:
            out.append(f"%{byte:02X}")
    return "".join(out)


def encode_pairs(pairs: list[tuple[str, str]]) -> str:
    """Join key/value pairs as k=v&k=v with both sides percent-encoded."""
    return "&".join(f"{percent_encode(key)}={percent_encode(value)}" for key, value in pairs)


def build_query_string(query: list[QueryParam] | None) -> str:
    """Encode enabled query parameters that have a value, in input order."""
    if not query:
        return ""
    pairs = [
        (param.key, param.value)
        for param in query
        if not param.disabled and param.value is not None
    ]
    return encode_pairs(pairs)


def build_url(url: Url | None) -> str:
    """Build the URL string for a request.

    Raises:
        MissingUrlError: If url is None.
        MissingHostError: If there is no raw URL and no host.
    """
    if url is None:
        raise MissingUrlError()

    if url.raw:
        return url.raw

    if url.host is None:
        raise MissingHostError()

    protocol = url.protocol if url.protocol is not None else DEFAULT_PROTOCOL
    result = f"{protocol}://{'.'.join(url.host)}"

    if url.path is not None:
        path = "/".join(url.path)
        if path:
            result += "/" + path

    query_string = build_query_string(url.query)
    if query_string:
        result += "?" + query_string

    return result
