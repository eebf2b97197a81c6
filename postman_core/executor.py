"""Executor - Builds one request, sends it and normalizes the response.

Request assembly (variables, method, URL, headers, auth, body) is shared by
the sync Executor and the AsyncExecutor; only the send step differs.

Failure policy:
    execute() raises RequestValidationError / TransportError.
    send() converts those into a status_code 0 HttpResponse whose body is
    "Error: <message>", so callers always get an answer.
"""

from __future__ import annotations

import logging
import ssl
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

import httpx

from postman_core.auth import apply_auth
from postman_core.body_builder import build_body
from postman_core.errors import (
    RequestValidationError,
    SerializationError,
    TransportError,
    UnsupportedMethodError,
)
from postman_core.models import ClientConfig, HttpMethod, HttpResponse, Request
from postman_core.url_builder import build_url
from postman_core.variables import resolve_request

logger = logging.getLogger(__name__)


@dataclass
class PreparedRequest:
    """Everything needed to put one request on the wire.

    content and wire_headers hold the UTF-8 encoded body and header values;
    header names stay text and must be ASCII.
    """

    method: str
    url: str
    headers: list[tuple[str, str]]
    body: str | None
    content: bytes | None = field(init=False)
    wire_headers: list[tuple[str, bytes]] = field(init=False)

    def __post_init__(self) -> None:
        self.content = self.body.encode("utf-8") if self.body is not None else None
        self.wire_headers = [(key, value.encode("utf-8")) for key, value in self.headers]


def resolve_method(method: str | None) -> str:
    """Uppercase the method (default GET) and check it is supported.

    Raises:
        UnsupportedMethodError: If the method is not one of HttpMethod.
    """
    name = (method if method is not None else HttpMethod.GET.value).upper()
    try:
        return HttpMethod(name).value
    except ValueError:
        raise UnsupportedMethodError(name) from None


def prepare_request(request: Request, variables: dict[str, str] | None = None) -> PreparedRequest:
    """Assemble method, URL, headers and body for request.

    Disabled headers are dropped. Auth headers come after explicit headers.

    Raises:
        RequestValidationError: If the method, URL or host is unusable, or
            some text cannot be encoded as UTF-8 (lone surrogates).
    """
    request = resolve_request(request, variables)

    method = resolve_method(request.method)
    try:
        url = build_url(request.url)

        headers = [(h.key, h.value) for h in request.header or [] if not h.disabled]
        apply_auth(request.auth, headers)

        body = build_body(request.body)

        return PreparedRequest(method=method, url=url, headers=headers, body=body)
    except UnicodeEncodeError as e:
        raise RequestValidationError(
            f"Encoding error: {e.object[e.start:e.end]!r} cannot be encoded as UTF-8"
        ) from e


def build_client_kwargs(config: ClientConfig) -> dict[str, Any]:
    """Build kwargs for httpx.Client / httpx.AsyncClient from a ClientConfig."""
    kwargs: dict[str, Any] = {
        "headers": config.headers,
        "timeout": config.timeout,
        "follow_redirects": config.follow_redirects,
        "max_redirects": config.max_redirects,
    }

    if config.ca_bundle:
        ssl_context = ssl.create_default_context()
        ssl_context.load_verify_locations(config.ca_bundle)
        kwargs["verify"] = ssl_context
    elif not config.verify_ssl:
        kwargs["verify"] = False
    # else: use httpx default (True)

    return kwargs


def convert_response(response: httpx.Response, start_time: float) -> HttpResponse:
    """Convert an httpx response to HttpResponse.

    Header names are lower-cased and kept in received order. A header value
    that is not valid UTF-8 becomes "". The body must be valid UTF-8.

    Raises:
        TransportError: If the body is not valid UTF-8.
    """
    headers: list[tuple[str, str]] = []
    for raw_key, raw_value in response.headers.raw:
        try:
            value = raw_value.decode("utf-8")
        except UnicodeDecodeError:
            value = ""
        headers.append((raw_key.decode("latin-1").lower(), value))

    try:
        body = response.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TransportError(
            f"Response body is not valid UTF-8 ({len(response.content)} bytes, "
            f"content-type: {response.headers.get('content-type', 'unknown')})"
        ) from e

    return HttpResponse(
        status_code=response.status_code,
        headers=headers,
        body=body,
        duration_ms=elapsed_ms(start_time),
    )


def error_response(message: str, duration_ms: int = 0) -> HttpResponse:
    """A status_code 0 response carrying an error message."""
    return HttpResponse(status_code=0, headers=[], body=f"Error: {message}", duration_ms=duration_ms)


def elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


@contextmanager
def _translate_send_errors() -> Iterator[None]:
    """Map httpx failures raised while sending onto postman-core errors."""
    try:
        yield
    except httpx.TimeoutException as e:
        raise TransportError(f"Request timeout: {e}") from e
    except httpx.ConnectError as e:
        raise TransportError(f"Connection error: {e}") from e
    except httpx.RequestError as e:
        raise TransportError(f"Request error: {type(e).__name__}: {e}") from e
    except httpx.InvalidURL as e:
        raise RequestValidationError(f"Invalid URL: {e}") from e
    except UnicodeEncodeError as e:
        # header values are sent as UTF-8 bytes; header names must be ASCII
        raise RequestValidationError(
            f"Encoding error: non-ASCII character {e.object[e.start:e.end]!r} in request "
            f"header name. HTTP requires ASCII for header names."
        ) from e


class Executor:
    """Sends requests through one httpx.Client.

    Usage:
        with Executor(ClientConfig(timeout=10)) as executor:
            response = executor.send(request)

    Invocations share no state beyond the client's connection pool.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            config: Client settings. Defaults to ClientConfig().
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._config = config or ClientConfig()
        kwargs = build_client_kwargs(self._config)
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.Client(**kwargs)

    def __enter__(self) -> "Executor":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def prepare(self, request: Request, variables: dict[str, str] | None = None) -> PreparedRequest:
        return prepare_request(request, variables)

    def execute(self, request: Request, variables: dict[str, str] | None = None) -> HttpResponse:
        """Build and send request.

        Duration covers assembly as well as the network exchange.

        Raises:
            RequestValidationError: If the request cannot be built.
            TransportError: If sending fails or the body is not UTF-8.
        """
        start_time = time.perf_counter()
        prepared = self.prepare(request, variables)

        logger.debug("Sending %s %s", prepared.method, prepared.url)
        with _translate_send_errors():
            http_response = self._client.request(
                method=prepared.method,
                url=prepared.url,
                headers=prepared.wire_headers,
                content=prepared.content,
            )

        response = convert_response(http_response, start_time)
        logger.debug(
            "Received %d from %s in %dms", response.status_code, prepared.url, response.duration_ms
        )
        return response

    def send(self, request: Request, variables: dict[str, str] | None = None) -> HttpResponse:
        """Like execute(), but failures become a status_code 0 response."""
        start_time = time.perf_counter()
        try:
            return self.execute(request, variables)
        except (RequestValidationError, TransportError, SerializationError) as e:
            logger.warning("Request failed: %s", e)
            return error_response(str(e), elapsed_ms(start_time))


class AsyncExecutor:
    """Awaitable counterpart of Executor, backed by httpx.AsyncClient.

    Usage:
        async with AsyncExecutor() as executor:
            response = await executor.send(request)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        kwargs = build_client_kwargs(self._config)
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**kwargs)

    async def __aenter__(self) -> "AsyncExecutor":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def prepare(self, request: Request, variables: dict[str, str] | None = None) -> PreparedRequest:
        return prepare_request(request, variables)

    async def execute(
        self, request: Request, variables: dict[str, str] | None = None
    ) -> HttpResponse:
        start_time = time.perf_counter()
        prepared = self.prepare(request, variables)

        logger.debug("Sending %s %s", prepared.method, prepared.url)
        with _translate_send_errors():
            http_response = await self._client.request(
                method=prepared.method,
                url=prepared.url,
                headers=prepared.wire_headers,
                content=prepared.content,
            )

        return convert_response(http_response, start_time)

    async def send(
        self, request: Request, variables: dict[str, str] | None = None
    ) -> HttpResponse:
        start_time = time.perf_counter()
        try:
            return await self.execute(request, variables)
        except (RequestValidationError, TransportError, SerializationError) as e:
            logger.warning("Request failed: %s", e)
            return error_response(str(e), elapsed_ms(start_time))


def execute_request(
    request: Request,
    variables: dict[str, str] | None = None,
    config: ClientConfig | None = None,
) -> HttpResponse:
    """One-shot helper: open an Executor, send request, close it."""
    with Executor(config) as executor:
        return executor.send(request, variables)
