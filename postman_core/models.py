"""Data models for postman-core.

All models use Pydantic v2. Postman documents ignore unknown fields and are
serialized with by_alias=True, exclude_none=True so optional fields that were
absent on input stay absent on output.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator


# =============================================================================
# Tag Sets
# =============================================================================


class HttpMethod(str, Enum):
    """Methods the executor will send."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class BodyMode(str, Enum):
    """Postman body modes. Only one mode's payload is read per request."""

    RAW = "raw"
    URLENCODED = "urlencoded"
    FORMDATA = "formdata"
    FILE = "file"
    GRAPHQL = "graphql"


class AuthType(str, Enum):
    """Postman auth types.

    Only BEARER and BASIC produce headers. The rest are recognized so that
    they round-trip, but applying them is a no-op.
    """

    NOAUTH = "noauth"
    BEARER = "bearer"
    BASIC = "basic"
    APIKEY = "apikey"
    DIGEST = "digest"
    AWSV4 = "awsv4"
    HAWK = "hawk"
    OAUTH1 = "oauth1"
    OAUTH2 = "oauth2"
    NTLM = "ntlm"


# =============================================================================
# Postman Request Models
# =============================================================================


class PostmanModel(BaseModel):
    """Base for models parsed from Postman JSON.

    Flags and status codes use Strict types, so "yes" is not a bool and
    "200" is not an int.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using Postman field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = None) -> str:
        """Dump to JSON text using Postman field names."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def _coerce_url(value: Any) -> Any:
    # Postman allows "url": "https://..." as shorthand for {"raw": ...}
    if isinstance(value, str):
        return {"raw": value}
    return value


class Variable(PostmanModel):
    """Generic key/value entry used by auth schemes, collections and environments."""

    key: str = Field(description="Variable name")
    value: str = Field(description="Variable value")
    type: str | None = Field(default=None, description="Value type hint, e.g. 'string', 'secret'")
    disabled: StrictBool | None = Field(default=None, description="Collection-style inactive flag")
    enabled: StrictBool | None = Field(default=None, description="Environment-export active flag")

    @property
    def is_active(self) -> bool:
        return not self.disabled and self.enabled is not False


class QueryParam(PostmanModel):
    key: str = Field(description="Parameter name")
    value: str | None = Field(default=None, description="Parameter value; absent values are skipped")
    disabled: StrictBool | None = Field(default=None, description="Skip this parameter")
    description: str | None = Field(default=None, description="Free-form description")


class Header(PostmanModel):
    key: str = Field(description="Header name")
    value: str = Field(description="Header value")
    disabled: StrictBool | None = Field(default=None, description="Omit this header from the request")
    description: str | None = Field(default=None, description="Free-form description")


class Url(PostmanModel):
    """Target URL, either raw or split into parts.

    A non-empty raw always wins; structured parts are never merged into it.
    """

    raw: str | None = Field(default=None, description="Full URL used verbatim when non-empty")
    protocol: str | None = Field(default=None, description="Scheme, defaults to http")
    host: list[str] | None = Field(default=None, description="Host labels, joined with '.'")
    path: list[str] | None = Field(default=None, description="Path segments, joined with '/'")
    query: list[QueryParam] | None = Field(default=None, description="Query parameters in order")
    variable: list[Variable] | None = Field(default=None, description="Path variables")


class FormData(PostmanModel):
    key: str = Field(description="Field name")
    value: str | None = Field(default=None, description="Field value; absent values are skipped")
    type: str | None = Field(default=None, description="'text' or 'file'")
    disabled: StrictBool | None = Field(default=None, description="Skip this field")
    description: str | None = Field(default=None, description="Free-form description")


class FileBody(PostmanModel):
    src: str | None = Field(default=None, description="Path of the file to upload")


class GraphQLBody(PostmanModel):
    query: str | None = Field(default=None, description="GraphQL document")
    variables: str | None = Field(default=None, description="Variables as JSON text")


class Body(PostmanModel):
    """Request payload. The mode tag selects which sub-payload is read."""

    mode: str | None = Field(default=None, description="Body mode tag, defaults to raw")
    raw: str | None = Field(default=None, description="Raw payload")
    urlencoded: list[FormData] | None = Field(default=None, description="URL-encoded form fields")
    formdata: list[FormData] | None = Field(default=None, description="Form-data fields")
    file: FileBody | None = Field(default=None, description="File payload")
    graphql: GraphQLBody | None = Field(default=None, description="GraphQL payload")


class Auth(PostmanModel):
    """Auth descriptor. The type tag selects which variable list is read."""

    type: str | None = Field(default=None, description="Auth type tag, defaults to noauth")
    bearer: list[Variable] | None = None
    basic: list[Variable] | None = None
    apikey: list[Variable] | None = None
    digest: list[Variable] | None = None
    awsv4: list[Variable] | None = None
    hawk: list[Variable] | None = None
    noauth: Any = None
    oauth1: list[Variable] | None = None
    oauth2: list[Variable] | None = None
    ntlm: list[Variable] | None = None


class Script(PostmanModel):
    type: str | None = Field(default=None, description="Script language, e.g. text/javascript")
    exec: list[str] | None = Field(default=None, description="Script source lines")
    src: Url | None = Field(default=None, description="Remote script location")

    @field_validator("src", mode="before")
    @classmethod
    def coerce_url_string(cls, value: Any) -> Any:
        return _coerce_url(value)


class Event(PostmanModel):
    """Pre-request or test script hook. Stored, never executed."""

    listen: str | None = Field(default=None, description="'prerequest' or 'test'")
    script: Script | None = None


class Request(PostmanModel):
    """One HTTP call as described by Postman."""

    method: str | None = Field(default=None, description="HTTP method, defaults to GET")
    header: list[Header] | None = Field(default=None, description="Headers in send order")
    body: Body | None = None
    url: Url | None = None
    description: str | None = None
    auth: Auth | None = None

    @field_validator("url", mode="before")
    @classmethod
    def coerce_url_string(cls, value: Any) -> Any:
        return _coerce_url(value)

    @classmethod
    def simple(
        cls,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> Request:
        """Build a request from a raw URL, a header dict and a raw body."""
        return cls(
            method=method,
            url=Url(raw=url),
            header=[Header(key=k, value=v) for k, v in (headers or {}).items()],
            body=Body(mode=BodyMode.RAW.value, raw=body) if body is not None else None,
        )


# =============================================================================
# Collection and Environment Models
# =============================================================================


class CollectionInfo(PostmanModel):
    name: str = Field(description="Collection name")
    description: str | None = None
    schema_url: str | None = Field(default=None, alias="schema", description="Schema URL")
    postman_id: str | None = Field(default=None, alias="_postman_id")
    exporter_id: str | None = Field(default=None, alias="_exporter_id")


class Cookie(PostmanModel):
    name: str | None = None
    value: str | None = None
    domain: str | None = None
    path: str | None = None
    expires: str | None = None
    http_only: StrictBool | None = Field(default=None, alias="httpOnly")
    secure: StrictBool | None = None


class ExampleResponse(PostmanModel):
    """A saved example response attached to a collection item."""

    name: str | None = None
    original_request: Request | None = Field(default=None, alias="originalRequest")
    status: str | None = None
    code: StrictInt | None = None
    postman_previewlanguage: str | None = Field(default=None, alias="_postman_previewlanguage")
    header: list[Header] | None = None
    cookie: list[Cookie] | None = None
    body: str | None = None
    response_time: str | None = Field(default=None, alias="responseTime")
    timings: Any = None


class CollectionItem(PostmanModel):
    """A request (has `request`) or a folder (has `item`)."""

    name: str = Field(description="Item name")
    item: list[CollectionItem] | None = Field(default=None, description="Children of a folder")
    request: Request | None = None
    response: list[ExampleResponse] | None = None
    event: list[Event] | None = None
    description: str | None = None
    variable: list[Variable] | None = None
    auth: Auth | None = Field(default=None, description="Folder-level auth inherited by children")

    @property
    def is_folder(self) -> bool:
        return self.request is None and self.item is not None


class Collection(PostmanModel):
    """Postman Collection v2.1 document."""

    info: CollectionInfo
    item: list[CollectionItem] = Field(description="Top-level items")
    variable: list[Variable] | None = None
    event: list[Event] | None = None
    auth: Auth | None = None


class Environment(PostmanModel):
    """Postman environment export."""

    id: str | None = None
    name: str = Field(description="Environment name")
    values: list[Variable] | None = Field(default=None, description="Environment variables")
    postman_variable_scope: str | None = Field(default=None, alias="_postman_variable_scope")
    postman_exported_at: str | None = Field(default=None, alias="_postman_exported_at")
    postman_exported_using: str | None = Field(default=None, alias="_postman_exported_using")


# =============================================================================
# Response Model
# =============================================================================


class HttpResponse(BaseModel):
    """Normalized result of one execution.

    status_code 0 means the request never produced an HTTP response
    (validation or transport failure); body then carries the message.
    """

    model_config = ConfigDict(extra="forbid")

    status_code: int = Field(ge=0, le=65535, description="HTTP status, 0 on failure")
    headers: list[tuple[str, str]] = Field(
        default_factory=list, description="Response headers in received order"
    )
    body: str = Field(default="", description="Response body as text")
    duration_ms: int = Field(default=0, ge=0, description="Elapsed wall-clock milliseconds")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_error(self) -> bool:
        return self.status_code == 0 or self.status_code >= 400

    @property
    def status_text(self) -> str:
        if self.status_code == 0:
            return "Error"
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return "Unknown"

    def header_map(self) -> dict[str, str]:
        """Headers as a dict; the last value of a repeated header wins."""
        return {key: value for key, value in self.headers}

    def get_header(self, name: str) -> str | None:
        """First value of a header, matched case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class ClientConfig(BaseModel):
    """HTTP client settings shared by every request an executor sends."""

    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    ca_bundle: str | None = Field(default=None, description="Path to a CA bundle")
    follow_redirects: bool = Field(default=True, description="Follow 3xx responses")
    max_redirects: int = Field(default=10, ge=0, description="Redirect limit")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Default headers (supports ${ENV_VAR} substitution in YAML)",
    )
