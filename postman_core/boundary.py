"""Boundary - JSON-in, JSON-out entry points.

Every function takes a UTF-8 JSON document (str or bytes) and returns JSON
text or None:

    make_http_request          request document -> response document
    parse_postman_collection   collection -> compact collection
    collection_to_json         collection -> pretty collection
    parse_postman_environment  environment -> compact environment
    environment_to_json        environment -> pretty environment

None means the input itself was unusable (null, not UTF-8, or for requests
not JSON). A request that is JSON but not a valid request yields a
status_code 0 response instead; a malformed collection or environment yields
{"error": "<message>"}.
"""

from __future__ import annotations

import json
import logging
import time

from pydantic import BaseModel, ValidationError

from postman_core.errors import InputError, SerializationError
from postman_core.executor import elapsed_ms, execute_request
from postman_core.models import ClientConfig, Collection, Environment, HttpResponse, Request
from postman_core.variables import environment_values

logger = logging.getLogger(__name__)

Document = str | bytes | None


def describe_validation_error(error: ValidationError) -> str:
    """One-line summary of a pydantic ValidationError."""
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


def _read_document(document: Document) -> str:
    if document is None:
        raise InputError("Document is null")
    if isinstance(document, bytes):
        try:
            return document.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InputError(f"Document is not valid UTF-8: {e}") from e
    return document


def _load_json_text(document: Document) -> str:
    """Decode document and check that it is JSON; the text is returned unparsed."""
    text = _read_document(document)
    try:
        json.loads(text)
    except json.JSONDecodeError as e:
        raise InputError(f"Document is not valid JSON: {e}") from e
    return text


def _serialize(model: BaseModel, indent: int | None = None) -> str:
    try:
        return model.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
    except ValueError as e:
        raise SerializationError(f"Cannot serialize {type(model).__name__}: {e}") from e


def _parse_failure(prefix: str, error: ValidationError) -> str:
    return _serialize(
        HttpResponse(status_code=0, body=f"{prefix}: {describe_validation_error(error)}")
    )


def make_http_request(
    request_json: Document,
    environment_json: Document = None,
    config: ClientConfig | None = None,
) -> str | None:
    """Execute one request document and return the response document.

    Args:
        request_json: Request JSON.
        environment_json: Optional environment JSON supplying {{var}} values.
        config: Client settings for this call.

    Returns:
        {"status_code", "headers", "body", "duration_ms"} as JSON, or None
        for unusable input.
    """
    try:
        request_text = _load_json_text(request_json)
        environment_text = (
            _load_json_text(environment_json) if environment_json is not None else None
        )
    except InputError as e:
        logger.debug("Rejected input: %s", e)
        return None

    try:
        try:
            request = Request.model_validate_json(request_text)
        except ValidationError as e:
            return _parse_failure("Error parsing request", e)

        variables: dict[str, str] = {}
        if environment_text is not None:
            try:
                variables = environment_values(Environment.model_validate_json(environment_text))
            except ValidationError as e:
                return _parse_failure("Error parsing environment", e)

        start_time = time.perf_counter()
        response = execute_request(request, variables, config)
        response = response.model_copy(update={"duration_ms": elapsed_ms(start_time)})
        return _serialize(response)
    except SerializationError as e:
        logger.error("%s", e)
        return None


def _roundtrip(document: Document, model: type[BaseModel], indent: int | None) -> str | None:
    try:
        text = _read_document(document)
    except InputError as e:
        logger.debug("Rejected input: %s", e)
        return None

    try:
        parsed = model.model_validate_json(text)
    except ValidationError as e:
        return json.dumps({"error": describe_validation_error(e)}, ensure_ascii=False)

    try:
        return _serialize(parsed, indent=indent)
    except SerializationError as e:
        logger.error("%s", e)
        return None


def parse_postman_collection(collection_json: Document) -> str | None:
    """Validate a collection and re-serialize it compactly."""
    return _roundtrip(collection_json, Collection, indent=None)


def collection_to_json(collection_json: Document) -> str | None:
    """Validate a collection and re-serialize it pretty-printed."""
    return _roundtrip(collection_json, Collection, indent=2)


def parse_postman_environment(environment_json: Document) -> str | None:
    """Validate an environment and re-serialize it compactly."""
    return _roundtrip(environment_json, Environment, indent=None)


def environment_to_json(environment_json: Document) -> str | None:
    """Validate an environment and re-serialize it pretty-printed."""
    return _roundtrip(environment_json, Environment, indent=2)
