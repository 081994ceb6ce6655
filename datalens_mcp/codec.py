"""
Request Codec

Converts loosely-typed tool arguments into validated RPC requests, and
checks response bodies on the way back.

Typed tools validate every declared field before anything is sent.
The generic tool uses an identity codec.
"""

import copy
import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

from .base import (
    ErrorKind,
    FieldLocation,
    FieldSpec,
    HttpVerb,
    InvalidFieldError,
    MethodDescriptor,
    MissingFieldError,
    RpcError,
    rpc_path,
)
from .catalog import GENERIC_TOOL_ID, find_by_remote_method

GENERIC_METHOD_KEYS = ("method", "remote_method")
GENERIC_PAYLOAD_KEYS = ("payload", "arguments")

# RPC method names are single identifiers such as `listDirectory`
RPC_METHOD_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


@dataclass
class EncodedRequest:
    """Wire-ready request for one RPC call."""
    remote_method: str
    verb: HttpVerb
    path: str
    query: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None


def normalize_json_value(value: Any, field_name: str, tool_id: str = None) -> Any:
    """Parse strings that hold a JSON object or array; leave other values alone."""
    if not isinstance(value, str):
        return value

    trimmed = value.strip()
    if not (trimmed.startswith("{") or trimmed.startswith("[")):
        return value

    try:
        return json.loads(trimmed)
    except json.JSONDecodeError as e:
        raise InvalidFieldError(
            field_name,
            f"must be valid JSON when passed as a string: {e}",
            tool_id=tool_id,
        )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_SHAPE_CHECKS: Dict[str, Tuple[Callable[[Any], bool], str]] = {
    "string": (lambda v: isinstance(v, str), "a string"),
    "boolean": (lambda v: isinstance(v, bool), "a boolean"),
    "integer": (_is_int, "an integer"),
    "number": (_is_number, "a number"),
    "array": (lambda v: isinstance(v, list), "an array"),
    "object": (lambda v: isinstance(v, dict), "an object"),
}


def check_shape(spec: FieldSpec, value: Any, tool_id: str = None) -> Any:
    """Validate a value against its declared type. Returns the value to send."""
    if spec.type == "any":
        return normalize_json_value(value, spec.name, tool_id)

    if spec.type == "object" and isinstance(value, str):
        # Stringified JSON objects are part of the declared shape
        value = normalize_json_value(value, spec.name, tool_id)

    try:
        predicate, expected = _SHAPE_CHECKS[spec.type]
    except KeyError:
        raise ValueError(f"Unsupported field type {spec.type!r} for {spec.name}")

    if not predicate(value):
        raise InvalidFieldError(
            spec.name,
            f"expected {expected}, got {type(value).__name__}",
            tool_id=tool_id,
        )
    return value


def _take(spec: FieldSpec, remaining: Dict[str, Any]) -> Any:
    """Pop every key bound to `spec` and return the first non-null value."""
    found = None
    for key in spec.accepted_keys:
        value = remaining.pop(key, None)
        if found is None and value is not None:
            found = value
    return found


def _query_value(value: Any) -> Any:
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return value


def _require_mapping(arguments: Any, tool_id: str) -> Mapping[str, Any]:
    if arguments is None:
        return {}
    if not isinstance(arguments, Mapping):
        raise InvalidFieldError("arguments", "must be a JSON object", tool_id=tool_id)
    return arguments


def encode(descriptor: MethodDescriptor, arguments: Mapping[str, Any]) -> EncodedRequest:
    """
    Encode a typed tool invocation.

    Raises MissingFieldError / InvalidFieldError; nothing reaches the
    network when encoding fails. Argument keys that match no declared
    field are passed through unchanged.
    """
    tool_id = descriptor.tool_id
    remaining = dict(_require_mapping(arguments, tool_id))

    targets: Dict[FieldLocation, Dict[str, Any]] = {
        FieldLocation.BODY: {},
        FieldLocation.QUERY: {},
        FieldLocation.PATH: {},
    }

    for spec in descriptor.fields:
        value = _take(spec, remaining)
        if value is None:
            if spec.required:
                raise MissingFieldError(spec.name, tool_id=tool_id)
            if spec.default is None:
                continue
            value = copy.deepcopy(spec.default)
        targets[spec.location][spec.wire] = check_shape(spec, value, tool_id)

    extra_target = FieldLocation.BODY if descriptor.http_verb.sends_body else FieldLocation.QUERY
    targets[extra_target].update(remaining)

    path = descriptor.path
    for wire, value in targets[FieldLocation.PATH].items():
        path = path.replace(f"{{{wire}}}", quote(str(value), safe=""))

    return EncodedRequest(
        remote_method=descriptor.remote_method,
        verb=descriptor.http_verb,
        path=path,
        query={k: _query_value(v) for k, v in targets[FieldLocation.QUERY].items()},
        body=targets[FieldLocation.BODY] if descriptor.http_verb.sends_body else None,
    )


def _first_present(arguments: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if arguments.get(key) is not None:
            return arguments[key]
    return None


def encode_generic(arguments: Mapping[str, Any], tool_id: str = GENERIC_TOOL_ID) -> EncodedRequest:
    """
    Identity codec for the generic passthrough tool.

    Expects `{"method": <rpc method>, "payload": {...}}`. The payload is sent
    verbatim: as the JSON body for write verbs, as query params otherwise.
    Methods known to the catalog keep their catalog verb; anything else is
    sent as POST, which is what /rpc endpoints accept.
    """
    arguments = _require_mapping(arguments, tool_id)

    unexpected = sorted(set(arguments) - set(GENERIC_METHOD_KEYS) - set(GENERIC_PAYLOAD_KEYS))
    if unexpected:
        raise InvalidFieldError(
            unexpected[0],
            "unexpected field; put request fields inside `payload`",
            tool_id=tool_id,
        )

    method = _first_present(arguments, GENERIC_METHOD_KEYS)
    if method is None:
        raise MissingFieldError("method", tool_id=tool_id)
    if not isinstance(method, str) or not method.strip():
        raise InvalidFieldError("method", "must be a non-empty string", tool_id=tool_id)
    method = method.strip()
    if not RPC_METHOD_NAME.match(method):
        raise InvalidFieldError(
            "method",
            "must be an RPC method name (letters, digits and underscores)",
            tool_id=tool_id,
        )

    payload = _first_present(arguments, GENERIC_PAYLOAD_KEYS)
    if payload is None:
        payload = {}
    payload = normalize_json_value(payload, "payload", tool_id)
    if not isinstance(payload, dict):
        raise InvalidFieldError("payload", "must be a JSON object", tool_id=tool_id)

    descriptor = find_by_remote_method(method)
    verb = descriptor.http_verb if descriptor else HttpVerb.POST

    return EncodedRequest(
        remote_method=method,
        verb=verb,
        path=rpc_path(method),
        query={} if verb.sends_body else {k: _query_value(v) for k, v in payload.items()},
        body=dict(payload) if verb.sends_body else None,
    )


def decode(descriptor: MethodDescriptor, body: Any) -> Dict[str, Any]:
    """Typed results must be JSON objects; an empty body decodes to {}."""
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise RpcError(
            ErrorKind.PROTOCOL,
            f"DataLens API returned non-object JSON for method {descriptor.remote_method}",
            tool_id=descriptor.tool_id,
            details={"method": descriptor.remote_method, "body_type": type(body).__name__},
        )
    return body


def decode_generic(body: Any) -> Any:
    """The generic tool returns the parsed body unmodified."""
    return {} if body is None else body
