"""
DataLens Tool Base Types

Field specifications, method descriptors and the error taxonomy shared by
the codec, the transport client and the dispatcher.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class HttpVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def sends_body(self) -> bool:
        """Whether a payload travels as a JSON body rather than as query params."""
        return self not in (HttpVerb.GET, HttpVerb.DELETE)


class Maturity(str, Enum):
    STABLE = "stable"
    EXPERIMENTAL = "experimental"


class FieldLocation(str, Enum):
    BODY = "body"
    QUERY = "query"
    PATH = "path"


class ErrorKind(str, Enum):
    """Classified failure kinds reported back to the caller."""

    # Caller errors, raised locally before any network call
    UNKNOWN_TOOL = "unknown_tool"
    MISSING_FIELD = "missing_field"
    INVALID_FIELD = "invalid_field"
    CONFIGURATION = "configuration"

    # Remote-facing, exactly one call attempted
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    REMOTE_ERROR = "remote_error"
    BAD_REQUEST = "bad_request"
    TRANSPORT = "transport"
    PROTOCOL = "protocol"

    INTERNAL = "internal"


def rpc_path(remote_method: str) -> str:
    return f"/rpc/{remote_method}"


@dataclass(frozen=True)
class FieldSpec:
    """Definition of one argument accepted by a typed tool."""
    name: str
    type: str
    description: str = ""
    required: bool = False
    default: Any = None
    wire_name: Optional[str] = None
    aliases: Tuple[str, ...] = ()
    location: FieldLocation = FieldLocation.BODY

    @property
    def wire(self) -> str:
        return self.wire_name or self.name

    @property
    def accepted_keys(self) -> Tuple[str, ...]:
        """Argument keys that bind to this field, in precedence order."""
        keys = [self.name]
        for key in (self.wire, *self.aliases):
            if key not in keys:
                keys.append(key)
        return tuple(keys)


@dataclass(frozen=True)
class MethodDescriptor:
    """Catalog record binding a typed tool to one remote RPC method."""
    tool_id: str
    remote_method: str
    http_verb: HttpVerb
    category: str
    maturity: Maturity = Maturity.STABLE
    description: str = ""
    fields: Tuple[FieldSpec, ...] = field(default_factory=tuple)
    path_template: Optional[str] = None

    @property
    def path(self) -> str:
        """URL template; `{wire}` placeholders are filled from path fields."""
        return self.path_template or rpc_path(self.remote_method)

    @property
    def experimental(self) -> bool:
        return self.maturity is Maturity.EXPERIMENTAL


class DataLensToolError(Exception):
    """Base exception for tool invocation errors."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, tool_id: str = None, details: Dict = None):
        self.message = message
        self.tool_id = tool_id
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        error = {"kind": self.kind.value, "message": self.message}
        if self.details:
            error["details"] = self.details
        return error


class UnknownToolError(DataLensToolError):
    """Raised when a tool identifier is neither typed nor reserved."""

    kind = ErrorKind.UNKNOWN_TOOL


class CodecError(DataLensToolError):
    """Raised when invocation arguments cannot be encoded."""

    def __init__(self, message: str, field_name: str, tool_id: str = None, details: Dict = None):
        self.field_name = field_name
        super().__init__(message, tool_id=tool_id, details=details)

    def to_dict(self) -> Dict[str, Any]:
        error = super().to_dict()
        error["field"] = self.field_name
        return error


class MissingFieldError(CodecError):
    kind = ErrorKind.MISSING_FIELD

    def __init__(self, field_name: str, tool_id: str = None):
        super().__init__(
            f"Missing required field: {field_name}",
            field_name=field_name,
            tool_id=tool_id,
        )


class InvalidFieldError(CodecError):
    kind = ErrorKind.INVALID_FIELD

    def __init__(self, field_name: str, reason: str, tool_id: str = None, details: Dict = None):
        self.reason = reason
        super().__init__(
            f"Invalid field `{field_name}`: {reason}",
            field_name=field_name,
            tool_id=tool_id,
            details=details,
        )


class ConfigurationError(DataLensToolError):
    """Raised when credentials or settings needed for a call are absent."""

    kind = ErrorKind.CONFIGURATION


class RpcError(DataLensToolError):
    """A classified failure of one remote call."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        tool_id: str = None,
        details: Dict = None,
    ):
        self.kind = kind
        self.status_code = status_code
        super().__init__(message, tool_id=tool_id, details=details)

    def to_dict(self) -> Dict[str, Any]:
        error = super().to_dict()
        if self.status_code is not None:
            error["status_code"] = self.status_code
        return error
