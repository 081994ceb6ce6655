"""
DataLens Transport Client

Performs authenticated RPC calls against the DataLens API and normalizes
every result into an RpcOutcome. One call is one HTTP request; there are
no retries at this layer.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import httpx

from .base import ConfigurationError, ErrorKind, HttpVerb, RpcError
from .config import EnvCredentials, Settings, ORG_ID_ENV, TOKEN_ENVS

logger = logging.getLogger(__name__)

ORG_ID_HEADER = "x-dl-org-id"
API_VERSION_HEADER = "x-dl-api-version"
SUBJECT_TOKEN_HEADER = "x-yacloud-subjecttoken"
AUTH_TOKEN_HEADER = "x-dl-auth-token"

MAX_DETAIL_CHARS = 2000


@dataclass(frozen=True)
class RpcSuccess:
    status_code: int
    body: Any = None

    ok = True


@dataclass(frozen=True)
class RpcFailure:
    kind: ErrorKind
    message: str
    status_code: Optional[int] = None
    detail: Dict[str, Any] = field(default_factory=dict)

    ok = False

    def to_error(self, tool_id: str = None) -> RpcError:
        return RpcError(
            self.kind,
            self.message,
            status_code=self.status_code,
            tool_id=tool_id,
            details=self.detail,
        )


RpcOutcome = Union[RpcSuccess, RpcFailure]


def classify_status(status_code: int) -> Optional[ErrorKind]:
    """Map an HTTP status to a failure kind; None means success."""
    if 200 <= status_code < 300:
        return None
    if status_code in (401, 403):
        return ErrorKind.UNAUTHORIZED
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code >= 500:
        return ErrorKind.REMOTE_ERROR
    if 400 <= status_code < 500:
        return ErrorKind.BAD_REQUEST
    return ErrorKind.REMOTE_ERROR


def truncate_text(text: str, max_chars: int = MAX_DETAIL_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}...(truncated)"


def parse_response_data(text: str) -> Any:
    """Parsed JSON when possible, otherwise the (truncated) raw text."""
    try:
        return json.loads(text)
    except ValueError:
        return truncate_text(text)


def legacy_auth_value(token: str) -> str:
    return token if token.startswith("OAuth ") else f"OAuth {token}"


class DataLensClient:
    """
    Shared HTTP client for DataLens RPC.

    The underlying httpx.AsyncClient (and its connection pool) is shared by
    all concurrent invocations. Credentials are read from the provider on
    every call and never cached here.
    """

    def __init__(
        self,
        settings: Settings,
        credentials: Any = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.credentials = credentials or EnvCredentials()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=float(settings.timeout_seconds),
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "DataLensClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def auth_headers(self) -> Dict[str, str]:
        """
        Headers attached to every call.

        The token is sent under both the subject-token and the legacy OAuth header.
        """
        creds = self.credentials.current()
        if not creds.org_id:
            raise ConfigurationError(f"{ORG_ID_ENV} environment variable is required")
        if not creds.token:
            raise ConfigurationError(
                f"{' or '.join(TOKEN_ENVS)} environment variable is required"
            )

        return {
            ORG_ID_HEADER: creds.org_id,
            API_VERSION_HEADER: self.settings.api_version,
            SUBJECT_TOKEN_HEADER: creds.token,
            AUTH_TOKEN_HEADER: legacy_auth_value(creds.token),
        }

    async def call(
        self,
        verb: HttpVerb,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> RpcOutcome:
        """
        Perform one RPC call.

        Remote and transport failures come back as RpcFailure. A missing
        credential raises ConfigurationError before any request is made.
        """
        headers = self.auth_headers()
        method = path.rsplit("/", 1)[-1]
        logger.debug(f"Calling DataLens API: {verb.value} {path}")

        request_kwargs: Dict[str, Any] = {"headers": headers}
        if query:
            request_kwargs["params"] = query
        if verb.sends_body:
            request_kwargs["json"] = body if body is not None else {}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        try:
            response = await self._http.request(verb.value, path, **request_kwargs)
        except httpx.TimeoutException as e:
            return self._failure(
                ErrorKind.TRANSPORT,
                f"DataLens API request timed out for method {method}: {e!r}",
                detail={"method": method},
            )
        except httpx.RequestError as e:
            return self._failure(
                ErrorKind.TRANSPORT,
                f"Failed to reach DataLens API for method {method}: {e}",
                detail={"method": method},
            )

        text = response.text
        kind = classify_status(response.status_code)

        if kind is not None:
            data = parse_response_data(text) if text.strip() else None
            message = f"DataLens API returned {response.status_code} for method {method}"
            if isinstance(data, dict) and data.get("message"):
                message = f"{message}: {data['message']}"
            return self._failure(
                kind,
                message,
                status_code=response.status_code,
                detail={"method": method, "status": response.status_code, "response": data},
            )

        if not text.strip():
            return RpcSuccess(status_code=response.status_code, body=None)

        try:
            body_data = json.loads(text)
        except ValueError as e:
            return self._failure(
                ErrorKind.PROTOCOL,
                f"DataLens API returned invalid JSON for method {method}: {e}",
                status_code=response.status_code,
                detail={"method": method, "body": truncate_text(text)},
            )

        return RpcSuccess(status_code=response.status_code, body=body_data)

    def _failure(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        detail: Dict[str, Any] = None,
    ) -> RpcFailure:
        logger.debug(f"DataLens call failed ({kind.value}): {message}")
        return RpcFailure(kind=kind, message=message, status_code=status_code, detail=detail or {})
