"""
DataLens MCP

Exposes the Yandex DataLens RPC API as MCP tools: typed wrappers for the
common methods, a generic passthrough for the rest, and two local tools
that describe the method catalog.
"""

from .base import DataLensToolError, ErrorKind, FieldSpec, MethodDescriptor
from .catalog import all_methods, lookup
from .client import DataLensClient
from .config import EnvCredentials, Settings, StaticCredentials
from .dispatcher import Dispatcher

__all__ = [
    "DataLensClient",
    "DataLensToolError",
    "Dispatcher",
    "EnvCredentials",
    "ErrorKind",
    "FieldSpec",
    "MethodDescriptor",
    "Settings",
    "StaticCredentials",
    "all_methods",
    "lookup",
]
