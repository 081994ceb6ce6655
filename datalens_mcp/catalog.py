"""
DataLens Method Catalog

Single Source of Truth for the typed wrappers exposed as MCP tools.
The table is built once at import time and never mutated afterwards.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .base import FieldLocation, FieldSpec, HttpVerb, Maturity, MethodDescriptor

GENERIC_TOOL_ID = "datalens_rpc"
INTROSPECTION_TOOL_ID = "datalens_list_methods"
SCHEMA_TOOL_ID = "datalens_get_method_schema"

RESERVED_TOOL_IDS = frozenset({GENERIC_TOOL_ID, INTROSPECTION_TOOL_ID, SCHEMA_TOOL_ID})

# Baked in at build time; bump together with the table below.
CATALOG_SNAPSHOT: Mapping[str, str] = MappingProxyType({
    "snapshotDate": "2026-02-17",
    "sourceUrl": "https://datalens.tech/docs/en/openapi-ref/",
    "apiVersion": "0",
})


# ---------------------------------------------------------------------------
# Shared field definitions
# ---------------------------------------------------------------------------

def _id_field(name: str, wire: str, description: str) -> FieldSpec:
    return FieldSpec(
        name=name,
        type="string",
        description=description,
        required=True,
        wire_name=wire,
    )


DATASET_ID = _id_field("dataset_id", "datasetId", "Dataset identifier")
CONNECTION_ID = _id_field("connection_id", "connectionId", "Connection identifier")
DASHBOARD_ID = _id_field("dashboard_id", "dashboardId", "Dashboard identifier")

WORKBOOK_ID = FieldSpec(
    name="workbook_id",
    type="string",
    description="Workbook identifier",
    wire_name="workbookId",
)

PAGE = FieldSpec(name="page", type="integer", description="Page number")
PAGE_SIZE = FieldSpec(
    name="page_size", type="integer", description="Page size", wire_name="pageSize"
)
CREATED_BY = FieldSpec(
    name="created_by",
    type="any",
    description="Author filter (login or list of logins)",
    wire_name="createdBy",
)
ORDER_BY = FieldSpec(
    name="order_by",
    type="object",
    description="Sort order, e.g. {\"field\": \"name\", \"direction\": \"asc\"}",
    wire_name="orderBy",
)
FILTERS = FieldSpec(name="filters", type="object", description="Entry filters")
INCLUDE_PERMISSIONS_INFO = FieldSpec(
    name="include_permissions_info",
    type="boolean",
    description="Include permission info for each entry",
    wire_name="includePermissionsInfo",
)
INCLUDE_LINKS = FieldSpec(
    name="include_links", type="boolean", description="Include entry links", wire_name="includeLinks"
)

DASHBOARD_ENTRY = FieldSpec(
    name="entry",
    type="object",
    description="Dashboard entry object",
    required=True,
)
SAVE_MODE = FieldSpec(
    name="mode",
    type="string",
    description="`save` or `publish`",
    required=True,
)


# ---------------------------------------------------------------------------
# Read methods
# ---------------------------------------------------------------------------

_READ_METHODS = (
    MethodDescriptor(
        tool_id="datalens_list_directory",
        remote_method="listDirectory",
        http_verb=HttpVerb.POST,
        category="read",
        description="Call listDirectory. By default, lists the root path '/'.",
        fields=(
            FieldSpec(name="path", type="string", description="Directory path", default="/"),
            CREATED_BY,
            ORDER_BY,
            FILTERS,
            PAGE,
            PAGE_SIZE,
            INCLUDE_PERMISSIONS_INFO,
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_get_entries",
        remote_method="getEntries",
        http_verb=HttpVerb.POST,
        category="read",
        description="Call getEntries. Pass any getEntries request fields.",
        fields=(
            FieldSpec(
                name="exclude_locked",
                type="boolean",
                description="Skip locked entries",
                wire_name="excludeLocked",
            ),
            FieldSpec(
                name="include_data",
                type="boolean",
                description="Include entry data",
                wire_name="includeData",
            ),
            INCLUDE_LINKS,
            FILTERS,
            ORDER_BY,
            CREATED_BY,
            PAGE,
            PAGE_SIZE,
            INCLUDE_PERMISSIONS_INFO,
            FieldSpec(
                name="ignore_workbook_entries",
                type="boolean",
                description="Skip entries that live in workbooks",
                wire_name="ignoreWorkbookEntries",
            ),
            FieldSpec(name="scope", type="string", description="Entry scope, e.g. `dataset`"),
            FieldSpec(name="ids", type="any", description="Entry identifiers"),
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_get_dataset",
        remote_method="getDataset",
        http_verb=HttpVerb.POST,
        category="read",
        description=(
            "Call getDataset by dataset_id. Optional: workbook_id, rev_id and "
            "other request fields."
        ),
        fields=(
            DATASET_ID,
            WORKBOOK_ID,
            FieldSpec(
                name="rev_id",
                type="string",
                description="Revision identifier",
                aliases=("revId",),
            ),
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_get_dashboard",
        remote_method="getDashboard",
        http_verb=HttpVerb.POST,
        category="read",
        description=(
            "Call getDashboard by dashboard_id. Optional: rev_id, include_permissions, "
            "include_links, include_favorite, branch and other fields."
        ),
        fields=(
            DASHBOARD_ID,
            FieldSpec(
                name="rev_id",
                type="string",
                description="Revision identifier",
                wire_name="revId",
            ),
            FieldSpec(
                name="include_permissions",
                type="boolean",
                description="Include permissions",
                wire_name="includePermissions",
                aliases=("includePermissionsInfo",),
            ),
            INCLUDE_LINKS,
            FieldSpec(
                name="include_favorite",
                type="boolean",
                description="Include favorite flag",
                wire_name="includeFavorite",
            ),
            FieldSpec(name="branch", type="string", description="`saved` or `published`"),
            WORKBOOK_ID,
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_get_connection",
        remote_method="getConnection",
        http_verb=HttpVerb.POST,
        category="read",
        description=(
            "Call getConnection by connection_id. Optional: workbook_id, "
            "binded_dataset_id, rev_id."
        ),
        fields=(
            CONNECTION_ID,
            WORKBOOK_ID,
            FieldSpec(
                name="binded_dataset_id",
                type="string",
                description="Dataset the connection is bound to",
                wire_name="bindedDatasetId",
            ),
            FieldSpec(
                name="rev_id",
                type="string",
                description="Revision identifier",
                aliases=("revId",),
            ),
        ),
    ),
)


# ---------------------------------------------------------------------------
# Write methods
# ---------------------------------------------------------------------------

_WRITE_METHODS = (
    MethodDescriptor(
        tool_id="datalens_create_connection",
        remote_method="createConnection",
        http_verb=HttpVerb.POST,
        category="write",
        description=(
            "Call createConnection. Include required connection fields for the "
            "selected `type`."
        ),
        fields=(
            FieldSpec(
                name="type",
                type="string",
                description="Connection type, e.g. `clickhouse`",
                required=True,
                aliases=("connection_type",),
            ),
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_update_connection",
        remote_method="updateConnection",
        http_verb=HttpVerb.POST,
        category="write",
        description="Call updateConnection. Required: connection_id, data.",
        fields=(
            CONNECTION_ID,
            FieldSpec(name="data", type="object", description="Connection fields", required=True),
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_delete_connection",
        remote_method="deleteConnection",
        http_verb=HttpVerb.POST,
        category="write",
        description="Call deleteConnection by connection_id.",
        fields=(CONNECTION_ID,),
    ),
    MethodDescriptor(
        tool_id="datalens_create_dashboard",
        remote_method="createDashboard",
        http_verb=HttpVerb.POST,
        category="write",
        description="Call createDashboard. Required: entry, mode (`save` or `publish`).",
        fields=(DASHBOARD_ENTRY, SAVE_MODE),
    ),
    MethodDescriptor(
        tool_id="datalens_update_dashboard",
        remote_method="updateDashboard",
        http_verb=HttpVerb.POST,
        category="write",
        description="Call updateDashboard. Required: entry, mode (`save` or `publish`).",
        fields=(DASHBOARD_ENTRY, SAVE_MODE),
    ),
    MethodDescriptor(
        tool_id="datalens_delete_dashboard",
        remote_method="deleteDashboard",
        http_verb=HttpVerb.POST,
        category="write",
        description="Call deleteDashboard by dashboard_id. Optional: lock_token.",
        fields=(
            DASHBOARD_ID,
            FieldSpec(
                name="lock_token",
                type="string",
                description="Lock token held on the dashboard",
                wire_name="lockToken",
            ),
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_create_dataset",
        remote_method="createDataset",
        http_verb=HttpVerb.POST,
        category="write",
        description=(
            "Call createDataset. Required: dataset. For workbook-scoped creation, "
            "pass workbook_id."
        ),
        fields=(
            FieldSpec(name="dataset", type="object", description="Dataset definition", required=True),
            FieldSpec(
                name="created_via",
                type="any",
                description="Creation source marker",
                aliases=("createdVia",),
            ),
            FieldSpec(
                name="dir_path",
                type="string",
                description="Navigation folder for the new dataset",
                aliases=("dirPath",),
            ),
            FieldSpec(name="name", type="string", description="Dataset name"),
            FieldSpec(name="options", type="object", description="Dataset options"),
            FieldSpec(name="preview", type="boolean", description="Return a preview"),
            FieldSpec(
                name="workbook_id",
                type="string",
                description="Workbook identifier",
                aliases=("workbookId",),
            ),
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_update_dataset",
        remote_method="updateDataset",
        http_verb=HttpVerb.POST,
        category="write",
        description="Call updateDataset by dataset_id. Optional: data.",
        fields=(
            DATASET_ID,
            FieldSpec(name="data", type="object", description="Dataset fields", default={}),
        ),
    ),
    MethodDescriptor(
        tool_id="datalens_delete_dataset",
        remote_method="deleteDataset",
        http_verb=HttpVerb.POST,
        category="write",
        description="Call deleteDataset by dataset_id.",
        fields=(DATASET_ID,),
    ),
    MethodDescriptor(
        tool_id="datalens_validate_dataset",
        remote_method="validateDataset",
        http_verb=HttpVerb.POST,
        category="write",
        maturity=Maturity.EXPERIMENTAL,
        description="Call validateDataset by dataset_id. Optional: workbook_id, data.",
        fields=(
            DATASET_ID,
            WORKBOOK_ID,
            FieldSpec(name="data", type="object", description="Dataset fields", default={}),
        ),
    ),
)


METHOD_CATALOG: Tuple[MethodDescriptor, ...] = _READ_METHODS + _WRITE_METHODS


def _index(descriptors: Iterable[MethodDescriptor]) -> Mapping[str, MethodDescriptor]:
    index: Dict[str, MethodDescriptor] = {}
    for descriptor in descriptors:
        if not descriptor.remote_method:
            raise ValueError(f"Descriptor {descriptor.tool_id} has no remote method")
        if descriptor.tool_id in RESERVED_TOOL_IDS:
            raise ValueError(f"Tool id {descriptor.tool_id} is reserved")
        if descriptor.tool_id in index:
            raise ValueError(f"Duplicate tool id: {descriptor.tool_id}")
        for spec in descriptor.fields:
            if spec.location is FieldLocation.PATH and f"{{{spec.wire}}}" not in descriptor.path:
                raise ValueError(
                    f"Path template of {descriptor.tool_id} lacks a placeholder for {spec.wire}"
                )
        index[descriptor.tool_id] = descriptor
    return MappingProxyType(index)


_BY_TOOL_ID = _index(METHOD_CATALOG)
_BY_REMOTE_METHOD = MappingProxyType({d.remote_method: d for d in METHOD_CATALOG})


def lookup(tool_id: str) -> Optional[MethodDescriptor]:
    """Exact, case-sensitive lookup by tool id. Returns None if absent."""
    return _BY_TOOL_ID.get(tool_id)


def all_methods() -> Tuple[MethodDescriptor, ...]:
    """All typed wrappers in declaration order."""
    return METHOD_CATALOG


def find_by_remote_method(
    remote_method: str, case_sensitive: bool = True
) -> Optional[MethodDescriptor]:
    """Reverse lookup by remote RPC method name."""
    if case_sensitive:
        return _BY_REMOTE_METHOD.get(remote_method)

    wanted = remote_method.lower()
    for descriptor in METHOD_CATALOG:
        if descriptor.remote_method.lower() == wanted:
            return descriptor
    return None


def list_tool_ids() -> Tuple[str, ...]:
    return tuple(d.tool_id for d in METHOD_CATALOG)
