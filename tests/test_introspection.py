"""
Unit tests for the catalog introspection tools.
"""

import pytest

from datalens_mcp.base import ErrorKind, InvalidFieldError, MissingFieldError
from datalens_mcp.catalog import (
    GENERIC_TOOL_ID,
    INTROSPECTION_TOOL_ID,
    SCHEMA_TOOL_ID,
    all_methods,
    list_tool_ids,
)
from datalens_mcp.introspection import get_method_schema, list_methods


class TestListMethods:
    def test_lists_every_typed_method_in_order(self):
        result = list_methods()
        assert result["totalMethods"] == len(all_methods())
        assert [m["toolId"] for m in result["methods"]] == list(list_tool_ids())

    def test_snapshot_and_utility_pointers(self):
        result = list_methods()
        assert result["apiVersion"] == "0"
        assert result["snapshotDate"] == "2026-02-17"
        assert result["genericTool"] == GENERIC_TOOL_ID
        assert result["schemaTool"] == SCHEMA_TOOL_ID

    def test_utility_tools_are_not_methods(self):
        tool_ids = {m["toolId"] for m in list_methods()["methods"]}
        assert INTROSPECTION_TOOL_ID not in tool_ids
        assert GENERIC_TOOL_ID not in tool_ids

    def test_method_entry(self):
        entry = next(m for m in list_methods()["methods"] if m["method"] == "validateDataset")
        assert entry == {
            "toolId": "datalens_validate_dataset",
            "method": "validateDataset",
            "httpVerb": "POST",
            "category": "write",
            "maturity": "experimental",
            "experimental": True,
            "invokeWith": "datalens_validate_dataset",
            "summary": "Call validateDataset by dataset_id. Optional: workbook_id, data.",
        }

    def test_arguments_are_ignored(self):
        assert list_methods({"category": "read"}) == list_methods()

    def test_result_is_deterministic(self):
        assert list_methods() == list_methods()


class TestGetMethodSchema:
    def test_known_method(self):
        result = get_method_schema({"method": "getDataset"})
        assert result["typedTool"] == "datalens_get_dataset"
        assert result["genericTool"] == GENERIC_TOOL_ID
        assert result["requestSchema"]["required"] == ["dataset_id"]

    def test_lookup_is_case_insensitive(self):
        result = get_method_schema({"method": "  GETDATASET "})
        assert result["method"] == "getDataset"

    def test_method_name_alias(self):
        result = get_method_schema({"methodName": "listDirectory"})
        assert result["toolId"] == "datalens_list_directory"

    def test_missing_method(self):
        with pytest.raises(MissingFieldError) as exc_info:
            get_method_schema({})
        assert exc_info.value.tool_id == SCHEMA_TOOL_ID

    def test_non_string_method(self):
        with pytest.raises(InvalidFieldError):
            get_method_schema({"method": 5})

    def test_unknown_method_points_at_discovery(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            get_method_schema({"method": "dropDatabase"})
        error = exc_info.value
        assert error.kind is ErrorKind.INVALID_FIELD
        assert INTROSPECTION_TOOL_ID in error.details["hint"]
