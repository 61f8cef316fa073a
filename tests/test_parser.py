"""Tests for OpenAPI document parsing."""

from pathlib import Path

import pytest
import requests

from openapi2ts.parser import Document, OpenAPIParser, Operation, SpecLoadError
from openapi2ts.schema import ArrayNode, ObjectNode, PrimitiveNode, RefNode

FIXTURES = Path(__file__).parent / "fixtures"


def find(document: Document, operation_id: str) -> Operation:
    return next(op for op in document.operations if op.operation_id == operation_id)


class TestOpenAPIParser:
    """Tests for the OpenAPI parser."""

    def test_parse_petstore_yaml(self):
        """Can parse a YAML OpenAPI spec."""
        parser = OpenAPIParser()
        document = parser.parse(FIXTURES / "petstore.yaml")

        assert isinstance(document, Document)
        assert document.title == "Petstore"
        assert document.version == "1.2.0"

    def test_parse_minimal_json(self):
        """Can parse a JSON OpenAPI spec given as a string path."""
        parser = OpenAPIParser()
        document = parser.parse(str(FIXTURES / "minimal.json"))

        assert document.title == "Minimal"
        assert len(document.operations) == 1
        assert document.schemas == {}

    def test_parse_from_url(self, monkeypatch):
        """Can parse a spec from a URL."""
        calls = []

        class FakeResponse:
            text = (FIXTURES / "minimal.json").read_text()

            def raise_for_status(self):
                pass

        def fake_get(url, timeout):
            calls.append(url)
            return FakeResponse()

        monkeypatch.setattr(requests, "get", fake_get)

        document = OpenAPIParser().parse("https://example.com/openapi")

        assert calls == ["https://example.com/openapi"]
        assert document.title == "Minimal"

    def test_url_failure_is_load_error(self, monkeypatch):
        """HTTP failures surface as SpecLoadError."""
        def fake_get(url, timeout):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr(requests, "get", fake_get)

        with pytest.raises(SpecLoadError, match="Failed to fetch"):
            OpenAPIParser().parse("https://example.com/openapi.json")

    def test_missing_file_is_load_error(self, tmp_path):
        with pytest.raises(SpecLoadError, match="Failed to read"):
            OpenAPIParser().parse(tmp_path / "nope.json")

    def test_invalid_json_is_load_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(SpecLoadError, match="Invalid JSON"):
            OpenAPIParser().parse(path)

    def test_rejects_swagger_2(self):
        with pytest.raises(SpecLoadError, match="Swagger"):
            OpenAPIParser().parse_document({"swagger": "2.0", "paths": {}})

    def test_rejects_missing_version(self):
        with pytest.raises(SpecLoadError, match="Unsupported OpenAPI version"):
            OpenAPIParser().parse_document({"paths": {}})

    def test_rejects_non_mapping(self):
        with pytest.raises(SpecLoadError):
            OpenAPIParser().parse_document(["openapi", "3.0.0"])

    def test_operations_in_declaration_order(self):
        """Operations follow path order, then method order within a path."""
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")

        order = [(op.method, op.path) for op in document.operations]
        assert order == [
            ("get", "/pets"),
            ("post", "/pets"),
            ("get", "/pets/{petId}"),
            ("delete", "/pets/{petId}"),
            ("post", "/store/orders"),
            ("post", "/login"),
        ]

    def test_extracts_schemas_in_registry_order(self):
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")

        assert list(document.schemas) == ["Pet", "NewPet", "Owner", "PetList", "Status"]
        assert isinstance(document.schemas["Pet"], ObjectNode)
        assert document.schemas["Status"] == PrimitiveNode(kind="string")

    def test_extracts_request_and_response_schemas(self):
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")

        create = find(document, "create_pet")
        assert create.request_schema == RefNode(ref="#/components/schemas/NewPet")
        # No 200 response; 201 is the success response
        assert create.success_schema == RefNode(ref="#/components/schemas/Pet")

        listing = find(document, "listPets")
        assert listing.request_schema is None
        assert isinstance(listing.success_schema, ArrayNode)

    def test_non_string_names_are_stringified(self):
        """YAML scalars such as numeric operationIds become strings."""
        document = OpenAPIParser().parse_document({
            "openapi": "3.0.3",
            "paths": {"/a": {"get": {"operationId": 123, "summary": 4.5}}},
        })

        operation = document.operations[0]
        assert operation.operation_id == "123"
        assert operation.summary == "4.5"

    def test_integer_status_keys(self):
        """YAML integer status codes are normalized to strings."""
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")
        assert "200" in find(document, "listPets").responses

    def test_follows_request_body_reference(self):
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")

        order = find(document, "placeOrder")
        assert isinstance(order.request_schema, ObjectNode)
        assert order.request_schema.required == frozenset({"petId", "quantity"})

    def test_no_success_response(self):
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")
        assert find(document, "deletePet").success_schema is None

    def test_vendor_json_content_type(self):
        document = OpenAPIParser().parse_document({
            "openapi": "3.0.0",
            "paths": {"/a": {"post": {"responses": {"200": {"content": {
                "application/vnd.api+json": {"schema": {"type": "string"}},
            }}}}}},
        })
        assert document.operations[0].success_schema == PrimitiveNode(kind="string")

    def test_ignores_non_json_content(self):
        document = OpenAPIParser().parse_document({
            "openapi": "3.0.0",
            "paths": {"/a": {"post": {"requestBody": {"content": {
                "text/plain": {"schema": {"type": "string"}},
            }}}}},
        })
        assert document.operations[0].request_schema is None

    def test_skips_non_method_keys(self):
        """Path-level keys such as parameters are not operations."""
        document = OpenAPIParser().parse_document({
            "openapi": "3.0.0",
            "paths": {"/a": {"parameters": [], "summary": "x", "get": {}}},
        })
        assert [op.method for op in document.operations] == ["get"]

    def test_has_body(self):
        for method, expected in [("get", False), ("delete", False), ("post", True), ("put", True), ("patch", True)]:
            assert Operation(path="/", method=method).has_body is expected


class TestGroupByTag:
    """Tests for grouping operations by tag."""

    def test_groups_endpoints_by_tag(self):
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")

        grouped = document.group_by_tag()

        assert list(grouped) == ["pet", "admin", "store", "default"]
        assert [op.operation_id for op in grouped["pet"]] == [
            "listPets", "create_pet", "get-pet-by-id", "deletePet",
        ]

    def test_multiply_tagged_operation_fans_out(self):
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")

        grouped = document.group_by_tag()
        delete = find(document, "deletePet")

        assert delete in grouped["pet"]
        assert grouped["admin"] == [delete]

    def test_untagged_operations_use_fallback_group(self):
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")

        grouped = document.group_by_tag()
        assert [op.path for op in grouped["default"]] == ["/login"]
        assert "misc" in document.group_by_tag(default_tag="misc")

    def test_every_operation_lands_in_exactly_its_groups(self):
        document = OpenAPIParser().parse(FIXTURES / "petstore.yaml")
        grouped = document.group_by_tag()

        for op in document.operations:
            expected = op.tags or ["default"]
            found = [tag for tag, ops in grouped.items() for member in ops if member is op]
            assert found == expected

    def test_duplicate_tags_count_once(self):
        document = OpenAPIParser().parse_document({
            "openapi": "3.0.0",
            "paths": {"/a": {"get": {"tags": ["x", "x", "y"]}}},
        })

        grouped = document.group_by_tag()
        assert len(grouped["x"]) == 1
        assert document.operations[0].tags == ["x", "y"]
