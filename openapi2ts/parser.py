"""OpenAPI document loading and parsing."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests
import yaml

from .schema import ReferenceResolver, SchemaNode, parse_schema

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options", "trace")

# Methods whose generated callables take no request body
NO_BODY_METHODS = ("get", "delete")

JSON_CONTENT_TYPE = "application/json"

SUCCESS_STATUSES = ("200", "201")

DEFAULT_TAG = "default"


class SpecLoadError(Exception):
    """The document could not be read or is not an OpenAPI 3.x document."""


def _json_schema(content: Dict[str, SchemaNode]) -> Optional[SchemaNode]:
    """Pick the JSON schema out of a content-type mapping."""
    if JSON_CONTENT_TYPE in content:
        return content[JSON_CONTENT_TYPE]
    for content_type, schema in content.items():
        if content_type.split(";")[0].strip().endswith("+json"):
            return schema
    return None


@dataclass
class Operation:
    """One HTTP method bound to one path."""

    path: str
    method: str
    operation_id: str = ""
    summary: str = ""
    description: str = ""
    tags: List[str] = field(default_factory=list)
    request_body: Dict[str, SchemaNode] = field(default_factory=dict)
    responses: Dict[str, Dict[str, SchemaNode]] = field(default_factory=dict)

    @property
    def has_body(self) -> bool:
        """Whether the generated callable takes a data argument."""
        return self.method.lower() not in NO_BODY_METHODS

    @property
    def request_schema(self) -> Optional[SchemaNode]:
        """JSON request body schema, if any."""
        return _json_schema(self.request_body)

    @property
    def success_schema(self) -> Optional[SchemaNode]:
        """JSON schema of the primary success response, if any."""
        for status in SUCCESS_STATUSES:
            if status in self.responses:
                return _json_schema(self.responses[status])
        return None


@dataclass
class Document:
    """A parsed OpenAPI document."""

    title: str
    version: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)
    operations: List[Operation] = field(default_factory=list)
    schemas: Dict[str, SchemaNode] = field(default_factory=dict)

    @property
    def resolver(self) -> ReferenceResolver:
        return ReferenceResolver(self.raw)

    def group_by_tag(self, default_tag: str = DEFAULT_TAG) -> Dict[str, List[Operation]]:
        """Group operations by their tags.

        Untagged operations land in ``default_tag``; an operation with
        several tags appears in each of their groups.
        """
        groups: Dict[str, List[Operation]] = {}

        for operation in self.operations:
            tags = operation.tags or [default_tag]
            for tag in tags:
                if tag not in groups:
                    groups[tag] = []
                groups[tag].append(operation)

        return groups


class OpenAPIParser:
    """Parser for OpenAPI 3.x documents."""

    def parse(self, source: Union[str, Path]) -> Document:
        """Parse an OpenAPI document from a file path or URL."""
        raw = self._load_spec(source)
        return self.parse_document(raw)

    def parse_document(self, raw: Any) -> Document:
        """Build a Document from an already-loaded mapping."""
        if not isinstance(raw, dict):
            raise SpecLoadError("OpenAPI document must be a mapping")

        version = str(raw.get("openapi", ""))
        if "swagger" in raw:
            raise SpecLoadError(f"Swagger {raw['swagger']} documents are not supported; convert to OpenAPI 3.x")
        if not version.startswith("3"):
            raise SpecLoadError(f"Unsupported OpenAPI version: {version or 'missing'}")

        info = raw.get("info") or {}
        operations = self._parse_paths(raw.get("paths") or {}, raw)
        schemas = (raw.get("components") or {}).get("schemas") or {}

        logger.debug("Parsed %d operations and %d schemas", len(operations), len(schemas))

        return Document(
            title=str(info.get("title", "API")),
            version=str(info.get("version", "1.0.0")),
            raw=raw,
            operations=operations,
            schemas={str(name): parse_schema(schema) for name, schema in schemas.items()},
        )

    def _load_spec(self, source: Union[str, Path]) -> Any:
        """Load spec from file or URL."""
        if isinstance(source, Path):
            source = str(source)

        # Check if URL
        if source.startswith(("http://", "https://")):
            try:
                response = requests.get(source, timeout=30)
                response.raise_for_status()
            except requests.exceptions.RequestException as e:
                raise SpecLoadError(f"Failed to fetch {source}: {e}") from e
            content = response.text
            if source.endswith((".yaml", ".yml")):
                return self._load_yaml(content, source)
            try:
                return json.loads(content)
            except json.JSONDecodeError:
                return self._load_yaml(content, source)

        # Local file
        path = Path(source)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SpecLoadError(f"Failed to read {source}: {e}") from e

        if path.suffix in (".yaml", ".yml"):
            return self._load_yaml(content, source)
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise SpecLoadError(f"Invalid JSON in {source}: {e}") from e

    def _load_yaml(self, content: str, source: str) -> Any:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise SpecLoadError(f"Invalid YAML in {source}: {e}") from e

    def _parse_paths(self, paths: dict, spec: dict) -> List[Operation]:
        """Parse paths into operations, in declaration order."""
        operations = []

        for path, methods in paths.items():
            if not isinstance(methods, dict):
                continue
            for method, details in methods.items():
                if method.lower() in HTTP_METHODS and isinstance(details, dict):
                    operations.append(self._parse_operation(path, method.lower(), details, spec))

        return operations

    def _parse_operation(self, path: str, method: str, details: dict, spec: dict) -> Operation:
        """Parse a single operation."""
        tags: List[str] = []
        for tag in details.get("tags") or []:
            if str(tag) not in tags:
                tags.append(str(tag))

        request_body = {}
        if "requestBody" in details:
            request_body = self._parse_content(details["requestBody"], spec)

        responses = {}
        for status, response in (details.get("responses") or {}).items():
            responses[str(status)] = self._parse_content(response, spec)

        return Operation(
            path=path,
            method=method,
            operation_id=str(details.get("operationId") or ""),
            summary=str(details.get("summary") or ""),
            description=str(details.get("description") or ""),
            tags=tags,
            request_body=request_body,
            responses=responses,
        )

    def _parse_content(self, body: Any, spec: dict) -> Dict[str, SchemaNode]:
        """Parse the content map of a request body or response."""
        # Handle $ref
        if isinstance(body, dict) and "$ref" in body:
            body = self._resolve_ref(body["$ref"], spec)
        if not isinstance(body, dict):
            return {}

        result = {}
        for content_type, media in (body.get("content") or {}).items():
            if isinstance(media, dict) and "schema" in media:
                result[content_type] = parse_schema(media["schema"])
        return result

    def _resolve_ref(self, ref: str, spec: dict) -> dict:
        """Resolve a $ref pointer."""
        target = ReferenceResolver(spec).lookup(ref)
        if not isinstance(target, dict):
            logger.warning("Unresolved $ref: %s", ref)
            return {}
        return target
