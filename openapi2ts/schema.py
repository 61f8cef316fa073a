"""Schema nodes and $ref resolution."""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

REGISTRY_PREFIX = "#/components/schemas/"

PRIMITIVE_KINDS = ("string", "number", "integer", "boolean")


@dataclass(frozen=True)
class RefNode:
    """A pointer to another location in the document."""

    ref: str


@dataclass(frozen=True)
class ObjectNode:
    """An object with declared properties."""

    properties: Tuple[Tuple[str, "SchemaNode"], ...]
    required: frozenset = frozenset()


@dataclass(frozen=True)
class ArrayNode:
    """An array of a single item schema."""

    items: "SchemaNode"


@dataclass(frozen=True)
class PrimitiveNode:
    """A string, number, integer or boolean."""

    kind: str


@dataclass(frozen=True)
class UnionNode:
    """anyOf / oneOf alternatives, in document order."""

    alternatives: Tuple["SchemaNode", ...]


@dataclass(frozen=True)
class AnyNode:
    """Anything the synthesizer has no dedicated shape for."""

    kind: Optional[str] = None


SchemaNode = Union[RefNode, ObjectNode, ArrayNode, PrimitiveNode, UnionNode, AnyNode]


def parse_schema(raw: Any) -> SchemaNode:
    """Convert a raw schema mapping into a SchemaNode."""
    if not isinstance(raw, dict):
        return AnyNode()

    if "$ref" in raw:
        return RefNode(ref=str(raw["$ref"]))

    for key in ("anyOf", "oneOf"):
        if isinstance(raw.get(key), list):
            return UnionNode(alternatives=tuple(parse_schema(sub) for sub in raw[key]))

    properties = raw.get("properties")
    if isinstance(properties, dict) and properties:
        required = raw.get("required")
        if not isinstance(required, list):
            required = []
        return ObjectNode(
            properties=tuple((str(name), parse_schema(sub)) for name, sub in properties.items()),
            required=frozenset(str(name) for name in required),
        )

    schema_type = raw.get("type")
    if schema_type == "array":
        items = raw.get("items")
        return ArrayNode(items=parse_schema(items) if items is not None else AnyNode())
    if schema_type in PRIMITIVE_KINDS:
        return PrimitiveNode(kind=schema_type)

    return AnyNode(kind=schema_type if isinstance(schema_type, str) else None)


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


class ReferenceResolver:
    """Looks up internal $ref pointers in a raw document.

    Resolution is a direct walk of the pointer segments; it does not
    follow further references found at the target.
    """

    def __init__(self, raw: dict):
        self.raw = raw

    def lookup(self, ref: str) -> Optional[Any]:
        """Return the raw value at ``ref``, or None when any segment is missing."""
        if not ref.startswith("#/"):
            return None

        current: Any = self.raw
        for part in ref[2:].split("/"):
            part = _unescape(part)
            if isinstance(current, dict) and part in current:
                current = current[part]
            elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                return None
        return current

    def resolve(self, ref: str) -> Optional[SchemaNode]:
        """Resolve ``ref`` to a SchemaNode, or None if it points nowhere."""
        target = self.lookup(ref)
        if not isinstance(target, dict):
            return None
        return parse_schema(target)

    @staticmethod
    def registry_name(ref: str) -> Optional[str]:
        """Schema name for pointers straight into components.schemas."""
        if not ref.startswith(REGISTRY_PREFIX):
            return None
        name = ref[len(REGISTRY_PREFIX):]
        if not name or "/" in name:
            return None
        return _unescape(name)
