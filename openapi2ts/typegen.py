"""TypeScript type synthesis from schema nodes."""

import logging
import re
from enum import Enum
from typing import Dict, Optional, Tuple

from .naming import to_type_name
from .schema import (
    ArrayNode,
    ObjectNode,
    PrimitiveNode,
    ReferenceResolver,
    RefNode,
    SchemaNode,
    UnionNode,
)

logger = logging.getLogger(__name__)

FALLBACK_TYPE = "any"

_PRIMITIVES = {
    "string": "string",
    "number": "number",
    "integer": "number",
    "boolean": "boolean",
}

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class TypeMode(Enum):
    """Where a synthesized type will live."""

    GLOBAL = "global"  # types.ts: registry refs are bare names
    LOCAL = "local"    # group files: registry refs are namespace-qualified


def ts_string(value: str) -> str:
    """Single-quoted TypeScript string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def ts_comment(text: str) -> str:
    """Text made safe for a /* */ comment on one line."""
    return re.sub(r"\s+", " ", text.replace("*/", "* /")).strip()


def property_key(name: str) -> str:
    """Property name, quoted when it is not a bare identifier."""
    return name if _IDENTIFIER.match(name) else ts_string(name)


def global_type_name(name: str) -> str:
    """Declared name for a components.schemas entry."""
    return name if _IDENTIFIER.match(name) else to_type_name(name)


class TypeSynthesizer:
    """Turns SchemaNodes into TypeScript type expressions and declarations."""

    def __init__(
        self,
        resolver: ReferenceResolver,
        namespace: str = "ApiType",
        type_names: Optional[Dict[str, str]] = None,
    ):
        self.resolver = resolver
        self.namespace = namespace
        # Registry name -> declared name, shared by declarations and references
        self.type_names = type_names or {}

    def synthesize(self, node: SchemaNode, mode: TypeMode, _chain: Tuple[str, ...] = ()) -> str:
        """Return the type expression for ``node``."""
        if isinstance(node, RefNode):
            return self._reference(node, mode, _chain)

        if isinstance(node, UnionNode):
            if not node.alternatives:
                return FALLBACK_TYPE
            return " | ".join(self.synthesize(alt, mode, _chain) for alt in node.alternatives)

        if isinstance(node, ObjectNode):
            members = "; ".join(
                f"{property_key(name)}{'' if name in node.required else '?'}: "
                f"{self.synthesize(prop, mode, _chain)}"
                for name, prop in node.properties
            )
            return "{ " + members + " }"

        if isinstance(node, ArrayNode):
            item = self.synthesize(node.items, mode, _chain)
            if self._is_union(node.items):
                item = f"({item})"
            return f"{item}[]"

        if isinstance(node, PrimitiveNode):
            return _PRIMITIVES.get(node.kind, FALLBACK_TYPE)

        return FALLBACK_TYPE

    def declare(self, name: str, node: SchemaNode, mode: TypeMode) -> str:
        """Return an exported declaration of ``node`` named ``name``."""
        chain: Tuple[str, ...] = ()
        # Alias chains are followed so the declaration carries the target's shape
        while isinstance(node, RefNode):
            if node.ref in chain:
                logger.warning("Circular $ref while declaring %s: %s", name, node.ref)
                return f"export type {name} = {self._circular(node.ref)};"
            target = self.resolver.resolve(node.ref)
            if target is None:
                logger.warning("Unresolved $ref while declaring %s: %s", name, node.ref)
                return f"export type {name} = {self._unresolved(node.ref)};"
            chain = chain + (node.ref,)
            node = target

        if isinstance(node, ObjectNode):
            lines = [f"export interface {name} {{"]
            for prop_name, prop in node.properties:
                optional = "" if prop_name in node.required else "?"
                prop_type = self.synthesize(prop, mode, chain)
                lines.append(f"  {property_key(prop_name)}{optional}: {prop_type};")
            lines.append("}")
            return "\n".join(lines)

        return f"export type {name} = {self.synthesize(node, mode, chain)};"

    def reference_name(self, ref: str, mode: TypeMode) -> Optional[str]:
        """Type name for a registry pointer, qualified in LOCAL mode."""
        name = self.resolver.registry_name(ref)
        if name is None:
            return None
        name = self.type_names.get(name) or global_type_name(name)
        if mode is TypeMode.LOCAL:
            return f"{self.namespace}.{name}"
        return name

    def _reference(self, node: RefNode, mode: TypeMode, chain: Tuple[str, ...]) -> str:
        target = self.resolver.resolve(node.ref)
        if target is None:
            logger.warning("Unresolved $ref: %s", node.ref)
            return self._unresolved(node.ref)

        name = self.reference_name(node.ref, mode)
        if name is not None:
            return name

        # Pointers outside the registry have no declared name; inline them
        if node.ref in chain:
            logger.warning("Circular $ref: %s", node.ref)
            return self._circular(node.ref)
        return self.synthesize(target, mode, chain + (node.ref,))

    def _is_union(self, node: SchemaNode, seen: Tuple[str, ...] = ()) -> bool:
        if isinstance(node, UnionNode):
            if len(node.alternatives) == 1:
                return self._is_union(node.alternatives[0], seen)
            return len(node.alternatives) > 1
        # Inlined non-registry refs can expand to a union too
        if isinstance(node, RefNode) and node.ref not in seen:
            if self.resolver.registry_name(node.ref) is None:
                target = self.resolver.resolve(node.ref)
                return target is not None and self._is_union(target, seen + (node.ref,))
        return False

    @staticmethod
    def _unresolved(ref: str) -> str:
        return f"{FALLBACK_TYPE} /* unresolved $ref: {ts_comment(ref)} */"

    @staticmethod
    def _circular(ref: str) -> str:
        return f"{FALLBACK_TYPE} /* circular $ref: {ts_comment(ref)} */"
