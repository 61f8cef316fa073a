"""TypeScript client code generator."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from jinja2 import Environment

from .naming import operation_name_source, to_method_name, to_type_name
from .parser import DEFAULT_TAG, Document, Operation
from .runtime import render_request_runtime
from .schema import RefNode, SchemaNode
from .typegen import FALLBACK_TYPE, TypeMode, TypeSynthesizer, global_type_name, ts_comment, ts_string

logger = logging.getLogger(__name__)

# Members of every generated API class; operations may not take these names
RESERVED_MEMBERS = ("constructor", "client")

# Characters that cannot appear in a single file name segment
_UNSAFE_FILE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


class GenerationError(Exception):
    """The document cannot be turned into a consistent set of artifacts."""


class NameCollisionError(GenerationError):
    """Two operations in one tag group, or two registry schemas, normalize to the same name."""


@dataclass
class GeneratorConfig:
    """Options for a generation run."""

    namespace: str = "ApiType"
    emit_runtime: bool = True
    strict_names: bool = False
    default_tag: str = DEFAULT_TAG
    extension: str = ".ts"
    types_module: str = "types"
    request_module: str = "request"

    @property
    def types_artifact(self) -> str:
        return self.types_module + self.extension

    @property
    def request_artifact(self) -> str:
        return self.request_module + self.extension


@dataclass
class ClientMethod:
    """One generated callable."""

    name: str
    method: str
    path: str
    request_type: str = FALLBACK_TYPE
    response_type: str = FALLBACK_TYPE
    has_body: bool = False
    doc: str = ""

    @property
    def path_literal(self) -> str:
        return ts_string(self.path)

    @property
    def signature(self) -> str:
        """Parameter list of the generated method."""
        if self.has_body:
            return f"data: {self.request_type}, options?: RequestOptions"
        return "options?: RequestOptions"

    @property
    def data_argument(self) -> str:
        return "data" if self.has_body else "undefined"


@dataclass
class ClientGroup:
    """A tag group rendered as one API class."""

    tag: str
    class_name: str
    declarations: List[str] = field(default_factory=list)
    methods: List[ClientMethod] = field(default_factory=list)


@dataclass
class GeneratedClient:
    """The full set of generated artifacts, keyed by file name."""

    title: str
    version: str = "1.0.0"
    artifacts: Dict[str, str] = field(default_factory=dict)
    groups: List[ClientGroup] = field(default_factory=list)

    def save(self, output_dir: Union[Path, str]) -> List[Path]:
        """Write every artifact into ``output_dir``."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for name, content in self.artifacts.items():
            path = output_dir / name
            path.write_text(content, encoding="utf-8")
            written.append(path)
        return written


class ClientGenerator:
    """Generates TypeScript client code from a parsed OpenAPI document."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()

    def generate(self, document: Document) -> GeneratedClient:
        """Generate every artifact for a document."""
        synthesizer = self._synthesizer(document)
        reserved = {self.config.types_artifact, self.config.request_artifact}

        artifacts = {self.config.types_artifact: self._render_types(document, synthesizer)}
        if self.config.emit_runtime:
            artifacts[self.config.request_artifact] = render_request_runtime()

        groups = []
        for tag, operations in document.group_by_tag(self.config.default_tag).items():
            name = self.artifact_name(tag)
            if name in reserved:
                raise GenerationError(f"Tag '{tag}' would overwrite the shared artifact {name}")
            if name in artifacts:
                raise GenerationError(f"Tag '{tag}' maps to {name}, which another tag already uses")
            group = self._generate_group(tag, operations, synthesizer)
            artifacts[name] = self._render_group(group, document)
            groups.append(group)

        logger.info(
            "Generated %d schema types and %d tag groups", len(document.schemas), len(groups)
        )

        return GeneratedClient(
            title=document.title,
            version=document.version,
            artifacts=artifacts,
            groups=groups,
        )

    def emit_global_types(self, document: Document) -> str:
        """Render types.ts: one declaration per components.schemas entry."""
        return self._render_types(document, self._synthesizer(document))

    def emit_group(self, tag: str, operations: List[Operation], document: Document) -> str:
        """Render the source file for one tag group."""
        group = self._generate_group(tag, operations, self._synthesizer(document))
        return self._render_group(group, document)

    def artifact_name(self, tag: str) -> str:
        """File name for a tag group; always a single segment inside the output directory."""
        segment = _UNSAFE_FILE_CHARS.sub("_", tag).strip()
        if segment in ("", ".", ".."):
            raise GenerationError(f"Tag '{tag}' cannot be used as a file name")
        return segment + self.config.extension

    def _synthesizer(self, document: Document) -> TypeSynthesizer:
        return TypeSynthesizer(
            document.resolver,
            namespace=self.config.namespace,
            type_names=self._assign_type_names(document),
        )

    def _render_types(self, document: Document, synthesizer: TypeSynthesizer) -> str:
        declarations = [
            synthesizer.declare(synthesizer.type_names[name], schema, TypeMode.GLOBAL)
            for name, schema in document.schemas.items()
        ]
        return TYPES_TEMPLATE.render(
            title=ts_comment(document.title),
            version=ts_comment(document.version),
            declarations=declarations,
        )

    def _render_group(self, group: ClientGroup, document: Document) -> str:
        return GROUP_TEMPLATE.render(
            group=group,
            tag_label=ts_comment(group.tag),
            config=self.config,
            title=ts_comment(document.title),
            version=ts_comment(document.version),
        )

    def _generate_group(
        self, tag: str, operations: List[Operation], synthesizer: TypeSynthesizer
    ) -> ClientGroup:
        """Build the declarations and methods of one tag group."""
        group = ClientGroup(tag=tag, class_name=f"{to_type_name(tag)}Api")

        for operation, (method_name, type_base) in zip(operations, self._assign_names(tag, operations)):
            request_type = self._role_type(
                operation.request_schema, f"{type_base}Request", synthesizer, group.declarations
            )
            response_type = self._role_type(
                operation.success_schema, f"{type_base}Response", synthesizer, group.declarations
            )
            group.methods.append(ClientMethod(
                name=method_name,
                method=operation.method.upper(),
                path=operation.path,
                request_type=request_type,
                response_type=response_type,
                has_body=operation.has_body,
                doc=ts_comment(operation.summary or operation.description),
            ))

        return group

    def _role_type(
        self,
        schema: Optional[SchemaNode],
        type_name: str,
        synthesizer: TypeSynthesizer,
        declarations: List[str],
    ) -> str:
        """Type for a request or response slot, declaring it locally when inline."""
        if schema is None:
            return FALLBACK_TYPE
        if isinstance(schema, RefNode):
            return synthesizer.synthesize(schema, TypeMode.LOCAL)
        declarations.append(synthesizer.declare(type_name, schema, TypeMode.LOCAL))
        return type_name

    def _assign_names(self, tag: str, operations: List[Operation]) -> List[Tuple[str, str]]:
        """Unique (method name, type base) pairs for a group, in order."""
        taken = set(RESERVED_MEMBERS)
        names = []

        for operation in operations:
            source = operation_name_source(operation)
            method_name = to_method_name(source)
            type_base = to_type_name(source)

            if method_name in taken:
                if self.config.strict_names:
                    raise NameCollisionError(
                        f"Operation {operation.method.upper()} {operation.path} in tag '{tag}'"
                        f" is named '{method_name}', which is already taken"
                    )
                suffix = 2
                while f"{method_name}{suffix}" in taken:
                    suffix += 1
                logger.warning(
                    "Renamed %s %s in tag '%s' from %s to %s%d",
                    operation.method.upper(), operation.path, tag, method_name, method_name, suffix,
                )
                method_name = f"{method_name}{suffix}"
                type_base = f"{type_base}{suffix}"

            taken.add(method_name)
            names.append((method_name, type_base))

        return names

    def _assign_type_names(self, document: Document) -> Dict[str, str]:
        """Unique declared names for the registry, in registry order.

        Names that are already valid identifiers keep them; normalized
        names that land on a taken name get a numeric suffix.
        """
        declared = {name: global_type_name(name) for name in document.schemas}
        taken = {name for name, type_name in declared.items() if name == type_name}

        for name, type_name in declared.items():
            if name == type_name:
                continue
            if type_name in taken:
                if self.config.strict_names:
                    raise NameCollisionError(
                        f"Schema '{name}' is named '{type_name}', which is already taken"
                    )
                suffix = 2
                while f"{type_name}{suffix}" in taken:
                    suffix += 1
                logger.warning("Renamed schema '%s' from %s to %s%d", name, type_name, type_name, suffix)
                type_name = f"{type_name}{suffix}"
                declared[name] = type_name
            taken.add(type_name)

        return declared


_ENV = Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)

TYPES_TEMPLATE_STR = '''\
// Shared types for {{ title }} {{ version }}. Generated by openapi2ts; do not edit manually.

{% for declaration in declarations %}
{{ declaration }}
{% if not loop.last %}

{% endif %}
{% else %}
export {};
{% endfor %}
'''

GROUP_TEMPLATE_STR = '''\
// {{ tag_label }} operations for {{ title }} {{ version }}. Generated by openapi2ts; do not edit manually.

import type { RequestClient, RequestOptions } from './{{ config.request_module }}';
import * as {{ config.namespace }} from './{{ config.types_module }}';

{% for declaration in group.declarations %}
{{ declaration }}

{% endfor %}
export class {{ group.class_name }} {
  constructor(private readonly client: RequestClient) {}
{% for method in group.methods %}

{% if method.doc %}
  /** {{ method.doc }} */
{% endif %}
  {{ method.name }}({{ method.signature }}): Promise<{{ method.response_type }}> {
    return this.client.request<{{ method.response_type }}>({{ method.path_literal }}, '{{ method.method }}', {{ method.data_argument }}, options);
  }
{% endfor %}
}
'''

TYPES_TEMPLATE = _ENV.from_string(TYPES_TEMPLATE_STR)
GROUP_TEMPLATE = _ENV.from_string(GROUP_TEMPLATE_STR)
