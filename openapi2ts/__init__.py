"""openapi2ts - Generate TypeScript API clients from OpenAPI specs."""

__version__ = "0.1.0"

from .generator import ClientGenerator, GeneratedClient, GenerationError, GeneratorConfig
from .naming import to_method_name, to_type_name
from .parser import Document, OpenAPIParser, Operation, SpecLoadError
from .schema import ReferenceResolver, parse_schema
from .typegen import TypeMode, TypeSynthesizer

__all__ = [
    "OpenAPIParser",
    "Document",
    "Operation",
    "SpecLoadError",
    "ReferenceResolver",
    "parse_schema",
    "TypeMode",
    "TypeSynthesizer",
    "to_method_name",
    "to_type_name",
    "ClientGenerator",
    "GeneratorConfig",
    "GeneratedClient",
    "GenerationError",
]
