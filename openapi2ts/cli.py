"""Main CLI for openapi2ts."""

import sys
from pathlib import Path

import click

from . import __version__
from .generator import ClientGenerator, GeneratorConfig
from .log import configure_logging
from .naming import operation_name_source, to_method_name
from .parser import DEFAULT_TAG, OpenAPIParser


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
def main(verbose: bool):
    """openapi2ts - Generate TypeScript API clients from OpenAPI specs.

    Example:

        # Generate a client from a spec
        openapi2ts generate https://petstore3.swagger.io/api/v3/openapi.json ./src/api

        # Then use it
        import { PetApi } from './api/pet';
        const pets = new PetApi(createFetchClient({ baseUrl: '/api/v3' }));
    """
    configure_logging(verbose)


@main.command()
@click.argument("spec", type=str)
@click.argument("output", type=click.Path(file_okay=False, path_type=Path))
@click.option("--namespace", default="ApiType", show_default=True,
              help="Import alias for the shared types module")
@click.option("--runtime/--no-runtime", default=True, show_default=True,
              help="Also write the request.ts request primitive")
@click.option("--strict-names", is_flag=True,
              help="Fail instead of renaming operations whose names collide")
@click.option("--default-tag", default=DEFAULT_TAG, show_default=True,
              help="Group name for operations without tags")
def generate(spec: str, output: Path, namespace: str, runtime: bool, strict_names: bool, default_tag: str):
    """Generate a TypeScript client from an OpenAPI spec.

    SPEC can be a file path or URL to an OpenAPI 3.x specification.
    OUTPUT is the directory the generated files are written to.

    Examples:

        openapi2ts generate petstore.yaml ./src/api
        openapi2ts generate https://api.example.com/openapi.json ./api --no-runtime
    """
    try:
        # Parse the spec
        parser = OpenAPIParser()
        document = parser.parse(spec)

        click.echo(f"Parsed: {document.title} v{document.version}", err=True)
        click.echo(f"Found {len(document.operations)} operations and {len(document.schemas)} schemas", err=True)

        # Generate client
        config = GeneratorConfig(
            namespace=namespace,
            emit_runtime=runtime,
            strict_names=strict_names,
            default_tag=default_tag,
        )
        client = ClientGenerator(config).generate(document)

        # Output
        for path in client.save(output):
            click.echo(f"  Created {path}", err=True)

        click.echo("Client code generated successfully!")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("spec", type=str)
@click.option("--default-tag", default=DEFAULT_TAG, show_default=True,
              help="Group name for operations without tags")
def inspect(spec: str, default_tag: str):
    """Inspect an OpenAPI spec without generating code.

    Shows the schemas and the tag groups that would become files.
    """
    try:
        parser = OpenAPIParser()
        document = parser.parse(spec)

        click.echo(f"\n{document.title} v{document.version}")

        if document.schemas:
            click.echo(f"\nSchemas ({len(document.schemas)}):")
            for name in document.schemas:
                click.echo(f"   - {name}")

        grouped = document.group_by_tag(default_tag)
        click.echo(f"\nOperations ({len(document.operations)} total):")

        for tag, operations in grouped.items():
            click.echo(f"\n   [{tag}]")
            for operation in operations:
                name = to_method_name(operation_name_source(operation))
                click.echo(f"   - {operation.method.upper():7} {operation.path} -> {name}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
