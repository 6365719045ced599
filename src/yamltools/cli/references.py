import json

import click

from yamltools.cli.utils import configure_logging, output_error
from yamltools.config import ResolverEngine, load_documents, merge


def format_references(references: list[tuple[list[str | int], str, str]]) -> str:
    """Format references for human-readable output"""
    if not references:
        return "No references found"

    output = [f"Found {len(references)} references:"]
    for path, value, kind in references:
        location = ".".join(str(segment) for segment in path)
        output.append(f"  {location} [{kind}] {value}")
    return "\n".join(output)


@click.command(name="references")
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def references(files: tuple[str, ...], json_output: bool, debug: bool):
    """List placeholders and secret descriptors in the merged FILES.

    Nothing is resolved and no secret store is contacted.

    Examples:
        yamltools references spinnaker.yml spinnaker-local.yml
        yamltools references app.yml --json-output
    """
    configure_logging(debug)

    try:
        merged = merge(load_documents(files))
        found = ResolverEngine().find_references(merged)
    except Exception as e:
        output_error(e, json_output, debug)
        return

    if json_output:
        payload = [
            {"path": path, "value": value, "kind": kind} for path, value, kind in found
        ]
        click.echo(json.dumps({"status": "ok", "result": payload}, indent=2))
    else:
        click.echo(format_references(found))
