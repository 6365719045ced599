import os

import click

from yamltools.cli.utils import configure_logging, output_error, output_result, parse_env_overrides
from yamltools.config import ResolverEngine


@click.command(name="resolve")
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("--env", "env_pairs", multiple=True, metavar="KEY=VALUE",
              help="Environment override for placeholder resolution (repeatable)")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def resolve(files: tuple[str, ...], env_pairs: tuple[str, ...], json_output: bool, debug: bool):
    """Merge FILES in order, resolve placeholders and decrypt secrets.

    Later files override earlier ones. The resolved configuration is printed
    to stdout.

    Examples:
        yamltools resolve spinnaker.yml spinnaker-local.yml
        yamltools resolve app.yml --env DEFAULT_DNS_NAME=example.com
        yamltools resolve app.yml --json-output
    """
    configure_logging(debug)

    try:
        environ = {**os.environ, **parse_env_overrides(env_pairs)}
        result = ResolverEngine().resolve_files(files, environ)
    except click.BadParameter:
        raise
    except Exception as e:
        output_error(e, json_output, debug)
    else:
        output_result(result, json_output)
