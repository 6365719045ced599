import click

from yamltools.cli.references import references
from yamltools.cli.resolve import resolve
from yamltools.version import PACKAGE_VERSION


@click.group(invoke_without_command=True)
@click.version_option(PACKAGE_VERSION, prog_name="yamltools")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """yamltools CLI"""
    # Show help when no subcommand is provided
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(resolve)
cli.add_command(references)


if __name__ == "__main__":
    cli()
