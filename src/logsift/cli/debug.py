"""Hidden commands to debug the grouping and the tokenizer."""

import click

from logsift import tokenizer
from logsift.cli.analyze import handle_errors
from logsift.content import Content, Input
from logsift.errors import DiscoveryError
from logsift.grouping import group_sources


@click.command('debug-groups', hidden=True)
@click.argument('target')
@handle_errors
def debug_groups_command(target: str):
    """List the source groups of a target."""
    content = Content.from_input(Input.from_string(target))
    errors: list[DiscoveryError] = []
    for index_name, sources in group_sources([content], errors).items():
        click.echo(f'{index_name}:')
        for source in sources:
            click.echo(f'  {source}')
    for error in errors:
        click.echo(f'Could not list {error.path}: {error.reason}', err=True)


@click.command('debug-tokenizer', hidden=True)
@click.argument('line')
def debug_tokenizer_command(line: str):
    """Tokenize a single line."""
    click.echo(tokenizer.process(line))
