"""CLI command training and saving a model."""

import os

import click

from logsift.cli.analyze import echo_training_errors, handle_errors
from logsift.content import Content, Input
from logsift.errors import ModelExistsError, ModelRequiredError
from logsift.index import new
from logsift.model import Model


@click.command('train')
@click.argument('baselines', nargs=-1, required=True)
@click.pass_obj
@handle_errors
def train_command(options, baselines: tuple[str, ...]):
    """Train a model from baselines and save it to --model.

    \b
    Examples:
        logsift --model zuul.json train builds/1/ builds/2/
        logsift --model zuul.json path builds/3/
    """
    if not options.model:
        raise ModelRequiredError()
    if os.path.exists(options.model):
        raise ModelExistsError(options.model)

    contents = [Content.from_input(Input.from_string(baseline)) for baseline in baselines]
    model = Model.train(
        contents,
        build=new,
        config=options.config,
        ctx=options.run,
        max_workers=options.max_workers,
    )
    echo_training_errors(model)
    if not len(model):
        raise click.ClickException(f'No baseline could be read, not saving {options.model}')
    model.save(options.model)
    options.run.echo(f'{options.model}: Saved {len(model)} indexes')
