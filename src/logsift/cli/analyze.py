"""CLI commands analyzing a target: path, url and diff."""

import functools
import logging

import click

from logsift.content import Content, Input
from logsift.errors import ConfigurationError, ModelExistsError
from logsift.index import new
from logsift.inspector import LiveReporter
from logsift.model import Model, ModelAction, resolve_model_action
from logsift.report import write_report


logger = logging.getLogger(__name__)


def handle_errors(func):
    """Report configuration errors as click errors (exit code 1)."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


def echo_training_errors(model: Model) -> None:
    for source, error in model.errors:
        click.echo(f'Skipped baseline {source}: {error}', err=True)


def process(options, baselines: list[Input] | None, target: Input) -> None:
    """Build or load the model, then inspect the target.

    Args:
        options: CliOptions from the click context
        baselines: Explicit baselines, None to discover them from the target
        target: Content to inspect
    """
    run = options.run
    content = Content.from_input(target)

    action = resolve_model_action(options.model, baselines is not None)
    if action == ModelAction.LOAD:
        logger.debug(f'Loading model {options.model}')
        model = Model.load(options.model)
        if options.overridden:
            click.echo(
                f'Warning: {", ".join(options.overridden)} ignored, '
                f'{options.model} keeps the settings it was trained with',
                err=True,
            )
    else:
        logger.debug('Finding baselines')
        if baselines is None:
            baseline_contents = content.discover_baselines()
        else:
            baseline_contents = [Content.from_input(baseline) for baseline in baselines]

        logger.debug('Building model')
        model = Model.train(
            baseline_contents,
            build=new,
            config=options.config,
            ctx=run,
            max_workers=options.max_workers,
        )
        echo_training_errors(model)

        if options.model and not len(model):
            click.echo(f'Warning: No baseline found, not saving {options.model}', err=True)
        elif options.model:
            try:
                model.save(options.model)
            except ModelExistsError as e:
                click.echo(f'Warning: {e}', err=True)

    logger.debug('Inspecting')
    if options.report is None:
        LiveReporter(run).run(model, content)
    else:
        report = model.report(content, run)
        path = write_report(report, options.report)
        run.echo(f'{path}: Writing report ({report.to_cli()})')


@click.command('path')
@click.argument('path')
@click.pass_obj
@handle_errors
def path_command(options, path: str):
    """Analyze a file or a directory.

    Without --model, the baseline is the rotated file (PATH.0).
    """
    process(options, None, Input.path(path))


@click.command('url')
@click.argument('url')
@click.pass_obj
@handle_errors
def url_command(options, url: str):
    """Analyze a remote log, using the model given with --model."""
    process(options, None, Input.url(url))


@click.command('diff')
@click.argument('inputs', nargs=-1, required=True)
@click.pass_obj
@handle_errors
def diff_command(options, inputs: tuple[str, ...]):
    """Compare a target with one or more baselines.

    \b
    The last argument is the target, the others are the baselines:
        logsift diff builds/1/ builds/2/ builds/3/

    \b
    Files are compared when they share an index name, e.g.
    old/app.log and new/app.log, not good.log and bad.log.
    """
    if len(inputs) < 2:
        raise click.UsageError('diff needs at least one baseline and a target')
    *baselines, target = inputs
    process(options, [Input.from_string(b) for b in baselines], Input.from_string(target))
