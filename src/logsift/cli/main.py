"""Main CLI entry point with command groups"""

import sys
from dataclasses import dataclass

import click

from logsift.__version__ import __version__
from logsift.cli.analyze import diff_command, path_command, url_command
from logsift.cli.debug import debug_groups_command, debug_tokenizer_command
from logsift.cli.train import train_command
from logsift.context import RunContext
from logsift.index import IndexConfig
from logsift.prometheus import write_metrics
from logsift.utils import get_bool_env, get_log_level, setup_logging


@dataclass
class CliOptions:
    """Options shared by every command, stored in the click context object."""

    run: RunContext
    report: str | None
    model: str | None
    config: IndexConfig
    max_workers: int | None
    overridden: list[str]  # Index settings given on the command line


def progress_enabled() -> bool:
    """Progress is shown on interactive terminals, unless debug logging is on.

    LOGSIFT_PROGRESS forces it on or off.
    """
    default = get_log_level() is None and sys.stdout.isatty()
    return get_bool_env('LOGSIFT_PROGRESS', default)


@click.group()
@click.version_option(version=__version__, prog_name='logsift')
@click.option('--report', type=click.Path(dir_okay=False), help='Write a JSON report instead of printing anomalies')
@click.option('--model', type=click.Path(dir_okay=False), help='Load or save the model')
@click.option('--threshold', type=click.FloatRange(0.0, 1.0), help='Anomaly distance threshold, used when training')
@click.option('--before', 'context_before', type=click.IntRange(min=0), help='Context lines before an anomaly')
@click.option('--after', 'context_after', type=click.IntRange(min=0), help='Context lines after an anomaly')
@click.option('--max-workers', type=click.IntRange(min=1), help='Parallel training workers')
@click.option('--metrics', type=click.Path(dir_okay=False), help='Write Prometheus metrics to this file on exit')
@click.pass_context
def cli(ctx, report, model, threshold, context_before, context_after, max_workers, metrics):
    """
    logsift - Extract anomalies from log files by comparing them with a baseline.

    \b
    Commands:
      logsift path <path>                   Analyze a file or directory
      logsift url <url>                     Analyze a remote log
      logsift diff <baseline>... <target>   Compare a target with baselines
      logsift train <baseline>...           Train a model (requires --model)

    \b
    Examples:
      logsift path job-output.txt
      logsift diff builds/1/ builds/2/
      logsift diff old/app.log new/app.log
      logsift --model app.json train logs/good-run/
      logsift --model app.json path logs/bad-run/
      logsift --report report.json diff builds/1/ builds/2/

    \b
    Environment:
      LOGSIFT_LOG_LEVEL    Enable logging at this level (disables progress)
      LOGSIFT_THRESHOLD    Default anomaly threshold (0.2)
      LOGSIFT_MAX_WORKERS  Default parallel training workers
    """
    ctx.obj = CliOptions(
        run=RunContext(progress=progress_enabled()),
        report=report,
        model=model,
        config=IndexConfig.from_env(
            threshold=threshold,
            context_before=context_before,
            context_after=context_after,
        ),
        max_workers=max_workers,
        overridden=[
            option
            for option, value in (('--threshold', threshold), ('--before', context_before), ('--after', context_after))
            if value is not None
        ],
    )
    if metrics:
        ctx.call_on_close(lambda: write_metrics(metrics))


cli.add_command(path_command, name='path')
cli.add_command(url_command, name='url')
cli.add_command(diff_command, name='diff')
cli.add_command(train_command, name='train')
cli.add_command(debug_groups_command, name='debug-groups')
cli.add_command(debug_tokenizer_command, name='debug-tokenizer')


def main():
    """Entry point for the CLI"""
    setup_logging()
    cli()


if __name__ == '__main__':
    main()
