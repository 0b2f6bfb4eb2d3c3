"""Per-invocation run context.

Carries the progress flag and the output sink through training and
inspection, instead of a process wide global.
"""

from dataclasses import dataclass
from typing import TextIO

import click


# Move to the start of the line and erase it
ERASE_LINE = '\r\x1b[K'


@dataclass
class RunContext:
    progress: bool = False
    out: TextIO | None = None  # None writes to click's stdout

    def echo(self, message: str = '', nl: bool = True) -> None:
        click.echo(message, file=self.out, nl=nl)

    def show_progress(self, message: str) -> None:
        """Replace the in-place progress line, when progress is enabled."""
        if self.progress:
            click.echo(f'{ERASE_LINE}{message}', file=self.out, nl=False, color=True)

    def clear_progress(self) -> None:
        if self.progress:
            click.echo(ERASE_LINE, file=self.out, nl=False, color=True)
