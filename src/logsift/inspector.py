"""Live anomaly inspection.

A target source is streamed through its index: every line the index
scores as an anomaly is reported with a window of the lines preceding and
following it. Windows never overlap, so a line is shown at most once, and
windows that touch each other are printed without a gap marker.
"""

import logging
from collections import deque
from collections.abc import Iterator
from contextlib import closing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from logsift import prometheus as prom
from logsift.content import Content, Source
from logsift.context import RunContext
from logsift.errors import DiscoveryError, SourceReadError
from logsift.index import Index


if TYPE_CHECKING:
    from logsift.model import Model

logger = logging.getLogger(__name__)

GAP_MARKER = '--'


@dataclass
class Anomaly:
    pos: int  # Line number (1-based)
    line: str
    distance: float  # 0.0 to 1.0


@dataclass
class AnomalyContext:
    """An anomalous line and the lines shown around it."""

    anomaly: Anomaly
    before: list[str] = field(default_factory=list)
    after: list[str] = field(default_factory=list)

    @property
    def start_pos(self) -> int:
        """Line number of the first line of the window."""
        return self.anomaly.pos - len(self.before)

    @property
    def end_pos(self) -> int:
        """Line number of the last line of the window."""
        return self.anomaly.pos + len(self.after)


def format_score(distance: float) -> str:
    """Scale a distance to a two digits severity for display."""
    return f'{distance * 99:02.0f}'


def inspect_source(index: Index, source: Source) -> Iterator[AnomalyContext | SourceReadError]:
    """Yield the anomalies of a source, in line order.

    When the source fails to be read, the anomaly being collected is
    yielded, followed by the SourceReadError, and iteration stops.
    """
    context_before = index.config.context_before
    context_after = index.config.context_after
    before: deque[str] = deque(maxlen=context_before)
    pending: AnomalyContext | None = None
    pos = 0

    try:
        with closing(source.lines()) as lines:
            for line in lines:
                pos += 1
                distance = index.score(line)
                if distance is not None:
                    # A new anomaly closes the window of the previous one
                    if pending is not None:
                        yield pending
                    pending = AnomalyContext(Anomaly(pos, line, distance), list(before))
                    before.clear()
                    prom.anomalies_total.inc()
                    if context_after == 0:
                        yield pending
                        pending = None
                elif pending is not None:
                    pending.after.append(line)
                    if len(pending.after) >= context_after:
                        yield pending
                        pending = None
                else:
                    before.append(line)
    except SourceReadError as e:
        logger.warning(f'Could not read {source} after {pos} lines: {e.reason}')
        prom.source_errors_total.labels(stage='inspection').inc()
        if pending is not None:
            yield pending
        yield e
        return
    finally:
        prom.lines_inspected_total.inc(pos)

    if pending is not None:
        yield pending


@dataclass
class InspectionStats:
    sources: int = 0
    anomalies: int = 0
    errors: int = 0
    without_baseline: int = 0


class LiveReporter:
    """Print the anomalies of a content as they are found."""

    def __init__(self, ctx: RunContext | None = None):
        self.ctx = ctx or RunContext()
        self.stats = InspectionStats()

    def run(self, model: 'Model', content: Content) -> InspectionStats:
        """Inspect every source of content with the matching index of model."""
        for item in content.get_sources():
            if isinstance(item, DiscoveryError):
                prom.source_errors_total.labels(stage='discovery').inc()
                self.stats.errors += 1
                self.ctx.clear_progress()
                self.ctx.echo(f'Could not list {item.path}: {item.reason}')
                continue

            self.stats.sources += 1
            index = model.get_index(item)
            if index is None:
                prom.sources_without_baseline_total.inc()
                self.stats.without_baseline += 1
                self.ctx.clear_progress()
                self.ctx.echo(f' -> No baselines for {item}')
                continue

            self.report_source(index, item)
        return self.stats

    def report_source(self, index: Index, source: Source) -> None:
        self.ctx.show_progress(str(source))
        header_shown = False
        last_pos: int | None = None

        for result in inspect_source(index, source):
            if not header_shown:
                if self.ctx.progress:
                    # Keep the progress line as the source header
                    self.ctx.echo()
                else:
                    self.ctx.echo(f'{source}:')
                header_shown = True

            if isinstance(result, SourceReadError):
                self.stats.errors += 1
                self.ctx.echo(f'Could not read {source}: {result.reason}')
                break

            self.print_anomaly(result, last_pos)
            last_pos = result.end_pos
            self.stats.anomalies += 1

        if not header_shown:
            self.ctx.clear_progress()

    def print_anomaly(self, anomaly: AnomalyContext, last_pos: int | None) -> None:
        start_pos = anomaly.start_pos
        if last_pos is not None and start_pos != last_pos + 1:
            self.ctx.echo(GAP_MARKER)

        for offset, line in enumerate(anomaly.before):
            self.ctx.echo(f'   {start_pos + offset} | {line}')
        self.ctx.echo(f'{format_score(anomaly.anomaly.distance)} {anomaly.anomaly.pos} | {anomaly.anomaly.line}')
        for offset, line in enumerate(anomaly.after):
            self.ctx.echo(f'   {anomaly.anomaly.pos + 1 + offset} | {line}')
