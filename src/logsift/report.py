"""Deferred inspection report.

Instead of printing anomalies as they are found, the per-source anomaly
stream is collected into a Report and written as a JSON artifact.
"""

import json
import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

from logsift import prometheus as prom
from logsift.content import Content
from logsift.context import RunContext
from logsift.errors import DiscoveryError, SourceReadError
from logsift.inspector import AnomalyContext, inspect_source
from logsift.models import AnomalyResult, ContextLine, Report, SourceFailure, SourceReport


if TYPE_CHECKING:
    from logsift.model import Model

logger = logging.getLogger(__name__)


def anomaly_result(anomaly: AnomalyContext) -> AnomalyResult:
    start_pos = anomaly.start_pos
    pos = anomaly.anomaly.pos
    return AnomalyResult(
        line_number=pos,
        line_text=anomaly.anomaly.line,
        distance=anomaly.anomaly.distance,
        score=round(anomaly.anomaly.distance * 99),
        before=[ContextLine(line_number=start_pos + i, line_text=line) for i, line in enumerate(anomaly.before)],
        after=[ContextLine(line_number=pos + 1 + i, line_text=line) for i, line in enumerate(anomaly.after)],
    )


def build_report(model: 'Model', content: Content, ctx: RunContext | None = None) -> Report:
    """Inspect every source of content and collect the results."""
    ctx = ctx or RunContext()
    report = Report(
        target=str(content),
        created_at=datetime.now().isoformat(),
        training_errors=[SourceFailure(source=source, error=error) for source, error in model.errors],
    )

    for item in content.get_sources():
        if isinstance(item, DiscoveryError):
            prom.source_errors_total.labels(stage='discovery').inc()
            report.sources.append(SourceReport(source=item.path, status='discovery_error', error=item.reason))
            continue

        index = model.get_index(item)
        if index is None:
            prom.sources_without_baseline_total.inc()
            report.sources.append(SourceReport(source=str(item), index_name=item.index_name, status='no_baseline'))
            continue

        ctx.show_progress(f'Inspecting {item}')
        source_report = SourceReport(source=str(item), index_name=item.index_name, status='inspected')
        for result in inspect_source(index, item):
            if isinstance(result, SourceReadError):
                source_report.status = 'read_error'
                source_report.error = result.reason
                break
            source_report.anomalies.append(anomaly_result(result))
        report.sources.append(source_report)

    ctx.clear_progress()
    logger.info(f'Report for {content}: {report.to_cli()}')
    return report


def write_report(report: Report, path: str) -> str:
    """Write the report and return its location."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(report.model_dump(mode='json'), f, indent=2)
    return os.path.abspath(path)
