"""Model training, persistence and lookup.

A model owns one index per index name. It is trained from baseline
contents, or loaded from a file written by a previous run.

Model file format: JSON document (see models.ModelFile), versioned with
MODEL_FORMAT_VERSION. A model file is never overwritten.
"""

import json
import logging
import os
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from enum import Enum

from pydantic import ValidationError

from logsift import prometheus as prom
from logsift.content import Content, Source
from logsift.context import RunContext
from logsift.errors import AmbiguousModelError, DiscoveryError, ModelExistsError, ModelLoadError, SourceReadError
from logsift.grouping import group_sources
from logsift.index import Index, IndexBuilder, IndexConfig, new
from logsift.index_name import IndexName
from logsift.models import ModelFile, Report, SourceFailure
from logsift.report import build_report
from logsift.utils import get_max_workers


logger = logging.getLogger(__name__)

# Model format version - increment when format changes
MODEL_FORMAT_VERSION = 1


class ModelAction(Enum):
    LOAD = 'load'
    TRAIN = 'train'


def resolve_model_action(model_path: str | None, baselines_given: bool) -> ModelAction:
    """Decide whether the model is loaded or trained.

    Raises:
        AmbiguousModelError: if model_path exists and baselines were given too
    """
    if model_path and os.path.exists(model_path):
        if baselines_given:
            raise AmbiguousModelError(str(model_path))
        return ModelAction.LOAD
    return ModelAction.TRAIN


class BaselineLines:
    """Lines of the readable sources of a group, streamed into an index builder.

    Only one source is buffered at a time, so that a source failing
    mid-stream does not leave part of its lines in the baseline.
    """

    def __init__(self, name: IndexName, sources: list[Source]):
        self.name = name
        self.sources = sources
        self.errors: list[SourceReadError] = []
        self.readable = 0

    def __iter__(self) -> Iterator[str]:
        for source in self.sources:
            try:
                source_lines = list(source.lines())
            except SourceReadError as e:
                logger.warning(f'[TRAIN] Skipping {source} for {self.name}: {e.reason}')
                prom.sources_trained_total.labels(status='error').inc()
                prom.source_errors_total.labels(stage='training').inc()
                self.errors.append(SourceReadError(str(source), e.reason))
                continue
            prom.sources_trained_total.labels(status='success').inc()
            self.readable += 1
            yield from source_lines


def _train_group(
    name: IndexName,
    sources: list[Source],
    build: IndexBuilder,
    config: IndexConfig,
) -> tuple[Index | None, list[SourceReadError]]:
    """Train the index of one group.

    Returns:
        The index, or None when no source could be read, and the read errors
    """
    lines = BaselineLines(name, sources)
    index = build(lines, config)
    if not lines.readable:
        logger.warning(f'[TRAIN] No readable baseline for {name}')
        return None, lines.errors

    prom.indexes_trained_total.inc()
    logger.debug(f'[TRAIN] {name}: {lines.readable} sources, {index.line_count} lines')
    return index, lines.errors


class Model:
    def __init__(
        self,
        indexes: dict[IndexName, Index],
        created_at: str | None = None,
        errors: list[tuple[str, str]] | None = None,
    ):
        self.indexes = indexes
        self.created_at = created_at or datetime.now().isoformat()
        # (source, error) for every baseline source skipped while training
        self.errors: list[tuple[str, str]] = errors or []
        prom.model_indexes.set(len(indexes))

    def __len__(self) -> int:
        return len(self.indexes)

    @classmethod
    def train(
        cls,
        baselines: Iterable[Content],
        build: IndexBuilder = new,
        config: IndexConfig | None = None,
        ctx: RunContext | None = None,
        max_workers: int | None = None,
    ) -> 'Model':
        """Train one index per group of baseline sources.

        Groups are independent and trained in parallel; each index is
        built by a single worker.

        Args:
            baselines: Contents known to be normal
            build: Index builder
            config: Decision settings stored in every index
            ctx: Run context for progress display
            max_workers: Maximum parallel workers

        Returns:
            The trained model. Unreadable sources are listed in model.errors.
        """
        ctx = ctx or RunContext()
        config = config or IndexConfig.from_env()
        max_workers = max_workers or get_max_workers()

        discovery_errors: list[DiscoveryError] = []
        groups = group_sources(baselines, discovery_errors)
        errors = [(e.path, e.reason) for e in discovery_errors]
        for _ in discovery_errors:
            prom.source_errors_total.labels(stage='discovery').inc()

        logger.debug(f'[TRAIN] Training {len(groups)} indexes with {max_workers} workers')
        trained: dict[IndexName, Index] = {}
        read_errors: dict[IndexName, list[SourceReadError]] = {}
        completed = 0
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_name = {
                executor.submit(_train_group, name, sources, build, config): name for name, sources in groups.items()
            }
            for future in as_completed(future_to_name):
                name = future_to_name[future]
                completed += 1
                ctx.show_progress(f'Training [{completed}/{len(groups)}] {name}')
                index, group_errors = future.result()
                if index is not None:
                    trained[name] = index
                read_errors[name] = group_errors
        ctx.clear_progress()

        # Keep the grouping order so that the result does not depend on thread scheduling
        indexes = {name: trained[name] for name in groups if name in trained}
        for name in groups:
            errors.extend((e.source, e.reason) for e in read_errors.get(name, []))

        logger.info(f'Trained {len(indexes)} indexes from {sum(len(s) for s in groups.values())} sources')
        return cls(indexes, errors=errors)

    def get_index(self, source: Source) -> Index | None:
        """Return the index for source, or None when its group has no baseline."""
        return self.indexes.get(source.index_name)

    def to_file(self) -> ModelFile:
        return ModelFile(
            version=MODEL_FORMAT_VERSION,
            created_at=self.created_at,
            indexes={name: index.to_dict() for name, index in self.indexes.items()},
            errors=[SourceFailure(source=source, error=error) for source, error in self.errors],
        )

    def save(self, path: str) -> None:
        """Write the model to path.

        The file is created exclusively, so that a model written by another
        run in the meantime is never replaced.

        Raises:
            ModelExistsError: if path already exists
        """
        data = self.to_file().model_dump(mode='json')
        try:
            with open(path, 'x', encoding='utf-8') as f:
                json.dump(data, f)
        except FileExistsError:
            raise ModelExistsError(str(path)) from None
        logger.info(f'Saved model {path} ({len(self.indexes)} indexes, {os.path.getsize(path):,} bytes)')

    @classmethod
    def load(cls, path: str) -> 'Model':
        """Load a model written by save.

        Raises:
            ModelLoadError: if the file can not be read or has an unsupported format
        """
        try:
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ModelLoadError(str(path), str(e)) from e

        if not isinstance(data, dict) or data.get('version') != MODEL_FORMAT_VERSION:
            raise ModelLoadError(str(path), 'unsupported model format version')

        try:
            model_file = ModelFile(**data)
            indexes = {
                IndexName(name): Index.from_dict(entry.model_dump()) for name, entry in model_file.indexes.items()
            }
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            raise ModelLoadError(str(path), str(e)) from e

        logger.debug(f'Loaded model {path} ({len(indexes)} indexes)')
        return cls(
            indexes,
            created_at=model_file.created_at,
            errors=[(failure.source, failure.error) for failure in model_file.errors],
        )

    def report(self, content: Content, ctx: RunContext | None = None) -> Report:
        """Inspect content and collect the anomalies into a Report."""
        return build_report(self, content, ctx)
