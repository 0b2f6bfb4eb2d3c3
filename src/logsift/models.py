"""Pydantic models for persisted models and reports"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class IndexEntry(BaseModel):
    """A serialized index, as produced by Index.to_dict"""

    strategy: str = Field(..., example='hashing', description='Registered index strategy name')
    config: dict[str, Any] = Field(
        ..., example={'threshold': 0.2, 'context_before': 3, 'context_after': 1}, description='Index decision settings'
    )
    line_count: int = Field(0, example=1024, description='Baseline lines used for training')
    state: dict[str, Any] = Field(..., description='Strategy specific trained state')


class SourceFailure(BaseModel):
    """A source that could not be listed or read"""

    source: str = Field(..., example='logs/app.log.0')
    error: str = Field(..., example='Compressed file ended before the end-of-stream marker was reached')


class ModelFile(BaseModel):
    """On-disk format of a trained model

    Attributes:
        version: Format version, checked on load
        created_at: ISO timestamp of the training
        indexes: Mapping of index name to serialized index
        errors: Baseline sources skipped during training
    """

    version: int = Field(..., example=1)
    created_at: str = Field(..., example='2024-01-01T12:00:00')
    indexes: dict[str, IndexEntry] = Field(default_factory=dict)
    errors: list[SourceFailure] = Field(default_factory=list)


class ContextLine(BaseModel):
    """A line shown around an anomaly

    Attributes:
        line_number: Line number in the source (1-indexed)
        line_text: The line content
    """

    line_number: int = Field(..., example=41)
    line_text: str = Field(..., example='INFO starting service')


class AnomalyResult(BaseModel):
    """An anomalous line with its context window"""

    line_number: int = Field(..., example=42, description='Line number in the source (1-indexed)')
    line_text: str = Field(..., example='ERROR connection refused')
    distance: float = Field(..., example=0.73, description='Distance from the baseline, 0.0 to 1.0')
    score: int = Field(..., example=72, description='Distance scaled to 0-99 for display')
    before: list[ContextLine] = Field(default_factory=list)
    after: list[ContextLine] = Field(default_factory=list)


class SourceReport(BaseModel):
    """Inspection result of one source"""

    source: str = Field(..., example='logs/app.log')
    index_name: str | None = Field(None, example='logs/app.log')
    status: Literal['inspected', 'no_baseline', 'read_error', 'discovery_error'] = Field(..., example='inspected')
    error: str | None = Field(None, description='Error message for read_error and discovery_error')
    anomalies: list[AnomalyResult] = Field(default_factory=list)


class Report(BaseModel):
    """Deferred inspection report

    Attributes:
        target: Content that was inspected
        created_at: ISO timestamp of the report
        sources: Per-source results, in discovery order
        training_errors: Baseline sources skipped while training the model
    """

    target: str = Field(..., example='Directory(logs)')
    created_at: str = Field(..., example='2024-01-01T12:00:00')
    sources: list[SourceReport] = Field(default_factory=list)
    training_errors: list[SourceFailure] = Field(default_factory=list)

    @property
    def anomaly_count(self) -> int:
        return sum(len(source.anomalies) for source in self.sources)

    def to_cli(self) -> str:
        """One line summary for the terminal"""
        inspected = sum(1 for source in self.sources if source.status == 'inspected')
        return f'{self.anomaly_count} anomalies in {inspected}/{len(self.sources)} sources'
