"""Base classes for index strategies.

An index is trained from the baseline lines of one group and scores how
far a new line is from that baseline. The strategy is injected into
Model.train, so the scoring engine can be swapped without touching the
grouping or inspection code.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from typing import Any, ClassVar

from logsift.utils import get_context_after, get_context_before, get_threshold


@dataclass
class IndexConfig:
    """Decision parameters owned by an index.

    The inspector never applies a threshold itself: it only consumes the
    scores returned by Index.score and the window sizes defined here.
    """

    threshold: float = 0.2  # Lines farther than this from the baseline are anomalies
    context_before: int = 3  # Lines kept before an anomaly
    context_after: int = 1  # Lines kept after an anomaly

    @classmethod
    def from_env(cls, **overrides: Any) -> 'IndexConfig':
        """Build a config from the LOGSIFT_* environment, ignoring None overrides."""
        config = cls(
            threshold=get_threshold(),
            context_before=get_context_before(),
            context_after=get_context_after(),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'IndexConfig':
        return cls(**{key: data[key] for key in ('threshold', 'context_before', 'context_after') if key in data})


class Index(ABC):
    """Trained comparison structure for one index name group.

    Subclass this and decorate it with register_strategy to add a scoring
    engine.
    """

    strategy: ClassVar[str]

    def __init__(self, config: IndexConfig, line_count: int = 0):
        self.config = config
        self.line_count = line_count  # Baseline lines used for training

    @classmethod
    @abstractmethod
    def build(cls, lines: Iterable[str], config: IndexConfig) -> 'Index':
        """Train a new index from baseline lines."""
        pass

    @abstractmethod
    def distance(self, line: str) -> float:
        """Distance of line from the baseline, between 0.0 (known) and 1.0 (never seen)."""
        pass

    @abstractmethod
    def dump_state(self) -> dict[str, Any]:
        """Return the JSON-serializable trained state."""
        pass

    @classmethod
    @abstractmethod
    def load_state(cls, state: dict[str, Any], config: IndexConfig, line_count: int) -> 'Index':
        """Re-create an index from the output of dump_state."""
        pass

    def score(self, line: str) -> float | None:
        """Check if a line is anomalous.

        Returns:
            The distance if the line is an anomaly, None otherwise.
        """
        distance = self.distance(line)
        if distance > self.config.threshold:
            return distance
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            'strategy': self.strategy,
            'config': self.config.to_dict(),
            'line_count': self.line_count,
            'state': self.dump_state(),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> 'Index':
        """Re-create an index of any registered strategy.

        Raises:
            KeyError: if the strategy is not registered
        """
        cls = get_strategy(data['strategy'])
        return cls.load_state(data['state'], IndexConfig.from_dict(data['config']), data.get('line_count', 0))

    def save(self, path: str) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f)

    @staticmethod
    def load(path: str) -> 'Index':
        with open(path, encoding='utf-8') as f:
            return Index.from_dict(json.load(f))


# Function creating an index from baseline lines, injected in Model.train.
# The lines are an iterable to be consumed once.
IndexBuilder = Callable[[Iterable[str], IndexConfig], Index]

_STRATEGIES: dict[str, type[Index]] = {}


def register_strategy(cls: type[Index]) -> type[Index]:
    """Class decorator making a strategy loadable from a saved model."""
    _STRATEGIES[cls.strategy] = cls
    return cls


def get_strategy(name: str) -> type[Index]:
    try:
        return _STRATEGIES[name]
    except KeyError:
        raise KeyError(f'Unknown index strategy: {name}') from None


def available_strategies() -> list[str]:
    return sorted(_STRATEGIES)
