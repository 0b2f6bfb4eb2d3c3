"""Hashing index strategy.

Baseline lines are tokenized and hashed into a fixed size feature space
with scikit-learn's HashingVectorizer, the unique rows are kept in a
sparse matrix, and the distance of a new line is one minus its best cosine
similarity with the baseline rows.
"""

import logging
from collections.abc import Iterable, Iterator
from itertools import islice
from typing import Any

import numpy as np
from scipy import sparse
from sklearn.feature_extraction.text import HashingVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from logsift import tokenizer
from logsift.index.base import Index, IndexConfig, register_strategy


logger = logging.getLogger(__name__)

N_FEATURES = 2**18

# Lines vectorized at once while training
BATCH_SIZE = 10_000

# Distances are rounded so that a known line is exactly 0.0
PRECISION = 6

# Stateless: murmurhash features are stable across processes
vectorizer = HashingVectorizer(
    n_features=N_FEATURES,
    analyzer=tokenizer.tokens,
    alternate_sign=False,
    norm='l2',
)


def vectorize(lines: Iterable[str]) -> sparse.csr_matrix:
    """Return one l2-normalized row per line."""
    return vectorizer.transform(lines)


def _batches(lines: Iterable[str], size: int) -> Iterator[list[str]]:
    it = iter(lines)
    while batch := list(islice(it, size)):
        yield batch


def _row_key(matrix: sparse.csr_matrix, row: int) -> tuple:
    start, end = matrix.indptr[row], matrix.indptr[row + 1]
    return tuple(matrix.indices[start:end]), tuple(matrix.data[start:end])


def _empty_matrix() -> sparse.csr_matrix:
    return sparse.csr_matrix((0, N_FEATURES), dtype=np.float64)


@register_strategy
class HashingIndex(Index):
    strategy = 'hashing'

    def __init__(self, config: IndexConfig, matrix: sparse.csr_matrix, line_count: int = 0):
        super().__init__(config, line_count)
        self._matrix = matrix

    def __len__(self) -> int:
        return self._matrix.shape[0]

    @classmethod
    def build(cls, lines: Iterable[str], config: IndexConfig) -> 'HashingIndex':
        """Vectorize the lines batch by batch, keeping only the unique non-empty rows."""
        blocks: list[sparse.csr_matrix] = []
        seen: set[tuple] = set()
        line_count = 0
        for batch in _batches(lines, BATCH_SIZE):
            line_count += len(batch)
            matrix = vectorize(batch)
            matrix.sort_indices()
            keep = []
            for row in np.flatnonzero(matrix.getnnz(axis=1)):
                key = _row_key(matrix, row)
                if key not in seen:
                    seen.add(key)
                    keep.append(row)
            if keep:
                blocks.append(matrix[keep])

        matrix = sparse.vstack(blocks, format='csr') if blocks else _empty_matrix()
        logger.debug(f'Trained hashing index: {line_count} lines, {matrix.shape[0]} unique vectors')
        return cls(config, matrix, line_count)

    def distance(self, line: str) -> float:
        vector = vectorize([line])
        # Lines without tokens (blank lines, bare numbers) are never anomalies
        if vector.nnz == 0:
            return 0.0
        if self._matrix.shape[0] == 0:
            return 1.0

        best = float(cosine_similarity(vector, self._matrix).max())
        return round(min(max(1.0 - best, 0.0), 1.0), PRECISION)

    def dump_state(self) -> dict[str, Any]:
        matrix = self._matrix
        return {
            'n_features': matrix.shape[1],
            'indptr': matrix.indptr.tolist(),
            'indices': matrix.indices.tolist(),
            'data': matrix.data.tolist(),
        }

    @classmethod
    def load_state(cls, state: dict[str, Any], config: IndexConfig, line_count: int) -> 'HashingIndex':
        if state['n_features'] != N_FEATURES:
            raise ValueError(f'Hashing index built with {state["n_features"]} features, expected {N_FEATURES}')
        indptr = state['indptr']
        matrix = sparse.csr_matrix(
            (state['data'], state['indices'], indptr),
            shape=(len(indptr) - 1, state['n_features']),
            dtype=np.float64,
        )
        return cls(config, matrix, line_count)


def new(lines: Iterable[str], config: IndexConfig) -> HashingIndex:
    """Default index builder."""
    return HashingIndex.build(lines, config)
