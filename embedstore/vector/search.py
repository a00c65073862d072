"""
Exact nearest-neighbor search over an embedding source.

Four strategies differ only in how candidates are pulled from the
collaborator:

    whole_table  one fetch_all() call
    batched      fetch_ids(), then fetch_by_ids() per batch_size chunk
    id_first     fetch_ids(), then one fetch_by_ids() per id
    cursor       fetch_adjacent() from the first row until exhausted

Every strategy visits candidates in the collaborator's id order and feeds the
same BoundedTopK, so all four return identical results for the same data.
Any retrieval, decode or metric error fails the whole call.
"""

import time
from typing import Callable, Dict, List

from ..api.schemas import SearchRequest
from ..core.config import DEFAULT_BATCH_SIZE, DEFAULT_METRIC, DEFAULT_STRATEGY, DEFAULT_TOP_K, debug_enabled
from ..core.errors import DimensionMismatchError, NotFoundError, UnsupportedStrategyError
from ..util.logging import logger
from .codec import decode
from .distance import get_metric, make_scorer, to_float_array
from .source import IEmbeddingSource
from .topk import BoundedTopK
from .types import TopKEntry


class _SearchRun:
    """Per-call state: the bound scorer, the selector and a candidate counter."""

    def __init__(self, scorer: Callable[[object], float], selector: BoundedTopK,
                 embedding_length: int, batch_size: int):
        self.scorer = scorer
        self.selector = selector
        self.embedding_length = embedding_length
        self.batch_size = batch_size
        self.scored = 0

    def consider(self, id: str, payload: bytes, data_type: str) -> None:
        vector = decode(payload, data_type, self.embedding_length)
        self.selector.offer(str(id), self.scorer(vector))
        self.scored += 1

    def consider_fetched(self, ids: List[str], rows: Dict[str, tuple]) -> None:
        for id in ids:
            if id not in rows:
                raise NotFoundError(f"Embedding '{id}' disappeared between id listing and fetch")
            payload, data_type = rows[id]
            self.consider(id, payload, data_type)


def _whole_table(source: IEmbeddingSource, run: _SearchRun) -> None:
    for row in source.fetch_all():
        run.consider(row.id, row.payload, row.data_type)


def _batched(source: IEmbeddingSource, run: _SearchRun) -> None:
    ids = source.fetch_ids()
    for start in range(0, len(ids), run.batch_size):
        chunk = ids[start:start + run.batch_size]
        run.consider_fetched(chunk, source.fetch_by_ids(chunk))


def _id_first(source: IEmbeddingSource, run: _SearchRun) -> None:
    for id in source.fetch_ids():
        run.consider_fetched([id], source.fetch_by_ids([id]))


def _cursor(source: IEmbeddingSource, run: _SearchRun) -> None:
    row = source.fetch_adjacent(None, "next")
    while row is not None:
        run.consider(row.id, row.payload, row.data_type)
        row = source.fetch_adjacent(row.id, "next")


STRATEGIES = {
    "whole_table": _whole_table,
    "batched": _batched,
    "id_first": _id_first,
    "cursor": _cursor,
}


def list_search_strategies() -> List[str]:
    return sorted(STRATEGIES)


def search(source: IEmbeddingSource, query_vector, metric: str = DEFAULT_METRIC,
           top_k: int = DEFAULT_TOP_K, strategy: str = DEFAULT_STRATEGY,
           batch_size: int = DEFAULT_BATCH_SIZE) -> List[TopKEntry]:
    """
    Find the top_k stored embeddings closest to query_vector.

    Args:
        source: storage collaborator to pull candidates from
        query_vector: numeric sequence of the declared embedding length
        metric: registered metric name (see list_supported_metrics())
        top_k: number of results to keep; 0 returns [] without scanning
        strategy: whole_table, batched, id_first or cursor
        batch_size: ids per fetch for the batched strategy

    Returns:
        List of TopKEntry(distance, id) sorted ascending by distance, ties by id
    """
    runner = STRATEGIES.get(str(strategy).strip().lower())
    if runner is None:
        raise UnsupportedStrategyError(
            f"Unsupported search strategy '{strategy}'. Supported strategies: {list_search_strategies()}"
        )
    get_metric(metric)
    request = SearchRequest(metric=metric, top_k=top_k, strategy=strategy, batch_size=batch_size)

    _, embedding_length = source.declared_meta()
    query_length = len(to_float_array(query_vector))
    if query_length != embedding_length:
        raise DimensionMismatchError(
            f"Query length {query_length} does not match declared embedding length {embedding_length}"
        )

    selector = BoundedTopK(request.top_k)
    if not selector.accepts_candidates:
        return []

    run = _SearchRun(make_scorer(query_vector, request.metric), selector, embedding_length, request.batch_size)
    start_time = time.time()
    try:
        runner(source, run)
    except Exception:
        logger.log_search(request.strategy, request.metric, request.top_k, run.scored, 0,
                          start_time, time.time(), status="failed")
        raise

    results = selector.drain_sorted()
    logger.log_search(request.strategy, request.metric, request.top_k, run.scored, len(results),
                      start_time, time.time())
    if debug_enabled():
        logger.debug(f"search.{request.strategy} results: {[(e.id, e.distance) for e in results]}")
    return results
