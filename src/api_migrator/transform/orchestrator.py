"""Chunked, cached, LLM-backed transform with split-and-retry and fallback.

Per chunk::

    cache hit                                      -> done
    LLM success                                    -> store in cache, done
    LLM input too large, >1 endpoint, budget left  -> split in half, re-queue halves
    any other LLM failure                          -> deterministic fallback, done

Each work item carries its remaining split budget; a split hands the halves
one less. The default budget is enough to halve the largest chunk down to
single endpoints, so it only binds when ``max_split_depth`` is set lower.

Chunks run one at a time, depth first: the halves of a split chunk are
resolved before the next sibling starts, so fragments come out in endpoint
order. Every chunk ends in a fragment; nothing a single chunk does can fail
the whole transform.
"""

import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Callable

from api_migrator.llm import FailureKind, SpecGenerator
from api_migrator.model.canonical import MigrationSpec
from api_migrator.model.output import FastApiSpec
from api_migrator.transform.cache import TransformCache
from api_migrator.transform.chunker import chunk_spec
from api_migrator.transform.mapper import DeterministicTransformer
from api_migrator.transform.merger import merge_specs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkItem:
    chunk: MigrationSpec
    splits_left: int


@dataclass
class TransformStats:
    """Counters for one ``transform`` run."""

    chunks: int = 0  # chunks that produced a fragment; split parents are not counted
    cache_hits: int = 0
    llm_calls: int = 0
    splits: int = 0
    fallbacks: int = 0
    cancelled: int = 0
    failures: Counter = field(default_factory=Counter)

    def summary(self) -> str:
        return (
            f"chunks={self.chunks} cache_hits={self.cache_hits} llm_calls={self.llm_calls} "
            f"splits={self.splits} fallbacks={self.fallbacks}"
        )


class ChunkedTransformer:
    """Drives the per-chunk state machine over a whole MigrationSpec."""

    def __init__(
        self,
        generator: SpecGenerator,
        fallback: DeterministicTransformer | None = None,
        cache: TransformCache | None = None,
        max_split_depth: int | None = None,
    ):
        self.generator = generator
        self.max_split_depth = max_split_depth
        self.fallback = fallback or DeterministicTransformer()
        self.cache = cache or TransformCache(None)
        self.last_stats = TransformStats()

    def transform(
        self,
        spec: MigrationSpec,
        max_chunk_size: int,
        should_cancel: Callable[[], bool] | None = None,
    ) -> FastApiSpec:
        """Transform ``spec``; always returns a complete FastApiSpec.

        ``should_cancel`` is polled before each chunk starts. Once it returns
        True the remaining chunks skip the LLM and use the fallback.
        """
        stats = TransformStats()
        # Halving a chunk of max_chunk_size reaches one endpoint within bit_length() splits.
        budget = self.max_split_depth if self.max_split_depth is not None else max_chunk_size.bit_length()
        pending = deque(WorkItem(chunk, budget) for chunk in chunk_spec(spec, max_chunk_size))
        parts: list[FastApiSpec] = []
        cancelled = False

        while pending:
            item = pending.popleft()

            if not cancelled and should_cancel is not None and should_cancel():
                logger.info("Transform cancelled; remaining chunks use the deterministic mapper")
                cancelled = True
            if cancelled:
                stats.cancelled += 1
                parts.append(self.fallback.transform(item.chunk))
                continue

            sub_items = self._run(item, parts, stats)
            pending.extendleft(reversed(sub_items))

        stats.chunks = len(parts)
        self.last_stats = stats
        logger.info("Transformed module %s: %s", spec.module_name, stats.summary())
        return merge_specs(parts)

    def _run(self, item: WorkItem, parts: list[FastApiSpec], stats: TransformStats) -> list[WorkItem]:
        """Resolve one chunk. Returns sub-chunks to run next when it was split."""
        chunk = item.chunk
        cached = self.cache.lookup(chunk)
        if cached is not None:
            stats.cache_hits += 1
            parts.append(cached)
            return []

        stats.llm_calls += 1
        result = self.generator.generate(chunk)
        if result.ok:
            self.cache.store(chunk, result.spec)
            parts.append(result.spec)
            return []

        stats.failures[result.failure] += 1
        size = len(chunk.endpoints)
        if result.failure is FailureKind.INPUT_SIZE_EXCEEDED and size > 1 and item.splits_left > 0:
            smaller = max(1, size // 2)
            logger.warning(
                "Chunk of %d endpoints too large for model context; retrying in chunks of %d",
                size,
                smaller,
            )
            stats.splits += 1
            return [WorkItem(sub, item.splits_left - 1) for sub in chunk_spec(chunk, smaller)]

        logger.warning(
            "LLM transform failed for chunk of %d endpoints (%s), falling back to deterministic: %s",
            size,
            result.failure.value,
            result.message,
        )
        stats.fallbacks += 1
        parts.append(self.fallback.transform(chunk))
        return []
