from __future__ import annotations

import logging
from bisect import bisect_left
from typing import Iterable, Iterator

from .types import EntitySpan

logger = logging.getLogger(__name__)


class SpanRegistry:
    """Ordered, non-overlapping spans of one sentence.

    The first span registered at a position wins: a later span that overlaps
    any registered one is dropped whole, never merged or truncated.
    """

    def __init__(self, spans: Iterable[EntitySpan] = ()) -> None:
        self._spans: list[EntitySpan] = []
        for span in spans:
            self.add(span)

    def add(self, span: EntitySpan) -> bool:
        # First registered span whose start is at or after the new span's end.
        idx = bisect_left(self._spans, span.end, key=lambda s: s.start)
        if idx > 0 and self._spans[idx - 1].end > span.start:
            logger.debug(
                "Dropping %s span [%d, %d) overlapping [%d, %d)",
                span.entity_type.name,
                span.start,
                span.end,
                self._spans[idx - 1].start,
                self._spans[idx - 1].end,
            )
            return False
        self._spans.insert(idx, span)
        return True

    def __len__(self) -> int:
        return len(self._spans)

    def __iter__(self) -> Iterator[EntitySpan]:
        return iter(self._spans)

    def __getitem__(self, index: int) -> EntitySpan:
        return self._spans[index]

    def as_list(self) -> list[EntitySpan]:
        return list(self._spans)
