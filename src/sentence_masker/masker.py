from __future__ import annotations

import logging
from bisect import bisect_left
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Iterable

from .detector import BaseDetector, EmoticonDetector, PunctuationDetector
from .registry import SpanRegistry
from .types import MAX_NUM_ENTITIES, EntitySpan

if TYPE_CHECKING:
    from .repair import ParseToken, RepairReport

logger = logging.getLogger(__name__)

# Run after the caller's spans, so those win any conflict.
BUILTIN_DETECTORS: tuple[BaseDetector, ...] = (EmoticonDetector(), PunctuationDetector())


class MaskedSentence:
    """One sentence with its entities replaced by placeholder IDs.

    The converted sentence is built once, at construction. The same object
    is later used to prepare and repair the parser's token chain for that
    sentence; it is not meant to be reused for another sentence.
    """

    def __init__(
        self,
        sentence: str,
        spans: Iterable[EntitySpan] = (),
        max_entities: int = MAX_NUM_ENTITIES,
    ) -> None:
        self.original_sentence = sentence
        self.max_entities = max_entities

        registry = SpanRegistry()
        for span in spans:
            _check_sentence(span, sentence)
            # Rewriting extends spans and assigns IDs; keep that off the caller's objects.
            registry.add(replace(span, entity_id=None, token=None, properties=dict(span.properties)))
        for detector in BUILTIN_DETECTORS:
            for span in detector.detect(sentence):
                registry.add(span)
        self.entities: list[EntitySpan] = registry.as_list()

        self.ids: dict[str, EntitySpan] = {}
        self.id_counter = 0
        self._inserted: list[int] = []
        self.converted_sentence = self._build_converted_sentence()

    @property
    def inserted_positions(self) -> frozenset[int]:
        return frozenset(self._inserted)

    def is_entity_id(self, word: str) -> bool:
        return word in self.ids

    def get_entity(self, entity_id: str) -> EntitySpan | None:
        return self.ids.get(entity_id)

    def inserted_before(self, index: int) -> int:
        """Number of synthetic characters strictly before ``index``."""
        return bisect_left(self._inserted, index)

    def make_id(self, span: EntitySpan) -> str:
        self.id_counter += 1
        if self.id_counter == self.max_entities + 1:
            logger.warning(
                "Sentence has more than %d entities; placeholders past the limit "
                "are unknown to the grammar. Sentence: %s",
                self.max_entities,
                self.original_sentence,
            )
        entity_id = f"{span.entity_type.id_prefix}{self.id_counter}"
        self.ids[entity_id] = span
        if span.entity_id is None:
            span.entity_id = entity_id
        return entity_id

    def prepare(self, head: "ParseToken | None") -> int:
        from .repair import prepare_sentence

        return prepare_sentence(self, head)

    def repair(self, head: "ParseToken | None") -> "RepairReport":
        from .repair import repair_sentence

        return repair_sentence(self, head)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sentence": self.original_sentence,
            "converted": self.converted_sentence,
            "inserted": sorted(self._inserted),
            "placeholders": {
                entity_id: {
                    "label": span.entity_type.name,
                    "original": span.original,
                    "start": span.start,
                    "end": span.end,
                }
                for entity_id, span in self.ids.items()
            },
        }

    def _build_converted_sentence(self) -> str:
        original = self.original_sentence
        converted = ""
        cur = 0

        for span in self.entities:
            if span.start < cur:
                # One step back is the period the previous span absorbed.
                if span.start == cur - 1:
                    cur = span.start
                else:
                    logger.error(
                        "Entity start is at an unexpected location: sentence=%r start=%d cursor=%d",
                        original,
                        span.start,
                        cur,
                    )
                    continue

            converted += original[cur : span.start]

            if converted and not converted[-1].isspace():
                converted = self._insert(converted, " ")

            cur = span.end

            # Recognizers often leave out an abbreviation's trailing period,
            # as in "The A.D.A. advises against this."
            if len(original) > cur and original[span.end] == ".":
                span.absorb_following_period()
                cur += 1

            converted += self.make_id(span)

            # The entity may have swallowed the sentence-final period, as in
            # "It is located in Washington, D.C."; the parser needs one back.
            if cur == len(original) and original[span.end - 1] == ".":
                converted = self._insert(converted, ".")

            if cur < len(original) and not _is_legal_following(original[cur:]):
                converted = self._insert(converted, " ")

        if cur < len(original):
            converted += original[cur:]

        return converted

    def _insert(self, converted: str, char: str) -> str:
        self._inserted.append(len(converted))
        return converted + char

    def __str__(self) -> str:
        return "".join(f"{span.entity_id}: {span.original}\n" for span in self.entities if span.entity_id)

    def __repr__(self) -> str:
        return f"MaskedSentence({self.original_sentence!r}, entities={len(self.entities)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MaskedSentence):
            return NotImplemented
        return self.original_sentence == other.original_sentence and self.entities == other.entities

    def __hash__(self) -> int:
        return hash(self.original_sentence)


def _is_legal_following(rest: str) -> bool:
    if not rest:
        return True
    first = rest[0]
    if first.isspace() or first in ".,;:":
        return True
    return rest.startswith("'s ") or rest.startswith("' ")


def _check_sentence(span: EntitySpan, sentence: str) -> None:
    if span.sentence != sentence:
        raise ValueError(
            f"Span [{span.start}, {span.end}) refers to a different sentence: {span.sentence!r}"
        )
