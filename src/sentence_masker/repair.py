"""Post-parse handling of the parser's token chain.

The parser reads the converted sentence, so its tokens carry placeholder
words and converted-sentence offsets. ``prepare_sentence`` marks placeholder
tokens with their entity's flags before relation extraction runs;
``repair_sentence`` afterwards puts the original text back into each token's
semantic reference and moves every token's range into original-sentence
coordinates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Mapping, Optional, Protocol

from .tokens import dump_tokens

if TYPE_CHECKING:
    from .masker import MaskedSentence

logger = logging.getLogger(__name__)


class Renamable(Protocol):
    def set_name(self, name: str) -> None: ...


class ParseToken(Protocol):
    def next(self) -> Optional["ParseToken"]: ...

    def text(self) -> str: ...

    def char_range(self) -> tuple[int, int]: ...

    def set_char_range(self, start: int, end: int) -> None: ...

    def semantic_ref(self) -> Optional[Renamable]: ...

    def annotate(self, properties: Mapping[str, str]) -> None: ...


@dataclass(frozen=True)
class RepairStep:
    token_text: str | None
    char_delta: int
    restored: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RepairReport:
    tokens_seen: int = 0
    tokens_repaired: int = 0
    entities_restored: int = 0
    error: str | None = None

    @property
    def complete(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        return {
            "tokens_seen": self.tokens_seen,
            "tokens_repaired": self.tokens_repaired,
            "entities_restored": self.entities_restored,
            "complete": self.complete,
            "error": self.error,
        }


def prepare_sentence(masked: "MaskedSentence", head: ParseToken | None) -> int:
    annotated = 0
    token = head
    while token is not None:
        span = masked.get_entity(token.text())
        if span is not None:
            token.annotate(span.properties)
            span.token = token
            annotated += 1
        token = token.next()
    return annotated


def iter_repair_steps(masked: "MaskedSentence", head: ParseToken | None) -> Iterator[RepairStep]:
    """Repair tokens one at a time; the walk ends after the first failed step."""
    char_delta = 0
    token = head
    while token is not None:
        step = _repair_token(masked, token, char_delta)
        yield step
        if not step.ok:
            return
        char_delta = step.char_delta
        try:
            token = token.next()
        except Exception as exc:  # collaborator fault; stop the walk
            yield RepairStep(token_text=None, char_delta=char_delta, error=exc)
            return


def repair_sentence(masked: "MaskedSentence", head: ParseToken | None) -> RepairReport:
    report = RepairReport()
    for step in iter_repair_steps(masked, head):
        if step.token_text is not None:
            report.tokens_seen += 1
        if not step.ok:
            report.error = f"{type(step.error).__name__}: {step.error}"
            logger.error(
                "Failed to repair sentence: %s\nBroken sentence was: %s\n%s",
                report.error,
                masked.original_sentence,
                _safe_dump(head),
            )
            break
        report.tokens_repaired += 1
        if step.restored is not None:
            report.entities_restored += 1
    return report


def _repair_token(masked: "MaskedSentence", token: ParseToken, char_delta: int) -> RepairStep:
    word: str | None = None
    try:
        word = token.text()
        start, end = token.char_range()
        inserted = masked.inserted_before(start)

        new_start = start + char_delta - inserted
        restored = None
        span = masked.get_entity(word)
        if span is not None:
            restored = span.original
            ref = token.semantic_ref()
            if ref is not None:
                ref.set_name(restored)
            char_delta += len(restored) - len(word)
        new_end = end + char_delta - inserted

        token.set_char_range(new_start, new_end)
    except Exception as exc:  # collaborator fault, reported to the caller
        return RepairStep(token_text=word, char_delta=char_delta, error=exc)
    return RepairStep(token_text=word, char_delta=char_delta, restored=restored)


def _safe_dump(head: ParseToken | None) -> str:
    try:
        return dump_tokens(head)
    except Exception as exc:  # the chain itself may be what is broken
        return f"<token dump failed: {exc}>"
