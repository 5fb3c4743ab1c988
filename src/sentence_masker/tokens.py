"""A minimal token chain, shaped like a parser's linked word list.

Used by the command line and the tests; real callers pass their parser's own
tokens, which only need the methods ``LinkedToken`` exposes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

_TOKEN_RE = re.compile(r"\w+|[^\w\s]")


@dataclass
class SemanticRef:
    name: str

    def set_name(self, name: str) -> None:
        self.name = name


@dataclass(eq=False)
class LinkedToken:
    word: str
    start: int
    end: int
    ref: SemanticRef | None = None
    features: dict[str, str] = field(default_factory=dict)
    following: "LinkedToken | None" = field(default=None, repr=False)

    def next(self) -> "LinkedToken | None":
        return self.following

    def text(self) -> str:
        return self.word

    def char_range(self) -> tuple[int, int]:
        return self.start, self.end

    def set_char_range(self, start: int, end: int) -> None:
        self.start = start
        self.end = end

    def semantic_ref(self) -> SemanticRef | None:
        return self.ref

    def annotate(self, properties: Mapping[str, str]) -> None:
        self.features.update(properties)


def link(tokens: list[LinkedToken]) -> LinkedToken | None:
    for current, following in zip(tokens, tokens[1:]):
        current.following = following
    return tokens[0] if tokens else None


def tokenize(text: str) -> LinkedToken | None:
    """Split into words and single punctuation marks, each with a reference."""
    tokens = [
        LinkedToken(
            word=match.group(0),
            start=match.start(),
            end=match.end(),
            ref=SemanticRef(match.group(0)),
        )
        for match in _TOKEN_RE.finditer(text)
    ]
    return link(tokens)


def iter_tokens(head: Any) -> Iterator[Any]:
    token = head
    while token is not None:
        yield token
        token = token.next()


def dump_tokens(head: Any) -> str:
    lines = []
    for idx, token in enumerate(iter_tokens(head)):
        start, end = token.char_range()
        line = f"{idx}: {token.text()!r} [{start}, {end})"
        ref = token.semantic_ref()
        if ref is not None:
            line += f" ref={ref!r}"
        lines.append(line)
    return "\n".join(lines)
