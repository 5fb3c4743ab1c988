#!/usr/bin/env python3
"""Minimal local recognizer adapter for sentence-masker.

Use it with ``sentence-masker convert --detector command --model-cmd``.
Replace `recognize` with your real entity recognizer.
"""

from __future__ import annotations

import json
import re
import sys

MONTHS = "January|February|March|April|May|June|July|August|September|October|November|December"


def recognize(text: str) -> list[dict[str, object]]:
    entities: list[dict[str, object]] = []

    # Demo-only patterns
    for match in re.finditer(rf"\b(?:{MONTHS})\s+\d{{1,2}}(?:,\s+\d{{4}})?", text):
        entities.append({"start": match.start(), "end": match.end(), "label": "DATE"})

    for match in re.finditer(r"\b(?:Mr|Mrs|Ms|Dr)\.\s+[A-Z][a-z]+\b", text):
        entities.append({"start": match.start(), "end": match.end(), "label": "PERSON"})

    for match in re.finditer(r"\$\d+(?:\.\d{2})?", text):
        entities.append({"start": match.start(), "end": match.end(), "label": "MONEY"})

    return entities


def main() -> int:
    payload = json.load(sys.stdin)
    text = payload.get("text", "")
    json.dump({"entities": recognize(text)}, sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
