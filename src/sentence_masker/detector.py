from __future__ import annotations

import json
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .types import EntitySpan, EntityType

# Smileys and similar markup that confuse the parser. Order matters: each
# pattern claims its first occurrence before the next pattern is tried.
# Padded entries contain digits or letters that could otherwise eat numeric
# expressions or initials.
EMOTICONS: tuple[str, ...] = (
    ":-)",
    ":-(",
    ":)",
    ":(",
    ":'-)",
    ":')",
    ":D",
    ":-D",
    ":-O",
    ":-S",
    ":-$",
    ":-*",
    ":[",
    ":'[",
    ":'\\",
    ":-B",
    ":-#",
    ":-|",
    ":-&",
    ":-X",
    ":-K",
    ":]",
    ":-@",
    ":@",
    ":O]",
    ":d",
    "|-O",
    "%-(",
    "=)",
    "=O",
    ";)",
    ";-)",
    ";]",
    ";O]",
    ";O",
    ";D",
    "B-)",
    " T.T ",  # may be initials
    "`:-)",
    ":P",
    "O:-)",
    "><",
    ">_<",
    "<_<",
    ">_>",
    " Oo ",
    ">:D",
    " e.e ",  # may be initials
    "-.-*",
    "~.^",
    "(-_-)",
    "(-.-)",
    "-.-'",
    " E.E ",  # may be initials
    "-.O",
    "*o*",
    "=^.^=",
    " 8)",  # may be a legit numbered item
    " 8D ",
    ">O",
    "(:-D",
    "c^:3",
    "~:>",
    "x-(",
    ";:^)B>",
    " O.O ",  # may be initials
    " o.o ",
    " O.o ",
    " o.O ",
    " 8| ",  # may be a numeric expression
    ">8V-()<",
    " =3 ",  # may be part of a formula
    "-:3",
    " <3 ",  # may be part of a formula
    "<><",
    "<@:)",
    ":3=",
)

# Stray brackets break the bracketed phrase-tree markup downstream.
ESCAPED_PUNCTUATION: tuple[str, ...] = ("(", ")", "[", "]")


class DetectorError(RuntimeError):
    pass


class BaseDetector(ABC):
    @abstractmethod
    def detect(self, text: str) -> list[EntitySpan]:
        raise NotImplementedError


@dataclass
class EmoticonDetector(BaseDetector):
    patterns: tuple[str, ...] = EMOTICONS

    def detect(self, text: str) -> list[EntitySpan]:
        entities: list[EntitySpan] = []
        for pattern in self.patterns:
            # Only the first occurrence of each pattern is masked.
            start = text.find(pattern)
            if start < 0:
                continue
            entities.append(
                EntitySpan(
                    sentence=text,
                    start=start,
                    end=start + len(pattern),
                    entity_type=EntityType.EMOTICON,
                )
            )
        return entities


@dataclass
class PunctuationDetector(BaseDetector):
    characters: tuple[str, ...] = ESCAPED_PUNCTUATION

    def detect(self, text: str) -> list[EntitySpan]:
        entities: list[EntitySpan] = []
        for char in self.characters:
            start = text.find(char)
            while start >= 0:
                entities.append(
                    EntitySpan(
                        sentence=text,
                        start=start,
                        end=start + 1,
                        entity_type=EntityType.PUNCTUATION,
                    )
                )
                start = text.find(char, start + 1)
        return entities


@dataclass
class CommandDetector(BaseDetector):
    """Runs a local recognizer command that returns JSON entities on stdout."""

    command: str
    timeout_seconds: int = 30

    def detect(self, text: str) -> list[EntitySpan]:
        if not text.strip():
            return []

        args = shlex.split(self.command)
        payload = json.dumps({"text": text}, ensure_ascii=False)

        try:
            proc = subprocess.run(
                args,
                input=payload,
                text=True,
                capture_output=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise DetectorError(f"Recognizer command could not run: {exc}") from exc

        if proc.returncode != 0:
            raise DetectorError(
                "Recognizer command failed "
                f"(exit={proc.returncode}): {proc.stderr.strip() or 'no stderr'}"
            )

        try:
            model_output = json.loads(proc.stdout)
        except json.JSONDecodeError as exc:
            raise DetectorError(
                "Recognizer command must return JSON. "
                f"Got: {proc.stdout[:200]!r}"
            ) from exc

        entities_raw: Any
        if isinstance(model_output, dict):
            entities_raw = model_output.get("entities", [])
        elif isinstance(model_output, list):
            entities_raw = model_output
        else:
            raise DetectorError("Recognizer output must be a JSON object or list.")

        if not isinstance(entities_raw, list):
            raise DetectorError("Recognizer output field 'entities' must be a list.")

        entities = []
        for item in entities_raw:
            if not isinstance(item, dict):
                continue
            normalized = _normalize_entity(item, text)
            if normalized is not None:
                entities.append(normalized)

        # Registration order decides conflicts, so keep the recognizer's
        # spans in sentence order.
        return sorted(entities, key=lambda e: (e.start, e.end))


@dataclass
class NullDetector(BaseDetector):
    def detect(self, text: str) -> list[EntitySpan]:
        return []


def available_detectors() -> list[str]:
    return ["none", "command"]


def build_detector(detector: str, model_cmd: str | None) -> BaseDetector:
    detector_name = detector.strip().lower()
    if detector_name == "none":
        return NullDetector()
    if detector_name == "command":
        if not model_cmd:
            raise DetectorError("--model-cmd is required when detector is 'command'.")
        return CommandDetector(command=model_cmd)
    raise DetectorError(f"Unsupported detector type: {detector}")


def _normalize_entity(entity: dict[str, Any], source_text: str) -> EntitySpan | None:
    try:
        start = int(entity["start"])
        end = int(entity["end"])
        label = str(entity.get("label", "GENERIC"))
    except (KeyError, TypeError, ValueError):
        return None

    if start < 0 or end <= start or end > len(source_text):
        return None

    return EntitySpan(
        sentence=source_text,
        start=start,
        end=end,
        entity_type=EntityType.from_label(label),
    )
