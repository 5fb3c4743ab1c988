from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# The downstream grammar only knows placeholder words up to "genericID60",
# "dateID60", etc. Raising this needs matching dictionary entries.
MAX_NUM_ENTITIES = 60

ENTITY_FLAG = "ENTITY-FLAG"


class EntityType(Enum):
    GENERIC = "genericID"
    PERSON = "personID"
    LOCATION = "locationID"
    ORGANIZATION = "organizationID"
    DATE = "dateID"
    TIME = "timeID"
    MONEY = "moneyID"
    EMOTICON = "emoticonID"
    PUNCTUATION = "punctuationID"

    @property
    def id_prefix(self) -> str:
        return self.value

    @property
    def flag(self) -> str:
        return f"{self.name}-FLAG"

    @classmethod
    def from_label(cls, label: str) -> "EntityType":
        return LABEL_ALIASES.get(label.strip().upper(), cls.GENERIC)


LABEL_ALIASES = {
    "GENERIC": EntityType.GENERIC,
    "NAMED": EntityType.GENERIC,
    "MISC": EntityType.GENERIC,
    "PERSON": EntityType.PERSON,
    "PER": EntityType.PERSON,
    "NAME": EntityType.PERSON,
    "LOCATION": EntityType.LOCATION,
    "LOC": EntityType.LOCATION,
    "GPE": EntityType.LOCATION,
    "ORGANIZATION": EntityType.ORGANIZATION,
    "ORG": EntityType.ORGANIZATION,
    "COMPANY": EntityType.ORGANIZATION,
    "DATE": EntityType.DATE,
    "TIME": EntityType.TIME,
    "MONEY": EntityType.MONEY,
    "EMOTICON": EntityType.EMOTICON,
    "PUNCTUATION": EntityType.PUNCTUATION,
}


@dataclass
class EntitySpan:
    """A half-open character range of ``sentence`` that gets masked."""

    sentence: str = field(repr=False)
    start: int
    end: int
    entity_type: EntityType = EntityType.GENERIC
    entity_id: str | None = field(default=None, compare=False)
    properties: dict[str, str] = field(default_factory=dict, compare=False, repr=False)
    token: Any = field(default=None, compare=False, repr=False)
    extended: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.start < 0 or self.end <= self.start or self.end > len(self.sentence):
            raise ValueError(
                f"Invalid span [{self.start}, {self.end}) for sentence of length {len(self.sentence)}"
            )
        if not self.properties:
            self.properties = {ENTITY_FLAG: "T"}
            if self.entity_type is not EntityType.GENERIC:
                self.properties[self.entity_type.flag] = "T"

    @property
    def original(self) -> str:
        return self.sentence[self.start : self.end]

    def absorb_following_period(self) -> None:
        self.end += 1
        self.extended = True
