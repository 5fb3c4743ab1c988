from __future__ import annotations

import json
import logging
from typing import Optional

import typer

from .detector import EMOTICONS, DetectorError, available_detectors, build_detector
from .masker import MaskedSentence
from .tokens import iter_tokens, tokenize
from .types import MAX_NUM_ENTITIES, EntitySpan, EntityType

app = typer.Typer(help="Mask entities in a sentence behind parser-friendly placeholder IDs.")


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        envvar="SENTENCE_MASKER_LOG_LEVEL",
        help="DEBUG, INFO, WARNING, ERROR or CRITICAL.",
    ),
) -> None:
    level = getattr(logging, log_level.strip().upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")


def _spans_from_pairs(sentence: str, pairs: list[int], label: str) -> list[EntitySpan]:
    # Pairs give the first and last character of each entity, both inclusive.
    if len(pairs) % 2:
        raise ValueError("Span positions must come in FIRST LAST pairs.")
    entity_type = EntityType.from_label(label)
    return [
        EntitySpan(sentence=sentence, start=first, end=last + 1, entity_type=entity_type)
        for first, last in zip(pairs[::2], pairs[1::2])
    ]


def _mask(
    sentence: str,
    pairs: Optional[list[int]],
    label: str,
    detector: str,
    model_cmd: Optional[str],
    max_entities: int,
) -> MaskedSentence:
    spans = _spans_from_pairs(sentence, pairs or [], label)
    spans.extend(build_detector(detector=detector, model_cmd=model_cmd).detect(sentence))
    return MaskedSentence(sentence, spans, max_entities=max_entities)


@app.command("convert")
def convert_command(
    sentence: str = typer.Argument(..., help="Sentence to mask."),
    pairs: Optional[list[int]] = typer.Argument(
        None,
        help="FIRST LAST character positions of each entity, inclusive.",
    ),
    label: str = typer.Option("GENERIC", "--label", help="Entity type for the given positions."),
    detector: str = typer.Option(
        "none",
        "--detector",
        help="External recognizer backend: none or command.",
    ),
    model_cmd: Optional[str] = typer.Option(
        None,
        "--model-cmd",
        envvar="SENTENCE_MASKER_MODEL_CMD",
        help="Local recognizer command returning JSON entities for a text payload.",
    ),
    max_entities: int = typer.Option(
        MAX_NUM_ENTITIES,
        "--max-entities",
        envvar="SENTENCE_MASKER_MAX_ENTITIES",
        min=1,
        help="Placeholder numbers the grammar knows; more only triggers a warning.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the placeholder map as JSON."),
) -> None:
    try:
        masked = _mask(sentence, pairs, label, detector, model_cmd, max_entities)
    except (DetectorError, ValueError) as exc:
        typer.echo(f"Conversion failed: {exc}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(masked.to_dict(), ensure_ascii=False, indent=2))
    else:
        typer.echo(masked.converted_sentence)


@app.command("repair")
def repair_command(
    sentence: str = typer.Argument(..., help="Sentence to mask, tokenize and repair."),
    pairs: Optional[list[int]] = typer.Argument(
        None,
        help="FIRST LAST character positions of each entity, inclusive.",
    ),
    label: str = typer.Option("GENERIC", "--label", help="Entity type for the given positions."),
    detector: str = typer.Option("none", "--detector", help="External recognizer backend: none or command."),
    model_cmd: Optional[str] = typer.Option(
        None,
        "--model-cmd",
        envvar="SENTENCE_MASKER_MODEL_CMD",
        help="Local recognizer command returning JSON entities for a text payload.",
    ),
) -> None:
    try:
        masked = _mask(sentence, pairs, label, detector, model_cmd, MAX_NUM_ENTITIES)
    except (DetectorError, ValueError) as exc:
        typer.echo(f"Conversion failed: {exc}", err=True)
        raise typer.Exit(1)

    head = tokenize(masked.converted_sentence)
    masked.prepare(head)
    report = masked.repair(head)

    typer.echo(masked.converted_sentence)
    for token in iter_tokens(head):
        name = token.ref.name if token.ref is not None else token.word
        typer.echo(f"{token.word}\t{name}\t{token.start}\t{token.end}")

    if not report.complete:
        typer.echo(f"Repair stopped early: {report.error}", err=True)
        raise typer.Exit(1)


@app.command("emoticons")
def list_emoticons() -> None:
    for pattern in EMOTICONS:
        typer.echo(repr(pattern))


@app.command("detectors")
def list_detectors() -> None:
    for name in available_detectors():
        typer.echo(name)


if __name__ == "__main__":
    app()
