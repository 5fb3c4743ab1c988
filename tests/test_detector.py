import shlex
import sys
from pathlib import Path

import pytest

from sentence_masker.detector import (
    EMOTICONS,
    CommandDetector,
    DetectorError,
    EmoticonDetector,
    NullDetector,
    PunctuationDetector,
    build_detector,
)
from sentence_masker.types import EntityType


def _command(script: Path) -> str:
    return shlex.join([sys.executable, str(script)])


def test_catalogue_is_an_ordered_constant() -> None:
    assert isinstance(EMOTICONS, tuple)
    assert EMOTICONS[:3] == (":-)", ":-(", ":)")
    assert len(EMOTICONS) > 70


def test_emoticon_detector_finds_only_first_occurrence() -> None:
    text = "Nice :) and again :)"
    spans = EmoticonDetector().detect(text)

    assert [(s.start, s.end) for s in spans] == [(5, 7)]
    assert spans[0].entity_type is EntityType.EMOTICON
    assert spans[0].original == ":)"


def test_padded_emoticon_includes_padding() -> None:
    spans = EmoticonDetector().detect("I <3 you")

    assert len(spans) == 1
    assert spans[0].original == " <3 "


def test_padded_emoticon_ignores_numeric_expression() -> None:
    assert EmoticonDetector().detect("x<3 and 2<3") == []


def test_punctuation_detector_finds_every_bracket() -> None:
    text = "f(x) [y] (z)"
    spans = PunctuationDetector().detect(text)

    assert [s.start for s in spans] == [1, 9, 3, 11, 5, 7]
    assert all(s.end == s.start + 1 for s in spans)
    assert all(s.entity_type is EntityType.PUNCTUATION for s in spans)


def test_command_detector_reads_json_entities(tmp_path: Path) -> None:
    script = tmp_path / "recognizer.py"
    script.write_text(
        "import json, sys\n"
        "text = json.load(sys.stdin)['text']\n"
        "start = text.index('Paris')\n"
        "json.dump({'entities': [\n"
        "    {'start': start, 'end': start + 5, 'label': 'GPE'},\n"
        "    {'start': 0, 'end': 4, 'label': 'PER'},\n"
        "    {'start': 0, 'end': 999, 'label': 'PER'},\n"
        "    'junk',\n"
        "]}, sys.stdout)\n",
        encoding="utf-8",
    )

    text = "Mike flew to Paris."
    spans = CommandDetector(command=_command(script)).detect(text)

    assert [(s.start, s.end, s.entity_type) for s in spans] == [
        (0, 4, EntityType.PERSON),
        (13, 18, EntityType.LOCATION),
    ]
    assert all(s.sentence == text for s in spans)


def test_command_detector_reports_failed_command(tmp_path: Path) -> None:
    script = tmp_path / "broken.py"
    script.write_text("import sys\nsys.stderr.write('model missing')\nsys.exit(3)\n", encoding="utf-8")

    with pytest.raises(DetectorError, match="model missing"):
        CommandDetector(command=_command(script)).detect("Mike is here.")


def test_command_detector_rejects_non_json(tmp_path: Path) -> None:
    script = tmp_path / "chatty.py"
    script.write_text("print('hello there')\n", encoding="utf-8")

    with pytest.raises(DetectorError, match="must return JSON"):
        CommandDetector(command=_command(script)).detect("Mike is here.")


def test_command_detector_skips_blank_text() -> None:
    assert CommandDetector(command="does-not-exist").detect("   ") == []


def test_build_detector() -> None:
    assert isinstance(build_detector("none", None), NullDetector)
    assert isinstance(build_detector(" Command ", "recognize"), CommandDetector)

    with pytest.raises(DetectorError, match="--model-cmd"):
        build_detector("command", None)
    with pytest.raises(DetectorError, match="Unsupported"):
        build_detector("spacy", None)
