from __future__ import annotations

import logging
from typing import Any

from .models import AnalysisResult, GrammarPoint, TranscriptLine, VocabularyItem, WordSpan

LOGGER = logging.getLogger(__name__)


class TranscriptFormatError(ValueError):
    pass


class AnalysisFormatError(ValueError):
    pass


_START_KEYS = ("start", "startSec", "startOffset")
_END_KEYS = ("end", "endSec", "endOffset")


def _to_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump()  # pydantic style
    if hasattr(value, "to_dict"):
        return value.to_dict()
    raise TranscriptFormatError(f"Forventede et objekt, fik {type(value).__name__}")


def _first(raw: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _seconds(raw: dict[str, Any], keys: tuple[str, ...], *, where: str) -> float:
    value = _first(raw, keys)
    if value is None:
        raise TranscriptFormatError(f"{where} mangler '{keys[0]}'")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise TranscriptFormatError(f"{where} har ugyldig tid: {value!r}") from exc


def _parse_words(raw_words: Any, *, where: str) -> tuple[WordSpan, ...]:
    if not raw_words:
        return ()
    if not isinstance(raw_words, list):
        raise TranscriptFormatError(f"{where}: 'words' skal være en liste")

    words: list[WordSpan] = []
    for idx, raw in enumerate(raw_words):
        raw = _to_dict(raw)
        label = f"{where}, ord {idx}"
        token = str(_first(raw, ("word", "token")) or "")
        start = _seconds(raw, _START_KEYS, where=label)
        end = _seconds(raw, _END_KEYS, where=label)
        words.append(WordSpan(word=token, start=start, end=max(start, end)))
    return tuple(words)


def parse_segments(payload: Any) -> tuple[TranscriptLine, ...]:
    """Parse a transcript payload, either ``{"segments": [...]}`` or a bare list.

    Segments come back one line per entry, in order and with their text as
    sent, so line indices match the payload.
    """

    if isinstance(payload, dict):
        raw_segments = payload.get("segments")
    else:
        raw_segments = payload
    if not isinstance(raw_segments, list):
        raise TranscriptFormatError("Transcript-payload indeholder ingen segmentliste")

    lines: list[TranscriptLine] = []
    for idx, raw in enumerate(raw_segments):
        raw = _to_dict(raw)
        where = f"Segment {idx}"

        start = _seconds(raw, _START_KEYS, where=where)
        end = _seconds(raw, _END_KEYS, where=where)
        if end < start:
            raise TranscriptFormatError(f"{where} slutter før det starter ({start} > {end})")
        if end == start:
            LOGGER.warning("%s har længden nul (%.3f) og bliver aldrig aktiv", where, start)

        lines.append(
            TranscriptLine(
                start=start,
                end=end,
                text=str(_first(raw, ("text", "sourceText")) or ""),
                translation=str(_first(raw, ("translation", "translatedText")) or ""),
                words=_parse_words(raw.get("words"), where=where),
            )
        )

    return tuple(lines)


def parse_generation_response(payload: Any) -> tuple[TranscriptLine, ...]:
    if not isinstance(payload, dict):
        raise TranscriptFormatError("Ugyldigt svar fra transcript-generering")
    if not payload.get("success"):
        raise TranscriptFormatError(str(payload.get("error") or "Transcript-generering fejlede"))
    data = payload.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("segments"), list):
        raise TranscriptFormatError("Ugyldigt transcript-svar: data.segments mangler")
    return parse_segments(data)


def parse_analysis(payload: Any) -> AnalysisResult:
    """Parse line analysis data.

    Accepts both the long field names (``grammarPoints``, ``culturalNuance``,
    ``partOfSpeech``) and the backend's short ones (``grammar``, ``nuance``,
    ``type``).
    """

    if not isinstance(payload, dict):
        raise AnalysisFormatError("Analysen er ikke et objekt")

    raw_vocab = payload.get("vocabulary") or []
    raw_grammar = _first(payload, ("grammarPoints", "grammar")) or []
    if not isinstance(raw_vocab, list) or not isinstance(raw_grammar, list):
        raise AnalysisFormatError("Analysen har ugyldige lister")

    vocabulary: list[VocabularyItem] = []
    for raw in raw_vocab:
        if not isinstance(raw, dict):
            raise AnalysisFormatError("Ugyldigt ordforrådselement")
        vocabulary.append(
            VocabularyItem(
                word=str(raw.get("word") or ""),
                root=str(raw.get("root") or ""),
                meaning=str(raw.get("meaning") or ""),
                part_of_speech=str(_first(raw, ("partOfSpeech", "type")) or ""),
            )
        )

    grammar: list[GrammarPoint] = []
    for raw in raw_grammar:
        if not isinstance(raw, dict):
            raise AnalysisFormatError("Ugyldigt grammatikelement")
        grammar.append(
            GrammarPoint(
                structure=str(raw.get("structure") or ""),
                explanation=str(raw.get("explanation") or ""),
            )
        )

    return AnalysisResult(
        vocabulary=tuple(vocabulary),
        grammar_points=tuple(grammar),
        cultural_nuance=str(_first(payload, ("culturalNuance", "nuance")) or ""),
        cached=bool(payload.get("cached", False)),
    )


def line_to_payload(line: TranscriptLine) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "start": line.start,
        "end": line.end,
        "text": line.text,
        "translation": line.translation,
    }
    if line.words:
        payload["words"] = [{"word": w.word, "start": w.start, "end": w.end} for w in line.words]
    return payload
