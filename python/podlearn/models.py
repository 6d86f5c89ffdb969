from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(slots=True, frozen=True)
class Episode:
    title: str
    audio_url: str
    guid: str | None = None
    id: str | None = None
    channel_title: str | None = None
    duration: float | None = None
    pub_date: str | None = None

    @property
    def stable_id(self) -> str | None:
        for value in (self.guid, self.id):
            if value is not None and str(value).strip():
                return str(value)
        return None


@dataclass(slots=True, frozen=True)
class WordSpan:
    word: str
    start: float
    end: float


@dataclass(slots=True, frozen=True)
class TranscriptLine:
    start: float
    end: float
    text: str
    translation: str = ""
    words: tuple[WordSpan, ...] = ()

    @property
    def duration_sec(self) -> float:
        return max(0.0, self.end - self.start)

    def contains(self, position: float) -> bool:
        return self.start <= position < self.end


Transcript = tuple[TranscriptLine, ...]


class TranscriptSource(str, Enum):
    CACHE = "cache"
    GENERATED = "generated"
    FALLBACK = "fallback"


@dataclass(slots=True, frozen=True)
class TranscriptResult:
    key: str
    lines: Transcript
    source: TranscriptSource
    degraded: bool = False
    error: str | None = None


@dataclass(slots=True, frozen=True)
class LoopRegion:
    point_a: float | None = None
    point_b: float | None = None
    active: bool = False


@dataclass(slots=True, frozen=True)
class VocabularyItem:
    word: str
    root: str
    meaning: str
    part_of_speech: str


@dataclass(slots=True, frozen=True)
class GrammarPoint:
    structure: str
    explanation: str


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    vocabulary: tuple[VocabularyItem, ...] = ()
    grammar_points: tuple[GrammarPoint, ...] = ()
    cultural_nuance: str = ""
    cached: bool = False


@dataclass(slots=True, frozen=True)
class SyncFrame:
    position: float
    line_index: int | None
    word_index: int | None
    line_changed: bool = False


@dataclass(slots=True, frozen=True)
class ScrollRequest:
    index: int
    anchor: str
    behavior: str = "smooth"
    block: str = "center"
