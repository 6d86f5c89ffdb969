from __future__ import annotations

from .models import Transcript, TranscriptLine

FALLBACK_ERROR = "Viser demo-transcript (AI-generering fejlede)"

FALLBACK_LINES: Transcript = (
    TranscriptLine(
        start=0.0,
        end=4.5,
        text="안녕하세요, 여러분. 오늘도 한국어 공부 시작해볼까요?",
        translation="大家好，今天也开始学习韩语吗？",
    ),
    TranscriptLine(
        start=4.5,
        end=8.2,
        text="꾸준히 하는 것이 가장 중요합니다.",
        translation="坚持是最重要的。",
    ),
    TranscriptLine(
        start=8.2,
        end=12.0,
        text="이 문장은 조금 빠르니까 다시 들어보세요.",
        translation="这句话有点快，请再听一遍。",
    ),
    TranscriptLine(
        start=12.0,
        end=16.5,
        text="오늘은 일상 대화에서 많이 쓰는 표현을 배워볼 거예요.",
        translation="今天我们来学习日常对话中常用的表达。",
    ),
    TranscriptLine(
        start=16.5,
        end=21.0,
        text="예를 들어, '어떻게 지내세요?'라는 표현이 있어요.",
        translation="比如，有'您最近怎么样？'这样的表达。",
    ),
)


def fallback_transcript() -> Transcript:
    return FALLBACK_LINES
