from __future__ import annotations

from bisect import bisect_right
from itertools import accumulate

from .models import Transcript, TranscriptLine


def _is_ordered(lines: Transcript) -> bool:
    return all(lines[idx].start <= lines[idx + 1].start for idx in range(len(lines) - 1))


class TranscriptStore:
    """The current episode's transcript, queryable by playback position.

    A position maps to the first line with ``start <= position < end``.
    Positions in a gap or past the end map to ``None``.
    """

    def __init__(self, lines: Transcript = ()) -> None:
        self._lines: Transcript = ()
        self._starts: list[float] = []
        self._max_ends: list[float] = []
        self._ordered = True
        self.replace(lines)

    @property
    def lines(self) -> Transcript:
        return self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __bool__(self) -> bool:
        return bool(self._lines)

    def line(self, index: int) -> TranscriptLine:
        return self._lines[index]

    def replace(self, lines: Transcript) -> None:
        self._lines = tuple(lines)
        self._ordered = _is_ordered(self._lines)
        self._starts = [line.start for line in self._lines]
        self._max_ends = list(accumulate((line.end for line in self._lines), max))

    def clear(self) -> None:
        self.replace(())

    def active_line_index(self, position: float) -> int | None:
        if not self._lines:
            return None
        if not self._ordered:
            return self._scan(position)

        # Only lines starting at or before the position can contain it.
        upper = bisect_right(self._starts, position)
        # The running max of ends skips every prefix that ends before the position.
        idx = bisect_right(self._max_ends, position, 0, upper)
        while idx < upper:
            if position < self._lines[idx].end:
                return idx
            idx += 1
        return None

    def _scan(self, position: float) -> int | None:
        for idx, line in enumerate(self._lines):
            if line.contains(position):
                return idx
        return None

    def active_line(self, position: float) -> TranscriptLine | None:
        idx = self.active_line_index(position)
        return None if idx is None else self._lines[idx]

    @staticmethod
    def active_word_index(line: TranscriptLine, position: float) -> int | None:
        for idx, word in enumerate(line.words):
            if word.start <= position < word.end:
                return idx
        return None
