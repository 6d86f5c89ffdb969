#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

# Ensure local package is importable when running from source.
SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

import httpx

from podlearn.api import ApiError, LearningApi
from podlearn.cache import LoadStatus, TranscriptCache
from podlearn.clock import PlaybackClock
from podlearn.config import ClientConfig
from podlearn.exporters import export_docx, export_json, export_txt
from podlearn.identity import compute_key
from podlearn.logging_utils import configure_logging
from podlearn.loop import LoopController
from podlearn.media import SimulatedMedia
from podlearn.models import AnalysisResult, Episode, ScrollRequest, SyncFrame, Transcript, TranscriptResult
from podlearn.parsing import line_to_payload, parse_segments
from podlearn.store import TranscriptStore
from podlearn.sync import SyncEngine, SyncListener

T = TypeVar("T")


def emit(event_type: str, payload: object) -> None:
    print(json.dumps({"type": event_type, "payload": payload}, ensure_ascii=False), flush=True)


def _episode_from_args(args: argparse.Namespace) -> Episode:
    return Episode(
        title=args.title,
        audio_url=args.audio_url,
        guid=args.guid or None,
        channel_title=getattr(args, "channel", None) or None,
    )


def _read_transcript(path: Path) -> Transcript:
    return parse_segments(json.loads(path.read_text(encoding="utf-8")))


def _analysis_payload(result: AnalysisResult) -> dict[str, object]:
    return {
        "vocabulary": [
            {"word": v.word, "root": v.root, "meaning": v.meaning, "partOfSpeech": v.part_of_speech}
            for v in result.vocabulary
        ],
        "grammarPoints": [{"structure": g.structure, "explanation": g.explanation} for g in result.grammar_points],
        "culturalNuance": result.cultural_nuance,
        "cached": result.cached,
    }


def _load_config() -> ClientConfig | None:
    try:
        return ClientConfig.from_env()
    except (RuntimeError, ValueError) as exc:
        emit("error", {"message": str(exc)})
        return None


def command_episode_key(args: argparse.Namespace) -> int:
    episode = _episode_from_args(args)
    emit("result", {"episodeId": compute_key(episode)})
    return 0


def _result_payload(result: TranscriptResult) -> dict[str, object]:
    return {
        "episodeId": result.key,
        "source": result.source.value,
        "degraded": result.degraded,
        "error": result.error,
        "segments": [line_to_payload(line) for line in result.lines],
    }


async def _load_transcript(config: ClientConfig, episode: Episode) -> TranscriptResult:
    def on_status(status: LoadStatus) -> None:
        emit("progress", {"status": status.value})

    async with httpx.AsyncClient() as client:
        cache = TranscriptCache(LearningApi(config, client))
        return await cache.load(episode, on_status=on_status)


def command_load_transcript(args: argparse.Namespace) -> int:
    config = _load_config()
    if config is None:
        return 1

    episode = _episode_from_args(args)
    result = asyncio.run(_load_transcript(config, episode))
    if args.output:
        export_json({"key": result.key, "title": episode.title}, result.lines, Path(args.output))
    emit("result", _result_payload(result))
    return 0


async def _with_api(config: ClientConfig, action: Callable[[LearningApi], Awaitable[T]]) -> T:
    async with httpx.AsyncClient() as client:
        return await action(LearningApi(config, client))


def command_analyze(args: argparse.Namespace) -> int:
    config = _load_config()
    if config is None:
        return 1

    try:
        result = asyncio.run(_with_api(config, lambda api: api.analyze_sentence(args.text, context=args.context or "")))
    except (httpx.HTTPError, ApiError, ValueError) as exc:
        emit("error", {"message": f"Analyse fejlede: {exc}", "retryable": True})
        return 1

    emit("result", _analysis_payload(result))
    return 0


def command_check_transcript(args: argparse.Namespace) -> int:
    config = _load_config()
    if config is None:
        return 1

    try:
        lines = asyncio.run(_with_api(config, lambda api: api.check_transcript(args.episode_id)))
    except (httpx.HTTPError, ApiError, ValueError) as exc:
        emit("error", {"message": f"Transcript-tjek fejlede: {exc}"})
        return 1

    emit(
        "result",
        {
            "episodeId": args.episode_id,
            "exists": lines is not None,
            "segments": [line_to_payload(line) for line in lines] if lines is not None else None,
        },
    )
    return 0


def command_delete_transcript(args: argparse.Namespace) -> int:
    config = _load_config()
    if config is None:
        return 1

    try:
        asyncio.run(_with_api(config, lambda api: api.delete_transcript(args.episode_id)))
    except (httpx.HTTPError, ApiError, ValueError) as exc:
        emit("error", {"message": f"Sletning fejlede: {exc}"})
        return 1

    emit("result", {"episodeId": args.episode_id, "deleted": True})
    return 0


def _export(args: argparse.Namespace, exporter: Callable[..., None]) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        emit("error", {"message": f"Transcript-fil blev ikke fundet: {input_path}"})
        return 1

    try:
        lines = _read_transcript(input_path)
    except (OSError, ValueError) as exc:
        emit("error", {"message": f"Kunne ikke læse transcript: {exc}"})
        return 1

    meta = {"title": args.title, "channel_title": args.channel or "", "key": args.episode_id or ""}
    exporter(meta, lines, Path(args.output), with_translation=not args.no_translation)
    emit("result", {"filePath": args.output})
    return 0


def command_export_txt(args: argparse.Namespace) -> int:
    return _export(args, export_txt)


def command_export_docx(args: argparse.Namespace) -> int:
    return _export(args, export_docx)


class _EmittingListener(SyncListener):
    def on_active_line_changed(self, index: int | None) -> None:
        emit("line", {"index": index})

    def on_scroll_request(self, request: ScrollRequest) -> None:
        emit("scroll", {"anchor": request.anchor, "behavior": request.behavior, "block": request.block})

    def on_loop_seek(self, target: float) -> None:
        emit("loop", {"seekTo": round(target, 3)})

    def on_highlight(self, frame: SyncFrame) -> None:
        if frame.word_index is not None:
            emit("word", {"line": frame.line_index, "word": frame.word_index, "position": round(frame.position, 3)})


def command_simulate(args: argparse.Namespace) -> int:
    try:
        lines = _read_transcript(Path(args.input))
    except (OSError, ValueError) as exc:
        emit("error", {"message": f"Kunne ikke læse transcript: {exc}"})
        return 1
    if not lines:
        emit("error", {"message": "Transcript er tomt"})
        return 1

    duration = args.duration or lines[-1].end
    media = SimulatedMedia(duration)
    clock = PlaybackClock(media)
    media.on_time_update = clock.on_time_update
    loop = LoopController()
    engine = SyncEngine(TranscriptStore(lines), clock, loop, _EmittingListener())
    engine.attach()

    for _ in range(args.speed_steps):
        clock.cycle_rate()
    if args.loop:
        point_a, point_b = args.loop
        loop.mark(point_a)
        loop.mark(point_b)

    clock.play()
    loop_seeks = 0
    steps = 0
    while clock.is_playing and steps < args.max_steps:
        before = clock.position
        media.advance(args.step)
        if clock.position < before:
            loop_seeks += 1
            if loop_seeks >= args.loop_repeats:
                loop.clear()
        steps += 1

    emit(
        "result",
        {
            "position": round(clock.position, 3),
            "rate": clock.rate,
            "steps": steps,
            "loopSeeks": loop_seeks,
        },
    )
    return 0


def _add_episode_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title", required=True)
    parser.add_argument("--audio-url", required=True)
    parser.add_argument("--guid", required=False)
    parser.add_argument("--channel", required=False)


def _add_export_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--input", required=True)
    parser.add_argument("--output", required=True)
    parser.add_argument("--title", required=True)
    parser.add_argument("--channel", required=False)
    parser.add_argument("--episode-id", required=False)
    parser.add_argument("--no-translation", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="podlearn worker")
    parser.add_argument("--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    episode_key = sub.add_parser("episode-key")
    _add_episode_args(episode_key)
    episode_key.set_defaults(func=command_episode_key)

    load_transcript = sub.add_parser("load-transcript")
    _add_episode_args(load_transcript)
    load_transcript.add_argument("--output", required=False)
    load_transcript.set_defaults(func=command_load_transcript)

    analyze = sub.add_parser("analyze")
    analyze.add_argument("--text", required=True)
    analyze.add_argument("--context", required=False)
    analyze.set_defaults(func=command_analyze)

    check_transcript = sub.add_parser("check-transcript")
    check_transcript.add_argument("--episode-id", required=True)
    check_transcript.set_defaults(func=command_check_transcript)

    delete_transcript = sub.add_parser("delete-transcript")
    delete_transcript.add_argument("--episode-id", required=True)
    delete_transcript.set_defaults(func=command_delete_transcript)

    export_txt_parser = sub.add_parser("export-txt")
    _add_export_args(export_txt_parser)
    export_txt_parser.set_defaults(func=command_export_txt)

    export_docx_parser = sub.add_parser("export-docx")
    _add_export_args(export_docx_parser)
    export_docx_parser.set_defaults(func=command_export_docx)

    simulate = sub.add_parser("simulate")
    simulate.add_argument("--input", required=True)
    simulate.add_argument("--duration", type=float, required=False)
    simulate.add_argument("--step", type=float, default=0.25)
    simulate.add_argument("--speed-steps", type=int, default=0)
    simulate.add_argument("--loop", type=float, nargs=2, metavar=("A", "B"))
    simulate.add_argument("--loop-repeats", type=int, default=2)
    simulate.add_argument("--max-steps", type=int, default=100_000)
    simulate.set_defaults(func=command_simulate)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        configure_logging(logging.DEBUG)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
