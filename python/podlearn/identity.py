from __future__ import annotations

from urllib.parse import quote

from .models import Episode

KEY_PREFIX = "ep_"


def _string_hash(value: str) -> int:
    # 32-bit rolling hash over UTF-16 code units, wrapped as a signed int.
    h = 0
    encoded = value.encode("utf-16-le")
    for idx in range(0, len(encoded), 2):
        code_unit = encoded[idx] | (encoded[idx + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def compute_key(episode: Episode) -> str:
    stable_id = episode.stable_id
    if stable_id is not None:
        return quote(stable_id, safe="!*'()")
    digest = abs(_string_hash(f"{episode.title}-{episode.audio_url}"))
    return f"{KEY_PREFIX}{digest:08x}"
