from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TARGET_LANGUAGE = "zh"
REQUEST_TIMEOUT_SEC = 30.0
# Generation downloads and transcribes the whole episode server side.
GENERATION_TIMEOUT_SEC = 180.0


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} skal være et tal, fik {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} skal være større end 0")
    return value


@dataclass(slots=True, frozen=True)
class ClientConfig:
    api_base: str
    cdn_base: str = ""
    target_language: str = DEFAULT_TARGET_LANGUAGE
    request_timeout_sec: float = REQUEST_TIMEOUT_SEC
    generation_timeout_sec: float = GENERATION_TIMEOUT_SEC
    auth_token: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "api_base", self.api_base.rstrip("/"))
        object.__setattr__(self, "cdn_base", self.cdn_base.rstrip("/"))

    @property
    def has_cdn(self) -> bool:
        return bool(self.cdn_base)

    @classmethod
    def from_env(cls) -> ClientConfig:
        api_base = os.environ.get("PODLEARN_API_BASE", "").strip()
        if not api_base:
            raise RuntimeError("PODLEARN_API_BASE mangler")
        return cls(
            api_base=api_base,
            cdn_base=os.environ.get("PODLEARN_CDN_URL", "").strip(),
            target_language=os.environ.get("PODLEARN_TARGET_LANGUAGE", "").strip() or DEFAULT_TARGET_LANGUAGE,
            request_timeout_sec=_env_float("PODLEARN_REQUEST_TIMEOUT_SEC", REQUEST_TIMEOUT_SEC),
            generation_timeout_sec=_env_float("PODLEARN_GENERATION_TIMEOUT_SEC", GENERATION_TIMEOUT_SEC),
            auth_token=os.environ.get("PODLEARN_AUTH_TOKEN", "").strip() or None,
        )
