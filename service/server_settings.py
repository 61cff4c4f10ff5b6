import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

DEFAULT_ORIGINS = ("http://localhost:3000",)
TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    host: str = "localhost"
    port: int = 8080
    allowed_origins: Tuple[str, ...] = DEFAULT_ORIGINS
    debug: bool = False
    log_level: str = "INFO"


def _parse_origins(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return DEFAULT_ORIGINS
    origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())
    return origins or DEFAULT_ORIGINS


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    raw_port = env.get("PORT", "8080")
    try:
        port = int(raw_port)
    except ValueError:
        raise ValueError(f"PORT must be an integer, received {raw_port!r}") from None

    return Settings(
        host=env.get("BOARD_HOST", "localhost"),
        port=port,
        allowed_origins=_parse_origins(env.get("BOARD_ALLOWED_ORIGINS")),
        debug=env.get("FLASK_DEBUG", "").strip().lower() in TRUTHY,
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )


__all__ = ["Settings", "load_settings"]
