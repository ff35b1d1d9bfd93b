from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

"""Runtime settings.

Values come from the environment (optionally seeded from a ``.env`` file).
The data directory is injected into the resolver through Settings so tests
can point it at a temporary tree.
"""

DEFAULT_DATA_DIR = Path("data") / "salud"
DEFAULT_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
    "https://datosparalademocracia.netlify.app",
)
DEFAULT_ORIGIN_REGEX = r"https://.*\.netlify\.app"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    allowed_origins: Tuple[str, ...] = DEFAULT_ORIGINS
    allowed_origin_regex: Optional[str] = DEFAULT_ORIGIN_REGEX
    log_level: str = "INFO"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _split_origins(raw: str) -> Tuple[str, ...]:
    return tuple(o.strip() for o in raw.split(",") if o.strip())


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from the environment.

    Recognised variables: DATA_DIR, ALLOWED_ORIGINS (comma separated),
    ALLOWED_ORIGIN_REGEX (empty disables it), LOG_LEVEL, HOST and PORT.
    Existing environment variables win over the ``.env`` file.
    """
    path = env_file or Path(".env")
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)

    data_dir = os.getenv("DATA_DIR", "").strip()
    origins = os.getenv("ALLOWED_ORIGINS", "").strip()
    regex = os.getenv("ALLOWED_ORIGIN_REGEX")

    return Settings(
        data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
        allowed_origins=_split_origins(origins) if origins else DEFAULT_ORIGINS,
        allowed_origin_regex=DEFAULT_ORIGIN_REGEX if regex is None else (regex.strip() or None),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        host=os.getenv("HOST", "").strip() or DEFAULT_HOST,
        port=int(os.getenv("PORT", "").strip() or DEFAULT_PORT),
    )
