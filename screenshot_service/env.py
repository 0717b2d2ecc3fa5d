from __future__ import annotations

import os
from pathlib import Path
from typing import MutableMapping, Optional

_DOTENV_LOADED = False


def _repo_root() -> Path:
    # screenshot_service/env.py -> repo root is one level up from the package
    return Path(__file__).resolve().parents[1]


def parse_dotenv(text: str) -> dict[str, str]:
    """
    Parse .env content into a dict.

    - Ignores blank lines and comments starting with '#'
    - Supports optional leading 'export '
    - Parses KEY=VALUE where VALUE may be single- or double-quoted
    """
    parsed: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        parsed[key] = value
    return parsed


def load_dotenv(
    *,
    path: Optional[str | Path] = None,
    override: bool = False,
    environ: Optional[MutableMapping[str, str]] = None,
) -> dict[str, str]:
    """
    Load KEY=VALUE pairs from a .env file into `environ` (os.environ by default).

    Existing keys are left alone unless override=True, so CI-provided secrets
    always beat a developer's local file. Returns the keys that were set.
    """
    target = os.environ if environ is None else environ
    dotenv_path = Path(path).expanduser().resolve() if path is not None else (_repo_root() / ".env")
    if not dotenv_path.exists():
        return {}
    if dotenv_path.is_dir():
        raise RuntimeError(f".env path is a directory: {dotenv_path}")

    loaded: dict[str, str] = {}
    for key, value in parse_dotenv(dotenv_path.read_text(encoding="utf-8")).items():
        if not override and target.get(key) is not None:
            continue
        target[key] = value
        loaded[key] = value
    return loaded


def ensure_dotenv_loaded() -> dict[str, str]:
    """
    Load repo-root .env exactly once per process.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return {}
    loaded = load_dotenv()
    _DOTENV_LOADED = True
    return loaded
