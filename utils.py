"""Utility helpers for word parsing, case transforms, config, and logging."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from models import SearchOptions


def _choose_app_dir() -> Path:
    """
    Pick the directory holding config.json and app.log.

    Searches keep no progress on disk, so this only needs to be writable
    for the log file; fall back to the working directory when home is not.
    """
    preferred = Path.home() / ".amulet_geodes"
    try:
        preferred.mkdir(parents=True, exist_ok=True)
        return preferred
    except OSError:
        fallback = Path(".amulet_geodes")
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback


APP_DIR = _choose_app_dir()
CONFIG_PATH = APP_DIR / "config.json"
LOG_PATH = APP_DIR / "app.log"

TOKEN_PATTERN = re.compile(r"\S+")

CONFIG_KEYS = ("workers", "min_run", "max_bytes", "marker", "progress_every", "start_method")


def ensure_app_dirs() -> None:
    """Create the app directory if it does not already exist."""
    APP_DIR.mkdir(parents=True, exist_ok=True)


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure file logging once per app run."""
    ensure_app_dirs()
    logging.basicConfig(
        filename=str(LOG_PATH),
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load config from the user home config file."""
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception:
        logging.exception("Failed to load config from %s", config_path)
        return {}
    if not isinstance(data, dict):
        logging.warning("Ignoring config in %s: expected a JSON object", config_path)
        return {}
    return data


def validate_options(options: SearchOptions) -> SearchOptions:
    """Reject option values no search can run with."""
    if options.workers is not None and options.workers < 1:
        raise ValueError(f"workers must be at least 1, got {options.workers}")
    if len(options.marker) != 1:
        raise ValueError(f"marker must be a single character, got {options.marker!r}")
    if options.progress_every < 1:
        raise ValueError(f"progress_every must be at least 1, got {options.progress_every}")
    return options


def options_from_config(config: dict[str, Any]) -> SearchOptions:
    """Build search options from known config keys; unknown keys are ignored."""
    known = {key: config[key] for key in CONFIG_KEYS if config.get(key) is not None}
    return validate_options(SearchOptions(**known))


def default_worker_count() -> int:
    """Number of parallel execution units available to this process."""
    return os.cpu_count() or 1


def parse_words(raw_text: str) -> list[str]:
    """Parse whitespace-separated words, keeping duplicates and input order."""
    if not raw_text or not raw_text.strip():
        return []
    return TOKEN_PATTERN.findall(raw_text)


def title_case(text: str) -> str:
    """Upper-case the first character of each token and lower-case the rest."""
    return TOKEN_PATTERN.sub(lambda match: match.group(0)[:1].upper() + match.group(0)[1:].lower(), text)


def apply_transform(name: str, text: str) -> str:
    """Apply a named case transform: identity, upper, or title."""
    if name == "identity":
        return text
    if name == "upper":
        return text.upper()
    if name == "title":
        return title_case(text)
    raise ValueError(f"Unknown case transform: {name}")
