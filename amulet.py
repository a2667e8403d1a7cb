"""Amulet test: sha256 a geode's text and grade its longest run of the marker."""

from __future__ import annotations

import hashlib
import re
from functools import lru_cache

from models import Amulet

MIN_RUN = 6
MAX_BYTES = 64
MARKER = "8"
UNCLASSIFIED = "unclassified"

QUALITY_TIERS = {
    4: "common",
    5: "uncommon",
    6: "rare",
    7: "epic",
    8: "legendary",
    9: "mythic",
}


@lru_cache(maxsize=None)
def _run_pattern(marker: str) -> re.Pattern[str]:
    return re.compile(f"(?:{re.escape(marker)})+")


def digest(text: str) -> str:
    """Lowercase hex sha256 of the UTF-8 encoded text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def longest_run(hex_digest: str, marker: str = MARKER) -> str:
    """Longest maximal run of `marker` in the digest; empty when absent."""
    return max(_run_pattern(marker).findall(hex_digest), key=len, default="")


def quality_for(run_length: int) -> str:
    """Tier label for an exact run length, or the unclassified marker."""
    return QUALITY_TIERS.get(run_length, UNCLASSIFIED)


def check_amulet(
    text: str,
    min_run: int = MIN_RUN,
    max_bytes: int = MAX_BYTES,
    marker: str = MARKER,
) -> Amulet | None:
    """
    Return an Amulet when the text qualifies, otherwise None.

    Texts longer than `max_bytes` once encoded never qualify, whatever
    their digest would contain.
    """
    if len(marker) != 1:
        raise ValueError(f"Marker must be a single character, got {marker!r}")
    if len(text.encode("utf-8")) > max_bytes:
        return None

    hex_digest = digest(text)
    run = longest_run(hex_digest, marker)
    if len(run) < min_run:
        return None
    return Amulet(text=text, digest=hex_digest, run=run, quality=quality_for(len(run)))
