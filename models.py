"""Data models for geode enumeration, amulet checks, and search runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class Variant:
    """One rendering of a single word: punctuation, case transform, leading spaces."""

    word: str
    punctuation: str
    transform: str
    spaces: int
    text: str


@dataclass(frozen=True, slots=True)
class Geode:
    """
    Ordered, duplicate-free sequence of word variants.

    `positions` are indices into the input word list, so duplicate words
    are told apart by position.
    """

    positions: tuple[int, ...]
    variants: tuple[Variant, ...]

    @property
    def text(self) -> str:
        return "".join(variant.text for variant in self.variants)


@dataclass(frozen=True, slots=True)
class Amulet:
    """Digest details for a text that qualified."""

    text: str
    digest: str
    run: str
    quality: str

    @property
    def run_length(self) -> int:
        return len(self.run)


@dataclass(frozen=True, slots=True)
class Partition:
    """Half-open index range [start, stop) assigned to one worker."""

    worker_id: int
    start: int
    stop: int

    @property
    def size(self) -> int:
        return self.stop - self.start


@dataclass(slots=True)
class SearchOptions:
    """Search tuning shared by the coordinator and every worker."""

    workers: int | None = None
    min_run: int = 6
    max_bytes: int = 64
    marker: str = "8"
    progress_every: int = 10_000
    start_method: str | None = None


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A qualifying geode as emitted by a worker."""

    index: int
    geode: Geode
    amulet: Amulet
    worker_id: int

    @property
    def quality(self) -> str:
        return self.amulet.quality


@dataclass(slots=True)
class WorkerStatus:
    """Coordinator-side view of one worker, built from its events."""

    partition: Partition
    state: str = "idle"
    scanned: int = 0
    hits: int = 0
    error: str = ""

    @property
    def worker_id(self) -> int:
        return self.partition.worker_id


@dataclass(slots=True)
class SearchReport:
    """Run-level summary. Individual results are reported, not retained."""

    total_candidates: int
    workers: list[WorkerStatus] = field(default_factory=list)
    hits: int = 0
    by_quality: dict[str, int] = field(default_factory=dict)
    cancelled: bool = False
    elapsed_seconds: float = 0.0
    started_at_utc: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def scanned(self) -> int:
        return sum(status.scanned for status in self.workers)

    @property
    def failed_workers(self) -> list[int]:
        return [status.worker_id for status in self.workers if status.state == "failed"]

    @property
    def complete(self) -> bool:
        return not self.cancelled and all(status.state == "finished" for status in self.workers)
