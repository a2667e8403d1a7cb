"""Partitioned parallel amulet search over a geode space."""

from __future__ import annotations

import logging
import multiprocessing
import threading
import time
from multiprocessing.connection import Connection, wait
from typing import Callable, Iterator, Sequence

from amulet import check_amulet
from enumerator import SpaceEnumerator
from models import Partition, SearchOptions, SearchReport, SearchResult, WorkerStatus
from utils import default_worker_count

ResultCallback = Callable[[SearchResult], None]
ProgressCallback = Callable[[int, int, int], None]

POLL_INTERVAL = 0.1
JOIN_TIMEOUT = 5.0

logger = logging.getLogger(__name__)


def plan_partitions(total: int, workers: int) -> list[Partition]:
    """
    Split [0, total) into `workers` contiguous ranges that tile it exactly.

    Every range holds total // workers indices; the remainder goes to the last.
    """
    if workers < 1:
        raise ValueError(f"Worker count must be at least 1, got {workers}")
    if total < 0:
        raise ValueError(f"Index space size must be non-negative, got {total}")

    share = total // workers
    partitions = []
    for worker_id in range(workers):
        start = worker_id * share
        stop = total if worker_id == workers - 1 else start + share
        partitions.append(Partition(worker_id=worker_id, start=start, stop=stop))
    return partitions


class GeodeWorker:
    """Scan one partition sequentially and stream qualifying geodes."""

    def __init__(self, enumerator: SpaceEnumerator, partition: Partition, options: SearchOptions) -> None:
        self.enumerator = enumerator
        self.partition = partition
        self.options = options
        self.state = "idle"
        self.scanned = 0

    def scan(self, progress_callback: Callable[[int], None] | None = None) -> Iterator[SearchResult]:
        options = self.options
        for index in range(self.partition.start, self.partition.stop):
            geode = self.enumerator.unrank(index)
            amulet = check_amulet(
                geode.text,
                min_run=options.min_run,
                max_bytes=options.max_bytes,
                marker=options.marker,
            )
            self.scanned += 1
            if amulet is not None:
                yield SearchResult(index=index, geode=geode, amulet=amulet, worker_id=self.partition.worker_id)
            if progress_callback and self.scanned % options.progress_every == 0:
                progress_callback(self.scanned)

    def run(self, conn: Connection) -> None:
        """Process entry point: send hit/progress events, then done or failed."""
        worker_id = self.partition.worker_id
        self.state = "running"
        try:
            for result in self.scan(progress_callback=lambda scanned: conn.send(("progress", worker_id, scanned))):
                conn.send(("hit", result))
            self.state = "finished"
            conn.send(("done", worker_id, self.scanned))
        except (BrokenPipeError, EOFError):
            self.state = "failed"
            logger.info("Coordinator went away; worker %d stopping at %d scanned", worker_id, self.scanned)
        except Exception as exc:
            self.state = "failed"
            logger.exception("Worker %d failed after %d scanned", worker_id, self.scanned)
            conn.send(("failed", worker_id, f"{type(exc).__name__}: {exc}"))
        finally:
            conn.close()


class AmuletSearch:
    """
    Run one worker process per partition and multiplex their event channels.

    Each worker owns a one-way pipe. The coordinator waits on all open
    pipes at once; a pipe reaching EOF means its worker exited, and a
    worker that exits without a `done` event counts as failed.
    """

    def __init__(self, words: Sequence[str], options: SearchOptions | None = None) -> None:
        self.enumerator = SpaceEnumerator(words)
        self.options = options or SearchOptions()
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Ask a running search to stop waiting; safe to call from another thread."""
        self._cancel.set()

    def _make_worker(self, partition: Partition) -> GeodeWorker:
        return GeodeWorker(self.enumerator, partition, self.options)

    def run(
        self,
        on_result: ResultCallback,
        progress_callback: ProgressCallback | None = None,
    ) -> SearchReport:
        started = time.perf_counter()
        total = self.enumerator.count()
        worker_count = self.options.workers if self.options.workers is not None else default_worker_count()
        partitions = plan_partitions(total, worker_count)
        report = SearchReport(total_candidates=total, workers=[WorkerStatus(partition=p) for p in partitions])
        logger.info("Searching %d geodes over %d words with %d workers", total, len(self.enumerator.words), worker_count)

        ctx = multiprocessing.get_context(self.options.start_method)
        channels: dict[Connection, WorkerStatus] = {}
        processes: dict[int, multiprocessing.process.BaseProcess] = {}
        try:
            for status in report.workers:
                reader, writer = ctx.Pipe(duplex=False)
                process = ctx.Process(
                    target=self._make_worker(status.partition).run,
                    args=(writer,),
                    name=f"geode-worker-{status.worker_id}",
                    daemon=True,
                )
                channels[reader] = status
                processes[status.worker_id] = process
                process.start()
                writer.close()
                status.state = "running"

            while channels and not self._cancel.is_set():
                for reader in wait(list(channels), timeout=POLL_INTERVAL):
                    status = channels[reader]
                    try:
                        event = reader.recv()
                    except EOFError:
                        del channels[reader]
                        reader.close()
                        self._handle_exit(status, processes[status.worker_id])
                        continue
                    self._handle_event(event, status, report, on_result, progress_callback)
        except KeyboardInterrupt:
            self._cancel.set()
        finally:
            if channels:
                if self._cancel.is_set():
                    report.cancelled = True
                    logger.warning("Search cancelled with %d workers still running", len(channels))
                else:
                    logger.error("Search aborted with %d workers still running", len(channels))
                self._stop_workers(channels, processes)

        report.elapsed_seconds = time.perf_counter() - started
        logger.info(
            "Search ended: %d hits, %d/%d scanned, %.2fs, failed workers %s",
            report.hits,
            report.scanned,
            total,
            report.elapsed_seconds,
            report.failed_workers,
        )
        return report

    def _handle_event(
        self,
        event: tuple,
        status: WorkerStatus,
        report: SearchReport,
        on_result: ResultCallback,
        progress_callback: ProgressCallback | None,
    ) -> None:
        kind = event[0]
        if kind == "hit":
            result: SearchResult = event[1]
            status.hits += 1
            report.hits += 1
            report.by_quality[result.quality] = report.by_quality.get(result.quality, 0) + 1
            on_result(result)
        elif kind == "progress":
            status.scanned = event[2]
            if progress_callback:
                progress_callback(status.worker_id, status.scanned, status.partition.size)
        elif kind == "done":
            status.scanned = event[2]
            status.state = "finished"
            logger.info("Worker %d finished %d indices", status.worker_id, status.scanned)
            if progress_callback:
                progress_callback(status.worker_id, status.scanned, status.partition.size)
        elif kind == "failed":
            status.state = "failed"
            status.error = event[2]
            logger.error("Worker %d failed: %s", status.worker_id, status.error)

    def _stop_workers(
        self,
        channels: dict[Connection, WorkerStatus],
        processes: dict[int, multiprocessing.process.BaseProcess],
    ) -> None:
        for reader, status in channels.items():
            reader.close()
            process = processes[status.worker_id]
            if process.pid is not None:
                process.terminate()
                process.join(JOIN_TIMEOUT)
        channels.clear()

    def _handle_exit(self, status: WorkerStatus, process: multiprocessing.process.BaseProcess) -> None:
        process.join(JOIN_TIMEOUT)
        if status.state == "running":
            status.state = "failed"
            status.error = f"Worker exited without finishing (exit code {process.exitcode})"
            logger.error("Worker %d failed: %s", status.worker_id, status.error)
