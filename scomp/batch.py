from __future__ import annotations

import logging
import os
import queue
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from .engine import Algorithm, compress_file
from .errors import InvalidCharactersInPath
from .matcher import PathMatcher
from .results import Outcome, Statistics, merge_all
from .scan import iter_candidates
from .settings import Parameters

logger = logging.getLogger(__name__)

Compressor = Callable[[Algorithm, str, str, Optional[int]], None]


class WorkQueue:
    """
    Bounded hand-off between the scanning thread and the workers.

    put() blocks while the queue holds `capacity` paths. close() never
    blocks; after it, get() returns None to every consumer once the
    remaining paths are gone.
    """

    def __init__(self, capacity: int):
        self._items: Deque[str] = deque()
        self._capacity = max(1, capacity)
        self._closed = False
        self._cond = threading.Condition()

    def put(self, path: str) -> None:
        with self._cond:
            while len(self._items) >= self._capacity and not self._closed:
                self._cond.wait()
            if self._closed:
                raise RuntimeError("put() on a closed WorkQueue")
            self._items.append(path)
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def get(self) -> Optional[str]:
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if not self._items:
                return None
            path = self._items.popleft()
            self._cond.notify_all()
            return path


def display_path(path: str) -> str:
    """Printable form of a path that may hold undecodable bytes."""
    return path.encode("utf-8", "backslashreplace").decode("utf-8")


def destination_for(src: str, extension: str) -> str:
    try:
        src.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidCharactersInPath(display_path(src)) from None
    return f"{src}.{extension}"


def _whole_seconds(st: os.stat_result) -> int:
    # Filesystems disagree on timestamp resolution; compare at one second.
    return st.st_mtime_ns // 1_000_000_000


def compress_single(
    src: str,
    params: Parameters,
    stats: Statistics,
    compressor: Compressor = compress_file,
) -> Outcome:
    """
    Bring the artifact for one source file up to date.

    An artifact whose mtime matches the source (to the second) is left
    alone and counted as already compressed. Anything else is rebuilt and
    stamped with the source's mtime. If a step fails, the artifact is
    removed and the error is re-raised.
    """
    dst = destination_for(src, params.extension)

    try:
        src_stat = os.stat(src)

        try:
            dst_stat: Optional[os.stat_result] = os.stat(dst)
        except FileNotFoundError:
            dst_stat = None

        if dst_stat is not None:
            if _whole_seconds(src_stat) == _whole_seconds(dst_stat):
                stats.update(src_stat.st_size, dst_stat.st_size, newly_compressed=False)
                logger.debug("%s is up to date", display_path(dst))
                return Outcome.UP_TO_DATE
            os.remove(dst)

        compressor(params.algorithm, src, dst, params.quality)
        dst_size = os.stat(dst).st_size
    except Exception:
        _best_effort_remove(dst)
        raise

    stats.update(src_stat.st_size, dst_size, newly_compressed=True)
    _best_effort_touch(dst, src_stat)
    return Outcome.COMPRESSED


# ----- best-effort operations: failures here are deliberately ignored -----


def _best_effort_remove(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        pass


def _best_effort_touch(dst: str, src_stat: os.stat_result) -> None:
    # atime is reset to the epoch; mtime is what later runs compare against
    try:
        os.utime(dst, ns=(0, src_stat.st_mtime_ns))
    except OSError:
        pass


def _best_effort_report(channel: "queue.SimpleQueue[Statistics]", stats: Statistics) -> None:
    try:
        channel.put(stats)
    except Exception:
        pass


class WorkerPool:
    """A fixed set of threads draining one WorkQueue."""

    def __init__(
        self,
        params: Parameters,
        work: WorkQueue,
        compressor: Compressor = compress_file,
    ):
        self.params = params
        self._work = work
        self._compressor = compressor
        self._results: "queue.SimpleQueue[Statistics]" = queue.SimpleQueue()
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        for i in range(self.params.threads):
            t = threading.Thread(target=self._run, name=f"scomp-worker-{i}", daemon=True)
            t.start()
            self._threads.append(t)

    def join(self) -> Statistics:
        """Wait for every worker, then merge what they reported."""
        for t in self._threads:
            t.join()

        parts = []
        while True:
            try:
                parts.append(self._results.get_nowait())
            except queue.Empty:
                break
        return merge_all(parts)

    def _run(self) -> None:
        stats = Statistics()
        logger.debug("%s started", threading.current_thread().name)

        while True:
            src = self._work.get()
            if src is None:
                break

            try:
                if self.params.show_progress:
                    print(display_path(src))
                compress_single(src, self.params, stats, self._compressor)
            except Exception as e:
                logger.error("Error compressing %s: %s", display_path(src), e)

        logger.debug("%s finished", threading.current_thread().name)
        _best_effort_report(self._results, stats)


def process_batch(params: Parameters, compressor: Compressor = compress_file) -> Statistics:
    """
    Run the whole pipeline and return the merged statistics.

    Filters are compiled before any worker starts, so a bad filter aborts
    the run untouched. A directory that cannot be listed stops the scan;
    files already queued are still finished before the error propagates.
    """
    matcher = PathMatcher(
        params.include_filters,
        case_sensitive=params.case_sensitive,
        skip_extensions=(params.extension,),
    )

    work = WorkQueue(params.threads)
    pool = WorkerPool(params, work, compressor)
    pool.start()

    try:
        for path in iter_candidates(params, matcher):
            work.put(path)
    finally:
        work.close()
        stats = pool.join()

    return stats
