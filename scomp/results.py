from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class Outcome(str, Enum):
    COMPRESSED = "compressed"
    UP_TO_DATE = "up_to_date"


@dataclass
class Statistics:
    """
    Size and file counters for one worker, or for a whole run once merged.

    The *_now fields only count files compressed during this invocation;
    the plain fields count every file seen, including artifacts that were
    already up to date. Each *_now field is therefore never larger than
    its cumulative counterpart.
    """

    compressed: int = 0
    uncompressed: int = 0
    files: int = 0

    compressed_now: int = 0
    uncompressed_now: int = 0
    files_now: int = 0

    def update(self, uncompressed_size: int, compressed_size: int, newly_compressed: bool) -> None:
        if newly_compressed:
            self.compressed_now += compressed_size
            self.uncompressed_now += uncompressed_size
            self.files_now += 1

        self.compressed += compressed_size
        self.uncompressed += uncompressed_size
        self.files += 1

    def merge(self, other: "Statistics") -> "Statistics":
        self.compressed += other.compressed
        self.uncompressed += other.uncompressed
        self.files += other.files
        self.compressed_now += other.compressed_now
        self.uncompressed_now += other.uncompressed_now
        self.files_now += other.files_now
        return self

    @property
    def files_already_compressed(self) -> int:
        return self.files - self.files_now

    @property
    def savings_percent(self) -> float:
        return _savings(self.compressed, self.uncompressed)

    @property
    def savings_percent_now(self) -> float:
        return _savings(self.compressed_now, self.uncompressed_now)


def merge_all(parts: Iterable[Statistics]) -> Statistics:
    total = Statistics()
    for part in parts:
        total.merge(part)
    return total


def _savings(compressed: int, uncompressed: int) -> float:
    # Nothing read means nothing saved
    if uncompressed <= 0:
        return 0.0
    return 100.0 - 100.0 * compressed / uncompressed
