from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from humanize import naturalsize

from .results import Statistics
from .settings import Parameters


@dataclass(frozen=True)
class RunReport:
    created_utc: str
    algorithm: str
    extension: str
    quality: int | None
    threads: int
    include_filters: List[str]
    files_compressed: int
    files_already_compressed: int
    compressed_bytes_now: int
    uncompressed_bytes_now: int
    savings_percent_now: float
    compressed_bytes: int
    uncompressed_bytes: int
    savings_percent: float


def format_size(n: int) -> str:
    return naturalsize(n, binary=True)


def render_summary(stats: Statistics) -> str:
    lines = [""]

    counts = f"{stats.files_now} files compressed"
    if stats.files_already_compressed:
        counts += f", {stats.files_already_compressed} files already compressed"
    lines.append(counts)
    lines.append("")

    rows = [
        ("Compressed size (this run)", format_size(stats.compressed_now)),
        ("Uncompressed size (this run)", format_size(stats.uncompressed_now)),
        ("Total savings (this run)", f"{stats.savings_percent_now:.1f}%"),
        None,
        ("Total compressed size", format_size(stats.compressed)),
        ("Total uncompressed size", format_size(stats.uncompressed)),
        ("Total savings", f"{stats.savings_percent:.1f}%"),
    ]
    width = max(len(r[0]) for r in rows if r is not None)
    for row in rows:
        if row is None:
            lines.append("")
            continue
        label, value = row
        lines.append(f"{label + ':':<{width + 1}} {value}")

    return "\n".join(lines)


def build_report(stats: Statistics, params: Parameters) -> RunReport:
    created_utc = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

    return RunReport(
        created_utc=created_utc,
        algorithm=params.algorithm.value,
        extension=params.extension,
        quality=params.quality,
        threads=params.threads,
        include_filters=list(params.include_filters),
        files_compressed=stats.files_now,
        files_already_compressed=stats.files_already_compressed,
        compressed_bytes_now=stats.compressed_now,
        uncompressed_bytes_now=stats.uncompressed_now,
        savings_percent_now=round(stats.savings_percent_now, 2),
        compressed_bytes=stats.compressed,
        uncompressed_bytes=stats.uncompressed,
        savings_percent=round(stats.savings_percent, 2),
    )


def save_report_json(report: RunReport, path: Path) -> None:
    """Write the report to path. The parent directory must already exist."""
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump(asdict(report), f, indent=2, ensure_ascii=False)
