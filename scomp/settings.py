from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .engine import Algorithm, validate_quality
from .errors import InvalidParameterValue, InvalidUsage


@dataclass(frozen=True)
class Parameters:
    """
    Everything a run needs, fixed at startup.

    Workers only ever read this object, so one instance is handed to
    every thread.
    """

    algorithm: Algorithm
    extension: str
    include_filters: Tuple[str, ...]

    quality: Optional[int] = None
    threads: int = 1

    # ----- Matching -----
    case_sensitive: bool = True

    # ----- Display -----
    show_progress: bool = True
    show_stats: bool = True


def normalize_extension(raw: str) -> str:
    """Strip whitespace, control characters and dots: " .gz " -> "gz"."""
    start, end = 0, len(raw)
    while start < end and _is_trimmed(raw[start]):
        start += 1
    while end > start and _is_trimmed(raw[end - 1]):
        end -= 1
    return raw[start:end]


def _is_trimmed(c: str) -> bool:
    return c == "." or c.isspace() or not c.isprintable()


def build_parameters(
    include_filters: Sequence[str],
    algorithm: str | Algorithm = Algorithm.GZIP,
    extension: Optional[str] = None,
    quality: Optional[int] = None,
    threads: int = 1,
    case_sensitive: bool = True,
    show_progress: bool = True,
    show_stats: bool = True,
) -> Parameters:
    """Validate raw settings and freeze them. Any problem here aborts the run."""
    if not include_filters:
        raise InvalidUsage("at least one include filter is required")

    if not isinstance(algorithm, Algorithm):
        algorithm = Algorithm.parse(algorithm)

    ext = normalize_extension(extension if extension is not None else algorithm.extension)
    if not ext:
        raise InvalidParameterValue("extension", extension)

    if threads < 1:
        raise InvalidParameterValue("threads", threads)

    validate_quality(algorithm, quality)

    return Parameters(
        algorithm=algorithm,
        extension=ext,
        include_filters=tuple(include_filters),
        quality=quality,
        threads=int(threads),
        case_sensitive=bool(case_sensitive),
        show_progress=bool(show_progress),
        show_stats=bool(show_stats),
    )
