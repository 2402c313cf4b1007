from __future__ import annotations

import logging
import os
from typing import Iterable, Iterator, List, Optional, Set

from .matcher import WILDCARDS, PathMatcher, normalize_filter
from .settings import Parameters

logger = logging.getLogger(__name__)


def _first_wildcard(pattern: str) -> int:
    for i, c in enumerate(pattern):
        if c in WILDCARDS:
            return i
    return len(pattern)


def search_roots(filters: Iterable[str]) -> List[str]:
    """
    Derive the smallest set of directories that has to be walked.

    For each filter the literal prefix before the first wildcard is cut back
    to its directory part: "./static/js/*.js" -> "./static/js",
    "*.css" -> ".". A filter without wildcards that names an existing file
    is its own root.
    """
    roots: List[str] = []
    for raw in filters:
        pattern = normalize_filter(raw)
        cut = _first_wildcard(pattern)

        if cut == len(pattern) and os.path.isfile(pattern):
            roots.append(pattern)
            continue

        prefix = pattern[:cut]
        if "/" in prefix:
            head = prefix.rsplit("/", 1)[0]
            if not head:
                head = "/"
        else:
            head = "."
        roots.append(head)

    return _collapse_roots(roots)


def _collapse_roots(roots: List[str]) -> List[str]:
    unique = list(dict.fromkeys(os.path.normpath(r) for r in roots))
    spelled = {os.path.normpath(r): r for r in reversed(roots)}

    kept = []
    for root in unique:
        if any(other != root and _is_under(root, other) for other in unique):
            continue
        kept.append(spelled[root])
    return kept


def _is_under(child: str, parent: str) -> bool:
    if parent == ".":
        return not os.path.isabs(child) and child != ".." and not child.startswith("../")
    if parent == "/":
        return child.startswith("/")
    return child.startswith(parent + "/")


def walk_files(root: str) -> Iterator[str]:
    """
    Yield every regular file below root, depth first.

    Hidden directories are not entered and directory symlinks are not
    followed. An error listing any directory propagates to the caller.
    """
    if os.path.isfile(root):
        yield root
        return
    if not os.path.isdir(root):
        logger.debug("Search root %s does not exist", root)
        return

    stack = [root]
    while stack:
        current = stack.pop()
        with os.scandir(current) as it:
            entries = sorted(it, key=lambda e: e.name)

        subdirs = []
        for entry in entries:
            path = current + entry.name if current.endswith("/") else f"{current}/{entry.name}"
            if entry.is_dir(follow_symlinks=False):
                if not entry.name.startswith("."):
                    subdirs.append(path)
            elif entry.is_file():
                yield path

        # reversed so that children come off the stack in name order
        stack.extend(reversed(subdirs))


def _location_key(path: str) -> str:
    # A symlinked file is its own location; only its directory is resolved.
    return os.path.join(os.path.realpath(os.path.dirname(path)), os.path.basename(path))


def iter_candidates(params: Parameters, matcher: Optional[PathMatcher] = None) -> Iterator[str]:
    """Yield each accepted file location under the search roots exactly once."""
    if matcher is None:
        matcher = PathMatcher(
            params.include_filters,
            case_sensitive=params.case_sensitive,
            skip_extensions=(params.extension,),
        )

    seen: Set[str] = set()
    for root in search_roots(params.include_filters):
        logger.debug("Searching %s", root)
        for path in walk_files(root):
            if not matcher.accepts(path):
                continue

            key = _location_key(path)
            if key in seen:
                continue
            seen.add(key)
            yield path
