from __future__ import annotations

from bisect import bisect_left
import os
import re
from typing import Iterable, List, Pattern, Sequence

from .errors import InvalidIncludeFilter


WILDCARDS = "?*{["

# Extensions that already hold compressed data. Kept sorted for bisect.
BLACKLIST = tuple(
    sorted(
        {
            "7z",
            "apk",
            "br",
            "bz2",
            "cab",
            "gz",
            "jar",
            "lz",
            "lz4",
            "lzma",
            "lzo",
            "rar",
            "sz",
            "tbz2",
            "tgz",
            "txz",
            "webp",
            "xz",
            "z",
            "zip",
            "zst",
        }
    )
)


def extension_of(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def is_blacklisted(path: str, extra: Sequence[str] = ()) -> bool:
    ext = extension_of(path)
    if not ext:
        return False
    i = bisect_left(BLACKLIST, ext)
    if i < len(BLACKLIST) and BLACKLIST[i] == ext:
        return True
    return ext in extra


def is_hidden(path: str) -> bool:
    for part in path.split("/"):
        if part in ("", ".", ".."):
            continue
        if part.startswith("."):
            return True
    return False


def to_slashes(path: str) -> str:
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    return path


def normalize_filter(pattern: str) -> str:
    """
    Anchor bare relative filters at the current directory.

    "*.css" -> "./*.css", "static/**/*.js" -> "./static/**/*.js". Absolute
    filters and ones already starting with "./" or "../" are left alone.
    """
    p = to_slashes(pattern)
    if p.startswith("/") or os.path.isabs(pattern):
        return p
    if p in (".", "..") or p.startswith("./") or p.startswith("../"):
        return p
    return "./" + p


def compile_filter(pattern: str, case_sensitive: bool = True) -> Pattern[str]:
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(_translate(pattern), flags)
    except re.error as e:
        raise InvalidIncludeFilter(pattern, str(e)) from e


def _translate(pattern: str) -> str:
    """
    Turn a glob into a regular expression body.

    "*" and "?" stay inside one path component. "**" spans any depth, and
    "**/" also matches zero directories.
    """
    out: List[str] = []
    i, n = 0, len(pattern)
    depth = 0

    while i < n:
        c = pattern[i]

        if c == "*":
            if pattern.startswith("**", i):
                while i < n and pattern[i] == "*":
                    i += 1
                if i < n and pattern[i] == "/":
                    out.append("(?:.*/)?")
                    i += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")

        elif c == "?":
            out.append("[^/]")

        elif c == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise InvalidIncludeFilter(pattern, "unclosed '['")

            body = pattern[i + 1 : j]
            if body[:1] in ("!", "^"):
                body = "^" + body[1:]
            body = body.replace("\\", "\\\\").replace("[", "\\[")
            out.append(f"(?!/)[{body}]")
            i = j + 1
            continue

        elif c == "{":
            depth += 1
            out.append("(?:")

        elif c == "," and depth:
            out.append("|")

        elif c == "}":
            if not depth:
                raise InvalidIncludeFilter(pattern, "unmatched '}'")
            depth -= 1
            out.append(")")

        else:
            out.append(re.escape(c))

        i += 1

    if depth:
        raise InvalidIncludeFilter(pattern, "unclosed '{'")

    return "".join(out)


class PathMatcher:
    """Decides whether a discovered file should be compressed."""

    def __init__(
        self,
        filters: Iterable[str],
        case_sensitive: bool = True,
        skip_extensions: Sequence[str] = (),
    ):
        self.filters = tuple(normalize_filter(f) for f in filters)
        self.case_sensitive = case_sensitive
        self.skip_extensions = tuple(e.lower() for e in skip_extensions)
        self._patterns = [compile_filter(f, case_sensitive) for f in self.filters]

    def matches(self, path: str) -> bool:
        path = to_slashes(path)
        return any(p.fullmatch(path) for p in self._patterns)

    def accepts(self, path: str) -> bool:
        path = to_slashes(path)
        if is_hidden(path):
            return False
        if is_blacklisted(path, self.skip_extensions):
            return False
        return self.matches(path)
