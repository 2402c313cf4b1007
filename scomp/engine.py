from __future__ import annotations

from enum import Enum
import gzip
import os
import shutil
import subprocess
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

import brotli
import zopfli.gzip
from PIL import Image, UnidentifiedImageError

from .errors import CompressionError, InvalidParameterValue


CHUNK = 64 * 1024


class Algorithm(str, Enum):
    GZIP = "gzip"
    BROTLI = "brotli"
    ZOPFLI = "zopfli"
    WEBP = "webp"

    @classmethod
    def parse(cls, name: str) -> "Algorithm":
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise InvalidParameterValue("compressor", name) from None

    @property
    def extension(self) -> str:
        return DEFAULT_EXTENSION[self]

    @property
    def quality_range(self) -> Optional[Tuple[int, int]]:
        return QUALITY_RANGE[self]


DEFAULT_EXTENSION: Dict[Algorithm, str] = {
    Algorithm.GZIP: "gz",
    Algorithm.BROTLI: "br",
    Algorithm.ZOPFLI: "gz",
    Algorithm.WEBP: "webp",
}

# None means the codec has no quality knob and any supplied value is rejected.
QUALITY_RANGE: Dict[Algorithm, Optional[Tuple[int, int]]] = {
    Algorithm.GZIP: (0, 9),
    Algorithm.BROTLI: (0, 11),
    Algorithm.ZOPFLI: None,
    Algorithm.WEBP: (0, 100),
}

BROTLI_DEFAULT_QUALITY = 11
WEBP_DEFAULT_QUALITY = 75

# gzip quality tiers: none, fast, default, best
GZIP_LEVEL_NONE = 0
GZIP_LEVEL_FAST = 1
GZIP_LEVEL_DEFAULT = 6
GZIP_LEVEL_BEST = 9

_TOOL_CACHE: Dict[str, Optional[str]] = {}
_TOOL_LOCK = Lock()


def validate_quality(algorithm: Algorithm, quality: Optional[int]) -> Optional[int]:
    """
    Check a user supplied quality against what the algorithm accepts.

    Unsupported or out-of-range values raise InvalidParameterValue; values are
    never clamped into range.
    """
    if quality is None:
        return None

    bounds = algorithm.quality_range
    if bounds is None:
        raise InvalidParameterValue("quality", quality)

    low, high = bounds
    if not low <= quality <= high:
        raise InvalidParameterValue("quality", quality)
    return quality


def compress_file(algorithm: Algorithm, src: str, dst: str, quality: Optional[int] = None) -> None:
    """Compress src into dst with the given algorithm, creating or truncating dst."""
    codec = _CODECS[algorithm]
    codec(src, dst, quality)


def gzip_level(quality: Optional[int]) -> int:
    if quality is None:
        return GZIP_LEVEL_DEFAULT
    if quality == 0:
        return GZIP_LEVEL_NONE
    if quality <= 3:
        return GZIP_LEVEL_FAST
    if quality <= 6:
        return GZIP_LEVEL_DEFAULT
    return GZIP_LEVEL_BEST


def get_tool_executable(name: str) -> Optional[str]:
    with _TOOL_LOCK:
        if name in _TOOL_CACHE:
            return _TOOL_CACHE[name]
    found = shutil.which(name)
    with _TOOL_LOCK:
        _TOOL_CACHE[name] = found
    return found


def _gzip_compress(src: str, dst: str, quality: Optional[int]) -> None:
    level = gzip_level(quality)
    # mtime=0 keeps the header stable when an artifact is regenerated
    with open(src, "rb") as f_in, open(dst, "wb") as f_out:
        with gzip.GzipFile(
            filename=os.path.basename(src),
            mode="wb",
            fileobj=f_out,
            compresslevel=level,
            mtime=0,
        ) as gz:
            shutil.copyfileobj(f_in, gz, CHUNK)


def _brotli_compress(src: str, dst: str, quality: Optional[int]) -> None:
    q = BROTLI_DEFAULT_QUALITY if quality is None else quality
    compressor = brotli.Compressor(quality=q)
    try:
        with open(src, "rb") as f_in, open(dst, "wb") as f_out:
            while True:
                chunk = f_in.read(CHUNK)
                if not chunk:
                    break
                f_out.write(compressor.process(chunk))
            f_out.write(compressor.finish())
    except brotli.error as e:
        raise CompressionError(f"brotli encoder error: {e}") from e


def _zopfli_compress(src: str, dst: str, quality: Optional[int]) -> None:
    # zopfli works on the whole buffer at once
    with open(src, "rb") as f_in:
        data = f_in.read()
    payload = zopfli.gzip.compress(data)
    with open(dst, "wb") as f_out:
        f_out.write(payload)


def _webp_compress(src: str, dst: str, quality: Optional[int]) -> None:
    q = WEBP_DEFAULT_QUALITY if quality is None else quality

    cwebp = get_tool_executable("cwebp")
    if cwebp:
        _run_cwebp(cwebp, src, dst, q)
        return

    try:
        with Image.open(src) as im:
            im.load()
            im.save(dst, format="WEBP", quality=q)
    except (UnidentifiedImageError, ValueError) as e:
        raise CompressionError(f"cannot encode {src} as WebP: {e}") from e


def _run_cwebp(cwebp: str, src: str, dst: str, quality: int) -> None:
    command = [cwebp, "-quiet", "-q", str(quality), src, "-o", dst]
    result = subprocess.run(command, capture_output=True)
    if result.returncode != 0:
        detail = result.stderr.decode("utf-8", errors="replace").strip()
        raise CompressionError(f"cwebp exited with status {result.returncode}: {detail}")


_CODECS: Dict[Algorithm, Callable[[str, str, Optional[int]], None]] = {
    Algorithm.GZIP: _gzip_compress,
    Algorithm.BROTLI: _brotli_compress,
    Algorithm.ZOPFLI: _zopfli_compress,
    Algorithm.WEBP: _webp_compress,
}
