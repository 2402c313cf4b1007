from __future__ import annotations


class ScompError(Exception):
    """Base class for every error raised by scomp itself."""


class InvalidParameterValue(ScompError):
    def __init__(self, name: str, value: object = None):
        self.name = name
        self.value = value
        if value is None:
            super().__init__(f"Invalid value supplied for parameter {name}")
        else:
            super().__init__(f"Invalid value supplied for parameter {name}: {value!r}")


class InvalidUsage(ScompError):
    pass


class InvalidIncludeFilter(ScompError):
    def __init__(self, pattern: str, reason: str = ""):
        self.pattern = pattern
        msg = f"Invalid include filter {pattern!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class InvalidCharactersInPath(ScompError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path cannot be represented as UTF-8 text: {path!r}")


class CompressionError(ScompError):
    pass
