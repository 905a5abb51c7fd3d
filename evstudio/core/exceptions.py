"""
Error taxonomy for EvStudio.

Every error here is scoped to a single file. Aggregating layers catch them,
log them, and move on to the next file.
"""


class EvStudioError(Exception):
    """Base class for all EvStudio errors."""


class DecodeError(EvStudioError):
    """An asset dump could not be turned into messages."""

    def __init__(self, file: str, reason: str):
        super().__init__(f"{file}: {reason}")
        self.file = file
        self.reason = reason


class IndexBuildError(EvStudioError):
    """A script file could not be indexed."""

    def __init__(self, file: str, reason: str):
        super().__init__(f"{file}: {reason}")
        self.file = file
        self.reason = reason


class SchemaLoadError(EvStudioError):
    """A command/hint definition file could not be loaded."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
