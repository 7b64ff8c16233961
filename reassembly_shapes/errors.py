"""Error hierarchy for shape loading and writing."""

from __future__ import annotations


class ShapesError(Exception):
    """Base error for the shapes toolkit."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class ShapesIOError(ShapesError):
    """Reading or writing a shapes file failed."""

    def __init__(self, message: str, path: str | None = None, cause: Exception | None = None) -> None:
        super().__init__(message, cause)
        self.path = path


# ---------------------------------------------------------------------------
# Grammar errors
# ---------------------------------------------------------------------------

class GrammarError(ShapesError):
    """Text could not be parsed as a shapes table."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        if self.column is None:
            return f"{self.message} (line {self.line})"
        return f"{self.message} (line {self.line}, column {self.column})"


class NoShapesTableError(GrammarError):
    """No table constructor was found to read shapes from."""


class EmptyShapesError(GrammarError):
    """The shapes table was found but held no usable shape."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(ShapesError):
    pass
