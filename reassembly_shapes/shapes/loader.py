"""Entry points for reading and writing shapes files.

``parse_shapes_content`` runs the repair pass, tries the grammar parser and
falls back to the line scanner when the grammar fails or finds no shapes.
``ShapesLoader.load`` does the same but reports which strategy produced the
result and whether the fallback recovered anything.
"""

from __future__ import annotations

import codecs
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from reassembly_shapes.errors import ConfigurationError, EmptyShapesError, GrammarError, ShapesIOError
from reassembly_shapes.shapes.lenient import LenientShapesParser
from reassembly_shapes.shapes.model import ShapesFile
from reassembly_shapes.shapes.repair import repair
from reassembly_shapes.shapes.serializer import serialize_shapes_file
from reassembly_shapes.shapes.strict import StrictShapesParser

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}

# Characters that carry no shape content: whitespace, braces and separators.
_TRIVIAL_RE = re.compile(r"[\s{},;]*")


class ParseStrategy(str, Enum):
    STRICT = "strict"
    LEGACY = "legacy"


class ParseStatus(str, Enum):
    PARSED = "parsed"            # grammar parser succeeded
    RECOVERED = "recovered"      # line scanner found at least one shape
    EMPTY = "empty"              # nothing but an empty table, whitespace or comments
    UNRECOVERED = "unrecovered"  # non-trivial input, no shape recovered


@dataclass
class LoaderConfig:
    repair: bool = True
    allow_fallback: bool = True
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        try:
            codecs.lookup(self.encoding)
        except LookupError as exc:
            raise ConfigurationError(f"Unknown encoding: {self.encoding}", cause=exc) from exc

    @classmethod
    def from_env(cls) -> LoaderConfig:
        """Build a config from REASSEMBLY_SHAPES_* environment variables."""
        return cls(
            repair=not _env_flag("REASSEMBLY_SHAPES_NO_REPAIR"),
            allow_fallback=not _env_flag("REASSEMBLY_SHAPES_STRICT"),
            encoding=os.getenv("REASSEMBLY_SHAPES_ENCODING") or "utf-8",
        )


def _env_flag(name: str) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass
class ParseReport:
    shapes_file: ShapesFile
    strategy: ParseStrategy
    status: ParseStatus
    error: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def shape_count(self) -> int:
        return len(self.shapes_file.shapes)


class ShapesLoader:
    """Load shapes text with the repair -> grammar -> line-scanner pipeline."""

    def __init__(self, config: LoaderConfig | None = None) -> None:
        self.config = config or LoaderConfig()
        self.strict = StrictShapesParser()
        self.lenient = LenientShapesParser()

    def load(self, text: str) -> ParseReport:
        source = repair(text) if self.config.repair else text
        try:
            shapes_file = self.strict.parse(source)
        except GrammarError as exc:
            if not self.config.allow_fallback:
                raise
            if isinstance(exc, EmptyShapesError):
                logger.debug("Shapes table is empty; trying the line scanner")
            else:
                logger.warning("Grammar parse failed (%s); falling back to line scanner", exc)
            return self._fallback(text, str(exc))

        logger.debug("Parsed %d shape(s) with the grammar parser", len(shapes_file.shapes))
        return ParseReport(shapes_file=shapes_file, strategy=ParseStrategy.STRICT, status=ParseStatus.PARSED)

    def _fallback(self, text: str, error: str) -> ParseReport:
        shapes_file = self.lenient.parse(text)
        report = ParseReport(
            shapes_file=shapes_file,
            strategy=ParseStrategy.LEGACY,
            status=ParseStatus.RECOVERED,
            error=error,
        )
        if shapes_file.shapes:
            report.warnings.append(
                "Recovered with the line scanner; names and extended properties were not read"
            )
        elif _is_trivial(text):
            report.status = ParseStatus.EMPTY
        else:
            report.status = ParseStatus.UNRECOVERED
            report.warnings.append("No shapes could be recovered from non-empty input")
            logger.warning("Line scanner recovered no shapes from non-empty input")
        return report

    def load_file(self, path: str | Path) -> ParseReport:
        return self.load(read_text(path, self.config.encoding))


def _is_trivial(text: str) -> bool:
    stripped = "\n".join(line.split("--", 1)[0] for line in text.splitlines())
    return _TRIVIAL_RE.fullmatch(stripped) is not None


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def read_text(path: str | Path, encoding: str = "utf-8") -> str:
    try:
        return Path(path).read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise ShapesIOError(f"Cannot read shapes file {path}: {exc}", path=str(path), cause=exc) from exc


def write_shapes_file(shapes_file: ShapesFile, path: str | Path, encoding: str = "utf-8") -> None:
    text = serialize_shapes_file(shapes_file)
    try:
        Path(path).write_text(text, encoding=encoding)
    except OSError as exc:
        raise ShapesIOError(f"Cannot write shapes file {path}: {exc}", path=str(path), cause=exc) from exc
    logger.debug("Wrote %d shape(s) to %s", len(shapes_file.shapes), path)


# ---------------------------------------------------------------------------
# Boundary operations
# ---------------------------------------------------------------------------

def parse_shapes_content(text: str) -> ShapesFile:
    """Parse shapes text, falling back to the line scanner; never raises for bad text."""
    return ShapesLoader().load(text).shapes_file


def parse_shapes_file(path: str | Path) -> ShapesFile:
    """Read and parse a shapes file; raises ShapesIOError when it cannot be read."""
    return ShapesLoader().load_file(path).shapes_file
