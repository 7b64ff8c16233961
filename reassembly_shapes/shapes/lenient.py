"""Line-scanning fallback parser for shapes text the grammar cannot read.

Recovers only shape ids, scales (verts and ports) and the launcher_radial
flag. Names, colors, cannon/thruster blocks and other extended properties are
never reconstructed, and rows that do not look like ``{a, b[, c]}`` are
dropped without error.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from reassembly_shapes.shapes.model import Port, PortType, Scale, Shape, ShapesFile, Vertex

logger = logging.getLogger(__name__)

_SHAPE_START_RE = re.compile(r"^\{[{\s]*([0-9]+)\s*(?=,|\{|\}|$)")
_SECTION_RE = re.compile(r"\b(verts|ports)\b")
_OTHER_KEY_RE = re.compile(r"\b[A-Za-z_]\w*\s*=")
_ROW_RE = re.compile(r"\{([^{}]*)\}")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_EDGE_RE = re.compile(r"[0-9]+")

# Depth of the scales table inside a shape; each scale opens one level deeper.
_SCALES_DEPTH = 2


class _Mode(str, Enum):
    NONE = "none"
    VERTS = "verts"
    PORTS = "ports"


@dataclass
class _ShapeScan:
    shape_id: int
    scales: list[Scale] = field(default_factory=list)
    launcher_radial: bool | None = None
    mode: _Mode = _Mode.NONE
    # sections already read into the current scale
    verts_seen: bool = False
    ports_seen: bool = False

    @property
    def current(self) -> Scale | None:
        return self.scales[-1] if self.scales else None

    def begin_verts(self) -> None:
        if self.current is None or self.verts_seen:
            self._open_scale()
        self.verts_seen = True
        self.mode = _Mode.VERTS

    def begin_ports(self) -> None:
        if self.current is None or self.ports_seen:
            self._open_scale()
        self.ports_seen = True
        self.mode = _Mode.PORTS

    def end_scale(self) -> None:
        """The next verts or ports section belongs to a new scale."""
        self.verts_seen = True
        self.ports_seen = True

    def _open_scale(self) -> None:
        self.scales.append(Scale())
        self.verts_seen = False
        self.ports_seen = False

    def to_shape(self) -> Shape:
        return Shape(
            id=self.shape_id,
            scales=[s for s in self.scales if s.verts],
            launcher_radial=self.launcher_radial,
        )


class LenientShapesParser:
    """Recover shapes by tracking brace depth and matching rows line by line."""

    def parse(self, text: str) -> ShapesFile:
        lines = text.splitlines()
        shapes_file = ShapesFile()
        i = 0
        while i < len(lines):
            line = _strip_comment(lines[i])
            match = _SHAPE_START_RE.match(line)
            if match is None:
                i += 1
                continue
            shape, i = self._scan_shape(int(match.group(1)), line[match.end():], lines, i + 1)
            shapes_file.shapes.append(shape)
        logger.debug("Line scanner recovered %d shape(s)", len(shapes_file.shapes))
        return shapes_file

    def _scan_shape(self, shape_id: int, rest: str, lines: list[str], i: int) -> tuple[Shape, int]:
        scan = _ShapeScan(shape_id=shape_id)
        depth = 1 + _brace_delta(rest)
        self._scan_line(scan, rest)
        if depth <= _SCALES_DEPTH:
            scan.end_scale()

        while depth > 0 and i < len(lines):
            line = _strip_comment(lines[i])
            i += 1
            if not line:
                continue
            depth += _brace_delta(line)
            self._scan_line(scan, line)
            if depth <= _SCALES_DEPTH:
                scan.end_scale()

        if depth > 0:
            logger.debug("Shape %d is not closed before end of input", shape_id)
        return scan.to_shape(), i

    def _scan_line(self, scan: _ShapeScan, line: str) -> None:
        if "launcher_radial" in line:
            scan.launcher_radial = True
        if line in ("}", "},"):
            scan.mode = _Mode.NONE
            return

        pieces = _SECTION_RE.split(line)
        self._scan_rows(scan, pieces[0])
        for keyword, segment in zip(pieces[1::2], pieces[2::2]):
            if keyword == "verts":
                if "{" not in segment:
                    continue
                scan.begin_verts()
            else:
                scan.begin_ports()
            self._scan_rows(scan, segment)

    def _scan_rows(self, scan: _ShapeScan, text: str) -> None:
        if scan.mode == _Mode.NONE:
            return
        other_key = _OTHER_KEY_RE.search(text)
        if other_key is not None:
            text = text[:other_key.start()]
        scale = scan.current
        if scale is not None:
            for row in _ROW_RE.findall(text):
                parts = [p.replace(" ", "").replace("\t", "") for p in row.split(",")]
                while parts and not parts[-1]:
                    parts.pop()
                if scan.mode == _Mode.VERTS:
                    vertex = _parse_vertex(parts)
                    if vertex is not None:
                        scale.verts.append(vertex)
                    else:
                        logger.debug("Dropping vertex row {%s} in shape %d", row, scan.shape_id)
                else:
                    port = _parse_port(parts)
                    if port is not None:
                        scale.ports.append(port)
                    else:
                        logger.debug("Dropping port row {%s} in shape %d", row, scan.shape_id)
        if other_key is not None:
            scan.mode = _Mode.NONE


def _strip_comment(line: str) -> str:
    return line.split("--", 1)[0].strip()


def _brace_delta(text: str) -> int:
    return text.count("{") - text.count("}")


def _parse_number(text: str) -> float | None:
    return float(text) if _NUMBER_RE.fullmatch(text) else None


def _parse_vertex(parts: list[str]) -> Vertex | None:
    if len(parts) != 2:
        return None
    x, y = _parse_number(parts[0]), _parse_number(parts[1])
    if x is None or y is None:
        return None
    return Vertex(x=x, y=y)


def _parse_port(parts: list[str]) -> Port | None:
    if len(parts) not in (2, 3) or not _EDGE_RE.fullmatch(parts[0]):
        return None
    position = _parse_number(parts[1])
    if position is None:
        return None
    port_type = PortType.from_token(parts[2]) if len(parts) == 3 else PortType.DEFAULT
    return Port(edge=int(parts[0]), position=position, port_type=port_type)


def parse_lenient(text: str) -> ShapesFile:
    return LenientShapesParser().parse(text)
