"""Canonical text rendering of a ShapesFile."""

from __future__ import annotations

import math
import re

from reassembly_shapes.shapes.model import (
    CannonProperties,
    Port,
    PortType,
    Scale,
    Shape,
    ShapesFile,
    ShroudComponent,
    ThrusterProperties,
    normalize_name,
)

INDENT = "    "

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_KEYWORDS = {"local", "return", "true", "false", "nil"}


# An exponent past the float range reads back as infinity.
_INFINITY = "1e999"


def format_number(value: int | float) -> str:
    """Integral values without a fractional part, others in shortest round-trip form.

    Infinities are written as ``1e999``/``-1e999``. NaN has no literal in the
    table dialect and is written as ``nil``, which reads back as absent.
    """
    if isinstance(value, float):
        if math.isnan(value):
            return "nil"
        if math.isinf(value):
            return _INFINITY if value > 0 else f"-{_INFINITY}"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_color(value: int) -> str:
    """Zero-padded 8-digit hex; negative values keep their sign in front of the prefix."""
    if value < 0:
        return f"-0x{-value:08x}"
    return f"0x{value:08x}"


def quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\r", "\\r")
    return f'"{escaped}"'


def _token_or_string(text: str) -> str:
    if _IDENTIFIER_RE.fullmatch(text) and text not in _KEYWORDS:
        return text
    return quote(text)


class ShapesSerializer:
    """Render a ShapesFile in the one canonical layout.

    Optional shape properties are written after the scales in a fixed order,
    whatever order they were read in. Values are transcribed as-is.
    """

    def serialize(self, shapes_file: ShapesFile) -> str:
        lines = ["{"]
        for i, shape in enumerate(shapes_file.shapes):
            lines.extend(self._shape_lines(shape))
            if i < len(shapes_file.shapes) - 1:
                lines[-1] += ","
        lines.append("}")
        return "\n".join(lines) + "\n"

    # -- Shapes ---------------------------------------------------------------

    def _shape_lines(self, shape: Shape) -> list[str]:
        head = f"{INDENT}{{{shape.id},"
        name = normalize_name(shape.name)
        if name is not None:
            head += f" --{name}"
        lines = [head]

        body = [self._scales_lines(shape.scales, 2)]
        body.extend(self._property_lines(shape, 2))
        for j, block in enumerate(body):
            if j < len(body) - 1:
                block[-1] += ","
            lines.extend(block)

        lines.append(f"{INDENT}}}")
        return lines

    def _scales_lines(self, scales: list[Scale], depth: int) -> list[str]:
        pad = INDENT * depth
        if not scales:
            return [f"{pad}{{}}"]
        lines = [f"{pad}{{"]
        for j, scale in enumerate(scales):
            inner = INDENT * (depth + 1)
            lines.append(f"{inner}{{")
            lines.extend(self._rows_block("verts", [self._vertex_row(v.x, v.y) for v in scale.verts], depth + 2))
            lines[-1] += ","
            lines.extend(self._rows_block("ports", [self._port_row(p) for p in scale.ports], depth + 2))
            lines.append(f"{inner}}}" + ("," if j < len(scales) - 1 else ""))
        lines.append(f"{pad}}}")
        return lines

    @staticmethod
    def _rows_block(key: str, rows: list[str], depth: int) -> list[str]:
        pad = INDENT * depth
        if not rows:
            return [f"{pad}{key} = {{}}"]
        lines = [f"{pad}{key} = {{"]
        lines.extend(f"{pad}{INDENT}{row}," for row in rows)
        lines.append(f"{pad}}}")
        return lines

    @staticmethod
    def _vertex_row(x: float, y: float) -> str:
        return f"{{{format_number(x)}, {format_number(y)}}}"

    @staticmethod
    def _port_row(port: Port) -> str:
        if port.port_type == PortType.DEFAULT:
            return f"{{{port.edge}, {format_number(port.position)}}}"
        return f"{{{port.edge}, {format_number(port.position)}, {port.port_type.to_token()}}}"

    # -- Extended properties --------------------------------------------------

    def _property_lines(self, shape: Shape, depth: int) -> list[list[str]]:
        pad = INDENT * depth
        blocks: list[list[str]] = []

        def scalar(key: str, text: str) -> None:
            blocks.append([f"{pad}{key} = {text}"])

        if shape.group is not None:
            scalar("group", format_number(shape.group))
        if shape.features is not None:
            scalar("features", quote("|".join(shape.features)))
        if shape.fill_color is not None:
            scalar("fillColor", format_color(shape.fill_color))
        if shape.fill_color1 is not None:
            scalar("fillColor1", format_color(shape.fill_color1))
        if shape.line_color is not None:
            scalar("lineColor", format_color(shape.line_color))
        if shape.durability is not None:
            scalar("durability", format_number(shape.durability))
        if shape.density is not None:
            scalar("density", format_number(shape.density))
        if shape.grow_rate is not None:
            scalar("growRate", format_number(shape.grow_rate))
        if shape.launcher_radial is not None:
            scalar("launcher_radial", "true" if shape.launcher_radial else "false")
        if shape.mirror_of is not None:
            scalar("mirror_of", format_number(shape.mirror_of))
        if shape.shroud is not None:
            blocks.append(self._shroud_lines(shape.shroud, depth))
        if shape.cannon is not None:
            blocks.append(self._cannon_lines(shape.cannon, depth))
        if shape.thruster is not None:
            blocks.append(self._thruster_lines(shape.thruster, depth))
        return blocks

    @staticmethod
    def _shroud_lines(shroud: list[ShroudComponent], depth: int) -> list[str]:
        pad = INDENT * depth
        if not shroud:
            return [f"{pad}shroud = {{}}"]
        lines = [f"{pad}shroud = {{"]
        for c in shroud:
            size = ", ".join(format_number(v) for v in c.size)
            offset = ", ".join(format_number(v) for v in c.offset)
            lines.append(
                f"{pad}{INDENT}{{size = {{{size}}}, offset = {{{offset}}}, "
                f"taper = {format_number(c.taper)}, count = {c.count}, angle = {format_number(c.angle)}, "
                f"tri_color_id = {c.tri_color_id}, tri_color1_id = {c.tri_color1_id}, "
                f"line_color_id = {c.line_color_id}, shape = {c.shape}}},"
            )
        lines.append(f"{pad}}}")
        return lines

    @staticmethod
    def _cannon_lines(cannon: CannonProperties, depth: int) -> list[str]:
        pad = INDENT * depth
        inner = pad + INDENT
        lines = [
            f"{pad}cannon = {{",
            f"{inner}damage = {format_number(cannon.damage)},",
            f"{inner}power = {format_number(cannon.power)},",
            f"{inner}roundsPerSec = {format_number(cannon.rounds_per_sec)},",
            f"{inner}muzzleVel = {format_number(cannon.muzzle_vel)},",
            f"{inner}range = {format_number(cannon.range)},",
            f"{inner}spread = {format_number(cannon.spread)},",
        ]
        if cannon.rounds_per_burst is not None:
            lines.append(f"{inner}roundsPerBurst = {cannon.rounds_per_burst},")
        if cannon.burstyness is not None:
            lines.append(f"{inner}burstyness = {format_number(cannon.burstyness)},")
        if cannon.color is not None:
            lines.append(f"{inner}color = {format_color(cannon.color)},")
        if cannon.explosive is not None:
            lines.append(f"{inner}explosive = {_token_or_string(cannon.explosive)},")
        fragment = cannon.fragment
        if fragment is not None:
            deep = inner + INDENT
            lines.append(f"{inner}fragment = {{")
            lines.append(f"{deep}roundsPerBurst = {fragment.rounds_per_burst},")
            lines.append(f"{deep}muzzleVel = {format_number(fragment.muzzle_vel)},")
            lines.append(f"{deep}spread = {format_number(fragment.spread)},")
            if fragment.pattern is not None:
                lines.append(f"{deep}pattern = {quote(fragment.pattern)},")
            lines.append(f"{deep}damage = {format_number(fragment.damage)},")
            lines.append(f"{deep}range = {format_number(fragment.range)},")
            if fragment.color is not None:
                lines.append(f"{deep}color = {format_color(fragment.color)},")
            lines.append(f"{inner}}},")
        lines.append(f"{pad}}}")
        return lines

    @staticmethod
    def _thruster_lines(thruster: ThrusterProperties, depth: int) -> list[str]:
        pad = INDENT * depth
        inner = pad + INDENT
        lines = [
            f"{pad}thruster = {{",
            f"{inner}force = {format_number(thruster.force)},",
            f"{inner}power = {format_number(thruster.power)},",
        ]
        if thruster.color is not None:
            lines.append(f"{inner}color = {format_color(thruster.color)},")
        lines.append(f"{pad}}}")
        return lines


def serialize_shapes_file(shapes_file: ShapesFile) -> str:
    return ShapesSerializer().serialize(shapes_file)
