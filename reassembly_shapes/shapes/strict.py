"""Grammar-driven shapes parser: table-literal expression tree -> ShapesFile."""

from __future__ import annotations

import logging

from reassembly_shapes.errors import EmptyShapesError, GrammarError, NoShapesTableError
from reassembly_shapes.lua.ast import (
    Chunk,
    Expression,
    Identifier,
    String,
    TableConstructor,
    as_float,
    as_identifier,
    as_int,
    as_string,
    as_table,
)
from reassembly_shapes.lua.parser import TableParser
from reassembly_shapes.shapes.model import (
    CannonProperties,
    FragmentProperties,
    Port,
    PortType,
    Scale,
    Shape,
    ShapesFile,
    ShroudComponent,
    ThrusterProperties,
    Vertex,
)

logger = logging.getLogger(__name__)


class StrictShapesParser:
    """Parse shapes text with the table-literal grammar.

    The text is read as ``return <text>``; if that does not parse, it is read
    as a plain chunk so ``shapes = {...}`` and ``local shapes = {...}`` files
    work too. Raises GrammarError when neither parses, when no shapes table
    is found, or when the table yields no shapes.
    """

    def parse(self, text: str) -> ShapesFile:
        chunk = self._parse_chunk(text)
        table = self._find_shapes_table(chunk)
        if table is None:
            raise NoShapesTableError("No shapes table found")

        shapes_file = ShapesFile()
        for entry in table.positional():
            shape_table = as_table(entry.value)
            if shape_table is None:
                continue
            shape = self._extract_shape(shape_table)
            if shape is not None:
                shapes_file.shapes.append(shape)

        if not shapes_file.shapes:
            raise EmptyShapesError("Shapes table contains no shapes", line=table.line)
        logger.debug("Grammar parser extracted %d shape(s)", len(shapes_file.shapes))
        return shapes_file

    # -- Locating the table ---------------------------------------------------

    @staticmethod
    def _parse_chunk(text: str) -> Chunk:
        try:
            return TableParser().parse(f"return {text}")
        except GrammarError as wrapped_error:
            try:
                return TableParser().parse(text)
            except GrammarError:
                raise wrapped_error from None

    @staticmethod
    def _find_shapes_table(chunk: Chunk) -> TableConstructor | None:
        returned = as_table(chunk.returns)
        if returned is not None:
            return returned
        for stmt in chunk.statements:
            if not stmt.local and isinstance(stmt.value, TableConstructor):
                return stmt.value
        for stmt in chunk.statements:
            if stmt.local and isinstance(stmt.value, TableConstructor):
                return stmt.value
        return None

    # -- Shapes ---------------------------------------------------------------

    def _extract_shape(self, table: TableConstructor) -> Shape | None:
        positional = table.positional()
        if not positional:
            return None
        shape_id = as_int(positional[0].value)
        if shape_id is None or shape_id < 0:
            return None

        shape = Shape(id=shape_id, name=positional[0].comment)
        if len(positional) > 1:
            scales_table = as_table(positional[1].value)
            if scales_table is not None:
                shape.scales = self._extract_scales(scales_table)
                # older editor output nests the properties inside the scales table
                for key, value in scales_table.named():
                    self._apply_property(shape, key, value)

        for key, value in table.named():
            self._apply_property(shape, key, value)
        return shape

    def _extract_scales(self, table: TableConstructor) -> list[Scale]:
        scales: list[Scale] = []
        for entry in table.positional():
            scale_table = as_table(entry.value)
            if scale_table is None:
                continue
            scale = Scale()
            verts_table = as_table(scale_table.get("verts"))
            if verts_table is not None:
                scale.verts = self._extract_verts(verts_table)
            ports_table = as_table(scale_table.get("ports"))
            if ports_table is not None:
                scale.ports = self._extract_ports(ports_table)
            scales.append(scale)
        return scales

    @staticmethod
    def _extract_verts(table: TableConstructor) -> list[Vertex]:
        verts: list[Vertex] = []
        for entry in table.positional():
            pair = as_table(entry.value)
            if pair is None:
                continue
            coords = [as_float(f.value) for f in pair.positional()]
            if len(coords) != 2 or coords[0] is None or coords[1] is None:
                continue
            verts.append(Vertex(x=coords[0], y=coords[1]))
        return verts

    @staticmethod
    def _extract_ports(table: TableConstructor) -> list[Port]:
        ports: list[Port] = []
        for entry in table.positional():
            row = as_table(entry.value)
            if row is None:
                continue
            values = [f.value for f in row.positional()]
            if len(values) not in (2, 3):
                continue
            edge = as_int(values[0])
            position = as_float(values[1])
            if edge is None or edge < 0 or position is None:
                continue
            port_type = PortType.DEFAULT
            if len(values) == 3:
                token = _as_text(values[2])
                port_type = PortType.from_token(token) if token is not None else PortType.DEFAULT
            ports.append(Port(edge=edge, position=position, port_type=port_type))
        return ports

    # -- Extended properties --------------------------------------------------

    def _apply_property(self, shape: Shape, key: str, value: Expression) -> None:
        if key == "launcher_radial":
            shape.launcher_radial = as_identifier(value) != "false"
        elif key == "mirror_of":
            shape.mirror_of = as_int(value)
        elif key == "group":
            shape.group = as_int(value)
        elif key == "features":
            shape.features = self._extract_flags(value)
        elif key == "fillColor":
            shape.fill_color = as_int(value)
        elif key == "fillColor1":
            shape.fill_color1 = as_int(value)
        elif key == "lineColor":
            shape.line_color = as_int(value)
        elif key == "durability":
            shape.durability = as_float(value)
        elif key == "density":
            shape.density = as_float(value)
        elif key == "growRate":
            shape.grow_rate = as_float(value)
        elif key == "shroud":
            table = as_table(value)
            if table is not None:
                components = (as_table(f.value) for f in table.positional())
                shape.shroud = [self._extract_shroud(c) for c in components if c is not None]
        elif key == "cannon":
            table = as_table(value)
            if table is not None:
                shape.cannon = self._extract_cannon(table)
        elif key == "thruster":
            table = as_table(value)
            if table is not None:
                shape.thruster = self._extract_thruster(table)
        else:
            logger.debug("Ignoring unknown shape property '%s'", key)

    @staticmethod
    def _extract_flags(value: Expression) -> list[str] | None:
        if isinstance(value, (String, Identifier)):
            text = value.value if isinstance(value, String) else value.name
            return [part.strip() for part in text.split("|") if part.strip()]
        table = as_table(value)
        if table is None:
            return None
        flags: list[str] = []
        for entry in table.positional():
            flag = _as_text(entry.value)
            if flag:
                flags.append(flag)
        return flags

    @staticmethod
    def _number_tuple(value: Expression | None, arity: int) -> tuple[float, ...] | None:
        table = as_table(value)
        if table is None:
            return None
        numbers = [as_float(f.value) for f in table.positional()]
        if len(numbers) != arity or any(n is None for n in numbers):
            return None
        return tuple(numbers)  # type: ignore[arg-type]

    def _extract_shroud(self, table: TableConstructor) -> ShroudComponent:
        component = ShroudComponent()
        size = self._number_tuple(table.get("size"), 2)
        if size is not None:
            component.size = size  # type: ignore[assignment]
        offset = self._number_tuple(table.get("offset"), 3)
        if offset is not None:
            component.offset = offset  # type: ignore[assignment]
        _assign(component, "taper", as_float(table.get("taper")))
        _assign(component, "count", as_int(table.get("count")))
        _assign(component, "angle", as_float(table.get("angle")))
        _assign(component, "tri_color_id", as_int(table.get("tri_color_id")))
        _assign(component, "tri_color1_id", as_int(table.get("tri_color1_id")))
        _assign(component, "line_color_id", as_int(table.get("line_color_id")))
        _assign(component, "shape", as_int(table.get("shape")))
        return component

    def _extract_cannon(self, table: TableConstructor) -> CannonProperties:
        cannon = CannonProperties()
        _assign(cannon, "damage", as_float(table.get("damage")))
        _assign(cannon, "power", as_float(table.get("power")))
        _assign(cannon, "rounds_per_sec", as_float(table.get("roundsPerSec")))
        _assign(cannon, "muzzle_vel", as_float(table.get("muzzleVel")))
        _assign(cannon, "range", as_float(table.get("range")))
        _assign(cannon, "spread", as_float(table.get("spread")))
        cannon.rounds_per_burst = as_int(table.get("roundsPerBurst"))
        cannon.burstyness = as_float(table.get("burstyness"))
        cannon.color = as_int(table.get("color"))
        explosive = table.get("explosive")
        cannon.explosive = _as_text(explosive)
        fragment = as_table(table.get("fragment"))
        if fragment is not None:
            cannon.fragment = self._extract_fragment(fragment)
        return cannon

    @staticmethod
    def _extract_fragment(table: TableConstructor) -> FragmentProperties:
        fragment = FragmentProperties()
        _assign(fragment, "rounds_per_burst", as_int(table.get("roundsPerBurst")))
        _assign(fragment, "muzzle_vel", as_float(table.get("muzzleVel")))
        _assign(fragment, "spread", as_float(table.get("spread")))
        _assign(fragment, "damage", as_float(table.get("damage")))
        _assign(fragment, "range", as_float(table.get("range")))
        fragment.pattern = _as_text(table.get("pattern"))
        fragment.color = as_int(table.get("color"))
        return fragment

    @staticmethod
    def _extract_thruster(table: TableConstructor) -> ThrusterProperties:
        thruster = ThrusterProperties()
        _assign(thruster, "force", as_float(table.get("force")))
        _assign(thruster, "power", as_float(table.get("power")))
        thruster.color = as_int(table.get("color"))
        return thruster


def _as_text(expr: Expression | None) -> str | None:
    """Text of a bare identifier or a quoted string."""
    if isinstance(expr, Identifier):
        return expr.name
    return as_string(expr)


def _assign(record: object, attr: str, value: object) -> None:
    # absent or mistyped values keep the record default
    if value is not None:
        setattr(record, attr, value)


def parse_strict(text: str) -> ShapesFile:
    return StrictShapesParser().parse(text)
