"""Shape definitions: data model, parsers, serializer and linter."""

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
    normalize_name,
)
from reassembly_shapes.shapes.repair import repair
from reassembly_shapes.shapes.strict import StrictShapesParser, parse_strict
from reassembly_shapes.shapes.lenient import LenientShapesParser, parse_lenient
from reassembly_shapes.shapes.serializer import ShapesSerializer, serialize_shapes_file
from reassembly_shapes.shapes.loader import (
    LoaderConfig,
    ParseReport,
    ParseStatus,
    ParseStrategy,
    ShapesLoader,
    parse_shapes_content,
    parse_shapes_file,
    write_shapes_file,
)
from reassembly_shapes.shapes.validation import Diagnostic, LintRule, Severity, Validator

__all__ = [
    "ShapesFile", "Shape", "Scale", "Vertex", "Port", "PortType",
    "ShroudComponent", "CannonProperties", "FragmentProperties", "ThrusterProperties", "normalize_name",
    "repair",
    "StrictShapesParser", "parse_strict",
    "LenientShapesParser", "parse_lenient",
    "ShapesSerializer", "serialize_shapes_file",
    "LoaderConfig", "ParseReport", "ParseStatus", "ParseStrategy", "ShapesLoader",
    "parse_shapes_content", "parse_shapes_file", "write_shapes_file",
    "Diagnostic", "LintRule", "Severity", "Validator",
]
