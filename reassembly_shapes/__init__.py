"""Read, repair and canonically rewrite Reassembly shapes.lua files."""

from reassembly_shapes.errors import (
    ConfigurationError,
    EmptyShapesError,
    GrammarError,
    NoShapesTableError,
    ShapesError,
    ShapesIOError,
)
from reassembly_shapes.shapes import (
    ShapesFile,
    Shape,
    Scale,
    Vertex,
    Port,
    PortType,
    LoaderConfig,
    ParseReport,
    ParseStatus,
    ParseStrategy,
    ShapesLoader,
    parse_shapes_content,
    parse_shapes_file,
    serialize_shapes_file,
    write_shapes_file,
)

__version__ = "0.1.0"

__all__ = [
    "ShapesError", "ShapesIOError", "GrammarError", "NoShapesTableError",
    "EmptyShapesError", "ConfigurationError",
    "ShapesFile", "Shape", "Scale", "Vertex", "Port", "PortType",
    "LoaderConfig", "ParseReport", "ParseStatus", "ParseStrategy", "ShapesLoader",
    "parse_shapes_content", "parse_shapes_file", "serialize_shapes_file", "write_shapes_file",
]
