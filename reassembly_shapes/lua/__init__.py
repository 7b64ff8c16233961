"""Table-literal Lua grammar used by the shapes parser."""

from reassembly_shapes.lua.ast import (
    Assignment,
    Chunk,
    Expression,
    Field,
    FieldKind,
    Identifier,
    Number,
    String,
    TableConstructor,
    UnaryMinus,
)
from reassembly_shapes.lua.lexer import Token, TokenKind, tokenize
from reassembly_shapes.lua.parser import TableParser

__all__ = [
    "Assignment", "Chunk", "Expression", "Field", "FieldKind",
    "Identifier", "Number", "String", "TableConstructor", "UnaryMinus",
    "Token", "TokenKind", "tokenize",
    "TableParser",
]
