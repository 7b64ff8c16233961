"""Expression tree for the table-literal subset of Lua read by the shapes parser.

Only the node kinds the shapes dialect can contain are modelled:

    Number            42, 0.5, 1e-3, 0x00113077
    UnaryMinus        -5  (operand is any expression)
    String            "THRUSTER|ASSEMBLER"
    Identifier        THRUSTER_OUT, true, false, nil
    TableConstructor  { positional, name = value, [key] = value }

``Expression`` is the closed union of these classes. Consumers dispatch on
the concrete class and treat anything else as "not the shape I want".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Union


@dataclass
class Number:
    value: int | float
    text: str
    line: int = 0


@dataclass
class UnaryMinus:
    operand: Expression
    line: int = 0


@dataclass
class String:
    value: str
    line: int = 0


@dataclass
class Identifier:
    name: str
    line: int = 0


class FieldKind(str, Enum):
    POSITIONAL = "positional"
    NAMED = "named"
    INDEXED = "indexed"


@dataclass
class Field:
    kind: FieldKind
    value: Expression
    name: str | None = None
    key: Expression | None = None
    comment: str | None = None


@dataclass
class TableConstructor:
    fields: list[Field] = field(default_factory=list)
    line: int = 0

    def positional(self) -> list[Field]:
        return [f for f in self.fields if f.kind == FieldKind.POSITIONAL]

    def named(self) -> Iterator[tuple[str, Expression]]:
        for f in self.fields:
            if f.kind == FieldKind.NAMED and f.name is not None:
                yield f.name, f.value

    def get(self, name: str) -> Expression | None:
        """Value of the first ``name = value`` field, or None."""
        for key, value in self.named():
            if key == name:
                return value
        return None


Expression = Union[Number, UnaryMinus, String, Identifier, TableConstructor]


@dataclass
class Assignment:
    target: str
    value: Expression | None
    local: bool = False


@dataclass
class Chunk:
    statements: list[Assignment] = field(default_factory=list)
    returns: Expression | None = None


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def as_number(expr: Expression | None) -> int | float | None:
    """Numeric value of a literal, folding any unary minus prefixes."""
    if isinstance(expr, Number):
        return expr.value
    if isinstance(expr, UnaryMinus):
        inner = as_number(expr.operand)
        return -inner if inner is not None else None
    return None


def as_int(expr: Expression | None) -> int | None:
    value = as_number(expr)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def as_float(expr: Expression | None) -> float | None:
    value = as_number(expr)
    return float(value) if value is not None else None


def as_identifier(expr: Expression | None) -> str | None:
    return expr.name if isinstance(expr, Identifier) else None


def as_string(expr: Expression | None) -> str | None:
    return expr.value if isinstance(expr, String) else None


def as_table(expr: Expression | None) -> TableConstructor | None:
    return expr if isinstance(expr, TableConstructor) else None
