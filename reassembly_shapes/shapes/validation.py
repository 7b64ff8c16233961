"""Lint rules for shape definitions.

The parsers and the serializer never call this module; it is for callers that
want the game's rules (id range, unique ids, convex polygons, ports on real
edges) checked before a file is shipped.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from enum import Enum

from reassembly_shapes.shapes.model import Scale, ShapesFile

MIN_SHAPE_ID = 100
MAX_SHAPE_ID = 10000


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Diagnostic:
    rule: str
    severity: Severity
    message: str
    shape_id: int | None = None
    scale_index: int | None = None
    fix: str = ""


# ---------------------------------------------------------------------------
# Lint rule base
# ---------------------------------------------------------------------------

class LintRule(ABC):
    name: str
    severity: Severity

    @abstractmethod
    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        ...

    def _diag(self, message: str, shape_id: int | None = None, scale_index: int | None = None,
              fix: str = "") -> Diagnostic:
        return Diagnostic(rule=self.name, severity=self.severity, message=message,
                          shape_id=shape_id, scale_index=scale_index, fix=fix)


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------

class IdRangeRule(LintRule):
    name = "id_range"
    severity = Severity.WARNING

    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        return [self._diag(f"Shape id {s.id} is outside {MIN_SHAPE_ID}-{MAX_SHAPE_ID}", s.id,
                           fix=f"Use an id between {MIN_SHAPE_ID} and {MAX_SHAPE_ID}")
                for s in shapes_file.shapes if not MIN_SHAPE_ID <= s.id <= MAX_SHAPE_ID]


class UniqueIdRule(LintRule):
    name = "unique_id"
    severity = Severity.ERROR

    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        counts = Counter(shapes_file.ids())
        return [self._diag(f"Shape id {shape_id} is defined {n} times", shape_id)
                for shape_id, n in counts.items() if n > 1]


class ScalesRule(LintRule):
    name = "scales"
    severity = Severity.ERROR

    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        return [self._diag("Shape has no scales", s.id, fix="Add at least one scale with verts and ports")
                for s in shapes_file.shapes if not s.scales]


class PolygonRule(LintRule):
    name = "polygon"
    severity = Severity.ERROR

    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        diags: list[Diagnostic] = []
        for s in shapes_file.shapes:
            for i, scale in enumerate(s.scales):
                if len(scale.verts) < 3:
                    diags.append(self._diag(f"Scale {i + 1} has {len(scale.verts)} vertices, need at least 3",
                                            s.id, i))
        return diags


class ConvexRule(LintRule):
    name = "convex"
    severity = Severity.WARNING

    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        diags: list[Diagnostic] = []
        for s in shapes_file.shapes:
            for i, scale in enumerate(s.scales):
                if len(scale.verts) >= 3 and not is_convex(scale):
                    diags.append(self._diag(f"Scale {i + 1} is not convex", s.id, i))
        return diags


class PortEdgeRule(LintRule):
    name = "port_edge"
    severity = Severity.ERROR

    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        diags: list[Diagnostic] = []
        for s in shapes_file.shapes:
            for i, scale in enumerate(s.scales):
                for port in scale.ports:
                    if port.edge >= scale.edge_count:
                        diags.append(self._diag(
                            f"Port on edge {port.edge} but scale {i + 1} has {scale.edge_count} edges", s.id, i))
        return diags


class PortPositionRule(LintRule):
    name = "port_position"
    severity = Severity.WARNING

    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        diags: list[Diagnostic] = []
        for s in shapes_file.shapes:
            for i, scale in enumerate(s.scales):
                for port in scale.ports:
                    if not 0.0 <= port.position <= 1.0:
                        diags.append(self._diag(
                            f"Port position {port.position} on edge {port.edge} is outside [0, 1]", s.id, i))
        return diags


class MirrorOfRule(LintRule):
    name = "mirror_of"
    severity = Severity.WARNING

    def apply(self, shapes_file: ShapesFile) -> list[Diagnostic]:
        ids = set(shapes_file.ids())
        return [self._diag(f"mirror_of references unknown shape {s.mirror_of}", s.id)
                for s in shapes_file.shapes if s.mirror_of is not None and s.mirror_of not in ids]


def is_convex(scale: Scale) -> bool:
    """True when every turn along the boundary bends the same way; collinear runs are allowed."""
    sign = 0
    n = len(scale.verts)
    for i in range(n):
        a, b = scale.edge(i)
        c = scale.verts[(i + 2) % n]
        cross = (b.x - a.x) * (c.y - b.y) - (b.y - a.y) * (c.x - b.x)
        if cross == 0:
            continue
        turn = 1 if cross > 0 else -1
        if sign == 0:
            sign = turn
        elif turn != sign:
            return False
    return True


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

_BUILTIN_RULES: list[LintRule] = [
    IdRangeRule(),
    UniqueIdRule(),
    ScalesRule(),
    PolygonRule(),
    ConvexRule(),
    PortEdgeRule(),
    PortPositionRule(),
    MirrorOfRule(),
]


class Validator:
    """Run lint rules against a parsed shapes file."""

    def validate(self, shapes_file: ShapesFile, extra_rules: list[LintRule] | None = None) -> list[Diagnostic]:
        rules = list(_BUILTIN_RULES)
        if extra_rules:
            rules.extend(extra_rules)
        diags: list[Diagnostic] = []
        for rule in rules:
            diags.extend(rule.apply(shapes_file))
        return diags

    def validate_or_raise(self, shapes_file: ShapesFile,
                          extra_rules: list[LintRule] | None = None) -> list[Diagnostic]:
        diags = self.validate(shapes_file, extra_rules)
        errors = [d for d in diags if d.severity == Severity.ERROR]
        if errors:
            msg = "\n".join(d.message for d in errors)
            raise ValueError(f"Validation failed:\n{msg}")
        return diags
