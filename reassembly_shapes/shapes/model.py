"""Shape data structures shared by the parsers and the serializer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PortType(str, Enum):
    DEFAULT = "DEFAULT"
    THRUSTER_IN = "THRUSTER_IN"
    THRUSTER_OUT = "THRUSTER_OUT"
    WEAPON_IN = "WEAPON_IN"
    WEAPON_OUT = "WEAPON_OUT"
    MISSILE = "MISSILE"
    LAUNCHER = "LAUNCHER"
    ROOT = "ROOT"
    NONE = "NONE"

    def to_token(self) -> str:
        return self.value

    @classmethod
    def from_token(cls, token: str) -> PortType:
        """Map a port type token to its member; unknown tokens are DEFAULT."""
        try:
            return cls(token.strip())
        except ValueError:
            return cls.DEFAULT


@dataclass
class Vertex:
    x: float
    y: float


@dataclass
class Port:
    edge: int
    position: float
    port_type: PortType = PortType.DEFAULT


@dataclass
class Scale:
    verts: list[Vertex] = field(default_factory=list)
    ports: list[Port] = field(default_factory=list)

    def edge(self, index: int) -> tuple[Vertex, Vertex]:
        """Segment from vertex ``index`` to the next vertex, wrapping around."""
        n = len(self.verts)
        if n == 0:
            raise IndexError("scale has no vertices")
        return self.verts[index % n], self.verts[(index + 1) % n]

    @property
    def edge_count(self) -> int:
        return len(self.verts)


# ---------------------------------------------------------------------------
# Extended properties
# ---------------------------------------------------------------------------

@dataclass
class ShroudComponent:
    size: tuple[float, float] = (0.0, 0.0)
    offset: tuple[float, float, float] = (0.0, 0.0, 0.0)
    taper: float = 1.0
    count: int = 1
    angle: float = 0.0
    tri_color_id: int = 0
    tri_color1_id: int = 0
    line_color_id: int = 0
    shape: int = 0


@dataclass
class FragmentProperties:
    rounds_per_burst: int = 0
    muzzle_vel: float = 0.0
    spread: float = 0.0
    pattern: str | None = None
    damage: float = 0.0
    range: float = 0.0
    color: int | None = None


@dataclass
class CannonProperties:
    damage: float = 0.0
    power: float = 0.0
    rounds_per_sec: float = 0.0
    muzzle_vel: float = 0.0
    range: float = 0.0
    spread: float = 0.0
    rounds_per_burst: int | None = None
    burstyness: float | None = None
    color: int | None = None
    explosive: str | None = None
    fragment: FragmentProperties | None = None


@dataclass
class ThrusterProperties:
    force: float = 0.0
    power: float = 0.0
    color: int | None = None


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

def normalize_name(name: str | None) -> str | None:
    """Canonical display name: whitespace runs collapsed to one space, blank names are None.

    Names are stored in a line comment, so they can hold neither line breaks
    nor leading or trailing whitespace.
    """
    if name is None:
        return None
    return " ".join(name.split()) or None


@dataclass
class Shape:
    id: int
    name: str | None = None
    scales: list[Scale] = field(default_factory=list)
    launcher_radial: bool | None = None
    mirror_of: int | None = None
    group: int | None = None
    features: list[str] | None = None
    fill_color: int | None = None
    fill_color1: int | None = None
    line_color: int | None = None
    durability: float | None = None
    density: float | None = None
    grow_rate: float | None = None
    shroud: list[ShroudComponent] | None = None
    cannon: CannonProperties | None = None
    thruster: ThrusterProperties | None = None

    def __post_init__(self) -> None:
        self.name = normalize_name(self.name)


@dataclass
class ShapesFile:
    shapes: list[Shape] = field(default_factory=list)

    def ids(self) -> list[int]:
        return [s.id for s in self.shapes]

    def find(self, shape_id: int) -> Shape | None:
        return next((s for s in self.shapes if s.id == shape_id), None)
