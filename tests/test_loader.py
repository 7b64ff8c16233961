"""Tests for the repair -> grammar -> line-scanner pipeline and file helpers."""

import logging

import pytest

from reassembly_shapes.errors import ConfigurationError, GrammarError, ShapesIOError
from reassembly_shapes.shapes.loader import (
    LoaderConfig,
    ParseStatus,
    ParseStrategy,
    ShapesLoader,
    parse_shapes_content,
    parse_shapes_file,
    write_shapes_file,
)
from reassembly_shapes.shapes.model import PortType, ShapesFile


SQUARE = """\
{
  {5001, --Square
    {
      {
        verts={
          {5,-5},{-5,-5},{-5,5},{5,5}
        },
        ports={
          {0,0.5},{1,0.5,THRUSTER_OUT}
        }
      }
    }
  },
}
"""

MISSING_COMMA_BETWEEN_SHAPES = """\
{
{100, {{verts={{0,0},{1,0},{0,1}}, ports={}}}}
{101, {{verts={{0,0},{2,0},{0,2}}, ports={}}}}
}
"""


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def test_well_formed_text_uses_grammar():
    report = ShapesLoader().load(SQUARE)
    assert report.strategy == ParseStrategy.STRICT
    assert report.status == ParseStatus.PARSED
    assert report.error is None
    assert report.warnings == []
    assert report.shapes_file.shapes[0].name == "Square"


def test_repair_fixes_missing_comma_between_shapes():
    report = ShapesLoader().load(MISSING_COMMA_BETWEEN_SHAPES)
    assert report.strategy == ParseStrategy.STRICT
    assert report.shapes_file.ids() == [100, 101]


def test_repair_can_be_disabled():
    config = LoaderConfig(repair=False, allow_fallback=False)
    with pytest.raises(GrammarError):
        ShapesLoader(config).load(MISSING_COMMA_BETWEEN_SHAPES)


def test_bare_launcher_radial_is_repaired():
    text = "{\n  {300, {{verts={{0,0},{1,0},{0,1}}, ports={}}}, launcher_radial},\n}\n"
    report = ShapesLoader().load(text)
    assert report.strategy == ParseStrategy.STRICT
    assert report.shapes_file.shapes[0].launcher_radial is True


def test_missing_comma_after_id_falls_back(caplog):
    broken = SQUARE.replace("{5001,", "{5001")
    with caplog.at_level(logging.WARNING, logger="reassembly_shapes"):
        report = ShapesLoader().load(broken)
    assert report.strategy == ParseStrategy.LEGACY
    assert report.status == ParseStatus.RECOVERED
    assert report.error is not None
    assert report.warnings
    assert "falling back" in caplog.text

    shape = report.shapes_file.shapes[0]
    assert shape.id == 5001
    assert shape.name is None
    assert len(shape.scales[0].verts) == 4
    assert shape.scales[0].ports[1].port_type == PortType.THRUSTER_OUT


def test_unterminated_table_falls_back():
    truncated = "\n".join(SQUARE.splitlines()[:10])
    report = ShapesLoader().load(truncated)
    assert report.strategy == ParseStrategy.LEGACY
    assert report.shapes_file.ids() == [5001]


def test_empty_table_is_empty():
    report = ShapesLoader().load("{\n}\n")
    assert report.strategy == ParseStrategy.LEGACY
    assert report.status == ParseStatus.EMPTY
    assert report.shapes_file == ShapesFile(shapes=[])
    assert report.warnings == []


def test_blank_and_comment_only_input_is_empty():
    assert ShapesLoader().load("").status == ParseStatus.EMPTY
    assert ShapesLoader().load("-- shapes go here\n\n").status == ParseStatus.EMPTY


def test_garbage_is_unrecovered():
    report = ShapesLoader().load("this is not lua at all")
    assert report.status == ParseStatus.UNRECOVERED
    assert report.shapes_file.shapes == []
    assert report.warnings


def test_strict_mode_raises():
    config = LoaderConfig(allow_fallback=False)
    with pytest.raises(GrammarError):
        ShapesLoader(config).load(SQUARE.replace("{5001,", "{5001"))


def test_parse_shapes_content_never_raises_on_bad_text():
    assert parse_shapes_content("{{{{").shapes == []
    assert parse_shapes_content("}}}} @@@").shapes == []
    assert parse_shapes_content(SQUARE).ids() == [5001]


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def test_parse_shapes_file(tmp_path):
    path = tmp_path / "shapes.lua"
    path.write_text(SQUARE, encoding="utf-8")
    assert parse_shapes_file(path).ids() == [5001]
    assert parse_shapes_file(str(path)).ids() == [5001]


def test_missing_file_raises_io_error(tmp_path):
    missing = tmp_path / "nope.lua"
    with pytest.raises(ShapesIOError) as info:
        parse_shapes_file(missing)
    assert info.value.path == str(missing)
    assert isinstance(info.value.cause, OSError)


def test_write_then_read(tmp_path):
    shapes_file = parse_shapes_content(SQUARE)
    path = tmp_path / "out" / "shapes.lua"
    path.parent.mkdir()
    write_shapes_file(shapes_file, path)
    assert path.read_text(encoding="utf-8").startswith("{\n    {5001, --Square\n")
    assert parse_shapes_file(path) == shapes_file


def test_write_to_missing_directory_raises(tmp_path):
    with pytest.raises(ShapesIOError):
        write_shapes_file(ShapesFile(), tmp_path / "missing" / "shapes.lua")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def test_config_defaults_from_empty_env(monkeypatch):
    for name in ("REASSEMBLY_SHAPES_STRICT", "REASSEMBLY_SHAPES_NO_REPAIR", "REASSEMBLY_SHAPES_ENCODING"):
        monkeypatch.delenv(name, raising=False)
    config = LoaderConfig.from_env()
    assert config == LoaderConfig()


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("REASSEMBLY_SHAPES_STRICT", "yes")
    monkeypatch.setenv("REASSEMBLY_SHAPES_NO_REPAIR", "0")
    monkeypatch.setenv("REASSEMBLY_SHAPES_ENCODING", "latin-1")
    config = LoaderConfig.from_env()
    assert config.allow_fallback is False
    assert config.repair is True
    assert config.encoding == "latin-1"


def test_config_rejects_bad_flag(monkeypatch):
    monkeypatch.setenv("REASSEMBLY_SHAPES_STRICT", "maybe")
    with pytest.raises(ConfigurationError, match="REASSEMBLY_SHAPES_STRICT"):
        LoaderConfig.from_env()


def test_config_rejects_unknown_encoding():
    with pytest.raises(ConfigurationError, match="Unknown encoding"):
        LoaderConfig(encoding="not-a-codec")


def test_latin1_file(tmp_path):
    path = tmp_path / "shapes.lua"
    path.write_bytes(SQUARE.replace("Square", "Carr\xe9").encode("latin-1"))
    report = ShapesLoader(LoaderConfig(encoding="latin-1")).load_file(path)
    assert report.shapes_file.shapes[0].name == "Carr\xe9"
    with pytest.raises(ShapesIOError):
        ShapesLoader().load_file(path)
