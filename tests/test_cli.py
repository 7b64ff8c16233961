"""Tests for the reassembly-shapes command line."""

import json
import logging

import pytest

from reassembly_shapes.cli import main
from reassembly_shapes.shapes.loader import parse_shapes_file


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


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logging.getLogger("reassembly_shapes").handlers.clear()


@pytest.fixture
def square_file(tmp_path):
    path = tmp_path / "shapes.lua"
    path.write_text(SQUARE, encoding="utf-8")
    return path


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as info:
        main(argv)
    return info.value.code


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------

def test_parse_summary(square_file, capsys):
    assert _run(["parse", str(square_file)]) == 0
    out = capsys.readouterr().out
    assert "Shapes: 1 (strategy=strict, status=parsed)" in out
    assert "5001 Square: 1 scale(s), 4 verts, 2 ports" in out


def test_parse_json(square_file, capsys):
    assert _run(["show", str(square_file), "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["strategy"] == "strict"
    shape = payload["shapes"][0]
    assert shape["id"] == 5001
    assert shape["name"] == "Square"
    assert shape["scales"][0]["ports"][1]["port_type"] == "THRUSTER_OUT"


def test_parse_reports_fallback(tmp_path, capsys):
    path = tmp_path / "broken.lua"
    path.write_text(SQUARE.replace("{5001,", "{5001"), encoding="utf-8")
    assert _run(["parse", str(path)]) == 0
    captured = capsys.readouterr()
    assert "strategy=legacy" in captured.out
    assert "Warning:" in captured.err


def test_parse_strict_flag_fails_on_broken_text(tmp_path, capsys):
    path = tmp_path / "broken.lua"
    path.write_text(SQUARE.replace("{5001,", "{5001"), encoding="utf-8")
    assert _run(["parse", "--strict", str(path)]) == 1
    assert "Parse error:" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert _run(["parse", str(tmp_path / "nope.lua")]) == 1
    assert "Error: Cannot read shapes file" in capsys.readouterr().err


def test_unrecoverable_text(tmp_path, capsys):
    path = tmp_path / "junk.lua"
    path.write_text("this is not lua", encoding="utf-8")
    assert _run(["parse", str(path)]) == 1
    assert "no shapes could be read" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert _run([]) == 0
    assert "usage:" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# format
# ---------------------------------------------------------------------------

def test_format_to_stdout(square_file, capsys):
    assert _run(["format", str(square_file)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("{\n    {5001, --Square\n")
    assert "{1, 0.5, THRUSTER_OUT}," in out


def test_format_to_output_file(square_file, tmp_path, capsys):
    target = tmp_path / "formatted.lua"
    assert _run(["fmt", str(square_file), "-o", str(target)]) == 0
    assert "Wrote 1 shape(s)" in capsys.readouterr().out
    assert parse_shapes_file(target) == parse_shapes_file(square_file)


def test_format_in_place(square_file):
    before = parse_shapes_file(square_file)
    assert _run(["format", "--in-place", str(square_file)]) == 0
    assert square_file.read_text(encoding="utf-8").startswith("{\n    {5001, --Square\n")
    assert parse_shapes_file(square_file) == before


def test_format_in_place_refuses_partial_recovery(tmp_path, capsys):
    path = tmp_path / "broken.lua"
    broken = SQUARE.replace("{5001,", "{5001") + "-- fillColor and cannon would be lost\n"
    path.write_text(broken, encoding="utf-8")
    assert _run(["format", "--in-place", str(path)]) == 1
    assert "refusing to overwrite" in capsys.readouterr().err
    assert path.read_text(encoding="utf-8") == broken


def test_format_in_place_force_after_partial_recovery(tmp_path, capsys):
    path = tmp_path / "broken.lua"
    path.write_text(SQUARE.replace("{5001,", "{5001"), encoding="utf-8")
    assert _run(["format", "--in-place", "--force", str(path)]) == 0
    assert "Warning:" in capsys.readouterr().err
    recovered = parse_shapes_file(path)
    assert recovered.ids() == [5001]
    assert recovered.shapes[0].name is None


def test_format_to_output_after_partial_recovery(tmp_path, capsys):
    path = tmp_path / "broken.lua"
    path.write_text(SQUARE.replace("{5001,", "{5001"), encoding="utf-8")
    target = tmp_path / "recovered.lua"
    assert _run(["format", str(path), "-o", str(target)]) == 0
    assert parse_shapes_file(target).ids() == [5001]


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------

def test_validate_clean_file(square_file, capsys):
    assert _run(["validate", str(square_file)]) == 0
    assert "Valid. 1 shape(s), 0 diagnostic(s)." in capsys.readouterr().out


def test_validate_duplicate_ids(tmp_path, capsys):
    path = tmp_path / "dupes.lua"
    shape = SQUARE[2:-4]
    path.write_text("{\n" + shape + ",\n" + shape + "\n}\n", encoding="utf-8")
    assert _run(["lint", str(path)]) == 1
    out = capsys.readouterr().out
    assert "[ERROR] unique_id (5001)" in out
    assert "1 error(s) found." in out


def test_verbose_logs_to_stderr(square_file, capsys):
    assert _run(["--verbose", "parse", str(square_file)]) == 0
    assert "Parsed 1 shape(s) with the grammar parser" in capsys.readouterr().err


def test_strict_env_var(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("REASSEMBLY_SHAPES_STRICT", "1")
    path = tmp_path / "broken.lua"
    path.write_text(SQUARE.replace("{5001,", "{5001"), encoding="utf-8")
    assert _run(["parse", str(path)]) == 1
    assert "Parse error:" in capsys.readouterr().err
