"""reassembly-shapes CLI – inspect, reformat and lint shapes.lua files."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

from reassembly_shapes.errors import ConfigurationError, GrammarError, ShapesIOError
from reassembly_shapes.logging_config import setup_logging
from reassembly_shapes.shapes.loader import (
    LoaderConfig,
    ParseReport,
    ParseStatus,
    ParseStrategy,
    ShapesLoader,
    write_shapes_file,
)
from reassembly_shapes.shapes.model import Shape
from reassembly_shapes.shapes.serializer import serialize_shapes_file
from reassembly_shapes.shapes.validation import Severity, Validator


def _load(args: argparse.Namespace) -> ParseReport | None:
    try:
        config = LoaderConfig.from_env()
        if args.strict:
            config.allow_fallback = False
        report = ShapesLoader(config).load_file(args.file)
    except (ShapesIOError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None
    except GrammarError as exc:
        print(f"Parse error: {exc}", file=sys.stderr)
        return None

    if report.status == ParseStatus.UNRECOVERED:
        print(f"Error: no shapes could be read from {args.file}", file=sys.stderr)
        if report.error:
            print(f"  grammar parser: {report.error}", file=sys.stderr)
        return None
    for warning in report.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    return report


def _describe_shape(shape: Shape) -> str:
    verts = sum(len(s.verts) for s in shape.scales)
    ports = sum(len(s.ports) for s in shape.scales)
    extras = []
    if shape.launcher_radial:
        extras.append("launcher_radial")
    if shape.mirror_of is not None:
        extras.append(f"mirror_of={shape.mirror_of}")
    if shape.features:
        extras.append("features=" + "|".join(shape.features))
    if shape.cannon is not None:
        extras.append("cannon")
    if shape.thruster is not None:
        extras.append("thruster")
    if shape.shroud:
        extras.append(f"shroud={len(shape.shroud)}")
    extra_str = f" [{', '.join(extras)}]" if extras else ""
    name = f" {shape.name}" if shape.name else ""
    return f"  {shape.id}{name}: {len(shape.scales)} scale(s), {verts} verts, {ports} ports{extra_str}"


def _run_parse(args: argparse.Namespace) -> int:
    report = _load(args)
    if report is None:
        return 1

    if args.json:
        payload = {
            "strategy": report.strategy.value,
            "status": report.status.value,
            "error": report.error,
            "shapes": asdict(report.shapes_file)["shapes"],
        }
        print(json.dumps(payload, indent=2))
        return 0

    print(f"Shapes: {report.shape_count} (strategy={report.strategy.value}, status={report.status.value})")
    for shape in report.shapes_file.shapes:
        print(_describe_shape(shape))
    return 0


def _run_format(args: argparse.Namespace) -> int:
    report = _load(args)
    if report is None:
        return 1
    if report.strategy == ParseStrategy.LEGACY and report.shape_count:
        if args.in_place and not args.force:
            print(f"Error: refusing to overwrite {args.file}: it was read with the line scanner, so "
                  "names and extended properties would be lost. Use --force to overwrite anyway.",
                  file=sys.stderr)
            return 1
        print("Warning: output was rebuilt from a partial recovery; names and extended "
              "properties are missing", file=sys.stderr)

    target = args.file if args.in_place else args.output
    if target is None:
        sys.stdout.write(serialize_shapes_file(report.shapes_file))
        return 0
    try:
        write_shapes_file(report.shapes_file, target)
    except ShapesIOError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Wrote {report.shape_count} shape(s) to {target}")
    return 0


def _run_validate(args: argparse.Namespace) -> int:
    report = _load(args)
    if report is None:
        return 1
    diags = Validator().validate(report.shapes_file)

    for d in diags:
        prefix = {"error": "ERROR", "warning": "WARN", "info": "INFO"}.get(d.severity.value, "INFO")
        loc = f" ({d.shape_id})" if d.shape_id is not None else ""
        print(f"[{prefix}] {d.rule}{loc}: {d.message}")

    errors = [d for d in diags if d.severity == Severity.ERROR]
    if errors:
        print(f"\n{len(errors)} error(s) found.")
        return 1
    print(f"\nValid. {report.shape_count} shape(s), {len(diags)} diagnostic(s).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reassembly-shapes",
                                     description="Read, repair and rewrite Reassembly shapes.lua files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log parser decisions")
    parser.add_argument("--log-file", help="Also write logs to this file")
    sub = parser.add_subparsers(dest="command")

    def _add_source(p: argparse.ArgumentParser) -> None:
        p.add_argument("file", help="Path to shapes.lua")
        p.add_argument("--strict", action="store_true", help="Fail instead of falling back to the line scanner")

    parse = sub.add_parser("parse", aliases=["show"], help="Print the shapes a file defines")
    _add_source(parse)
    parse.add_argument("--json", action="store_true", help="Print the parsed model as JSON")
    parse.set_defaults(func=_run_parse)

    fmt = sub.add_parser("format", aliases=["fmt"], help="Rewrite a file in canonical form")
    _add_source(fmt)
    out = fmt.add_mutually_exclusive_group()
    out.add_argument("--output", "-o", help="Write to this path instead of stdout")
    out.add_argument("--in-place", "-i", action="store_true", help="Overwrite the input file")
    fmt.add_argument("--force", action="store_true",
                     help="Allow --in-place after a line-scanner recovery, dropping unrecovered data")
    fmt.set_defaults(func=_run_format)

    val = sub.add_parser("validate", aliases=["lint"], help="Check ids, polygons and ports")
    _add_source(val)
    val.set_defaults(func=_run_validate)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
