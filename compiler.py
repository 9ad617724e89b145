from __future__ import annotations

"""
Minimal pseudocode example:

when green flag clicked
forever
if <touching (edge v)?> then
turn right (15) degrees
else
move (10) steps
end
end

Usage:
python compiler.py input.txt output.json
python compiler.py input.txt output.json --names names.json
python compiler.py input.txt output.json --max-depth 16 --verbose
"""

import argparse
import logging
from pathlib import Path

from blocks import IdSource, Script
from codegen import write_scripts_json
from names import KnownNames, load_known_names
from parser import Parser
from resolver import DEFAULT_MAX_DEPTH
from semantic import validate_scripts

logger = logging.getLogger(__name__)


def compile_source(
    source_text: str,
    known_names: KnownNames | None = None,
    *,
    id_source: IdSource | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    validate: bool = True,
) -> list[Script]:
    scripts = Parser.from_source(source_text, known_names=known_names, id_source=id_source, max_depth=max_depth)
    if validate:
        validate_scripts(scripts)
    return scripts


def compile_file(
    input_path: Path,
    output_path: Path,
    names_path: Path | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    validate: bool = True,
) -> list[Script]:
    known_names = load_known_names(names_path) if names_path is not None else None
    source_text = input_path.read_text(encoding="utf-8")
    scripts = compile_source(source_text, known_names, max_depth=max_depth, validate=validate)
    write_scripts_json(scripts, output_path)
    logger.info("Compiled %d script(s) from %s into %s", len(scripts), input_path, output_path)
    return scripts


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compile block pseudocode into Scratch block scripts (JSON)")
    parser.add_argument("input", type=Path, help="Path to input pseudocode file")
    parser.add_argument("output", type=Path, help="Path to output .json file")
    parser.add_argument(
        "--names",
        type=Path,
        default=None,
        help='JSON file with known names: {"globals": [...], "locals": [...], "sprites": [...]}.',
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum expression and condition nesting depth (default {DEFAULT_MAX_DEPTH}).",
    )
    parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip the structural check of the finished block graphs.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every classified line.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    input_path: Path = args.input
    output_path: Path = args.output

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if not input_path.exists() or not input_path.is_file():
        raise FileNotFoundError(f"Input file not found: '{input_path}'")

    compile_file(
        input_path=input_path,
        output_path=output_path,
        names_path=args.names,
        max_depth=args.max_depth,
        validate=not args.no_validate,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
