# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
storykeec: command-line checker for Storykee scripts.

Parses each file and reports diagnostics. Optionally prints the formatted
source (`--format`) or the AST as JSON (`--dump-ast`).
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from storykee.core.diagnostics import Diagnostic, ParseFailure
from storykee.core.location import SourceLocation
from storykee.parser import StorykeeParserFacade
from storykee.parser.printer import PrettyPrintOptions, StorykeePrettyPrinter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARSE_FAILED = 1
EXIT_IO_ERROR = 2


def _diag_to_json(diag: Diagnostic) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	return diag.to_json()


def _io_diagnostic(path: Path, err: Exception) -> Diagnostic:
	if isinstance(err, UnicodeDecodeError):
		msg = f"not valid UTF-8 ({err.reason} at byte {err.start})"
	else:
		msg = getattr(err, "strerror", None) or str(err)
	return Diagnostic(location=SourceLocation.unknown(str(path)), message=f"cannot read file: {msg}", phase="io")


def ast_to_json(node: Any) -> Any:
	"""
	Convert an AST (or any value inside one) to JSON-compatible data.

	Nodes become dicts tagged with `"node": <class name>`; locations are
	flattened to `{"line", "column"}`.
	"""
	if isinstance(node, SourceLocation):
		return {"line": node.line, "column": node.column}
	if isinstance(node, Enum):
		return node.value
	if dataclasses.is_dataclass(node):
		out: Dict[str, Any] = {"node": type(node).__name__}
		for field in dataclasses.fields(node):
			out[field.name] = ast_to_json(getattr(node, field.name))
		return out
	if isinstance(node, (list, tuple)):
		return [ast_to_json(item) for item in node]
	return node


def _build_options(args: argparse.Namespace) -> PrettyPrintOptions:
	return PrettyPrintOptions(
		indent_size=args.indent_size,
		use_spaces=not args.tabs,
		insert_newlines=not args.single_line,
	)


def main(argv: list[str] | None = None) -> int:
	"""
	Parse every source file; if any fails, the run fails.

	With --json, prints a single JSON document with the exit code and all
	diagnostics (plus formatted sources / ASTs when requested); otherwise
	prints human-readable messages to stderr.
	"""
	parser = argparse.ArgumentParser(description="Storykee script checker")
	parser.add_argument("source", type=Path, nargs="+", help="Path(s) to Storykee source file(s)")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/message/severity/file/line/column)",
	)
	parser.add_argument("--format", action="store_true", help="Print the pretty-printed source of each file")
	parser.add_argument("--dump-ast", action="store_true", help="Print the AST of each file as JSON")
	parser.add_argument("--indent-size", type=int, default=4, help="Spaces per indent level for --format (default: 4)")
	parser.add_argument("--tabs", action="store_true", help="Indent with tabs for --format")
	parser.add_argument("--single-line", action="store_true", help="Do not insert newlines between statements for --format")
	parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
	args = parser.parse_args(argv)

	if args.verbose:
		logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

	facade = StorykeeParserFacade()
	printer = StorykeePrettyPrinter(_build_options(args))
	diagnostics: List[Diagnostic] = []
	formatted: Dict[str, str] = {}
	dumped: Dict[str, Any] = {}
	exit_code = EXIT_OK

	for path in args.source:
		try:
			source = path.read_text(encoding="utf-8")
		except (OSError, UnicodeDecodeError) as err:
			diagnostics.append(_io_diagnostic(path, err))
			exit_code = max(exit_code, EXIT_IO_ERROR)
			continue
		try:
			program = facade.parse(source, str(path))
		except ParseFailure as failure:
			logger.debug("%s", failure.header)
			diagnostics.extend(failure.errors)
			exit_code = max(exit_code, EXIT_PARSE_FAILED)
			continue
		if args.format:
			formatted[str(path)] = printer.print(program)
		if args.dump_ast:
			dumped[str(path)] = ast_to_json(program)

	if args.json:
		payload: Dict[str, Any] = {
			"exit_code": exit_code,
			"diagnostics": [_diag_to_json(d) for d in diagnostics],
		}
		if args.format:
			payload["formatted"] = formatted
		if args.dump_ast:
			payload["ast"] = dumped
		print(json.dumps(payload))
		return exit_code

	for diag in diagnostics:
		print(f"{diag.location}: {diag.severity}: {diag.message}", file=sys.stderr)
	for text in formatted.values():
		sys.stdout.write(text)
	for tree in dumped.values():
		print(json.dumps(tree, indent=2))
	return exit_code


if __name__ == "__main__":
	sys.exit(main())
