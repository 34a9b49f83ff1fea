# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Storykee parser package.

Parsing runs in two phases. The syntax phase turns source text into a lark
tree and collects every syntax error; the AST phase builds the typed tree
and collects every construction error. Either phase failing raises one
`ParseFailure` with all of its diagnostics, and nothing from a failed phase
reaches the caller.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from storykee.core.diagnostics import ParseFailure

from . import ast
from .builder import AstBuilder
from .parser import parse_tree

logger = logging.getLogger(__name__)

SYNTAX_ERRORS_HEADER = "Syntax errors found"
SEMANTIC_ERRORS_HEADER = "Semantic errors found"


class StorykeeParserFacade:
	"""Entry point for turning a script into a `Program`."""

	def __init__(self, builder_factory: Optional[Callable[[str], AstBuilder]] = None) -> None:
		self.builder_factory = builder_factory or AstBuilder

	def parse(self, source: str, file_name: str = "<input>") -> ast.Program:
		tree, syntax_errors = parse_tree(source, file_name)
		if syntax_errors:
			logger.debug("%s: syntax phase failed", file_name)
			raise ParseFailure(SYNTAX_ERRORS_HEADER, syntax_errors)

		builder = self.builder_factory(file_name)
		program = builder.build(tree)
		if builder.has_errors():
			logger.debug("%s: AST phase failed", file_name)
			raise ParseFailure(SEMANTIC_ERRORS_HEADER, builder.diagnostics)

		logger.debug("%s: parsed %d top-level statement(s)", file_name, len(program.statements))
		return program


def parse_program(source: str, file_name: str = "<input>") -> ast.Program:
	"""Parse `source` with a fresh facade; raises `ParseFailure` on any error."""
	return StorykeeParserFacade().parse(source, file_name)


__all__ = [
	"AstBuilder",
	"ParseFailure",
	"SEMANTIC_ERRORS_HEADER",
	"SYNTAX_ERRORS_HEADER",
	"StorykeeParserFacade",
	"ast",
	"parse_program",
	"parse_tree",
]
