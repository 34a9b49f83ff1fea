# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
storykee.core: source locations and diagnostics shared by every stage.

Modules:
  - location: SourceLocation (file/line/column)
  - diagnostics: Diagnostic, DiagnosticSink, ParseFailure
"""

from .diagnostics import AST_PHASE, SYNTAX_PHASE, Diagnostic, DiagnosticSink, ParseFailure
from .location import SourceLocation

__all__ = [
	"AST_PHASE",
	"Diagnostic",
	"DiagnosticSink",
	"ParseFailure",
	"SYNTAX_PHASE",
	"SourceLocation",
]
