# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diagnostics produced by the two parsing phases.

A `Diagnostic` is an immutable (location, message) record tagged with the
phase that produced it. Phases collect diagnostics into a `DiagnosticSink`
and, if the sink is non-empty when the phase finishes, the facade raises one
`ParseFailure` carrying all of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from .location import SourceLocation

SYNTAX_PHASE = "syntax"
AST_PHASE = "ast"


@dataclass(frozen=True)
class Diagnostic:
	"""A single problem found while parsing or building the AST."""

	location: SourceLocation
	message: str
	# Which phase reported it: "syntax" (front end) or "ast" (builder).
	phase: Optional[str] = None
	severity: str = "error"

	def __str__(self) -> str:
		return f"{self.location}: {self.message}"

	def to_json(self) -> dict:
		"""Render to a structured JSON-friendly dict."""
		return {
			"phase": self.phase,
			"message": self.message,
			"severity": self.severity,
			"file": self.location.file_name,
			"line": self.location.line,
			"column": self.location.column,
		}


class DiagnosticSink:
	"""
	Ordered, append-only diagnostic collector.

	One sink is created per phase of a single parse and threaded explicitly
	through the code that reports into it.
	"""

	def __init__(self, phase: Optional[str] = None) -> None:
		self.phase = phase
		self._items: List[Diagnostic] = []

	def add(self, diag: Diagnostic) -> None:
		self._items.append(diag)

	def error(self, location: SourceLocation, message: str) -> Diagnostic:
		diag = Diagnostic(location=location, message=message, phase=self.phase)
		self._items.append(diag)
		return diag

	def has_errors(self) -> bool:
		return any(d.severity == "error" for d in self._items)

	def to_list(self) -> List[Diagnostic]:
		return list(self._items)

	def __iter__(self) -> Iterator[Diagnostic]:
		return iter(self._items)

	def __len__(self) -> int:
		return len(self._items)

	def __bool__(self) -> bool:
		return bool(self._items)


class ParseFailure(Exception):
	"""
	Raised when a parse attempt fails; carries every diagnostic of the phase.

	Can be built from a single diagnostic, from a list, or empty and filled
	with `add()` before being raised.
	"""

	def __init__(
		self,
		header: str = "Parse errors",
		errors: Union[Diagnostic, Iterable[Diagnostic], None] = None,
	) -> None:
		super().__init__(header)
		self.header = header
		if errors is None:
			self._errors: List[Diagnostic] = []
		elif isinstance(errors, Diagnostic):
			self._errors = [errors]
		else:
			self._errors = list(errors)

	@classmethod
	def from_diagnostic(cls, diag: Diagnostic) -> "ParseFailure":
		return cls(diag.message, diag)

	@property
	def errors(self) -> Sequence[Diagnostic]:
		return tuple(self._errors)

	def add(self, diag: Diagnostic) -> None:
		self._errors.append(diag)

	def render(self) -> str:
		if not self._errors:
			return self.header
		lines = [f"{self.header}:"]
		lines.extend(str(d) for d in self._errors)
		return "\n".join(lines)

	def __str__(self) -> str:
		return self.render()


__all__ = [
	"AST_PHASE",
	"Diagnostic",
	"DiagnosticSink",
	"ParseFailure",
	"SYNTAX_PHASE",
]
