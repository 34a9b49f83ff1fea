# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source locations shared by AST nodes and diagnostics.

A location is created once, from the lark tree or token a node was built
from, and never changes afterwards. Line and column are both 1-based.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SourceLocation:
	"""A `file:line:column` position in a script."""

	file_name: str
	line: int
	column: int

	@classmethod
	def unknown(cls, file_name: str = "<unknown>") -> "SourceLocation":
		"""Line and column 0: the position within `file_name` is not known."""
		return cls(file_name=file_name, line=0, column=0)

	@classmethod
	def from_meta(cls, file_name: str, meta: Any) -> "SourceLocation":
		"""
		Construct a location from a lark `Meta` (or a `Token`).

		Trees built from no tokens at all (an empty program) carry an empty
		meta; those are pinned to the start of the file.
		"""
		if getattr(meta, "empty", False) or getattr(meta, "line", None) is None:
			return cls(file_name=file_name, line=1, column=1)
		return cls(file_name=file_name, line=meta.line, column=meta.column)

	def __str__(self) -> str:
		return f"{self.file_name}:{self.line}:{self.column}"


__all__ = ["SourceLocation"]
