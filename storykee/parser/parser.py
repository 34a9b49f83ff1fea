# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Storykee source front end: lark grammar + syntax error collection.

`parse_tree` runs the LALR parser over a script and returns the concrete
tree together with every syntax diagnostic it reported. Errors do not stop
the parse:

- an unrecognized character is reported and skipped, always;
- an unexpected token is reported, then the parser drops tokens until a
  statement keyword or `}` fits somewhere on the parser stack. Token errors
  met before the next successful shift are not reported, since they are
  echoes of the first one.

Keywords are reserved: the basic lexer always produces a keyword token for
them, and the grammar lists where a keyword may stand in for a name.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken
from lark.lexer import LexerState

from storykee.core.diagnostics import SYNTAX_PHASE, Diagnostic, DiagnosticSink
from storykee.core.location import SourceLocation

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="program",
	propagate_positions=True,
	maybe_placeholders=False,
)

# Tokens the parser resynchronizes on after a token error.
_SYNC_TOKENS = frozenset(
	{
		"VAR",
		"FUNCTION",
		"IF",
		"FOR",
		"WHILE",
		"RETURN",
		"NPC",
		"DIALOGUE",
		"QUEST",
		"ON",
		"NODE",
		"HOST_SECTION",
		"RBRACE",
	}
)


class SyntaxErrorCollector:
	"""
	Receives lark errors during one parse and turns them into diagnostics.

	A collector belongs to exactly one `parse_tree` call. `recovering` is set
	by the first token error and cleared by the parser on the next shift.
	"""

	def __init__(self, file_name: str) -> None:
		self.file_name = file_name
		self.sink = DiagnosticSink(phase=SYNTAX_PHASE)
		self.recovering = False

	def record(self, err: UnexpectedInput) -> None:
		location = SourceLocation(
			file_name=self.file_name,
			line=getattr(err, "line", None) or 1,
			column=getattr(err, "column", None) or 1,
		)
		self.sink.error(location, describe_error(err))

	def token_error(self, err: UnexpectedToken) -> None:
		if not self.recovering:
			self.record(err)
		self.recovering = True


def describe_error(err: UnexpectedInput) -> str:
	"""One-line message for a lark error."""
	if isinstance(err, UnexpectedCharacters):
		return f"token recognition error at: '{err.char}'"
	if isinstance(err, UnexpectedToken):
		expected = ", ".join(sorted(err.expected or ()))
		if err.token.type == "$END":
			return f"unexpected end of input expecting {expected}"
		return f"mismatched input '{err.token.value}' expecting {expected}"
	lines = str(err).strip().splitlines()
	return lines[0] if lines else type(err).__name__


def _tokens(lexer, lexer_state: LexerState, collector: SyntaxErrorCollector) -> Iterator[Token]:
	while True:
		try:
			yield lexer.next_token(lexer_state)
		except UnexpectedCharacters as err:
			collector.record(err)
			lexer_state.line_ctr.feed(err.char)
		except EOFError:
			return


def _resync(parser_state, token: Token) -> bool:
	"""
	Pop the parser stack until `token` can be fed, then feed it.

	Depths are tried deepest first on a copy of the state, so the real state
	only changes when some depth accepts the token.
	"""
	for depth in range(len(parser_state.state_stack) - 1, 0, -1):
		trial = parser_state.copy(deepcopy_values=False)
		del trial.state_stack[depth:]
		del trial.value_stack[depth - 1:]
		try:
			trial.feed_token(token)
		except UnexpectedToken:
			continue
		parser_state.state_stack[:] = trial.state_stack
		parser_state.value_stack[:] = trial.value_stack
		return True
	return False


def parse_tree(source: str, file_name: str = "<input>") -> Tuple[Optional[Tree], List[Diagnostic]]:
	"""
	Parse `source` into a concrete lark tree.

	Returns `(tree, diagnostics)`. When diagnostics is non-empty the tree (if
	any) comes from a recovered parse and must not be used.
	"""
	collector = SyntaxErrorCollector(file_name)
	interactive = _PARSER.parse_interactive(source)
	parser_state = interactive.parser_state
	lexer_thread = interactive.lexer_thread

	for token in _tokens(lexer_thread.lexer, lexer_thread.state, collector):
		try:
			parser_state.feed_token(token)
		except UnexpectedToken as err:
			collector.token_error(err)
			if token.type in _SYNC_TOKENS and _resync(parser_state, token):
				collector.recovering = False
		else:
			collector.recovering = False

	# End of input sits after the last character, not at the last token.
	line_ctr = lexer_thread.state.line_ctr
	end = Token("$END", "", line_ctr.char_pos, line_ctr.line, line_ctr.column)
	tree: Optional[Tree] = None
	try:
		tree = parser_state.feed_token(end, is_end=True)
	except UnexpectedToken as err:
		if not collector.recovering:
			collector.record(err)

	diagnostics = collector.sink.to_list()
	if diagnostics:
		logger.debug("%s: %d syntax error(s)", file_name, len(diagnostics))
	return tree, diagnostics


__all__ = ["SyntaxErrorCollector", "describe_error", "parse_tree"]
