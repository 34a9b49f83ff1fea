# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Concrete lark tree -> Storykee AST.

The builder walks a syntactically valid tree once. Problems it cannot turn
into nodes are recorded in the builder's sink instead of raised, so a single
build reports every construction error in the tree; the caller checks
`has_errors()` afterwards and discards the program if it is set.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from lark import Token, Tree

from storykee.core.diagnostics import AST_PHASE, Diagnostic, DiagnosticSink
from storykee.core.location import SourceLocation

from .ast import (
	ArrayAccess,
	ArrayLiteral,
	Assignment,
	BinaryExpression,
	Block,
	DialogueDeclaration,
	EventHandler,
	Expr,
	ExpressionStatement,
	ForCStyleStatement,
	ForInStatement,
	FunctionCall,
	FunctionDeclaration,
	HostCodeSection,
	Identifier,
	IfStatement,
	Literal,
	LiteralKind,
	MemberAccess,
	NodeDeclaration,
	NpcDeclaration,
	ObjectLiteral,
	ObjectProperty,
	Program,
	PropertyStatement,
	QuestDeclaration,
	ReturnStatement,
	Stmt,
	UnaryExpression,
	VariableDeclaration,
	WhileStatement,
)

logger = logging.getLogger(__name__)

_HOST_SECTION_RE = re.compile(
	r"#(?P<start>[a-z][a-z0-9_]*)-section-start(?P<code>.*?)#(?P<end>[a-z][a-z0-9_]*)-section-end",
	re.DOTALL,
)

_STRING_ESCAPES = {
	"n": "\n",
	"t": "\t",
	"r": "\r",
	"\\": "\\",
	'"': '"',
}

# Per tier: (token type, symbol) pairs tested in order, then the fallback.
_BINARY_OPERATORS = {
	"mul_div": ((("STAR", "*"),), "/"),
	"add_sub": ((("PLUS", "+"),), "-"),
	"comparison": ((("LT", "<"), ("GT", ">"), ("LE", "<=")), ">="),
	"equality": ((("EQ", "=="),), "!="),
	"logical_and": ((), "&&"),
	"logical_or": ((), "||"),
}


@dataclass
class _BuildContext:
	file_name: str
	sink: DiagnosticSink

	def loc(self, node: Tree | Token) -> SourceLocation:
		if isinstance(node, Token):
			return SourceLocation.from_meta(self.file_name, node)
		return SourceLocation.from_meta(self.file_name, node.meta)

	def error(self, node: Tree | Token, message: str) -> None:
		self.sink.error(self.loc(node), message)


class AstBuilder:
	"""
	Builds a `Program` from the tree returned by `parser.parse_tree`.

	Use one builder per parse: diagnostics accumulate for the builder's
	lifetime.
	"""

	def __init__(self, file_name: str = "<input>") -> None:
		self.file_name = file_name
		self._ctx = _BuildContext(file_name=file_name, sink=DiagnosticSink(phase=AST_PHASE))

	def build(self, tree: Tree) -> Program:
		program = _build_program(self._ctx, tree)
		if self._ctx.sink:
			logger.debug("%s: %d construction error(s)", self.file_name, len(self._ctx.sink))
		return program

	def has_errors(self) -> bool:
		return self._ctx.sink.has_errors()

	@property
	def diagnostics(self) -> List[Diagnostic]:
		return self._ctx.sink.to_list()


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


def _subtrees(tree: Tree) -> List[Tree]:
	return [child for child in tree.children if isinstance(child, Tree)]


def _tokens(tree: Tree) -> List[Token]:
	return [child for child in tree.children if isinstance(child, Token)]


def _find_tree(tree: Tree, name: str) -> Optional[Tree]:
	return next((child for child in _subtrees(tree) if _name(child) == name), None)


def _find_token(tree: Tree, type_: str) -> Optional[Token]:
	return next((tok for tok in _tokens(tree) if tok.type == type_), None)


def _first_token(tree: Tree) -> Token:
	"""Leftmost token under `tree` (identifiers, literals, keys, member names)."""
	for child in tree.children:
		if isinstance(child, Token):
			return child
		if isinstance(child, Tree):
			return _first_token(child)
	raise ValueError(f"empty tree {_name(tree)!r}")


def decode_string_literal(text: str) -> str:
	"""
	Strip the quotes from a STRING token and resolve its escapes.

	Only `\\n \\t \\r \\\\ \\"` are escapes. A backslash before anything else
	is kept as is, and so is a trailing lone backslash.
	"""
	body = text[1:-1] if len(text) >= 2 and text[0] == text[-1] == '"' else text
	out: List[str] = []
	i = 0
	while i < len(body):
		ch = body[i]
		if ch == "\\" and i + 1 < len(body):
			replacement = _STRING_ESCAPES.get(body[i + 1])
			if replacement is not None:
				out.append(replacement)
				i += 2
				continue
		out.append(ch)
		i += 1
	return "".join(out)


def _build_program(ctx: _BuildContext, tree: Tree) -> Program:
	statements = _build_statements(ctx, _subtrees(tree))
	return Program(loc=ctx.loc(tree), statements=statements)


def _build_statements(ctx: _BuildContext, nodes: List[Tree]) -> Tuple[Stmt, ...]:
	# Statements that fail to build are dropped; their diagnostic is already recorded.
	out: List[Stmt] = []
	for node in nodes:
		try:
			stmt = _build_stmt(ctx, node)
		except RecursionError:
			# The parser itself does not recurse; only building can run out of stack.
			ctx.error(node, "Statement is nested too deeply to build")
			continue
		if stmt is not None:
			out.append(stmt)
	return tuple(out)


def _build_stmt(ctx: _BuildContext, tree: Tree) -> Optional[Stmt]:
	kind = _name(tree)
	if kind in {"statement", "member_statement"}:
		inner = _subtrees(tree)
		if len(inner) != 1:
			ctx.error(tree, "Unknown statement type")
			return None
		return _build_stmt(ctx, inner[0])
	if kind == "variable_declaration":
		return _build_variable_declaration(ctx, tree)
	if kind == "npc_declaration":
		return _build_named_body(ctx, tree, NpcDeclaration)
	if kind == "dialogue_declaration":
		return _build_named_body(ctx, tree, DialogueDeclaration)
	if kind == "quest_declaration":
		return _build_named_body(ctx, tree, QuestDeclaration)
	if kind == "function_declaration":
		return _build_function_declaration(ctx, tree)
	if kind == "event_handler":
		return _build_event_handler(ctx, tree)
	if kind == "if_statement":
		return _build_if_statement(ctx, tree)
	if kind == "for_statement":
		return _build_for_statement(ctx, tree)
	if kind == "while_statement":
		return _build_while_statement(ctx, tree)
	if kind == "return_statement":
		return _build_return_statement(ctx, tree)
	if kind == "property_statement":
		return _build_property_statement(ctx, tree)
	if kind == "node_declaration":
		return _build_named_body(ctx, tree, NodeDeclaration)
	if kind == "expression_statement":
		return _build_expression_statement(ctx, tree)
	if kind == "block":
		return _build_block(ctx, tree)
	if kind == "host_section":
		return _build_host_section(ctx, tree)
	ctx.error(tree, "Unknown statement type")
	return None


def _build_block(ctx: _BuildContext, tree: Tree) -> Block:
	return Block(loc=ctx.loc(tree), statements=_build_statements(ctx, _subtrees(tree)))


def _build_variable_declaration(ctx: _BuildContext, tree: Tree) -> VariableDeclaration:
	name_tok = _find_token(tree, "NAME")
	value = _build_expr(ctx, _subtrees(tree)[0])
	return VariableDeclaration(loc=ctx.loc(tree), name=str(name_tok), value=value)


def _build_named_body(ctx: _BuildContext, tree: Tree, node_cls):
	"""npc / dialogue / quest / node: `KEYWORD NAME { members }`."""
	name_tok = _find_token(tree, "NAME")
	body_tree = _find_tree(tree, "declaration_body")
	body = Block(loc=ctx.loc(body_tree), statements=_build_statements(ctx, _subtrees(body_tree)))
	return node_cls(loc=ctx.loc(tree), name=str(name_tok), body=body)


def _build_function_declaration(ctx: _BuildContext, tree: Tree) -> FunctionDeclaration:
	name_tok = _find_token(tree, "NAME")
	params_tree = _find_tree(tree, "parameter_list")
	params: Tuple[str, ...] = ()
	if params_tree is not None:
		params = tuple(str(tok) for tok in _tokens(params_tree))
	body = _build_block(ctx, _find_tree(tree, "block"))
	return FunctionDeclaration(loc=ctx.loc(tree), name=str(name_tok), parameters=params, body=body)


def _build_event_handler(ctx: _BuildContext, tree: Tree) -> EventHandler:
	event_tok = _find_token(tree, "NAME")
	body = _build_block(ctx, _find_tree(tree, "block"))
	return EventHandler(loc=ctx.loc(tree), event_type=str(event_tok), body=body)


def _build_if_statement(ctx: _BuildContext, tree: Tree) -> IfStatement:
	cond_tree, *blocks = _subtrees(tree)
	condition = _build_expr(ctx, cond_tree)
	then_block = _build_block(ctx, blocks[0])
	else_block = _build_block(ctx, blocks[1]) if len(blocks) > 1 else None
	return IfStatement(loc=ctx.loc(tree), condition=condition, then_block=then_block, else_block=else_block)


def _build_for_statement(ctx: _BuildContext, tree: Tree) -> Optional[Stmt]:
	for_in = _find_tree(tree, "for_in_statement")
	if for_in is not None:
		return _build_for_in(ctx, for_in)
	c_style = _find_tree(tree, "for_c_style_statement")
	if c_style is not None:
		return _build_for_c_style(ctx, c_style)
	ctx.error(tree, "Unknown statement type")
	return None


def _build_for_in(ctx: _BuildContext, tree: Tree) -> ForInStatement:
	var_tok = _first_token(_find_tree(tree, "loop_variable"))
	iterable_tree = next(
		child for child in _subtrees(tree) if _name(child) not in {"loop_variable", "block"}
	)
	return ForInStatement(
		loc=ctx.loc(tree),
		variable=str(var_tok),
		iterable=_build_expr(ctx, iterable_tree),
		body=_build_block(ctx, _find_tree(tree, "block")),
	)


def _build_for_c_style(ctx: _BuildContext, tree: Tree) -> ForCStyleStatement:
	init_variable: Optional[str] = None
	init_value: Optional[Expr] = None
	declares_variable = False
	init = _find_tree(tree, "for_init")
	if init is not None:
		init_variable = str(_find_token(init, "NAME"))
		init_value = _build_expr(ctx, _subtrees(init)[0])
		declares_variable = _find_token(init, "VAR") is not None

	condition: Optional[Expr] = None
	cond_tree = next(
		(child for child in _subtrees(tree) if _name(child) not in {"for_init", "for_update", "block"}),
		None,
	)
	if cond_tree is not None:
		condition = _build_expr(ctx, cond_tree)

	update_variable: Optional[str] = None
	update_value: Optional[Expr] = None
	update = _find_tree(tree, "for_update")
	if update is not None:
		update_variable = str(_find_token(update, "NAME"))
		update_value = _build_expr(ctx, _subtrees(update)[0])

	return ForCStyleStatement(
		loc=ctx.loc(tree),
		init_variable=init_variable,
		init_value=init_value,
		declares_variable=declares_variable,
		condition=condition,
		update_variable=update_variable,
		update_value=update_value,
		body=_build_block(ctx, _find_tree(tree, "block")),
	)


def _build_while_statement(ctx: _BuildContext, tree: Tree) -> WhileStatement:
	cond_tree, body_tree = _subtrees(tree)
	return WhileStatement(
		loc=ctx.loc(tree),
		condition=_build_expr(ctx, cond_tree),
		body=_build_block(ctx, body_tree),
	)


def _build_return_statement(ctx: _BuildContext, tree: Tree) -> ReturnStatement:
	value_trees = _subtrees(tree)
	value = _build_expr(ctx, value_trees[0]) if value_trees else None
	return ReturnStatement(loc=ctx.loc(tree), value=value)


def _build_property_statement(ctx: _BuildContext, tree: Tree) -> PropertyStatement:
	name_tok = _find_token(tree, "NAME")
	value = _build_expr(ctx, _subtrees(tree)[0])
	return PropertyStatement(loc=ctx.loc(tree), name=str(name_tok), value=value)


def _build_expression_statement(ctx: _BuildContext, tree: Tree) -> ExpressionStatement:
	expr = _build_expr(ctx, _subtrees(tree)[0])
	return ExpressionStatement(loc=ctx.loc(tree), expression=expr)


def _build_host_section(ctx: _BuildContext, tree: Tree) -> HostCodeSection:
	tok = _find_token(tree, "HOST_SECTION")
	match = _HOST_SECTION_RE.fullmatch(str(tok))
	if match is None:
		ctx.error(tok, "Malformed host section")
		return HostCodeSection(loc=ctx.loc(tok), code="")
	language, code, closing = match.group("start", "code", "end")
	if closing != language:
		ctx.error(tok, f"Mismatched host section markers: '{language}' closed by '{closing}'")
	return HostCodeSection(loc=ctx.loc(tok), code=code.strip(), language=language)


# Expressions


def _build_expr(ctx: _BuildContext, node: Tree | Token) -> Expr:
	if not isinstance(node, Tree):
		ctx.error(node, "Unknown expression type")
		return Literal(loc=ctx.loc(node), value=None, kind=LiteralKind.NULL)
	kind = _name(node)
	loc = ctx.loc(node)
	if kind == "assignment":
		target_tok = _find_token(node, "NAME")
		return Assignment(loc=loc, target=str(target_tok), value=_build_expr(ctx, _subtrees(node)[0]))
	if kind in _BINARY_OPERATORS:
		left, right = _subtrees(node)
		return BinaryExpression(
			loc=loc,
			left=_build_expr(ctx, left),
			op=_binary_op(node, kind),
			right=_build_expr(ctx, right),
		)
	if kind == "unary_not":
		return UnaryExpression(loc=loc, op="!", operand=_build_expr(ctx, _subtrees(node)[0]))
	if kind == "unary_minus":
		return UnaryExpression(loc=loc, op="-", operand=_build_expr(ctx, _subtrees(node)[0]))
	if kind == "member_access":
		obj_tree, member_tree = _subtrees(node)
		return MemberAccess(loc=loc, object=_build_expr(ctx, obj_tree), member=str(_first_token(member_tree)))
	if kind == "array_access":
		array_tree, index_tree = _subtrees(node)
		return ArrayAccess(loc=loc, array=_build_expr(ctx, array_tree), index=_build_expr(ctx, index_tree))
	if kind == "function_call":
		callee_tree, *rest = _subtrees(node)
		args: Tuple[Expr, ...] = ()
		if rest:
			args = tuple(_build_expr(ctx, arg) for arg in _subtrees(rest[0]))
		return FunctionCall(loc=loc, callee=_build_expr(ctx, callee_tree), arguments=args)
	if kind == "identifier":
		return Identifier(loc=loc, name=str(_first_token(node)))
	if kind == "string_literal":
		return Literal(loc=loc, value=decode_string_literal(str(_first_token(node))), kind=LiteralKind.STRING)
	if kind == "number_literal":
		return _build_number(loc, str(_first_token(node)))
	if kind == "true_literal":
		return Literal(loc=loc, value=True, kind=LiteralKind.BOOLEAN)
	if kind == "false_literal":
		return Literal(loc=loc, value=False, kind=LiteralKind.BOOLEAN)
	if kind == "null_literal":
		return Literal(loc=loc, value=None, kind=LiteralKind.NULL)
	if kind == "array_literal":
		return ArrayLiteral(loc=loc, elements=tuple(_build_expr(ctx, el) for el in _subtrees(node)))
	if kind == "object_literal":
		return _build_object_literal(ctx, node)
	ctx.error(node, "Unknown expression type")
	return Literal(loc=loc, value=None, kind=LiteralKind.NULL)


def _binary_op(tree: Tree, kind: str) -> str:
	candidates, fallback = _BINARY_OPERATORS[kind]
	for type_, symbol in candidates:
		if _find_token(tree, type_) is not None:
			return symbol
	return fallback


def _build_number(loc: SourceLocation, text: str) -> Literal:
	if "." in text:
		return Literal(loc=loc, value=float(text), kind=LiteralKind.FLOAT)
	return Literal(loc=loc, value=int(text), kind=LiteralKind.INTEGER)


def _build_object_literal(ctx: _BuildContext, tree: Tree) -> ObjectLiteral:
	props: List[ObjectProperty] = []
	for prop in _subtrees(tree):
		key_tree, value_tree = _subtrees(prop)
		key_tok = _first_token(key_tree)
		key = decode_string_literal(str(key_tok)) if key_tok.type == "STRING" else str(key_tok)
		props.append(ObjectProperty(key=key, value=_build_expr(ctx, value_tree)))
	return ObjectLiteral(loc=ctx.loc(tree), properties=tuple(props))


__all__ = ["AstBuilder", "decode_string_literal"]
