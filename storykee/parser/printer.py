# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST -> formatted Storykee source.

The printer is the inverse of the parser up to formatting: printing a parsed
program and parsing the result again yields an equivalent tree. Comments and
original whitespace are not preserved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from . import ast

_BARE_KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_PRECEDENCE = {
	"||": 1,
	"&&": 2,
	"==": 3,
	"!=": 3,
	"<": 4,
	">": 4,
	"<=": 4,
	">=": 4,
	"+": 5,
	"-": 5,
	"*": 6,
	"/": 6,
}

_STRING_ESCAPES = {
	'"': '\\"',
	"\\": "\\\\",
	"\n": "\\n",
	"\r": "\\r",
	"\t": "\\t",
}


@dataclass
class PrettyPrintOptions:
	"""Formatting knobs for `StorykeePrettyPrinter`."""

	indent_size: int = 4
	use_spaces: bool = True
	# When false every statement is separated by a single space instead.
	insert_newlines: bool = True
	max_line_length: int = 100

	@property
	def indent_string(self) -> str:
		return " " * self.indent_size if self.use_spaces else "\t"

	@classmethod
	def defaults(cls) -> "PrettyPrintOptions":
		return cls()


class StorykeePrettyPrinter:
	"""
	Render AST nodes back to Storykee source.

	Statements and expressions are dispatched per node class to
	`visit_stmt_<Class>` / `visit_expr_<Class>`; a node type without a
	visitor raises `NotImplementedError`.
	"""

	def __init__(self, options: Optional[PrettyPrintOptions] = None) -> None:
		self.options = options or PrettyPrintOptions.defaults()
		self._indent_level = 0
		self._in_declaration_body = False

	def print(self, node: Optional[ast.Node]) -> str:
		if node is None:
			raise ValueError("Cannot print a missing AST node")
		self._indent_level = 0
		self._in_declaration_body = False
		if isinstance(node, ast.Program):
			return self.visit_program(node)
		if isinstance(node, ast.Stmt):
			return self.stmt(node)
		if isinstance(node, ast.Expr):
			return self.expr(node)
		raise NotImplementedError(f"No printer for node type {type(node).__name__}")

	def stmt(self, stmt: ast.Stmt) -> str:
		method = getattr(self, f"visit_stmt_{type(stmt).__name__}", None)
		if method is None:
			raise NotImplementedError(f"No printer for stmt type {type(stmt).__name__}")
		return method(stmt)

	def expr(self, expr: ast.Expr) -> str:
		method = getattr(self, f"visit_expr_{type(expr).__name__}", None)
		if method is None:
			raise NotImplementedError(f"No printer for expr type {type(expr).__name__}")
		return method(expr)

	# Layout helpers

	def _indent(self) -> str:
		return self.options.indent_string * self._indent_level

	def _newline(self) -> str:
		return "\n" if self.options.insert_newlines else " "

	def _block(self, block: ast.Block, declaration_body: bool = False) -> str:
		parts = ["{", self._newline()]
		outer = self._in_declaration_body
		self._in_declaration_body = declaration_body
		self._indent_level += 1
		try:
			parts.extend(self.stmt(s) for s in block.statements)
		finally:
			self._indent_level -= 1
			self._in_declaration_body = outer
		parts.append(self._indent() + "}")
		return "".join(parts)

	def _line(self, text: str) -> str:
		return f"{self._indent()}{text}{self._newline()}"

	def visit_program(self, program: ast.Program) -> str:
		out: List[str] = []
		statements = program.statements
		for i, stmt in enumerate(statements):
			out.append(self.stmt(stmt))
			if i + 1 < len(statements) and self.options.insert_newlines:
				if isinstance(stmt, ast.DECLARATION_TYPES) or isinstance(statements[i + 1], ast.DECLARATION_TYPES):
					out.append(self._newline())
		return "".join(out)

	# Statements

	def visit_stmt_VariableDeclaration(self, stmt: ast.VariableDeclaration) -> str:
		return self._line(f"var {stmt.name} = {self.expr(stmt.value)};")

	def _named_body(self, keyword: str, name: str, body: ast.Block) -> str:
		return self._line(f"{keyword} {name} {self._block(body, declaration_body=True)}")

	def visit_stmt_NpcDeclaration(self, stmt: ast.NpcDeclaration) -> str:
		return self._named_body("npc", stmt.name, stmt.body)

	def visit_stmt_DialogueDeclaration(self, stmt: ast.DialogueDeclaration) -> str:
		return self._named_body("dialogue", stmt.name, stmt.body)

	def visit_stmt_QuestDeclaration(self, stmt: ast.QuestDeclaration) -> str:
		return self._named_body("quest", stmt.name, stmt.body)

	def visit_stmt_NodeDeclaration(self, stmt: ast.NodeDeclaration) -> str:
		return self._named_body("node", stmt.name, stmt.body)

	def visit_stmt_FunctionDeclaration(self, stmt: ast.FunctionDeclaration) -> str:
		params = ", ".join(stmt.parameters)
		return self._line(f"function {stmt.name}({params}) {self._block(stmt.body)}")

	def visit_stmt_EventHandler(self, stmt: ast.EventHandler) -> str:
		return self._line(f"on {stmt.event_type} {self._block(stmt.body)}")

	def visit_stmt_Block(self, stmt: ast.Block) -> str:
		return self._line(self._block(stmt))

	def visit_stmt_IfStatement(self, stmt: ast.IfStatement) -> str:
		text = f"if ({self.expr(stmt.condition)}) {self._block(stmt.then_block)}"
		if stmt.else_block is not None:
			text += f" else {self._block(stmt.else_block)}"
		return self._line(text)

	def visit_stmt_ForInStatement(self, stmt: ast.ForInStatement) -> str:
		return self._line(f"for {stmt.variable} in {self.expr(stmt.iterable)} {self._block(stmt.body)}")

	def visit_stmt_ForCStyleStatement(self, stmt: ast.ForCStyleStatement) -> str:
		init = ""
		if stmt.init_variable is not None:
			prefix = "var " if stmt.declares_variable else ""
			init = f"{prefix}{stmt.init_variable} = {self.expr(stmt.init_value)}"
		cond = self.expr(stmt.condition) if stmt.condition is not None else ""
		update = ""
		if stmt.update_variable is not None:
			update = f"{stmt.update_variable} = {self.expr(stmt.update_value)}"
		return self._line(f"for ({init}; {cond}; {update}) {self._block(stmt.body)}")

	def visit_stmt_WhileStatement(self, stmt: ast.WhileStatement) -> str:
		return self._line(f"while ({self.expr(stmt.condition)}) {self._block(stmt.body)}")

	def visit_stmt_ReturnStatement(self, stmt: ast.ReturnStatement) -> str:
		if stmt.value is None:
			return self._line("return;")
		return self._line(f"return {self.expr(stmt.value)};")

	def visit_stmt_PropertyStatement(self, stmt: ast.PropertyStatement) -> str:
		return self._line(f"{stmt.name} = {self.expr(stmt.value)};")

	def visit_stmt_ExpressionStatement(self, stmt: ast.ExpressionStatement) -> str:
		text = self.expr(stmt.expression)
		# A leading `{` would open a block, and a bare assignment in a
		# declaration body would read back as a property.
		if _starts_with_object(stmt.expression) or (
			self._in_declaration_body and isinstance(stmt.expression, ast.Assignment)
		):
			text = f"({text})"
		return self._line(f"{text};")

	def visit_stmt_HostCodeSection(self, stmt: ast.HostCodeSection) -> str:
		# The payload keeps its own layout and always spans real lines.
		parts = [f"{self._indent()}#{stmt.language}-section-start\n"]
		if stmt.code:
			parts.extend(f"{line}\n" for line in stmt.code.split("\n"))
		parts.append(f"{self._indent()}#{stmt.language}-section-end{self._newline()}")
		return "".join(parts)

	# Expressions

	def visit_expr_Identifier(self, expr: ast.Identifier) -> str:
		return expr.name

	def visit_expr_Literal(self, expr: ast.Literal) -> str:
		kind = expr.kind
		if kind is ast.LiteralKind.STRING:
			return format_string(expr.value)
		if kind is ast.LiteralKind.BOOLEAN:
			return "true" if expr.value else "false"
		if kind is ast.LiteralKind.NULL:
			return "null"
		if kind is ast.LiteralKind.FLOAT:
			return format_float(expr.value)
		return str(expr.value)

	def visit_expr_ArrayLiteral(self, expr: ast.ArrayLiteral) -> str:
		items = [self.expr(el) for el in expr.elements]
		flat = "[" + ", ".join(items) + "]"
		width = len(self._indent()) + len(flat)
		if not self.options.insert_newlines or len(items) < 2 or width <= self.options.max_line_length:
			return flat
		inner = self._indent() + self.options.indent_string
		body = ",\n".join(inner + item for item in items)
		return f"[\n{body}\n{self._indent()}]"

	def visit_expr_ObjectLiteral(self, expr: ast.ObjectLiteral) -> str:
		if not expr.properties:
			return "{}"
		if self.options.insert_newlines and len(expr.properties) > 1:
			self._indent_level += 1
			try:
				entries = [f"{self._indent()}{self._property(p)}" for p in expr.properties]
			finally:
				self._indent_level -= 1
			return "{\n" + ",\n".join(entries) + f"\n{self._indent()}}}"
		return "{ " + ", ".join(self._property(p) for p in expr.properties) + " }"

	def _property(self, prop: ast.ObjectProperty) -> str:
		key = prop.key if _BARE_KEY_RE.fullmatch(prop.key) else format_string(prop.key)
		return f"{key}: {self.expr(prop.value)}"

	def visit_expr_MemberAccess(self, expr: ast.MemberAccess) -> str:
		return f"{self._postfix_target(expr.object)}.{expr.member}"

	def visit_expr_ArrayAccess(self, expr: ast.ArrayAccess) -> str:
		return f"{self._postfix_target(expr.array)}[{self.expr(expr.index)}]"

	def visit_expr_FunctionCall(self, expr: ast.FunctionCall) -> str:
		args = ", ".join(self.expr(arg) for arg in expr.arguments)
		return f"{self._postfix_target(expr.callee)}({args})"

	def _postfix_target(self, expr: ast.Expr) -> str:
		text = self.expr(expr)
		if isinstance(expr, (ast.BinaryExpression, ast.UnaryExpression, ast.Assignment)):
			return f"({text})"
		return text

	def visit_expr_UnaryExpression(self, expr: ast.UnaryExpression) -> str:
		operand = self.expr(expr.operand)
		if isinstance(expr.operand, (ast.BinaryExpression, ast.Assignment)):
			operand = f"({operand})"
		return f"{expr.op}{operand}"

	def visit_expr_BinaryExpression(self, expr: ast.BinaryExpression) -> str:
		prec = _PRECEDENCE.get(expr.op, 0)
		left = self.expr(expr.left)
		right = self.expr(expr.right)
		if _precedence_of(expr.left) < prec:
			left = f"({left})"
		# Operators are left-associative: an equal-precedence right operand needs parens.
		if _precedence_of(expr.right) <= prec:
			right = f"({right})"
		return f"{left} {expr.op} {right}"

	def visit_expr_Assignment(self, expr: ast.Assignment) -> str:
		return f"{expr.target} = {self.expr(expr.value)}"


def _precedence_of(expr: ast.Expr) -> int:
	if isinstance(expr, ast.BinaryExpression):
		return _PRECEDENCE.get(expr.op, 0)
	if isinstance(expr, ast.Assignment):
		return 0
	return 100


def _starts_with_object(expr: ast.Expr) -> bool:
	"""True if `expr` prints with an object literal as its leftmost token."""
	while True:
		if isinstance(expr, ast.ObjectLiteral):
			return True
		if isinstance(expr, ast.BinaryExpression):
			expr = expr.left
		elif isinstance(expr, ast.MemberAccess):
			expr = expr.object
		elif isinstance(expr, ast.ArrayAccess):
			expr = expr.array
		elif isinstance(expr, ast.FunctionCall):
			expr = expr.callee
		else:
			return False


def format_string(value: str) -> str:
	"""Quote `value` as a Storykee string literal."""
	return '"' + "".join(_STRING_ESCAPES.get(ch, ch) for ch in value) + '"'


def format_float(value: float) -> str:
	"""
	Shortest round-tripping digits of `value`, in positional notation.

	Number literals have no exponent form, so `1e-05` is written `0.00001`.
	"""
	text = format(Decimal(repr(float(value))), "f")
	return text if "." in text else text + ".0"


__all__ = ["PrettyPrintOptions", "StorykeePrettyPrinter", "format_float", "format_string"]
