# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Storykee AST.

The builder produces these nodes in a single pass; they are frozen and hold
their children in tuples, so a tree never changes after it is built. Optional
clauses that are absent in the source are `None`, which is distinct from a
present but empty `Block`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from storykee.core.location import SourceLocation

Located = SourceLocation


class Node:
	"""Base class for all AST nodes."""

	loc: Located


class Expr(Node):
	"""Base class for expressions."""


class Stmt(Node):
	"""Base class for statements."""


# Expressions


class LiteralKind(Enum):
	STRING = "string"
	INTEGER = "integer"
	FLOAT = "float"
	BOOLEAN = "boolean"
	NULL = "null"


@dataclass(frozen=True)
class Identifier(Expr):
	loc: Located
	name: str


@dataclass(frozen=True)
class Literal(Expr):
	"""String, number (integer or float), boolean or null literal."""

	loc: Located
	value: Union[str, int, float, bool, None]
	kind: LiteralKind

	@property
	def is_number(self) -> bool:
		return self.kind in (LiteralKind.INTEGER, LiteralKind.FLOAT)


@dataclass(frozen=True)
class ArrayLiteral(Expr):
	loc: Located
	elements: Tuple[Expr, ...]


@dataclass(frozen=True)
class ObjectProperty:
	key: str
	value: Expr


@dataclass(frozen=True)
class ObjectLiteral(Expr):
	"""`{ key: value, ... }` in source order; duplicate keys are kept."""

	loc: Located
	properties: Tuple[ObjectProperty, ...]

	def keys(self) -> Tuple[str, ...]:
		return tuple(p.key for p in self.properties)


@dataclass(frozen=True)
class MemberAccess(Expr):
	loc: Located
	object: Expr
	member: str


@dataclass(frozen=True)
class ArrayAccess(Expr):
	loc: Located
	array: Expr
	index: Expr


@dataclass(frozen=True)
class FunctionCall(Expr):
	loc: Located
	callee: Expr
	arguments: Tuple[Expr, ...]


@dataclass(frozen=True)
class UnaryExpression(Expr):
	loc: Located
	op: str  # "!" or "-"
	operand: Expr


@dataclass(frozen=True)
class BinaryExpression(Expr):
	loc: Located
	left: Expr
	op: str
	right: Expr


@dataclass(frozen=True)
class Assignment(Expr):
	loc: Located
	target: str
	value: Expr


# Statements


@dataclass(frozen=True)
class Block(Stmt):
	"""Ordered statements between braces. Scoping is left to the interpreter."""

	loc: Located
	statements: Tuple[Stmt, ...]


@dataclass(frozen=True)
class VariableDeclaration(Stmt):
	loc: Located
	name: str
	value: Expr


@dataclass(frozen=True)
class NpcDeclaration(Stmt):
	loc: Located
	name: str
	body: Block


@dataclass(frozen=True)
class DialogueDeclaration(Stmt):
	loc: Located
	name: str
	body: Block


@dataclass(frozen=True)
class QuestDeclaration(Stmt):
	loc: Located
	name: str
	body: Block


@dataclass(frozen=True)
class NodeDeclaration(Stmt):
	"""A named sub-block (`node start { ... }`), usually inside a dialogue."""

	loc: Located
	name: str
	body: Block


@dataclass(frozen=True)
class FunctionDeclaration(Stmt):
	loc: Located
	name: str
	parameters: Tuple[str, ...]
	body: Block


@dataclass(frozen=True)
class EventHandler(Stmt):
	loc: Located
	event_type: str
	body: Block


@dataclass(frozen=True)
class IfStatement(Stmt):
	loc: Located
	condition: Expr
	then_block: Block
	else_block: Optional[Block] = None

	@property
	def has_else(self) -> bool:
		return self.else_block is not None


@dataclass(frozen=True)
class ForInStatement(Stmt):
	loc: Located
	variable: str
	iterable: Expr
	body: Block


@dataclass(frozen=True)
class ForCStyleStatement(Stmt):
	"""
	`for (init; condition; update) { ... }`.

	Every clause is optional and `None` when omitted; what an omitted
	condition means at run time is up to the interpreter.
	"""

	loc: Located
	init_variable: Optional[str]
	init_value: Optional[Expr]
	declares_variable: bool
	condition: Optional[Expr]
	update_variable: Optional[str]
	update_value: Optional[Expr]
	body: Block


@dataclass(frozen=True)
class WhileStatement(Stmt):
	loc: Located
	condition: Expr
	body: Block


@dataclass(frozen=True)
class ReturnStatement(Stmt):
	loc: Located
	value: Optional[Expr] = None

	@property
	def has_value(self) -> bool:
		return self.value is not None


@dataclass(frozen=True)
class PropertyStatement(Stmt):
	"""`key = value` directly inside an npc/dialogue/quest/node body."""

	loc: Located
	name: str
	value: Expr


@dataclass(frozen=True)
class ExpressionStatement(Stmt):
	loc: Located
	expression: Expr


@dataclass(frozen=True)
class HostCodeSection(Stmt):
	"""
	Verbatim host-language code between section markers.

	The payload is opaque: it is trimmed once and otherwise never inspected.
	"""

	loc: Located
	code: str
	language: str = "java"


@dataclass(frozen=True)
class Program(Node):
	loc: Located
	statements: Tuple[Stmt, ...]


DECLARATION_TYPES = (
	FunctionDeclaration,
	NpcDeclaration,
	DialogueDeclaration,
	QuestDeclaration,
	EventHandler,
)


__all__ = [
	"ArrayAccess",
	"ArrayLiteral",
	"Assignment",
	"BinaryExpression",
	"Block",
	"DECLARATION_TYPES",
	"DialogueDeclaration",
	"EventHandler",
	"Expr",
	"ExpressionStatement",
	"ForCStyleStatement",
	"ForInStatement",
	"FunctionCall",
	"FunctionDeclaration",
	"HostCodeSection",
	"Identifier",
	"IfStatement",
	"Literal",
	"LiteralKind",
	"Located",
	"MemberAccess",
	"Node",
	"NodeDeclaration",
	"NpcDeclaration",
	"ObjectLiteral",
	"ObjectProperty",
	"Program",
	"PropertyStatement",
	"QuestDeclaration",
	"ReturnStatement",
	"Stmt",
	"UnaryExpression",
	"VariableDeclaration",
	"WhileStatement",
]
