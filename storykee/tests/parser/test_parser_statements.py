# vim: set noexpandtab: -*- indent-tabs-mode: t -*-

import pytest

from storykee.core import ParseFailure
from storykee.parser import ast, parse_program


def _only(source: str) -> ast.Stmt:
	program = parse_program(source, "test.sk")
	assert len(program.statements) == 1
	return program.statements[0]


def test_empty_program() -> None:
	program = parse_program("", "empty.sk")
	assert program.statements == ()
	assert program.loc.file_name == "empty.sk"


def test_comments_and_whitespace_only() -> None:
	program = parse_program("// nothing here\n/* or\n here */\n")
	assert program.statements == ()


def test_variable_declaration_with_and_without_semicolon() -> None:
	program = parse_program("var a = 1;\nvar b = 2\nvar c = a")
	names = [stmt.name for stmt in program.statements]
	assert names == ["a", "b", "c"]
	assert all(isinstance(stmt, ast.VariableDeclaration) for stmt in program.statements)


def test_statement_location_is_one_based() -> None:
	stmt = _only("\n    var x = 1;")
	assert (stmt.loc.file_name, stmt.loc.line, stmt.loc.column) == ("test.sk", 2, 5)


def test_npc_declaration_body_holds_properties() -> None:
	stmt = _only(
		"""
npc Guard {
	name = "Bob";
	health = 100
	greet();
}
"""
	)
	assert isinstance(stmt, ast.NpcDeclaration)
	assert stmt.name == "Guard"
	first, second, third = stmt.body.statements
	assert isinstance(first, ast.PropertyStatement)
	assert first.name == "name"
	assert first.value.value == "Bob"
	assert isinstance(second, ast.PropertyStatement)
	assert second.value.value == 100
	assert isinstance(third, ast.ExpressionStatement)
	assert isinstance(third.expression, ast.FunctionCall)


def test_dialogue_with_nodes_and_quest() -> None:
	program = parse_program(
		"""
dialogue Intro {
	node start {
		text = "Hello";
	}
	node bye {}
}
quest FindSword {
	title = "Find the sword";
}
"""
	)
	dialogue, quest = program.statements
	assert isinstance(dialogue, ast.DialogueDeclaration)
	start, bye = dialogue.body.statements
	assert isinstance(start, ast.NodeDeclaration)
	assert start.name == "start"
	assert isinstance(start.body.statements[0], ast.PropertyStatement)
	assert bye.body == ast.Block(loc=bye.body.loc, statements=())
	assert isinstance(quest, ast.QuestDeclaration)
	assert quest.name == "FindSword"


def test_assignment_outside_declaration_is_expression_statement() -> None:
	stmt = _only("score = score + 1;")
	assert isinstance(stmt, ast.ExpressionStatement)
	assert isinstance(stmt.expression, ast.Assignment)
	assert stmt.expression.target == "score"


def test_function_declaration() -> None:
	stmt = _only("function greet(name, times) { return name; }")
	assert isinstance(stmt, ast.FunctionDeclaration)
	assert stmt.name == "greet"
	assert stmt.parameters == ("name", "times")
	ret = stmt.body.statements[0]
	assert isinstance(ret, ast.ReturnStatement)
	assert ret.has_value
	assert ret.value == ast.Identifier(loc=ret.value.loc, name="name")


def test_function_without_parameters_and_bare_return() -> None:
	stmt = _only("function stop() { return }")
	assert stmt.parameters == ()
	ret = stmt.body.statements[0]
	assert ret.value is None
	assert not ret.has_value


def test_event_handler() -> None:
	stmt = _only('on playerJoin { log("hi"); }')
	assert isinstance(stmt, ast.EventHandler)
	assert stmt.event_type == "playerJoin"
	assert len(stmt.body.statements) == 1


def test_if_without_else_has_no_else_block() -> None:
	stmt = _only("if (x > 1) { a(); }")
	assert isinstance(stmt, ast.IfStatement)
	assert stmt.else_block is None
	assert not stmt.has_else


def test_if_with_empty_else_keeps_empty_block() -> None:
	stmt = _only("if (x) { a(); } else { }")
	assert stmt.has_else
	assert stmt.else_block.statements == ()


def test_for_in() -> None:
	stmt = _only("for item in player.items { use(item); }")
	assert isinstance(stmt, ast.ForInStatement)
	assert stmt.variable == "item"
	assert isinstance(stmt.iterable, ast.MemberAccess)
	assert len(stmt.body.statements) == 1


def test_for_c_style_full() -> None:
	stmt = _only("for (var i = 0; i < 10; i = i + 1) { tick(i); }")
	assert isinstance(stmt, ast.ForCStyleStatement)
	assert stmt.init_variable == "i"
	assert stmt.init_value.value == 0
	assert stmt.declares_variable
	assert isinstance(stmt.condition, ast.BinaryExpression)
	assert stmt.condition.op == "<"
	assert stmt.update_variable == "i"
	assert isinstance(stmt.update_value, ast.BinaryExpression)


def test_for_c_style_without_var_does_not_declare() -> None:
	stmt = _only("for (i = 5; i; i = i - 1) {}")
	assert stmt.init_variable == "i"
	assert not stmt.declares_variable
	assert isinstance(stmt.condition, ast.Identifier)


def test_for_c_style_all_clauses_omitted() -> None:
	stmt = _only("for (;;) {}")
	assert stmt.init_variable is None
	assert stmt.init_value is None
	assert stmt.condition is None
	assert stmt.update_variable is None
	assert stmt.update_value is None
	assert not stmt.declares_variable
	assert stmt.body.statements == ()


def test_while() -> None:
	stmt = _only("while (!done) { step(); }")
	assert isinstance(stmt, ast.WhileStatement)
	assert isinstance(stmt.condition, ast.UnaryExpression)


def test_bare_block_at_statement_start() -> None:
	stmt = _only("{ var a = 1; }")
	assert isinstance(stmt, ast.Block)
	assert isinstance(stmt.statements[0], ast.VariableDeclaration)


def test_host_section_keeps_raw_code() -> None:
	stmt = _only(
		"""
#java-section-start
System.out.println("hi"); // not a Storykee comment
  int x = 1;
#java-section-end
"""
	)
	assert isinstance(stmt, ast.HostCodeSection)
	assert stmt.language == "java"
	assert stmt.code == 'System.out.println("hi"); // not a Storykee comment\n  int x = 1;'
	assert (stmt.loc.line, stmt.loc.column) == (2, 1)


def test_empty_host_section() -> None:
	stmt = _only("#java-section-start\n#java-section-end")
	assert stmt.code == ""


def test_host_section_language_comes_from_marker() -> None:
	stmt = _only("#lua-section-start print(1) #lua-section-end")
	assert stmt.language == "lua"
	assert stmt.code == "print(1)"


def test_mismatched_host_markers_fail_ast_phase() -> None:
	with pytest.raises(ParseFailure) as excinfo:
		parse_program("#java-section-start\nfoo();\n#lua-section-end", "host.sk")
	failure = excinfo.value
	assert failure.header == "Semantic errors found"
	assert [d.message for d in failure.errors] == ["Mismatched host section markers: 'java' closed by 'lua'"]
	assert failure.errors[0].phase == "ast"


def test_statement_order_is_source_order() -> None:
	program = parse_program("var a = 1; npc B {} on c {} function d() {} e();")
	kinds = [type(stmt).__name__ for stmt in program.statements]
	assert kinds == [
		"VariableDeclaration",
		"NpcDeclaration",
		"EventHandler",
		"FunctionDeclaration",
		"ExpressionStatement",
	]
