# vim: set noexpandtab: -*- indent-tabs-mode: t -*-

import pytest

from storykee.parser import ast, parse_program
from storykee.parser.printer import PrettyPrintOptions, StorykeePrettyPrinter
from storykee.storykeec import ast_to_json


def _without_locations(data):
	if isinstance(data, dict):
		return {k: _without_locations(v) for k, v in data.items() if k != "loc"}
	if isinstance(data, list):
		return [_without_locations(v) for v in data]
	return data


def _same_tree(a: ast.Program, b: ast.Program) -> bool:
	return _without_locations(ast_to_json(a)) == _without_locations(ast_to_json(b))


ROUND_TRIP_SOURCE = r"""
var greeting = "Hello\n\"world\"\t\\";
npc Guard {
	name = "Bob";
	stats = { hp: 10, "max hp": 20, if: true };
	(mood = "calm");
	node idle {
		say("...");
	}
	on interact {
		greet(player);
	}
}
function fib(n) {
	if (n < 2) {
		return n;
	} else {
		return fib(n - 1) + fib(n - 2);
	}
}
for (var i = 0; i < 10; i = i + 1) {
	total = total + i * 2;
}
for (;;) {
	return;
}
for item in [1, 2.5, true, null] {
	log(item);
}
while (!done && (a || b)) {
	done = check(-x, -(y + 1));
}
x = (1 + 2) * 3 - (4 - 5);
({ a: 1 }).a;
{
	var inner = items[0].name;
}
#java-section-start
int y = 0;
  System.out.println(y);
#java-section-end
"""


def test_round_trip_preserves_tree() -> None:
	original = parse_program(ROUND_TRIP_SOURCE, "rt.sk")
	printed = StorykeePrettyPrinter().print(original)
	assert _same_tree(parse_program(printed, "rt2.sk"), original)


@pytest.mark.parametrize(
	"options",
	[
		PrettyPrintOptions(indent_size=2),
		PrettyPrintOptions(use_spaces=False),
		PrettyPrintOptions(insert_newlines=False),
		PrettyPrintOptions(max_line_length=10),
	],
)
def test_round_trip_under_options(options: PrettyPrintOptions) -> None:
	original = parse_program(ROUND_TRIP_SOURCE, "rt.sk")
	printed = StorykeePrettyPrinter(options).print(original)
	assert _same_tree(parse_program(printed, "rt2.sk"), original)


def test_function_layout() -> None:
	program = parse_program("function f(a, b) { return a; }")
	assert StorykeePrettyPrinter().print(program) == "function f(a, b) {\n    return a;\n}\n"
	tabs = StorykeePrettyPrinter(PrettyPrintOptions(use_spaces=False))
	assert tabs.print(program) == "function f(a, b) {\n\treturn a;\n}\n"


def test_blank_line_between_declarations() -> None:
	program = parse_program("var a = 1; var b = 2; on start {} var c = 3;")
	assert StorykeePrettyPrinter().print(program) == (
		"var a = 1;\nvar b = 2;\n\non start {\n}\n\nvar c = 3;\n"
	)


def test_single_line_mode() -> None:
	program = parse_program("var a = 1;\nvar b = 2;")
	printer = StorykeePrettyPrinter(PrettyPrintOptions(insert_newlines=False))
	assert printer.print(program) == "var a = 1; var b = 2; "


def test_properties_print_with_equals() -> None:
	program = parse_program('quest Q { title = "T"; }')
	assert StorykeePrettyPrinter().print(program) == 'quest Q {\n    title = "T";\n}\n'


def test_host_section_payload_is_not_reindented() -> None:
	program = parse_program("on load {\n#java-section-start\n  foo();\n#java-section-end\n}")
	printed = StorykeePrettyPrinter().print(program)
	assert printed == "on load {\n    #java-section-start\nfoo();\n    #java-section-end\n}\n"


def test_right_operand_of_same_tier_keeps_parentheses() -> None:
	printer = StorykeePrettyPrinter()
	program = parse_program("a - (b - c); (a - b) - c; a * (b + c);")
	assert printer.print(program) == "a - (b - c);\na - b - c;\na * (b + c);\n"


def test_multi_property_object_prints_multi_line() -> None:
	program = parse_program('var o = { a: 1, "b c": 2 };')
	assert StorykeePrettyPrinter().print(program) == 'var o = {\n    a: 1,\n    "b c": 2\n};\n'
	assert StorykeePrettyPrinter().print(parse_program("var o = { a: 1 };")) == "var o = { a: 1 };\n"


def test_float_and_string_formatting() -> None:
	program = parse_program('var f = 2.0; var s = "q\\"\\n";')
	assert StorykeePrettyPrinter().print(program) == 'var f = 2.0;\nvar s = "q\\"\\n";\n'


@pytest.mark.parametrize(
	"literal, printed",
	[
		("0.00001", "0.00001"),
		("10000000000000000.0", "10000000000000000.0"),
		("123456789.125", "123456789.125"),
		("0.1", "0.1"),
	],
)
def test_floats_print_without_exponent(literal: str, printed: str) -> None:
	original = parse_program(f"var f = {literal};")
	text = StorykeePrettyPrinter().print(original)
	assert text == f"var f = {printed};\n"
	reparsed = parse_program(text)
	assert reparsed.statements[0].value.value == original.statements[0].value.value
	assert _same_tree(reparsed, original)


def test_print_single_expression_and_statement() -> None:
	program = parse_program("if (a) { b(); } else { c(); }")
	printer = StorykeePrettyPrinter()
	stmt = program.statements[0]
	assert printer.print(stmt.condition) == "a"
	assert printer.print(stmt) == "if (a) {\n    b();\n} else {\n    c();\n}\n"


def test_print_none_raises() -> None:
	with pytest.raises(ValueError):
		StorykeePrettyPrinter().print(None)


def test_unknown_node_type_fails_loudly() -> None:
	class Bogus(ast.Expr):
		loc = None

	with pytest.raises(NotImplementedError):
		StorykeePrettyPrinter().print(Bogus())


def test_default_options() -> None:
	options = PrettyPrintOptions.defaults()
	assert options.indent_size == 4
	assert options.use_spaces
	assert options.insert_newlines
	assert options.max_line_length == 100
	assert options.indent_string == "    "
	assert PrettyPrintOptions(use_spaces=False).indent_string == "\t"
