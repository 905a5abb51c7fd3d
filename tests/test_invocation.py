from evstudio.core.invocation import (
    find_enclosing_invocation,
    iter_invocations,
    parse_arguments,
)


def test_enclosing_skips_closed_inner_call():
    line = "OUTER(a, INNER(b), c)"
    found = find_enclosing_invocation(line, line.index("c)"))
    assert found.name == "OUTER"
    assert found.arg_index == 2
    assert found.arg_start == len("OUTER(")


def test_enclosing_finds_inner_call_while_open():
    line = "OUTER(a, INNER(b, x), c)"
    found = find_enclosing_invocation(line, line.index("x"))
    assert (found.name, found.arg_index) == ("INNER", 1)


def test_commas_inside_quotes_do_not_split():
    line = "_TALKMSG('one, two', 5)"
    found = find_enclosing_invocation(line, line.index("5"))
    assert found.arg_index == 1


def test_call_like_text_inside_quotes_is_not_a_command():
    line = "_TALKMSG('GO(', 5"
    found = find_enclosing_invocation(line, len(line))
    assert (found.name, found.arg_index) == ("_TALKMSG", 1)


def test_no_match_outside_any_argument_list():
    line = "_NOP() "
    assert find_enclosing_invocation(line, len(line)) is None
    assert find_enclosing_invocation("plain text", 3) is None


def test_parse_arguments_respects_nesting_and_strings():
    line = "CMD('x, y', FOO(1, 2), 3) // tail, ignored"
    assert parse_arguments(line, line.index("(") + 1) == ["'x, y'", "FOO(1, 2)", "3"]


def test_parse_arguments_runs_to_end_of_unclosed_line():
    assert parse_arguments("CMD(1, 2", 4) == ["1", "2"]


def test_parse_arguments_of_empty_call():
    assert parse_arguments("CMD()", 4) == []


def test_iter_invocations_lists_outer_then_inner():
    calls = list(iter_invocations("_IF(CHECK(1), 'GO(2)')"))
    assert calls == [("_IF", ["CHECK(1)", "'GO(2)'"]), ("CHECK", ["1"])]
