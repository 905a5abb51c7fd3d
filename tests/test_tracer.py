import asyncio
import os

from conftest import writer_schema
from evstudio.core.constants import TRACE_STEP_LIMIT, TraceRequest
from evstudio.core.enums import SlotType, TraceOutcome
from evstudio.core.script_index import build_script_index
from evstudio.core.tracer import PlaceholderTracer, find_writer, slot_for_group


def make_tracer(*files):
    index = asyncio.run(build_script_index(files))
    return PlaceholderTracer(index, writer_schema())


def trace(tracer, file, line, tag, group=1):
    return asyncio.run(tracer.trace(TraceRequest(file, line, tag, group)))


def test_group_to_slot_mapping():
    assert slot_for_group(1) is SlotType.NAME
    assert slot_for_group(2) is SlotType.NUMBER
    assert slot_for_group(42) is SlotType.NAME


def test_writer_two_lines_above(write_script):
    main = write_script("main.ev",
                        "ev_main:",
                        "    SET_NAME(3)",
                        "    _NOP()",
                        "    _TALKMSG('msg_a')")
    tracer = make_tracer(main)

    assert asyncio.run(tracer.resolve_writer(main, 3, 3, 1)) == "SET_NAME"


def test_writer_must_match_tag_and_slot(write_script):
    main = write_script("main.ev",
                        "ev_main:",
                        "    SET_NUMBER(3, 100)",
                        "    SET_NAME(2)",
                        "    _TALKMSG('msg_a')")
    tracer = make_tracer(main)

    assert trace(tracer, main, 3, 3, group=1).command is None
    assert trace(tracer, main, 3, 3, group=2).command == "SET_NUMBER"
    assert trace(tracer, main, 3, 2, group=7).command == "SET_NAME"


def test_writer_argument_position_comes_from_schema(write_script):
    main = write_script("main.ev",
                        "ev_main:",
                        "    SET_PAIR(FOO(1, 2), 5)",
                        "    _TALKMSG('msg')")
    tracer = make_tracer(main)

    assert trace(tracer, main, 2, 5).command == "SET_PAIR"
    assert trace(tracer, main, 2, 1).command is None


def test_search_follows_callers_across_files(write_script):
    caller = write_script("a.ev",
                          "ev_caller:",
                          "    SET_NAME(0)",
                          "    _JUMP('ev_target')")
    target = write_script("b.ev",
                          "ev_target:",
                          "    _TALKMSG('msg_b')")
    tracer = make_tracer(caller, target)

    result = trace(tracer, target, 1, 0)

    assert result.outcome is TraceOutcome.RESOLVED
    assert (result.command, result.file, result.line) == ("SET_NAME", caller, 1)
    assert result.label_path == ("ev_target",)
    assert result.steps == 2


def test_scan_stops_at_label_boundary(write_script):
    main = write_script("main.ev",
                        "ev_first:",
                        "    SET_NAME(0)",
                        "ev_second:",
                        "    _TALKMSG('msg')")
    tracer = make_tracer(main)

    assert trace(tracer, main, 3, 0).outcome is TraceOutcome.UNRESOLVED


def test_first_writer_in_breadth_first_order_wins(write_script):
    a = write_script("a.ev", "ev_a:", "    SET_NAME(1)", "    _CALL('ev_shared')")
    b = write_script("b.ev", "ev_b:", "    SET_RIVAL(1)", "    _CALL('ev_shared')")
    shared = write_script("c.ev", "ev_shared:", "    _TALKMSG('msg')")
    tracer = make_tracer(a, b, shared)

    assert trace(tracer, shared, 1, 1).command == "SET_NAME"


def test_self_reference_terminates(write_script):
    loop = write_script("loop.ev",
                        "ev_loop:",
                        "    _NOP()",
                        "    _JUMP('ev_loop')",
                        "    _TALKMSG('msg')")
    tracer = make_tracer(loop)

    result = trace(tracer, loop, 3, 0)

    assert result.outcome is TraceOutcome.UNRESOLVED
    assert result.command is None
    assert result.steps == 2


def test_mutual_recursion_terminates(write_script):
    a = write_script("a.ev", "ev_a:", "    _JUMP('ev_b')", "    _TALKMSG('m')")
    b = write_script("b.ev", "ev_b:", "    _JUMP('ev_a')")
    tracer = make_tracer(a, b)

    result = trace(tracer, a, 2, 0)

    assert result.outcome is TraceOutcome.UNRESOLVED
    assert result.steps <= TRACE_STEP_LIMIT


def test_step_budget_bounds_long_chains(write_script):
    lines = []
    for i in range(TRACE_STEP_LIMIT + 10):
        lines.append(f"L{i}:")
        if i == TRACE_STEP_LIMIT + 9:
            lines.append("    SET_NAME(0)")
        if i > 0:
            lines.append(f"    _CALL('L{i - 1}')")
        else:
            lines.append("    _TALKMSG('msg')")
    chain = write_script("chain.ev", *lines)
    tracer = make_tracer(chain)

    result = trace(tracer, chain, 2, 0)

    assert result.outcome is TraceOutcome.BUDGET_EXCEEDED
    assert result.command is None
    assert result.steps == TRACE_STEP_LIMIT


def test_unreadable_caller_file_is_not_an_error(write_script):
    caller = write_script("a.ev", "ev_a:", "    SET_NAME(0)", "    _JUMP('ev_t')")
    target = write_script("b.ev", "ev_t:", "    _TALKMSG('m')")
    tracer = make_tracer(caller, target)
    os.remove(caller)

    result = trace(tracer, target, 1, 0)

    assert result.outcome is TraceOutcome.UNRESOLVED
    assert caller in result.unreadable_files


def test_missing_origin_file_is_unresolved(tmp_path):
    tracer = make_tracer()
    result = trace(tracer, str(tmp_path / "nowhere.ev"), 5, 0)
    assert result.command is None


def test_tracer_reads_current_snapshot(write_script):
    main = write_script("main.ev", "ev_main:", "    SET_NAME(0)", "    _TALKMSG('m')")
    state = {"schema": writer_schema()}
    index = asyncio.run(build_script_index([main]))
    tracer = PlaceholderTracer(lambda: index, lambda: state["schema"])

    assert trace(tracer, main, 2, 0).command == "SET_NAME"
    state["schema"] = type(state["schema"])()
    assert trace(tracer, main, 2, 0).command is None


def test_find_writer_ignores_comments_and_unknown_commands():
    schema = writer_schema()
    assert find_writer("    // SET_NAME(0)", schema, 0, SlotType.NAME) is None
    assert find_writer("    OTHER(0)", schema, 0, SlotType.NAME) is None
    assert find_writer("    _IF(SET_NAME(4))", schema, 4, SlotType.NAME) == "SET_NAME"
