import asyncio

from evstudio.core.enums import ReferenceKind
from evstudio.core.references import classify_line, collect_references


def test_classify_line():
    assert classify_line("ev_intro:", "ev_intro") is ReferenceKind.DEFINITION
    assert classify_line("Label @ev_intro", "ev_intro") is ReferenceKind.DEFINITION
    assert classify_line("    _IF_FLAGON_CALL(#F_X, 'ev_intro')", "ev_intro") is ReferenceKind.CALL
    assert classify_line("    _TALKMSG('ev_intro')", "ev_intro") is ReferenceKind.OTHER


def test_whole_words_outside_comments(write_script):
    path = write_script("refs.ev",
                        "ev_intro:",
                        "    _JUMP('ev_intro_2')",
                        "    // _JUMP('ev_intro')",
                        "    _CALL('ev_intro')")

    report = asyncio.run(collect_references([path], "ev_intro"))

    assert [(r.line, r.kind) for r in report.references] == [
        (0, ReferenceKind.DEFINITION),
        (3, ReferenceKind.CALL),
    ]
    assert len(report.by_file(ReferenceKind.CALL)[path]) == 1


def test_unreadable_files_are_skipped(tmp_path):
    report = asyncio.run(collect_references([str(tmp_path / "gone.ev")], "x"))
    assert len(report) == 0


def test_assembler_style_lines_are_reported(write_script):
    path = write_script("asm.ev",
                        "Label @ev_intro",
                        "    Jump @ev_intro",
                        "    Call @ev_intro",
                        "    Jump @ev_intro_2")

    report = asyncio.run(collect_references([path], "ev_intro"))

    assert [r.kind for r in report.references] == [
        ReferenceKind.DEFINITION,
        ReferenceKind.JUMP,
        ReferenceKind.CALL,
    ]
