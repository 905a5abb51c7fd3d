import json

from conftest import script_path
from main import main


def run_cli(capsys, tmp_path, *argv):
    settings = tmp_path / "cli_settings.json"
    code = main(["--settings", str(settings), *argv])
    return code, capsys.readouterr().out


def test_summary(project, tmp_path, capsys):
    code, out = run_cli(capsys, tmp_path, "--project", str(project), "summary")

    assert code == 0
    assert "Generation: 1" in out
    assert "Commands: 2" in out


def test_messages_render_by_short_name(project, tmp_path, capsys):
    code, out = run_cli(capsys, tmp_path, "--project", str(project),
                        "messages", "town", "MSG_GREET", "--raw")

    assert code == 0
    assert "msg_greet: Hello, [0]!{n}" in out


def test_unknown_message_file(project, tmp_path, capsys):
    code, _ = run_cli(capsys, tmp_path, "--project", str(project), "messages", "nowhere")
    assert code == 1


def test_trace_uses_one_based_lines(project, tmp_path, capsys):
    talk = script_path(project, "b_talk.ev")

    code, out = run_cli(capsys, tmp_path, "--project", str(project), "trace", talk, "2", "0")

    assert code == 0
    assert f"SET_NAME at {script_path(project, 'a_town.ev')}:2 via ev_town_talk" in out


def test_trace_unresolved_exit_code(project, tmp_path, capsys):
    talk = script_path(project, "b_talk.ev")

    code, out = run_cli(capsys, tmp_path, "--project", str(project), "trace", talk, "2", "9")

    assert code == 1
    assert "[9] unresolved" in out


def test_project_from_settings_file(project, tmp_path, capsys):
    (tmp_path / "cli_settings.json").write_text(
        json.dumps({"project_path": str(project)}), encoding="utf-8")

    code, out = run_cli(capsys, tmp_path, "refs", "ev_town_talk")

    assert code == 0
    assert "definition" in out and "jump" in out
