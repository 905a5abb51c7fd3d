import json
from pathlib import Path

import pytest

from evstudio.core.command_schema import CommandDef, CommandSchema, ParamDef


def word(text=None, event_id=None, tag_index=-1):
    return {"str": text, "eventID": event_id, "tagIndex": tag_index}


def label(name, words, tags=()):
    return {"name": name, "words": list(words), "tags": list(tags)}


def make_dump(*labels, marker=True):
    """Render labels the way Unity serializes a message table."""
    lines = ["%YAML 1.1", "--- !u!114 &11400000", "MonoBehaviour:", "  m_Name: test"]
    if marker:
        lines.append("  labelDataArray:")
    for i, lab in enumerate(labels):
        lines.append(f"  - labelIndex: {i}")
        lines.append(f"    arrayIndex: {i}")
        lines.append(f"    labelName: {lab['name']}")
        lines.append("    styleInfo:")
        lines.append("      styleIndex: 0")
        if lab["tags"]:
            lines.append("    tagDataArray:")
            for tag_id, group_id in lab["tags"]:
                lines.append(f"    - tagIndex: {tag_id}")
                lines.append(f"      groupID: {group_id}")
                lines.append("      tagPatternID: 0")
        else:
            lines.append("    tagDataArray: []")
        lines.append("    wordDataArray:")
        for w in lab["words"]:
            lines.append("    - patternID: 0")
            if w["eventID"] is not None:
                lines.append(f"      eventID: {w['eventID']}")
            lines.append(f"      tagIndex: {w['tagIndex']}")
            lines.append("      tagValue: 0")
            if w["str"] is not None:
                lines.append(f"      str: {w['str']}")
                lines.append("      strWidth: 42.5")
    return "\n".join(lines) + "\n"


def writer_schema():
    """SET_NAME(slot) writes names, SET_NUMBER(slot, value) writes numbers."""
    return CommandSchema(hints=[
        CommandDef("SET_NAME", (ParamDef(0, frozenset({"TagIndex"})),)),
        CommandDef("SET_RIVAL", (ParamDef(0, frozenset({"TagIndex"})),)),
        CommandDef("SET_NUMBER", (ParamDef(0, frozenset({"NumberIndex"})),
                                  ParamDef(1, frozenset({"Value"})))),
        CommandDef("SET_PAIR", (ParamDef(0, frozenset({"Value"})),
                                ParamDef(1, frozenset({"TagIndex"})))),
    ])


@pytest.fixture
def write_script(tmp_path):
    def _write(name, *lines):
        path = tmp_path / "scripts" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def project(tmp_path):
    """A small project: schema, message dumps and two scripts."""
    root = tmp_path / "project"
    schema_dir = root / "JSON"
    schema_dir.mkdir(parents=True)
    (schema_dir / "hints.json").write_text(json.dumps([
        {"Cmd": "SET_NAME", "Params": [{"Index": 0, "Ref": "Slot", "Type": ["TagIndex"]}]},
        {"Cmd": "SET_NUMBER", "Params": [{"Index": 0, "Ref": "Slot", "Type": ["NumberIndex"]},
                                         {"Index": 1, "Ref": "Value", "Type": ["Value"]}]},
    ]), encoding="utf-8")

    assets = root / "Assets" / "format_msbt" / "en" / "english"
    assets.mkdir(parents=True)
    (assets / "english_ss_town.asset").write_text(make_dump(
        label("msg_greet", [word("'Hello, '", 0), word(tag_index=0, event_id=0), word("!", 1)],
              tags=[(0, 1)]),
        label("msg_count", [word("'You have '", 0), word(tag_index=0, event_id=0),
                            word("' badges.'", 3)], tags=[(4, 2)]),
    ), encoding="utf-8")
    (assets / "english_dlp_speakers_name.asset").write_text(make_dump(
        label("spk_rival", [word("Barry", 1)]),
        marker=False,
    ), encoding="utf-8")
    (assets / "english_monsname.asset").write_text(make_dump(
        label("MONSNAME_025", [word("Pikachu", 0)]),
    ), encoding="utf-8")
    (assets / "english_zkn_form.asset").write_text(make_dump(
        label("ZKN_FORM_025_001", [word("Partner Cap", 0)]),
        label("ZKN_FORM_025_000", [word("'Normal Form'", 0)]),
    ), encoding="utf-8")

    scripts = root / "scripts"
    scripts.mkdir()
    (scripts / "a_town.ev").write_text("\n".join([
        "ev_town_start:",
        "    SET_NAME(0)",
        "    SET_NUMBER(4, 8)",
        "    _JUMP('ev_town_talk')",
    ]) + "\n", encoding="utf-8")
    (scripts / "b_talk.ev").write_text("\n".join([
        "ev_town_talk:",
        "    _TALKMSG('msg_greet')",
        "    _TALKMSG('msg_count')",
    ]) + "\n", encoding="utf-8")
    return root


def script_path(project_root: Path, name: str) -> str:
    return str(project_root / "scripts" / name)
