"""
Command schema for event script commands.

Two definition files describe commands:

hints.json (authoritative when present):
    [{"Cmd": "_SUPPORT_NAME", "Description": "...",
      "Params": [{"Index": 0, "Ref": "Slot", "Type": ["TagIndex"]}]}]

commands.json (fallback, positional):
    [{"Name": "_SUPPORT_NAME", "Args": [{"TentativeName": "slot", "Type": "TagIndex"}]}]
"""
import json
import os
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from .constants import COMMANDS_FILE, HINTS_FILE
from .enums import SlotType
from .exceptions import SchemaLoadError
from evstudio.utils.file_ops import read_lines, safe_write

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParamDef:
    index: int
    types: FrozenSet[str] = frozenset()
    depends_on: Optional[int] = None
    ref: str = ""
    description: str = ""

    def accepts(self, slot: SlotType) -> bool:
        return slot.value in self.types


@dataclass(frozen=True)
class CommandDef:
    name: str
    params: Tuple[ParamDef, ...] = ()
    description: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def param(self, index: int) -> Optional[ParamDef]:
        for p in self.params:
            if p.index == index:
                return p
        return None

    def writer_params(self, slot: SlotType) -> List[ParamDef]:
        """Parameters that write a value of the given slot type."""
        return [p for p in self.params if p.accepts(slot)]


def _as_type_set(value) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(str(v) for v in value)


def parse_hint(item: Dict[str, Any]) -> Optional[CommandDef]:
    name = item.get("Cmd")
    if not name:
        return None
    params = []
    for p in item.get("Params") or []:
        if not isinstance(p, dict) or not isinstance(p.get("Index"), int):
            continue
        depends_on = p.get("DependsOn")
        params.append(ParamDef(
            index=p["Index"],
            types=_as_type_set(p.get("Type")),
            depends_on=depends_on if isinstance(depends_on, int) else None,
            ref=p.get("Ref") or "",
            description=p.get("Description") or "",
        ))
    params.sort(key=lambda p: p.index)
    return CommandDef(name, tuple(params), item.get("Description") or "", MappingProxyType(dict(item)))


def parse_command(item: Dict[str, Any]) -> Optional[CommandDef]:
    name = item.get("Name")
    if not name:
        return None
    params = tuple(
        ParamDef(index=i, types=_as_type_set(arg.get("Type")), ref=arg.get("TentativeName") or "")
        for i, arg in enumerate(item.get("Args") or [])
        if isinstance(arg, dict)
    )
    return CommandDef(name, params, item.get("Description") or "", MappingProxyType(dict(item)))


async def _load_list(path: str) -> List[Dict[str, Any]]:
    try:
        data = json.loads("\n".join(await read_lines(path)))
    except (OSError, UnicodeDecodeError) as e:
        raise SchemaLoadError(path, f"unreadable: {e}") from e
    except json.JSONDecodeError as e:
        raise SchemaLoadError(path, f"invalid JSON: {e}") from e
    if not isinstance(data, list):
        raise SchemaLoadError(path, "expected a list of definitions")
    return [item for item in data if isinstance(item, dict)]


class CommandSchema:
    """Command name -> CommandDef. Hints override plain command definitions."""

    def __init__(self, hints: Iterable[CommandDef] = (), commands: Iterable[CommandDef] = ()):
        self.hints: Dict[str, CommandDef] = {c.name: c for c in hints}
        self.commands: Dict[str, CommandDef] = {c.name: c for c in commands}

    @classmethod
    async def load(cls, schema_dir: str) -> "CommandSchema":
        """Load hints.json and commands.json from schema_dir. Missing or bad files are skipped."""
        hints, commands = [], []
        for file_name, parser, target in ((HINTS_FILE, parse_hint, hints),
                                           (COMMANDS_FILE, parse_command, commands)):
            path = os.path.join(schema_dir, file_name)
            if not os.path.exists(path):
                continue
            try:
                items = await _load_list(path)
            except SchemaLoadError as e:
                logger.warning(f"Skipping schema file: {e}")
                continue
            target.extend(d for d in map(parser, items) if d is not None)

        schema = cls(hints, commands)
        logger.info(f"Loaded {len(schema.hints)} hints and {len(schema.commands)} commands")
        return schema

    def get(self, name: str) -> Optional[CommandDef]:
        return self.hints.get(name) or self.commands.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.hints or name in self.commands

    def __len__(self) -> int:
        return len(set(self.hints) | set(self.commands))

    def save_hints(self, path: str) -> None:
        """Write the hint list back to disk atomically."""
        data = [dict(h.raw) if h.raw else _hint_to_dict(h) for h in self.hints.values()]
        with safe_write(path) as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.info(f"Saved {len(data)} hints to {path}")


def _hint_to_dict(hint: CommandDef) -> Dict[str, Any]:
    params = []
    for p in hint.params:
        entry = {"Index": p.index, "Ref": p.ref, "Type": sorted(p.types)}
        if p.depends_on is not None:
            entry["DependsOn"] = p.depends_on
        if p.description:
            entry["Description"] = p.description
        params.append(entry)
    data = {"Cmd": hint.name, "Params": params}
    if hint.description:
        data["Description"] = hint.description
    return data
