"""
Workspace context for EvStudio.

Holds the three data sets every consumer needs: the decoded messages, the
script index and the command schema. A workspace is constructed explicitly
and passed to whoever needs it. Refreshing rebuilds all three off to the
side and swaps the references in one step.
"""
import os
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal as Signal

from .command_schema import CommandSchema
from .constants import (
    DEFAULT_ASSET_DIR,
    DEFAULT_ASSET_GLOB,
    DEFAULT_ENGLISH_ASSET_SUBDIR,
    DEFAULT_SCHEMA_DIR,
    DEFAULT_SCRIPT_GLOB,
    TraceRequest,
)
from .message import Message, render_message
from .message_store import MessageStore
from .script_index import ScriptIndex, build_script_index, find_script_files
from .tracer import PlaceholderTracer


@dataclass
class WorkspaceSettings:
    project_path: str
    script_dir: str
    script_glob: str
    asset_dir: str
    asset_glob: str
    schema_dir: str

    @classmethod
    def from_dict(cls, settings: Dict[str, Any]) -> "WorkspaceSettings":
        """
        Build settings from a plain dict (e.g. SettingsStore.load()).

        Keys:
            project_path: Root of the mod project (default: current directory)
            script_dir: Where .ev scripts live (default: project_path)
            script_glob: Script file pattern (default: **/*.ev)
            asset_dir: Asset dump root (default: Assets, preferring its English message folder)
            asset_glob: Asset file pattern (default: **/*.asset)
            schema_dir: Folder with hints.json / commands.json (default: JSON)
        """
        project = os.path.abspath(settings.get("project_path") or ".")

        asset_dir = settings.get("asset_dir")
        if not asset_dir:
            assets = os.path.join(project, DEFAULT_ASSET_DIR)
            english = os.path.join(assets, *DEFAULT_ENGLISH_ASSET_SUBDIR)
            asset_dir = english if os.path.isdir(english) else assets

        return cls(
            project_path=project,
            script_dir=os.path.join(project, settings.get("script_dir") or ""),
            script_glob=settings.get("script_glob") or DEFAULT_SCRIPT_GLOB,
            asset_dir=os.path.join(project, asset_dir),
            asset_glob=settings.get("asset_glob") or DEFAULT_ASSET_GLOB,
            schema_dir=os.path.join(project, settings.get("schema_dir") or DEFAULT_SCHEMA_DIR),
        )


class Workspace(QObject):
    """
    Current snapshot of messages, scripts and command schema.

    Consumers can either connect to `refreshed` or poll `generation`, which
    increases by one on every completed refresh.
    """

    refreshed = Signal(int)          # generation
    log_message = Signal(str, str)   # level, message

    def __init__(self, settings: Optional[WorkspaceSettings] = None,
                 messages: Optional[MessageStore] = None,
                 index: Optional[ScriptIndex] = None,
                 schema: Optional[CommandSchema] = None):
        super().__init__()
        self.settings = settings
        self.messages = messages or MessageStore()
        self.index = index or ScriptIndex()
        self.schema = schema or CommandSchema()
        self.generation = 0
        self.logger = logging.getLogger("Workspace")
        self.tracer = PlaceholderTracer(lambda: self.index, lambda: self.schema)

    async def refresh(self) -> int:
        """Rebuild everything from disk and swap it in. Returns the new generation."""
        if self.settings is None:
            raise ValueError("Workspace has no settings to refresh from")
        s = self.settings

        self.log_message.emit("info", f"Refreshing workspace: {s.project_path}")
        schema = await CommandSchema.load(s.schema_dir)
        messages = await MessageStore.load(s.asset_dir, s.asset_glob)
        index = await build_script_index(find_script_files(s.script_dir, s.script_glob))

        self.swap(messages, index, schema)
        self.log_message.emit(
            "info",
            f"Loaded {messages.file_count} message files, {len(index)} labels, "
            f"{len(schema)} commands"
        )
        return self.generation

    def swap(self, messages: Optional[MessageStore] = None,
             index: Optional[ScriptIndex] = None,
             schema: Optional[CommandSchema] = None) -> int:
        """Replace any of the snapshots at once and bump the generation."""
        if messages is not None:
            self.messages = messages
        if index is not None:
            self.index = index
        if schema is not None:
            self.schema = schema
        self.generation += 1
        self.refreshed.emit(self.generation)
        return self.generation

    async def resolve_placeholders(self, message: Message, origin_file: str,
                                   origin_line: int) -> Dict[tuple, Optional[str]]:
        """Writer name (or None) for every distinct placeholder in a message."""
        names = {}
        for placeholder in message.placeholders():
            result = await self.tracer.trace(TraceRequest(
                origin_file, origin_line, placeholder.tag_index, placeholder.group_id))
            names[(placeholder.tag_index, placeholder.group_id)] = result.command
        return names

    async def describe_message(self, file_name: str, label: str, origin_file: str,
                               origin_line: int, keep_macros: bool = False) -> Optional[str]:
        """
        Render a message as seen from a script line.
        Placeholders show their writer command, or the raw tag index when
        no writer is found.
        """
        message = self.messages.get_message(file_name, label)
        if message is None:
            return None
        names = await self.resolve_placeholders(message, origin_file, origin_line)
        return render_message(message, names, keep_macros=keep_macros)

    def summary(self) -> List[str]:
        lines = [
            f"Generation: {self.generation}",
            f"Message files: {self.messages.file_count}",
            f"Labels indexed: {len(self.index)} in {len(self.index.files)} scripts",
            f"Commands: {len(self.schema)}",
        ]
        if self.index.duplicates:
            lines.append(f"Duplicate labels: {', '.join(sorted(self.index.duplicates))}")
        skipped = len(self.messages.failed_files) + len(self.index.failed_files)
        if skipped:
            lines.append(f"Skipped files: {skipped}")
        return lines
