"""
Placeholder tracer.

Given a placeholder shown at some script line, walk the script backwards to
find the command that last wrote the value behind it. The walk is a bounded
breadth-first search over the reverse call graph:

1. Scan upwards from the line above the origin.
2. A command whose schema marks the matching argument with the placeholder's
   slot type, and whose argument equals the tag index, is the writer.
3. Reaching a label declaration ends the scan of that frame. Every call site
   of the label becomes a new frame. A label seen before is a cycle and is
   not expanded again.
4. Stop after TRACE_STEP_LIMIT frames.

This is a heuristic. When writers exist on several call paths, the first
one reached in breadth-first order wins.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

from .command_schema import CommandSchema
from .constants import (
    DEFAULT_GROUP_ID,
    DEFAULT_SLOT,
    GROUP_TO_SLOT,
    TRACE_STEP_LIMIT,
    TraceRequest,
    TraceResult,
)
from .enums import SlotType, TraceOutcome
from .invocation import iter_invocations
from .parsers.asset_decoder import parse_int
from .script_grammar import match_label_definition, strip_comment
from .script_index import ScriptIndex
from evstudio.utils.file_ops import read_lines

logger = logging.getLogger(__name__)


def slot_for_group(group_id: int) -> SlotType:
    return GROUP_TO_SLOT.get(group_id, DEFAULT_SLOT)


@dataclass(frozen=True)
class TraceFrame:
    """A scan start point. parent is the arena index of the frame that queued it."""
    file: str
    line: int
    via_label: Optional[str] = None
    parent: Optional[int] = None


def find_writer(line: str, schema: CommandSchema, tag_index: int, slot: SlotType) -> Optional[str]:
    """Name of a command on this line that writes tag_index into a slot of this type."""
    code = strip_comment(line)
    for name, args in iter_invocations(code):
        command = schema.get(name)
        if command is None:
            continue
        for param in command.writer_params(slot):
            if param.index >= len(args):
                continue
            value = parse_int(args[param.index])
            if value is not None and value == tag_index:
                return name
    return None


class PlaceholderTracer:
    """
    Resolves placeholders against a script index and a command schema.

    The index and schema are read through callables so a tracer always sees
    the current snapshot of whatever workspace owns it.
    """

    def __init__(self, index, schema, step_limit: int = TRACE_STEP_LIMIT):
        self._index: Callable[[], ScriptIndex] = index if callable(index) else (lambda: index)
        self._schema: Callable[[], CommandSchema] = schema if callable(schema) else (lambda: schema)
        self.step_limit = step_limit
        self.logger = logging.getLogger(self.__class__.__name__)

    async def resolve_writer(self, origin_file: str, origin_line: int,
                             tag_index: int, group_id: int = DEFAULT_GROUP_ID) -> Optional[str]:
        """Writer command name, or None when unresolved."""
        result = await self.trace(TraceRequest(origin_file, origin_line, tag_index, group_id))
        return result.command

    async def trace(self, request: TraceRequest) -> TraceResult:
        """Run the backward search. Never raises for missing files or dead ends."""
        index = self._index()
        schema = self._schema()
        slot = slot_for_group(request.group_id)

        frames: List[TraceFrame] = [TraceFrame(request.origin_file, request.origin_line)]
        head = 0
        steps = 0
        visited: Set[str] = set()
        file_cache: Dict[str, List[str]] = {}
        unreadable: Set[str] = set()

        while head < len(frames) and steps < self.step_limit:
            frame_id = head
            frame = frames[head]
            head += 1
            steps += 1

            lines = await self._lines(frame.file, file_cache, unreadable)
            if lines is None:
                continue

            for line_no in range(min(frame.line, len(lines)) - 1, -1, -1):
                text = lines[line_no]

                command = find_writer(text, schema, request.tag_index, slot)
                if command:
                    path = self._label_path(frames, frame_id)
                    self.logger.debug(f"{request}: {command} at {frame.file}:{line_no + 1} "
                                      f"after {steps} steps")
                    return TraceResult(request, TraceOutcome.RESOLVED, command,
                                       frame.file, line_no, steps, path, frozenset(unreadable))

                label = match_label_definition(text)
                if label is None:
                    continue
                if label not in visited:
                    visited.add(label)
                    for caller in index.get_callers(label):
                        frames.append(TraceFrame(caller.from_file, caller.from_line, label, frame_id))
                # Scanning never crosses a label
                break

        outcome = TraceOutcome.BUDGET_EXCEEDED if head < len(frames) else TraceOutcome.UNRESOLVED
        self.logger.debug(f"{request}: {outcome.value} after {steps} steps")
        return TraceResult(request, outcome, steps=steps, unreadable_files=frozenset(unreadable))

    async def _lines(self, path: str, cache: Dict[str, List[str]],
                     unreadable: Set[str]) -> Optional[List[str]]:
        if path in cache:
            return cache[path]
        if path in unreadable:
            return None
        try:
            lines = await read_lines(path)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.debug(f"Trace cannot read {path}: {e}")
            unreadable.add(path)
            return None
        cache[path] = lines
        return lines

    @staticmethod
    def _label_path(frames: List[TraceFrame], frame_id: Optional[int]):
        """Labels crossed from the origin to this frame, origin side first."""
        path = []
        while frame_id is not None:
            frame = frames[frame_id]
            if frame.via_label:
                path.append(frame.via_label)
            frame_id = frame.parent
        return tuple(path)
