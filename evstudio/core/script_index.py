"""
Script index: label definitions and the reverse call graph.

An index is an immutable snapshot. Rebuilding produces a new ScriptIndex,
and holders swap their reference to it, so readers never see a half-built
table.
"""
import os
import glob
import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .constants import CallSite, DEFAULT_SCRIPT_GLOB, LabelDefinition
from .exceptions import IndexBuildError
from .script_grammar import find_label_references, match_label_definition
from evstudio.utils.file_ops import read_lines

logger = logging.getLogger(__name__)


class ScriptIndex:
    """Label -> definition, and label -> every call site naming it."""

    def __init__(self,
                 definitions: Optional[Mapping[str, LabelDefinition]] = None,
                 callers: Optional[Mapping[str, Sequence[CallSite]]] = None,
                 files: Iterable[str] = (),
                 duplicates: Optional[Mapping[str, Sequence[LabelDefinition]]] = None,
                 failed_files: Iterable[str] = ()):
        self._definitions = MappingProxyType(dict(definitions or {}))
        self._callers = MappingProxyType({k: tuple(v) for k, v in (callers or {}).items()})
        self.files = tuple(files)
        self.duplicates = MappingProxyType({k: tuple(v) for k, v in (duplicates or {}).items()})
        self.failed_files = tuple(failed_files)

    def get_definition(self, label: str) -> Optional[LabelDefinition]:
        return self._definitions.get(label)

    def get_callers(self, label: str) -> Tuple[CallSite, ...]:
        return self._callers.get(label, ())

    def labels(self) -> List[str]:
        return sorted(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, label: str) -> bool:
        return label in self._definitions


class ScriptIndexBuilder:
    """Accumulates one pass over the script files, then freezes into a ScriptIndex."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.definitions: Dict[str, LabelDefinition] = {}
        self.callers: Dict[str, List[CallSite]] = {}
        self.duplicates: Dict[str, List[LabelDefinition]] = {}
        self.files: List[str] = []
        self.failed_files: List[str] = []

    def add_lines(self, file_path: str, lines: Sequence[str]) -> None:
        """Index one file's lines. Later definitions of a name replace earlier ones."""
        self.files.append(file_path)
        for line_no, line in enumerate(lines):
            name = match_label_definition(line)
            if name is not None:
                self._define(LabelDefinition(name, file_path, line_no))

            for _kind, target in find_label_references(line):
                self.callers.setdefault(target, []).append(CallSite(file_path, line_no, target))

    def _define(self, definition: LabelDefinition) -> None:
        previous = self.definitions.get(definition.name)
        if previous is not None:
            self.logger.warning(
                f"Label '{definition.name}' redefined at {definition.file}:{definition.line + 1} "
                f"(previous {previous.file}:{previous.line + 1})"
            )
            self.duplicates.setdefault(definition.name, [previous]).append(definition)
        self.definitions[definition.name] = definition

    async def add_file(self, file_path: str) -> None:
        """
        Read and index one file.

        Raises:
            IndexBuildError: the file cannot be read
        """
        try:
            lines = await read_lines(file_path)
        except (OSError, UnicodeDecodeError) as e:
            raise IndexBuildError(file_path, f"unreadable: {e}") from e
        self.add_lines(file_path, lines)

    def build(self) -> ScriptIndex:
        return ScriptIndex(self.definitions, self.callers, self.files,
                           self.duplicates, self.failed_files)


def find_script_files(root: str, pattern: str = DEFAULT_SCRIPT_GLOB) -> List[str]:
    if not os.path.isdir(root):
        logger.warning(f"Script folder not found: {root}")
        return []
    return sorted(glob.glob(os.path.join(root, pattern), recursive=True))


async def build_script_index(files: Iterable[str]) -> ScriptIndex:
    """Full recomputation over the given files. Unreadable files are logged and skipped."""
    builder = ScriptIndexBuilder()
    for file_path in files:
        try:
            await builder.add_file(file_path)
        except IndexBuildError as e:
            logger.warning(f"Skipping script: {e}")
            builder.failed_files.append(file_path)

    index = builder.build()
    logger.info(f"Indexed {len(index)} labels across {len(index.files)} scripts")
    return index
