"""
Whole-word reference search across script files.

Groups every line mentioning a word into its definition, jumps to it, calls
to it, and any other use.
"""
import re
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .enums import ReferenceKind
from .script_grammar import COMMENT_MARKER, find_label_references, match_label_definition
from evstudio.utils.file_ops import read_lines

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reference:
    file: str
    line: int   # 0-based
    text: str
    kind: ReferenceKind


@dataclass
class ReferenceReport:
    word: str
    references: List[Reference] = field(default_factory=list)

    def of_kind(self, kind: ReferenceKind) -> List[Reference]:
        return [r for r in self.references if r.kind is kind]

    def by_file(self, kind: ReferenceKind) -> Dict[str, List[Reference]]:
        grouped: Dict[str, List[Reference]] = {}
        for ref in self.of_kind(kind):
            grouped.setdefault(ref.file, []).append(ref)
        return grouped

    def __len__(self) -> int:
        return len(self.references)


def classify_line(line: str, word: str) -> ReferenceKind:
    if match_label_definition(line) == word:
        return ReferenceKind.DEFINITION
    for kind, target in find_label_references(line):
        if target == word:
            return kind
    return ReferenceKind.OTHER


async def collect_references(files: Iterable[str], word: str) -> ReferenceReport:
    """Every whole-word occurrence of word, skipping ones inside // comments."""
    pattern = re.compile(r'(?<![\w#$])' + re.escape(word) + r'(?!\w)')
    report = ReferenceReport(word)

    for path in files:
        try:
            lines = await read_lines(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read file: {path} ({e})")
            continue

        for line_no, line in enumerate(lines):
            match = pattern.search(line)
            if not match:
                continue
            comment = line.find(COMMENT_MARKER)
            if comment != -1 and match.start() > comment:
                continue
            report.references.append(
                Reference(path, line_no, line.strip(), classify_line(line, word)))

    return report
