"""
Line-level grammar of event scripts.

Two label declaration styles exist in the corpus and both are accepted:

    Label @ev_intro          (assembler style)
    ev_intro:                (bare style)

Jumps and calls name their target either with an @ reference or with a
quoted literal:

    Jump @ev_intro           Call @ev_intro
    _JUMP('ev_intro')        _CALL('ev_intro')      Jump('ev_intro')
    _IF_FLAGON_JUMP(#FLAG_SEEN_INTRO, 'ev_intro')

Everything after a // comment marker (outside a quoted literal) is ignored.
"""
import re
from typing import List, Optional, Tuple

from .enums import ReferenceKind
from .invocation import parse_arguments

LABEL_AT_RE = re.compile(r'^\s*Label\s+@(\w+)')
LABEL_BARE_RE = re.compile(r'^\s*(\w+):\s*$')

CALL_AT_RE = re.compile(r'\b(Jump|Call)\s+@(\w+)', re.IGNORECASE)
# Any command ending in JUMP or CALL, e.g. _JUMP, _CALL, _IF_FLAGON_JUMP
CALL_COMMAND_RE = re.compile(r'\b\w*?(JUMP|CALL)\s*\(', re.IGNORECASE)
QUOTED_LABEL_RE = re.compile(r"^'(\w+)'$")

COMMENT_MARKER = "//"


def strip_comment(line: str) -> str:
    """Drop a trailing // comment that is not inside a quoted literal."""
    if COMMENT_MARKER not in line:
        return line
    in_string = False
    for i, ch in enumerate(line):
        if ch == "'":
            in_string = not in_string
        elif not in_string and line.startswith(COMMENT_MARKER, i):
            return line[:i]
    return line


def match_label_definition(line: str) -> Optional[str]:
    """Name of the label declared on this line, in either style, or None."""
    code = strip_comment(line)
    match = LABEL_AT_RE.match(code) or LABEL_BARE_RE.match(code)
    return match.group(1) if match else None


def find_label_references(line: str) -> List[Tuple[ReferenceKind, str]]:
    """All (JUMP|CALL, target) references on a line, in order of appearance."""
    code = strip_comment(line)
    found = []
    for match in CALL_AT_RE.finditer(code):
        found.append((match.start(), _kind(match.group(1)), match.group(2)))

    for match in CALL_COMMAND_RE.finditer(code):
        if code.count("'", 0, match.start()) % 2:
            continue
        # Conditional forms put the target after their condition arguments
        for arg in parse_arguments(code, match.end()):
            quoted = QUOTED_LABEL_RE.match(arg)
            if quoted:
                found.append((match.start(), _kind(match.group(1)), quoted.group(1)))
                break
    found.sort(key=lambda item: item[0])
    return [(kind, target) for _, kind, target in found]


def _kind(word: str) -> ReferenceKind:
    return ReferenceKind.JUMP if word.lower() == "jump" else ReferenceKind.CALL
