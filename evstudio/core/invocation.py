"""
Command Invocation Parser for event scripts.

Script commands look like function calls:

    _TALKMSG('ev_intro_01', 0)
    _SUPPORT_NAME(0)
    _IF_FLAGON_JUMP(#FLAG_GOT_BADGE, 'ev_after_badge')

This is NOT a full expression parser. It tracks exactly two things while
walking a line: single-quoted literals (a quote toggles string state) and
parenthesis depth. Commas separate arguments only at depth 0 outside a string.
"""
import re
import logging
from typing import List, NamedTuple, Optional

logger = logging.getLogger(__name__)

COMMAND_RE = re.compile(r'([A-Z_][A-Z0-9_]*)\s*\(')

# Runaway guard for pathological lines
MAX_COMMANDS_PER_LINE = 100


class Invocation(NamedTuple):
    """A command call found on a line."""
    name: str
    arg_start: int      # offset just after the opening parenthesis
    arg_index: int = 0  # argument the position falls in (enclosing lookups only)


def find_enclosing_invocation(line: str, position: int) -> Optional[Invocation]:
    """
    Innermost command whose argument list is still open at position.

    A command whose list closes before position is not a match, so for
    OUTER(a, INNER(b), |) the outer command is returned.
    """
    best = None
    for count, match in enumerate(COMMAND_RE.finditer(line)):
        if count >= MAX_COMMANDS_PER_LINE:
            break
        start = match.end()
        if start > position:
            break
        # A name inside a quoted literal is text, not a call
        if line.count("'", 0, match.start()) % 2:
            continue

        in_string = False
        depth = 0
        arg_index = 0
        closed = False

        for i in range(start, min(position, len(line))):
            char = line[i]
            if char == "'":
                in_string = not in_string
            elif not in_string:
                if char == '(':
                    depth += 1
                elif char == ')':
                    if depth > 0:
                        depth -= 1
                    else:
                        closed = True
                        break
                elif char == ',' and depth == 0:
                    arg_index += 1

        if not closed:
            best = Invocation(match.group(1), start, arg_index)

    return best


def parse_arguments(line: str, arg_start: int) -> List[str]:
    """
    Trimmed argument substrings from arg_start up to the matching ')'
    or the end of the line. Quotes are kept in the returned values.
    """
    args = []
    current = []
    in_string = False
    depth = 0

    for char in line[arg_start:]:
        if char == "'":
            in_string = not in_string
            current.append(char)
        elif in_string:
            current.append(char)
        elif char == '(':
            depth += 1
            current.append(char)
        elif char == ')':
            if depth == 0:
                args.append("".join(current).strip())
                return _drop_empty_call(args)
            depth -= 1
            current.append(char)
        elif char == ',' and depth == 0:
            args.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    tail = "".join(current).strip()
    if tail or args:
        args.append(tail)
    return args


def _drop_empty_call(args: List[str]) -> List[str]:
    # CMD() has no arguments rather than one empty one
    return [] if args == [""] else args


def iter_invocations(line: str):
    """Every command call on a line, outer calls first, with its arguments."""
    for count, match in enumerate(COMMAND_RE.finditer(line)):
        if count >= MAX_COMMANDS_PER_LINE:
            break
        # Skip matches inside a quoted literal
        if line.count("'", 0, match.start()) % 2:
            continue
        yield match.group(1), parse_arguments(line, match.end())
