"""
Decoded message model.

A decoded message is plain text interleaved with three macro tokens
({n} soft break, {r} page reset, {f} repeat previous line) and dynamic
placeholders. Producers write placeholders either as {tagIndex:groupId} or
as the short form {tagIndex}, which means group 1. Both are accepted here.
"""
import re
import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Tuple, Union

from .constants import DEFAULT_GROUP_ID
from .enums import MacroToken

logger = logging.getLogger(__name__)

# {n} {r} {f} or {12} / {12:2}
TOKEN_RE = re.compile(r'\{(?:(?P<macro>[nrf])|(?P<tag>\d+)(?::(?P<group>\d+))?)\}')

# Some dumps keep the raw escape sequences instead of macros
ESCAPED_MACROS = (
    ('\\n', MacroToken.SOFT_BREAK.value),
    ('\\r', MacroToken.PAGE_RESET.value),
    ('\\f', MacroToken.PAGE_REPEAT.value),
)

_MACROS_BY_LETTER = {token.value[1]: token for token in MacroToken}

PAGE_MARKER = "\n\n"


@dataclass(frozen=True)
class TextSegment:
    text: str


@dataclass(frozen=True)
class MacroSegment:
    token: MacroToken


@dataclass(frozen=True)
class PlaceholderSegment:
    tag_index: int
    group_id: int = DEFAULT_GROUP_ID

    @property
    def token(self) -> str:
        return f"{{{self.tag_index}:{self.group_id}}}"


Segment = Union[TextSegment, MacroSegment, PlaceholderSegment]


def normalize_escapes(text: str) -> str:
    """Turn literal backslash escapes into macro tokens."""
    for escaped, macro in ESCAPED_MACROS:
        text = text.replace(escaped, macro)
    return text


def tokenize(text: str) -> Tuple[Segment, ...]:
    """Split decoded text into ordered segments."""
    if not text:
        return ()

    text = normalize_escapes(text)
    segments: List[Segment] = []
    pos = 0
    for match in TOKEN_RE.finditer(text):
        if match.start() > pos:
            segments.append(TextSegment(text[pos:match.start()]))
        if match.group('macro'):
            segments.append(MacroSegment(_MACROS_BY_LETTER[match.group('macro')]))
        else:
            group = match.group('group')
            segments.append(PlaceholderSegment(
                int(match.group('tag')),
                int(group) if group is not None else DEFAULT_GROUP_ID,
            ))
        pos = match.end()
    if pos < len(text):
        segments.append(TextSegment(text[pos:]))
    return tuple(segments)


@dataclass(frozen=True)
class Message:
    """An immutable decoded message owned by one (file, label)."""
    text: str
    segments: Tuple[Segment, ...] = ()

    @classmethod
    def from_text(cls, text: str) -> "Message":
        return cls(text=text, segments=tokenize(text))

    def placeholders(self) -> List[PlaceholderSegment]:
        """Distinct placeholders in order of first appearance."""
        seen = []
        for seg in self.segments:
            if isinstance(seg, PlaceholderSegment) and seg not in seen:
                seen.append(seg)
        return seen

    def plain_text(self) -> str:
        """Literal text only, without any tokens."""
        return "".join(seg.text for seg in self.segments if isinstance(seg, TextSegment))

    def strip_trailing_macros(self) -> str:
        """Raw text with any macro tokens at the end removed."""
        segments = list(self.segments)
        while segments and isinstance(segments[-1], MacroSegment):
            segments.pop()
        return _join_raw(segments)

    def __str__(self) -> str:
        return self.text


def _join_raw(segments) -> str:
    parts = []
    for seg in segments:
        if isinstance(seg, TextSegment):
            parts.append(seg.text)
        elif isinstance(seg, MacroSegment):
            parts.append(seg.token.value)
        else:
            parts.append(seg.token)
    return "".join(parts)


NameLookup = Union[
    Mapping[Tuple[int, int], Optional[str]],
    Callable[[PlaceholderSegment], Optional[str]],
]


def render_message(message: Message, names: Optional[NameLookup] = None,
                   keep_macros: bool = False) -> str:
    """
    Render a message for display.

    Placeholders become [WRITER] when a writer name is known for them and
    fall back to the raw tag index ([3]) otherwise.

    Args:
        message: Decoded message
        names: (tag_index, group_id) -> writer name, or a callable taking the segment
        keep_macros: Leave {n}/{r}/{f} in place instead of turning them into line breaks
    """
    out = []
    for seg in message.segments:
        if isinstance(seg, TextSegment):
            out.append(seg.text)
        elif isinstance(seg, MacroSegment):
            if keep_macros:
                out.append(seg.token.value)
            elif seg.token is MacroToken.SOFT_BREAK:
                out.append("\n")
            else:
                out.append(PAGE_MARKER)
        else:
            name = _lookup(names, seg)
            out.append(f"[{name}]" if name else f"[{seg.tag_index}]")
    return "".join(out)


def _lookup(names: Optional[NameLookup], seg: PlaceholderSegment) -> Optional[str]:
    if names is None:
        return None
    if callable(names):
        return names(seg)
    return names.get((seg.tag_index, seg.group_id))
