"""
Message Asset Decoder.

Turns a Unity text dump of a message table into label -> Message. The dump
is a list of labels, each carrying a tag list and a word list:

    labelDataArray:
    - labelIndex: 0
      labelName: msg_intro_01
      tagDataArray:
      - tagIndex: 0
        groupID: 1
      wordDataArray:
      - patternID: 0
        eventID: 0
        tagIndex: 0
        str:
      - eventID: 1
        str: ', nice to meet you!'

A word's tagIndex is a position in the label's tag list, not the tag id.

The decoder is an explicit state machine. Each state has one handler of the
form (context, line) -> Transition; the context holds the label being
assembled and the finished output. A handler can hand the line back
(consumed=False) so it is evaluated again in the state it switched to.
"""
import re
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Optional

from evstudio.core.constants import (
    DEFAULT_GROUP_ID,
    EVENT_ID_FALLBACK_MACRO,
    EVENT_ID_MACROS,
    EVENT_ID_SILENT,
    EVENT_ID_SILENT_FROM,
    KEY_EVENT_ID,
    KEY_GROUP_ID,
    KEY_LABEL_ARRAY,
    KEY_LABEL_NAME,
    KEY_STR,
    KEY_TAG_ARRAY,
    KEY_TAG_INDEX,
    KEY_WORD_ARRAY,
    LIST_ITEM_PREFIX,
    TagDefinition,
    WordEntry,
)
from evstudio.core.enums import DecoderState
from evstudio.core.exceptions import DecodeError
from evstudio.core.message import Message
from .base import BaseDecoder

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r'\s*([+-]?\d+)')


def parse_int(value: str) -> Optional[int]:
    """Leading integer of a scalar ("3", " 12 # note"), or None."""
    match = _INT_RE.match(value)
    return int(match.group(1)) if match else None


class DumpLine(NamedTuple):
    """One dump line, pre-split for the state handlers."""
    raw: str
    clean: str          # trimmed, without the "- " list-item marker
    is_new_item: bool   # line opens a list item

    @classmethod
    def parse(cls, raw: str) -> "DumpLine":
        trimmed = raw.strip()
        clean = trimmed[2:] if trimmed.startswith(LIST_ITEM_PREFIX + " ") else trimmed
        return cls(raw, clean, trimmed.startswith(LIST_ITEM_PREFIX))

    def value_of(self, key: str) -> Optional[str]:
        if self.clean.startswith(key):
            return self.clean[len(key):].strip()
        return None


class Transition(NamedTuple):
    state: DecoderState
    consumed: bool = True


@dataclass
class DecodeContext:
    """Scratch state for one decode pass."""
    messages: Dict[str, Message] = field(default_factory=dict)
    label: str = ""
    text: List[str] = field(default_factory=list)
    tags: List[TagDefinition] = field(default_factory=list)
    word: WordEntry = field(default_factory=WordEntry)
    pending_tag_id: Optional[int] = None
    pending_group_id: int = DEFAULT_GROUP_ID

    # --- word commit ---

    def commit_word(self) -> None:
        """
        Append the pending word to the label text.
        Order is fixed: literal, then placeholder, then the eventID macro.
        """
        word = self.word
        if word.text is not None:
            self.text.append(word.text)

        if word.tag_index is not None:
            if 0 <= word.tag_index < len(self.tags):
                tag = self.tags[word.tag_index]
                self.text.append(f"{{{tag.tag_id}:{tag.group_id}}}")
            else:
                self.text.append(f"{{{word.tag_index}:{DEFAULT_GROUP_ID}}}")

        macro = macro_for_event(word.event_id, has_literal=word.text is not None)
        if macro:
            self.text.append(macro)

        self.word = WordEntry()

    # --- tag list ---

    def flush_pending_tag(self) -> None:
        if self.pending_tag_id is not None:
            self.tags.append(TagDefinition(self.pending_tag_id, self.pending_group_id))
        self.pending_tag_id = None
        self.pending_group_id = DEFAULT_GROUP_ID

    # --- labels ---

    def flush_label(self) -> None:
        """Store the current label. Empty names or texts are skipped; duplicates overwrite."""
        text = "".join(self.text)
        if self.label and text:
            key = self.label.lower()
            if key in self.messages:
                logger.debug(f"Duplicate label '{self.label}' overwrites an earlier entry")
            self.messages[key] = Message.from_text(text)

    def start_label(self, name: str) -> None:
        self.label = name
        self.text = []
        self.tags = []
        self.word = WordEntry()
        self.pending_tag_id = None
        self.pending_group_id = DEFAULT_GROUP_ID

    def finish(self) -> Dict[str, Message]:
        self.commit_word()
        self.flush_label()
        return self.messages


def macro_for_event(event_id: Optional[int], has_literal: bool = False) -> str:
    """
    Macro token appended after a word.

    1 -> {n}, 3 -> {r}, 4 -> {f}; 0, 2 and anything >= 5 add nothing.
    Any other id, or a literal word that carries no id at all, gets {n}.
    """
    if event_id is None:
        return EVENT_ID_FALLBACK_MACRO if has_literal else ""
    if event_id in EVENT_ID_MACROS:
        return EVENT_ID_MACROS[event_id]
    if event_id in EVENT_ID_SILENT or event_id >= EVENT_ID_SILENT_FROM:
        return ""
    return EVENT_ID_FALLBACK_MACRO


# =============================================================================
# STATE HANDLERS
# =============================================================================

def handle_outside(ctx: DecodeContext, line: DumpLine) -> Transition:
    if line.clean.startswith(KEY_LABEL_ARRAY):
        return Transition(DecoderState.IN_LABEL_ARRAY)
    return Transition(DecoderState.OUTSIDE)


def handle_label_array(ctx: DecodeContext, line: DumpLine) -> Transition:
    name = line.value_of(KEY_LABEL_NAME)
    if name is not None:
        ctx.commit_word()
        ctx.flush_label()
        ctx.start_label(name)
        return Transition(DecoderState.IN_LABEL_ARRAY)

    if line.clean.startswith(KEY_TAG_ARRAY):
        return Transition(DecoderState.IN_TAG_DATA)

    # Labels without a tag list go straight to their words
    if line.clean.startswith(KEY_WORD_ARRAY):
        return Transition(DecoderState.IN_WORD_DATA)

    return Transition(DecoderState.IN_LABEL_ARRAY)


def handle_tag_data(ctx: DecodeContext, line: DumpLine) -> Transition:
    if line.clean.startswith(KEY_WORD_ARRAY):
        ctx.flush_pending_tag()
        return Transition(DecoderState.IN_WORD_DATA)

    if line.clean.startswith(KEY_LABEL_NAME):
        return Transition(DecoderState.IN_LABEL_ARRAY, consumed=False)

    if line.is_new_item:
        ctx.flush_pending_tag()

    tag_value = line.value_of(KEY_TAG_INDEX)
    if tag_value is not None:
        tag_id = parse_int(tag_value)
        if tag_id is not None and tag_id >= 0:
            ctx.pending_tag_id = tag_id
        return Transition(DecoderState.IN_TAG_DATA)

    group_value = line.value_of(KEY_GROUP_ID)
    if group_value is not None:
        group_id = parse_int(group_value)
        if group_id is not None:
            ctx.pending_group_id = group_id

    return Transition(DecoderState.IN_TAG_DATA)


def handle_word_data(ctx: DecodeContext, line: DumpLine) -> Transition:
    if line.clean.startswith(KEY_LABEL_NAME) or line.clean.startswith(KEY_TAG_ARRAY):
        return Transition(DecoderState.IN_LABEL_ARRAY, consumed=False)

    if line.is_new_item:
        ctx.commit_word()

    text = line.value_of(KEY_STR)
    if text is not None:
        ctx.word.text = BaseDecoder.strip_quotes(text)
        return Transition(DecoderState.IN_WORD_DATA)

    event_value = line.value_of(KEY_EVENT_ID)
    if event_value is not None:
        event_id = parse_int(event_value)
        if event_id is not None:
            ctx.word.event_id = event_id
        return Transition(DecoderState.IN_WORD_DATA)

    tag_value = line.value_of(KEY_TAG_INDEX)
    if tag_value is not None:
        tag_index = parse_int(tag_value)
        # -1 marks a word without a placeholder
        if tag_index is not None and tag_index >= 0:
            ctx.word.tag_index = tag_index

    return Transition(DecoderState.IN_WORD_DATA)


StateHandler = Callable[[DecodeContext, DumpLine], Transition]

TRANSITIONS: Dict[DecoderState, StateHandler] = {
    DecoderState.OUTSIDE: handle_outside,
    DecoderState.IN_LABEL_ARRAY: handle_label_array,
    DecoderState.IN_TAG_DATA: handle_tag_data,
    DecoderState.IN_WORD_DATA: handle_word_data,
}

# A handler may hand a line back at most this many times in a row
_MAX_REEVALUATIONS = 3


class AssetDecoder(BaseDecoder):
    """
    Decoder for message table dumps.

    Speaker-name dumps are cut down to the label list itself, so for those the
    decoder starts inside the label array and does not require the marker.
    """

    def __init__(self, assume_label_array: bool = False):
        super().__init__()
        self.assume_label_array = assume_label_array

    def decode(self, raw_text: str, file_name: str) -> Dict[str, Message]:
        """
        Decode a dump into {lowercased label: Message}.

        Raises:
            DecodeError: the dump has no label array marker
        """
        if not self.assume_label_array and KEY_LABEL_ARRAY not in raw_text:
            raise DecodeError(file_name, f"no {KEY_LABEL_ARRAY} marker")

        ctx = DecodeContext()
        state = DecoderState.IN_LABEL_ARRAY if self.assume_label_array else DecoderState.OUTSIDE

        for raw in raw_text.splitlines():
            line = DumpLine.parse(raw)
            for _ in range(_MAX_REEVALUATIONS):
                transition = TRANSITIONS[state](ctx, line)
                state = transition.state
                if transition.consumed:
                    break

        messages = ctx.finish()
        self.log_message.emit("debug", f"{file_name}: decoded {len(messages)} labels")
        return messages
