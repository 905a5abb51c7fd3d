from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from .enums import SlotType, TraceOutcome

# --- Constants ---

# Asset dump keys (Unity text serialization of message tables)
KEY_LABEL_ARRAY = "labelDataArray:"
KEY_LABEL_NAME = "labelName:"
KEY_TAG_ARRAY = "tagDataArray:"
KEY_TAG_INDEX = "tagIndex:"
KEY_GROUP_ID = "groupID:"
KEY_WORD_ARRAY = "wordDataArray:"
KEY_STR = "str:"
KEY_EVENT_ID = "eventID:"
KEY_ARRAY_INDEX = "arrayIndex:"

# List items in the dump are "- key: value"
LIST_ITEM_PREFIX = "-"

# eventID -> macro token appended after a word.
# 0, 2 and >= 5 append nothing; any other value falls back to {n}.
EVENT_ID_MACROS = {
    1: "{n}",
    3: "{r}",
    4: "{f}",
}
EVENT_ID_SILENT = frozenset({0, 2})
EVENT_ID_SILENT_FROM = 5
EVENT_ID_FALLBACK_MACRO = "{n}"

DEFAULT_GROUP_ID = 1

# Placeholder group -> writer parameter type. Unknown groups are names.
GROUP_TO_SLOT: Dict[int, SlotType] = {
    1: SlotType.NAME,
    2: SlotType.NUMBER,
}
DEFAULT_SLOT = SlotType.NAME

# Backward search budget (frames popped per trace)
TRACE_STEP_LIMIT = 50

# File naming
MESSAGE_ALIAS_PREFIXES = ("english_", "ss_")
SPEAKER_FILE_MARKER = "speakers_name"
NAME_TABLE_MARKERS = ("monsname", "itemname")
FORM_TABLE_MARKER = "zkn_form"
SKIPPED_ASSET_MARKERS = ("uidatabase",)
ASSET_EXTENSION = ".asset"
SCRIPT_EXTENSION = ".ev"

# Default Configuration
DEFAULT_SCRIPT_GLOB = "**/*.ev"
DEFAULT_ASSET_GLOB = "**/*.asset"
DEFAULT_ASSET_DIR = "Assets"
DEFAULT_ENGLISH_ASSET_SUBDIR = ("format_msbt", "en", "english")
DEFAULT_SCHEMA_DIR = "JSON"
HINTS_FILE = "hints.json"
COMMANDS_FILE = "commands.json"

TEXT_ENCODING_FALLBACK_LIST = ['utf-8', 'utf-16', 'cp1252', 'latin-1']

# --- Data Transfer Objects (DTOs) ---

@dataclass(frozen=True)
class TagDefinition:
    """One entry of a label's tag list; words point at it by position."""
    tag_id: int
    group_id: int = DEFAULT_GROUP_ID


@dataclass
class WordEntry:
    """A word being assembled while its list item is scanned."""
    text: Optional[str] = None
    event_id: Optional[int] = None
    tag_index: Optional[int] = None


@dataclass(frozen=True)
class LabelDefinition:
    """Where a script label is defined (0-based line)."""
    name: str
    file: str
    line: int


@dataclass(frozen=True)
class CallSite:
    """A Jump/Call naming a label (0-based line)."""
    from_file: str
    from_line: int
    target: str


@dataclass(frozen=True)
class TraceRequest:
    """One placeholder resolution: where it is shown and what it points at."""
    origin_file: str
    origin_line: int
    tag_index: int
    group_id: int = DEFAULT_GROUP_ID


@dataclass
class TraceResult:
    """Outcome of a backward placeholder search."""
    request: TraceRequest
    outcome: TraceOutcome
    command: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    steps: int = 0
    label_path: Tuple[str, ...] = ()
    unreadable_files: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def resolved(self) -> bool:
        return self.outcome is TraceOutcome.RESOLVED
