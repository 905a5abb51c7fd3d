from enum import Enum

class DecoderState(Enum):
    """Asset dump decoder states."""
    OUTSIDE = "outside"
    IN_LABEL_ARRAY = "in_label_array"
    IN_TAG_DATA = "in_tag_data"
    IN_WORD_DATA = "in_word_data"


class MacroToken(Enum):
    """Flow-control tokens embedded in decoded messages."""
    SOFT_BREAK = "{n}"
    PAGE_RESET = "{r}"
    PAGE_REPEAT = "{f}"


class SlotType(Enum):
    """Semantic parameter types a writer command can fill."""
    NAME = "TagIndex"
    NUMBER = "NumberIndex"


class TraceOutcome(Enum):
    """How a placeholder trace ended."""
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    BUDGET_EXCEEDED = "budget_exceeded"


class ReferenceKind(Enum):
    DEFINITION = "definition"
    JUMP = "jump"
    CALL = "call"
    OTHER = "other"


class AssetKind(Enum):
    """Kinds of asset dump, told apart by file name."""
    MESSAGES = "messages"
    SPEAKERS = "speakers"
    NAME_TABLE = "name_table"
    FORM_TABLE = "form_table"
