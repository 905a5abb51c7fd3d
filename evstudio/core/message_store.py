"""
Message store.

Aggregates decoded message dumps for a whole asset tree. Files are keyed by
lowercased stem, and again by the stem without the language/subsystem prefix
("english_ss_intro" is also reachable as "intro"). Labels are lowercased.
"""
import os
import glob
import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .constants import (
    DEFAULT_ASSET_GLOB,
    MESSAGE_ALIAS_PREFIXES,
    NAME_TABLE_MARKERS,
)
from .enums import AssetKind
from .exceptions import DecodeError
from .message import Message
from .parser_factory import classify_asset, get_decoder

logger = logging.getLogger(__name__)


def file_aliases(file_name: str) -> List[str]:
    """Lookup keys for an asset file: the stem and the stem without known prefixes."""
    stem = os.path.splitext(os.path.basename(file_name))[0].lower()
    short = stem
    for prefix in MESSAGE_ALIAS_PREFIXES:
        if short.startswith(prefix):
            short = short[len(prefix):]
    return [stem] if short == stem or not short else [stem, short]


class MessageStore:
    """
    Read-only view of every decoded message, plus speaker and name tables.
    Build a new store to reload; an existing store never changes.
    """

    def __init__(self,
                 messages: Optional[Mapping[str, Mapping[str, Message]]] = None,
                 speakers: Optional[Mapping[str, Message]] = None,
                 names: Optional[Mapping[str, Mapping[Union[int, str], str]]] = None,
                 failed_files: Iterable[str] = ()):
        self._messages = MappingProxyType({
            key: MappingProxyType(dict(labels)) for key, labels in (messages or {}).items()
        })
        self._speakers = MappingProxyType(dict(speakers or {}))
        self._names = MappingProxyType({
            key: MappingProxyType(dict(table)) for key, table in (names or {}).items()
        })
        self.failed_files = tuple(failed_files)

    # --- loading ---

    @classmethod
    async def load(cls, asset_dir: str, pattern: str = DEFAULT_ASSET_GLOB) -> "MessageStore":
        """Decode every asset dump under asset_dir. Bad files are logged and skipped."""
        if not os.path.isdir(asset_dir):
            logger.warning(f"Asset folder not found: {asset_dir}")
            return cls()

        paths = sorted(glob.glob(os.path.join(asset_dir, pattern), recursive=True))
        return await cls.from_files(paths)

    @classmethod
    async def from_files(cls, paths: Iterable[str]) -> "MessageStore":
        messages: Dict[str, Dict[str, Message]] = {}
        speakers: Dict[str, Message] = {}
        names: Dict[str, Dict[Union[int, str], str]] = {}
        failed: List[str] = []

        for path in paths:
            kind = classify_asset(path)
            decoder = get_decoder(path)
            if decoder is None:
                continue

            try:
                decoded = await decoder.decode_file(path, os.path.basename(path))
            except DecodeError as e:
                logger.warning(f"Skipping asset: {e}")
                failed.append(path)
                continue

            if kind is AssetKind.SPEAKERS:
                speakers.update(decoded)
            elif kind is AssetKind.NAME_TABLE:
                names.setdefault(_name_category(path), {}).update(decoded)
            elif kind is AssetKind.FORM_TABLE:
                names.setdefault("form", {}).update(decoded)

            # Speaker files are message files too
            if kind in (AssetKind.MESSAGES, AssetKind.SPEAKERS):
                for alias in file_aliases(path):
                    messages[alias] = decoded

        store = cls(messages, speakers, names, failed)
        logger.info(f"Loaded {store.file_count} message files "
                    f"({len(failed)} skipped)")
        return store

    # --- queries ---

    @property
    def file_count(self) -> int:
        return len({id(labels) for labels in self._messages.values()})

    def files(self) -> List[str]:
        return sorted(self._messages)

    def labels(self, file_name: str) -> Mapping[str, Message]:
        return self._messages.get(file_name.lower(), MappingProxyType({}))

    def get_message(self, file_name: str, label: str) -> Optional[Message]:
        """Case-insensitive lookup of one message; None when missing."""
        return self.labels(file_name).get(label.lower())

    def speaker_name(self, label: str) -> Optional[str]:
        """Display name of a speaker label, without trailing macros."""
        message = self._speakers.get(label.lower())
        if message is None:
            return None
        return message.strip_trailing_macros() or None

    def name(self, category: str, key: Union[int, str]) -> Optional[str]:
        """Look up a name table entry ("monsname", "itemname" or "form")."""
        return self._names.get(category, {}).get(key)

    def __len__(self) -> int:
        return self.file_count

    def __contains__(self, file_name: str) -> bool:
        return file_name.lower() in self._messages


def _name_category(path: str) -> str:
    stem = os.path.basename(path).lower()
    for marker in NAME_TABLE_MARKERS:
        if marker in stem:
            return marker
    return stem
