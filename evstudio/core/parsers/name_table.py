"""
Name table decoders.

Species and item names live in their own dumps as arrayIndex/str pairs.
Form names are keyed by a label of the form ZKN_FORM_<species>_<form>.
"""
import re
import logging
from typing import Dict

from .base import BaseDecoder

logger = logging.getLogger(__name__)


class NameTableDecoder(BaseDecoder):
    """arrayIndex -> name."""

    ENTRY_RE = re.compile(r'arrayIndex:\s*(\d+)[\s\S]*?str:[ \t]*(.*)')

    def decode(self, raw_text: str, file_name: str) -> Dict[int, str]:
        table = {}
        for match in self.ENTRY_RE.finditer(raw_text):
            table[int(match.group(1))] = self.strip_quotes(match.group(2).strip())
        self.log_message.emit("debug", f"{file_name}: {len(table)} names")
        return table


class FormTableDecoder(BaseDecoder):
    """"<species>_<form>" -> form name."""

    ENTRY_RE = re.compile(r'labelName:\s*ZKN_FORM_(\d+)_(\d+)[\s\S]*?str:[ \t]*(.*)')

    def decode(self, raw_text: str, file_name: str) -> Dict[str, str]:
        table = {}
        for match in self.ENTRY_RE.finditer(raw_text):
            key = f"{int(match.group(1))}_{int(match.group(2))}"
            table[key] = self.strip_quotes(match.group(3).strip())
        self.log_message.emit("debug", f"{file_name}: {len(table)} forms")
        return table
