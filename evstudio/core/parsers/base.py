from abc import ABC, abstractmethod, ABCMeta
from typing import Any, Dict, Optional
from PyQt6.QtCore import QObject, pyqtSignal as Signal

from evstudio.core.exceptions import DecodeError
from evstudio.utils.file_ops import read_lines


class DecoderMeta(type(QObject), ABCMeta):
    """Metaclass that combines QObject's meta and ABCMeta to avoid conflicts."""
    pass


class BaseDecoder(QObject, metaclass=DecoderMeta):
    """Base class for all asset dump decoders."""
    log_message = Signal(str, str)  # level, message

    @abstractmethod
    def decode(self, raw_text: str, file_name: str) -> Dict[Any, Any]:
        """
        Decode one raw dump.
        Returns a mapping keyed by label (or index) for the file.
        Raises DecodeError when the dump is not of the expected shape.
        """
        pass

    async def decode_file(self, file_path: str, file_name: Optional[str] = None) -> Dict[Any, Any]:
        """Read and decode a file. Unreadable files raise DecodeError."""
        file_name = file_name or file_path
        try:
            raw_text = "\n".join(await read_lines(file_path))
        except (OSError, UnicodeDecodeError) as e:
            raise DecodeError(file_name, f"unreadable: {e}") from e
        return self.decode(raw_text, file_name)

    @staticmethod
    def strip_quotes(value: str) -> str:
        """Strip one pair of wrapping single quotes."""
        if len(value) >= 2 and value.startswith("'") and value.endswith("'"):
            return value[1:-1]
        return value
