import asyncio
import os
from contextlib import contextmanager
import logging
from typing import Iterable, List

from evstudio.core.constants import TEXT_ENCODING_FALLBACK_LIST

logger = logging.getLogger(__name__)

@contextmanager
def safe_write(filepath: str, encoding: str = 'utf-8'):
    """
    Write a text file through a sibling temp file.

    The target is replaced only after the block finishes without error, so
    a failed hints or settings save leaves the previous file in place.
    """
    temp_path = os.path.join(os.path.dirname(filepath), f".{os.path.basename(filepath)}.tmp")
    try:
        with open(temp_path, 'w', encoding=encoding) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, filepath)
    except Exception as e:
        logger.error(f"Failed to write {filepath}: {e}")
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as os_err:
                logger.warning(f"Failed to remove temp file {temp_path}: {os_err}")
        raise


def read_text(filepath: str, encodings: Iterable[str] = TEXT_ENCODING_FALLBACK_LIST) -> str:
    """
    Read a text file, trying each encoding in turn.

    Raises:
        OSError: The file cannot be opened.
        UnicodeDecodeError: No encoding in the list fits.
    """
    with open(filepath, 'rb') as f:
        raw = f.read()

    last_error = None
    for encoding in encodings:
        try:
            text = raw.decode(encoding)
            # Unity dumps written on Windows keep a BOM
            return text[1:] if text.startswith('\ufeff') else text
        except UnicodeDecodeError as e:
            last_error = e
    raise last_error


async def read_lines(filepath: str) -> List[str]:
    """
    Read a file as a list of lines, yielding to the event loop afterwards.

    File reads are the only points where a refresh or a trace gives way to
    other queued work. Decoding, schema loading, indexing and tracing all
    read through here.
    """
    text = read_text(filepath)
    await asyncio.sleep(0)
    return text.splitlines()
