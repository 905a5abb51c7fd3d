"""
Decoder Factory for EvStudio.
Returns the appropriate decoder based on the asset file name.
"""
import os
from typing import Optional

from .constants import (
    ASSET_EXTENSION,
    FORM_TABLE_MARKER,
    NAME_TABLE_MARKERS,
    SKIPPED_ASSET_MARKERS,
    SPEAKER_FILE_MARKER,
)
from .enums import AssetKind
from .parsers.asset_decoder import AssetDecoder
from .parsers.base import BaseDecoder
from .parsers.name_table import FormTableDecoder, NameTableDecoder


def classify_asset(file_path: str) -> Optional[AssetKind]:
    """Classify an asset dump by its file stem. None means the file is skipped."""
    stem = os.path.splitext(os.path.basename(file_path))[0].lower()

    if any(marker in stem for marker in SKIPPED_ASSET_MARKERS):
        return None
    if any(marker in stem for marker in NAME_TABLE_MARKERS):
        return AssetKind.NAME_TABLE
    if FORM_TABLE_MARKER in stem:
        return AssetKind.FORM_TABLE
    if SPEAKER_FILE_MARKER in stem:
        return AssetKind.SPEAKERS
    return AssetKind.MESSAGES


def get_decoder(file_path: str) -> Optional[BaseDecoder]:
    """
    Get the appropriate decoder for an asset dump.
    
    Args:
        file_path: Path to the dump
        
    Returns:
        Decoder instance or None if the file is not decoded
    """
    kind = classify_asset(file_path)

    if kind is AssetKind.MESSAGES:
        return AssetDecoder()
    elif kind is AssetKind.SPEAKERS:
        return AssetDecoder(assume_label_array=True)
    elif kind is AssetKind.NAME_TABLE:
        return NameTableDecoder()
    elif kind is AssetKind.FORM_TABLE:
        return FormTableDecoder()
    
    return None


def is_supported_file(file_path: str) -> bool:
    """Check if a file is an asset dump this project reads."""
    ext = os.path.splitext(file_path)[1].lower()
    return ext == ASSET_EXTENSION and classify_asset(file_path) is not None
