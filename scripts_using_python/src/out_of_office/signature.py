"""
Outlook Signature Lookup

Outlook keeps each signature as {name}.htm / .rtf / .txt in
%APPDATA%\\Microsoft\\Signatures. The active signature is only recorded in
the registry, so the first .htm file (alphabetically) is used instead.

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import logging
from pathlib import Path
from typing import List


logger = logging.getLogger("outlook_automation")


def _signature_files(folder: Path) -> List[Path]:
    return sorted(Path(folder).glob("*.htm"), key=lambda p: p.name.lower())


def get_default_signature_html(folder: Path) -> str:
    """
    Get the HTML of the first available Outlook signature.

    Args:
        folder: Outlook signature folder

    Returns:
        Signature HTML, or "" if there is none or it cannot be read
    """
    try:
        files = _signature_files(folder)
        if not files:
            return ""
        logger.info(f"Using signature: {files[0].stem}")
        return files[0].read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Could not read signature from {folder}: {e}")
        return ""


def available_signature_names(folder: Path) -> List[str]:
    """Names (without extension) of all signatures in the folder."""
    try:
        return [p.stem for p in _signature_files(folder)]
    except OSError:
        return []
