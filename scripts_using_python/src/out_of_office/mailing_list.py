"""
Mailing List Storage

Remembers the To/Cc recipients of the last sent out-of-office meeting so the
form can be pre-filled next time.

Record format (JSON):
    {"to": ["a@x.com"], "cc": [], "updatedAt": "2024-06-03T08:00:00+00:00"}

The file store also reads the older text format:
    To: addr1; addr2
    Cc: addr3

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import os
import json
import logging
import tempfile
import requests
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .drive import DriveClient
from .exceptions import GraphRequestError
from .leave import parse_addresses


logger = logging.getLogger("outlook_automation")

DRIVE_FILE_NAME = "mailingList.json"


class MailingList:
    """Last-used recipients."""

    def __init__(self, to: Optional[List[str]] = None, cc: Optional[List[str]] = None,
                 updated_at: Optional[str] = None):
        self.to = list(to or [])
        self.cc = list(cc or [])
        self.updated_at = updated_at

    @classmethod
    def empty(cls) -> "MailingList":
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> "MailingList":
        to = data.get("to") or []
        cc = data.get("cc") or []
        if not isinstance(to, list) or not isinstance(cc, list):
            raise ValueError("'to' and 'cc' must be lists")
        return cls([str(a) for a in to], [str(a) for a in cc], data.get("updatedAt"))

    def to_dict(self) -> dict:
        return {"to": self.to, "cc": self.cc, "updatedAt": self.updated_at}

    def __eq__(self, other) -> bool:
        if not isinstance(other, MailingList):
            return NotImplemented
        return self.to == other.to and self.cc == other.cc

    def __repr__(self) -> str:
        return f"MailingList(to={self.to}, cc={self.cc}, updated_at={self.updated_at})"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_legacy_text(text: str) -> MailingList:
    """Parse the "To: ...; ..." / "Cc: ..." text format."""
    to, cc = [], []
    for line in text.splitlines():
        head = line[:3].lower()
        if head == "to:":
            to.extend(parse_addresses(line[3:]))
        elif head == "cc:":
            cc.extend(parse_addresses(line[3:]))
    return MailingList(to, cc)


def parse_record(text: str) -> MailingList:
    """Parse a stored record in either the JSON or the text format."""
    stripped = text.lstrip()
    if stripped.startswith("{"):
        return MailingList.from_dict(json.loads(stripped))
    return parse_legacy_text(text)


class FileMailingListStore:
    """
    Mailing list kept in a local file.
    """

    def __init__(self, path: Path):
        """
        Args:
            path: Record file (e.g. ~/Documents/mailingList.json)
        """
        self.path = Path(path)

    def load(self) -> MailingList:
        """
        Load the last saved recipients.

        Returns:
            MailingList; empty if the file is missing or unreadable
        """
        if not self.path.exists():
            return MailingList.empty()

        try:
            mailing_list = parse_record(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable mailing list {self.path}: {e}")
            return MailingList.empty()

        logger.info(f"Loaded mailing list: {len(mailing_list.to)} To, {len(mailing_list.cc)} Cc")
        return mailing_list

    def save(self, to: List[str], cc: List[str]) -> MailingList:
        """
        Replace the stored recipients.

        The record is written to a temporary file next to the target and
        then moved over it, so a crash never leaves a half-written file.

        Returns:
            The saved MailingList
        """
        mailing_list = MailingList(to, cc, _now_iso())
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=".mailingList-", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(mailing_list.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(f"Saved mailing list to {self.path}")
        return mailing_list


class DriveMailingListStore:
    """
    Mailing list kept as mailingList.json in the OneDrive app folder.
    """

    def __init__(self, drive_client: DriveClient):
        self.drive_client = drive_client

    def load(self) -> MailingList:
        """Load the last saved recipients; empty on any failure."""
        try:
            content = self.drive_client.download(DRIVE_FILE_NAME)
            if content is None:
                return MailingList.empty()
            return parse_record(content.decode("utf-8"))
        except (GraphRequestError, requests.RequestException, ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable mailing list in OneDrive: {e}")
            return MailingList.empty()

    def save(self, to: List[str], cc: List[str]) -> MailingList:
        """Replace the stored recipients (a single PUT replaces the whole file)."""
        mailing_list = MailingList(to, cc, _now_iso())
        body = json.dumps(mailing_list.to_dict(), ensure_ascii=False).encode("utf-8")
        self.drive_client.upload(DRIVE_FILE_NAME, body, content_type="application/json")
        return mailing_list
