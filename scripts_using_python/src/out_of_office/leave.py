"""
Leave Request Module

Pure data and derivation rules for an out-of-office request:
- Leave types, subject text and default location
- Date range expansion
- Recipient parsing
- LeaveRequest (one submission) and LeaveForm (form state with derived fields)

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Union

from .messages import build_preview_text
from .utils import to_date


class LeaveType(Enum):
    """Type of leave. Closed set, the form offers exactly these four."""

    BUSINESS_TRIP = "BT"
    FULL_DAY_OFF = "OFF"
    AM_HALF_DAY_OFF = "AM_OFF"
    PM_HALF_DAY_OFF = "PM_OFF"


LEAVE_TYPE_LABELS = {
    LeaveType.BUSINESS_TRIP: "Business Trip",
    LeaveType.FULL_DAY_OFF: "Full Day Off",
    LeaveType.AM_HALF_DAY_OFF: "AM Half Day Off",
    LeaveType.PM_HALF_DAY_OFF: "PM Half Day Off",
}

_SUBJECT_SUFFIXES = {
    LeaveType.BUSINESS_TRIP: "BT",
    LeaveType.FULL_DAY_OFF: "OFF",
    LeaveType.AM_HALF_DAY_OFF: "AM OFF",
    LeaveType.PM_HALF_DAY_OFF: "PM OFF",
}


def subject_for(family_name: str, leave_type) -> str:
    """
    Build the meeting subject, e.g. "Yamada BT" or "Yamada PM OFF".

    Unknown leave types get the full-day-off form.
    """
    suffix = _SUBJECT_SUFFIXES.get(leave_type, _SUBJECT_SUFFIXES[LeaveType.FULL_DAY_OFF])
    return f"{family_name} {suffix}"


def default_location_for(leave_type) -> str:
    """Business trips have no default location; every kind of day off defaults to "Home"."""
    return "" if leave_type == LeaveType.BUSINESS_TRIP else "Home"


def expand_date_range(start: Union[date, datetime], end: Union[date, datetime]) -> List[date]:
    """
    List every calendar date from start to end, both inclusive.

    Args:
        start: First day (time of day ignored)
        end: Last day (time of day ignored), must not be before start

    Returns:
        Ordered list of dates
    """
    current = to_date(start)
    last = to_date(end)
    dates = []
    while current <= last:
        dates.append(current)
        current += timedelta(days=1)
    return dates


def is_multi_day(dates: List[date]) -> bool:
    """True when the range covers more than one day (overnight trip)."""
    return len(dates) > 1


def parse_addresses(text: Optional[str]) -> List[str]:
    """
    Split a To/Cc field into addresses.

    Accepts ';' and ',' as separators, trims whitespace and drops empty
    entries. Order and duplicates are preserved.
    """
    if not text or not text.strip():
        return []

    addresses = []
    for part in text.replace(",", ";").split(";"):
        part = part.strip()
        if part:
            addresses.append(part)
    return addresses


def format_addresses(addresses: List[str]) -> str:
    """Join addresses for display in a To/Cc field."""
    return "; ".join(addresses)


class LeaveRequest:
    """
    All user-entered data for one out-of-office submission.
    """

    def __init__(
        self,
        leave_type: LeaveType = LeaveType.FULL_DAY_OFF,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        subject: str = "",
        location: str = "",
        to_recipients: Optional[List[str]] = None,
        cc_recipients: Optional[List[str]] = None,
        set_auto_replies: bool = True,
        create_excel: bool = True,
        excel_save_folder: str = "",
        destination: Optional[str] = None,
        signature_html: str = ""
    ):
        """
        Args:
            leave_type: Kind of leave
            start_date: First day of absence (defaults to today)
            end_date: Last day of absence (defaults to start_date)
            subject: Meeting subject
            location: Meeting location
            to_recipients: Required attendees
            cc_recipients: Optional attendees
            set_auto_replies: Whether to configure automatic replies
            create_excel: Business trip only, fill the allowance workbook
            excel_save_folder: Business trip only, where the workbook is saved
            destination: Business trip only, destination written to the
                workbook (defaults to location)
            signature_html: Signature appended to the automatic replies; blank
                means the Outlook default signature is used
        """
        self.leave_type = leave_type
        self.start_date = to_date(start_date or date.today())
        self.end_date = to_date(end_date or self.start_date)
        self.subject = subject
        self.location = location
        self.to_recipients = list(to_recipients or [])
        self.cc_recipients = list(cc_recipients or [])
        self.set_auto_replies = set_auto_replies
        self.create_excel = create_excel
        self.excel_save_folder = excel_save_folder
        self.destination = location if destination is None else destination
        self.signature_html = signature_html or ""

    @property
    def is_business_trip(self) -> bool:
        return self.leave_type == LeaveType.BUSINESS_TRIP

    @property
    def wants_excel(self) -> bool:
        """Excel fields only count for business trips."""
        return self.is_business_trip and self.create_excel

    @property
    def dates(self) -> List[date]:
        return expand_date_range(self.start_date, self.end_date)

    def __repr__(self) -> str:
        return (f"LeaveRequest({self.leave_type.name}, {self.start_date} - {self.end_date}, "
                f"subject={self.subject!r}, to={len(self.to_recipients)}, cc={len(self.cc_recipients)})")


class LeaveForm:
    """
    Form state for the task pane.

    Only independent fields are stored. Subject, location and the auto-reply
    previews are computed when read, so changing the leave type or dates
    never leaves a stale derived value behind.
    """

    def __init__(self, family_name: str = "User", to_text: str = "", cc_text: str = "",
                 excel_save_folder: str = "", signature_html: str = ""):
        self.family_name = family_name or "User"
        self._default_to_text = to_text
        self._default_cc_text = cc_text
        self._default_save_folder = excel_save_folder
        self._default_signature = signature_html or ""
        self.reset()

    def reset(self, keep_recipients: bool = True):
        """
        Restore the defaults (Cancel action).

        Args:
            keep_recipients: Keep the mailing list loaded at start-up in To/Cc
        """
        self.leave_type = LeaveType.FULL_DAY_OFF
        self.start_date = date.today()
        self.end_date = date.today()
        self.location_override: Optional[str] = None
        self.to_text = self._default_to_text if keep_recipients else ""
        self.cc_text = self._default_cc_text if keep_recipients else ""
        self.set_auto_replies = True
        self.signature_html = self._default_signature
        self.create_excel = True
        self.excel_save_folder = self._default_save_folder
        self.destination_override: Optional[str] = None

    def select_leave_type(self, leave_type: LeaveType):
        """Change the leave type; a typed-in location is replaced by the new default."""
        self.leave_type = leave_type
        self.location_override = None

    @property
    def subject(self) -> str:
        return subject_for(self.family_name, self.leave_type)

    @property
    def location(self) -> str:
        if self.location_override is not None:
            return self.location_override
        return default_location_for(self.leave_type)

    @location.setter
    def location(self, value: str):
        self.location_override = value

    @property
    def destination(self) -> str:
        if self.destination_override is not None:
            return self.destination_override
        return self.location

    @destination.setter
    def destination(self, value: str):
        self.destination_override = value

    @property
    def is_business_trip(self) -> bool:
        return self.leave_type == LeaveType.BUSINESS_TRIP

    @property
    def internal_preview(self) -> str:
        return build_preview_text(self.end_date, self.set_auto_replies)["internal"]

    @property
    def external_preview(self) -> str:
        return build_preview_text(self.end_date, self.set_auto_replies)["external"]

    def to_request(self) -> LeaveRequest:
        """Snapshot the form into a LeaveRequest for one submission."""
        return LeaveRequest(
            leave_type=self.leave_type,
            start_date=self.start_date,
            end_date=self.end_date,
            subject=self.subject,
            location=self.location,
            to_recipients=parse_addresses(self.to_text),
            cc_recipients=parse_addresses(self.cc_text),
            set_auto_replies=self.set_auto_replies,
            create_excel=self.create_excel,
            excel_save_folder=self.excel_save_folder.strip(),
            destination=self.destination,
            signature_html=self.signature_html
        )
