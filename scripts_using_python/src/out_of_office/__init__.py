"""
Out of Office Assistant Package

Python package that sets up an absence in Microsoft Outlook through the
Microsoft Graph REST API.

Provides modules for:
- Authentication (auth.py)
- Configuration management (config.py)
- Leave request rules and form state (leave.py)
- All-day meeting creation (calendar.py)
- Automatic replies (mailbox.py, messages.py, signature.py)
- Travel-allowance workbook (allowance.py, drive.py)
- Mailing list storage (mailing_list.py)
- Submission pipeline (orchestrator.py)
- Utility functions (utils.py)

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

from .auth import (
    DEFAULT_SCOPES,
    GraphAuthenticator,
    GraphClient,
    check_response,
    create_authenticator_from_config,
    family_name_from_user
)
from .config import Config, get_config, reload_config
from .exceptions import (
    OutOfOfficeError,
    ValidationError,
    FatalStepError,
    RecoverableStepError,
    GraphRequestError,
    AllowanceSheetError,
    OrchestratorBusyError
)
from .leave import (
    LeaveType,
    LeaveRequest,
    LeaveForm,
    subject_for,
    expand_date_range,
    parse_addresses,
    format_addresses
)
from .calendar import CalendarClient, build_all_day_event
from .mailbox import MailboxSettingsClient
from .messages import build_reply_messages, build_preview_text, reply_window
from .signature import get_default_signature_html
from .drive import DriveClient
from .mailing_list import MailingList, FileMailingListStore, DriveMailingListStore
from .allowance import AllowanceSheetService, fill_workbook
from .orchestrator import RequestOrchestrator, SubmissionOutcome, build_orchestrator, validate_request
from .utils import (
    end_of_day,
    start_of_day,
    to_iso8601,
    render_template,
    setup_logging,
    initialize_log_file
)

__version__ = "1.0.0"
__author__ = "Generated for outlook_automation repository"

__all__ = [
    # Auth
    "DEFAULT_SCOPES",
    "GraphAuthenticator",
    "GraphClient",
    "check_response",
    "create_authenticator_from_config",
    "family_name_from_user",
    # Config
    "Config",
    "get_config",
    "reload_config",
    # Errors
    "OutOfOfficeError",
    "ValidationError",
    "FatalStepError",
    "RecoverableStepError",
    "GraphRequestError",
    "AllowanceSheetError",
    "OrchestratorBusyError",
    # Leave
    "LeaveType",
    "LeaveRequest",
    "LeaveForm",
    "subject_for",
    "expand_date_range",
    "parse_addresses",
    "format_addresses",
    # Graph clients
    "CalendarClient",
    "build_all_day_event",
    "MailboxSettingsClient",
    "DriveClient",
    # Messages
    "build_reply_messages",
    "build_preview_text",
    "reply_window",
    "get_default_signature_html",
    # Storage and workbook
    "MailingList",
    "FileMailingListStore",
    "DriveMailingListStore",
    "AllowanceSheetService",
    "fill_workbook",
    # Orchestrator
    "RequestOrchestrator",
    "SubmissionOutcome",
    "build_orchestrator",
    "validate_request",
    # Utils
    "end_of_day",
    "start_of_day",
    "to_iso8601",
    "render_template",
    "setup_logging",
    "initialize_log_file",
]
