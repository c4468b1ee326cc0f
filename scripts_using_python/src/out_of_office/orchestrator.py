"""
Out-of-Office Request Orchestrator

Turns one submitted leave request into its side effects, in order:
1. Validate (no side effects on failure)
2. Create the all-day meeting, or save it as a draft - failure stops here
3. Save the To/Cc mailing list (send only)
4. Schedule automatic replies (send only, when enabled)
5. Fill the travel-allowance workbook (send only, business trips)

Steps 3-5 are best effort: a failure is logged and the next step still
runs. Every step's outcome is recorded in a SubmissionOutcome.

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Callable, List, Optional

import requests

from .allowance import AllowanceSheetService
from .auth import GraphClient, GraphAuthenticator, family_name_from_user
from .calendar import CalendarClient
from .config import Config
from .drive import DriveClient
from .exceptions import (
    FatalStepError,
    GraphRequestError,
    OrchestratorBusyError,
    RecoverableStepError,
    ValidationError,
)
from .leave import LeaveRequest
from .mailbox import MailboxSettingsClient
from .mailing_list import DriveMailingListStore, FileMailingListStore
from .messages import build_reply_messages, reply_window
from .signature import get_default_signature_html
from .utils import add_days


logger = logging.getLogger("outlook_automation")

STEP_MEETING = "meeting"
STEP_MAILING_LIST = "mailing_list"
STEP_AUTO_REPLY = "auto_reply"
STEP_EXCEL = "excel"

COMPLETED_MESSAGE = "All tasks completed successfully."


class SubmissionOutcome:
    """
    Ordered log plus per-step completion flags for one submission.

    Flags only ever go from False to True; a skipped or failed step keeps
    its flag False.
    """

    def __init__(self, send_now: bool, on_line: Optional[Callable[[str], None]] = None):
        self.send_now = send_now
        self.on_line = on_line
        self.lines: List[str] = []
        self.meeting_done = False
        self.mailing_list_saved = False
        self.auto_reply_done = False
        self.excel_done = False
        self.attempted: List[str] = []
        self.failed: List[str] = []
        self.validation_error: Optional[str] = None
        self.fatal_error: Optional[FatalStepError] = None
        self.result_reference: Optional[str] = None
        self.wants_auto_reply = False
        self.wants_excel = False

    def _append(self, line: str):
        self.lines.append(line)
        if self.on_line is not None:
            self.on_line(line)

    def info(self, line: str):
        self._append(line)
        logger.info(line)

    def warning(self, line: str):
        self._append(f"WARNING: {line}")
        logger.warning(line)

    def error(self, line: str):
        self._append(f"ERROR: {line}")
        logger.error(line)

    def mark_done(self, step: str):
        if step == STEP_MEETING:
            self.meeting_done = True
        elif step == STEP_MAILING_LIST:
            self.mailing_list_saved = True
        elif step == STEP_AUTO_REPLY:
            self.auto_reply_done = True
        elif step == STEP_EXCEL:
            self.excel_done = True

    @property
    def succeeded(self) -> bool:
        """True when validation passed and every attempted step succeeded."""
        return self.validation_error is None and not self.failed

    def summary_lines(self) -> List[str]:
        """Per-step status table shown when something did not complete."""
        lines = ["Status summary:",
                 f"  Meeting: {'✔ Done' if self.meeting_done else '✘ Not done'}"]
        if STEP_MAILING_LIST in self.attempted:
            lines.append(f"  Mailing list: {'✔ Saved' if self.mailing_list_saved else '✘ Not saved'}")
        if STEP_AUTO_REPLY in self.attempted or (self.fatal_error and self.wants_auto_reply):
            lines.append(f"  Auto-reply: {'✔ Done' if self.auto_reply_done else '✘ Failed'}")
        if STEP_EXCEL in self.attempted or (self.fatal_error and self.wants_excel):
            lines.append(f"  Excel: {'✔ Done' if self.excel_done else '✘ Failed'}")
        return lines

    def __repr__(self) -> str:
        return (f"SubmissionOutcome(meeting={self.meeting_done}, auto_reply={self.auto_reply_done}, "
                f"excel={self.excel_done}, failed={self.failed})")


def validate_request(request: LeaveRequest, send_now: bool):
    """
    Check a request before anything is created.

    Raises:
        ValidationError: For the first rule that is violated
    """
    if send_now and not request.to_recipients:
        raise ValidationError("To field is required when sending.")
    if send_now and request.wants_excel and not (request.excel_save_folder or "").strip():
        raise ValidationError(
            "Excel save folder is required when 'Create and fill allowance Excel' is enabled."
        )
    if request.end_date < request.start_date:
        raise ValidationError("End date must be on or after Start date.")


class RequestOrchestrator:
    """
    Runs out-of-office submissions against injected adapters.

    Adapters:
        calendar: create_all_day_event(...)
        mailbox: set_automatic_replies(...)
        mailing_list_store: save(to, cc)
        allowance: fill_template(dates, destination, family_name, target_location)
        signature_provider: callable returning the signature HTML
    """

    def __init__(
        self,
        calendar,
        mailbox,
        mailing_list_store,
        allowance=None,
        signature_provider: Optional[Callable[[], str]] = None,
        family_name: str = "User",
        config_dir: Optional[Path] = None,
        reply_unit: timedelta = timedelta(seconds=1)
    ):
        self.calendar = calendar
        self.mailbox = mailbox
        self.mailing_list_store = mailing_list_store
        self.allowance = allowance
        self.signature_provider = signature_provider
        self.family_name = family_name
        self.config_dir = config_dir
        self.reply_unit = reply_unit
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    def submit(self, request: LeaveRequest, send_now: bool,
               on_line: Optional[Callable[[str], None]] = None) -> SubmissionOutcome:
        """
        Process one submission end to end.

        Args:
            request: The leave request
            send_now: True sends the meeting and runs the follow-up steps,
                False only saves a draft meeting without attendees
            on_line: Called with each log line as soon as it is produced

        Returns:
            SubmissionOutcome with the ordered log and completion flags

        Raises:
            OrchestratorBusyError: If another submission is still running
        """
        if self._busy:
            raise OrchestratorBusyError("A submission is already in progress.")

        self._busy = True
        try:
            return self._run(request, send_now, on_line)
        finally:
            self._busy = False

    def _run(self, request: LeaveRequest, send_now: bool, on_line) -> SubmissionOutcome:
        outcome = SubmissionOutcome(send_now, on_line)

        try:
            validate_request(request, send_now)
        except ValidationError as e:
            outcome.validation_error = str(e)
            outcome.error(str(e))
            return outcome

        outcome.wants_auto_reply = send_now and request.set_auto_replies
        outcome.wants_excel = send_now and request.wants_excel

        logger.info(f"Submitting {request!r} (send={send_now})")

        try:
            self._create_meeting(request, send_now, outcome)
        except FatalStepError as e:
            outcome.fatal_error = e
            outcome.failed.append(STEP_MEETING)
            outcome.error(str(e))
            for line in outcome.summary_lines():
                outcome.info(line)
            return outcome

        if send_now:
            self._run_step(outcome, STEP_MAILING_LIST, lambda: self._save_mailing_list(request, outcome))

        if outcome.wants_auto_reply:
            self._run_step(outcome, STEP_AUTO_REPLY, lambda: self._set_auto_replies(request, outcome))

        if outcome.wants_excel:
            self._run_step(outcome, STEP_EXCEL, lambda: self._fill_allowance(request, outcome))

        if outcome.succeeded:
            outcome.info(COMPLETED_MESSAGE)
        else:
            for line in outcome.summary_lines():
                outcome.info(line)

        return outcome

    def _run_step(self, outcome: SubmissionOutcome, step: str, action: Callable[[], None]):
        """Run a best-effort step; a failure is logged and does not propagate."""
        outcome.attempted.append(step)
        try:
            action()
        except RecoverableStepError as e:
            outcome.failed.append(step)
            if step == STEP_MAILING_LIST:
                outcome.warning(str(e))
            else:
                outcome.error(str(e))
        else:
            outcome.mark_done(step)

    # ------------------------------------------------------------------ steps

    def _create_meeting(self, request: LeaveRequest, send_now: bool, outcome: SubmissionOutcome):
        outcome.attempted.append(STEP_MEETING)
        outcome.info("Creating and sending meeting…" if send_now else "Creating draft meeting…")

        # A draft must not notify anyone, whatever the form shows
        to_addrs = request.to_recipients if send_now else []
        cc_addrs = request.cc_recipients if send_now else []

        try:
            self.calendar.create_all_day_event(
                request.subject,
                request.location,
                request.start_date,
                add_days(request.end_date, 1),
                to_addrs,
                cc_addrs,
                busy_status="free",
                reminder=False,
                send=send_now
            )
        except Exception as e:
            raise FatalStepError(STEP_MEETING, str(e)) from e

        outcome.mark_done(STEP_MEETING)
        outcome.info("✔ Meeting sent." if send_now else "✔ Draft saved.")

    def _save_mailing_list(self, request: LeaveRequest, outcome: SubmissionOutcome):
        try:
            self.mailing_list_store.save(request.to_recipients, request.cc_recipients)
        except Exception as e:
            raise RecoverableStepError(STEP_MAILING_LIST, f"Could not save mailing list: {e}") from e
        outcome.info("✔ Mailing list saved.")

    def _signature_html(self, request: LeaveRequest) -> str:
        """Typed signature when given, else the provider's default."""
        if request.signature_html.strip():
            return request.signature_html
        if self.signature_provider is None:
            return ""
        try:
            return self.signature_provider() or ""
        except Exception as e:
            logger.warning(f"Signature lookup failed, continuing without: {e}")
            return ""

    def _set_auto_replies(self, request: LeaveRequest, outcome: SubmissionOutcome):
        outcome.info("Setting auto-reply via Microsoft Graph…")
        try:
            messages = build_reply_messages(request.end_date, self._signature_html(request), self.config_dir)
            scheduled_start, scheduled_end = reply_window(request.start_date, request.end_date, self.reply_unit)
            self.mailbox.set_automatic_replies(
                scheduled_start,
                scheduled_end,
                messages["internal"],
                messages["external"]
            )
        except Exception as e:
            raise RecoverableStepError(STEP_AUTO_REPLY, f"Auto-reply failed: {e}") from e
        outcome.info("✔ Auto-reply configured.")

    def _fill_allowance(self, request: LeaveRequest, outcome: SubmissionOutcome):
        outcome.info("Filling travel allowance Excel…")
        try:
            if self.allowance is None:
                raise RuntimeError("No allowance template service configured")
            reference = self.allowance.fill_template(
                request.dates,
                request.destination,
                self.family_name,
                request.excel_save_folder
            )
        except Exception as e:
            raise RecoverableStepError(STEP_EXCEL, f"Excel failed: {e}") from e
        outcome.result_reference = reference
        outcome.info(f"✔ Excel saved: {reference}")


def resolve_family_name(config: Config, graph_client: Optional[GraphClient]) -> str:
    """
    Family name from config, else from the Graph profile, else "User".
    """
    if config.family_name:
        return config.family_name
    if graph_client is None:
        return "User"
    try:
        return family_name_from_user(graph_client.get_current_user())
    except (GraphRequestError, requests.RequestException) as e:
        logger.warning(f"Could not read user profile, using 'User': {e}")
        return "User"


def build_orchestrator(config: Config, authenticator: Optional[GraphAuthenticator] = None) -> RequestOrchestrator:
    """
    Wire the Graph clients, stores and orchestrator for a configuration.

    Everything is created once here and passed in explicitly.
    """
    if authenticator is None:
        authenticator = GraphAuthenticator(config.client_id, config.tenant_id, config.scopes)

    graph_client = GraphClient(authenticator, config.graph_endpoint)
    drive_client = DriveClient(graph_client)

    if config.mailing_list_backend == "drive":
        mailing_list_store = DriveMailingListStore(drive_client)
    else:
        mailing_list_store = FileMailingListStore(config.mailing_list_file)

    signature_folder = config.signature_folder

    return RequestOrchestrator(
        calendar=CalendarClient(graph_client, config.timezone),
        mailbox=MailboxSettingsClient(graph_client, config.timezone),
        mailing_list_store=mailing_list_store,
        allowance=AllowanceSheetService(config.template_source, drive_client),
        signature_provider=lambda: get_default_signature_html(signature_folder),
        family_name=resolve_family_name(config, graph_client),
        config_dir=config.config_dir
    )
