"""
Exception Types

Error taxonomy for out-of-office submissions:
- ValidationError: input rejected before any Graph call
- FatalStepError: meeting creation failed, submission aborted
- RecoverableStepError: a later step failed, submission continued
- GraphRequestError: Microsoft Graph returned a non-success status

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

from typing import Optional


class OutOfOfficeError(Exception):
    """Base class for all out-of-office errors."""


class ValidationError(OutOfOfficeError):
    """Raised when a leave request fails pre-flight validation."""


class FatalStepError(OutOfOfficeError):
    """Raised when the meeting step fails and the submission must stop."""

    def __init__(self, step: str, message: str):
        super().__init__(message)
        self.step = step


class RecoverableStepError(OutOfOfficeError):
    """Raised for best-effort steps (mailing list, auto-reply, Excel)."""

    def __init__(self, step: str, message: str):
        super().__init__(message)
        self.step = step


class GraphRequestError(OutOfOfficeError):
    """Raised when a Microsoft Graph call returns an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AllowanceSheetError(OutOfOfficeError):
    """Raised when the allowance template is malformed or has no free rows."""


class OrchestratorBusyError(OutOfOfficeError):
    """Raised when a submission is started while another is still running."""
