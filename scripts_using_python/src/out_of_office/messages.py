"""
Auto-Reply Message Builder

Builds the internal/external automatic-reply HTML bodies, the plain-text
previews shown in the form, and the scheduled reply window.

Templates can be overridden by placing auto_reply_internal.html and
auto_reply_external.html in the config directory. Placeholders:
{RETURN_DATE} (e.g. "May 11, 2024") and {RETURN_DATE_LOCAL} ("2024/05/11").

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from .utils import add_days, start_of_day, end_of_day, load_message_template, render_template


INTERNAL_TEMPLATE_FILE = "auto_reply_internal.html"
EXTERNAL_TEMPLATE_FILE = "auto_reply_external.html"

_ENGLISH_PARAGRAPH = (
    "<p>Dear Sender,</p>"
    "<p>Thank you for your email.<br/>"
    "I will be back {RETURN_DATE}. Email will be read with delay.</p>"
)

_JAPANESE_PARAGRAPH = (
    "<p>ご連絡ありがとうございます。<br/>"
    "申し訳ありませんが、{RETURN_DATE_LOCAL} まで不在のため対応できません。<br/>"
    "ご理解いただけますと幸いです。</p>"
)

DEFAULT_INTERNAL_TEMPLATE = _ENGLISH_PARAGRAPH
DEFAULT_EXTERNAL_TEMPLATE = _ENGLISH_PARAGRAPH + _JAPANESE_PARAGRAPH

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def return_date_for(end_date: Union[date, datetime]) -> date:
    """The back-to-office date: the day after the last day of absence."""
    return add_days(end_date, 1)


def format_english_date(value: date) -> str:
    """Format as "May 11, 2024" regardless of the process locale."""
    return f"{_MONTHS[value.month - 1]} {value.day:02d}, {value.year}"


def format_local_date(value: date) -> str:
    """Format as "2024/05/11"."""
    return value.strftime("%Y/%m/%d")


def wrap_html(body: str, signature_html: str = "") -> str:
    """
    Wrap a message body in a minimal HTML envelope.

    A non-blank signature is appended after a horizontal rule.
    """
    signature = f"<hr/>{signature_html}" if signature_html and signature_html.strip() else ""
    return f"<html><body>{body}{signature}</body></html>"


def build_reply_messages(
    end_date: Union[date, datetime],
    signature_html: str = "",
    config_dir: Optional[Path] = None
) -> Dict[str, str]:
    """
    Build the internal and external automatic-reply messages.

    Args:
        end_date: Last day of absence
        signature_html: HTML signature appended to both messages ("" for none)
        config_dir: Directory searched for template overrides

    Returns:
        Dictionary with 'internal' and 'external' HTML strings
    """
    back_date = return_date_for(end_date)
    values = {
        "return_date": format_english_date(back_date),
        "return_date_local": format_local_date(back_date)
    }

    internal_template = load_message_template(config_dir, INTERNAL_TEMPLATE_FILE, DEFAULT_INTERNAL_TEMPLATE)
    external_template = load_message_template(config_dir, EXTERNAL_TEMPLATE_FILE, DEFAULT_EXTERNAL_TEMPLATE)

    return {
        "internal": wrap_html(render_template(internal_template, **values), signature_html),
        "external": wrap_html(render_template(external_template, **values), signature_html)
    }


def reply_window(
    start_date: Union[date, datetime],
    end_date: Union[date, datetime],
    unit: timedelta = timedelta(seconds=1)
) -> Tuple[datetime, datetime]:
    """
    Compute the scheduled automatic-reply window.

    Starts at 00:00 of the first day and ends one time unit before 00:00 of
    the return date, i.e. at the end of the last absent day: for end_date
    2024-05-10 the window ends at 2024-05-10T23:59:59 with a one-second unit.

    Args:
        start_date: First day of absence
        end_date: Last day of absence
        unit: Granularity of the end boundary

    Returns:
        (scheduled_start, scheduled_end) as naive datetimes
    """
    return start_of_day(start_date), end_of_day(end_date, unit)


def build_preview_text(end_date: Union[date, datetime], enabled: bool = True) -> Dict[str, str]:
    """
    Plain-text previews of both messages for the form.

    Args:
        end_date: Last day of absence
        enabled: Whether auto-replies are switched on

    Returns:
        Dictionary with 'internal' and 'external' preview text
    """
    if not enabled:
        return {"internal": "(Auto-reply disabled)", "external": "(Auto-reply disabled)"}

    back_date = return_date_for(end_date)
    english = (
        "Dear Sender,\n\n"
        "Thank you for your email.\n"
        f"I will be back {format_english_date(back_date)}. Email will be read with delay.\n\n"
    )
    japanese = (
        "ご連絡ありがとうございます。\n"
        f"申し訳ありませんが、{format_local_date(back_date)} まで不在のため対応できません。\n"
        "ご理解いただけますと幸いです。\n\n"
    )
    return {
        "internal": english + "[Your signature]",
        "external": english + japanese + "[Your signature]"
    }
